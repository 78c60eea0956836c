"""Article repository."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from news_briefing.db.models import Article
from news_briefing.repositories.text_match import any_token_matches


class ArticleRepository:
    async def list_for_topics(self, session: AsyncSession, topic_ids: Sequence[int]) -> list[Article]:
        if not topic_ids:
            return []
        result = await session.execute(
            select(Article)
            .where(Article.topic_id.in_(list(topic_ids)))
            .order_by(Article.published_at.desc(), Article.id.asc())
        )
        return list(result.scalars().all())

    async def search(self, session: AsyncSession, *, tokens: Sequence[str]) -> list[Article]:
        if not tokens:
            return []
        result = await session.execute(
            select(Article)
            .where(any_token_matches([Article.title, Article.summary], tokens))
            .order_by(Article.published_at.desc(), Article.id.asc())
        )
        return list(result.scalars().all())

    async def create(self, session: AsyncSession, article: Article) -> Article:
        session.add(article)
        await session.flush()
        return article
