"""Topic repository."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from news_briefing.db.models import Topic
from news_briefing.repositories.text_match import any_token_matches

# most recently updated first; id keeps equal timestamps stable
NATURAL_ORDER = (Topic.updated_at.desc(), Topic.id.asc())


class TopicRepository:
    async def list_all(self, session: AsyncSession) -> list[Topic]:
        result = await session.execute(select(Topic).order_by(*NATURAL_ORDER))
        return list(result.scalars().all())

    async def get_by_id(self, session: AsyncSession, topic_id: int) -> Topic | None:
        result = await session.execute(select(Topic).where(Topic.id == topic_id))
        return result.scalar_one_or_none()

    async def get_by_slug(self, session: AsyncSession, slug: str) -> Topic | None:
        result = await session.execute(select(Topic).where(Topic.slug == slug))
        return result.scalar_one_or_none()

    async def search(self, session: AsyncSession, *, tokens: Sequence[str]) -> list[Topic]:
        if not tokens:
            return []
        result = await session.execute(
            select(Topic)
            .where(any_token_matches([Topic.title, Topic.description, Topic.category], tokens))
            .order_by(*NATURAL_ORDER)
        )
        return list(result.scalars().all())

    async def count(self, session: AsyncSession) -> int:
        result = await session.execute(select(func.count()).select_from(Topic))
        return int(result.scalar_one() or 0)

    async def create(self, session: AsyncSession, topic: Topic) -> Topic:
        session.add(topic)
        await session.flush()
        return topic
