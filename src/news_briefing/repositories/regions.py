"""Region repository."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from news_briefing.db.models import Region, TopicRegion
from news_briefing.repositories.text_match import any_token_matches


class RegionRepository:
    async def list_all(self, session: AsyncSession) -> list[Region]:
        result = await session.execute(select(Region).order_by(Region.id.asc()))
        return list(result.scalars().all())

    async def search(self, session: AsyncSession, *, tokens: Sequence[str]) -> list[Region]:
        if not tokens:
            return []
        result = await session.execute(
            select(Region)
            .where(any_token_matches([Region.name, Region.description], tokens))
            .order_by(Region.id.asc())
        )
        return list(result.scalars().all())

    async def list_topic_links(
        self,
        session: AsyncSession,
        *,
        topic_ids: Sequence[int] | None = None,
    ) -> list[tuple[int, int]]:
        """Return (topic_id, region_id) pairs, optionally limited to some topics."""
        query = select(TopicRegion.topic_id, TopicRegion.region_id).order_by(TopicRegion.id.asc())
        if topic_ids is not None:
            if not topic_ids:
                return []
            query = query.where(TopicRegion.topic_id.in_(list(topic_ids)))
        result = await session.execute(query)
        return [(int(topic_id), int(region_id)) for topic_id, region_id in result.all()]

    async def create(self, session: AsyncSession, region: Region) -> Region:
        session.add(region)
        await session.flush()
        return region

    async def link_topic(self, session: AsyncSession, *, topic_id: int, region_id: int) -> TopicRegion:
        link = TopicRegion(topic_id=topic_id, region_id=region_id)
        session.add(link)
        await session.flush()
        return link
