"""Source repository."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from news_briefing.db.models import Source


class SourceRepository:
    async def get_by_ids(self, session: AsyncSession, source_ids: Sequence[int]) -> dict[int, Source]:
        if not source_ids:
            return {}
        result = await session.execute(select(Source).where(Source.id.in_(set(source_ids))))
        return {source.id: source for source in result.scalars().all()}

    async def count(self, session: AsyncSession) -> int:
        result = await session.execute(select(func.count()).select_from(Source))
        return int(result.scalar_one() or 0)

    async def create(self, session: AsyncSession, source: Source) -> Source:
        session.add(source)
        await session.flush()
        return source
