"""Claim repository."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from news_briefing.db.models import Claim


class ClaimRepository:
    async def list_for_topics(self, session: AsyncSession, topic_ids: Sequence[int]) -> list[Claim]:
        if not topic_ids:
            return []
        result = await session.execute(
            select(Claim).where(Claim.topic_id.in_(list(topic_ids))).order_by(Claim.id.asc())
        )
        return list(result.scalars().all())

    async def list_created_since(
        self,
        session: AsyncSession,
        *,
        since: datetime,
        limit: int,
    ) -> list[Claim]:
        result = await session.execute(
            select(Claim)
            .where(Claim.created_at > since)
            .order_by(Claim.created_at.desc(), Claim.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def create(self, session: AsyncSession, claim: Claim) -> Claim:
        session.add(claim)
        await session.flush()
        return claim

    async def link_conflicting(self, session: AsyncSession, *, claim_id: int, other_id: int) -> None:
        """Pair two claims as conflicting; both rows point at each other."""
        if claim_id == other_id:
            raise ValueError("a claim cannot conflict with itself")
        for source_id, target_id in ((claim_id, other_id), (other_id, claim_id)):
            await session.execute(
                update(Claim)
                .where(Claim.id == source_id)
                .values(is_conflicting=True, conflicting_claim_id=target_id)
            )
        await session.flush()
