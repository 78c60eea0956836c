"""User follow repository."""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from news_briefing.db.models import FollowType, UserFollow


class FollowRepository:
    async def list_for_session(self, session: AsyncSession, session_id: str) -> list[UserFollow]:
        result = await session.execute(
            select(UserFollow).where(UserFollow.session_id == session_id).order_by(UserFollow.id.asc())
        )
        return list(result.scalars().all())

    async def find(
        self,
        session: AsyncSession,
        *,
        session_id: str,
        follow_type: FollowType,
        target_id: int,
    ) -> UserFollow | None:
        result = await session.execute(
            select(UserFollow)
            .where(UserFollow.session_id == session_id)
            .where(UserFollow.follow_type == follow_type)
            .where(UserFollow.target_id == target_id)
            .order_by(UserFollow.id.asc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def create(
        self,
        session: AsyncSession,
        *,
        session_id: str,
        follow_type: FollowType,
        target_id: int,
    ) -> UserFollow:
        follow = UserFollow(session_id=session_id, follow_type=follow_type, target_id=target_id)
        session.add(follow)
        await session.flush()
        return follow

    async def delete(
        self,
        session: AsyncSession,
        *,
        session_id: str,
        follow_type: FollowType,
        target_id: int,
    ) -> int:
        result = await session.execute(
            delete(UserFollow)
            .where(UserFollow.session_id == session_id)
            .where(UserFollow.follow_type == follow_type)
            .where(UserFollow.target_id == target_id)
        )
        return int(result.rowcount or 0)
