"""User goal repository."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from news_briefing.db.models import GoalType, UserGoal


class GoalRepository:
    async def list_for_session(self, session: AsyncSession, session_id: str) -> list[UserGoal]:
        result = await session.execute(
            select(UserGoal).where(UserGoal.session_id == session_id).order_by(UserGoal.id.asc())
        )
        return list(result.scalars().all())

    async def delete_for_session(self, session: AsyncSession, session_id: str) -> int:
        result = await session.execute(delete(UserGoal).where(UserGoal.session_id == session_id))
        return int(result.rowcount or 0)

    async def create_many(
        self,
        session: AsyncSession,
        *,
        session_id: str,
        goals: Sequence[GoalType],
    ) -> list[UserGoal]:
        rows = [UserGoal(session_id=session_id, goal=goal) for goal in goals]
        if rows:
            session.add_all(rows)
            await session.flush()
        return rows
