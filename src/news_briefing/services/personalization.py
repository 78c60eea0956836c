"""Session follows and reading goals."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from news_briefing.db.models import FollowType, GoalType
from news_briefing.logging import get_logger
from news_briefing.repositories.follows import FollowRepository
from news_briefing.repositories.goals import GoalRepository
from news_briefing.services.metrics import metrics
from news_briefing.services.views import FollowView, GoalView


def _check_target_id(target_id: object) -> int:
    # only the type is checked; the target may not exist
    if isinstance(target_id, bool) or not isinstance(target_id, int):
        raise TypeError(f"target_id must be an integer, got {type(target_id).__name__}")
    return target_id


class PersonalizationService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        follow_repo: FollowRepository | None = None,
        goal_repo: GoalRepository | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._follow_repo = follow_repo or FollowRepository()
        self._goal_repo = goal_repo or GoalRepository()
        self._log = get_logger(__name__)

    async def get_user_follows(self, session_id: str) -> list[FollowView]:
        async with self._session_factory() as session:
            follows = await self._follow_repo.list_for_session(session, session_id)
            return [FollowView.model_validate(follow) for follow in follows]

    async def add_follow(
        self,
        session_id: str,
        follow_type: FollowType | str,
        target_id: int,
    ) -> FollowView:
        """Follow a topic or region; an existing identical follow is returned as is."""
        kind = FollowType(follow_type)
        target = _check_target_id(target_id)
        async with self._session_factory() as session:
            async with session.begin():
                existing = await self._follow_repo.find(
                    session, session_id=session_id, follow_type=kind, target_id=target
                )
                if existing is not None:
                    return FollowView.model_validate(existing)
                follow = await self._follow_repo.create(
                    session, session_id=session_id, follow_type=kind, target_id=target
                )
                view = FollowView.model_validate(follow)

        metrics.inc_counter(
            "follows_changed_total", labels={"action": "add", "follow_type": kind.value}
        )
        self._log.info("follows.added", session_id=session_id, follow_type=kind.value, target_id=target)
        return view

    async def remove_follow(
        self,
        session_id: str,
        follow_type: FollowType | str,
        target_id: int,
    ) -> None:
        kind = FollowType(follow_type)
        target = _check_target_id(target_id)
        async with self._session_factory() as session:
            async with session.begin():
                removed = await self._follow_repo.delete(
                    session, session_id=session_id, follow_type=kind, target_id=target
                )
        if removed:
            metrics.inc_counter(
                "follows_changed_total", labels={"action": "remove", "follow_type": kind.value}
            )
        self._log.info(
            "follows.removed",
            session_id=session_id,
            follow_type=kind.value,
            target_id=target,
            removed=removed,
        )

    async def get_user_goals(self, session_id: str) -> list[GoalView]:
        async with self._session_factory() as session:
            goals = await self._goal_repo.list_for_session(session, session_id)
            return [GoalView.model_validate(goal) for goal in goals]

    async def set_user_goals(self, session_id: str, goals: Sequence[GoalType | str]) -> list[GoalView]:
        """Replace the session's goals. Duplicates in ``goals`` are kept."""
        kinds = [GoalType(goal) for goal in goals]
        async with self._session_factory() as session:
            async with session.begin():
                await self._goal_repo.delete_for_session(session, session_id)
                rows = await self._goal_repo.create_many(session, session_id=session_id, goals=kinds)
                views = [GoalView.model_validate(row) for row in rows]

        metrics.inc_counter("goals_saved_total")
        self._log.info("goals.replaced", session_id=session_id, goals=[kind.value for kind in kinds])
        return views
