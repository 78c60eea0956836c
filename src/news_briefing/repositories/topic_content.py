"""Repository for the per-topic analysis rows (viewpoints, scenarios, timeline, stakeholders, signals)."""

from __future__ import annotations

from typing import TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from news_briefing.db.base import Base
from news_briefing.db.models import Scenario, Stakeholder, TimelineEvent, Viewpoint, WatchSignal

RowT = TypeVar("RowT", bound=Base)


class TopicContentRepository:
    async def list_viewpoints(self, session: AsyncSession, topic_id: int) -> list[Viewpoint]:
        result = await session.execute(
            select(Viewpoint).where(Viewpoint.topic_id == topic_id).order_by(Viewpoint.id.asc())
        )
        return list(result.scalars().all())

    async def list_scenarios(self, session: AsyncSession, topic_id: int) -> list[Scenario]:
        result = await session.execute(
            select(Scenario).where(Scenario.topic_id == topic_id).order_by(Scenario.id.asc())
        )
        return list(result.scalars().all())

    async def list_timeline(self, session: AsyncSession, topic_id: int) -> list[TimelineEvent]:
        result = await session.execute(
            select(TimelineEvent)
            .where(TimelineEvent.topic_id == topic_id)
            .order_by(TimelineEvent.event_date.desc(), TimelineEvent.id.asc())
        )
        return list(result.scalars().all())

    async def list_stakeholders(self, session: AsyncSession, topic_id: int) -> list[Stakeholder]:
        result = await session.execute(
            select(Stakeholder).where(Stakeholder.topic_id == topic_id).order_by(Stakeholder.id.asc())
        )
        return list(result.scalars().all())

    async def list_watch_signals(self, session: AsyncSession, topic_id: int) -> list[WatchSignal]:
        result = await session.execute(
            select(WatchSignal).where(WatchSignal.topic_id == topic_id).order_by(WatchSignal.id.asc())
        )
        return list(result.scalars().all())

    async def add(self, session: AsyncSession, row: RowT) -> RowT:
        session.add(row)
        await session.flush()
        return row
