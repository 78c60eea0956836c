"""Database models."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from news_briefing.db.base import Base


class ClaimCategory(enum.StrEnum):
    WHAT_HAPPENED = "what_happened"
    WHO_SAID = "who_said"
    WHAT_CHANGED = "what_changed"
    LIKELY_NEXT = "likely_next"
    BACKGROUND = "background"


class Rating(enum.StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class FollowType(enum.StrEnum):
    TOPIC = "topic"
    REGION = "region"


class GoalType(enum.StrEnum):
    VOTE = "vote"
    INVEST = "invest"
    ADVOCATE = "advocate"


def _str_enum(enum_cls: type[enum.StrEnum], name: str) -> Enum:
    # stored as plain varchar holding the lowercase value
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        create_constraint=False,
        length=50,
        values_callable=lambda members: [member.value for member in members],
    )


class Region(Base):
    __tablename__ = "regions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class Topic(Base):
    __tablename__ = "topics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    core_question: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (Index("ix_topics_updated_at", "updated_at"),)


class TopicRegion(Base):
    """Topic/region link. Pairs are not unique-constrained."""

    __tablename__ = "topic_regions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    topic_id: Mapped[int] = mapped_column(ForeignKey("topics.id", ondelete="CASCADE"), nullable=False)
    region_id: Mapped[int] = mapped_column(ForeignKey("regions.id", ondelete="CASCADE"), nullable=False)

    __table_args__ = (
        Index("ix_topic_regions_topic_id", "topic_id"),
        Index("ix_topic_regions_region_id", "region_id"),
    )


class Source(Base):
    __tablename__ = "sources"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    url: Mapped[str | None] = mapped_column(Text, nullable=True)
    reliability: Mapped[float | None] = mapped_column(Float, nullable=True)


class Article(Base):
    __tablename__ = "articles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    source_id: Mapped[int] = mapped_column(ForeignKey("sources.id"), nullable=False)
    topic_id: Mapped[int] = mapped_column(ForeignKey("topics.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    url: Mapped[str | None] = mapped_column(Text, nullable=True)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    published_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    # set at ingestion time, never recomputed on read
    is_recent: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="true")

    __table_args__ = (Index("ix_articles_topic_id", "topic_id"),)


class Claim(Base):
    __tablename__ = "claims"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    topic_id: Mapped[int] = mapped_column(ForeignKey("topics.id", ondelete="CASCADE"), nullable=False)
    statement: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[ClaimCategory] = mapped_column(_str_enum(ClaimCategory, "claim_category"), nullable=False)
    article_ids: Mapped[list] = mapped_column(JSONB, nullable=False, server_default="[]")
    is_conflicting: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="false")
    conflicting_claim_id: Mapped[int | None] = mapped_column(
        ForeignKey("claims.id", ondelete="SET NULL"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_claims_topic_id", "topic_id"),
        Index("ix_claims_created_at", "created_at"),
    )


class Viewpoint(Base):
    __tablename__ = "viewpoints"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    topic_id: Mapped[int] = mapped_column(ForeignKey("topics.id", ondelete="CASCADE"), nullable=False)
    group_name: Mapped[str] = mapped_column(String(200), nullable=False)
    position: Mapped[str] = mapped_column(Text, nullable=False)
    arguments: Mapped[list] = mapped_column(JSONB, nullable=False, server_default="[]")
    incentives: Mapped[str | None] = mapped_column(Text, nullable=True)
    constraints: Mapped[str | None] = mapped_column(Text, nullable=True)
    article_ids: Mapped[list] = mapped_column(JSONB, nullable=False, server_default="[]")


class Scenario(Base):
    __tablename__ = "scenarios"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    topic_id: Mapped[int] = mapped_column(ForeignKey("topics.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    likelihood: Mapped[Rating | None] = mapped_column(_str_enum(Rating, "likelihood"), nullable=True)
    triggers: Mapped[str | None] = mapped_column(Text, nullable=True)
    implications: Mapped[str | None] = mapped_column(Text, nullable=True)
    article_ids: Mapped[list] = mapped_column(JSONB, nullable=False, server_default="[]")


class TimelineEvent(Base):
    __tablename__ = "timeline_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    topic_id: Mapped[int] = mapped_column(ForeignKey("topics.id", ondelete="CASCADE"), nullable=False)
    event_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    significance: Mapped[Rating | None] = mapped_column(_str_enum(Rating, "significance"), nullable=True)
    is_recent: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="false")
    article_id: Mapped[int | None] = mapped_column(Integer, nullable=True)


class Stakeholder(Base):
    __tablename__ = "stakeholders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    topic_id: Mapped[int] = mapped_column(ForeignKey("topics.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    role: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    article_ids: Mapped[list] = mapped_column(JSONB, nullable=False, server_default="[]")


class WatchSignal(Base):
    __tablename__ = "watch_signals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    topic_id: Mapped[int] = mapped_column(ForeignKey("topics.id", ondelete="CASCADE"), nullable=False)
    signal: Mapped[str] = mapped_column(Text, nullable=False)
    implication: Mapped[str | None] = mapped_column(Text, nullable=True)
    scenario_id: Mapped[int | None] = mapped_column(
        ForeignKey("scenarios.id", ondelete="SET NULL"), nullable=True
    )
    article_ids: Mapped[list] = mapped_column(JSONB, nullable=False, server_default="[]")


class UserFollow(Base):
    """Session follow. Duplicates are suppressed on insert, not by a constraint."""

    __tablename__ = "user_follows"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(String(100), nullable=False)
    follow_type: Mapped[FollowType] = mapped_column(_str_enum(FollowType, "follow_type"), nullable=False)
    target_id: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_user_follows_session_type_target", "session_id", "follow_type", "target_id"),
    )


class UserGoal(Base):
    __tablename__ = "user_goals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(String(100), nullable=False)
    goal: Mapped[GoalType] = mapped_column(_str_enum(GoalType, "goal"), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (Index("ix_user_goals_session_id", "session_id"),)
