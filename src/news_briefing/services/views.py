"""Response view models.

Every view serializes with camelCase keys (``model_dump(mode="json", by_alias=True)``)
and can be validated straight from ORM rows or any object exposing the same
attributes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SerializerFunctionWrapHandler, model_serializer
from pydantic.alias_generators import to_camel

from news_briefing.db.models import ClaimCategory, FollowType, GoalType, Rating


class ViewModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class RegionView(ViewModel):
    id: int
    slug: str
    name: str
    description: str | None = None


class SourceView(ViewModel):
    id: int
    name: str
    url: str | None = None
    reliability: float | None = None


class ArticleView(ViewModel):
    id: int
    source_id: int
    topic_id: int
    title: str
    url: str | None = None
    summary: str | None = None
    published_at: datetime
    is_recent: bool = True


class ArticleWithSource(ArticleView):
    source: SourceView | None = None


class ClaimView(ViewModel):
    id: int
    topic_id: int
    statement: str
    category: ClaimCategory
    article_ids: list[int] = Field(default_factory=list)
    is_conflicting: bool = False
    conflicting_claim_id: int | None = None
    created_at: datetime


class ClaimWithArticles(ClaimView):
    articles: list[ArticleWithSource] = Field(default_factory=list)
    conflicting_claim: ClaimWithArticles | None = None


class ViewpointView(ViewModel):
    id: int
    topic_id: int
    group_name: str
    position: str
    arguments: list[str] = Field(default_factory=list)
    incentives: str | None = None
    constraints: str | None = None
    article_ids: list[int] = Field(default_factory=list)


class ScenarioView(ViewModel):
    id: int
    topic_id: int
    title: str
    description: str
    likelihood: Rating | None = None
    triggers: str | None = None
    implications: str | None = None
    article_ids: list[int] = Field(default_factory=list)


class TimelineEventView(ViewModel):
    id: int
    topic_id: int
    event_date: datetime
    description: str
    significance: Rating | None = None
    is_recent: bool = False
    article_id: int | None = None


class StakeholderView(ViewModel):
    id: int
    topic_id: int
    name: str
    role: str
    description: str | None = None
    article_ids: list[int] = Field(default_factory=list)


class WatchSignalView(ViewModel):
    id: int
    topic_id: int
    signal: str
    implication: str | None = None
    scenario_id: int | None = None
    article_ids: list[int] = Field(default_factory=list)


class TopicView(ViewModel):
    id: int
    slug: str
    title: str
    description: str | None = None
    core_question: str | None = None
    category: str | None = None
    created_at: datetime
    updated_at: datetime


class TopicSummary(TopicView):
    regions: list[RegionView] = Field(default_factory=list)
    article_count: int = 0
    source_count: int = 0
    recent_claims_count: int = 0
    latest_update: datetime | None = None
    # only populated when a session id was supplied
    is_followed: bool | None = None
    follow_reason: str | None = None

    @model_serializer(mode="wrap")
    def _omit_follow_state(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        data = handler(self)
        for key in ("is_followed", "isFollowed", "follow_reason", "followReason"):
            if key in data and data[key] is None:
                del data[key]
        return data


class TopicDetail(TopicSummary):
    articles: list[ArticleWithSource] = Field(default_factory=list)
    claims: list[ClaimWithArticles] = Field(default_factory=list)
    viewpoints: list[ViewpointView] = Field(default_factory=list)
    scenarios: list[ScenarioView] = Field(default_factory=list)
    timeline_events: list[TimelineEventView] = Field(default_factory=list)
    stakeholders: list[StakeholderView] = Field(default_factory=list)
    watch_signals: list[WatchSignalView] = Field(default_factory=list)
    source_diversity: float = 0.0


class RegionGroup(ViewModel):
    region: RegionView
    topics: list[TopicSummary]


class CategoryGroup(ViewModel):
    category: str
    topics: list[TopicSummary]


class RecentUpdate(ViewModel):
    topic: TopicSummary
    claim: ClaimView


class LandingData(ViewModel):
    topics_by_region: list[RegionGroup] = Field(default_factory=list)
    topics_by_category: list[CategoryGroup] = Field(default_factory=list)
    recent_updates: list[RecentUpdate] = Field(default_factory=list)


class OnboardingData(ViewModel):
    regions: list[RegionView] = Field(default_factory=list)
    topics: list[TopicSummary] = Field(default_factory=list)


class SearchResult(ViewModel):
    topics: list[TopicSummary] = Field(default_factory=list)
    regions: list[RegionView] = Field(default_factory=list)
    articles: list[ArticleWithSource] = Field(default_factory=list)


class FollowView(ViewModel):
    id: int
    session_id: str
    follow_type: FollowType
    target_id: int
    created_at: datetime | None = None


class GoalView(ViewModel):
    id: int
    session_id: str
    goal: GoalType
    created_at: datetime | None = None
