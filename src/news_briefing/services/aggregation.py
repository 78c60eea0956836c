"""Shaping of fetched rows into topic view models.

Functions here never touch the database. Callers fetch the rows for a request
once, and these helpers build the keyed lookups and the nested views. ``now``
is always passed in so freshness windows are deterministic.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Protocol

from news_briefing.db.models import FollowType
from news_briefing.services.views import (
    ArticleWithSource,
    CategoryGroup,
    ClaimView,
    ClaimWithArticles,
    RecentUpdate,
    RegionGroup,
    RegionView,
    ScenarioView,
    SourceView,
    StakeholderView,
    TimelineEventView,
    TopicDetail,
    TopicSummary,
    TopicView,
    ViewpointView,
    WatchSignalView,
)

DEFAULT_RECENT_WINDOW = timedelta(hours=24)
DIRECT_FOLLOW_REASON = "You follow this topic"


class _FollowRow(Protocol):
    follow_type: Any
    target_id: int


def region_follow_reason(region_name: str) -> str:
    return f"Related to {region_name} (region you follow)"


def tokenize_query(query: str | None) -> list[str]:
    """Split on whitespace, drop empty and repeated (lower-cased) tokens."""
    if not query:
        return []
    tokens: list[str] = []
    seen: set[str] = set()
    for token in query.split():
        key = token.lower()
        if key in seen:
            continue
        seen.add(key)
        tokens.append(token)
    return tokens


def is_recent(created_at: datetime, *, now: datetime, window: timedelta = DEFAULT_RECENT_WINDOW) -> bool:
    return now - created_at < window


@dataclass(slots=True)
class FollowState:
    """A session's follows, split by kind. Region order is the follow order."""

    topic_ids: set[int] = field(default_factory=set)
    region_ids: list[int] = field(default_factory=list)

    @classmethod
    def from_follows(cls, follows: Iterable[_FollowRow]) -> FollowState:
        state = cls()
        for follow in follows:
            follow_type = FollowType(follow.follow_type)
            if follow_type == FollowType.TOPIC:
                state.topic_ids.add(int(follow.target_id))
            elif int(follow.target_id) not in state.region_ids:
                state.region_ids.append(int(follow.target_id))
        return state

    def annotate(self, topic_id: int, regions: Sequence[RegionView]) -> tuple[bool, str | None]:
        if topic_id in self.topic_ids:
            return True, DIRECT_FOLLOW_REASON
        regions_by_id = {region.id: region for region in regions}
        for region_id in self.region_ids:
            region = regions_by_id.get(region_id)
            if region is not None:
                return False, region_follow_reason(region.name)
        return False, None


def regions_by_topic(
    links: Iterable[tuple[int, int]],
    regions: Sequence[Any],
) -> dict[int, list[RegionView]]:
    """Map topic id to its distinct regions, in region table order."""
    linked: dict[int, set[int]] = defaultdict(set)
    for topic_id, region_id in links:
        linked[topic_id].add(region_id)
    views = [RegionView.model_validate(region) for region in regions]
    return {
        topic_id: [view for view in views if view.id in region_ids]
        for topic_id, region_ids in linked.items()
    }


def group_rows_by_topic(rows: Iterable[Any]) -> dict[int, list[Any]]:
    grouped: dict[int, list[Any]] = defaultdict(list)
    for row in rows:
        grouped[row.topic_id].append(row)
    return grouped


def build_topic_summary(
    topic: Any,
    *,
    regions: Sequence[RegionView],
    articles: Sequence[Any],
    claims: Sequence[Any],
    now: datetime,
    window: timedelta = DEFAULT_RECENT_WINDOW,
    follow_state: FollowState | None = None,
) -> TopicSummary:
    latest_update = max((article.published_at for article in articles), default=None)
    is_followed: bool | None = None
    follow_reason: str | None = None
    if follow_state is not None:
        is_followed, follow_reason = follow_state.annotate(topic.id, regions)

    return TopicSummary(
        **_topic_fields(topic),
        regions=list(regions),
        article_count=len(articles),
        source_count=len({article.source_id for article in articles}),
        recent_claims_count=sum(
            1 for claim in claims if is_recent(claim.created_at, now=now, window=window)
        ),
        latest_update=latest_update,
        is_followed=is_followed,
        follow_reason=follow_reason,
    )


def build_topic_summaries(
    topics: Sequence[Any],
    *,
    links: Iterable[tuple[int, int]],
    regions: Sequence[Any],
    articles: Iterable[Any],
    claims: Iterable[Any],
    now: datetime,
    window: timedelta = DEFAULT_RECENT_WINDOW,
    follows: Iterable[_FollowRow] | None = None,
) -> list[TopicSummary]:
    """Summaries for ``topics`` in the given order.

    ``follows`` is ``None`` when no session was supplied; the follow fields
    are then left unset on every summary.
    """
    topic_regions = regions_by_topic(links, regions)
    articles_by_topic = group_rows_by_topic(articles)
    claims_by_topic = group_rows_by_topic(claims)
    follow_state = FollowState.from_follows(follows) if follows is not None else None
    return [
        build_topic_summary(
            topic,
            regions=topic_regions.get(topic.id, []),
            articles=articles_by_topic.get(topic.id, []),
            claims=claims_by_topic.get(topic.id, []),
            now=now,
            window=window,
            follow_state=follow_state,
        )
        for topic in topics
    ]


def resolve_articles(
    articles: Iterable[Any],
    sources_by_id: Mapping[int, Any],
) -> list[ArticleWithSource]:
    resolved: list[ArticleWithSource] = []
    for article in articles:
        source = sources_by_id.get(article.source_id)
        resolved.append(
            ArticleWithSource(
                **ArticleWithSource.model_validate(article).model_dump(exclude={"source"}),
                source=SourceView.model_validate(source) if source is not None else None,
            )
        )
    return resolved


def find_asymmetric_conflicts(claims: Iterable[Any]) -> list[tuple[int, int]]:
    """(claim id, partner id) for conflict links the partner does not return.

    Links to claims outside ``claims`` are not reported.
    """
    claims = list(claims)
    by_id = {claim.id: claim for claim in claims}
    broken: list[tuple[int, int]] = []
    for claim in claims:
        if not claim.is_conflicting or not claim.conflicting_claim_id:
            continue
        partner = by_id.get(claim.conflicting_claim_id)
        if partner is not None and partner.conflicting_claim_id != claim.id:
            broken.append((claim.id, partner.id))
    return broken


def resolve_claims(
    claims: Sequence[Any],
    articles_by_id: Mapping[int, ArticleWithSource],
) -> list[ClaimWithArticles]:
    """Attach cited articles and the conflicting partner, one level deep.

    Article ids that do not resolve within the topic are dropped. The partner
    is resolved with its own articles but never with its partner, which would
    only repeat the original claim.
    """
    by_id = {claim.id: claim for claim in claims}

    def cited(claim: Any) -> list[ArticleWithSource]:
        return [
            articles_by_id[article_id]
            for article_id in (claim.article_ids or [])
            if article_id in articles_by_id
        ]

    resolved: list[ClaimWithArticles] = []
    for claim in claims:
        conflicting: ClaimWithArticles | None = None
        if claim.is_conflicting and claim.conflicting_claim_id:
            partner = by_id.get(claim.conflicting_claim_id)
            if partner is not None:
                conflicting = ClaimWithArticles(**_claim_fields(partner), articles=cited(partner))
        resolved.append(
            ClaimWithArticles(
                **_claim_fields(claim),
                articles=cited(claim),
                conflicting_claim=conflicting,
            )
        )
    return resolved


def source_diversity(topic_source_count: int, corpus_source_count: int) -> float:
    if corpus_source_count <= 0:
        return 0.0
    return topic_source_count / corpus_source_count


def build_topic_detail(
    topic: Any,
    *,
    regions: Sequence[RegionView],
    articles: Sequence[ArticleWithSource],
    claims: Sequence[Any],
    viewpoints: Sequence[Any],
    scenarios: Sequence[Any],
    timeline_events: Sequence[Any],
    stakeholders: Sequence[Any],
    watch_signals: Sequence[Any],
    corpus_source_count: int,
    now: datetime,
    window: timedelta = DEFAULT_RECENT_WINDOW,
) -> TopicDetail:
    summary = build_topic_summary(
        topic,
        regions=regions,
        articles=articles,
        claims=claims,
        now=now,
        window=window,
    )
    articles_by_id = {article.id: article for article in articles}
    return TopicDetail(
        **summary.model_dump(exclude={"regions"}),
        regions=list(regions),
        articles=list(articles),
        claims=resolve_claims(claims, articles_by_id),
        viewpoints=[ViewpointView.model_validate(row) for row in viewpoints],
        scenarios=[ScenarioView.model_validate(row) for row in scenarios],
        timeline_events=[TimelineEventView.model_validate(row) for row in timeline_events],
        stakeholders=[StakeholderView.model_validate(row) for row in stakeholders],
        watch_signals=[WatchSignalView.model_validate(row) for row in watch_signals],
        source_diversity=source_diversity(summary.source_count, corpus_source_count),
    )


def group_by_region(
    summaries: Sequence[TopicSummary],
    *,
    regions: Sequence[Any],
    links: Iterable[tuple[int, int]],
) -> list[RegionGroup]:
    """One group per region with at least one topic; topics keep their input order."""
    topic_ids_by_region: dict[int, set[int]] = defaultdict(set)
    for topic_id, region_id in links:
        topic_ids_by_region[region_id].add(topic_id)

    groups: list[RegionGroup] = []
    for region in regions:
        topic_ids = topic_ids_by_region.get(region.id)
        if not topic_ids:
            continue
        topics = [summary for summary in summaries if summary.id in topic_ids]
        if topics:
            groups.append(RegionGroup(region=RegionView.model_validate(region), topics=topics))
    return groups


def group_by_category(summaries: Sequence[TopicSummary]) -> list[CategoryGroup]:
    """One group per non-empty category, in order of first appearance."""
    grouped: dict[str, list[TopicSummary]] = {}
    for summary in summaries:
        if not summary.category:
            continue
        grouped.setdefault(summary.category, []).append(summary)
    return [CategoryGroup(category=category, topics=topics) for category, topics in grouped.items()]


def pair_recent_updates(
    claims: Iterable[Any],
    summaries: Sequence[TopicSummary],
) -> list[RecentUpdate]:
    """Pair each claim with its topic summary; claims of unknown topics are dropped."""
    summaries_by_id = {summary.id: summary for summary in summaries}
    updates: list[RecentUpdate] = []
    for claim in claims:
        summary = summaries_by_id.get(claim.topic_id)
        if summary is None:
            continue
        updates.append(RecentUpdate(topic=summary, claim=ClaimView.model_validate(claim)))
    return updates


def rank_suggestions(
    topics: Sequence[Any],
    *,
    links: Iterable[tuple[int, int]],
    follows: Iterable[_FollowRow],
    limit: int,
) -> list[Any]:
    """Unfollowed topics ordered by followed-region overlap.

    The sort is stable: equal scores keep the input (natural) topic order.
    """
    state = FollowState.from_follows(follows)
    followed_regions = set(state.region_ids)
    region_ids_by_topic: dict[int, set[int]] = defaultdict(set)
    for topic_id, region_id in links:
        region_ids_by_topic[topic_id].add(region_id)

    candidates = [topic for topic in topics if topic.id not in state.topic_ids]
    ranked = sorted(
        candidates,
        key=lambda topic: len(region_ids_by_topic.get(topic.id, set()) & followed_regions),
        reverse=True,
    )
    return ranked[:limit]


def _topic_fields(topic: Any) -> dict[str, Any]:
    return TopicView.model_validate(topic).model_dump()


def _claim_fields(claim: Any) -> dict[str, Any]:
    return ClaimView.model_validate(claim).model_dump()
