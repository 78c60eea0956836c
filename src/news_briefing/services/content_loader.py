"""Content pack ingestion.

A content pack is a JSON document describing regions, sources and fully
analysed topics. Rows reference each other through pack-local keys
(region slugs, source names, article/claim/scenario ``ref`` values), which
are resolved to database ids while the pack is written. The default pack
ships in ``news_briefing/data``.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from importlib import resources
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from news_briefing.db.models import (
    Article,
    Claim,
    ClaimCategory,
    Rating,
    Region,
    Scenario,
    Source,
    Stakeholder,
    TimelineEvent,
    Topic,
    Viewpoint,
    WatchSignal,
)
from news_briefing.logging import get_logger
from news_briefing.repositories.articles import ArticleRepository
from news_briefing.repositories.claims import ClaimRepository
from news_briefing.repositories.regions import RegionRepository
from news_briefing.repositories.sources import SourceRepository
from news_briefing.repositories.topic_content import TopicContentRepository
from news_briefing.repositories.topics import TopicRepository
from news_briefing.services.metrics import metrics

DEFAULT_PACK_PACKAGE = "news_briefing.data"
DEFAULT_PACK_NAME = "default_pack.json"


class ContentError(ValueError):
    """Raised for content packs that are malformed or reference unknown rows."""


class PackModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class RegionEntry(PackModel):
    slug: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str | None = None


class SourceEntry(PackModel):
    name: str = Field(min_length=1)
    url: str | None = None
    reliability: float | None = Field(default=None, ge=0.0, le=1.0)


class ArticleEntry(PackModel):
    ref: str
    source_name: str
    title: str
    url: str | None = None
    summary: str | None = None
    published_at: datetime | None = None
    published_hours_ago: float | None = Field(default=None, ge=0)
    is_recent: bool = True

    @model_validator(mode="after")
    def _one_publication_time(self) -> ArticleEntry:
        if (self.published_at is None) == (self.published_hours_ago is None):
            raise ValueError("exactly one of publishedAt or publishedHoursAgo is required")
        return self


class ClaimEntry(PackModel):
    ref: str
    statement: str
    category: ClaimCategory
    articles: list[str] = Field(default_factory=list)
    conflicts_with: str | None = None
    created_hours_ago: float = Field(default=0, ge=0)


class ViewpointEntry(PackModel):
    group_name: str
    position: str
    arguments: list[str] = Field(default_factory=list)
    incentives: str | None = None
    constraints: str | None = None
    articles: list[str] = Field(default_factory=list)


class ScenarioEntry(PackModel):
    ref: str | None = None
    title: str
    description: str
    likelihood: Rating | None = None
    triggers: str | None = None
    implications: str | None = None
    articles: list[str] = Field(default_factory=list)


class TimelineEntry(PackModel):
    event_date: datetime | None = None
    event_hours_ago: float | None = Field(default=None, ge=0)
    description: str
    significance: Rating | None = None
    is_recent: bool = False
    article: str | None = None

    @model_validator(mode="after")
    def _one_event_time(self) -> TimelineEntry:
        if (self.event_date is None) == (self.event_hours_ago is None):
            raise ValueError("exactly one of eventDate or eventHoursAgo is required")
        return self


class StakeholderEntry(PackModel):
    name: str
    role: str
    description: str | None = None
    articles: list[str] = Field(default_factory=list)


class WatchSignalEntry(PackModel):
    signal: str
    implication: str | None = None
    scenario: str | None = None
    articles: list[str] = Field(default_factory=list)


class TopicEntry(PackModel):
    slug: str = Field(min_length=1)
    title: str
    description: str | None = None
    core_question: str | None = None
    category: str | None = None
    regions: list[str] = Field(default_factory=list)
    articles: list[ArticleEntry] = Field(default_factory=list)
    claims: list[ClaimEntry] = Field(default_factory=list)
    viewpoints: list[ViewpointEntry] = Field(default_factory=list)
    scenarios: list[ScenarioEntry] = Field(default_factory=list)
    timeline_events: list[TimelineEntry] = Field(default_factory=list)
    stakeholders: list[StakeholderEntry] = Field(default_factory=list)
    watch_signals: list[WatchSignalEntry] = Field(default_factory=list)


class ContentPack(PackModel):
    regions: list[RegionEntry] = Field(default_factory=list)
    sources: list[SourceEntry] = Field(default_factory=list)
    topics: list[TopicEntry] = Field(default_factory=list)


@dataclass(slots=True)
class LoadReport:
    skipped: bool = False
    regions: int = 0
    sources: int = 0
    topics: int = 0
    articles: int = 0
    claims: int = 0
    conflict_pairs: int = 0


def parse_pack(data: Mapping[str, Any]) -> ContentPack:
    try:
        pack = ContentPack.model_validate(data)
    except ValidationError as exc:
        raise ContentError(f"invalid content pack: {exc}") from exc
    validate_pack(pack)
    return pack


def parse_pack_json(text: str, *, origin: str) -> ContentPack:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ContentError(f"{origin}: not valid JSON ({exc})") from exc
    if not isinstance(data, dict):
        raise ContentError(f"{origin}: expected a JSON object at the top level")
    return parse_pack(data)


def load_default_pack() -> ContentPack:
    """The regions, sources and topics shipped with the package."""
    text = resources.files(DEFAULT_PACK_PACKAGE).joinpath(DEFAULT_PACK_NAME).read_text(encoding="utf-8")
    return parse_pack_json(text, origin=DEFAULT_PACK_NAME)


def _unique(values: list[str], what: str, where: str) -> set[str]:
    seen: set[str] = set()
    for value in values:
        if value in seen:
            raise ContentError(f"{where}: duplicate {what} {value!r}")
        seen.add(value)
    return seen


def _known(refs: list[str], known: set[str], what: str, where: str) -> None:
    for ref in refs:
        if ref not in known:
            raise ContentError(f"{where}: unknown {what} {ref!r}")


def conflict_pairs(topic: TopicEntry) -> list[tuple[str, str]]:
    """Return each conflicting claim pair once, checking that both sides name each other."""
    by_ref = {claim.ref: claim for claim in topic.claims}
    pairs: list[tuple[str, str]] = []
    for claim in topic.claims:
        other_ref = claim.conflicts_with
        if other_ref is None:
            continue
        where = f"topic {topic.slug!r}, claim {claim.ref!r}"
        if other_ref == claim.ref:
            raise ContentError(f"{where}: a claim cannot conflict with itself")
        other = by_ref.get(other_ref)
        if other is None:
            raise ContentError(f"{where}: unknown claim {other_ref!r}")
        if other.conflicts_with != claim.ref:
            raise ContentError(
                f"{where}: conflicts with {other_ref!r} but {other_ref!r} "
                f"does not conflict with {claim.ref!r}"
            )
        if (other_ref, claim.ref) not in pairs:
            pairs.append((claim.ref, other_ref))
    return pairs


def validate_pack(pack: ContentPack) -> None:
    """Check every pack-local reference before anything is written."""
    region_slugs = _unique([region.slug for region in pack.regions], "region", "regions")
    source_names = _unique([source.name for source in pack.sources], "source", "sources")
    _unique([topic.slug for topic in pack.topics], "topic", "topics")

    for topic in pack.topics:
        where = f"topic {topic.slug!r}"
        _known(topic.regions, region_slugs, "region", where)
        article_refs = _unique([article.ref for article in topic.articles], "article ref", where)
        _known([article.source_name for article in topic.articles], source_names, "source", where)
        _unique([claim.ref for claim in topic.claims], "claim ref", where)
        scenario_refs = _unique(
            [scenario.ref for scenario in topic.scenarios if scenario.ref is not None],
            "scenario ref",
            where,
        )

        for rows in (topic.claims, topic.viewpoints, topic.scenarios, topic.stakeholders, topic.watch_signals):
            for row in rows:
                _known(row.articles, article_refs, "article", where)
        _known(
            [event.article for event in topic.timeline_events if event.article is not None],
            article_refs,
            "article",
            where,
        )
        _known(
            [signal.scenario for signal in topic.watch_signals if signal.scenario is not None],
            scenario_refs,
            "scenario",
            where,
        )
        conflict_pairs(topic)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ContentLoader:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        topic_repo: TopicRepository | None = None,
        region_repo: RegionRepository | None = None,
        source_repo: SourceRepository | None = None,
        article_repo: ArticleRepository | None = None,
        claim_repo: ClaimRepository | None = None,
        content_repo: TopicContentRepository | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._topic_repo = topic_repo or TopicRepository()
        self._region_repo = region_repo or RegionRepository()
        self._source_repo = source_repo or SourceRepository()
        self._article_repo = article_repo or ArticleRepository()
        self._claim_repo = claim_repo or ClaimRepository()
        self._content_repo = content_repo or TopicContentRepository()
        self._clock = clock or _utcnow
        self._log = get_logger(__name__)

    async def load(self, pack: ContentPack) -> LoadReport:
        """Write ``pack`` in one transaction, unless the corpus already has topics."""
        validate_pack(pack)
        now = self._clock()
        report = LoadReport()
        async with self._session_factory() as session:
            async with session.begin():
                existing = await self._topic_repo.count(session)
                if existing:
                    self._log.info("content.skipped", existing_topics=existing)
                    return LoadReport(skipped=True)

                region_ids: dict[str, int] = {}
                for entry in pack.regions:
                    region = await self._region_repo.create(
                        session,
                        Region(slug=entry.slug, name=entry.name, description=entry.description),
                    )
                    region_ids[entry.slug] = region.id
                report.regions = len(region_ids)

                source_ids: dict[str, int] = {}
                for entry in pack.sources:
                    source = await self._source_repo.create(
                        session,
                        Source(name=entry.name, url=entry.url, reliability=entry.reliability),
                    )
                    source_ids[entry.name] = source.id
                report.sources = len(source_ids)

                for entry in pack.topics:
                    await self._load_topic(
                        session,
                        entry,
                        region_ids=region_ids,
                        source_ids=source_ids,
                        now=now,
                        report=report,
                    )

        metrics.inc_counter("content_topics_loaded_total", report.topics)
        self._log.info(
            "content.loaded",
            regions=report.regions,
            sources=report.sources,
            topics=report.topics,
            articles=report.articles,
            claims=report.claims,
            conflict_pairs=report.conflict_pairs,
        )
        return report

    async def _load_topic(
        self,
        session: AsyncSession,
        entry: TopicEntry,
        *,
        region_ids: Mapping[str, int],
        source_ids: Mapping[str, int],
        now: datetime,
        report: LoadReport,
    ) -> None:
        topic = await self._topic_repo.create(
            session,
            Topic(
                slug=entry.slug,
                title=entry.title,
                description=entry.description,
                core_question=entry.core_question,
                category=entry.category,
            ),
        )
        for slug in entry.regions:
            await self._region_repo.link_topic(session, topic_id=topic.id, region_id=region_ids[slug])

        article_ids: dict[str, int] = {}
        for item in entry.articles:
            published_at = item.published_at
            if published_at is None:
                published_at = now - timedelta(hours=item.published_hours_ago or 0)
            article = await self._article_repo.create(
                session,
                Article(
                    source_id=source_ids[item.source_name],
                    topic_id=topic.id,
                    title=item.title,
                    url=item.url,
                    summary=item.summary,
                    published_at=published_at,
                    is_recent=item.is_recent,
                ),
            )
            article_ids[item.ref] = article.id

        def resolve(refs: list[str]) -> list[int]:
            return [article_ids[ref] for ref in refs]

        claim_ids: dict[str, int] = {}
        for item in entry.claims:
            claim = await self._claim_repo.create(
                session,
                Claim(
                    topic_id=topic.id,
                    statement=item.statement,
                    category=item.category,
                    article_ids=resolve(item.articles),
                    is_conflicting=False,
                    created_at=now - timedelta(hours=item.created_hours_ago),
                ),
            )
            claim_ids[item.ref] = claim.id

        pairs = conflict_pairs(entry)
        for left, right in pairs:
            await self._claim_repo.link_conflicting(
                session, claim_id=claim_ids[left], other_id=claim_ids[right]
            )

        for item in entry.viewpoints:
            await self._content_repo.add(
                session,
                Viewpoint(
                    topic_id=topic.id,
                    group_name=item.group_name,
                    position=item.position,
                    arguments=list(item.arguments),
                    incentives=item.incentives,
                    constraints=item.constraints,
                    article_ids=resolve(item.articles),
                ),
            )

        scenario_ids: dict[str, int] = {}
        for item in entry.scenarios:
            scenario = await self._content_repo.add(
                session,
                Scenario(
                    topic_id=topic.id,
                    title=item.title,
                    description=item.description,
                    likelihood=item.likelihood,
                    triggers=item.triggers,
                    implications=item.implications,
                    article_ids=resolve(item.articles),
                ),
            )
            if item.ref is not None:
                scenario_ids[item.ref] = scenario.id

        for item in entry.timeline_events:
            event_date = item.event_date
            if event_date is None:
                event_date = now - timedelta(hours=item.event_hours_ago or 0)
            await self._content_repo.add(
                session,
                TimelineEvent(
                    topic_id=topic.id,
                    event_date=event_date,
                    description=item.description,
                    significance=item.significance,
                    is_recent=item.is_recent,
                    article_id=article_ids[item.article] if item.article else None,
                ),
            )

        for item in entry.stakeholders:
            await self._content_repo.add(
                session,
                Stakeholder(
                    topic_id=topic.id,
                    name=item.name,
                    role=item.role,
                    description=item.description,
                    article_ids=resolve(item.articles),
                ),
            )

        for item in entry.watch_signals:
            await self._content_repo.add(
                session,
                WatchSignal(
                    topic_id=topic.id,
                    signal=item.signal,
                    implication=item.implication,
                    scenario_id=scenario_ids[item.scenario] if item.scenario else None,
                    article_ids=resolve(item.articles),
                ),
            )

        report.topics += 1
        report.articles += len(article_ids)
        report.claims += len(claim_ids)
        report.conflict_pairs += len(pairs)
