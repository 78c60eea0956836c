"""Read side: topic summaries, topic detail, landing, onboarding, search, suggestions."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from news_briefing.config import FeedSettings
from news_briefing.db.models import Topic
from news_briefing.logging import get_logger
from news_briefing.repositories.articles import ArticleRepository
from news_briefing.repositories.claims import ClaimRepository
from news_briefing.repositories.follows import FollowRepository
from news_briefing.repositories.regions import RegionRepository
from news_briefing.repositories.sources import SourceRepository
from news_briefing.repositories.topic_content import TopicContentRepository
from news_briefing.repositories.topics import TopicRepository
from news_briefing.services import aggregation
from news_briefing.services.metrics import metrics
from news_briefing.services.views import (
    LandingData,
    OnboardingData,
    RegionView,
    SearchResult,
    TopicDetail,
    TopicSummary,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BriefingService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        feed: FeedSettings | None = None,
        topic_repo: TopicRepository | None = None,
        region_repo: RegionRepository | None = None,
        source_repo: SourceRepository | None = None,
        article_repo: ArticleRepository | None = None,
        claim_repo: ClaimRepository | None = None,
        content_repo: TopicContentRepository | None = None,
        follow_repo: FollowRepository | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._feed = feed or FeedSettings()
        self._topic_repo = topic_repo or TopicRepository()
        self._region_repo = region_repo or RegionRepository()
        self._source_repo = source_repo or SourceRepository()
        self._article_repo = article_repo or ArticleRepository()
        self._claim_repo = claim_repo or ClaimRepository()
        self._content_repo = content_repo or TopicContentRepository()
        self._follow_repo = follow_repo or FollowRepository()
        self._clock = clock or _utcnow
        self._log = get_logger(__name__)

    @property
    def _window(self) -> timedelta:
        return timedelta(hours=self._feed.recent_window_hours)

    async def get_topic_summary(self, topic_id: int, session_id: str | None = None) -> TopicSummary | None:
        async with self._session_factory() as session:
            async with session.begin():
                topic = await self._topic_repo.get_by_id(session, topic_id)
                if topic is None:
                    return None
                summaries = await self._summaries(session, [topic], session_id=session_id)
        return summaries[0]

    async def get_topic_by_slug(self, slug: str) -> Topic | None:
        async with self._session_factory() as session:
            return await self._topic_repo.get_by_slug(session, slug)

    async def get_topic_detail_by_slug(self, slug: str) -> TopicDetail | None:
        topic = await self.get_topic_by_slug(slug)
        if topic is None:
            self._log.info("briefing.topic_not_found", slug=slug)
            return None
        return await self.get_topic_detail(topic.id)

    async def get_topic_detail(self, topic_id: int) -> TopicDetail | None:
        now = self._clock()
        async with self._session_factory() as session:
            async with session.begin():
                topic = await self._topic_repo.get_by_id(session, topic_id)
                if topic is None:
                    self._log.info("briefing.topic_not_found", topic_id=topic_id)
                    return None
                links = await self._region_repo.list_topic_links(session, topic_ids=[topic.id])
                regions = await self._region_repo.list_all(session)
                articles = await self._article_repo.list_for_topics(session, [topic.id])
                sources = await self._source_repo.get_by_ids(
                    session, [article.source_id for article in articles]
                )
                claims = await self._claim_repo.list_for_topics(session, [topic.id])
                viewpoints = await self._content_repo.list_viewpoints(session, topic.id)
                scenarios = await self._content_repo.list_scenarios(session, topic.id)
                timeline = await self._content_repo.list_timeline(session, topic.id)
                stakeholders = await self._content_repo.list_stakeholders(session, topic.id)
                watch_signals = await self._content_repo.list_watch_signals(session, topic.id)
                corpus_source_count = await self._source_repo.count(session)

        for claim_id, partner_id in aggregation.find_asymmetric_conflicts(claims):
            self._log.warning(
                "claims.asymmetric_conflict",
                topic_id=topic.id,
                claim_id=claim_id,
                partner_id=partner_id,
            )

        return aggregation.build_topic_detail(
            topic,
            regions=aggregation.regions_by_topic(links, regions).get(topic.id, []),
            articles=aggregation.resolve_articles(articles, sources),
            claims=claims,
            viewpoints=viewpoints,
            scenarios=scenarios,
            timeline_events=timeline,
            stakeholders=stakeholders,
            watch_signals=watch_signals,
            corpus_source_count=corpus_source_count,
            now=now,
            window=self._window,
        )

    async def get_landing_data(self, session_id: str | None = None) -> LandingData:
        now = self._clock()
        async with self._session_factory() as session:
            async with session.begin():
                topics = await self._topic_repo.list_all(session)
                regions = await self._region_repo.list_all(session)
                links = await self._region_repo.list_topic_links(session)
                summaries = await self._summaries(
                    session,
                    topics,
                    session_id=session_id,
                    now=now,
                    regions=regions,
                    links=links,
                )
                recent_claims = await self._claim_repo.list_created_since(
                    session,
                    since=now - self._window,
                    limit=self._feed.recent_updates_limit,
                )

        return LandingData(
            topics_by_region=aggregation.group_by_region(summaries, regions=regions, links=links),
            topics_by_category=aggregation.group_by_category(summaries),
            recent_updates=aggregation.pair_recent_updates(recent_claims, summaries),
        )

    async def get_onboarding_data(self, session_id: str | None = None) -> OnboardingData:
        async with self._session_factory() as session:
            async with session.begin():
                topics = await self._topic_repo.list_all(session)
                regions = await self._region_repo.list_all(session)
                summaries = await self._summaries(
                    session, topics, session_id=session_id, regions=regions
                )
        return OnboardingData(
            regions=[RegionView.model_validate(region) for region in regions],
            topics=summaries,
        )

    async def search(self, query: str | None, session_id: str | None = None) -> SearchResult:
        tokens = aggregation.tokenize_query(query)
        if not tokens:
            metrics.inc_counter("search_queries_total", labels={"result": "empty"})
            return SearchResult()

        async with self._session_factory() as session:
            async with session.begin():
                topics = await self._topic_repo.search(session, tokens=tokens)
                regions = await self._region_repo.search(session, tokens=tokens)
                articles = await self._article_repo.search(session, tokens=tokens)
                sources = await self._source_repo.get_by_ids(
                    session, [article.source_id for article in articles]
                )
                summaries = await self._summaries(session, topics, session_id=session_id)

        result = SearchResult(
            topics=summaries,
            regions=[RegionView.model_validate(region) for region in regions],
            articles=aggregation.resolve_articles(articles, sources),
        )
        hit = bool(result.topics or result.regions or result.articles)
        metrics.inc_counter("search_queries_total", labels={"result": "hit" if hit else "miss"})
        return result

    async def get_suggested_topics(self, session_id: str) -> list[TopicSummary]:
        async with self._session_factory() as session:
            async with session.begin():
                follows = await self._follow_repo.list_for_session(session, session_id)
                topics = await self._topic_repo.list_all(session)
                links = await self._region_repo.list_topic_links(session)
                ranked = aggregation.rank_suggestions(
                    topics,
                    links=links,
                    follows=follows,
                    limit=self._feed.suggestions_limit,
                )
                ranked_ids = {topic.id for topic in ranked}
                return await self._summaries(
                    session,
                    ranked,
                    session_id=session_id,
                    links=[link for link in links if link[0] in ranked_ids],
                    follows=follows,
                )

    async def _summaries(
        self,
        session: AsyncSession,
        topics: Sequence[Topic],
        *,
        session_id: str | None,
        now: datetime | None = None,
        regions: Sequence | None = None,
        links: Sequence[tuple[int, int]] | None = None,
        follows: Sequence | None = None,
    ) -> list[TopicSummary]:
        """Batch-load everything the summaries of ``topics`` need, then shape them."""
        if not topics:
            return []
        topic_ids = [topic.id for topic in topics]
        if regions is None:
            regions = await self._region_repo.list_all(session)
        if links is None:
            links = await self._region_repo.list_topic_links(session, topic_ids=topic_ids)
        articles = await self._article_repo.list_for_topics(session, topic_ids)
        claims = await self._claim_repo.list_for_topics(session, topic_ids)
        if not session_id:
            follows = None
        elif follows is None:
            follows = await self._follow_repo.list_for_session(session, session_id)

        return aggregation.build_topic_summaries(
            topics,
            links=links,
            regions=regions,
            articles=articles,
            claims=claims,
            now=now or self._clock(),
            window=self._window,
            follows=follows,
        )
