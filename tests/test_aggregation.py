from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from news_briefing.db.models import ClaimCategory, FollowType
from news_briefing.services import aggregation
from news_briefing.services.views import ArticleWithSource

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@dataclass
class _Region:
    id: int
    slug: str
    name: str
    description: str | None = None


@dataclass
class _Topic:
    id: int
    slug: str
    title: str
    category: str | None = "Technology"
    description: str | None = None
    core_question: str | None = None
    created_at: datetime = NOW - timedelta(days=3)
    updated_at: datetime = NOW - timedelta(days=1)


@dataclass
class _Source:
    id: int
    name: str
    url: str | None = None
    reliability: float | None = 0.9


@dataclass
class _Article:
    id: int
    topic_id: int
    source_id: int
    published_at: datetime
    title: str = "headline"
    url: str | None = "#"
    summary: str | None = None
    is_recent: bool = True


@dataclass
class _Claim:
    id: int
    topic_id: int
    created_at: datetime
    statement: str = "statement"
    category: ClaimCategory = ClaimCategory.WHAT_HAPPENED
    article_ids: list[int] = field(default_factory=list)
    is_conflicting: bool = False
    conflicting_claim_id: int | None = None


@dataclass
class _Follow:
    follow_type: FollowType
    target_id: int


REGIONS = [
    _Region(id=1, slug="north-america", name="North America"),
    _Region(id=2, slug="europe", name="Europe", description="European Union member states and UK"),
    _Region(id=3, slug="east-asia", name="East Asia"),
]


def test_summary_counts_articles_sources_and_recent_claims() -> None:
    topic = _Topic(id=1, slug="chips", title="Chips")
    articles = [
        _Article(id=1, topic_id=1, source_id=1, published_at=NOW - timedelta(hours=2)),
        _Article(id=2, topic_id=1, source_id=2, published_at=NOW - timedelta(hours=30)),
    ]
    claims = [
        _Claim(id=1, topic_id=1, created_at=NOW - timedelta(hours=1)),
        _Claim(id=2, topic_id=1, created_at=NOW - timedelta(hours=23)),
        _Claim(id=3, topic_id=1, created_at=NOW - timedelta(hours=25)),
    ]

    [summary] = aggregation.build_topic_summaries(
        [topic],
        links=[(1, 2)],
        regions=REGIONS,
        articles=articles,
        claims=claims,
        now=NOW,
    )

    assert summary.article_count == 2
    assert summary.source_count == 2
    assert summary.latest_update == NOW - timedelta(hours=2)
    assert summary.recent_claims_count == 2
    assert [region.slug for region in summary.regions] == ["europe"]


def test_summary_without_articles_has_no_latest_update() -> None:
    summary = aggregation.build_topic_summary(
        _Topic(id=1, slug="quiet", title="Quiet"),
        regions=[],
        articles=[],
        claims=[],
        now=NOW,
    )

    assert summary.article_count == 0
    assert summary.source_count == 0
    assert summary.latest_update is None


def test_claim_exactly_window_old_is_not_recent() -> None:
    assert aggregation.is_recent(NOW - timedelta(hours=24), now=NOW) is False
    assert aggregation.is_recent(NOW - timedelta(hours=23, minutes=59), now=NOW) is True


def test_direct_follow_wins_over_region_follow() -> None:
    topic = _Topic(id=7, slug="chips", title="Chips")
    follows = [
        _Follow(FollowType.REGION, 2),
        _Follow(FollowType.TOPIC, 7),
    ]

    [summary] = aggregation.build_topic_summaries(
        [topic], links=[(7, 2)], regions=REGIONS, articles=[], claims=[], now=NOW, follows=follows
    )

    assert summary.is_followed is True
    assert summary.follow_reason == "You follow this topic"


def test_region_follow_gives_reason_without_marking_followed() -> None:
    topic = _Topic(id=7, slug="chips", title="Chips")
    follows = [_Follow(FollowType.REGION, 3), _Follow(FollowType.REGION, 2)]

    [summary] = aggregation.build_topic_summaries(
        [topic],
        links=[(7, 2), (7, 3)],
        regions=REGIONS,
        articles=[],
        claims=[],
        now=NOW,
        follows=follows,
    )

    assert summary.is_followed is False
    # first followed region, in follow order
    assert summary.follow_reason == "Related to East Asia (region you follow)"


def test_session_without_relevant_follows_gets_explicit_false() -> None:
    [summary] = aggregation.build_topic_summaries(
        [_Topic(id=7, slug="chips", title="Chips")],
        links=[(7, 1)],
        regions=REGIONS,
        articles=[],
        claims=[],
        now=NOW,
        follows=[],
    )

    assert summary.is_followed is False
    assert summary.follow_reason is None
    assert summary.to_json()["isFollowed"] is False


def test_follow_fields_are_omitted_without_session() -> None:
    [summary] = aggregation.build_topic_summaries(
        [_Topic(id=7, slug="chips", title="Chips")],
        links=[],
        regions=REGIONS,
        articles=[],
        claims=[],
        now=NOW,
    )

    payload = summary.to_json()
    assert "isFollowed" not in payload
    assert "followReason" not in payload
    assert payload["articleCount"] == 0
    assert payload["coreQuestion"] is None


def test_regions_by_topic_dedupes_links_in_region_order() -> None:
    mapping = aggregation.regions_by_topic([(1, 3), (1, 1), (1, 3), (2, 2)], REGIONS)

    assert [region.id for region in mapping[1]] == [1, 3]
    assert [region.id for region in mapping[2]] == [2]


def test_resolve_claims_drops_stale_articles_and_resolves_one_level() -> None:
    article = ArticleWithSource(
        id=10, source_id=1, topic_id=1, title="a", published_at=NOW, source=None
    )
    claims = [
        _Claim(id=1, topic_id=1, created_at=NOW, article_ids=[10, 999], is_conflicting=True, conflicting_claim_id=2),
        _Claim(id=2, topic_id=1, created_at=NOW, article_ids=[10], is_conflicting=True, conflicting_claim_id=1),
        _Claim(id=3, topic_id=1, created_at=NOW, is_conflicting=True, conflicting_claim_id=404),
    ]

    resolved = aggregation.resolve_claims(claims, {10: article})

    assert [a.id for a in resolved[0].articles] == [10]
    assert resolved[0].article_ids == [10, 999]
    partner = resolved[0].conflicting_claim
    assert partner is not None and partner.id == 2
    assert [a.id for a in partner.articles] == [10]
    assert partner.conflicting_claim is None
    assert resolved[2].conflicting_claim is None


def test_find_asymmetric_conflicts_reports_one_sided_links() -> None:
    claims = [
        _Claim(id=1, topic_id=1, created_at=NOW, is_conflicting=True, conflicting_claim_id=2),
        _Claim(id=2, topic_id=1, created_at=NOW, is_conflicting=True, conflicting_claim_id=3),
        _Claim(id=3, topic_id=1, created_at=NOW, is_conflicting=True, conflicting_claim_id=2),
    ]

    assert aggregation.find_asymmetric_conflicts(claims) == [(1, 2)]


def test_source_diversity_is_a_fraction() -> None:
    assert aggregation.source_diversity(3, 12) == 0.25
    assert aggregation.source_diversity(0, 0) == 0.0
    assert 0.0 <= aggregation.source_diversity(12, 12) <= 1.0


def test_topic_detail_carries_summary_and_diversity() -> None:
    topic = _Topic(id=1, slug="chips", title="Chips")
    sources = {1: _Source(id=1, name="Reuters"), 2: _Source(id=2, name="BBC")}
    articles = aggregation.resolve_articles(
        [
            _Article(id=1, topic_id=1, source_id=1, published_at=NOW - timedelta(hours=3)),
            _Article(id=2, topic_id=1, source_id=2, published_at=NOW - timedelta(hours=5)),
        ],
        sources,
    )

    detail = aggregation.build_topic_detail(
        topic,
        regions=[],
        articles=articles,
        claims=[_Claim(id=1, topic_id=1, created_at=NOW, article_ids=[2])],
        viewpoints=[],
        scenarios=[],
        timeline_events=[],
        stakeholders=[],
        watch_signals=[],
        corpus_source_count=8,
        now=NOW,
    )

    assert detail.source_count == 2
    assert detail.source_diversity == 0.25
    assert detail.articles[0].source is not None
    assert detail.articles[0].source.name == "Reuters"
    assert detail.claims[0].articles[0].source.name == "BBC"
    assert "isFollowed" not in detail.to_json()


def test_landing_groups_are_never_empty() -> None:
    topics = [
        _Topic(id=1, slug="a", title="A", category="Trade"),
        _Topic(id=2, slug="b", title="B", category=None),
        _Topic(id=3, slug="c", title="C", category="Trade"),
    ]
    links = [(1, 1), (3, 1), (2, 3)]
    summaries = aggregation.build_topic_summaries(
        topics, links=links, regions=REGIONS, articles=[], claims=[], now=NOW
    )

    by_region = aggregation.group_by_region(summaries, regions=REGIONS, links=links)
    by_category = aggregation.group_by_category(summaries)

    assert [(group.region.slug, [t.id for t in group.topics]) for group in by_region] == [
        ("north-america", [1, 3]),
        ("east-asia", [2]),
    ]
    assert [(group.category, [t.id for t in group.topics]) for group in by_category] == [("Trade", [1, 3])]


def test_recent_updates_skip_claims_of_unknown_topics() -> None:
    summaries = aggregation.build_topic_summaries(
        [_Topic(id=1, slug="a", title="A")], links=[], regions=REGIONS, articles=[], claims=[], now=NOW
    )
    claims = [
        _Claim(id=5, topic_id=1, created_at=NOW - timedelta(hours=1)),
        _Claim(id=6, topic_id=99, created_at=NOW - timedelta(hours=2)),
    ]

    updates = aggregation.pair_recent_updates(claims, summaries)

    assert [(update.topic.id, update.claim.id) for update in updates] == [(1, 5)]


def test_suggestions_rank_by_followed_region_overlap() -> None:
    topic_a = _Topic(id=1, slug="a", title="A")
    topic_b = _Topic(id=2, slug="b", title="B")
    topic_c = _Topic(id=3, slug="c", title="C")
    followed = _Topic(id=4, slug="d", title="D")
    links = [(1, 1), (1, 2), (3, 2), (4, 1), (4, 2)]
    follows = [
        _Follow(FollowType.REGION, 1),
        _Follow(FollowType.REGION, 2),
        _Follow(FollowType.TOPIC, 4),
    ]

    ranked = aggregation.rank_suggestions(
        [topic_b, topic_a, followed, topic_c], links=links, follows=follows, limit=5
    )

    assert [topic.slug for topic in ranked] == ["a", "c", "b"]


def test_suggestions_keep_natural_order_for_ties_and_respect_limit() -> None:
    topics = [_Topic(id=i, slug=f"t{i}", title=f"T{i}") for i in range(1, 8)]

    ranked = aggregation.rank_suggestions(topics, links=[], follows=[], limit=5)

    assert [topic.id for topic in ranked] == [1, 2, 3, 4, 5]


def test_suggestions_count_duplicate_links_once() -> None:
    topics = [_Topic(id=1, slug="dup", title="Dup"), _Topic(id=2, slug="two", title="Two")]
    links = [(1, 1), (1, 1), (1, 1), (2, 1), (2, 2)]
    follows = [_Follow(FollowType.REGION, 1), _Follow(FollowType.REGION, 2)]

    ranked = aggregation.rank_suggestions(topics, links=links, follows=follows, limit=5)

    assert [topic.id for topic in ranked] == [2, 1]


def test_tokenize_query_handles_blank_and_repeated_tokens() -> None:
    assert aggregation.tokenize_query("") == []
    assert aggregation.tokenize_query("   ") == []
    assert aggregation.tokenize_query(None) == []
    assert aggregation.tokenize_query("  EU  ai eu\tAct ") == ["EU", "ai", "Act"]
    words = [f"w{i}" for i in range(40)]
    assert aggregation.tokenize_query(" ".join(words)) == words


def test_tokenize_query_keeps_tokens_that_differ_only_under_casefold() -> None:
    assert aggregation.tokenize_query("STRASSE straße") == ["STRASSE", "straße"]
    assert aggregation.tokenize_query("Straße STRASSE strasse") == ["Straße", "STRASSE"]
