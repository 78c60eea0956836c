from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

import pytest
from aiohttp.test_utils import TestClient, TestServer

from news_briefing.config import HttpSettings
from news_briefing.db.models import FollowType, GoalType
from news_briefing.services.metrics import metrics
from news_briefing.services.views import (
    FollowView,
    GoalView,
    LandingData,
    OnboardingData,
    SearchResult,
    TopicDetail,
)
from news_briefing.web.app import create_app

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@dataclass
class _BriefingSpy:
    sessions: list[str | None] = field(default_factory=list)
    queries: list[str] = field(default_factory=list)
    fail: bool = False

    async def get_landing_data(self, session_id):  # noqa: ANN001
        if self.fail:
            raise RuntimeError("database is down")
        self.sessions.append(session_id)
        return LandingData()

    async def get_topic_detail_by_slug(self, slug: str):
        if slug != "chips":
            return None
        return TopicDetail(id=1, slug="chips", title="Chips", created_at=NOW, updated_at=NOW, article_count=3)

    async def search(self, query: str, session_id):  # noqa: ANN001
        self.queries.append(query)
        return SearchResult()

    async def get_onboarding_data(self, session_id):  # noqa: ANN001
        return OnboardingData()

    async def get_suggested_topics(self, session_id):  # noqa: ANN001
        return []


@dataclass
class _PersonalizationSpy:
    added: list[tuple[str, FollowType, int]] = field(default_factory=list)
    removed: list[tuple[str, FollowType, int]] = field(default_factory=list)
    goals: list[tuple[str, list]] = field(default_factory=list)

    async def get_user_follows(self, session_id: str):
        return [
            FollowView(id=i, session_id=s, follow_type=t, target_id=target, created_at=NOW)
            for i, (s, t, target) in enumerate(self.added, start=1)
            if s == session_id
        ]

    async def add_follow(self, session_id: str, follow_type: FollowType, target_id: int):
        self.added.append((session_id, follow_type, target_id))
        return FollowView(id=len(self.added), session_id=session_id, follow_type=follow_type, target_id=target_id)

    async def remove_follow(self, session_id: str, follow_type: FollowType, target_id: int) -> None:
        self.removed.append((session_id, follow_type, target_id))

    async def get_user_goals(self, session_id: str):
        return []

    async def set_user_goals(self, session_id: str, goals):  # noqa: ANN001
        self.goals.append((session_id, list(goals)))
        return [GoalView(id=i, session_id=session_id, goal=goal) for i, goal in enumerate(goals, start=1)]


def _client(briefing=None, personalization=None) -> TestClient:  # noqa: ANN001
    app = create_app(
        briefing or _BriefingSpy(),
        personalization or _PersonalizationSpy(),
        HttpSettings(session_cookie_name="sid"),
    )
    return TestClient(TestServer(app))


@pytest.mark.asyncio
async def test_session_cookie_is_issued_and_reused() -> None:
    briefing = _BriefingSpy()
    async with _client(briefing=briefing) as client:
        first = await client.get("/api/landing")
        assert first.status == 200
        cookie = first.cookies["sid"]
        assert cookie["httponly"]
        assert cookie["samesite"] == "Lax"
        assert len(cookie.value) == 32

        second = await client.get("/api/landing", cookies={"sid": cookie.value})
        assert second.status == 200
        assert "sid" not in second.cookies

    assert briefing.sessions == [cookie.value, cookie.value]


@pytest.mark.asyncio
async def test_unknown_topic_is_404() -> None:
    async with _client() as client:
        response = await client.get("/api/topics/missing")
        assert response.status == 404
        assert await response.json() == {"message": "Topic not found"}


@pytest.mark.asyncio
async def test_topic_detail_is_camel_cased() -> None:
    async with _client() as client:
        response = await client.get("/api/topics/chips")
        assert response.status == 200
        payload = await response.json()

    assert payload["articleCount"] == 3
    assert payload["sourceDiversity"] == 0.0
    assert payload["timelineEvents"] == []
    assert "isFollowed" not in payload


@pytest.mark.asyncio
async def test_missing_search_query_is_empty_query() -> None:
    briefing = _BriefingSpy()
    async with _client(briefing=briefing) as client:
        response = await client.get("/api/search")
        assert response.status == 200
        assert await response.json() == {"topics": [], "regions": [], "articles": []}

    assert briefing.queries == [""]


@pytest.mark.asyncio
async def test_follow_roundtrip_uses_the_cookie_session() -> None:
    personalization = _PersonalizationSpy()
    async with _client(personalization=personalization) as client:
        cookies = {"sid": "abc"}
        added = await client.post("/api/follows", json={"followType": "topic", "targetId": 7}, cookies=cookies)
        assert added.status == 200
        assert (await added.json())["followType"] == "topic"

        listed = await client.get("/api/follows", cookies=cookies)
        assert [row["targetId"] for row in await listed.json()] == [7]

        removed = await client.delete("/api/follows", json={"followType": "topic", "targetId": 7}, cookies=cookies)
        assert removed.status == 200
        assert await removed.json() == {"success": True}

    assert personalization.added == [("abc", FollowType.TOPIC, 7)]
    assert personalization.removed == [("abc", FollowType.TOPIC, 7)]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"followType": "person", "targetId": 7},
        {"followType": "topic", "targetId": "7"},
        {"followType": "topic", "targetId": True},
        {"followType": "topic"},
    ],
)
async def test_malformed_follow_payload_is_400(body: dict) -> None:
    personalization = _PersonalizationSpy()
    async with _client(personalization=personalization) as client:
        response = await client.post("/api/follows", json=body)
        assert response.status == 400
        payload = await response.json()

    assert payload["message"] == "Invalid request"
    assert payload["errors"]
    assert personalization.added == []


@pytest.mark.asyncio
async def test_non_json_body_is_400() -> None:
    async with _client() as client:
        response = await client.post("/api/follows", data=b"not json")
        assert response.status == 400
        assert (await response.json())["message"] == "Invalid request"


@pytest.mark.asyncio
async def test_goals_default_to_empty_and_keep_duplicates() -> None:
    personalization = _PersonalizationSpy()
    async with _client(personalization=personalization) as client:
        cleared = await client.post("/api/goals", json={}, cookies={"sid": "abc"})
        assert await cleared.json() == []

        saved = await client.post("/api/goals", json={"goals": ["vote", "vote"]}, cookies={"sid": "abc"})
        assert [row["goal"] for row in await saved.json()] == ["vote", "vote"]

        rejected = await client.post("/api/goals", json={"goals": ["retire"]}, cookies={"sid": "abc"})
        assert rejected.status == 400

    assert personalization.goals == [("abc", []), ("abc", [GoalType.VOTE, GoalType.VOTE])]


@pytest.mark.asyncio
async def test_unexpected_errors_become_500_and_are_counted() -> None:
    before = metrics.value("http_errors_total")
    async with _client(briefing=_BriefingSpy(fail=True)) as client:
        response = await client.get("/api/landing")
        assert response.status == 500
        assert await response.json() == {"message": "Internal server error"}

    assert metrics.value("http_errors_total") == before + 1
    assert metrics.value("http_requests_total", labels={"route": "/api/landing", "status": "500"}) >= 1


@pytest.mark.asyncio
async def test_health_and_metrics_endpoints() -> None:
    async with _client() as client:
        health = await client.get("/health")
        assert health.status == 200
        assert await health.text() == "ok"
        assert "sid" not in health.cookies

        await client.get("/api/onboarding")
        exposition = await (await client.get("/metrics")).text()

    assert "# TYPE http_requests_total counter" in exposition
    assert 'http_requests_total{route="/api/onboarding",status="200"}' in exposition
