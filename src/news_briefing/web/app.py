"""aiohttp application: JSON API, session cookie issuance, health and metrics."""

from __future__ import annotations

import secrets
from collections.abc import Awaitable, Callable

import structlog
from aiohttp import web

from news_briefing.config import HttpSettings
from news_briefing.logging import get_logger
from news_briefing.monitoring import capture_sentry_exception
from news_briefing.services.briefing import BriefingService
from news_briefing.services.metrics import metrics
from news_briefing.services.personalization import PersonalizationService
from news_briefing.web.schemas import FollowPayload, GoalsPayload, InvalidPayload, parse_payload

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

SESSION_KEY = "session_id"
MAX_SESSION_ID_LENGTH = 100

log = get_logger(__name__)


def _route_name(request: web.Request) -> str:
    route = request.match_info.route
    resource = route.resource if route is not None else None
    if resource is None:
        return "unmatched"
    return resource.canonical


@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    route = _route_name(request)
    try:
        response = await handler(request)
    except InvalidPayload as exc:
        response = web.json_response({"message": "Invalid request", "errors": exc.errors}, status=400)
    except web.HTTPException as exc:
        metrics.inc_counter("http_requests_total", labels={"route": route, "status": str(exc.status)})
        raise
    except Exception as exc:
        log.exception("http.unhandled_error", route=route, method=request.method)
        capture_sentry_exception(exc, context={"route": route, "method": request.method})
        metrics.inc_counter("http_errors_total")
        response = web.json_response({"message": "Internal server error"}, status=500)
    metrics.inc_counter("http_requests_total", labels={"route": route, "status": str(response.status)})
    return response


def session_middleware(settings: HttpSettings):
    """Attach the cookie session id to the request, issuing a new one when absent."""

    max_age = settings.session_cookie_max_age_days * 24 * 60 * 60

    @web.middleware
    async def middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
        if not request.path.startswith("/api/"):
            return await handler(request)

        session_id = request.cookies.get(settings.session_cookie_name, "")
        issued = False
        if not session_id or len(session_id) > MAX_SESSION_ID_LENGTH:
            session_id = secrets.token_hex(16)
            issued = True
        request[SESSION_KEY] = session_id

        with structlog.contextvars.bound_contextvars(session_id=session_id):
            response = await handler(request)
        if issued:
            response.set_cookie(
                settings.session_cookie_name,
                session_id,
                max_age=max_age,
                path="/",
                httponly=True,
                samesite="Lax",
                secure=settings.session_cookie_secure,
            )
        return response

    return middleware


class ApiHandlers:
    def __init__(self, briefing: BriefingService, personalization: PersonalizationService) -> None:
        self._briefing = briefing
        self._personalization = personalization

    async def landing(self, request: web.Request) -> web.Response:
        data = await self._briefing.get_landing_data(request[SESSION_KEY])
        return web.json_response(data.to_json())

    async def topic(self, request: web.Request) -> web.Response:
        detail = await self._briefing.get_topic_detail_by_slug(request.match_info["slug"])
        if detail is None:
            return web.json_response({"message": "Topic not found"}, status=404)
        return web.json_response(detail.to_json())

    async def search(self, request: web.Request) -> web.Response:
        result = await self._briefing.search(request.query.get("q", ""), request[SESSION_KEY])
        return web.json_response(result.to_json())

    async def onboarding(self, request: web.Request) -> web.Response:
        data = await self._briefing.get_onboarding_data(request[SESSION_KEY])
        return web.json_response(data.to_json())

    async def suggestions(self, request: web.Request) -> web.Response:
        topics = await self._briefing.get_suggested_topics(request[SESSION_KEY])
        return web.json_response([topic.to_json() for topic in topics])

    async def list_follows(self, request: web.Request) -> web.Response:
        follows = await self._personalization.get_user_follows(request[SESSION_KEY])
        return web.json_response([follow.to_json() for follow in follows])

    async def add_follow(self, request: web.Request) -> web.Response:
        payload = parse_payload(FollowPayload, await request.read())
        follow = await self._personalization.add_follow(
            request[SESSION_KEY], payload.follow_type, payload.target_id
        )
        return web.json_response(follow.to_json())

    async def remove_follow(self, request: web.Request) -> web.Response:
        payload = parse_payload(FollowPayload, await request.read())
        await self._personalization.remove_follow(
            request[SESSION_KEY], payload.follow_type, payload.target_id
        )
        return web.json_response({"success": True})

    async def list_goals(self, request: web.Request) -> web.Response:
        goals = await self._personalization.get_user_goals(request[SESSION_KEY])
        return web.json_response([goal.to_json() for goal in goals])

    async def set_goals(self, request: web.Request) -> web.Response:
        payload = parse_payload(GoalsPayload, await request.read())
        goals = await self._personalization.set_user_goals(request[SESSION_KEY], payload.goals or [])
        return web.json_response([goal.to_json() for goal in goals])


async def handle_health(request: web.Request) -> web.Response:
    return web.Response(text="ok")


async def handle_metrics(request: web.Request) -> web.Response:
    return web.Response(text=metrics.render(), content_type="text/plain; version=0.0.4")


def create_app(
    briefing: BriefingService,
    personalization: PersonalizationService,
    settings: HttpSettings | None = None,
) -> web.Application:
    settings = settings or HttpSettings()
    app = web.Application(middlewares=[session_middleware(settings), error_middleware])
    handlers = ApiHandlers(briefing, personalization)

    app.router.add_get("/api/landing", handlers.landing)
    app.router.add_get("/api/topics/{slug}", handlers.topic)
    app.router.add_get("/api/search", handlers.search)
    app.router.add_get("/api/onboarding", handlers.onboarding)
    app.router.add_get("/api/suggestions", handlers.suggestions)
    app.router.add_get("/api/follows", handlers.list_follows)
    app.router.add_post("/api/follows", handlers.add_follow)
    app.router.add_delete("/api/follows", handlers.remove_follow)
    app.router.add_get("/api/goals", handlers.list_goals)
    app.router.add_post("/api/goals", handlers.set_goals)
    app.router.add_get("/health", handle_health)
    app.router.add_get("/metrics", handle_metrics)
    return app
