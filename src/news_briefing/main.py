from __future__ import annotations

import asyncio
import sys

from pydantic import ValidationError

from news_briefing.config import Settings
from news_briefing.db.session import create_engine, create_session_factory
from news_briefing.logging import configure_logging, get_logger
from news_briefing.monitoring import configure_sentry
from news_briefing.services.briefing import BriefingService
from news_briefing.services.personalization import PersonalizationService
from news_briefing.web.app import create_app
from news_briefing.web.server import ApiServer


async def _run() -> int:
    try:
        settings = Settings()
    except ValidationError as exc:
        print("Invalid configuration:", file=sys.stderr)
        print(exc, file=sys.stderr)
        return 2

    configure_logging(settings.log_level, json_logs=settings.log_json)
    configure_sentry(dsn=settings.sentry_dsn)
    log = get_logger(__name__)
    log.info("boot", settings=settings.public_dict())

    engine = create_engine(settings.database_url)
    session_factory = create_session_factory(engine)

    app = create_app(
        BriefingService(session_factory, feed=settings.feed),
        PersonalizationService(session_factory),
        settings.http,
    )
    server = ApiServer(app, settings.http)
    await server.start()
    try:
        await asyncio.Event().wait()
    finally:
        await server.stop()
        await engine.dispose()

    return 0


def main() -> int:
    try:
        return asyncio.run(_run())
    except KeyboardInterrupt:
        return 0
