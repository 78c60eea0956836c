"""Monitoring setup helpers."""

from __future__ import annotations

from collections.abc import Mapping

import sentry_sdk
from sentry_sdk.integrations.aiohttp import AioHttpIntegration

from news_briefing.logging import get_logger


def configure_sentry(*, dsn: str | None) -> None:
    if not dsn:
        return

    sentry_sdk.init(
        dsn=dsn,
        traces_sample_rate=0.0,
        send_default_pii=False,
        integrations=[AioHttpIntegration()],
    )
    get_logger(__name__).info("sentry_initialized")


def capture_sentry_exception(exc: BaseException, *, context: Mapping[str, object] | None = None) -> None:
    with sentry_sdk.new_scope() as scope:
        if context:
            for key, value in context.items():
                scope.set_extra(str(key), value)
        sentry_sdk.capture_exception(exc)
