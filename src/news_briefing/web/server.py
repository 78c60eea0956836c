"""Listener lifecycle for the API application."""

from __future__ import annotations

from aiohttp import web

from news_briefing.config import HttpSettings
from news_briefing.logging import get_logger


class ApiServer:
    def __init__(self, app: web.Application, settings: HttpSettings) -> None:
        self._app = app
        self._settings = settings
        self._runner: web.AppRunner | None = None
        self._log = get_logger(__name__)

    async def start(self) -> None:
        if self._runner is not None:
            return
        runner = web.AppRunner(self._app)
        await runner.setup()
        site = web.TCPSite(runner, host=self._settings.host, port=self._settings.port)
        await site.start()
        self._runner = runner
        self._log.info("api_server_started", host=self._settings.host, port=self._settings.port)

    async def stop(self) -> None:
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._log.info("api_server_stopped")
