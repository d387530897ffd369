from __future__ import annotations

import asyncio
import logging
from typing import Optional

from aiohttp import web

from docs_browser.adapters.http.router import CoordinateRouter
from docs_browser.archive.service import DocArchiveService
from docs_browser.config.models import AppConfig

logger = logging.getLogger(__name__)

SERVICE_KEY = web.AppKey("service", DocArchiveService)


def build_app(config: AppConfig, service: Optional[DocArchiveService] = None) -> web.Application:
    service = service or DocArchiveService.from_config(config)
    router = CoordinateRouter(service=service, settings=config.serving)

    app = web.Application()
    app[SERVICE_KEY] = service
    app.add_routes(router.routes())
    app.on_startup.append(_start_service)
    app.on_cleanup.append(_stop_service)
    return app


async def _start_service(app: web.Application) -> None:
    await app[SERVICE_KEY].start()


async def _stop_service(app: web.Application) -> None:
    await app[SERVICE_KEY].stop()


class HttpServerAdapter:
    def __init__(self, *, config: AppConfig, service: Optional[DocArchiveService] = None) -> None:
        self._config = config
        self._app = build_app(config, service)
        self._runner: Optional[web.AppRunner] = None

    @property
    def app(self) -> web.Application:
        return self._app

    async def _start_site(self, host: str, port: int) -> None:
        self._runner = web.AppRunner(self._app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, host=host, port=port)
        await site.start()
        logger.info("HTTP server listening. host=%s port=%s", host, port)

    async def start(self, *, host: Optional[str] = None, port: Optional[int] = None) -> None:
        """Serve until cancelled."""
        await self._start_site(host or self._config.server.host, port or self._config.server.port)
        await asyncio.Event().wait()

    async def run_for(self, *, seconds: float, host: Optional[str] = None, port: Optional[int] = None) -> None:
        logger.info("Starting HTTP server for a limited run. run_for_seconds=%s", seconds)
        await self._start_site(host or self._config.server.host, port or self._config.server.port)
        await asyncio.sleep(seconds)

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
