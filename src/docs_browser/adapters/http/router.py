from __future__ import annotations

import asyncio
import logging
import zipfile
import zlib
from typing import Callable

from aiohttp import web

from docs_browser.adapters.http.pages import format_listing_page
from docs_browser.archive.errors import MalformedRequest, NotFound
from docs_browser.archive.reader import ArchiveEntryStream
from docs_browser.archive.service import DocArchiveService
from docs_browser.config.models import ServingSettings

logger = logging.getLogger(__name__)


class CoordinateRouter:
    """
    Maps `/<group>/<artifact>/<version>/<path...>` onto the archive service.

    Missing trailing segments list the next level of the local cache. Every
    failure is answered with the same 404 page.
    """

    def __init__(self, *, service: DocArchiveService, settings: ServingSettings) -> None:
        self._service = service
        self._settings = settings

    def routes(self) -> list[web.RouteDef]:
        return [web.get("/{tail:.*}", self.handle)]

    async def handle(self, request: web.Request) -> web.StreamResponse:
        try:
            return await self._dispatch(request)
        except web.HTTPException:
            raise
        except MalformedRequest as e:
            logger.info("request.malformed path=%s reason=%s", request.path, e)
        except NotFound as e:
            logger.info("request.not_found path=%s reason=%s", request.path, e)
        except Exception:
            logger.exception("Unexpected error while serving request. path=%s", request.path)
        return self._not_found_response()

    async def _dispatch(self, request: web.Request) -> web.StreamResponse:
        parts = request.match_info["tail"].split("/", 3)

        # A bare coordinate segment gets a trailing slash so relative links resolve.
        if len(parts) < 4 and parts[-1]:
            raise web.HTTPFound(request.rel_url.raw_path + "/")

        group = parts[0]
        if not group:
            return self._listing("Groups", self._service.store.list_groups)
        artifact = parts[1]
        if not artifact:
            return self._listing(f"Artifacts for {group}", lambda: self._service.store.list_artifacts(group))
        version = parts[2]
        if not version:
            return self._listing(
                f"Versions for {artifact}",
                lambda: self._service.store.list_versions(group, artifact),
            )

        stream = await self._service.open_entry(group, artifact, version, parts[3])
        return await self._stream_entry(request, stream)

    def _listing(self, caption: str, list_children: Callable[[], list[str]]) -> web.Response:
        names = list_children()
        return web.Response(text=format_listing_page(caption, names), content_type="text/html")

    async def _stream_entry(self, request: web.Request, stream: ArchiveEntryStream) -> web.StreamResponse:
        try:
            response = web.StreamResponse(
                status=200,
                headers={"Cache-Control": f"max-age={self._settings.max_age_seconds}"},
            )
            response.content_type = stream.content_type
            response.content_length = stream.content_length
            await response.prepare(request)
            if request.method == "HEAD":
                return response
            try:
                while True:
                    # Decompression runs off the event loop.
                    chunk = await asyncio.to_thread(stream.read, self._settings.chunk_size)
                    if not chunk:
                        break
                    await response.write(chunk)
                await response.write_eof()
            except (OSError, zipfile.BadZipFile, zlib.error) as e:
                logger.warning(
                    "request.stream_aborted path=%s entry=%s error=%s",
                    request.path,
                    stream.entry_path,
                    e,
                )
                # Headers promised Content-Length bytes; closing tells the client the body is cut short.
                if request.transport is not None:
                    request.transport.close()
            return response
        finally:
            stream.close()

    def _not_found_response(self) -> web.Response:
        return web.Response(status=404, text=self._settings.not_found_message + "\n")
