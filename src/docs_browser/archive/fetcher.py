from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Dict, Sequence, Tuple

from docs_browser.archive.cache_store import LocalCacheStore
from docs_browser.archive.errors import NotFound
from docs_browser.archive.mirrors import MirrorClient, try_mirrors
from docs_browser.archive.models import Coordinate

logger = logging.getLogger(__name__)


class ArchiveFetcher:
    """
    Makes sure a coordinate's archive is present in the local cache.

    A cached file is trusted forever. Concurrent misses for the same coordinate
    share one download; the file only appears once it is complete.
    """

    def __init__(
        self,
        *,
        store: LocalCacheStore,
        client: MirrorClient,
        mirrors: Sequence[str],
        chunk_size: int = 64 * 1024,
    ) -> None:
        self._store = store
        self._client = client
        self._mirrors = tuple(mirrors)
        self._chunk_size = chunk_size
        # coordinate key -> (lock, number of tasks holding or waiting on it)
        self._inflight: Dict[str, Tuple[asyncio.Lock, int]] = {}

    async def ensure_cached(self, coordinate: Coordinate) -> Path:
        target = self._store.archive_path(coordinate)
        if target.exists():
            logger.debug("archive.cache_hit coordinate=%s", coordinate)
            return target

        lock = self._acquire_slot(coordinate.key)
        try:
            async with lock:
                if target.exists():
                    logger.debug("archive.cache_filled_concurrently coordinate=%s", coordinate)
                    return target
                await self._download(coordinate, target)
        finally:
            self._release_slot(coordinate.key)

        if not target.exists():
            raise NotFound(f"No mirror provides the archive for {coordinate}")
        return target

    async def _download(self, coordinate: Coordinate, target: Path) -> None:
        remote_path = self._store.remote_path(coordinate)

        async def attempt(mirror: str) -> str:
            url = f"{mirror}/{remote_path}"
            await self._client.download(url, target, chunk_size=self._chunk_size)
            return url

        logger.info("archive.cache_miss coordinate=%s mirrors=%d", coordinate, len(self._mirrors))
        outcome = await try_mirrors(self._mirrors, attempt)
        if outcome.found:
            logger.info("archive.cached coordinate=%s url=%s path=%s", coordinate, outcome.value, target)
        else:
            logger.info(
                "archive.not_found coordinate=%s failures=%s",
                coordinate,
                "; ".join(str(failure) for failure in outcome.failures),
            )

    def _acquire_slot(self, key: str) -> asyncio.Lock:
        lock, users = self._inflight.get(key, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._inflight[key] = (lock, users + 1)
        return lock

    def _release_slot(self, key: str) -> None:
        lock, users = self._inflight[key]
        if users <= 1:
            del self._inflight[key]
        else:
            self._inflight[key] = (lock, users - 1)
