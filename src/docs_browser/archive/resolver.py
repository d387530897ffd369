from __future__ import annotations

import logging
import re
import threading
import time
from typing import Callable, Optional, Sequence

from cachetools import TTLCache

from docs_browser.archive.mirrors import STOP, MirrorClient, try_mirrors
from docs_browser.archive.models import remote_metadata_path

logger = logging.getLogger(__name__)

_RELEASE_PATTERN = re.compile(r"<release.*?>(.*?)</release>")

METADATA_FILENAME = "maven-metadata.xml"


class VersionMemo:
    """
    Resolved versions keyed by `group:artifact`.

    Entries expire `ttl_seconds` after they were written; beyond `max_entries`
    the least recently used entry is evicted.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float,
        max_entries: int,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._cache: TTLCache[str, str] = TTLCache(maxsize=max_entries, ttl=ttl_seconds, timer=timer)
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._cache.get(key)

    def put(self, key: str, version: str) -> None:
        with self._lock:
            self._cache[key] = version

    def __len__(self) -> int:
        with self._lock:
            self._cache.expire()
            return len(self._cache)


def extract_release(metadata: str) -> Optional[str]:
    match = _RELEASE_PATTERN.search(metadata)
    if match is None:
        return None
    value = match.group(1).strip()
    return value or None


class VersionResolver:
    def __init__(
        self,
        *,
        client: MirrorClient,
        mirrors: Sequence[str],
        memo: VersionMemo,
        unresolved_version: str = "LATEST",
    ) -> None:
        self._client = client
        self._mirrors = tuple(mirrors)
        self._memo = memo
        self._unresolved_version = unresolved_version

    async def resolve(self, group: str, artifact: str) -> str:
        """
        Resolve the release version of `group:artifact`.

        Never raises for remote failures. When no repository names a release the
        unresolved placeholder is returned and left to fail the later fetch.
        """
        key = f"{group}:{artifact}"
        cached = self._memo.get(key)
        if cached is not None:
            logger.debug("version.memo_hit key=%s version=%s", key, cached)
            return cached

        metadata_path = remote_metadata_path(group, artifact, METADATA_FILENAME)

        async def attempt(mirror: str):
            metadata = await self._client.fetch_text(f"{mirror}/{metadata_path}")
            release = extract_release(metadata)
            if release is None:
                # A reachable repository without a release is authoritative.
                return STOP
            return release

        outcome = await try_mirrors(self._mirrors, attempt)
        if not outcome.found:
            logger.info(
                "version.unresolved key=%s answered_by=%s failed_mirrors=%d",
                key,
                outcome.mirror,
                len(outcome.failures),
            )
            return self._unresolved_version

        logger.info("version.resolved key=%s version=%s mirror=%s", key, outcome.value, outcome.mirror)
        self._memo.put(key, outcome.value)
        return outcome.value
