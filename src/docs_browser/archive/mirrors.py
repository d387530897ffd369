from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Callable, Generic, Optional, Sequence, TypeVar

import aiohttp

from docs_browser.archive.cache_io import atomic_write_chunks
from docs_browser.archive.errors import TransportFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _Stop:
    def __repr__(self) -> str:
        return "STOP"


STOP = _Stop()
"""Returned by a mirror attempt that reached a repository but found nothing; ends the search."""


@dataclass(slots=True)
class AttemptOutcome(Generic[T]):
    value: Optional[T] = None
    mirror: Optional[str] = None
    failures: list[TransportFailure] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.value is not None


async def try_mirrors(
    mirrors: Sequence[str],
    attempt: Callable[[str], Awaitable[T | _Stop]],
) -> AttemptOutcome[T]:
    """
    Run `attempt` against each mirror in order until one answers.

    A value ends the search successfully. `STOP` ends it without a value. A
    `TransportFailure` is recorded and the next mirror is tried. Any other
    exception propagates.
    """
    outcome: AttemptOutcome[T] = AttemptOutcome()
    for mirror in mirrors:
        try:
            result = await attempt(mirror)
        except TransportFailure as e:
            logger.debug("mirror.attempt_failed mirror=%s reason=%s url=%s", mirror, e.reason, e.url)
            outcome.failures.append(e)
            continue
        outcome.mirror = mirror
        if result is not STOP:
            outcome.value = result  # type: ignore[assignment]
        return outcome
    return outcome


class MirrorClient:
    """HTTP access to mirror repositories. Every failure surfaces as `TransportFailure`."""

    def __init__(self, *, timeout_seconds: float):
        self._timeout_seconds = timeout_seconds
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> MirrorClient:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()

    async def start(self) -> None:
        if self._session is not None and not self._session.closed:
            return
        timeout = aiohttp.ClientTimeout(total=self._timeout_seconds)
        self._session = aiohttp.ClientSession(timeout=timeout)

    async def stop(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            await self.start()
        assert self._session is not None
        return self._session

    @staticmethod
    def _check_status(url: str, response: aiohttp.ClientResponse) -> None:
        if not 200 <= response.status < 300:
            raise TransportFailure(url, f"status={response.status}")

    async def fetch_text(self, url: str) -> str:
        session = await self._get_session()
        logger.debug("mirror.fetch_text url=%s", url)
        try:
            async with session.get(url) as response:
                self._check_status(url, response)
                return await response.text()
        except asyncio.TimeoutError as e:
            raise TransportFailure(url, "timeout") from e
        except aiohttp.ClientError as e:
            raise TransportFailure(url, f"error={e}") from e
        except UnicodeDecodeError as e:
            raise TransportFailure(url, "undecodable body") from e

    async def download(self, url: str, target: Path, *, chunk_size: int) -> int:
        """Stream `url` into `target` atomically. Returns the number of bytes written."""
        session = await self._get_session()
        logger.debug("mirror.download_start url=%s target=%s", url, target)
        try:
            async with session.get(url) as response:
                self._check_status(url, response)
                size = await atomic_write_chunks(target, response.content.iter_chunked(chunk_size))
        except asyncio.TimeoutError as e:
            raise TransportFailure(url, "timeout") from e
        except aiohttp.ClientError as e:
            raise TransportFailure(url, f"error={e}") from e
        except OSError as e:
            raise TransportFailure(url, f"io_error={e}") from e
        logger.info("mirror.download_success url=%s size=%d", url, size)
        return size
