from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from docs_browser.archive.cache_store import LocalCacheStore
from docs_browser.archive.fetcher import ArchiveFetcher
from docs_browser.archive.mirrors import MirrorClient
from docs_browser.archive.models import Coordinate, validate_segment
from docs_browser.archive.reader import ArchiveContentReader, ArchiveEntryStream, ContentSniffer
from docs_browser.archive.resolver import VersionMemo, VersionResolver
from docs_browser.config.models import AppConfig

logger = logging.getLogger(__name__)


class DocArchiveService:
    """Resolve, fetch and read documentation archives addressed by coordinate."""

    def __init__(
        self,
        *,
        store: LocalCacheStore,
        client: MirrorClient,
        resolver: VersionResolver,
        fetcher: ArchiveFetcher,
        reader: ArchiveContentReader,
        release_token: str = "release",
    ) -> None:
        self.store = store
        self.client = client
        self.resolver = resolver
        self.fetcher = fetcher
        self.reader = reader
        self.release_token = release_token

    @classmethod
    def from_config(cls, config: AppConfig, *, sniffer: Optional[ContentSniffer] = None) -> DocArchiveService:
        repository = config.repository
        store = LocalCacheStore(
            config.cache.root,
            classifier=repository.classifier,
            extension=repository.extension,
        )
        client = MirrorClient(timeout_seconds=repository.fetch_timeout_seconds)
        memo = VersionMemo(ttl_seconds=config.memo.ttl_seconds, max_entries=config.memo.max_entries)
        return cls(
            store=store,
            client=client,
            resolver=VersionResolver(
                client=client,
                mirrors=repository.mirrors,
                memo=memo,
                unresolved_version=repository.unresolved_version,
            ),
            fetcher=ArchiveFetcher(
                store=store,
                client=client,
                mirrors=repository.mirrors,
                chunk_size=config.serving.chunk_size,
            ),
            reader=ArchiveContentReader(default_entry=config.serving.default_entry, sniffer=sniffer),
            release_token=repository.release_token,
        )

    async def __aenter__(self) -> DocArchiveService:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()

    async def start(self) -> None:
        self.store.ensure_root()
        await self.client.start()
        logger.info("Archive service started. cache_root=%s", self.store.root)

    async def stop(self) -> None:
        await self.client.stop()

    async def resolve_coordinate(self, group: str, artifact: str, version: str) -> Coordinate:
        validate_segment("group", group)
        validate_segment("artifact", artifact)
        if version == self.release_token:
            version = await self.resolver.resolve(group, artifact)
        return Coordinate(group=group, artifact=artifact, version=version)

    async def locate(self, group: str, artifact: str, version: str) -> Path:
        """Local archive path for the coordinate, downloading it first when missing."""
        coordinate = await self.resolve_coordinate(group, artifact, version)
        return await self.fetcher.ensure_cached(coordinate)

    async def open_entry(self, group: str, artifact: str, version: str, entry_path: str) -> ArchiveEntryStream:
        cache_file = await self.locate(group, artifact, version)
        return await asyncio.to_thread(self.reader.open_entry, cache_file, entry_path)
