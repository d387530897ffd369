"""Fetch, cache and read documentation archives."""

from docs_browser.archive.cache_store import LocalCacheStore
from docs_browser.archive.errors import DocsBrowserError, MalformedRequest, NotFound, TransportFailure
from docs_browser.archive.fetcher import ArchiveFetcher
from docs_browser.archive.mirrors import MirrorClient
from docs_browser.archive.models import Coordinate
from docs_browser.archive.reader import ArchiveContentReader, ArchiveEntryStream, ContentSniffer
from docs_browser.archive.resolver import VersionMemo, VersionResolver
from docs_browser.archive.service import DocArchiveService

__all__ = [
    "ArchiveContentReader",
    "ArchiveEntryStream",
    "ArchiveFetcher",
    "ContentSniffer",
    "Coordinate",
    "DocArchiveService",
    "DocsBrowserError",
    "LocalCacheStore",
    "MalformedRequest",
    "MirrorClient",
    "NotFound",
    "TransportFailure",
    "VersionMemo",
    "VersionResolver",
]
