from __future__ import annotations

import logging
import mimetypes
import zipfile
import zlib
from pathlib import Path
from typing import IO, Iterator, Optional, Protocol

from docs_browser.archive.errors import NotFound

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"
SNIFF_BYTES = 8192

_KNOWN_CONTENT_TYPES = {
    "js": "application/javascript",
    "xml": "application/xml",
    "json": "application/json",
    "txt": "text/plain",
    "html": "text/html",
    "css": "text/css",
}


class ContentSniffer(Protocol):
    def sniff(self, entry_path: str, head: bytes) -> Optional[str]:
        """Guess a content type from the entry name and its first bytes, or return None."""
        ...


def _is_probably_text(head: bytes) -> bool:
    if not head or b"\x00" in head:
        return False
    try:
        head.decode("utf-8")
    except UnicodeDecodeError as e:
        # A multi-byte sequence cut at the sample boundary is still text.
        return e.start >= len(head) - 3 and e.reason == "unexpected end of data"
    return True


class MimetypesSniffer:
    """Name lookup in the `mimetypes` table, then a plain-text check on the leading bytes."""

    def sniff(self, entry_path: str, head: bytes) -> Optional[str]:
        guessed, _ = mimetypes.guess_type(entry_path, strict=False)
        if guessed:
            return guessed
        if _is_probably_text(head):
            return "text/plain"
        return None


def known_content_type(entry_path: str) -> Optional[str]:
    """
    Content type decided by the entry name alone.

    Entries without an extension are binary. Returns None when the extension is
    not in the fixed table and the bytes have to be consulted.
    """
    idx = entry_path.rfind(".")
    if idx == -1:
        return DEFAULT_CONTENT_TYPE
    return _KNOWN_CONTENT_TYPES.get(entry_path[idx + 1 :].lower())


def guess_content_type(entry_path: str, head: bytes = b"", sniffer: Optional[ContentSniffer] = None) -> str:
    content_type = known_content_type(entry_path)
    if content_type is not None:
        return content_type
    sniffer = sniffer or MimetypesSniffer()
    return sniffer.sniff(entry_path, head) or DEFAULT_CONTENT_TYPE


class ArchiveEntryStream:
    """Read-only handle on one archive member. Closing it also closes the archive."""

    def __init__(
        self,
        *,
        entry_path: str,
        archive: zipfile.ZipFile,
        member: IO[bytes],
        content_length: int,
        content_type: str,
        head: bytes = b"",
    ) -> None:
        self.entry_path = entry_path
        self.content_length = content_length
        self.content_type = content_type
        self._archive = archive
        self._member = member
        self._head = head
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def read(self, size: int) -> bytes:
        if self._head:
            chunk, self._head = self._head[:size], self._head[size:]
            return chunk
        return self._member.read(size)

    def iter_chunks(self, chunk_size: int) -> Iterator[bytes]:
        while True:
            chunk = self.read(chunk_size)
            if not chunk:
                return
            yield chunk

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._member.close()
        finally:
            self._archive.close()

    def __enter__(self) -> ArchiveEntryStream:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class ArchiveContentReader:
    def __init__(self, *, default_entry: str = "index.html", sniffer: Optional[ContentSniffer] = None):
        self._default_entry = default_entry
        self._sniffer: ContentSniffer = sniffer or MimetypesSniffer()

    def resolve_entry_path(self, entry_path: str) -> str:
        if not entry_path:
            return self._default_entry
        if entry_path.endswith("/"):
            return entry_path + self._default_entry
        return entry_path

    def open_entry(self, cache_file: Path, entry_path: str) -> ArchiveEntryStream:
        """
        Open `entry_path` inside the archive at `cache_file` without extracting it.

        Raises NotFound when the archive is unreadable or has no such entry.
        """
        entry_path = self.resolve_entry_path(entry_path)
        try:
            archive = zipfile.ZipFile(cache_file)
        except (OSError, zipfile.BadZipFile) as e:
            logger.warning("archive.unreadable path=%s error=%s", cache_file, e)
            raise NotFound(f"Unreadable archive: {cache_file}") from e

        try:
            info = archive.getinfo(entry_path)
            member = archive.open(info)
        except KeyError as e:
            archive.close()
            raise NotFound(f"No entry {entry_path!r} in {cache_file.name}") from e
        except (OSError, zipfile.BadZipFile, zlib.error, NotImplementedError, RuntimeError) as e:
            archive.close()
            logger.warning("archive.entry_unreadable path=%s entry=%s error=%s", cache_file, entry_path, e)
            raise NotFound(f"Unreadable entry {entry_path!r} in {cache_file.name}") from e

        try:
            head = b""
            content_type = known_content_type(entry_path)
            if content_type is None:
                head = member.read(SNIFF_BYTES)
                content_type = self._sniffer.sniff(entry_path, head) or DEFAULT_CONTENT_TYPE
        except (OSError, zipfile.BadZipFile, zlib.error) as e:
            member.close()
            archive.close()
            raise NotFound(f"Unreadable entry {entry_path!r} in {cache_file.name}") from e

        return ArchiveEntryStream(
            entry_path=entry_path,
            archive=archive,
            member=member,
            content_length=info.file_size,
            content_type=content_type,
            head=head,
        )
