from __future__ import annotations

import asyncio
import io
import random
import struct
import zipfile
from pathlib import Path
from typing import Dict, Optional, Sequence

from aiohttp import web
from aiohttp.test_utils import TestClient, TestServer

from docs_browser.config.models import AppConfig

# Nothing listens on the discard port, so connections are refused right away.
UNREACHABLE_MIRROR = "http://127.0.0.1:9"


def make_archive(files: Dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, data in files.items():
            archive.writestr(name, data)
    return buffer.getvalue()


def make_text(size: int, seed: int = 7) -> bytes:
    """Deterministic prose-like bytes that deflate only moderately."""
    rng = random.Random(seed)
    words = ["archive", "mirror", "javadoc", "version", "entry", "cache", "class", "method", "field", "package"]
    out = bytearray()
    while len(out) < size:
        out += rng.choice(words).encode("ascii") + str(rng.randrange(10_000)).encode("ascii") + b" "
    return bytes(out[:size])


def corrupt_member(archive: bytes, name: str) -> bytes:
    """Flip bytes three quarters into the compressed data of `name`."""
    with zipfile.ZipFile(io.BytesIO(archive)) as source:
        info = source.getinfo(name)
    data = bytearray(archive)
    name_len, extra_len = struct.unpack("<HH", data[info.header_offset + 26 : info.header_offset + 30])
    start = info.header_offset + 30 + name_len + extra_len
    middle = start + (info.compress_size * 3) // 4
    for i in range(middle, min(middle + 256, start + info.compress_size)):
        data[i] ^= 0xFF
    return bytes(data)


def metadata_xml(release: Optional[str]) -> bytes:
    release_line = f"    <release>{release}</release>\n" if release is not None else ""
    return (
        "<?xml version=\"1.0\" encoding=\"UTF-8\"?>\n"
        "<metadata>\n"
        "  <versioning>\n"
        "    <latest>9.9-SNAPSHOT</latest>\n"
        f"{release_line}"
        "  </versioning>\n"
        "</metadata>\n"
    ).encode("utf-8")


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeMirror:
    """A repository on localhost serving `files` by path; anything else is a 404."""

    def __init__(self, files: Optional[Dict[str, bytes]] = None, *, delay_seconds: float = 0.0) -> None:
        self.files: Dict[str, bytes] = dict(files or {})
        self.requests: list[str] = []
        self.delay_seconds = delay_seconds
        self._server: Optional[TestServer] = None

    @property
    def url(self) -> str:
        assert self._server is not None
        return f"http://{self._server.host}:{self._server.port}"

    async def start(self) -> FakeMirror:
        app = web.Application()
        app.router.add_get("/{tail:.*}", self._handle)
        self._server = TestServer(app)
        await self._server.start_server()
        return self

    async def close(self) -> None:
        if self._server is not None:
            await self._server.close()
            self._server = None

    async def _handle(self, request: web.Request) -> web.Response:
        self.requests.append(request.path)
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        body = self.files.get(request.path.lstrip("/"))
        if body is None:
            return web.Response(status=404, text="Not Found")
        return web.Response(body=body)


async def start_client(app: web.Application) -> TestClient:
    client = TestClient(TestServer(app))
    await client.start_server()
    return client


def make_config(
    cache_root: Path,
    mirrors: Sequence[str],
    serving: Optional[Dict[str, object]] = None,
    **repository: object,
) -> AppConfig:
    return AppConfig.model_validate(
        {
            "logging": {"level": "DEBUG", "file": {"path": "", "rotation": {"backup_count": 1}}},
            "repository": {"mirrors": list(mirrors), "fetch_timeout_seconds": 5, **repository},
            "cache": {"root": str(cache_root)},
            "serving": dict(serving or {}),
        }
    )
