from __future__ import annotations

import asyncio
import uuid
from pathlib import Path
from typing import AsyncIterable


def temporary_sibling(path: Path) -> Path:
    """Hidden, unique temp path in the target's directory so a rename stays on one filesystem."""
    return path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")


async def atomic_write_chunks(path: Path, chunks: AsyncIterable[bytes]) -> int:
    """
    Write an async byte stream to `path`, publishing it only once the stream is exhausted.

    On any failure the temp file is removed and the error is re-raised; `path` is never
    left holding a truncated file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = temporary_sibling(path)
    written = 0
    try:
        with tmp_path.open("wb") as handle:
            async for chunk in chunks:
                await asyncio.to_thread(handle.write, chunk)
                written += len(chunk)
        tmp_path.replace(path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    return written
