from __future__ import annotations

import html
from typing import Iterable
from urllib.parse import quote


def format_listing_page(caption: str, names: Iterable[str]) -> str:
    """
    Minimal HTML index: a title, a heading and one relative link per child directory.
    """
    title = html.escape(caption)
    lines = [f"<html><head><title>{title}</title></head><body><h1>{title}</h1>"]
    for name in names:
        href = html.escape(quote(name), quote=True)
        lines.append(f"<a href='{href}/'>{html.escape(name)}</a><br>")
    lines.append("</body></html>")
    return "\n".join(lines) + "\n"
