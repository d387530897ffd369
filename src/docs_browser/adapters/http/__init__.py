"""HTTP adapter: path routing, listing pages and entry streaming."""

from docs_browser.adapters.http.router import CoordinateRouter
from docs_browser.adapters.http.server import HttpServerAdapter, build_app

__all__ = ["CoordinateRouter", "HttpServerAdapter", "build_app"]
