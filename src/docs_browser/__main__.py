from __future__ import annotations

import argparse
import asyncio
import logging

from docs_browser.adapters.http import HttpServerAdapter
from docs_browser.archive import DocArchiveService, NotFound
from docs_browser.config import YamlConfigLoader
from docs_browser.config.models import ConfigLoadRequest
from docs_browser.logging import init_logging

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="docs-browser", description="Documentation archive browser")
    parser.add_argument(
        "--config",
        default="data/config/config.yaml",
        help="Path to config.yaml (default: data/config/config.yaml)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True, help="Command to run")

    # Command: serve
    serve_parser = subparsers.add_parser("serve", help="Start the HTTP server")
    serve_parser.add_argument("--host", default=None, help="Override server.host")
    serve_parser.add_argument("--port", type=int, default=None, help="Override server.port")
    serve_parser.add_argument(
        "--run-seconds",
        type=float,
        default=None,
        help="Serve for N seconds then exit (useful for smoke testing).",
    )

    # Command: fetch
    fetch_parser = subparsers.add_parser("fetch", help="Download an archive into the local cache")
    fetch_parser.add_argument("group")
    fetch_parser.add_argument("artifact")
    fetch_parser.add_argument("version", nargs="?", default=None, help="Version (default: the release token)")

    return parser


async def _load_config(args: argparse.Namespace):
    loader = YamlConfigLoader()
    request = ConfigLoadRequest(
        yaml_path=args.config,
    )
    return await loader.load(request)


async def _serve(args: argparse.Namespace) -> int:
    config = await _load_config(args)
    init_logging(config.logging)
    logger.info("Starting documentation server. mirrors=%s", ",".join(config.repository.mirrors))

    adapter = HttpServerAdapter(config=config)
    try:
        if args.run_seconds is not None:
            await adapter.run_for(seconds=args.run_seconds, host=args.host, port=args.port)
        else:
            await adapter.start(host=args.host, port=args.port)
    finally:
        await adapter.stop()
    return 0


async def _fetch(args: argparse.Namespace) -> int:
    config = await _load_config(args)
    init_logging(config.logging)
    version = args.version or config.repository.release_token

    async with DocArchiveService.from_config(config) as service:
        try:
            path = await service.locate(args.group, args.artifact, version)
        except NotFound as e:
            logger.error(
                "Archive not found. group=%s artifact=%s version=%s reason=%s",
                args.group,
                args.artifact,
                version,
                e,
            )
            return 1
    print(path)
    return 0


async def _main_async() -> int:
    parser = _build_parser()
    args = parser.parse_args()

    if args.command == "serve":
        return await _serve(args)
    if args.command == "fetch":
        return await _fetch(args)
    return 2


def main() -> None:
    try:
        raise SystemExit(asyncio.run(_main_async()))
    except KeyboardInterrupt:
        logger.info("Interrupted by user.")


if __name__ == "__main__":
    main()
