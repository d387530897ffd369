from __future__ import annotations

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from docs_browser.config.models import LoggingSettings

LOG_FORMAT = "[%(asctime)s][%(levelname)s][%(name)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _parse_level(name: str) -> int:
    level = logging.getLevelNamesMapping().get(name.strip().upper())
    if level is None:
        raise ValueError(f"Invalid logging level: {name}")
    return level


def _build_file_handler(settings: LoggingSettings, formatter: logging.Formatter) -> logging.Handler:
    file_path = Path(settings.file.path.strip())
    file_path.parent.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(
        filename=str(file_path),
        when="midnight",
        interval=1,
        backupCount=settings.file.rotation.backup_count,
        encoding="utf-8",
    )
    handler.suffix = "%Y-%m-%d"
    handler.setFormatter(formatter)
    return handler


def init_logging(settings: LoggingSettings) -> None:
    """
    Initialize application logging.

    The root logger gets a stream handler and, when `file.path` is set, a daily rotating
    file handler; existing root handlers are replaced. Entries in `loggers` then pin
    individual loggers (such as `aiohttp.access`, which logs every request) to their own level.
    """
    level = _parse_level(settings.level)
    # Validate every override before touching the current configuration.
    overrides = {name: _parse_level(value) for name, value in settings.loggers.items()}

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    if settings.file.path.strip():
        try:
            root_logger.addHandler(_build_file_handler(settings, formatter))
        except OSError:
            root_logger.error(
                "File logging handler failed to initialize path=%s",
                settings.file.path,
                exc_info=True,
            )

    for name, override in overrides.items():
        logging.getLogger(name).setLevel(override)


__all__ = ["init_logging"]
