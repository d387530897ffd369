from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ServerSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    host: str = "127.0.0.1"
    port: int = 8080


class FileRotationSettings(BaseModel):
    """
    Date-based rotation settings (daily).

    This maps cleanly to Python's standard library TimedRotatingFileHandler behavior.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    backup_count: int


class FileLoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str
    rotation: FileRotationSettings


class LoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    level: str
    file: FileLoggingSettings
    # Per-logger level overrides, e.g. {"aiohttp.access": "WARNING"}
    loggers: Dict[str, str] = Field(default_factory=dict)


class RepositorySettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    # Consulted in order, for metadata and archives alike
    mirrors: Tuple[str, ...] = Field(min_length=1)
    fetch_timeout_seconds: float = 60.0

    classifier: str = "javadoc"
    extension: str = "jar"

    release_token: str = "release"
    unresolved_version: str = "LATEST"

    @field_validator("mirrors", mode="before")
    @classmethod
    def _split_mirrors(cls, value: Any) -> Any:
        # Environment overrides arrive as a single comma separated string.
        if isinstance(value, str):
            value = value.split(",")
        if isinstance(value, (list, tuple)):
            return tuple(str(part).strip().rstrip("/") for part in value if str(part).strip())
        return value


class CacheSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    root: str


class MemoSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    ttl_seconds: float = Field(default=1800.0, gt=0)
    max_entries: int = Field(default=1000, gt=0)


class ServingSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    default_entry: str = "index.html"
    max_age_seconds: int = 7 * 24 * 60 * 60
    chunk_size: int = Field(default=64 * 1024, gt=0)
    not_found_message: str = "Ooops! Javadocs not found!?"


class AppConfig(BaseModel):
    """Effective runtime configuration after applying all precedence rules."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    server: ServerSettings = ServerSettings()
    logging: LoggingSettings
    repository: RepositorySettings
    cache: CacheSettings
    memo: MemoSettings = MemoSettings()
    serving: ServingSettings = ServingSettings()


@dataclass(frozen=True, slots=True)
class ConfigLoadRequest:
    """
    Optional inputs for a configuration loader.

    Implementations may use these to control where configuration is read from.
    """

    yaml_path: str = "data/config/config.yaml"
    env_prefix: str = "DOCS__"
    dotenv_path: Optional[str] = "data/.env"
