from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote

from docs_browser.archive.errors import MalformedRequest

_FORBIDDEN_SEGMENTS = {"", ".", ".."}


def validate_segment(name: str, value: str) -> str:
    if value in _FORBIDDEN_SEGMENTS or "/" in value or "\\" in value:
        raise MalformedRequest(f"Invalid {name} segment: {value!r}")
    return value


def remote_group_path(group: str) -> str:
    """Dotted group as a nested URL path, each part percent-encoded."""
    return "/".join(quote(part, safe="") for part in group.split("."))


def remote_metadata_path(group: str, artifact: str, filename: str) -> str:
    return f"{remote_group_path(group)}/{quote(artifact, safe='')}/{filename}"


@dataclass(frozen=True, slots=True)
class Coordinate:
    group: str
    artifact: str
    version: str

    def __post_init__(self) -> None:
        validate_segment("group", self.group)
        validate_segment("artifact", self.artifact)
        validate_segment("version", self.version)

    @property
    def key(self) -> str:
        return f"{self.group}:{self.artifact}:{self.version}"

    @property
    def group_path(self) -> str:
        """The group as a nested remote path (dots become slashes)."""
        return remote_group_path(self.group)

    def archive_name(self, classifier: str, extension: str) -> str:
        return f"{self.artifact}-{self.version}-{classifier}.{extension}"

    def remote_path(self, classifier: str, extension: str) -> str:
        return "/".join(
            [
                self.group_path,
                quote(self.artifact, safe=""),
                quote(self.version, safe=""),
                quote(self.archive_name(classifier, extension), safe=""),
            ]
        )

    def __str__(self) -> str:
        return self.key
