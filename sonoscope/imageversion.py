"""Conformance image versions: fixed, "latest", or detected from the server."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)

AUTO = "auto"
LATEST = "latest"

_VERSION_PATTERN = re.compile(
    r"v?([0-9]+(\.[0-9]+)*?)"
    r"(-([0-9]+[0-9A-Za-z\-~]*(\.[0-9A-Za-z\-~]+)*)"
    r"|(-?([A-Za-z\-~]+[0-9A-Za-z\-~]*(\.[0-9A-Za-z\-~]+)*)))?"
    r"(\+([0-9A-Za-z\-~]+(\.[0-9A-Za-z\-~]+)*))??"
)


class ImageVersionNoClientError(ValueError):
    """Raised when an "auto" version is resolved without a client."""

    def __init__(self):
        super().__init__('can\'t use a missing client with "auto" image version')


@dataclass(frozen=True)
class Version:
    """A parsed version: numeric segments, prerelease and build metadata."""

    segments: tuple[int, ...]
    prerelease: str = ""
    metadata: str = ""

    @classmethod
    def parse(cls, text):
        """Parse a version string, raising ValueError when it is malformed."""
        match = _VERSION_PATTERN.fullmatch(text)
        if match is None:
            raise ValueError(f"Malformed version: {text}")
        segments = [int(part) for part in match.group(1).split(".")]
        segments.extend([0] * (3 - len(segments)))
        return cls(
            segments=tuple(segments),
            prerelease=match.group(7) or match.group(4) or "",
            metadata=match.group(10) or "",
        )

    def __str__(self):
        text = ".".join(str(s) for s in self.segments)
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.metadata:
            text += f"+{self.metadata}"
        return text


def validate_version(text):
    """Parse a version and require a leading "v" on stable versions."""
    try:
        version = Version.parse(text)
    except ValueError as exc:
        raise ValueError(f'version "{text}" is invalid: {exc}') from exc
    if version.metadata or version.prerelease:
        logger.warning(
            "Version %s is not a stable version, conformance image may not exist upstream",
            text,
        )
    elif not text.startswith("v"):
        raise ValueError(f'version "{text}" is invalid: version must start with v')
    return version


@dataclass(frozen=True)
class ConformanceImageVersion:
    """A conformance image version, or "auto"/"latest"."""

    value: str = ""

    @classmethod
    def parse(cls, text):
        """Accept "auto", "latest" or a valid version, normalised with a "v" prefix."""
        if text in (AUTO, LATEST):
            return cls(text)
        return cls(f"v{validate_version(text)}")

    def get(self, client):
        """Return the version, asking client for the server version when "auto"."""
        if self.value != AUTO:
            return self.value
        if client is None:
            raise ImageVersionNoClientError()
        try:
            info = client.server_version()
        except Exception as exc:
            raise RuntimeError(f"couldn't retrieve server version: {exc}") from exc

        git_version = info.git_version
        segments = validate_version(git_version).segments
        if len(segments) < 2:
            raise ValueError(
                f'version "{git_version}" only has {len(segments)} segments, need at least 2'
            )
        major, minor = segments[0], segments[1]
        if major == 1 and minor < 14:
            return f"v{major}.{minor}"
        patch = segments[2] if len(segments) >= 3 else 0
        return f"v{major}.{minor}.{patch}"

    def __str__(self):
        return self.value