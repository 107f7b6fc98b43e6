from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from slseed.core.context import DeployTarget

__all__ = [
    "Artifact",
    "CacheClass",
    "CutoverResult",
    "DeployTarget",
    "DistributionInfo",
    "Encoding",
    "PrunePlan",
    "PruneReport",
    "ReleaseReport",
    "version_key",
    "version_prefix",
]


class CacheClass(Enum):
    IMMUTABLE = "public, max-age=31536000, immutable"
    NO_CACHE = "no-store, no-cache, must-revalidate, proxy-revalidate, max-age=0"

    @property
    def header(self) -> str:
        return self.value


class Encoding(Enum):
    IDENTITY = "identity"
    GZIP = "gzip"


def version_prefix(version: str) -> str:
    """Storage namespace of a version: ``v<version>`` (no trailing slash)."""
    return f"v{version}"


def version_key(version: str, relative_path: str) -> str:
    return f"{version_prefix(version)}/{relative_path.lstrip('/')}"


@dataclass(frozen=True, slots=True)
class Artifact:
    """One file of a build output tree and its derived upload attributes."""

    relative_path: str  # posix, no leading slash
    source_path: Path
    content_type: str | None
    cache_class: CacheClass
    encoding: Encoding

    @property
    def cache_control(self) -> str:
        return self.cache_class.header

    def key(self, version: str) -> str:
        return version_key(version, self.relative_path)


@dataclass(frozen=True, slots=True)
class CutoverResult:
    distribution_id: str
    origin_id: str
    origin_path: str
    status: str | None


@dataclass(frozen=True, slots=True)
class DistributionInfo:
    domain_name: str
    aliases: tuple[str, ...]
    status: str

    @property
    def urls(self) -> tuple[str, ...]:
        return (f"https://{self.domain_name}", *(f"https://{a}" for a in self.aliases))


@dataclass(frozen=True, slots=True)
class PrunePlan:
    """Which versions a prune may touch.

    ``versions`` is ordered most-recent first. When ``skipped`` is set there
    are not enough versions to prune safely and ``candidates`` is empty.
    """

    versions: tuple[str, ...]
    current: str
    keep: int
    excluded: tuple[str, ...]
    candidates: tuple[str, ...]
    skipped: bool = False
    reason: str | None = None


@dataclass(frozen=True, slots=True)
class PruneReport:
    plan: PrunePlan
    deleted: tuple[str, ...]
    deleted_objects: int


@dataclass(frozen=True, slots=True)
class ReleaseReport:
    version: str
    uploaded: int
    cutover: CutoverResult
    invalidation_id: str | None
    pruned: PruneReport | None
    distribution: DistributionInfo | None
