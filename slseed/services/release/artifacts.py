"""Build output classification.

Every attribute of an uploaded object is derived from its file name alone:

- content type comes from the standard MIME table (``mimetypes``), with
  already-compressed files typed as their archive format;
- SPA entry points are never cached, so a new version is picked up as soon
  as the CDN origin moves; everything else lives under an immutable version
  prefix and is cached for a year;
- text-like formats are gzip-compressed at level 9 before upload.
"""

from __future__ import annotations

import gzip
import mimetypes
from pathlib import Path, PurePosixPath

from slseed.services.release.model import Artifact, CacheClass, Encoding

__all__ = [
    "COMPRESSIBLE_EXTENSIONS",
    "ENTRY_POINTS",
    "classify",
    "collect_artifacts",
    "encode_payload",
]

ENTRY_POINTS = frozenset({"index.html", "service-worker.js", "manifest.json"})

COMPRESSIBLE_EXTENSIONS = frozenset(
    {
        ".js",
        ".css",
        ".json",
        ".ico",
        ".map",
        ".xml",
        ".txt",
        ".svg",
        ".eot",
        ".ttf",
        ".woff",
        ".woff2",
    }
)

GZIP_LEVEL = 9

# mimetypes reports compressed files by their inner type plus an encoding.
COMPRESSED_TYPES = {
    "gzip": "application/gzip",
    "bzip2": "application/x-bzip2",
    "xz": "application/x-xz",
}


def classify(relative_path: str, source_path: Path) -> Artifact:
    rel = PurePosixPath(relative_path.lstrip("/"))
    content_type, compressed = mimetypes.guess_type(rel.name, strict=False)
    if compressed is not None:
        content_type = COMPRESSED_TYPES.get(compressed, "application/octet-stream")

    cache_class = CacheClass.NO_CACHE if rel.name in ENTRY_POINTS else CacheClass.IMMUTABLE
    encoding = (
        Encoding.GZIP if rel.suffix.lower() in COMPRESSIBLE_EXTENSIONS else Encoding.IDENTITY
    )

    return Artifact(
        relative_path=rel.as_posix(),
        source_path=source_path,
        content_type=content_type,
        cache_class=cache_class,
        encoding=encoding,
    )


def collect_artifacts(source_tree: Path) -> list[Artifact]:
    """Classify every regular file under ``source_tree``, sorted by path."""
    artifacts: list[Artifact] = []
    for path in sorted(source_tree.rglob("*")):
        if not path.is_file():
            continue
        rel = path.relative_to(source_tree).as_posix()
        artifacts.append(classify(rel, path))
    return artifacts


def encode_payload(artifact: Artifact) -> bytes:
    """Read the artifact and apply its encoding."""
    raw = artifact.source_path.read_bytes()
    if artifact.encoding is Encoding.GZIP:
        # mtime=0 keeps the payload deterministic for identical input.
        return gzip.compress(raw, compresslevel=GZIP_LEVEL, mtime=0)
    return raw
