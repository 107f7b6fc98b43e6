from __future__ import annotations

import re
from dataclasses import dataclass

_VERSION_RE = re.compile(
    r"^v?(0|[1-9]\d*)(?:\.(0|[1-9]\d*))?(?:\.(0|[1-9]\d*))?"
    r"(?:-([0-9A-Za-z.-]+))?(?:\+[0-9A-Za-z.-]+)?$"
)


@dataclass(frozen=True, slots=True)
class SemVer:
    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()

    def sort_key(self) -> tuple[int, int, int, int, tuple[tuple[int, int, str], ...]]:
        # A release sorts above any of its prereleases; numeric identifiers
        # sort below alphanumeric ones.
        pre = tuple((0, int(p), "") if p.isdigit() else (1, 0, p) for p in self.prerelease)
        return (self.major, self.minor, self.patch, 0 if self.prerelease else 1, pre)


def parse_version(text: str) -> SemVer | None:
    """Parse ``1``, ``1.2``, ``1.2.3`` or ``1.2.3-beta.1`` (leading ``v`` allowed)."""
    m = _VERSION_RE.match(text.strip())
    if m is None:
        return None
    pre = tuple(m.group(4).split(".")) if m.group(4) else ()
    return SemVer(
        int(m.group(1)),
        int(m.group(2) or 0),
        int(m.group(3) or 0),
        pre,
    )


def sort_versions_desc(versions: list[str]) -> list[str]:
    """Order versions newest first.

    Parseable versions come first in descending semver order; anything else
    follows in reverse lexicographic order.
    """
    parsed: list[tuple[SemVer, str]] = []
    other: list[str] = []
    for v in versions:
        sv = parse_version(v)
        if sv is None:
            other.append(v)
        else:
            parsed.append((sv, v))

    parsed.sort(key=lambda item: (item[0].sort_key(), item[1]), reverse=True)
    other.sort(reverse=True)
    return [v for _, v in parsed] + other
