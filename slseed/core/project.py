"""Project detection and paths.

A project is the root directory of a deployable application. It is
identified by the presence of a ``slseed.toml`` file, searched upward from
the current directory (or from an explicit ``--project`` path).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .result import Err, Ok, Result

__all__ = [
    "CONFIG_FILENAME",
    "PROJECT_ENV_VAR",
    "Project",
    "ProjectError",
    "detect_project",
    "find_project_upward",
    "is_project_root",
]

CONFIG_FILENAME = "slseed.toml"
PROJECT_ENV_VAR = "SLSEED_PROJECT"


@dataclass(frozen=True, slots=True)
class ProjectError:
    """Error when the project root cannot be detected."""

    message: str
    searched_from: Path | None = None


@dataclass(frozen=True, slots=True)
class Project:
    """A detected project.

    The project root contains:
    - slseed.toml (required)
    - the build output directory (``dist`` by default)
    - <configs>/stack/template.json and <configs>/stack/values.toml for
      ``slseed stack``
    - .env.<stage> / .env.<stage>.local files per stage
    """

    root: Path

    @property
    def config_path(self) -> Path:
        return self.root / CONFIG_FILENAME

    def env_path(self, stage: str) -> Path:
        """Path to the generated ``.env.<stage>`` file."""
        return self.root / f".env.{stage}"

    def local_env_path(self, stage: str) -> Path:
        """Path to the operator-maintained ``.env.<stage>.local`` file."""
        return self.root / f".env.{stage}.local"

    def resolve(self, relative: str) -> Path:
        """Resolve a config-relative path against the project root."""
        p = Path(relative).expanduser()
        if p.is_absolute():
            return p
        return self.root / p


def is_project_root(path: Path) -> bool:
    return (path / CONFIG_FILENAME).is_file()


def find_project_upward(start: Path) -> Path | None:
    current = start.resolve()
    for candidate in (current, *current.parents):
        if is_project_root(candidate):
            return candidate
    return None


def detect_project(
    start: Path | None = None,
    *,
    env_var: str = PROJECT_ENV_VAR,
) -> Result[Project, ProjectError]:
    """Detect the project root.

    Detection order:
    1. SLSEED_PROJECT environment variable (if set and valid)
    2. Search upward from start (or cwd) for slseed.toml
    """
    env_value = os.environ.get(env_var)
    if env_value:
        env_path = Path(env_value).expanduser().resolve()
        if is_project_root(env_path):
            return Ok(Project(root=env_path))
        return Err(
            ProjectError(
                message=f"${env_var} is set to '{env_value}' but it has no {CONFIG_FILENAME}",
                searched_from=env_path if env_path.is_dir() else None,
            )
        )

    origin = start if start is not None else Path.cwd()
    root = find_project_upward(origin)
    if root is None:
        return Err(
            ProjectError(
                message=f"{CONFIG_FILENAME} not found (searched upward from {origin})",
                searched_from=origin,
            )
        )
    return Ok(Project(root=root))
