"""Deployment context: the resolved, immutable input of every flow.

The context is built once per invocation from ``slseed.toml``, the selected
stage and that stage's env files, then passed explicitly to every service.
Nothing downstream reads the process environment.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from dotenv import dotenv_values

from .config import ConfigError, ProjectConfig, read_package_version
from .project import Project
from .result import Err, Ok, Result

__all__ = [
    "DeployTarget",
    "DeploymentContext",
    "load_stage_env",
    "resolve_context",
    "resolve_ref",
]


@dataclass(frozen=True, slots=True)
class DeployTarget:
    """Storage + CDN identifiers a release is published to."""

    bucket: str
    distribution_id: str | None
    region: str


@dataclass(frozen=True, slots=True)
class DeploymentContext:
    stage: str
    profile: str
    region: str
    project_root: Path
    version: str
    target: DeployTarget | None
    keep: int
    max_workers: int
    auto: bool = False


def load_stage_env(project: Project, stage: str) -> dict[str, str]:
    """Read ``.env.<stage>`` then ``.env.<stage>.local`` (local wins)."""
    values: dict[str, str] = {}
    for path in (project.env_path(stage), project.local_env_path(stage)):
        if not path.is_file():
            continue
        for key, value in dotenv_values(path).items():
            if value is not None:
                values[key] = value
    return values


def resolve_ref(value: str | None, env: Mapping[str, str]) -> str | None:
    """Resolve a ``$NAME`` reference against ``env``; literals pass through."""
    if value is None:
        return None
    if not value.startswith("$"):
        return value
    resolved = env.get(value[1:], "").strip()
    return resolved or None


def resolve_context(
    *,
    config: ProjectConfig,
    project: Project,
    stage: str,
    auto: bool = False,
    version: str | None = None,
    keep: int | None = None,
    require_target: bool = True,
    environ: Mapping[str, str] | None = None,
) -> Result[DeploymentContext, ConfigError]:
    """Build the deployment context for ``stage``.

    Args:
        config: Parsed project configuration.
        project: Detected project root.
        stage: Stage name (must be declared under ``[stages]``).
        auto: Non-interactive mode.
        version: Explicit version; defaults to the package manifest version.
        keep: Retention override; defaults to ``deploy.keep``.
        require_target: Fail if the bucket cannot be resolved.
        environ: Fallback variables for ``$NAME`` references (process env
            when omitted).
    """
    if stage not in config.stages:
        available = ", ".join(config.stage_names) or "(none)"
        return Err(
            ConfigError(
                f"Unknown stage: {stage} (available: {available})",
                path=project.config_path,
            )
        )

    env: dict[str, str] = dict(os.environ if environ is None else environ)
    env.update(load_stage_env(project, stage))

    if version is None:
        version_r = read_package_version(project.resolve(config.version_file))
        if isinstance(version_r, Err):
            return version_r
        version = version_r.value

    bucket = resolve_ref(config.deploy.bucket, env)
    distribution = resolve_ref(config.deploy.distribution, env)

    target: DeployTarget | None = None
    if bucket is not None:
        target = DeployTarget(
            bucket=bucket,
            distribution_id=distribution,
            region=config.aws.region,
        )
    elif require_target:
        return Err(
            ConfigError(
                f"deploy.bucket is not set for stage {stage}"
                + (f" ({config.deploy.bucket} is empty)" if config.deploy.bucket else ""),
                path=project.config_path,
            )
        )

    return Ok(
        DeploymentContext(
            stage=stage,
            profile=config.stages[stage],
            region=config.aws.region,
            project_root=project.root,
            version=version,
            target=target,
            keep=config.deploy.keep if keep is None else keep,
            max_workers=config.deploy.max_workers,
            auto=auto,
        )
    )
