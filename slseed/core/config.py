"""Typed project configuration loading.

``slseed.toml`` is parsed into frozen dataclasses. Deploy references that
start with ``$`` (e.g. ``bucket = "$DEPLOY_BUCKET"``) are kept verbatim here
and resolved per stage by :mod:`slseed.core.context`.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_int, get_str, get_str_list, get_table

__all__ = [
    "AwsConfig",
    "ConfigError",
    "DeployConfig",
    "EnvConfig",
    "ProjectConfig",
    "ProjectType",
    "load_config",
    "read_package_version",
    # Defaults
    "DEFAULT_KEEP",
    "DEFAULT_MAX_WORKERS",
    "DEFAULT_REGION",
]

ProjectType = Literal["app", "api"]

DEFAULT_KEEP = 2
DEFAULT_MAX_WORKERS = 8
DEFAULT_REGION = "us-east-1"
DEFAULT_BUILD_COMMAND: tuple[str, ...] = ("npm", "run", "build")


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class AwsConfig:
    region: str = DEFAULT_REGION


@dataclass(frozen=True, slots=True)
class DeployConfig:
    """Where a release goes.

    ``bucket`` and ``distribution`` are either literal identifiers or
    ``$NAME`` references resolved from the stage's env files.
    """

    bucket: str | None = None
    distribution: str | None = None
    keep: int = DEFAULT_KEEP
    max_workers: int = DEFAULT_MAX_WORKERS


@dataclass(frozen=True, slots=True)
class EnvConfig:
    """Parameter-store names written to ``.env.<stage>`` by ``slseed env``.

    A leading ``!`` opts a parameter out of ``prefix`` on app projects.
    """

    parameters: tuple[str, ...] = ()
    prefix: str = "VUE_APP_"


@dataclass(frozen=True, slots=True)
class ProjectConfig:
    """Main configuration container."""

    stack: str
    type: ProjectType = "app"
    dist: str = "dist"
    configs: str = "configs"
    version_file: str = "package.json"
    build_command: tuple[str, ...] = DEFAULT_BUILD_COMMAND
    aws: AwsConfig = field(default_factory=AwsConfig)
    stages: Mapping[str, str] = field(default_factory=dict)
    deploy: DeployConfig = field(default_factory=DeployConfig)
    env: EnvConfig = field(default_factory=EnvConfig)

    @property
    def stage_names(self) -> tuple[str, ...]:
        return tuple(self.stages.keys())

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> ProjectConfig:
        """Create a ProjectConfig from parsed TOML.

        Raises:
            ValueError: If a required key is missing or a value is invalid.
        """
        stack = get_str(data, "stack")
        if stack is None:
            raise ValueError("missing required key: stack")

        kind = get_str(data, "type") or "app"
        if kind not in ("app", "api"):
            raise ValueError(f"invalid type: {kind!r} (expected 'app' or 'api')")

        aws: StrDict = get_table(data, "aws") or {}
        stages_raw: StrDict = get_table(data, "stages") or {}
        deploy: StrDict = get_table(data, "deploy") or {}
        env: StrDict = get_table(data, "env") or {}

        stages: dict[str, str] = {}
        for name, profile in stages_raw.items():
            if not isinstance(profile, str) or not profile.strip():
                raise ValueError(f"stage {name!r} must map to an AWS profile name")
            stages[name] = profile.strip()

        keep = get_int(deploy, "keep")
        if keep is not None and keep < 0:
            raise ValueError("deploy.keep must be >= 0")
        max_workers = get_int(deploy, "max_workers")
        if max_workers is not None and max_workers < 1:
            raise ValueError("deploy.max_workers must be >= 1")

        build_command = tuple(get_str_list(data, "build_command")) or DEFAULT_BUILD_COMMAND

        return cls(
            stack=stack,
            type="api" if kind == "api" else "app",
            dist=get_str(data, "dist") or "dist",
            configs=get_str(data, "configs") or "configs",
            version_file=get_str(data, "version_file") or "package.json",
            build_command=build_command,
            aws=AwsConfig(region=get_str(aws, "region") or DEFAULT_REGION),
            stages=stages,
            deploy=DeployConfig(
                bucket=get_str(deploy, "bucket"),
                distribution=get_str(deploy, "distribution"),
                keep=DEFAULT_KEEP if keep is None else keep,
                max_workers=max_workers or DEFAULT_MAX_WORKERS,
            ),
            env=EnvConfig(
                parameters=tuple(get_str_list(env, "parameters")),
                prefix=get_str(env, "prefix") or "VUE_APP_",
            ),
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def load_config(path: Path) -> Result[ProjectConfig, ConfigError]:
    """Load and parse ``slseed.toml``.

    Args:
        path: Path to the config file.

    Returns:
        Ok(ProjectConfig) on success, Err(ConfigError) on failure.
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(ProjectConfig.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def read_package_version(path: Path) -> Result[str, ConfigError]:
    """Read the ``version`` field of a package manifest (package.json)."""
    try:
        obj: object = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return Err(ConfigError(f"Package manifest not found: {path}", path=path))
    except (OSError, json.JSONDecodeError) as e:
        return Err(ConfigError(f"Invalid package manifest: {e}", path=path))

    data = as_str_dict(obj)
    version = get_str(data, "version") if data is not None else None
    if version is None:
        return Err(ConfigError("Package manifest has no version", path=path))
    return Ok(version)
