"""Tests for slseed.core.config module."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from slseed.core.config import (
    DEFAULT_KEEP,
    DEFAULT_MAX_WORKERS,
    DEFAULT_REGION,
    ConfigError,
    DeployConfig,
    ProjectConfig,
    load_config,
    read_package_version,
)
from slseed.core.result import Err, Ok

FULL_CONFIG = """
stack = "my-app"
type = "app"
dist = "build"
build_command = ["yarn", "build"]

[aws]
region = "eu-west-1"

[stages]
development = "my-app-dev"
production = "my-app-prod"

[deploy]
bucket = "$DEPLOY_BUCKET"
distribution = "E123ABC"
keep = 3
max_workers = 4

[env]
parameters = ["api_url", "!sentry_dsn"]
prefix = "REACT_APP_"
"""


class TestDefaults:
    """Test dataclass defaults."""

    def test_deploy_defaults(self) -> None:
        config = DeployConfig()
        assert config.bucket is None
        assert config.keep == DEFAULT_KEEP == 2
        assert config.max_workers == DEFAULT_MAX_WORKERS

    def test_minimal_project(self) -> None:
        config = ProjectConfig.from_dict({"stack": "demo"})
        assert config.type == "app"
        assert config.dist == "dist"
        assert config.configs == "configs"
        assert config.build_command == ("npm", "run", "build")
        assert config.aws.region == DEFAULT_REGION
        assert config.stage_names == ()
        assert config.env.prefix == "VUE_APP_"

    def test_frozen(self) -> None:
        config = ProjectConfig.from_dict({"stack": "demo"})
        with pytest.raises(AttributeError):
            config.stack = "other"  # type: ignore[misc]


class TestFromDict:
    """Test ProjectConfig.from_dict validation."""

    def test_missing_stack(self) -> None:
        with pytest.raises(ValueError, match="stack"):
            ProjectConfig.from_dict({})

    def test_invalid_type(self) -> None:
        with pytest.raises(ValueError, match="invalid type"):
            ProjectConfig.from_dict({"stack": "demo", "type": "lambda"})

    def test_stage_without_profile(self) -> None:
        with pytest.raises(ValueError, match="AWS profile"):
            ProjectConfig.from_dict({"stack": "demo", "stages": {"dev": ""}})

    def test_negative_keep(self) -> None:
        with pytest.raises(ValueError, match="keep"):
            ProjectConfig.from_dict({"stack": "demo", "deploy": {"keep": -1}})

    def test_zero_workers(self) -> None:
        with pytest.raises(ValueError, match="max_workers"):
            ProjectConfig.from_dict({"stack": "demo", "deploy": {"max_workers": 0}})

    def test_keep_zero_allowed(self) -> None:
        config = ProjectConfig.from_dict({"stack": "demo", "deploy": {"keep": 0}})
        assert config.deploy.keep == 0


class TestLoadConfig:
    """Test load_config function."""

    def test_full_config(self, tmp_path: Path) -> None:
        path = tmp_path / "slseed.toml"
        path.write_text(FULL_CONFIG, encoding="utf-8")

        result = load_config(path)

        assert isinstance(result, Ok)
        config = result.value
        assert config.stack == "my-app"
        assert config.dist == "build"
        assert config.build_command == ("yarn", "build")
        assert config.aws.region == "eu-west-1"
        assert config.stage_names == ("development", "production")
        assert config.stages["production"] == "my-app-prod"
        assert config.deploy.bucket == "$DEPLOY_BUCKET"
        assert config.deploy.distribution == "E123ABC"
        assert config.deploy.keep == 3
        assert config.deploy.max_workers == 4
        assert config.env.parameters == ("api_url", "!sentry_dsn")
        assert config.env.prefix == "REACT_APP_"

    def test_missing_file(self, tmp_path: Path) -> None:
        result = load_config(tmp_path / "slseed.toml")
        assert isinstance(result, Err)
        assert isinstance(result.error, ConfigError)
        assert "not found" in result.error.message

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "slseed.toml"
        path.write_text("stack = [", encoding="utf-8")
        result = load_config(path)
        assert isinstance(result, Err)
        assert "Invalid TOML" in result.error.message
        assert result.error.path == path

    def test_invalid_structure(self, tmp_path: Path) -> None:
        path = tmp_path / "slseed.toml"
        path.write_text('type = "app"\n', encoding="utf-8")
        result = load_config(path)
        assert isinstance(result, Err)
        assert "Invalid config structure" in result.error.message


class TestReadPackageVersion:
    """Test read_package_version function."""

    def test_reads_version(self, tmp_path: Path) -> None:
        path = tmp_path / "package.json"
        path.write_text(json.dumps({"name": "app", "version": "1.4.0"}), encoding="utf-8")
        assert read_package_version(path) == Ok("1.4.0")

    def test_missing_version(self, tmp_path: Path) -> None:
        path = tmp_path / "package.json"
        path.write_text(json.dumps({"name": "app"}), encoding="utf-8")
        result = read_package_version(path)
        assert isinstance(result, Err)
        assert "no version" in result.error.message

    def test_missing_file(self, tmp_path: Path) -> None:
        result = read_package_version(tmp_path / "package.json")
        assert isinstance(result, Err)

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "package.json"
        path.write_text("{", encoding="utf-8")
        result = read_package_version(path)
        assert isinstance(result, Err)
        assert "Invalid package manifest" in result.error.message
