from __future__ import annotations

from pathlib import Path

from botocore.exceptions import ClientError

from slseed.core.config import ProjectConfig
from slseed.core.result import Err, Ok
from slseed.output.console import MockConsole
from slseed.services.env import (
    EnvEntry,
    env_var_name,
    parameter_path,
    render_env_file,
    resolve_parameters,
    write_env_file,
)


class FakeSSM:
    def __init__(self, values: dict[str, str]) -> None:
        self.values = values
        self.requests: list[tuple[str, bool]] = []

    def get_parameter(self, *, Name: str, WithDecryption: bool) -> dict[str, object]:
        self.requests.append((Name, WithDecryption))
        if Name not in self.values:
            raise ClientError(
                {"Error": {"Code": "ParameterNotFound", "Message": ""}}, "GetParameter"
            )
        return {"Parameter": {"Name": Name, "Value": self.values[Name]}}


def _config(*parameters: str, kind: str = "app") -> ProjectConfig:
    return ProjectConfig.from_dict(
        {"stack": "my-app", "type": kind, "env": {"parameters": list(parameters)}}
    )


def test_env_var_name() -> None:
    assert env_var_name("api-url") == "API_URL"
    assert env_var_name("sentry.dsn") == "SENTRY_DSN"
    assert env_var_name("ALREADY_OK") == "ALREADY_OK"


def test_parameter_path() -> None:
    assert parameter_path("my-app", "production", "api-url") == "/my-app/production/api-url"


class TestResolveParameters:
    def test_app_prefix_and_opt_out(self) -> None:
        ssm = FakeSSM(
            {
                "/my-app/production/api-url": "https://api.example.com",
                "/my-app/production/deploy-bucket": "site-bucket",
            }
        )
        console = MockConsole()

        result = resolve_parameters(
            ssm,
            config=_config("api-url", "!deploy-bucket"),
            stage="production",
            console=console,
        )

        assert result == Ok(
            [
                EnvEntry(
                    variable="VUE_APP_API_URL",
                    value="https://api.example.com",
                    source="/my-app/production/api-url",
                ),
                EnvEntry(
                    variable="DEPLOY_BUCKET",
                    value="site-bucket",
                    source="/my-app/production/deploy-bucket",
                ),
            ]
        )
        assert all(decrypt for _, decrypt in ssm.requests)
        assert "https://api.example.com" not in console.text

    def test_api_projects_are_not_prefixed(self) -> None:
        ssm = FakeSSM({"/my-app/staging/table-name": "orders"})

        result = resolve_parameters(
            ssm, config=_config("table-name", kind="api"), stage="staging", console=MockConsole()
        )

        assert isinstance(result, Ok)
        assert result.value[0].variable == "TABLE_NAME"

    def test_missing_parameter_stops(self) -> None:
        ssm = FakeSSM({"/my-app/production/b": "2"})

        result = resolve_parameters(
            ssm, config=_config("a", "b"), stage="production", console=MockConsole()
        )

        assert isinstance(result, Err)
        assert result.error.kind == "parameter_missing"
        assert "/my-app/production/a" in result.error.message
        assert len(ssm.requests) == 1


def test_render_env_file() -> None:
    entries = [EnvEntry(variable="VUE_APP_API_URL", value="https://x", source="/p")]
    assert render_env_file("production", entries) == (
        "NODE_ENV=production\nVUE_APP_API_URL=https://x\n"
    )


def test_write_env_file(tmp_path: Path) -> None:
    path = tmp_path / ".env.staging"
    assert write_env_file(path, "staging", []) == Ok(path)
    assert path.read_text(encoding="utf-8") == "NODE_ENV=staging\n"


def test_write_env_file_error(tmp_path: Path) -> None:
    result = write_env_file(tmp_path / "missing" / ".env.staging", "staging", [])
    assert isinstance(result, Err)
    assert result.error.kind == "invalid_input"
