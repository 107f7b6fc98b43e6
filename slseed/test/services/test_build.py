from __future__ import annotations

from pathlib import Path

import pytest

from slseed.core.result import Err, Ok, Result
from slseed.output.console import MockConsole
from slseed.platform.process import ProcessError
from slseed.services import build


class RecordingRunner:
    def __init__(self, result: Result[None, ProcessError]) -> None:
        self.result = result
        self.calls: list[tuple[list[str], Path, dict[str, str] | None]] = []

    def __call__(
        self, cmd: list[str], cwd: Path, env: dict[str, str] | None = None
    ) -> Result[None, ProcessError]:
        self.calls.append((cmd, cwd, env))
        return self.result


class TestRunBuild:
    def test_sets_node_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        runner = RecordingRunner(Ok(None))
        monkeypatch.setattr(build, "run_silent", runner)

        result = build.run_build(
            command=("npm", "run", "build"), cwd=tmp_path, stage="staging", console=MockConsole()
        )

        assert result == Ok(None)
        cmd, cwd, env = runner.calls[0]
        assert cmd == ["npm", "run", "build"]
        assert cwd == tmp_path
        assert env is not None and env["NODE_ENV"] == "staging"

    def test_failure(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        error = ProcessError(command=("npm", "run", "build"), returncode=1)
        monkeypatch.setattr(build, "run_silent", RecordingRunner(Err(error)))

        result = build.run_build(
            command=("npm", "run", "build"), cwd=tmp_path, stage="staging", console=MockConsole()
        )

        assert isinstance(result, Err)
        assert result.error.kind == "build_failed"
        assert "exit 1" in result.error.message


class TestDeployApi:
    def test_runs_serverless_with_profile(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        runner = RecordingRunner(Ok(None))
        monkeypatch.setattr(build, "run_silent", runner)

        result = build.deploy_api(
            cwd=tmp_path, stage="production", profile="api-prod", console=MockConsole()
        )

        assert result == Ok(None)
        cmd, _, env = runner.calls[0]
        assert cmd == ["sls", "deploy", "--stage", "production"]
        assert env is not None
        assert env["AWS_PROFILE"] == "api-prod"
        assert env["NODE_ENV"] == "production"

    def test_missing_cli(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        error = ProcessError(command=("sls",), returncode=-1, stderr="No such file: sls")
        monkeypatch.setattr(build, "run_silent", RecordingRunner(Err(error)))

        result = build.deploy_api(
            cwd=tmp_path, stage="production", profile="api-prod", console=MockConsole()
        )

        assert isinstance(result, Err)
        assert result.error.kind == "provisioning_failed"
        assert result.error.hint == "No such file: sls"
