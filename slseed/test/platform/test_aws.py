from __future__ import annotations

from pathlib import Path

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from slseed.core.result import Err, Ok
from slseed.platform.aws import (
    AwsClients,
    client_error_code,
    client_error_message,
    create_clients,
    describe_aws_error,
)


@pytest.fixture
def isolated_aws(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config = tmp_path / "config"
    config.write_text("[profile my-app-dev]\nregion = eu-west-1\n", encoding="utf-8")
    monkeypatch.setenv("AWS_CONFIG_FILE", str(config))
    monkeypatch.setenv("AWS_SHARED_CREDENTIALS_FILE", str(tmp_path / "credentials"))
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.delenv("AWS_PROFILE", raising=False)


def _client_error(code: str, message: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, "ListObjectsV2")


@pytest.mark.usefixtures("isolated_aws")
class TestCreateClients:
    def test_known_profile(self) -> None:
        result = create_clients(profile="my-app-dev", region="us-east-1")
        assert isinstance(result, Ok)
        assert isinstance(result.value, AwsClients)
        assert result.value.region == "us-east-1"

    def test_unknown_profile(self) -> None:
        result = create_clients(profile="nope", region="us-east-1")
        assert isinstance(result, Err)
        assert "nope" in result.error.message
        assert result.error.hint is not None

    def test_clients_are_cached(self) -> None:
        result = create_clients(profile=None, region="us-east-1")
        assert isinstance(result, Ok)
        clients = result.value
        assert clients.s3 is clients.s3
        assert clients.cloudfront.meta.service_model.service_name == "cloudfront"


class TestErrorHelpers:
    def test_code_and_message(self) -> None:
        error = _client_error("AccessDenied", "Access Denied")
        assert client_error_code(error) == "AccessDenied"
        assert client_error_message(error) == "Access Denied"
        assert describe_aws_error(error) == "AccessDenied: Access Denied"

    def test_code_only(self) -> None:
        error = ClientError({"Error": {"Code": "Throttling"}}, "DescribeStacks")
        assert describe_aws_error(error) == "Throttling"

    def test_botocore_error(self) -> None:
        error = EndpointConnectionError(endpoint_url="https://s3.amazonaws.com")
        assert "s3.amazonaws.com" in describe_aws_error(error)
