"""boto3 session and client construction for a deployment context.

Clients are created lazily from a named profile so that a command only needs
credentials for the services it actually touches.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError, ProfileNotFound

from slseed.core.result import Err, Ok, Result

__all__ = [
    "AwsClients",
    "AwsSetupError",
    "client_error_code",
    "client_error_message",
    "create_clients",
    "describe_aws_error",
]


@dataclass(frozen=True, slots=True)
class AwsSetupError:
    message: str
    hint: str | None = None


class AwsClients:
    """Lazily created boto3 clients bound to one session."""

    def __init__(self, session: boto3.Session) -> None:
        self._session = session

    @property
    def region(self) -> str | None:
        return self._session.region_name

    @cached_property
    def s3(self) -> Any:
        return self._session.client("s3")

    @cached_property
    def cloudfront(self) -> Any:
        return self._session.client("cloudfront")

    @cached_property
    def cloudformation(self) -> Any:
        return self._session.client("cloudformation")

    @cached_property
    def ssm(self) -> Any:
        return self._session.client("ssm")


def create_clients(*, profile: str | None, region: str) -> Result[AwsClients, AwsSetupError]:
    try:
        session = boto3.Session(profile_name=profile, region_name=region)
    except ProfileNotFound:
        return Err(
            AwsSetupError(
                message=f"AWS profile not found: {profile}",
                hint="Check ~/.aws/config or the [stages] table in slseed.toml.",
            )
        )
    return Ok(AwsClients(session))


def client_error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", "") or "")


def client_error_message(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Message", "") or "")


def describe_aws_error(error: BotoCoreError | ClientError) -> str:
    """One-line description suitable for an error hint."""
    if isinstance(error, ClientError):
        code = client_error_code(error)
        message = client_error_message(error)
        if code and message:
            return f"{code}: {message}"
        return code or message or str(error)
    return str(error)
