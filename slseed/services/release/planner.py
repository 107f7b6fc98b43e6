from __future__ import annotations

from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from slseed.core.result import Err, Ok, Result
from slseed.core.structured import as_str_dict, get_dicts
from slseed.output.console import ConsoleProtocol, Style
from slseed.platform.aws import describe_aws_error
from slseed.services.errors import DeployError
from slseed.services.release.model import DeployTarget, version_prefix


def check_idempotent(s3: Any, target: DeployTarget, version: str) -> Result[bool, DeployError]:
    """Return whether ``version`` already has objects in the target bucket.

    An empty listing is the normal "not deployed" answer. Only transport or
    permission failures are errors.
    """
    prefix = f"{version_prefix(version)}/"
    try:
        response: object = s3.list_objects_v2(Bucket=target.bucket, Prefix=prefix, MaxKeys=1)
    except (BotoCoreError, ClientError) as e:
        return Err(
            DeployError(
                kind="storage_unavailable",
                message=f"failed to list s3://{target.bucket}/{prefix}",
                hint=describe_aws_error(e),
            )
        )

    data = as_str_dict(response) or {}
    return Ok(len(get_dicts(data, "Contents")) > 0)


def plan_release(
    *,
    s3: Any,
    target: DeployTarget,
    version: str,
    force: bool,
    console: ConsoleProtocol,
) -> Result[None, DeployError]:
    """Gate a release on the idempotency check.

    ``force`` is the operator (or ``--force``) decision to re-run a version
    that is already present; objects are then re-uploaded under the same keys.
    """
    console.info(f"checking deploy status for {version_prefix(version)}...")
    deployed = check_idempotent(s3, target, version)
    if isinstance(deployed, Err):
        return deployed

    if not deployed.value:
        return Ok(None)

    if force:
        console.warning(f"{version_prefix(version)} already deployed; re-uploading (forced)")
        return Ok(None)

    console.print(f"s3://{target.bucket}/{version_prefix(version)}/ is not empty", Style.DIM)
    return Err(
        DeployError(
            kind="already_deployed",
            message=f"version already deployed: {version}",
            hint="Bump the package version, or pass --force to re-upload.",
        )
    )
