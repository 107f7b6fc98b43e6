"""CloudFront cutover: repoint the single origin at a version prefix.

The distribution config is fetched together with its ETag and written back
with ``IfMatch`` set to that ETag, so a concurrent edit is rejected by
CloudFront instead of being overwritten.
"""

from __future__ import annotations

import copy
import threading
from typing import Any
from uuid import uuid4

from botocore.exceptions import BotoCoreError, ClientError

from slseed.core.result import Err, Ok, Result
from slseed.core.structured import StrDict, as_str_dict, get_dicts, get_str, get_str_list, get_table
from slseed.output.console import ConsoleProtocol, Style
from slseed.platform.aws import client_error_code, describe_aws_error
from slseed.services.errors import DeployError
from slseed.services.release.model import (
    CutoverResult,
    DeployTarget,
    DistributionInfo,
    version_prefix,
)
from slseed.services.timeouts import CUTOVER_RETRY_ATTEMPTS, DISTRIBUTION_POLL_INTERVAL_SECONDS

__all__ = [
    "DEFAULT_ROOT_OBJECT",
    "build_cutover_config",
    "cutover",
    "cutover_with_retry",
    "describe_distribution",
    "invalidate",
    "origin_id_for",
    "wait_for_deployed",
]

DEFAULT_ROOT_OBJECT = "index.html"

_CONFLICT_CODES = frozenset({"PreconditionFailed", "InvalidIfMatchVersion"})


def origin_id_for(bucket: str, version: str) -> str:
    return f"S3-{bucket}/{version_prefix(version)}"


def build_cutover_config(
    config: StrDict, *, bucket: str, version: str
) -> Result[StrDict, DeployError]:
    """Return a copy of ``config`` pointing at ``v<version>``.

    Only the default root object, the origin's domain/id/path and the
    default cache behaviour's target origin change. The input is not mutated.
    """
    origins = get_table(config, "Origins") or {}
    items = get_dicts(origins, "Items")
    if len(items) != 1:
        return Err(
            DeployError(
                kind="invalid_input",
                message=f"expected exactly one origin, found {len(items)}",
                hint="Multi-origin distributions are not supported.",
            )
        )

    origin_id = origin_id_for(bucket, version)
    origin = copy.deepcopy(items[0])
    origin["DomainName"] = f"{bucket}.s3.amazonaws.com"
    origin["Id"] = origin_id
    origin["OriginPath"] = f"/{version_prefix(version)}"

    updated = copy.deepcopy(config)
    updated["DefaultRootObject"] = DEFAULT_ROOT_OBJECT
    updated["Origins"] = {"Quantity": 1, "Items": [origin]}

    behavior = copy.deepcopy(get_table(config, "DefaultCacheBehavior") or {})
    behavior["TargetOriginId"] = origin_id
    updated["DefaultCacheBehavior"] = behavior

    return Ok(updated)


def _require_distribution(target: DeployTarget) -> Result[str, DeployError]:
    if not target.distribution_id:
        return Err(
            DeployError(
                kind="invalid_input",
                message="no CloudFront distribution configured",
                hint="Set deploy.distribution in slseed.toml.",
            )
        )
    return Ok(target.distribution_id)


def cutover(
    cloudfront: Any, target: DeployTarget, version: str
) -> Result[CutoverResult, DeployError]:
    """Fetch, rewrite and conditionally update the distribution once."""
    dist = _require_distribution(target)
    if isinstance(dist, Err):
        return dist
    dist_id = dist.value

    try:
        response: object = cloudfront.get_distribution_config(Id=dist_id)
    except (BotoCoreError, ClientError) as e:
        return Err(
            DeployError(
                kind="storage_unavailable",
                message=f"failed to read distribution config: {dist_id}",
                hint=describe_aws_error(e),
            )
        )

    data = as_str_dict(response) or {}
    etag = get_str(data, "ETag")
    current = get_table(data, "DistributionConfig")
    if etag is None or current is None:
        return Err(
            DeployError(
                kind="storage_unavailable",
                message=f"unexpected get_distribution_config payload: {dist_id}",
            )
        )

    built = build_cutover_config(current, bucket=target.bucket, version=version)
    if isinstance(built, Err):
        return Err(
            DeployError(
                kind=built.error.kind,
                message=f"{built.error.message} (distribution {dist_id})",
                hint=built.error.hint,
            )
        )

    try:
        updated: object = cloudfront.update_distribution(
            Id=dist_id,
            IfMatch=etag,
            DistributionConfig=built.value,
        )
    except ClientError as e:
        if client_error_code(e) in _CONFLICT_CODES:
            return Err(
                DeployError(
                    kind="cutover_conflict",
                    message=f"distribution {dist_id} changed concurrently",
                    hint="Refetch the config and retry the cutover.",
                )
            )
        return Err(
            DeployError(
                kind="storage_unavailable",
                message=f"failed to update distribution {dist_id} to {version_prefix(version)}",
                hint=describe_aws_error(e),
            )
        )
    except BotoCoreError as e:
        return Err(
            DeployError(
                kind="storage_unavailable",
                message=f"failed to update distribution {dist_id} to {version_prefix(version)}",
                hint=describe_aws_error(e),
            )
        )

    dist_obj = get_table(as_str_dict(updated) or {}, "Distribution") or {}
    return Ok(
        CutoverResult(
            distribution_id=dist_id,
            origin_id=origin_id_for(target.bucket, version),
            origin_path=f"/{version_prefix(version)}",
            status=get_str(dist_obj, "Status"),
        )
    )


def cutover_with_retry(
    cloudfront: Any,
    target: DeployTarget,
    version: str,
    *,
    console: ConsoleProtocol,
    attempts: int = CUTOVER_RETRY_ATTEMPTS,
) -> Result[CutoverResult, DeployError]:
    """Run :func:`cutover`, refetching after each ETag conflict.

    Every attempt reads a fresh config and token; a conflicting write is
    never resubmitted with a stale token.
    """
    attempts = max(1, attempts)
    result: Result[CutoverResult, DeployError] = Err(
        DeployError(kind="cutover_conflict", message="cutover not attempted")
    )
    for attempt in range(attempts):
        result = cutover(cloudfront, target, version)
        if isinstance(result, Ok):
            return result
        if result.error.kind != "cutover_conflict":
            return result
        if attempt < attempts - 1:
            console.print(
                f"distribution changed concurrently; refetching (attempt {attempt + 2}/{attempts})",
                Style.DIM,
            )
    return result


def invalidate(
    cloudfront: Any,
    distribution_id: str,
    paths: tuple[str, ...] = ("/*",),
) -> Result[str, DeployError]:
    """Request an edge cache invalidation; returns the invalidation id.

    Callers treat a failure as a warning: the origin swap is already live.
    """
    try:
        response: object = cloudfront.create_invalidation(
            DistributionId=distribution_id,
            InvalidationBatch={
                "CallerReference": f"slseed-{uuid4().hex[:12]}",
                "Paths": {"Quantity": len(paths), "Items": list(paths)},
            },
        )
    except (BotoCoreError, ClientError) as e:
        return Err(
            DeployError(
                kind="storage_unavailable",
                message=f"invalidation request failed for distribution {distribution_id}",
                hint=describe_aws_error(e),
            )
        )

    invalidation = get_table(as_str_dict(response) or {}, "Invalidation") or {}
    return Ok(get_str(invalidation, "Id") or "")


def describe_distribution(
    cloudfront: Any, distribution_id: str
) -> Result[DistributionInfo, DeployError]:
    try:
        response: object = cloudfront.get_distribution(Id=distribution_id)
    except (BotoCoreError, ClientError) as e:
        return Err(
            DeployError(
                kind="storage_unavailable",
                message=f"failed to describe distribution {distribution_id}",
                hint=describe_aws_error(e),
            )
        )

    dist = get_table(as_str_dict(response) or {}, "Distribution") or {}
    config = get_table(dist, "DistributionConfig") or {}
    aliases = get_table(config, "Aliases") or {}
    return Ok(
        DistributionInfo(
            domain_name=get_str(dist, "DomainName") or "",
            aliases=tuple(get_str_list(aliases, "Items")),
            status=get_str(dist, "Status") or "",
        )
    )


def wait_for_deployed(
    cloudfront: Any,
    distribution_id: str,
    *,
    interval: float = DISTRIBUTION_POLL_INTERVAL_SECONDS,
    cancel: threading.Event | None = None,
) -> Result[bool, DeployError]:
    """Poll until the distribution reports ``Deployed``.

    Returns Ok(True) once deployed, Ok(False) if ``cancel`` was set first.
    """
    stop = cancel if cancel is not None else threading.Event()
    while True:
        info = describe_distribution(cloudfront, distribution_id)
        if isinstance(info, Err):
            return info
        if info.value.status == "Deployed":
            return Ok(True)
        if stop.wait(interval):
            return Ok(False)
