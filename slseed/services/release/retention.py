"""Retention: delete old version prefixes from the bucket.

The live version and the ``keep`` versions released just before it are never
candidates. Nothing is deleted unless at least ``keep + 2`` versions exist.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from slseed.core.config import DEFAULT_KEEP
from slseed.core.result import Err, Ok, Result
from slseed.core.structured import StrDict, as_str_dict, get_dicts, get_str
from slseed.output.console import ConsoleProtocol, Style
from slseed.platform.aws import describe_aws_error
from slseed.services.errors import DeployError
from slseed.services.release.model import DeployTarget, PrunePlan, PruneReport, version_prefix
from slseed.services.release.semver import sort_versions_desc
from slseed.services.timeouts import DELETE_BATCH_SIZE, LIST_PAGE_SIZE

__all__ = [
    "PruneChooser",
    "delete_version",
    "list_versions",
    "prune",
    "select_prune_candidates",
]

PruneChooser = Callable[[PrunePlan], Sequence[str]]


def _list_pages(s3: Any, **params: object) -> Iterator[StrDict]:
    token: str | None = None
    while True:
        call = dict(params)
        call["MaxKeys"] = LIST_PAGE_SIZE
        if token is not None:
            call["ContinuationToken"] = token
        page = as_str_dict(s3.list_objects_v2(**call)) or {}
        yield page
        token = get_str(page, "NextContinuationToken")
        if not page.get("IsTruncated") or token is None:
            return


def list_versions(s3: Any, bucket: str) -> Result[list[str], DeployError]:
    """List deployed versions, newest first."""
    versions: list[str] = []
    try:
        for page in _list_pages(s3, Bucket=bucket, Delimiter="/"):
            for entry in get_dicts(page, "CommonPrefixes"):
                prefix = get_str(entry, "Prefix")
                if prefix is None or not prefix.startswith("v"):
                    continue
                name = prefix.rstrip("/")[1:]
                if name:
                    versions.append(name)
    except (BotoCoreError, ClientError) as e:
        return Err(
            DeployError(
                kind="storage_unavailable",
                message=f"failed to list versions in s3://{bucket}",
                hint=describe_aws_error(e),
            )
        )
    return Ok(sort_versions_desc(versions))


def select_prune_candidates(
    versions: Sequence[str],
    *,
    current: str,
    keep: int = DEFAULT_KEEP,
) -> PrunePlan:
    """Split ``versions`` (newest first) into excluded and candidate sets.

    Excluded: anything newer than ``current``, ``current`` itself, and the
    ``keep`` versions right after it. If ``current`` is not deployed, the
    ``keep`` newest versions are excluded instead.
    """
    ordered = tuple(versions)
    keep = max(0, keep)
    minimum = keep + 2

    if len(ordered) < minimum:
        return PrunePlan(
            versions=ordered,
            current=current,
            keep=keep,
            excluded=ordered,
            candidates=(),
            skipped=True,
            reason=(
                f"at least {minimum} deployed versions are required to prune "
                f"(found {len(ordered)})"
            ),
        )

    if current in ordered:
        cut = ordered.index(current) + 1 + keep
    else:
        cut = keep

    return PrunePlan(
        versions=ordered,
        current=current,
        keep=keep,
        excluded=ordered[:cut],
        candidates=ordered[cut:],
    )


def delete_version(s3: Any, bucket: str, version: str) -> Result[int, DeployError]:
    """Delete every object under ``v<version>/``; returns the object count."""
    prefix = f"{version_prefix(version)}/"
    try:
        keys: list[str] = []
        for page in _list_pages(s3, Bucket=bucket, Prefix=prefix):
            for obj in get_dicts(page, "Contents"):
                key = get_str(obj, "Key")
                if key is not None:
                    keys.append(key)

        for i in range(0, len(keys), DELETE_BATCH_SIZE):
            chunk = keys[i : i + DELETE_BATCH_SIZE]
            response = as_str_dict(
                s3.delete_objects(
                    Bucket=bucket,
                    Delete={"Objects": [{"Key": k} for k in chunk], "Quiet": True},
                )
            ) or {}
            errors = get_dicts(response, "Errors")
            if errors:
                first = errors[0]
                return Err(
                    DeployError(
                        kind="storage_unavailable",
                        message=(
                            f"failed to delete {len(errors)} object(s) of "
                            f"{version_prefix(version)} in s3://{bucket}"
                        ),
                        hint=f"{get_str(first, 'Key')}: {get_str(first, 'Code')}",
                    )
                )
    except (BotoCoreError, ClientError) as e:
        return Err(
            DeployError(
                kind="storage_unavailable",
                message=f"failed to delete {version_prefix(version)} from s3://{bucket}",
                hint=describe_aws_error(e),
            )
        )

    return Ok(len(keys))


def prune(
    s3: Any,
    target: DeployTarget,
    *,
    current: str,
    keep: int = DEFAULT_KEEP,
    auto: bool,
    console: ConsoleProtocol,
    choose: PruneChooser | None = None,
) -> Result[PruneReport, DeployError]:
    """Delete old versions from ``target``.

    In auto mode (or without ``choose``) every candidate is deleted. Otherwise
    ``choose`` receives the plan and returns the versions to delete; anything
    it returns outside the candidate set is ignored.
    """
    console.info("listing deployed versions...")
    listed = list_versions(s3, target.bucket)
    if isinstance(listed, Err):
        return listed

    plan = select_prune_candidates(listed.value, current=current, keep=keep)
    if plan.skipped:
        console.warning(plan.reason or "not enough versions to prune")
        return Ok(PruneReport(plan=plan, deleted=(), deleted_objects=0))

    for v in plan.excluded:
        label = " (current)" if v == current else ""
        console.print(f"  keep   {v}{label}", Style.DIM)

    if not plan.candidates:
        console.info("nothing to prune")
        return Ok(PruneReport(plan=plan, deleted=(), deleted_objects=0))

    if auto or choose is None:
        selected = list(plan.candidates)
    else:
        chosen = set(choose(plan))
        selected = [v for v in plan.candidates if v in chosen]

    deleted: list[str] = []
    objects = 0
    for v in selected:
        console.print(f"  delete {v}", Style.DIM)
        result = delete_version(s3, target.bucket, v)
        if isinstance(result, Err):
            return result
        deleted.append(v)
        objects += result.value
        console.success(f"version {v} deleted ({result.value} objects)")

    return Ok(PruneReport(plan=plan, deleted=tuple(deleted), deleted_objects=objects))
