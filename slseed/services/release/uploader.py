from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from slseed.core.result import Err, Ok, Result
from slseed.platform.aws import describe_aws_error
from slseed.services.errors import DeployError
from slseed.services.release.artifacts import collect_artifacts, encode_payload
from slseed.services.release.model import Artifact, DeployTarget, Encoding, version_prefix
from slseed.services.timeouts import UPLOAD_MAX_WORKERS

ProgressCallback = Callable[[int, int, str], None]

_MAX_REPORTED_FAILURES = 5


@dataclass(frozen=True, slots=True)
class UploadFailure:
    key: str
    reason: str


class _UploadError(Exception):
    def __init__(self, failure: UploadFailure) -> None:
        super().__init__(failure.reason)
        self.failure = failure


def put_artifact(s3: Any, *, bucket: str, version: str, artifact: Artifact) -> str:
    """Upload one artifact; returns its key.

    Raises:
        _UploadError: On read or provider failure.
    """
    key = artifact.key(version)
    try:
        body = encode_payload(artifact)
    except OSError as e:
        raise _UploadError(UploadFailure(key=key, reason=f"read failed: {e}")) from e

    params: dict[str, object] = {
        "Bucket": bucket,
        "Key": key,
        "Body": body,
        "CacheControl": artifact.cache_control,
    }
    if artifact.content_type:
        params["ContentType"] = artifact.content_type
    if artifact.encoding is Encoding.GZIP:
        params["ContentEncoding"] = "gzip"

    try:
        s3.put_object(**params)
    except (BotoCoreError, ClientError) as e:
        raise _UploadError(UploadFailure(key=key, reason=describe_aws_error(e))) from e
    return key


def upload(
    s3: Any,
    target: DeployTarget,
    version: str,
    source_tree: Path,
    *,
    max_workers: int = UPLOAD_MAX_WORKERS,
    on_progress: ProgressCallback | None = None,
) -> Result[int, DeployError]:
    """Upload every file of ``source_tree`` under ``v<version>/``.

    Uploads run on a bounded thread pool. The result is Ok only when every
    file was stored; on the first failure no further uploads are started and
    the already-written objects are left in place (the prefix is never
    activated, so they are inert).
    """
    if not source_tree.is_dir():
        return Err(
            DeployError(
                kind="invalid_input",
                message=f"build output not found: {source_tree}",
                hint="Run the build first, or check 'dist' in slseed.toml.",
            )
        )

    artifacts = collect_artifacts(source_tree)
    total = len(artifacts)
    if total == 0:
        return Err(
            DeployError(
                kind="invalid_input",
                message=f"build output is empty: {source_tree}",
            )
        )

    uploaded = 0
    failures: list[UploadFailure] = []

    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
        pending: set[Future[str]] = {
            pool.submit(put_artifact, s3, bucket=target.bucket, version=version, artifact=a)
            for a in artifacts
        }
        while pending:
            done, pending = wait(pending, return_when=FIRST_EXCEPTION)
            for future in done:
                if future.cancelled():
                    continue
                exc = future.exception()
                if exc is None:
                    uploaded += 1
                    if on_progress is not None:
                        on_progress(uploaded, total, future.result())
                elif isinstance(exc, _UploadError):
                    failures.append(exc.failure)
                else:
                    raise exc
            if failures:
                for future in pending:
                    future.cancel()

    if failures:
        shown = ", ".join(f.key for f in failures[:_MAX_REPORTED_FAILURES])
        more = len(failures) - _MAX_REPORTED_FAILURES
        if more > 0:
            shown += f" (+{more} more)"
        return Err(
            DeployError(
                kind="upload_failed",
                message=(
                    f"upload of {version_prefix(version)} failed "
                    f"({uploaded}/{total} uploaded): {shown}"
                ),
                hint=failures[0].reason,
            )
        )

    return Ok(uploaded)
