from __future__ import annotations

import gzip
import threading
from pathlib import Path

from botocore.exceptions import ClientError

from slseed.core.result import Err, Ok
from slseed.services.release.model import DeployTarget
from slseed.services.release.uploader import upload

TARGET = DeployTarget(bucket="site-bucket", distribution_id="E1", region="us-east-1")


class FakeS3:
    def __init__(self, *, fail_keys: set[str] | None = None) -> None:
        self.objects: dict[str, dict[str, object]] = {}
        self.fail_keys = fail_keys or set()
        self._lock = threading.Lock()

    def put_object(self, **params: object) -> dict[str, object]:
        key = str(params["Key"])
        if key in self.fail_keys:
            raise ClientError(
                {"Error": {"Code": "AccessDenied", "Message": "nope"}}, "PutObject"
            )
        with self._lock:
            self.objects[key] = params
        return {"ETag": '"abc"'}


def _build_tree(root: Path) -> Path:
    dist = root / "dist"
    (dist / "js").mkdir(parents=True)
    (dist / "img").mkdir()
    (dist / "index.html").write_text("<html></html>", encoding="utf-8")
    (dist / "js" / "app.js").write_text("console.log('app')", encoding="utf-8")
    (dist / "img" / "logo.png").write_bytes(b"\x89PNG")
    return dist


def test_uploads_every_file_under_version_prefix(tmp_path: Path) -> None:
    dist = _build_tree(tmp_path)
    s3 = FakeS3()
    progress: list[tuple[int, int, str]] = []

    result = upload(
        s3, TARGET, "1.0.0", dist, max_workers=2, on_progress=lambda *a: progress.append(a)
    )

    assert result == Ok(3)
    assert set(s3.objects) == {"v1.0.0/index.html", "v1.0.0/js/app.js", "v1.0.0/img/logo.png"}
    assert sorted(p[0] for p in progress) == [1, 2, 3]
    assert all(p[1] == 3 for p in progress)


def test_object_attributes(tmp_path: Path) -> None:
    dist = _build_tree(tmp_path)
    s3 = FakeS3()

    upload(s3, TARGET, "1.0.0", dist)

    index = s3.objects["v1.0.0/index.html"]
    assert index["Bucket"] == "site-bucket"
    assert index["ContentType"] == "text/html"
    assert index["CacheControl"] == (
        "no-store, no-cache, must-revalidate, proxy-revalidate, max-age=0"
    )
    assert "ContentEncoding" not in index

    app = s3.objects["v1.0.0/js/app.js"]
    assert app["ContentEncoding"] == "gzip"
    assert app["CacheControl"] == "public, max-age=31536000, immutable"
    body = app["Body"]
    assert isinstance(body, bytes)
    assert gzip.decompress(body) == b"console.log('app')"

    logo = s3.objects["v1.0.0/img/logo.png"]
    assert logo["Body"] == b"\x89PNG"
    assert "ContentEncoding" not in logo


def test_failure_reports_failed_keys(tmp_path: Path) -> None:
    dist = _build_tree(tmp_path)
    s3 = FakeS3(fail_keys={"v1.0.0/js/app.js"})

    result = upload(s3, TARGET, "1.0.0", dist, max_workers=1)

    assert isinstance(result, Err)
    assert result.error.kind == "upload_failed"
    assert "v1.0.0/js/app.js" in result.error.message
    assert result.error.hint == "AccessDenied: nope"


def test_missing_source_tree(tmp_path: Path) -> None:
    result = upload(FakeS3(), TARGET, "1.0.0", tmp_path / "dist")
    assert isinstance(result, Err)
    assert result.error.kind == "invalid_input"


def test_empty_source_tree(tmp_path: Path) -> None:
    (tmp_path / "dist" / "sub").mkdir(parents=True)
    result = upload(FakeS3(), TARGET, "1.0.0", tmp_path / "dist")
    assert isinstance(result, Err)
    assert result.error.kind == "invalid_input"
    assert "empty" in result.error.message
