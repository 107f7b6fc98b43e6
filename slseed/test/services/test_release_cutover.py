from __future__ import annotations

import copy
import threading

from botocore.exceptions import ClientError

from slseed.core.result import Err, Ok
from slseed.output.console import MockConsole
from slseed.services.release.cutover import (
    build_cutover_config,
    cutover,
    cutover_with_retry,
    describe_distribution,
    invalidate,
    wait_for_deployed,
)
from slseed.services.release.model import DeployTarget

TARGET = DeployTarget(bucket="site-bucket", distribution_id="E1", region="us-east-1")

BASE_CONFIG: dict[str, object] = {
    "CallerReference": "ref",
    "Comment": "",
    "Enabled": True,
    "DefaultRootObject": "",
    "Origins": {
        "Quantity": 1,
        "Items": [
            {
                "Id": "S3-site-bucket/v1.0.0",
                "DomainName": "site-bucket.s3.amazonaws.com",
                "OriginPath": "/v1.0.0",
                "S3OriginConfig": {"OriginAccessIdentity": "origin-access-identity/cloudfront/X"},
            }
        ],
    },
    "DefaultCacheBehavior": {
        "TargetOriginId": "S3-site-bucket/v1.0.0",
        "ViewerProtocolPolicy": "redirect-to-https",
    },
}


def _conflict() -> ClientError:
    return ClientError(
        {"Error": {"Code": "PreconditionFailed", "Message": "etag mismatch"}},
        "UpdateDistribution",
    )


class FakeCloudFront:
    def __init__(self, *, conflicts: int = 0, status: str = "InProgress") -> None:
        self.config = copy.deepcopy(BASE_CONFIG)
        self.etag_counter = 0
        self.conflicts = conflicts
        self.status = status
        self.updates: list[dict[str, object]] = []
        self.invalidations: list[dict[str, object]] = []
        self.invalidation_error: ClientError | None = None
        self.get_calls = 0

    def get_distribution_config(self, Id: str) -> dict[str, object]:
        self.get_calls += 1
        self.etag_counter += 1
        return {
            "ETag": f"ETAG{self.etag_counter}",
            "DistributionConfig": copy.deepcopy(self.config),
        }

    def update_distribution(self, **params: object) -> dict[str, object]:
        self.updates.append(params)
        if self.conflicts > 0:
            self.conflicts -= 1
            raise _conflict()
        return {"Distribution": {"Id": params["Id"], "Status": "InProgress"}, "ETag": "NEW"}

    def create_invalidation(self, **params: object) -> dict[str, object]:
        if self.invalidation_error is not None:
            raise self.invalidation_error
        self.invalidations.append(params)
        return {"Invalidation": {"Id": "I123", "Status": "InProgress"}}

    def get_distribution(self, Id: str) -> dict[str, object]:
        return {
            "Distribution": {
                "Id": Id,
                "Status": self.status,
                "DomainName": "d111.cloudfront.net",
                "DistributionConfig": {"Aliases": {"Quantity": 1, "Items": ["app.example.com"]}},
            }
        }


class TestBuildCutoverConfig:
    def test_rewrites_origin_and_behavior(self) -> None:
        result = build_cutover_config(BASE_CONFIG, bucket="site-bucket", version="1.1.0")

        assert isinstance(result, Ok)
        updated = result.value
        assert updated["DefaultRootObject"] == "index.html"
        origins = updated["Origins"]
        assert isinstance(origins, dict)
        assert origins["Quantity"] == 1
        origin = origins["Items"][0]
        assert origin["DomainName"] == "site-bucket.s3.amazonaws.com"
        assert origin["Id"] == "S3-site-bucket/v1.1.0"
        assert origin["OriginPath"] == "/v1.1.0"
        assert origin["S3OriginConfig"] == {
            "OriginAccessIdentity": "origin-access-identity/cloudfront/X"
        }
        behavior = updated["DefaultCacheBehavior"]
        assert isinstance(behavior, dict)
        assert behavior["TargetOriginId"] == "S3-site-bucket/v1.1.0"
        assert behavior["ViewerProtocolPolicy"] == "redirect-to-https"

    def test_input_not_mutated(self) -> None:
        before = copy.deepcopy(BASE_CONFIG)
        build_cutover_config(BASE_CONFIG, bucket="other", version="9.9.9")
        assert BASE_CONFIG == before

    def test_multiple_origins_rejected(self) -> None:
        config = copy.deepcopy(BASE_CONFIG)
        origins = config["Origins"]
        assert isinstance(origins, dict)
        origins["Items"] = [origins["Items"][0], {"Id": "api", "DomainName": "api.example.com"}]
        origins["Quantity"] = 2

        result = build_cutover_config(config, bucket="site-bucket", version="1.1.0")

        assert isinstance(result, Err)
        assert result.error.kind == "invalid_input"


class TestCutover:
    def test_updates_with_fetched_etag(self) -> None:
        cf = FakeCloudFront()

        result = cutover(cf, TARGET, "1.1.0")

        assert isinstance(result, Ok)
        assert result.value.origin_path == "/v1.1.0"
        assert result.value.origin_id == "S3-site-bucket/v1.1.0"
        assert cf.updates[0]["IfMatch"] == "ETAG1"
        assert cf.updates[0]["Id"] == "E1"

    def test_conflict(self) -> None:
        result = cutover(FakeCloudFront(conflicts=1), TARGET, "1.1.0")
        assert isinstance(result, Err)
        assert result.error.kind == "cutover_conflict"

    def test_missing_distribution(self) -> None:
        target = DeployTarget(bucket="site-bucket", distribution_id=None, region="us-east-1")
        result = cutover(FakeCloudFront(), target, "1.1.0")
        assert isinstance(result, Err)
        assert result.error.kind == "invalid_input"

    def test_retry_refetches_token(self) -> None:
        cf = FakeCloudFront(conflicts=2)
        console = MockConsole()

        result = cutover_with_retry(cf, TARGET, "1.1.0", console=console, attempts=3)

        assert isinstance(result, Ok)
        assert cf.get_calls == 3
        assert [u["IfMatch"] for u in cf.updates] == ["ETAG1", "ETAG2", "ETAG3"]

    def test_retry_gives_up(self) -> None:
        cf = FakeCloudFront(conflicts=5)

        result = cutover_with_retry(cf, TARGET, "1.1.0", console=MockConsole(), attempts=2)

        assert isinstance(result, Err)
        assert result.error.kind == "cutover_conflict"
        assert len(cf.updates) == 2


class TestInvalidation:
    def test_invalidate_all_paths(self) -> None:
        cf = FakeCloudFront()

        result = invalidate(cf, "E1")

        assert result == Ok("I123")
        batch = cf.invalidations[0]["InvalidationBatch"]
        assert isinstance(batch, dict)
        assert batch["Paths"] == {"Quantity": 1, "Items": ["/*"]}
        assert str(batch["CallerReference"]).startswith("slseed-")

    def test_invalidate_failure(self) -> None:
        cf = FakeCloudFront()
        cf.invalidation_error = ClientError(
            {"Error": {"Code": "TooManyInvalidationsInProgress", "Message": "slow down"}},
            "CreateInvalidation",
        )
        result = invalidate(cf, "E1")
        assert isinstance(result, Err)
        assert result.error.kind == "storage_unavailable"


class TestDistribution:
    def test_describe(self) -> None:
        result = describe_distribution(FakeCloudFront(status="Deployed"), "E1")
        assert isinstance(result, Ok)
        assert result.value.domain_name == "d111.cloudfront.net"
        assert result.value.urls == ("https://d111.cloudfront.net", "https://app.example.com")

    def test_wait_for_deployed(self) -> None:
        assert wait_for_deployed(FakeCloudFront(status="Deployed"), "E1", interval=0) == Ok(True)

    def test_wait_cancelled(self) -> None:
        cancel = threading.Event()
        cancel.set()
        result = wait_for_deployed(FakeCloudFront(), "E1", interval=0, cancel=cancel)
        assert result == Ok(False)
