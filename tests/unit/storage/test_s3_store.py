# tests/unit/storage/test_s3_store.py — v1
"""Tests for storage/s3_store.py — mocked S3 client."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from tiercache.storage.s3_store import S3ObjectStore


@pytest.fixture
def mock_s3_store():
    """Create S3ObjectStore with a mocked boto3 client holding paged listings."""
    storage: dict[str, bytes] = {
        "build-17/cache.tgz": b"a" * 17,
        "build-18/cache.tgz": b"b" * 18,
        "deploy-1/cache.tgz": b"c",
    }
    modified = datetime(2026, 3, 1, tzinfo=timezone.utc)

    mock_client = MagicMock()

    def list_objects_v2(Bucket, Prefix, ContinuationToken=None):
        keys = sorted(k for k in storage if k.startswith(Prefix))
        start = int(ContinuationToken or 0)
        page = keys[start:start + 1]
        response = {
            "Contents": [
                {"Key": k, "Size": len(storage[k]), "LastModified": modified} for k in page
            ],
            "IsTruncated": start + 1 < len(keys),
        }
        if response["IsTruncated"]:
            response["NextContinuationToken"] = str(start + 1)
        return response

    def download_file(Bucket, Key, Filename):
        with open(Filename, "wb") as f:
            f.write(storage[Key])

    mock_client.list_objects_v2 = MagicMock(side_effect=list_objects_v2)
    mock_client.download_file = download_file

    with patch("tiercache.storage.s3_store.S3ObjectStore.__init__", return_value=None):
        store = S3ObjectStore.__new__(S3ObjectStore)
        store._s3 = mock_client

    return store


class TestS3ObjectStore:
    @pytest.mark.asyncio
    async def test_list_follows_pages(self, mock_s3_store):
        items = await mock_s3_store.list_objects("bucket", "build-")
        assert [i.name for i in items] == ["build-17/cache.tgz", "build-18/cache.tgz"]
        assert items[0].size == 17
        assert items[0].last_modified.year == 2026
        assert mock_s3_store._s3.list_objects_v2.call_count == 2

    @pytest.mark.asyncio
    async def test_list_empty(self, mock_s3_store):
        assert await mock_s3_store.list_objects("bucket", "nothing-") == []

    @pytest.mark.asyncio
    async def test_download(self, mock_s3_store, tmp_path):
        dest = tmp_path / "sub" / "cache.tgz"
        await mock_s3_store.download("bucket", "deploy-1/cache.tgz", dest)
        assert dest.read_bytes() == b"c"

    @pytest.mark.asyncio
    async def test_errors_propagate(self, mock_s3_store):
        mock_s3_store._s3.list_objects_v2.side_effect = RuntimeError("NoSuchBucket")
        with pytest.raises(RuntimeError, match="NoSuchBucket"):
            await mock_s3_store.list_objects("bucket", "build-")


class TestS3ObjectStoreInit:
    def test_client_configuration(self):
        with patch("boto3.client") as client:
            S3ObjectStore(
                endpoint_url="http://minio:9000",
                region="eu-west-1",
                access_key="AK",
                secret_key="SK",
                session_token="ST",
                timeout_seconds=5,
                max_attempts=2,
            )
        kwargs = client.call_args.kwargs
        assert client.call_args.args == ("s3",)
        assert kwargs["endpoint_url"] == "http://minio:9000"
        assert kwargs["region_name"] == "eu-west-1"
        assert kwargs["aws_access_key_id"] == "AK"
        assert kwargs["aws_session_token"] == "ST"
        assert kwargs["config"].connect_timeout == 5

    def test_credential_chain_when_no_keys(self):
        with patch("boto3.client") as client:
            S3ObjectStore()
        assert "aws_access_key_id" not in client.call_args.kwargs

    def test_import_error_without_boto3(self):
        """Clear ImportError when boto3 is not available."""
        import sys
        boto3_mod = sys.modules.get("boto3")
        sys.modules["boto3"] = None  # type: ignore[assignment]
        try:
            with pytest.raises(ImportError, match="boto3"):
                S3ObjectStore()
        finally:
            if boto3_mod is not None:
                sys.modules["boto3"] = boto3_mod
            else:
                sys.modules.pop("boto3", None)
