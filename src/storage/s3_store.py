# src/storage/s3_store.py — v2
"""S3-compatible object store (AWS S3, MinIO, Ceph, R2, ...).

Requires 'boto3' package: pip install boto3.
"""

from __future__ import annotations

import logging
from pathlib import Path

from tiercache.core.models import CandidateObject
from tiercache.storage.base_object_store import BaseObjectStore

logger = logging.getLogger(__name__)


class S3ObjectStore(BaseObjectStore):
    """List and download objects from S3-compatible storage."""

    def __init__(
        self,
        endpoint_url: str | None = None,
        region: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        session_token: str | None = None,
        timeout_seconds: float = 60.0,
        max_attempts: int = 3,
    ) -> None:
        """Initialize the S3 client.

        Args:
            endpoint_url: Custom endpoint for MinIO/compatible storage.
            region: AWS region (optional, uses boto3 default if not set).
            access_key: Access key id (optional, uses boto3 credential chain).
            secret_key: Secret access key.
            session_token: Session token for temporary credentials.
            timeout_seconds: Connect and read timeout per request.
            max_attempts: Total attempts per request including retries.
        """
        try:
            import boto3
            from botocore.config import Config
        except ImportError as e:
            raise ImportError(
                "boto3 package required for S3 storage: pip install boto3"
            ) from e

        kwargs: dict = {
            "config": Config(
                connect_timeout=timeout_seconds,
                read_timeout=timeout_seconds,
                retries={"max_attempts": max_attempts, "mode": "standard"},
            ),
        }
        if region:
            kwargs["region_name"] = region
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        if access_key and secret_key:
            kwargs["aws_access_key_id"] = access_key
            kwargs["aws_secret_access_key"] = secret_key
            if session_token:
                kwargs["aws_session_token"] = session_token

        self._s3 = boto3.client("s3", **kwargs)

    async def list_objects(self, bucket: str, prefix: str) -> list[CandidateObject]:
        """List objects under a prefix, following continuation tokens."""
        items: list[CandidateObject] = []
        kwargs: dict = {"Bucket": bucket, "Prefix": prefix}
        while True:
            response = self._s3.list_objects_v2(**kwargs)
            for obj in response.get("Contents", []):
                items.append(
                    CandidateObject(
                        name=obj["Key"],
                        key=obj["Key"],
                        size=obj.get("Size", 0),
                        last_modified=obj.get("LastModified"),
                    )
                )
            if not response.get("IsTruncated"):
                break
            kwargs["ContinuationToken"] = response["NextContinuationToken"]

        logger.debug("S3 list: s3://%s/%s (%d objects)", bucket, prefix, len(items))
        return items

    async def download(self, bucket: str, name: str, dest: Path) -> None:
        """Download s3://bucket/name to dest."""
        dest.parent.mkdir(parents=True, exist_ok=True)
        self._s3.download_file(bucket, name, str(dest))
        logger.debug("S3 download: s3://%s/%s -> %s", bucket, name, dest)
