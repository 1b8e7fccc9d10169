# src/storage/store_factory.py — v1
"""Factory: instantiate the object store from action inputs."""

from __future__ import annotations

from tiercache.config.settings import Settings
from tiercache.storage.base_object_store import BaseObjectStore


def endpoint_url(settings: Settings) -> str | None:
    """Build the endpoint URL from endpoint/port/insecure inputs.

    A full URL in 'endpoint' is used as given. The AWS default endpoint
    yields None so boto3 resolves the regional endpoint itself.
    """
    endpoint = settings.endpoint.strip()
    if not endpoint or endpoint == "s3.amazonaws.com":
        return None
    if "://" in endpoint:
        return endpoint
    scheme = "http" if settings.insecure else "https"
    if settings.port:
        return f"{scheme}://{endpoint}:{settings.port}"
    return f"{scheme}://{endpoint}"


def create_object_store(settings: Settings) -> BaseObjectStore:
    """Create the S3-compatible store for the configured endpoint.

    Args:
        settings: Action inputs (endpoint, credentials, timeouts).

    Returns:
        BaseObjectStore instance.
    """
    from tiercache.storage.s3_store import S3ObjectStore

    return S3ObjectStore(
        endpoint_url=endpoint_url(settings),
        region=settings.region or None,
        access_key=settings.access_key or None,
        secret_key=settings.secret_key or None,
        session_token=settings.session_token or None,
        timeout_seconds=settings.timeout_seconds,
        max_attempts=settings.max_attempts,
    )
