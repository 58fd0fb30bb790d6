from __future__ import annotations
"""Object store access: delimited listing and presigned GET URLs."""
from datetime import datetime, timedelta, timezone
import logging
from typing import Callable, Optional, Protocol

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from .models import ObjectSummary, SignedUrl, StorePage
from .settings import SigningConfig

LOGGER = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StoreError(RuntimeError):
    """Raised when the object store cannot be reached or refuses a call."""


class ObjectStore(Protocol):
    def list_one_page(
        self,
        bucket: str,
        prefix: str,
        delimiter: str,
        continuation_token: Optional[str] = None,
    ) -> StorePage:
        ...

    def sign_get(self, bucket: str, key: str, ttl: int) -> SignedUrl:
        ...


class Boto3ObjectStore:
    """S3 (or S3-compatible) store backed by a single boto3 client."""

    def __init__(
        self,
        config: SigningConfig,
        client_factory: Callable[..., object] | None = None,
        clock: Clock | None = None,
    ):
        self._client_factory = client_factory or boto3.client
        self._clock = clock or utc_now
        self._page_size = config.page_size
        self._client = self._create_client(config)

    def _create_client(self, config: SigningConfig):
        params: dict[str, object] = {"config": Config(signature_version="s3v4")}
        if config.endpoint_url:
            params["endpoint_url"] = config.endpoint_url
        if config.region:
            params["region_name"] = config.region
        if config.access_key and config.secret_key:
            params["aws_access_key_id"] = config.access_key
            params["aws_secret_access_key"] = config.secret_key
        return self._client_factory("s3", **params)

    def list_one_page(
        self,
        bucket: str,
        prefix: str,
        delimiter: str,
        continuation_token: Optional[str] = None,
    ) -> StorePage:
        """Return one level of children under ``prefix``.

        Raises:
            StoreError: when the listing call fails for any reason.
        """

        list_params = {"Bucket": bucket, "Delimiter": delimiter, "MaxKeys": self._page_size}
        if prefix:
            list_params["Prefix"] = prefix
        if continuation_token:
            list_params["ContinuationToken"] = continuation_token

        LOGGER.debug("list_objects_v2 %s", list_params)
        try:
            response = self._client.list_objects_v2(**list_params)
        except (ClientError, BotoCoreError) as exc:
            raise StoreError(f"Listing s3://{bucket}/{prefix} failed: {exc}") from exc

        prefixes = [common["Prefix"] for common in response.get("CommonPrefixes", []) if common.get("Prefix")]
        objects = [
            ObjectSummary(
                key=obj["Key"],
                size=obj.get("Size"),
                last_modified=obj.get("LastModified"),
            )
            for obj in response.get("Contents", [])
            if obj.get("Key") is not None
        ]
        next_token = response.get("NextContinuationToken") if response.get("IsTruncated") else None
        return StorePage(common_prefixes=prefixes, objects=objects, next_token=next_token)

    def sign_get(self, bucket: str, key: str, ttl: int) -> SignedUrl:
        """Create a presigned GET URL valid for ``ttl`` seconds."""

        if ttl <= 0:
            raise ValueError("ttl must be greater than zero")
        # Reported expiry must not be later than the signature's own.
        expires_at = self._clock() + timedelta(seconds=ttl)
        try:
            url = self._client.generate_presigned_url(
                "get_object",
                Params={"Bucket": bucket, "Key": key},
                ExpiresIn=ttl,
            )
        except (ClientError, BotoCoreError) as exc:
            raise StoreError(f"Signing s3://{bucket}/{key} failed: {exc}") from exc
        return SignedUrl(url=url, expires_at=expires_at)
