"""Course thumbnail storage on an S3-compatible bucket."""

from __future__ import annotations

import io
import uuid
from dataclasses import dataclass
from functools import lru_cache
from typing import Protocol

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from maguru.core.config import Settings, get_settings

logger = structlog.get_logger()

ALLOWED_THUMBNAIL_TYPES: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


class StorageError(Exception):
    """Raised when a thumbnail cannot be stored."""


@dataclass(frozen=True, slots=True)
class ThumbnailUpload:
    filename: str
    content_type: str
    content: bytes


def validate_thumbnail(upload: ThumbnailUpload, *, max_bytes: int) -> str | None:
    """Return a human readable problem with ``upload``, or ``None`` if acceptable."""
    if upload.content_type not in ALLOWED_THUMBNAIL_TYPES:
        allowed = ", ".join(ALLOWED_THUMBNAIL_TYPES)
        return f"Unsupported thumbnail type '{upload.content_type}'. Allowed: {allowed}"
    if not upload.content:
        return "Thumbnail file is empty"
    if len(upload.content) > max_bytes:
        return f"Thumbnail exceeds maximum size of {max_bytes // (1024 * 1024)} MB"
    return None


def thumbnail_key(content_type: str) -> str:
    extension = ALLOWED_THUMBNAIL_TYPES.get(content_type, "bin")
    return f"course-{uuid.uuid4().hex}.{extension}"


class ThumbnailStorage(Protocol):
    def upload(self, upload: ThumbnailUpload) -> str:
        """Store the thumbnail and return its public URL."""
        ...


class S3ThumbnailStorage:
    """Stores thumbnails in the configured bucket via boto3."""

    def __init__(self, settings: Settings) -> None:
        self.bucket_name = settings.storage_bucket
        self.public_base_url = settings.storage_public_base_url
        self.region = settings.aws_region

        if settings.aws_access_key_id and settings.aws_secret_access_key:
            self.s3_client = boto3.client(
                "s3",
                aws_access_key_id=settings.aws_access_key_id,
                aws_secret_access_key=settings.aws_secret_access_key,
                region_name=self.region,
                endpoint_url=settings.storage_endpoint_url,
            )
            self.enabled = True
            logger.info("thumbnail_storage_initialized", bucket=self.bucket_name)
        else:
            self.s3_client = None
            self.enabled = False
            logger.warning("thumbnail_storage_disabled", reason="credentials not configured")

    def public_url(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{key}"
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{key}"

    def upload(self, upload: ThumbnailUpload) -> str:
        if not self.enabled or self.s3_client is None:
            raise StorageError("Thumbnail storage is not configured")

        key = thumbnail_key(upload.content_type)
        try:
            self.s3_client.upload_fileobj(
                io.BytesIO(upload.content),
                self.bucket_name,
                key,
                ExtraArgs={"ContentType": upload.content_type},
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("thumbnail_upload_failed", key=key, error=str(exc))
            raise StorageError(str(exc)) from exc

        logger.info("thumbnail_uploaded", key=key, size=len(upload.content))
        return self.public_url(key)


@lru_cache
def get_thumbnail_storage() -> ThumbnailStorage:
    return S3ThumbnailStorage(get_settings())
