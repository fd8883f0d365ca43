from __future__ import annotations

import asyncio
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Callable
from uuid import uuid4

import boto3
from botocore.exceptions import ClientError

from lession.core.settings import Settings
from lession.domain.asset import (
    AssetStatus,
    ProviderCompleteUploadParams,
    ProviderCompleteUploadResult,
    ProviderCreateUploadParams,
    ProviderCreateUploadResult,
    UploadProtocol,
    UploadTarget,
)


class UploadProviderError(RuntimeError):
    pass


_FILENAME_SAFE_RE = re.compile(r"[^A-Za-z0-9._-]+")


def _sanitize_filename(name: str) -> str:
    # Strip paths and normalize whitespace/special chars.
    base = (name or "").split("/")[-1].split("\\")[-1].strip()
    base = _FILENAME_SAFE_RE.sub("_", base)
    base = base.strip("._-")
    if not base:
        return "file"
    # Avoid absurdly long keys.
    return base[:120]


def _s3_client(settings: Settings):
    kwargs: dict[str, Any] = {"service_name": "s3", "region_name": settings.s3_region}
    if settings.s3_endpoint_url:
        kwargs["endpoint_url"] = settings.s3_endpoint_url
    if settings.s3_access_key_id and settings.s3_secret_access_key:
        kwargs["aws_access_key_id"] = settings.s3_access_key_id
        kwargs["aws_secret_access_key"] = settings.s3_secret_access_key
    return boto3.client(**kwargs)


class S3UploadProvider:
    """Presigned PUT uploads into an S3 (or S3-compatible) bucket.

    The object key doubles as the asset key. Completion checks that the object
    exists with the reported size; duration is not probed here and stays zero.
    """

    def __init__(self, settings: Settings, *, client=None, now: Callable[[], datetime] | None = None):
        if not settings.s3_bucket:
            raise ValueError("S3 is not configured (missing S3_BUCKET)")
        self._settings = settings
        self._bucket = settings.s3_bucket
        self._client = client
        self._now = now or (lambda: datetime.now(timezone.utc))

    @property
    def client(self):
        if self._client is None:
            self._client = _s3_client(self._settings)
        return self._client

    def _playback_url(self, key: str) -> str:
        base = (self._settings.playback_base_url or "").rstrip("/")
        if base:
            return f"{base}/{key}"
        return self.client.generate_presigned_url(
            ClientMethod="get_object",
            Params={"Bucket": self._bucket, "Key": key},
            ExpiresIn=int(self._settings.upload_expires_seconds),
        )

    async def create_upload(self, params: ProviderCreateUploadParams) -> ProviderCreateUploadResult:
        key = f"assets/{params.type.value}/{uuid4()}_{_sanitize_filename(params.original_filename)}"
        content_type = (params.mime_type or "").strip() or "application/octet-stream"
        expires_in = int(self._settings.upload_expires_seconds)

        upload_url = await asyncio.to_thread(
            self.client.generate_presigned_url,
            ClientMethod="put_object",
            Params={
                "Bucket": self._bucket,
                "Key": key,
                "ContentType": content_type,
            },
            ExpiresIn=expires_in,
        )

        return ProviderCreateUploadResult(
            asset_key=key,
            protocol=UploadProtocol.PRESIGNED_PUT,
            target=UploadTarget(method="PUT", url=upload_url, headers={"Content-Type": content_type}),
            expires_at=(self._now() + timedelta(seconds=expires_in)).astimezone(timezone.utc),
            estimated_status=AssetStatus.PENDING,
        )

    async def complete_upload(self, params: ProviderCompleteUploadParams) -> ProviderCompleteUploadResult:
        try:
            head = await asyncio.to_thread(self.client.head_object, Bucket=self._bucket, Key=params.asset_key)
        except ClientError as e:
            code = (e.response or {}).get("Error", {}).get("Code")
            if code in {"NoSuchKey", "404", "NotFound"}:
                raise UploadProviderError(f"uploaded object {params.asset_key!r} not found") from e
            raise

        stored_length = int(head.get("ContentLength") or 0)
        if params.content_length and stored_length != params.content_length:
            raise UploadProviderError(
                f"uploaded object {params.asset_key!r} has {stored_length} bytes, expected {params.content_length}"
            )

        return ProviderCompleteUploadResult(
            playback_url=await asyncio.to_thread(self._playback_url, params.asset_key),
            duration=timedelta(0),
        )
