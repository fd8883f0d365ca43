from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable
from uuid import uuid4

from lession.domain.asset import (
    AssetStatus,
    ProviderCompleteUploadParams,
    ProviderCompleteUploadResult,
    ProviderCreateUploadParams,
    ProviderCreateUploadResult,
    UploadProtocol,
    UploadTarget,
)

DEFAULT_UPLOAD_BASE = "https://fake-upload.example.com"
DEFAULT_PLAYBACK_BASE = "https://fake-playback.example.com"
DEFAULT_EXPIRY = timedelta(minutes=15)

_BYTES_PER_MINUTE = 5 * 1024 * 1024


def _normalize_base(base: str | None, fallback: str) -> str:
    if not base:
        return fallback
    return base.rstrip("/")


class FakeUploadProvider:
    """Simulates a storage vendor: issues presigned-PUT style targets and
    fabricates playback details on completion. Nothing is stored."""

    def __init__(
        self,
        upload_base: str | None = None,
        playback_base: str | None = None,
        expiry: timedelta | None = None,
        *,
        now: Callable[[], datetime] | None = None,
    ):
        self._upload_base = _normalize_base(upload_base, DEFAULT_UPLOAD_BASE)
        self._playback_base = _normalize_base(playback_base, DEFAULT_PLAYBACK_BASE)
        self._expiry = expiry if expiry and expiry > timedelta(0) else DEFAULT_EXPIRY
        self._now = now or (lambda: datetime.now(timezone.utc))

    async def create_upload(self, params: ProviderCreateUploadParams) -> ProviderCreateUploadResult:
        asset_key = str(uuid4())
        return ProviderCreateUploadResult(
            asset_key=asset_key,
            protocol=UploadProtocol.PRESIGNED_PUT,
            target=UploadTarget(
                method="PUT",
                url=f"{self._upload_base}/{asset_key}",
                headers={
                    "X-Fake-Provider": "true",
                    "Content-Type": params.mime_type,
                },
            ),
            expires_at=(self._now() + self._expiry).astimezone(timezone.utc),
            estimated_status=AssetStatus.PENDING,
        )

    async def complete_upload(self, params: ProviderCompleteUploadParams) -> ProviderCompleteUploadResult:
        # Naive duration estimate: one minute per 5 MiB, at least one minute.
        minutes = max(params.content_length // _BYTES_PER_MINUTE, 1)
        return ProviderCompleteUploadResult(
            playback_url=f"{self._playback_base}/{params.asset_key}/master.m3u8",
            duration=timedelta(minutes=minutes),
        )
