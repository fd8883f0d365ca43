from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable
from uuid import UUID, uuid4

from lession.core.errors import (
    NotFoundError,
    UploadIdentifierRequiredError,
    UploadInvalidStateError,
    ValidationError,
)
from lession.domain.asset import (
    COMPLETABLE_UPLOAD_STATUSES,
    Asset,
    AssetListFilter,
    AssetRepository,
    AssetStatus,
    AssetType,
    CompleteUploadParams,
    CompleteUploadResult,
    CreateUploadParams,
    CreateUploadResult,
    ProviderCompleteUploadParams,
    ProviderCreateUploadParams,
    UploadIdentifier,
    UploadProvider,
    UploadSession,
    UploadStatus,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AssetService:
    """Upload lifecycle for assets.

    The provider is authoritative for asset keys, upload protocols and
    playback details; the repository owns durability. The service only
    validates input and drives the session/asset state machine:

      session: awaiting_upload -> uploading -> completed
      asset:   pending -> ready (on completion)
    """

    def __init__(
        self,
        repo: AssetRepository,
        provider: UploadProvider,
        *,
        now: Callable[[], datetime] | None = None,
    ):
        self._repo = repo
        self._provider = provider
        self._now = now or _utcnow

    def _clock(self) -> datetime:
        return self._now().astimezone(timezone.utc)

    async def create_upload(self, params: CreateUploadParams) -> CreateUploadResult:
        _validate_create_upload_params(params)

        provider_res = await self._provider.create_upload(
            ProviderCreateUploadParams(
                type=params.type,
                original_filename=params.original_filename,
                mime_type=params.mime_type,
                content_length=params.content_length,
            )
        )

        now = self._clock()
        session = UploadSession(
            id=uuid4(),
            asset_key=provider_res.asset_key,
            type=params.type,
            protocol=provider_res.protocol,
            status=UploadStatus.AWAITING_UPLOAD,
            target=provider_res.target,
            original_filename=params.original_filename,
            mime_type=params.mime_type,
            content_length=params.content_length,
            expires_at=provider_res.expires_at,
            created_at=now,
            updated_at=now,
        )

        asset_status = provider_res.estimated_status
        if asset_status == AssetStatus.UNSPECIFIED:
            asset_status = AssetStatus.PENDING

        asset = Asset(
            id=uuid4(),
            asset_key=provider_res.asset_key,
            type=params.type,
            status=asset_status,
            original_filename=params.original_filename,
            mime_type=params.mime_type,
            filesize=params.content_length,
            created_at=now,
            updated_at=now,
        )

        await self._repo.save_new_upload(session, asset)
        logger.info("upload session %s created for asset %s", session.id, session.asset_key)
        return CreateUploadResult(session=session, asset=asset)

    async def get_upload_session(self, identifier: UploadIdentifier) -> UploadSession:
        return await self._lookup_upload_session(identifier)

    async def complete_upload(self, params: CompleteUploadParams) -> CompleteUploadResult:
        if params.content_length < 0:
            raise ValidationError("content length must be non-negative")

        session = await self._lookup_upload_session(params.identifier)
        if session.status not in COMPLETABLE_UPLOAD_STATUSES:
            logger.warning(
                "rejecting completion of upload session %s in status %s",
                session.id,
                session.status.value,
            )
            raise UploadInvalidStateError(
                f"upload session {session.id} cannot complete from status {session.status.value}"
            )

        provider_res = await self._provider.complete_upload(
            ProviderCompleteUploadParams(
                asset_key=session.asset_key,
                checksum=params.checksum,
                content_length=params.content_length,
            )
        )

        now = self._clock()
        session = replace(session, status=UploadStatus.COMPLETED, updated_at=now)

        asset = await self._repo.get_asset_by_key(session.asset_key)
        asset = replace(
            asset,
            status=AssetStatus.READY,
            playback_url=provider_res.playback_url,
            duration=provider_res.duration,
            filesize=params.content_length,
            updated_at=now,
            ready_at=now,
        )

        await self._repo.save_completed_upload(session, asset)
        logger.info("upload session %s completed; asset %s ready", session.id, asset.id)
        return CompleteUploadResult(asset=asset, session=session)

    async def get_asset(self, asset_id: UUID | None) -> Asset:
        if asset_id is None:
            raise ValidationError("asset id required")
        return await self._repo.get_asset_by_id(asset_id)

    async def get_asset_by_key(self, asset_key: str) -> Asset:
        if not asset_key:
            raise ValidationError("asset key required")
        return await self._repo.get_asset_by_key(asset_key)

    async def list_assets(self, filter: AssetListFilter) -> tuple[list[Asset], str]:
        if filter.page_size < 0:
            raise ValidationError("page size must be non-negative")
        return await self._repo.list_assets(filter)

    async def update_asset(self, asset: Asset) -> Asset:
        if asset.id is None:
            raise ValidationError("asset id required")
        now = self._clock()
        asset = replace(asset, updated_at=now)
        if asset.status == AssetStatus.READY and asset.ready_at is None:
            asset.ready_at = now
        return await self._repo.update_asset(asset)

    async def delete_asset(self, asset_id: UUID | None, *, hard_delete: bool = False) -> Asset | None:
        if asset_id is None:
            raise ValidationError("asset id required")
        deleted = await self._repo.delete_asset(asset_id, hard_delete=hard_delete)
        logger.info("asset %s %s", asset_id, "removed" if hard_delete else "marked deleted")
        return deleted

    async def _lookup_upload_session(self, identifier: UploadIdentifier) -> UploadSession:
        if identifier.upload_id is None and not identifier.asset_key:
            raise UploadIdentifierRequiredError()

        if identifier.upload_id is not None:
            try:
                return await self._repo.get_upload_session_by_id(identifier.upload_id)
            except NotFoundError:
                # Fall back to the asset key when the caller supplied one.
                if not identifier.asset_key:
                    raise

        return await self._repo.get_upload_session_by_asset_key(identifier.asset_key)


def _validate_create_upload_params(params: CreateUploadParams) -> None:
    if params.type == AssetType.UNSPECIFIED:
        raise ValidationError("asset type required")
    if not params.original_filename:
        raise ValidationError("original filename required")
    if not params.mime_type:
        raise ValidationError("mime type required")
    if params.content_length < 0:
        raise ValidationError("content length must be non-negative")
