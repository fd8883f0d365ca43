from __future__ import annotations

from datetime import datetime, timedelta
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from lession.domain.asset import AssetStatus, AssetType, UploadProtocol, UploadStatus


class CreateUploadRequest(BaseModel):
    # Reject unknown fields so clients fail fast if they send typo keys.
    model_config = ConfigDict(extra="forbid")

    type: AssetType
    original_filename: str = Field(max_length=255)
    mime_type: str = Field(max_length=255)
    content_length: int = 0


class CompleteUploadRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    upload_id: UUID | None = None
    asset_key: str = ""
    checksum: str = ""
    content_length: int = 0


class UploadTargetPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    method: str
    url: str
    headers: dict[str, str]
    form_fields: dict[str, str]


class UploadSessionPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    asset_key: str
    type: AssetType
    protocol: UploadProtocol
    status: UploadStatus
    target: UploadTargetPublic
    original_filename: str
    mime_type: str
    content_length: int
    expires_at: datetime
    created_at: datetime
    updated_at: datetime


class AssetPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    asset_key: str
    type: AssetType
    status: AssetStatus
    original_filename: str
    mime_type: str
    filesize: int
    duration: timedelta
    playback_url: str
    created_at: datetime
    updated_at: datetime
    ready_at: datetime | None

    @field_serializer("duration")
    def _duration_seconds(self, v: timedelta) -> float:
        return v.total_seconds()


class CreateUploadResponse(BaseModel):
    session: UploadSessionPublic
    asset: AssetPublic


class CompleteUploadResponse(BaseModel):
    asset: AssetPublic
    session: UploadSessionPublic


class AssetListResponse(BaseModel):
    assets: list[AssetPublic]
    next_page_token: str


class AssetPatch(BaseModel):
    """Mutable asset attributes; unset fields carry zero values."""

    model_config = ConfigDict(extra="forbid")

    status: AssetStatus = AssetStatus.UNSPECIFIED
    playback_url: str = ""
    mime_type: str = ""
    filesize: int = 0
    original_filename: str = ""
    duration: timedelta = timedelta(0)


class UpdateAssetRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    asset: AssetPatch
    update_mask: list[str] = Field(default_factory=list)


class DeleteAssetResponse(BaseModel):
    asset: AssetPublic | None = None
