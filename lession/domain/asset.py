from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Protocol
from uuid import UUID


class AssetType(str, Enum):
    UNSPECIFIED = "unspecified"
    VIDEO = "video"
    AUDIO = "audio"


class AssetStatus(str, Enum):
    UNSPECIFIED = "unspecified"
    PENDING = "pending"
    PROCESSING = "processing"
    READY = "ready"
    FAILED = "failed"
    DELETED = "deleted"


class UploadProtocol(str, Enum):
    UNSPECIFIED = "unspecified"
    PRESIGNED_PUT = "presigned_put"
    PRESIGNED_POST = "presigned_post"
    MULTIPART = "multipart"
    TUS = "tus"


class UploadStatus(str, Enum):
    UNSPECIFIED = "unspecified"
    AWAITING_UPLOAD = "awaiting_upload"
    UPLOADING = "uploading"
    COMPLETED = "completed"
    EXPIRED = "expired"
    FAILED = "failed"


# Sessions in these states may still be completed.
COMPLETABLE_UPLOAD_STATUSES = frozenset({UploadStatus.AWAITING_UPLOAD, UploadStatus.UPLOADING})


@dataclass
class UploadTarget:
    """Vendor-issued instructions for the client-side transfer."""

    method: str = ""
    url: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    form_fields: dict[str, str] = field(default_factory=dict)


@dataclass
class Asset:
    id: UUID
    asset_key: str
    type: AssetType
    status: AssetStatus
    original_filename: str
    mime_type: str
    filesize: int
    created_at: datetime
    updated_at: datetime
    duration: timedelta = timedelta(0)
    playback_url: str = ""
    ready_at: datetime | None = None


@dataclass
class UploadSession:
    id: UUID
    asset_key: str
    type: AssetType
    protocol: UploadProtocol
    status: UploadStatus
    target: UploadTarget
    original_filename: str
    mime_type: str
    content_length: int
    expires_at: datetime
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class UploadIdentifier:
    """Addresses an upload session by id, by asset key, or both."""

    upload_id: UUID | None = None
    asset_key: str = ""


@dataclass(frozen=True)
class CreateUploadParams:
    type: AssetType
    original_filename: str
    mime_type: str
    content_length: int


@dataclass
class CreateUploadResult:
    session: UploadSession
    asset: Asset


@dataclass(frozen=True)
class CompleteUploadParams:
    identifier: UploadIdentifier
    checksum: str = ""
    content_length: int = 0


@dataclass
class CompleteUploadResult:
    asset: Asset
    session: UploadSession


@dataclass
class AssetListFilter:
    page_size: int = 0
    page_token: str = ""
    statuses: list[AssetStatus] = field(default_factory=list)
    types: list[AssetType] = field(default_factory=list)
    asset_keys: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ProviderCreateUploadParams:
    type: AssetType
    original_filename: str
    mime_type: str
    content_length: int


@dataclass
class ProviderCreateUploadResult:
    asset_key: str
    protocol: UploadProtocol
    target: UploadTarget
    expires_at: datetime
    estimated_status: AssetStatus = AssetStatus.UNSPECIFIED


@dataclass(frozen=True)
class ProviderCompleteUploadParams:
    asset_key: str
    checksum: str
    content_length: int


@dataclass
class ProviderCompleteUploadResult:
    playback_url: str
    duration: timedelta = timedelta(0)


class AssetRepository(Protocol):
    """Persistence contract for assets and upload sessions.

    Lookups raise ``NotFoundError`` when the row does not exist. The two
    ``save_*_upload`` methods write the session and its asset in one
    transaction.
    """

    async def save_new_upload(self, session: UploadSession, asset: Asset) -> None: ...

    async def save_completed_upload(self, session: UploadSession, asset: Asset) -> None: ...

    async def get_upload_session_by_id(self, upload_id: UUID) -> UploadSession: ...

    async def get_upload_session_by_asset_key(self, asset_key: str) -> UploadSession: ...

    async def update_asset(self, asset: Asset) -> Asset: ...

    async def get_asset_by_id(self, asset_id: UUID) -> Asset: ...

    async def get_asset_by_key(self, asset_key: str) -> Asset: ...

    async def list_assets(self, filter: AssetListFilter) -> tuple[list[Asset], str]: ...

    async def delete_asset(self, asset_id: UUID, *, hard_delete: bool) -> Asset | None: ...


class UploadProvider(Protocol):
    """Vendor-specific upload orchestration."""

    async def create_upload(self, params: ProviderCreateUploadParams) -> ProviderCreateUploadResult: ...

    async def complete_upload(self, params: ProviderCompleteUploadParams) -> ProviderCompleteUploadResult: ...
