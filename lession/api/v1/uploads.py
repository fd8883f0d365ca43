from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from lession.api.deps import get_asset_service
from lession.domain.asset import CompleteUploadParams, CreateUploadParams, UploadIdentifier
from lession.schemas.asset import (
    AssetPublic,
    CompleteUploadRequest,
    CompleteUploadResponse,
    CreateUploadRequest,
    CreateUploadResponse,
    UploadSessionPublic,
)
from lession.services.asset_service import AssetService

router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.post("", response_model=CreateUploadResponse, status_code=201)
async def create_upload(
    body: CreateUploadRequest,
    service: AssetService = Depends(get_asset_service),
) -> CreateUploadResponse:
    res = await service.create_upload(
        CreateUploadParams(
            type=body.type,
            original_filename=body.original_filename.strip(),
            mime_type=body.mime_type.strip(),
            content_length=body.content_length,
        )
    )
    return CreateUploadResponse(
        session=UploadSessionPublic.model_validate(res.session),
        asset=AssetPublic.model_validate(res.asset),
    )


@router.get("/lookup", response_model=UploadSessionPublic)
async def get_upload_session(
    upload_id: UUID | None = Query(default=None),
    asset_key: str = Query(default=""),
    service: AssetService = Depends(get_asset_service),
) -> UploadSessionPublic:
    session = await service.get_upload_session(UploadIdentifier(upload_id=upload_id, asset_key=asset_key.strip()))
    return UploadSessionPublic.model_validate(session)


@router.post("/complete", response_model=CompleteUploadResponse)
async def complete_upload(
    body: CompleteUploadRequest,
    service: AssetService = Depends(get_asset_service),
) -> CompleteUploadResponse:
    res = await service.complete_upload(
        CompleteUploadParams(
            identifier=UploadIdentifier(upload_id=body.upload_id, asset_key=body.asset_key.strip()),
            checksum=body.checksum,
            content_length=body.content_length,
        )
    )
    return CompleteUploadResponse(
        asset=AssetPublic.model_validate(res.asset),
        session=UploadSessionPublic.model_validate(res.session),
    )
