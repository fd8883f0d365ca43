from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from lession.api.deps import get_asset_service
from lession.api.field_mask import ASSET_MASK_PATHS, apply_field_mask
from lession.domain.asset import AssetListFilter, AssetStatus, AssetType
from lession.schemas.asset import AssetListResponse, AssetPublic, DeleteAssetResponse, UpdateAssetRequest
from lession.services.asset_service import AssetService

router = APIRouter(prefix="/assets", tags=["assets"])


@router.get("", response_model=AssetListResponse)
async def list_assets(
    page_size: int = Query(default=0),
    page_token: str = Query(default=""),
    status: list[AssetStatus] = Query(default=[]),
    type: list[AssetType] = Query(default=[]),
    asset_key: list[str] = Query(default=[]),
    service: AssetService = Depends(get_asset_service),
) -> AssetListResponse:
    assets, next_token = await service.list_assets(
        AssetListFilter(
            page_size=page_size,
            page_token=page_token,
            statuses=list(status),
            types=list(type),
            asset_keys=[k for k in asset_key if k],
        )
    )
    return AssetListResponse(
        assets=[AssetPublic.model_validate(a) for a in assets],
        next_page_token=next_token,
    )


# Asset keys issued by the S3 provider contain slashes.
@router.get("/by-key/{asset_key:path}", response_model=AssetPublic)
async def get_asset_by_key(asset_key: str, service: AssetService = Depends(get_asset_service)) -> AssetPublic:
    return AssetPublic.model_validate(await service.get_asset_by_key(asset_key))


@router.get("/{asset_id}", response_model=AssetPublic)
async def get_asset(asset_id: UUID, service: AssetService = Depends(get_asset_service)) -> AssetPublic:
    return AssetPublic.model_validate(await service.get_asset(asset_id))


@router.patch("/{asset_id}", response_model=AssetPublic)
async def update_asset(
    asset_id: UUID,
    body: UpdateAssetRequest,
    service: AssetService = Depends(get_asset_service),
) -> AssetPublic:
    current = await service.get_asset(asset_id)
    updated = apply_field_mask(current, body.asset, body.update_mask, defaults=ASSET_MASK_PATHS)
    return AssetPublic.model_validate(await service.update_asset(updated))


@router.delete("/{asset_id}", response_model=DeleteAssetResponse)
async def delete_asset(
    asset_id: UUID,
    hard_delete: bool = Query(default=False),
    service: AssetService = Depends(get_asset_service),
) -> DeleteAssetResponse:
    deleted = await service.delete_asset(asset_id, hard_delete=hard_delete)
    return DeleteAssetResponse(asset=AssetPublic.model_validate(deleted) if deleted is not None else None)
