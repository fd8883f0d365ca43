from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from lession.api.deps import get_series_service
from lession.api.field_mask import (
    EPISODE_MASK_PATHS,
    EPISODE_NESTED_PATHS,
    SERIES_MASK_PATHS,
    apply_field_mask,
)
from lession.domain.series import CreateEpisodeParams, SeriesListFilter, SeriesQueryOptions, SeriesStatus
from lession.schemas.series import (
    EpisodeCreate,
    EpisodePublic,
    SeriesCreate,
    SeriesListResponse,
    SeriesPublic,
    UpdateEpisodeRequest,
    UpdateSeriesRequest,
)
from lession.services.series_service import SeriesService

router = APIRouter(prefix="/series", tags=["series"])
episodes_router = APIRouter(prefix="/episodes", tags=["episodes"])


@router.get("", response_model=SeriesListResponse)
async def list_series(
    page_size: int = Query(default=0, ge=0),
    page_token: str = Query(default=""),
    status: list[SeriesStatus] = Query(default=[]),
    language: str = Query(default=""),
    level: str = Query(default=""),
    tag: list[str] = Query(default=[]),
    author_id: list[str] = Query(default=[]),
    q: str = Query(default=""),
    include_episodes: bool = Query(default=False),
    service: SeriesService = Depends(get_series_service),
) -> SeriesListResponse:
    items, next_token = await service.list_series(
        SeriesListFilter(
            page_size=page_size,
            page_token=page_token,
            statuses=list(status),
            language=language.strip(),
            level=level.strip(),
            tags=[t for t in tag if t],
            query=q.strip(),
            include_episodes=include_episodes,
            author_ids=[a for a in author_id if a],
        )
    )
    return SeriesListResponse(
        series=[SeriesPublic.model_validate(s) for s in items],
        next_page_token=next_token,
    )


@router.post("", response_model=SeriesPublic, status_code=201)
async def create_series(body: SeriesCreate, service: SeriesService = Depends(get_series_service)) -> SeriesPublic:
    return SeriesPublic.model_validate(await service.create_series(body.to_draft()))


@router.get("/{series_id}", response_model=SeriesPublic)
async def get_series(
    series_id: UUID,
    include_episodes: bool = Query(default=False),
    service: SeriesService = Depends(get_series_service),
) -> SeriesPublic:
    series = await service.get_series(series_id, SeriesQueryOptions(include_episodes=include_episodes))
    return SeriesPublic.model_validate(series)


@router.patch("/{series_id}", response_model=SeriesPublic)
async def update_series(
    series_id: UUID,
    body: UpdateSeriesRequest,
    service: SeriesService = Depends(get_series_service),
) -> SeriesPublic:
    current = await service.get_series(series_id)
    updated = apply_field_mask(current, body.series, body.update_mask, defaults=SERIES_MASK_PATHS)
    return SeriesPublic.model_validate(await service.update_series(updated))


@router.post("/{series_id}/episodes", response_model=EpisodePublic, status_code=201)
async def create_episode(
    series_id: UUID,
    body: EpisodeCreate,
    service: SeriesService = Depends(get_series_service),
) -> EpisodePublic:
    episode = await service.create_episode(CreateEpisodeParams(series_id=series_id, draft=body.to_draft()))
    return EpisodePublic.model_validate(episode)


@episodes_router.get("/{episode_id}", response_model=EpisodePublic)
async def get_episode(episode_id: UUID, service: SeriesService = Depends(get_series_service)) -> EpisodePublic:
    return EpisodePublic.model_validate(await service.get_episode(episode_id))


@episodes_router.patch("/{episode_id}", response_model=EpisodePublic)
async def update_episode(
    episode_id: UUID,
    body: UpdateEpisodeRequest,
    service: SeriesService = Depends(get_series_service),
) -> EpisodePublic:
    current = await service.get_episode(episode_id)
    updated = apply_field_mask(
        current,
        body.episode,
        body.update_mask,
        defaults=EPISODE_MASK_PATHS,
        extra=EPISODE_NESTED_PATHS,
    )
    return EpisodePublic.model_validate(await service.update_episode(updated))


@episodes_router.delete("/{episode_id}", response_model=EpisodePublic)
async def delete_episode(episode_id: UUID, service: SeriesService = Depends(get_series_service)) -> EpisodePublic:
    return EpisodePublic.model_validate(await service.delete_episode(episode_id))
