from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable
from uuid import UUID, uuid4

from lession.core.errors import ValidationError
from lession.domain.series import (
    CreateEpisodeParams,
    Episode,
    EpisodeDraft,
    EpisodeStatus,
    MediaResource,
    Series,
    SeriesDraft,
    SeriesListFilter,
    SeriesQueryOptions,
    SeriesRepository,
    SeriesStatus,
    Transcript,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SeriesService:
    """Series/episode aggregate rules: defaulting, batch seq uniqueness and
    publish timestamps. Counting and soft deletion are carried out by the
    repository inside its own transactions."""

    def __init__(self, repo: SeriesRepository, *, now: Callable[[], datetime] | None = None):
        self._repo = repo
        self._now = now or _utcnow

    def _clock(self) -> datetime:
        return self._now().astimezone(timezone.utc)

    async def list_series(self, filter: SeriesListFilter) -> tuple[list[Series], str]:
        return await self._repo.list_series(filter)

    async def create_series(self, draft: SeriesDraft) -> Series:
        now = self._clock()
        series_id = uuid4()

        status = draft.status
        if status == SeriesStatus.UNSPECIFIED:
            status = SeriesStatus.DRAFT

        series = Series(
            id=series_id,
            slug=draft.slug,
            title=draft.title,
            summary=draft.summary,
            language=draft.language,
            level=draft.level,
            tags=list(draft.tags) or None,
            cover_url=draft.cover_url,
            status=status,
            created_at=now,
            updated_at=now,
            author_ids=list(draft.author_ids) or None,
        )
        if status == SeriesStatus.PUBLISHED:
            series.published_at = now

        if draft.episodes:
            seen: set[int] = set()
            episodes: list[Episode] = []
            for episode_draft in draft.episodes:
                if episode_draft.seq in seen:
                    raise ValidationError(f"duplicate episode seq {episode_draft.seq}")
                seen.add(episode_draft.seq)
                episodes.append(_build_episode(series_id, episode_draft, now))
            series.episodes = episodes
            series.episode_count = len(episodes)

        created = await self._repo.create_series(series)
        logger.info("series %s (%s) created with %d episodes", created.id, created.slug, created.episode_count)
        return created

    async def get_series(self, series_id: UUID | None, options: SeriesQueryOptions | None = None) -> Series:
        if series_id is None:
            raise ValidationError("series id required")
        return await self._repo.get_series(series_id, options or SeriesQueryOptions())

    async def update_series(self, series: Series) -> Series:
        if series.id is None:
            raise ValidationError("series id required")
        if series.status == SeriesStatus.UNSPECIFIED:
            raise ValidationError("series status required")

        now = self._clock()
        series = replace(series, updated_at=now)
        if series.status == SeriesStatus.PUBLISHED and series.published_at is None:
            series.published_at = now
        return await self._repo.update_series(series)

    async def create_episode(self, params: CreateEpisodeParams) -> Episode:
        if params.series_id is None:
            raise ValidationError("series id required")
        episode = _build_episode(params.series_id, params.draft, self._clock())
        return await self._repo.create_episode(episode)

    async def get_episode(self, episode_id: UUID | None) -> Episode:
        if episode_id is None:
            raise ValidationError("episode id required")
        return await self._repo.get_episode(episode_id)

    async def update_episode(self, episode: Episode) -> Episode:
        if episode.id is None:
            raise ValidationError("episode id required")
        if episode.series_id is None:
            raise ValidationError("series id required")
        if episode.status == EpisodeStatus.UNSPECIFIED:
            raise ValidationError("episode status required")

        now = self._clock()
        episode = replace(episode, updated_at=now)
        if episode.status == EpisodeStatus.PUBLISHED and episode.published_at is None:
            episode.published_at = now
        return await self._repo.update_episode(episode)

    async def delete_episode(self, episode_id: UUID | None) -> Episode:
        if episode_id is None:
            raise ValidationError("episode id required")
        deleted = await self._repo.delete_episode(episode_id)
        logger.info("episode %s soft-deleted from series %s", deleted.id, deleted.series_id)
        return deleted


def _build_episode(series_id: UUID, draft: EpisodeDraft, now: datetime) -> Episode:
    status = draft.status
    if status == EpisodeStatus.UNSPECIFIED:
        status = EpisodeStatus.DRAFT

    episode = Episode(
        id=uuid4(),
        series_id=series_id,
        seq=draft.seq,
        title=draft.title,
        description=draft.description,
        duration=draft.duration,
        status=status,
        resource=replace(draft.resource) if draft.resource is not None else MediaResource(),
        transcript=replace(draft.transcript) if draft.transcript is not None else Transcript(),
        created_at=now,
        updated_at=now,
    )
    if status == EpisodeStatus.PUBLISHED:
        episode.published_at = now
    return episode
