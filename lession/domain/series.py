from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Protocol
from uuid import UUID


class SeriesStatus(str, Enum):
    UNSPECIFIED = "unspecified"
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class EpisodeStatus(str, Enum):
    UNSPECIFIED = "unspecified"
    DRAFT = "draft"
    READY = "ready"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class MediaType(str, Enum):
    UNSPECIFIED = "unspecified"
    VIDEO = "video"
    AUDIO = "audio"


class TranscriptFormat(str, Enum):
    UNSPECIFIED = "unspecified"
    PLAIN = "plain"
    MARKDOWN = "markdown"
    SRT = "srt"
    JSON = "json"


@dataclass
class MediaResource:
    """Binds an uploaded asset to an episode."""

    asset_id: UUID | None = None
    type: MediaType = MediaType.UNSPECIFIED
    playback_url: str = ""
    mime_type: str = ""


@dataclass
class Transcript:
    language: str = ""
    format: TranscriptFormat = TranscriptFormat.UNSPECIFIED
    content: str = ""


@dataclass
class Episode:
    id: UUID
    series_id: UUID
    seq: int
    title: str
    created_at: datetime
    updated_at: datetime
    description: str = ""
    duration: timedelta = timedelta(0)
    status: EpisodeStatus = EpisodeStatus.UNSPECIFIED
    resource: MediaResource = field(default_factory=MediaResource)
    transcript: Transcript = field(default_factory=Transcript)
    published_at: datetime | None = None
    deleted_at: datetime | None = None


@dataclass
class Series:
    id: UUID
    slug: str
    title: str
    created_at: datetime
    updated_at: datetime
    summary: str = ""
    language: str = ""
    level: str = ""
    tags: list[str] | None = None
    cover_url: str = ""
    status: SeriesStatus = SeriesStatus.UNSPECIFIED
    episode_count: int = 0
    published_at: datetime | None = None
    author_ids: list[str] | None = None
    episodes: list[Episode] | None = None


@dataclass
class EpisodeDraft:
    seq: int
    title: str
    description: str = ""
    duration: timedelta = timedelta(0)
    status: EpisodeStatus = EpisodeStatus.UNSPECIFIED
    resource: MediaResource | None = None
    transcript: Transcript | None = None


@dataclass
class SeriesDraft:
    slug: str
    title: str
    summary: str = ""
    language: str = ""
    level: str = ""
    tags: list[str] = field(default_factory=list)
    cover_url: str = ""
    status: SeriesStatus = SeriesStatus.UNSPECIFIED
    author_ids: list[str] = field(default_factory=list)
    episodes: list[EpisodeDraft] = field(default_factory=list)


@dataclass
class SeriesListFilter:
    page_size: int = 0
    page_token: str = ""
    statuses: list[SeriesStatus] = field(default_factory=list)
    language: str = ""
    level: str = ""
    tags: list[str] = field(default_factory=list)
    query: str = ""
    include_episodes: bool = False
    author_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SeriesQueryOptions:
    include_episodes: bool = False


@dataclass(frozen=True)
class CreateEpisodeParams:
    series_id: UUID | None
    draft: EpisodeDraft


class SeriesRepository(Protocol):
    """Persistence contract for series and their episodes.

    ``create_series`` stores the series, its episodes and the recomputed
    episode count atomically. ``delete_episode`` is a soft delete that
    recomputes the owning series' count in the same transaction, and returns
    an already-deleted episode unchanged.
    """

    async def list_series(self, filter: SeriesListFilter) -> tuple[list[Series], str]: ...

    async def create_series(self, series: Series) -> Series: ...

    async def get_series(self, series_id: UUID, options: SeriesQueryOptions) -> Series: ...

    async def update_series(self, series: Series) -> Series: ...

    async def create_episode(self, episode: Episode) -> Episode: ...

    async def get_episode(self, episode_id: UUID) -> Episode: ...

    async def update_episode(self, episode: Episode) -> Episode: ...

    async def delete_episode(self, episode_id: UUID) -> Episode: ...
