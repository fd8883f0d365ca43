from __future__ import annotations

from datetime import datetime, timedelta
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from lession.domain.series import (
    EpisodeDraft,
    EpisodeStatus,
    MediaResource,
    MediaType,
    SeriesDraft,
    SeriesStatus,
    Transcript,
    TranscriptFormat,
)


class MediaResourceIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    asset_id: UUID | None = None
    type: MediaType = MediaType.UNSPECIFIED
    playback_url: str = ""
    mime_type: str = ""

    def to_domain(self) -> MediaResource:
        return MediaResource(
            asset_id=self.asset_id,
            type=self.type,
            playback_url=self.playback_url,
            mime_type=self.mime_type,
        )


class TranscriptIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    language: str = ""
    format: TranscriptFormat = TranscriptFormat.UNSPECIFIED
    content: str = ""

    def to_domain(self) -> Transcript:
        return Transcript(language=self.language, format=self.format, content=self.content)


class EpisodeCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    seq: int = Field(ge=0)
    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    duration: timedelta = timedelta(0)
    status: EpisodeStatus = EpisodeStatus.UNSPECIFIED
    resource: MediaResourceIn | None = None
    transcript: TranscriptIn | None = None

    @field_validator("title")
    @classmethod
    def _normalize_title(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Episode title is required")
        return v

    def to_draft(self) -> EpisodeDraft:
        return EpisodeDraft(
            seq=self.seq,
            title=self.title,
            description=self.description,
            duration=self.duration,
            status=self.status,
            resource=self.resource.to_domain() if self.resource is not None else None,
            transcript=self.transcript.to_domain() if self.transcript is not None else None,
        )


class SeriesCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    slug: str = Field(min_length=1, max_length=255)
    title: str = Field(min_length=1, max_length=255)
    summary: str = Field(default="", max_length=4000)
    language: str = Field(default="", max_length=16)
    level: str = Field(default="", max_length=64)
    tags: list[str] = Field(default_factory=list)
    cover_url: str = ""
    status: SeriesStatus = SeriesStatus.UNSPECIFIED
    author_ids: list[str] = Field(default_factory=list)
    episodes: list[EpisodeCreate] = Field(default_factory=list)

    @field_validator("slug", "title")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    def to_draft(self) -> SeriesDraft:
        return SeriesDraft(
            slug=self.slug,
            title=self.title,
            summary=self.summary,
            language=self.language,
            level=self.level,
            tags=list(self.tags),
            cover_url=self.cover_url,
            status=self.status,
            author_ids=list(self.author_ids),
            episodes=[e.to_draft() for e in self.episodes],
        )


class SeriesPatch(BaseModel):
    """Mutable series attributes; unset fields carry zero values."""

    model_config = ConfigDict(extra="forbid")

    slug: str = ""
    title: str = ""
    summary: str = ""
    language: str = ""
    level: str = ""
    tags: list[str] = Field(default_factory=list)
    cover_url: str = ""
    status: SeriesStatus = SeriesStatus.UNSPECIFIED
    author_ids: list[str] = Field(default_factory=list)


class UpdateSeriesRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    series: SeriesPatch
    update_mask: list[str] = Field(default_factory=list)


class EpisodePatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    seq: int = Field(default=0, ge=0)
    title: str = ""
    description: str = ""
    duration: timedelta = timedelta(0)
    status: EpisodeStatus = EpisodeStatus.UNSPECIFIED
    resource: MediaResourceIn = Field(default_factory=MediaResourceIn)
    transcript: TranscriptIn = Field(default_factory=TranscriptIn)


class UpdateEpisodeRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    episode: EpisodePatch
    update_mask: list[str] = Field(default_factory=list)


class MediaResourcePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    asset_id: UUID | None
    type: MediaType
    playback_url: str
    mime_type: str


class TranscriptPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    language: str
    format: TranscriptFormat
    content: str


class EpisodePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    series_id: UUID
    seq: int
    title: str
    description: str
    duration: timedelta
    status: EpisodeStatus
    resource: MediaResourcePublic
    transcript: TranscriptPublic
    created_at: datetime
    updated_at: datetime
    published_at: datetime | None
    deleted_at: datetime | None

    @field_serializer("duration")
    def _duration_seconds(self, v: timedelta) -> float:
        return v.total_seconds()


class SeriesPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    slug: str
    title: str
    summary: str
    language: str
    level: str
    tags: list[str] | None
    cover_url: str
    status: SeriesStatus
    episode_count: int
    created_at: datetime
    updated_at: datetime
    published_at: datetime | None
    author_ids: list[str] | None
    episodes: list[EpisodePublic] | None = None


class SeriesListResponse(BaseModel):
    series: list[SeriesPublic]
    next_page_token: str
