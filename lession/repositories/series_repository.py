from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from lession.core.errors import ConflictError, NotFoundError, ValidationError
from lession.core.pagination import next_offset_token, parse_offset_token
from lession.db.models.episode import EPISODE_SEQ_INDEX, EpisodeRow
from lession.db.models.series import SeriesRow
from lession.domain.series import (
    Episode,
    EpisodeStatus,
    MediaResource,
    MediaType,
    Series,
    SeriesListFilter,
    SeriesQueryOptions,
    SeriesStatus,
    Transcript,
    TranscriptFormat,
)

DEFAULT_PAGE_SIZE = 20


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SqlSeriesRepository:
    """Series and episodes on PostgreSQL.

    Every write that can change the set of live episodes (create series,
    create/update/delete episode) recomputes ``series.episode_count`` in the
    same transaction.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        *,
        now: Callable[[], datetime] | None = None,
    ):
        self._sessions = session_maker
        self._now = now or _utcnow

    async def list_series(self, filter: SeriesListFilter) -> tuple[list[Series], str]:
        offset = parse_offset_token(filter.page_token)
        page_size = filter.page_size if filter.page_size > 0 else DEFAULT_PAGE_SIZE

        stmt = select(SeriesRow)
        if filter.statuses:
            stmt = stmt.where(SeriesRow.status.in_([s.value for s in filter.statuses]))
        if filter.language:
            stmt = stmt.where(SeriesRow.language == filter.language)
        if filter.level:
            stmt = stmt.where(SeriesRow.level == filter.level)
        if filter.author_ids:
            stmt = stmt.where(SeriesRow.author_ids.overlap(list(filter.author_ids)))
        if filter.tags:
            stmt = stmt.where(SeriesRow.tags.overlap(list(filter.tags)))

        query = (filter.query or "").strip()
        if query:
            stmt = stmt.where(
                or_(
                    SeriesRow.title.icontains(query, autoescape=True),
                    SeriesRow.slug.icontains(query, autoescape=True),
                    SeriesRow.summary.icontains(query, autoescape=True),
                )
            )

        if filter.include_episodes:
            stmt = stmt.options(_live_episodes())

        stmt = stmt.order_by(SeriesRow.created_at.desc(), SeriesRow.id.desc()).offset(offset).limit(page_size + 1)

        async with self._sessions() as db:
            res = await db.execute(stmt)
            rows = list(res.scalars().all())

        next_token = next_offset_token(offset=offset, page_size=page_size, fetched=len(rows))
        return [_to_series(r, include_episodes=filter.include_episodes) for r in rows[:page_size]], next_token

    async def create_series(self, series: Series) -> Series:
        async with self._sessions() as db:
            db.add(
                SeriesRow(
                    id=series.id,
                    slug=series.slug,
                    title=series.title,
                    summary=series.summary,
                    language=series.language,
                    level=series.level,
                    tags=series.tags or None,
                    cover_url=series.cover_url,
                    status=series.status.value,
                    episode_count=series.episode_count,
                    author_ids=series.author_ids or None,
                    created_at=series.created_at,
                    updated_at=series.updated_at,
                    published_at=series.published_at,
                )
            )
            for episode in series.episodes or []:
                db.add(_new_episode_row(series.id, episode))
            try:
                await db.flush()
                await _recount_episodes(db, series.id)
                await db.commit()
            except IntegrityError as e:
                await db.rollback()
                raise _translate_integrity_error(e) from e

        return await self.get_series(series.id, SeriesQueryOptions(include_episodes=bool(series.episodes)))

    async def get_series(self, series_id: UUID, options: SeriesQueryOptions) -> Series:
        stmt = select(SeriesRow).where(SeriesRow.id == series_id)
        if options.include_episodes:
            stmt = stmt.options(_live_episodes())

        async with self._sessions() as db:
            res = await db.execute(stmt)
            row = res.scalar_one_or_none()
            if row is None:
                raise NotFoundError("series not found")
            return _to_series(row, include_episodes=options.include_episodes)

    async def update_series(self, series: Series) -> Series:
        async with self._sessions() as db:
            row = await db.get(SeriesRow, series.id)
            if row is None:
                raise NotFoundError("series not found")

            row.slug = series.slug
            row.title = series.title
            row.summary = series.summary
            row.language = series.language
            row.level = series.level
            row.tags = series.tags or None
            row.cover_url = series.cover_url
            row.status = series.status.value
            row.author_ids = series.author_ids or None
            row.updated_at = series.updated_at
            # None clears the timestamp; callers pass the current value to keep it.
            row.published_at = series.published_at
            try:
                await db.commit()
            except IntegrityError as e:
                await db.rollback()
                raise _translate_integrity_error(e) from e
            return _to_series(row, include_episodes=False)

    async def create_episode(self, episode: Episode) -> Episode:
        async with self._sessions() as db:
            parent = await db.get(SeriesRow, episode.series_id, with_for_update=True)
            if parent is None:
                raise NotFoundError("series not found")

            row = _new_episode_row(episode.series_id, episode)
            db.add(row)
            try:
                await db.flush()
                await _recount_episodes(db, episode.series_id, touched_at=self._now())
                await db.commit()
            except IntegrityError as e:
                await db.rollback()
                raise _translate_integrity_error(e) from e
            return _to_episode(row)

    async def get_episode(self, episode_id: UUID) -> Episode:
        async with self._sessions() as db:
            row = await db.get(EpisodeRow, episode_id)
            if row is None:
                raise NotFoundError("episode not found")
            return _to_episode(row)

    async def update_episode(self, episode: Episode) -> Episode:
        async with self._sessions() as db:
            row = await db.get(EpisodeRow, episode.id, with_for_update=True)
            if row is None:
                raise NotFoundError("episode not found")
            if row.series_id != episode.series_id:
                raise ValidationError("episode series cannot be changed")

            _apply_episode(row, episode)
            row.updated_at = episode.updated_at
            try:
                await db.flush()
                await _recount_episodes(db, row.series_id, touched_at=self._now())
                await db.commit()
            except IntegrityError as e:
                await db.rollback()
                raise _translate_integrity_error(e) from e
            return _to_episode(row)

    async def delete_episode(self, episode_id: UUID) -> Episode:
        async with self._sessions() as db:
            row = await db.get(EpisodeRow, episode_id, with_for_update=True)
            if row is None:
                raise NotFoundError("episode not found")
            if row.deleted_at is not None:
                # Already soft-deleted: report the stored state untouched.
                return _to_episode(row)

            now = self._now()
            row.status = EpisodeStatus.ARCHIVED.value
            row.deleted_at = now
            row.updated_at = now
            await db.flush()
            await _recount_episodes(db, row.series_id, touched_at=now)
            await db.commit()
            return _to_episode(row)


def _live_episodes():
    return selectinload(SeriesRow.episodes.and_(EpisodeRow.deleted_at.is_(None)))


async def _recount_episodes(db: AsyncSession, series_id: UUID, *, touched_at: datetime | None = None) -> None:
    count = await db.scalar(
        select(func.count())
        .select_from(EpisodeRow)
        .where(EpisodeRow.series_id == series_id, EpisodeRow.deleted_at.is_(None))
    )
    values: dict = {"episode_count": int(count or 0)}
    if touched_at is not None:
        values["updated_at"] = touched_at
    await db.execute(update(SeriesRow).where(SeriesRow.id == series_id).values(**values))


def _translate_integrity_error(e: IntegrityError) -> Exception:
    detail = str(e.orig) if e.orig is not None else str(e)
    if EPISODE_SEQ_INDEX in detail:
        return ConflictError("episode seq already used in this series")
    if "series_slug" in detail or "(slug)" in detail:
        return ConflictError("series slug already exists")
    if "episodes_series_id_fkey" in detail:
        return NotFoundError("series not found")
    return e


def _new_episode_row(series_id: UUID, episode: Episode) -> EpisodeRow:
    row = EpisodeRow(id=episode.id, series_id=series_id, created_at=episode.created_at, updated_at=episode.updated_at)
    _apply_episode(row, episode)
    return row


def _apply_episode(row: EpisodeRow, episode: Episode) -> None:
    row.seq = episode.seq
    row.title = episode.title
    row.description = episode.description
    row.duration_seconds = int(episode.duration.total_seconds())
    row.status = episode.status.value
    row.resource_asset_id = episode.resource.asset_id
    row.resource_type = episode.resource.type.value
    row.resource_playback_url = episode.resource.playback_url
    row.resource_mime_type = episode.resource.mime_type
    row.transcript_language = episode.transcript.language
    row.transcript_format = episode.transcript.format.value
    row.transcript_content = episode.transcript.content
    row.published_at = episode.published_at
    row.deleted_at = episode.deleted_at


def _to_episode(row: EpisodeRow) -> Episode:
    return Episode(
        id=row.id,
        series_id=row.series_id,
        seq=row.seq,
        title=row.title,
        description=row.description,
        duration=timedelta(seconds=row.duration_seconds),
        status=EpisodeStatus(row.status),
        resource=MediaResource(
            asset_id=row.resource_asset_id,
            type=MediaType(row.resource_type),
            playback_url=row.resource_playback_url,
            mime_type=row.resource_mime_type,
        ),
        transcript=Transcript(
            language=row.transcript_language,
            format=TranscriptFormat(row.transcript_format),
            content=row.transcript_content,
        ),
        created_at=row.created_at,
        updated_at=row.updated_at,
        published_at=row.published_at,
        deleted_at=row.deleted_at,
    )


def _to_series(row: SeriesRow, *, include_episodes: bool) -> Series:
    series = Series(
        id=row.id,
        slug=row.slug,
        title=row.title,
        summary=row.summary,
        language=row.language,
        level=row.level,
        tags=list(row.tags) if row.tags else None,
        cover_url=row.cover_url,
        status=SeriesStatus(row.status),
        episode_count=row.episode_count,
        created_at=row.created_at,
        updated_at=row.updated_at,
        published_at=row.published_at,
        author_ids=list(row.author_ids) if row.author_ids else None,
    )
    if include_episodes:
        series.episodes = [_to_episode(ep) for ep in row.episodes]
    return series
