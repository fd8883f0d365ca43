from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lession.core.errors import ConflictError, NotFoundError, UploadInvalidStateError
from lession.core.pagination import next_offset_token, parse_offset_token
from lession.db.models.asset import AssetRow
from lession.db.models.upload_session import UploadSessionRow
from lession.domain.asset import (
    COMPLETABLE_UPLOAD_STATUSES,
    Asset,
    AssetListFilter,
    AssetStatus,
    AssetType,
    UploadProtocol,
    UploadSession,
    UploadStatus,
    UploadTarget,
)

DEFAULT_PAGE_SIZE = 20


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SqlAssetRepository:
    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        *,
        now: Callable[[], datetime] | None = None,
    ):
        self._sessions = session_maker
        self._now = now or _utcnow

    async def save_new_upload(self, session: UploadSession, asset: Asset) -> None:
        async with self._sessions() as db:
            db.add(_new_session_row(session))
            try:
                # Session first, then its asset, in one transaction.
                await db.flush()
                db.add(_new_asset_row(asset))
                await db.commit()
            except IntegrityError as e:
                await db.rollback()
                raise ConflictError(f"asset key {asset.asset_key!r} already registered") from e

    async def save_completed_upload(self, session: UploadSession, asset: Asset) -> None:
        async with self._sessions() as db:
            res = await db.execute(
                select(UploadSessionRow).where(UploadSessionRow.id == session.id).with_for_update()
            )
            session_row = res.scalar_one_or_none()
            if session_row is None:
                raise NotFoundError("upload session not found")
            # Re-check under the row lock: a concurrent completion may have won.
            if UploadStatus(session_row.status) not in COMPLETABLE_UPLOAD_STATUSES:
                raise UploadInvalidStateError(
                    f"upload session {session.id} cannot complete from status {session_row.status}"
                )

            asset_row = await db.get(AssetRow, asset.id, with_for_update=True)
            if asset_row is None:
                raise NotFoundError("asset not found")

            _apply_session(session_row, session)
            _apply_asset(asset_row, asset)
            await db.commit()

    async def get_upload_session_by_id(self, upload_id: UUID) -> UploadSession:
        async with self._sessions() as db:
            row = await db.get(UploadSessionRow, upload_id)
            if row is None:
                raise NotFoundError("upload session not found")
            return _to_session(row)

    async def get_upload_session_by_asset_key(self, asset_key: str) -> UploadSession:
        async with self._sessions() as db:
            res = await db.execute(select(UploadSessionRow).where(UploadSessionRow.asset_key == asset_key))
            row = res.scalar_one_or_none()
            if row is None:
                raise NotFoundError("upload session not found")
            return _to_session(row)

    async def update_asset(self, asset: Asset) -> Asset:
        async with self._sessions() as db:
            row = await db.get(AssetRow, asset.id)
            if row is None:
                raise NotFoundError("asset not found")
            _apply_asset(row, asset)
            await db.commit()
            return _to_asset(row)

    async def get_asset_by_id(self, asset_id: UUID) -> Asset:
        async with self._sessions() as db:
            row = await db.get(AssetRow, asset_id)
            if row is None:
                raise NotFoundError("asset not found")
            return _to_asset(row)

    async def get_asset_by_key(self, asset_key: str) -> Asset:
        async with self._sessions() as db:
            res = await db.execute(select(AssetRow).where(AssetRow.asset_key == asset_key))
            row = res.scalar_one_or_none()
            if row is None:
                raise NotFoundError("asset not found")
            return _to_asset(row)

    async def list_assets(self, filter: AssetListFilter) -> tuple[list[Asset], str]:
        offset = parse_offset_token(filter.page_token)
        page_size = filter.page_size if filter.page_size > 0 else DEFAULT_PAGE_SIZE

        stmt = select(AssetRow)
        if filter.statuses:
            stmt = stmt.where(AssetRow.status.in_([s.value for s in filter.statuses]))
        if filter.types:
            stmt = stmt.where(AssetRow.type.in_([t.value for t in filter.types]))
        if filter.asset_keys:
            stmt = stmt.where(AssetRow.asset_key.in_(list(filter.asset_keys)))
        stmt = stmt.order_by(AssetRow.created_at.desc(), AssetRow.id.desc()).offset(offset).limit(page_size + 1)

        async with self._sessions() as db:
            res = await db.execute(stmt)
            rows = list(res.scalars().all())

        next_token = next_offset_token(offset=offset, page_size=page_size, fetched=len(rows))
        return [_to_asset(r) for r in rows[:page_size]], next_token

    async def delete_asset(self, asset_id: UUID, *, hard_delete: bool) -> Asset | None:
        async with self._sessions() as db:
            row = await db.get(AssetRow, asset_id)
            if row is None:
                raise NotFoundError("asset not found")

            if hard_delete:
                await db.delete(row)
                await db.commit()
                return None

            row.status = AssetStatus.DELETED.value
            row.updated_at = self._now()
            await db.commit()
            return _to_asset(row)


def _new_session_row(session: UploadSession) -> UploadSessionRow:
    row = UploadSessionRow(
        id=session.id,
        asset_key=session.asset_key,
        type=session.type.value,
        protocol=session.protocol.value,
        created_at=session.created_at,
    )
    _apply_session(row, session)
    return row


def _apply_session(row: UploadSessionRow, session: UploadSession) -> None:
    row.status = session.status.value
    row.target_method = session.target.method
    row.target_url = session.target.url
    row.target_headers = dict(session.target.headers)
    row.target_form_fields = dict(session.target.form_fields)
    row.original_filename = session.original_filename
    row.mime_type = session.mime_type
    row.content_length = session.content_length
    row.expires_at = session.expires_at
    row.updated_at = session.updated_at


def _new_asset_row(asset: Asset) -> AssetRow:
    row = AssetRow(
        id=asset.id,
        asset_key=asset.asset_key,
        type=asset.type.value,
        created_at=asset.created_at,
    )
    _apply_asset(row, asset)
    return row


def _apply_asset(row: AssetRow, asset: Asset) -> None:
    row.status = asset.status.value
    row.original_filename = asset.original_filename
    row.mime_type = asset.mime_type
    row.filesize = asset.filesize
    row.duration_seconds = int(asset.duration.total_seconds())
    row.playback_url = asset.playback_url or ""
    row.updated_at = asset.updated_at
    row.ready_at = asset.ready_at


def _to_asset(row: AssetRow) -> Asset:
    return Asset(
        id=row.id,
        asset_key=row.asset_key,
        type=AssetType(row.type),
        status=AssetStatus(row.status),
        original_filename=row.original_filename,
        mime_type=row.mime_type,
        filesize=row.filesize,
        duration=timedelta(seconds=row.duration_seconds),
        playback_url=row.playback_url,
        created_at=row.created_at,
        updated_at=row.updated_at,
        ready_at=row.ready_at,
    )


def _to_session(row: UploadSessionRow) -> UploadSession:
    return UploadSession(
        id=row.id,
        asset_key=row.asset_key,
        type=AssetType(row.type),
        protocol=UploadProtocol(row.protocol),
        status=UploadStatus(row.status),
        target=UploadTarget(
            method=row.target_method,
            url=row.target_url,
            headers=dict(row.target_headers or {}),
            form_fields=dict(row.target_form_fields or {}),
        ),
        original_filename=row.original_filename,
        mime_type=row.mime_type,
        content_length=row.content_length,
        expires_at=row.expires_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
