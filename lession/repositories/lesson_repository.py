from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lession.core.errors import NotFoundError
from lession.db.models.lesson import LessonRow
from lession.domain.lesson import CreateLessonParams, Lesson, UpdateLessonParams


class SqlLessonRepository:
    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        *,
        now: Callable[[], datetime] | None = None,
    ):
        self._sessions = session_maker
        self._now = now or (lambda: datetime.now(timezone.utc))

    async def create(self, params: CreateLessonParams) -> Lesson:
        now = self._now()
        row = LessonRow(
            title=params.title.strip(),
            description=params.description,
            teacher=params.teacher,
            duration_minutes=params.duration_minutes,
            created_at=now,
            updated_at=now,
        )
        async with self._sessions() as db:
            db.add(row)
            await db.commit()
            await db.refresh(row)
            return _to_lesson(row)

    async def get(self, lesson_id: UUID) -> Lesson:
        async with self._sessions() as db:
            row = await db.get(LessonRow, lesson_id)
            if row is None:
                raise NotFoundError("lesson not found")
            return _to_lesson(row)

    async def list(self, *, limit: int, offset: int) -> list[Lesson]:
        async with self._sessions() as db:
            res = await db.execute(
                select(LessonRow)
                .order_by(LessonRow.created_at.desc(), LessonRow.id.desc())
                .offset(offset)
                .limit(limit)
            )
            return [_to_lesson(r) for r in res.scalars().all()]

    async def update(self, params: UpdateLessonParams) -> Lesson:
        async with self._sessions() as db:
            row = await db.get(LessonRow, params.id)
            if row is None:
                raise NotFoundError("lesson not found")
            row.title = params.title.strip()
            row.description = params.description
            row.teacher = params.teacher
            row.duration_minutes = params.duration_minutes
            row.updated_at = self._now()
            await db.commit()
            return _to_lesson(row)

    async def delete(self, lesson_id: UUID) -> None:
        async with self._sessions() as db:
            row = await db.get(LessonRow, lesson_id)
            if row is None:
                raise NotFoundError("lesson not found")
            await db.delete(row)
            await db.commit()


def _to_lesson(row: LessonRow) -> Lesson:
    return Lesson(
        id=row.id,
        title=row.title,
        description=row.description,
        teacher=row.teacher,
        duration_minutes=row.duration_minutes,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
