from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID


@dataclass
class Lesson:
    id: UUID
    title: str
    duration_minutes: int
    created_at: datetime
    updated_at: datetime
    description: str | None = None
    teacher: str | None = None


@dataclass(frozen=True)
class CreateLessonParams:
    title: str
    description: str | None = None
    teacher: str | None = None
    duration_minutes: int = 0


@dataclass(frozen=True)
class UpdateLessonParams:
    id: UUID
    title: str
    description: str | None = None
    teacher: str | None = None
    duration_minutes: int = 0


class LessonRepository(Protocol):
    async def create(self, params: CreateLessonParams) -> Lesson: ...

    async def get(self, lesson_id: UUID) -> Lesson: ...

    async def list(self, *, limit: int, offset: int) -> list[Lesson]: ...

    async def update(self, params: UpdateLessonParams) -> Lesson: ...

    async def delete(self, lesson_id: UUID) -> None: ...
