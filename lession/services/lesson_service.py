from __future__ import annotations

from uuid import UUID

from lession.core.errors import ValidationError
from lession.core.pagination import next_offset_token, parse_offset_token
from lession.domain.lesson import CreateLessonParams, Lesson, LessonRepository, UpdateLessonParams

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class LessonService:
    def __init__(
        self,
        repo: LessonRepository,
        *,
        default_page_size: int = DEFAULT_PAGE_SIZE,
        max_page_size: int = MAX_PAGE_SIZE,
    ):
        self._repo = repo
        self._default_page_size = default_page_size
        self._max_page_size = max_page_size

    async def create_lesson(self, params: CreateLessonParams) -> Lesson:
        if not params.title.strip():
            raise ValidationError("title is required")
        return await self._repo.create(params)

    async def get_lesson(self, lesson_id: UUID) -> Lesson:
        return await self._repo.get(lesson_id)

    async def list_lessons(self, page_size: int = 0, page_token: str = "") -> tuple[list[Lesson], str]:
        if page_size <= 0:
            page_size = self._default_page_size
        page_size = min(page_size, self._max_page_size)

        offset = parse_offset_token(page_token)
        lessons = await self._repo.list(limit=page_size + 1, offset=offset)
        next_token = next_offset_token(offset=offset, page_size=page_size, fetched=len(lessons))
        return lessons[:page_size], next_token

    async def update_lesson(self, params: UpdateLessonParams) -> Lesson:
        if not params.title.strip():
            raise ValidationError("title is required")
        return await self._repo.update(params)

    async def delete_lesson(self, lesson_id: UUID) -> None:
        await self._repo.delete(lesson_id)
