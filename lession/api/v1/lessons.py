from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from lession.api.deps import get_lesson_service
from lession.domain.lesson import CreateLessonParams, UpdateLessonParams
from lession.schemas.lesson import LessonListResponse, LessonPublic, LessonWrite
from lession.services.lesson_service import LessonService

router = APIRouter(prefix="/lessons", tags=["lessons"])


@router.get("", response_model=LessonListResponse)
async def list_lessons(
    page_size: int = Query(default=0, ge=0),
    page_token: str = Query(default=""),
    service: LessonService = Depends(get_lesson_service),
) -> LessonListResponse:
    lessons, next_token = await service.list_lessons(page_size=page_size, page_token=page_token)
    return LessonListResponse(
        lessons=[LessonPublic.model_validate(lesson) for lesson in lessons],
        next_page_token=next_token,
    )


@router.post("", response_model=LessonPublic, status_code=status.HTTP_201_CREATED)
async def create_lesson(body: LessonWrite, service: LessonService = Depends(get_lesson_service)) -> LessonPublic:
    lesson = await service.create_lesson(
        CreateLessonParams(
            title=body.title,
            description=body.description,
            teacher=body.teacher,
            duration_minutes=body.duration_minutes,
        )
    )
    return LessonPublic.model_validate(lesson)


@router.get("/{lesson_id}", response_model=LessonPublic)
async def get_lesson(lesson_id: UUID, service: LessonService = Depends(get_lesson_service)) -> LessonPublic:
    return LessonPublic.model_validate(await service.get_lesson(lesson_id))


@router.put("/{lesson_id}", response_model=LessonPublic)
async def update_lesson(
    lesson_id: UUID,
    body: LessonWrite,
    service: LessonService = Depends(get_lesson_service),
) -> LessonPublic:
    lesson = await service.update_lesson(
        UpdateLessonParams(
            id=lesson_id,
            title=body.title,
            description=body.description,
            teacher=body.teacher,
            duration_minutes=body.duration_minutes,
        )
    )
    return LessonPublic.model_validate(lesson)


@router.delete("/{lesson_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_lesson(lesson_id: UUID, service: LessonService = Depends(get_lesson_service)) -> Response:
    await service.delete_lesson(lesson_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
