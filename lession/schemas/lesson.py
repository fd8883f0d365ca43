from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LessonWrite(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    teacher: str | None = Field(default=None, max_length=255)
    duration_minutes: int = Field(default=0, ge=0)

    @field_validator("title")
    @classmethod
    def _normalize_title(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Lesson title is required")
        return v


class LessonPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str | None
    teacher: str | None
    duration_minutes: int
    created_at: datetime
    updated_at: datetime


class LessonListResponse(BaseModel):
    lessons: list[LessonPublic]
    next_page_token: str
