from __future__ import annotations

from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Callable

from fastapi import Depends

from lession.core.settings import Settings, get_settings
from lession.db.session import get_session_maker
from lession.domain.asset import UploadProvider
from lession.providers.fake import FakeUploadProvider
from lession.providers.s3 import S3UploadProvider
from lession.repositories.asset_repository import SqlAssetRepository
from lession.repositories.lesson_repository import SqlLessonRepository
from lession.repositories.series_repository import SqlSeriesRepository
from lession.services.asset_service import AssetService
from lession.services.lesson_service import LessonService
from lession.services.series_service import SeriesService


def build_upload_provider(settings: Settings) -> UploadProvider:
    if settings.upload_provider == "s3":
        return S3UploadProvider(settings)
    return FakeUploadProvider(
        settings.upload_base_url,
        settings.playback_base_url,
        timedelta(seconds=settings.upload_expires_seconds),
    )


@lru_cache(maxsize=1)
def _cached_upload_provider() -> UploadProvider:
    return build_upload_provider(get_settings())


def get_upload_provider() -> UploadProvider:
    return _cached_upload_provider()


def get_clock() -> Callable[[], datetime]:
    # Services and their repositories share this time source.
    return lambda: datetime.now(timezone.utc)


def get_asset_service(
    provider: UploadProvider = Depends(get_upload_provider),
    now: Callable[[], datetime] = Depends(get_clock),
) -> AssetService:
    return AssetService(SqlAssetRepository(get_session_maker(), now=now), provider, now=now)


def get_series_service(now: Callable[[], datetime] = Depends(get_clock)) -> SeriesService:
    return SeriesService(SqlSeriesRepository(get_session_maker(), now=now), now=now)


def get_lesson_service(
    settings: Settings = Depends(get_settings),
    now: Callable[[], datetime] = Depends(get_clock),
) -> LessonService:
    return LessonService(
        SqlLessonRepository(get_session_maker(), now=now),
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size,
    )
