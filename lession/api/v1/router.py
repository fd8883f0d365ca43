from __future__ import annotations

from fastapi import APIRouter

from lession.api.v1 import assets, lessons, series, uploads

api_router = APIRouter()
api_router.include_router(uploads.router)
api_router.include_router(assets.router)
api_router.include_router(series.router)
api_router.include_router(series.episodes_router)
api_router.include_router(lessons.router)
