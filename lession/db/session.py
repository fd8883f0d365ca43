from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from lession.core.settings import get_settings

# asyncpg connections belong to the loop that opened them, so engines are kept
# per event loop (pytest-asyncio runs each test on its own loop).
_engines_by_loop: dict[int, AsyncEngine] = {}
_sessionmakers_by_loop: dict[int, async_sessionmaker[AsyncSession]] = {}


def _loop_key() -> int:
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = asyncio.get_event_loop()
    return id(loop)


def get_engine() -> AsyncEngine:
    key = _loop_key()
    engine = _engines_by_loop.get(key)
    if engine is None:
        engine = create_async_engine(get_settings().database_url, pool_pre_ping=True)
        _engines_by_loop[key] = engine
    return engine


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    key = _loop_key()
    maker = _sessionmakers_by_loop.get(key)
    if maker is None:
        maker = async_sessionmaker(bind=get_engine(), expire_on_commit=False, autoflush=False)
        _sessionmakers_by_loop[key] = maker
    return maker


async def dispose_engine() -> None:
    key = _loop_key()
    _sessionmakers_by_loop.pop(key, None)
    engine = _engines_by_loop.pop(key, None)
    if engine is not None:
        await engine.dispose()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    SessionLocal = get_session_maker()
    async with SessionLocal() as session:
        yield session
