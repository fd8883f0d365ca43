from __future__ import annotations

import pytest

from lession.api.deps import get_asset_service, get_lesson_service, get_series_service
from lession.core.settings import Settings
from lession.db.session import dispose_engine
from lession.providers.fake import FakeUploadProvider
from tests.fakes import fixed_clock


@pytest.mark.asyncio
async def test_services_and_repositories_share_one_clock() -> None:
    clock = fixed_clock()
    try:
        assets = get_asset_service(provider=FakeUploadProvider(), now=clock)
        series = get_series_service(now=clock)
        lessons = get_lesson_service(settings=Settings(), now=clock)

        assert assets._now is clock and assets._repo._now is clock
        assert series._now is clock and series._repo._now is clock
        assert lessons._repo._now is clock
    finally:
        await dispose_engine()
