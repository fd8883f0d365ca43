from __future__ import annotations

from uuid import uuid4

import httpx
import pytest

from lession.api.deps import get_asset_service, get_lesson_service, get_series_service
from lession.main import app
from lession.providers.fake import FakeUploadProvider
from lession.services.asset_service import AssetService
from lession.services.lesson_service import LessonService
from lession.services.series_service import SeriesService
from tests.fakes import (
    InMemoryAssetRepository,
    InMemoryLessonRepository,
    InMemorySeriesRepository,
    fixed_clock,
)


@pytest.fixture
def client_factory():
    asset_repo = InMemoryAssetRepository()
    series_repo = InMemorySeriesRepository()
    lesson_repo = InMemoryLessonRepository()

    app.dependency_overrides[get_asset_service] = lambda: AssetService(
        asset_repo, FakeUploadProvider(now=fixed_clock()), now=fixed_clock()
    )
    app.dependency_overrides[get_series_service] = lambda: SeriesService(series_repo, now=fixed_clock())
    app.dependency_overrides[get_lesson_service] = lambda: LessonService(lesson_repo)

    def _client() -> httpx.AsyncClient:
        transport = httpx.ASGITransport(app=app)
        return httpx.AsyncClient(transport=transport, base_url="http://test")

    yield _client
    app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_health() -> None:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        res = await client.get("/health")
    assert res.status_code == 200
    assert res.json() == {"ok": True}


@pytest.mark.asyncio
async def test_upload_lifecycle(client_factory) -> None:
    async with client_factory() as client:
        created = await client.post(
            "/api/v1/uploads",
            json={
                "type": "video",
                "original_filename": "lecture.mp4",
                "mime_type": "video/mp4",
                "content_length": 1024,
            },
        )
        assert created.status_code == 201, created.text
        body = created.json()
        assert body["session"]["status"] == "awaiting_upload"
        assert body["asset"]["status"] == "pending"
        assert body["session"]["target"]["method"] == "PUT"
        asset_key = body["asset"]["asset_key"]
        upload_id = body["session"]["id"]

        lookup = await client.get("/api/v1/uploads/lookup", params={"asset_key": asset_key})
        assert lookup.status_code == 200
        assert lookup.json()["id"] == upload_id

        missing_ident = await client.get("/api/v1/uploads/lookup")
        assert missing_ident.status_code == 400

        done = await client.post(
            "/api/v1/uploads/complete",
            json={"upload_id": upload_id, "content_length": 10 * 1024 * 1024},
        )
        assert done.status_code == 200, done.text
        asset = done.json()["asset"]
        assert asset["status"] == "ready"
        assert asset["duration"] == 120.0
        assert asset["filesize"] == 10 * 1024 * 1024
        assert asset["ready_at"].startswith("2024-01-01T00:00:00")
        assert done.json()["session"]["status"] == "completed"

        again = await client.post("/api/v1/uploads/complete", json={"upload_id": upload_id})
        assert again.status_code == 409

        by_key = await client.get(f"/api/v1/assets/by-key/{asset_key}")
        assert by_key.status_code == 200
        assert by_key.json()["id"] == asset["id"]


@pytest.mark.asyncio
async def test_create_upload_validation(client_factory) -> None:
    async with client_factory() as client:
        unspecified = await client.post(
            "/api/v1/uploads",
            json={"type": "unspecified", "original_filename": "a", "mime_type": "video/mp4"},
        )
        assert unspecified.status_code == 400

        unknown_field = await client.post(
            "/api/v1/uploads",
            json={"type": "video", "original_filename": "a", "mime_type": "video/mp4", "bogus": 1},
        )
        assert unknown_field.status_code == 422


@pytest.mark.asyncio
async def test_asset_patch_and_delete(client_factory) -> None:
    async with client_factory() as client:
        created = await client.post(
            "/api/v1/uploads",
            json={"type": "audio", "original_filename": "a.mp3", "mime_type": "audio/mpeg", "content_length": 5},
        )
        asset_id = created.json()["asset"]["id"]

        patched = await client.patch(
            f"/api/v1/assets/{asset_id}",
            json={"asset": {"original_filename": "renamed.mp3"}, "update_mask": ["original_filename"]},
        )
        assert patched.status_code == 200, patched.text
        assert patched.json()["original_filename"] == "renamed.mp3"
        assert patched.json()["mime_type"] == "audio/mpeg"

        bad_mask = await client.patch(
            f"/api/v1/assets/{asset_id}",
            json={"asset": {}, "update_mask": ["asset_key"]},
        )
        assert bad_mask.status_code == 400

        listed = await client.get("/api/v1/assets", params={"type": "audio"})
        assert [a["id"] for a in listed.json()["assets"]] == [asset_id]

        bad_token = await client.get("/api/v1/assets", params={"page_token": "abc"})
        assert bad_token.status_code == 400

        soft = await client.delete(f"/api/v1/assets/{asset_id}")
        assert soft.status_code == 200
        assert soft.json()["asset"]["status"] == "deleted"

        hard = await client.delete(f"/api/v1/assets/{asset_id}", params={"hard_delete": "true"})
        assert hard.status_code == 200
        assert hard.json() == {"asset": None}

        gone = await client.get(f"/api/v1/assets/{asset_id}")
        assert gone.status_code == 404


@pytest.mark.asyncio
async def test_series_and_episode_endpoints(client_factory) -> None:
    async with client_factory() as client:
        created = await client.post(
            "/api/v1/series",
            json={
                "slug": "intro",
                "title": "Intro",
                "language": "en",
                "episodes": [{"seq": 1, "title": "Ep1"}, {"seq": 2, "title": "Ep2", "duration": 90}],
            },
        )
        assert created.status_code == 201, created.text
        series = created.json()
        assert series["status"] == "draft"
        assert series["episode_count"] == 2
        assert series["tags"] is None
        assert series["episodes"][1]["duration"] == 90.0
        series_id = series["id"]

        dup = await client.post(
            "/api/v1/series",
            json={"slug": "dup", "title": "Dup", "episodes": [{"seq": 1, "title": "A"}, {"seq": 1, "title": "B"}]},
        )
        assert dup.status_code == 400

        slug_taken = await client.post("/api/v1/series", json={"slug": "intro", "title": "Again"})
        assert slug_taken.status_code == 409

        published = await client.patch(
            f"/api/v1/series/{series_id}",
            json={"series": {"status": "published"}, "update_mask": ["status"]},
        )
        assert published.status_code == 200, published.text
        assert published.json()["published_at"].startswith("2024-01-01T00:00:00")
        assert published.json()["title"] == "Intro"

        ep = await client.post(f"/api/v1/series/{series_id}/episodes", json={"seq": 3, "title": "Ep3"})
        assert ep.status_code == 201
        episode_id = ep.json()["id"]

        clash = await client.post(f"/api/v1/series/{series_id}/episodes", json={"seq": 3, "title": "Ep3b"})
        assert clash.status_code == 409

        renamed = await client.patch(
            f"/api/v1/episodes/{episode_id}",
            json={"episode": {"title": "Episode 3", "status": "ready"}, "update_mask": ["title", "status"]},
        )
        assert renamed.status_code == 200, renamed.text
        assert renamed.json()["title"] == "Episode 3"
        assert renamed.json()["seq"] == 3

        deleted = await client.delete(f"/api/v1/episodes/{episode_id}")
        assert deleted.status_code == 200
        assert deleted.json()["status"] == "archived"

        fetched = await client.get(f"/api/v1/series/{series_id}", params={"include_episodes": "true"})
        assert fetched.json()["episode_count"] == 2
        assert [e["seq"] for e in fetched.json()["episodes"]] == [1, 2]

        listed = await client.get("/api/v1/series", params={"language": "en"})
        assert [s["id"] for s in listed.json()["series"]] == [series_id]
        assert listed.json()["next_page_token"] == ""

        missing = await client.get(f"/api/v1/series/{uuid4()}")
        assert missing.status_code == 404


@pytest.mark.asyncio
async def test_lesson_endpoints(client_factory) -> None:
    async with client_factory() as client:
        created = await client.post("/api/v1/lessons", json={"title": "Photosynthesis", "duration_minutes": 40})
        assert created.status_code == 201
        lesson_id = created.json()["id"]

        blank = await client.post("/api/v1/lessons", json={"title": "   "})
        assert blank.status_code == 422

        updated = await client.put(
            f"/api/v1/lessons/{lesson_id}",
            json={"title": "Photosynthesis II", "teacher": "Mr. Okafor", "duration_minutes": 45},
        )
        assert updated.status_code == 200
        assert updated.json()["teacher"] == "Mr. Okafor"

        listed = await client.get("/api/v1/lessons")
        assert [item["id"] for item in listed.json()["lessons"]] == [lesson_id]

        removed = await client.delete(f"/api/v1/lessons/{lesson_id}")
        assert removed.status_code == 204

        missing = await client.get(f"/api/v1/lessons/{lesson_id}")
        assert missing.status_code == 404
