from __future__ import annotations

from dataclasses import replace
from datetime import timedelta
from uuid import uuid4

import pytest

from lession.core.errors import (
    InvalidPageTokenError,
    NotFoundError,
    UploadIdentifierRequiredError,
    UploadInvalidStateError,
    ValidationError,
)
from lession.domain.asset import (
    AssetListFilter,
    AssetStatus,
    AssetType,
    CompleteUploadParams,
    CreateUploadParams,
    UploadIdentifier,
    UploadProtocol,
    UploadStatus,
)
from lession.providers.fake import FakeUploadProvider
from lession.services.asset_service import AssetService
from tests.fakes import FIXED_NOW, InMemoryAssetRepository, fixed_clock

MIB = 1024 * 1024


class _CountingProvider(FakeUploadProvider):
    def __init__(self) -> None:
        super().__init__(now=fixed_clock())
        self.create_calls = 0
        self.complete_calls = 0

    async def create_upload(self, params):
        self.create_calls += 1
        return await super().create_upload(params)

    async def complete_upload(self, params):
        self.complete_calls += 1
        return await super().complete_upload(params)


class _BrokenProvider(FakeUploadProvider):
    def __init__(self, *, fail_create: bool = False, fail_complete: bool = False) -> None:
        super().__init__(now=fixed_clock())
        self.fail_create = fail_create
        self.fail_complete = fail_complete

    async def create_upload(self, params):
        if self.fail_create:
            raise RuntimeError("vendor unavailable")
        return await super().create_upload(params)

    async def complete_upload(self, params):
        if self.fail_complete:
            raise RuntimeError("vendor unavailable")
        return await super().complete_upload(params)


class _UnavailableSessionRepo(InMemoryAssetRepository):
    async def get_upload_session_by_id(self, upload_id):
        raise RuntimeError("db down")


def _service() -> tuple[AssetService, InMemoryAssetRepository, _CountingProvider]:
    repo = InMemoryAssetRepository()
    provider = _CountingProvider()
    return AssetService(repo, provider, now=fixed_clock()), repo, provider


def _video(name: str = "intro.mp4", length: int = 10 * MIB) -> CreateUploadParams:
    return CreateUploadParams(
        type=AssetType.VIDEO,
        original_filename=name,
        mime_type="video/mp4",
        content_length=length,
    )


@pytest.mark.asyncio
async def test_create_upload_pairs_session_and_asset() -> None:
    svc, repo, _ = _service()

    res = await svc.create_upload(_video())

    assert res.session.status == UploadStatus.AWAITING_UPLOAD
    assert res.session.protocol == UploadProtocol.PRESIGNED_PUT
    assert res.asset.status == AssetStatus.PENDING
    assert res.session.asset_key == res.asset.asset_key
    assert res.session.created_at == FIXED_NOW
    assert res.asset.created_at == FIXED_NOW
    assert res.session.expires_at == FIXED_NOW + timedelta(minutes=15)
    assert res.session.target.method == "PUT"
    assert res.session.target.url.endswith(f"/{res.asset.asset_key}")
    assert res.session.target.headers["Content-Type"] == "video/mp4"

    assert repo.sessions[res.session.id].asset_key == res.asset.asset_key
    assert repo.assets[res.asset.id].filesize == 10 * MIB


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "params",
    [
        CreateUploadParams(type=AssetType.UNSPECIFIED, original_filename="a.mp4", mime_type="video/mp4", content_length=1),
        CreateUploadParams(type=AssetType.VIDEO, original_filename="", mime_type="video/mp4", content_length=1),
        CreateUploadParams(type=AssetType.VIDEO, original_filename="a.mp4", mime_type="", content_length=1),
        CreateUploadParams(type=AssetType.VIDEO, original_filename="a.mp4", mime_type="video/mp4", content_length=-1),
    ],
)
async def test_create_upload_rejects_invalid_input_before_side_effects(params) -> None:
    svc, repo, provider = _service()

    with pytest.raises(ValidationError):
        await svc.create_upload(params)

    assert provider.create_calls == 0
    assert repo.sessions == {}
    assert repo.assets == {}


@pytest.mark.asyncio
async def test_get_upload_session_requires_an_identifier() -> None:
    svc, _, _ = _service()

    with pytest.raises(UploadIdentifierRequiredError):
        await svc.get_upload_session(UploadIdentifier())


@pytest.mark.asyncio
async def test_get_upload_session_falls_back_to_asset_key() -> None:
    svc, _, _ = _service()
    created = await svc.create_upload(_video())

    by_key = await svc.get_upload_session(UploadIdentifier(asset_key=created.asset.asset_key))
    assert by_key.id == created.session.id

    # Unknown id plus a known key resolves through the key.
    fallback = await svc.get_upload_session(
        UploadIdentifier(upload_id=uuid4(), asset_key=created.asset.asset_key)
    )
    assert fallback.id == created.session.id

    with pytest.raises(NotFoundError):
        await svc.get_upload_session(UploadIdentifier(upload_id=uuid4()))


@pytest.mark.asyncio
async def test_complete_upload_marks_asset_ready() -> None:
    svc, repo, _ = _service()
    created = await svc.create_upload(_video(length=1))

    res = await svc.complete_upload(
        CompleteUploadParams(
            identifier=UploadIdentifier(upload_id=created.session.id),
            checksum="abc",
            content_length=12 * MIB,
        )
    )

    assert res.session.status == UploadStatus.COMPLETED
    assert res.asset.id == created.asset.id
    assert res.asset.status == AssetStatus.READY
    assert res.asset.ready_at == FIXED_NOW
    # Filesize comes from the completed length, not the declared one.
    assert res.asset.filesize == 12 * MIB
    assert res.asset.duration == timedelta(minutes=2)
    assert res.asset.playback_url.endswith(f"/{created.asset.asset_key}/master.m3u8")

    assert repo.sessions[created.session.id].status == UploadStatus.COMPLETED
    assert repo.assets[created.asset.id].status == AssetStatus.READY


@pytest.mark.asyncio
async def test_complete_upload_twice_fails_and_keeps_first_result() -> None:
    svc, repo, provider = _service()
    created = await svc.create_upload(_video())
    ident = UploadIdentifier(asset_key=created.asset.asset_key)

    first = await svc.complete_upload(CompleteUploadParams(identifier=ident, content_length=5 * MIB))

    with pytest.raises(UploadInvalidStateError):
        await svc.complete_upload(CompleteUploadParams(identifier=ident, content_length=50 * MIB))

    assert provider.complete_calls == 1
    assert repo.assets[created.asset.id] == first.asset
    assert repo.sessions[created.session.id] == first.session


@pytest.mark.asyncio
async def test_complete_upload_rejects_negative_length() -> None:
    svc, _, provider = _service()
    created = await svc.create_upload(_video())

    with pytest.raises(ValidationError):
        await svc.complete_upload(
            CompleteUploadParams(identifier=UploadIdentifier(upload_id=created.session.id), content_length=-5)
        )
    assert provider.complete_calls == 0


@pytest.mark.asyncio
async def test_list_assets_filters_and_pages() -> None:
    svc, _, _ = _service()
    await svc.create_upload(_video("a.mp4"))
    await svc.create_upload(_video("b.mp4"))
    audio = await svc.create_upload(
        CreateUploadParams(type=AssetType.AUDIO, original_filename="c.mp3", mime_type="audio/mpeg", content_length=3)
    )

    only_audio, token = await svc.list_assets(AssetListFilter(types=[AssetType.AUDIO]))
    assert [a.id for a in only_audio] == [audio.asset.id]
    assert token == ""

    first, token = await svc.list_assets(AssetListFilter(page_size=2))
    assert len(first) == 2
    assert token
    rest, token = await svc.list_assets(AssetListFilter(page_size=2, page_token=token))
    assert len(rest) == 1
    assert token == ""

    with pytest.raises(ValidationError):
        await svc.list_assets(AssetListFilter(page_size=-1))
    with pytest.raises(InvalidPageTokenError):
        await svc.list_assets(AssetListFilter(page_token="not-a-number"))


@pytest.mark.asyncio
async def test_update_asset_refreshes_updated_at() -> None:
    later = FIXED_NOW + timedelta(hours=1)
    repo = InMemoryAssetRepository()
    created = await AssetService(repo, FakeUploadProvider(), now=fixed_clock()).create_upload(_video())

    svc = AssetService(repo, FakeUploadProvider(), now=fixed_clock(later))
    asset = created.asset
    asset.original_filename = "renamed.mp4"
    asset.updated_at = FIXED_NOW - timedelta(days=30)

    updated = await svc.update_asset(asset)

    assert updated.updated_at == later
    assert repo.assets[asset.id].original_filename == "renamed.mp4"


@pytest.mark.asyncio
async def test_update_asset_to_ready_stamps_ready_at() -> None:
    later = FIXED_NOW + timedelta(hours=1)
    repo = InMemoryAssetRepository()
    created = await AssetService(repo, FakeUploadProvider(), now=fixed_clock()).create_upload(_video())
    svc = AssetService(repo, FakeUploadProvider(), now=fixed_clock(later))

    updated = await svc.update_asset(replace(created.asset, status=AssetStatus.READY))
    assert updated.ready_at == later
    assert repo.assets[created.asset.id].ready_at == later

    # An existing ready_at is kept on later edits.
    again = await AssetService(repo, FakeUploadProvider(), now=fixed_clock(later + timedelta(hours=1))).update_asset(
        replace(updated, original_filename="renamed.mp4")
    )
    assert again.ready_at == later

    pending = await svc.update_asset(replace(created.asset, original_filename="pending.mp4"))
    assert pending.status == AssetStatus.PENDING
    assert pending.ready_at is None


@pytest.mark.asyncio
async def test_session_lookup_error_is_not_masked_by_key_fallback() -> None:
    repo = _UnavailableSessionRepo()
    svc = AssetService(repo, FakeUploadProvider(), now=fixed_clock())
    created = await svc.create_upload(_video())

    with pytest.raises(RuntimeError, match="db down"):
        await svc.get_upload_session(
            UploadIdentifier(upload_id=created.session.id, asset_key=created.asset.asset_key)
        )


@pytest.mark.asyncio
async def test_create_upload_provider_failure_persists_nothing() -> None:
    repo = InMemoryAssetRepository()
    svc = AssetService(repo, _BrokenProvider(fail_create=True), now=fixed_clock())

    with pytest.raises(RuntimeError, match="vendor unavailable"):
        await svc.create_upload(_video())
    assert repo.sessions == {}
    assert repo.assets == {}


@pytest.mark.asyncio
async def test_complete_upload_provider_failure_leaves_state_untouched() -> None:
    repo = InMemoryAssetRepository()
    provider = _BrokenProvider(fail_complete=True)
    svc = AssetService(repo, provider, now=fixed_clock())
    created = await svc.create_upload(_video())

    with pytest.raises(RuntimeError, match="vendor unavailable"):
        await svc.complete_upload(CompleteUploadParams(identifier=UploadIdentifier(upload_id=created.session.id)))

    assert repo.sessions[created.session.id].status == UploadStatus.AWAITING_UPLOAD
    assert repo.assets[created.asset.id].status == AssetStatus.PENDING
    assert repo.assets[created.asset.id].ready_at is None


@pytest.mark.asyncio
async def test_delete_asset_soft_and_hard() -> None:
    svc, repo, _ = _service()
    soft = await svc.create_upload(_video("soft.mp4"))
    hard = await svc.create_upload(_video("hard.mp4"))

    marked = await svc.delete_asset(soft.asset.id)
    assert marked is not None
    assert marked.status == AssetStatus.DELETED
    assert soft.asset.id in repo.assets

    assert await svc.delete_asset(hard.asset.id, hard_delete=True) is None
    assert hard.asset.id not in repo.assets

    with pytest.raises(NotFoundError):
        await svc.get_asset(hard.asset.id)


@pytest.mark.asyncio
async def test_asset_lookups_validate_input() -> None:
    svc, _, _ = _service()

    with pytest.raises(ValidationError):
        await svc.get_asset(None)
    with pytest.raises(ValidationError):
        await svc.get_asset_by_key("")
    with pytest.raises(ValidationError):
        await svc.delete_asset(None)
