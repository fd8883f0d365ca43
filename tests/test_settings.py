from __future__ import annotations

import pytest
from pydantic import ValidationError

from lession.api.deps import build_upload_provider
from lession.core.settings import Settings, get_settings
from lession.providers.fake import FakeUploadProvider
from lession.providers.s3 import S3UploadProvider


def test_settings_from_env(monkeypatch) -> None:
    monkeypatch.setenv("CORS_ORIGINS", '["http://localhost:3000","http://localhost:5173"]')
    monkeypatch.setenv("MAX_PAGE_SIZE", "50")
    get_settings.cache_clear()
    try:
        settings = get_settings()
        assert settings.cors_origins == ["http://localhost:3000", "http://localhost:5173"]
        assert settings.max_page_size == 50
        assert settings.upload_provider == "fake"
    finally:
        get_settings.cache_clear()


def test_cors_origins_accepts_comma_separated_string() -> None:
    settings = Settings(CORS_ORIGINS="http://a, http://b,")
    assert settings.cors_origins == ["http://a", "http://b"]


def test_s3_provider_requires_bucket() -> None:
    with pytest.raises(ValidationError):
        Settings(UPLOAD_PROVIDER="s3", S3_BUCKET=None)


def test_page_size_policy() -> None:
    with pytest.raises(ValidationError):
        Settings(DEFAULT_PAGE_SIZE=50, MAX_PAGE_SIZE=10)
    with pytest.raises(ValidationError):
        Settings(UPLOAD_EXPIRES_SECONDS=0)


def test_build_upload_provider() -> None:
    assert isinstance(build_upload_provider(Settings(UPLOAD_PROVIDER="fake")), FakeUploadProvider)
    assert isinstance(build_upload_provider(Settings(UPLOAD_PROVIDER="s3", S3_BUCKET="b")), S3UploadProvider)
