"""
Unit tests for image uploads to local storage.
"""
from pathlib import Path

import pytest

from venturematch.storage import upload_image
from venturematch.storage.uploads import validate_image

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


@pytest.mark.unit
def test_validate_image():
    validate_image("image/png", 10, 1)

    with pytest.raises(ValueError, match="Invalid image type"):
        validate_image("application/pdf", 10, 1)
    with pytest.raises(ValueError, match="Uploaded file is empty"):
        validate_image("image/png", 0, 1)
    with pytest.raises(ValueError, match="File size exceeds 1MB limit"):
        validate_image("image/png", 1024 * 1024 + 1, 1)


@pytest.mark.unit
def test_upload_writes_under_bucket_and_owner(app_env):
    url = upload_image("company-logos", 7, "logo.png", PNG, "image/png")

    assert url.startswith("/storage/company-logos/7/")
    assert url.endswith(".png")
    stored = Path(app_env) / "storage" / "company-logos" / "7" / url.rsplit("/", 1)[1]
    assert stored.read_bytes() == PNG


@pytest.mark.unit
def test_upload_names_are_unique(app_env):
    first = upload_image("profile-images", 1, "me.png", PNG, "image/png")
    second = upload_image("profile-images", 1, "me.png", PNG, "image/png")
    assert first != second


@pytest.mark.unit
def test_upload_public_url_setting(app_env, monkeypatch):
    from venturematch.core.config import reset_settings

    monkeypatch.setenv("PUBLIC_STORAGE_URL", "https://cdn.venturematch.io/")
    reset_settings()

    url = upload_image("company-covers", 3, "cover.jpg", b"jpeg-bytes", "image/jpeg")

    assert url.startswith("https://cdn.venturematch.io/company-covers/3/")
    assert url.endswith(".jpg")


@pytest.mark.unit
def test_upload_unknown_bucket(app_env):
    with pytest.raises(ValueError, match="Unknown storage bucket"):
        upload_image("secrets", 1, "x.png", PNG, "image/png")
