"""Tests for upload storage."""

from pathlib import Path

import pytest

from quantum5ocial.settings import get_settings
from quantum5ocial.stores.files import StorageError, delete_object, save_object

PNG = b"\x89PNG\r\n\x1a\nfake"


@pytest.fixture
def storage(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    settings = get_settings()
    monkeypatch.setattr(settings, "storage_dir", str(tmp_path))
    monkeypatch.setattr(settings, "storage_public_url", "/uploads")
    monkeypatch.setattr(settings, "max_upload_bytes", 64)
    return tmp_path


def test_save_and_delete_avatar(storage: Path):
    url = save_object("avatars", "user-1", "image/png", PNG)
    assert url.startswith("/uploads/avatars/user-1/")
    assert url.endswith(".png")

    stored = storage / url.removeprefix("/uploads/")
    assert stored.read_bytes() == PNG

    assert delete_object("avatars", url) is True
    assert not stored.exists()
    assert delete_object("avatars", url) is False


def test_rejects_wrong_content_type(storage: Path):
    with pytest.raises(StorageError):
        save_object("datasheets", "user-1", "image/png", PNG)


def test_rejects_empty_and_oversize(storage: Path):
    with pytest.raises(StorageError):
        save_object("avatars", "user-1", "image/png", b"")
    with pytest.raises(StorageError):
        save_object("avatars", "user-1", "image/png", b"x" * 65)


def test_delete_ignores_foreign_and_escaping_urls(storage: Path):
    (storage / "secret.txt").write_text("keep")
    assert delete_object("avatars", "https://elsewhere.example/avatars/a.png") is False
    assert delete_object("avatars", "/uploads/avatars/../secret.txt") is False
    assert (storage / "secret.txt").exists()
