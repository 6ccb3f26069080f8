"""Tests for the file-backed key-value store."""

from wledfan.storage import Database


def test_missing_key_is_none(tmp_path):
    db = Database(tmp_path / "data")

    assert db.get("nothing") is None


def test_set_get_roundtrip(tmp_path):
    db = Database(tmp_path / "data")

    db.set("wled_devices", b"[]")
    db.set("wled_devices", b'[{"name": "x"}]')

    assert db.get("wled_devices") == b'[{"name": "x"}]'
    assert db.key_path("wled_devices").exists()
    # No temp files left behind
    assert sorted(p.name for p in db.path.iterdir()) == ["wled_devices.json"]


def test_init_creates_directory(tmp_path):
    db = Database(tmp_path / "data")

    assert db.init() is True
    assert db.init() is False
    assert db.path.is_dir()
