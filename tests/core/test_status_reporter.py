import os
from datetime import datetime, timezone

from core.providers.status import build_time, list_providers


def test_list_providers_only_directories(dist):
    (dist / "beta").mkdir()
    (dist / "alpha").mkdir()
    (dist / "stray.py").write_text("x = 1\n", encoding="utf-8")
    assert list_providers(dist) == ["alpha", "beta"]


def test_list_providers_reflects_directory_at_call_time(dist):
    assert list_providers(dist) == []
    (dist / "fresh").mkdir()
    assert list_providers(dist) == ["fresh"]


def test_list_providers_missing_root(tmp_path):
    assert list_providers(tmp_path / "nowhere") == []


def test_build_time_absent_without_manifest(tmp_path):
    assert build_time(tmp_path / "manifest.json") is None


def test_build_time_is_manifest_mtime(tmp_path):
    manifest = tmp_path / "manifest.json"
    manifest.write_text("[]", encoding="utf-8")
    stamp = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc).timestamp()
    os.utime(manifest, (stamp, stamp))
    assert build_time(manifest) == "2024-05-01T12:30:00.000Z"
