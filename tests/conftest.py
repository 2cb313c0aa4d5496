"""Pytest configuration ensuring project root is importable.

Adds repository root and ``src/`` to sys.path explicitly to avoid
interpreter/path quirks, isolates config/env state between tests and
provides a throwaway module root.
"""
from __future__ import annotations

import os
import sys
import textwrap
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
SRC = ROOT / "src"
if SRC.exists() and str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


@pytest.fixture(autouse=True)
def _isolate_config_env(monkeypatch):  # noqa: D401
    """Ensure global config/env/metrics side effects do not leak.

    - Clear aggregated config cache between tests
    - Drop PORT / VEGA__* overrides inherited from the shell
    - Reset in-memory metrics
    """
    from core.config import clear_config_cache  # local import
    from core import metrics

    monkeypatch.delenv("PORT", raising=False)
    for key in list(os.environ):
        if key.startswith("VEGA__"):
            monkeypatch.delenv(key, raising=False)
    clear_config_cache()
    metrics.reset_for_tests()
    try:
        yield
    finally:
        clear_config_cache()


def write_provider(
    dist: Path, provider: str, name: str, source: str
) -> Path:
    """Write ``{dist}/{provider}/{name}`` with dedented ``source``."""
    path = dist / provider / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(source), encoding="utf-8")
    return path


@pytest.fixture()
def dist(tmp_path: Path) -> Path:
    d = tmp_path / "dist"
    d.mkdir()
    return d


@pytest.fixture()
def provider_file(dist: Path):
    """Callable writing provider source files under the temp module root."""

    def _write(provider: str, name: str, source: str) -> Path:
        return write_provider(dist, provider, name, source)

    return _write


@pytest.fixture()
def app_config(tmp_path: Path, dist: Path):
    from core.config import AggregatedConfig
    from core.config.schemas.server import PathsConfig

    return AggregatedConfig(paths=PathsConfig(root=str(tmp_path)))


@pytest.fixture()
def client(app_config):
    from fastapi.testclient import TestClient
    from vega_dev.api.app import create_app

    return TestClient(create_app(app_config))
