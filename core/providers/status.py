"""Manifest / module-root introspection. Recomputed on every call."""
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional


def list_providers(dist_dir: str | Path) -> List[str]:
    root = Path(dist_dir)
    if not root.is_dir():
        return []
    return sorted(p.name for p in root.iterdir() if p.is_dir())


def build_time(manifest_path: str | Path) -> Optional[str]:
    """Manifest mtime as ISO-8601 UTC, or None when there is no manifest."""
    p = Path(manifest_path)
    if not p.is_file():
        return None
    mtime = p.stat().st_mtime
    return (
        datetime.fromtimestamp(mtime, tz=timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


__all__ = ["list_providers", "build_time"]
