"""Server-side schemas: listener, paths, provider context, build, CORS."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Section(BaseModel):
    model_config = ConfigDict(extra="forbid")


class ServerConfig(_Section):
    host: str = "0.0.0.0"
    port: int = Field(7860, ge=1, le=65535)


class PathsConfig(_Section):
    # Relative entries resolve against ``root``.
    root: str = "."
    dist: str = "dist"
    manifest: str = "manifest.json"


class ProviderContextConfig(_Section):
    base_url: str = "https://example.com"
    extra: Dict[str, Any] = Field(default_factory=dict)


class BuildConfig(_Section):
    command: str = "python build.py"
    timeout_s: Optional[float] = Field(None, gt=0)


class CorsConfig(_Section):
    allow_origins: List[str] = Field(default_factory=lambda: ["*"])
    allow_methods: List[str] = Field(
        default_factory=lambda: ["GET", "POST", "OPTIONS"]
    )
    allow_headers: List[str] = Field(
        default_factory=lambda: ["Content-Type", "Authorization"]
    )
