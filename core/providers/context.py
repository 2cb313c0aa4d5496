"""Provider context passed as the last argument to every provider call."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

from core.config.schemas.server import ProviderContextConfig


@dataclass(frozen=True)
class ProviderContext:
    url: str
    extra: Dict[str, Any] = field(default_factory=dict)

    def __getitem__(self, key: str) -> Any:
        # providers ported from dict-style contexts use ctx["url"]
        if key == "url":
            return self.url
        return self.extra[key]

    def get(self, key: str, default: Any = None) -> Any:
        try:
            return self[key]
        except KeyError:
            return default


def make_context(cfg: ProviderContextConfig) -> ProviderContext:
    """Build a fresh context; the config's ``extra`` dict is copied."""
    return ProviderContext(url=cfg.base_url, extra=dict(cfg.extra))


__all__ = ["ProviderContext", "make_context"]
