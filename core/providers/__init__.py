"""Provider runtime: fresh module loading and request dispatch.

 - loader: path → ordered export map, reloaded on every call
 - dispatcher: provider/function → export selection → call → value
 - context: ProviderContext handed to every provider call
 - status: module root listing, manifest timestamp
 - build: synchronous external build trigger
"""
from __future__ import annotations

from .context import ProviderContext, make_context  # noqa: F401
from .dispatcher import Dispatcher, RESERVED_PROVIDERS  # noqa: F401

__all__ = [
    "ProviderContext",
    "make_context",
    "Dispatcher",
    "RESERVED_PROVIDERS",
]
