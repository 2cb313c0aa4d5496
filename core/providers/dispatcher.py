"""Request dispatcher: ``/{provider}/{function}`` → provider call → value.

Resolution:
 1. Reserved provider names never reach the filesystem (ProviderNotFound).
 2. File ``{dist}/{provider}/{function}.py``; ``watch`` falls back to
    ``stream.py``. Missing → ProviderNotFound naming both parts.
 3. Fresh module load (see ``core.providers.loader``).
 4. Export selection by an ordered strategy list (SELECTION_ORDER).
 5. Non-callable selection is returned as-is (static data).
 6. Callable: positional args from ARGUMENT_TABLE, context appended last,
    awaited when the call returns an awaitable.

Load or call failures surface as ExecutionError with the formatted trace.
"""
from __future__ import annotations

import inspect
import logging
import time
import traceback
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Sequence, Tuple

from core import metrics
from core.errors import ExecutionError, ProviderNotFound
from core.providers import loader
from core.providers.context import ProviderContext
from core.providers.loader import ExportMap

log = logging.getLogger(__name__)

RESERVED_PROVIDERS = frozenset(
    {"manifest.json", "dist", "build", "status", "providers", "health"}
)

# "watch" and "stream" name the same capability
WATCH_ALIAS = "watch"
STREAM = "stream"


class ExportStrategy(Enum):
    NAMED = "named"
    DEFAULT = "default"
    FIRST = "first"


SELECTION_ORDER: Tuple[ExportStrategy, ...] = (
    ExportStrategy.NAMED,
    ExportStrategy.DEFAULT,
    ExportStrategy.FIRST,
)
WATCH_SELECTION_ORDER: Tuple[ExportStrategy, ...] = (
    ExportStrategy.NAMED,
    ExportStrategy.DEFAULT,
)


def _matches(value: Any) -> bool:
    """None, False, 0, NaN and "" never match; lists and dicts always do."""
    if value is None:
        return False
    if isinstance(value, float) and value != value:
        return False
    if isinstance(value, (bool, int, float, str, bytes)):
        return bool(value)
    return True


def _lookup(strategy: ExportStrategy, exports: ExportMap, name: str) -> Any:
    if strategy is ExportStrategy.NAMED:
        return exports.get(name)
    if strategy is ExportStrategy.DEFAULT:
        return exports.get("default")
    return next(iter(exports.values()), None)


def select_export(exports: ExportMap, function_name: str) -> Any:
    """Return the first matching export in strategy order, else ``None``.

    For ``watch`` the named lookup targets ``stream`` and FIRST is not
    consulted.
    """
    if function_name == WATCH_ALIAS:
        order: Sequence[ExportStrategy] = WATCH_SELECTION_ORDER
        name = STREAM
    else:
        order = SELECTION_ORDER
        name = function_name
    for strategy in order:
        value = _lookup(strategy, exports, name)
        if _matches(value):
            return value
    return None


# --- Argument derivation ---------------------------------------------------

Query = Mapping[str, str]
ArgExtractor = Callable[[Query, Query], Tuple[Any, ...]]


def _posts_args(q: Query, p: Query) -> Tuple[Any, ...]:
    return (q.get("filter") or "", q.get("page") or 1)


def _search_args(q: Query, p: Query) -> Tuple[Any, ...]:
    return (q.get("query") or p.get("query"), q.get("page") or 1)


def _stream_args(q: Query, p: Query) -> Tuple[Any, ...]:
    return (q.get("id") or q.get("link"), q.get("type") or "")


def _meta_args(q: Query, p: Query) -> Tuple[Any, ...]:
    return (q.get("link"),)


def _episodes_args(q: Query, p: Query) -> Tuple[Any, ...]:
    return (q.get("url") or q.get("link"),)


def _context_only(q: Query, p: Query) -> Tuple[Any, ...]:
    return ()


ARGUMENT_TABLE: Dict[str, ArgExtractor] = {
    "posts": _posts_args,
    "search": _search_args,
    "stream": _stream_args,
    "watch": _stream_args,
    "catalog": _context_only,
    "meta": _meta_args,
    "episodes": _episodes_args,
}


def derive_args(
    function_name: str,
    query: Query,
    ctx: ProviderContext,
    path_params: Query | None = None,
) -> Tuple[Any, ...]:
    """Positional arguments for ``function_name``; ``ctx`` is always last."""
    extractor = ARGUMENT_TABLE.get(function_name, _context_only)
    return (*extractor(query, path_params or {}), ctx)


# --- Dispatcher ------------------------------------------------------------

class Dispatcher:
    def __init__(
        self,
        dist_dir: str | Path,
        context_factory: Callable[[], ProviderContext],
    ) -> None:
        self.dist_dir = Path(dist_dir)
        self._context_factory = context_factory

    def resolve_file(self, provider: str, function_name: str) -> Path:
        if provider in RESERVED_PROVIDERS:
            raise ProviderNotFound("Not found")
        provider_dir = self.dist_dir / provider
        path = provider_dir / (function_name + loader.MODULE_SUFFIX)
        if path.exists():
            return path
        if function_name == WATCH_ALIAS:
            stream_path = provider_dir / (STREAM + loader.MODULE_SUFFIX)
            if stream_path.exists():
                return stream_path
        raise ProviderNotFound(
            f"Function {function_name} not found for {provider}"
        )

    async def dispatch(
        self,
        provider: str,
        function_name: str,
        query: Query,
        path_params: Query | None = None,
    ) -> Any:
        try:
            path = self.resolve_file(provider, function_name)
        except ProviderNotFound:
            metrics.inc_provider_call(provider, function_name, "not_found")
            raise
        t0 = time.time()
        try:
            exports = loader.load(path)
            target = select_export(exports, function_name)
            if not callable(target):
                metrics.inc_provider_call(provider, function_name, "static")
                return target
            args = derive_args(
                function_name, query, self._context_factory(), path_params
            )
            result = target(*args)
            if inspect.isawaitable(result):
                result = await result
        except ProviderNotFound:
            metrics.inc_provider_call(provider, function_name, "not_found")
            raise
        except Exception as e:  # noqa: BLE001
            log.exception(
                "Execution error for %s/%s", provider, function_name
            )
            metrics.inc_provider_call(provider, function_name, "error")
            raise ExecutionError(
                str(e) or e.__class__.__name__, traceback.format_exc()
            ) from e
        metrics.inc_provider_call(provider, function_name, "ok")
        metrics.observe(
            "provider_call_latency_ms",
            (time.time() - t0) * 1000.0,
            {"provider": provider, "function": function_name},
        )
        return result


__all__ = [
    "RESERVED_PROVIDERS",
    "ExportStrategy",
    "SELECTION_ORDER",
    "ARGUMENT_TABLE",
    "select_export",
    "derive_args",
    "Dispatcher",
]
