"""Provider module loader.

Contract: ``load(path)`` ALWAYS executes the current file content in a new
module object. Nothing is memoised: no ``sys.modules`` entry survives the
call and no bytecode cache is read or written, so an edit on disk is seen
by the very next call. Callers must never assume two loads of the same
path return equal exports.

The module's top-level code runs unsandboxed; whatever it raises
propagates to the caller.

Limitation: a provider module is loaded standalone, with no parent package
and without its directory on ``sys.path``. Sibling imports
(``from . import utils`` or ``import utils``) therefore fail at load time;
each built module must be self-contained.
"""
from __future__ import annotations

import importlib.util
import itertools
import sys
from pathlib import Path
from types import ModuleType
from typing import Any, Dict

from core.errors import ProviderNotFound

MODULE_SUFFIX = ".py"

ExportMap = Dict[str, Any]

_load_seq = itertools.count(1)


def resolve_module_path(path: str | Path) -> Path:
    """Apply the auto-suffix rule: ``x`` → ``x.py`` when only that exists.

    Raises ProviderNotFound if neither candidate exists.
    """
    p = Path(path)
    if p.exists():
        return p
    if not p.suffix:
        candidate = p.with_name(p.name + MODULE_SUFFIX)
        if candidate.exists():
            return candidate
    raise ProviderNotFound(f"Module not found: {p}")


def _module_exports(module: ModuleType) -> ExportMap:
    """Ordered export map (declaration order).

    ``__all__`` wins when present. Otherwise public globals defined by the
    module itself; imported modules, functions and classes are skipped.
    """
    ns = vars(module)
    declared = ns.get("__all__")
    if declared is not None:
        return {name: ns[name] for name in declared if name in ns}
    exports: ExportMap = {}
    for name, value in ns.items():
        if name.startswith("_"):
            continue
        if isinstance(value, ModuleType):
            continue
        origin = getattr(value, "__module__", None)
        if (
            callable(value)
            and origin is not None
            and origin != module.__name__
        ):
            continue
        exports[name] = value
    return exports


def load(path: str | Path) -> ExportMap:
    """Execute the module at ``path`` afresh and return its exports."""
    file_path = resolve_module_path(path)
    if not file_path.is_file():
        raise ProviderNotFound(f"Not a module file: {file_path}")
    name = f"_vega_provider_{file_path.stem}_{next(_load_seq)}"
    spec = importlib.util.spec_from_file_location(name, file_path)
    if spec is None or spec.loader is None:  # pragma: no cover
        raise ProviderNotFound(f"Unable to load module: {file_path}")
    module = importlib.util.module_from_spec(spec)
    # compile from source ourselves: exec_module would consult __pycache__
    code = compile(file_path.read_bytes(), str(file_path), "exec")
    sys.modules[name] = module
    try:
        exec(code, module.__dict__)
    finally:
        sys.modules.pop(name, None)
    return _module_exports(module)


def serializable_exports(exports: ExportMap) -> ExportMap:
    """Drop callables (functions, classes) so the map can be JSON encoded."""
    return {k: v for k, v in exports.items() if not callable(v)}


__all__ = [
    "ExportMap",
    "MODULE_SUFFIX",
    "load",
    "resolve_module_path",
    "serializable_exports",
]
