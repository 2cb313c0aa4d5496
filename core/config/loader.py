"""Configuration loading & validation.

Precedence (last wins): base.yaml → overrides.local.yaml → ENV (VEGA__*).
``PORT`` is honoured as a shortcut for ``VEGA__SERVER__PORT``.

Every section is optional; missing sections fall back to schema defaults.
Unknown sections and unknown keys inside a section are rejected.
"""
from __future__ import annotations

import logging
import os
import pathlib
import threading
from functools import lru_cache
from typing import Any, Dict, Type

import yaml
from core import metrics
from pydantic import BaseModel, ConfigDict

from .schemas.server import (
    BuildConfig,
    CorsConfig,
    PathsConfig,
    ProviderContextConfig,
    ServerConfig,
)
from .schemas.observability import LoggingConfig

log = logging.getLogger(__name__)


class AggregatedConfig(BaseModel):
    server: ServerConfig = ServerConfig()
    paths: PathsConfig = PathsConfig()
    provider_context: ProviderContextConfig = ProviderContextConfig()
    build: BuildConfig = BuildConfig()
    cors: CorsConfig = CorsConfig()
    logging: LoggingConfig = LoggingConfig()

    model_config = ConfigDict(extra="forbid")

    def resolve_path(self, value: str) -> pathlib.Path:
        p = pathlib.Path(value)
        if not p.is_absolute():
            p = pathlib.Path(self.paths.root) / p
        return p

    @property
    def dist_dir(self) -> pathlib.Path:
        return self.resolve_path(self.paths.dist)

    @property
    def manifest_path(self) -> pathlib.Path:
        return self.resolve_path(self.paths.manifest)


DEFAULT_CONFIG_DIR = "configs"
ENV_PREFIX = "VEGA__"

SUB_SCHEMA_CLASSES: Dict[str, Type[BaseModel]] = {
    "server": ServerConfig,
    "paths": PathsConfig,
    "provider_context": ProviderContextConfig,
    "build": BuildConfig,
    "cors": CorsConfig,
    "logging": LoggingConfig,
}


class ConfigError(Exception):
    pass


def _load_yaml_if_exists(path: pathlib.Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path.name}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path.name}: top level must be a mapping")
    return data


def _merge_dict(
    base: Dict[str, Any], override: Dict[str, Any]
) -> Dict[str, Any]:
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            base[k] = _merge_dict(base[k], v)
        else:
            base[k] = v
    return base


def _cast_env_value(value: str) -> Any:
    if value.lower() in {"true", "false"}:
        return value.lower() == "true"
    try:
        return int(value)
    except ValueError:
        try:
            return float(value)
        except ValueError:
            return value


def _set_path(cfg: Dict[str, Any], path_parts: list[str], value: Any) -> None:
    target = cfg
    for part in path_parts[:-1]:
        if part not in target or not isinstance(target[part], dict):
            target[part] = {}
        target = target[part]
    target[path_parts[-1]] = value
    dotted_path = ".".join(path_parts)
    metrics.inc("env_override_total", {"path": dotted_path})
    log.info("config env override path=%s value=*** source=env", dotted_path)


def _apply_env(cfg: Dict[str, Any]) -> None:
    port = os.environ.get("PORT")
    if port:
        _set_path(cfg, ["server", "port"], _cast_env_value(port))
    prefix_len = len(ENV_PREFIX)
    for env_key, value in os.environ.items():
        if not env_key.startswith(ENV_PREFIX):
            continue
        path_parts = env_key[prefix_len:].lower().split("__")
        _set_path(cfg, path_parts, _cast_env_value(value))


_lock = threading.Lock()


def _resolve_config_dir() -> pathlib.Path:
    """Resolve config directory each call honoring env var changes."""
    return pathlib.Path(os.getenv("VEGA_CONFIG_DIR", DEFAULT_CONFIG_DIR))


def _validate_sub_schemas(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Validate each known section via its schema class.

    Returns dict of validated objects to be attached to AggregatedConfig.
    """
    validated: Dict[str, Any] = {}
    for name, cls in SUB_SCHEMA_CLASSES.items():
        if name in raw:
            try:
                validated[name] = cls.model_validate(raw[name] or {})
            except Exception as e:  # noqa: BLE001
                raise ConfigError(
                    f"Validation failed for section '{name}': {e}"
                ) from e
    return validated


@lru_cache(maxsize=1)
def get_config() -> AggregatedConfig:  # noqa: D401
    with _lock:
        cfg_dir = _resolve_config_dir()
        base_cfg = _load_yaml_if_exists(cfg_dir / "base.yaml")
        overrides_cfg = _load_yaml_if_exists(cfg_dir / "overrides.local.yaml")
        merged = _merge_dict(base_cfg, overrides_cfg)
        _apply_env(merged)
        unknown = sorted(set(merged) - set(SUB_SCHEMA_CLASSES))
        if unknown:
            raise ConfigError(f"Unknown config sections: {', '.join(unknown)}")
        validated_sub = _validate_sub_schemas(merged)
        try:
            return AggregatedConfig(**validated_sub)
        except Exception as e:  # noqa: BLE001
            raise ConfigError(str(e)) from e


def clear_config_cache() -> None:
    """Clear cached config (primarily for tests)."""
    get_config.cache_clear()


def as_dict() -> Dict[str, Any]:
    return get_config().model_dump()
