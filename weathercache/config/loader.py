"""YAML config loader and dotted-key lookup."""

import hashlib
from pathlib import Path
from typing import Any

import yaml

from weathercache.config.schema import WeatherCacheConfig


def load_config(path: str | Path | None = None) -> WeatherCacheConfig:
    """Load and validate config from a YAML file.

    With no path, returns the defaults. An empty file also yields defaults.
    """
    if path is None:
        return WeatherCacheConfig()
    path = Path(path)
    with open(path) as f:
        raw = yaml.safe_load(f) or {}
    return WeatherCacheConfig(**raw)


def config_hash(config: WeatherCacheConfig) -> str:
    """Compute a deterministic SHA256 hash of the config."""
    data = config.model_dump_json(indent=None)
    return hashlib.sha256(data.encode()).hexdigest()[:16]


def get_config_value(config: WeatherCacheConfig, dotted_key: str) -> Any:
    """Get a config value by dotted key path. E.g. 'freshness.stale_after_minutes'."""
    obj: Any = config
    for part in dotted_key.split("."):
        if hasattr(obj, part):
            obj = getattr(obj, part)
        elif isinstance(obj, dict) and part in obj:
            obj = obj[part]
        else:
            raise KeyError(f"Config key not found: {dotted_key}")
    return obj
