from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

import yaml

from settings.types import MapSettings


def _default_settings_path() -> Path:
    return Path(__file__).resolve().parent / "map.yaml"


def settings_path() -> Path:
    return Path(os.getenv("REPORTMAP_SETTINGS_PATH") or _default_settings_path())


def _load_yaml(path: Path) -> dict:
    raw = path.read_text(encoding="utf-8")
    data = yaml.safe_load(raw) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid settings yaml root: {path}")
    return data


@lru_cache(maxsize=1)
def get_settings() -> MapSettings:
    path = settings_path()
    if not path.exists():
        # No file: run on model defaults.
        return MapSettings()
    return MapSettings.model_validate(_load_yaml(path))


def clear_settings_cache() -> None:
    """
    Drop the cached settings so the next `get_settings()` re-reads YAML/env.
    """
    get_settings.cache_clear()


def engine_name() -> str:
    n = (os.getenv("REPORTMAP_ENGINE") or "in_memory").strip().lower()
    if n in {"duckdb", "in_memory"}:
        return n
    return "in_memory"


def duckdb_path() -> str:
    return os.getenv("REPORTMAP_DUCKDB_PATH") or ":memory:"


def markers_path() -> Path | None:
    raw = (os.getenv("REPORTMAP_MARKERS_PATH") or "").strip()
    return Path(raw) if raw else None


def log_level() -> str:
    return (os.getenv("REPORTMAP_LOG_LEVEL") or "INFO").strip().upper()
