"""Runtime settings resolved from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


def _env_int(name: str, default: int) -> int:
    raw_value = os.getenv(name)
    if raw_value is None or not raw_value.strip():
        return default
    try:
        return int(raw_value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw_value!r}") from exc


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    log_level: str
    allocation_default_budget: int
    allocation_max_table_cells: int


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return process-wide settings; call ``get_settings.cache_clear()`` to reload."""
    return Settings(
        app_name=os.getenv("APP_NAME", "Equipment Allocator"),
        app_version=os.getenv("APP_VERSION", "1.0.0"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        allocation_default_budget=_env_int("ALLOCATION_DEFAULT_BUDGET", 5000),
        allocation_max_table_cells=_env_int("ALLOCATION_MAX_TABLE_CELLS", 5_000_000),
    )
