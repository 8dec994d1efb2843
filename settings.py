from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_NODE_CONFIG_ENV = "SIDELOAD_NODE_CONFIG"
_SOURCE_URI_ENV = "SIDELOAD_SOURCE_URI"
_EDGE_WORKERS_ENV = "SIDELOAD_EDGE_WORKERS"
_LOG_INTERVAL_ENV = "SIDELOAD_LOG_INTERVAL_SECONDS"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    node_config_path: str
    source_uri: Optional[str]
    edge_workers: int
    log_interval_seconds: float
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_worker_count(default: int) -> int:
    value = os.getenv(_EDGE_WORKERS_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_interval(default: float) -> float:
    value = os.getenv(_LOG_INTERVAL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed >= 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        node_config_path=_read_str_env(_NODE_CONFIG_ENV, "./sideload.yml"),
        source_uri=_read_optional_env(_SOURCE_URI_ENV, None),
        edge_workers=_read_worker_count(4),
        log_interval_seconds=_read_interval(60.0),
        log_level=_read_log_level("INFO"),
    )
