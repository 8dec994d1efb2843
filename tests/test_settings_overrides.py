from __future__ import annotations

from typing import Iterable

from services.pipeline import build_default_service
from settings import get_settings


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


def test_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    source_root = tmp_path / "source"
    source_root.mkdir()
    (source_root / "default.yml").write_text("cpu_threshold: 42\n")
    node_config = tmp_path / "node.yml"
    node_config.write_text(
        "source: file:///does/not/exist\norder: [default.yml]\nfields: {cpu_threshold: 80}\n"
    )

    monkeypatch.setenv("SIDELOAD_NODE_CONFIG", str(node_config))
    monkeypatch.setenv("SIDELOAD_SOURCE_URI", source_root.as_uri())
    monkeypatch.setenv("SIDELOAD_EDGE_WORKERS", "2")
    monkeypatch.setenv("SIDELOAD_LOG_INTERVAL_SECONDS", "5")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    caches = (get_settings, build_default_service)
    _clear_caches(caches)

    settings = get_settings()
    service = build_default_service()

    try:
        assert settings.node_config_path == str(node_config)
        assert settings.log_level == "DEBUG"
        assert service.executor._max_workers == 2
        assert service.node.telemetry.log_interval == 5.0
        assert service.node.config.source_uri == source_root.as_uri()
    finally:
        service.shutdown()
        _clear_caches(caches)


def test_invalid_values_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("SIDELOAD_EDGE_WORKERS", "zero")
    monkeypatch.setenv("SIDELOAD_LOG_INTERVAL_SECONDS", "-1")
    monkeypatch.setenv("SIDELOAD_SOURCE_URI", "   ")
    get_settings.cache_clear()

    try:
        settings = get_settings()
        assert settings.edge_workers == 4
        assert settings.log_interval_seconds == 60.0
        assert settings.source_uri is None
        assert settings.node_config_path
    finally:
        get_settings.cache_clear()
