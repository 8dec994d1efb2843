from __future__ import annotations

from pathlib import Path

import pytest

from models.errors import ConfigError
from models.points import ScalarKind
from services.config import Sideload, SideloadConfig, load_node_config


def test_build_parses_order_and_freezes_maps(tmp_path: Path) -> None:
    config = SideloadConfig.build(
        source=tmp_path.as_uri(),
        order=["host/{host}.yml", "default.yml"],
        fields={"cpu_threshold": 80, "ratio": 0.5, "enabled": True, "label": "x"},
        tags={"region": "unknown"},
    )

    assert [template.raw for template in config.order] == ["host/{host}.yml", "default.yml"]
    assert config.field_kind("cpu_threshold") is ScalarKind.integer
    assert config.field_kind("ratio") is ScalarKind.float
    assert config.field_kind("enabled") is ScalarKind.boolean
    assert config.field_kind("label") is ScalarKind.string
    with pytest.raises(TypeError):
        config.fields["new"] = 1  # type: ignore[index]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"order": []},
        {"order": "default.yml"},
        {"order": ["host/{host.yml"]},
        {"fields": {"bad": None}},
        {"fields": {"bad": [1, 2]}},
        {"fields": {"": 1}},
        {"tags": {"region": 1}},
        {"source": ""},
    ],
)
def test_build_rejects_invalid_configuration(tmp_path: Path, kwargs: dict) -> None:
    options = {"source": tmp_path.as_uri(), "order": ["default.yml"], **kwargs}

    with pytest.raises(ConfigError):
        SideloadConfig.build(**options)


def test_builder_chains_like_pipeline_properties(tmp_path: Path) -> None:
    config = (
        Sideload()
        .source(tmp_path.as_uri())
        .order("host/{host}.yml", "default.yml")
        .field("cpu_threshold", 80)
        .tag("region", "unknown")
        .overwrite_tags(False)
        .build()
    )

    assert dict(config.fields) == {"cpu_threshold": 80}
    assert dict(config.tags) == {"region": "unknown"}
    assert config.overwrite_tags is False


def test_builder_requires_source() -> None:
    with pytest.raises(ConfigError):
        Sideload().order("default.yml").build()


def test_load_node_config_keeps_numeric_kinds(tmp_path: Path) -> None:
    path = tmp_path / "sideload.yml"
    path.write_text(
        f"source: {tmp_path.as_uri()}\n"
        "order:\n"
        "  - host/{host}.yml\n"
        "  - default.yml\n"
        "fields:\n"
        "  cpu_threshold: 80\n"
        "  ratio: 80.0\n"
        "  enabled: false\n"
        "tags:\n"
        "  region: unknown\n"
    )

    config = load_node_config(path)

    assert type(config.fields["cpu_threshold"]) is int
    assert type(config.fields["ratio"]) is float
    assert type(config.fields["enabled"]) is bool
    assert config.tags["region"] == "unknown"
    assert config.overwrite_tags is True


def test_load_node_config_source_override(tmp_path: Path) -> None:
    path = tmp_path / "sideload.yml"
    path.write_text("source: file:///nowhere\norder: [default.yml]\n")

    config = load_node_config(path, source_override=tmp_path.as_uri())

    assert config.source_uri == tmp_path.as_uri()


@pytest.mark.parametrize(
    "content",
    [
        "source: [unclosed\n",
        "- just\n- a list\n",
        "order: [default.yml]\n",
        "source: file:///x\norder: []\n",
        "source: file:///x\norder: [a.yml]\nunknown: 1\n",
        "source: file:///x\norder: [a.yml]\ntags:\n  region: 3\n",
    ],
)
def test_load_node_config_rejects_invalid_files(tmp_path: Path, content: str) -> None:
    path = tmp_path / "sideload.yml"
    path.write_text(content)

    with pytest.raises(ConfigError):
        load_node_config(path)


def test_load_node_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_node_config(tmp_path / "missing.yml")
