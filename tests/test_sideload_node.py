from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterator, List

import pytest

from models.errors import ConfigError, ErrorKind
from models.points import Point, kind_of
from services.config import Sideload, SideloadConfig
from services.sideload import SideloadNode


def _write(root: Path, relative: str, content: str) -> None:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)


def _point(index: int = 0, **tags: str) -> Point:
    return Point(
        measurement="cpu",
        time=datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=index),
        tags=tags,
        fields={"usage": float(index), "cpu_threshold": 1},
    )


def _node(root: Path, **kwargs: object) -> SideloadNode:
    builder = (
        Sideload()
        .source(root.as_uri())
        .order("host/{host}.yml", "hostgroup/{hostgroup}.yml", "default.yml")
        .field("cpu_threshold", 80)
        .tag("region", "unknown")
    )
    if kwargs.get("overwrite_tags") is False:
        builder.overwrite_tags(False)
    return SideloadNode(builder.build())


def test_enrich_preserves_point_and_overlays_configured_keys(tmp_path: Path) -> None:
    _write(tmp_path, "default.yml", "cpu_threshold: 50\nregion: us-east\n")
    node = _node(tmp_path)
    original = _point(host="h1", dc="a")

    result = node.enrich(original)

    assert result.point is not original
    assert result.point.measurement == original.measurement
    assert result.point.time == original.time
    assert result.point.tags == {"host": "h1", "dc": "a", "region": "us-east"}
    assert result.point.fields == {"usage": 0.0, "cpu_threshold": 50}
    assert original.tags == {"host": "h1", "dc": "a"}
    assert original.fields == {"usage": 0.0, "cpu_threshold": 1}
    assert result.errors == []


def test_existing_tag_is_overridden_by_default(tmp_path: Path) -> None:
    _write(tmp_path, "default.yml", "region: us-east\n")
    node = _node(tmp_path)

    result = node.enrich(_point(region="eu"))

    assert result.point.tags["region"] == "us-east"


def test_existing_tag_is_kept_when_overwrite_disabled(tmp_path: Path) -> None:
    _write(tmp_path, "default.yml", "region: us-east\n")
    node = _node(tmp_path, overwrite_tags=False)

    kept = node.enrich(_point(region="eu"))
    filled = node.enrich(_point())

    assert kept.point.tags["region"] == "eu"
    assert filled.point.tags["region"] == "us-east"


def test_defaults_present_when_source_is_empty(tmp_path: Path) -> None:
    node = _node(tmp_path)

    result = node.enrich(_point(host="h1"))

    assert result.point.fields["cpu_threshold"] == 80
    assert kind_of(result.point.fields["cpu_threshold"]) is kind_of(80)
    assert result.point.tags["region"] == "unknown"


def test_reload_makes_new_contents_visible(tmp_path: Path) -> None:
    _write(tmp_path, "default.yml", "cpu_threshold: 50\n")
    node = _node(tmp_path)

    first = node.enrich(_point())
    _write(tmp_path, "default.yml", "cpu_threshold: 55\n")
    cached = node.enrich(_point())
    node.reload()
    refreshed = node.enrich(_point())

    assert first.point.fields["cpu_threshold"] == 50
    assert cached.point.fields["cpu_threshold"] == 50
    assert refreshed.point.fields["cpu_threshold"] == 55


def test_traversal_template_refuses_to_start(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        Sideload().source(tmp_path.as_uri()).order("../{host}.yml").field("x", 1).build()


def test_traversing_tag_value_never_reads_outside_root(tmp_path: Path) -> None:
    root = tmp_path / "root"
    root.mkdir()
    _write(tmp_path, "secret.yml", "cpu_threshold: 1\n")
    config = SideloadConfig.build(source=root.as_uri(), order=["{host}.yml"], fields={"cpu_threshold": 80})
    node = SideloadNode(config)

    result = node.enrich(_point(host="../secret"))

    assert result.point.fields["cpu_threshold"] == 80
    assert [error.kind for error in result.errors] == [ErrorKind.path]


def test_unsupported_source_scheme_refuses_to_start() -> None:
    config = SideloadConfig.build(source="http://example.com", order=["default.yml"])

    with pytest.raises(ConfigError):
        SideloadNode(config)


def test_enrich_batch_preserves_order(tmp_path: Path) -> None:
    _write(tmp_path, "host/h1.yml", "cpu_threshold: 91\n")
    _write(tmp_path, "host/h2.yml", "cpu_threshold: 92\n")
    node = _node(tmp_path)

    results = node.enrich_batch([_point(0, host="h2"), _point(1, host="h1"), _point(2)])

    assert [result.point.fields["cpu_threshold"] for result in results] == [92, 91, 80]
    assert [result.point.time for result in results] == [_point(i).time for i in range(3)]


def test_run_edge_emits_every_point_in_order(tmp_path: Path) -> None:
    node = _node(tmp_path)
    emitted: List[Point] = []

    count = node.run_edge((_point(i, host=f"h{i}") for i in range(10)), emitted.append, edge="cpu")

    assert count == 10
    assert [point.time for point in emitted] == [_point(i).time for i in range(10)]
    assert node.stats().points_processed == 10


def test_cancel_stops_before_next_point_without_partial_emission(tmp_path: Path) -> None:
    node = _node(tmp_path)
    emitted: List[Point] = []

    def points() -> Iterator[Point]:
        yield _point(0)
        yield _point(1)
        node.cancel()
        yield _point(2)
        yield _point(3)

    count = node.run_edge(points(), emitted.append)

    assert count == 2
    assert len(emitted) == 2
    assert node.cancelled


def test_edges_share_cache_concurrently(tmp_path: Path) -> None:
    for i in range(4):
        _write(tmp_path, f"host/h{i}.yml", f"cpu_threshold: {90 + i}\n")
    node = _node(tmp_path)
    outputs: dict[int, List[Point]] = {edge: [] for edge in range(4)}

    def run(edge: int) -> None:
        points = (_point(i, host=f"h{(i + edge) % 4}") for i in range(50))
        node.run_edge(points, outputs[edge].append, edge=str(edge))

    threads = [threading.Thread(target=run, args=(edge,)) for edge in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    for edge, points in outputs.items():
        assert [p.time for p in points] == [_point(i).time for i in range(50)]
        assert [p.fields["cpu_threshold"] for p in points] == [
            90 + (i + edge) % 4 for i in range(50)
        ]
    assert node.cache.stats().misses == 5


def test_empty_tag_value_skips_template(tmp_path: Path) -> None:
    _write(tmp_path, "host/settings.yml", "cpu_threshold: 1\n")
    _write(tmp_path, "default.yml", "cpu_threshold: 50\n")
    config = SideloadConfig.build(
        source=tmp_path.as_uri(),
        order=["host/{host}/settings.yml", "default.yml"],
        fields={"cpu_threshold": 80},
    )
    node = SideloadNode(config)

    result = node.enrich(_point(host=""))

    assert result.point.fields["cpu_threshold"] == 50
    assert result.errors == []
