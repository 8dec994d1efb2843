"""Node configuration: what to load, from where, and in which order."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

import yaml
from pydantic import ValidationError

from app.schemas import SideloadNodeSpec
from models.errors import ConfigError
from models.points import Scalar, ScalarKind, kind_of
from services.path_expander import PathTemplate, parse_templates


@dataclass(frozen=True)
class SideloadConfig:
    """Immutable configuration of one sideload node."""

    source_uri: str
    order: Tuple[PathTemplate, ...]
    fields: Mapping[str, Scalar] = field(default_factory=dict)
    tags: Mapping[str, str] = field(default_factory=dict)
    overwrite_tags: bool = True

    @classmethod
    def build(
        cls,
        source: str,
        order: Iterable[str],
        fields: Optional[Mapping[str, Any]] = None,
        tags: Optional[Mapping[str, Any]] = None,
        overwrite_tags: bool = True,
    ) -> SideloadConfig:
        if not isinstance(source, str) or not source.strip():
            raise ConfigError("Sideload source must be a non-empty URI string.")
        if isinstance(order, str):
            raise ConfigError("Sideload order must be a list of templates, not a single string.")

        validated_fields: Dict[str, Scalar] = {}
        for name, default in (fields or {}).items():
            _check_name("field", name)
            if kind_of(default) is None:
                raise ConfigError(
                    f"Default for field {name!r} must be an integer, float, boolean or string; "
                    f"got {type(default).__name__}."
                )
            validated_fields[name] = default

        validated_tags: Dict[str, str] = {}
        for name, default in (tags or {}).items():
            _check_name("tag", name)
            if kind_of(default) is not ScalarKind.string:
                raise ConfigError(
                    f"Default for tag {name!r} must be a string; got {type(default).__name__}."
                )
            validated_tags[name] = default

        return cls(
            source_uri=source.strip(),
            order=parse_templates(order),
            fields=MappingProxyType(validated_fields),
            tags=MappingProxyType(validated_tags),
            overwrite_tags=overwrite_tags,
        )

    def field_kind(self, name: str) -> ScalarKind:
        kind = kind_of(self.fields[name])
        assert kind is not None
        return kind


def _check_name(what: str, name: Any) -> None:
    if not isinstance(name, str) or not name:
        raise ConfigError(f"Sideload {what} names must be non-empty strings; got {name!r}.")


class Sideload:
    """Chaining builder for :class:`SideloadConfig`.

    Example::

        config = (
            Sideload()
            .source("file:///etc/sideload")
            .order("host/{host}.yml", "hostgroup/{hostgroup}.yml", "default.yml")
            .field("cpu_threshold", 80)
            .tag("region", "unknown")
            .build()
        )
    """

    def __init__(self) -> None:
        self._source: Optional[str] = None
        self._order: Tuple[str, ...] = ()
        self._fields: Dict[str, Scalar] = {}
        self._tags: Dict[str, str] = {}
        self._overwrite_tags = True

    def source(self, uri: str) -> Sideload:
        self._source = uri
        return self

    def order(self, *templates: str) -> Sideload:
        self._order = templates
        return self

    def field(self, name: str, default: Scalar) -> Sideload:
        self._fields[name] = default
        return self

    def tag(self, name: str, default: str) -> Sideload:
        self._tags[name] = default
        return self

    def overwrite_tags(self, enabled: bool = True) -> Sideload:
        self._overwrite_tags = enabled
        return self

    def build(self) -> SideloadConfig:
        if self._source is None:
            raise ConfigError("Sideload source is required.")
        return SideloadConfig.build(
            source=self._source,
            order=self._order,
            fields=self._fields,
            tags=self._tags,
            overwrite_tags=self._overwrite_tags,
        )


def load_node_config(path: Path, source_override: Optional[str] = None) -> SideloadConfig:
    """Read and validate a YAML node definition."""
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Cannot read node definition {str(path)!r}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Node definition {str(path)!r} is not valid YAML: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"Node definition {str(path)!r} must be a mapping.")

    try:
        spec = SideloadNodeSpec.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid node definition {str(path)!r}: {exc}") from exc

    return SideloadConfig.build(
        source=source_override or spec.source,
        order=spec.order,
        fields=spec.fields,
        tags=spec.tags,
        overwrite_tags=spec.overwrite_tags,
    )
