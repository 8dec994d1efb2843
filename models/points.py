"""Domain models for data points flowing through the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Mapping, Optional, Union

Scalar = Union[bool, int, float, str]


class ScalarKind(str, Enum):
    """Intrinsic kind of a scalar field or document value."""

    integer = "integer"
    float = "float"
    boolean = "boolean"
    string = "string"


def kind_of(value: object) -> Optional[ScalarKind]:
    """Return the scalar kind of ``value`` or ``None`` for non-scalars."""
    # bool is a subclass of int and must be checked first
    if isinstance(value, bool):
        return ScalarKind.boolean
    if isinstance(value, int):
        return ScalarKind.integer
    if isinstance(value, float):
        return ScalarKind.float
    if isinstance(value, str):
        return ScalarKind.string
    return None


def is_scalar(value: object) -> bool:
    return kind_of(value) is not None


@dataclass(frozen=True, slots=True)
class Point:
    """A single record: measurement, tags, fields and timestamp."""

    measurement: str
    time: datetime
    tags: Mapping[str, str] = field(default_factory=dict)
    fields: Mapping[str, Scalar] = field(default_factory=dict)

    def with_overlay(
        self,
        fields: Mapping[str, Scalar],
        tags: Mapping[str, str],
        overwrite_tags: bool = True,
    ) -> Point:
        """Return a copy of the point with ``fields`` and ``tags`` merged on top."""
        merged_fields: Dict[str, Scalar] = dict(self.fields)
        merged_fields.update(fields)

        merged_tags: Dict[str, str] = dict(self.tags)
        for name, value in tags.items():
            if overwrite_tags or name not in merged_tags:
                merged_tags[name] = value

        return Point(
            measurement=self.measurement,
            time=self.time,
            tags=merged_tags,
            fields=merged_fields,
        )
