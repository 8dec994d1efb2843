"""Parsed source documents and the not-found marker."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional, Union

from models.points import Scalar, is_scalar


class NotFound:
    """Marker for a path with no backing document. Cached like a document."""

    _instance: Optional["NotFound"] = None

    def __new__(cls) -> "NotFound":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_FOUND"

    def __bool__(self) -> bool:
        return False


NOT_FOUND = NotFound()


@dataclass(frozen=True)
class Document:
    """Flat, read-only key to scalar view of one source file.

    Keys whose value is not a scalar are kept out of ``values`` and listed in
    ``unsupported`` with the name of their type, so a lookup can tell "absent"
    from "present with an unusable value".
    """

    path: str
    values: Mapping[str, Scalar] = field(default_factory=dict)
    unsupported: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, path: str, raw: Mapping[Any, Any]) -> Document:
        values: dict[str, Scalar] = {}
        unsupported: dict[str, str] = {}
        for key, value in raw.items():
            if not isinstance(key, str):
                continue
            if is_scalar(value):
                values[key] = value
            else:
                unsupported[key] = "null" if value is None else type(value).__name__
        return cls(path=path, values=MappingProxyType(values), unsupported=MappingProxyType(unsupported))

    def get(self, key: str) -> Optional[Scalar]:
        return self.values.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self.values

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)


LoadOutcome = Union[Document, NotFound]
