"""Error taxonomy for sideload enrichment.

Only :class:`ConfigError` is fatal. Everything else is reported per point as an
:class:`ErrorRecord` and the point continues through the pipeline with defaults.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Per-point error categories, used as telemetry counter keys."""

    path = "path"
    load = "load"
    type_mismatch = "type_mismatch"


class LoadErrorKind(str, Enum):
    path = "path"
    unsupported_format = "unsupported_format"
    parse = "parse"
    permission = "permission"
    io = "io"


class SideloadError(Exception):
    """Base class for every sideload failure."""


class ConfigError(SideloadError):
    """Malformed node configuration. Raised at construction time."""


class PathError(SideloadError):
    """A path that is absolute, empty or escapes the source root."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Illegal path {path!r}: {reason}")


class LoadError(SideloadError):
    """I/O or parse failure for a document that may exist."""

    def __init__(self, path: str, kind: LoadErrorKind, reason: str) -> None:
        self.path = path
        self.kind = kind
        self.reason = reason
        super().__init__(f"Failed to load {path!r} ({kind.value}): {reason}")


class TypeMismatchError(SideloadError):
    def __init__(self, path: str, key: str, expected: str, actual: str) -> None:
        self.path = path
        self.key = key
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Value for {key!r} in {path!r} is {actual}, expected {expected}"
        )


@dataclass(frozen=True)
class ErrorRecord:
    """A non-fatal problem recorded while enriching one point."""

    kind: ErrorKind
    message: str
    path: Optional[str] = None
    key: Optional[str] = None
    template: Optional[str] = None

    @classmethod
    def from_exception(
        cls, exc: SideloadError, template: Optional[str] = None
    ) -> ErrorRecord:
        if isinstance(exc, TypeMismatchError):
            return cls(
                kind=ErrorKind.type_mismatch,
                message=str(exc),
                path=exc.path,
                key=exc.key,
            )
        if isinstance(exc, LoadError):
            return cls(kind=ErrorKind.load, message=str(exc), path=exc.path)
        if isinstance(exc, PathError):
            return cls(
                kind=ErrorKind.path,
                message=str(exc),
                path=exc.path,
                template=template,
            )
        raise TypeError(f"Unsupported error type: {type(exc).__name__}")
