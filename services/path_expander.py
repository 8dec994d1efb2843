"""Expansion of ``{tag}`` path templates into concrete relative paths."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from threading import Lock
from typing import Iterable, Mapping, Optional, Sequence, Set, Tuple, Union

from models.errors import ConfigError, ErrorKind, ErrorRecord, PathError
from services.telemetry import Telemetry
from storage.paths import canonicalize

logger = logging.getLogger(__name__)

_VARIABLE_NAME = re.compile(r"[A-Za-z0-9_-]+")
_PLACEHOLDER_VALUE = "x"


@dataclass(frozen=True)
class Variable:
    name: str


Segment = Union[str, Variable]


@dataclass(frozen=True)
class PathTemplate:
    """A parsed order entry: literal text interleaved with tag references."""

    raw: str
    segments: Tuple[Segment, ...]

    @classmethod
    def parse(cls, raw: str) -> PathTemplate:
        if not isinstance(raw, str) or not raw.strip():
            raise ConfigError("Order templates must be non-empty strings.")

        segments: list[Segment] = []
        literal: list[str] = []
        position = 0
        while position < len(raw):
            char = raw[position]
            if char == "}":
                raise ConfigError(f"Unmatched '}}' at offset {position} in template {raw!r}.")
            if char != "{":
                literal.append(char)
                position += 1
                continue

            end = raw.find("}", position + 1)
            if end < 0:
                raise ConfigError(f"Unclosed '{{' at offset {position} in template {raw!r}.")
            name = raw[position + 1 : end]
            if not _VARIABLE_NAME.fullmatch(name):
                raise ConfigError(
                    f"Invalid tag reference {{{name}}} in template {raw!r}; "
                    "names may contain letters, digits, '_' and '-'."
                )
            if literal:
                segments.append("".join(literal))
                literal = []
            segments.append(Variable(name))
            position = end + 1

        if literal:
            segments.append("".join(literal))

        template = cls(raw=raw, segments=tuple(segments))
        try:
            canonicalize(template.render_text({name: _PLACEHOLDER_VALUE for name in template.variables}))
        except PathError as exc:
            raise ConfigError(f"Template {raw!r} is not a valid relative path: {exc.reason}.") from exc
        return template

    @property
    def variables(self) -> Tuple[str, ...]:
        return tuple(segment.name for segment in self.segments if isinstance(segment, Variable))

    def render_text(self, tags: Mapping[str, str]) -> Optional[str]:
        """Substitute tag values; ``None`` when a referenced tag is absent or empty."""
        parts: list[str] = []
        for segment in self.segments:
            if isinstance(segment, Variable):
                value = tags.get(segment.name)
                if not value:
                    return None
                parts.append(value)
            else:
                parts.append(segment)
        return "".join(parts)


@dataclass
class Expansion:
    paths: list[str] = field(default_factory=list)
    errors: list[ErrorRecord] = field(default_factory=list)


def parse_templates(order: Iterable[str]) -> Tuple[PathTemplate, ...]:
    templates = tuple(PathTemplate.parse(raw) for raw in order)
    if not templates:
        raise ConfigError("Sideload order must contain at least one path template.")
    return templates


class PathExpander:
    """Turns a point's tags into the ordered list of paths to consult."""

    def __init__(
        self,
        templates: Sequence[PathTemplate],
        telemetry: Optional[Telemetry] = None,
    ) -> None:
        self.templates = tuple(templates)
        self._telemetry = telemetry
        self._reported: Set[Tuple[str, Tuple[str, ...]]] = set()
        self._reported_lock = Lock()

    def expand(self, tags: Mapping[str, str]) -> Expansion:
        expansion = Expansion()
        for template in self.templates:
            text = template.render_text(tags)
            if text is None:
                continue
            try:
                expansion.paths.append(canonicalize(text))
            except PathError as exc:
                expansion.errors.append(ErrorRecord.from_exception(exc, template=template.raw))
                self._report_once(template, tags, exc)
        return expansion

    def _report_once(self, template: PathTemplate, tags: Mapping[str, str], exc: PathError) -> None:
        key = (template.raw, tuple(tags[name] for name in template.variables))
        with self._reported_lock:
            if key in self._reported:
                return
            self._reported.add(key)

        if self._telemetry is not None:
            self._telemetry.record_error(ErrorKind.path)
        logger.warning(
            "Dropping illegal expanded path",
            extra={"template": template.raw, "path": exc.path, "error_kind": ErrorKind.path.value},
        )
