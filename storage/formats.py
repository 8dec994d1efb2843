"""Document parsers keyed by file extension."""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, Mapping, Optional

import yaml

Parser = Callable[[str], Any]


class FormatError(ValueError):
    """Raised by a parser when the text is not a valid document."""


def parse_yaml(text: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise FormatError(str(exc)) from exc


def parse_json(text: str) -> Any:
    if not text.strip():
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise FormatError(str(exc)) from exc


DEFAULT_PARSERS: Mapping[str, Parser] = {
    ".yml": parse_yaml,
    ".yaml": parse_yaml,
    ".json": parse_json,
}


class ParserRegistry:
    def __init__(self, parsers: Optional[Mapping[str, Parser]] = None) -> None:
        self._parsers: Dict[str, Parser] = {}
        for extension, parser in (parsers or DEFAULT_PARSERS).items():
            self.register(extension, parser)

    def register(self, extension: str, parser: Parser) -> None:
        normalized = extension.lower()
        if not normalized.startswith("."):
            normalized = f".{normalized}"
        self._parsers[normalized] = parser

    def for_path(self, path: str) -> Optional[Parser]:
        name = path.rsplit("/", 1)[-1]
        dot = name.rfind(".")
        if dot < 0:
            return None
        return self._parsers.get(name[dot:].lower())

    @property
    def extensions(self) -> list[str]:
        return sorted(self._parsers)
