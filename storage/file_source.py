from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Optional, Protocol
from urllib.parse import unquote, urlparse

from models.documents import NOT_FOUND, Document, LoadOutcome
from models.errors import ConfigError, LoadError, LoadErrorKind, PathError
from storage.formats import FormatError, Parser, ParserRegistry
from storage.paths import canonicalize

logger = logging.getLogger(__name__)

SUPPORTED_SCHEMES = ("file",)


class DocumentSource(Protocol):
    """Anything that turns a relative path into a document."""

    def load(self, relative_path: str) -> LoadOutcome:
        ...


class FileSource:
    """Reads documents from a directory tree on the local filesystem."""

    def __init__(
        self,
        root_path: Path,
        parsers: Optional[Mapping[str, Parser]] = None,
    ) -> None:
        if not root_path.is_dir():
            raise ConfigError(f"Sideload source root {str(root_path)!r} is not a directory.")
        self.root_path = root_path
        self._resolved_root = root_path.resolve()
        self._parsers = ParserRegistry(parsers)

    @classmethod
    def from_uri(
        cls, uri: str, parsers: Optional[Mapping[str, Parser]] = None
    ) -> FileSource:
        parsed = urlparse(uri)
        if parsed.scheme not in SUPPORTED_SCHEMES:
            raise ConfigError(
                f"Unsupported source scheme {parsed.scheme or '<none>'!r} in {uri!r}; "
                f"expected one of: {', '.join(SUPPORTED_SCHEMES)}."
            )
        if parsed.netloc not in ("", "localhost"):
            raise ConfigError(f"Source {uri!r} must use an absolute local path (file:///...).")
        if not parsed.path:
            raise ConfigError(f"Source {uri!r} does not name a directory.")
        return cls(Path(unquote(parsed.path)), parsers=parsers)

    def load(self, relative_path: str) -> LoadOutcome:
        try:
            normalized = canonicalize(relative_path)
        except PathError as exc:
            raise LoadError(relative_path, LoadErrorKind.path, exc.reason) from exc

        parser = self._parsers.for_path(normalized)
        if parser is None:
            raise LoadError(
                normalized,
                LoadErrorKind.unsupported_format,
                f"no parser for extension; known: {', '.join(self._parsers.extensions)}",
            )

        path = self.root_path / normalized
        if not path.resolve().is_relative_to(self._resolved_root):
            raise LoadError(normalized, LoadErrorKind.path, "path resolves outside the source root")

        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return NOT_FOUND
        except PermissionError as exc:
            raise LoadError(normalized, LoadErrorKind.permission, str(exc)) from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise LoadError(normalized, LoadErrorKind.io, str(exc)) from exc

        try:
            data = parser(text)
        except FormatError as exc:
            raise LoadError(normalized, LoadErrorKind.parse, str(exc)) from exc

        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise LoadError(
                normalized,
                LoadErrorKind.parse,
                f"document root must be a mapping, got {type(data).__name__}",
            )

        logger.debug("Loaded sideload document", extra={"path": normalized, "entries": len(data)})
        return Document.from_mapping(normalized, data)
