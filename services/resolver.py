"""Hierarchical resolution of configured fields and tags for one point."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from datastore.document_cache import DocumentCache
from models.documents import Document, LoadOutcome, NOT_FOUND
from models.errors import ErrorRecord, LoadError, TypeMismatchError
from models.points import Point, Scalar, ScalarKind, kind_of
from services.config import SideloadConfig
from services.path_expander import PathExpander
from services.telemetry import Telemetry


@dataclass
class Resolution:
    """Overlays to merge onto a point plus the errors met while resolving."""

    fields: Dict[str, Scalar] = field(default_factory=dict)
    tags: Dict[str, str] = field(default_factory=dict)
    errors: List[ErrorRecord] = field(default_factory=list)


class _PointDocuments:
    """Per-point view of the cache; each path is fetched at most once per point."""

    def __init__(self, cache: DocumentCache, resolution: Resolution, telemetry: Telemetry) -> None:
        self._cache = cache
        self._resolution = resolution
        self._telemetry = telemetry
        self._seen: Dict[str, LoadOutcome] = {}

    def get(self, path: str) -> Optional[Document]:
        outcome = self._seen.get(path)
        if outcome is None:
            try:
                outcome = self._cache.get(path)
            except LoadError as exc:
                record = ErrorRecord.from_exception(exc)
                self._resolution.errors.append(record)
                self._telemetry.report(record)
                outcome = NOT_FOUND
            self._seen[path] = outcome
        return outcome if isinstance(outcome, Document) else None


class Resolver:
    """Walks the expanded path list per key; the first well-typed hit wins."""

    def __init__(
        self,
        config: SideloadConfig,
        cache: DocumentCache,
        telemetry: Optional[Telemetry] = None,
    ) -> None:
        self.config = config
        self.cache = cache
        self.telemetry = telemetry or Telemetry()
        self.expander = PathExpander(config.order, telemetry=self.telemetry)

    def resolve(self, point: Point) -> Resolution:
        resolution = Resolution()
        expansion = self.expander.expand(point.tags)
        resolution.errors.extend(expansion.errors)
        documents = _PointDocuments(self.cache, resolution, self.telemetry)

        for name, default in self.config.fields.items():
            resolution.fields[name] = self._lookup(
                name, default, self.config.field_kind(name), expansion.paths, documents, resolution
            )
        for name, default in self.config.tags.items():
            resolution.tags[name] = self._lookup(
                name, default, ScalarKind.string, expansion.paths, documents, resolution
            )
        return resolution

    def _lookup(
        self,
        key: str,
        default: Scalar,
        expected: ScalarKind,
        paths: List[str],
        documents: _PointDocuments,
        resolution: Resolution,
    ) -> Scalar:
        for path in paths:
            document = documents.get(path)
            if document is None:
                continue
            if key in document:
                value = document.values[key]
                actual = kind_of(value)
                if actual is expected:
                    return value
                actual_name = actual.value if actual else "unknown"
            elif key in document.unsupported:
                actual_name = document.unsupported[key]
            else:
                continue
            record = ErrorRecord.from_exception(
                TypeMismatchError(path, key, expected.value, actual_name)
            )
            resolution.errors.append(record)
            self.telemetry.report(record)
        return default
