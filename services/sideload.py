"""The sideload node: enriches points with values from a hierarchical source."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from threading import Event
from typing import Callable, Iterable, List, Optional

from datastore.document_cache import DocumentCache
from models.errors import ErrorRecord
from models.points import Point
from services.config import SideloadConfig
from services.resolver import Resolver
from services.telemetry import Telemetry, TelemetrySnapshot
from storage.file_source import DocumentSource, FileSource

logger = logging.getLogger(__name__)


@dataclass
class EnrichmentResult:
    point: Point
    errors: List[ErrorRecord] = field(default_factory=list)


class SideloadNode:
    """Stateless per point; the document cache is the only retained state."""

    def __init__(
        self,
        config: SideloadConfig,
        source: Optional[DocumentSource] = None,
        telemetry: Optional[Telemetry] = None,
    ) -> None:
        self.config = config
        self.source = source if source is not None else FileSource.from_uri(config.source_uri)
        self.cache = DocumentCache(self.source)
        self.telemetry = telemetry or Telemetry()
        self.telemetry.bind_cache(self.cache)
        self.resolver = Resolver(config, self.cache, self.telemetry)
        self._cancelled = Event()
        logger.info(
            "Sideload node ready",
            extra={"source": config.source_uri, "entries": len(config.order)},
        )

    def enrich(self, point: Point) -> EnrichmentResult:
        """Return a copy of ``point`` with the resolved overlays applied."""
        resolution = self.resolver.resolve(point)
        enriched = point.with_overlay(
            resolution.fields,
            resolution.tags,
            overwrite_tags=self.config.overwrite_tags,
        )
        self.telemetry.record_point()
        return EnrichmentResult(point=enriched, errors=resolution.errors)

    def enrich_batch(self, points: Iterable[Point]) -> List[EnrichmentResult]:
        return [self.enrich(point) for point in points]

    def run_edge(
        self,
        points: Iterable[Point],
        emit: Callable[[Point], None],
        edge: str = "default",
    ) -> int:
        """Enrich and emit points in order until the input ends or the node is cancelled."""
        emitted = 0
        for point in points:
            if self._cancelled.is_set():
                break
            emit(self.enrich(point).point)
            emitted += 1
        logger.info(
            "Sideload edge finished",
            extra={"edge": edge, "emitted": emitted, "status": "cancelled" if self.cancelled else "done"},
        )
        return emitted

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def reload(self) -> int:
        dropped = self.cache.reload()
        self.telemetry.reset_rate_limits()
        return dropped

    def stats(self) -> TelemetrySnapshot:
        return self.telemetry.snapshot()
