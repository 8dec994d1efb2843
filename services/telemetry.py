"""Error counters, the cache gauge and rate-limited error logging."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from threading import Lock
from typing import Callable, Dict, Optional, Tuple

from datastore.document_cache import CacheStats, DocumentCache
from models.errors import ErrorKind, ErrorRecord

logger = logging.getLogger(__name__)

_RateKey = Tuple[ErrorKind, Optional[str], Optional[str]]


@dataclass(frozen=True)
class TelemetrySnapshot:
    errors: Dict[str, int] = field(default_factory=dict)
    points_processed: int = 0
    cache: Optional[CacheStats] = None


class Telemetry:
    """Thread-safe counters shared by every edge of a node."""

    def __init__(
        self,
        log_interval: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.log_interval = log_interval
        self._clock = clock
        self._lock = Lock()
        self._errors: Dict[ErrorKind, int] = {kind: 0 for kind in ErrorKind}
        self._points_processed = 0
        self._last_logged: Dict[_RateKey, float] = {}
        self._suppressed: Dict[_RateKey, int] = {}
        self._last_prune = clock()
        self._cache: Optional[DocumentCache] = None

    def bind_cache(self, cache: DocumentCache) -> None:
        self._cache = cache

    def record_error(self, kind: ErrorKind) -> None:
        with self._lock:
            self._errors[kind] += 1

    def record_point(self) -> None:
        with self._lock:
            self._points_processed += 1

    def report(self, record: ErrorRecord) -> bool:
        """Count ``record`` and log it unless its key logged within the interval.

        Returns ``True`` when a log record was emitted.
        """
        key: _RateKey = (record.kind, record.path, record.key)
        now = self._clock()
        with self._lock:
            self._errors[record.kind] += 1
            last = self._last_logged.get(key)
            if last is not None and now - last < self.log_interval:
                self._suppressed[key] = self._suppressed.get(key, 0) + 1
                return False
            suppressed = self._suppressed.pop(key, 0)
            self._prune_expired(now)
            self._last_logged[key] = now

        logger.warning(
            record.message,
            extra={
                "error_kind": record.kind.value,
                "path": record.path,
                "key": record.key,
                "suppressed": suppressed or None,
            },
        )
        return True

    def _prune_expired(self, now: float) -> None:
        """Forget rate-limit keys whose window has closed. Caller holds the lock."""
        if now - self._last_prune < self.log_interval:
            return
        self._last_prune = now
        expired = [key for key, last in self._last_logged.items() if now - last >= self.log_interval]
        for key in expired:
            del self._last_logged[key]
            self._suppressed.pop(key, None)

    def reset_rate_limits(self) -> None:
        with self._lock:
            self._last_logged.clear()
            self._suppressed.clear()

    def error_count(self, kind: ErrorKind) -> int:
        with self._lock:
            return self._errors[kind]

    def snapshot(self) -> TelemetrySnapshot:
        with self._lock:
            errors = {kind.value: count for kind, count in self._errors.items()}
            points = self._points_processed
        cache_stats = self._cache.stats() if self._cache is not None else None
        return TelemetrySnapshot(errors=errors, points_processed=points, cache=cache_stats)
