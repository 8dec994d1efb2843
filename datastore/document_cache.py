from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import Lock
from typing import Dict

from models.documents import LoadOutcome
from storage.file_source import DocumentSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheStats:
    entries: int
    hits: int
    misses: int
    reloads: int


class DocumentCache:
    """Memoizes load outcomes (documents and not-found) by canonical path.

    Readers look up the current snapshot without locking. Misses take a
    per-path lock so a document is read from the source once, and
    :meth:`reload` swaps in an empty snapshot under the writer lock.
    Load errors propagate to the caller and are never cached.
    """

    def __init__(self, source: DocumentSource) -> None:
        self._source = source
        self._entries: Dict[str, LoadOutcome] = {}
        self._generation = 0
        self._lock = Lock()
        self._path_locks: Dict[str, Lock] = {}
        self._hits = 0
        self._misses = 0
        self._reloads = 0

    def get(self, relative_path: str) -> LoadOutcome:
        outcome = self._entries.get(relative_path)
        if outcome is not None:
            self._hits += 1
            return outcome

        with self._path_lock(relative_path):
            with self._lock:
                entries = self._entries
                generation = self._generation
            outcome = entries.get(relative_path)
            if outcome is not None:
                self._hits += 1
                return outcome

            logger.debug("Document cache miss", extra={"path": relative_path})
            outcome = self._source.load(relative_path)

            with self._lock:
                self._misses += 1
                # A reload during the load leaves the fresh snapshot untouched.
                if self._generation == generation:
                    updated = dict(self._entries)
                    updated[relative_path] = outcome
                    self._entries = updated
            return outcome

    def reload(self) -> int:
        """Drop every cached entry and return how many were dropped."""
        with self._lock:
            dropped = len(self._entries)
            self._entries = {}
            self._path_locks = {}
            self._generation += 1
            self._reloads += 1
        logger.info("Document cache reloaded", extra={"entries": dropped})
        return dropped

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, relative_path: object) -> bool:
        return relative_path in self._entries

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                entries=len(self._entries),
                hits=self._hits,
                misses=self._misses,
                reloads=self._reloads,
            )

    def _path_lock(self, relative_path: str) -> Lock:
        with self._lock:
            lock = self._path_locks.get(relative_path)
            if lock is None:
                lock = Lock()
                self._path_locks[relative_path] = lock
            return lock
