"""Runs inbound edges concurrently against one shared sideload node."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Callable, Dict, Iterable, List, Optional

from models.points import Point
from services.config import SideloadConfig, load_node_config
from services.sideload import EnrichmentResult, SideloadNode
from services.telemetry import Telemetry
from settings import get_settings

logger = logging.getLogger(__name__)


class SideloadService:
    """Coordinates the node, the edge worker pool and reload control."""

    def __init__(self, node: SideloadNode, workers: int = 4) -> None:
        self.node = node
        self.executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="sideload-edge")
        self._edges: Dict[str, Future[int]] = {}
        self._edges_lock = Lock()

    def submit_edge(
        self,
        edge: str,
        points: Iterable[Point],
        emit: Callable[[Point], None],
    ) -> Future[int]:
        """Process one edge on a worker thread; points of an edge stay in order."""
        with self._edges_lock:
            running = self._edges.get(edge)
            if running is not None and not running.done():
                raise ValueError(f"Edge {edge!r} is already running.")
            future = self.executor.submit(self.node.run_edge, points, emit, edge)
            self._edges[edge] = future
        future.add_done_callback(lambda f, name=edge: self._clear_edge(name, f))
        return future

    def enrich(self, points: Iterable[Point]) -> List[EnrichmentResult]:
        return self.node.enrich_batch(points)

    def reload(self) -> int:
        return self.node.reload()

    def running_edges(self) -> List[str]:
        with self._edges_lock:
            return sorted(name for name, future in self._edges.items() if not future.done())

    def shutdown(self, wait: bool = False) -> None:
        """Stop accepting points and release the worker pool."""
        logger.info("Sideload service shutting down", extra={"entries": len(self.running_edges())})
        self.node.cancel()
        self.executor.shutdown(wait=wait, cancel_futures=True)

    def _clear_edge(self, edge: str, future: Future[int]) -> None:
        with self._edges_lock:
            if self._edges.get(edge) is future:
                self._edges.pop(edge, None)


def build_service(config: SideloadConfig, workers: Optional[int] = None) -> SideloadService:
    settings = get_settings()
    telemetry = Telemetry(log_interval=settings.log_interval_seconds)
    node = SideloadNode(config, telemetry=telemetry)
    return SideloadService(node=node, workers=workers or settings.edge_workers)


@lru_cache
def build_default_service(workers: Optional[int] = None) -> SideloadService:
    """Factory that wires the service from the node definition in settings."""
    settings = get_settings()
    config = load_node_config(Path(settings.node_config_path), source_override=settings.source_uri)
    return build_service(config, workers=workers)
