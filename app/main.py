from __future__ import annotations
import logging
import signal
import threading
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Optional

from fastapi import FastAPI

from app.api import router
from logging_config import configure_logging
from services.pipeline import SideloadService, build_default_service

logger = logging.getLogger(__name__)


def install_reload_signal(service: SideloadService) -> Optional[Callable[..., Any]]:
    """Reload the document cache on SIGHUP; returns the previous handler.

    Signal handlers can only be installed from the main thread, so this is a
    no-op (returning ``None``) anywhere else or on platforms without SIGHUP.
    """
    sighup = getattr(signal, "SIGHUP", None)
    if sighup is None or threading.current_thread() is not threading.main_thread():
        return None

    def _handle(_signum: int, _frame: Any) -> None:
        dropped = service.reload()
        logger.info("Reload requested by signal", extra={"entries": dropped})

    return signal.signal(sighup, _handle)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    service = build_default_service()
    previous_handler = install_reload_signal(service)
    try:
        yield
    finally:
        if previous_handler is not None:
            signal.signal(signal.SIGHUP, previous_handler)
        service.shutdown()
        build_default_service.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Sideload Enrichment Node",
        description="Enriches data points with fields and tags from a hierarchical document source.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app

app = create_app()
