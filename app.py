"""Application factory and entry point.

Run with:
    uvicorn app:app --reload

Environment
-----------
KEYPAD_MAX_SESSIONS   cap on concurrent sessions (default 1000)
KEYPAD_LOG_LEVEL      log level for the service loggers (default INFO)
"""
from __future__ import annotations

import logging
import os

from fastapi import FastAPI

from api import keypad_router, router, set_store
from store import DEFAULT_MAX_SESSIONS, SessionStore

DEFAULT_LOG_LEVEL = "INFO"

logger = logging.getLogger(__name__)


def configure_logging(level: str | int) -> None:
    """Attach a stream handler to the service loggers once.

    ``level`` is a level name (``"debug"``, ``"INFO"``), a numeric string
    (``"10"``) or an int.
    """
    if isinstance(level, str):
        text = level.strip()
        if text.isdigit():
            resolved = int(text)
        else:
            resolved = logging.getLevelName(text.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level!r}")
        level = resolved

    for name in ("app", "store"):
        service_logger = logging.getLogger(name)
        service_logger.setLevel(level)
        if not service_logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
            ))
            service_logger.addHandler(handler)


def create_app(
    store: SessionStore | None = None,
    max_sessions: int | None = None,
    log_level: str | int | None = None,
) -> FastAPI:
    """Build and return the FastAPI application.

    Accepts an optional store for testing; creates a fresh one if omitted.
    Unset options fall back to the environment, then to the defaults.
    """
    if log_level is None:
        log_level = os.environ.get("KEYPAD_LOG_LEVEL", DEFAULT_LOG_LEVEL)
    configure_logging(log_level)

    if store is None:
        if max_sessions is None:
            max_sessions = int(
                os.environ.get("KEYPAD_MAX_SESSIONS", DEFAULT_MAX_SESSIONS)
            )
        store = SessionStore(max_sessions=max_sessions)

    set_store(store)
    logger.info("keypad service ready (max_sessions=%d)", store.max_sessions)

    app = FastAPI(
        title="Keypad Calculator API",
        description=(
            "Drive an on-screen calculator keypad over HTTP. Each session "
            "holds one calculator; pressing a key returns the new display "
            "and pending-operation state."
        ),
        version="0.1.0",
    )
    app.include_router(keypad_router)
    app.include_router(router)
    return app


# Default app instance for `uvicorn app:app`
app = create_app()
