"""
FastAPI application for Pick Dashboard.

PURPOSE: Main application factory and server runner.
AI CONTEXT: Creates the app with all routes and one injected RowSource.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import uvicorn
from fastapi import FastAPI

from ..__version__ import __version__
from ..row_source import RowSourceError, SqliteRowSource
from .routes import router, row_source_error_handler

if TYPE_CHECKING:
    from ..row_source import RowSource

__all__ = ["create_app", "run_dashboard"]

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """
    Manage application lifecycle with startup/shutdown hooks.

    Business context: Startup logging confirms which database the
    dashboard reads, which is the first thing to check when a manager
    reports an empty result page.

    Args:
        app: The FastAPI application instance (provided by FastAPI).

    Yields:
        None. Control returns to FastAPI to handle requests.
    """
    source = app.state.row_source
    logger.info(
        "Pick dashboard starting (v%s), database: %s",
        __version__,
        getattr(source, "database_path", type(source).__name__),
    )
    yield
    logger.info("Pick dashboard shutting down")


def create_app(row_source: RowSource | None = None) -> FastAPI:
    """
    Create and configure the FastAPI dashboard application.

    The row source is created once here (or passed in) and stored on
    app.state, where the route dependencies pick it up for every request.

    Args:
        row_source: Data source for all routes. Default: SqliteRowSource
            on Config.get_database_path().

    Returns:
        Configured FastAPI application with all dashboard routes and
        OpenAPI documentation at /docs. Database failures are
        answered with 503.

    Example:
        >>> from fastapi.testclient import TestClient
        >>> client = TestClient(create_app(InMemoryRowSource(events)))
        >>> client.get('/dashboard').status_code
        200
    """
    app = FastAPI(
        title="Pick Dashboard",
        description="Picking performance by order and by worker",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.row_source = row_source if row_source is not None else SqliteRowSource()
    app.add_exception_handler(RowSourceError, row_source_error_handler)
    app.include_router(router)
    return app


def run_dashboard(
    host: str = "127.0.0.1",
    port: int = 8000,
    database: str | None = None,
    log_level: str = "info",
) -> None:
    """
    Launch the Pick Dashboard web server.

    Args:
        host: Network interface to bind the server to. Use '127.0.0.1'
            for local-only access (default) or '0.0.0.0' for network access.
        port: TCP port number for the HTTP server. Default 8000.
        database: SQLite file path. Default: Config.get_database_path().
        log_level: Uvicorn logging verbosity.

    Returns:
        None. This function blocks until the server is stopped (Ctrl+C).

    Raises:
        OSError: If the port is already in use or host is invalid.
    """
    app = create_app(SqliteRowSource(database))
    uvicorn.run(app, host=host, port=port, log_level=log_level)
