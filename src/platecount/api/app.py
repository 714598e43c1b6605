"""FastAPI application factory.

Run with any ASGI server, for example::

    uvicorn platecount.api.app:create_app --factory
"""

import logging
from typing import Optional

from fastapi import FastAPI

from platecount import __version__
from platecount.api.errors import register_error_handlers
from platecount.api.routes import batches, donations
from platecount.config import Settings
from platecount.database.base import Database
from platecount.database.factories import create_database
from platecount.domain.changes import ChangeFeed
from platecount.domain.clock import Clock, SystemClock
from platecount.domain.notifications import NotificationDispatcher
from platecount.domain.reports import ReportRenderer, TextReportRenderer
from platecount.logging_config import configure_logging

logger = logging.getLogger(__name__)


def create_app(
    database: Optional[Database] = None,
    settings: Optional[Settings] = None,
    clock: Optional[Clock] = None,
    renderer: Optional[ReportRenderer] = None,
    dispatcher: Optional[NotificationDispatcher] = None,
) -> FastAPI:
    """Create the HTTP application.

    Args:
        database: Database to serve; built from settings when omitted
        settings: Settings; read from the environment when omitted
        clock: Source of attestation timestamps
        renderer: Report renderer; plain text when omitted
        dispatcher: Report delivery; built from settings when omitted
    """
    if settings is None:
        settings = Settings.from_env()
        configure_logging(settings.log_level, fmt=settings.log_format)
    if database is None:
        database = create_database(database_url=settings.database_url, database_path=settings.db_path)

    app = FastAPI(title="Platecount", version=__version__)
    app.state.settings = settings
    app.state.database = database
    app.state.clock = clock or SystemClock()
    app.state.renderer = renderer or TextReportRenderer()
    app.state.dispatcher = dispatcher if dispatcher is not None else settings.build_dispatcher()
    app.state.changes = ChangeFeed()

    register_error_handlers(app)
    app.include_router(batches.router)
    app.include_router(donations.router)

    @app.get("/api/health")
    def health():
        return {"status": "ok", "version": __version__}

    logger.info("HTTP application created database=%s", type(database).__name__)
    return app
