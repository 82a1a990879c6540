"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from portfolio_tracker import __version__
from portfolio_tracker.api.routes import api_router
from portfolio_tracker.config import get_settings
from portfolio_tracker.core.logging import setup_logging
from portfolio_tracker.core.telemetry import setup_telemetry
from portfolio_tracker.db.init import init_database
from portfolio_tracker.db.session import Database
from portfolio_tracker.providers.finnhub import FinnhubClient, FinnhubQuoteProvider
from portfolio_tracker.services.dashboard import PortfolioDashboard
from portfolio_tracker.services.storage import SqlStorage

logger = logging.getLogger(__name__)

settings = get_settings()
database = Database(settings.database_url)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Load the session, prime prices once, then keep refreshing on the timer."""

    setup_logging(settings.log_level)
    logger.info("Starting %s with %s", settings.app_name, settings.dict_for_logging())
    await init_database(database)

    client = FinnhubClient()
    dashboard = PortfolioDashboard(SqlStorage(database), FinnhubQuoteProvider(client), settings)
    await dashboard.load()
    await dashboard.refresh()
    dashboard.start()
    app.state.dashboard = dashboard
    try:
        yield
    finally:
        await dashboard.stop()
        await client.aclose()
        await database.dispose()


app = FastAPI(title=settings.app_name, version=__version__, lifespan=lifespan)
setup_telemetry(app, settings, engine=database.engine)

app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["health"])
async def health() -> dict[str, str]:
    """Return service readiness metadata."""

    dashboard = getattr(app.state, "dashboard", None)
    return {
        "status": "ok",
        "timestamp": datetime.now().isoformat(),
        "data_source": dashboard.prices.status.value if dashboard is not None else "connecting",
    }


def configure_app() -> FastAPI:
    """Attach routes."""

    app.include_router(api_router)
    return app


configure_app()


def run() -> None:
    import uvicorn

    uvicorn.run("portfolio_tracker.main:app", host="0.0.0.0", port=8000)


__all__ = ["app", "configure_app", "lifespan", "run"]
