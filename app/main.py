from __future__ import annotations

import structlog
from fastapi import FastAPI

from app.analytics.engine import LogAnalytics
from app.api.logs import router as logs_router
from app.api.people import router as people_router
from app.config import Settings, get_settings
from app.db.session import get_engine, get_session_factory, init_db
from app.instrumentation.instrumenter import RequestInstrumenter
from app.logs.store import InMemoryLogStore, LogStore, SqlLogStore
from app.observability.logging import configure_logging
from app.observability.middleware import RequestInstrumentationMiddleware


def build_log_store(settings: Settings) -> LogStore:
    if settings.log_store_backend == "database":
        return SqlLogStore(get_engine(settings.database_url))
    return InMemoryLogStore()


def create_app(settings: Settings | None = None, log_store: LogStore | None = None) -> FastAPI:
    """Build the service. Run with ``uvicorn app.main:create_app --factory``."""

    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.log_format)
    engine = get_engine(settings.database_url)
    init_db(engine)

    store = log_store if log_store is not None else build_log_store(settings)

    app = FastAPI(title=settings.app_name, version="0.1.0")
    app.state.settings = settings
    app.state.session_factory = get_session_factory(engine)
    app.state.log_store = store
    app.state.analytics = LogAnalytics(store)

    app.add_middleware(
        RequestInstrumentationMiddleware,
        instrumenter=RequestInstrumenter(store),
        excluded_prefixes=settings.instrumentation_excluded_prefixes,
    )
    app.include_router(people_router)
    app.include_router(logs_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    structlog.get_logger("app").info(
        "app_created",
        log_store=type(store).__name__,
        excluded_prefixes=settings.instrumentation_excluded_prefixes,
    )
    return app
