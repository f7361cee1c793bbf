from __future__ import annotations

from collections.abc import Generator
from threading import Lock

from fastapi import Request
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from app.config import get_settings
from app.db.models import Base


_ENGINES: dict[str, Engine] = {}
_ENGINES_LOCK = Lock()


def get_engine(url: str | None = None) -> Engine:
    """One engine (and pool) per URL, shared until ``dispose_engines``."""

    url = url or get_settings().database_url
    with _ENGINES_LOCK:
        engine = _ENGINES.get(url)
        if engine is None:
            connect_args: dict = {}
            if url.startswith("sqlite"):
                # Requests and log appends run on the threadpool as well as the event loop.
                connect_args["check_same_thread"] = False
            engine = create_engine(url, pool_pre_ping=True, connect_args=connect_args)
            _ENGINES[url] = engine
        return engine


def dispose_engines() -> None:
    """Close every pooled connection and forget the engines (used by tests)."""

    with _ENGINES_LOCK:
        engines = list(_ENGINES.values())
        _ENGINES.clear()
    for engine in engines:
        engine.dispose()


def get_session_factory(engine: Engine | None = None) -> sessionmaker[Session]:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine or get_engine())


def init_db(engine: Engine | None = None) -> None:
    Base.metadata.create_all(bind=engine or get_engine())


def get_db(request: Request) -> Generator[Session, None, None]:
    # Bound in create_app to the database of the app's own settings.
    SessionLocal: sessionmaker[Session] = request.app.state.session_factory
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
