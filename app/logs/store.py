from __future__ import annotations

import itertools
from collections.abc import Sequence
from threading import Lock
from typing import Protocol

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session, sessionmaker

from app.db.models import LogRecord
from app.db.session import get_session_factory
from app.logs.models import LogEntry


class LogStore(Protocol):
    """Append-only holder of request log entries.

    ``append`` must be safe under concurrent callers. ``list_all`` returns a
    snapshot in insertion order; later appends never show up in a snapshot
    that was already returned.
    """

    def append(self, entry: LogEntry) -> int: ...

    def list_all(self) -> Sequence[LogEntry]: ...


class InMemoryLogStore:
    """Thread-safe, process-local store (resets on restart)."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._entries: list[LogEntry] = []
        self._ids = itertools.count(1)

    def append(self, entry: LogEntry) -> int:
        with self._lock:
            entry_id = next(self._ids)
            self._entries.append(entry.model_copy(update={"id": entry_id}))
        return entry_id

    def list_all(self) -> tuple[LogEntry, ...]:
        with self._lock:
            return tuple(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class SqlLogStore:
    """Store backed by the ``log_entries`` table. One session per call."""

    def __init__(self, engine: Engine | None = None) -> None:
        self._session_factory: sessionmaker[Session] = get_session_factory(engine)

    def append(self, entry: LogEntry) -> int:
        record = LogRecord(
            timestamp=entry.timestamp,
            level=entry.level.value,
            message=entry.message,
            endpoint=entry.endpoint,
            http_method=entry.http_method,
            status_code=entry.status_code,
            response_time_ms=entry.response_time_ms,
        )
        with self._session_factory() as db:
            db.add(record)
            db.commit()
            return record.id

    def list_all(self) -> list[LogEntry]:
        with self._session_factory() as db:
            rows = db.execute(select(LogRecord).order_by(LogRecord.id.asc())).scalars().all()
            return [LogEntry.model_validate(row) for row in rows]
