from __future__ import annotations

from collections.abc import Awaitable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from time import perf_counter
from typing import Any, Callable, TypeVar, Union

import structlog

from app.logs.models import LogEntry, LogLevel
from app.logs.store import LogStore


T = TypeVar("T")

Operation = Union[str, Callable[[], str]]


def _no_status() -> int | None:
    return None


@dataclass(frozen=True)
class RequestContext:
    """What the transport layer knows about the request being handled.

    ``status`` is read at completion, after the handler has had a chance to
    start the response.
    """

    method: str | None = None
    path: str | None = None
    status: Callable[[], int | None] = field(default=_no_status)


def _positive_int(value: Any) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool) and value > 0:
        return value
    return None


class RequestInstrumenter:
    """Times handler calls and appends exactly one LogEntry per call."""

    def __init__(self, store: LogStore, clock: Callable[[], datetime] | None = None) -> None:
        self.store = store
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._logger = structlog.get_logger("instrumentation")

    def instrument(self, operation: Operation, fn: Callable[[], T], context: RequestContext | None = None) -> T:
        context = context or RequestContext()
        start = perf_counter()
        try:
            result = fn()
        except BaseException as exc:
            self._record_failure(context, exc, start)
            raise
        self._record_success(operation, context, result, start)
        return result

    async def instrument_async(
        self,
        operation: Operation,
        fn: Callable[[], Awaitable[T]],
        context: RequestContext | None = None,
    ) -> T:
        context = context or RequestContext()
        start = perf_counter()
        try:
            result = await fn()
        except BaseException as exc:
            self._record_failure(context, exc, start)
            raise
        self._record_success(operation, context, result, start)
        return result

    def _elapsed_ms(self, start: float) -> int:
        return max(0, round((perf_counter() - start) * 1000.0))

    def _append(self, entry: LogEntry) -> None:
        # The response is already on its way (or the handler error is being
        # re-raised), so a store failure is reported here and not propagated.
        try:
            self.store.append(entry)
        except Exception:
            self._logger.exception(
                "log_store_append_failed",
                endpoint=entry.endpoint,
                method=entry.http_method,
                status_code=entry.status_code,
            )

    def _ambient_status(self, context: RequestContext) -> int | None:
        return _positive_int(context.status())

    def _record_success(self, operation: Operation, context: RequestContext, result: Any, start: float) -> None:
        elapsed_ms = self._elapsed_ms(start)
        name = operation() if callable(operation) else operation
        status_code = (
            _positive_int(getattr(result, "status_code", None))
            or self._ambient_status(context)
            or 200
        )

        self._append(
            LogEntry(
                timestamp=self._clock(),
                level=LogLevel.ERROR if status_code >= 500 else LogLevel.INFO,
                message=f"Executed: {name}",
                endpoint=context.path,
                http_method=context.method,
                status_code=status_code,
                response_time_ms=elapsed_ms,
            )
        )
        self._logger.info(f"{name}: {elapsed_ms} ms", operation=name, status_code=status_code, elapsed_ms=elapsed_ms)

    def _record_failure(self, context: RequestContext, exc: BaseException, start: float) -> None:
        elapsed_ms = self._elapsed_ms(start)
        ambient = self._ambient_status(context)
        status_code = ambient if ambient is not None and ambient >= 400 else 500
        entry = LogEntry(
            timestamp=self._clock(),
            level=LogLevel.ERROR,
            message=f"{type(exc).__name__}: {str(exc) or 'Error'}",
            endpoint=context.path,
            http_method=context.method,
            status_code=status_code,
            response_time_ms=elapsed_ms,
        )

        self._append(entry)
        self._logger.error(
            f"{entry.http_method} {entry.endpoint} status={status_code} in {elapsed_ms} ms",
            status_code=status_code,
            elapsed_ms=elapsed_ms,
            error=type(exc).__name__,
        )
