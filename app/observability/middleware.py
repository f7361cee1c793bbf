from __future__ import annotations

import uuid
from typing import Any, Callable

import structlog
from starlette.datastructures import MutableHeaders

from app.instrumentation.instrumenter import RequestContext, RequestInstrumenter


class RequestInstrumentationMiddleware:
    """Binds a request id and records one LogEntry per HTTP request.

    Handled ``HTTPException``s are already rendered into responses by the time
    they reach this layer, so they are recorded with their real status. Anything
    that escapes the app is recorded as a failure and re-raised for Starlette's
    server-error middleware to render.
    """

    def __init__(
        self,
        app: Callable[..., Any],
        instrumenter: RequestInstrumenter,
        excluded_prefixes: list[str] | tuple[str, ...] = (),
    ) -> None:
        self.app = app
        self.instrumenter = instrumenter
        self._excluded_prefixes = tuple(excluded_prefixes)

    def _is_excluded(self, path: str | None) -> bool:
        return bool(path) and any(path == p or path.startswith(p.rstrip("/") + "/") for p in self._excluded_prefixes)

    async def __call__(self, scope: dict[str, Any], receive: Callable[..., Any], send: Callable[..., Any]) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        request_id = str(uuid.uuid4())
        path = scope.get("path")
        method = scope.get("method")

        structlog.contextvars.bind_contextvars(request_id=request_id, path=path, method=method)

        status_code: int | None = None

        async def send_wrapper(message: dict[str, Any]) -> None:
            nonlocal status_code

            if message.get("type") == "http.response.start":
                status_code = int(message.get("status", 500))
                headers = MutableHeaders(scope=message)
                headers["X-Request-ID"] = request_id

            await send(message)

        def operation_name() -> str:
            # Starlette's router writes the matched endpoint into the shared scope.
            endpoint = scope.get("endpoint")
            return getattr(endpoint, "__name__", None) or f"{method} {path}"

        try:
            if self._is_excluded(path):
                await self.app(scope, receive, send_wrapper)
                return

            await self.instrumenter.instrument_async(
                operation_name,
                lambda: self.app(scope, receive, send_wrapper),
                RequestContext(method=method, path=path, status=lambda: status_code),
            )
        finally:
            structlog.contextvars.clear_contextvars()
