"""Operational observability: structlog setup and the request instrumentation middleware.

Analytical request records live in ``app.logs``; this package only carries the
process-level trace (JSON lines on stdout) and the ASGI glue.
"""
