from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

UNKNOWN = "(unknown)"


class LogLevel(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    DEBUG = "DEBUG"
    TRACE = "TRACE"


class LogEntry(BaseModel):
    """One observed request. Frozen: the store assigns ``id`` by copying."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int | None = None
    timestamp: datetime | None = None
    level: LogLevel = LogLevel.INFO
    message: str = ""
    endpoint: str = UNKNOWN
    http_method: str = UNKNOWN
    status_code: int = 200
    response_time_ms: int = Field(default=0, ge=0)

    @field_validator("level", mode="before")
    @classmethod
    def _parse_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("endpoint", "http_method", mode="before")
    @classmethod
    def _default_unknown(cls, value: object) -> object:
        if value is None or (isinstance(value, str) and not value.strip()):
            return UNKNOWN
        return value
