from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    app_name: str = Field(default="Request Log Analytics", alias="APP_NAME")
    database_url: str = Field(default="sqlite:///./request_logs.db", alias="DATABASE_URL")
    log_store_backend: Literal["memory", "database"] = Field(default="memory", alias="LOG_STORE_BACKEND")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: Literal["json", "console"] = Field(default="json", alias="LOG_FORMAT")

    # Report endpoints are not instrumented so that reading them leaves the data unchanged.
    instrumentation_excluded_prefixes: list[str] = Field(
        default_factory=lambda: ["/api/logs"],
        alias="INSTRUMENTATION_EXCLUDED_PREFIXES",
    )
    report_default_k: int = Field(default=3, ge=1, alias="REPORT_DEFAULT_K")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
