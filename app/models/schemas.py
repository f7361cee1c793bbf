from __future__ import annotations

from pydantic import BaseModel, Field


class PersonIn(BaseModel):
    first_name: str = Field(min_length=1, max_length=120)
    last_name: str = Field(min_length=1, max_length=120)


class PersonOut(PersonIn):
    id: int


class ErrorCount(BaseModel):
    code: int
    count: int


class HourCount(BaseModel):
    hour: int = Field(ge=0, le=23)
    count: int


class EndpointCount(BaseModel):
    endpoint: str
    count: int


class EndpointTiming(BaseModel):
    min: float = 0.0
    max: float = 0.0
    mean: float = 0.0


class TimingStatistics(EndpointTiming):
    median: float = 0.0


class EndpointUsageSummary(BaseModel):
    most_used: list[str]
    least_used: list[str]


class CriticalEventCount(BaseModel):
    count: int


class ApplicationStatus(BaseModel):
    total_requests: int
    total_errors: int
    mean_response_time_ms: float
