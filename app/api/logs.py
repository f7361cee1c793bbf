from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request

from app.analytics.engine import LogAnalytics
from app.logs.models import LogEntry
from app.models.schemas import (
    ApplicationStatus,
    CriticalEventCount,
    EndpointCount,
    EndpointTiming,
    EndpointUsageSummary,
    ErrorCount,
    HourCount,
    TimingStatistics,
)


router = APIRouter(prefix="/api/logs/reports", tags=["reports"])


def get_analytics(request: Request) -> LogAnalytics:
    return request.app.state.analytics


def get_k(request: Request, k: int | None = Query(default=None, ge=1)) -> int:
    return k or request.app.state.settings.report_default_k


@router.get("/errors")
async def errors_by_status(analytics: LogAnalytics = Depends(get_analytics)) -> dict[int, int]:
    # e.g. {"500": 12, "404": 5}
    return analytics.errors_by_status()


@router.get("/errors/top3", response_model=list[ErrorCount])
async def top3_errors(analytics: LogAnalytics = Depends(get_analytics)) -> list[ErrorCount]:
    return analytics.top3_errors()


@router.get("/errors/peak-hours", response_model=list[HourCount])
async def peak_error_hours(analytics: LogAnalytics = Depends(get_analytics)) -> list[HourCount]:
    return analytics.peak_error_hours()


@router.get("/timings/statistics", response_model=TimingStatistics)
async def timing_statistics(analytics: LogAnalytics = Depends(get_analytics)) -> TimingStatistics:
    return analytics.timing_statistics()


@router.get("/timings/by-endpoint", response_model=dict[str, EndpointTiming])
async def timing_by_endpoint(analytics: LogAnalytics = Depends(get_analytics)) -> dict[str, EndpointTiming]:
    return analytics.timing_by_endpoint()


@router.get("/usage/endpoints")
async def usage_by_endpoint(analytics: LogAnalytics = Depends(get_analytics)) -> dict[str, int]:
    return analytics.usage_by_endpoint()


@router.get("/usage/methods")
async def usage_by_method(analytics: LogAnalytics = Depends(get_analytics)) -> dict[str, int]:
    # e.g. {"GET": 120, "POST": 40}
    return analytics.usage_by_method()


@router.get("/usage/top", response_model=list[EndpointCount])
async def top_endpoints(
    k: int = Depends(get_k),
    analytics: LogAnalytics = Depends(get_analytics),
) -> list[EndpointCount]:
    return analytics.top_k_endpoints(k)


@router.get("/usage/bottom", response_model=list[EndpointCount])
async def bottom_endpoints(
    k: int = Depends(get_k),
    analytics: LogAnalytics = Depends(get_analytics),
) -> list[EndpointCount]:
    return analytics.bottom_k_endpoints(k)


@router.get("/usage/summary", response_model=EndpointUsageSummary)
async def endpoint_usage_summary(
    k: int = Depends(get_k),
    analytics: LogAnalytics = Depends(get_analytics),
) -> EndpointUsageSummary:
    return analytics.endpoint_usage_summary(k)


@router.get("/alerts/events", response_model=list[LogEntry])
async def critical_events(analytics: LogAnalytics = Depends(get_analytics)) -> list[LogEntry]:
    return analytics.critical_events()


@router.get("/alerts/count", response_model=CriticalEventCount)
async def critical_event_count(analytics: LogAnalytics = Depends(get_analytics)) -> CriticalEventCount:
    return CriticalEventCount(count=analytics.critical_event_count())


@router.get("/status", response_model=ApplicationStatus)
async def application_status(analytics: LogAnalytics = Depends(get_analytics)) -> ApplicationStatus:
    return analytics.application_status()
