from datetime import datetime, timezone

import pytest

from app.analytics.engine import LogAnalytics
from app.logs.models import LogLevel
from app.models.schemas import ErrorCount, HourCount


@pytest.fixture
def analytics(log_store) -> LogAnalytics:
    return LogAnalytics(log_store)


def _at(hour: int) -> datetime:
    return datetime(2025, 5, 15, hour, 0, tzinfo=timezone.utc)


def test_empty_store_returns_zero_defaults(analytics) -> None:
    assert analytics.errors_by_status() == {}
    assert analytics.top3_errors() == []
    assert analytics.peak_error_hours() == []
    stats = analytics.timing_statistics()
    assert (stats.min, stats.max, stats.mean, stats.median) == (0, 0, 0, 0)
    assert analytics.timing_by_endpoint() == {}
    assert analytics.usage_by_endpoint() == {}
    assert analytics.usage_by_method() == {}
    assert analytics.top_k_endpoints() == []
    assert analytics.bottom_k_endpoints() == []
    assert analytics.critical_events() == []
    assert analytics.critical_event_count() == 0
    status = analytics.application_status()
    assert (status.total_requests, status.total_errors, status.mean_response_time_ms) == (0, 0, 0.0)


def test_errors_by_status_counts_only_errors(analytics, log_store, make_entry) -> None:
    for code in (200, 201, 404, 404, 500, 400, 302):
        log_store.append(make_entry(status_code=code))

    result = analytics.errors_by_status()

    assert result == {404: 2, 500: 1, 400: 1}
    assert sum(result.values()) == analytics.application_status().total_errors


def test_top3_errors_orders_by_count_then_code(analytics, log_store, make_entry) -> None:
    for code in (500, 500, 404, 404, 400, 401, 503, 503, 503):
        log_store.append(make_entry(status_code=code))

    top = analytics.top3_errors()

    assert top == [ErrorCount(code=503, count=3), ErrorCount(code=404, count=2), ErrorCount(code=500, count=2)]
    by_status = analytics.errors_by_status()
    assert all(by_status[row.code] == row.count for row in top)


def test_peak_error_hours_sorted_and_skips_missing_timestamps(analytics, log_store, make_entry) -> None:
    log_store.append(make_entry(status_code=500, timestamp=_at(18)))
    log_store.append(make_entry(status_code=404, timestamp=_at(18)))
    log_store.append(make_entry(status_code=404, timestamp=_at(13)))
    log_store.append(make_entry(status_code=500, timestamp=_at(2)))
    log_store.append(make_entry(status_code=500, timestamp=None))
    log_store.append(make_entry(status_code=200, timestamp=_at(9)))

    assert analytics.peak_error_hours() == [
        HourCount(hour=18, count=2),
        HourCount(hour=2, count=1),
        HourCount(hour=13, count=1),
    ]


@pytest.mark.parametrize(
    "times, expected",
    [
        ([10, 20, 30], (10, 30, 20, 20)),
        ([40, 10, 30, 20], (10, 40, 25, 25)),
        ([0, 0], (0, 0, 0, 0)),
        ([0, 15, 5], (5, 15, 10, 10)),
    ],
)
def test_timing_statistics(analytics, log_store, make_entry, times, expected) -> None:
    for t in times:
        log_store.append(make_entry(response_time_ms=t))

    stats = analytics.timing_statistics()

    assert (stats.min, stats.max, stats.mean, stats.median) == expected


def test_timing_by_endpoint(analytics, log_store, make_entry) -> None:
    log_store.append(make_entry(endpoint="/a", response_time_ms=10))
    log_store.append(make_entry(endpoint="/a", response_time_ms=30))
    log_store.append(make_entry(endpoint="/a", response_time_ms=0))
    log_store.append(make_entry(endpoint="/b", response_time_ms=0))
    log_store.append(make_entry(endpoint=None, response_time_ms=7))

    result = analytics.timing_by_endpoint()

    assert (result["/a"].min, result["/a"].max, result["/a"].mean) == (10, 30, 20)
    assert (result["/b"].min, result["/b"].max, result["/b"].mean) == (0, 0, 0)
    assert result["(unknown)"].mean == 7


def test_usage_by_endpoint_and_method(analytics, log_store, make_entry) -> None:
    log_store.append(make_entry(endpoint="/a", http_method="GET"))
    log_store.append(make_entry(endpoint="/a", http_method="POST", status_code=500))
    log_store.append(make_entry(endpoint="/b", http_method="GET"))

    assert analytics.usage_by_endpoint() == {"/a": 2, "/b": 1}
    assert analytics.usage_by_method() == {"GET": 2, "POST": 1}


def test_top_and_bottom_k_endpoints(analytics, log_store, make_entry) -> None:
    for endpoint, n in (("/a", 4), ("/b", 1), ("/c", 2), ("/d", 1), ("/e", 3)):
        for _ in range(n):
            log_store.append(make_entry(endpoint=endpoint))

    assert [(r.endpoint, r.count) for r in analytics.top_k_endpoints()] == [("/a", 4), ("/e", 3), ("/c", 2)]
    assert [(r.endpoint, r.count) for r in analytics.bottom_k_endpoints(2)] == [("/b", 1), ("/d", 1)]
    assert analytics.top_k_endpoints(0) == []
    assert len(analytics.top_k_endpoints(10)) == 5

    summary = analytics.endpoint_usage_summary(k=1)
    assert summary.most_used == ["/a"]
    assert summary.least_used == ["/b"]

    with pytest.raises(ValueError):
        analytics.bottom_k_endpoints(-1)


def test_critical_events_require_error_level_and_5xx(analytics, log_store, make_entry) -> None:
    log_store.append(make_entry(status_code=404, level=LogLevel.ERROR))
    log_store.append(make_entry(status_code=503, level=LogLevel.INFO))
    log_store.append(make_entry(status_code=500, level=LogLevel.ERROR, endpoint="/boom"))
    log_store.append(make_entry(status_code=200))

    events = analytics.critical_events()

    assert [(e.endpoint, e.status_code) for e in events] == [("/boom", 500)]
    assert analytics.critical_event_count() == 1


def test_application_status_mean_includes_untimed_entries(analytics, log_store, make_entry) -> None:
    log_store.append(make_entry(response_time_ms=0))
    log_store.append(make_entry(response_time_ms=30, status_code=500))
    log_store.append(make_entry(response_time_ms=30, status_code=404))

    status = analytics.application_status()

    assert status.total_requests == 3
    assert status.total_errors == 2
    assert status.mean_response_time_ms == 20.0
    assert analytics.timing_statistics().mean == 30.0


def test_reports_are_idempotent(analytics, log_store, make_entry) -> None:
    for code, t in ((200, 5), (500, 50), (404, 8)):
        log_store.append(make_entry(status_code=code, response_time_ms=t))

    reports = (
        analytics.errors_by_status,
        analytics.top3_errors,
        analytics.peak_error_hours,
        analytics.timing_statistics,
        analytics.timing_by_endpoint,
        analytics.usage_by_endpoint,
        analytics.usage_by_method,
        analytics.top_k_endpoints,
        analytics.bottom_k_endpoints,
        analytics.critical_events,
        analytics.application_status,
    )
    for report in reports:
        assert report() == report()
