"""Reports over the request log.

Every report re-reads the whole store; nothing is cached between calls, so two
calls with no append in between return equal results.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from collections.abc import Iterable, Sequence

from app.logs.models import UNKNOWN, LogEntry, LogLevel
from app.logs.store import LogStore
from app.models.schemas import (
    ApplicationStatus,
    EndpointCount,
    EndpointTiming,
    EndpointUsageSummary,
    ErrorCount,
    HourCount,
    TimingStatistics,
)

ERROR_STATUS = 400
CRITICAL_STATUS = 500


def _is_error(entry: LogEntry) -> bool:
    return entry.status_code >= ERROR_STATUS


def _is_critical(entry: LogEntry) -> bool:
    return entry.level == LogLevel.ERROR and entry.status_code >= CRITICAL_STATUS


def _measured(times: Iterable[int]) -> list[int]:
    """Positive timings, ascending. Zero means the request was never timed."""
    return sorted(t for t in times if t > 0)


def _median(ordered: Sequence[int]) -> float:
    mid = len(ordered) // 2
    if len(ordered) % 2:
        return float(ordered[mid])
    return (ordered[mid - 1] + ordered[mid]) / 2.0


def _endpoint_timing(times: Iterable[int]) -> EndpointTiming:
    values = _measured(times)
    if not values:
        return EndpointTiming()
    return EndpointTiming(min=values[0], max=values[-1], mean=sum(values) / len(values))


def _check_k(k: int) -> None:
    if k < 0:
        raise ValueError(f"k must be non-negative, got {k}")


class LogAnalytics:
    def __init__(self, store: LogStore) -> None:
        self.store = store

    def _entries(self) -> Sequence[LogEntry]:
        return self.store.list_all()

    # ----- errors -----

    def errors_by_status(self) -> dict[int, int]:
        """Count of entries per status code, for codes >= 400."""
        return dict(Counter(e.status_code for e in self._entries() if _is_error(e)))

    def top_errors(self, n: int = 3) -> list[ErrorCount]:
        """Most frequent error codes, count descending then code ascending."""
        _check_k(n)
        ranked = sorted(self.errors_by_status().items(), key=lambda item: (-item[1], item[0]))
        return [ErrorCount(code=code, count=count) for code, count in ranked[:n]]

    def top3_errors(self) -> list[ErrorCount]:
        return self.top_errors(3)

    def peak_error_hours(self) -> list[HourCount]:
        """Error counts per hour of day, busiest first (ties by hour).

        Entries without a timestamp are skipped.
        """
        hours = Counter(e.timestamp.hour for e in self._entries() if _is_error(e) and e.timestamp is not None)
        ranked = sorted(hours.items(), key=lambda item: (-item[1], item[0]))
        return [HourCount(hour=hour, count=count) for hour, count in ranked]

    # ----- timings -----

    def timing_statistics(self) -> TimingStatistics:
        values = _measured(e.response_time_ms for e in self._entries())
        if not values:
            return TimingStatistics()
        return TimingStatistics(
            min=values[0],
            max=values[-1],
            mean=sum(values) / len(values),
            median=_median(values),
        )

    def timing_by_endpoint(self) -> dict[str, EndpointTiming]:
        grouped: dict[str, list[int]] = defaultdict(list)
        for entry in self._entries():
            grouped[entry.endpoint or UNKNOWN].append(entry.response_time_ms)
        return {endpoint: _endpoint_timing(times) for endpoint, times in grouped.items()}

    # ----- usage -----

    def usage_by_endpoint(self) -> dict[str, int]:
        return dict(Counter(e.endpoint or UNKNOWN for e in self._entries()))

    def usage_by_method(self) -> dict[str, int]:
        return dict(Counter(e.http_method or UNKNOWN for e in self._entries()))

    def top_k_endpoints(self, k: int = 3) -> list[EndpointCount]:
        _check_k(k)
        ranked = sorted(self.usage_by_endpoint().items(), key=lambda item: (-item[1], item[0]))
        return [EndpointCount(endpoint=endpoint, count=count) for endpoint, count in ranked[:k]]

    def bottom_k_endpoints(self, k: int = 3) -> list[EndpointCount]:
        _check_k(k)
        ranked = sorted(self.usage_by_endpoint().items(), key=lambda item: (item[1], item[0]))
        return [EndpointCount(endpoint=endpoint, count=count) for endpoint, count in ranked[:k]]

    def endpoint_usage_summary(self, k: int = 3) -> EndpointUsageSummary:
        return EndpointUsageSummary(
            most_used=[row.endpoint for row in self.top_k_endpoints(k)],
            least_used=[row.endpoint for row in self.bottom_k_endpoints(k)],
        )

    # ----- alerts -----

    def critical_events(self) -> list[LogEntry]:
        """ERROR-level entries that also carry a 5xx status."""
        return [e for e in self._entries() if _is_critical(e)]

    def critical_event_count(self) -> int:
        return sum(1 for e in self._entries() if _is_critical(e))

    # ----- status -----

    def application_status(self) -> ApplicationStatus:
        """Coarse health numbers.

        The mean here includes untimed (zero) entries, unlike
        ``timing_statistics``.
        """
        entries = self._entries()
        total = len(entries)
        return ApplicationStatus(
            total_requests=total,
            total_errors=sum(1 for e in entries if _is_error(e)),
            mean_response_time_ms=(sum(e.response_time_ms for e in entries) / total) if total else 0.0,
        )
