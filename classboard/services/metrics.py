"""
Signup metrics: all-time totals, windowed signups and percent deltas.

Rules:
- totalUsers / totalTeachers / totalStudents are ALL-TIME totals
- weeklySignups is the number of signups in the selected window
  (defaults to the last 7 days)
- deltas.* compare signups in this window with the previous window of the
  same length that ends 1 ms before this one starts
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from classboard.schemas.metrics import DailySignupCount, MetricsDeltas, MetricsSummary
from classboard.services.directory import UserDirectory
from classboard.services.query_builder import created_between

DEFAULT_WINDOW = timedelta(days=7)
_ONE_MS = timedelta(milliseconds=1)

EARLIEST = datetime.min.replace(tzinfo=timezone.utc)
LATEST = datetime.max.replace(tzinfo=timezone.utc)


def shift(moment: datetime, delta: timedelta) -> datetime:
    """``moment + delta``, saturating at the ends of the datetime range."""
    try:
        return moment + delta
    except OverflowError:
        return EARLIEST if delta < timedelta(0) else LATEST


def pct(curr: int, prev: int) -> float:
    """Percent change from *prev* to *curr*, rounded to 2 decimals."""
    if prev <= 0:
        return 100.0 if curr > 0 else 0.0
    return round((curr - prev) / prev * 100, 2)


def previous_window(start: datetime, end: datetime) -> tuple[datetime, datetime]:
    prev_end = shift(start, -_ONE_MS)
    prev_start = shift(prev_end, -(end - start))
    return prev_start, prev_end


def resolve_window(
    start: datetime | None, end: datetime | None, now: datetime | None = None
) -> tuple[datetime, datetime]:
    end = end or now or datetime.now(timezone.utc)
    start = start or shift(end, -DEFAULT_WINDOW)
    return start, end


async def _window_counts(directory: UserDirectory, start: datetime, end: datetime) -> dict[str, int]:
    by_role = await directory.count_by_role(created_between(start, end))
    return {
        "all": sum(by_role.values()),
        "teacher": by_role.get("teacher", 0),
        "student": by_role.get("student", 0),
    }


async def summary(directory: UserDirectory, start: datetime, end: datetime) -> MetricsSummary:
    totals = await directory.count_by_role()
    current = await _window_counts(directory, start, end)
    previous = await _window_counts(directory, *previous_window(start, end))

    return MetricsSummary(
        total_users=sum(totals.values()),
        total_teachers=totals.get("teacher", 0),
        total_students=totals.get("student", 0),
        weekly_signups=current["all"],
        deltas=MetricsDeltas(
            users=pct(current["all"], previous["all"]),
            teachers=pct(current["teacher"], previous["teacher"]),
            students=pct(current["student"], previous["student"]),
            weekly_signups=pct(current["all"], previous["all"]),
        ),
    )


async def daily_signups(
    directory: UserDirectory, start: datetime, end: datetime, interval: str = "day"
) -> list[DailySignupCount]:
    # Only daily buckets are supported
    if interval != "day":
        return []
    rows = await directory.aggregate_daily_counts(start, end)
    return [DailySignupCount(**row) for row in rows]
