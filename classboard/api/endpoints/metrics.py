"""
Signup metrics endpoints: headline totals with deltas, and daily buckets.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from classboard.api.deps import get_current_identity, get_directory
from classboard.schemas.metrics import DailySignupCount, MetricsSummary
from classboard.schemas.token import Identity
from classboard.services import metrics
from classboard.services.directory import UserDirectory
from classboard.services.query_builder import parse_date_or_none

router = APIRouter(prefix="/metrics", tags=["metrics"])


@router.get("/summary", response_model=MetricsSummary)
async def metrics_summary(
    start: str | None = Query(None),
    end: str | None = Query(None),
    directory: UserDirectory = Depends(get_directory),
    _identity: Identity = Depends(get_current_identity),
) -> MetricsSummary:
    window_start, window_end = metrics.resolve_window(
        parse_date_or_none(start), parse_date_or_none(end)
    )
    return await metrics.summary(directory, window_start, window_end)


@router.get("/signups", response_model=list[DailySignupCount])
async def metrics_signups(
    start: str | None = Query(None),
    end: str | None = Query(None),
    interval: str = Query("day"),
    directory: UserDirectory = Depends(get_directory),
    _identity: Identity = Depends(get_current_identity),
) -> list[DailySignupCount]:
    """Signups bucketed by UTC day (``interval=day`` only)."""
    window_start, window_end = metrics.resolve_window(
        parse_date_or_none(start), parse_date_or_none(end)
    )
    return await metrics.daily_signups(directory, window_start, window_end, interval)
