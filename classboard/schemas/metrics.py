"""Pydantic schemas for signup metrics."""

from __future__ import annotations

from classboard.schemas.common import CamelModel


class MetricsDeltas(CamelModel):
    users: float
    teachers: float
    students: float
    weekly_signups: float


class MetricsSummary(CamelModel):
    total_users: int
    total_teachers: int
    total_students: int
    weekly_signups: int
    deltas: MetricsDeltas


class DailySignupCount(CamelModel):
    date: str
    count: int
