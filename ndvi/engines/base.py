"""Shared value types for NDVI point-series acquisition."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Literal

TaskState = Literal["pending", "done", "failed", "timeout"]
SeriesMode = Literal["appeears", "demo", "fallback_demo"]
SyntheticReason = Literal["no_credential", "upstream_rejected"]


@dataclass(frozen=True)
class Coordinate:
    """WGS84 point in decimal degrees."""

    lat: float
    lon: float


@dataclass(frozen=True)
class SeriesPoint:
    """Single NDVI observation at calendar-date precision."""

    date: date
    ndvi: float


@dataclass(frozen=True)
class Credential:
    """Bearer token issued by the remote service."""

    token: str
    acquired_at: datetime


@dataclass(frozen=True)
class ExtractionTask:
    """One remote point-timeseries job as tracked by the client."""

    task_id: str
    start: date
    end: date
    coordinate: Coordinate
    product: str
    layer: str
    state: TaskState = "pending"


@dataclass(frozen=True)
class RealSeries:
    """Series retrieved from the remote service."""

    points: list[SeriesPoint]
    layer: str

    @property
    def mode(self) -> SeriesMode:
        return "appeears"


@dataclass(frozen=True)
class SyntheticSeries:
    """Locally generated stand-in series, always labelled as such."""

    points: list[SeriesPoint]
    reason: SyntheticReason
    warning: str | None = None
    upstream_detail: Any = field(default=None)

    @property
    def mode(self) -> SeriesMode:
        if self.reason == "upstream_rejected":
            return "fallback_demo"
        return "demo"


SeriesOutcome = RealSeries | SyntheticSeries
