"""Heuristic phenological stage estimation from an NDVI series.

Pure functions only: no I/O and no shared state, so `classify` can be called
concurrently on independent inputs.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, fields
from typing import Any

from ndvi.engines.base import SeriesPoint

from .hints import hint_for
from .types import AnalysisMeta, AnalysisResult, StageEstimate, StageStatus


@dataclass(frozen=True)
class PhenologyThresholds:
    """Empirical constants driving the stage rules."""

    min_points: int = 5
    smoothing_window: int = 3
    slope_samples: int = 4
    flat_slope: float = 0.015
    rising_slope: float = 0.03
    peak_ratio: float = 0.9
    peak_window_days: int = 120
    cadence_days: int = 16
    confidence_floor: float = 0.2
    full_point_count: int = 24
    full_slope: float = 0.06

    @property
    def peak_window_samples(self) -> int:
        return math.ceil(self.peak_window_days / self.cadence_days)

    @classmethod
    def from_mapping(
        cls, overrides: Mapping[str, Any] | None
    ) -> PhenologyThresholds:
        if not overrides:
            return cls()
        known = {f.name for f in fields(cls)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(
                f"Unknown phenology thresholds: {sorted(unknown)}"
            )
        return cls(**dict(overrides))


DEFAULT_THRESHOLDS = PhenologyThresholds()


def moving_average(values: Sequence[float], window: int = 3) -> list[float]:
    """Centered moving average; windows shrink at the edges."""

    half = window // 2
    smoothed: list[float] = []
    for idx in range(len(values)):
        chunk = values[max(0, idx - half) : idx + half + 1]
        smoothed.append(sum(chunk) / len(chunk))
    return smoothed


def recent_slope(smoothed: Sequence[float], samples: int = 4) -> float:
    """Mean first difference over the last `samples` values."""

    tail = list(smoothed[-samples:])
    diffs = [b - a for a, b in zip(tail, tail[1:], strict=False)]
    if not diffs:
        return 0.0
    return sum(diffs) / len(diffs)


def seasonal_peak(smoothed: Sequence[float], window_samples: int) -> float:
    windowed = max(smoothed[-window_samples:])
    if windowed <= 0:
        return max(smoothed)
    return windowed


def classify_value(
    value: float,
    slope: float,
    peak: float,
    thresholds: PhenologyThresholds = DEFAULT_THRESHOLDS,
) -> StageStatus:
    near_peak = value >= thresholds.peak_ratio * peak
    if abs(slope) < thresholds.flat_slope and near_peak:
        return "Flowering"
    if slope > thresholds.rising_slope:
        return "PreFlowering"
    if not near_peak and slope <= 0:
        return "PostFlowering"
    return "StableVegetation"


def confidence_score(
    point_count: int,
    slope: float,
    last_value: float,
    peak: float,
    thresholds: PhenologyThresholds = DEFAULT_THRESHOLDS,
) -> float:
    density = 0.3 * (point_count / thresholds.full_point_count)
    trend = 0.4 * min(1.0, abs(slope) / thresholds.full_slope)
    proximity = 0.3 * min(1.0, last_value / peak) if peak > 0 else 0.0
    score = max(thresholds.confidence_floor, density + trend + proximity)
    return min(1.0, score)


def classify(
    series: Sequence[SeriesPoint],
    crop: str | None = None,
    forecast_horizon_days: float = 16,
    *,
    thresholds: PhenologyThresholds = DEFAULT_THRESHOLDS,
) -> AnalysisResult:
    """Estimate the current stage and a short-horizon forecast.

    Series with fewer than `min_points` observations always report
    InsufficientData with the floor confidence.
    """

    count = len(series)
    if count < thresholds.min_points:
        insufficient = StageEstimate(
            status="InsufficientData",
            hint=hint_for(crop, "InsufficientData"),
        )
        return AnalysisResult(
            now=insufficient,
            next=insufficient,
            meta=AnalysisMeta(
                point_count=count,
                recent_slope=None,
                seasonal_peak=None,
                last_value=None,
                predicted_next_value=None,
                confidence=thresholds.confidence_floor,
            ),
        )

    ordered = sorted(series, key=lambda p: (p.date, p.ndvi))
    smoothed = moving_average(
        [p.ndvi for p in ordered], thresholds.smoothing_window
    )
    slope = recent_slope(smoothed, thresholds.slope_samples)
    peak = seasonal_peak(smoothed, thresholds.peak_window_samples)
    last = smoothed[-1]

    now_status = classify_value(last, slope, peak, thresholds)

    steps = forecast_horizon_days / thresholds.cadence_days
    predicted = last + slope * steps
    next_status = classify_value(
        predicted, slope, max(peak, predicted), thresholds
    )

    return AnalysisResult(
        now=StageEstimate(status=now_status, hint=hint_for(crop, now_status)),
        next=StageEstimate(
            status=next_status, hint=hint_for(crop, next_status)
        ),
        meta=AnalysisMeta(
            point_count=count,
            recent_slope=slope,
            seasonal_peak=peak,
            last_value=last,
            predicted_next_value=predicted,
            confidence=confidence_score(
                count, slope, last, peak, thresholds
            ),
        ),
    )
