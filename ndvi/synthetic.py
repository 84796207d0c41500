"""Deterministically shaped stand-in NDVI series."""

from __future__ import annotations

import math
import random
from datetime import date, timedelta
from typing import Final

from .engines.base import SeriesPoint

SAMPLE_STEP_DAYS: Final[int] = 8
NOISE_AMPLITUDE: Final[float] = 0.03
NDVI_FLOOR: Final[float] = 0.0
NDVI_CEILING: Final[float] = 0.9


def seasonal_curve(t: float) -> float:
    """Slow sinusoid plus a smaller second harmonic, `t` in radians."""
    return 0.3 + 0.25 * math.sin(t + 0.6) + 0.05 * math.cos(2 * t)


def build_synthetic_series(
    start: date,
    end: date,
    *,
    rng: random.Random | None = None,
) -> list[SeriesPoint]:
    """Sample the seasonal curve every 8 days across [start, end].

    One full cycle spans the requested range. Each sample gets a small
    symmetric perturbation and is clamped to [0, 0.9].
    """

    source = rng or random.Random()
    days = max(1, (end - start).days)
    points: list[SeriesPoint] = []
    for offset in range(0, days + 1, SAMPLE_STEP_DAYS):
        t = offset / days * 2 * math.pi
        noise = (source.random() - 0.5) * NOISE_AMPLITUDE
        value = min(NDVI_CEILING, max(NDVI_FLOOR, seasonal_curve(t) + noise))
        points.append(
            SeriesPoint(
                date=start + timedelta(days=offset),
                ndvi=round(value, 3),
            )
        )
    return points
