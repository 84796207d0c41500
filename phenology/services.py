from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

from django.conf import settings

from ndvi.engines.base import SeriesOutcome, SeriesPoint
from ndvi.services import PointSeriesRequest, acquire_point_series

from .bloom_calendar import estimate_bloom_window
from .classifier import PhenologyThresholds, classify
from .metrics import phenology_classifications_total, phenology_confidence
from .types import AnalysisResult, StageEstimate, VigorLevel
from .vigor import interpret_ndvi

logger = logging.getLogger(__name__)

DEFAULT_HORIZON_DAYS = int(getattr(settings, "PHENOLOGY_HORIZON_DAYS", 16))
THRESHOLDS = PhenologyThresholds.from_mapping(
    getattr(settings, "PHENOLOGY_THRESHOLDS", None)
)


@dataclass(frozen=True)
class SeriesAnalysis:
    result: AnalysisResult
    vigor: VigorLevel | None


@dataclass(frozen=True)
class PointAnalysis:
    series: SeriesOutcome
    analysis: SeriesAnalysis
    bloom_window: StageEstimate | None


def analyze_series(
    points: Sequence[SeriesPoint],
    crop: str | None,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
    *,
    thresholds: PhenologyThresholds = THRESHOLDS,
) -> SeriesAnalysis:
    result = classify(points, crop, horizon_days, thresholds=thresholds)
    phenology_classifications_total.labels(
        now=result.now.status, next=result.next.status
    ).inc()
    phenology_confidence.observe(result.meta.confidence)
    vigor = None
    if points:
        latest = max(points, key=lambda p: (p.date, p.ndvi))
        vigor = interpret_ndvi(latest.ndvi)
    logger.debug(
        "phenology.classified crop=%s points=%s now=%s next=%s",
        crop,
        len(points),
        result.now.status,
        result.next.status,
    )
    return SeriesAnalysis(result=result, vigor=vigor)


def analyze_point(
    request: PointSeriesRequest,
    crop: str | None,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
    *,
    today: date | None = None,
) -> PointAnalysis:
    """Acquire the point series, then classify it."""

    outcome = acquire_point_series(request)
    analysis = analyze_series(outcome.points, crop, horizon_days)
    bloom_window = (
        estimate_bloom_window(today or date.today(), crop) if crop else None
    )
    return PointAnalysis(
        series=outcome, analysis=analysis, bloom_window=bloom_window
    )
