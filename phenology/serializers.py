from __future__ import annotations

from typing import Any, cast

from rest_framework import serializers

from config.api.envelope import JSONValue
from ndvi.engines.base import SeriesPoint
from ndvi.serializers import (
    PointSeriesRequestSerializer,
    PointSeriesSerializer,
    SeriesPointSerializer,
)

from .services import DEFAULT_HORIZON_DAYS, SeriesAnalysis
from .types import STAGE_STATUSES, StageEstimate, VigorLevel

MAX_HORIZON_DAYS = 120
MAX_SERIES_POINTS = 1000


class ClassifyRequestSerializer(serializers.Serializer):
    points = SeriesPointSerializer(
        many=True, allow_empty=True, max_length=MAX_SERIES_POINTS
    )
    crop = serializers.CharField(
        required=False, allow_blank=True, max_length=32
    )
    horizon_days = serializers.IntegerField(
        required=False,
        min_value=1,
        max_value=MAX_HORIZON_DAYS,
        default=DEFAULT_HORIZON_DAYS,
    )

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        raw_points = cast(list[dict[str, Any]], attrs["points"])
        return {
            "points": [
                SeriesPoint(date=item["date"], ndvi=item["ndvi"])
                for item in raw_points
            ],
            "crop": str(attrs.get("crop") or "").strip().lower() or None,
            "horizon_days": attrs["horizon_days"],
        }


class PointAnalysisRequestSerializer(PointSeriesRequestSerializer):
    crop = serializers.CharField(
        required=False, allow_blank=True, max_length=32
    )
    horizon_days = serializers.IntegerField(
        required=False,
        min_value=1,
        max_value=MAX_HORIZON_DAYS,
        default=DEFAULT_HORIZON_DAYS,
    )

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        validated = super().validate(attrs)
        validated["crop"] = (
            str(attrs.get("crop") or "").strip().lower() or None
        )
        validated["horizon_days"] = attrs["horizon_days"]
        return validated


class StageEstimateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=list(STAGE_STATUSES))
    hint = serializers.CharField()


class AnalysisMetaSerializer(serializers.Serializer):
    point_count = serializers.IntegerField()
    recent_slope = serializers.FloatField(allow_null=True)
    seasonal_peak = serializers.FloatField(allow_null=True)
    last_value = serializers.FloatField(allow_null=True)
    predicted_next_value = serializers.FloatField(allow_null=True)
    confidence = serializers.FloatField()


class VigorSerializer(serializers.Serializer):
    level = serializers.ChoiceField(choices=["high", "medium", "low"])
    description = serializers.CharField()


class AnalysisSerializer(serializers.Serializer):
    now = StageEstimateSerializer()
    next = StageEstimateSerializer()
    meta = AnalysisMetaSerializer()
    vigor = VigorSerializer(allow_null=True)


class PointAnalysisSerializer(serializers.Serializer):
    series = PointSeriesSerializer()
    analysis = AnalysisSerializer()
    bloom_window = StageEstimateSerializer(allow_null=True)


def _round(value: float | None, digits: int = 4) -> float | None:
    return None if value is None else round(value, digits)


def serialize_stage(stage: StageEstimate | None) -> JSONValue:
    if stage is None:
        return None
    return {"status": stage.status, "hint": stage.hint}


def serialize_vigor(vigor: VigorLevel | None) -> JSONValue:
    if vigor is None:
        return None
    return {"level": vigor.level, "description": vigor.description}


def serialize_analysis(analysis: SeriesAnalysis) -> dict[str, JSONValue]:
    result = analysis.result
    meta = result.meta
    return {
        "now": serialize_stage(result.now),
        "next": serialize_stage(result.next),
        "meta": {
            "point_count": meta.point_count,
            "recent_slope": _round(meta.recent_slope),
            "seasonal_peak": _round(meta.seasonal_peak),
            "last_value": _round(meta.last_value),
            "predicted_next_value": _round(meta.predicted_next_value),
            "confidence": round(meta.confidence, 3),
        },
        "vigor": serialize_vigor(analysis.vigor),
    }
