from __future__ import annotations

import math
from datetime import date
from typing import Any, cast

from django.conf import settings
from rest_framework import serializers

from config.api.envelope import JSONValue

from .engines.appeears import DEFAULT_PRODUCT
from .engines.base import (
    Coordinate,
    RealSeries,
    SeriesOutcome,
    SeriesPoint,
    SyntheticSeries,
)
from .services import PointSeriesRequest

MAX_DATERANGE_DAYS = int(getattr(settings, "NDVI_MAX_DATERANGE_DAYS", 370))


class SeriesPointSerializer(serializers.Serializer):
    date = serializers.DateField()
    ndvi = serializers.FloatField()

    def validate_ndvi(self, value: float) -> float:
        if not math.isfinite(value):
            raise serializers.ValidationError("ndvi must be finite.")
        return value


class PointSeriesRequestSerializer(serializers.Serializer):
    lat = serializers.FloatField(min_value=-90, max_value=90)
    lon = serializers.FloatField(min_value=-180, max_value=180)
    start = serializers.DateField()
    end = serializers.DateField()
    product = serializers.CharField(
        required=False, allow_blank=True, max_length=64
    )

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        lat = cast(float, attrs["lat"])
        lon = cast(float, attrs["lon"])
        if not (math.isfinite(lat) and math.isfinite(lon)):
            raise serializers.ValidationError("lat/lon must be finite.")
        start = cast(date, attrs["start"])
        end = cast(date, attrs["end"])
        if start > end:
            raise serializers.ValidationError(
                "start must be on or before end."
            )
        if (end - start).days > MAX_DATERANGE_DAYS:
            raise serializers.ValidationError(
                f"Date range must be at most {MAX_DATERANGE_DAYS} days."
            )
        product = str(attrs.get("product") or "").strip()
        return {
            "coordinate": Coordinate(lat=lat, lon=lon),
            "start": start,
            "end": end,
            "product": product or DEFAULT_PRODUCT,
        }

    def to_request(self) -> PointSeriesRequest:
        data = self.validated_data
        return PointSeriesRequest(
            coordinate=data["coordinate"],
            start=data["start"],
            end=data["end"],
            product=data["product"],
        )


class SeriesMetaSerializer(serializers.Serializer):
    mode = serializers.ChoiceField(
        choices=["appeears", "demo", "fallback_demo"]
    )
    lat = serializers.FloatField()
    lon = serializers.FloatField()
    start = serializers.DateField()
    end = serializers.DateField()
    product = serializers.CharField()
    layer = serializers.CharField(required=False)


class PointSeriesSerializer(serializers.Serializer):
    points = SeriesPointSerializer(many=True)
    meta = SeriesMetaSerializer()
    warning = serializers.CharField(required=False)
    error_detail = serializers.JSONField(required=False, allow_null=True)


def serialize_points(points: list[SeriesPoint]) -> list[JSONValue]:
    return [
        {"date": point.date.isoformat(), "ndvi": point.ndvi}
        for point in points
    ]


def serialize_outcome(
    request: PointSeriesRequest, outcome: SeriesOutcome
) -> dict[str, JSONValue]:
    meta: dict[str, JSONValue] = {
        "mode": outcome.mode,
        "lat": request.coordinate.lat,
        "lon": request.coordinate.lon,
        "start": request.start.isoformat(),
        "end": request.end.isoformat(),
        "product": request.product,
    }
    if isinstance(outcome, RealSeries):
        meta["layer"] = outcome.layer

    payload: dict[str, JSONValue] = {
        "points": serialize_points(outcome.points),
        "meta": meta,
    }
    if isinstance(outcome, SyntheticSeries) and outcome.warning:
        payload["warning"] = outcome.warning
        payload["error_detail"] = outcome.upstream_detail
    return payload
