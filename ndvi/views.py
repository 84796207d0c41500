"""NDVI point-series API endpoints.

Authentication: none (public, consumed by the map front end).
All successful responses use `config.api.envelope.success_response`
with the standard envelope:

    {"status": 0, "message": "<str>", "data": <object|null>, "errors": null}
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiTypes,
    extend_schema,
    inline_serializer,
)
from rest_framework import serializers
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from config.api.envelope import (
    error_envelope_serializer,
    success_envelope_serializer,
    success_response,
)

from .serializers import (
    PointSeriesRequestSerializer,
    PointSeriesSerializer,
    serialize_outcome,
)
from .services import acquire_point_series, health_status

logger = logging.getLogger(__name__)

ndvi_error_response = error_envelope_serializer("NdviErrorResponse")

health_success_response = success_envelope_serializer(
    "HealthSuccess",
    data=inline_serializer(
        name="HealthData",
        fields={
            "ok": serializers.BooleanField(),
            "service_name": serializers.CharField(),
            "time": serializers.DateTimeField(),
            "credentials_configured": serializers.BooleanField(),
            "credential_cached": serializers.BooleanField(),
        },
    ),
)

point_series_success_response = success_envelope_serializer(
    "NdviPointSeriesSuccess", data=PointSeriesSerializer()
)

point_series_query_params = [
    OpenApiParameter(
        name="lat",
        type=OpenApiTypes.FLOAT,
        location=OpenApiParameter.QUERY,
        required=True,
    ),
    OpenApiParameter(
        name="lon",
        type=OpenApiTypes.FLOAT,
        location=OpenApiParameter.QUERY,
        required=True,
    ),
    OpenApiParameter(
        name="start",
        type=OpenApiTypes.DATE,
        location=OpenApiParameter.QUERY,
        required=True,
    ),
    OpenApiParameter(
        name="end",
        type=OpenApiTypes.DATE,
        location=OpenApiParameter.QUERY,
        required=True,
    ),
    OpenApiParameter(
        name="product",
        type=OpenApiTypes.STR,
        location=OpenApiParameter.QUERY,
        required=False,
        description="AppEEARS product id (default MYD13Q1.061)",
    ),
]


class HealthView(APIView):
    """Liveness plus AppEEARS credential state."""

    permission_classes = [AllowAny]

    @extend_schema(responses={200: health_success_response})
    def get(self, request: Request) -> Response:
        return success_response(health_status(), message="OK")


class PointSeriesView(APIView):
    """Serve an NDVI time series for a single coordinate.

    Falls back to a labelled synthetic series when AppEEARS credentials are
    missing or upstream rejects the request.
    """

    permission_classes = [AllowAny]

    @extend_schema(
        parameters=point_series_query_params,
        responses={
            200: point_series_success_response,
            400: ndvi_error_response,
            429: ndvi_error_response,
            500: ndvi_error_response,
        },
    )
    def get(self, request: Request) -> Response:
        """Return NDVI points and provenance metadata.

        Query params: lat, lon, start, end, optional product.
        Success: envelope with `points` and `meta.mode` (appeears, demo or
        fallback_demo); fallback responses also carry `warning` and
        `error_detail`.
        Blocking: waits for the upstream task (bounded poll).
        """

        serializer = PointSeriesRequestSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        series_request = serializer.to_request()

        outcome = acquire_point_series(series_request)
        payload = serialize_outcome(series_request, outcome)
        message = "NDVI time series"
        if outcome.mode != "appeears":
            message = f"NDVI time series ({outcome.mode})"
        logger.info(
            "ndvi.series.served mode=%s points=%s",
            outcome.mode,
            len(outcome.points),
        )
        return success_response(payload, message=message)
