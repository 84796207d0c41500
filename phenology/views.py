"""Phenology API endpoints.

Authentication: none. Responses use the standard success envelope.
"""

from __future__ import annotations

from typing import cast

from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiTypes,
    extend_schema,
)
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from config.api.envelope import (
    error_envelope_serializer,
    success_envelope_serializer,
    success_response,
)
from ndvi.engines.base import SeriesPoint
from ndvi.serializers import serialize_outcome
from ndvi.views import point_series_query_params

from .serializers import (
    AnalysisSerializer,
    ClassifyRequestSerializer,
    PointAnalysisRequestSerializer,
    PointAnalysisSerializer,
    serialize_analysis,
    serialize_stage,
)
from .services import analyze_point, analyze_series

phenology_error_response = error_envelope_serializer(
    "PhenologyErrorResponse"
)
classify_success_response = success_envelope_serializer(
    "PhenologyClassifySuccess", data=AnalysisSerializer()
)
point_analysis_success_response = success_envelope_serializer(
    "PhenologyPointSuccess", data=PointAnalysisSerializer()
)


class ClassifySeriesView(APIView):
    """Classify a caller-supplied NDVI series."""

    permission_classes = [AllowAny]

    @extend_schema(
        request=ClassifyRequestSerializer,
        responses={
            200: classify_success_response,
            400: phenology_error_response,
        },
    )
    def post(self, request: Request) -> Response:
        serializer = ClassifyRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        analysis = analyze_series(
            cast(list[SeriesPoint], data["points"]),
            data["crop"],
            data["horizon_days"],
        )
        return success_response(
            serialize_analysis(analysis), message="Phenology estimate"
        )


class PointPhenologyView(APIView):
    """Fetch the NDVI series for a point and classify it in one call."""

    permission_classes = [AllowAny]

    @extend_schema(
        parameters=[
            *point_series_query_params,
            OpenApiParameter(
                name="crop",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=False,
                description="pecan, apple, cotton, maize or alfalfa",
            ),
            OpenApiParameter(
                name="horizon_days",
                type=OpenApiTypes.INT,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Forecast horizon in days (default 16)",
            ),
        ],
        responses={
            200: point_analysis_success_response,
            400: phenology_error_response,
            429: phenology_error_response,
            500: phenology_error_response,
        },
    )
    def get(self, request: Request) -> Response:
        serializer = PointAnalysisRequestSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        series_request = serializer.to_request()
        data = serializer.validated_data

        result = analyze_point(
            series_request, data["crop"], data["horizon_days"]
        )
        payload = {
            "series": serialize_outcome(series_request, result.series),
            "analysis": serialize_analysis(result.analysis),
            "bloom_window": serialize_stage(result.bloom_window),
        }
        return success_response(payload, message="Phenology estimate")
