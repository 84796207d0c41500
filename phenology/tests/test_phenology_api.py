from __future__ import annotations

# ruff: noqa: S101
from datetime import date, timedelta

import pytest
from rest_framework.exceptions import Throttled
from rest_framework.test import APIClient

from ndvi.engines.base import (
    Coordinate,
    RealSeries,
    SeriesPoint,
    SyntheticSeries,
)
from ndvi.services import PointSeriesRequest
from phenology.services import analyze_point, analyze_series

CLASSIFY_URL = "/api/v1/phenology/classify/"
POINT_URL = "/api/v1/phenology/point/"
RISING = [0.20, 0.25, 0.40, 0.55, 0.60, 0.61]


def _points(values: list[float]) -> list[SeriesPoint]:
    start = date(2024, 1, 1)
    return [
        SeriesPoint(date=start + timedelta(days=16 * i), ndvi=value)
        for i, value in enumerate(values)
    ]


def _payload_points(values: list[float]) -> list[dict[str, object]]:
    return [
        {"date": p.date.isoformat(), "ndvi": p.ndvi} for p in _points(values)
    ]


@pytest.fixture()
def api() -> APIClient:
    return APIClient()


def test_analyze_series_reports_latest_vigor() -> None:
    points = _points(RISING)
    points.reverse()

    analysis = analyze_series(points, "pecan")

    assert analysis.result.now.status == "PreFlowering"
    assert analysis.vigor is not None
    assert analysis.vigor.level == "high"


def test_analyze_series_without_points() -> None:
    analysis = analyze_series([], None)

    assert analysis.result.now.status == "InsufficientData"
    assert analysis.vigor is None


def test_analyze_point_adds_bloom_window(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    seen: list[PointSeriesRequest] = []

    def fake_acquire(request: PointSeriesRequest) -> RealSeries:
        seen.append(request)
        return RealSeries(points=_points(RISING), layer="_250m_16_days_NDVI")

    monkeypatch.setattr(
        "phenology.services.acquire_point_series", fake_acquire
    )
    request = PointSeriesRequest(
        coordinate=Coordinate(lat=28.19, lon=-105.47),
        start=date(2024, 1, 1),
        end=date(2024, 4, 1),
    )

    result = analyze_point(request, "pecan", today=date(2025, 3, 20))

    assert seen == [request]
    assert result.series.mode == "appeears"
    assert result.analysis.result.now.status == "PreFlowering"
    assert result.bloom_window is not None
    assert result.bloom_window.status == "Flowering"

    no_crop = analyze_point(request, None, today=date(2025, 3, 20))
    assert no_crop.bloom_window is None


def test_classify_endpoint(api: APIClient) -> None:
    resp = api.post(
        CLASSIFY_URL,
        {"points": _payload_points(RISING), "crop": "Cotton"},
        format="json",
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == 0
    data = body["data"]
    assert data["now"]["status"] == "PreFlowering"
    assert data["now"]["hint"] == (
        "Squaring stage; keep soil moisture even."
    )
    assert data["meta"]["point_count"] == 6
    assert data["meta"]["confidence"] == 0.775
    assert data["meta"]["last_value"] == 0.605
    assert data["vigor"]["level"] == "high"


def test_classify_endpoint_insufficient_data(api: APIClient) -> None:
    resp = api.post(
        CLASSIFY_URL, {"points": _payload_points([0.3, 0.4])}, format="json"
    )

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["now"]["status"] == "InsufficientData"
    assert data["meta"]["confidence"] == 0.2
    assert data["meta"]["recent_slope"] is None


@pytest.mark.parametrize(
    "body",
    [
        {},
        {"points": [{"date": "2024-01-01"}]},
        {"points": [{"date": "nope", "ndvi": 0.3}]},
        {"points": [], "horizon_days": 0},
        {"points": [], "horizon_days": 365},
    ],
)
def test_classify_endpoint_validation(
    api: APIClient, body: dict[str, object]
) -> None:
    resp = api.post(CLASSIFY_URL, body, format="json")

    assert resp.status_code == 400
    assert resp.json()["status"] == 1


def test_point_endpoint_combines_series_and_analysis(
    api: APIClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    def fake_acquire(request: PointSeriesRequest) -> SyntheticSeries:
        return SyntheticSeries(
            points=_points(RISING),
            reason="upstream_rejected",
            warning="AppEEARS 401: Token expired",
            upstream_detail={"message": "Token expired"},
        )

    monkeypatch.setattr(
        "phenology.services.acquire_point_series", fake_acquire
    )

    resp = api.get(
        POINT_URL,
        {
            "lat": "28.19",
            "lon": "-105.47",
            "start": "2024-01-01",
            "end": "2024-04-01",
            "crop": "alfalfa",
            "horizon_days": "32",
        },
    )

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["series"]["meta"]["mode"] == "fallback_demo"
    assert data["series"]["warning"] == "AppEEARS 401: Token expired"
    assert data["analysis"]["now"]["status"] == "PreFlowering"
    assert data["analysis"]["meta"]["predicted_next_value"] == round(
        0.605 + 2 * 0.205 / 3, 4
    )
    assert data["bloom_window"]["status"] in {
        "PreFlowering",
        "Flowering",
        "PostFlowering",
    }


def test_point_endpoint_propagates_throttling(
    api: APIClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    def busy(request: PointSeriesRequest) -> SyntheticSeries:
        raise Throttled(detail="Try again in a few seconds.")

    monkeypatch.setattr("phenology.services.acquire_point_series", busy)

    resp = api.get(
        POINT_URL,
        {
            "lat": "28.19",
            "lon": "-105.47",
            "start": "2024-01-01",
            "end": "2024-04-01",
        },
    )

    assert resp.status_code == 429
    assert resp.json()["errors"]["retryable"] is True


def test_point_endpoint_rejects_reversed_dates(api: APIClient) -> None:
    resp = api.get(
        POINT_URL,
        {
            "lat": "28.19",
            "lon": "-105.47",
            "start": "2024-05-01",
            "end": "2024-04-01",
        },
    )

    assert resp.status_code == 400


def test_analyze_series_vigor_ignores_input_order_on_shared_dates() -> None:
    day = date(2024, 6, 1)
    points = [
        *_points(RISING[:4]),
        SeriesPoint(date=day, ndvi=0.2),
        SeriesPoint(date=day, ndvi=0.7),
    ]

    forward = analyze_series(points, None)
    backward = analyze_series(list(reversed(points)), None)

    assert forward.vigor == backward.vigor
    assert forward.vigor is not None
    assert forward.vigor.level == "high"


def test_classify_endpoint_limits_series_length(api: APIClient) -> None:
    start = date(2000, 1, 1)
    points = [
        {"date": (start + timedelta(days=i)).isoformat(), "ndvi": 0.4}
        for i in range(1001)
    ]

    resp = api.post(CLASSIFY_URL, {"points": points}, format="json")

    assert resp.status_code == 400
    assert "points" in resp.json()["errors"]
