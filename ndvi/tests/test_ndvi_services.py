from __future__ import annotations

# ruff: noqa: S101
import random
from datetime import date

import pytest
from rest_framework.exceptions import Throttled

from ndvi.engines.base import Coordinate, RealSeries, SyntheticSeries
from ndvi.gate import ConcurrencyGate
from ndvi.services import (
    PointSeriesRequest,
    SeriesServiceError,
    acquire_point_series,
    health_status,
)
from ndvi.synthetic import build_synthetic_series

from .fakes import FakeAppeears, build_client, build_session


class StubRandom(random.Random):
    def random(self) -> float:
        return 0.5


def _request(
    start: date = date(2024, 1, 1), end: date = date(2024, 6, 29)
) -> PointSeriesRequest:
    return PointSeriesRequest(
        coordinate=Coordinate(lat=28.19, lon=-105.47),
        start=start,
        end=end,
        product="MYD13Q1.061",
    )


def test_synthetic_series_shape() -> None:
    points = build_synthetic_series(date(2024, 1, 1), date(2024, 6, 29))

    assert len(points) == 23
    assert points[0].date == date(2024, 1, 1)
    assert points[-1].date == date(2024, 6, 25)
    assert all(0.0 <= point.ndvi <= 0.9 for point in points)
    assert all(round(point.ndvi, 3) == point.ndvi for point in points)


def test_synthetic_series_without_noise_is_deterministic() -> None:
    first = build_synthetic_series(
        date(2024, 1, 1), date(2024, 6, 29), rng=StubRandom()
    )
    second = build_synthetic_series(
        date(2024, 1, 1), date(2024, 6, 29), rng=StubRandom()
    )

    assert first == second
    assert first[0].ndvi == 0.491


def test_synthetic_series_single_day_range() -> None:
    points = build_synthetic_series(date(2024, 5, 1), date(2024, 5, 1))

    assert [point.date for point in points] == [date(2024, 5, 1)]


def test_real_series_passthrough() -> None:
    fake = FakeAppeears()

    outcome = acquire_point_series(
        _request(), client=build_client(fake), gate=ConcurrencyGate(1)
    )

    assert isinstance(outcome, RealSeries)
    assert outcome.mode == "appeears"
    assert len(outcome.points) == 3


def test_demo_series_without_credentials() -> None:
    fake = FakeAppeears()
    client = build_client(
        fake, session=build_session(fake, username="", password="")
    )

    outcome = acquire_point_series(
        _request(), client=client, gate=ConcurrencyGate(1), rng=StubRandom()
    )

    assert isinstance(outcome, SyntheticSeries)
    assert outcome.mode == "demo"
    assert outcome.warning is None
    assert len(outcome.points) == 23
    assert fake.submitted is False


def test_fallback_demo_on_upstream_rejection() -> None:
    fake = FakeAppeears(
        submit_status=401, submit_body={"message": "Token expired"}
    )

    outcome = acquire_point_series(
        _request(), client=build_client(fake), gate=ConcurrencyGate(1)
    )

    assert isinstance(outcome, SyntheticSeries)
    assert outcome.mode == "fallback_demo"
    assert outcome.warning == "AppEEARS 401: Token expired"
    assert outcome.upstream_detail == {"message": "Token expired"}


def test_fallback_warning_uses_hint_without_upstream_message() -> None:
    fake = FakeAppeears(submit_status=400, submit_body={"detail": "x"})

    outcome = acquire_point_series(
        _request(), client=build_client(fake), gate=ConcurrencyGate(1)
    )

    assert isinstance(outcome, SyntheticSeries)
    assert outcome.warning == (
        "AppEEARS 400: check EULA acceptance, layer name and dates"
    )


def test_server_error_raises_service_error() -> None:
    fake = FakeAppeears(submit_status=500, submit_body={"message": "oops"})

    with pytest.raises(SeriesServiceError) as excinfo:
        acquire_point_series(
            _request(), client=build_client(fake), gate=ConcurrencyGate(1)
        )

    detail = excinfo.value.detail
    assert excinfo.value.status_code == 500
    assert detail["reason"] == "upstream_http_error"
    assert detail["upstream_status"] == 500
    assert detail["upstream_data"] == {"message": "oops"}


def test_task_failure_raises_service_error() -> None:
    fake = FakeAppeears(statuses=("failed",))

    with pytest.raises(SeriesServiceError) as excinfo:
        acquire_point_series(
            _request(), client=build_client(fake), gate=ConcurrencyGate(1)
        )

    assert excinfo.value.detail["reason"] == "task_failed"


def test_busy_gate_raises_throttled_without_upstream_calls() -> None:
    fake = FakeAppeears()
    gate = ConcurrencyGate(1)

    with gate.slot():
        with pytest.raises(Throttled):
            acquire_point_series(
                _request(), client=build_client(fake), gate=gate
            )

    assert fake.calls == []


def test_gate_is_released_after_failure() -> None:
    fake = FakeAppeears(submit_status=500)
    gate = ConcurrencyGate(1)

    with pytest.raises(SeriesServiceError):
        acquire_point_series(_request(), client=build_client(fake), gate=gate)

    assert gate.in_flight == 0


def test_health_status_reports_credential_state() -> None:
    fake = FakeAppeears()
    session = build_session(fake)

    before = health_status(session)
    session.get_valid_credential()
    after = health_status(session)

    assert before["ok"] is True
    assert before["service_name"] == "bloomcast"
    assert before["credentials_configured"] is True
    assert before["credential_cached"] is False
    assert after["credential_cached"] is True
    assert isinstance(before["time"], str)


def test_unauthorized_answer_forces_login_on_next_request() -> None:
    fake = FakeAppeears(
        submit_status=401, submit_body={"message": "Token expired"}
    )
    session = build_session(fake)
    client = build_client(fake, session=session)

    first = acquire_point_series(
        _request(), client=client, gate=ConcurrencyGate(1)
    )
    assert first.mode == "fallback_demo"
    assert session.credential_cached is False

    fake.submit_status = 202
    fake.submit_body = {"task_id": "task-123"}
    second = acquire_point_series(
        _request(), client=client, gate=ConcurrencyGate(1)
    )

    assert second.mode == "appeears"
    assert fake.count("POST", "/login") == 2
    assert session.credential_cached is True


def test_forbidden_answer_keeps_cached_credential() -> None:
    fake = FakeAppeears(
        submit_status=403, submit_body={"message": "EULA not accepted"}
    )
    session = build_session(fake)

    outcome = acquire_point_series(
        _request(),
        client=build_client(fake, session=session),
        gate=ConcurrencyGate(1),
    )

    assert outcome.mode == "fallback_demo"
    assert session.credential_cached is True
    assert fake.count("POST", "/login") == 1
