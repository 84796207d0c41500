from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import Any

from django.conf import settings
from rest_framework.exceptions import APIException, Throttled

from .engines.appeears import (
    DEFAULT_PRODUCT,
    AppeearsClient,
    AppeearsError,
    AppeearsSession,
    CredentialUnavailable,
    get_session,
)
from .engines.base import Coordinate, SeriesOutcome, SyntheticSeries
from .gate import ConcurrencyGate, GateBusy, series_gate
from .metrics import ndvi_series_responses_total
from .synthetic import build_synthetic_series

logger = logging.getLogger(__name__)

SERVICE_NAME = str(getattr(settings, "SERVICE_NAME", "bloomcast"))
REJECTION_HINT = "check EULA acceptance, layer name and dates"


class SeriesServiceError(APIException):
    """Upstream infrastructure failure surfaced to the caller as a 500."""

    status_code = 500
    default_detail = "NDVI service error"
    default_code = "ndvi_service_error"

    def __init__(self, error: AppeearsError) -> None:
        super().__init__()
        # Keep upstream values JSON-typed instead of DRF's string coercion.
        self.detail: Any = {
            "detail": str(self.default_detail),
            "reason": error.reason,
            "error": str(error),
            "upstream_status": error.status_code,
            "upstream_data": error.data,
        }


@dataclass(frozen=True)
class PointSeriesRequest:
    coordinate: Coordinate
    start: date
    end: date
    product: str = DEFAULT_PRODUCT


_client: AppeearsClient | None = None


def get_client() -> AppeearsClient:
    global _client
    if _client is None:
        _client = AppeearsClient(session=get_session())
    return _client


def rejection_warning(error: AppeearsError) -> str:
    message = None
    if isinstance(error.data, dict):
        message = error.data.get("message")
    return f"AppEEARS {error.status_code}: {message or REJECTION_HINT}"


def acquire_point_series(
    request: PointSeriesRequest,
    *,
    client: AppeearsClient | None = None,
    gate: ConcurrencyGate | None = None,
    rng: random.Random | None = None,
) -> SeriesOutcome:
    """Return a real or clearly labelled synthetic series for a point.

    Missing credentials give a `demo` series. Authorization and
    bad-request answers from upstream give a `fallback_demo` series with a
    warning. A busy gate raises `Throttled`; any other upstream failure
    raises `SeriesServiceError`.
    """

    engine = client or get_client()
    active_gate = gate or series_gate

    def synthetic(**kwargs: Any) -> SyntheticSeries:
        points = build_synthetic_series(request.start, request.end, rng=rng)
        return SyntheticSeries(points=points, **kwargs)

    outcome: SeriesOutcome
    try:
        with active_gate.slot():
            outcome = engine.fetch_series(
                request.coordinate,
                request.start,
                request.end,
                request.product,
            )
    except GateBusy as exc:
        raise Throttled(detail=str(exc)) from exc
    except CredentialUnavailable:
        logger.warning("ndvi.series.demo reason=no_credential")
        outcome = synthetic(reason="no_credential")
    except AppeearsError as exc:
        if not exc.is_rejection:
            logger.exception(
                "ndvi.series.failed reason=%s status=%s",
                exc.reason,
                exc.status_code,
            )
            raise SeriesServiceError(exc) from exc
        logger.warning(
            "ndvi.series.fallback status=%s data=%s",
            exc.status_code,
            exc.data,
        )
        outcome = synthetic(
            reason="upstream_rejected",
            warning=rejection_warning(exc),
            upstream_detail=exc.data,
        )

    ndvi_series_responses_total.labels(mode=outcome.mode).inc()
    return outcome


def health_status(session: AppeearsSession | None = None) -> dict[str, Any]:
    active = session or get_session()
    return {
        "ok": True,
        "service_name": SERVICE_NAME,
        "time": datetime.now(UTC).isoformat(),
        "credentials_configured": active.credentials_configured,
        "credential_cached": active.credential_cached,
    }
