"""NASA AppEEARS point-extraction engine.

The remote service runs extractions asynchronously: log in, submit a task,
poll its status, list the result bundle and download the CSV file. Only the
CSV date and NDVI columns are kept.
"""

from __future__ import annotations

import csv
import io
import logging
import math
import time
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, date, datetime, timedelta
from typing import Any, Final

import httpx
from django.conf import settings

from ndvi.metrics import (
    ndvi_task_poll_attempts,
    ndvi_token_cache_hits_total,
    ndvi_token_refresh_total,
    ndvi_upstream_latency_seconds,
    ndvi_upstream_requests_total,
)

from .base import (
    Coordinate,
    Credential,
    ExtractionTask,
    RealSeries,
    SeriesPoint,
)
from .polling import TERMINAL_FAILED, PollPolicy

logger = logging.getLogger(__name__)

ENGINE_NAME: Final[str] = "appeears"

DEFAULT_BASE_URL: Final[str] = str(
    getattr(
        settings,
        "APPEEARS_BASE_URL",
        "https://appeears.earthdatacloud.nasa.gov/api",
    )
)
DEFAULT_PRODUCT: Final[str] = str(
    getattr(settings, "APPEEARS_DEFAULT_PRODUCT", "MYD13Q1.061")
)
TOKEN_MAX_AGE: Final[timedelta] = timedelta(
    hours=float(getattr(settings, "APPEEARS_TOKEN_MAX_AGE_HOURS", 11))
)
POLL_INTERVAL_SECONDS: Final[float] = float(
    getattr(settings, "APPEEARS_POLL_INTERVAL_SECONDS", 4)
)
POLL_MAX_ATTEMPTS: Final[int] = int(
    getattr(settings, "APPEEARS_POLL_MAX_ATTEMPTS", 60)
)

LOGIN_TIMEOUT: Final[float] = 30.0
SUBMIT_TIMEOUT: Final[float] = 60.0
STATUS_TIMEOUT: Final[float] = 30.0
BUNDLE_TIMEOUT: Final[float] = 30.0
DOWNLOAD_TIMEOUT: Final[float] = 120.0

# Layer names are fixed by the remote catalogue and differ per product.
DEFAULT_LAYER: Final[str] = "_250m_16_days_NDVI"
PRODUCT_LAYERS: Final[dict[str, str]] = {
    "MYD13Q1.061": DEFAULT_LAYER,
    "MOD13Q1.061": DEFAULT_LAYER,
}


class AppeearsError(Exception):
    """Base class for AppEEARS failures."""

    reason: str = "appeears_error"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        data: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.data = data

    @property
    def is_rejection(self) -> bool:
        """True for authorization or bad-request answers from upstream."""
        return self.status_code in (400, 401, 403)


class CredentialUnavailable(AppeearsError):
    reason = "no_credential"


class SubmissionFailed(AppeearsError):
    reason = "submission_failed"


class TaskFailed(AppeearsError):
    reason = "task_failed"


class TaskTimeout(AppeearsError):
    reason = "task_timeout"


class BundleMissing(AppeearsError):
    reason = "bundle_missing"


class UpstreamHTTPError(AppeearsError):
    reason = "upstream_http_error"


class UpstreamTransportError(AppeearsError):
    reason = "upstream_transport_error"


def layer_for_product(product: str) -> str:
    return PRODUCT_LAYERS.get(product, DEFAULT_LAYER)


def to_mdy(day: date) -> str:
    """Encode a date the way the task API expects (MM-DD-YYYY)."""
    return day.strftime("%m-%d-%Y")


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or None


def _find_column(header: list[str], *needles: str) -> int | None:
    for idx, name in enumerate(header):
        lowered = name.strip().lower()
        if any(needle in lowered for needle in needles):
            return idx
    return None


def parse_series_csv(text: str) -> list[SeriesPoint]:
    """Parse the bundle CSV into NDVI points.

    The first non-empty row is the header. The date column is the first
    header containing ``date`` or ``time``; the value column is the first
    containing ``ndvi``. Rows with a missing date, missing value, or a
    non-numeric value are skipped.
    """

    rows = [row for row in csv.reader(io.StringIO(text)) if row]
    if not rows:
        return []
    header = rows[0]
    date_idx = _find_column(header, "date", "time")
    value_idx = _find_column(header, "ndvi")
    if date_idx is None or value_idx is None:
        logger.warning("appeears.csv.columns_missing header=%s", header)
        return []

    points: list[SeriesPoint] = []
    for row in rows[1:]:
        if len(row) <= max(date_idx, value_idx):
            continue
        raw_date = row[date_idx].strip()
        raw_value = row[value_idx].strip()
        if not raw_date or not raw_value:
            continue
        try:
            value = float(raw_value)
            day = date.fromisoformat(raw_date[:10])
        except ValueError:
            continue
        if not math.isfinite(value):
            continue
        points.append(SeriesPoint(date=day, ndvi=value))
    return points


class AppeearsSession:
    """Owns the single cached bearer credential for AppEEARS.

    `get_valid_credential` logs in when nothing is cached or the cached
    token is older than `max_age`. A failed login returns None and leaves
    the cached credential as it was.
    """

    def __init__(
        self,
        *,
        username: str | None = None,
        password: str | None = None,
        base_url: str | None = None,
        max_age: timedelta = TOKEN_MAX_AGE,
        http: httpx.Client | None = None,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.username = (
            username
            if username is not None
            else str(getattr(settings, "APPEEARS_USER", "") or "")
        )
        self.password = (
            password
            if password is not None
            else str(getattr(settings, "APPEEARS_PASS", "") or "")
        )
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.max_age = max_age
        self._http = http or httpx.Client(timeout=LOGIN_TIMEOUT)
        self._now = now
        self._credential: Credential | None = None

    @property
    def credentials_configured(self) -> bool:
        return bool(self.username and self.password)

    @property
    def credential_cached(self) -> bool:
        return self._credential is not None

    def is_expired(self, credential: Credential) -> bool:
        return self._now() - credential.acquired_at > self.max_age

    def get_valid_credential(self) -> Credential | None:
        if not self.credentials_configured:
            logger.warning("appeears.login.skipped reason=not_configured")
            return None
        current = self._credential
        if current is not None and not self.is_expired(current):
            ndvi_token_cache_hits_total.labels(engine=ENGINE_NAME).inc()
            return current
        return self.refresh()

    def refresh(self) -> Credential | None:
        """Log in and replace the cached credential on success."""

        if not self.credentials_configured:
            return None
        try:
            credential = self._login()
        except (httpx.HTTPError, ValueError) as exc:
            status = (
                exc.response.status_code
                if isinstance(exc, httpx.HTTPStatusError)
                else None
            )
            logger.error(
                "appeears.login.failed status=%s err=%s", status, exc
            )
            ndvi_token_refresh_total.labels(
                engine=ENGINE_NAME, outcome="error"
            ).inc()
            return None
        self._credential = credential
        ndvi_token_refresh_total.labels(
            engine=ENGINE_NAME, outcome="success"
        ).inc()
        logger.info("appeears.login.ok")
        return credential

    def invalidate(self, credential: Credential) -> bool:
        """Drop `credential` if it is still the cached one.

        A newer credential cached by a concurrent login is left alone.
        """

        if self._credential is not credential:
            return False
        self._credential = None
        logger.warning("appeears.credential.invalidated")
        return True

    def _login(self) -> Credential:
        response = self._http.post(
            f"{self.base_url}/login",
            auth=(self.username, self.password),
            headers={"Accept": "application/json", "Content-Length": "0"},
            timeout=LOGIN_TIMEOUT,
        )
        response.raise_for_status()
        data = response.json()
        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            raise ValueError("AppEEARS login response missing token")
        return Credential(token=str(token), acquired_at=self._now())

    def __repr__(self) -> str:  # pragma: no cover - convenience only
        return (
            "AppeearsSession("
            f"base_url={self.base_url}, "
            f"configured={self.credentials_configured}, "
            f"cached={self.credential_cached}"
            ")"
        )


class AppeearsClient:
    """Runs one point extraction end to end and returns its series."""

    engine_name: Final[str] = ENGINE_NAME

    def __init__(
        self,
        *,
        session: AppeearsSession,
        base_url: str | None = None,
        http: httpx.Client | None = None,
        poll_policy: PollPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.session = session
        self.base_url = (base_url or session.base_url).rstrip("/")
        self._http = http or httpx.Client(timeout=SUBMIT_TIMEOUT)
        self.poll_policy = poll_policy or PollPolicy(
            interval_seconds=POLL_INTERVAL_SECONDS,
            max_attempts=POLL_MAX_ATTEMPTS,
        )
        self._sleep = sleep
        self._clock = clock

    def fetch_series(
        self,
        coordinate: Coordinate,
        start: date,
        end: date,
        product: str | None = None,
    ) -> RealSeries:
        credential = self.session.get_valid_credential()
        if credential is None:
            raise CredentialUnavailable("No AppEEARS credential available")

        product_id = product or DEFAULT_PRODUCT
        layer = layer_for_product(product_id)
        task = self.submit_task(
            credential,
            coordinate=coordinate,
            start=start,
            end=end,
            product=product_id,
            layer=layer,
        )
        task = self.wait_for_task(credential, task)
        file_id = self.find_csv_file(credential, task)
        text = self.download_file(credential, task, file_id)
        points = parse_series_csv(text)
        logger.info(
            "appeears.series.parsed task_id=%s points=%s",
            task.task_id,
            len(points),
        )
        return RealSeries(points=points, layer=layer)

    def build_task_payload(
        self,
        *,
        coordinate: Coordinate,
        start: date,
        end: date,
        product: str,
        layer: str,
    ) -> dict[str, Any]:
        return {
            "task_type": "point",
            "task_name": f"ndvi_timeseries_{int(self._clock() * 1000)}",
            "params": {
                "dates": [
                    {"startDate": to_mdy(start), "endDate": to_mdy(end)}
                ],
                "layers": [{"product": product, "layer": layer}],
                "coordinates": [
                    {
                        "latitude": coordinate.lat,
                        "longitude": coordinate.lon,
                    }
                ],
                "output": {"format": "csv"},
            },
        }

    def submit_task(
        self,
        credential: Credential,
        *,
        coordinate: Coordinate,
        start: date,
        end: date,
        product: str,
        layer: str,
    ) -> ExtractionTask:
        payload = self.build_task_payload(
            coordinate=coordinate,
            start=start,
            end=end,
            product=product,
            layer=layer,
        )
        logger.info(
            "appeears.task.submit product=%s layer=%s", product, layer
        )
        response = self._request(
            "POST",
            "/task",
            credential=credential,
            step="submit",
            json=payload,
            timeout=SUBMIT_TIMEOUT,
        )
        data = _response_body(response)
        task_id = data.get("task_id") if isinstance(data, dict) else None
        if not task_id:
            raise SubmissionFailed(
                "AppEEARS did not return a task_id",
                status_code=response.status_code,
                data=data,
            )
        logger.info("appeears.task.created task_id=%s", task_id)
        return ExtractionTask(
            task_id=str(task_id),
            start=start,
            end=end,
            coordinate=coordinate,
            product=product,
            layer=layer,
        )

    def wait_for_task(
        self, credential: Credential, task: ExtractionTask
    ) -> ExtractionTask:
        def fetch_status(attempt: int) -> str | None:
            response = self._request(
                "GET",
                f"/task/{task.task_id}",
                credential=credential,
                step="status",
                timeout=STATUS_TIMEOUT,
            )
            data = _response_body(response)
            status = data.get("status") if isinstance(data, dict) else None
            logger.debug(
                "appeears.task.status task_id=%s status=%s attempt=%s",
                task.task_id,
                status,
                attempt,
            )
            return str(status) if status else None

        outcome = self.poll_policy.run(fetch_status, sleep=self._sleep)
        ndvi_task_poll_attempts.labels(
            engine=self.engine_name, status=outcome.status
        ).observe(outcome.attempts)
        if outcome.status == TERMINAL_FAILED:
            logger.warning("appeears.task.failed task_id=%s", task.task_id)
            raise TaskFailed(f"AppEEARS task {task.task_id} failed")
        if outcome.timed_out:
            logger.warning(
                "appeears.task.timeout task_id=%s attempts=%s",
                task.task_id,
                outcome.attempts,
            )
            raise TaskTimeout(
                f"Timed out waiting for AppEEARS task {task.task_id}"
            )
        return replace(task, state="done")

    def find_csv_file(
        self, credential: Credential, task: ExtractionTask
    ) -> str:
        response = self._request(
            "GET",
            f"/bundle/{task.task_id}",
            credential=credential,
            step="bundle",
            timeout=BUNDLE_TIMEOUT,
        )
        data = _response_body(response)
        files = data.get("files") if isinstance(data, dict) else None
        files = files if isinstance(files, list) else []
        for entry in files:
            if not isinstance(entry, dict):
                continue
            name = str(entry.get("file_name") or "")
            if name.lower().endswith("csv") and entry.get("file_id"):
                logger.info(
                    "appeears.bundle.csv task_id=%s files=%s name=%s",
                    task.task_id,
                    len(files),
                    name,
                )
                return str(entry["file_id"])
        raise BundleMissing(
            f"No CSV file in AppEEARS bundle for task {task.task_id}",
            data=data,
        )

    def download_file(
        self, credential: Credential, task: ExtractionTask, file_id: str
    ) -> str:
        response = self._request(
            "GET",
            f"/bundle/{task.task_id}/{file_id}",
            credential=credential,
            step="download",
            timeout=DOWNLOAD_TIMEOUT,
        )
        return response.text

    def _request(
        self,
        method: str,
        path: str,
        *,
        credential: Credential,
        step: str,
        timeout: float,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        headers = {"Authorization": f"Bearer {credential.token}"}
        if json is not None:
            headers["Content-Type"] = "application/json"
            headers["Accept"] = "application/json"
        started = time.monotonic()
        try:
            response = self._http.request(
                method,
                f"{self.base_url}{path}",
                json=json,
                headers=headers,
                timeout=timeout,
            )
            ndvi_upstream_latency_seconds.labels(
                engine=self.engine_name, step=step
            ).observe(time.monotonic() - started)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            ndvi_upstream_requests_total.labels(
                engine=self.engine_name, step=step, outcome="error"
            ).inc()
            body = _response_body(exc.response)
            logger.error(
                "appeears.request.error step=%s status=%s body=%s",
                step,
                exc.response.status_code,
                body,
            )
            if exc.response.status_code == 401:
                self.session.invalidate(credential)
            raise UpstreamHTTPError(
                f"AppEEARS {step} returned {exc.response.status_code}",
                status_code=exc.response.status_code,
                data=body,
            ) from exc
        except httpx.RequestError as exc:
            ndvi_upstream_requests_total.labels(
                engine=self.engine_name, step=step, outcome="network"
            ).inc()
            logger.error(
                "appeears.request.network step=%s err=%s", step, exc
            )
            raise UpstreamTransportError(
                f"AppEEARS {step} request failed: {exc}"
            ) from exc
        ndvi_upstream_requests_total.labels(
            engine=self.engine_name, step=step, outcome="success"
        ).inc()
        return response


_session: AppeearsSession | None = None


def get_session() -> AppeearsSession:
    """Return the process-wide AppEEARS session, creating it on first use."""

    global _session
    if _session is None:
        _session = AppeearsSession()
    return _session


def reset_session(session: AppeearsSession | None = None) -> None:
    global _session
    _session = session
