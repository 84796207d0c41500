from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .envelope import JSONValue, envelope, to_json_value

if TYPE_CHECKING:
    from rest_framework.response import Response

logger = logging.getLogger(__name__)


def custom_exception_handler(
    exc: Exception,
    context: dict[str, Any],
) -> Response:
    """Wrap every DRF error in the project envelope.

    Throttled responses (429) keep the retry hint; exceptions DRF does not
    know about become a logged 500.
    """

    # Lazy imports: safe even if settings aren't configured at import time.
    from rest_framework import status
    from rest_framework.exceptions import Throttled
    from rest_framework.response import Response
    from rest_framework.views import exception_handler as drf_exception_handler

    response = drf_exception_handler(exc, context)

    if response is None:
        view = context.get("view")
        logger.error(
            "api.unhandled view=%s err=%s",
            view.__class__.__name__ if view is not None else None,
            exc,
            exc_info=exc,
        )
        return Response(
            envelope(ok=False, message="Internal server error"),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    detail = to_json_value(response.data)

    if isinstance(exc, Throttled):
        errors: dict[str, JSONValue]
        if isinstance(detail, dict):
            errors = {**detail}
        else:
            errors = {"detail": detail}
        errors["retryable"] = True
        wait = getattr(exc, "wait", None)
        if wait is not None:
            errors["wait"] = wait
        response.data = envelope(
            ok=False, message="Too Many Requests", errors=errors
        )
        return response

    message = "Request failed"
    if isinstance(detail, dict):
        maybe = detail.get("detail")
        if isinstance(maybe, str):
            message = maybe

    response.data = envelope(ok=False, message=message, errors=detail)
    return response
