"""Project-level non-DRF views.

The root landing endpoint lists the service name, the main API routes and
the interactive documentation links.
"""

from __future__ import annotations

from django.conf import settings
from django.http import HttpRequest, JsonResponse


def home(request: HttpRequest) -> JsonResponse:
    """Return basic service metadata and documentation links."""
    return JsonResponse(
        {
            "ok": True,
            "service": getattr(settings, "SERVICE_NAME", "bloomcast"),
            "health": "/api/v1/health/",
            "series": "/api/v1/series/point/",
            "phenology": "/api/v1/phenology/point/",
            "docs": "/api/docs/",
            "redoc": "/api/redoc/",
        }
    )
