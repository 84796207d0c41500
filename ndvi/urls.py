from __future__ import annotations

from django.urls import path

from .views import HealthView, PointSeriesView

urlpatterns = [
    path("health/", HealthView.as_view(), name="health"),
    path(
        "series/point/",
        PointSeriesView.as_view(),
        name="ndvi-point-series",
    ),
]
