from __future__ import annotations

from django.urls import path

from .views import ClassifySeriesView, PointPhenologyView

urlpatterns = [
    path(
        "phenology/classify/",
        ClassifySeriesView.as_view(),
        name="phenology-classify",
    ),
    path(
        "phenology/point/",
        PointPhenologyView.as_view(),
        name="phenology-point",
    ),
]
