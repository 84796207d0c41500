from __future__ import annotations

from django.apps import AppConfig


class PhenologyConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "phenology"
    verbose_name = "Phenology"
