from __future__ import annotations

import logging

from django.apps import AppConfig
from django.conf import settings

logger = logging.getLogger(__name__)


class NdviConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "ndvi"
    verbose_name = "NDVI"

    def ready(self) -> None:
        if not getattr(settings, "APPEEARS_LOGIN_ON_STARTUP", False):
            return
        from .engines.appeears import get_session

        session = get_session()
        if not session.credentials_configured:
            logger.warning("appeears.startup.no_credentials")
            return
        if session.refresh() is None:
            logger.error("appeears.startup.login_failed")
