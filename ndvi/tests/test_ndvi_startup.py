from __future__ import annotations

# ruff: noqa: S101
import pytest
from django.apps import apps
from django.test import override_settings

from .fakes import FakeAppeears, build_session


@override_settings(APPEEARS_LOGIN_ON_STARTUP=False)
def test_startup_login_skipped_when_disabled(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    fake = FakeAppeears()
    monkeypatch.setattr(
        "ndvi.engines.appeears.get_session", lambda: build_session(fake)
    )

    apps.get_app_config("ndvi").ready()

    assert fake.calls == []


@override_settings(APPEEARS_LOGIN_ON_STARTUP=True)
def test_startup_login_primes_credential(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    fake = FakeAppeears()
    session = build_session(fake)
    monkeypatch.setattr(
        "ndvi.engines.appeears.get_session", lambda: session
    )

    apps.get_app_config("ndvi").ready()

    assert session.credential_cached is True
    assert fake.count("POST", "/login") == 1


@override_settings(APPEEARS_LOGIN_ON_STARTUP=True)
def test_startup_login_tolerates_failure(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    fake = FakeAppeears(login_status=401)
    session = build_session(fake)
    monkeypatch.setattr(
        "ndvi.engines.appeears.get_session", lambda: session
    )

    apps.get_app_config("ndvi").ready()

    assert session.credential_cached is False
