from __future__ import annotations

# ruff: noqa: S101
import pytest

from ndvi.gate import ConcurrencyGate, GateBusy


def test_gate_rejects_beyond_capacity() -> None:
    gate = ConcurrencyGate(max_in_flight=1)

    with gate.slot():
        assert gate.in_flight == 1
        with pytest.raises(GateBusy) as excinfo:
            with gate.slot():
                pass
        assert "Maximum of 1 concurrent NDVI requests" in str(excinfo.value)
        assert gate.in_flight == 1

    assert gate.in_flight == 0


def test_gate_allows_configured_parallelism() -> None:
    gate = ConcurrencyGate(max_in_flight=2)

    with gate.slot(), gate.slot():
        assert gate.in_flight == 2
        with pytest.raises(GateBusy):
            with gate.slot():
                pass


def test_gate_releases_slot_when_work_raises() -> None:
    gate = ConcurrencyGate(max_in_flight=1)

    with pytest.raises(RuntimeError):
        with gate.slot():
            raise RuntimeError("boom")

    assert gate.in_flight == 0
    with gate.slot():
        assert gate.in_flight == 1


def test_gate_requires_positive_capacity() -> None:
    with pytest.raises(ValueError):
        ConcurrencyGate(max_in_flight=0)
