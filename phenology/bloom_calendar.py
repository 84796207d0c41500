"""Calendar bloom windows per crop (northern Mexico growing regions)."""

from __future__ import annotations

from datetime import date
from typing import Final

from .hints import hint_for
from .types import StageEstimate

# Month-day bounds, inclusive.
BLOOM_WINDOWS: Final[dict[str, tuple[str, str]]] = {
    "pecan": ("03-05", "04-15"),
    "apple": ("03-15", "04-20"),
    "cotton": ("05-15", "06-30"),
    "maize": ("06-10", "07-10"),
    "alfalfa": ("03-01", "04-10"),
}


def _on(year: int, month_day: str) -> date:
    month, day = (int(part) for part in month_day.split("-"))
    return date(year, month, day)


def estimate_bloom_window(day: date, crop: str) -> StageEstimate | None:
    """Stage implied by the calendar alone; None for unknown crops."""

    key = crop.strip().lower()
    window = BLOOM_WINDOWS.get(key)
    if window is None:
        return None
    start = _on(day.year, window[0])
    end = _on(day.year, window[1])
    if day < start:
        return StageEstimate("PreFlowering", hint_for(key, "PreFlowering"))
    if day <= end:
        return StageEstimate("Flowering", hint_for(key, "Flowering"))
    return StageEstimate("PostFlowering", hint_for(key, "PostFlowering"))
