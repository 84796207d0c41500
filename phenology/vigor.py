from __future__ import annotations

from typing import Final

from .types import VigorLevel

HIGH_VIGOR: Final[float] = 0.6
MEDIUM_VIGOR: Final[float] = 0.3


def interpret_ndvi(value: float) -> VigorLevel:
    """Map a single NDVI value to a plain-language vigor level."""

    if value >= HIGH_VIGOR:
        return VigorLevel(
            "high", "Plants at this point look healthy and vigorous."
        )
    if value >= MEDIUM_VIGOR:
        return VigorLevel(
            "medium", "Plant vigor is moderate; keep monitoring."
        )
    return VigorLevel(
        "low",
        "Plants show stress or there is little vegetation; needs attention.",
    )
