"""Advisory text per crop and phenological stage."""

from __future__ import annotations

from typing import Final

from .types import StageStatus

GENERIC_CROP: Final[str] = "generic"

ADVISORY_HINTS: Final[dict[str, dict[StageStatus, str]]] = {
    GENERIC_CROP: {
        "InsufficientData": "Not enough observations; widen the date range.",
        "PreFlowering": "Prepare hives and apply light irrigation.",
        "Flowering": "Maximise pollination and avoid crop stress.",
        "PostFlowering": "Watch for post-flowering pests.",
        "StableVegetation": "Vegetation is steady; keep routine monitoring.",
    },
    "pecan": {
        "InsufficientData": "Not enough observations for the orchard yet.",
        "PreFlowering": "Budbreak is near; check zinc sprays and irrigation.",
        "Flowering": "Catkins shedding; avoid water stress during pollen "
        "release.",
        "PostFlowering": "Nut set underway; scout for casebearer.",
        "StableVegetation": "Canopy is steady; keep the irrigation schedule.",
    },
    "apple": {
        "InsufficientData": "Not enough observations for the orchard yet.",
        "PreFlowering": "Place hives before king bloom opens.",
        "Flowering": "Protect pollinators; hold insecticide applications.",
        "PostFlowering": "Plan fruit thinning and watch for codling moth.",
        "StableVegetation": "Canopy is steady; keep routine scouting.",
    },
    "cotton": {
        "InsufficientData": "Not enough observations for the field yet.",
        "PreFlowering": "Squaring stage; keep soil moisture even.",
        "Flowering": "Peak bloom; avoid drought stress to retain bolls.",
        "PostFlowering": "Bolls filling; monitor for bollworm.",
        "StableVegetation": "Growth is steady; keep routine monitoring.",
    },
    "maize": {
        "InsufficientData": "Not enough observations for the field yet.",
        "PreFlowering": "Approaching tasselling; secure nitrogen and water.",
        "Flowering": "Silking; water stress now costs the most yield.",
        "PostFlowering": "Grain fill; watch for ear rots and pests.",
        "StableVegetation": "Growth is steady; keep routine monitoring.",
    },
    "alfalfa": {
        "InsufficientData": "Not enough observations for the stand yet.",
        "PreFlowering": "Bud stage; plan the next cut.",
        "Flowering": "Early bloom; cut now for the best quality.",
        "PostFlowering": "Regrowth after bloom; check for weevils.",
        "StableVegetation": "Stand is steady; keep routine monitoring.",
    },
}


def hint_for(crop: str | None, status: StageStatus) -> str:
    """Return the crop's advisory text, or the generic one."""

    table = ADVISORY_HINTS.get((crop or "").strip().lower())
    if table is None:
        table = ADVISORY_HINTS[GENERIC_CROP]
    return table[status]


def known_crops() -> list[str]:
    return sorted(crop for crop in ADVISORY_HINTS if crop != GENERIC_CROP)
