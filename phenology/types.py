from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

StageStatus = Literal[
    "InsufficientData",
    "PreFlowering",
    "Flowering",
    "PostFlowering",
    "StableVegetation",
]

STAGE_STATUSES: tuple[StageStatus, ...] = (
    "InsufficientData",
    "PreFlowering",
    "Flowering",
    "PostFlowering",
    "StableVegetation",
)


@dataclass(frozen=True)
class StageEstimate:
    status: StageStatus
    hint: str


@dataclass(frozen=True)
class AnalysisMeta:
    point_count: int
    recent_slope: float | None
    seasonal_peak: float | None
    last_value: float | None
    predicted_next_value: float | None
    confidence: float


@dataclass(frozen=True)
class AnalysisResult:
    now: StageEstimate
    next: StageEstimate
    meta: AnalysisMeta


@dataclass(frozen=True)
class VigorLevel:
    level: Literal["high", "medium", "low"]
    description: str
