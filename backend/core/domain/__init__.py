"""
Domain Models

Pure data structures representing basketball shot analysis concepts.
No external dependencies - just Python dataclasses and enums.
"""

from .pose import Landmark, FrameSample, BodyPart, Handedness
from .analysis import (
    AnalysisResult,
    CoachFinding,
    CoachTip,
    Detection,
    DetectionStatus,
    GateResult,
    InvalidReason,
    INVALID_MESSAGES,
    ShotMetrics,
)

__all__ = [
    "Landmark",
    "FrameSample",
    "BodyPart",
    "Handedness",
    "AnalysisResult",
    "CoachFinding",
    "CoachTip",
    "Detection",
    "DetectionStatus",
    "GateResult",
    "InvalidReason",
    "INVALID_MESSAGES",
    "ShotMetrics",
]
