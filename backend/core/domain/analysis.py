"""
Shot Analysis Domain Models

Data structures for representing basketball shot analysis results,
including metrics, gate outcomes, coaching findings and the final result.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Optional, Sequence

from .pose import Landmark


class InvalidReason(Enum):
    """
    Why an analysis run ended without a score.

    These are expected outcomes, returned as data rather than raised.
    """
    VIDEO_TOO_SHORT = "video_too_short"
    DETECTION_FAILED = "detection_failed"
    INSUFFICIENT_POSE_COVERAGE = "insufficient_pose_coverage"
    NO_RELEASE_POINT = "no_release_point"
    SHOT_GATE_FAILED = "shot_gate_failed"
    CANCELLED = "cancelled"


INVALID_MESSAGES: dict[InvalidReason, str] = {
    InvalidReason.VIDEO_TOO_SHORT:
        "Video too short. Please record at least 1 second.",
    InvalidReason.DETECTION_FAILED:
        "Pose detection failed repeatedly. Please try again with a different video.",
    InvalidReason.INSUFFICIENT_POSE_COVERAGE:
        "Unable to detect your body in the video. "
        "Please ensure you are fully visible in the frame.",
    InvalidReason.NO_RELEASE_POINT:
        "Could not identify a clear release point. "
        "Try recording with a better angle showing your shooting arm.",
    InvalidReason.SHOT_GATE_FAILED:
        "This doesn't look like a basketball shot. "
        "Please record a full shooting motion.",
    InvalidReason.CANCELLED:
        "Analysis cancelled.",
}


class DetectionStatus(Enum):
    """Outcome of one probe against the landmark source."""
    OK = "ok"
    RETRYABLE = "retryable"
    FATAL = "fatal"


@dataclass(frozen=True)
class Detection:
    """
    Result of asking the landmark source for one frame.

    Attributes:
        status: OK, RETRYABLE (estimator failed, reset may help) or FATAL
        timestamp_ms: Timestamp actually sent to the estimator
        landmarks: Detected landmarks, None when no person was found
        error: The failure, for non-OK outcomes
    """
    status: DetectionStatus
    timestamp_ms: int
    landmarks: Optional[Sequence[Landmark]] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.status is DetectionStatus.OK


@dataclass(frozen=True)
class ShotMetrics:
    """
    The ten biomechanical metrics of a shot.

    Every value is normalized to [0, 1], higher is better.
    """
    stance_width: float = 0.0          # Feet separation vs shoulder width
    lateral_sway: float = 0.0          # Torso stability across the clip
    knee_dip: float = 0.0              # Knee loading before release
    vertical_drive: float = 0.0        # Vertical vs horizontal torso travel
    elbow_alignment: float = 0.0       # Shoulder-elbow-wrist extension
    elbow_under_ball: float = 0.0      # Forearm vertical at release
    release_height: float = 0.0        # Wrist lift vs pre-release baseline
    wrist_flick: float = 0.0           # Forearm snap after release
    follow_through_hold: float = 0.0   # Wrist held high after release
    landing_balance: float = 0.0       # Stable base after landing

    @classmethod
    def zeros(cls) -> "ShotMetrics":
        return cls()

    @classmethod
    def names(cls) -> list[str]:
        """Metric names in declaration order."""
        return [f.name for f in fields(cls)]

    def as_dict(self) -> dict[str, float]:
        return {name: getattr(self, name) for name in self.names()}


@dataclass(frozen=True)
class GateResult:
    """
    Outcome of the three shot-validity heuristics.

    A run counts as a shot when at least `required` (two) of the gates pass.
    """
    elbow_extended: bool
    wrist_lifted: bool
    followed_through: bool
    release_elbow_angle: float
    wrist_lift: float
    follow_through_count: int
    required: int = 2

    @property
    def passed_count(self) -> int:
        return sum((self.elbow_extended, self.wrist_lifted, self.followed_through))

    @property
    def passed(self) -> bool:
        return self.passed_count >= self.required


@dataclass(frozen=True)
class CoachFinding:
    """
    A coaching observation derived from one sub-threshold metric.

    Attributes:
        key: Metric name this finding is about
        severity: 3 (most severe) to 1
        metric_value: The metric value that triggered the finding
        title: Short summary
        diagnosis: What is going wrong
        evidence: The measurement backing the diagnosis
        correction: What to change
        drill: Practice drill to fix the issue
        success_criteria: How the player knows it is fixed
    """
    key: str
    severity: int
    metric_value: float
    title: str
    diagnosis: str
    evidence: str
    correction: str
    drill: str
    success_criteria: str

    @property
    def coaching_text(self) -> str:
        """Full coaching text shown in the improvements list."""
        return (
            f"{self.title}: {self.diagnosis} {self.correction} "
            f"Drill: {self.drill} Goal: {self.success_criteria}"
        )


@dataclass(frozen=True)
class CoachTip:
    """Headline coaching advice for the shot."""
    title: str
    main_issue_title: str
    body: str
    target_score: int


@dataclass(frozen=True)
class AnalysisResult:
    """
    Complete analysis of a basketball shot.

    This is the only value handed from the engine to the API layer.
    Expected failures are encoded with is_invalid / is_cancelled and a
    message instead of raising.
    """
    score: int
    metrics: ShotMetrics
    strengths: list[str] = field(default_factory=list)
    improvements: list[str] = field(default_factory=list)
    is_invalid: bool = False
    message_if_invalid: Optional[str] = None
    processed_frames: int = 0
    total_frames: int = 0
    coach_tip: Optional[CoachTip] = None
    findings: list[CoachFinding] = field(default_factory=list)
    invalid_reason: Optional[InvalidReason] = None
    is_cancelled: bool = False

    @classmethod
    def invalid(
        cls,
        reason: InvalidReason,
        processed_frames: int = 0,
        total_frames: int = 0,
    ) -> "AnalysisResult":
        """
        Build a terminal result for an expected failure.

        Cancellation is reported separately from invalid input so
        callers can tell the two apart.
        """
        cancelled = reason is InvalidReason.CANCELLED
        return cls(
            score=0,
            metrics=ShotMetrics.zeros(),
            is_invalid=not cancelled,
            message_if_invalid=INVALID_MESSAGES[reason],
            processed_frames=processed_frames,
            total_frames=total_frames,
            invalid_reason=reason,
            is_cancelled=cancelled,
        )
