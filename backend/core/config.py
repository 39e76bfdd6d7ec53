"""
Analyzer Configuration

All thresholds, weights and scoring parameters used by the shot
analysis pipeline, grouped per stage so they can be tuned and tested
without touching the geometry code.

The values are empirical calibration, not derived constants.
"""

from dataclasses import dataclass, field
from typing import Optional


# =============================================================================
# Sampling
# =============================================================================

@dataclass(frozen=True)
class SamplingConfig:
    """How the video is walked."""
    step_seconds: float = 0.1
    max_duration_seconds: float = 30.0
    min_duration_seconds: float = 1.0


# =============================================================================
# Frame validity and coverage
# =============================================================================

@dataclass(frozen=True)
class ValidityConfig:
    """Per-frame visibility gate and whole-run coverage check."""
    min_mean_visibility: float = 0.55
    min_landmark_count: int = 25       # Landmark list must have more than 24 entries
    min_valid_ratio: float = 0.30
    min_valid_frames: int = 10


# =============================================================================
# Shot validity gate
# =============================================================================

@dataclass(frozen=True)
class GateConfig:
    """Thresholds of the three shot heuristics."""
    min_release_elbow_angle: float = 140.0     # degrees
    baseline_window: int = 20                  # frames before release
    min_wrist_lift: float = 0.18
    min_wrist_lift_free_throw: float = 0.10
    follow_through_window: int = 7             # frames after release
    follow_through_tolerance: float = 0.22
    min_follow_through_frames: int = 3
    min_follow_through_frames_free_throw: int = 2
    min_gates_passed: int = 2


# =============================================================================
# Metric extraction
# =============================================================================

@dataclass(frozen=True)
class MetricConfig:
    """
    Ideal values, falloff windows and bucket edges per metric.

    Bucketed metrics pair ascending edges with one more score than
    there are edges: the score for the first edge the value falls
    below, else the last score.
    """
    neutral: float = 0.5

    # stance_width: ankle separation / shoulder separation
    stance_ideal_ratio: float = 1.0
    stance_falloff: float = 0.5

    # lateral_sway: mean torso-centroid displacement per frame
    sway_edges: tuple[float, ...] = (0.05, 0.10, 0.15)
    sway_scores: tuple[float, ...] = (1.0, 0.8, 0.5, 0.3)

    # knee_dip: pre-release knee angle minus release knee angle
    knee_window: int = 10
    knee_full_dip_degrees: float = 40.0

    # vertical_drive: torso travel from pre-release baseline to release
    drive_window: int = 10

    # elbow_alignment: deviation of shoulder-elbow-wrist from straight
    elbow_ideal_angle: float = 180.0
    elbow_falloff_degrees: float = 90.0

    # elbow_under_ball: horizontal elbow-wrist offset
    elbow_under_ball_falloff: float = 0.15

    # release_height: wrist lift normalizer
    release_full_lift: float = 0.30

    # wrist_flick: forearm rotation after release (degrees)
    flick_window: int = 3
    flick_edges: tuple[float, ...] = (10.0, 20.0, 30.0, 40.0)
    flick_scores: tuple[float, ...] = (0.3, 0.5, 0.7, 0.85, 1.0)

    # landing_balance: ankle width change relative to half the shoulder width
    landing_window: int = 7
    landing_shoulder_fraction: float = 0.5


# =============================================================================
# Scoring
# =============================================================================

@dataclass(frozen=True)
class ScoringWeights:
    """
    Weight of each metric in the overall score. Must sum to 1.0.

    Elbow alignment carries the most weight, it is the most
    diagnostic shooting-form fault.
    """
    stance_width: float = 0.08
    lateral_sway: float = 0.12
    knee_dip: float = 0.10
    vertical_drive: float = 0.10
    elbow_alignment: float = 0.18
    elbow_under_ball: float = 0.10
    release_height: float = 0.12
    wrist_flick: float = 0.08
    follow_through_hold: float = 0.07
    landing_balance: float = 0.05


# =============================================================================
# Findings
# =============================================================================

@dataclass(frozen=True)
class FindingsConfig:
    """Cutoffs for coaching findings and strengths."""
    finding_cutoff: float = 0.65
    severity_3_below: float = 0.40
    severity_2_below: float = 0.55
    strength_cutoff: float = 0.75
    max_strengths: int = 3
    max_improvements: int = 5
    target_step: int = 5


@dataclass(frozen=True)
class AnalyzerConfig:
    """Complete configuration for one analyzer."""
    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    validity: ValidityConfig = field(default_factory=ValidityConfig)
    gate: GateConfig = field(default_factory=GateConfig)
    metrics: MetricConfig = field(default_factory=MetricConfig)
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    findings: FindingsConfig = field(default_factory=FindingsConfig)


DEFAULT_CONFIG = AnalyzerConfig()


FREE_THROW_HINTS = frozenset({"free throw", "free_throw", "free-throw", "freethrow", "ft"})


def is_free_throw(shot_type: Optional[str]) -> bool:
    """Whether a caller-supplied shot type hint means a free throw."""
    if not shot_type:
        return False
    return shot_type.strip().lower() in FREE_THROW_HINTS
