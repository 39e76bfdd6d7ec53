"""
Metric Extractor Service

Computes the ten shooting-form metrics from the release frame and the
valid frames around it. Every metric is normalized to [0, 1]; when the
landmarks a metric needs are missing, it takes the neutral value from
MetricConfig.
"""

import math
from typing import Optional, Sequence

from ..config import GateConfig, MetricConfig
from ..domain.analysis import GateResult, ShotMetrics
from ..domain.pose import FrameSample, Handedness
from .angle_calculator import AngleCalculator


def clamp01(value: float, neutral: float = 0.5) -> float:
    """Clamp to [0, 1]; NaN and infinities become the neutral value."""
    if not math.isfinite(value):
        return neutral
    return max(0.0, min(1.0, value))


def bucket(value: float, edges: Sequence[float], scores: Sequence[float]) -> float:
    """Score of the first edge the value falls below, else the last score."""
    for edge, score in zip(edges, scores):
        if value < edge:
            return score
    return scores[-1]


class MetricExtractor:
    """
    Extracts ShotMetrics around the release frame.

    Usage:
        extractor = MetricExtractor()
        metrics = extractor.extract(frames, release_idx, Handedness.RIGHT, gate_result)
    """

    def __init__(
        self,
        config: MetricConfig = MetricConfig(),
        gate_config: GateConfig = GateConfig(),
    ):
        self.config = config
        self.gate_config = gate_config

    def extract(
        self,
        frames: Sequence[FrameSample],
        release_idx: int,
        side: Handedness,
        gate: GateResult,
    ) -> ShotMetrics:
        """Compute all ten metrics. Wrist lift and follow-through come from the gate."""
        release = frames[release_idx]
        neutral = self.config.neutral

        return ShotMetrics(
            stance_width=clamp01(self.stance_width(release), neutral),
            lateral_sway=clamp01(self.lateral_sway(frames), neutral),
            knee_dip=clamp01(self.knee_dip(frames, release_idx, side), neutral),
            vertical_drive=clamp01(self.vertical_drive(frames, release_idx), neutral),
            elbow_alignment=clamp01(self.elbow_alignment(release, side), neutral),
            elbow_under_ball=clamp01(self.elbow_under_ball(release, side), neutral),
            release_height=clamp01(gate.wrist_lift / self.config.release_full_lift, neutral),
            wrist_flick=clamp01(self.wrist_flick(frames, release_idx, side), neutral),
            follow_through_hold=clamp01(
                gate.follow_through_count / self.gate_config.follow_through_window,
                neutral,
            ),
            landing_balance=clamp01(self.landing_balance(frames, release_idx), neutral),
        )

    # -------------------------------------------------------------------------
    # Base and balance
    # -------------------------------------------------------------------------

    def stance_width(self, release: FrameSample) -> float:
        """Feet about shoulder-width apart scores best."""
        ankles = AngleCalculator.ankle_width(release)
        shoulders = AngleCalculator.shoulder_width(release)
        if ankles is None or shoulders is None or shoulders < 1e-6:
            return self.config.neutral

        ratio = ankles / shoulders
        return 1.0 - abs(ratio - self.config.stance_ideal_ratio) / self.config.stance_falloff

    def lateral_sway(self, frames: Sequence[FrameSample]) -> float:
        """Less frame-to-frame torso travel scores higher."""
        centers = [c for c in (AngleCalculator.torso_centroid(f) for f in frames) if c is not None]
        if len(centers) < 2:
            return 1.0

        total = sum(
            AngleCalculator.calculate_distance(centers[i - 1], centers[i])
            for i in range(1, len(centers))
        )
        average = total / (len(centers) - 1)
        return bucket(average, self.config.sway_edges, self.config.sway_scores)

    def landing_balance(self, frames: Sequence[FrameSample], release_idx: int) -> float:
        """Ankle width after release should match the width at release."""
        release = frames[release_idx]
        at_release = AngleCalculator.ankle_width(release)
        shoulders = AngleCalculator.shoulder_width(release)

        after = frames[release_idx + 1:release_idx + 1 + self.config.landing_window]
        widths = [w for w in (AngleCalculator.ankle_width(f) for f in after) if w is not None]

        if at_release is None or shoulders is None or not widths:
            return self.config.neutral

        allowed = self.config.landing_shoulder_fraction * shoulders
        if allowed < 1e-6:
            return self.config.neutral

        average_after = sum(widths) / len(widths)
        return 1.0 - abs(average_after - at_release) / allowed

    # -------------------------------------------------------------------------
    # Lower body drive
    # -------------------------------------------------------------------------

    def knee_dip(
        self,
        frames: Sequence[FrameSample],
        release_idx: int,
        side: Handedness,
    ) -> float:
        """
        Knee angle before release minus knee angle at release, over 40 degrees.

        Sign-sensitive: only a knee that is more bent at release than in
        the frames before it scores above zero. A bend-then-extend motion
        that straightens by release comes out negative and clamps to 0.
        No earlier frames means no measurable dip.
        """
        at_release = AngleCalculator.calculate_knee_angle(frames[release_idx], side)
        if at_release is None:
            return self.config.neutral

        start = max(0, release_idx - self.config.knee_window)
        before = [
            a for a in (
                AngleCalculator.calculate_knee_angle(f, side)
                for f in frames[start:release_idx]
            )
            if a is not None
        ]
        if not before:
            return 0.0

        average_before = sum(before) / len(before)
        return (average_before - at_release) / self.config.knee_full_dip_degrees

    def vertical_drive(self, frames: Sequence[FrameSample], release_idx: int) -> float:
        """Share of torso travel into release that is vertical."""
        baseline_idx = max(0, release_idx - self.config.drive_window)
        start = AngleCalculator.torso_centroid(frames[baseline_idx])
        end = AngleCalculator.torso_centroid(frames[release_idx])
        if start is None or end is None:
            return self.config.neutral

        dx = abs(end[0] - start[0])
        dy = abs(end[1] - start[1])
        if dx + dy < 1e-6:
            return self.config.neutral
        return dy / (dx + dy)

    # -------------------------------------------------------------------------
    # Shooting arm
    # -------------------------------------------------------------------------

    def elbow_alignment(self, release: FrameSample, side: Handedness) -> float:
        """Straight shoulder-elbow-wrist line at release scores 1.0."""
        angle = AngleCalculator.calculate_elbow_angle(release, side)
        if angle is None:
            return 0.0
        deviation = abs(self.config.elbow_ideal_angle - angle)
        return 1.0 - deviation / self.config.elbow_falloff_degrees

    def elbow_under_ball(self, release: FrameSample, side: Handedness) -> float:
        """Elbow directly below the wrist (vertical forearm) scores 1.0."""
        elbow = release.get_landmark(side.part("elbow"))
        wrist = release.get_landmark(side.part("wrist"))
        if elbow is None or wrist is None:
            return self.config.neutral
        return 1.0 - abs(elbow.x - wrist.x) / self.config.elbow_under_ball_falloff

    def wrist_flick(
        self,
        frames: Sequence[FrameSample],
        release_idx: int,
        side: Handedness,
    ) -> float:
        """Largest forearm rotation in the frames just after release, bucketed."""
        base = AngleCalculator.forearm_direction(frames[release_idx], side)
        if base is None:
            return self.config.neutral

        max_delta = 0.0
        after = frames[release_idx + 1:release_idx + 1 + self.config.flick_window]
        for frame in after:
            direction: Optional[float] = AngleCalculator.forearm_direction(frame, side)
            if direction is not None:
                max_delta = max(max_delta, AngleCalculator.angular_difference(direction, base))

        return bucket(max_delta, self.config.flick_edges, self.config.flick_scores)
