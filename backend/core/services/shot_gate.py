"""
Shot Gate Service

Decides whether the detected motion is a basketball shot at all,
using three independent heuristics around the release frame:

1. Elbow extension - the shooting arm is nearly straight at release
2. Wrist lift      - the wrist rose well above its pre-release baseline
3. Follow-through  - the wrist stays high for a few frames after release

Two of three must pass, so one noisy signal cannot reject a real shot
while a pass, a dribble or a static pose still fails.
"""

from typing import Optional, Sequence

import numpy as np

from ..config import GateConfig, is_free_throw
from ..domain.analysis import GateResult
from ..domain.pose import FrameSample, Handedness
from .angle_calculator import AngleCalculator


class ShotGate:
    """
    Evaluates the three shot heuristics.

    Usage:
        gate = ShotGate()
        result = gate.evaluate(frames, release_idx, Handedness.RIGHT, shot_type="ft")
        if not result.passed:
            ...
    """

    def __init__(self, config: GateConfig = GateConfig()):
        self.config = config

    def evaluate(
        self,
        frames: Sequence[FrameSample],
        release_idx: int,
        side: Handedness,
        shot_type: Optional[str] = None,
    ) -> GateResult:
        """Run all three heuristics relative to the release frame."""
        free_throw = is_free_throw(shot_type)

        elbow_angle = AngleCalculator.calculate_elbow_angle(frames[release_idx], side)
        elbow_angle = elbow_angle if elbow_angle is not None else 0.0

        lift = self.wrist_lift(frames, release_idx, side)
        min_lift = (
            self.config.min_wrist_lift_free_throw if free_throw
            else self.config.min_wrist_lift
        )

        held = self.follow_through_count(frames, release_idx, side)
        min_held = (
            self.config.min_follow_through_frames_free_throw if free_throw
            else self.config.min_follow_through_frames
        )

        return GateResult(
            elbow_extended=elbow_angle >= self.config.min_release_elbow_angle,
            wrist_lifted=lift >= min_lift,
            followed_through=held >= min_held,
            release_elbow_angle=elbow_angle,
            wrist_lift=lift,
            follow_through_count=held,
            required=self.config.min_gates_passed,
        )

    # -------------------------------------------------------------------------
    # Individual signals (also reused by the metric extractor)
    # -------------------------------------------------------------------------

    @staticmethod
    def wrist_y(frame: FrameSample, side: Handedness) -> Optional[float]:
        wrist = frame.get_landmark(side.part("wrist"))
        return wrist.y if wrist is not None else None

    def wrist_lift(
        self,
        frames: Sequence[FrameSample],
        release_idx: int,
        side: Handedness,
    ) -> float:
        """
        How far the wrist rose above its pre-release baseline.

        The baseline is the median wrist height over the frames just
        before release; with no earlier frames there is no lift.
        """
        release_y = self.wrist_y(frames[release_idx], side)
        if release_y is None:
            return 0.0

        start = max(0, release_idx - self.config.baseline_window)
        before = [
            y for y in (self.wrist_y(f, side) for f in frames[start:release_idx])
            if y is not None
        ]
        if not before:
            return 0.0

        baseline = float(np.median(before))
        return baseline - release_y

    def follow_through_count(
        self,
        frames: Sequence[FrameSample],
        release_idx: int,
        side: Handedness,
    ) -> int:
        """Frames right after release whose wrist stays near release height."""
        release_y = self.wrist_y(frames[release_idx], side)
        if release_y is None:
            return 0

        window = frames[release_idx + 1:release_idx + 1 + self.config.follow_through_window]
        count = 0
        for frame in window:
            y = self.wrist_y(frame, side)
            if y is not None and abs(y - release_y) <= self.config.follow_through_tolerance:
                count += 1
        return count
