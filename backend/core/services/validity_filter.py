"""
Validity Filter Service

Decides which sampled frames are trustworthy enough to analyze, and
whether a run saw the player often enough to analyze at all.
"""

from ..config import ValidityConfig
from ..domain.pose import FrameSample, BodyPart


class ValidityFilter:
    """
    Visibility gate over the upper body and hips.

    A frame is kept when the mean visibility of both shoulders,
    elbows, wrists and hips reaches the threshold and the estimator
    returned a (nearly) complete landmark list.
    """

    KEY_LANDMARKS = (
        BodyPart.LEFT_SHOULDER,
        BodyPart.RIGHT_SHOULDER,
        BodyPart.LEFT_ELBOW,
        BodyPart.RIGHT_ELBOW,
        BodyPart.LEFT_WRIST,
        BodyPart.RIGHT_WRIST,
        BodyPart.LEFT_HIP,
        BodyPart.RIGHT_HIP,
    )

    def __init__(self, config: ValidityConfig = ValidityConfig()):
        self.config = config

    def mean_visibility(self, frame: FrameSample) -> float:
        """Mean visibility of the key landmarks; missing ones count as 0."""
        total = sum(frame.visibility_of(part) for part in self.KEY_LANDMARKS)
        return total / len(self.KEY_LANDMARKS)

    def is_valid(self, frame: FrameSample) -> bool:
        if len(frame.landmarks) < self.config.min_landmark_count:
            return False
        return self.mean_visibility(frame) >= self.config.min_mean_visibility

    def has_coverage(self, valid_frames: int, processed_frames: int) -> bool:
        """Whether enough of the probed frames showed the player."""
        if processed_frames <= 0 or valid_frames < self.config.min_valid_frames:
            return False
        return valid_frames / processed_frames >= self.config.min_valid_ratio
