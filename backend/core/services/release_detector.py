"""
Release Detector Service

Finds the shooting arm and the release frame in a sequence of valid
frames.
"""

import math
from typing import Optional, Sequence

from ..domain.pose import FrameSample, BodyPart, Handedness


class ReleaseDetector:
    """
    Handedness and release-point detection.

    All methods are static - no state needed.
    """

    @staticmethod
    def resolve_handedness(frames: Sequence[FrameSample]) -> Handedness:
        """
        Right-handed if the right wrist is ever higher on screen than the left.

        One qualifying frame is enough; there is no voting.
        """
        for frame in frames:
            right = frame.get_landmark(BodyPart.RIGHT_WRIST)
            left = frame.get_landmark(BodyPart.LEFT_WRIST)
            if right is not None and left is not None and right.y < left.y:
                return Handedness.RIGHT
        return Handedness.LEFT

    @staticmethod
    def find_release_index(
        frames: Sequence[FrameSample],
        side: Handedness,
    ) -> Optional[int]:
        """
        Index of the frame where the shooting wrist is highest (minimum y).

        Returns:
            The first such index, or None if no frame has a finite wrist y
        """
        wrist_part = side.part("wrist")
        release_idx: Optional[int] = None
        best_y = math.inf

        for i, frame in enumerate(frames):
            wrist = frame.get_landmark(wrist_part)
            if wrist is not None and math.isfinite(wrist.y) and wrist.y < best_y:
                best_y = wrist.y
                release_idx = i

        return release_idx
