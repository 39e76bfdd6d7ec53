"""
Pose Domain Models

Data structures for representing human body pose landmarks
produced by the pose estimator.

MediaPipe Pose Landmarker returns 33 landmarks:
https://developers.google.com/mediapipe/solutions/vision/pose_landmarker
"""
import math
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional, Sequence


class BodyPart(IntEnum):
    """
    MediaPipe Pose landmark indices.

    These map directly to MediaPipe's 33-point pose model.
    We include the ones used for shooting form analysis.
    """
    # Face
    NOSE = 0

    # Upper body
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16

    # Lower body
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26
    LEFT_ANKLE = 27
    RIGHT_ANKLE = 28


class Handedness(Enum):
    """Shooting arm, resolved once per analysis run."""
    RIGHT = "right"
    LEFT = "left"

    def part(self, joint: str) -> BodyPart:
        """
        Landmark for a joint on this side.

        Example:
            Handedness.RIGHT.part("wrist") -> BodyPart.RIGHT_WRIST
        """
        return BodyPart[f"{self.name}_{joint.upper()}"]


@dataclass(frozen=True)
class Landmark:
    """
    A single body landmark with 3D coordinates and visibility.

    Attributes:
        x: Horizontal position (0.0 = left edge, 1.0 = right edge)
        y: Vertical position (0.0 = top edge, 1.0 = bottom edge)
        z: Depth (smaller = closer to camera)
        visibility: Confidence score (0.0 to 1.0), 0.0 when the
                    estimator does not report one

    Note:
        Coordinates are normalized to image dimensions, so a smaller
        y means higher on screen.
    """
    x: float
    y: float
    z: float = 0.0
    visibility: float = 0.0


@dataclass(frozen=True)
class FrameSample:
    """
    Landmarks estimated for one probed video instant.

    Attributes:
        landmarks: Body landmarks in MediaPipe index order (33 when complete)
        timestamp_ms: Video timestamp in milliseconds
    """
    landmarks: Sequence[Landmark]
    timestamp_ms: int

    def get_landmark(self, body_part: BodyPart) -> Optional[Landmark]:
        """Get a specific landmark by body part, None if absent or not finite."""
        index = body_part.value
        if not 0 <= index < len(self.landmarks):
            return None
        landmark = self.landmarks[index]
        if not (math.isfinite(landmark.x) and math.isfinite(landmark.y)):
            return None
        return landmark

    def visibility_of(self, body_part: BodyPart) -> float:
        """Visibility of a landmark, 0.0 if it is absent or not finite."""
        landmark = self.get_landmark(body_part)
        return landmark.visibility if landmark is not None else 0.0
