"""
Angle Calculator Service

Geometry used in shooting form analysis: joint angles, forearm
direction, body widths and the torso centroid.

All work happens in normalized 2D image coordinates (y grows downward).
Pure mathematics - no external dependencies except numpy.
"""

import math
from typing import Optional, Tuple

import numpy as np

from ..domain.pose import Landmark, FrameSample, BodyPart, Handedness


Point = Tuple[float, float]


class AngleCalculator:
    """
    Calculates biomechanical angles from pose landmarks.

    Shooting-specific measurements include:
    - Elbow extension (shoulder-elbow-wrist)
    - Knee flex (hip-knee-ankle)
    - Forearm direction (elbow -> wrist)
    - Shoulder and ankle widths
    - Torso centroid

    All methods are static - no state needed.
    """

    # -------------------------------------------------------------------------
    # Core Angle Calculations
    # -------------------------------------------------------------------------

    @staticmethod
    def calculate_angle(
        p1: Landmark,
        p2: Landmark,  # Vertex point
        p3: Landmark
    ) -> Optional[float]:
        """
        Calculate angle at p2 formed by p1-p2-p3.

        Args:
            p1: First point
            p2: Vertex point (where angle is measured)
            p3: Third point

        Returns:
            Angle in degrees (0-180), or None if either arm of the
            angle has zero length

        Example:
            For elbow angle: shoulder -> elbow -> wrist
            angle = calculate_angle(shoulder, elbow, wrist)
        """
        v1 = np.array([p1.x - p2.x, p1.y - p2.y])
        v2 = np.array([p3.x - p2.x, p3.y - p2.y])

        norm1 = np.linalg.norm(v1)
        norm2 = np.linalg.norm(v2)
        if norm1 < 1e-6 or norm2 < 1e-6:
            return None

        # Clamp to valid range (handles floating point errors)
        cos_angle = np.clip(np.dot(v1, v2) / (norm1 * norm2), -1.0, 1.0)

        return float(np.degrees(np.arccos(cos_angle)))

    @staticmethod
    def angular_difference(a: float, b: float) -> float:
        """
        Smallest difference between two directions in radians, as degrees.

        Wraps around so that directions either side of +/-pi compare
        as close.
        """
        diff = abs(a - b) % (2 * math.pi)
        if diff > math.pi:
            diff = 2 * math.pi - diff
        return math.degrees(diff)

    # -------------------------------------------------------------------------
    # Shooting-Specific Calculations
    # -------------------------------------------------------------------------

    @staticmethod
    def calculate_joint_angle(
        frame: FrameSample,
        side: Handedness,
        first: str,
        vertex: str,
        last: str,
    ) -> Optional[float]:
        """
        Angle at a joint on one side of the body.

        Args:
            frame: Pose frame with landmarks
            side: Which side's landmarks to use
            first, vertex, last: Joint names, e.g. "shoulder", "elbow", "wrist"

        Returns:
            Angle in degrees, or None if a landmark is missing
        """
        p1 = frame.get_landmark(side.part(first))
        p2 = frame.get_landmark(side.part(vertex))
        p3 = frame.get_landmark(side.part(last))

        if p1 is None or p2 is None or p3 is None:
            return None

        return AngleCalculator.calculate_angle(p1, p2, p3)

    @classmethod
    def calculate_elbow_angle(cls, frame: FrameSample, side: Handedness) -> Optional[float]:
        """Elbow angle in degrees (180 = straight arm, 90 = right angle)."""
        return cls.calculate_joint_angle(frame, side, "shoulder", "elbow", "wrist")

    @classmethod
    def calculate_knee_angle(cls, frame: FrameSample, side: Handedness) -> Optional[float]:
        """Knee angle in degrees (180 = straight leg, 90 = deep squat)."""
        return cls.calculate_joint_angle(frame, side, "hip", "knee", "ankle")

    @staticmethod
    def forearm_direction(frame: FrameSample, side: Handedness) -> Optional[float]:
        """
        Direction of the elbow -> wrist vector in radians.

        Used to measure how far the forearm rotates (the wrist flick)
        in the frames after release.
        """
        elbow = frame.get_landmark(side.part("elbow"))
        wrist = frame.get_landmark(side.part("wrist"))
        if elbow is None or wrist is None:
            return None
        return math.atan2(wrist.y - elbow.y, wrist.x - elbow.x)

    @staticmethod
    def horizontal_width(
        frame: FrameSample,
        left: BodyPart,
        right: BodyPart,
    ) -> Optional[float]:
        """Horizontal separation between a left/right landmark pair."""
        p1 = frame.get_landmark(left)
        p2 = frame.get_landmark(right)
        if p1 is None or p2 is None:
            return None
        return abs(p1.x - p2.x)

    @classmethod
    def shoulder_width(cls, frame: FrameSample) -> Optional[float]:
        return cls.horizontal_width(frame, BodyPart.LEFT_SHOULDER, BodyPart.RIGHT_SHOULDER)

    @classmethod
    def ankle_width(cls, frame: FrameSample) -> Optional[float]:
        return cls.horizontal_width(frame, BodyPart.LEFT_ANKLE, BodyPart.RIGHT_ANKLE)

    @staticmethod
    def torso_centroid(frame: FrameSample) -> Optional[Point]:
        """Mean of both shoulders and both hips."""
        points = [
            frame.get_landmark(BodyPart.LEFT_SHOULDER),
            frame.get_landmark(BodyPart.RIGHT_SHOULDER),
            frame.get_landmark(BodyPart.LEFT_HIP),
            frame.get_landmark(BodyPart.RIGHT_HIP),
        ]
        if any(p is None for p in points):
            return None
        return (
            sum(p.x for p in points) / 4,  # type: ignore[union-attr]
            sum(p.y for p in points) / 4,  # type: ignore[union-attr]
        )

    # -------------------------------------------------------------------------
    # Utility Methods
    # -------------------------------------------------------------------------

    @staticmethod
    def calculate_distance(p1: Point, p2: Point) -> float:
        """Calculate 2D distance between two points."""
        return math.sqrt((p1[0] - p2[0]) ** 2 + (p1[1] - p2[1]) ** 2)
