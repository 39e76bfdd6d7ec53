"""
Pose Estimator Service

Wrapper around the MediaPipe Pose Landmarker task for detecting body
landmarks in video frames. Handles all MediaPipe-specific logic and
converts results to our domain models.

The landmarker runs in VIDEO mode, which requires strictly increasing
timestamps; LandmarkSource enforces that before calling in here.
"""

from typing import Any, Optional, Protocol, Sequence

import cv2
import mediapipe as mp
import numpy as np

from ..domain.pose import Landmark


class PoseEstimator(Protocol):
    """
    Anything that maps a video frame + timestamp to body landmarks.

    Implementations may raise on failure; LandmarkSource turns
    exceptions into retryable detections.
    """

    def detect_for_video(
        self, frame: Any, timestamp_ms: int
    ) -> Optional[Sequence[Landmark]]:
        ...

    def close(self) -> None:
        ...


class MediaPipePoseEstimator:
    """
    Detects a single person's pose using MediaPipe Pose Landmarker.

    Usage:
        estimator = MediaPipePoseEstimator("pose_landmarker_lite.task", delegate="GPU")
        landmarks = estimator.detect_for_video(frame_bgr, timestamp_ms=100)
        estimator.close()

    Or use as context manager:
        with MediaPipePoseEstimator(model_path) as estimator:
            landmarks = estimator.detect_for_video(frame_bgr, 0)
    """

    DELEGATES = {
        "GPU": mp.tasks.BaseOptions.Delegate.GPU,
        "CPU": mp.tasks.BaseOptions.Delegate.CPU,
    }

    def __init__(
        self,
        model_path: str,
        delegate: str = "CPU",
        min_detection_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
    ):
        """
        Initialize the pose landmarker.

        Args:
            model_path: Path to a pose_landmarker .task model bundle
            delegate: "GPU" or "CPU" execution
            min_detection_confidence: Minimum confidence for person detection
            min_tracking_confidence: Minimum confidence for landmark tracking

        Raises:
            Whatever MediaPipe raises when the model or delegate is unusable.
        """
        vision = mp.tasks.vision
        options = vision.PoseLandmarkerOptions(
            base_options=mp.tasks.BaseOptions(
                model_asset_path=model_path,
                delegate=self.DELEGATES[delegate],
            ),
            running_mode=vision.RunningMode.VIDEO,
            num_poses=1,
            min_pose_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence,
        )
        self.delegate = delegate
        self.landmarker = vision.PoseLandmarker.create_from_options(options)

    def __enter__(self) -> "MediaPipePoseEstimator":
        """Context manager entry."""
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[Any]
    ) -> None:
        """Context manager exit - cleanup resources."""
        self.close()

    def close(self) -> None:
        """Release MediaPipe resources."""
        self.landmarker.close()

    # -------------------------------------------------------------------------
    # Core Detection
    # -------------------------------------------------------------------------

    def detect_for_video(
        self,
        frame: np.ndarray,
        timestamp_ms: int,
    ) -> Optional[list[Landmark]]:
        """
        Detect pose in one video frame.

        Args:
            frame: BGR image (OpenCV format)
            timestamp_ms: Frame timestamp, must increase between calls

        Returns:
            33 landmarks, or None if no person detected
        """
        # MediaPipe expects RGB
        if len(frame.shape) == 3 and frame.shape[2] == 3:
            frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

        image = mp.Image(image_format=mp.ImageFormat.SRGB, data=np.ascontiguousarray(frame))
        result = self.landmarker.detect_for_video(image, timestamp_ms)

        if not result.pose_landmarks:
            return None

        return self._convert_landmarks(result.pose_landmarks[0])

    # -------------------------------------------------------------------------
    # Private Helper Methods
    # -------------------------------------------------------------------------

    @staticmethod
    def _convert_landmarks(mp_landmarks: Any) -> list[Landmark]:
        """Convert MediaPipe landmarks to our domain model."""
        return [
            Landmark(
                x=float(lm.x),
                y=float(lm.y),
                z=float(lm.z or 0.0),
                visibility=float(lm.visibility or 0.0),
            )
            for lm in mp_landmarks
        ]
