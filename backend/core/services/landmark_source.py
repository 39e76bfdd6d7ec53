"""
Landmark Source Service

Caller-owned handle around the pose estimator. It builds the
estimator lazily, keeps timestamps strictly increasing and can be
reset to recover from estimator failures.
"""

import logging
from typing import Any, Callable, Optional, Sequence

from ..domain.analysis import Detection, DetectionStatus
from .pose_estimator import MediaPipePoseEstimator, PoseEstimator

logger = logging.getLogger(__name__)


EstimatorFactory = Callable[[str], PoseEstimator]


class LandmarkSource:
    """
    Wraps a pose estimator for one analysis run at a time.

    - The estimator is constructed on first use, trying each delegate
      in order (GPU first, then CPU).
    - A timestamp that is not greater than the last one sent is bumped
      to last + 1, since video-mode estimators reject repeats.
    - reset() tears the estimator down; the next detect() rebuilds it.

    Usage:
        source = LandmarkSource(lambda delegate: MediaPipePoseEstimator(path, delegate))
        detection = source.detect(frame, timestamp_ms=100)
        if detection.ok:
            print(detection.landmarks)
    """

    def __init__(
        self,
        factory: EstimatorFactory,
        delegates: Sequence[str] = ("GPU", "CPU"),
    ):
        self._factory = factory
        self._delegates = tuple(delegates)
        self._estimator: Optional[PoseEstimator] = None
        self._last_timestamp_ms: Optional[int] = None

    def __enter__(self) -> "LandmarkSource":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def last_timestamp_ms(self) -> Optional[int]:
        """Last timestamp handed to the estimator since the last reset."""
        return self._last_timestamp_ms

    # -------------------------------------------------------------------------
    # Detection
    # -------------------------------------------------------------------------

    def detect(self, frame: Any, timestamp_ms: int) -> Detection:
        """
        Detect landmarks in one frame.

        Never raises for estimator failures: they come back as a
        RETRYABLE detection carrying the error.
        """
        if self._last_timestamp_ms is not None and timestamp_ms <= self._last_timestamp_ms:
            timestamp_ms = self._last_timestamp_ms + 1

        try:
            estimator = self._get_estimator()
            self._last_timestamp_ms = timestamp_ms
            landmarks = estimator.detect_for_video(frame, timestamp_ms)
        except Exception as e:
            logger.warning(f"Pose detection failed at {timestamp_ms}ms: {e}")
            return Detection(
                status=DetectionStatus.RETRYABLE,
                timestamp_ms=timestamp_ms,
                error=e,
            )

        return Detection(
            status=DetectionStatus.OK,
            timestamp_ms=timestamp_ms,
            landmarks=landmarks,
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def reset(self) -> None:
        """Drop the estimator and timestamp history; rebuilt on next detect()."""
        self.close()
        self._last_timestamp_ms = None

    def close(self) -> None:
        """Release the estimator if one was built."""
        if self._estimator is None:
            return
        estimator, self._estimator = self._estimator, None
        try:
            estimator.close()
        except Exception as e:
            logger.warning(f"Failed to close pose estimator: {e}")

    def _get_estimator(self) -> PoseEstimator:
        if self._estimator is not None:
            return self._estimator

        last_error: Optional[Exception] = None
        for delegate in self._delegates:
            try:
                self._estimator = self._factory(delegate)
                logger.info(f"Pose estimator ready ({delegate})")
                return self._estimator
            except Exception as e:
                logger.warning(f"Pose estimator unavailable with {delegate} delegate: {e}")
                last_error = e

        raise RuntimeError("Could not construct pose estimator") from last_error


def create_mediapipe_source(model_path: str) -> LandmarkSource:
    """LandmarkSource backed by MediaPipe Pose Landmarker, GPU first then CPU."""
    return LandmarkSource(lambda delegate: MediaPipePoseEstimator(model_path, delegate=delegate))
