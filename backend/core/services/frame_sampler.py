"""
Frame Sampler Service

Walks a video at a fixed time step, asks the landmark source for a
pose at every step and keeps the frames that pass the validity filter.

Probing is strictly sequential: every seek and every detection is
awaited before the next seek is issued, so timestamps reach the
estimator in increasing order. Both run in worker threads so the
event loop keeps serving other requests and cancel messages.
"""

import asyncio
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol

from ..config import SamplingConfig
from ..domain.analysis import Detection, DetectionStatus, InvalidReason
from ..domain.pose import FrameSample
from .landmark_source import LandmarkSource
from .validity_filter import ValidityFilter

logger = logging.getLogger(__name__)


ProgressCallback = Callable[[int], None]


class FrameSource(Protocol):
    """A seekable video (see VideoReader)."""

    @property
    def duration_seconds(self) -> float:
        ...

    async def seek(self, t_seconds: float) -> Any:
        ...


class CancellationToken:
    """Cooperative cancellation flag, checked by the sampler between suspend points."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


@dataclass
class SamplingResult:
    """
    What one pass over the video produced.

    failure is set when sampling ended early (too short, detection
    failure, cancellation); valid_frames is then incomplete.
    """
    valid_frames: list[FrameSample] = field(default_factory=list)
    processed_frames: int = 0
    total_frames: int = 0
    failure: Optional[InvalidReason] = None


class FrameSampler:
    """
    Samples a video into an ordered list of valid frames.

    Failure policy: if detection fails, the landmark source is reset
    once and the same timestamp retried; a second failure ends the run.

    Usage:
        sampler = FrameSampler(source)
        result = await sampler.sample(video, progress=print)
    """

    def __init__(
        self,
        source: LandmarkSource,
        config: SamplingConfig = SamplingConfig(),
        validity: Optional[ValidityFilter] = None,
    ):
        self.source = source
        self.config = config
        self.validity = validity or ValidityFilter()

    def total_frames_for(self, duration_seconds: float) -> int:
        """Number of probes for a video of this duration."""
        max_duration = min(duration_seconds, self.config.max_duration_seconds)
        # Small epsilon so that e.g. 3.0 / 0.1 counts as 30 steps
        return max(0, math.floor(max_duration / self.config.step_seconds + 1e-9))

    async def sample(
        self,
        video: FrameSource,
        progress: Optional[ProgressCallback] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> SamplingResult:
        """
        Probe the video and collect valid frames.

        Args:
            video: Seekable video
            progress: Called with 0-100 after every completed probe
            cancel: Checked before and after every seek

        Returns:
            SamplingResult, with failure set if the run ended early
        """
        duration = video.duration_seconds
        if duration < self.config.min_duration_seconds:
            logger.info(f"Video too short to analyze ({duration:.2f}s)")
            return SamplingResult(failure=InvalidReason.VIDEO_TOO_SHORT)

        total = self.total_frames_for(duration)
        result = SamplingResult(total_frames=total)

        # Each run starts from a fresh estimator and timestamp history
        self.source.reset()

        for i in range(total):
            if cancel is not None and cancel.cancelled:
                result.failure = InvalidReason.CANCELLED
                return result

            t = i * self.config.step_seconds
            frame = await video.seek(t)

            if cancel is not None and cancel.cancelled:
                result.failure = InvalidReason.CANCELLED
                return result

            if frame is not None:
                detection = await asyncio.to_thread(self._probe, frame, round(t * 1000))
                if detection.status is DetectionStatus.FATAL:
                    logger.error(
                        f"Pose detection failed twice at {detection.timestamp_ms}ms: "
                        f"{detection.error}"
                    )
                    result.failure = InvalidReason.DETECTION_FAILED
                    return result
                self._collect(result, detection)
            else:
                logger.debug(f"No frame decoded at {t:.1f}s")

            result.processed_frames += 1
            if progress is not None:
                progress(round(result.processed_frames / total * 100))

        return result

    def _probe(self, frame: Any, timestamp_ms: int) -> Detection:
        """
        Detect once, and once more after a reset if the first attempt failed.

        Blocking; sample() runs it in a worker thread.
        """
        detection = self.source.detect(frame, timestamp_ms)
        if detection.status is not DetectionStatus.RETRYABLE:
            return detection

        self.source.reset()
        retry = self.source.detect(frame, timestamp_ms)
        if retry.ok:
            return retry

        return Detection(
            status=DetectionStatus.FATAL,
            timestamp_ms=retry.timestamp_ms,
            error=retry.error,
        )

    def _collect(self, result: SamplingResult, detection: Detection) -> None:
        if not detection.landmarks:
            return
        frame = FrameSample(
            landmarks=tuple(detection.landmarks),
            timestamp_ms=detection.timestamp_ms,
        )
        if self.validity.is_valid(frame):
            result.valid_frames.append(frame)
