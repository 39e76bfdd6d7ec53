"""
Shot Analyzer Service

High-level service that runs the whole shot analysis pipeline:

1. Sample the video and detect landmarks (FrameSampler)
2. Keep frames where the player is visible (ValidityFilter)
3. Resolve the shooting arm and the release frame (ReleaseDetector)
4. Check the motion is a shot at all (ShotGate)
5. Extract metrics, score them and build coaching feedback

Every expected failure ends the run early with an invalid
AnalysisResult; later stages do not run.
"""

import logging
from typing import Optional, Sequence

from ..config import AnalyzerConfig, DEFAULT_CONFIG
from ..domain.analysis import AnalysisResult, InvalidReason
from ..domain.pose import FrameSample
from .findings import FindingsEngine
from .frame_sampler import CancellationToken, FrameSampler, FrameSource, ProgressCallback
from .landmark_source import LandmarkSource
from .metric_extractor import MetricExtractor
from .release_detector import ReleaseDetector
from .scorer import ShotScorer
from .shot_gate import ShotGate
from .validity_filter import ValidityFilter
from .video_reader import VideoReader

logger = logging.getLogger(__name__)


class ShotAnalyzer:
    """
    Analyzes basketball shots from video or landmark sequences.

    The landmark source is owned by the caller and may be reused
    across runs; it is reset at the start of every video analysis.

    Usage:
        source = create_mediapipe_source("models/pose_landmarker_lite.task")
        analyzer = ShotAnalyzer(source)

        # Analyze from video file
        result = await analyzer.analyze_video("shot.mp4", shot_type="ft")
        print(f"Score: {result.score}")

        # Or analyze from pre-detected frames
        result = analyzer.analyze_frames(frames, shot_type="3pt")
    """

    def __init__(
        self,
        source: Optional[LandmarkSource] = None,
        config: AnalyzerConfig = DEFAULT_CONFIG,
    ):
        self.config = config
        self.source = source
        self.validity = ValidityFilter(config.validity)
        self.gate = ShotGate(config.gate)
        self.extractor = MetricExtractor(config.metrics, config.gate)
        self.scorer = ShotScorer(config.weights)
        self.findings = FindingsEngine(config.findings)

    # -------------------------------------------------------------------------
    # Main Analysis Methods
    # -------------------------------------------------------------------------

    async def analyze_video(
        self,
        video_path: str,
        shot_type: Optional[str] = None,
        progress: Optional[ProgressCallback] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> AnalysisResult:
        """
        Analyze a shot from a video file.

        Raises:
            VideoOpenError: if the file cannot be opened as a video
        """
        with VideoReader(video_path) as video:
            return await self.analyze_source(video, shot_type, progress, cancel)

    async def analyze_source(
        self,
        video: FrameSource,
        shot_type: Optional[str] = None,
        progress: Optional[ProgressCallback] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> AnalysisResult:
        """Analyze a shot from any seekable frame source."""
        if self.source is None:
            raise ValueError("A landmark source is required to analyze video")

        logger.info(
            f"Analyzing {video.duration_seconds:.1f}s video (shot type: {shot_type or 'default'})"
        )

        sampler = FrameSampler(self.source, self.config.sampling, self.validity)
        sampling = await sampler.sample(video, progress=progress, cancel=cancel)

        if sampling.failure is not None:
            logger.info(f"Sampling ended early: {sampling.failure.value}")
            return AnalysisResult.invalid(
                sampling.failure,
                processed_frames=sampling.processed_frames,
                total_frames=sampling.total_frames,
            )

        return self._analyze_valid_frames(
            sampling.valid_frames,
            shot_type,
            processed_frames=sampling.processed_frames,
            total_frames=sampling.total_frames,
        )

    def analyze_frames(
        self,
        frames: Sequence[FrameSample],
        shot_type: Optional[str] = None,
        processed_frames: Optional[int] = None,
        total_frames: Optional[int] = None,
    ) -> AnalysisResult:
        """
        Analyze a shot from pre-detected frames.

        Frames are run through the validity filter first. processed_frames
        defaults to the number of frames given, total_frames to processed.

        Raises:
            ValueError: if timestamps are not strictly increasing
        """
        for previous, current in zip(frames, frames[1:]):
            if current.timestamp_ms <= previous.timestamp_ms:
                raise ValueError("Frame timestamps must be strictly increasing")

        processed = processed_frames if processed_frames is not None else len(frames)
        total = total_frames if total_frames is not None else processed
        valid = [f for f in frames if self.validity.is_valid(f)]

        return self._analyze_valid_frames(valid, shot_type, processed, total)

    # -------------------------------------------------------------------------
    # Pipeline after sampling
    # -------------------------------------------------------------------------

    def _analyze_valid_frames(
        self,
        frames: Sequence[FrameSample],
        shot_type: Optional[str],
        processed_frames: int,
        total_frames: int,
    ) -> AnalysisResult:
        def invalid(reason: InvalidReason) -> AnalysisResult:
            logger.info(f"Analysis invalid: {reason.value}")
            return AnalysisResult.invalid(reason, processed_frames, total_frames)

        if not self.validity.has_coverage(len(frames), processed_frames):
            logger.info(f"Pose coverage too low: {len(frames)}/{processed_frames} valid frames")
            return invalid(InvalidReason.INSUFFICIENT_POSE_COVERAGE)

        side = ReleaseDetector.resolve_handedness(frames)
        release_idx = ReleaseDetector.find_release_index(frames, side)
        if release_idx is None:
            return invalid(InvalidReason.NO_RELEASE_POINT)

        gate = self.gate.evaluate(frames, release_idx, side, shot_type)
        logger.info(
            f"Shot gate {gate.passed_count}/3 (elbow {gate.release_elbow_angle:.0f}°, "
            f"lift {gate.wrist_lift:.2f}, follow-through {gate.follow_through_count})"
        )
        if not gate.passed:
            return invalid(InvalidReason.SHOT_GATE_FAILED)

        metrics = self.extractor.extract(frames, release_idx, side, gate)
        score = self.scorer.score(metrics)
        feedback = self.findings.build(metrics, score)

        logger.info(
            f"Shot scored {score}/100 ({side.value}-handed, release at "
            f"{frames[release_idx].timestamp_ms}ms, {len(feedback.findings)} findings)"
        )

        return AnalysisResult(
            score=score,
            metrics=metrics,
            strengths=feedback.strengths,
            improvements=feedback.improvements,
            is_invalid=False,
            processed_frames=processed_frames,
            total_frames=total_frames,
            coach_tip=feedback.coach_tip,
            findings=feedback.findings,
        )
