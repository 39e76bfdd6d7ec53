"""
Services Layer

Business logic services for basketball shot analysis.
These services orchestrate domain models and external dependencies.
"""

from .pose_estimator import MediaPipePoseEstimator, PoseEstimator
from .landmark_source import LandmarkSource, create_mediapipe_source
from .video_reader import VideoReader, VideoOpenError, save_temp_video, remove_temp_video
from .validity_filter import ValidityFilter
from .frame_sampler import CancellationToken, FrameSampler, SamplingResult
from .angle_calculator import AngleCalculator
from .release_detector import ReleaseDetector
from .shot_gate import ShotGate
from .metric_extractor import MetricExtractor
from .scorer import ShotScorer
from .findings import FindingsEngine, target_score
from .shot_analyzer import ShotAnalyzer
from .analysis_store import (
    AnalysisRepository,
    InMemoryAnalysisRepository,
    ShotAnalysisRecord,
    build_record,
)

__all__ = [
    "MediaPipePoseEstimator",
    "PoseEstimator",
    "LandmarkSource",
    "create_mediapipe_source",
    "VideoReader",
    "VideoOpenError",
    "save_temp_video",
    "remove_temp_video",
    "ValidityFilter",
    "CancellationToken",
    "FrameSampler",
    "SamplingResult",
    "AngleCalculator",
    "ReleaseDetector",
    "ShotGate",
    "MetricExtractor",
    "ShotScorer",
    "FindingsEngine",
    "target_score",
    "ShotAnalyzer",
    "AnalysisRepository",
    "InMemoryAnalysisRepository",
    "ShotAnalysisRecord",
    "build_record",
]
