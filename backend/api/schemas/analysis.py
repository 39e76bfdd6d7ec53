"""
Analysis API Schemas

Pydantic models for shot analysis API requests and responses.
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from enum import Enum
from datetime import datetime

from .pose import FrameSampleSchema


class ShotTypeEnum(str, Enum):
    """Shot type hints for API."""
    JUMP_SHOT = "jump_shot"
    FREE_THROW = "free_throw"
    THREE_POINTER = "three_pointer"
    LAYUP = "layup"


class InvalidReasonEnum(str, Enum):
    """Why an analysis produced no score."""
    VIDEO_TOO_SHORT = "video_too_short"
    DETECTION_FAILED = "detection_failed"
    INSUFFICIENT_POSE_COVERAGE = "insufficient_pose_coverage"
    NO_RELEASE_POINT = "no_release_point"
    SHOT_GATE_FAILED = "shot_gate_failed"
    CANCELLED = "cancelled"


class ShotMetricsSchema(BaseModel):
    """
    The ten form metrics, each scored 0 (poor) to 1 (ideal).
    """
    stance_width: float = Field(..., ge=0.0, le=1.0, description="Feet separation vs shoulder width")
    lateral_sway: float = Field(..., ge=0.0, le=1.0, description="Torso stability across the clip")
    knee_dip: float = Field(..., ge=0.0, le=1.0, description="Knee loading before release")
    vertical_drive: float = Field(..., ge=0.0, le=1.0, description="Vertical vs horizontal body travel")
    elbow_alignment: float = Field(..., ge=0.0, le=1.0, description="Arm extension at release")
    elbow_under_ball: float = Field(..., ge=0.0, le=1.0, description="Forearm vertical at release")
    release_height: float = Field(..., ge=0.0, le=1.0, description="Wrist lift above baseline")
    wrist_flick: float = Field(..., ge=0.0, le=1.0, description="Forearm snap after release")
    follow_through_hold: float = Field(..., ge=0.0, le=1.0, description="Wrist held high after release")
    landing_balance: float = Field(..., ge=0.0, le=1.0, description="Stable base after the shot")

    class Config:
        json_schema_extra = {
            "example": {
                "stance_width": 0.9,
                "lateral_sway": 1.0,
                "knee_dip": 0.6,
                "vertical_drive": 0.8,
                "elbow_alignment": 0.94,
                "elbow_under_ball": 0.85,
                "release_height": 0.83,
                "wrist_flick": 0.7,
                "follow_through_hold": 0.71,
                "landing_balance": 1.0,
            }
        }


class CoachTipSchema(BaseModel):
    """
    Headline coaching advice for the shot.
    """
    title: str = Field(..., description="Short headline")
    main_issue_title: str = Field(..., description="The single biggest thing to work on")
    body: str = Field(..., description="What to change and how to practise it")
    target_score: int = Field(..., ge=0, le=100, description="Next score milestone")

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Coach's Tip",
                "main_issue_title": "Load your legs",
                "body": "Your knees barely bend before the release. Sit into the shot...",
                "target_score": 80,
            }
        }


class CoachFindingSchema(BaseModel):
    """
    One sub-par metric with diagnosis and a drill to fix it.
    """
    key: str = Field(..., description="Metric name")
    severity: int = Field(..., ge=1, le=3, description="Severity (3=most severe)")
    metric_value: float = Field(..., ge=0.0, le=1.0, description="Measured metric value")
    title: str = Field(..., description="Short summary")
    diagnosis: str = Field(..., description="What went wrong")
    evidence: str = Field(..., description="Measurement behind the finding")
    correction: str = Field(..., description="How to fix it")
    drill: str = Field(..., description="Practice drill")
    success_criteria: str = Field(..., description="How to know it is fixed")


class ShotAnalysisResponse(BaseModel):
    """
    Complete shot analysis result.

    This is the main response from the analyze endpoints.
    """
    # Score
    score: int = Field(..., ge=0, le=100, description="Overall shot score")
    metrics: ShotMetricsSchema = Field(..., description="Per-metric scores")

    # Coaching
    strengths: List[str] = Field(default_factory=list, description="What went well")
    improvements: List[str] = Field(default_factory=list, description="What to work on, most important first")
    coach_tip: Optional[CoachTipSchema] = Field(None, description="Headline coaching advice")
    findings: List[CoachFindingSchema] = Field(default_factory=list, description="Structured findings")

    # Validity
    is_invalid: bool = Field(False, description="True if the video could not be scored")
    is_cancelled: bool = Field(False, description="True if the analysis was cancelled")
    invalid_reason: Optional[InvalidReasonEnum] = Field(None, description="Why no score was produced")
    message_if_invalid: Optional[str] = Field(None, description="User-facing explanation")

    # Sampling
    processed_frames: int = Field(..., ge=0, description="Instants probed for pose")
    total_frames: int = Field(..., ge=0, description="Instants planned for the clip")

    class Config:
        json_schema_extra = {
            "example": {
                "score": 78,
                "strengths": ["Strong arm extension at release"],
                "improvements": ["Load your legs: ..."],
                "is_invalid": False,
                "processed_frames": 40,
                "total_frames": 40,
            }
        }


class AnalyzeLandmarksRequest(BaseModel):
    """
    Request to analyze pre-extracted landmark frames.

    Used when the frontend has already done pose detection.
    """
    frames: List[FrameSampleSchema] = Field(..., description="Sampled frames in time order")
    shot_type: Optional[ShotTypeEnum] = Field(None, description="Shot type hint")
    processed_frames: Optional[int] = Field(None, ge=0, description="Instants probed (defaults to len(frames))")
    total_frames: Optional[int] = Field(None, ge=0, description="Instants planned (defaults to processed_frames)")


class ShotAnalysisRecordSchema(BaseModel):
    """
    A stored analysis as returned by the history endpoint.
    """
    id: str = Field(..., description="Unique record ID")
    user_id: str = Field(..., description="Owner of the analysis")
    created_at: datetime = Field(..., description="When the analysis was stored")
    shot_type: Optional[str] = Field(None, description="Shot type hint")
    score: int = Field(..., ge=0, le=100, description="Overall shot score")
    metrics: ShotMetricsSchema = Field(..., description="Per-metric scores")
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    coach_tip: Optional[CoachTipSchema] = Field(None)
    engine_version: Optional[str] = Field(None, description="Analysis engine version")
    source: str = Field(..., description="Where the analysis ran")
    video_meta: dict = Field(default_factory=dict, description="Frame counts and other video metadata")


class HealthResponse(BaseModel):
    """
    Health check response.
    """
    status: str = Field("healthy", description="Service status")
    version: str = Field(..., description="API version")
    model_available: bool = Field(..., description="Whether the pose model file is present")
    enhancer_configured: bool = Field(False, description="Whether feedback rewriting is enabled")

    # "model_" is a protected namespace in pydantic v2
    model_config = {"protected_namespaces": ()}


# =============================================================================
# WebSocket Message Schemas
# =============================================================================

class WebSocketMessageType(str, Enum):
    """Types of WebSocket messages."""
    # Client -> Server
    START_ANALYSIS = "start_analysis"  # Upload a video and start analysing it
    CANCEL = "cancel"                  # Cancel the running analysis

    # Server -> Client
    SESSION_STARTED = "session_started"
    PROGRESS = "progress"              # Percentage of instants probed
    ANALYSIS_RESULT = "analysis_result"
    ERROR = "error"


class WebSocketMessage(BaseModel):
    """
    Base WebSocket message structure.

    All WebSocket communication uses this format.
    """
    type: WebSocketMessageType = Field(..., description="Message type")
    data: dict = Field(default_factory=dict, description="Message payload")
    timestamp: int = Field(..., description="Unix timestamp in milliseconds")


class StartAnalysisMessage(BaseModel):
    """
    Payload of a start_analysis message.
    """
    video_base64: str = Field(..., min_length=1, description="Base64 encoded video file")
    shot_type: Optional[ShotTypeEnum] = Field(None, description="Shot type hint")
    filename: Optional[str] = Field(None, description="Original file name, used for the extension")
