"""
API Schemas

Pydantic models for request/response validation.
"""

from .pose import (
    LandmarkSchema,
    FrameSampleSchema,
)

from .analysis import (
    ShotTypeEnum,
    InvalidReasonEnum,
    ShotMetricsSchema,
    CoachTipSchema,
    CoachFindingSchema,
    ShotAnalysisResponse,
    AnalyzeLandmarksRequest,
    ShotAnalysisRecordSchema,
    HealthResponse,
    WebSocketMessageType,
    WebSocketMessage,
    StartAnalysisMessage,
)

__all__ = [
    # Pose schemas
    "LandmarkSchema",
    "FrameSampleSchema",
    # Analysis schemas
    "ShotTypeEnum",
    "InvalidReasonEnum",
    "ShotMetricsSchema",
    "CoachTipSchema",
    "CoachFindingSchema",
    "ShotAnalysisResponse",
    "AnalyzeLandmarksRequest",
    "ShotAnalysisRecordSchema",
    "HealthResponse",
    # WebSocket schemas
    "WebSocketMessageType",
    "WebSocketMessage",
    "StartAnalysisMessage",
]
