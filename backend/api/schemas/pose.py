"""
Pose API Schemas

Pydantic models for landmark data sent by clients that run pose
detection themselves.
"""

from pydantic import BaseModel, Field
from typing import List


class LandmarkSchema(BaseModel):
    """
    Single body landmark.

    Coordinates are normalized to the frame; estimators can report
    points slightly outside it, so x and y are not range-checked.
    NaN and infinities are rejected.
    """
    x: float = Field(..., allow_inf_nan=False, description="Horizontal position (0=left, 1=right)")
    y: float = Field(..., allow_inf_nan=False, description="Vertical position (0=top, 1=bottom)")
    z: float = Field(0.0, allow_inf_nan=False, description="Depth (negative=closer to camera)")
    visibility: float = Field(0.0, ge=0.0, le=1.0, description="Detection confidence")

    class Config:
        json_schema_extra = {
            "example": {
                "x": 0.45,
                "y": 0.32,
                "z": -0.15,
                "visibility": 0.95,
            }
        }


class FrameSampleSchema(BaseModel):
    """
    Landmarks detected for one sampled instant of a video.

    Landmarks are in MediaPipe order (33 points).
    """
    landmarks: List[LandmarkSchema] = Field(..., description="Body landmarks in MediaPipe order")
    timestamp_ms: int = Field(..., ge=0, description="Video timestamp in milliseconds")

    class Config:
        json_schema_extra = {
            "example": {
                "landmarks": [
                    {"x": 0.5, "y": 0.2, "z": 0.0, "visibility": 0.99}
                ],
                "timestamp_ms": 1500,
            }
        }
