"""
REST API Routes

FastAPI routes for basketball shot analysis.
Handles HTTP requests for video analysis, landmark analysis and history.
"""

import os
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Form, Query

from .schemas import (
    AnalyzeLandmarksRequest,
    CoachFindingSchema,
    CoachTipSchema,
    HealthResponse,
    InvalidReasonEnum,
    ShotAnalysisRecordSchema,
    ShotAnalysisResponse,
    ShotMetricsSchema,
    ShotTypeEnum,
)
from .dependencies import get_analyzer, get_enhancer, get_repository
from .enhancement import FeedbackEnhancer
from .settings import Settings, get_settings
from core.domain import AnalysisResult, CoachTip, FrameSample, Landmark, ShotMetrics
from core.services import (
    AnalysisRepository,
    ShotAnalysisRecord,
    ShotAnalyzer,
    VideoOpenError,
    build_record,
    remove_temp_video,
    save_temp_video,
)

# Configure logging
logger = logging.getLogger(__name__)

# Create router
router = APIRouter()

API_VERSION = "1.0.0"

# =============================================================================
# Health Check
# =============================================================================

@router.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="Health check endpoint"
)
async def health_check(settings: Settings = Depends(get_settings)) -> HealthResponse:
    """
    Check if the API is running and the pose model is in place.

    Returns:
        Health status and version information
    """
    model_ok = os.path.isfile(settings.model_path)
    if not model_ok:
        logger.warning(f"Pose model not found at {settings.model_path}")

    return HealthResponse(
        status="healthy",
        version=API_VERSION,
        model_available=model_ok,
        enhancer_configured=bool(settings.enhancer_url),
    )


# =============================================================================
# Shot Analysis
# =============================================================================

@router.post(
    "/analysis/video",
    response_model=ShotAnalysisResponse,
    tags=["Shot Analysis"],
    summary="Analyze a basketball shot video"
)
async def analyze_video(
    video: UploadFile = File(..., description="Video file (MP4, MOV)"),
    shot_type: Optional[ShotTypeEnum] = Form(None, description="Shot type hint"),
    user_id: Optional[str] = Form(None, description="Store the result for this user"),
    analyzer: ShotAnalyzer = Depends(get_analyzer),
    enhancer: Optional[FeedbackEnhancer] = Depends(get_enhancer),
    repository: AnalysisRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
) -> ShotAnalysisResponse:
    """
    Analyze a basketball shot from an uploaded video file.

    The video will be:
    1. Saved temporarily
    2. Sampled every 0.1s (first 30s) with MediaPipe
    3. Checked for a real shooting motion
    4. Scored and given coaching feedback

    A video that cannot be scored still returns 200, with is_invalid
    set and a message explaining why.

    Args:
        video: Video file upload
        shot_type: Type of shot (free throws use relaxed thresholds)
        user_id: If given, valid results are stored for this user

    Returns:
        Complete shot analysis with metrics and coaching feedback
    """
    shot = shot_type.value if shot_type else None
    temp_path = None
    try:
        suffix = os.path.splitext(video.filename or "")[1] or ".mp4"
        temp_path = save_temp_video(await video.read(), suffix)

        result = await analyzer.analyze_video(temp_path, shot_type=shot)
        if enhancer is not None:
            result = await enhancer.enhance(result, shot)

        if user_id and not (result.is_invalid or result.is_cancelled):
            repository.save(build_record(
                result,
                user_id,
                shot_type=shot,
                engine_version=settings.engine_version,
                video_meta={"filename": video.filename},
            ))

        return result_to_response(result)

    except VideoOpenError as e:
        logger.warning(f"Rejected upload: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Video analysis failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    finally:
        remove_temp_video(temp_path)


@router.post(
    "/analysis/landmarks",
    response_model=ShotAnalysisResponse,
    tags=["Shot Analysis"],
    summary="Analyze pre-detected landmark frames"
)
async def analyze_landmarks(request: AnalyzeLandmarksRequest) -> ShotAnalysisResponse:
    """
    Analyze a shot from landmarks the client already detected.

    Runs everything after sampling: visibility filter, release point,
    shot gate, metrics, score and feedback.
    """
    frames = [
        FrameSample(
            landmarks=[
                Landmark(x=lm.x, y=lm.y, z=lm.z, visibility=lm.visibility)
                for lm in frame.landmarks
            ],
            timestamp_ms=frame.timestamp_ms,
        )
        for frame in request.frames
    ]

    try:
        result = ShotAnalyzer().analyze_frames(
            frames,
            shot_type=request.shot_type.value if request.shot_type else None,
            processed_frames=request.processed_frames,
            total_frames=request.total_frames,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return result_to_response(result)


@router.get(
    "/analysis/recent/{user_id}",
    response_model=List[ShotAnalysisRecordSchema],
    tags=["Shot Analysis"],
    summary="Recent stored analyses for a user"
)
async def recent_analyses(
    user_id: str,
    limit: int = Query(20, ge=1, le=50, description="Maximum records to return"),
    repository: AnalysisRepository = Depends(get_repository),
) -> List[ShotAnalysisRecordSchema]:
    """Stored analyses for a user, most recent first."""
    return [_convert_record_to_schema(r) for r in repository.recent(user_id, limit)]


# =============================================================================
# Helper Functions
# =============================================================================

def _convert_metrics(metrics: ShotMetrics) -> ShotMetricsSchema:
    return ShotMetricsSchema(**metrics.as_dict())


def _convert_tip(tip: Optional[CoachTip]) -> Optional[CoachTipSchema]:
    if tip is None:
        return None
    return CoachTipSchema(
        title=tip.title,
        main_issue_title=tip.main_issue_title,
        body=tip.body,
        target_score=tip.target_score,
    )


def result_to_response(result: AnalysisResult) -> ShotAnalysisResponse:
    """Convert domain AnalysisResult to API response schema."""
    findings = [
        CoachFindingSchema(
            key=f.key,
            severity=f.severity,
            metric_value=f.metric_value,
            title=f.title,
            diagnosis=f.diagnosis,
            evidence=f.evidence,
            correction=f.correction,
            drill=f.drill,
            success_criteria=f.success_criteria,
        )
        for f in result.findings
    ]

    return ShotAnalysisResponse(
        score=result.score,
        metrics=_convert_metrics(result.metrics),
        strengths=list(result.strengths),
        improvements=list(result.improvements),
        coach_tip=_convert_tip(result.coach_tip),
        findings=findings,
        is_invalid=result.is_invalid,
        is_cancelled=result.is_cancelled,
        invalid_reason=(
            InvalidReasonEnum(result.invalid_reason.value)
            if result.invalid_reason else None
        ),
        message_if_invalid=result.message_if_invalid,
        processed_frames=result.processed_frames,
        total_frames=result.total_frames,
    )


def _convert_record_to_schema(record: ShotAnalysisRecord) -> ShotAnalysisRecordSchema:
    return ShotAnalysisRecordSchema(
        id=record.id,
        user_id=record.user_id,
        created_at=record.created_at,
        shot_type=record.shot_type,
        score=record.score,
        metrics=_convert_metrics(record.metrics),
        strengths=list(record.strengths),
        improvements=list(record.improvements),
        coach_tip=_convert_tip(record.coach_tip),
        engine_version=record.engine_version,
        source=record.source,
        video_meta=dict(record.video_meta),
    )
