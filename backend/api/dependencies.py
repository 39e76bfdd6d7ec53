"""
API Dependencies

Objects the routes and the WebSocket handler get through FastAPI's
Depends(), so they can be swapped with app.dependency_overrides.
"""

from typing import Iterator, Optional

from fastapi import Depends

from core.services import (
    AnalysisRepository,
    InMemoryAnalysisRepository,
    ShotAnalyzer,
    create_mediapipe_source,
)
from .enhancement import FeedbackEnhancer
from .settings import Settings, get_settings

# Process-wide store of handed-off analyses
_repository = InMemoryAnalysisRepository()


def get_repository() -> AnalysisRepository:
    return _repository


def get_analyzer(settings: Settings = Depends(get_settings)) -> Iterator[ShotAnalyzer]:
    """
    Analyzer with its own landmark source for one request.

    Video-mode estimators need increasing timestamps, so concurrent
    runs must not share a source.
    """
    source = create_mediapipe_source(settings.model_path)
    try:
        yield ShotAnalyzer(source)
    finally:
        source.close()


def get_enhancer(settings: Settings = Depends(get_settings)) -> Optional[FeedbackEnhancer]:
    if not settings.enhancer_url:
        return None
    return FeedbackEnhancer(settings.enhancer_url, timeout=settings.enhancer_timeout)
