"""
Analysis Store Service

Hand-off of finished analyses to storage. The engine only builds the
record; where and how it is stored is up to the repository.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Protocol

from ..domain.analysis import AnalysisResult, CoachTip, ShotMetrics


@dataclass(frozen=True)
class ShotAnalysisRecord:
    """
    A stored shot analysis.

    Attributes:
        id: Unique record ID
        user_id: Owner of the analysis
        created_at: When the record was built (UTC)
        shot_type: Caller-supplied shot type tag
        engine_version: Version of the analysis engine that produced it
        source: Where the analysis ran (e.g. "server")
        video_meta: Opaque video metadata (processed/total frames, ...)
    """
    id: str
    user_id: str
    created_at: datetime
    shot_type: Optional[str]
    score: int
    metrics: ShotMetrics
    strengths: list[str]
    improvements: list[str]
    coach_tip: Optional[CoachTip]
    engine_version: Optional[str]
    source: str
    video_meta: dict = field(default_factory=dict)


def build_record(
    result: AnalysisResult,
    user_id: str,
    shot_type: Optional[str] = None,
    engine_version: Optional[str] = None,
    source: str = "server",
    video_meta: Optional[dict] = None,
) -> ShotAnalysisRecord:
    """
    Build the storage record for a valid analysis.

    Raises:
        ValueError: for invalid or cancelled results, which are never stored
    """
    if result.is_invalid or result.is_cancelled:
        raise ValueError("Only valid analyses can be stored")

    meta = {
        "processed_frames": result.processed_frames,
        "total_frames": result.total_frames,
    }
    meta.update(video_meta or {})

    return ShotAnalysisRecord(
        id=str(uuid.uuid4()),
        user_id=user_id,
        created_at=datetime.now(timezone.utc),
        shot_type=shot_type,
        score=result.score,
        metrics=result.metrics,
        strengths=list(result.strengths),
        improvements=list(result.improvements),
        coach_tip=result.coach_tip,
        engine_version=engine_version,
        source=source,
        video_meta=meta,
    )


class AnalysisRepository(Protocol):
    """Storage for shot analysis records."""

    def save(self, record: ShotAnalysisRecord) -> ShotAnalysisRecord:
        ...

    def recent(self, user_id: str, limit: int = 20) -> list[ShotAnalysisRecord]:
        ...


class InMemoryAnalysisRepository:
    """Process-local repository; records are lost on restart."""

    def __init__(self):
        self._records: list[ShotAnalysisRecord] = []

    def save(self, record: ShotAnalysisRecord) -> ShotAnalysisRecord:
        self._records.append(record)
        return record

    def recent(self, user_id: str, limit: int = 20) -> list[ShotAnalysisRecord]:
        """Most recent records for a user, newest first."""
        # Newest-inserted first, so records with equal timestamps keep that order
        mine = [r for r in reversed(self._records) if r.user_id == user_id]
        mine.sort(key=lambda r: r.created_at, reverse=True)
        return mine[:limit]
