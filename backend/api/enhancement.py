"""
Feedback Enhancement

Optional rewrite of the coaching text by an external service. The
service sees the score and metrics but can only replace the wording:
strengths, improvements and the coach tip. Any failure keeps the
engine's own feedback.
"""

import logging
from dataclasses import replace
from typing import Any, Optional

import httpx

from core.domain.analysis import AnalysisResult, CoachTip

logger = logging.getLogger(__name__)


MAX_STRENGTHS = 5
MAX_STRENGTH_CHARS = 220
MAX_IMPROVEMENTS = 7
MAX_IMPROVEMENT_CHARS = 340
MAX_TIP_TITLE_CHARS = 60
MAX_TIP_ISSUE_CHARS = 80
MAX_TIP_BODY_CHARS = 420


def _clean_list(value: Any, max_items: int, max_chars: int) -> Optional[list[str]]:
    """Non-empty trimmed strings, capped; None if the value is unusable."""
    if not isinstance(value, list):
        return None
    items = [item.strip()[:max_chars] for item in value if isinstance(item, str) and item.strip()]
    return items[:max_items] or None


def _clean_tip(value: Any, fallback: Optional[CoachTip]) -> Optional[CoachTip]:
    if not isinstance(value, dict):
        return fallback

    title = value.get("title")
    issue = value.get("main_issue_title")
    body = value.get("body")
    if not all(isinstance(v, str) and v.strip() for v in (title, issue, body)):
        return fallback

    target = value.get("target_score")
    if isinstance(target, (int, float)) and not isinstance(target, bool):
        target = int(min(100, max(0, round(target))))
    elif fallback is not None:
        target = fallback.target_score
    else:
        return fallback

    return CoachTip(
        title=title.strip()[:MAX_TIP_TITLE_CHARS],
        main_issue_title=issue.strip()[:MAX_TIP_ISSUE_CHARS],
        body=body.strip()[:MAX_TIP_BODY_CHARS],
        target_score=target,
    )


def apply_enhancement(result: AnalysisResult, payload: Any) -> AnalysisResult:
    """
    Merge a rewriting service response into a result.

    Only strengths, improvements and coach_tip can change; fields the
    payload leaves out or gets wrong keep the engine's value.
    """
    if not isinstance(payload, dict):
        return result

    strengths = _clean_list(payload.get("strengths"), MAX_STRENGTHS, MAX_STRENGTH_CHARS)
    improvements = _clean_list(payload.get("improvements"), MAX_IMPROVEMENTS, MAX_IMPROVEMENT_CHARS)

    return replace(
        result,
        strengths=strengths if strengths is not None else result.strengths,
        improvements=improvements if improvements is not None else result.improvements,
        coach_tip=_clean_tip(payload.get("coach_tip"), result.coach_tip),
    )


class FeedbackEnhancer:
    """
    Client for the feedback rewriting service.

    Usage:
        enhancer = FeedbackEnhancer("https://coach.example/explain")
        result = await enhancer.enhance(result, shot_type="jump_shot")
    """

    def __init__(
        self,
        url: str,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.timeout = timeout
        self._transport = transport

    @staticmethod
    def build_request(result: AnalysisResult, shot_type: Optional[str]) -> dict:
        return {
            "shot_type": shot_type,
            "score": result.score,
            "metrics": result.metrics.as_dict(),
            "context": {
                "strengths": list(result.strengths),
                "improvements": list(result.improvements),
                "findings": [
                    {"key": f.key, "severity": f.severity, "metric_value": f.metric_value}
                    for f in result.findings
                ],
            },
        }

    async def enhance(self, result: AnalysisResult, shot_type: Optional[str] = None) -> AnalysisResult:
        """Rewrite the feedback of a valid result; invalid or cancelled results pass through."""
        if result.is_invalid or result.is_cancelled:
            return result

        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            ) as client:
                response = await client.post(self.url, json=self.build_request(result, shot_type))
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            logger.warning(f"Feedback enhancement skipped: {e}")
            return result

        return apply_enhancement(result, payload)
