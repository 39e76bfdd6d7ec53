"""
Findings Engine Service

Converts shot metrics into ranked coaching findings, strengths, the
improvements list and the headline coach tip. Fully deterministic:
the same metrics and score always give the same feedback.
"""

import math
from dataclasses import dataclass
from typing import Optional

from ..config import FindingsConfig
from ..domain.analysis import CoachFinding, CoachTip, ShotMetrics


@dataclass(frozen=True)
class FindingTemplate:
    """
    Fixed coaching copy for one metric.

    success_criteria may use {pct} (the current percentage) and
    {goal} (the percentage to reach).
    """
    label: str
    title: str
    diagnosis: str
    correction: str
    drill: str
    success_criteria: str
    strength: str


TEMPLATES: dict[str, FindingTemplate] = {
    "stance_width": FindingTemplate(
        label="Stance width",
        title="Set a shoulder-width base",
        diagnosis="Your feet are too narrow or too wide for your shoulders, which costs balance and power.",
        correction="Set your feet about shoulder-width apart with your toes pointed at the rim.",
        drill="Stance checks: 10 form shots, resetting your feet against a tape line before each one.",
        success_criteria="Stance width from {pct}% to {goal}% or higher.",
        strength="Solid, shoulder-width base",
    ),
    "lateral_sway": FindingTemplate(
        label="Stability",
        title="Quiet your torso",
        diagnosis="Your upper body drifts side to side during the shot.",
        correction="Keep your chest square and rise straight up through the shot.",
        drill="Line shooting: 15 shots straddling a court line, landing on the same spot you jumped from.",
        success_criteria="Stability from {pct}% to {goal}% or higher.",
        strength="Excellent torso stability throughout the shot",
    ),
    "knee_dip": FindingTemplate(
        label="Knee loading",
        title="Load your legs",
        diagnosis="You are not bending your knees enough to generate power from your legs.",
        correction="Dip 20-40 degrees at the knees before rising into the shot.",
        drill="Dip-and-rise: 10 shots from a chair-height squat, exploding up on each.",
        success_criteria="Knee loading from {pct}% to {goal}% or higher.",
        strength="Good knee bend loading the shot",
    ),
    "vertical_drive": FindingTemplate(
        label="Vertical drive",
        title="Drive straight up",
        diagnosis="Your body travels forward or sideways instead of up into the release.",
        correction="Push through the floor and rise vertically, landing where you took off.",
        drill="Spot jumps: 10 shots landing inside a taped square around your takeoff point.",
        success_criteria="Vertical drive from {pct}% to {goal}% or higher.",
        strength="Strong vertical drive into the release",
    ),
    "elbow_alignment": FindingTemplate(
        label="Alignment",
        title="Extend through the elbow",
        diagnosis="Your shooting arm is not fully extended at release.",
        correction="Finish with your shoulder, elbow and wrist in a straight line toward the rim.",
        drill="One-hand form shooting: 20 shots close to the rim, holding full extension.",
        success_criteria="Alignment from {pct}% to {goal}% or higher.",
        strength="Great elbow alignment at release point",
    ),
    "elbow_under_ball": FindingTemplate(
        label="Elbow position",
        title="Get your elbow under the ball",
        diagnosis="Your elbow flares out, so the forearm is not vertical at release.",
        correction="Tuck your elbow so it sits directly under the ball as you lift.",
        drill="Wall shots: 15 shots standing beside a wall so your elbow cannot flare.",
        success_criteria="Elbow position from {pct}% to {goal}% or higher.",
        strength="Elbow stacked under the ball",
    ),
    "release_height": FindingTemplate(
        label="Release",
        title="Release higher",
        diagnosis="You release the ball too low, which flattens your arc.",
        correction="Lift the ball above your forehead and release at the top of your reach.",
        drill="High-release shots: 15 shots aiming to release above an imaginary line over your head.",
        success_criteria="Release from {pct}% to {goal}% or higher.",
        strength="High, consistent release point",
    ),
    "wrist_flick": FindingTemplate(
        label="Flick",
        title="Snap your wrist",
        diagnosis="Your wrist does not snap through on the release, reducing backspin and touch.",
        correction="Snap your wrist down so your fingers point at the rim after release.",
        drill="Lying-down flicks: 25 shots straight up from your back, focusing on the wrist snap.",
        success_criteria="Flick from {pct}% to {goal}% or higher.",
        strength="Consistent wrist flick on follow-through",
    ),
    "follow_through_hold": FindingTemplate(
        label="Follow-through",
        title="Hold your follow-through",
        diagnosis="Your shooting hand drops right after release.",
        correction="Hold your hand up in the 'cookie jar' position until the ball hits the rim.",
        drill="Freeze finishes: 15 shots holding the follow-through for a two-count.",
        success_criteria="Follow-through from {pct}% to {goal}% or higher.",
        strength="Disciplined follow-through hold",
    ),
    "landing_balance": FindingTemplate(
        label="Landing",
        title="Land balanced",
        diagnosis="Your feet land wider or narrower than they took off, a sign of drifting.",
        correction="Land on both feet with the same width you started with.",
        drill="Stick the landing: 10 shots freezing on landing for a two-count.",
        success_criteria="Landing from {pct}% to {goal}% or higher.",
        strength="Balanced, controlled landing",
    ),
}

FILLER_STRENGTHS = (
    "Good overall shooting mechanics",
    "Consistent form throughout the motion",
    "Solid foundation for improvement",
)


@dataclass(frozen=True)
class Feedback:
    """Everything the findings engine produces for one shot."""
    findings: list[CoachFinding]
    strengths: list[str]
    improvements: list[str]
    coach_tip: CoachTip


def target_score(score: int, step: int = 5) -> int:
    """At least one step above score, rounded up to a multiple of step, capped at 100."""
    return min(100, math.ceil((score + step) / step) * step)


def _pct(value: float) -> int:
    return int(math.floor(value * 100 + 0.5))


class FindingsEngine:
    """
    Rule-based coaching feedback.

    Usage:
        engine = FindingsEngine()
        feedback = engine.build(metrics, score=72)
        print(feedback.coach_tip.main_issue_title)
    """

    def __init__(self, config: FindingsConfig = FindingsConfig()):
        self.config = config

    def build(self, metrics: ShotMetrics, score: int) -> Feedback:
        findings = self.rank(self.findings(metrics))
        return Feedback(
            findings=findings,
            strengths=self.strengths(metrics),
            improvements=[f.coaching_text for f in findings[:self.config.max_improvements]],
            coach_tip=self.coach_tip(findings, score),
        )

    # -------------------------------------------------------------------------
    # Findings
    # -------------------------------------------------------------------------

    def severity(self, value: float) -> int:
        if value < self.config.severity_3_below:
            return 3
        if value < self.config.severity_2_below:
            return 2
        return 1

    def findings(self, metrics: ShotMetrics) -> list[CoachFinding]:
        """One finding per metric below the cutoff, in metric order."""
        goal = _pct(self.config.strength_cutoff)
        cutoff = _pct(self.config.finding_cutoff)
        out = []

        for key, value in metrics.as_dict().items():
            if value >= self.config.finding_cutoff:
                continue
            template = TEMPLATES[key]
            pct = _pct(value)
            out.append(CoachFinding(
                key=key,
                severity=self.severity(value),
                metric_value=value,
                title=template.title,
                diagnosis=template.diagnosis,
                evidence=f"{template.label} measured at {pct}% (target {cutoff}% or higher).",
                correction=template.correction,
                drill=template.drill,
                success_criteria=template.success_criteria.format(pct=pct, goal=goal),
            ))

        return out

    @staticmethod
    def rank(findings: list[CoachFinding]) -> list[CoachFinding]:
        """Most severe first, then lowest metric value; ties keep metric order."""
        return sorted(findings, key=lambda f: (-f.severity, f.metric_value))

    # -------------------------------------------------------------------------
    # Strengths and coach tip
    # -------------------------------------------------------------------------

    def strengths(self, metrics: ShotMetrics) -> list[str]:
        """Exactly max_strengths entries: best metrics first, then fillers."""
        strong = [
            (key, value) for key, value in metrics.as_dict().items()
            if value >= self.config.strength_cutoff
        ]
        strong.sort(key=lambda item: -item[1])

        out = [TEMPLATES[key].strength for key, _ in strong[:self.config.max_strengths]]
        for filler in FILLER_STRENGTHS:
            if len(out) >= self.config.max_strengths:
                break
            out.append(filler)
        return out

    def coach_tip(self, ranked: list[CoachFinding], score: int) -> CoachTip:
        target = target_score(score, self.config.target_step)
        main: Optional[CoachFinding] = ranked[0] if ranked else None

        if main is None:
            return CoachTip(
                title="Coach Tip",
                main_issue_title="Keep refining your form",
                body=(
                    "No major faults detected. Keep repeating this motion and "
                    "record more shots to build consistency."
                ),
                target_score=target,
            )

        return CoachTip(
            title="Coach Tip",
            main_issue_title=main.title,
            body=f"{main.diagnosis} {main.correction} Try this: {main.drill}",
            target_score=target,
        )
