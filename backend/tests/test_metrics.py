import math
from dataclasses import asdict, replace

import pytest

from core.config import ScoringWeights
from core.domain import BodyPart, FrameSample, Handedness, ShotMetrics
from core.services import AngleCalculator, MetricExtractor, ShotAnalyzer, ShotGate, ShotScorer
from core.services.metric_extractor import bucket, clamp01


RIGHT = Handedness.RIGHT


def frame(make_landmarks, overrides=None, count=33, timestamp_ms=0):
    return FrameSample(landmarks=make_landmarks(overrides, count=count), timestamp_ms=timestamp_ms)


@pytest.fixture
def clean_metrics(clean_shot_frames):
    gate = ShotGate().evaluate(clean_shot_frames, 12, RIGHT)
    return MetricExtractor().extract(clean_shot_frames, 12, RIGHT, gate)


# =============================================================================
# Helpers
# =============================================================================

def test_bucket_picks_first_edge_above_value():
    edges, scores = (0.05, 0.10, 0.15), (1.0, 0.8, 0.5, 0.3)
    assert bucket(0.0, edges, scores) == 1.0
    assert bucket(0.07, edges, scores) == 0.8
    assert bucket(0.10, edges, scores) == 0.5
    assert bucket(0.2, edges, scores) == 0.3


def test_clamp01():
    assert clamp01(-0.3) == 0.0
    assert clamp01(0.4) == 0.4
    assert clamp01(1.7) == 1.0


@pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
def test_clamp01_sends_non_finite_to_neutral(value):
    assert clamp01(value) == 0.5
    assert clamp01(value, neutral=0.3) == 0.3


def test_elbow_angle_straight_and_bent(make_landmarks):
    straight = frame(make_landmarks, {
        BodyPart.RIGHT_SHOULDER: (0.55, 0.30),
        BodyPart.RIGHT_ELBOW: (0.55, 0.20),
        BodyPart.RIGHT_WRIST: (0.55, 0.10),
    })
    bent = frame(make_landmarks, {
        BodyPart.RIGHT_SHOULDER: (0.55, 0.30),
        BodyPart.RIGHT_ELBOW: (0.55, 0.20),
        BodyPart.RIGHT_WRIST: (0.65, 0.20),
    })
    assert AngleCalculator.calculate_elbow_angle(straight, RIGHT) == pytest.approx(180.0)
    assert AngleCalculator.calculate_elbow_angle(bent, RIGHT) == pytest.approx(90.0)


# =============================================================================
# Clean shot
# =============================================================================

def test_clean_shot_metrics(clean_metrics):
    elbow_offset = 0.05 * math.tan(math.radians(2.5))

    assert clean_metrics.stance_width == pytest.approx(1.0)
    assert clean_metrics.lateral_sway == 1.0
    assert clean_metrics.knee_dip == 0.0
    assert clean_metrics.vertical_drive == 0.5
    assert clean_metrics.elbow_alignment == pytest.approx(1 - 5 / 90)
    assert clean_metrics.elbow_under_ball == pytest.approx(1 - elbow_offset / 0.15)
    assert clean_metrics.release_height == pytest.approx(0.25 / 0.30)
    assert clean_metrics.wrist_flick == 1.0
    assert clean_metrics.follow_through_hold == pytest.approx(5 / 7)
    assert clean_metrics.landing_balance == pytest.approx(1.0)


def test_all_metrics_in_unit_range(clean_metrics):
    assert all(0.0 <= v <= 1.0 for v in clean_metrics.as_dict().values())


def test_metric_names_in_declaration_order():
    assert ShotMetrics.names() == [
        "stance_width", "lateral_sway", "knee_dip", "vertical_drive",
        "elbow_alignment", "elbow_under_ball", "release_height",
        "wrist_flick", "follow_through_hold", "landing_balance",
    ]
    assert set(ShotMetrics.zeros().as_dict().values()) == {0.0}


# =============================================================================
# Individual metrics
# =============================================================================

def test_narrow_stance_scores_zero(make_landmarks):
    narrow = frame(make_landmarks, {
        BodyPart.LEFT_ANKLE: (0.475, 0.85),
        BodyPart.RIGHT_ANKLE: (0.525, 0.85),
    })
    assert clamp01(MetricExtractor().stance_width(narrow)) == pytest.approx(0.0, abs=1e-9)


def test_missing_landmarks_give_neutral(make_landmarks):
    extractor = MetricExtractor()
    # Only the first 12 landmarks: no right shoulder, hips or ankles
    partial = frame(make_landmarks, count=12)

    assert extractor.stance_width(partial) == 0.5
    assert extractor.vertical_drive([partial, partial], 1) == 0.5
    assert extractor.landing_balance([partial, partial], 0) == 0.5


def test_knee_dip_compares_release_to_earlier_frames(make_landmarks):
    earlier = [frame(make_landmarks, timestamp_ms=i * 100) for i in range(3)]
    release = frame(make_landmarks, {BodyPart.RIGHT_KNEE: (0.58, 0.70)}, timestamp_ms=300)
    frames = earlier + [release]

    before = AngleCalculator.calculate_knee_angle(earlier[0], RIGHT)
    at_release = AngleCalculator.calculate_knee_angle(release, RIGHT)
    dip = MetricExtractor().knee_dip(frames, 3, RIGHT)

    assert dip == pytest.approx((before - at_release) / 40.0)
    assert 0.0 < dip < 1.0


def test_knee_dip_without_earlier_frames_is_zero(make_landmarks):
    assert MetricExtractor().knee_dip([frame(make_landmarks)], 0, RIGHT) == 0.0


def test_knee_straightening_into_release_scores_no_dip(make_landmarks):
    bent = {BodyPart.RIGHT_KNEE: (0.58, 0.70)}
    earlier = [frame(make_landmarks, bent, timestamp_ms=i * 100) for i in range(3)]
    release = frame(make_landmarks, timestamp_ms=300)

    dip = MetricExtractor().knee_dip(earlier + [release], 3, RIGHT)

    assert dip < 0.0
    assert clamp01(dip) == 0.0


def test_sway_penalizes_torso_drift(make_landmarks):
    def torso_at(dx):
        return frame(make_landmarks, {
            BodyPart.LEFT_SHOULDER: (0.45 + dx, 0.30),
            BodyPart.RIGHT_SHOULDER: (0.55 + dx, 0.30),
            BodyPart.LEFT_HIP: (0.46 + dx, 0.55),
            BodyPart.RIGHT_HIP: (0.54 + dx, 0.55),
        })

    steady = [torso_at(0.0), torso_at(0.01), torso_at(0.02)]
    drifting = [torso_at(0.0), torso_at(0.12), torso_at(0.24)]

    extractor = MetricExtractor()
    assert extractor.lateral_sway(steady) == 1.0
    assert extractor.lateral_sway(drifting) == 0.5
    assert extractor.lateral_sway(steady[:1]) == 1.0


def test_vertical_drive_rewards_vertical_travel(make_landmarks):
    def torso_at(dx, dy):
        return frame(make_landmarks, {
            BodyPart.LEFT_SHOULDER: (0.45 + dx, 0.30 + dy),
            BodyPart.RIGHT_SHOULDER: (0.55 + dx, 0.30 + dy),
            BodyPart.LEFT_HIP: (0.46 + dx, 0.55 + dy),
            BodyPart.RIGHT_HIP: (0.54 + dx, 0.55 + dy),
        })

    extractor = MetricExtractor()
    assert extractor.vertical_drive([torso_at(0, 0), torso_at(0, -0.1)], 1) == pytest.approx(1.0)
    assert extractor.vertical_drive([torso_at(0, 0), torso_at(0.1, -0.1)], 1) == pytest.approx(0.5)


def test_undefined_elbow_angle_scores_zero(make_landmarks):
    collapsed = frame(make_landmarks, {
        BodyPart.RIGHT_ELBOW: (0.58, 0.40),
        BodyPart.RIGHT_WRIST: (0.58, 0.40),
    })
    assert MetricExtractor().elbow_alignment(collapsed, RIGHT) == 0.0


def with_point(frame_sample, part, **changes):
    landmarks = list(frame_sample.landmarks)
    landmarks[part] = replace(landmarks[part], **changes)
    return replace(frame_sample, landmarks=landmarks)


def test_non_finite_elbow_does_not_earn_full_credit(clean_shot_frames):
    frames = list(clean_shot_frames)
    frames[12] = with_point(frames[12], BodyPart.RIGHT_ELBOW, x=math.nan)

    assert frames[12].get_landmark(BodyPart.RIGHT_ELBOW) is None

    result = ShotAnalyzer().analyze_frames(frames)

    # Lift and follow-through still carry the gate
    assert not result.is_invalid
    assert result.metrics.elbow_alignment == 0.0
    assert result.metrics.elbow_under_ball == 0.5


def test_non_finite_wrist_is_left_out_of_lift_baseline(clean_shot_frames, clean_metrics):
    frames = list(clean_shot_frames)
    frames[3] = with_point(frames[3], BodyPart.RIGHT_WRIST, y=math.nan)

    gate = ShotGate().evaluate(frames, 12, RIGHT)
    metrics = MetricExtractor().extract(frames, 12, RIGHT, gate)

    assert gate.wrist_lift == pytest.approx(0.25)
    assert metrics.release_height == pytest.approx(clean_metrics.release_height)
    assert metrics.release_height < 1.0


def test_no_flick_after_release(make_landmarks):
    only = [frame(make_landmarks)]
    assert MetricExtractor().wrist_flick(only, 0, RIGHT) == 0.3


# =============================================================================
# Scoring
# =============================================================================

def test_weights_sum_to_one():
    assert sum(asdict(ScoringWeights()).values()) == pytest.approx(1.0)


def test_score_bounds():
    scorer = ShotScorer()
    perfect = ShotMetrics(**{name: 1.0 for name in ShotMetrics.names()})

    assert scorer.score(perfect) == 100
    assert scorer.score(ShotMetrics.zeros()) == 0


def test_score_matches_weighted_sum(clean_metrics):
    scorer = ShotScorer()
    score = scorer.score(clean_metrics)

    assert score == 80
    assert abs(score - 100 * scorer.weighted_sum(clean_metrics)) <= 1


def test_elbow_alignment_dominates():
    scorer = ShotScorer()
    elbow_only = ShotMetrics(elbow_alignment=1.0)
    landing_only = ShotMetrics(landing_balance=1.0)

    assert scorer.score(elbow_only) == 18
    assert scorer.score(landing_only) == 5
