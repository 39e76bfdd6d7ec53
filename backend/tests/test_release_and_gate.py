import math

import pytest

from core.config import GateConfig
from core.domain import BodyPart, FrameSample, GateResult, Handedness
from core.services import ReleaseDetector, ShotGate


def frames_with_wrists(make_landmarks, right_ys, left_y=0.50):
    return [
        FrameSample(
            landmarks=make_landmarks({
                BodyPart.RIGHT_WRIST: (0.58, y),
                BodyPart.LEFT_WRIST: (0.42, left_y),
            }),
            timestamp_ms=i * 100,
        )
        for i, y in enumerate(right_ys)
    ]


# =============================================================================
# Handedness and release point
# =============================================================================

def test_right_handed_when_right_wrist_ever_higher(make_landmarks):
    frames = frames_with_wrists(make_landmarks, [0.60, 0.60, 0.40, 0.60])
    assert ReleaseDetector.resolve_handedness(frames) is Handedness.RIGHT


def test_left_handed_otherwise(make_landmarks):
    frames = frames_with_wrists(make_landmarks, [0.60, 0.50, 0.70])
    assert ReleaseDetector.resolve_handedness(frames) is Handedness.LEFT


def test_release_is_highest_wrist(make_landmarks):
    frames = frames_with_wrists(make_landmarks, [0.45, 0.30, 0.20, 0.35])
    assert ReleaseDetector.find_release_index(frames, Handedness.RIGHT) == 2


def test_release_tie_takes_first(make_landmarks):
    frames = frames_with_wrists(make_landmarks, [0.45, 0.20, 0.20, 0.35])
    assert ReleaseDetector.find_release_index(frames, Handedness.RIGHT) == 1


def test_no_release_without_finite_wrist(make_landmarks):
    frames = frames_with_wrists(make_landmarks, [math.nan, math.nan])
    assert ReleaseDetector.find_release_index(frames, Handedness.RIGHT) is None
    assert ReleaseDetector.find_release_index([], Handedness.RIGHT) is None


def test_clean_shot_release(clean_shot_frames):
    side = ReleaseDetector.resolve_handedness(clean_shot_frames)
    assert side is Handedness.RIGHT
    assert ReleaseDetector.find_release_index(clean_shot_frames, side) == 12


# =============================================================================
# Shot gate
# =============================================================================

def test_clean_shot_passes_all_gates(clean_shot_frames):
    result = ShotGate().evaluate(clean_shot_frames, 12, Handedness.RIGHT)

    assert result.release_elbow_angle == pytest.approx(175.0, abs=1e-6)
    assert result.wrist_lift == pytest.approx(0.25)
    assert result.follow_through_count == 5
    assert result.elbow_extended and result.wrist_lifted and result.followed_through
    assert result.passed_count == 3
    assert result.passed


def test_wrist_lift_uses_median_baseline(make_landmarks):
    frames = frames_with_wrists(make_landmarks, [0.50, 0.50, 0.90, 0.50, 0.25])
    assert ShotGate().wrist_lift(frames, 4, Handedness.RIGHT) == pytest.approx(0.25)


def test_no_lift_without_earlier_frames(make_landmarks):
    frames = frames_with_wrists(make_landmarks, [0.20, 0.30, 0.40])
    assert ShotGate().wrist_lift(frames, 0, Handedness.RIGHT) == 0.0


def test_follow_through_counts_frames_near_release(make_landmarks):
    frames = frames_with_wrists(
        make_landmarks,
        [0.45, 0.20, 0.25, 0.30, 0.50, 0.41, 0.43, 0.60, 0.21, 0.21],
    )
    # Window is the 7 frames after release; 0.21 at index 8 is inside it, 9 is not
    assert ShotGate().follow_through_count(frames, 1, Handedness.RIGHT) == 4


def test_wrist_that_never_lifts_fails_gate(make_landmarks):
    # Ball moving down from the first frame: a dribble, not a shot
    frames = frames_with_wrists(make_landmarks, [0.30 + 0.1 * i for i in range(10)])

    result = ShotGate().evaluate(frames, 0, Handedness.RIGHT)

    assert not result.wrist_lifted
    assert result.wrist_lift == 0.0


def test_free_throw_relaxes_thresholds(make_landmarks):
    ys = [0.40] * 5 + [0.28] + [0.30, 0.32, 0.60, 0.60, 0.60, 0.60, 0.60]
    frames = frames_with_wrists(make_landmarks, ys)
    gate = ShotGate()

    jump_shot = gate.evaluate(frames, 5, Handedness.RIGHT, shot_type="jump_shot")
    free_throw = gate.evaluate(frames, 5, Handedness.RIGHT, shot_type="free_throw")

    assert not jump_shot.wrist_lifted and not jump_shot.followed_through
    assert free_throw.wrist_lifted and free_throw.followed_through


def test_two_of_three_is_enough():
    result = GateResult(
        elbow_extended=True,
        wrist_lifted=False,
        followed_through=True,
        release_elbow_angle=170.0,
        wrist_lift=0.05,
        follow_through_count=4,
    )
    assert result.passed_count == 2
    assert result.passed


def test_gate_threshold_is_configurable(clean_shot_frames):
    strict = ShotGate(GateConfig(min_release_elbow_angle=178.0))
    result = strict.evaluate(clean_shot_frames, 12, Handedness.RIGHT)

    assert not result.elbow_extended
    assert result.passed_count == 2
