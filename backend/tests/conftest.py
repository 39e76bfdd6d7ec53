"""
Shared test fixtures: synthetic poses and fake collaborators.

Poses are built from a standing, right-handed base pose with every
landmark at 0.9 visibility; tests override the joints they care about.
"""

import math

import pytest

from core.domain import BodyPart, FrameSample, Landmark


NUM_LANDMARKS = 33

BASE_POSE = {
    BodyPart.NOSE: (0.50, 0.15),
    BodyPart.LEFT_SHOULDER: (0.45, 0.30),
    BodyPart.RIGHT_SHOULDER: (0.55, 0.30),
    BodyPart.LEFT_ELBOW: (0.42, 0.40),
    BodyPart.RIGHT_ELBOW: (0.58, 0.40),
    BodyPart.LEFT_WRIST: (0.42, 0.50),
    BodyPart.RIGHT_WRIST: (0.58, 0.50),
    BodyPart.LEFT_HIP: (0.46, 0.55),
    BodyPart.RIGHT_HIP: (0.54, 0.55),
    BodyPart.LEFT_KNEE: (0.46, 0.70),
    BodyPart.RIGHT_KNEE: (0.54, 0.70),
    BodyPart.LEFT_ANKLE: (0.45, 0.85),
    BodyPart.RIGHT_ANKLE: (0.55, 0.85),
}

# Elbow offset that bends a vertical shoulder-wrist line to 175 degrees
ELBOW_OFFSET_175 = 0.05 * math.tan(math.radians(2.5))


def build_landmarks(overrides=None, visibility=0.9, count=NUM_LANDMARKS):
    points = [(0.5, 0.5)] * NUM_LANDMARKS
    for part, xy in {**BASE_POSE, **(overrides or {})}.items():
        points[part] = xy
    return [Landmark(x=x, y=y, z=0.0, visibility=visibility) for x, y in points[:count]]


def build_clean_shot():
    """
    Twenty landmark sets for a clean right-handed jump shot.

    - frames 0-11: ball coming up, wrist from 0.45 to 0.25
    - frame 12: release, wrist at 0.20, elbow at 175 degrees
    - frames 13-17: wrist held near release height while it flicks forward
    - frames 18-19: arm drops
    """
    frames = []

    for y in [0.45] * 8 + [0.40, 0.35, 0.30, 0.25]:
        frames.append(build_landmarks({
            BodyPart.RIGHT_WRIST: (0.58, y),
            BodyPart.RIGHT_ELBOW: (0.58, y + 0.05),
        }))

    frames.append(build_landmarks({
        BodyPart.RIGHT_WRIST: (0.55, 0.20),
        BodyPart.RIGHT_ELBOW: (0.55 + ELBOW_OFFSET_175, 0.25),
    }))

    for x, y in [(0.57, 0.22), (0.59, 0.24), (0.60, 0.26), (0.60, 0.28),
                 (0.60, 0.30), (0.60, 0.45), (0.60, 0.45)]:
        frames.append(build_landmarks({
            BodyPart.RIGHT_WRIST: (x, y),
            BodyPart.RIGHT_ELBOW: (0.55, y + 0.05),
        }))

    return frames


def as_samples(landmark_sets, step_ms=100):
    return [
        FrameSample(landmarks=landmarks, timestamp_ms=i * step_ms)
        for i, landmarks in enumerate(landmark_sets)
    ]


# =============================================================================
# Fake collaborators
# =============================================================================

class FakeEstimator:
    """Pose estimator that replays its factory's script."""

    def __init__(self, factory, delegate):
        self.factory = factory
        self.delegate = delegate
        self.timestamps = []
        self.closed = False

    def detect_for_video(self, frame, timestamp_ms):
        self.timestamps.append(timestamp_ms)
        item = self.factory.next_item()
        if isinstance(item, Exception):
            raise item
        return item

    def close(self):
        self.closed = True


class ScriptedEstimators:
    """
    Estimator factory for LandmarkSource.

    Every estimator it builds draws from one shared script: each entry
    is a landmark list, None (no person) or an exception to raise.
    Calls past the end of the script return None.
    """

    def __init__(self, script=(), unavailable=()):
        self.script = list(script)
        self.unavailable = set(unavailable)
        self.calls = 0
        self.instances = []

    def __call__(self, delegate):
        if delegate in self.unavailable:
            raise RuntimeError(f"{delegate} delegate unavailable")
        estimator = FakeEstimator(self, delegate)
        self.instances.append(estimator)
        return estimator

    def next_item(self):
        item = self.script[self.calls] if self.calls < len(self.script) else None
        self.calls += 1
        return item


class FakeVideo:
    """Seekable video stand-in; frames listed in `missing` fail to decode."""

    def __init__(self, duration_seconds, missing=()):
        self.duration_seconds = duration_seconds
        self.missing = set(missing)
        self.seeks = []

    async def seek(self, t_seconds):
        index = len(self.seeks)
        self.seeks.append(t_seconds)
        if index in self.missing:
            return None
        return f"frame@{t_seconds:.1f}"


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def make_landmarks():
    return build_landmarks


@pytest.fixture
def clean_shot_landmarks():
    return build_clean_shot()


@pytest.fixture
def clean_shot_frames():
    return as_samples(build_clean_shot())


@pytest.fixture
def scripted_estimators():
    return ScriptedEstimators


@pytest.fixture
def fake_video():
    return FakeVideo
