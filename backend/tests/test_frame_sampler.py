import asyncio
import time

from core.domain import InvalidReason
from core.services import CancellationToken, FrameSampler, LandmarkSource


def run_sampler(factory, video, **kwargs):
    sampler = FrameSampler(LandmarkSource(factory))
    return asyncio.run(sampler.sample(video, **kwargs))


def test_total_frames_for_duration(scripted_estimators):
    sampler = FrameSampler(LandmarkSource(scripted_estimators()))

    assert sampler.total_frames_for(1.0) == 10
    assert sampler.total_frames_for(3.0) == 30
    assert sampler.total_frames_for(2.55) == 25
    assert sampler.total_frames_for(45.0) == 300


def test_short_video_is_not_probed(scripted_estimators, fake_video):
    factory = scripted_estimators()
    video = fake_video(0.5)

    result = run_sampler(factory, video)

    assert result.failure is InvalidReason.VIDEO_TOO_SHORT
    assert result.processed_frames == 0
    assert result.total_frames == 0
    assert video.seeks == []
    assert factory.calls == 0


def test_keeps_only_valid_frames(scripted_estimators, fake_video, make_landmarks):
    good = make_landmarks()
    dim = make_landmarks(visibility=0.2)
    factory = scripted_estimators([good, dim, None, good] + [good] * 6)

    result = run_sampler(factory, fake_video(1.0))

    assert result.failure is None
    assert result.processed_frames == 10
    assert result.total_frames == 10
    assert len(result.valid_frames) == 8


def test_seeks_follow_time_step(scripted_estimators, fake_video):
    video = fake_video(1.0)

    run_sampler(scripted_estimators(), video)

    assert [round(t, 1) for t in video.seeks] == [i / 10 for i in range(10)]


def test_timestamps_strictly_increase(scripted_estimators, fake_video, make_landmarks):
    factory = scripted_estimators([make_landmarks()] * 30)

    result = run_sampler(factory, fake_video(3.0))

    timestamps = factory.instances[0].timestamps
    assert timestamps == sorted(set(timestamps))
    assert timestamps[:3] == [0, 100, 200]
    assert [f.timestamp_ms for f in result.valid_frames] == timestamps


def test_undecodable_frame_counts_as_processed(scripted_estimators, fake_video, make_landmarks):
    factory = scripted_estimators([make_landmarks()] * 10)

    result = run_sampler(factory, fake_video(1.0, missing={3}))

    assert result.processed_frames == 10
    assert factory.calls == 9
    assert len(result.valid_frames) == 9


def test_retry_after_reset_recovers(scripted_estimators, fake_video, make_landmarks):
    landmarks = make_landmarks()
    script = [landmarks, RuntimeError("lost context"), landmarks] + [landmarks] * 8
    factory = scripted_estimators(script)

    result = run_sampler(factory, fake_video(1.0))

    assert result.failure is None
    assert len(result.valid_frames) == 10
    # One estimator for the run start, one rebuilt after the failure
    assert len(factory.instances) == 2
    assert factory.instances[0].closed
    assert factory.instances[1].timestamps[0] == 100


def test_second_failure_is_fatal(scripted_estimators, fake_video, make_landmarks):
    landmarks = make_landmarks()
    script = [landmarks, landmarks, RuntimeError("boom"), RuntimeError("boom again")]
    factory = scripted_estimators(script)

    result = run_sampler(factory, fake_video(2.0))

    assert result.failure is InvalidReason.DETECTION_FAILED
    assert result.processed_frames == 2
    assert result.total_frames == 20


def test_progress_reaches_100(scripted_estimators, fake_video):
    seen = []

    run_sampler(scripted_estimators(), fake_video(2.0), progress=seen.append)

    assert len(seen) == 20
    assert seen == sorted(seen)
    assert seen[0] == 5
    assert seen[-1] == 100


def test_cancel_stops_sampling(scripted_estimators, fake_video):
    token = CancellationToken()
    seen = []

    def progress(percent):
        seen.append(percent)
        if percent >= 30:
            token.cancel()

    video = fake_video(2.0)
    result = run_sampler(scripted_estimators(), video, progress=progress, cancel=token)

    assert result.failure is InvalidReason.CANCELLED
    assert result.processed_frames == 6
    assert len(video.seeks) == 6


def test_cancel_before_start(scripted_estimators, fake_video):
    token = CancellationToken()
    token.cancel()

    result = run_sampler(scripted_estimators(), fake_video(2.0), cancel=token)

    assert result.failure is InvalidReason.CANCELLED
    assert result.processed_frames == 0


class SlowEstimator:
    """Estimator whose inference blocks the calling thread."""

    def __init__(self, seconds):
        self.seconds = seconds

    def detect_for_video(self, frame, timestamp_ms):
        time.sleep(self.seconds)
        return None

    def close(self):
        pass


def slow_sampler(seconds=0.05):
    return FrameSampler(LandmarkSource(lambda delegate: SlowEstimator(seconds)))


def test_detection_does_not_block_event_loop(fake_video):
    async def scenario():
        ticks = []

        async def ticker():
            while True:
                ticks.append(time.monotonic())
                await asyncio.sleep(0.005)

        task = asyncio.create_task(ticker())
        result = await slow_sampler().sample(fake_video(1.0))
        task.cancel()
        return result, ticks

    result, ticks = asyncio.run(scenario())

    # Ten 50 ms detections; a blocked loop would only tick between them
    assert result.processed_frames == 10
    assert len(ticks) > 30


def test_cancel_lands_while_detection_runs(fake_video):
    token = CancellationToken()

    async def scenario():
        async def cancel_soon():
            await asyncio.sleep(0.12)
            token.cancel()

        canceller = asyncio.create_task(cancel_soon())
        result = await slow_sampler().sample(fake_video(1.0), cancel=token)
        await canceller
        return result

    result = asyncio.run(scenario())

    assert result.failure is InvalidReason.CANCELLED
    assert result.processed_frames < 10
