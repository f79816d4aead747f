import threading

import pytest

from omnisplat_capture.capture import VideoRecordingController, format_duration
from omnisplat_capture.config import CaptureConfig
from omnisplat_capture.errors import (
    CameraNotReady,
    CaptureFailure,
    NoActiveSession,
    NoFixAvailable,
    RecordingInProgress,
    SessionChanged,
)
from omnisplat_capture.location import LocationFeed
from omnisplat_capture.models import GeoFix
from omnisplat_capture.timers import ThreadingScheduler


@pytest.fixture
def active(engine, feed, provider):
    provider.emit(45.0, -111.0, 0.8)
    engine.start_session(feed.current_fix)
    return engine


@pytest.fixture
def short_clips(engine, feed, camera, scheduler, notices):
    """Controller with a 5 second ceiling."""
    config = CaptureConfig(max_video_duration_s=5)
    engine.config = config
    finished = []
    controller = VideoRecordingController(
        engine, feed, camera, config,
        notifier=notices.append, scheduler=scheduler, on_finished=finished.append,
    )
    controller.finished = finished
    return controller


def test_record_and_stop(video_controller, active, scheduler, provider, backend):
    assert video_controller.start_recording().success
    start_fix = active.session.base_location
    provider.emit(45.2, -111.2, 1.5)
    scheduler.advance(12)

    assert video_controller.elapsed_seconds == 12
    assert video_controller.elapsed_display == "0:12"

    outcome = video_controller.stop_recording()

    assert outcome.success
    video = outcome.asset
    assert video.duration == 12
    assert video.start_location == start_fix
    assert video.uri == "file:///captures/rec-1.mp4"
    assert backend.recordings_stopped == ["rec-1"]
    assert active.video_count == 1
    assert active.session.total_assets == 1
    assert not video_controller.is_recording
    assert scheduler.active == 0


def test_auto_stop_at_ceiling(short_clips, active, scheduler, backend):
    short_clips.start_recording()

    scheduler.advance(8)

    assert not short_clips.is_recording
    assert scheduler.active == 0
    assert backend.recordings_stopped == ["rec-1"]
    assert len(short_clips.finished) == 1
    assert short_clips.finished[0].asset.duration == 5
    assert active.videos[0].duration <= 5


def test_stop_after_auto_stop_is_a_no_op(short_clips, active, scheduler, backend):
    short_clips.start_recording()
    scheduler.advance(5)

    assert short_clips.stop_recording() is None
    assert backend.recordings_stopped == ["rec-1"]
    assert active.video_count == 1


def test_stop_when_idle_returns_none(video_controller, active):
    assert video_controller.stop_recording() is None
    assert active.video_count == 0


def test_second_start_is_rejected(video_controller, active, backend, notices):
    video_controller.start_recording()

    outcome = video_controller.start_recording()

    assert isinstance(outcome.error, RecordingInProgress)
    assert backend.recordings_started == 1
    assert notices == [outcome.error]


def test_preconditions(video_controller, engine, provider, camera, backend):
    assert isinstance(video_controller.start_recording().error, NoActiveSession)

    provider.emit(45.0, -111.0, 0.8)
    engine.start_session(video_controller.location.current_fix)
    camera.handle_unavailable()
    assert isinstance(video_controller.start_recording().error, CameraNotReady)

    assert backend.recordings_started == 0


def test_start_requires_a_fix(engine, provider, camera, capture_config, scheduler):
    feed = LocationFeed(provider, capture_config)
    engine.start_session(GeoFix.create(45.0, -111.0, 0.8))
    controller = VideoRecordingController(engine, feed, camera, capture_config, scheduler=scheduler)

    assert isinstance(controller.start_recording().error, NoFixAvailable)


def test_start_failure_is_reported(video_controller, active, backend, scheduler):
    backend.fail_start_recording = True

    outcome = video_controller.start_recording()

    assert isinstance(outcome.error, CaptureFailure)
    assert not video_controller.is_recording
    assert scheduler.active == 0


def test_finalize_failure_drops_the_clip(video_controller, active, backend, scheduler):
    video_controller.start_recording()
    scheduler.advance(3)
    backend.fail_stop_recording = True

    outcome = video_controller.stop_recording()

    assert isinstance(outcome.error, CaptureFailure)
    assert active.video_count == 0
    assert not video_controller.is_recording
    assert scheduler.active == 0


def test_reset_during_recording_discards_the_clip(video_controller, active, scheduler):
    video_controller.start_recording()
    scheduler.advance(4)
    active.reset_session()

    outcome = video_controller.stop_recording()

    assert isinstance(outcome.error, SessionChanged)
    assert active.video_count == 0


def test_stale_tick_does_not_stop_a_newer_recording(short_clips, active, scheduler, backend):
    short_clips.start_recording()
    first_tick = scheduler.timers[0][1]
    short_clips.stop_recording()
    short_clips.start_recording()

    for _ in range(10):
        first_tick()

    assert short_clips.is_recording
    assert short_clips.elapsed_seconds == 0
    assert backend.recordings_stopped == ["rec-1"]


def test_threading_scheduler_ticks_until_cancelled():
    ticked = threading.Event()
    count = []

    def tick():
        count.append(1)
        ticked.set()

    handle = ThreadingScheduler().call_every(0.01, tick)
    assert ticked.wait(2.0)
    handle.cancel()

    assert handle.cancelled
    assert len(count) >= 1


@pytest.mark.parametrize("seconds,expected", [
    (0, "0:00"),
    (9, "0:09"),
    (60, "1:00"),
    (600, "10:00"),
    (-3, "0:00"),
])
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected
