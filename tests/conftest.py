"""Shared fakes for capture and processing tests.

Nothing here touches real hardware, the network, or the wall clock.
"""
from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from omnisplat_capture.camera import Camera, PhotoOptions
from omnisplat_capture.capture import AssetCaptureController, VideoRecordingController
from omnisplat_capture.config import CaptureConfig, ProcessingConfig
from omnisplat_capture.location import LocationFeed, LocationOptions, PositionReading
from omnisplat_capture.models import RawImage, RawVideo
from omnisplat_capture.processing import ProcessingSubmissionClient
from omnisplat_capture.session import CaptureSessionEngine
from omnisplat_capture.timers import TimerHandle


BASE_URL = "https://render.test/v1"

RESULTS_BODY = {
    "status": "completed",
    "outputs": {
        "gaussian_splatting": {"url": "https://cdn.test/g.splat", "hash": "abc", "pointCount": 120000,
                               "fileSize": 4096},
        "convex_splatting": {"url": "https://cdn.test/c.ply", "hash": "def", "pointCount": 80000,
                             "fileSize": 2048},
    },
    "processingTime": 812,
    "renderNodes": 4,
    "qualityScore": 0.93,
}


# ==============================================================================
# Capture side
# ==============================================================================

class FakeClock:
    """Seconds since the epoch, advanced by hand."""

    def __init__(self, start: float = 1_718_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeLocationProvider:
    def __init__(self):
        self.permission = True
        self.fail_start: Optional[Exception] = None
        self.handler: Optional[Callable] = None
        self.options: Optional[LocationOptions] = None
        self.subscribe_calls = 0
        self.unsubscribed: List[Any] = []

    def request_permission(self) -> bool:
        return self.permission

    def subscribe(self, options, handler):
        if self.fail_start is not None:
            raise self.fail_start
        self.subscribe_calls += 1
        self.options = options
        self.handler = handler
        return f"watch-{self.subscribe_calls}"

    def unsubscribe(self, handle) -> None:
        self.unsubscribed.append(handle)

    def emit(self, latitude, longitude, accuracy, altitude=None, heading=None, speed=None, timestamp_ms=0):
        """Deliver a reading through the last registered handler, even after unsubscribe."""
        self.handler(PositionReading(
            latitude=latitude,
            longitude=longitude,
            accuracy=accuracy,
            altitude=altitude,
            heading=heading,
            speed=speed,
            timestamp_ms=timestamp_ms,
        ))


class FakeCameraBackend:
    def __init__(self):
        self.permission = True
        self.photos_taken = 0
        self.photo_options: List[PhotoOptions] = []
        self.fail_photo_calls: set = set()  # 1-based call numbers that raise
        self.during_photo: Optional[Callable[[], None]] = None
        self.recordings_started = 0
        self.recordings_stopped: List[Any] = []
        self.fail_start_recording = False
        self.fail_stop_recording = False

    def request_permission(self) -> bool:
        return self.permission

    def take_photo(self, options: PhotoOptions) -> RawImage:
        self.photos_taken += 1
        self.photo_options.append(options)
        if self.during_photo is not None:
            self.during_photo()
        if self.photos_taken in self.fail_photo_calls:
            raise RuntimeError("sensor timeout")
        return RawImage(uri=f"file:///captures/IMG_{self.photos_taken:04d}.jpg", width=4032, height=3024)

    def start_recording(self):
        if self.fail_start_recording:
            raise RuntimeError("encoder busy")
        self.recordings_started += 1
        return f"rec-{self.recordings_started}"

    def stop_recording(self, handle) -> RawVideo:
        if self.fail_stop_recording:
            raise RuntimeError("disk full")
        self.recordings_stopped.append(handle)
        return RawVideo(uri=f"file:///captures/{handle}.mp4")


class ManualScheduler:
    """Scheduler whose ticks fire only when the test advances time."""

    def __init__(self):
        self.timers: List[Tuple[float, Callable[[], None], TimerHandle]] = []

    def call_every(self, interval_s: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle()
        self.timers.append((interval_s, callback, handle))
        return handle

    def advance(self, seconds: int) -> None:
        for _ in range(int(seconds)):
            for _, callback, handle in list(self.timers):
                if not handle.cancelled:
                    callback()

    @property
    def active(self) -> int:
        return sum(1 for _, _, h in self.timers if not h.cancelled)


class SleepRecorder:
    def __init__(self):
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def capture_config() -> CaptureConfig:
    return CaptureConfig()


@pytest.fixture
def provider() -> FakeLocationProvider:
    return FakeLocationProvider()


@pytest.fixture
def feed(provider, capture_config) -> LocationFeed:
    location = LocationFeed(provider, capture_config)
    location.start()
    return location


@pytest.fixture
def backend() -> FakeCameraBackend:
    return FakeCameraBackend()


@pytest.fixture
def camera(backend) -> Camera:
    cam = Camera(backend)
    cam.handle_ready()
    return cam


@pytest.fixture
def engine(capture_config, clock) -> CaptureSessionEngine:
    return CaptureSessionEngine(capture_config, clock=clock)


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def notices() -> List[Exception]:
    return []


@pytest.fixture
def photo_controller(engine, feed, camera, capture_config, sleeper, notices) -> AssetCaptureController:
    return AssetCaptureController(
        engine, feed, camera, capture_config, notifier=notices.append, sleep=sleeper,
    )


@pytest.fixture
def video_controller(engine, feed, camera, capture_config, scheduler, notices) -> VideoRecordingController:
    return VideoRecordingController(
        engine, feed, camera, capture_config, notifier=notices.append, scheduler=scheduler,
    )


# ==============================================================================
# Processing side
# ==============================================================================

class FakeResponse:
    def __init__(self, status_code: int = 200, json_data: Any = None, text: Optional[str] = None):
        self.status_code = status_code
        self._json = json_data
        self.text = text if text is not None else (json.dumps(json_data) if json_data is not None else "")

    def json(self) -> Any:
        if self._json is None:
            raise ValueError("No JSON body")
        return self._json


class FakeHttp:
    """Stands in for requests.Session.

    Routes map (method, path) to a FakeResponse, an exception instance to
    raise, or a callable taking the recorded call and returning either.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Any] = {}
        self.calls: List[Dict[str, Any]] = []

    def route(self, method: str, path: str, result: Any) -> None:
        self.routes[(method, path)] = result

    def request(self, method: str, url: str, **kwargs):
        assert url.startswith(BASE_URL), url
        path = url[len(BASE_URL):]
        call = {"method": method, "path": path, **kwargs}
        if "files" in kwargs:
            name, fh, content_type = kwargs["files"]["file"]
            call["file_name"] = name
            call["file_body"] = fh.read()
            call["content_type"] = content_type
        self.calls.append(call)

        result = self.routes.get((method, path))
        if result is None:
            return FakeResponse(404, {"message": f"no route for {method} {path}"})
        if callable(result) and not isinstance(result, FakeResponse):
            result = result(call)
        if isinstance(result, Exception):
            raise result
        return result

    def calls_to(self, method: str, path: str) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["method"] == method and c["path"] == path]


@pytest.fixture
def http() -> FakeHttp:
    fake = FakeHttp()
    fake.route("GET", "/status", FakeResponse(200, {"status": "operational"}))
    return fake


@pytest.fixture
def processing_config() -> ProcessingConfig:
    return ProcessingConfig(base_url=BASE_URL, timeout_s=5.0)


@pytest.fixture
def client(processing_config, http) -> ProcessingSubmissionClient:
    return ProcessingSubmissionClient(processing_config, http=http)


@pytest.fixture
def connected_client(client) -> ProcessingSubmissionClient:
    assert client.initialize("test-key").success
    return client
