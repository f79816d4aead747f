"""Duration-limited video recording."""
from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..camera import Camera
from ..config import CaptureConfig
from ..errors import (
    CameraNotReady,
    CaptureError,
    NoActiveSession,
    NoFixAvailable,
    RecordingInProgress,
)
from ..location import LocationFeed
from ..models import GeoFix
from ..session import CaptureSessionEngine
from ..timers import Scheduler, ThreadingScheduler, TimerHandle
from .base import CaptureController, CaptureOutcome, Notifier


TICK_INTERVAL_S = 1.0


def format_duration(seconds: int) -> str:
    """Format whole seconds as m:ss."""
    mins, secs = divmod(max(0, int(seconds)), 60)
    return f"{mins}:{secs:02d}"


@dataclass
class _ActiveRecording:
    session_id: str
    start_fix: GeoFix
    handle: Any
    timer: Optional[TimerHandle] = None
    elapsed: int = 0


class VideoRecordingController(CaptureController):
    """Starts and stops clips, never letting one run past the ceiling.

    The elapsed counter ticks once per second on the injected scheduler.
    When it reaches ``max_video_duration_s`` the recording is stopped from
    the tick itself. ``on_finished`` receives the outcome of every stop,
    including automatic ones.
    """

    def __init__(
        self,
        engine: CaptureSessionEngine,
        location: LocationFeed,
        camera: Camera,
        config: Optional[CaptureConfig] = None,
        notifier: Optional[Notifier] = None,
        scheduler: Optional[Scheduler] = None,
        on_finished: Optional[Callable[[CaptureOutcome], None]] = None,
    ):
        super().__init__(engine, location, camera, config, notifier)
        self._scheduler = scheduler or ThreadingScheduler(name="omnisplat-recording")
        self.on_finished = on_finished
        self._lock = threading.RLock()
        self._recording: Optional[_ActiveRecording] = None

    @property
    def is_recording(self) -> bool:
        return self._recording is not None

    @property
    def elapsed_seconds(self) -> int:
        rec = self._recording
        return rec.elapsed if rec else 0

    @property
    def elapsed_display(self) -> str:
        return format_duration(self.elapsed_seconds)

    def start_recording(self) -> CaptureOutcome:
        """Begin a clip anchored at the current fix.

        Returns a successful outcome with no asset; the asset is produced
        when the recording stops.
        """
        with self._lock:
            if not self.camera.is_ready:
                return self._report(CameraNotReady("Camera is not ready"))
            if self._recording is not None:
                return self._report(RecordingInProgress("A recording is already running"))
            session = self.engine.session
            if session is None:
                return self._report(NoActiveSession("Start a capture session first"))
            start_fix = self.location.current_fix
            if start_fix is None:
                return self._report(NoFixAvailable("GPS location required for georeferenced video"))

            try:
                handle = self.camera.start_recording()
            except CaptureError as e:
                return self._report(e)

            rec = _ActiveRecording(
                session_id=session.session_id,
                start_fix=start_fix,
                handle=handle,
            )
            self._recording = rec
            rec.timer = self._scheduler.call_every(TICK_INTERVAL_S, lambda: self._tick(rec))

        self.logger.info(
            f"Recording started in {session.session_id} "
            f"(limit {format_duration(self.config.max_video_duration_s)})"
        )
        return CaptureOutcome(success=True)

    def stop_recording(self) -> Optional[CaptureOutcome]:
        """Finalize the clip and record it. Returns None if not recording."""
        return self._stop(expected=None)

    def _stop(self, expected: Optional[_ActiveRecording]) -> Optional[CaptureOutcome]:
        with self._lock:
            rec = self._recording
            if rec is None or (expected is not None and rec is not expected):
                return None
            self._recording = None
            if rec.timer is not None:
                rec.timer.cancel()
            duration = min(rec.elapsed, self.config.max_video_duration_s)

            try:
                raw = self.camera.stop_recording(rec.handle)
                video = self.engine.record_video(
                    raw,
                    rec.start_fix,
                    duration,
                    expected_session_id=rec.session_id,
                )
            except CaptureError as e:
                outcome = self._report(e)
            else:
                self.logger.info(f"Recording saved: {format_duration(duration)} in {rec.session_id}")
                outcome = CaptureOutcome.ok(video)

        if self.on_finished is not None:
            self.on_finished(outcome)
        return outcome

    def _tick(self, rec: _ActiveRecording) -> None:
        with self._lock:
            if self._recording is not rec:
                return
            rec.elapsed += 1
            if rec.elapsed < self.config.max_video_duration_s:
                return

        self.logger.info(
            f"Maximum duration {format_duration(self.config.max_video_duration_s)} reached, stopping"
        )
        self._stop(expected=rec)
