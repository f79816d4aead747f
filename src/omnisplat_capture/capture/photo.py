"""Single-shot and burst still capture."""
from __future__ import annotations

from typing import Optional

from ..camera import Camera, PhotoOptions
from ..config import BurstPolicy, CaptureConfig
from ..errors import (
    CameraNotReady,
    CapacityExceeded,
    CaptureError,
    CaptureInProgress,
    NoActiveSession,
    NoFixAvailable,
)
from ..location import LocationFeed
from ..session import CaptureSessionEngine
from ..timers import SleepFn, default_sleep
from .base import BurstResult, CaptureController, CaptureOutcome, Notifier


class AssetCaptureController(CaptureController):
    """Takes stills and records them against the active session.

    Only one still is ever in flight; ``is_capturing`` is the trigger guard.
    """

    def __init__(
        self,
        engine: CaptureSessionEngine,
        location: LocationFeed,
        camera: Camera,
        config: Optional[CaptureConfig] = None,
        notifier: Optional[Notifier] = None,
        sleep: SleepFn = default_sleep,
        burst_policy: Optional[BurstPolicy] = None,
    ):
        super().__init__(engine, location, camera, config, notifier)
        self._sleep = sleep
        self.burst_policy = burst_policy or self.config.burst_policy
        self.is_capturing = False

    def capture_photo(self) -> CaptureOutcome:
        """Take one georeferenced still.

        Preconditions are checked before the shutter fires; none of the
        failure paths touch the session ledger.
        """
        if self.is_capturing:
            return self._report(CaptureInProgress("A capture is already in progress"))
        if self.location.current_fix is None:
            return self._report(NoFixAvailable("Waiting for GPS location"))
        if not self.camera.is_ready:
            return self._report(CameraNotReady("Camera is not ready"))
        session = self.engine.session
        if session is None:
            return self._report(NoActiveSession("Start a capture session first"))
        if self.engine.remaining_photo_capacity == 0:
            return self._report(CapacityExceeded(f"Maximum {self.config.max_photos} photos captured"))

        self.is_capturing = True
        try:
            raw = self.camera.take_photo(PhotoOptions.from_config(self.config))
            # Fix at shutter time, which may be newer than the one checked above
            photo = self.engine.record_photo(
                raw,
                self.location.current_fix,
                expected_session_id=session.session_id,
            )
        except CaptureError as e:
            return self._report(e)
        finally:
            self.is_capturing = False

        return CaptureOutcome.ok(photo)

    def burst_capture(self) -> BurstResult:
        """Take up to ``burst_size`` stills, bounded by remaining capacity.

        Individual failures do not stop the burst under
        ``BurstPolicy.CONTINUE_ON_FAILURE``; the result reports how many
        photos actually landed.
        """
        if not self.engine.is_active:
            error = NoActiveSession("Start a capture session first")
            self._report(error)
            return BurstResult(requested=0, error=error)
        if self.location.current_fix is None:
            error = NoFixAvailable("GPS location required for georeferenced burst capture")
            self._report(error)
            return BurstResult(requested=0, error=error)

        remaining = self.engine.remaining_photo_capacity
        if remaining == 0:
            error = CapacityExceeded("Maximum photo capacity reached")
            self._report(error)
            return BurstResult(requested=0, error=error)

        burst_count = min(max(0, self.config.burst_size), remaining)
        if burst_count == 0:
            self.logger.info("Burst size is 0, nothing to capture")
            return BurstResult(requested=0)

        self.logger.info(f"Burst: capturing {burst_count} georeferenced photos")
        result = BurstResult(requested=burst_count)

        for i in range(burst_count):
            if i > 0:
                # Let the location feed refresh between shots
                self._sleep(self.config.burst_delay_s)

            outcome = self.capture_photo()
            if outcome.success:
                result.captured += 1
                result.photos.append(outcome.asset)
                continue

            result.failures.append(outcome)
            if self.burst_policy is BurstPolicy.ABORT_ON_FAILURE:
                result.aborted = True
                break

        self.logger.info(
            f"Burst complete: {result.captured}/{burst_count} captured"
            + (f", {len(result.failures)} failed" if result.failures else "")
        )
        return result
