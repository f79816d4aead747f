"""Capture session engine.

Owns the active :class:`CaptureSession` and its asset ledger. All mutation
goes through the operations below, serialised by an engine-owned lock, so
the video auto-stop tick may record from its timer thread. Callers only ever
see immutable values.

State machine:
    Unstarted --start_session--> Active
    Active --record_photo / record_video--> Active
    Active --start_session--> Active (fresh session, previous ledger discarded)
    Active --reset_session--> Unstarted
"""
from __future__ import annotations

import threading
import time
from dataclasses import replace
from typing import Callable, List, Optional, Tuple

from .config import CaptureConfig
from .errors import CapacityExceeded, NoActiveSession, NoFixAvailable, SessionChanged
from .location import classify_accuracy
from .models import (
    CaptureSession,
    GeoFix,
    GpsQuality,
    PhotoAsset,
    RawImage,
    RawVideo,
    SessionSummary,
    SurveyMetadata,
    VideoAsset,
)
from .utils.logging import get_logger

logger = get_logger(__name__)


SESSION_ID_PREFIX = "omni_"


def build_photo_asset(
    raw: RawImage,
    session: CaptureSession,
    index: int,
    fix: GeoFix,
    timestamp_ms: int,
) -> PhotoAsset:
    """Create a georeferenced photo relative to the session base location."""
    return PhotoAsset(
        raw=raw,
        timestamp_ms=timestamp_ms,
        session_id=session.session_id,
        index=index,
        gps_data=fix,
        survey_metadata=SurveyMetadata.relative_to(fix, session.base_location),
    )


def build_video_asset(
    raw: RawVideo,
    session: CaptureSession,
    start_fix: GeoFix,
    duration: int,
    timestamp_ms: int,
) -> VideoAsset:
    """Create a georeferenced clip anchored at the fix where recording began."""
    return VideoAsset(
        raw=raw,
        timestamp_ms=timestamp_ms,
        session_id=session.session_id,
        duration=int(duration),
        start_location=start_fix,
    )


class CaptureSessionEngine:
    """Holds the one active session and its photo/video ledger."""

    def __init__(
        self,
        config: Optional[CaptureConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the engine in the Unstarted state.

        Args:
            config: Capture limits (defaults apply when None).
            clock: Returns the current time in seconds since the epoch.
        """
        self.config = config or CaptureConfig()
        self._clock = clock

        self._session: Optional[CaptureSession] = None
        self._photos: List[PhotoAsset] = []
        self._videos: List[VideoAsset] = []
        self._last_session_ms = 0
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def session(self) -> Optional[CaptureSession]:
        return self._session

    @property
    def is_active(self) -> bool:
        return self._session is not None

    @property
    def photos(self) -> Tuple[PhotoAsset, ...]:
        return tuple(self._photos)

    @property
    def videos(self) -> Tuple[VideoAsset, ...]:
        return tuple(self._videos)

    @property
    def photo_count(self) -> int:
        return len(self._photos)

    @property
    def video_count(self) -> int:
        return len(self._videos)

    @property
    def remaining_photo_capacity(self) -> int:
        return max(0, self.config.max_photos - len(self._photos))

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def start_session(self, current_fix: Optional[GeoFix]) -> CaptureSession:
        """Start a fresh session anchored at ``current_fix``.

        An already active session is replaced and its assets are discarded,
        not archived.

        Raises:
            NoFixAvailable: If there is no current fix.
        """
        if current_fix is None:
            raise NoFixAvailable("Waiting for GPS lock before starting session")

        with self._lock:
            if self._session is not None:
                logger.warning(
                    f"Replacing active session {self._session.session_id} "
                    f"({len(self._photos)} photos, {len(self._videos)} videos discarded)"
                )

            now_ms = self._now_ms()
            session = CaptureSession(
                session_id=self._next_session_id(now_ms),
                start_time_ms=now_ms,
                base_location=current_fix,
                total_assets=0,
            )

            self._session = session
            self._photos = []
            self._videos = []

        logger.info(
            f"Session started: {session.session_id} at "
            f"{current_fix.latitude:.6f}, {current_fix.longitude:.6f} "
            f"(accuracy {current_fix.accuracy:.1f}m{' RTK' if current_fix.is_precise else ''})"
        )
        return session

    def record_photo(
        self,
        raw_image: RawImage,
        current_fix: Optional[GeoFix],
        expected_session_id: Optional[str] = None,
    ) -> PhotoAsset:
        """Append a georeferenced photo to the active session.

        Args:
            raw_image: Camera output.
            current_fix: Fix active at capture time.
            expected_session_id: Session the capture was started in; a
                mismatch means the session changed mid-capture.

        Raises:
            NoActiveSession, NoFixAvailable, SessionChanged, CapacityExceeded
        """
        with self._lock:
            session = self._require_session(expected_session_id)
            if current_fix is None:
                raise NoFixAvailable("GPS fix required for georeferenced photo")
            if len(self._photos) >= self.config.max_photos:
                raise CapacityExceeded(f"Maximum {self.config.max_photos} photos captured")

            photo = build_photo_asset(
                raw=raw_image,
                session=session,
                index=len(self._photos) + 1,
                fix=current_fix,
                timestamp_ms=self._now_ms(),
            )
            self._photos.append(photo)
            self._session = replace(session, total_assets=self._asset_count())

        logger.debug(f"Photo {photo.index} recorded in {session.session_id}")
        return photo

    def record_video(
        self,
        raw_video: RawVideo,
        start_fix: Optional[GeoFix],
        duration: int,
        expected_session_id: Optional[str] = None,
    ) -> VideoAsset:
        """Append a georeferenced clip to the active session.

        The duration ceiling is enforced by the recorder, not here.

        Raises:
            NoActiveSession, NoFixAvailable, SessionChanged
        """
        with self._lock:
            session = self._require_session(expected_session_id)
            if start_fix is None:
                raise NoFixAvailable("GPS fix required for georeferenced video")

            video = build_video_asset(
                raw=raw_video,
                session=session,
                start_fix=start_fix,
                duration=duration,
                timestamp_ms=self._now_ms(),
            )
            self._videos.append(video)
            self._session = replace(session, total_assets=self._asset_count())

        logger.debug(f"Video ({video.duration}s) recorded in {session.session_id}")
        return video

    def reset_session(self) -> None:
        """Discard the ledger and return to Unstarted."""
        with self._lock:
            if self._session is not None:
                logger.info(f"Session reset: {self._session.session_id}")
            self._session = None
            self._photos = []
            self._videos = []

    def summary(self) -> SessionSummary:
        """Snapshot for display. No side effects."""
        with self._lock:
            session = self._session
            photo_count = len(self._photos)
            video_count = len(self._videos)

        base = session.base_location if session else None
        return SessionSummary(
            session_id=session.session_id if session else None,
            is_active=session is not None,
            start_time_ms=session.start_time_ms if session else None,
            photo_count=photo_count,
            video_count=video_count,
            total_assets=session.total_assets if session else 0,
            remaining_photo_capacity=max(0, self.config.max_photos - photo_count),
            base_location=base,
            gps_quality=classify_accuracy(base.accuracy, self.config) if base else GpsQuality.NONE,
            ready_for_processing=photo_count >= self.config.min_photos_for_processing,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_session(self, expected_session_id: Optional[str]) -> CaptureSession:
        session = self._session
        if session is None:
            if expected_session_id is not None:
                raise SessionChanged(f"Session {expected_session_id} ended during capture")
            raise NoActiveSession("Start a capture session first")
        if expected_session_id is not None and session.session_id != expected_session_id:
            raise SessionChanged(
                f"Session {expected_session_id} was replaced by {session.session_id} during capture"
            )
        return session

    def _asset_count(self) -> int:
        return len(self._photos) + len(self._videos)

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _next_session_id(self, now_ms: int) -> str:
        stamp = max(now_ms, self._last_session_ms + 1)
        self._last_session_ms = stamp
        return f"{SESSION_ID_PREFIX}{stamp}"
