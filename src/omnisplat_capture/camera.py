"""Camera capability boundary.

The physical camera is an external collaborator. It is driven through a
``CameraBackend`` and wrapped in :class:`Camera`, which tracks readiness and
translates backend exceptions into :class:`CaptureFailure`.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from .config import CaptureConfig
from .errors import CameraNotReady, CaptureFailure, PermissionDenied
from .models import RawImage, RawVideo
from .utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PhotoOptions:
    """Still capture options passed to the backend."""
    quality: float = 0.8
    exif: bool = True

    @classmethod
    def from_config(cls, config: CaptureConfig) -> "PhotoOptions":
        return cls(quality=config.photo_quality, exif=config.photo_exif)


class CameraBackend(Protocol):
    """Device camera driver."""

    def request_permission(self) -> bool:
        ...

    def take_photo(self, options: PhotoOptions) -> RawImage:
        ...

    def start_recording(self) -> Any:
        ...

    def stop_recording(self, handle: Any) -> RawVideo:
        ...


class Camera:
    """Readiness-aware wrapper around a camera backend.

    The backend's readiness callback should be wired to :meth:`handle_ready`
    (and :meth:`handle_unavailable` when the preview is torn down).
    """

    def __init__(self, backend: CameraBackend, ready: bool = False):
        self.backend = backend
        self._ready = ready

    @property
    def is_ready(self) -> bool:
        return self._ready

    def handle_ready(self) -> None:
        self._ready = True
        logger.debug("Camera ready")

    def handle_unavailable(self) -> None:
        self._ready = False
        logger.debug("Camera unavailable")

    def request_permission(self) -> None:
        """Raises PermissionDenied if camera access is refused."""
        if not self.backend.request_permission():
            logger.error("Camera permission denied")
            raise PermissionDenied("Camera access is required for spatial capture")

    def take_photo(self, options: PhotoOptions) -> RawImage:
        self._require_ready()
        try:
            return self.backend.take_photo(options)
        except Exception as e:
            raise CaptureFailure(f"Failed to capture photo: {e}") from e

    def start_recording(self) -> Any:
        self._require_ready()
        try:
            return self.backend.start_recording()
        except Exception as e:
            raise CaptureFailure(f"Failed to start recording: {e}") from e

    def stop_recording(self, handle: Any) -> RawVideo:
        try:
            return self.backend.stop_recording(handle)
        except Exception as e:
            raise CaptureFailure(f"Failed to finalize recording: {e}") from e

    def _require_ready(self) -> None:
        if not self._ready:
            raise CameraNotReady("Camera is not ready")
