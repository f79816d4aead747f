"""Shared pieces for the photo and video controllers."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

from ..camera import Camera
from ..config import CaptureConfig
from ..errors import CaptureError
from ..location import LocationFeed
from ..models import PhotoAsset, VideoAsset
from ..session import CaptureSessionEngine
from ..utils.logging import get_logger


Notifier = Callable[[CaptureError], None]


@dataclass
class CaptureOutcome:
    """Result of a single capture attempt."""
    success: bool
    asset: Optional[Union[PhotoAsset, VideoAsset]] = None
    error: Optional[CaptureError] = None

    @classmethod
    def ok(cls, asset: Union[PhotoAsset, VideoAsset]) -> "CaptureOutcome":
        return cls(success=True, asset=asset)

    @classmethod
    def failed(cls, error: CaptureError) -> "CaptureOutcome":
        return cls(success=False, error=error)

    @property
    def message(self) -> Optional[str]:
        return str(self.error) if self.error else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "asset": self.asset.to_dict() if self.asset else None,
            "error": type(self.error).__name__ if self.error else None,
            "message": self.message,
        }


@dataclass
class BurstResult:
    """Result of a burst: how many were asked for and how many landed."""
    requested: int
    captured: int = 0
    photos: List[PhotoAsset] = field(default_factory=list)
    failures: List[CaptureOutcome] = field(default_factory=list)
    error: Optional[CaptureError] = None  # Set only when the burst never started
    aborted: bool = False

    @property
    def success(self) -> bool:
        return self.error is None and self.captured > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "requested": self.requested,
            "captured": self.captured,
            "failed": len(self.failures),
            "aborted": self.aborted,
            "error": type(self.error).__name__ if self.error else None,
            "message": str(self.error) if self.error else None,
        }


class CaptureController:
    """Base for controllers that turn camera output into session assets."""

    def __init__(
        self,
        engine: CaptureSessionEngine,
        location: LocationFeed,
        camera: Camera,
        config: Optional[CaptureConfig] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.engine = engine
        self.location = location
        self.camera = camera
        self.config = config or engine.config
        self.notifier = notifier
        self.logger = get_logger(type(self).__module__)

    def _report(self, error: CaptureError) -> CaptureOutcome:
        """Log a rejected or failed capture and pass it to the notifier."""
        self.logger.warning(f"{type(error).__name__}: {error}")
        if self.notifier is not None:
            self.notifier(error)
        return CaptureOutcome.failed(error)
