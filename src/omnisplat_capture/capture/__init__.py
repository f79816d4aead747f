"""Photo and video capture controllers."""

from .base import BurstResult, CaptureController, CaptureOutcome, Notifier
from .photo import AssetCaptureController
from .video import VideoRecordingController, format_duration

__all__ = [
    "AssetCaptureController",
    "BurstResult",
    "CaptureController",
    "CaptureOutcome",
    "Notifier",
    "VideoRecordingController",
    "format_duration",
]
