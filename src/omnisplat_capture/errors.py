"""Exception hierarchy for capture and processing failures.

Capture-side errors are raised by the session engine and location feed and
converted into outcome values by the controllers. Processing-side errors are
never raised past the submission client; they travel inside ``ApiResult``.
"""
from __future__ import annotations


class OmniSplatError(Exception):
    """Base class for all omnisplat_capture errors."""


# ==============================================================================
# Capture side
# ==============================================================================

class CaptureError(OmniSplatError):
    """A capture precondition or capability failure."""


class PermissionDenied(CaptureError):
    """The user refused access to the camera or location capability."""


class LocationUnavailable(CaptureError):
    """The location provider could not be started."""


class NoActiveSession(CaptureError):
    """A capture was attempted while no session is active."""


class NoFixAvailable(CaptureError):
    """No GPS fix has been received yet."""


class CapacityExceeded(CaptureError):
    """The session already holds the maximum number of photos."""


class CaptureFailure(CaptureError):
    """The camera failed while taking a still or recording a clip."""


class CameraNotReady(CaptureError):
    """The camera has not reported readiness."""


class CaptureInProgress(CaptureError):
    """A still capture is already in flight."""


class RecordingInProgress(CaptureError):
    """A video recording is already running."""


class SessionChanged(CaptureError):
    """The session was reset or replaced while a capture was in flight."""


# ==============================================================================
# Processing side
# ==============================================================================

class ProcessingError(OmniSplatError):
    """A failure talking to the remote reconstruction service."""


class NetworkError(ProcessingError):
    """Transport failure, timeout, server error or unreadable response."""


class AuthenticationError(ProcessingError):
    """The API credential was rejected or is missing."""


class SubmissionError(ProcessingError):
    """A reconstruction job could not be submitted."""


class JobNotComplete(ProcessingError):
    """Results were requested before the job completed."""


class NotFound(ProcessingError):
    """The requested job does not exist."""
