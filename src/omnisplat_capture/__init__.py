"""omniSplat capture - georeferenced capture sessions for 3D reconstruction.

Turns a continuous GPS feed and discrete photo/video captures into
georeferenced, relative-to-base session metadata, and hands finished
sessions to a remote reconstruction service.

Architecture:
    LocationFeed -> latest GeoFix
        -> AssetCaptureController / VideoRecordingController
            -> CaptureSessionEngine (session + asset ledger)
                -> ProcessingSubmissionClient (upload, submit, poll, results)

Outputs requested from the service:
    - Gaussian splatting and convex splatting pipelines
    - ply, splat, obj, gltf models, all in WGS84
"""

from .config import (
    AppConfig,
    BurstPolicy,
    CaptureConfig,
    ProcessingConfig,
    load_config,
)
from .errors import (
    AuthenticationError,
    CameraNotReady,
    CapacityExceeded,
    CaptureError,
    CaptureFailure,
    CaptureInProgress,
    JobNotComplete,
    LocationUnavailable,
    NetworkError,
    NoActiveSession,
    NoFixAvailable,
    NotFound,
    OmniSplatError,
    PermissionDenied,
    ProcessingError,
    RecordingInProgress,
    SessionChanged,
    SubmissionError,
)
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
from .location import (
    LocationFeed,
    LocationOptions,
    LocationProvider,
    PositionReading,
    classify_accuracy,
)
from .session import CaptureSessionEngine
from .camera import Camera, CameraBackend, PhotoOptions
from .timers import Scheduler, ThreadingScheduler, TimerHandle
from .capture import (
    AssetCaptureController,
    BurstResult,
    CaptureOutcome,
    VideoRecordingController,
    format_duration,
)
from .processing import (
    ApiResult,
    JobResults,
    JobState,
    JobStatusReport,
    NetworkInfo,
    ProcessingSubmissionClient,
    UploadReport,
    wait_for_job,
)
from .manifest import (
    SessionManifest,
    export_session_manifest,
    load_session_manifest,
)


__version__ = "1.0.0"

__all__ = [
    # Version
    "__version__",
    # Configuration
    "AppConfig",
    "BurstPolicy",
    "CaptureConfig",
    "ProcessingConfig",
    "load_config",
    # Errors
    "OmniSplatError",
    "CaptureError",
    "PermissionDenied",
    "LocationUnavailable",
    "NoActiveSession",
    "NoFixAvailable",
    "CapacityExceeded",
    "CaptureFailure",
    "CameraNotReady",
    "CaptureInProgress",
    "RecordingInProgress",
    "SessionChanged",
    "ProcessingError",
    "NetworkError",
    "AuthenticationError",
    "SubmissionError",
    "JobNotComplete",
    "NotFound",
    # Models
    "CaptureSession",
    "GeoFix",
    "GpsQuality",
    "PhotoAsset",
    "RawImage",
    "RawVideo",
    "SessionSummary",
    "SurveyMetadata",
    "VideoAsset",
    # Location
    "LocationFeed",
    "LocationOptions",
    "LocationProvider",
    "PositionReading",
    "classify_accuracy",
    # Session engine
    "CaptureSessionEngine",
    # Camera and timers
    "Camera",
    "CameraBackend",
    "PhotoOptions",
    "Scheduler",
    "ThreadingScheduler",
    "TimerHandle",
    # Capture controllers
    "AssetCaptureController",
    "VideoRecordingController",
    "CaptureOutcome",
    "BurstResult",
    "format_duration",
    # Processing
    "ProcessingSubmissionClient",
    "ApiResult",
    "JobResults",
    "JobState",
    "JobStatusReport",
    "NetworkInfo",
    "UploadReport",
    "wait_for_job",
    # Manifests
    "SessionManifest",
    "export_session_manifest",
    "load_session_manifest",
]
