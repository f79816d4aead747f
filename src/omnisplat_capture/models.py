"""Core data models for georeferenced capture sessions.

All capture values are immutable. The session engine produces new values
(with ``dataclasses.replace`` where a running count changes) rather than
mutating stored ones.

Wire format:
    Every model serializes to the camelCase JSON shape the reconstruction
    service expects, e.g. a photo:

    {
        "uri": "file:///captures/IMG_0001.jpg",
        "timestamp": 1718000000123,
        "sessionId": "omni_1718000000000",
        "index": 1,
        "gpsData": {"latitude": 45.00001, "longitude": -111.00001, ...},
        "surveyMetadata": {
            "relativeToBase": {"deltaLat": 1e-05, "deltaLon": -1e-05, "deltaAlt": 0.0},
            "captureQuality": {"gpsAccuracy": 0.9, "isRTKEnabled": true,
                               "coordinateSystem": "WGS84"}
        }
    }
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .config import COORDINATE_SYSTEM, PRECISION_THRESHOLD_M


class GpsQuality(Enum):
    """Accuracy classification of the current fix."""
    NONE = "none"   # No fix yet
    RTK = "rtk"     # Below the precision threshold
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


@dataclass(frozen=True)
class GeoFix:
    """A single GPS observation.

    ``is_precise`` is derived from the accuracy when the fix is built with
    :meth:`create`; it is stored so that a fix serialized under one threshold
    keeps its classification.
    """
    latitude: float
    longitude: float
    accuracy: float  # meters, horizontal
    altitude: float = 0.0
    heading: float = 0.0
    speed: float = 0.0
    timestamp_ms: int = 0
    is_precise: bool = False

    @classmethod
    def create(
        cls,
        latitude: float,
        longitude: float,
        accuracy: float,
        altitude: Optional[float] = None,
        heading: Optional[float] = None,
        speed: Optional[float] = None,
        timestamp_ms: int = 0,
        precision_threshold: float = PRECISION_THRESHOLD_M,
    ) -> "GeoFix":
        """Build a fix, defaulting missing altitude/heading/speed to 0."""
        return cls(
            latitude=float(latitude),
            longitude=float(longitude),
            accuracy=float(accuracy),
            altitude=float(altitude) if altitude is not None else 0.0,
            heading=float(heading) if heading is not None else 0.0,
            speed=float(speed) if speed is not None else 0.0,
            timestamp_ms=int(timestamp_ms),
            is_precise=float(accuracy) < precision_threshold,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "altitude": self.altitude,
            "accuracy": self.accuracy,
            "heading": self.heading,
            "speed": self.speed,
            "timestamp": self.timestamp_ms,
            "isRTK": self.is_precise,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GeoFix":
        return cls(
            latitude=float(data["latitude"]),
            longitude=float(data["longitude"]),
            accuracy=float(data["accuracy"]),
            altitude=float(data.get("altitude") or 0.0),
            heading=float(data.get("heading") or 0.0),
            speed=float(data.get("speed") or 0.0),
            timestamp_ms=int(data.get("timestamp") or 0),
            is_precise=bool(data.get("isRTK", False)),
        )


@dataclass(frozen=True)
class RawImage:
    """Reference to a still image produced by the camera."""
    uri: str
    width: Optional[int] = None
    height: Optional[int] = None
    exif: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uri": self.uri,
            "width": self.width,
            "height": self.height,
            "exif": self.exif,
        }


@dataclass(frozen=True)
class RawVideo:
    """Reference to a finished clip produced by the camera."""
    uri: str

    def to_dict(self) -> Dict[str, Any]:
        return {"uri": self.uri}


@dataclass(frozen=True)
class SurveyMetadata:
    """Offset of a capture fix from the session base plus a quality block."""
    delta_lat: float
    delta_lon: float
    delta_alt: float
    gps_accuracy: float
    is_rtk: bool
    coordinate_system: str = COORDINATE_SYSTEM

    @classmethod
    def relative_to(cls, fix: GeoFix, base: GeoFix) -> "SurveyMetadata":
        """Compute the survey block of ``fix`` against the session ``base``."""
        return cls(
            delta_lat=fix.latitude - base.latitude,
            delta_lon=fix.longitude - base.longitude,
            delta_alt=fix.altitude - base.altitude,
            gps_accuracy=fix.accuracy,
            is_rtk=fix.is_precise,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "relativeToBase": {
                "deltaLat": self.delta_lat,
                "deltaLon": self.delta_lon,
                "deltaAlt": self.delta_alt,
            },
            "captureQuality": {
                "gpsAccuracy": self.gps_accuracy,
                "isRTKEnabled": self.is_rtk,
                "coordinateSystem": self.coordinate_system,
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SurveyMetadata":
        relative = data.get("relativeToBase", {})
        quality = data.get("captureQuality", {})
        return cls(
            delta_lat=float(relative.get("deltaLat", 0.0)),
            delta_lon=float(relative.get("deltaLon", 0.0)),
            delta_alt=float(relative.get("deltaAlt", 0.0)),
            gps_accuracy=float(quality.get("gpsAccuracy", 0.0)),
            is_rtk=bool(quality.get("isRTKEnabled", False)),
            coordinate_system=quality.get("coordinateSystem", COORDINATE_SYSTEM),
        )


@dataclass(frozen=True)
class CaptureSession:
    """One capture run, anchored at the fix taken when it started."""
    session_id: str
    start_time_ms: int
    base_location: GeoFix
    total_assets: int = 0

    @property
    def is_rtk_survey(self) -> bool:
        return self.base_location.is_precise

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.session_id,
            "startTime": self.start_time_ms,
            "totalAssets": self.total_assets,
            "baseLocation": self.base_location.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CaptureSession":
        return cls(
            session_id=data["id"],
            start_time_ms=int(data.get("startTime") or 0),
            base_location=GeoFix.from_dict(data["baseLocation"]),
            total_assets=int(data.get("totalAssets") or 0),
        )


@dataclass(frozen=True)
class PhotoAsset:
    """A georeferenced still."""
    raw: RawImage
    timestamp_ms: int
    session_id: str
    index: int  # 1-based within the session
    gps_data: GeoFix
    survey_metadata: SurveyMetadata

    @property
    def uri(self) -> str:
        return self.raw.uri

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uri": self.raw.uri,
            "width": self.raw.width,
            "height": self.raw.height,
            "exif": self.raw.exif,
            "timestamp": self.timestamp_ms,
            "sessionId": self.session_id,
            "index": self.index,
            "gpsData": self.gps_data.to_dict(),
            "surveyMetadata": self.survey_metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PhotoAsset":
        return cls(
            raw=RawImage(
                uri=data["uri"],
                width=data.get("width"),
                height=data.get("height"),
                exif=data.get("exif"),
            ),
            timestamp_ms=int(data["timestamp"]),
            session_id=data["sessionId"],
            index=int(data["index"]),
            gps_data=GeoFix.from_dict(data["gpsData"]),
            survey_metadata=SurveyMetadata.from_dict(data.get("surveyMetadata", {})),
        )


@dataclass(frozen=True)
class VideoAsset:
    """A georeferenced clip, located by the fix active when recording began."""
    raw: RawVideo
    timestamp_ms: int
    session_id: str
    duration: int  # seconds
    start_location: GeoFix

    @property
    def uri(self) -> str:
        return self.raw.uri

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uri": self.raw.uri,
            "timestamp": self.timestamp_ms,
            "sessionId": self.session_id,
            "duration": self.duration,
            "gpsData": {"startLocation": self.start_location.to_dict()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VideoAsset":
        return cls(
            raw=RawVideo(uri=data["uri"]),
            timestamp_ms=int(data["timestamp"]),
            session_id=data["sessionId"],
            duration=int(data.get("duration") or 0),
            start_location=GeoFix.from_dict(data["gpsData"]["startLocation"]),
        )


@dataclass(frozen=True)
class SessionSummary:
    """Read-only snapshot of the engine for display."""
    session_id: Optional[str]
    is_active: bool
    start_time_ms: Optional[int]
    photo_count: int
    video_count: int
    total_assets: int
    remaining_photo_capacity: int
    base_location: Optional[GeoFix]
    gps_quality: GpsQuality
    ready_for_processing: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "is_active": self.is_active,
            "start_time_ms": self.start_time_ms,
            "photo_count": self.photo_count,
            "video_count": self.video_count,
            "total_assets": self.total_assets,
            "remaining_photo_capacity": self.remaining_photo_capacity,
            "base_location": self.base_location.to_dict() if self.base_location else None,
            "gps_quality": self.gps_quality.value,
            "ready_for_processing": self.ready_for_processing,
        }
