"""Configuration for capture limits and the processing service.

Configuration can be loaded from YAML or JSON and overridden from the
environment:

    capture:
      max_photos: 500
      burst_size: 10
    processing:
      base_url: https://api.example.com/v1
      timeout_s: 15

Environment overrides:
    OMNISPLAT_API_KEY           API credential for the processing service
    OMNISPLAT_API_BASE_URL      Base URL of the processing service
    OMNISPLAT_REQUEST_TIMEOUT   Per-request timeout in seconds
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from .utils.io import load_json


PRECISION_THRESHOLD_M = 1.0
COORDINATE_SYSTEM = "WGS84"

ENV_API_KEY = "OMNISPLAT_API_KEY"
ENV_BASE_URL = "OMNISPLAT_API_BASE_URL"
ENV_TIMEOUT = "OMNISPLAT_REQUEST_TIMEOUT"


class BurstPolicy(Enum):
    """What a burst does when one of its captures fails."""
    CONTINUE_ON_FAILURE = "continue"
    ABORT_ON_FAILURE = "abort"


@dataclass
class CaptureConfig:
    """Limits and cadence for a capture session."""

    # Session limits
    max_photos: int = 1000
    max_video_duration_s: int = 600
    min_photos_for_processing: int = 8

    # Burst mode
    burst_size: int = 20
    burst_delay_s: float = 0.3
    burst_policy: BurstPolicy = BurstPolicy.CONTINUE_ON_FAILURE

    # Location feed
    gps_update_interval_ms: int = 1000
    gps_distance_interval_m: float = 0.1
    precision_threshold_m: float = PRECISION_THRESHOLD_M
    gps_accuracy_threshold_m: float = 5.0
    gps_fair_threshold_m: float = 15.0

    # Still capture
    photo_quality: float = 0.8
    photo_exif: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "max_photos": self.max_photos,
            "max_video_duration_s": self.max_video_duration_s,
            "min_photos_for_processing": self.min_photos_for_processing,
            "burst_size": self.burst_size,
            "burst_delay_s": self.burst_delay_s,
            "burst_policy": self.burst_policy.value,
            "gps_update_interval_ms": self.gps_update_interval_ms,
            "gps_distance_interval_m": self.gps_distance_interval_m,
            "precision_threshold_m": self.precision_threshold_m,
            "gps_accuracy_threshold_m": self.gps_accuracy_threshold_m,
            "gps_fair_threshold_m": self.gps_fair_threshold_m,
            "photo_quality": self.photo_quality,
            "photo_exif": self.photo_exif,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CaptureConfig":
        """Deserialize from dictionary, ignoring unknown keys."""
        values = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        if "burst_policy" in values and not isinstance(values["burst_policy"], BurstPolicy):
            values["burst_policy"] = BurstPolicy(values["burst_policy"])
        return cls(**values)


@dataclass
class ProcessingConfig:
    """Settings for the remote reconstruction service."""

    base_url: str = "https://api.rendernetwork.com/v1"
    api_key: Optional[str] = None
    timeout_s: float = 30.0
    retry_attempts: int = 3
    max_batch_size: int = 50
    supported_formats: List[str] = field(default_factory=lambda: [
        "jpg", "jpeg", "png", "mp4", "mov",
    ])

    # Job description
    job_type: str = "spatial_reconstruction"
    processing_types: List[str] = field(default_factory=lambda: [
        "gaussian_splatting", "convex_splatting",
    ])
    output_formats: List[str] = field(default_factory=lambda: [
        "ply", "splat", "obj", "gltf",
    ])
    quality: str = "high"
    priority: str = "normal"

    # Polling
    poll_interval_s: float = 5.0
    poll_timeout_s: float = 3600.0

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary. The API key is never written out."""
        return {
            "base_url": self.base_url,
            "timeout_s": self.timeout_s,
            "retry_attempts": self.retry_attempts,
            "max_batch_size": self.max_batch_size,
            "supported_formats": list(self.supported_formats),
            "job_type": self.job_type,
            "processing_types": list(self.processing_types),
            "output_formats": list(self.output_formats),
            "quality": self.quality,
            "priority": self.priority,
            "poll_interval_s": self.poll_interval_s,
            "poll_timeout_s": self.poll_timeout_s,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProcessingConfig":
        """Deserialize from dictionary, ignoring unknown keys."""
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class AppConfig:
    """Top-level configuration."""
    capture: CaptureConfig = field(default_factory=CaptureConfig)
    processing: ProcessingConfig = field(default_factory=ProcessingConfig)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "capture": self.capture.to_dict(),
            "processing": self.processing.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppConfig":
        return cls(
            capture=CaptureConfig.from_dict(data.get("capture") or {}),
            processing=ProcessingConfig.from_dict(data.get("processing") or {}),
        )


def _read_config_file(path: Path) -> Dict[str, Any]:
    """Read a YAML or JSON config file into a dictionary."""
    if path.suffix in (".yaml", ".yml"):
        import yaml
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    else:
        data = load_json(path)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")
    return data


def apply_env_overrides(
    config: AppConfig,
    environ: Optional[Dict[str, str]] = None,
) -> AppConfig:
    """Apply OMNISPLAT_* environment overrides in place.

    Args:
        config: Configuration to update.
        environ: Environment mapping (defaults to ``os.environ``).

    Returns:
        The same config, for chaining.
    """
    env = os.environ if environ is None else environ

    if env.get(ENV_API_KEY):
        config.processing.api_key = env[ENV_API_KEY]
    if env.get(ENV_BASE_URL):
        config.processing.base_url = env[ENV_BASE_URL]
    if env.get(ENV_TIMEOUT):
        try:
            config.processing.timeout_s = float(env[ENV_TIMEOUT])
        except ValueError:
            raise ValueError(f"{ENV_TIMEOUT} must be a number, got {env[ENV_TIMEOUT]!r}")

    return config


def load_config(
    path: Optional[Path] = None,
    environ: Optional[Dict[str, str]] = None,
) -> AppConfig:
    """Load configuration from an optional file plus environment overrides.

    Args:
        path: YAML (.yaml/.yml) or JSON config file. Defaults are used when None.
        environ: Environment mapping (defaults to ``os.environ``).

    Returns:
        Resolved AppConfig.
    """
    data = _read_config_file(Path(path)) if path is not None else {}
    return apply_env_overrides(AppConfig.from_dict(data), environ)
