"""Session manifest export and import.

A manifest is the hand-off between a finished capture session and a later
submission (for example from the CLI on another machine):

    {
        "version": 1,
        "session": {"id": "omni_1718000000000", "startTime": ..., "totalAssets": 3,
                    "baseLocation": {...}},
        "photos": [{...}, {...}],
        "videos": [{...}]
    }

JSON and YAML are both accepted; the format follows the file extension.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from .models import CaptureSession, PhotoAsset, VideoAsset
from .session import CaptureSessionEngine
from .utils.io import load_json, load_yaml, save_json, save_yaml
from .utils.logging import get_logger

logger = get_logger(__name__)


MANIFEST_VERSION = 1


@dataclass
class SessionManifest:
    """A session and its full asset ledger."""
    session: CaptureSession
    photos: List[PhotoAsset] = field(default_factory=list)
    videos: List[VideoAsset] = field(default_factory=list)

    @classmethod
    def from_engine(cls, engine: CaptureSessionEngine) -> "SessionManifest":
        if engine.session is None:
            raise ValueError("No active session to export")
        return cls(
            session=engine.session,
            photos=list(engine.photos),
            videos=list(engine.videos),
        )

    @property
    def assets(self) -> List[Any]:
        return [*self.photos, *self.videos]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": MANIFEST_VERSION,
            "session": self.session.to_dict(),
            "photos": [p.to_dict() for p in self.photos],
            "videos": [v.to_dict() for v in self.videos],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionManifest":
        version = data.get("version", MANIFEST_VERSION)
        if version != MANIFEST_VERSION:
            raise ValueError(f"Unsupported manifest version: {version}")

        manifest = cls(
            session=CaptureSession.from_dict(data["session"]),
            photos=[PhotoAsset.from_dict(p) for p in data.get("photos", [])],
            videos=[VideoAsset.from_dict(v) for v in data.get("videos", [])],
        )

        expected = len(manifest.photos) + len(manifest.videos)
        if manifest.session.total_assets != expected:
            raise ValueError(
                f"Manifest totalAssets={manifest.session.total_assets} "
                f"but contains {expected} assets"
            )
        return manifest


def export_session_manifest(engine: CaptureSessionEngine, path: Path) -> Path:
    """Write the engine's active session to ``path`` (.json, .yaml or .yml)."""
    manifest = SessionManifest.from_engine(engine)
    path = Path(path)

    if path.suffix in (".yaml", ".yml"):
        save_yaml(manifest.to_dict(), path)
    else:
        save_json(manifest.to_dict(), path)

    logger.info(
        f"Exported {manifest.session.session_id}: "
        f"{len(manifest.photos)} photos, {len(manifest.videos)} videos -> {path}"
    )
    return path


def load_session_manifest(path: Path) -> SessionManifest:
    """Read a manifest written by :func:`export_session_manifest`."""
    path = Path(path)
    if path.suffix in (".yaml", ".yml"):
        data = load_yaml(path)
    else:
        data = load_json(path)

    if not isinstance(data, dict):
        raise ValueError(f"Manifest must contain a mapping: {path}")
    return SessionManifest.from_dict(data)
