import json

import pytest

from omnisplat_capture.manifest import (
    MANIFEST_VERSION,
    SessionManifest,
    export_session_manifest,
    load_session_manifest,
)
from omnisplat_capture.models import GeoFix, RawImage, RawVideo


@pytest.fixture
def recorded(engine):
    base = GeoFix.create(45.0, -111.0, 0.8, altitude=1500.0, timestamp_ms=10)
    engine.start_session(base)
    engine.record_photo(RawImage(uri="file:///captures/IMG_0001.jpg", width=4032, height=3024,
                                 exif={"ISO": 100}), GeoFix.create(45.00001, -111.00001, 0.9))
    engine.record_photo(RawImage(uri="file:///captures/IMG_0002.jpg"), GeoFix.create(45.00002, -111.0, 3.0))
    engine.record_video(RawVideo(uri="file:///captures/rec-1.mp4"), base, 42)
    return engine


@pytest.mark.parametrize("name", ["session.json", "session.yaml"])
def test_export_and_load(recorded, tmp_path, name):
    path = export_session_manifest(recorded, tmp_path / "out" / name)

    manifest = load_session_manifest(path)

    assert manifest.session == recorded.session
    assert manifest.photos == list(recorded.photos)
    assert manifest.videos == list(recorded.videos)
    assert [a.uri for a in manifest.assets] == [
        "file:///captures/IMG_0001.jpg", "file:///captures/IMG_0002.jpg", "file:///captures/rec-1.mp4",
    ]


def test_json_layout(recorded, tmp_path):
    path = export_session_manifest(recorded, tmp_path / "session.json")
    data = json.loads(path.read_text())

    assert data["version"] == MANIFEST_VERSION
    assert data["session"]["id"] == recorded.session.session_id
    assert data["session"]["totalAssets"] == 3
    assert data["photos"][0]["surveyMetadata"]["captureQuality"]["isRTKEnabled"] is True
    assert data["videos"][0]["duration"] == 42


def test_export_requires_a_session(engine, tmp_path):
    with pytest.raises(ValueError, match="No active session"):
        export_session_manifest(engine, tmp_path / "session.json")


def test_inconsistent_total_is_rejected(recorded):
    data = SessionManifest.from_engine(recorded).to_dict()
    data["session"]["totalAssets"] = 7

    with pytest.raises(ValueError, match="totalAssets"):
        SessionManifest.from_dict(data)


def test_unknown_version_is_rejected(recorded):
    data = SessionManifest.from_engine(recorded).to_dict()
    data["version"] = 99

    with pytest.raises(ValueError, match="version"):
        SessionManifest.from_dict(data)


def test_non_mapping_file_is_rejected(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("[1, 2, 3]")

    with pytest.raises(ValueError, match="mapping"):
        load_session_manifest(path)
