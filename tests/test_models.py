from omnisplat_capture.models import GeoFix, PhotoAsset, RawImage, SurveyMetadata, VideoAsset, RawVideo


def test_geofix_wire_format():
    fix = GeoFix.create(45.0, -111.0, 0.8, altitude=None, heading=90.0, timestamp_ms=1234)

    assert fix.to_dict() == {
        "latitude": 45.0,
        "longitude": -111.0,
        "altitude": 0.0,
        "accuracy": 0.8,
        "heading": 90.0,
        "speed": 0.0,
        "timestamp": 1234,
        "isRTK": True,
    }


def test_geofix_from_dict_keeps_stored_classification():
    fix = GeoFix.from_dict({"latitude": 1, "longitude": 2, "accuracy": 0.5, "isRTK": False})

    assert fix.is_precise is False
    assert fix.altitude == 0.0


def test_survey_metadata_is_offset_from_base():
    base = GeoFix.create(45.0, -111.0, 0.8, altitude=100.0)
    fix = GeoFix.create(45.5, -110.5, 2.0, altitude=90.0)

    survey = SurveyMetadata.relative_to(fix, base)

    assert survey.delta_lat == 45.5 - 45.0
    assert survey.delta_lon == -110.5 - -111.0
    assert survey.delta_alt == -10.0
    assert survey.gps_accuracy == 2.0
    assert survey.is_rtk is False
    assert survey.to_dict()["captureQuality"]["coordinateSystem"] == "WGS84"


def test_photo_and_video_dicts_load_back():
    base = GeoFix.create(45.0, -111.0, 0.8)
    fix = GeoFix.create(45.00001, -111.00001, 0.9)
    photo = PhotoAsset(
        raw=RawImage(uri="file:///a.jpg", width=10, height=20, exif={"FNumber": 1.8}),
        timestamp_ms=5,
        session_id="omni_1",
        index=1,
        gps_data=fix,
        survey_metadata=SurveyMetadata.relative_to(fix, base),
    )
    video = VideoAsset(raw=RawVideo(uri="file:///a.mp4"), timestamp_ms=6, session_id="omni_1",
                       duration=12, start_location=base)

    assert PhotoAsset.from_dict(photo.to_dict()) == photo
    assert VideoAsset.from_dict(video.to_dict()) == video
    assert video.to_dict()["gpsData"]["startLocation"]["latitude"] == 45.0
