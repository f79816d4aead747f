import pytest

from omnisplat_capture.config import CaptureConfig
from omnisplat_capture.errors import LocationUnavailable, PermissionDenied
from omnisplat_capture.location import LocationFeed, LocationOptions, classify_accuracy
from omnisplat_capture.models import GeoFix, GpsQuality


def test_start_subscribes_with_default_cadence(provider):
    feed = LocationFeed(provider)
    feed.start()

    assert feed.is_running
    assert provider.options == LocationOptions(min_interval_ms=1000, min_distance_m=0.1, high_accuracy=True)


def test_start_twice_keeps_one_subscription(provider):
    feed = LocationFeed(provider)
    feed.start()
    feed.start()

    assert provider.subscribe_calls == 1


def test_each_reading_replaces_current_fix(feed, provider):
    assert feed.current_fix is None

    provider.emit(45.0, -111.0, 2.0, altitude=1500.0, timestamp_ms=1000)
    first = feed.current_fix
    provider.emit(45.1, -111.1, 3.0, timestamp_ms=2000)

    assert feed.current_fix.latitude == 45.1
    assert first.latitude == 45.0
    assert first.altitude == 1500.0


def test_missing_altitude_heading_speed_default_to_zero(feed, provider):
    provider.emit(45.0, -111.0, 2.0)

    fix = feed.current_fix
    assert (fix.altitude, fix.heading, fix.speed) == (0.0, 0.0, 0.0)


def test_precision_flag_uses_threshold(feed, provider):
    provider.emit(45.0, -111.0, 0.8)
    assert feed.current_fix.is_precise
    assert feed.is_precise

    provider.emit(45.0, -111.0, 1.0)
    assert not feed.current_fix.is_precise


def test_precision_threshold_is_configurable(provider):
    feed = LocationFeed(provider, CaptureConfig(precision_threshold_m=3.0))
    feed.start()
    provider.emit(45.0, -111.0, 2.5)

    assert feed.current_fix.is_precise


def test_provider_geofix_is_reclassified(feed, provider):
    provider.handler(GeoFix(latitude=1.0, longitude=2.0, accuracy=0.5, is_precise=False))

    assert feed.current_fix.is_precise


def test_stop_is_idempotent_and_ignores_late_readings(feed, provider):
    provider.emit(45.0, -111.0, 2.0)
    feed.stop()
    feed.stop()

    provider.emit(46.0, -112.0, 2.0)

    assert provider.unsubscribed == ["watch-1"]
    assert not feed.is_running
    assert feed.current_fix.latitude == 45.0


def test_restart_after_stop_accepts_new_readings(feed, provider):
    feed.stop()
    feed.start()
    provider.emit(46.0, -112.0, 2.0)

    assert feed.current_fix.latitude == 46.0


def test_start_failure_reports_location_unavailable(provider):
    provider.fail_start = RuntimeError("no GNSS hardware")
    feed = LocationFeed(provider)

    with pytest.raises(LocationUnavailable, match="no GNSS hardware"):
        feed.start()
    assert not feed.is_running


def test_permission_refusal(provider):
    provider.permission = False

    with pytest.raises(PermissionDenied):
        LocationFeed(provider).request_permission()


def test_handlers_receive_fixes_until_unsubscribed(feed, provider):
    seen = []
    handle = feed.subscribe(seen.append)

    provider.emit(45.0, -111.0, 2.0)
    feed.unsubscribe(handle)
    provider.emit(45.1, -111.0, 2.0)

    assert [f.latitude for f in seen] == [45.0]


def test_failing_handler_does_not_block_others(feed, provider):
    seen = []

    def broken(fix):
        raise RuntimeError("boom")

    feed.subscribe(broken)
    feed.subscribe(seen.append)
    provider.emit(45.0, -111.0, 2.0)

    assert len(seen) == 1
    assert feed.current_fix is not None


@pytest.mark.parametrize("accuracy,expected", [
    (None, GpsQuality.NONE),
    (0.5, GpsQuality.RTK),
    (1.0, GpsQuality.GOOD),
    (4.9, GpsQuality.GOOD),
    (10.0, GpsQuality.FAIR),
    (15.0, GpsQuality.POOR),
])
def test_classify_accuracy(accuracy, expected):
    assert classify_accuracy(accuracy) is expected


def test_gps_quality_follows_current_fix(feed, provider):
    assert feed.gps_quality is GpsQuality.NONE
    provider.emit(45.0, -111.0, 8.0)
    assert feed.gps_quality is GpsQuality.FAIR
