from datetime import datetime, timezone

from lftsynth.util.time import GPS_EPOCH, gps_from_parts, gps_to_utc, leap_seconds_at, split_gps


def test_gps_epoch_maps_to_itself() -> None:
    assert leap_seconds_at(0) == 0
    assert gps_to_utc(0) == GPS_EPOCH


def test_gps_billion_is_known_utc() -> None:
    assert leap_seconds_at(1_000_000_000) == 15
    assert gps_to_utc(1_000_000_000) == datetime(2011, 9, 14, 1, 46, 25, tzinfo=timezone.utc)


def test_leap_seconds_step_at_table_entries() -> None:
    assert leap_seconds_at(1167264016) == 17
    assert leap_seconds_at(1167264017) == 18


def test_split_gps_carries_rounded_nanoseconds() -> None:
    assert split_gps(1_000_000_000.25) == (1_000_000_000, 250_000_000)
    assert split_gps(1.9999999999) == (2, 0)
    assert split_gps(5.0) == (5, 0)
    assert gps_from_parts(7, 500_000_000) == 7.5
