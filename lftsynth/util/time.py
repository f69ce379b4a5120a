"""GPS/UTC time utilities shared across lftsynth components."""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Tuple

GPS_EPOCH = datetime(1980, 1, 6, tzinfo=timezone.utc)

# GPS time at which each leap second took effect (cumulative GPS-UTC offset = index + 1).
_LEAP_SECONDS_GPS = (
    46828800,    # 1981-07-01
    78364801,    # 1982-07-01
    109900802,   # 1983-07-01
    173059203,   # 1985-07-01
    252028804,   # 1988-01-01
    315187205,   # 1990-01-01
    346723206,   # 1991-01-01
    393984007,   # 1992-07-01
    425520008,   # 1993-07-01
    457056009,   # 1994-07-01
    504489610,   # 1996-01-01
    551750411,   # 1997-07-01
    599184012,   # 1999-01-01
    820108813,   # 2006-01-01
    914803214,   # 2009-01-01
    1025136015,  # 2012-07-01
    1119744016,  # 2015-07-01
    1167264017,  # 2017-01-01
)


def leap_seconds_at(gps_seconds: float) -> int:
    """Number of leap seconds accumulated between the GPS epoch and ``gps_seconds``."""
    return sum(1 for t in _LEAP_SECONDS_GPS if gps_seconds >= t)


def gps_to_utc(gps_seconds: float) -> datetime:
    """Convert GPS seconds to an aware UTC datetime."""
    return GPS_EPOCH + timedelta(seconds=float(gps_seconds) - leap_seconds_at(gps_seconds))


def split_gps(gps_seconds: float) -> Tuple[int, int]:
    """Split float GPS seconds into integer (seconds, nanoseconds)."""
    sec = int(math.floor(gps_seconds))
    nsec = int(round((gps_seconds - sec) * 1e9))
    if nsec >= 1_000_000_000:
        sec += 1
        nsec -= 1_000_000_000
    return sec, nsec


def gps_from_parts(sec: int, nsec: int) -> float:
    return float(sec) + 1e-9 * float(nsec)
