"""
Time helpers for liborrery.

Implements the calendar and wall-clock conversions used by the animation:
- Fractional year for the linear ayanamsa approximation
- Birth date -> query instant (local noon by default)
- Clock dial angles for the 24h and 12h overlays

Dial convention: 0° points along +X, angles grow clockwise as seen from
above, and the display negates them (see animation.tick). The 24h dial puts
midnight at the top (+90° phase); the 12h dial puts 12 o'clock at the top
(-90° phase).
"""

from datetime import date, datetime, time, tzinfo
from typing import Optional, Tuple

from .constants import BIRTH_HOUR


def fractional_year(d: date) -> float:
    """
    Approximate decimal year of a calendar date.

    Args:
        d: Calendar date (datetime accepted, time of day ignored)

    Returns:
        float: year + (month - 1) / 12 + day / 365.25

    Note:
        This is a deliberately coarse approximation (the month term counts
        from zero, the day term is not reset per month). It is the value the
        ayanamsa formula is calibrated against; do not replace it with an
        exact day-of-year computation.
    """
    return d.year + (d.month - 1) / 12.0 + d.day / 365.25


def birth_instant(
    d: date, hour: int = BIRTH_HOUR, tz: Optional[tzinfo] = None
) -> datetime:
    """
    Build the instant at which birth-date positions are sampled.

    Args:
        d: Birth date
        hour: Local hour of day (default: noon)
        tz: Time zone of the birth place; local system zone if None

    Returns:
        datetime: Timezone-aware datetime at hour:00 on d
    """
    if isinstance(d, datetime):
        d = d.date()
    naive = datetime.combine(d, time(hour=hour))
    if tz is None:
        return naive.astimezone()
    return naive.replace(tzinfo=tz)


def _seconds(dt: datetime) -> float:
    return dt.second + dt.microsecond / 1_000_000.0


def clock_angle_24h(dt: datetime) -> float:
    """
    Angle of the Sun / hour hand on the 24h dial, in degrees.

    15° per hour, 0.25° per minute, 15/3600° per second, plus the 90° phase
    that puts midnight at the top of the dial.

    Examples:
        >>> clock_angle_24h(datetime(2024, 1, 1, 0, 0, 0))
        90.0
        >>> clock_angle_24h(datetime(2024, 1, 1, 12, 0, 0))
        270.0
    """
    return dt.hour * 15.0 + dt.minute * 0.25 + _seconds(dt) * (15.0 / 3600.0) + 90.0


def clock_hand_angles(
    dt: datetime, twenty_four_hour: bool = True
) -> Tuple[float, float, float]:
    """
    Hour, minute and second hand angles of the clock overlay, in degrees.

    Args:
        dt: Wall-clock time
        twenty_four_hour: True for the 24h dial, False for the 12h dial

    Returns:
        Tuple[float, float, float]: (hour, minute, second) dial angles
    """
    s = _seconds(dt)
    if twenty_four_hour:
        hour = dt.hour * 15.0 + dt.minute * 0.25 + 90.0
        minute = dt.minute * 6.0 + s * 0.1 + 90.0
        second = s * 6.0 + 90.0
    else:
        hour = (dt.hour % 12) * 30.0 + dt.minute * 0.5 - 90.0
        minute = dt.minute * 6.0 + s * 0.1 - 90.0
        second = s * 6.0 - 90.0
    return hour, minute, second


def hour_marker_angles(twenty_four_hour: bool = True) -> Tuple[float, ...]:
    """Dial angles (degrees) of the hour markers, starting at 0h / 12 o'clock."""
    if twenty_four_hour:
        return tuple(i * 15.0 + 90.0 for i in range(24))
    return tuple(i * 30.0 - 90.0 for i in range(12))
