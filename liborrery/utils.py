"""
Angular helpers for liborrery.

Provides wraparound-safe angle differences and the interpolation used to
blend every animated body toward its target. Blending raw angle values
would rotate the long way round across the ±180° seam, so all smoothing
goes through the shortest signed difference.
"""

import math

TWO_PI = 2.0 * math.pi


def difdeg2n(p1: float, p2: float) -> float:
    """
    Calculate distance in degrees p1 - p2 normalized to [-180;180].

    Args:
        p1: First angle in degrees
        p2: Second angle in degrees

    Returns:
        Normalized difference in range [-180, 180]

    Examples:
        >>> difdeg2n(10, 20)
        -10.0
        >>> difdeg2n(350, 10)
        -20.0
        >>> difdeg2n(10, 350)
        20.0
        >>> difdeg2n(180, 0)
        180.0
    """
    diff = (p1 - p2) % 360.0
    if diff > 180.0:
        diff -= 360.0
    return diff


def shortest_angle(current: float, target: float) -> float:
    """
    Signed difference target - current in radians, normalized to (-π, π].

    Examples:
        >>> round(shortest_angle(0.0, 3 * math.pi / 2), 6)
        -1.570796
    """
    diff = math.remainder(target - current, TWO_PI)
    if diff <= -math.pi:
        diff += TWO_PI
    return diff


def lerp_angle(current: float, target: float, rate: float, dt: float) -> float:
    """
    Advance an angle toward a target along the shortest arc.

    Args:
        current: Current angle in radians (unbounded)
        target: Target angle in radians (unbounded)
        rate: Interpolation rate per second
        dt: Elapsed time in seconds

    Returns:
        float: New angle, current + diff * min(rate * dt, 1)

    Note:
        The result stays in the same winding as current, so the table
        never jumps by a full turn. Once rate * dt >= 1 the result equals
        the target modulo 2π.
    """
    diff = shortest_angle(current, target)
    return current + diff * min(rate * dt, 1.0)


def normalize_radians(angle: float) -> float:
    """Wrap an angle into [0, 2π)."""
    wrapped = angle % TWO_PI
    return 0.0 if wrapped == TWO_PI else wrapped


def normalize_degrees(angle: float) -> float:
    """Wrap an angle into [0, 360)."""
    wrapped = angle % 360.0
    return 0.0 if wrapped == 360.0 else wrapped
