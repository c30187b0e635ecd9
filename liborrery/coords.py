"""
Coordinate transforms for static sky placement.

Converts catalog coordinates (equatorial, degrees) to ecliptic angles and
places them on the two backdrop surfaces of the scene:
- the zodiac wall, a vertical cylinder around the orbit plane
- the star sphere, a large sphere enclosing everything

Scene axes: Y is up, the orbit plane is XZ. Longitudes are negated so that
increasing longitude runs the same way as the animated bodies.

These functions are pure and run once at load, never per frame.

FIXME: Precision - fixed J2000 obliquity, no precession or nutation.
Adequate for a decorative backdrop (errors well under a degree).
"""

import math
from typing import List, Tuple

from .constants import ARC_STEP_DEG, COS_OBL, SIN_OBL, WALL_HEIGHT
from .utils import shortest_angle

Point3 = Tuple[float, float, float]


def equatorial_to_ecliptic(lon_deg: float, lat_deg: float) -> Tuple[float, float]:
    """
    Rotate equatorial coordinates into the ecliptic frame.

    Args:
        lon_deg: Right ascension in degrees (any real value)
        lat_deg: Declination in degrees

    Returns:
        Tuple[float, float]: (ecliptic longitude, ecliptic latitude) in radians.
            Longitude comes from atan2 and lies in (-π, π]; callers wrap it
            as needed.

    Note:
        sin(β) is clamped to [-1, 1] before asin to absorb rounding at the
        poles.
    """
    alpha = math.radians(lon_deg)
    delta = math.radians(lat_deg)

    sin_beta = math.sin(delta) * COS_OBL - math.cos(delta) * SIN_OBL * math.sin(alpha)
    beta = math.asin(max(-1.0, min(1.0, sin_beta)))

    lam = math.atan2(
        math.sin(alpha) * COS_OBL + math.tan(delta) * SIN_OBL,
        math.cos(alpha),
    )
    return lam, beta


def _wall_angle(lon_deg: float, lat_deg: float) -> Tuple[float, float]:
    lam, beta = equatorial_to_ecliptic(lon_deg, lat_deg)
    return -lam, beta


def _cylinder_point(angle: float, beta: float, radius: float) -> Point3:
    return (
        radius * math.cos(angle),
        radius * math.tan(beta),
        radius * math.sin(angle),
    )


def project_to_cylinder(lon_deg: float, lat_deg: float, radius: float) -> Point3:
    """
    Place an equatorial position on the zodiac wall.

    Args:
        lon_deg: Right ascension in degrees
        lat_deg: Declination in degrees
        radius: Wall radius

    Returns:
        Point3: (x, y, z) with x = R·cos θ, z = R·sin θ, y = R·tan β,
            where θ is the negated ecliptic longitude

    Note:
        y diverges as the ecliptic latitude approaches ±90°. Stars near the
        ecliptic poles are not supported by this projection and land far
        outside the wall; filter with within_wall().
    """
    angle, beta = _wall_angle(lon_deg, lat_deg)
    return _cylinder_point(angle, beta, radius)


def project_to_sphere(lon_deg: float, lat_deg: float, radius: float) -> Point3:
    """
    Place a catalog position on the star sphere (no frame rotation).

    Args:
        lon_deg: Longitude in degrees
        lat_deg: Latitude in degrees
        radius: Sphere radius

    Returns:
        Point3: (x, y, z) on the sphere
    """
    theta = math.radians(-lon_deg)
    phi = math.radians(lat_deg)
    return (
        radius * math.cos(phi) * math.cos(theta),
        radius * math.sin(phi),
        radius * math.cos(phi) * math.sin(theta),
    )


def within_wall(y: float, wall_height: float = WALL_HEIGHT) -> bool:
    """True if a projected height fits on a wall of the given height."""
    return abs(y) <= wall_height / 2.0


def arc_segments(
    lon1: float,
    lat1: float,
    lon2: float,
    lat2: float,
    radius: float,
    step_deg: float = ARC_STEP_DEG,
) -> List[Point3]:
    """
    Subdivide a line between two equatorial positions along the wall.

    A straight chord between two wall points cuts inside the cylinder, so
    constellation lines are split into sub-segments of at most step_deg of
    wall angle, following the shortest way round.

    Returns:
        List[Point3]: steps + 1 points from the first position to the second
    """
    a1, b1 = _wall_angle(lon1, lat1)
    a2, b2 = _wall_angle(lon2, lat2)
    d_angle = shortest_angle(a1, a2)
    steps = max(1, math.ceil(abs(d_angle) / math.radians(step_deg)))

    points = []
    for i in range(steps + 1):
        t = i / steps
        points.append(_cylinder_point(a1 + d_angle * t, b1 + (b2 - b1) * t, radius))
    return points
