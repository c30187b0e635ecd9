"""
Fixed star and constellation catalogs for liborrery.

Star and constellation records are read-only reference data: loaded once at
startup, placed on the zodiac wall or star sphere, and never touched by the
animation tick.

Catalog formats (JSON):
- Stars: list of [lon, lat, mag] arrays, or objects
  {"lon": ..., "lat": ..., "mag": ..., "name": ...}
- Constellations: list of {"id": "Leo", "lines": [[[lon1, lat1], [lon2, lat2]], ...]}

Coordinates are equatorial J2000 degrees (lon = right ascension).
"""

import json
import logging
import os
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .constants import (
    STAR_SPHERE_RADIUS,
    WALL_HEIGHT,
    ZODIAC_CONSTELLATION_MAP,
    ZODIAC_RADIUS,
)
from .coords import Point3, arc_segments, project_to_cylinder, project_to_sphere, within_wall

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class StarRecord:
    """
    Fixed star catalog entry.

    Attributes:
        lon_deg: Equatorial longitude (right ascension) in degrees
        lat_deg: Equatorial latitude (declination) in degrees
        magnitude: Apparent visual magnitude (lower is brighter)
        name: Proper name, if the star has one
    """

    lon_deg: float
    lat_deg: float
    magnitude: float
    name: Optional[str] = None


@dataclass(frozen=True)
class Constellation:
    """Stick figure of a constellation: id plus line segments of (lon, lat) pairs."""

    id: str
    lines: Tuple[Tuple[Tuple[float, float], Tuple[float, float]], ...]


# Named bright stars (J2000.0 ICRS coordinates from Hipparcos)
BRIGHT_STARS = (
    StarRecord(152.092958, 11.967208, 1.35, "Regulus"),
    StarRecord(201.298247, -11.161319, 0.97, "Spica"),
    StarRecord(68.980163, 16.509302, 0.86, "Aldebaran"),
    StarRecord(247.351915, -26.432003, 1.06, "Antares"),
    StarRecord(344.412693, -29.622237, 1.16, "Fomalhaut"),
    StarRecord(56.871152, 24.105136, 2.87, "Alcyone"),
)

PathOrData = Union[str, "os.PathLike[str]", Iterable]


def _read_json(source: PathOrData):
    if isinstance(source, (str, os.PathLike)):
        with open(source, encoding="utf-8") as fh:
            return json.load(fh)
    return source


def _parse_star(row) -> StarRecord:
    if isinstance(row, StarRecord):
        return row
    if isinstance(row, dict):
        return StarRecord(
            float(row["lon"]), float(row["lat"]), float(row["mag"]), row.get("name")
        )
    if isinstance(row, (list, tuple)) and len(row) >= 3:
        name = row[3] if len(row) > 3 else None
        return StarRecord(float(row[0]), float(row[1]), float(row[2]), name)
    raise ValueError(f"Malformed star record: {row!r}")


def load_star_catalog(source: PathOrData) -> Tuple[StarRecord, ...]:
    """
    Load a star catalog.

    Args:
        source: Path to a JSON file, or an iterable of rows already decoded

    Returns:
        Tuple[StarRecord, ...]: Records in catalog order

    Raises:
        ValueError: If a row is malformed
    """
    data = _read_json(source)
    stars = tuple(_parse_star(row) for row in data)
    log.debug("Loaded %d stars", len(stars))
    return stars


def load_constellations(source: PathOrData) -> Tuple[Constellation, ...]:
    """
    Load constellation stick figures.

    Raises:
        ValueError: If an entry has no id or a line is not a pair of points
    """
    data = _read_json(source)
    result = []
    for entry in data:
        if "id" not in entry:
            raise ValueError(f"Constellation without id: {entry!r}")
        lines = []
        for seg in entry.get("lines", ()):
            if len(seg) != 2:
                raise ValueError(f"Bad segment in {entry['id']}: {seg!r}")
            (lon1, lat1), (lon2, lat2) = seg
            lines.append(((float(lon1), float(lat1)), (float(lon2), float(lat2))))
        result.append(Constellation(entry["id"], tuple(lines)))
    return tuple(result)


def star_point_size(magnitude: float) -> float:
    """Point size for a star; brighter stars (lower magnitude) get larger points."""
    return max(0.15, 0.3 + (6.0 - magnitude) * 0.25)


def place_stars_on_sphere(
    stars: Sequence[StarRecord], radius: float = STAR_SPHERE_RADIUS
) -> List[Tuple[Point3, float]]:
    """Star sphere positions and point sizes, in catalog order."""
    return [
        (project_to_sphere(s.lon_deg, s.lat_deg, radius), star_point_size(s.magnitude))
        for s in stars
    ]


def place_stars_on_wall(
    stars: Sequence[StarRecord],
    radius: float = ZODIAC_RADIUS,
    wall_height: float = WALL_HEIGHT,
) -> List[Tuple[StarRecord, Point3]]:
    """
    Project stars onto the zodiac wall, dropping those that fall off it.

    Returns:
        List of (star, (x, y, z)) for stars whose height fits the wall
    """
    placed = []
    for star in stars:
        point = project_to_cylinder(star.lon_deg, star.lat_deg, radius)
        if within_wall(point[1], wall_height):
            placed.append((star, point))
    return placed


def zodiac_constellation_segments(
    constellations: Iterable[Constellation],
    radius: float = ZODIAC_RADIUS,
    wall_height: float = WALL_HEIGHT,
) -> Dict[str, List[List[Point3]]]:
    """
    Wall polylines for the twelve zodiac constellations.

    Non-zodiac figures are ignored. A segment is dropped when either end
    falls off the wall; the rest are subdivided with arc_segments().

    Returns:
        dict: constellation id -> list of polylines
    """
    zodiac_ids = set(ZODIAC_CONSTELLATION_MAP.values())
    result: Dict[str, List[List[Point3]]] = {}
    for c in constellations:
        if c.id not in zodiac_ids:
            continue
        polylines = []
        for (lon1, lat1), (lon2, lat2) in c.lines:
            p1 = project_to_cylinder(lon1, lat1, radius)
            p2 = project_to_cylinder(lon2, lat2, radius)
            if not (within_wall(p1[1], wall_height) and within_wall(p2[1], wall_height)):
                continue
            polylines.append(arc_segments(lon1, lat1, lon2, lat2, radius))
        result[c.id] = polylines
    return result
