from .constants import (
    CelestialBody,
    Frame,
    OrbitalMode,
    UnknownBodyError,
    resolve_body,
    resolve_mode,
    OBLIQUITY_DEG,
    ZODIAC_TROPICAL,
    ZODIAC_SIDEREAL,
)
from .utils import difdeg2n, shortest_angle, lerp_angle, normalize_radians
from .coords import (
    equatorial_to_ecliptic,
    project_to_cylinder,
    project_to_sphere,
    arc_segments,
    within_wall,
)
from .sidereal import ayanamsa, zodiac_rotation, sign_label, sign_index
from .time_utils import fractional_year, birth_instant, clock_angle_24h, clock_hand_angles
from .ephemeris import EphemerisProvider, SkyfieldEphemeris, CachedEphemeris
from .angle_table import AngleTable, Snapshot
from .animation import (
    AnimationConfig,
    AnimationState,
    BirthDateTarget,
    create_state,
    reset,
    set_mode,
    set_display_frame,
    set_birth_date,
    compute_birth_targets,
    tick,
    snapshot,
)
from .fixed_stars import (
    StarRecord,
    Constellation,
    BRIGHT_STARS,
    load_star_catalog,
    load_constellations,
    star_point_size,
    place_stars_on_wall,
    place_stars_on_sphere,
    zodiac_constellation_segments,
)
from .state import set_ephe_path, set_ephemeris_file


__version__ = "0.1.0"
__license__ = "LGPL-3.0"

__all__ = [
    # Bodies and modes
    "CelestialBody",
    "Frame",
    "OrbitalMode",
    "UnknownBodyError",
    "resolve_body",
    "resolve_mode",
    "OBLIQUITY_DEG",
    "ZODIAC_TROPICAL",
    "ZODIAC_SIDEREAL",
    # Angles
    "difdeg2n",
    "shortest_angle",
    "lerp_angle",
    "normalize_radians",
    # Coordinates
    "equatorial_to_ecliptic",
    "project_to_cylinder",
    "project_to_sphere",
    "arc_segments",
    "within_wall",
    # Sidereal
    "ayanamsa",
    "zodiac_rotation",
    "sign_label",
    "sign_index",
    # Time
    "fractional_year",
    "birth_instant",
    "clock_angle_24h",
    "clock_hand_angles",
    # Ephemeris
    "EphemerisProvider",
    "SkyfieldEphemeris",
    "CachedEphemeris",
    "set_ephe_path",
    "set_ephemeris_file",
    # Animation
    "AngleTable",
    "Snapshot",
    "AnimationConfig",
    "AnimationState",
    "BirthDateTarget",
    "create_state",
    "reset",
    "set_mode",
    "set_display_frame",
    "set_birth_date",
    "compute_birth_targets",
    "tick",
    "snapshot",
    # Fixed stars
    "StarRecord",
    "Constellation",
    "BRIGHT_STARS",
    "load_star_catalog",
    "load_constellations",
    "star_point_size",
    "place_stars_on_wall",
    "place_stars_on_sphere",
    "zodiac_constellation_segments",
]
