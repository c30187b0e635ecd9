"""
Constants and enumerations for liborrery.

Defines:
- CelestialBody: the fixed set of bodies drawn on the orbital diagram
- Frame: geocentric / heliocentric reference frames
- OrbitalMode: the seven mutually exclusive animation modes
- Stylized orbit tables (initial angles and drift speeds)
- Scene geometry and astronomical constants

Orbit speeds are decorative (degrees per second of animation), not physical
periods. They keep the relative ordering of the real bodies only.
"""

import math
from enum import Enum


class UnknownBodyError(ValueError):
    """Raised when a body identifier is not one of the CelestialBody members."""


class CelestialBody(Enum):
    MOON = "Moon"
    MERCURY = "Mercury"
    VENUS = "Venus"
    SUN = "Sun"
    MARS = "Mars"
    JUPITER = "Jupiter"
    SATURN = "Saturn"
    EARTH = "Earth"


class Frame(Enum):
    GEOCENTRIC = "geocentric"
    HELIOCENTRIC = "heliocentric"


class OrbitalMode(Enum):
    GEOCENTRIC = "geocentric"
    HELIOCENTRIC = "heliocentric"
    LIVE = "live"
    ALIGNED = "aligned"
    BIRTH_DATE = "birth_date"
    CLOCK_24H = "clock_24h"
    CLOCK_12H = "clock_12h"


def resolve_body(value) -> CelestialBody:
    """
    Resolve a body identifier to a CelestialBody member.

    Args:
        value: CelestialBody member or body name ("Mars", "mars", "MARS")

    Returns:
        CelestialBody: The matching member

    Raises:
        UnknownBodyError: If value does not name a known body
    """
    if isinstance(value, CelestialBody):
        return value
    if isinstance(value, str):
        key = value.strip().upper()
        if key in CelestialBody.__members__:
            return CelestialBody[key]
    raise UnknownBodyError(f"Unknown body: {value!r}")


def resolve_mode(value) -> OrbitalMode:
    """Resolve an OrbitalMode member or its value string."""
    if isinstance(value, OrbitalMode):
        return value
    try:
        return OrbitalMode(value)
    except ValueError:
        raise ValueError(f"Unknown orbital mode: {value!r}") from None


# =============================================================================
# BODY DOMAINS
# =============================================================================

# Bodies with an ephemeris longitude (Earth is derived from the Sun)
EPHEMERIS_BODIES = (
    CelestialBody.MOON,
    CelestialBody.MERCURY,
    CelestialBody.VENUS,
    CelestialBody.SUN,
    CelestialBody.MARS,
    CelestialBody.JUPITER,
    CelestialBody.SATURN,
)

# Bodies drawn around the Earth
GEOCENTRIC_BODIES = EPHEMERIS_BODIES

# Bodies drawn around the Sun; the Moon keeps circling the Earth
HELIOCENTRIC_BODIES = (
    CelestialBody.MERCURY,
    CelestialBody.VENUS,
    CelestialBody.EARTH,
    CelestialBody.MARS,
    CelestialBody.JUPITER,
    CelestialBody.SATURN,
    CelestialBody.MOON,
)

ALL_BODIES = tuple(CelestialBody)


# =============================================================================
# STYLIZED ORBITS
# =============================================================================

# Format: body -> (initial angle in degrees, drift speed in degrees/second)
GEOCENTRIC_ORBITS = {
    CelestialBody.MOON: (-90.0, 6.0),
    CelestialBody.MERCURY: (-40.0, 2.0),
    CelestialBody.VENUS: (-130.0, 1.0),
    CelestialBody.SUN: (20.0, 0.6),
    CelestialBody.MARS: (-70.0, 0.35),
    CelestialBody.JUPITER: (160.0, 0.12),
    CelestialBody.SATURN: (100.0, 0.06),
}

HELIOCENTRIC_ORBITS = {
    CelestialBody.MERCURY: (-40.0, 4.15),
    CelestialBody.VENUS: (-130.0, 1.62),
    CelestialBody.EARTH: (20.0, 1.0),
    CelestialBody.MARS: (-70.0, 0.53),
    CelestialBody.JUPITER: (160.0, 0.084),
    CelestialBody.SATURN: (100.0, 0.034),
}

# Moon around the Earth in the heliocentric diagram
HELIO_MOON_SPEED = 13.37  # degrees/second

# Default table angles on mount (degrees)
DEFAULT_ANGLES_DEG = {
    **{body: orbit[0] for body, orbit in HELIOCENTRIC_ORBITS.items()},
    **{
        body: orbit[0]
        for body, orbit in GEOCENTRIC_ORBITS.items()
        if body not in HELIOCENTRIC_ORBITS
    },
}


# =============================================================================
# ANIMATION
# =============================================================================

LERP_SPEED = 2.0  # interpolation rate (1/second)
MAX_DT = 0.1  # seconds; larger frame gaps are clamped
ALIGN_ANGLE = -90.0  # degrees, common target of the Aligned mode
DEFAULT_MOON_PHASE = 135.0  # degrees, used until the provider answers
BIRTH_HOUR = 12  # local noon


# =============================================================================
# ASTRONOMY
# =============================================================================

OBLIQUITY_DEG = 23.4393  # J2000 obliquity of the ecliptic
OBLIQUITY_RAD = math.radians(OBLIQUITY_DEG)
COS_OBL = math.cos(OBLIQUITY_RAD)
SIN_OBL = math.sin(OBLIQUITY_RAD)

# Linear Lahiri approximation: value at 2000 and yearly drift (degrees)
AYANAMSA_J2000 = 23.853
AYANAMSA_RATE = 0.01397

ZODIAC_TROPICAL = "tropical"
ZODIAC_SIDEREAL = "sidereal"

ZODIAC_SIGNS = (
    "Aries",
    "Taurus",
    "Gemini",
    "Cancer",
    "Leo",
    "Virgo",
    "Libra",
    "Scorpio",
    "Sagittarius",
    "Capricorn",
    "Aquarius",
    "Pisces",
)

SIGN_SYMBOLS = (
    "♈", "♉", "♊", "♋", "♌", "♍",
    "♎", "♏", "♐", "♑", "♒", "♓",
)

# Sign name -> IAU constellation abbreviation
ZODIAC_CONSTELLATION_MAP = {
    "Aries": "Ari", "Taurus": "Tau", "Gemini": "Gem", "Cancer": "Cnc",
    "Leo": "Leo", "Virgo": "Vir", "Libra": "Lib", "Scorpio": "Sco",
    "Sagittarius": "Sgr", "Capricorn": "Cap", "Aquarius": "Aqr", "Pisces": "Psc",
}


# =============================================================================
# SCENE GEOMETRY (world units)
# =============================================================================

ZODIAC_RADIUS = 15.0
WALL_HEIGHT = 4.0
STAR_SPHERE_RADIUS = 80.0
ARC_STEP_DEG = 3.0  # max sub-segment length along the wall
