"""
Sidereal zodiac offset for liborrery.

The ayanamsa is the angle between the tropical zodiac (anchored to the
vernal equinox) and the sidereal zodiac (anchored to the stars). The
diagram uses it for one thing only: rotating the zodiac sign boundaries
rigidly against the fixed star backdrop when sidereal display is selected.
Planet angles are never shifted by it.

Uses a linear Lahiri approximation:
    ayanamsa = 23.853 + (fractional_year - 2000) * 0.01397

Typical error against the full Lahiri definition is a few arcminutes over
the 20th and 21st centuries, well below what the diagram can show.
"""

import math
from datetime import date
from typing import Optional

from .constants import (
    AYANAMSA_J2000,
    AYANAMSA_RATE,
    SIGN_SYMBOLS,
    ZODIAC_SIDEREAL,
    ZODIAC_SIGNS,
    ZODIAC_TROPICAL,
)
from .time_utils import fractional_year
from .utils import normalize_degrees


def ayanamsa(d: date) -> float:
    """
    Calculate the ayanamsa (sidereal offset) for a calendar date.

    Args:
        d: Calendar date

    Returns:
        float: Ayanamsa in degrees

    Example:
        >>> round(ayanamsa(date(2100, 1, 1)), 2)
        25.25
    """
    return AYANAMSA_J2000 + (fractional_year(d) - 2000.0) * AYANAMSA_RATE


def zodiac_rotation(zodiac_mode: str, d: Optional[date] = None) -> float:
    """
    Rotation (radians) applied to the zodiac sign overlay.

    Args:
        zodiac_mode: "tropical" or "sidereal"
        d: Reference date (birth date when set); today if None

    Returns:
        float: -ayanamsa in radians for sidereal display, 0.0 for tropical

    Raises:
        ValueError: If zodiac_mode is not recognised
    """
    if zodiac_mode == ZODIAC_TROPICAL:
        return 0.0
    if zodiac_mode == ZODIAC_SIDEREAL:
        if d is None:
            d = date.today()
        return -math.radians(ayanamsa(d))
    raise ValueError(f"Unknown zodiac mode: {zodiac_mode!r}")


def sign_index(lon: float, sidereal_offset: float = 0.0) -> int:
    """Index into ZODIAC_SIGNS of the sign containing lon (degrees)."""
    adj = normalize_degrees(lon - sidereal_offset)
    return int(adj // 30.0) % 12


def sign_label(lon: float, sidereal_offset: float = 0.0, symbol: bool = False) -> str:
    """
    Format an ecliptic longitude as degrees within its sign.

    Args:
        lon: Tropical ecliptic longitude in degrees
        sidereal_offset: Ayanamsa to subtract (0 for tropical)
        symbol: Use the glyph instead of the sign name

    Returns:
        str: e.g. "12° Leo" or "12° ♌"
    """
    adj = normalize_degrees(lon - sidereal_offset)
    idx = sign_index(adj)
    deg = int(math.floor(adj % 30.0))
    name = SIGN_SYMBOLS[idx] if symbol else ZODIAC_SIGNS[idx]
    return f"{deg}° {name}"
