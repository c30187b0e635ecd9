"""
Process-wide ephemeris configuration for liborrery.

This module holds the shared Skyfield resources used by SkyfieldEphemeris:
- Ephemeris data loader (Skyfield Loader)
- Planetary ephemeris (DE421 or another JPL kernel)
- Timescale (for UTC/TT conversions)

Loading a kernel is expensive, so it is done lazily and cached here. Animation
state is NOT kept here: every visualization owns its own AnimationState.
"""

import logging
import os
from typing import Optional
from skyfield.api import Loader
from skyfield.timelib import Timescale
from skyfield.jpllib import SpiceKernel

log = logging.getLogger(__name__)

# =============================================================================
# GLOBAL STATE VARIABLES
# =============================================================================

_EPHEMERIS_PATH: Optional[str] = None  # Custom ephemeris directory
_EPHEMERIS_FILE: str = "de421.bsp"  # Ephemeris file to use (default: DE421)
_LOADER: Optional[Loader] = None  # Skyfield data loader
_PLANETS: Optional[SpiceKernel] = None  # Loaded planetary ephemeris
_TS: Optional[Timescale] = None  # Timescale object


def get_loader() -> Loader:
    """
    Get or create the Skyfield data loader.

    Returns:
        Loader: Skyfield Loader instance for downloading/caching ephemeris files

    Note:
        Data files are cached in the parent directory of this module by default.
    """
    global _LOADER
    if _LOADER is None:
        data_dir = os.path.join(os.path.dirname(__file__), "..")
        _LOADER = Loader(data_dir, verbose=False)
    return _LOADER


def get_timescale() -> Timescale:
    """
    Get or create the Skyfield timescale object.

    Uses Skyfield's builtin leap-second and Delta T tables, so no download
    is needed for time conversions.
    """
    global _TS
    if _TS is None:
        _TS = get_loader().timescale(builtin=True)
    return _TS


def get_planets() -> SpiceKernel:
    """
    Get or load the planetary ephemeris (DE421 by default).

    Returns:
        SpiceKernel: Loaded JPL ephemeris kernel containing planetary positions

    Raises:
        OSError: If the ephemeris file cannot be found or downloaded

    Note:
        Searches in _EPHEMERIS_PATH if set, then the workspace root, then
        downloads through the loader.
    """
    global _PLANETS
    if _PLANETS is None:
        load = get_loader()

        if _EPHEMERIS_PATH:
            bsp_path = os.path.join(_EPHEMERIS_PATH, _EPHEMERIS_FILE)
            if os.path.exists(bsp_path):
                log.info("Loading ephemeris %s", bsp_path)
                _PLANETS = load(bsp_path)
                return _PLANETS

        base_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
        bsp_path = os.path.join(base_dir, _EPHEMERIS_FILE)
        if os.path.exists(bsp_path):
            log.info("Loading ephemeris %s", bsp_path)
            _PLANETS = load(bsp_path)
        else:
            log.info("Ephemeris %s not found locally, downloading", _EPHEMERIS_FILE)
            _PLANETS = load(_EPHEMERIS_FILE)
    return _PLANETS


def set_ephe_path(path: Optional[str]) -> None:
    """
    Set the directory searched first for the ephemeris file.

    Clears the cached kernel so the next query reloads from the new path.
    """
    global _EPHEMERIS_PATH, _PLANETS
    _EPHEMERIS_PATH = path
    _PLANETS = None


def set_ephemeris_file(filename: str) -> None:
    """
    Set the JPL kernel used for planetary positions.

    Args:
        filename: Name of the JPL ephemeris file (e.g. "de421.bsp", "de440s.bsp")

    Note:
        Coverage differs per kernel:
        - de421.bsp: 1900-2050 (default, 16 MB)
        - de440s.bsp: 1849-2150 (32 MB)
        - de422.bsp: -3000-3000 (623 MB)

        Birth dates outside the loaded kernel make the provider raise; the
        animation then holds the previous angles.
    """
    global _EPHEMERIS_FILE, _PLANETS
    _EPHEMERIS_FILE = filename
    _PLANETS = None


def get_ephemeris_file() -> str:
    return _EPHEMERIS_FILE
