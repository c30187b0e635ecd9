"""
Orbital mode controller for liborrery.

Computes, once per rendered frame, the angle of every body on the orbital
diagram. The host render loop owns an AnimationState and calls tick() with
the elapsed frame time; renderers read snapshot().

Modes (exactly one active, see OrbitalMode):
- GEOCENTRIC / HELIOCENTRIC: stylized constant-speed drift
- LIVE: bodies follow the current sky
- ALIGNED: every body moves to one common angle
- BIRTH_DATE: bodies follow the sky of a chosen date (local noon)
- CLOCK_24H: the Sun rides the 24h hour hand, other bodies keep their real
  offsets from the Sun
- CLOCK_12H: heliocentric drift under the 12h dial overlay

Display convention: a body at ecliptic longitude L (degrees) is drawn at
angle -radians(L). All target-driven modes blend toward their targets with
lerp_angle() every tick, so switching modes or dates never snaps.

Failure handling: if the provider raises or returns a non-finite value for
a body, that body keeps its previous angle for the tick. Nothing invalid
reaches the AngleTable.

Typical use:
    >>> state = create_state(SkyfieldEphemeris())
    >>> set_mode(state, OrbitalMode.LIVE)
    >>> tick(state, 1 / 60)
    >>> snap = snapshot(state)
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, tzinfo
from typing import Callable, Dict, Optional

from .angle_table import AngleTable, Snapshot
from .constants import (
    ALIGN_ANGLE,
    ALL_BODIES,
    BIRTH_HOUR,
    DEFAULT_MOON_PHASE,
    EPHEMERIS_BODIES,
    GEOCENTRIC_BODIES,
    GEOCENTRIC_ORBITS,
    HELIO_MOON_SPEED,
    HELIOCENTRIC_BODIES,
    HELIOCENTRIC_ORBITS,
    LERP_SPEED,
    MAX_DT,
    CelestialBody,
    Frame,
    OrbitalMode,
    resolve_mode,
)
from .ephemeris import CachedEphemeris, EphemerisProvider
from .time_utils import birth_instant, clock_angle_24h
from .utils import lerp_angle, normalize_degrees

log = logging.getLogger(__name__)

Targets = Dict[CelestialBody, Optional[float]]


@dataclass
class AnimationConfig:
    """Tunables of one animation instance."""

    lerp_rate: float = LERP_SPEED
    max_dt: float = MAX_DT
    align_angle_deg: float = ALIGN_ANGLE
    birth_hour: int = BIRTH_HOUR


@dataclass(frozen=True)
class BirthDateTarget:
    """Chosen birth date; positions are sampled at hour:00 local time."""

    date: date
    hour: int = BIRTH_HOUR
    tz: Optional[tzinfo] = None

    def instant(self) -> datetime:
        return birth_instant(self.date, self.hour, self.tz)


def _local_now() -> datetime:
    return datetime.now().astimezone()


def _wall_time(state: "AnimationState") -> datetime:
    now = state.clock()
    return now if now.tzinfo is not None else now.astimezone()


@dataclass
class AnimationState:
    """
    Everything one running visualization needs between frames.

    Attributes:
        provider: Ephemeris used by the date-driven modes
        mode: Active OrbitalMode
        display_frame: Frame the BIRTH_DATE targets are drawn in
        angles: Current body angles (written only by tick)
        moon_phase: Moon phase in radians
        birth_date: Chosen date for BIRTH_DATE mode
        birth_targets: Targets per frame for birth_date, computed once per change
            (gaps are retried while a CachedEphemeris fetches in the background)
        clock: Returns the current wall-clock time; naive values are read as
            local time, for the dial and the ephemeris alike
        config: Tunables
        last_dt: Clamped frame time used by the last tick
    """

    provider: EphemerisProvider
    mode: OrbitalMode = OrbitalMode.GEOCENTRIC
    display_frame: Frame = Frame.GEOCENTRIC
    angles: AngleTable = field(default_factory=AngleTable.defaults)
    moon_phase: float = math.radians(DEFAULT_MOON_PHASE)
    birth_date: Optional[BirthDateTarget] = None
    birth_targets: Optional[Dict[Frame, Targets]] = None
    clock: Callable[[], datetime] = _local_now
    config: AnimationConfig = field(default_factory=AnimationConfig)
    last_dt: float = 0.0


# =============================================================================
# STATE LIFECYCLE
# =============================================================================


def create_state(
    provider: EphemerisProvider,
    mode=OrbitalMode.GEOCENTRIC,
    display_frame: Frame = Frame.GEOCENTRIC,
    birth_date: Optional[date] = None,
    clock: Optional[Callable[[], datetime]] = None,
    config: Optional[AnimationConfig] = None,
) -> AnimationState:
    """
    Create the state of a freshly mounted visualization.

    Angles start at the default diagram positions and the moon phase is
    read once from the provider (DEFAULT_MOON_PHASE if it fails).
    """
    state = AnimationState(
        provider=provider,
        mode=resolve_mode(mode),
        display_frame=display_frame,
        clock=clock or _local_now,
        config=config or AnimationConfig(),
    )
    if birth_date is not None:
        set_birth_date(state, birth_date)
    _refresh_moon_phase(state, _wall_time(state))
    return state


def reset(state: AnimationState) -> AnimationState:
    """Restore mount-time angles (the visualization was remounted)."""
    state.angles = AngleTable.defaults()
    state.birth_targets = None
    state.moon_phase = math.radians(DEFAULT_MOON_PHASE)
    state.last_dt = 0.0
    _refresh_moon_phase(state, _wall_time(state))
    return state


def set_mode(state: AnimationState, mode) -> None:
    """
    Replace the active mode; the next tick runs the new mode's handler.

    A CachedEphemeris provider is invalidated so the new mode starts from a
    fresh query.
    """
    mode = resolve_mode(mode)
    if mode is state.mode:
        return
    log.debug("Orbital mode %s -> %s", state.mode.value, mode.value)
    state.mode = mode
    if isinstance(state.provider, CachedEphemeris):
        state.provider.invalidate()


def set_display_frame(state: AnimationState, frame: Frame) -> None:
    state.display_frame = Frame(frame)


def set_birth_date(
    state: AnimationState,
    d: Optional[date],
    hour: Optional[int] = None,
    tz: Optional[tzinfo] = None,
) -> None:
    """
    Choose (or clear, with None) the date followed by BIRTH_DATE mode.

    Targets are recomputed on the next BIRTH_DATE tick only if the date,
    hour or zone actually changed.
    """
    if d is None:
        target = None
    else:
        if isinstance(d, datetime):
            d = d.date()
        target = BirthDateTarget(
            d, state.config.birth_hour if hour is None else hour, tz
        )
    if target != state.birth_date:
        state.birth_date = target
        state.birth_targets = None


def snapshot(state: AnimationState) -> Snapshot:
    return Snapshot.of(state.angles, state.moon_phase)


# =============================================================================
# TICK
# =============================================================================


def clamp_dt(dt: float, max_dt: float = MAX_DT) -> float:
    """
    Clamp a frame time to [0, max_dt].

    Hosts that were suspended (background tab) report huge deltas; clamping
    bounds the largest step any body can take in one tick.
    """
    if not math.isfinite(dt) or dt <= 0.0:
        return 0.0
    return min(dt, max_dt)


def tick(state: AnimationState, dt: float) -> AnimationState:
    """
    Advance the animation by one frame.

    Args:
        state: Animation state, updated in place
        dt: Real seconds since the previous frame (clamped to config.max_dt)

    Returns:
        AnimationState: The same state object
    """
    dt = clamp_dt(dt, state.config.max_dt)
    state.last_dt = dt
    _HANDLERS[state.mode](state, dt)
    return state


def _safe_longitude(
    provider: EphemerisProvider, body: CelestialBody, instant: datetime, frame: Frame
) -> Optional[float]:
    try:
        value = float(provider.longitude(body, instant, frame))
    except Exception as e:
        log.debug("Ephemeris failed for %s (%s): %s", body.value, frame.value, e)
        return None
    if not math.isfinite(value):
        log.debug("Ephemeris returned %r for %s (%s)", value, body.value, frame.value)
        return None
    return value


def _display(lon_deg: Optional[float]) -> Optional[float]:
    return None if lon_deg is None else -math.radians(lon_deg)


def _refresh_moon_phase(state: AnimationState, instant: datetime) -> None:
    try:
        phase = float(state.provider.moon_phase(instant))
    except Exception as e:
        log.debug("Moon phase unavailable: %s", e)
        return
    if math.isfinite(phase):
        state.moon_phase = math.radians(phase)


def _approach(state: AnimationState, targets: Targets, dt: float) -> None:
    """Blend each body toward its target; bodies without a target hold."""
    rate = state.config.lerp_rate
    for body, target in targets.items():
        if target is None:
            continue
        state.angles[body] = lerp_angle(state.angles[body], target, rate, dt)


def _drift(state: AnimationState, dt: float, orbits, moon_speed: Optional[float] = None) -> None:
    for body, (_, speed) in orbits.items():
        state.angles[body] = state.angles[body] - math.radians(speed) * dt
    if moon_speed is not None:
        moon = CelestialBody.MOON
        state.angles[moon] = state.angles[moon] - math.radians(moon_speed) * dt


def _tick_geocentric(state: AnimationState, dt: float) -> None:
    _drift(state, dt, GEOCENTRIC_ORBITS)


def _tick_heliocentric(state: AnimationState, dt: float) -> None:
    _drift(state, dt, HELIOCENTRIC_ORBITS, HELIO_MOON_SPEED)


def _tick_live(state: AnimationState, dt: float) -> None:
    now = _wall_time(state)
    targets = {
        body: _display(_safe_longitude(state.provider, body, now, Frame.GEOCENTRIC))
        for body in GEOCENTRIC_BODIES
    }
    _approach(state, targets, dt)
    _refresh_moon_phase(state, now)


def _tick_aligned(state: AnimationState, dt: float) -> None:
    target = math.radians(state.config.align_angle_deg)
    _approach(state, {body: target for body in ALL_BODIES}, dt)


def compute_birth_targets(
    provider: EphemerisProvider, instant: datetime, warn: bool = True
) -> Dict[Frame, Targets]:
    """
    Display targets for every body at a birth instant, in both frames.

    Geocentric: the seven classical bodies at their geocentric longitudes.
    Heliocentric: the five planets at their heliocentric longitudes, Earth
    opposite the geocentric Sun, and the Moon at its geocentric longitude
    (it circles the Earth, not the Sun).

    Bodies whose longitude is unavailable map to None and are logged at
    WARNING (DEBUG when warn is False).
    """
    geo = {
        body: _safe_longitude(provider, body, instant, Frame.GEOCENTRIC)
        for body in EPHEMERIS_BODIES
    }
    helio = {
        body: _safe_longitude(provider, body, instant, Frame.HELIOCENTRIC)
        for body in HELIOCENTRIC_BODIES
        if body not in (CelestialBody.EARTH, CelestialBody.MOON)
    }
    sun = geo[CelestialBody.SUN]
    helio[CelestialBody.EARTH] = None if sun is None else normalize_degrees(sun + 180.0)
    helio[CelestialBody.MOON] = geo[CelestialBody.MOON]

    missing = [b.value for b, lon in {**geo, **helio}.items() if lon is None]
    if missing:
        level = logging.WARNING if warn else logging.DEBUG
        log.log(level, "No birth-date longitude at %s for: %s", instant, ", ".join(missing))

    return {
        Frame.GEOCENTRIC: {b: _display(lon) for b, lon in geo.items()},
        Frame.HELIOCENTRIC: {b: _display(lon) for b, lon in helio.items()},
    }


def _tick_birth_date(state: AnimationState, dt: float) -> None:
    if state.birth_date is None:
        return
    if state.birth_targets is None:
        state.birth_targets = compute_birth_targets(
            state.provider, state.birth_date.instant()
        )
    elif isinstance(state.provider, CachedEphemeris) and _has_gaps(state.birth_targets):
        # A background fetch may have landed since; the cache rate-limits retries
        state.birth_targets = compute_birth_targets(
            state.provider, state.birth_date.instant(), warn=False
        )
    _approach(state, state.birth_targets[state.display_frame], dt)


def _has_gaps(targets: Dict[Frame, Targets]) -> bool:
    return any(t is None for frame in targets.values() for t in frame.values())


def _tick_clock_24h(state: AnimationState, dt: float) -> None:
    now = _wall_time(state)
    sun_clock = -math.radians(clock_angle_24h(now))
    sun_lon = _safe_longitude(state.provider, CelestialBody.SUN, now, Frame.GEOCENTRIC)
    if sun_lon is not None:
        targets: Targets = {}
        for body in GEOCENTRIC_BODIES:
            if body is CelestialBody.SUN:
                lon = sun_lon
            else:
                lon = _safe_longitude(state.provider, body, now, Frame.GEOCENTRIC)
            targets[body] = None if lon is None else sun_clock + math.radians(sun_lon - lon)
        _approach(state, targets, dt)
    _refresh_moon_phase(state, now)


_HANDLERS: Dict[OrbitalMode, Callable[[AnimationState, float], None]] = {
    OrbitalMode.GEOCENTRIC: _tick_geocentric,
    OrbitalMode.HELIOCENTRIC: _tick_heliocentric,
    OrbitalMode.LIVE: _tick_live,
    OrbitalMode.ALIGNED: _tick_aligned,
    OrbitalMode.BIRTH_DATE: _tick_birth_date,
    OrbitalMode.CLOCK_24H: _tick_clock_24h,
    # Same motion as heliocentric drift; only the dial overlay differs
    OrbitalMode.CLOCK_12H: _tick_heliocentric,
}

_unhandled = set(OrbitalMode) - set(_HANDLERS)
if _unhandled:
    raise RuntimeError(f"Orbital modes without a tick handler: {_unhandled}")
