"""
Ephemeris providers for liborrery.

The animation engine does not compute orbits. It asks a provider for the
ecliptic longitude of a body at an instant, and for the Moon's phase.

Providers:
- EphemerisProvider: the contract (abstract base class)
- SkyfieldEphemeris: JPL DE421 positions via Skyfield
- CachedEphemeris: wraps a slow or networked provider, refreshes at a fixed
  cadence and always answers with the last good value

Coordinate output:
- Ecliptic longitude of date in degrees, [0, 360)
- Geocentric positions are apparent (light-time, aberration)
- Heliocentric positions are geometric
- Moon phase in degrees: 0 = new, 90 = first quarter, 180 = full

Earth's heliocentric longitude is not taken from a provider; the animation
derives it from the Sun (geocentric Sun + 180°).
"""

import logging
import math
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from concurrent.futures import Executor, Future
from datetime import datetime, timezone
from typing import Callable, Dict, Hashable, Optional, Tuple

from skyfield import almanac
from skyfield.framelib import ecliptic_frame
from skyfield.positionlib import ICRF

from .constants import CelestialBody, Frame, UnknownBodyError, resolve_body
from .state import get_planets, get_timescale
from .utils import normalize_degrees

log = logging.getLogger(__name__)


def _as_utc(instant: datetime) -> datetime:
    """Attach UTC to naive datetimes; convert aware ones to UTC."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


class EphemerisProvider(ABC):
    """
    Source of body longitudes and lunar phase.

    Implementations must be synchronous and free of side effects visible to
    the caller. They may raise on failure (unsupported date, I/O error); the
    animation treats any exception as "no value this tick".
    """

    @abstractmethod
    def longitude(self, body: CelestialBody, instant: datetime, frame: Frame) -> float:
        """Ecliptic longitude of body at instant, degrees in [0, 360)."""

    @abstractmethod
    def moon_phase(self, instant: datetime) -> float:
        """Moon phase angle at instant, degrees (0 = new, 180 = full)."""


# Gas giants use system barycenters (<0.01" difference from planet center)
_PLANET_MAP = {
    CelestialBody.SUN: "sun",
    CelestialBody.MOON: "moon",
    CelestialBody.MERCURY: "mercury",
    CelestialBody.VENUS: "venus",
    CelestialBody.MARS: "mars barycenter",
    CelestialBody.JUPITER: "jupiter barycenter",
    CelestialBody.SATURN: "saturn barycenter",
    CelestialBody.EARTH: "earth",
}


class SkyfieldEphemeris(EphemerisProvider):
    """
    Provider backed by Skyfield and a JPL kernel.

    The kernel and timescale come from liborrery.state, so all instances
    share one loaded file. Use state.set_ephemeris_file() to switch kernels.

    Raises (from longitude/moon_phase):
        UnknownBodyError: body is not a CelestialBody
        ValueError: Earth requested in the geocentric frame
        EphemerisRangeError (Skyfield): instant outside the kernel coverage
    """

    def _time(self, instant: datetime):
        return get_timescale().from_datetime(_as_utc(instant))

    def longitude(self, body, instant: datetime, frame: Frame = Frame.GEOCENTRIC) -> float:
        body = resolve_body(body)
        if body not in _PLANET_MAP:
            raise UnknownBodyError(f"Unknown body: {body!r}")

        planets = get_planets()
        t = self._time(instant)
        target = planets[_PLANET_MAP[body]]

        if frame is Frame.HELIOCENTRIC:
            if body is CelestialBody.SUN:
                # The Sun is the origin of the heliocentric frame
                return 0.0
            # Geometric vector Sun -> target
            p = target.at(t).position.au - planets["sun"].at(t).position.au
            pos = ICRF(p, t=t, center=10)
        else:
            if body is CelestialBody.EARTH:
                raise ValueError("Earth has no geocentric longitude")
            pos = planets["earth"].at(t).observe(target).apparent()

        _, lon, _ = pos.frame_latlon(ecliptic_frame)
        return normalize_degrees(lon.degrees)

    def moon_phase(self, instant: datetime) -> float:
        t = self._time(instant)
        return normalize_degrees(almanac.moon_phase(get_planets(), t).degrees)


class CachedEphemeris(EphemerisProvider):
    """
    Cadence-limited wrapper for slow or networked providers.

    Queries within max_skew seconds of the current wall-clock time share one
    live slot per (body, frame) and per moon phase. A live slot is fetched at
    most once per refresh_interval and held in between; a failed refresh
    keeps the last good value.

    Queries further away (a birth date, say) go to a fixed slot keyed by the
    exact instant. A fixed slot is fetched once and then kept, since the
    position at a given instant never changes; failed fetches are retried at
    the same cadence as live refreshes. At most fixed_slots such instants
    are kept, oldest dropped first.

    With an executor, every fetch runs in the background: the caller gets the
    held value (or LookupError) immediately, and a result is picked up on the
    first query after it completes. Without one, fetches run inline.

    invalidate() starts a new generation: held values stay available, the
    next live query refreshes, and background results from older generations
    are discarded when they arrive; the same query then starts a fresh fetch.

    Args:
        provider: Wrapped provider
        refresh_interval: Seconds between fetches of one slot
        executor: Optional executor for non-blocking fetches
        max_skew: Seconds between a query and the wall clock beyond which the
            query uses a fixed slot
        clock: Monotonic clock driving the cadence, injectable for tests
        now: Wall clock deciding live vs fixed slots, injectable for tests
        fixed_slots: Number of fixed instants kept

    Raises (from longitude/moon_phase):
        LookupError: no value is held for the slot yet
    """

    def __init__(
        self,
        provider: EphemerisProvider,
        refresh_interval: float = 5.0,
        executor: Optional[Executor] = None,
        max_skew: float = 86400.0,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        fixed_slots: int = 64,
    ):
        self.provider = provider
        self.refresh_interval = refresh_interval
        self.max_skew = max_skew
        self.fixed_slots = fixed_slots
        self.generation = 0
        self._executor = executor
        self._clock = clock
        self._now = now
        self._values: Dict[Hashable, float] = {}
        self._fixed: "OrderedDict[Hashable, None]" = OrderedDict()
        self._stamps: Dict[Hashable, float] = {}
        self._pending: Dict[Hashable, Tuple[int, Future]] = {}

    def longitude(self, body, instant: datetime, frame: Frame = Frame.GEOCENTRIC) -> float:
        body = resolve_body(body)
        return self._get(
            ("longitude", body, frame),
            instant,
            lambda: self.provider.longitude(body, instant, frame),
        )

    def moon_phase(self, instant: datetime) -> float:
        return self._get(
            ("moon_phase",), instant, lambda: self.provider.moon_phase(instant)
        )

    def invalidate(self) -> None:
        self.generation += 1
        self._stamps.clear()

    def _slot(self, key: Hashable, instant: datetime) -> Tuple[Hashable, bool]:
        """Slot for a query and whether it is a fixed one."""
        instant = _as_utc(instant)
        skew = abs((instant - _as_utc(self._now())).total_seconds())
        if skew > self.max_skew:
            return ("fixed", key, instant), True
        return ("live", key), False

    def _get(self, key: Hashable, instant: datetime, fetch: Callable[[], float]) -> float:
        slot, fixed = self._slot(key, instant)
        self._collect(slot)

        if not (fixed and slot in self._values):
            now = self._clock()
            last = self._stamps.get(slot)
            due = last is None or now - last >= self.refresh_interval
            if due and slot not in self._pending:
                self._stamps[slot] = now
                if self._executor is None:
                    try:
                        self._store(slot, fetch())
                    except Exception as e:
                        log.warning("Ephemeris refresh failed for %s: %s", slot, e)
                else:
                    self._pending[slot] = (self.generation, self._executor.submit(fetch))
                    self._collect(slot)

        if slot not in self._values:
            raise LookupError(f"No ephemeris value held for {slot}")
        return self._values[slot]

    def _collect(self, slot: Hashable) -> None:
        pending = self._pending.get(slot)
        if pending is None:
            return
        generation, future = pending
        if not future.done():
            return
        del self._pending[slot]
        if generation != self.generation:
            log.debug("Discarding stale ephemeris result for %s", slot)
            return
        try:
            self._store(slot, future.result())
        except Exception as e:
            log.warning("Ephemeris refresh failed for %s: %s", slot, e)

    def _store(self, slot: Hashable, value: float) -> None:
        if not math.isfinite(value):
            log.warning("Ephemeris returned non-finite value for %s", slot)
            return
        self._values[slot] = value
        if slot[0] == "fixed":
            self._stamps.pop(slot, None)
            self._fixed[slot] = None
            while len(self._fixed) > self.fixed_slots:
                old, _ = self._fixed.popitem(last=False)
                self._values.pop(old, None)
