"""
pytest configuration and shared fixtures for liborrery tests.
"""

import math
from concurrent.futures import Executor, Future
from datetime import datetime

import pytest

from liborrery import (
    CelestialBody,
    EphemerisProvider,
    Frame,
    OrbitalMode,
    create_state,
    shortest_angle,
)


# ============================================================================
# FAKE EPHEMERIS
# ============================================================================


class FakeEphemeris(EphemerisProvider):
    """
    Deterministic provider: fixed longitudes per (body, frame).

    Attributes:
        geo / helio: body -> longitude in degrees
        phase: moon phase in degrees
        failures: set of (body, frame) pairs that raise
        overrides: (body, frame) -> value returned instead (e.g. NaN)
        calls: list of (body, instant, frame) queries, in order
    """

    def __init__(self, geo=None, helio=None, phase=90.0):
        self.geo = dict(geo or {})
        self.helio = dict(helio or {})
        self.phase = phase
        self.failures = set()
        self.overrides = {}
        self.calls = []

    def longitude(self, body, instant, frame=Frame.GEOCENTRIC):
        self.calls.append((body, instant, frame))
        key = (body, frame)
        if key in self.failures:
            raise RuntimeError(f"ephemeris down for {body.value}")
        if key in self.overrides:
            return self.overrides[key]
        table = self.geo if frame is Frame.GEOCENTRIC else self.helio
        return table[body]

    def moon_phase(self, instant):
        return self.phase


class ManualExecutor(Executor):
    """Executor whose jobs run only when the test says so."""

    def __init__(self):
        self.jobs = []

    def submit(self, fn, *args, **kwargs):
        future = Future()
        self.jobs.append((future, fn, args, kwargs))
        return future

    def run_pending(self):
        for future, fn, args, kwargs in self.jobs:
            if future.done():
                continue
            try:
                future.set_result(fn(*args, **kwargs))
            except Exception as e:
                future.set_exception(e)


# ============================================================================
# TEST DATA FIXTURES
# ============================================================================


@pytest.fixture
def geo_longitudes():
    """Geocentric longitudes (degrees) of a plausible sky."""
    return {
        CelestialBody.MOON: 200.0,
        CelestialBody.MERCURY: 265.0,
        CelestialBody.VENUS: 240.0,
        CelestialBody.SUN: 280.0,
        CelestialBody.MARS: 330.0,
        CelestialBody.JUPITER: 25.0,
        CelestialBody.SATURN: 40.0,
    }


@pytest.fixture
def helio_longitudes():
    """Heliocentric longitudes (degrees) matching geo_longitudes."""
    return {
        CelestialBody.MERCURY: 250.0,
        CelestialBody.VENUS: 180.0,
        CelestialBody.MARS: 359.0,
        CelestialBody.JUPITER: 36.0,
        CelestialBody.SATURN: 45.0,
    }


@pytest.fixture
def fake_ephemeris(geo_longitudes, helio_longitudes):
    return FakeEphemeris(geo_longitudes, helio_longitudes)


@pytest.fixture
def fixed_now():
    """Wall clock frozen at 2024-03-20 06:30:00 (naive local time)."""
    return datetime(2024, 3, 20, 6, 30, 0)


@pytest.fixture
def make_state(fake_ephemeris, fixed_now):
    """Factory for animation states on the fake provider and frozen clock."""

    def _make(mode=OrbitalMode.GEOCENTRIC, **kwargs):
        kwargs.setdefault("clock", lambda: fixed_now)
        return create_state(fake_ephemeris, mode=mode, **kwargs)

    return _make


# ============================================================================
# HELPERS
# ============================================================================


def angles_close(a, b, tol=1e-9):
    """True if two radian angles are equal modulo 2π."""
    d = math.remainder(a - b, 2 * math.pi)
    return abs(d) < tol


def angular_distance(a, b):
    """Unsigned shortest distance between two radian angles."""
    return abs(shortest_angle(a, b))


# ============================================================================
# MARKERS
# ============================================================================


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")
