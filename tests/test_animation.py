"""
Unit tests for the orbital mode controller.
"""

import math
from datetime import date, datetime, timezone

import pytest

from liborrery import (
    AnimationConfig,
    CachedEphemeris,
    CelestialBody,
    Frame,
    OrbitalMode,
    compute_birth_targets,
    create_state,
    reset,
    set_birth_date,
    set_display_frame,
    set_mode,
    snapshot,
    tick,
)
from liborrery.animation import clamp_dt
from liborrery.constants import (
    GEOCENTRIC_BODIES,
    GEOCENTRIC_ORBITS,
    HELIO_MOON_SPEED,
    HELIOCENTRIC_ORBITS,
)
from liborrery.time_utils import clock_angle_24h
from conftest import ManualExecutor, angles_close, angular_distance

SUN = CelestialBody.SUN
MOON = CelestialBody.MOON
EARTH = CelestialBody.EARTH
FRAME_DT = 1 / 60
BIRTH_NOON_UTC = datetime(1990, 5, 17, 12, tzinfo=timezone.utc)


def _settle(state, seconds=10.0):
    """Tick long enough for every interpolated body to reach its target."""
    for _ in range(int(seconds / 0.1)):
        tick(state, 0.1)
    return state


@pytest.mark.unit
class TestStateLifecycle:
    """Tests for create_state(), reset() and snapshot()."""

    def test_default_angles(self, make_state):
        state = make_state()
        assert state.angles[SUN] == pytest.approx(math.radians(20))
        assert state.angles[MOON] == pytest.approx(math.radians(-90))
        assert state.angles[EARTH] == pytest.approx(math.radians(20))
        assert state.angles[CelestialBody.JUPITER] == pytest.approx(math.radians(160))
        assert len(state.angles) == 8

    def test_initial_moon_phase_from_provider(self, make_state, fake_ephemeris):
        fake_ephemeris.phase = 180.0
        state = make_state()
        assert state.moon_phase == pytest.approx(math.pi)

    def test_moon_phase_fallback(self, make_state, fake_ephemeris):
        fake_ephemeris.phase = float("nan")
        state = make_state()
        assert state.moon_phase == pytest.approx(math.radians(135))

    def test_reset_restores_defaults(self, make_state):
        state = make_state()
        for _ in range(30):
            tick(state, FRAME_DT)
        assert state.angles[SUN] != pytest.approx(math.radians(20))
        reset(state)
        assert state.angles[SUN] == pytest.approx(math.radians(20))

    def test_instances_are_independent(self, make_state):
        a = make_state()
        b = make_state()
        tick(a, 0.05)
        assert a.angles[SUN] != b.angles[SUN]

    def test_snapshot_is_detached(self, make_state):
        state = make_state()
        snap = snapshot(state)
        tick(state, 0.05)
        assert snap.body_angles[SUN] == pytest.approx(math.radians(20))
        assert snap.by_name()["Sun"] == snap.body_angles[SUN]
        assert snap.moon_phase_angle == state.moon_phase

    def test_unknown_mode(self, make_state):
        with pytest.raises(ValueError):
            make_state(mode="orrery")
        state = make_state()
        with pytest.raises(ValueError):
            set_mode(state, "retrograde")


@pytest.mark.unit
class TestDtClamp:
    """Frame-time clamping."""

    def test_clamp_values(self):
        assert clamp_dt(0.016) == 0.016
        assert clamp_dt(5.0) == 0.1
        assert clamp_dt(-1.0) == 0.0
        assert clamp_dt(float("nan")) == 0.0
        assert clamp_dt(float("inf")) == 0.0
        assert clamp_dt(0.5, max_dt=0.25) == 0.25

    def test_background_tab_jump(self, make_state):
        """A 5 s gap moves the Sun by the 0.1 s step only."""
        state = make_state()
        before = state.angles[SUN]
        tick(state, 5.0)
        assert state.last_dt == 0.1
        expected = math.radians(GEOCENTRIC_ORBITS[SUN][1]) * 0.1
        assert before - state.angles[SUN] == pytest.approx(expected)


@pytest.mark.unit
class TestDriftModes:
    """Geocentric, heliocentric and 12h clock drift."""

    def test_geocentric_speeds(self, make_state):
        state = make_state(OrbitalMode.GEOCENTRIC)
        before = dict(state.angles.items())
        tick(state, 0.05)
        for body, (_, speed) in GEOCENTRIC_ORBITS.items():
            assert before[body] - state.angles[body] == pytest.approx(math.radians(speed) * 0.05)
        assert state.angles[EARTH] == before[EARTH]

    def test_heliocentric_speeds(self, make_state):
        state = make_state(OrbitalMode.HELIOCENTRIC)
        before = dict(state.angles.items())
        tick(state, 0.05)
        for body, (_, speed) in HELIOCENTRIC_ORBITS.items():
            assert before[body] - state.angles[body] == pytest.approx(math.radians(speed) * 0.05)
        assert before[MOON] - state.angles[MOON] == pytest.approx(
            math.radians(HELIO_MOON_SPEED) * 0.05
        )
        assert state.angles[SUN] == before[SUN]

    def test_clock_12h_matches_heliocentric(self, make_state):
        helio = make_state(OrbitalMode.HELIOCENTRIC)
        clock = make_state(OrbitalMode.CLOCK_12H)
        for _ in range(20):
            tick(helio, FRAME_DT)
            tick(clock, FRAME_DT)
        assert dict(helio.angles.items()) == dict(clock.angles.items())

    def test_drift_is_not_date_driven(self, make_state, fake_ephemeris):
        state = make_state(OrbitalMode.GEOCENTRIC)
        fake_ephemeris.calls.clear()
        tick(state, FRAME_DT)
        assert fake_ephemeris.calls == []


@pytest.mark.unit
class TestAlignedMode:
    """Aligned mode and the drift -> aligned transition."""

    def test_transition_is_smooth(self, make_state):
        """Sun at 20° moves monotonically toward -90° without jumps."""
        state = make_state(OrbitalMode.GEOCENTRIC)
        assert state.angles[SUN] == pytest.approx(math.radians(20))
        set_mode(state, OrbitalMode.ALIGNED)
        target = math.radians(-90)
        rate = state.config.lerp_rate

        previous = state.angles[SUN]
        distance = angular_distance(previous, target)
        for _ in range(120):
            tick(state, FRAME_DT)
            current = state.angles[SUN]
            assert abs(current - previous) <= rate * FRAME_DT * math.pi + 1e-12
            assert current <= previous  # 20° -> -90° is the negative direction
            new_distance = angular_distance(current, target)
            assert new_distance <= distance + 1e-12
            previous, distance = current, new_distance

    def test_all_bodies_converge(self, make_state):
        state = _settle(make_state(OrbitalMode.ALIGNED))
        for body in CelestialBody:
            assert angles_close(state.angles[body], math.radians(-90), tol=1e-6)

    def test_custom_align_angle(self, make_state):
        state = _settle(make_state(OrbitalMode.ALIGNED, config=AnimationConfig(align_angle_deg=45.0)))
        assert angles_close(state.angles[SUN], math.radians(45), tol=1e-6)

    def test_saturated_rate_snaps_to_target(self, make_state):
        state = make_state(OrbitalMode.ALIGNED, config=AnimationConfig(lerp_rate=20.0))
        tick(state, 0.05)
        assert angles_close(state.angles[SUN], math.radians(-90))


@pytest.mark.unit
class TestLiveMode:
    """Live mode follows the provider."""

    def test_converges_to_negated_longitudes(self, make_state, geo_longitudes):
        state = _settle(make_state(OrbitalMode.LIVE))
        for body, lon in geo_longitudes.items():
            assert angles_close(state.angles[body], -math.radians(lon), tol=1e-6)

    def test_catch_up_is_gradual(self, make_state, geo_longitudes):
        state = make_state(OrbitalMode.GEOCENTRIC)
        start = state.angles[SUN]
        set_mode(state, OrbitalMode.LIVE)
        tick(state, FRAME_DT)
        assert not angles_close(state.angles[SUN], -math.radians(geo_longitudes[SUN]))
        assert abs(state.angles[SUN] - start) <= 2.0 * FRAME_DT * math.pi

    def test_queries_current_instant(self, make_state, fake_ephemeris, fixed_now):
        state = make_state(OrbitalMode.LIVE)
        fake_ephemeris.calls.clear()
        tick(state, FRAME_DT)
        assert {c[0] for c in fake_ephemeris.calls} == set(GEOCENTRIC_BODIES)
        assert all(c[2] is Frame.GEOCENTRIC for c in fake_ephemeris.calls)
        assert {c[1] for c in fake_ephemeris.calls} == {fixed_now.astimezone()}

    def test_updates_moon_phase(self, make_state, fake_ephemeris):
        state = make_state(OrbitalMode.LIVE)
        fake_ephemeris.phase = 270.0
        tick(state, FRAME_DT)
        assert state.moon_phase == pytest.approx(math.radians(270))


@pytest.mark.unit
class TestEphemerisFailure:
    """Invalid provider output never reaches the angle table."""

    def test_nan_holds_body(self, make_state, fake_ephemeris, geo_longitudes):
        state = make_state(OrbitalMode.LIVE)
        tick(state, FRAME_DT)
        before = dict(state.angles.items())

        fake_ephemeris.overrides[(CelestialBody.MARS, Frame.GEOCENTRIC)] = float("nan")
        tick(state, FRAME_DT)

        assert state.angles[CelestialBody.MARS] == before[CelestialBody.MARS]
        for body in GEOCENTRIC_BODIES:
            assert math.isfinite(state.angles[body])
            if body is not CelestialBody.MARS:
                assert state.angles[body] != before[body]

    def test_exception_holds_body(self, make_state, fake_ephemeris):
        state = make_state(OrbitalMode.LIVE)
        before = state.angles[CelestialBody.VENUS]
        fake_ephemeris.failures.add((CelestialBody.VENUS, Frame.GEOCENTRIC))
        tick(state, FRAME_DT)
        assert state.angles[CelestialBody.VENUS] == before
        assert state.angles[SUN] != math.radians(20)

    def test_none_and_infinite_values(self, make_state, fake_ephemeris):
        state = make_state(OrbitalMode.LIVE)
        before = dict(state.angles.items())
        fake_ephemeris.overrides[(SUN, Frame.GEOCENTRIC)] = float("inf")
        fake_ephemeris.overrides[(MOON, Frame.GEOCENTRIC)] = None
        tick(state, FRAME_DT)
        assert state.angles[SUN] == before[SUN]
        assert state.angles[MOON] == before[MOON]

    def test_recovers_next_tick(self, make_state, fake_ephemeris, geo_longitudes):
        state = make_state(OrbitalMode.LIVE)
        fake_ephemeris.failures.add((SUN, Frame.GEOCENTRIC))
        tick(state, FRAME_DT)
        held = state.angles[SUN]
        fake_ephemeris.failures.clear()
        tick(state, FRAME_DT)
        assert state.angles[SUN] != held


@pytest.mark.unit
class TestBirthDateMode:
    """Birth date targets."""

    def test_no_date_holds(self, make_state):
        state = make_state(OrbitalMode.BIRTH_DATE)
        before = dict(state.angles.items())
        tick(state, FRAME_DT)
        assert dict(state.angles.items()) == before

    def test_geocentric_targets(self, make_state, geo_longitudes):
        state = make_state(OrbitalMode.BIRTH_DATE, birth_date=date(1990, 5, 17))
        _settle(state)
        for body, lon in geo_longitudes.items():
            assert angles_close(state.angles[body], -math.radians(lon), tol=1e-6)

    def test_heliocentric_targets(self, make_state, geo_longitudes, helio_longitudes):
        state = make_state(
            OrbitalMode.BIRTH_DATE,
            birth_date=date(1990, 5, 17),
            display_frame=Frame.HELIOCENTRIC,
        )
        _settle(state)
        for body, lon in helio_longitudes.items():
            assert angles_close(state.angles[body], -math.radians(lon), tol=1e-6)
        # Earth opposite the Sun; Moon at its own geocentric longitude
        assert angles_close(
            state.angles[EARTH], -math.radians(geo_longitudes[SUN] + 180), tol=1e-6
        )
        assert angles_close(state.angles[MOON], -math.radians(geo_longitudes[MOON]), tol=1e-6)

    def test_targets_computed_once_per_date(self, make_state, fake_ephemeris):
        state = make_state(OrbitalMode.BIRTH_DATE, birth_date=date(1990, 5, 17))
        fake_ephemeris.calls.clear()
        for _ in range(10):
            tick(state, FRAME_DT)
        first = len(fake_ephemeris.calls)
        assert first > 0
        for _ in range(10):
            tick(state, FRAME_DT)
        assert len(fake_ephemeris.calls) == first

        set_birth_date(state, date(1990, 5, 17))
        tick(state, FRAME_DT)
        assert len(fake_ephemeris.calls) == first

        set_birth_date(state, date(2001, 9, 1))
        tick(state, FRAME_DT)
        assert len(fake_ephemeris.calls) == 2 * first

    def test_sampled_at_local_noon(self, make_state, fake_ephemeris):
        state = make_state(OrbitalMode.BIRTH_DATE, birth_date=date(1990, 5, 17))
        fake_ephemeris.calls.clear()
        tick(state, FRAME_DT)
        instants = {c[1] for c in fake_ephemeris.calls}
        assert len(instants) == 1
        inst = instants.pop()
        assert (inst.year, inst.month, inst.day, inst.hour) == (1990, 5, 17, 12)

    def test_switching_frame_retargets_without_requery(self, make_state, fake_ephemeris):
        state = make_state(OrbitalMode.BIRTH_DATE, birth_date=date(1990, 5, 17))
        tick(state, FRAME_DT)
        calls = len(fake_ephemeris.calls)
        set_display_frame(state, Frame.HELIOCENTRIC)
        tick(state, FRAME_DT)
        assert len(fake_ephemeris.calls) == calls

    def test_failed_body_is_held(self, make_state, fake_ephemeris):
        fake_ephemeris.failures.add((CelestialBody.SATURN, Frame.GEOCENTRIC))
        state = make_state(OrbitalMode.BIRTH_DATE, birth_date=date(1890, 1, 1))
        before = state.angles[CelestialBody.SATURN]
        _settle(state, 2.0)
        assert state.angles[CelestialBody.SATURN] == before

    def test_missing_sun_leaves_earth_without_target(self, fake_ephemeris):
        fake_ephemeris.failures.add((SUN, Frame.GEOCENTRIC))
        targets = compute_birth_targets(fake_ephemeris, BIRTH_NOON_UTC)
        assert targets[Frame.HELIOCENTRIC][EARTH] is None
        assert targets[Frame.GEOCENTRIC][SUN] is None
        assert targets[Frame.GEOCENTRIC][MOON] is not None

    def test_clearing_date_holds(self, make_state):
        state = make_state(OrbitalMode.BIRTH_DATE, birth_date=date(1990, 5, 17))
        tick(state, FRAME_DT)
        set_birth_date(state, None)
        before = dict(state.angles.items())
        tick(state, FRAME_DT)
        assert dict(state.angles.items()) == before


@pytest.mark.unit
class TestClock24hMode:
    """The Sun rides the 24h hour hand."""

    def test_sun_on_hour_hand(self, make_state, fixed_now):
        state = _settle(make_state(OrbitalMode.CLOCK_24H))
        assert angles_close(state.angles[SUN], -math.radians(clock_angle_24h(fixed_now)), tol=1e-6)

    def test_relative_spacing_preserved(self, make_state, geo_longitudes):
        state = _settle(make_state(OrbitalMode.CLOCK_24H))
        sun = state.angles[SUN]
        for body, lon in geo_longitudes.items():
            expected = sun + math.radians(geo_longitudes[SUN] - lon)
            assert angles_close(state.angles[body], expected, tol=1e-6)

    def test_midnight_and_noon(self, fake_ephemeris):
        midnight = _settle(
            create_state(fake_ephemeris, OrbitalMode.CLOCK_24H, clock=lambda: datetime(2024, 1, 1, 0, 0))
        )
        noon = _settle(
            create_state(fake_ephemeris, OrbitalMode.CLOCK_24H, clock=lambda: datetime(2024, 1, 1, 12, 0))
        )
        assert angles_close(midnight.angles[SUN], math.radians(-90), tol=1e-6)
        assert angles_close(noon.angles[SUN], math.radians(90), tol=1e-6)

    def test_sun_failure_holds_everything(self, make_state, fake_ephemeris):
        state = make_state(OrbitalMode.CLOCK_24H)
        before = dict(state.angles.items())
        fake_ephemeris.failures.add((SUN, Frame.GEOCENTRIC))
        tick(state, FRAME_DT)
        assert dict(state.angles.items()) == before


@pytest.mark.unit
class TestModeSwitching:
    """Mode replacement semantics."""

    def test_mode_observed_next_tick(self, make_state):
        state = make_state(OrbitalMode.GEOCENTRIC)
        before = state.angles[EARTH]
        set_mode(state, OrbitalMode.HELIOCENTRIC)
        assert state.angles[EARTH] == before
        tick(state, FRAME_DT)
        assert state.angles[EARTH] < before

    def test_set_mode_by_value(self, make_state):
        state = make_state()
        set_mode(state, "clock_24h")
        assert state.mode is OrbitalMode.CLOCK_24H

    def test_every_mode_keeps_table_finite(self, make_state):
        state = make_state(birth_date=date(1990, 5, 17))
        for mode in OrbitalMode:
            set_mode(state, mode)
            for _ in range(5):
                tick(state, 0.2)
            assert all(math.isfinite(a) for a in state.angles.values())

    def test_switch_invalidates_cached_provider(self, fake_ephemeris, fixed_now):
        cached = CachedEphemeris(
            fake_ephemeris, refresh_interval=60.0, clock=lambda: 0.0, now=fixed_now.astimezone
        )
        state = create_state(cached, OrbitalMode.LIVE, clock=lambda: fixed_now)
        tick(state, FRAME_DT)
        generation = cached.generation
        set_mode(state, OrbitalMode.ALIGNED)
        assert cached.generation == generation + 1


@pytest.mark.unit
class TestWallClock:
    """Instants handed to the provider."""

    def test_naive_clock_is_local_time(self, make_state, fake_ephemeris, fixed_now):
        state = make_state(OrbitalMode.CLOCK_24H)
        fake_ephemeris.calls.clear()
        tick(state, FRAME_DT)
        instant = fake_ephemeris.calls[0][1]
        assert instant.tzinfo is not None
        assert instant.replace(tzinfo=None) == fixed_now
        assert instant == fixed_now.astimezone()

    def test_aware_clock_passed_through(self, make_state, fake_ephemeris):
        aware = datetime(2024, 3, 20, 6, 30, tzinfo=timezone.utc)
        state = make_state(OrbitalMode.LIVE, clock=lambda: aware)
        fake_ephemeris.calls.clear()
        tick(state, FRAME_DT)
        assert {c[1] for c in fake_ephemeris.calls} == {aware}


@pytest.mark.unit
class TestCachedProviderInLoop:
    """The controller driving a CachedEphemeris."""

    @pytest.fixture
    def aware_now(self, fixed_now):
        return fixed_now.astimezone()

    def _sun_calls(self, fake, instant):
        return sum(1 for b, i, f in fake.calls if b is SUN and i == instant and f is Frame.GEOCENTRIC)

    def test_live_after_birth_date_is_rate_limited(self, fake_ephemeris, aware_now):
        cached = CachedEphemeris(fake_ephemeris, clock=lambda: 0.0, now=lambda: aware_now)
        state = create_state(
            cached,
            OrbitalMode.BIRTH_DATE,
            birth_date=date(1990, 5, 17),
            clock=lambda: aware_now,
        )
        tick(state, FRAME_DT)
        set_mode(state, OrbitalMode.LIVE)
        for _ in range(60):
            tick(state, FRAME_DT)
        assert self._sun_calls(fake_ephemeris, aware_now) <= 1

    def test_birth_targets_fill_in_from_background(self, fake_ephemeris, aware_now, geo_longitudes):
        executor = ManualExecutor()
        cached = CachedEphemeris(
            fake_ephemeris, clock=lambda: 0.0, now=lambda: aware_now, executor=executor
        )
        state = create_state(
            cached,
            OrbitalMode.BIRTH_DATE,
            birth_date=date(1990, 5, 17),
            clock=lambda: aware_now,
        )
        before = dict(state.angles.items())
        tick(state, FRAME_DT)
        # Nothing fetched yet: every body holds and the tick did not block
        assert dict(state.angles.items()) == before
        assert fake_ephemeris.calls == []

        executor.run_pending()
        _settle(state)
        for body, lon in geo_longitudes.items():
            assert angles_close(state.angles[body], -math.radians(lon), tol=1e-6)

        jobs = len(executor.jobs)
        _settle(state, 1.0)
        assert len(executor.jobs) == jobs
