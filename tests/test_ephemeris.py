from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List

import erfa
import numpy as np
import pytest
import spiceypy as spice

import heliacal.ephemeris as ephemeris
from heliacal.constants import Body, RiseSetKind
from heliacal.errors import CircumpolarError, EphemerisError
from heliacal.ephemeris import ErfaEphemeris, PositionFlag, SpiceEphemeris, delta_t_seconds, load_kernels
from heliacal.functions import build_context
from heliacal.geometry import SUN, altitude_azimuth, rise_set
from heliacal.models import GeographicLocation, Planet, Star

from conftest import JD_2000_JUNE_1, JD_2025_MARCH_20

AU_KM = 149597870.700
STEP_HOURS = 6
JD_2000_JUNE_21 = 2451716.5


def _datetime_to_tt(dt: datetime) -> tuple:
    utc1, utc2 = erfa.dtf2d("UTC", dt.year, dt.month, dt.day, dt.hour, dt.minute, dt.second)
    tai1, tai2 = erfa.utctai(utc1, utc2)
    return erfa.taitt(tai1, tai2)


def _states(dt: datetime) -> tuple:
    """Sun relative to the Earth and Earth relative to the barycentre, km and km/s."""

    tt1, tt2 = _datetime_to_tt(dt)
    pvh, pvb = erfa.epv00(tt1, tt2)
    to_km_s = AU_KM / erfa.DAYSEC
    sun = np.concatenate([-np.array(pvh["p"]) * AU_KM, -np.array(pvh["v"]) * to_km_s])
    earth = np.concatenate([np.array(pvb["p"]) * AU_KM, np.array(pvb["v"]) * to_km_s])
    return sun, earth


def _write_kernel(output: Path) -> None:
    current = datetime(2025, 1, 1, tzinfo=timezone.utc)
    end = datetime(2026, 1, 1, tzinfo=timezone.utc)
    sun_states: List[np.ndarray] = []
    earth_states: List[np.ndarray] = []
    ets: List[float] = []
    while current <= end:
        sun, earth = _states(current)
        sun_states.append(sun)
        earth_states.append(earth)
        tt1, tt2 = _datetime_to_tt(current)
        ets.append((tt1 - erfa.DJ00) * erfa.DAYSEC + tt2 * erfa.DAYSEC)
        current += timedelta(hours=STEP_HOURS)
    step = ets[1] - ets[0]
    handle = spice.spkopn(str(output), "HELIACALTEST", 0)
    try:
        spice.spkw08(
            handle, 10, 399, "J2000", ets[0], ets[-1], "SUNTEST", 7, len(ets), np.array(sun_states), ets[0], step
        )
        spice.spkw08(
            handle, 399, 0, "J2000", ets[0], ets[-1], "EARTHTEST", 7, len(ets), np.array(earth_states), ets[0], step
        )
    finally:
        spice.spkcls(handle)


@pytest.fixture(scope="session")
def kernel_file(tmp_path_factory: pytest.TempPathFactory) -> Path:
    path = tmp_path_factory.mktemp("kernels") / "sun_2025.bsp"
    _write_kernel(path)
    return path


@pytest.fixture()
def fresh_spice():
    spice.kclear()
    ephemeris._LOADED_FILES = None
    yield
    spice.kclear()
    ephemeris._LOADED_FILES = None


def test_delta_t_follows_leap_seconds() -> None:
    assert delta_t_seconds(2451544.5) == pytest.approx(64.184)
    assert delta_t_seconds(JD_2025_MARCH_20) == pytest.approx(69.184)


def test_delta_t_outside_leap_seconds() -> None:
    # Around -500 the clock error is several hours.
    assert delta_t_seconds(1538437.5) > 10000.0
    assert delta_t_seconds(2415020.5) == pytest.approx(-2.79, abs=0.1)


def test_sun_at_the_june_solstice() -> None:
    eph = ErfaEphemeris()
    pos = eph.position(JD_2000_JUNE_21 + 1.0, Planet(Body.SUN))
    assert pos.dec == pytest.approx(23.44, abs=0.05)
    assert pos.distance == pytest.approx(1.016, abs=0.002)
    assert pos.latitude == pytest.approx(0.0, abs=0.01)


def test_sun_at_the_march_equinox() -> None:
    eph = ErfaEphemeris()
    pos = eph.position(JD_2025_MARCH_20, Planet(Body.SUN))
    assert abs(pos.dec) < 0.3
    assert pos.longitude == pytest.approx(359.6, abs=0.3)


def test_speed_flag_gives_daily_motion() -> None:
    eph = ErfaEphemeris()
    pos = eph.position(JD_2000_JUNE_1, Planet(Body.SUN), PositionFlag.SPEED)
    assert pos.lon_speed == pytest.approx(0.96, abs=0.03)
    moon = eph.position(JD_2000_JUNE_1, Planet(Body.MOON), PositionFlag.SPEED)
    assert 11.0 < moon.lon_speed < 16.0


def test_topocentric_moon_shows_parallax(berlin) -> None:
    eph = ErfaEphemeris()
    eph.set_topo(berlin)
    geo = eph.position(JD_2000_JUNE_1, Planet(Body.MOON))
    topo = eph.position(JD_2000_JUNE_1, Planet(Body.MOON), PositionFlag.TOPOCENTRIC)
    shift = abs(geo.ra - topo.ra) + abs(geo.dec - topo.dec)
    assert 0.05 < shift < 2.0


def test_topocentric_needs_a_location() -> None:
    with pytest.raises(EphemerisError):
        ErfaEphemeris().position(JD_2000_JUNE_1, Planet(Body.MOON), PositionFlag.TOPOCENTRIC)


def test_star_place_includes_precession() -> None:
    pos = ErfaEphemeris().position(JD_2025_MARCH_20, Star("Sirius"))
    assert pos.ra == pytest.approx(101.6, abs=0.2)
    assert pos.dec == pytest.approx(-16.75, abs=0.1)


def test_unknown_star_and_uncovered_body() -> None:
    eph = ErfaEphemeris()
    with pytest.raises(EphemerisError):
        eph.position(JD_2000_JUNE_1, Star("Nostar"))
    with pytest.raises(EphemerisError):
        eph.position(JD_2000_JUNE_1, Planet(Body.PLUTO))


def test_phenomena_of_venus() -> None:
    pheno = ErfaEphemeris().phenomena(JD_2000_JUNE_1, Planet(Body.VENUS))
    assert 0.0 <= pheno.illuminated_fraction <= 1.0
    assert pheno.elongation < 10.0
    assert -4.5 < pheno.magnitude < -3.5
    assert pheno.apparent_diameter > 0.0


def test_sunrise_in_berlin(ctx) -> None:
    rise = rise_set(ctx, JD_2000_JUNE_21, SUN, RiseSetKind.RISE)
    assert rise == pytest.approx(JD_2000_JUNE_21 + 2.72 / 24.0, abs=10.0 / 1440.0)
    sunset = rise_set(ctx, JD_2000_JUNE_21, SUN, RiseSetKind.SET)
    assert sunset - rise == pytest.approx(16.8 / 24.0, abs=15.0 / 1440.0)
    alt, azi = altitude_azimuth(ctx, rise, SUN)
    assert alt == pytest.approx(-0.6, abs=0.2)
    assert 30.0 < azi < 60.0


def test_midnight_sun_is_circumpolar(atmosphere, observer) -> None:
    arctic = build_context(GeographicLocation(longitude=15.0, latitude=80.0, height=0.0), atmosphere, observer)
    with pytest.raises(CircumpolarError):
        rise_set(arctic, JD_2000_JUNE_21, SUN, RiseSetKind.RISE)


def test_spice_matches_analytic_sun(fresh_spice, kernel_file) -> None:
    spice_eph = SpiceEphemeris(kernel_file)
    erfa_eph = ErfaEphemeris()
    for offset in (0.0, 45.25, 120.5):
        tjd = JD_2025_MARCH_20 + offset
        a = spice_eph.position(tjd, Planet(Body.SUN))
        b = erfa_eph.position(tjd, Planet(Body.SUN))
        assert a.ra == pytest.approx(b.ra, abs=1e-4)
        assert a.dec == pytest.approx(b.dec, abs=1e-4)
        assert a.distance == pytest.approx(b.distance, rel=1e-7)


def test_spice_loads_kernels_once(fresh_spice, kernel_file) -> None:
    assert load_kernels(kernel_file) == [kernel_file.name]
    assert load_kernels(kernel_file.parent / "elsewhere") == [kernel_file.name]
    assert spice.ktotal("SPK") == 1


def test_spice_missing_body(fresh_spice, kernel_file) -> None:
    eph = SpiceEphemeris(kernel_file.parent)
    with pytest.raises(EphemerisError, match="no state"):
        eph.position(JD_2025_MARCH_20, Planet(Body.VENUS))


def test_missing_kernel_path(fresh_spice, tmp_path) -> None:
    with pytest.raises(EphemerisError, match="not found"):
        load_kernels(tmp_path / "missing.bsp")
    with pytest.raises(EphemerisError, match="No .bsp"):
        load_kernels(tmp_path)
