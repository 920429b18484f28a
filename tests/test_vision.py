from __future__ import annotations

import math

import pytest

from heliacal.brightness import bsky, distance_angle, moon_phase
from heliacal.constants import MIXEDOPIC_FLAG, SCOTOPIC_FLAG, HeliacalFlag
from heliacal.models import AtmosphericConditions, GeographicLocation, ObserverProfile
from heliacal.vision import cva, default_parameters, pupil_diameter, vis_lim_magn

JD = 2451727.5


def test_distance_angle_is_great_circle_distance() -> None:
    assert distance_angle(0.0, 0.0, 0.0, math.pi / 2.0) == pytest.approx(math.pi / 2.0)
    assert distance_angle(0.0, 0.0, math.pi / 2.0, 1.0) == pytest.approx(math.pi / 2.0)
    assert distance_angle(0.3, 0.0, 0.3, 2.0 * math.pi) == pytest.approx(0.0, abs=1e-12)


def test_moon_opposite_the_sun_is_full() -> None:
    assert moon_phase(0.0, 180.0, 0.0, 0.0) == pytest.approx(0.0, abs=2.0)


def test_sky_darkens_as_the_sun_sets(ctx) -> None:
    values = [bsky(ctx, 20.0, 180.0, -90.0, 0.0, JD, alt_s, 270.0, 90.0) for alt_s in (10.0, 0.0, -6.0, -12.0, -18.0)]
    assert values == sorted(values, reverse=True)
    assert values[-1] > 0


def test_moonlight_brightens_a_dark_sky(ctx) -> None:
    dark = bsky(ctx, 30.0, 180.0, -90.0, 0.0, JD, -30.0, 0.0, 90.0)
    moonlit = bsky(ctx, 30.0, 180.0, 40.0, 170.0, JD, -30.0, 0.0, 90.0)
    assert moonlit > dark


def test_critical_visual_angle_regime_override() -> None:
    scotopic = cva(100.0, 1.0)
    forced = cva(100.0, 1.0, HeliacalFlag.VISLIM_PHOTOPIC)
    assert scotopic != forced
    assert cva(100.0, 1.0, HeliacalFlag.VISLIM_PHOTOPIC | HeliacalFlag.VISLIM_SCOTOPIC) == scotopic


def test_pupil_shrinks_with_light_and_age() -> None:
    assert pupil_diameter(20.0, 1.0) > pupil_diameter(20.0, 1e6)
    assert pupil_diameter(70.0, 1.0) < pupil_diameter(20.0, 1.0)
    assert 6.0 < pupil_diameter(20.0, 1.0) < 8.0


def test_dark_sky_limiting_magnitude(ctx) -> None:
    limit, regime, sky, kx = vis_lim_magn(ctx, 45.0, 180.0, -90.0, 0.0, JD, -30.0, 0.0, 90.0)
    assert 4.5 < limit < 8.5
    assert regime & SCOTOPIC_FLAG
    assert sky > 0 and kx > 0


def test_daylight_limiting_magnitude_is_far_brighter(ctx) -> None:
    night = vis_lim_magn(ctx, 45.0, 180.0, -90.0, 0.0, JD, -30.0, 0.0, 90.0)[0]
    day = vis_lim_magn(ctx, 45.0, 180.0, -90.0, 0.0, JD, 30.0, 90.0, 90.0)[0]
    assert night - day > 3.0


def test_photopic_flag_clears_scotopic_regime(berlin, atmosphere, observer, erfa_ephemeris) -> None:
    from heliacal.functions import build_context

    photopic = build_context(berlin, atmosphere, observer, HeliacalFlag.VISLIM_PHOTOPIC, erfa_ephemeris)
    _, regime, _, _ = vis_lim_magn(photopic, 45.0, 180.0, -90.0, 0.0, JD, -30.0, 0.0, 90.0)
    assert not regime & SCOTOPIC_FLAG
    assert regime & ~(SCOTOPIC_FLAG | MIXEDOPIC_FLAG) == 0


def test_default_parameters_standard_atmosphere() -> None:
    location = GeographicLocation(longitude=0.0, latitude=45.0, height=1000.0)
    atm, obs = default_parameters(
        location,
        AtmosphericConditions(pressure=0.0, temperature=0.0, humidity=0.0),
        ObserverProfile(age=0.0, snellen=0.0),
    )
    assert atm.pressure == pytest.approx(1013.25 * (1.0 - 0.0065 * 1000.0 / 288.0) ** 5.255)
    assert atm.temperature == pytest.approx(8.5)
    assert atm.humidity == 40.0
    assert obs.age == 36.0
    assert obs.snellen == 1.0
    assert obs.binocular is True
    assert obs.magnification == 1.0


def test_default_parameters_keep_given_weather() -> None:
    location = GeographicLocation(longitude=0.0, latitude=45.0, height=0.0)
    atm, _ = default_parameters(
        location, AtmosphericConditions(pressure=990.0, temperature=25.0, humidity=100.0), ObserverProfile()
    )
    assert atm.pressure == 990.0
    assert atm.temperature == 25.0
    assert atm.humidity < 100.0


def test_default_parameters_telescope() -> None:
    location = GeographicLocation(longitude=0.0, latitude=45.0, height=0.0)
    observer = ObserverProfile(magnification=7.0, binocular=False)
    _, naked = default_parameters(location, AtmosphericConditions(), observer)
    _, optical = default_parameters(location, AtmosphericConditions(), observer, HeliacalFlag.OPTICAL_PARAMS)
    assert naked.magnification == 1.0
    assert naked.binocular is True
    assert optical.magnification == 7.0
    assert optical.aperture == 50.0
    assert optical.transmission == 0.8
    assert optical.binocular is False
