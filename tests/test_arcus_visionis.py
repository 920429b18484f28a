from __future__ import annotations

import pytest

from heliacal.arcus_visionis import (
    BELOW_HORIZON_LIMIT,
    NO_MOON_ALTITUDE,
    heliacal_angle,
    length_moon,
    q_yallop,
    topo_arc_visionis,
    vis_limit_state,
    width_moon,
    yallop_class,
)
from heliacal.constants import Body, HeliacalFlag
from heliacal.errors import HeliacalValidationError
from heliacal.geometry import SUN, altitude_azimuth, sun_ra
from heliacal.models import Planet

JD = 2451727.5
JUPITER = Planet(Body.JUPITER)


@pytest.mark.parametrize(
    ("q", "label"),
    [
        (0.3, "A"),
        (0.216, "B"),
        (0.0, "B"),
        (-0.014, "C"),
        (-0.1, "C"),
        (-0.2, "D"),
        (-0.25, "E"),
        (-0.293, "F"),
        (-1.0, "F"),
    ],
)
def test_yallop_class_bands(q, label) -> None:
    assert yallop_class(q) == label


def test_q_yallop_scales_with_arc_of_vision() -> None:
    assert q_yallop(0.01, 20.0) - q_yallop(0.01, 10.0) == pytest.approx(1.0)
    assert q_yallop(0.02, 10.0) > q_yallop(0.01, 10.0)


def test_crescent_width_vanishes_in_line_with_the_sun() -> None:
    assert width_moon(10.0, 250.0, 11.0, 250.0, 1.0) == pytest.approx(0.0, abs=1e-12)
    assert width_moon(10.0, 250.0, -5.0, 270.0, 1.0) > 0.0


def test_crescent_length_grows_with_width() -> None:
    thin = length_moon(0.005)
    thick = length_moon(0.02)
    assert thin < thick < 0.6
    assert length_moon(0.02, 0.6) > thick


def test_arc_of_vision_never_below_object_altitude(ctx) -> None:
    sunra = sun_ra(ctx, JD)
    for alt_o in (2.0, 10.0, 30.0):
        arc = topo_arc_visionis(ctx, 1.0, alt_o, 180.0, NO_MOON_ALTITUDE, 0.0, JD, 270.0, sunra)
        assert arc >= alt_o


def test_fainter_objects_need_a_darker_sky(ctx) -> None:
    sunra = sun_ra(ctx, JD)
    bright = topo_arc_visionis(ctx, -4.0, 5.0, 300.0, NO_MOON_ALTITUDE, 0.0, JD, 310.0, sunra)
    faint = topo_arc_visionis(ctx, 1.5, 5.0, 300.0, NO_MOON_ALTITUDE, 0.0, JD, 310.0, sunra)
    assert bright < faint


def test_heliacal_angle_is_consistent(ctx) -> None:
    result = heliacal_angle(ctx, 0.0, 300.0, NO_MOON_ALTITUDE, 0.0, JD, 310.0)
    assert 1.0 <= result.alt_obj <= 21.0
    assert result.alt_sun == pytest.approx(result.alt_obj - result.arc_of_vision)
    assert result.alt_sun < 0.0


def test_limiting_magnitude_of_the_sun_is_rejected(ctx) -> None:
    with pytest.raises(HeliacalValidationError):
        vis_limit_state(ctx, JD, SUN)


def _hour_with_altitude(ctx, above: bool) -> float:
    for hour in range(24):
        jd = JD + hour / 24.0
        if (altitude_azimuth(ctx, jd, JUPITER)[0] > 5.0) == above:
            return jd
    raise AssertionError("no suitable hour found")


def test_object_below_horizon_reports_sentinel(ctx) -> None:
    state = vis_limit_state(ctx, _hour_with_altitude(ctx, above=False), JUPITER)
    if state.alt_obj < 0:
        assert state.below_horizon
        assert state.limiting_magnitude == BELOW_HORIZON_LIMIT


def test_dark_flag_removes_sun_and_moon(ctx) -> None:
    jd = _hour_with_altitude(ctx, above=True)
    dark = vis_limit_state(ctx.with_flags(HeliacalFlag.VISLIM_DARK), jd, JUPITER)
    assert dark.alt_sun == NO_MOON_ALTITUDE
    assert dark.alt_moon == NO_MOON_ALTITUDE
    assert not dark.below_horizon
    assert dark.limiting_magnitude > 3.0
    assert dark.magnitude < -1.0
