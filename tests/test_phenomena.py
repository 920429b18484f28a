from __future__ import annotations

import pytest

from heliacal.constants import TJD_INVALID, Body, EventType
from heliacal.geometry import MOON
from heliacal.models import Planet, Star
from heliacal.phenomena import UNCERTAIN_MESSAGE, phenomena_report, synodic_period, uncertainty_message

VENUS = Planet(Body.VENUS)


@pytest.mark.parametrize(
    ("body", "days"),
    [
        (Body.VENUS, 583.9214),
        (Body.MARS, 779.9361),
        (Body.MOON, 29.530588853),
        (Body.MERCURY, 115.8775),
        (10433, 366.0),
    ],
)
def test_synodic_period(body, days) -> None:
    assert synodic_period(body) == days


def test_uncertainty_message_names_the_flagged_entries() -> None:
    assert uncertainty_message(VENUS, (False, False, False)) == ""
    assert uncertainty_message(VENUS, (True, False, True)) == UNCERTAIN_MESSAGE.format("0,2,")
    assert "scotopic" in uncertainty_message(Star("Sirius"), (False, True, False))


def test_planet_report_is_self_consistent(ctx) -> None:
    # Venus in the morning sky, a few weeks after its inferior conjunction of 2001.
    report = phenomena_report(ctx, 2452010.65, VENUS, EventType.MORNING_FIRST)
    assert report.tav == pytest.approx(report.alt_obj - report.alt_sun)
    assert report.arcv == pytest.approx(report.tav + report.geo_alt_obj - report.alt_obj)
    assert report.daz == pytest.approx(report.azi_sun - report.azi_obj)
    assert 0.0 <= report.illumination <= 100.0
    assert report.elongation > 5.0
    assert report.magnitude < -3.0
    assert report.extinction > 0.0
    assert report.q_class is None
    assert report.rise_obj < report.rise_sun
    assert report.lag == pytest.approx(report.rise_obj - report.rise_sun)


def test_planet_report_visibility_window(ctx) -> None:
    report = phenomena_report(ctx, 2452030.65, VENUS, EventType.MORNING_FIRST)
    assert report.min_tav > 0.0
    if report.t_best_vr != TJD_INVALID:
        assert report.t_first_vr <= report.t_best_vr <= report.t_last_vr
        assert report.vis_duration_vr > 0.0


def test_moon_report_has_crescent_fields(ctx) -> None:
    # Two days after the new Moon of 2000-07-01, at dusk.
    report = phenomena_report(ctx, 2451730.35, MOON, EventType.EVENING_FIRST)
    assert report.moon_width > 0.0
    assert report.moon_length > 0.0
    assert report.q_class in ("A", "B", "C", "D", "E", "F")
    assert report.parallax > 0.5
