from __future__ import annotations

import pytest

from heliacal import (
    EventType,
    HeliacalFlag,
    HeliacalStatus,
    HeliacalValidationError,
    SearchCancelled,
    heliacal_angle,
    heliacal_event,
    heliacal_phenomena,
    synodic_period,
    topo_arcus_visionis,
    vis_limit_mag,
)
from heliacal.constants import Body

from conftest import JD_2000_JULY_1, JD_2000_JUNE_1, JD_2025_MARCH_20


@pytest.fixture(scope="module")
def sirius_rising(berlin, atmosphere, observer, erfa_ephemeris):
    return heliacal_event(
        JD_2000_JULY_1, berlin, atmosphere, observer, "Sirius", EventType.MORNING_FIRST, 0, erfa_ephemeris
    )


def test_sirius_rises_heliacally_in_late_summer(sirius_rising) -> None:
    assert sirius_rising.status is HeliacalStatus.OK
    first, optimum, last = sirius_rising.event_times
    # Late August at 52.5 degrees north.
    assert 2451770.0 < first < 2451800.0
    assert first <= optimum <= last
    assert last - first < 0.2


def test_result_is_never_before_the_start(sirius_rising) -> None:
    assert sirius_rising.event_time >= JD_2000_JULY_1


def test_search_is_deterministic(berlin, atmosphere, observer, erfa_ephemeris, sirius_rising) -> None:
    again = heliacal_event(
        JD_2000_JULY_1, berlin, atmosphere, observer, "sirius", EventType.MORNING_FIRST, 0, erfa_ephemeris
    )
    assert again.event_times == sirius_rising.event_times
    assert again.status is sirius_rising.status


def test_no_details_returns_only_the_event(berlin, atmosphere, observer, erfa_ephemeris, sirius_rising) -> None:
    result = heliacal_event(
        JD_2000_JULY_1,
        berlin,
        atmosphere,
        observer,
        "Sirius",
        EventType.MORNING_FIRST,
        HeliacalFlag.NO_DETAILS,
        erfa_ephemeris,
    )
    assert result.ok
    assert len(result.event_times) == 1
    assert result.event_time == pytest.approx(sirius_rising.event_time, abs=0.1)


def test_venus_morning_first_after_inferior_conjunction(berlin, atmosphere, observer, erfa_ephemeris) -> None:
    result = heliacal_event(
        JD_2000_JUNE_1,
        berlin,
        atmosphere,
        observer,
        "Venus",
        EventType.MORNING_FIRST,
        HeliacalFlag.NO_DETAILS,
        erfa_ephemeris,
    )
    assert result.status is HeliacalStatus.OK
    # Inferior conjunction on 2001-03-30.
    assert 2451985.0 < result.event_time < 2452020.0


def test_mercury_within_one_synodic_period(cairo, atmosphere, observer, erfa_ephemeris) -> None:
    result = heliacal_event(
        JD_2025_MARCH_20,
        cairo,
        atmosphere,
        observer,
        "Mercury",
        EventType.MORNING_FIRST,
        HeliacalFlag.SEARCH_1_PERIOD | HeliacalFlag.NO_DETAILS,
        erfa_ephemeris,
    )
    assert result.status in (HeliacalStatus.OK, HeliacalStatus.NOT_FOUND)
    if result.ok:
        assert JD_2025_MARCH_20 <= result.event_time <= JD_2025_MARCH_20 + 1.5 * synodic_period(Body.MERCURY)
    else:
        assert result.event_times == ()
        assert "synodic period" in result.message


def test_arcus_visionis_method(berlin, atmosphere, observer, erfa_ephemeris, sirius_rising) -> None:
    result = heliacal_event(
        JD_2000_JULY_1,
        berlin,
        atmosphere,
        observer,
        "Sirius",
        EventType.MORNING_FIRST,
        HeliacalFlag.AVKIND_MIN7,
        erfa_ephemeris,
    )
    assert result.ok
    assert len(result.event_times) == 1
    assert abs(result.event_time - sirius_rising.event_time) < 20.0


def test_search_can_be_cancelled(berlin, atmosphere, observer, erfa_ephemeris) -> None:
    with pytest.raises(SearchCancelled):
        heliacal_event(
            JD_2000_JULY_1,
            berlin,
            atmosphere,
            observer,
            "Sirius",
            EventType.MORNING_FIRST,
            0,
            erfa_ephemeris,
            cancel=lambda: True,
        )


def test_phenomena_at_the_event(berlin, atmosphere, observer, erfa_ephemeris, sirius_rising) -> None:
    result = heliacal_phenomena(
        sirius_rising.event_time, berlin, atmosphere, observer, "Sirius", EventType.MORNING_FIRST, 0, erfa_ephemeris
    )
    assert result.status is HeliacalStatus.OK
    report = result.report
    assert report.alt_obj > -1.0
    assert report.alt_sun < 0.0
    assert report.illumination == 100.0


def test_vis_limit_mag_below_horizon(berlin, atmosphere, observer, erfa_ephemeris) -> None:
    # Sirius never rises above about 20 degrees at Berlin; at local midnight in July it is down.
    result = vis_limit_mag(JD_2000_JULY_1 - 0.04, berlin, atmosphere, observer, "Sirius", 0, erfa_ephemeris)
    assert result.status is HeliacalStatus.NOT_FOUND
    assert result.limiting_magnitude == -100.0
    assert result.message == "object is below local horizon"


def test_public_arc_of_vision_helpers(berlin, atmosphere, observer, erfa_ephemeris) -> None:
    angle = heliacal_angle(JD_2000_JULY_1, berlin, atmosphere, observer, 0, 1.0, 90.0, 80.0, 0.0, -90.0, erfa_ephemeris)
    assert angle.alt_sun == pytest.approx(angle.alt_obj - angle.arc_of_vision)
    arc = topo_arcus_visionis(
        JD_2000_JULY_1, berlin, atmosphere, observer, 0, 1.0, 90.0, angle.alt_obj, 80.0, 0.0, -90.0, erfa_ephemeris
    )
    assert arc >= angle.alt_obj
    assert arc == pytest.approx(angle.arc_of_vision, abs=0.5)


NEW_MOON_2000_JUNE_2 = 2451698.01
NEW_MOON_2000_JULY_1 = 2451727.31


@pytest.mark.parametrize("flags", [0, HeliacalFlag.AVKIND_VR])
def test_evening_crescent_follows_the_new_moon(berlin, atmosphere, observer, erfa_ephemeris, flags) -> None:
    result = heliacal_event(
        JD_2000_JUNE_1, berlin, atmosphere, observer, "Moon", EventType.EVENING_FIRST, flags, erfa_ephemeris
    )
    assert result.status is HeliacalStatus.OK
    assert result.event_time >= JD_2000_JUNE_1
    for tjd in result.event_times:
        assert NEW_MOON_2000_JUNE_2 < tjd < NEW_MOON_2000_JUNE_2 + 3.0


@pytest.mark.parametrize("flags", [0, HeliacalFlag.AVKIND_VR])
def test_morning_crescent_precedes_the_new_moon(berlin, atmosphere, observer, erfa_ephemeris, flags) -> None:
    result = heliacal_event(
        JD_2000_JUNE_1, berlin, atmosphere, observer, "Moon", EventType.MORNING_LAST, flags, erfa_ephemeris
    )
    assert result.status is HeliacalStatus.OK
    assert result.event_time >= JD_2000_JUNE_1
    for tjd in result.event_times:
        assert NEW_MOON_2000_JULY_1 - 3.0 < tjd < NEW_MOON_2000_JULY_1


def test_moon_takes_only_the_vr_arc_of_vision(berlin, atmosphere, observer, erfa_ephemeris) -> None:
    with pytest.raises(HeliacalValidationError, match="invalid AV kind for the moon"):
        heliacal_event(
            JD_2000_JUNE_1,
            berlin,
            atmosphere,
            observer,
            "Moon",
            EventType.EVENING_FIRST,
            HeliacalFlag.AVKIND_MIN7,
            erfa_ephemeris,
        )
