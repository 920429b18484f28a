from __future__ import annotations

import pydantic
import pytest

from heliacal import (
    Body,
    EventType,
    GeographicLocation,
    HeliacalFlag,
    HeliacalValidationError,
    Planet,
    Star,
    heliacal_event,
    resolve_object,
    vis_limit_mag,
)
from heliacal.constants import AST_OFFSET

JD = 2451727.5


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("Venus", Planet(Body.VENUS)),
        ("MERCURY", Planet(Body.MERCURY)),
        ("mercur", Planet(Body.MERCURY)),
        ("neptune", Planet(Body.NEPTUNE)),
        (" moon ", Planet(Body.MOON)),
        ("433", Planet(AST_OFFSET + 433)),
        ("Sirius", Star("Sirius")),
        ("Aldebaran", Star("Aldebaran")),
    ],
)
def test_resolve_object(name, expected) -> None:
    assert resolve_object(name) == expected


def test_resolve_object_passes_objects_through() -> None:
    star = Star("Regulus")
    assert resolve_object(star) is star


def test_object_names() -> None:
    assert Planet(Body.JUPITER).name == "jupiter"
    assert Planet(AST_OFFSET + 1).name == "1"
    assert Planet(Body.MARS).is_outer
    assert not Planet(Body.VENUS).is_outer
    assert Star("Sirius").is_outer


def _search(location, name, event, flags=0):
    return heliacal_event(JD, location, None, None, name, event, flags)


def test_sun_is_rejected(berlin) -> None:
    with pytest.raises(HeliacalValidationError, match="sun"):
        _search(berlin, "sun", EventType.MORNING_FIRST)


@pytest.mark.parametrize("event", [EventType.MORNING_FIRST, EventType.EVENING_LAST])
def test_moon_has_no_morning_first_or_evening_last(berlin, event) -> None:
    with pytest.raises(HeliacalValidationError, match="does not exist for the moon"):
        _search(berlin, "moon", event)


@pytest.mark.parametrize("height", [-1500.0, 25000.0])
def test_height_out_of_range(height) -> None:
    location = GeographicLocation(longitude=10.0, latitude=50.0, height=height)
    with pytest.raises(HeliacalValidationError, match="between -1000 and 20000 m"):
        _search(location, "venus", EventType.MORNING_FIRST)


@pytest.mark.parametrize("name", ["Sirius", "jupiter"])
def test_evening_first_of_outer_object_needs_arcus_visionis(berlin, name) -> None:
    with pytest.raises(HeliacalValidationError, match="does not exist for"):
        _search(berlin, name, EventType.EVENING_FIRST)
    with pytest.raises(HeliacalValidationError, match="does not exist for"):
        _search(berlin, name, EventType.MORNING_LAST)


@pytest.mark.parametrize("event", [EventType.ACRONYCHAL_RISING, EventType.ACRONYCHAL_SETTING])
def test_acronychal_events_need_arcus_visionis(berlin, event) -> None:
    with pytest.raises(HeliacalValidationError, match="is not provided for"):
        _search(berlin, "venus", event)


@pytest.mark.parametrize("event", [0, 7, 42])
def test_unknown_event_type(berlin, event) -> None:
    with pytest.raises(HeliacalValidationError, match="unknown event type"):
        _search(berlin, "venus", event)


def test_validation_error_is_a_value_error(berlin) -> None:
    with pytest.raises(ValueError):
        _search(berlin, "sun", EventType.MORNING_FIRST, HeliacalFlag.AVKIND_VR)


def test_limiting_magnitude_of_the_sun(berlin) -> None:
    with pytest.raises(HeliacalValidationError):
        vis_limit_mag(JD, berlin, None, None, "sun")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"longitude": 200.0, "latitude": 0.0},
        {"longitude": 0.0, "latitude": -91.0},
    ],
)
def test_location_bounds(kwargs) -> None:
    with pytest.raises(pydantic.ValidationError):
        GeographicLocation(**kwargs)
