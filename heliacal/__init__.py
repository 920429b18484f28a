"""Heliacal visibility: first and last sightings of planets, stars and the Moon."""

from .arcus_visionis import yallop_class
from .constants import Body, EventType, HeliacalFlag
from .ephemeris import ErfaEphemeris, SpiceEphemeris
from .errors import (
    CircumpolarError,
    ComputationError,
    EphemerisError,
    HeliacalError,
    HeliacalValidationError,
    LoopGuardError,
    SearchCancelled,
    UncertainResultWarning,
)
from .functions import heliacal_angle, heliacal_event, heliacal_phenomena, topo_arcus_visionis, vis_limit_mag
from .models import (
    AtmosphericConditions,
    GeographicLocation,
    HeliacalResult,
    HeliacalStatus,
    ObserverProfile,
    Planet,
    Star,
    resolve_object,
)
from .phenomena import synodic_period

__all__ = [
    "AtmosphericConditions",
    "Body",
    "CircumpolarError",
    "ComputationError",
    "EphemerisError",
    "ErfaEphemeris",
    "EventType",
    "GeographicLocation",
    "HeliacalError",
    "HeliacalFlag",
    "HeliacalResult",
    "HeliacalStatus",
    "HeliacalValidationError",
    "LoopGuardError",
    "ObserverProfile",
    "Planet",
    "SearchCancelled",
    "SpiceEphemeris",
    "Star",
    "UncertainResultWarning",
    "heliacal_angle",
    "heliacal_event",
    "heliacal_phenomena",
    "resolve_object",
    "synodic_period",
    "topo_arcus_visionis",
    "vis_limit_mag",
    "yallop_class",
]
