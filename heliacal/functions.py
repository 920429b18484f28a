"""Public entry points of the heliacal engine."""

from __future__ import annotations

import json
import logging
import time
import warnings
from typing import Callable, Optional, Tuple, Union

from . import arcus_visionis
from .arcus_method import heliacal_ut_arc_vis, moon_event_arc_vis
from .constants import (
    MAX_COUNT_SYNPER,
    MAX_COUNT_SYNPER_MAX,
    SEI_ECL_GEOALT_MAX,
    SEI_ECL_GEOALT_MIN,
    Body,
    EventType,
    HeliacalFlag,
)
from .context import HeliacalContext
from .errors import EventNotFound, HeliacalValidationError, UncertainResultWarning
from .ephemeris import ErfaEphemeris
from .geometry import sun_ra
from .models import (
    AtmosphericConditions,
    CelestialObject,
    GeographicLocation,
    HeliacalAngleResult,
    HeliacalResult,
    HeliacalStatus,
    ObserverProfile,
    PhenomenaResult,
    Planet,
    Star,
    VisibilityLimit,
    resolve_object,
)
from .phenomena import phenomena_report, synodic_period
from .utils import IterationGuard
from .vision import default_parameters
from .vislim_method import heliacal_ut_vis_lim, moon_event_vis_lim

LOGGER = logging.getLogger(__name__)

Times = Tuple[float, ...]
ObjectName = Union[str, Planet, Star]

MOON_RETRY_DAYS = 15.0
MERCURY_PERIOD_STEP = 30.0


def _check_height(location: GeographicLocation) -> None:
    if not SEI_ECL_GEOALT_MIN <= location.height <= SEI_ECL_GEOALT_MAX:
        raise HeliacalValidationError(
            f"location for heliacal events must be between {SEI_ECL_GEOALT_MIN:.0f} "
            f"and {SEI_ECL_GEOALT_MAX:.0f} m above sea"
        )


def build_context(
    location: GeographicLocation,
    atmosphere: Optional[AtmosphericConditions] = None,
    observer: Optional[ObserverProfile] = None,
    flags: int = 0,
    ephemeris=None,
    cancel: Optional[Callable[[], bool]] = None,
) -> HeliacalContext:
    """Validate the site, fill default conditions and tell the position service where we are."""

    _check_height(location)
    atmosphere, observer = default_parameters(
        location,
        atmosphere if atmosphere is not None else AtmosphericConditions(),
        observer if observer is not None else ObserverProfile(),
        flags,
    )
    if ephemeris is None:
        ephemeris = ErfaEphemeris()
    ephemeris.set_topo(location)
    return HeliacalContext(
        ephemeris=ephemeris,
        location=location,
        atmosphere=atmosphere,
        observer=observer,
        flags=HeliacalFlag(flags),
        cancel=cancel,
    )


def _validate_event(ctx: HeliacalContext, obj: CelestialObject, event: int) -> int:
    """Reject impossible object/event pairs; returns the event type the search will use."""

    try:
        label = EventType(event).label
    except ValueError as exc:
        raise HeliacalValidationError(f"unknown event type {event}") from exc
    if obj.is_sun:
        raise HeliacalValidationError("the sun has no heliacal rising or setting")
    if obj.is_moon:
        if event in (EventType.MORNING_FIRST, EventType.EVENING_LAST):
            raise HeliacalValidationError(f"{label} (event type {event}) does not exist for the moon")
        return event
    arcus = bool(ctx.flags & HeliacalFlag.AVKIND)
    if not arcus and obj.is_outer and event in (EventType.EVENING_FIRST, EventType.MORNING_LAST):
        raise HeliacalValidationError(f"{label} (event type {event}) does not exist for {obj.name}")
    if arcus:
        if obj.is_outer and event == EventType.ACRONYCHAL_RISING:
            return EventType.EVENING_FIRST
        if obj.is_outer and event == EventType.ACRONYCHAL_SETTING:
            return EventType.MORNING_LAST
    elif event in (EventType.ACRONYCHAL_RISING, EventType.ACRONYCHAL_SETTING):
        raise HeliacalValidationError(f"{label} (event type {event}) is not provided for {obj.name}")
    return event


def _moon_event(ctx: HeliacalContext, jd_start: float, event: int) -> Tuple[Times, str]:
    if ctx.flags & HeliacalFlag.AVKIND:
        return (moon_event_arc_vis(ctx, jd_start, event),), ""
    return moon_event_vis_lim(ctx, jd_start, event)


def _planet_event(ctx: HeliacalContext, jd_start: float, obj: CelestialObject, event: int) -> Tuple[Times, str]:
    if ctx.flags & HeliacalFlag.AVKIND:
        return (heliacal_ut_arc_vis(ctx, jd_start, obj, event),), ""
    return heliacal_ut_vis_lim(ctx, jd_start, obj, event)


def _finish(
    ctx: HeliacalContext,
    obj: CelestialObject,
    event: int,
    status: HeliacalStatus,
    times: Times,
    message: str,
    started: float,
) -> HeliacalResult:
    uncertain = status is HeliacalStatus.OK and bool(message)
    if uncertain:
        warnings.warn(message, UncertainResultWarning, stacklevel=3)
    elif status is HeliacalStatus.OK:
        message = ctx.message
    LOGGER.info(
        json.dumps(
            {
                "event": "heliacal_search_done",
                "object": obj.name,
                "event_type": int(event),
                "status": status.value,
                "times": list(times),
                "duration_ms": round((time.perf_counter() - started) * 1000.0, 3),
            }
        )
    )
    return HeliacalResult(status=status, event_times=times, message=message, uncertain=uncertain)


def heliacal_event(
    tjd_start_ut: float,
    location: GeographicLocation,
    atmosphere: Optional[AtmosphericConditions],
    observer: Optional[ObserverProfile],
    object_name: ObjectName,
    event_type: int,
    flags: int = 0,
    ephemeris=None,
    cancel: Optional[Callable[[], bool]] = None,
) -> HeliacalResult:
    """Next heliacal or acronychal event of an object after *tjd_start_ut*.

    Parameters
    ----------
    tjd_start_ut:
        Julian day (UT) the search starts from.
    location, atmosphere, observer:
        Observing conditions; unset atmosphere and observer fields get
        defaults.
    object_name:
        Planet or star name (see :func:`heliacal.models.resolve_object`).
    event_type:
        :class:`heliacal.constants.EventType` value.
    flags:
        :class:`heliacal.constants.HeliacalFlag` bits. Any ``AVKIND`` bit
        selects the arcus visionis method; otherwise the limiting-magnitude
        method is used.
    ephemeris:
        Position service; defaults to :class:`heliacal.ephemeris.ErfaEphemeris`.
    cancel:
        Polled between search steps; returning true aborts the search.

    Returns
    -------
    HeliacalResult
        ``OK`` with one or three times (first visible, optimum, last
        visible), ``NOT_FOUND`` when the event does not happen within the
        searched period(s), or ``ERROR`` when the synodic-period budget is
        exhausted.

    Raises
    ------
    HeliacalValidationError
        For an invalid site, object or event type, or a circumpolar object.
    LoopGuardError
        When a search loop fails to converge.
    """

    started = time.perf_counter()
    ctx = build_context(location, atmosphere, observer, flags, ephemeris, cancel)
    obj = resolve_object(object_name)
    event = _validate_event(ctx, obj, int(event_type))
    LOGGER.info(
        json.dumps(
            {
                "event": "heliacal_search_start",
                "object": obj.name,
                "event_type": int(event),
                "tjd_start": tjd_start_ut,
                "flags": int(flags),
            }
        )
    )

    if obj.is_moon:
        tjd = tjd_start_ut
        guard = IterationGuard("lunar event keeps falling before the start date")
        try:
            times, message = _moon_event(ctx, tjd, event)
            while times[0] < tjd_start_ut:
                guard.tick()
                tjd += MOON_RETRY_DAYS
                times, message = _moon_event(ctx, tjd, event)
        except EventNotFound as exc:
            return _finish(ctx, obj, event, HeliacalStatus.NOT_FOUND, (), str(exc), started)
        return _finish(ctx, obj, event, HeliacalStatus.OK, times, message, started)

    max_periods = MAX_COUNT_SYNPER_MAX if flags & HeliacalFlag.LONG_SEARCH else MAX_COUNT_SYNPER
    period = synodic_period(obj.body if isinstance(obj, Planet) else -1)
    tjd_max = tjd_start_ut + period * max_periods
    if flags & HeliacalFlag.SEARCH_1_PERIOD:
        tjd_max = min(tjd_max, tjd_start_ut + period * 1.5)
    step = MERCURY_PERIOD_STEP if isinstance(obj, Planet) and obj.body == Body.MERCURY else period * 0.6

    found: Optional[Tuple[Times, str]] = None
    reason = ""
    tjd = tjd_start_ut
    guard = IterationGuard("heliacal event keeps falling before the start date")
    while found is None and tjd < tjd_max:
        try:
            found = _planet_event(ctx, tjd, obj, event)
            while found[0][0] < tjd_start_ut:
                guard.tick()
                tjd += step
                found = _planet_event(ctx, tjd, obj, event)
        except EventNotFound as exc:
            found = None
            reason = str(exc)
            LOGGER.info(
                json.dumps({"event": "heliacal_period_retry", "object": obj.name, "tjd": tjd, "reason": reason})
            )
        tjd += step

    if flags & HeliacalFlag.SEARCH_1_PERIOD and (found is None or found[0][0] > tjd_start_ut + period * 1.5):
        return _finish(
            ctx, obj, event, HeliacalStatus.NOT_FOUND, (), "no heliacal date found within this synodic period", started
        )
    if found is None:
        return _finish(
            ctx,
            obj,
            event,
            HeliacalStatus.ERROR,
            (),
            f"no heliacal date found within {max_periods} synodic periods",
            started,
        )
    times, message = found
    return _finish(ctx, obj, event, HeliacalStatus.OK, times, message, started)


def heliacal_phenomena(
    tjd_ut: float,
    location: GeographicLocation,
    atmosphere: Optional[AtmosphericConditions],
    observer: Optional[ObserverProfile],
    object_name: ObjectName,
    event_type: int,
    flags: int = 0,
    ephemeris=None,
) -> PhenomenaResult:
    """Circumstances of an object at *tjd_ut* for a given event type."""

    ctx = build_context(location, atmosphere, observer, flags, ephemeris)
    obj = resolve_object(object_name)
    report = phenomena_report(ctx, tjd_ut, obj, int(event_type))
    return PhenomenaResult(status=HeliacalStatus.OK, report=report, message=ctx.message)


def vis_limit_mag(
    tjd_ut: float,
    location: GeographicLocation,
    atmosphere: Optional[AtmosphericConditions],
    observer: Optional[ObserverProfile],
    object_name: ObjectName,
    flags: int = 0,
    ephemeris=None,
) -> VisibilityLimit:
    """Limiting magnitude for the object at *tjd_ut*, with the geometry used.

    An object below the horizon gives ``NOT_FOUND`` and a limiting
    magnitude of -100.
    """

    ctx = build_context(location, atmosphere, observer, flags, ephemeris)
    state = arcus_visionis.vis_limit_state(ctx, tjd_ut, resolve_object(object_name))
    if state.below_horizon:
        return VisibilityLimit(status=HeliacalStatus.NOT_FOUND, state=state, message="object is below local horizon")
    return VisibilityLimit(status=HeliacalStatus.OK, state=state, message=ctx.message)


def heliacal_angle(
    tjd_ut: float,
    location: GeographicLocation,
    atmosphere: Optional[AtmosphericConditions],
    observer: Optional[ObserverProfile],
    flags: int,
    magnitude: float,
    azi_obj: float,
    azi_sun: float,
    azi_moon: float,
    alt_moon: float,
    ephemeris=None,
) -> HeliacalAngleResult:
    """Object altitude, arc of vision and Sun altitude where the arc of vision is smallest."""

    ctx = build_context(location, atmosphere, observer, flags, ephemeris)
    return arcus_visionis.heliacal_angle(ctx, magnitude, azi_obj, alt_moon, azi_moon, tjd_ut, azi_sun)


def topo_arcus_visionis(
    tjd_ut: float,
    location: GeographicLocation,
    atmosphere: Optional[AtmosphericConditions],
    observer: Optional[ObserverProfile],
    flags: int,
    magnitude: float,
    azi_obj: float,
    alt_obj: float,
    azi_sun: float,
    azi_moon: float,
    alt_moon: float,
    ephemeris=None,
) -> float:
    """Topocentric arc of vision of an object of *magnitude* at altitude *alt_obj*."""

    ctx = build_context(location, atmosphere, observer, flags, ephemeris)
    return arcus_visionis.topo_arc_visionis(
        ctx, magnitude, alt_obj, azi_obj, alt_moon, azi_moon, tjd_ut, azi_sun, sun_ra(ctx, tjd_ut)
    )
