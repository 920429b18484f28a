"""Conjunction and oblique-ascension searches, and the day-by-day visibility search.

These locate the stretch of days around a conjunction with the Sun and
then the first evening or morning on which the object is seen, using the
limiting-magnitude model.
"""

from __future__ import annotations

import math

from .arcus_visionis import vis_limit_state
from .constants import CONJUNCTION_EPOCHS, MINUTES_PER_DAY, Body, ConjunctionKind, EventType, RiseSetKind
from .context import HeliacalContext
from .ephemeris import PositionFlag
from .errors import CircumpolarError, EventNotFound
from .geometry import SUN, body_position, my_rise_trans
from .models import CelestialObject, Planet, Star
from .phenomena import synodic_period
from .utils import IterationGuard, bisect_bracket, degnorm

ASC_OBL_COARSE_STEP = 10.0  # Days.
ASC_OBL_TOLERANCE = 1e-5  # Degrees.
CONJUNCTION_TOLERANCE = 0.5  # Degrees.


def get_asc_obl(ctx: HeliacalContext, jd_ut: float, obj: CelestialObject, desc_obl: bool) -> float:
    """Oblique ascension (or descension when *desc_obl*) of *obj* in degrees.

    Raises
    ------
    CircumpolarError
        If the object never crosses the horizon at the observer's latitude.
    """

    position = body_position(ctx, jd_ut, obj, PositionFlag.NONE)
    adp = math.tan(math.radians(ctx.location.latitude)) * math.tan(math.radians(position.dec))
    if abs(adp) > 1.0:
        raise CircumpolarError(f"{obj.name} is circumpolar, cannot calculate heliacal event")
    adp = math.degrees(math.asin(adp))
    if desc_obl:
        return degnorm(position.ra + adp)
    return degnorm(position.ra - adp)


def get_asc_obl_diff(
    ctx: HeliacalContext,
    jd_ut: float,
    obj: CelestialObject,
    desc_obl: bool,
    acronychal: bool,
) -> float:
    """Sun minus object oblique ascension, in (-180, 180]."""

    sun = get_asc_obl(ctx, jd_ut, SUN, desc_obl)
    if acronychal:
        desc_obl = not desc_obl
    diff = degnorm(sun - get_asc_obl(ctx, jd_ut, obj, desc_obl))
    if acronychal:
        diff = degnorm(diff - 180.0)
    if diff > 180.0:
        diff -= 360.0
    return diff


def find_conjunct_sun(ctx: HeliacalContext, jd_start: float, obj: Planet, event: int) -> float:
    """Next conjunction (or opposition for outer planets' evening/acronychal events) after *jd_start*.

    Starts from the tabulated epoch advanced by whole synodic periods and
    refines by Newton steps on the ecliptic longitude difference.
    """

    aspect = 180.0 if obj.is_outer and event >= EventType.EVENING_FIRST else 0.0
    epoch = CONJUNCTION_EPOCHS.get((obj.body, ConjunctionKind.for_event(event)))
    if epoch is None:
        tjdcon = jd_start
    else:
        period = synodic_period(obj.body)
        tjdcon = epoch + math.floor((jd_start - epoch) / period + 1.0) * period

    guard = IterationGuard("loop in find_conjunct_sun()")
    ds = 100.0
    while abs(ds) > CONJUNCTION_TOLERANCE:
        guard.tick()
        planet = body_position(ctx, tjdcon, obj, PositionFlag.SPEED)
        sun = body_position(ctx, tjdcon, SUN, PositionFlag.SPEED)
        ds = degnorm(planet.longitude - sun.longitude - aspect)
        if ds > 180.0:
            ds -= 360.0
        tjdcon -= ds / (planet.lon_speed - sun.lon_speed)
    return tjdcon


def get_asc_obl_with_sun(
    ctx: HeliacalContext,
    jd_start: float,
    obj: CelestialObject,
    event: int,
    max_period: float = 0.0,
) -> float:
    """Day on which the object rises or sets together with the Sun.

    Steps forward ten days at a time until the oblique-ascension difference
    changes sign in the expected direction, then bisects to 1e-5 degree.

    Raises
    ------
    EventNotFound
        If *max_period* is positive and elapses first.
    LoopGuardError
        If either phase exceeds its iteration budget.
    """

    desc_obl = event in (EventType.EVENING_LAST, EventType.EVENING_FIRST, EventType.ACRONYCHAL_RISING)
    retro = event in (EventType.MORNING_FIRST, EventType.EVENING_LAST)
    acronychal = event in (EventType.ACRONYCHAL_RISING, EventType.ACRONYCHAL_SETTING)
    if acronychal and not obj.is_moon:
        retro = True

    def diff(t: float) -> float:
        return get_asc_obl_diff(ctx, t, obj, desc_obl, acronychal)

    def crossed(before: float, after: float) -> bool:
        if abs(before) + abs(after) > 180.0:
            return False
        if retro:
            return before < 0 <= after
        return before >= 0 > after

    tjd = jd_start
    current = diff(tjd)
    previous = None
    guard = IterationGuard("loop in get_asc_obl_with_sun() (1)")
    while previous is None or not crossed(previous, current):
        guard.tick()
        ctx.checkpoint()
        previous = current
        tjd += ASC_OBL_COARSE_STEP
        if max_period > 0 and tjd - jd_start > max_period:
            raise EventNotFound("no rising or setting with the Sun within the period")
        current = diff(tjd)

    bracket = bisect_bracket(
        diff,
        tjd - ASC_OBL_COARSE_STEP,
        tjd,
        previous,
        current,
        ftol=ASC_OBL_TOLERANCE,
        guard_message="loop in get_asc_obl_with_sun() (2)",
    )
    return bracket.lo if abs(bracket.f_lo) < abs(bracket.f_hi) else bracket.hi


def _day_search_plan(ctx: HeliacalContext, obj: CelestialObject, event: int):
    """Search span (days), day step, minute factor and start shift for :func:`get_heliacal_day`."""

    tfac = 1.0
    shift = 0.0
    if isinstance(obj, Star):
        ndays, daystep, tfac = 300, 15.0, 10.0
        if ctx.ephemeris.star_magnitude(obj.name) < 0:
            tfac = 3.0
    elif obj.body == Body.MOON:
        ndays, daystep = 16, 1.0
    elif obj.body == Body.MERCURY:
        ndays, daystep, tfac = 60, 5.0, 5.0
    elif obj.body == Body.VENUS:
        ndays, daystep, shift = 300, 5.0, -30.0
        if event >= EventType.EVENING_FIRST:
            daystep, tfac = 15.0, 3.0
    elif obj.body == Body.MARS:
        ndays, daystep, tfac = 400, 15.0, 5.0
    elif obj.body == Body.SATURN:
        ndays, daystep, tfac = 300, 20.0, 5.0
    else:
        ndays, daystep, tfac = 300, 15.0, 3.0
    return ndays, daystep, tfac, shift


def get_heliacal_day(ctx: HeliacalContext, tjd: float, obj: CelestialObject, event: int) -> float:
    """Minute of the first (or last) sighting, searched day by day from *tjd*.

    Each day the limiting magnitude is checked at sunrise or sunset; when the
    object is not yet visible the instant is walked into darkness in steps
    of 5, 2 and 1 minutes (times a per-object factor) until it is.

    Raises
    ------
    EventNotFound
        If the event does not happen within the search span.
    """

    if event == EventType.MORNING_FIRST:
        kind, direct_day, direct_time = RiseSetKind.RISE, 1.0, -1.0
    elif event == EventType.EVENING_LAST:
        kind, direct_day, direct_time = RiseSetKind.SET, -1.0, 1.0
    elif event == EventType.EVENING_FIRST:
        kind, direct_day, direct_time = RiseSetKind.SET, 1.0, 1.0
    else:
        kind, direct_day, direct_time = RiseSetKind.RISE, -1.0, -1.0

    slow = obj.is_outer
    ndays, daystep, tfac, shift = _day_search_plan(ctx, obj, event)
    tjd += shift * direct_day
    tend = tjd + ndays * direct_day
    minute = 1.0 / MINUTES_PER_DAY

    was_below = True
    tday = tjd
    first = True
    while True:
        if not first:
            tday += daystep * direct_day
            tday -= 0.3 * direct_day
        first = False
        if not ((direct_day > 0 and tday < tend) or (direct_day < 0 and tday > tend)):
            break
        ctx.checkpoint()

        try:
            tret = my_rise_trans(ctx, tday, SUN, kind)
        except CircumpolarError:
            was_below = True
            continue

        state = vis_limit_state(ctx, tret, obj)
        if was_below and not state.below_horizon and daystep > 1:
            was_below = False
            tday -= daystep * direct_day
            daystep = 5.0 if slow else 1.0
            continue
        was_below = state.below_horizon
        if state.below_horizon:
            continue

        visible_at_sun_event = True
        guard = IterationGuard("get_heliacal_day: minute walk does not converge")
        while not state.below_horizon and state.margin < 0:
            guard.tick()
            visible_at_sun_event = False
            vd = state.margin
            if vd < -1.0:
                tret += 5.0 * minute * direct_time * tfac
            elif vd < -0.5:
                tret += 2.0 * minute * direct_time * tfac
            elif vd < -0.1:
                tret += 1.0 * minute * direct_time * tfac
            else:
                tret += 1.0 * minute * direct_time
            state = vis_limit_state(ctx, tret, obj)

        if visible_at_sun_event:
            vd = state.margin
            for _ in range(10):
                nudged = vis_limit_state(ctx, tret + minute * direct_time, obj)
                if not nudged.below_horizon and nudged.margin > vd:
                    vd = nudged.margin
                    tret += minute * direct_time
                    state = nudged

        if state.margin > 0:
            if slow and daystep > 1:
                tday -= daystep * direct_day
                daystep = 1.0
            else:
                return tret

    raise EventNotFound("heliacal event does not happen")
