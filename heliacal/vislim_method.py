"""Event search with the limiting-magnitude method.

The object counts as visible while its magnitude is brighter than the
faintest magnitude the observer can see against the sky at that instant.
"""

from __future__ import annotations

from typing import Tuple

from .arcus_visionis import vis_limit_state
from .ascensional import find_conjunct_sun, get_asc_obl_with_sun, get_heliacal_day
from .constants import MINUTES_PER_DAY, Body, EventType, HeliacalFlag, RiseSetKind
from .context import HeliacalContext
from .errors import HeliacalValidationError
from .geometry import MOON, SUN, azalt_cart, my_rise_trans
from .models import CelestialObject, Planet, Star
from .phenomena import (
    get_heliacal_details,
    time_limit_invisible,
    time_optimum_visibility,
    uncertainty_message,
)
from .utils import IterationGuard

Times = Tuple[float, ...]

ACRONYCHAL_TOLERANCE = 0.5 / MINUTES_PER_DAY
ACRONYCHAL_SUN_LIMIT = -12.0


def get_acronychal_day(ctx: HeliacalContext, tjd: float, obj: CelestialObject, event: int) -> float:
    """Acronychal rising or setting: the object at the horizon as the sky turns fully dark.

    Repeats day by day until the limit of visibility in a dark sky and in a
    moonless twilight sky agree to half a minute. A diagnostic message with
    the Sun's altitude is recorded on the context.
    """

    ctx = ctx.with_flags(ctx.flags | HeliacalFlag.VISLIM_PHOTOPIC)
    if event in (EventType.EVENING_FIRST, EventType.ACRONYCHAL_RISING):
        kind, direct = RiseSetKind.RISE, -1
    else:
        kind, direct = RiseSetKind.SET, 1
    dark = ctx.with_flags(ctx.flags | HeliacalFlag.VISLIM_DARK)
    no_moon = ctx.with_flags(ctx.flags | HeliacalFlag.VISLIM_NOMOON)

    tret = tjd
    dtret = 999.0
    days = IterationGuard("get_acronychal_day: dark and moonless limits do not converge")
    while abs(dtret) > ACRONYCHAL_TOLERANCE:
        days.tick()
        ctx.checkpoint()
        tjd += 0.7 * direct
        if direct < 0:
            tjd -= 1.0
        tjd = my_rise_trans(ctx, tjd, obj, kind)
        state = vis_limit_state(ctx, tjd, obj)
        minutes = IterationGuard("get_acronychal_day: object does not become visible")
        while state.margin < 0:
            minutes.tick()
            tjd += 10.0 / MINUTES_PER_DAY * -direct
            state = vis_limit_state(ctx, tjd, obj)
        tret_dark, _ = time_limit_invisible(dark, tjd, obj, direct)
        tret, _ = time_limit_invisible(no_moon, tjd, obj, direct)
        dtret = abs(tret - tret_dark)

    alt_sun = azalt_cart(ctx, tret, SUN)[1]
    if alt_sun < ACRONYCHAL_SUN_LIMIT:
        ctx.note(f"acronychal rising/setting not available, {alt_sun:f}")
    else:
        ctx.note(f"solar altitude, {alt_sun:f}")
    return tret


def heliacal_ut_vis_lim(
    ctx: HeliacalContext,
    jd_start: float,
    obj: CelestialObject,
    event: int,
) -> Tuple[Times, str]:
    """Heliacal event of a planet or star by the limiting-magnitude method.

    Returns
    -------
    tuple
        ``(times, message)``. ``times`` holds first visible, optimum and last
        visible, or just the event time under ``NO_DETAILS`` and for
        acronychal events. ``message`` names uncertain detail times; the
        acronychal diagnostic goes to the context.
    """

    inner = isinstance(obj, Planet) and obj.body in (Body.MERCURY, Body.VENUS)
    tjd = jd_start - (30.0 if isinstance(obj, Planet) and obj.body == Body.MERCURY else 50.0)

    if inner or event <= EventType.EVENING_LAST:
        if isinstance(obj, Star):
            tjd = get_asc_obl_with_sun(ctx, tjd, obj, event)
        else:
            tjd = find_conjunct_sun(ctx, tjd, obj, event)
        tday = get_heliacal_day(ctx, tjd, obj, event)
        if ctx.flags & HeliacalFlag.NO_DETAILS:
            return (tday,), ""
        return get_heliacal_details(ctx, tday, obj, event)

    tjd = get_asc_obl_with_sun(ctx, tjd, obj, event)
    return (get_acronychal_day(ctx, tjd, obj, event),), ""


def moon_event_vis_lim(ctx: HeliacalContext, jd_start: float, event: int) -> Tuple[Times, str]:
    """Evening first or morning last crescent by the limiting-magnitude method.

    The visibility window is clipped to sunset (evening) or sunrise
    (morning) when the Moon is already visible in daylight.

    Raises
    ------
    HeliacalValidationError
        For a morning-first or evening-last request.
    """

    if event in (EventType.MORNING_FIRST, EventType.EVENING_LAST):
        raise HeliacalValidationError("the moon has no morning first or evening last")

    tjd = find_conjunct_sun(ctx, jd_start - 30.0, MOON, event)
    day_ctx = ctx.with_flags(ctx.flags & ~HeliacalFlag.HIGH_PRECISION)
    tjd = get_heliacal_day(day_ctx, tjd, MOON, event)

    optimum, optimum_uncertain = time_optimum_visibility(ctx, tjd, MOON)
    direct = -1 if event == EventType.MORNING_LAST else 1
    near, near_uncertain = time_limit_invisible(ctx, optimum, MOON, direct)
    far, far_uncertain = time_limit_invisible(ctx, optimum, MOON, -direct)

    if event == EventType.EVENING_FIRST:
        sunset = my_rise_trans(ctx, far, SUN, RiseSetKind.SET)
        if sunset < optimum:
            far = sunset
        times = (far, optimum, near)
        flags = (far_uncertain, optimum_uncertain, near_uncertain)
    else:
        sunrise = my_rise_trans(ctx, optimum, SUN, RiseSetKind.RISE)
        if far > sunrise:
            far = sunrise
        times = (near, optimum, far)
        flags = (near_uncertain, optimum_uncertain, far_uncertain)
    return times, uncertainty_message(MOON, flags)
