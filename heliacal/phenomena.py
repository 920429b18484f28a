"""Synodic periods, visibility windows around an event, and the phenomena report."""

from __future__ import annotations

import json
import logging
import math
from typing import Optional, Tuple

from .arcus_visionis import deter_tav, length_moon, q_yallop, vis_limit_state, width_moon, yallop_class
from .atmosphere import EXT_TOTAL, app_alt_from_topo_alt, kt
from .constants import (
    DEFAULT_SYNODIC_PERIOD,
    MAX_TRY_HOURS,
    MINUTES_PER_DAY,
    SECONDS_PER_DAY,
    SYNODIC_PERIODS,
    TIME_STEP_DEFAULT,
    TJD_INVALID,
    EventType,
    RiseSetKind,
)
from .context import HeliacalContext
from .errors import CircumpolarError
from .geometry import SUN, Angle, altitude_azimuth, object_loc, rise_set, sun_ra
from .magnitude import magnitude, position_flags
from .models import CelestialObject, PhenomenaReport, Star, VisibilityState
from .utils import IterationGuard

LOGGER = logging.getLogger(__name__)

UNCERTAIN_MESSAGE = "return values [{}] are uncertain due to change between photopic and scotopic vision"

_OPTIMUM_STEPS = (100.0, 10.0, 1.0)  # Seconds.


def synodic_period(body: int) -> float:
    """Mean synodic period in days; stars and untabulated bodies get 366 days."""

    return SYNODIC_PERIODS.get(body, DEFAULT_SYNODIC_PERIOD)


def _regime_changed(saved: VisibilityState, last: VisibilityState) -> bool:
    if last.below_horizon:
        return False
    return saved.scotopic != last.scotopic or saved.mixed


def _climb(
    ctx: HeliacalContext,
    obj: CelestialObject,
    tjd: float,
    direction: int,
    best: float,
    saved: VisibilityState,
) -> Tuple[float, float, VisibilityState, VisibilityState]:
    last = saved
    for seconds in _OPTIMUM_STEPS:
        step = direction * seconds / SECONDS_PER_DAY
        while True:
            last = vis_limit_state(ctx, tjd + step, obj)
            if last.below_horizon or last.margin <= 0 or last.margin <= best:
                break
            tjd += step
            best = last.margin
            saved = last
    return tjd, best, saved, last


def time_optimum_visibility(ctx: HeliacalContext, tjd: float, obj: CelestialObject) -> Tuple[float, bool]:
    """Instant near *tjd* where the object is most easily seen.

    Walks earlier and later from *tjd* with steps of 100, 10 and 1 seconds
    while the visibility margin grows, and keeps the better side.

    Returns
    -------
    tuple
        ``(time, uncertain)``; ``uncertain`` is set when the walk crossed
        between photopic and scotopic vision or stayed in the mixed band.
    """

    start = vis_limit_state(ctx, tjd, obj)
    best = start.margin if not start.below_horizon and start.margin > 0 else -1.0
    t1, vl1, saved1, last1 = _climb(ctx, obj, tjd, -1, best, start)
    t2, vl2, saved2, last2 = _climb(ctx, obj, tjd, 1, best, start)
    if vl2 > vl1:
        return t2, _regime_changed(saved2, last2)
    return t1, _regime_changed(saved1, last1)


def time_limit_invisible(
    ctx: HeliacalContext,
    tjd: float,
    obj: CelestialObject,
    direction: int,
) -> Tuple[float, bool]:
    """Walk from *tjd* in *direction* (+1 or -1) to the last instant the object is visible.

    Three refinements from 100 seconds, four from 1000 seconds for the Moon.
    """

    first_step = 100.0 / SECONDS_PER_DAY
    refinements = 3
    if obj.is_moon:
        first_step *= 10.0
        refinements = 4
    saved = last = vis_limit_state(ctx, tjd, obj)
    guard = IterationGuard("time_limit_invisible: object does not become invisible")
    step = first_step
    for _ in range(refinements):
        while True:
            guard.tick()
            last = vis_limit_state(ctx, tjd + step * direction, obj)
            if last.below_horizon or last.limiting_magnitude <= last.magnitude:
                break
            tjd += step * direction
            saved = last
        step /= 10.0
    return tjd, _regime_changed(saved, last)


def uncertainty_message(obj: CelestialObject, flags: Tuple[bool, ...]) -> str:
    """Message naming the uncertain entries of a (first, optimum, last) triple, empty when none."""

    uncertain = [str(index) for index, flag in enumerate(flags) if flag]
    if not uncertain:
        return ""
    LOGGER.info(json.dumps({"event": "vision_regime_uncertain", "object": obj.name, "indices": uncertain}))
    return UNCERTAIN_MESSAGE.format("".join(item + "," for item in uncertain))


def get_heliacal_details(
    ctx: HeliacalContext,
    tday: float,
    obj: CelestialObject,
    event: int,
) -> Tuple[Tuple[float, float, float], str]:
    """First visible, optimum and last visible times around the event day *tday*.

    Returns
    -------
    tuple
        ``((first, optimum, last), message)`` with the times in chronological
        order and a message naming the uncertain entries, empty when none.
    """

    optimum, optimum_uncertain = time_optimum_visibility(ctx, tday, obj)
    direction = -1 if event in (EventType.MORNING_FIRST, EventType.MORNING_LAST) else 1
    first, first_uncertain = time_limit_invisible(ctx, tday, obj, direction)
    last, last_uncertain = time_limit_invisible(ctx, optimum, obj, -direction)
    if event in (EventType.EVENING_LAST, EventType.EVENING_FIRST):
        first, last = last, first
        first_uncertain, last_uncertain = last_uncertain, first_uncertain
    return (first, optimum, last), uncertainty_message(obj, (first_uncertain, optimum_uncertain, last_uncertain))


def _vr_walk(
    ctx: HeliacalContext,
    obj: CelestialObject,
    sun_event: float,
    kind: RiseSetKind,
) -> Tuple[float, float, float, float, float]:
    """Minute walk from sunrise (back) or sunset (forward) comparing the actual and needed arcs.

    Returns
    -------
    tuple
        ``(min_tav, first_visible, best_visible, last_visible, minutes_visible)``.
    """

    step = TIME_STEP_DEFAULT / MINUTES_PER_DAY
    if kind == RiseSetKind.RISE:
        step = -step
    min_tav = 0.0
    first = best = last = TJD_INVALID
    best_excess = 0.0
    visible_minutes = 0.0
    for minute in range(1, int(MAX_TRY_HOURS * 60 / TIME_STEP_DEFAULT) + 1):
        ctx.checkpoint()
        t = sun_event + minute * step
        alt_o, _ = altitude_azimuth(ctx, t, obj)
        if alt_o < 0:
            break
        alt_s, _ = altitude_azimuth(ctx, t, SUN)
        needed = deter_tav(ctx, t, obj)
        if min_tav == 0.0 or needed < min_tav:
            min_tav = needed
        excess = (alt_o - alt_s) - needed
        if excess > 0:
            first = t if first == TJD_INVALID else min(first, t)
            last = t if last == TJD_INVALID else max(last, t)
            visible_minutes += TIME_STEP_DEFAULT
            if excess > best_excess:
                best_excess, best = excess, t
    return min_tav, first, best, last, visible_minutes


def phenomena_report(ctx: HeliacalContext, jd_ut: float, obj: CelestialObject, event: int) -> PhenomenaReport:
    """Circumstances of *obj* at *jd_ut* for an event of type *event*."""

    sunra = sun_ra(ctx, jd_ut)
    alt_s, azi_s = altitude_azimuth(ctx, jd_ut, SUN)
    alt_o, azi_o = altitude_azimuth(ctx, jd_ut, obj)
    geo_alt_o = object_loc(ctx, jd_ut, obj, Angle.GEO_ALT)
    atm = ctx.atmosphere
    app_alt_o = app_alt_from_topo_alt(alt_o, atm.temperature, atm.pressure, ctx.flags)
    daz = azi_s - azi_o
    tav = alt_o - alt_s
    parallax = geo_alt_o - alt_o
    magn = magnitude(ctx, jd_ut, obj)
    arcv = tav + parallax
    arcl = math.degrees(math.acos(math.cos(math.radians(arcv)) * math.cos(math.radians(daz))))

    if isinstance(obj, Star):
        elongation, illumination = arcl, 100.0
    else:
        pheno = ctx.ephemeris.phenomena(jd_ut, obj, position_flags(ctx))
        elongation, illumination = pheno.elongation, pheno.illuminated_fraction * 100.0

    extinction = kt(ctx, alt_s, sunra, EXT_TOTAL)

    moon_w = moon_l = q = 0.0
    q_class: Optional[str] = None
    if obj.is_moon:
        moon_w = width_moon(alt_o, azi_o, alt_s, azi_s, parallax)
        moon_l = length_moon(moon_w)
        q = q_yallop(moon_w, arcv)
        q_class = yallop_class(q)

    kind = RiseSetKind.RISE if event in (EventType.MORNING_FIRST, EventType.MORNING_LAST) else RiseSetKind.SET
    rise_sun = rise_set(ctx, jd_ut - 4.0 / 24.0, SUN, kind)
    best_yallop = TJD_INVALID
    try:
        rise_obj = rise_set(ctx, jd_ut - 4.0 / 24.0, obj, kind)
    except CircumpolarError:
        rise_obj, lag = 0.0, 0.0
        min_tav, first_vr, best_vr, last_vr, vis_minutes = 0.0, TJD_INVALID, TJD_INVALID, TJD_INVALID, 0.0
    else:
        lag = rise_obj - rise_sun
        if obj.is_moon:
            best_yallop = (rise_obj * 4.0 + rise_sun * 5.0) / 9.0
        min_tav, first_vr, best_vr, last_vr, vis_minutes = _vr_walk(ctx, obj, rise_sun, kind)

    return PhenomenaReport(
        alt_obj=alt_o,
        app_alt_obj=app_alt_o,
        geo_alt_obj=geo_alt_o,
        azi_obj=azi_o,
        alt_sun=alt_s,
        azi_sun=azi_s,
        tav=tav,
        arcv=arcv,
        daz=daz,
        arcl=arcl,
        extinction=extinction,
        min_tav=min_tav,
        t_first_vr=first_vr,
        t_best_vr=best_vr,
        t_last_vr=last_vr,
        t_best_yallop=best_yallop,
        moon_width=moon_w,
        q_yallop=q,
        q_class=q_class,
        parallax=parallax,
        magnitude=magn,
        rise_obj=rise_obj,
        rise_sun=rise_sun,
        lag=lag,
        vis_duration_vr=vis_minutes,
        moon_length=moon_l,
        elongation=elongation,
        illumination=illumination,
    )
