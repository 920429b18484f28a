"""Event search with the arcus visionis method.

The object counts as visible once its altitude above the Sun exceeds the
smallest arc of vision for its magnitude. The day of the event is found
by stepping in powers of two days; the time of day then comes from the
VR walk (local minimum of the needed arc) or the PTO walk (object
reaching the horizon).
"""

from __future__ import annotations

from typing import Dict, Tuple

from .arcus_visionis import deter_tav, heliacal_angle
from .constants import (
    LOCAL_MIN_STEP,
    MINUTES_PER_DAY,
    TIME_STEP_DEFAULT,
    Body,
    EventType,
    HeliacalFlag,
    RiseSetKind,
)
from .context import HeliacalContext
from .errors import ComputationError, EventNotFound, HeliacalValidationError
from .geometry import (
    MOON,
    SUN,
    Angle,
    altitude_azimuth,
    body_position,
    hour_angle,
    my_rise_trans,
    object_loc,
    rise_set,
    to_horizon,
)
from .magnitude import magnitude, position_flags
from .models import CelestialObject, Planet
from .utils import IterationGuard, sgn, x2min

# Day step (a power of two) and longest search span in days.
ARC_VIS_STEPS: Dict[int, Tuple[int, int]] = {
    Body.MERCURY: (1, 100),
    Body.VENUS: (64, 384),
    Body.MARS: (128, 640),
    Body.JUPITER: (64, 384),
    Body.SATURN: (64, 256),
}
ARC_VIS_DEFAULT_STEP = (64, 256)

PTO_START_ANGLE = -5.55
MOON_MAX_WALK_MINUTES = 120.0
MOON_MAX_DAYS = 15


def _sun_depression(ctx: HeliacalContext, previous_pto: float) -> float:
    if ctx.flags & HeliacalFlag.AVKIND_MIN7:
        return -7.0
    if ctx.flags & HeliacalFlag.AVKIND_MIN9:
        return -9.0
    return previous_pto


def _arc_excess(
    ctx: HeliacalContext,
    day: float,
    obj: CelestialObject,
    event: int,
    kind: RiseSetKind,
    magn: float,
    pto: float,
) -> Tuple[float, float, float]:
    """Altitude difference minus arc of vision when the Sun reaches the target depression.

    Returns
    -------
    tuple
        ``(excess, instant, pto)`` where ``pto`` is the Sun altitude of the
        minimal arc, used as the next target.
    """

    tret = my_rise_trans(ctx, day, SUN, kind, disc_center=True)
    sun = body_position(ctx, tret, SUN, position_flags(ctx))
    t_rise = hour_angle(to_horizon(ctx, tret, sun).altitude, sun.dec, ctx.location.latitude)
    t_target = hour_angle(_sun_depression(ctx, pto), sun.dec, ctx.location.latitude)
    t_delta = t_target - t_rise
    if event in (EventType.EVENING_LAST, EventType.EVENING_FIRST):
        t_delta = -t_delta
    instant = tret - t_delta / 24.0

    alt_s, azi_s = altitude_azimuth(ctx, instant, SUN)
    alt_o, azi_o = altitude_azimuth(ctx, instant, obj)
    if isinstance(obj, Planet):
        magn = magnitude(ctx, instant, obj)
    angle = heliacal_angle(ctx, magn, azi_o, -1.0, 0.0, instant, azi_s)
    return (alt_o - alt_s) - angle.arc_of_vision, instant, angle.alt_sun


def _vr_minimum(ctx: HeliacalContext, start: float, obj: CelestialObject, direct: float) -> float:
    """Minute walk from *start* to the local minimum of the needed arc, interpolated by a parabola."""

    step = direct
    pointer = start
    oldest = deter_tav(ctx, pointer, obj)
    pointer += step
    older = deter_tav(ctx, pointer, obj)
    if older > oldest:
        pointer = start
        step = -step
        current = oldest
    else:
        current, older = older, oldest

    guard = IterationGuard("VR walk does not find a minimum of the arc of vision")
    while True:
        guard.tick()
        pointer += step
        oldest, older = older, current
        current = deter_tav(ctx, pointer, obj)
        if older < current:
            return pointer - (1.0 - x2min(current, older, oldest)) * step


def _pto_horizon(ctx: HeliacalContext, start: float, obj: CelestialObject, direct: float) -> float:
    """Walk back minute by minute until the object reaches the horizon."""

    instant = start
    guard = IterationGuard("PTO walk does not reach the horizon")
    while True:
        guard.tick()
        previous = instant
        instant -= direct
        if object_loc(ctx, instant, obj, Angle.TOPO_ALT) <= 0:
            return (instant + previous) / 2.0


def heliacal_ut_arc_vis(ctx: HeliacalContext, jd_start: float, obj: CelestialObject, event: int) -> float:
    """Heliacal or acronychal event of a planet or star by the arcus visionis method.

    Raises
    ------
    EventNotFound
        If no event falls within the object's maximum search span.
    """

    magn = magnitude(ctx, jd_start, obj)
    body = obj.body if isinstance(obj, Planet) else None
    day_step, max_length = ARC_VIS_STEPS.get(body, ARC_VIS_DEFAULT_STEP)

    mapped = event
    if mapped == EventType.EVENING_LAST:
        day_step = -day_step
    if mapped == EventType.MORNING_LAST:
        mapped = EventType.MORNING_FIRST
        day_step = -day_step
    if mapped == EventType.EVENING_FIRST:
        mapped = EventType.EVENING_LAST
    kind = RiseSetKind.RISE if mapped == EventType.MORNING_FIRST else RiseSetKind.SET

    final = jd_start + max_length
    day = jd_start - 1.0
    if day_step < 0:
        day, final = final, day
    step_day = day - day_step
    excess = 199.0
    pto = PTO_START_ANGLE
    instant = day

    def remaining() -> bool:
        return (final - step_day) * sgn(day_step) > 0

    done_one_day = False
    while True:
        if abs(day_step) == 1:
            done_one_day = True
        while True:
            ctx.checkpoint()
            previous_day, previous_excess = step_day, excess
            step_day += day_step
            excess, instant, pto = _arc_excess(ctx, step_day, obj, event, kind, magn, pto)
            if not ((previous_excess > 0 or excess < 0) and remaining()):
                break
        if done_one_day or not remaining():
            break
        excess = previous_excess
        day_step = int(abs(day_step) / 2) * sgn(day_step)
        step_day = previous_day

    span = (final - step_day) * sgn(day_step)
    if span <= 0 or span >= max_length:
        raise EventNotFound(f"heliacal event not found within maxlength {max_length:f}")

    direct = TIME_STEP_DEFAULT / MINUTES_PER_DAY
    if day_step < 0:
        direct = -direct
    if ctx.flags & HeliacalFlag.AVKIND_VR:
        instant = _vr_minimum(ctx, instant, obj, direct)
    if ctx.flags & HeliacalFlag.AVKIND_PTO:
        instant = _pto_horizon(ctx, instant, obj, direct)
    if not -9999999.0 < instant < 9999999.0:
        raise ComputationError("no heliacal date found")
    return instant


def moon_event_arc_vis(ctx: HeliacalContext, jd_start: float, event: int) -> float:
    """Evening first or morning last crescent by the arcus visionis method.

    Finds the new Moon as the day of largest phase angle, then walks the
    minutes after sunset (or before sunrise) of successive days until the
    Moon's altitude above the Sun exceeds the smallest arc it needs.

    Raises
    ------
    HeliacalValidationError
        For an arcus visionis kind other than VR, or a morning-first or
        evening-last request.
    EventNotFound
        If no day within 15 of the new Moon qualifies.
    """

    avkind = ctx.flags & HeliacalFlag.AVKIND
    if avkind == 0:
        avkind = HeliacalFlag.AVKIND_VR
    if avkind != HeliacalFlag.AVKIND_VR:
        raise HeliacalValidationError("invalid AV kind for the moon")
    if event in (EventType.MORNING_FIRST, EventType.EVENING_LAST):
        raise HeliacalValidationError("the moon has no morning first or evening last")

    if event == EventType.EVENING_FIRST:
        kind, day_step = RiseSetKind.SET, 1.0
        day = jd_start
    else:
        kind, day_step = RiseSetKind.RISE, -1.0
        day = jd_start + 30.0

    flags = position_flags(ctx)
    ctx.ephemeris.set_topo(ctx.location)
    phase_after = ctx.ephemeris.phenomena(day, MOON, flags).phase_angle
    going_up = False
    guard = IterationGuard("moon_event_arc_vis: new moon not found")
    while True:
        guard.tick()
        day += day_step
        phase_before = phase_after
        phase_after = ctx.ephemeris.phenomena(day, MOON, flags).phase_angle
        if phase_after > phase_before:
            going_up = True
        if going_up and phase_after <= phase_before:
            break
    day -= day_step

    new_moon_day = day
    day -= day_step
    minute = sgn(day_step) / MINUTES_PER_DAY
    min_tav_old = 199.0
    delta_alt = 90.0
    while True:
        ctx.checkpoint()
        day += day_step
        event_time = rise_set(ctx, day, MOON, kind, rim=0)
        walk_start = event_time
        min_tav = 199.0
        oldest = min_tav
        walk_guard = IterationGuard("moon_event_arc_vis: minute walk does not converge")
        while True:
            walk_guard.tick()
            oldest = min_tav_old
            min_tav_old = min_tav
            delta_alt_old = delta_alt
            event_time -= minute
            alt_s = object_loc(ctx, event_time, SUN, Angle.TOPO_ALT)
            alt_o = object_loc(ctx, event_time, MOON, Angle.TOPO_ALT)
            delta_alt = alt_o - alt_s
            min_tav = deter_tav(ctx, event_time, MOON)
            local_min_check = deter_tav(ctx, event_time - LOCAL_MIN_STEP * minute, MOON)
            if not (
                (min_tav <= min_tav_old or local_min_check < min_tav)
                and abs(event_time - walk_start) < MOON_MAX_WALK_MINUTES / MINUTES_PER_DAY
            ):
                break
        if not (delta_alt_old < min_tav_old and abs(day - new_moon_day) < MOON_MAX_DAYS):
            break

    if abs(day - new_moon_day) >= MOON_MAX_DAYS:
        raise EventNotFound("no date found for lunar event")
    return event_time + (1.0 - x2min(min_tav, min_tav_old, oldest)) * minute
