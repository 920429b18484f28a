"""Arc of vision: how far below the horizon the Sun must be for an object to show.

References: Schaefer (1993), "Astronomy and the limits of vision";
Yallop (1998), "A method for predicting the first sighting of the new
crescent Moon"; Sultan (2005) for the crescent length.
"""

from __future__ import annotations

import math

from .constants import AVG_RADIUS_MOON, EPSILON, HeliacalFlag
from .context import HeliacalContext
from .errors import HeliacalValidationError
from .geometry import MOON, SUN, altitude_azimuth, sun_ra
from .magnitude import magnitude
from .models import CelestialObject, HeliacalAngleResult, VisibilityState
from .utils import bisect_bracket
from .vision import vis_lim_magn

NOT_BRACKETED = 99.0
BELOW_HORIZON_LIMIT = -100.0
NO_MOON_ALTITUDE = -90.0

_ANGLE_SCAN = (2.0, 20.0)
_ANGLE_TOLERANCE = 0.1
_ANGLE_DELTA = 0.025

# Lower q bounds of the Yallop classes, best class first.
YALLOP_BANDS = (
    ("A", 0.216),
    ("B", -0.014),
    ("C", -0.16),
    ("D", -0.232),
    ("E", -0.293),
)


def topo_arc_visionis(
    ctx: HeliacalContext,
    magn: float,
    alt_o: float,
    azi_o: float,
    alt_m: float,
    azi_m: float,
    jd_ut: float,
    azi_s: float,
    sunra: float,
) -> float:
    """Object-minus-Sun altitude at which an object of magnitude *magn* is just visible.

    The limiting magnitude is bisected over Sun depressions of 0 to 45
    degrees below the object. Returns 99 when visibility is not reached in
    that range, and never less than the object's altitude.
    """

    def excess(arc: float) -> float:
        return magn - vis_lim_magn(ctx, alt_o, azi_o, alt_m, azi_m, jd_ut, alt_o - arc, azi_s, sunra)[0]

    f_left = excess(45.0)
    f_right = excess(0.0)
    if f_left * f_right <= 0:
        arc = bisect_bracket(excess, 45.0, 0.0, f_left, f_right, xtol=EPSILON).mid
    else:
        arc = NOT_BRACKETED
    return max(arc, alt_o)


def heliacal_angle(
    ctx: HeliacalContext,
    magn: float,
    azi_o: float,
    alt_m: float,
    azi_m: float,
    jd_ut: float,
    azi_s: float,
) -> HeliacalAngleResult:
    """Object altitude that minimises the arc of vision.

    A one-degree scan over 2..20 degrees finds the neighbourhood; the
    minimum is then bracketed to 0.1 degree by comparing each midpoint with
    a point 0.025 degree above it.
    """

    sunra = sun_ra(ctx, jd_ut)

    def arc(alt: float) -> float:
        return topo_arc_visionis(ctx, magn, alt, azi_o, alt_m, azi_m, jd_ut, azi_s, sunra)

    best_alt, best_arc = 0.0, 10000.0
    alt = _ANGLE_SCAN[0]
    while alt <= _ANGLE_SCAN[1]:
        value = arc(alt)
        if value < best_arc:
            best_alt, best_arc = alt, value
        alt += 1.0

    left, right = best_alt - 1.0, best_alt + 1.0
    f_right = arc(right)
    f_left = arc(left)
    while abs(right - left) > _ANGLE_TOLERANCE:
        mid = (left + right) / 2.0
        f_mid = arc(mid)
        if f_mid >= arc(mid + _ANGLE_DELTA):
            left, f_left = mid, f_mid
        else:
            right, f_right = mid, f_mid
    alt_o = (left + right) / 2.0
    arc_min = (f_left + f_right) / 2.0
    return HeliacalAngleResult(alt_obj=alt_o, arc_of_vision=arc_min, alt_sun=alt_o - arc_min)


def deter_tav(ctx: HeliacalContext, jd_ut: float, obj: CelestialObject) -> float:
    """Arc of vision the object needs at *jd_ut*, from its actual magnitude and position."""

    sunra = sun_ra(ctx, jd_ut)
    magn = magnitude(ctx, jd_ut, obj)
    alt_o, azi_o = altitude_azimuth(ctx, jd_ut, obj)
    if obj.is_moon:
        alt_m, azi_m = NO_MOON_ALTITUDE, 0.0
    else:
        alt_m, azi_m = altitude_azimuth(ctx, jd_ut, MOON)
    _, azi_s = altitude_azimuth(ctx, jd_ut, SUN)
    return topo_arc_visionis(ctx, magn, alt_o, azi_o, alt_m, azi_m, jd_ut, azi_s, sunra)


def width_moon(alt_o: float, azi_o: float, alt_s: float, azi_s: float, parallax: float) -> float:
    """Topocentric crescent width in degrees."""

    geo_alt = alt_o + parallax
    return (
        0.27245
        * parallax
        * (1.0 + math.sin(math.radians(geo_alt)) * math.sin(math.radians(parallax)))
        * (1.0 - math.cos(math.radians(alt_s - geo_alt)) * math.cos(math.radians(azi_s - azi_o)))
    )


def length_moon(width: float, diameter: float = 0.0) -> float:
    """Crescent length in degrees from its width; a zero diameter means the mean lunar disc."""

    if diameter == 0.0:
        diameter = AVG_RADIUS_MOON * 2.0
    w = width * 60.0
    d = diameter * 60.0
    return (d - 0.3 * (d + w) / 2.0 / w) / 60.0


def q_yallop(width: float, geo_arcv: float) -> float:
    """Yallop's q from the crescent width (degrees) and the geocentric arc of vision."""

    w = width * 60.0
    return (geo_arcv - (11.8371 - 6.3226 * w + 0.7319 * w * w - 0.1018 * w * w * w)) / 10.0


def yallop_class(q: float) -> str:
    """Visibility class A (easily visible) to F (not visible) for Yallop's q."""

    for label, lower in YALLOP_BANDS:
        if q > lower:
            return label
    return "F"


def vis_limit_state(ctx: HeliacalContext, jd_ut: float, obj: CelestialObject) -> VisibilityState:
    """Limiting magnitude and geometry for *obj* at *jd_ut*.

    ``VISLIM_DARK`` removes the Sun and the Moon, ``VISLIM_NOMOON`` only the
    Moon. An object below the horizon gets a limiting magnitude of -100 and
    ``below_horizon`` set.

    Raises
    ------
    HeliacalValidationError
        If the object is the Sun.
    """

    if obj.is_sun:
        raise HeliacalValidationError("it makes no sense to compute the limiting magnitude of the Sun")
    sunra = sun_ra(ctx, jd_ut)
    alt_o, azi_o = altitude_azimuth(ctx, jd_ut, obj)
    if alt_o < 0:
        return VisibilityState(
            limiting_magnitude=BELOW_HORIZON_LIMIT,
            alt_obj=alt_o,
            azi_obj=azi_o,
            alt_sun=0.0,
            azi_sun=0.0,
            alt_moon=0.0,
            azi_moon=0.0,
            magnitude=0.0,
            below_horizon=True,
        )
    dark = bool(ctx.flags & HeliacalFlag.VISLIM_DARK)
    if dark:
        alt_s, azi_s = NO_MOON_ALTITUDE, 0.0
    else:
        alt_s, azi_s = altitude_azimuth(ctx, jd_ut, SUN)
    if obj.is_moon or dark or ctx.flags & HeliacalFlag.VISLIM_NOMOON:
        alt_m, azi_m = NO_MOON_ALTITUDE, 0.0
    else:
        alt_m, azi_m = altitude_azimuth(ctx, jd_ut, MOON)
    limit, regime, sky, kx = vis_lim_magn(ctx, alt_o, azi_o, alt_m, azi_m, jd_ut, alt_s, azi_s, sunra)
    return VisibilityState(
        limiting_magnitude=limit,
        alt_obj=alt_o,
        azi_obj=azi_o,
        alt_sun=alt_s,
        azi_sun=azi_s,
        alt_moon=alt_m,
        azi_moon=azi_m,
        magnitude=magnitude(ctx, jd_ut, obj),
        extinction=kx,
        sky_brightness=sky,
        regime=regime,
    )
