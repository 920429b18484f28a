"""Horizon coordinates, hour angles and rise/set times of the observed bodies."""

from __future__ import annotations

import math
from enum import IntEnum
from typing import Optional, Tuple

from .atmosphere import app_alt_from_topo_alt
from .constants import AU_M, MOON_RADIUS_M, SECONDS_PER_DAY, SUN_RADIUS_M, Body, RiseSetKind
from .context import HeliacalContext
from .ephemeris import Horizontal, Position, PositionFlag, RiseSetStatus
from .errors import CircumpolarError
from .magnitude import position_flags
from .models import CelestialObject, Planet
from .utils import degnorm

SUN = Planet(Body.SUN)
MOON = Planet(Body.MOON)

# Above this latitude the fast rise/set estimate is not trusted.
FAST_RISE_SET_MAX_LAT = 63.0
_REFRACTION_AT_HORIZON = 34.5 / 60.0


class Angle(IntEnum):
    """Quantities returned by :func:`object_loc`."""

    TOPO_ALT = 0
    AZIMUTH = 1
    TOPO_DEC = 2
    TOPO_RA = 3
    APP_ALT = 4
    GEO_DEC = 5
    GEO_RA = 6
    GEO_ALT = 7


def tt_from_ut(ctx: HeliacalContext, jd_ut: float) -> float:
    return jd_ut + ctx.ephemeris.delta_t(jd_ut) / SECONDS_PER_DAY


def body_position(ctx: HeliacalContext, jd_ut: float, obj: CelestialObject, flags: int) -> Position:
    """Position of *obj* at *jd_ut* (UT) from the position service."""

    ctx.ephemeris.set_topo(ctx.location)
    return ctx.ephemeris.position(tt_from_ut(ctx, jd_ut), obj, flags)


def to_horizon(ctx: HeliacalContext, jd_ut: float, position: Position) -> Horizontal:
    atm = ctx.atmosphere
    return ctx.ephemeris.equatorial_to_horizon(
        jd_ut, ctx.location, atm.pressure, atm.temperature, position.ra, position.dec
    )


def sun_ra(ctx: HeliacalContext, jd_ut: float) -> float:
    """Mean right ascension of the Sun, used as the season argument of the aerosol model."""

    key = (jd_ut,)
    cached = ctx.cached("sun_ra", key)
    if cached is not None:
        return cached
    flags = PositionFlag.NO_NUTATION | PositionFlag.TRUE_POSITION
    return ctx.store("sun_ra", key, ctx.ephemeris.position(tt_from_ut(ctx, jd_ut), SUN, flags).ra)


def hour_angle(alt: float, dec: float, lat: float) -> float:
    """Hour angle in hours at which a body of declination *dec* reaches altitude *alt*."""

    alt_r, dec_r, lat_r = math.radians(alt), math.radians(dec), math.radians(lat)
    cos_ha = (math.sin(alt_r) - math.sin(lat_r) * math.sin(dec_r)) / math.cos(lat_r) / math.cos(dec_r)
    cos_ha = max(-1.0, min(1.0, cos_ha))
    return math.degrees(math.acos(cos_ha)) / 15.0


def object_loc(ctx: HeliacalContext, jd_ut: float, obj: CelestialObject, angle: int) -> float:
    """One coordinate of *obj* at *jd_ut*, selected by :class:`Angle`.

    Azimuths are measured from north through east. Altitudes are unrefracted
    except for ``APP_ALT``.
    """

    angle = Angle(angle)
    topocentric = angle <= Angle.APP_ALT
    position = body_position(ctx, jd_ut, obj, position_flags(ctx, topocentric))
    if angle in (Angle.TOPO_DEC, Angle.GEO_DEC):
        return position.dec
    if angle in (Angle.TOPO_RA, Angle.GEO_RA):
        return position.ra
    horizontal = to_horizon(ctx, jd_ut, position)
    if angle == Angle.AZIMUTH:
        return horizontal.azimuth
    if angle == Angle.APP_ALT:
        atm = ctx.atmosphere
        return app_alt_from_topo_alt(horizontal.altitude, atm.temperature, atm.pressure, ctx.flags)
    return horizontal.altitude


def altitude_azimuth(ctx: HeliacalContext, jd_ut: float, obj: CelestialObject) -> Tuple[float, float]:
    """Topocentric altitude and azimuth in one position lookup."""

    horizontal = to_horizon(ctx, jd_ut, body_position(ctx, jd_ut, obj, position_flags(ctx)))
    return horizontal.altitude, horizontal.azimuth


def azalt_cart(ctx: HeliacalContext, jd_ut: float, obj: CelestialObject) -> Tuple[float, ...]:
    """Azimuth, true and apparent altitude, and the unit vector of the apparent place.

    Returns
    -------
    tuple
        ``(azimuth, altitude, apparent_altitude, x, y, z)``.
    """

    horizontal = to_horizon(ctx, jd_ut, body_position(ctx, jd_ut, obj, position_flags(ctx)))
    azi = math.radians(horizontal.azimuth)
    alt = math.radians(horizontal.apparent_altitude)
    return (
        horizontal.azimuth,
        horizontal.altitude,
        horizontal.apparent_altitude,
        math.cos(alt) * math.cos(azi),
        math.cos(alt) * math.sin(azi),
        math.sin(alt),
    )


def _disc_radius(obj: Planet, distance: float) -> float:
    if obj.body == Body.SUN:
        return math.degrees(math.asin(SUN_RADIUS_M / AU_M / distance))
    if obj.body == Body.MOON:
        return math.degrees(math.asin(MOON_RADIUS_M / AU_M / distance))
    return 0.0


def calc_rise_and_set(
    ctx: HeliacalContext,
    jd_start: float,
    obj: Planet,
    kind: RiseSetKind,
    disc_center: bool = False,
) -> Optional[float]:
    """Fast rising/setting estimate for planets.

    The transit nearest to the request is placed from the right ascensions
    of the Sun and the planet; the semi-diurnal arc gives a first guess that
    two linear corrections refine. None when the body does not cross the
    horizon that day.
    """

    geo_flags = position_flags(ctx, topocentric=False)
    lon, lat = ctx.location.longitude, ctx.location.latitude
    tjd0 = jd_start
    tjdnoon = math.floor(tjd0) - lon / 15.0 / 24.0
    sun = body_position(ctx, tjd0, SUN, geo_flags)
    planet = body_position(ctx, tjd0, obj, geo_flags)
    tjdnoon -= degnorm(sun.ra - planet.ra) / 360.0

    above = to_horizon(ctx, tjd0, planet).apparent_altitude > 0
    if kind == RiseSetKind.RISE:
        low, high = (0.5, 1.5) if above else (0.0, 1.0)
        while tjdnoon - tjd0 < low:
            tjdnoon += 1
        while tjdnoon - tjd0 > high:
            tjdnoon -= 1
    else:
        low, high = (-0.5, 0.5) if above else (-1.0, 0.0)
        while tjd0 - tjdnoon > high:
            tjdnoon += 1
        while tjd0 - tjdnoon < low:
            tjdnoon -= 1

    planet = body_position(ctx, tjdnoon, obj, geo_flags)
    radius = 0.0 if disc_center else _disc_radius(obj, planet.distance)
    target = -(_REFRACTION_AT_HORIZON + radius)
    cos_sda = -math.tan(math.radians(lat)) * math.tan(math.radians(planet.dec))
    if abs(cos_sda) > 1.0:
        return None
    sda = math.degrees(math.acos(cos_sda))
    if kind == RiseSetKind.RISE:
        tjdrise = tjdnoon - sda / 360.0
    else:
        tjdrise = tjdnoon + sda / 360.0

    speed_flags = position_flags(ctx, topocentric=obj.body == Body.MOON) | PositionFlag.SPEED
    dfac = 1.0 / 365.25
    for _ in range(2):
        moving = body_position(ctx, tjdrise, obj, speed_flags)
        now = to_horizon(ctx, tjdrise, moving)
        earlier = Position(
            ra=moving.ra - moving.ra_speed * dfac,
            dec=moving.dec - moving.dec_speed * dfac,
            distance=moving.distance,
            longitude=moving.longitude,
            latitude=moving.latitude,
        )
        before = to_horizon(ctx, tjdrise - dfac, earlier)
        tjdrise -= (now.altitude - target) / (now.altitude - before.altitude) * dfac
    return tjdrise


def my_rise_trans(
    ctx: HeliacalContext,
    jd_ut: float,
    obj: CelestialObject,
    kind: RiseSetKind,
    disc_center: bool = False,
) -> float:
    """Next rising or setting of *obj* after *jd_ut*.

    Planets at moderate latitudes take the fast estimate; stars, high
    latitudes and days the estimate cannot handle go to the position
    service's rigorous search.

    Raises
    ------
    CircumpolarError
        If the body stays above or below the horizon.
    """

    if isinstance(obj, Planet) and abs(ctx.location.latitude) < FAST_RISE_SET_MAX_LAT:
        fast = calc_rise_and_set(ctx, jd_ut, obj, kind, disc_center)
        if fast is not None:
            return fast
    atm = ctx.atmosphere
    result = ctx.ephemeris.rise_set(
        jd_ut, obj, kind, ctx.location, atm.pressure, atm.temperature, disc_center
    )
    if result.status is RiseSetStatus.CIRCUMPOLAR:
        raise CircumpolarError(f"{obj.name} is circumpolar, cannot calculate heliacal event")
    return result.time


def rise_set(ctx: HeliacalContext, jd_ut: float, obj: CelestialObject, kind: RiseSetKind, rim: int = 0) -> float:
    """Rising or setting of *obj*; ``rim`` 0 times the disc centre, 1 the upper limb."""

    return my_rise_trans(ctx, jd_ut, obj, RiseSetKind(kind), disc_center=rim == 0)
