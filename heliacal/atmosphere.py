"""Atmospheric extinction, airmass and refraction after Schaefer (2000)."""

from __future__ import annotations

import json
import logging
import math

from .constants import (
    ASTR2TAU,
    C2K,
    EARTH_EQUATORIAL_RADIUS_M,
    HeliacalFlag,
    LAPSE_SA,
    LOWEST_APP_ALT,
    SCALE_H_AEROSOL,
    SCALE_H_OZONE,
    SCALE_H_RAYLEIGH,
    SCALE_H_WATER,
    STATIC_AIRMASS,
    TAU2ASTR,
)
from .context import HeliacalContext
from .utils import clamp, sgn

LOGGER = logging.getLogger(__name__)

EXT_AEROSOL = 0
EXT_WATER = 1
EXT_RAYLEIGH = 2
EXT_OZONE = 3
EXT_TOTAL = 4

# Crossover altitude between the two refraction fits, in degrees.
_REFRACTION_SWITCH_ALT = 17.904104638432


def _twilight_shift(alt_s: float) -> float:
    """Shift of the eye's effective wavelength as the sky darkens."""

    change = 1.0 - 0.166667 * clamp(-alt_s - 12.0, 0.0, 6.0)
    return 0.55 + (change - 1.0) * 0.04


def kw(height: float, temperature: float, humidity: float) -> float:
    """Water vapour extinction coefficient in magnitudes per airmass."""

    return 0.031 * 0.94 * (humidity / 100.0) * math.exp(temperature / 15.0) * math.exp(-height / SCALE_H_WATER)


def kr(alt_s: float, height: float) -> float:
    """Rayleigh extinction coefficient."""

    wavelength = _twilight_shift(alt_s)
    return 0.1066 * math.exp(-height / SCALE_H_RAYLEIGH) * (wavelength / 0.55) ** -4


def koz(ctx: HeliacalContext, alt_s: float, sunra: float) -> float:
    """Ozone extinction coefficient, falling to 30 % during the night."""

    key = (alt_s, sunra)
    cached = ctx.cached("koz", key)
    if cached is not None:
        return cached
    lat = math.radians(ctx.location.latitude)
    value = 0.031 * (3.0 + 0.4 * (lat * math.cos(math.radians(sunra)) - math.cos(3.0 * lat))) / 3.0
    change = (100.0 - 11.6 * min(6.0, max(-alt_s - 12.0, 0.0))) / 100.0
    return ctx.store("koz", key, value * change)


def ka(ctx: HeliacalContext, alt_s: float, sunra: float) -> float:
    """Aerosol extinction coefficient.

    The atmosphere's ``extinction`` field selects the model: a meteorological
    range in km (>= 1), a total extinction coefficient (between 0 and 1), or
    Schaefer's humidity/latitude/season formula (0). The result may be
    negative when the given range or coefficient contradicts the other
    inputs; the inconsistency is recorded on the context.
    """

    key = (alt_s, sunra)
    cached = ctx.cached("ka", key)
    if cached is not None:
        return cached
    atm = ctx.atmosphere
    height = ctx.location.height
    visibility = atm.extinction
    if visibility >= 1.0:
        beta_vr = 3.912 / visibility
        beta_a = beta_vr - (
            kw(height, atm.temperature, atm.humidity) / SCALE_H_WATER
            + kr(alt_s, height) / SCALE_H_RAYLEIGH
        ) * 1000.0 * ASTR2TAU
        value = beta_a * SCALE_H_AEROSOL / 1000.0 * TAU2ASTR
        if value < 0:
            _inconsistent(
                ctx,
                "The provided Meteorological range is too long, when taking into account other atmospheric parameters",
            )
    elif visibility > 0.0:
        value = visibility - kw(height, atm.temperature, atm.humidity) - kr(alt_s, height) - koz(ctx, alt_s, sunra)
        if value < 0:
            _inconsistent(
                ctx,
                "The provided atmospheric coefficient (ktot) is too low, "
                "when taking into account other atmospheric parameters",
            )
    else:
        humidity = clamp(atm.humidity, 1e-8, 99.99999999)
        season = 1.0 + 0.33 * sgn(ctx.location.latitude) * math.sin(math.radians(sunra))
        value = 0.1 * math.exp(-height / SCALE_H_AEROSOL) * (1.0 - 0.32 / math.log(humidity / 100.0)) ** 1.33 * season
        value *= (_twilight_shift(alt_s) / 0.55) ** -1.3
    return ctx.store("ka", key, value)


def _inconsistent(ctx: HeliacalContext, message: str) -> None:
    if message not in ctx.messages:
        LOGGER.warning(json.dumps({"event": "atmosphere_inconsistent", "message": message}))
    ctx.note(message)


def kt(ctx: HeliacalContext, alt_s: float, sunra: float, ext_type: int = EXT_TOTAL) -> float:
    """Extinction coefficient of one component, or of all (``EXT_TOTAL``).

    The aerosol part is clamped at zero, so the result is never negative.
    """

    total = 0.0
    if ext_type in (EXT_RAYLEIGH, EXT_TOTAL):
        total += kr(alt_s, ctx.location.height)
    if ext_type in (EXT_WATER, EXT_TOTAL):
        total += kw(ctx.location.height, ctx.atmosphere.temperature, ctx.atmosphere.humidity)
    if ext_type in (EXT_OZONE, EXT_TOTAL):
        total += koz(ctx, alt_s, sunra)
    if ext_type in (EXT_AEROSOL, EXT_TOTAL):
        total += max(ka(ctx, alt_s, sunra), 0.0)
    return total


def _zenith_distance(app_alt: float) -> float:
    return min(math.radians(90.0 - app_alt), math.pi / 2.0)


def airmass(app_alt: float, pressure: float) -> float:
    cz = math.cos(_zenith_distance(app_alt))
    return pressure / 1013.0 / (cz + 0.025 * math.exp(-11.0 * cz))


def xext(scale_height: float, zend: float, pressure: float) -> float:
    """Relative airmass of an exponential layer with the given scale height."""

    root = math.sqrt(scale_height / 1000.0)
    cz = math.cos(zend)
    return pressure / 1013.0 / (cz + 0.01 * root * math.exp(-30.0 / root * cz))


def xlay(scale_height: float, zend: float, pressure: float) -> float:
    """Relative airmass of a thin layer at the given height."""

    a = math.sin(zend) / (1.0 + scale_height / EARTH_EQUATORIAL_RADIUS_M)
    return pressure / 1013.0 / math.sqrt(1.0 - a * a)


def temp_e_from_temp_s(temperature: float, height: float, lapse: float = LAPSE_SA) -> float:
    return temperature - lapse * height


def pres_e_from_pres_s(temperature: float, pressure: float, height: float) -> float:
    return pressure * math.exp(
        -9.80665 * 0.0289644 / (temperature + C2K + 3.25 * height / 1000.0) / 8.31441 * height
    )


def topo_alt_from_app_alt(app_alt: float, temperature: float, pressure: float) -> float:
    """Remove refraction from an apparent altitude.

    Altitudes below ``LOWEST_APP_ALT`` are returned unchanged.
    """

    if app_alt < LOWEST_APP_ALT:
        return app_alt
    if app_alt > _REFRACTION_SWITCH_ALT:
        refraction = 0.97 / math.tan(math.radians(app_alt))
    else:
        refraction = (34.46 + 4.23 * app_alt + 0.004 * app_alt * app_alt) / (
            1.0 + 0.505 * app_alt + 0.0845 * app_alt * app_alt
        )
    refraction = (pressure - 80.0) / 930.0 / (1.0 + 0.00008 * (refraction + 39.0) * (temperature - 10.0)) * refraction
    return app_alt - refraction / 60.0


def app_alt_from_topo_alt(topo_alt: float, temperature: float, pressure: float, flags: int = 0) -> float:
    """Add refraction to a true altitude.

    Inverts :func:`topo_alt_from_app_alt` with a secant iteration, two steps
    by default and five under ``HIGH_PRECISION``.
    """

    nloop = 5 if flags & HeliacalFlag.HIGH_PRECISION else 2
    new_app = topo_alt
    new_refr = 0.0
    old_app = new_app
    old_refr = new_refr
    for _ in range(nloop + 1):
        new_refr = new_app - topo_alt_from_app_alt(new_app, temperature, pressure)
        step = new_app - old_app
        slope = new_refr - old_refr - step
        if step != 0 and slope != 0:
            estimate = new_app - step * (topo_alt + new_refr - new_app) / slope
        else:
            estimate = topo_alt + new_refr
        old_app = new_app
        old_refr = new_refr
        new_app = estimate
    result = topo_alt + new_refr
    if result < LOWEST_APP_ALT:
        return topo_alt
    return result


def deltam(ctx: HeliacalContext, alt_o: float, alt_s: float, sunra: float) -> float:
    """Total extinction in magnitudes along the line of sight to altitude *alt_o*."""

    key = (alt_o, alt_s, sunra, ctx.high_precision)
    cached = ctx.cached("deltam", key)
    if cached is not None:
        return cached
    atm = ctx.atmosphere
    height = ctx.location.height
    pres_e = pres_e_from_pres_s(atm.temperature, atm.pressure, height)
    temp_e = temp_e_from_temp_s(atm.temperature, height)
    app_alt = app_alt_from_topo_alt(alt_o, temp_e, pres_e, ctx.flags)
    if STATIC_AIRMASS:
        value = kt(ctx, alt_s, sunra, EXT_TOTAL) * airmass(app_alt, atm.pressure)
    else:
        zend = _zenith_distance(app_alt)
        value = (
            kr(alt_s, height) * xext(SCALE_H_RAYLEIGH, zend, atm.pressure)
            + kt(ctx, alt_s, sunra, EXT_AEROSOL) * xext(SCALE_H_AEROSOL, zend, atm.pressure)
            + koz(ctx, alt_s, sunra) * xlay(SCALE_H_OZONE, zend, atm.pressure)
            + kw(height, atm.temperature, atm.humidity) * xext(SCALE_H_WATER, zend, atm.pressure)
        )
    return ctx.store("deltam", key, value)
