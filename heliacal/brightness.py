"""Sky brightness in nanoLambert: night sky, Moon, twilight, day and city light."""

from __future__ import annotations

import math

import erfa

from .atmosphere import EXT_TOTAL, app_alt_from_topo_alt, deltam, kt, pres_e_from_pres_s, temp_e_from_temp_s
from .constants import EARTH_EQUATORIAL_RADIUS_M, ERG2NL, MOON_DISTANCE_KM
from .context import HeliacalContext

M0 = -11.05  # Magnitude of one nanoLambert over a square degree.
MAG_SUN = -26.74
MOON_AVG_PARALLAX = 0.95  # Degrees.
LUNAR_DISC_RADIUS = 0.25  # Degrees.

# Above these totals the next contribution is lost in the noise.
_MOONLIGHT_CUTOFF = 2.0e8
_NIGHTSKY_CUTOFF = 5000.0


def distance_angle(lat_a: float, lon_a: float, lat_b: float, lon_b: float) -> float:
    """Great-circle distance in radians between two points given in radians."""

    sin_dlat = math.sin((lat_b - lat_a) / 2.0)
    sin_dlon = math.sin((lon_b - lon_a) / 2.0)
    chord = sin_dlat * sin_dlat + math.cos(lat_a) * math.cos(lat_b) * sin_dlon * sin_dlon
    return 2.0 * math.asin(math.sqrt(min(chord, 1.0)))


def _separation(alt_a: float, azi_a: float, alt_b: float, azi_b: float) -> float:
    return math.degrees(
        distance_angle(math.radians(alt_a), math.radians(azi_a), math.radians(alt_b), math.radians(azi_b))
    )


def moon_phase(alt_m: float, azi_m: float, alt_s: float, azi_s: float) -> float:
    """Lunar phase angle in degrees from horizontal coordinates."""

    alt_m_par = math.radians(alt_m + MOON_AVG_PARALLAX)
    alt_s_r = math.radians(alt_s)
    cos_elong = (
        math.cos(math.radians(azi_s - azi_m - MOON_AVG_PARALLAX)) * math.cos(alt_m_par) * math.cos(alt_s_r)
        + math.sin(alt_s_r) * math.sin(alt_m_par)
    )
    return 180.0 - math.degrees(math.acos(max(-1.0, min(1.0, cos_elong))))


def moons_brightness(dist_km: float, phase: float) -> float:
    """Visual magnitude of the Moon at distance *dist_km* and phase angle *phase*."""

    return (
        -21.62
        + 5.0 * math.log10(dist_km / (EARTH_EQUATORIAL_RADIUS_M / 1000.0))
        + 0.026 * abs(phase)
        + 4e-9 * phase ** 4
    )


def _scattered(separation: float) -> float:
    """Scattering function of Krisciunas and Schaefer for a source *separation* degrees away."""

    return (
        6.2e7 / separation / separation
        + 10.0 ** (6.15 - separation / 40.0)
        + 10.0 ** 5.36 * (1.06 + math.cos(math.radians(separation)) ** 2)
    )


def _apparent_object_altitude(ctx: HeliacalContext, alt_o: float) -> float:
    atm = ctx.atmosphere
    height = ctx.location.height
    pres_e = pres_e_from_pres_s(atm.temperature, atm.pressure, height)
    temp_e = temp_e_from_temp_s(atm.temperature, height)
    return app_alt_from_topo_alt(alt_o, temp_e, pres_e, ctx.flags)


def bn(ctx: HeliacalContext, alt_o: float, jd_ut: float, alt_s: float, sunra: float) -> float:
    """Night sky brightness, modulated by the 11.1-year solar cycle."""

    # The night sky is flat below 10 degrees.
    app_alt = max(_apparent_object_altitude(ctx, alt_o), 10.0)
    zend = math.radians(90.0 - app_alt)
    year, month, day, _ = erfa.jd2cal(jd_ut, 0.0)
    year, month, day = int(year), int(month), int(day)
    cycle = year + ((day - 1) / 30.4 + month - 1) / 12.0 - 1990.33
    bna = 1e-13 * (1.0 + 0.3 * math.cos(6.283 * cycle / 11.1))
    kx = deltam(ctx, alt_o, alt_s, sunra)
    bnb = bna * (0.4 + 0.6 / math.sqrt(1.0 - 0.96 * math.sin(zend) ** 2)) * 10.0 ** (-0.4 * kx)
    return max(bnb, 0.0) * ERG2NL


def bm(
    ctx: HeliacalContext,
    alt_o: float,
    azi_o: float,
    alt_m: float,
    azi_m: float,
    alt_s: float,
    azi_s: float,
    sunra: float,
) -> float:
    """Moonlight scattered towards the object; zero when the object is the Moon."""

    object_is_moon = alt_o == alt_m and azi_o == azi_m
    if alt_m <= -0.26 or object_is_moon:
        return 0.0
    separation = max(_separation(alt_o, azi_o, alt_m, azi_m), LUNAR_DISC_RADIUS)
    kxm = deltam(ctx, alt_m, alt_s, sunra)
    kx = deltam(ctx, alt_o, alt_s, sunra)
    c3 = 10.0 ** (-0.4 * kxm)
    value = _scattered(separation) * c3 + 440000.0 * (1.0 - c3)
    mag_moon = moons_brightness(MOON_DISTANCE_KM, moon_phase(alt_m, azi_m, alt_s, azi_s))
    value *= 10.0 ** (-0.4 * (mag_moon - M0 + 43.27))
    value *= 1.0 - 10.0 ** (-0.4 * kx)
    return max(value, 0.0) * ERG2NL


def btwi(ctx: HeliacalContext, alt_o: float, azi_o: float, alt_s: float, azi_s: float, sunra: float) -> float:
    """Twilight sky brightness."""

    zend_o = 90.0 - _apparent_object_altitude(ctx, alt_o)
    separation = _separation(alt_o, azi_o, alt_s, azi_s)
    kx = deltam(ctx, alt_o, alt_s, sunra)
    k = kt(ctx, alt_s, sunra, EXT_TOTAL)
    value = 10.0 ** (-0.4 * (MAG_SUN - M0 + 32.5 - alt_s - zend_o / (360.0 * k)))
    value *= (100.0 / separation) * (1.0 - 10.0 ** (-0.4 * kx))
    return max(value, 0.0) * ERG2NL


def bday(ctx: HeliacalContext, alt_o: float, azi_o: float, alt_s: float, azi_s: float, sunra: float) -> float:
    """Daylight sky brightness."""

    separation = _separation(alt_o, azi_o, alt_s, azi_s)
    kxs = deltam(ctx, alt_s, alt_s, sunra)
    kx = deltam(ctx, alt_o, alt_s, sunra)
    c4 = 10.0 ** (-0.4 * kxs)
    value = _scattered(separation) * c4 + 440000.0 * (1.0 - c4)
    value *= 10.0 ** (-0.4 * (MAG_SUN - M0 + 43.27))
    value *= 1.0 - 10.0 ** (-0.4 * kx)
    return max(value, 0.0) * ERG2NL


def bcity(value: float) -> float:
    """Light pollution; no model beyond a constant floor at zero."""

    return max(value, 0.0)


def bsky(
    ctx: HeliacalContext,
    alt_o: float,
    azi_o: float,
    alt_m: float,
    azi_m: float,
    jd_ut: float,
    alt_s: float,
    azi_s: float,
    sunra: float,
) -> float:
    """Total sky brightness behind the object.

    Parameters
    ----------
    ctx:
        Request context (atmosphere, location, caches).
    alt_o, azi_o:
        Object altitude and azimuth in degrees.
    alt_m, azi_m:
        Moon altitude and azimuth; an altitude of -90 removes the Moon.
    jd_ut:
        Instant, used for the solar-cycle term.
    alt_s, azi_s:
        Sun altitude and azimuth.
    sunra:
        Right ascension of the Sun in degrees (season term of the aerosols).

    Returns
    -------
    float
        Sky brightness in nanoLambert.
    """

    if alt_s < -3.0:
        total = btwi(ctx, alt_o, azi_o, alt_s, azi_s, sunra)
    elif alt_s > 4.0:
        total = bday(ctx, alt_o, azi_o, alt_s, azi_s, sunra)
    else:
        total = min(
            bday(ctx, alt_o, azi_o, alt_s, azi_s, sunra),
            btwi(ctx, alt_o, azi_o, alt_s, azi_s, sunra),
        )
    if total < _MOONLIGHT_CUTOFF:
        total += bm(ctx, alt_o, azi_o, alt_m, azi_m, alt_s, azi_s, sunra)
    if alt_s <= 0.0:
        total += bcity(0.0)
    if total < _NIGHTSKY_CUTOFF:
        total += bn(ctx, alt_o, jd_ut, alt_s, sunra)
    return total
