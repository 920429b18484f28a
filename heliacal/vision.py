"""Perceptual model: acuity, pupil, optics and the limiting magnitude."""

from __future__ import annotations

import math
from typing import Tuple

from .atmosphere import deltam
from .brightness import bsky
from .constants import (
    BNIGHT,
    BNIGHT_FACTOR,
    CVA_SCOTOPIC_LIMIT,
    HeliacalFlag,
    LAPSE_SA,
    MIXEDOPIC_FLAG,
    OPTIC_DIA_DEFAULT,
    OPTIC_SCOTOPIC_LIMIT,
    OPTIC_TRANS_DEFAULT,
    SCOTOPIC_FLAG,
)
from .context import HeliacalContext
from .models import AtmosphericConditions, GeographicLocation, ObserverProfile
from .utils import clamp

FACTOR_INTENSITY = 0
FACTOR_BACKGROUND = 1

_COLOR_INDEX_BACKGROUND = 0.7
_COLOR_INDEX_OBJECT = 0.5


def _is_scotopic(brightness: float, limit: float, flags: int) -> bool:
    scotopic = brightness < limit
    if flags & HeliacalFlag.VISLIM_PHOTOPIC:
        scotopic = False
    if flags & HeliacalFlag.VISLIM_SCOTOPIC:
        scotopic = True
    return scotopic


def cva(brightness: float, snellen: float, flags: int = 0) -> float:
    """Critical visual angle in degrees for a background of *brightness* nL."""

    if _is_scotopic(brightness, CVA_SCOTOPIC_LIMIT, flags):
        arcsec = min(900.0, 380.0 / snellen * 10.0 ** (0.3 * brightness ** -0.29))
    else:
        arcsec = 40.0 / snellen * 10.0 ** (8.28 * brightness ** -0.29)
    return arcsec / 3600.0


def pupil_diameter(age: float, brightness: float) -> float:
    """Pupil diameter in mm (Garstang 2000)."""

    return (
        0.534
        - 0.00211 * age
        - (0.236 - 0.00127 * age) * math.tanh(0.4 * math.log10(brightness) - 2.2)
    ) * 10.0


def optic_factor(
    brightness: float,
    kx: float,
    observer: ObserverProfile,
    factor_type: int,
    flags: int = 0,
) -> float:
    """Correction of Schaefer's threshold for the observer and the instrument.

    Parameters
    ----------
    brightness:
        Background brightness in nL.
    kx:
        Extinction along the line of sight in magnitudes.
    observer:
        Observer with defaults applied.
    factor_type:
        ``FACTOR_INTENSITY`` for the point-source factor or
        ``FACTOR_BACKGROUND`` for the sky-background factor.
    flags:
        Request flags; the VISLIM regime bits override the brightness test.
    """

    snellen = max(observer.snellen, 1e-8)
    pst = pupil_diameter(23.0, brightness)
    magnification = observer.magnification
    diameter = observer.aperture
    transmission = observer.transmission
    if magnification == 1:
        transmission = 1.0
        diameter = pst
    object_size = 0.0
    fb = 1.0 if observer.binocular else 1.41
    if _is_scotopic(brightness, OPTIC_SCOTOPIC_LIMIT, flags):
        fe = 10.0 ** (0.48 * kx)
        fsc = min(1.0, (1.0 - (pst / 124.4) ** 4) / (1.0 - (diameter / magnification / 124.4) ** 4))
        fci = 10.0 ** (-0.4 * (1.0 - _COLOR_INDEX_OBJECT / 2.0))
        fcb = 10.0 ** (-0.4 * (1.0 - _COLOR_INDEX_BACKGROUND / 2.0))
    else:
        fe = 10.0 ** (0.4 * kx)
        exit_pupil = diameter / magnification
        fsc = min(
            1.0,
            (exit_pupil / pst) ** 2
            * (1.0 - math.exp(-((pst / 6.2) ** 2)))
            / (1.0 - math.exp(-((exit_pupil / 6.2) ** 2))),
        )
        fci = 1.0
        fcb = 1.0
    ft = 1.0 / transmission
    fp = max(1.0, (pst / (magnification * pupil_diameter(observer.age, brightness))) ** 2)
    fa = (pst / diameter) ** 2
    fr = (1.0 + 0.03 * (magnification * object_size / cva(brightness, snellen, flags)) ** 2) / snellen ** 2
    fm = magnification ** 2
    if factor_type == FACTOR_INTENSITY:
        return fb * fe * ft * fp * fa * fr * fsc * fci
    return fb * ft * fp * fa * fm * fsc * fcb


def vis_lim_magn(
    ctx: HeliacalContext,
    alt_o: float,
    azi_o: float,
    alt_m: float,
    azi_m: float,
    jd_ut: float,
    alt_s: float,
    azi_s: float,
    sunra: float,
) -> Tuple[float, int, float, float]:
    """Faintest visible point-source magnitude for the given geometry.

    Returns
    -------
    tuple
        ``(limiting_magnitude, regime, sky_brightness, extinction)`` where
        ``regime`` carries ``SCOTOPIC_FLAG`` and ``MIXEDOPIC_FLAG`` bits.
    """

    sky = bsky(ctx, alt_o, azi_o, alt_m, azi_m, jd_ut, alt_s, azi_s, sunra)
    kx = deltam(ctx, alt_o, alt_s, sunra)
    background = optic_factor(sky, kx, ctx.observer, FACTOR_BACKGROUND, ctx.flags)
    intensity = optic_factor(sky, kx, ctx.observer, FACTOR_INTENSITY, ctx.flags)
    scotopic = _is_scotopic(sky, OPTIC_SCOTOPIC_LIMIT, ctx.flags)
    regime = SCOTOPIC_FLAG if scotopic else 0
    if BNIGHT / BNIGHT_FACTOR < sky < BNIGHT * BNIGHT_FACTOR:
        regime |= MIXEDOPIC_FLAG
    if scotopic:
        c1, c2 = 10.0 ** -9.8, 10.0 ** -1.9
    else:
        c1, c2 = 10.0 ** -8.35, 10.0 ** -5.9
    threshold = c1 * (1.0 + math.sqrt(c2 * sky * background)) ** 2 * intensity
    return -16.57 - 2.5 * math.log10(threshold), regime, sky, kx


def default_parameters(
    location: GeographicLocation,
    atmosphere: AtmosphericConditions,
    observer: ObserverProfile,
    flags: int = 0,
) -> Tuple[AtmosphericConditions, ObserverProfile]:
    """Fill unset atmosphere and observer fields.

    A pressure of 0 derives pressure and, when unset, temperature and
    humidity from the standard atmosphere. Otherwise the humidity is kept
    strictly inside (0, 100). Without ``OPTICAL_PARAMS`` the observer is a
    naked-eye binocular observer; with it, a telescope lacking an aperture
    or a transmission gets 50 mm and 0.8.
    """

    height = location.height
    if atmosphere.pressure <= 0:
        update = {"pressure": 1013.25 * (1.0 - LAPSE_SA * height / 288.0) ** 5.255}
        if atmosphere.temperature == 0:
            update["temperature"] = 15.0 - LAPSE_SA * height
        if atmosphere.humidity == 0:
            update["humidity"] = 40.0
        atmosphere = atmosphere.model_copy(update=update)
    else:
        atmosphere = atmosphere.model_copy(update={"humidity": clamp(atmosphere.humidity, 1e-8, 99.99999999)})

    update = {}
    if observer.age == 0:
        update["age"] = 36.0
    if observer.snellen == 0:
        update["snellen"] = 1.0
    magnification = observer.magnification
    if not flags & HeliacalFlag.OPTICAL_PARAMS:
        update.update(binocular=False, magnification=0.0, aperture=0.0, transmission=0.0)
        magnification = 0.0
    if magnification == 0:
        update.update(binocular=True, magnification=1.0)
    elif magnification != 1:
        if observer.aperture == 0:
            update["aperture"] = OPTIC_DIA_DEFAULT
        if observer.transmission == 0:
            update["transmission"] = OPTIC_TRANS_DEFAULT
    observer = observer.model_copy(update=update)
    return atmosphere, observer
