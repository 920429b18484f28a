"""Apparent magnitude of the observed object."""

from __future__ import annotations

from .context import HeliacalContext
from .ephemeris import PositionFlag
from .models import CelestialObject, Star


def position_flags(ctx: HeliacalContext, topocentric: bool = True) -> int:
    """Position-service flags for the engine's fast or precise mode."""

    flags = PositionFlag.TOPOCENTRIC if topocentric else PositionFlag.NONE
    if not ctx.high_precision:
        flags |= PositionFlag.NO_NUTATION | PositionFlag.TRUE_POSITION
    return int(flags)


def magnitude(ctx: HeliacalContext, jd_ut: float, obj: CelestialObject) -> float:
    """Visual magnitude of *obj* at *jd_ut*: catalogue value for stars, phase model otherwise."""

    if isinstance(obj, Star):
        return ctx.ephemeris.star_magnitude(obj.name)
    ctx.ephemeris.set_topo(ctx.location)
    return ctx.ephemeris.phenomena(jd_ut, obj, position_flags(ctx)).magnitude
