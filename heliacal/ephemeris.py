"""Position, horizon, rise/set and Delta-T services used by the engine.

The engine only talks to the protocols defined here. Two implementations
ship with the package:

* :class:`ErfaEphemeris` uses the analytic theories bundled with ERFA
  (``epv00``, ``plan94``, ``moon98``) and needs no data files;
* :class:`SpiceEphemeris` reads JPL SPK kernels through :mod:`spiceypy`.

Both share the reduction from barycentric vectors to apparent places in
:class:`VectorEphemeris`.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, replace
from enum import Enum, IntFlag
from pathlib import Path
from threading import Lock
from typing import Dict, List, Optional, Protocol, Tuple, Union

import erfa
import numpy as np
import spiceypy as spice
from spiceypy.utils.exceptions import SpiceyError

from .constants import AST_OFFSET, AU_M, MOON_RADIUS_M, SECONDS_PER_DAY, SUN_RADIUS_M, Body, RiseSetKind
from .errors import EphemerisError
from .kernels import resolve_kernel_source
from .models import CelestialObject, GeographicLocation, Planet, Star
from .stars import lookup_star
from .utils import bisect_bracket

__all__ = [
    "PositionFlag",
    "Position",
    "BodyPhenomena",
    "Horizontal",
    "RiseSetStatus",
    "RiseSetResult",
    "CelestialPosition",
    "HorizonTransform",
    "RiseTransit",
    "DeltaT",
    "EphemerisService",
    "VectorEphemeris",
    "ErfaEphemeris",
    "SpiceEphemeris",
    "load_kernels",
    "delta_t_seconds",
]

LOGGER = logging.getLogger(__name__)

C_AU_PER_DAY = 173.144632674
AU_KM = AU_M / 1000.0

# Mean radii in km, for apparent diameters.
_RADII_KM: Dict[int, float] = {
    Body.SUN: SUN_RADIUS_M / 1000.0,
    Body.MOON: MOON_RADIUS_M / 1000.0,
    Body.MERCURY: 2439.7,
    Body.VENUS: 6051.8,
    Body.MARS: 3389.5,
    Body.JUPITER: 69911.0,
    Body.SATURN: 58232.0,
    Body.URANUS: 25362.0,
    Body.NEPTUNE: 24622.0,
    Body.PLUTO: 1188.3,
}

_RISE_SET_SCAN_STEP = 10.0 / 1440.0  # Days.
_RISE_SET_SCAN_SPAN = 2.0  # Days.
_SPEED_STEP = 1e-3  # Days.


class PositionFlag(IntFlag):
    """Options of :meth:`CelestialPosition.position`."""

    NONE = 0
    TOPOCENTRIC = 1
    TRUE_POSITION = 2  # Geometric: no light-time, no aberration.
    NO_NUTATION = 4  # Mean equator of date.
    SPEED = 8


@dataclass(frozen=True)
class Position:
    """Equatorial and ecliptic place of date. Angles in degrees, speeds per day."""

    ra: float
    dec: float
    distance: float  # AU.
    longitude: float
    latitude: float
    ra_speed: float = 0.0
    dec_speed: float = 0.0
    lon_speed: float = 0.0


@dataclass(frozen=True)
class BodyPhenomena:
    phase_angle: float  # Degrees.
    illuminated_fraction: float
    elongation: float  # Degrees.
    apparent_diameter: float  # Degrees.
    magnitude: float


@dataclass(frozen=True)
class Horizontal:
    """Horizontal place; azimuth measured from north through east."""

    azimuth: float
    altitude: float
    apparent_altitude: float


class RiseSetStatus(str, Enum):
    OK = "ok"
    CIRCUMPOLAR = "circumpolar"


@dataclass(frozen=True)
class RiseSetResult:
    status: RiseSetStatus
    time: Optional[float] = None


class CelestialPosition(Protocol):
    def set_topo(self, location: GeographicLocation) -> None:
        ...

    def position(self, tjd_tt: float, obj: CelestialObject, flags: int = 0) -> Position:
        ...

    def phenomena(self, tjd_ut: float, obj: CelestialObject, flags: int = 0) -> BodyPhenomena:
        ...

    def star_magnitude(self, name: str) -> float:
        ...


class HorizonTransform(Protocol):
    def equatorial_to_horizon(
        self,
        tjd_ut: float,
        location: GeographicLocation,
        pressure: float,
        temperature: float,
        ra: float,
        dec: float,
    ) -> Horizontal:
        ...


class RiseTransit(Protocol):
    def rise_set(
        self,
        tjd_ut: float,
        obj: CelestialObject,
        kind: RiseSetKind,
        location: GeographicLocation,
        pressure: float,
        temperature: float,
        disc_center: bool = False,
    ) -> RiseSetResult:
        ...


class DeltaT(Protocol):
    def delta_t(self, tjd_ut: float) -> float:
        ...


class EphemerisService(CelestialPosition, HorizonTransform, RiseTransit, DeltaT, Protocol):
    """Everything the engine needs from the outside world."""


def _split(tjd: float) -> Tuple[float, float]:
    """Two-part Julian date as ERFA prefers it."""

    return erfa.DJM0, tjd - erfa.DJM0


def _wrap180(angle: float) -> float:
    return (angle + 180.0) % 360.0 - 180.0


def _angle_between(a: np.ndarray, b: np.ndarray) -> float:
    cosine = float(np.dot(a, b) / (np.linalg.norm(a) * np.linalg.norm(b)))
    return math.degrees(math.acos(max(-1.0, min(1.0, cosine))))


def _refraction(alt_deg: float, pressure: float, temperature: float) -> float:
    """Saemundsson refraction in degrees for an apparent altitude, clamped near the horizon."""

    alt = max(-2.0, min(90.0, alt_deg))
    arcmin = 1.02 / math.tan(math.radians(alt + 10.3 / (alt + 5.11)))
    return arcmin * (pressure / 1010.0) * (283.0 / (273.0 + temperature)) / 60.0


def _apparent_altitude(true_alt: float, pressure: float, temperature: float) -> float:
    if pressure <= 0:
        return true_alt
    app = true_alt
    for _ in range(3):
        app = true_alt + _refraction(app, pressure, temperature)
    return app


# Espenak and Meeus polynomials between 1700 and the start of leap seconds.
_DELTA_T_SEGMENTS = (
    (1961.0, 1972.0, 1975.0, (45.45, 1.067, -1.0 / 260.0, -1.0 / 718.0)),
    (1900.0, 1961.0, 1900.0, (-2.79, 1.494119, -0.0598939, 0.0061966, -0.000197)),
    (1860.0, 1900.0, 1860.0, (7.62, 0.5737, -0.251754, 0.01680668, -0.0004473624, 1.0 / 233174.0)),
    (
        1800.0,
        1860.0,
        1800.0,
        (13.72, -0.332447, 0.0068612, 0.0041116, -0.00037436, 0.0000121272, -0.0000001699, 0.000000000875),
    ),
    (1700.0, 1800.0, 1700.0, (8.83, 0.1603, -0.0059285, 0.00013336, -1.0 / 1174000.0)),
)


def delta_t_seconds(tjd_ut: float) -> float:
    """TT - UT in seconds.

    Leap seconds (``erfa.dat``) between 1972 and 2026, polynomial fits back
    to 1700, and a long-term parabola with a 14-century term elsewhere.
    """

    year = 2000.0 + (tjd_ut - erfa.DJ00) / 365.25
    if 1972.0 <= year < 2026.0:
        iy, im, iday, fd = erfa.jd2cal(tjd_ut, 0.0)
        return float(erfa.dat(iy, im, iday, fd)) + 32.184
    for start, end, origin, coefficients in _DELTA_T_SEGMENTS:
        if start <= year < end:
            t = year - origin
            return sum(c * t ** power for power, c in enumerate(coefficients))
    t = (year - 1825.0) / 100.0
    return -150.568 + 31.4115 * t * t + 284.8436 * math.cos(2.0 * math.pi * (t + 0.75) / 14.0)


def _visual_magnitude(body: int, r: float, delta: float, phase: float) -> float:
    """Astronomical Almanac magnitude formulas; *r* and *delta* in AU, *phase* in degrees."""

    dist = 5.0 * math.log10(r * delta)
    i = phase
    if body == Body.MERCURY:
        return (
            -0.613
            + dist
            + 6.328e-2 * i
            - 1.6336e-3 * i ** 2
            + 3.3644e-5 * i ** 3
            - 3.4265e-7 * i ** 4
            + 1.6893e-9 * i ** 5
            - 3.0334e-12 * i ** 6
        )
    if body == Body.VENUS:
        if i < 163.7:
            return -4.384 + dist - 1.044e-3 * i + 3.687e-4 * i ** 2 - 2.814e-6 * i ** 3 + 8.938e-9 * i ** 4
        return 236.05828 + dist - 2.81914 * i + 8.39034e-3 * i ** 2
    if body == Body.MARS:
        if i <= 50.0:
            return -1.601 + dist + 2.267e-2 * i - 1.302e-4 * i ** 2
        return -0.367 + dist - 0.02573 * i + 3.445e-4 * i ** 2
    if body == Body.JUPITER:
        if i <= 12.0:
            return -9.395 + dist + 3.7e-4 * i + 6.16e-4 * i ** 2
        x = i / 180.0
        return -9.428 + dist - 2.5 * math.log10(
            1.0 - 1.507 * x - 0.363 * x ** 2 - 0.062 * x ** 3 + 2.809 * x ** 4 - 1.876 * x ** 5
        )
    if body == Body.SATURN:
        return -8.88 + dist + 0.044 * i
    if body == Body.URANUS:
        return -7.110 + dist + 6.587e-3 * i + 1.045e-4 * i ** 2
    if body == Body.NEPTUNE:
        return -7.00 + dist + 7.944e-3 * i + 9.617e-5 * i ** 2
    if body == Body.PLUTO:
        return -1.01 + dist + 0.041 * i
    raise EphemerisError(f"no magnitude formula for body {body}")


@dataclass(frozen=True)
class _Place:
    """Astrometric vectors of one object as seen by the observer, in AU (GCRS axes)."""

    vector: np.ndarray
    helio: np.ndarray
    sun: np.ndarray


class VectorEphemeris:
    """Apparent places from barycentric vectors.

    Subclasses supply the barycentric Earth state, the barycentric Sun and
    the barycentric position of the other bodies; light-time, aberration,
    precession-nutation, topocentric parallax, horizon coordinates, rise/set
    and Delta-T are handled here.
    """

    def __init__(self) -> None:
        self._location: Optional[GeographicLocation] = None

    def _earth(self, tjd_tt: float) -> Tuple[np.ndarray, np.ndarray]:
        raise NotImplementedError

    def _sun(self, tjd_tt: float) -> np.ndarray:
        raise NotImplementedError

    def _body(self, tjd_tt: float, body: int) -> np.ndarray:
        raise NotImplementedError

    def set_topo(self, location: GeographicLocation) -> None:
        self._location = location

    def delta_t(self, tjd_ut: float) -> float:
        return delta_t_seconds(tjd_ut)

    def star_magnitude(self, name: str) -> float:
        return lookup_star(name).magnitude

    def _barycentric(self, tjd_tt: float, obj: Planet) -> np.ndarray:
        if obj.body == Body.SUN:
            return self._sun(tjd_tt)
        return self._body(tjd_tt, obj.body)

    def _observer_offset(self, tjd_tt: float, location: GeographicLocation) -> np.ndarray:
        """Geocentric observer position in AU on GCRS axes (polar motion ignored)."""

        itrs = np.asarray(
            erfa.gd2gc(1, math.radians(location.longitude), math.radians(location.latitude), location.height),
            dtype=float,
        ) / AU_M
        tjd_ut = tjd_tt - self.delta_t(tjd_tt) / SECONDS_PER_DAY
        gast = erfa.gst06a(*_split(tjd_ut), *_split(tjd_tt))
        true_of_date = erfa.rz(-gast, np.identity(3)) @ itrs
        npb = np.asarray(erfa.pnm06a(*_split(tjd_tt)))
        return npb.T @ true_of_date

    def _place(
        self,
        tjd_tt: float,
        obj: CelestialObject,
        flags: int,
        location: Optional[GeographicLocation] = None,
    ) -> _Place:
        earth_pos, earth_vel = self._earth(tjd_tt)
        sun_now = self._sun(tjd_tt)
        observer = earth_pos
        if flags & PositionFlag.TOPOCENTRIC:
            site = location or self._location
            if site is None:
                raise EphemerisError("topocentric position requested without an observer location")
            observer = earth_pos + self._observer_offset(tjd_tt, site)
        sun_vec = sun_now - observer
        if isinstance(obj, Star):
            star = lookup_star(obj.name)
            pmt = (tjd_tt - erfa.DJ00) / erfa.DJY
            direction = np.asarray(
                erfa.pmpx(
                    star.ra_rad,
                    star.dec_rad,
                    star.pm_ra_rad,
                    star.pm_dec_rad,
                    star.parallax_arcsec,
                    star.radial_velocity,
                    pmt,
                    observer,
                ),
                dtype=float,
            )
            distance = erfa.DR2AS / star.parallax_arcsec if star.parallax_arcsec > 0 else 1e9
            vector = direction * distance
            helio = vector - sun_vec
        else:
            target = self._barycentric(tjd_tt, obj)
            vector = target - observer
            sun_then = sun_now
            if not flags & PositionFlag.TRUE_POSITION and obj.body != Body.SUN:
                for _ in range(3):
                    tau = float(np.linalg.norm(vector)) / C_AU_PER_DAY
                    target = self._barycentric(tjd_tt - tau, obj)
                    vector = target - observer
                sun_then = self._sun(tjd_tt - tau)
            elif not flags & PositionFlag.TRUE_POSITION:
                tau = float(np.linalg.norm(vector)) / C_AU_PER_DAY
                vector = self._sun(tjd_tt - tau) - observer
                sun_then = vector + observer
            helio = target - sun_then
        if not flags & PositionFlag.TRUE_POSITION:
            vector = self._aberrate(vector, earth_pos, earth_vel, sun_now)
            sun_vec = self._aberrate(sun_vec, earth_pos, earth_vel, sun_now)
        return _Place(vector=vector, helio=helio, sun=sun_vec)

    @staticmethod
    def _aberrate(vector: np.ndarray, earth_pos: np.ndarray, earth_vel: np.ndarray, sun: np.ndarray) -> np.ndarray:
        distance = float(np.linalg.norm(vector))
        velocity = earth_vel / C_AU_PER_DAY
        sun_distance = float(np.linalg.norm(earth_pos - sun))
        bm1 = math.sqrt(1.0 - float(np.dot(velocity, velocity)))
        direction = np.asarray(erfa.ab(vector / distance, velocity, sun_distance, bm1), dtype=float)
        return direction * distance

    def position(
        self,
        tjd_tt: float,
        obj: CelestialObject,
        flags: int = 0,
        location: Optional[GeographicLocation] = None,
    ) -> Position:
        """Place of *obj* at *tjd_tt* on the equator of date.

        Parameters
        ----------
        tjd_tt:
            Julian day, Terrestrial Time.
        obj:
            Planet or star.
        flags:
            :class:`PositionFlag` bits.
        location:
            Observer for ``TOPOCENTRIC``; defaults to the one given to
            :meth:`set_topo`.

        Raises
        ------
        EphemerisError
            If the object is not covered by this ephemeris.
        """

        if flags & PositionFlag.SPEED:
            base = flags & ~PositionFlag.SPEED
            here = self.position(tjd_tt, obj, base, location)
            before = self.position(tjd_tt - _SPEED_STEP, obj, base, location)
            after = self.position(tjd_tt + _SPEED_STEP, obj, base, location)
            return replace(
                here,
                ra_speed=_wrap180(after.ra - before.ra) / (2.0 * _SPEED_STEP),
                dec_speed=(after.dec - before.dec) / (2.0 * _SPEED_STEP),
                lon_speed=_wrap180(after.longitude - before.longitude) / (2.0 * _SPEED_STEP),
            )
        vector = self._place(tjd_tt, obj, flags, location).vector
        date1, date2 = _split(tjd_tt)
        if flags & PositionFlag.NO_NUTATION:
            rotation = np.asarray(erfa.pmat06(date1, date2))
        else:
            rotation = np.asarray(erfa.pnm06a(date1, date2))
        of_date = rotation @ vector
        theta, phi = erfa.c2s(of_date)
        gcrs_ra, gcrs_dec = erfa.c2s(vector)
        elon, elat = erfa.eqec06(date1, date2, gcrs_ra, gcrs_dec)
        return Position(
            ra=math.degrees(float(erfa.anp(theta))),
            dec=math.degrees(float(phi)),
            distance=float(np.linalg.norm(vector)),
            longitude=math.degrees(float(erfa.anp(elon))),
            latitude=math.degrees(float(elat)),
        )

    def phenomena(self, tjd_ut: float, obj: CelestialObject, flags: int = 0) -> BodyPhenomena:
        """Phase angle, illumination, elongation, diameter and magnitude at *tjd_ut*."""

        tjd_tt = tjd_ut + self.delta_t(tjd_ut) / SECONDS_PER_DAY
        place = self._place(tjd_tt, obj, flags & ~PositionFlag.SPEED)
        delta = float(np.linalg.norm(place.vector))
        if isinstance(obj, Star):
            return BodyPhenomena(
                phase_angle=0.0,
                illuminated_fraction=1.0,
                elongation=_angle_between(place.vector, place.sun),
                apparent_diameter=0.0,
                magnitude=lookup_star(obj.name).magnitude,
            )
        radius = _RADII_KM.get(obj.body, 0.0) / AU_KM
        diameter = 2.0 * math.degrees(math.asin(min(1.0, radius / delta)))
        if obj.body == Body.SUN:
            return BodyPhenomena(0.0, 1.0, 0.0, diameter, -26.74 + 5.0 * math.log10(delta))
        phase = _angle_between(place.helio, place.vector)
        elongation = _angle_between(place.vector, place.sun)
        illuminated = (1.0 + math.cos(math.radians(phase))) / 2.0
        if obj.body == Body.MOON:
            magnitude = -12.73 + 0.026 * abs(phase) + 4e-9 * phase ** 4 + 5.0 * math.log10(delta / 0.0025696)
        else:
            magnitude = _visual_magnitude(obj.body, float(np.linalg.norm(place.helio)), delta, phase)
        return BodyPhenomena(phase, illuminated, elongation, diameter, magnitude)

    def equatorial_to_horizon(
        self,
        tjd_ut: float,
        location: GeographicLocation,
        pressure: float,
        temperature: float,
        ra: float,
        dec: float,
    ) -> Horizontal:
        tjd_tt = tjd_ut + self.delta_t(tjd_ut) / SECONDS_PER_DAY
        gast = erfa.gst06a(*_split(tjd_ut), *_split(tjd_tt))
        hour_angle = gast + math.radians(location.longitude) - math.radians(ra)
        az, el = erfa.hd2ae(hour_angle, math.radians(dec), math.radians(location.latitude))
        altitude = math.degrees(float(el))
        return Horizontal(
            azimuth=math.degrees(float(az)) % 360.0,
            altitude=altitude,
            apparent_altitude=_apparent_altitude(altitude, pressure, temperature),
        )

    def _semidiameter(self, obj: CelestialObject, distance: float) -> float:
        if isinstance(obj, Star):
            return 0.0
        radius = _RADII_KM.get(obj.body, 0.0) / AU_KM
        return math.degrees(math.asin(min(1.0, radius / distance)))

    def rise_set(
        self,
        tjd_ut: float,
        obj: CelestialObject,
        kind: RiseSetKind,
        location: GeographicLocation,
        pressure: float,
        temperature: float,
        disc_center: bool = False,
    ) -> RiseSetResult:
        """Next rising or setting after *tjd_ut*, found by scanning and bisection.

        The upper limb is used unless *disc_center* is set. Within two days
        without a crossing the object is reported circumpolar.
        """

        def limb_altitude(t: float) -> float:
            tjd_tt = t + self.delta_t(t) / SECONDS_PER_DAY
            pos = self.position(tjd_tt, obj, PositionFlag.TOPOCENTRIC, location)
            horizontal = self.equatorial_to_horizon(t, location, pressure, temperature, pos.ra, pos.dec)
            value = horizontal.apparent_altitude
            if not disc_center:
                value += self._semidiameter(obj, pos.distance)
            return value

        rising = kind == RiseSetKind.RISE
        t0 = tjd_ut
        f0 = limb_altitude(t0)
        steps = int(round(_RISE_SET_SCAN_SPAN / _RISE_SET_SCAN_STEP))
        for i in range(1, steps + 1):
            t1 = tjd_ut + i * _RISE_SET_SCAN_STEP
            f1 = limb_altitude(t1)
            if (rising and f0 < 0.0 <= f1) or (not rising and f0 >= 0.0 > f1):
                bracket = bisect_bracket(limb_altitude, t0, t1, f0, f1, xtol=1.0 / SECONDS_PER_DAY, max_iterations=24)
                return RiseSetResult(RiseSetStatus.OK, bracket.mid)
            t0, f0 = t1, f1
        return RiseSetResult(RiseSetStatus.CIRCUMPOLAR)


class ErfaEphemeris(VectorEphemeris):
    """Analytic ephemeris from ERFA: ``epv00`` (Earth), ``plan94`` (planets), ``moon98`` (Moon).

    Pluto and minor planets are not covered.
    """

    def _earth(self, tjd_tt: float) -> Tuple[np.ndarray, np.ndarray]:
        _, pvb = erfa.epv00(*_split(tjd_tt))
        return np.array(pvb["p"], dtype=float), np.array(pvb["v"], dtype=float)

    def _sun(self, tjd_tt: float) -> np.ndarray:
        pvh, pvb = erfa.epv00(*_split(tjd_tt))
        return np.array(pvb["p"], dtype=float) - np.array(pvh["p"], dtype=float)

    def _body(self, tjd_tt: float, body: int) -> np.ndarray:
        if body == Body.MOON:
            earth, _ = self._earth(tjd_tt)
            return earth + np.array(erfa.moon98(*_split(tjd_tt))["p"], dtype=float)
        if Body.MERCURY <= body <= Body.NEPTUNE:
            helio = erfa.plan94(*_split(tjd_tt), int(body) - 1)
            return self._sun(tjd_tt) + np.array(helio["p"], dtype=float)
        raise EphemerisError(f"body {body} is not covered by the analytic ephemeris")


_NAIF_IDS: Dict[int, int] = {
    Body.SUN: 10,
    Body.MOON: 301,
    Body.MERCURY: 1,
    Body.VENUS: 2,
    Body.MARS: 4,
    Body.JUPITER: 5,
    Body.SATURN: 6,
    Body.URANUS: 7,
    Body.NEPTUNE: 8,
    Body.PLUTO: 9,
}
_NAIF_EARTH = 399
_NAIF_ASTEROID_OFFSET = 2000000

_LOADED_FILES: Optional[List[str]] = None
_LOAD_LOCK = Lock()


def load_kernels(source: Union[str, Path]) -> List[str]:
    """Load SPK kernels from a ``.bsp`` file or a directory, once per process.

    Parameters
    ----------
    source:
        Kernel file, or directory containing one or more ``.bsp`` files.

    Returns
    -------
    list[str]
        Names of the loaded kernel files.

    Raises
    ------
    EphemerisError
        If the path is missing or holds no kernels.
    """

    global _LOADED_FILES

    if _LOADED_FILES is not None:
        return _LOADED_FILES

    path = Path(source).expanduser()
    if path.is_file():
        bsp_files = [path]
    elif path.is_dir():
        bsp_files = sorted(file for file in path.iterdir() if file.is_file() and file.suffix.lower() == ".bsp")
    else:
        raise EphemerisError(f"Kernel path not found: {path}")
    if not bsp_files:
        raise EphemerisError(f"No .bsp kernel files found in directory: {path}")

    with _LOAD_LOCK:
        if _LOADED_FILES is not None:
            return _LOADED_FILES
        loaded: List[str] = []
        for bsp_file in bsp_files:
            try:
                spice.furnsh(str(bsp_file))
            except SpiceyError as exc:
                spice.kclear()
                raise EphemerisError(f"Failed to load kernel '{bsp_file}': {exc}") from exc
            loaded.append(bsp_file.name)
        _LOADED_FILES = loaded
        LOGGER.info(json.dumps({"event": "ephemeris_loaded", "files": loaded}))
        return loaded


class SpiceEphemeris(VectorEphemeris):
    """Ephemeris backed by JPL SPK kernels.

    Without *kernel_path*, the kernel is located (and downloaded if needed)
    by :func:`heliacal.kernels.resolve_kernel_source`.
    """

    def __init__(self, kernel_path: Optional[Union[str, Path]] = None) -> None:
        super().__init__()
        source = Path(kernel_path).expanduser() if kernel_path is not None else resolve_kernel_source()
        self.files = load_kernels(source)

    @staticmethod
    def _et(tjd_tt: float) -> float:
        return (tjd_tt - erfa.DJ00) * erfa.DAYSEC

    def _state(self, naif_id: int, tjd_tt: float) -> Tuple[np.ndarray, np.ndarray]:
        try:
            state, _ = spice.spkezr(str(naif_id), self._et(tjd_tt), "J2000", "NONE", "0")
        except SpiceyError as exc:
            raise EphemerisError(f"SPICE has no state for body {naif_id}: {exc}") from exc
        state = np.asarray(state, dtype=float)
        return state[:3] / AU_KM, state[3:] * erfa.DAYSEC / AU_KM

    def _earth(self, tjd_tt: float) -> Tuple[np.ndarray, np.ndarray]:
        return self._state(_NAIF_EARTH, tjd_tt)

    def _sun(self, tjd_tt: float) -> np.ndarray:
        return self._state(_NAIF_IDS[Body.SUN], tjd_tt)[0]

    def _body(self, tjd_tt: float, body: int) -> np.ndarray:
        if body >= AST_OFFSET:
            naif_id = _NAIF_ASTEROID_OFFSET + body - AST_OFFSET
        elif body in _NAIF_IDS:
            naif_id = _NAIF_IDS[body]
        else:
            raise EphemerisError(f"unknown body {body}")
        return self._state(naif_id, tjd_tt)[0]
