"""Input models, result containers and object resolution."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from .constants import AST_OFFSET, Body, TJD_INVALID

__all__ = [
    "GeographicLocation",
    "AtmosphericConditions",
    "ObserverProfile",
    "Planet",
    "Star",
    "CelestialObject",
    "resolve_object",
    "HeliacalStatus",
    "VisibilityState",
    "HeliacalResult",
    "PhenomenaReport",
    "PhenomenaResult",
    "VisibilityLimit",
    "HeliacalAngleResult",
]


class GeographicLocation(BaseModel):
    """Observer position on the Earth's surface."""

    model_config = ConfigDict(frozen=True)

    longitude: float = Field(..., ge=-180.0, le=180.0, description="Longitude in degrees, east positive")
    latitude: float = Field(..., ge=-90.0, le=90.0, description="Latitude in degrees, north positive")
    height: float = Field(0.0, description="Height above sea level in meters")


class AtmosphericConditions(BaseModel):
    """Surface weather at the observing site.

    ``pressure`` 0 derives pressure, temperature and humidity from the height
    with the standard atmosphere. ``extinction`` is read as a meteorological
    range in km when >= 1, as a total extinction coefficient when between 0
    and 1, and as "derive from humidity, latitude and season" when 0.
    """

    model_config = ConfigDict(frozen=True)

    pressure: float = Field(1013.25, ge=0.0, description="Pressure in mbar")
    temperature: float = Field(15.0, description="Temperature in degrees Celsius")
    humidity: float = Field(40.0, ge=0.0, le=100.0, description="Relative humidity in percent")
    extinction: float = Field(0.0, ge=0.0, description="Meteorological range (km) or extinction coefficient")


class ObserverProfile(BaseModel):
    """Observer and optical instrument."""

    model_config = ConfigDict(frozen=True)

    age: float = Field(36.0, ge=0.0, description="Age in years")
    snellen: float = Field(1.0, ge=0.0, description="Snellen ratio of visual acuity")
    binocular: bool = Field(True, description="Observing with both eyes")
    magnification: float = Field(1.0, ge=0.0, description="Optical magnification, 1 for the naked eye")
    aperture: float = Field(0.0, ge=0.0, description="Optical aperture in mm")
    transmission: float = Field(0.0, ge=0.0, le=1.0, description="Optical transmission")


@dataclass(frozen=True)
class Planet:
    """A solar-system body, or a minor planet numbered from ``AST_OFFSET``."""

    body: int

    @property
    def name(self) -> str:
        if self.body >= AST_OFFSET:
            return str(self.body - AST_OFFSET)
        return Body(self.body).name.lower()

    @property
    def is_sun(self) -> bool:
        return self.body == Body.SUN

    @property
    def is_moon(self) -> bool:
        return self.body == Body.MOON

    @property
    def is_outer(self) -> bool:
        """Mars and beyond, including minor planets."""

        return self.body >= Body.MARS


@dataclass(frozen=True)
class Star:
    """A fixed star, looked up by name in the position service's catalogue."""

    name: str

    is_sun = False
    is_moon = False
    is_outer = True


CelestialObject = Union[Planet, Star]

_NAME_PREFIXES: Tuple[Tuple[str, Body], ...] = (
    ("sun", Body.SUN),
    ("venus", Body.VENUS),
    ("mars", Body.MARS),
    ("mercur", Body.MERCURY),
    ("jupiter", Body.JUPITER),
    ("saturn", Body.SATURN),
    ("uranus", Body.URANUS),
    ("neptun", Body.NEPTUNE),
    ("moon", Body.MOON),
    ("pluto", Body.PLUTO),
)


def resolve_object(name: Union[str, Planet, Star]) -> CelestialObject:
    """Resolve free text into a :class:`Planet` or a :class:`Star`.

    Matching is case-insensitive on the leading characters, so ``"Mercury"``
    and ``"mercur"`` both name Mercury. A positive integer names a minor
    planet. Everything else is taken to be a star name.
    """

    if isinstance(name, (Planet, Star)):
        return name
    text = name.strip()
    lowered = text.lower()
    for prefix, body in _NAME_PREFIXES:
        if lowered.startswith(prefix):
            return Planet(int(body))
    if text.isdigit() and int(text) > 0:
        return Planet(AST_OFFSET + int(text))
    return Star(text)


class HeliacalStatus(str, Enum):
    """Outcome of a search."""

    OK = "ok"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass(frozen=True)
class VisibilityState:
    """Everything the limiting-magnitude model saw at one instant.

    Angles are in degrees, azimuths measured from north through east, sky
    brightness in nanoLambert.
    """

    limiting_magnitude: float
    alt_obj: float
    azi_obj: float
    alt_sun: float
    azi_sun: float
    alt_moon: float
    azi_moon: float
    magnitude: float
    extinction: float = 0.0
    sky_brightness: float = 0.0
    regime: int = 0
    below_horizon: bool = False

    @property
    def margin(self) -> float:
        """Limiting magnitude minus object magnitude; positive means visible."""

        return self.limiting_magnitude - self.magnitude

    @property
    def arc_of_vision(self) -> float:
        return self.alt_obj - self.alt_sun

    @property
    def scotopic(self) -> bool:
        return bool(self.regime & 1)

    @property
    def mixed(self) -> bool:
        return bool(self.regime & 2)


@dataclass(frozen=True)
class HeliacalResult:
    """Answer of :func:`heliacal_event`.

    ``event_times`` holds the first-visible, optimum and last-visible times
    (JD UT) in chronological order, or only the event time when details were
    not requested.
    """

    status: HeliacalStatus
    event_times: Tuple[float, ...] = ()
    message: str = ""
    uncertain: bool = False

    @property
    def ok(self) -> bool:
        return self.status is HeliacalStatus.OK

    @property
    def event_time(self) -> Optional[float]:
        if not self.event_times:
            return None
        return self.event_times[0]


@dataclass(frozen=True)
class PhenomenaReport:
    """Circumstances of an object at one instant around its heliacal event."""

    alt_obj: float
    app_alt_obj: float
    geo_alt_obj: float
    azi_obj: float
    alt_sun: float
    azi_sun: float
    tav: float
    arcv: float
    daz: float
    arcl: float
    extinction: float
    min_tav: float = 0.0
    t_first_vr: float = TJD_INVALID
    t_best_vr: float = TJD_INVALID
    t_last_vr: float = TJD_INVALID
    t_best_yallop: float = 0.0
    moon_width: float = 0.0
    q_yallop: float = 0.0
    q_class: Optional[str] = None
    parallax: float = 0.0
    magnitude: float = 0.0
    rise_obj: float = 0.0
    rise_sun: float = 0.0
    lag: float = 0.0
    vis_duration_vr: float = 0.0
    moon_length: float = 0.0
    elongation: float = 0.0
    illumination: float = 100.0


@dataclass(frozen=True)
class PhenomenaResult:
    status: HeliacalStatus
    report: Optional[PhenomenaReport] = None
    message: str = ""


@dataclass(frozen=True)
class VisibilityLimit:
    """Answer of :func:`vis_limit_mag`."""

    status: HeliacalStatus
    state: VisibilityState
    message: str = ""

    @property
    def limiting_magnitude(self) -> float:
        return self.state.limiting_magnitude


@dataclass(frozen=True)
class HeliacalAngleResult:
    """Object altitude at which the arc of vision is smallest."""

    alt_obj: float
    arc_of_vision: float
    alt_sun: float
