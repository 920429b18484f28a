"""Constants, flags and enumerations shared by the heliacal engine."""

from __future__ import annotations

from enum import Enum, IntEnum, IntFlag
from typing import Dict

# Time.
MINUTES_PER_DAY = 1440.0
SECONDS_PER_DAY = 86400.0

# Observer height bounds in meters.
SEI_ECL_GEOALT_MIN = -1000.0
SEI_ECL_GEOALT_MAX = 20000.0

# Search budgets.
MAX_COUNT_SYNPER = 5  # Synodic periods searched by default.
MAX_COUNT_SYNPER_MAX = 1_000_000  # Synodic periods searched with LONG_SEARCH.
LOOP_GUARD = 5000
MAX_TRY_HOURS = 4
TIME_STEP_DEFAULT = 1  # Minutes.
LOCAL_MIN_STEP = 8  # Minutes.
TJD_INVALID = 99999999.0

# Earth and Moon.
EARTH_EQUATORIAL_RADIUS_M = 6378136.6
MOON_DISTANCE_KM = 384410.4978
AVG_RADIUS_MOON = 15.541 / 60.0  # Degrees, around 2007.
SUN_RADIUS_M = 696000000.0
MOON_RADIUS_M = 1737000.0
AU_M = 1.49597870691e11

# Schaefer's sky and vision model.
NL2ERG = 1.02e-15
ERG2NL = 1.0 / NL2ERG
SCALE_H_WATER = 3000.0  # Meters.
SCALE_H_RAYLEIGH = 8515.0  # Meters.
SCALE_H_AEROSOL = 3745.0  # Meters.
SCALE_H_OZONE = 20000.0  # Meters.
ASTR2TAU = 0.921034037197618  # ln(10 ** 0.4)
TAU2ASTR = 1.0 / ASTR2TAU
C2K = 273.15
LAPSE_SA = 0.0065  # Standard atmosphere lapse rate, K/m.
LOWEST_APP_ALT = -3.5  # Degrees.
EPSILON = 0.001  # Degrees.
STATIC_AIRMASS = False

# Photopic/scotopic switch points in nanoLambert. They differ per formula
# and are kept apart on purpose.
CVA_SCOTOPIC_LIMIT = 1394.0
BNIGHT = 1479.0
BNIGHT_FACTOR = 1.1
OPTIC_SCOTOPIC_LIMIT = 1645.0

# Optical instrument defaults.
OPTIC_DIA_DEFAULT = 50.0  # Millimeters.
OPTIC_TRANS_DEFAULT = 0.8

SCOTOPIC_FLAG = 1
MIXEDOPIC_FLAG = 2


class HeliacalFlag(IntFlag):
    """Switches accepted by the public entry points."""

    NONE = 0
    LONG_SEARCH = 128
    HIGH_PRECISION = 256
    OPTICAL_PARAMS = 512
    NO_DETAILS = 1024
    SEARCH_1_PERIOD = 2048
    VISLIM_DARK = 4096
    VISLIM_NOMOON = 8192
    VISLIM_PHOTOPIC = 16384
    VISLIM_SCOTOPIC = 32768
    AV = 65536
    AVKIND_VR = 65536
    AVKIND_PTO = 131072
    AVKIND_MIN7 = 262144
    AVKIND_MIN9 = 524288
    AVKIND = 983040


class EventType(IntEnum):
    """Kinds of visibility event."""

    MORNING_FIRST = 1
    EVENING_LAST = 2
    EVENING_FIRST = 3
    MORNING_LAST = 4
    ACRONYCHAL_RISING = 5
    ACRONYCHAL_SETTING = 6

    @property
    def label(self) -> str:
        return self.name.lower().replace("_", " ")


HELIACAL_RISING = EventType.MORNING_FIRST
HELIACAL_SETTING = EventType.EVENING_LAST


class Body(IntEnum):
    """Solar-system body numbers."""

    SUN = 0
    MOON = 1
    MERCURY = 2
    VENUS = 3
    MARS = 4
    JUPITER = 5
    SATURN = 6
    URANUS = 7
    NEPTUNE = 8
    PLUTO = 9


AST_OFFSET = 10000


class RiseSetKind(IntEnum):
    RISE = 1
    SET = 2


class ConjunctionKind(Enum):
    """Reference alignment that seeds the conjunction search.

    ``LOWER`` precedes morning-first and evening-last events: inferior
    conjunction of Mercury and Venus, conjunction of the outer planets, new
    Moon. ``UPPER`` belongs to evening-first and morning-last events:
    superior conjunction of Mercury and Venus, opposition of the outer
    planets.
    """

    LOWER = "lower"
    UPPER = "upper"

    @classmethod
    def for_event(cls, event: int) -> "ConjunctionKind":
        return cls.LOWER if event <= 2 else cls.UPPER


SYNODIC_PERIODS: Dict[int, float] = {
    Body.MOON: 29.530588853,
    Body.MERCURY: 115.8775,
    Body.VENUS: 583.9214,
    Body.MARS: 779.9361,
    Body.JUPITER: 398.8840,
    Body.SATURN: 378.0919,
    Body.URANUS: 369.6560,
    Body.NEPTUNE: 367.4867,
    Body.PLUTO: 366.7207,
}
DEFAULT_SYNODIC_PERIOD = 366.0

# Julian days (UT) of a reference conjunction of each body with the Sun.
CONJUNCTION_EPOCHS: Dict[tuple, float] = {
    (Body.MOON, ConjunctionKind.LOWER): 2451550.0,
    (Body.MOON, ConjunctionKind.UPPER): 2451550.0,
    (Body.MERCURY, ConjunctionKind.LOWER): 2451604.0,
    (Body.MERCURY, ConjunctionKind.UPPER): 2451670.0,
    (Body.VENUS, ConjunctionKind.LOWER): 2451980.0,
    (Body.VENUS, ConjunctionKind.UPPER): 2452280.0,
    (Body.MARS, ConjunctionKind.LOWER): 2451727.0,
    (Body.MARS, ConjunctionKind.UPPER): 2452074.0,
    (Body.JUPITER, ConjunctionKind.LOWER): 2451673.0,
    (Body.JUPITER, ConjunctionKind.UPPER): 2451877.0,
    (Body.SATURN, ConjunctionKind.LOWER): 2451675.0,
    (Body.SATURN, ConjunctionKind.UPPER): 2451868.0,
    (Body.URANUS, ConjunctionKind.LOWER): 2451581.0,
    (Body.URANUS, ConjunctionKind.UPPER): 2451768.0,
    (Body.NEPTUNE, ConjunctionKind.LOWER): 2451568.0,
    (Body.NEPTUNE, ConjunctionKind.UPPER): 2451753.0,
}
