from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest

from heliacal.ephemeris import ErfaEphemeris
from heliacal.functions import build_context
from heliacal.models import AtmosphericConditions, GeographicLocation, ObserverProfile

# Julian days (UT) used throughout the suite.
JD_2000_JUNE_1 = 2451697.5
JD_2000_JULY_1 = 2451727.5
JD_2025_MARCH_20 = 2460754.5


@pytest.fixture(scope="session")
def berlin() -> GeographicLocation:
    return GeographicLocation(longitude=13.4, latitude=52.5, height=100.0)


@pytest.fixture(scope="session")
def cairo() -> GeographicLocation:
    return GeographicLocation(longitude=31.25, latitude=30.05, height=75.0)


@pytest.fixture(scope="session")
def atmosphere() -> AtmosphericConditions:
    return AtmosphericConditions(pressure=1013.25, temperature=15.0, humidity=40.0, extinction=0.0)


@pytest.fixture(scope="session")
def observer() -> ObserverProfile:
    return ObserverProfile(age=36.0, snellen=1.0)


@pytest.fixture(scope="session")
def erfa_ephemeris() -> ErfaEphemeris:
    return ErfaEphemeris()


@pytest.fixture()
def ctx(berlin, atmosphere, observer, erfa_ephemeris):
    return build_context(berlin, atmosphere, observer, 0, erfa_ephemeris)
