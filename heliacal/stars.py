"""Bright-star catalogue (Hipparcos, ICRS epoch J2000.0)."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict

from .errors import EphemerisError

_MAS2RAD = math.radians(1.0 / 3600000.0)


@dataclass(frozen=True)
class CatalogStar:
    """Astrometric data of one star.

    Proper motion in right ascension is given as ``mu_alpha * cos(delta)``
    in milliarcseconds per year, as catalogues publish it.
    """

    name: str
    ra: float  # Degrees.
    dec: float  # Degrees.
    pm_ra_cosdec: float
    pm_dec: float
    parallax: float  # Milliarcseconds.
    radial_velocity: float  # km/s.
    magnitude: float

    @property
    def ra_rad(self) -> float:
        return math.radians(self.ra)

    @property
    def dec_rad(self) -> float:
        return math.radians(self.dec)

    @property
    def pm_ra_rad(self) -> float:
        """dRA/dt in radians per Julian year."""

        return self.pm_ra_cosdec * _MAS2RAD / math.cos(self.dec_rad)

    @property
    def pm_dec_rad(self) -> float:
        return self.pm_dec * _MAS2RAD

    @property
    def parallax_arcsec(self) -> float:
        return self.parallax / 1000.0


_STARS = (
    CatalogStar("Sirius", 101.287155, -16.716116, -546.01, -1223.07, 379.21, -5.5, -1.46),
    CatalogStar("Canopus", 95.987958, -52.695661, 19.93, 23.24, 10.55, 20.3, -0.74),
    CatalogStar("Arcturus", 213.915300, 19.182409, -1093.39, -2000.06, 88.83, -5.19, -0.05),
    CatalogStar("Vega", 279.234735, 38.783689, 200.94, 286.23, 130.23, -13.9, 0.03),
    CatalogStar("Capella", 79.172329, 45.997991, 75.52, -427.11, 76.20, 29.19, 0.08),
    CatalogStar("Rigel", 78.634467, -8.201639, 1.31, 0.50, 3.78, 17.8, 0.13),
    CatalogStar("Procyon", 114.825493, 5.224993, -714.59, -1036.80, 284.56, -3.2, 0.37),
    CatalogStar("Betelgeuse", 88.792939, 7.407064, 27.54, 11.30, 6.55, 21.91, 0.42),
    CatalogStar("Achernar", 24.428523, -57.236753, 87.00, -38.24, 23.39, 16.0, 0.46),
    CatalogStar("Altair", 297.695827, 8.868321, 536.23, 385.29, 194.95, -26.1, 0.76),
    CatalogStar("Aldebaran", 68.980163, 16.509302, 63.45, -188.94, 48.94, 54.26, 0.86),
    CatalogStar("Antares", 247.351915, -26.432003, -12.11, -23.30, 5.89, -3.4, 1.06),
    CatalogStar("Spica", 201.298247, -11.161319, -42.35, -30.67, 13.06, 1.0, 0.97),
    CatalogStar("Pollux", 116.328958, 28.026199, -626.55, -45.80, 96.54, 3.23, 1.14),
    CatalogStar("Fomalhaut", 344.412693, -29.622236, 328.95, -164.67, 129.81, 6.5, 1.16),
    CatalogStar("Deneb", 310.357980, 45.280339, 2.01, 1.85, 2.31, -4.5, 1.25),
    CatalogStar("Regulus", 152.092962, 11.967208, -248.73, 5.59, 41.13, 5.9, 1.40),
    CatalogStar("Alcyone", 56.871152, 24.105136, 19.34, -43.67, 8.09, 5.4, 2.87),
)

CATALOG: Dict[str, CatalogStar] = {star.name.lower(): star for star in _STARS}


def lookup_star(name: str) -> CatalogStar:
    """Find a star by name, ignoring case and anything after a comma.

    Raises
    ------
    EphemerisError
        If the star is not in the catalogue.
    """

    key = name.split(",", 1)[0].strip().lower()
    try:
        return CATALOG[key]
    except KeyError as exc:
        raise EphemerisError(f"star {name!r} not found in catalogue") from exc
