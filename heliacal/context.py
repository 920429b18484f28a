"""Request-scoped state shared by every step of a heliacal computation."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional, Tuple

from .constants import HeliacalFlag
from .errors import SearchCancelled
from .models import AtmosphericConditions, GeographicLocation, ObserverProfile


@dataclass
class _Memo:
    """Single-slot memo tables.

    Each table keeps only the most recent key, which is all the search loops
    need since they evaluate the same instant many times in a row.
    """

    sun_ra: Optional[Tuple[Tuple[float], float]] = None
    koz: Optional[Tuple[Tuple[float, float], float]] = None
    ka: Optional[Tuple[Tuple[float, float], float]] = None
    deltam: Optional[Tuple[Tuple[float, float, float, bool], float]] = None


@dataclass
class HeliacalContext:
    """Inputs, services and caches for one public call.

    Parameters
    ----------
    ephemeris:
        Object implementing the position, horizon, rise/set and Delta-T
        capabilities (see :mod:`heliacal.ephemeris`).
    location, atmosphere, observer:
        Observing conditions. The atmosphere and observer are expected to be
        already filled with defaults (:func:`heliacal.vision.default_parameters`).
    flags:
        :class:`HeliacalFlag` bits of the request.
    cancel:
        Optional callable polled between search steps; when it returns true
        the search stops with :class:`SearchCancelled`.
    """

    ephemeris: object
    location: GeographicLocation
    atmosphere: AtmosphericConditions
    observer: ObserverProfile
    flags: HeliacalFlag = HeliacalFlag.NONE
    cancel: Optional[Callable[[], bool]] = None
    messages: List[str] = field(default_factory=list)
    memo: _Memo = field(default_factory=_Memo)

    @property
    def high_precision(self) -> bool:
        return bool(self.flags & HeliacalFlag.HIGH_PRECISION)

    def with_flags(self, flags: int) -> "HeliacalContext":
        """Same request with different flags; caches and messages are shared.

        Memo keys include any flag the cached value depends on.
        """

        return replace(self, flags=HeliacalFlag(flags))

    def checkpoint(self) -> None:
        if self.cancel is not None and self.cancel():
            raise SearchCancelled("heliacal search cancelled")

    def note(self, message: str) -> None:
        """Record a diagnostic message for the caller."""

        if not self.messages or self.messages[-1] != message:
            self.messages.append(message)

    @property
    def message(self) -> str:
        return self.messages[-1] if self.messages else ""

    def cached(self, table: str, key: tuple) -> Optional[float]:
        slot = getattr(self.memo, table)
        if slot is not None and slot[0] == key:
            return slot[1]
        return None

    def store(self, table: str, key: tuple, value: float) -> float:
        setattr(self.memo, table, (key, value))
        return value
