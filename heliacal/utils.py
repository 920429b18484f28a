"""Small numeric helpers shared across the engine."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Optional

from .constants import LOOP_GUARD
from .errors import LoopGuardError


def sgn(x: float) -> int:
    """Sign of *x*, with zero counted as positive."""

    return -1 if x < 0.0 else 1


def degnorm(x: float) -> float:
    """Normalize an angle in degrees to [0, 360)."""

    y = math.fmod(x, 360.0)
    if y < 0.0:
        y += 360.0
    if y >= 360.0:
        y -= 360.0
    return y


def x2min(a: float, b: float, c: float) -> float:
    """Vertex of the parabola through three equidistant samples.

    The samples are read as ``f(1) = a``, ``f(0) = b`` and ``f(-1) = c``;
    the result is in step units relative to ``b``. A degenerate (straight)
    triple gives 0.
    """

    term = a + c - 2.0 * b
    if term == 0.0:
        return 0.0
    return -(a - c) / 2.0 / term


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class IterationGuard:
    """Count loop iterations and fail once *limit* is exceeded."""

    def __init__(self, message: str, limit: int = LOOP_GUARD) -> None:
        self.message = message
        self.limit = limit
        self.count = 0

    def tick(self) -> None:
        self.count += 1
        if self.count > self.limit:
            raise LoopGuardError(self.message)


@dataclass(frozen=True)
class Bracket:
    """Final state of a bisection: the two ends and their function values."""

    lo: float
    f_lo: float
    hi: float
    f_hi: float

    @property
    def mid(self) -> float:
        return (self.lo + self.hi) / 2.0

    @property
    def width(self) -> float:
        return abs(self.hi - self.lo)


def bisect_bracket(
    func: Callable[[float], float],
    lo: float,
    hi: float,
    f_lo: Optional[float] = None,
    f_hi: Optional[float] = None,
    *,
    xtol: Optional[float] = None,
    ftol: Optional[float] = None,
    max_iterations: int = LOOP_GUARD,
    guard_message: Optional[str] = None,
) -> Bracket:
    """Shrink ``[lo, hi]`` around a sign change of *func*.

    Parameters
    ----------
    func:
        Function whose sign changes between *lo* and *hi*. The ends need not
        be ordered.
    f_lo, f_hi:
        Known values at the ends; evaluated when omitted.
    xtol:
        Stop once the bracket is no wider than this.
    ftol:
        Stop once the newest end value is within this distance of zero.
    max_iterations:
        Iteration budget.
    guard_message:
        When given, exceeding the budget raises :class:`LoopGuardError` with
        this message; otherwise the current bracket is returned.

    Returns
    -------
    Bracket
        The final bracket. ``mid`` is the usual estimate of the root.
    """

    if xtol is None and ftol is None:
        raise ValueError("bisect_bracket needs xtol or ftol")
    if f_lo is None:
        f_lo = func(lo)
    if f_hi is None:
        f_hi = func(hi)
    iterations = 0
    while True:
        if xtol is not None and abs(hi - lo) <= xtol:
            break
        iterations += 1
        if iterations > max_iterations:
            if guard_message is not None:
                raise LoopGuardError(guard_message)
            break
        mid = (lo + hi) / 2.0
        f_mid = func(mid)
        if f_lo * f_mid > 0:
            lo, f_lo = mid, f_mid
            newest = f_lo
        else:
            hi, f_hi = mid, f_mid
            newest = f_hi
        if ftol is not None and abs(newest) <= ftol:
            break
    return Bracket(lo=lo, f_lo=f_lo, hi=hi, f_hi=f_hi)
