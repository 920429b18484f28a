from __future__ import annotations

import math

import pytest

from heliacal.errors import LoopGuardError
from heliacal.utils import IterationGuard, bisect_bracket, clamp, degnorm, sgn, x2min


def test_sgn_counts_zero_as_positive() -> None:
    assert sgn(-0.5) == -1
    assert sgn(0.0) == 1
    assert sgn(3.0) == 1


@pytest.mark.parametrize(("angle", "expected"), [(0.0, 0.0), (360.0, 0.0), (-10.0, 350.0), (725.0, 5.0)])
def test_degnorm(angle, expected) -> None:
    assert degnorm(angle) == pytest.approx(expected)


def test_x2min_finds_parabola_vertex() -> None:
    def f(x: float) -> float:
        return (x - 0.3) ** 2

    assert x2min(f(1.0), f(0.0), f(-1.0)) == pytest.approx(0.3)
    assert x2min(1.0, 2.0, 3.0) == 0.0


def test_clamp() -> None:
    assert clamp(5.0, 0.0, 1.0) == 1.0
    assert clamp(-5.0, 0.0, 1.0) == 0.0


def test_bisect_bracket_to_x_tolerance() -> None:
    bracket = bisect_bracket(math.cos, 0.0, 3.0, xtol=1e-9)
    assert bracket.width <= 1e-9
    assert bracket.mid == pytest.approx(math.pi / 2.0)
    assert bracket.f_lo * bracket.f_hi <= 0


def test_bisect_bracket_accepts_unordered_ends() -> None:
    bracket = bisect_bracket(lambda x: x - 1.0, 4.0, -2.0, xtol=1e-6)
    assert bracket.mid == pytest.approx(1.0, abs=1e-6)


def test_bisect_bracket_to_value_tolerance() -> None:
    bracket = bisect_bracket(lambda x: x - 1.0, 0.0, 10.0, ftol=1e-3)
    assert min(abs(bracket.f_lo), abs(bracket.f_hi)) <= 1e-3


def test_bisect_bracket_needs_a_tolerance() -> None:
    with pytest.raises(ValueError):
        bisect_bracket(math.cos, 0.0, 3.0)


def test_bisect_bracket_budget() -> None:
    with pytest.raises(LoopGuardError, match="stuck"):
        bisect_bracket(math.cos, 0.0, 3.0, xtol=0.0, max_iterations=10, guard_message="stuck")
    bracket = bisect_bracket(math.cos, 0.0, 3.0, xtol=0.0, max_iterations=10)
    assert bracket.width == pytest.approx(3.0 / 2 ** 10)


def test_iteration_guard() -> None:
    guard = IterationGuard("too many", limit=3)
    for _ in range(3):
        guard.tick()
    with pytest.raises(LoopGuardError, match="too many"):
        guard.tick()
