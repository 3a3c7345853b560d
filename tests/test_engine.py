import math
from dataclasses import dataclass

import numpy as np
import pytest

from linear_descent import descendible as descendible_module
from linear_descent import engine

from linear_descent.constants import MOUNTAIN_HEIGHT
from linear_descent.descendible import (
    FunctionDescendible,
    scalar_descendible,
    vector_descendible,
)
from linear_descent.engine import DescentStep, descend, minimise
from linear_descent.expressions import loss_from_expression


def _parabola(x: float) -> float:
    return (x - 3.0) ** 2


def _mountain_loss(v) -> float:
    x, y = v
    return -(
        3 * math.exp(-((x - 5) ** 2 + (y - 5) ** 2) / 8)
        + math.exp(-((x + 5) ** 2 + (y + 5) ** 2) / 8)
    )


def test_scalar_parabola_converges_within_one_epsilon() -> None:
    result = minimise(scalar_descendible(_parabola), 0.0, -10.0, 10.0, 0.1, 1000)
    assert abs(result - 3.0) <= 0.1


def test_zero_iterations_returns_start_unchanged() -> None:
    start = np.array([50.0, -50.0])
    d = vector_descendible(lambda v: float(np.sum(v**2)), 2)
    result = minimise(d, start, (-1, -1), (1, 1), (0.1, 0.1), 0)
    assert result is start
    assert minimise(scalar_descendible(_parabola), 7.5, 0.0, 1.0, 0.1, 0) == 7.5


@pytest.mark.parametrize(
    "loss,start",
    [
        (_parabola, -4.0),
        (lambda x: math.sin(3 * x) + 0.1 * x * x, 1.3),
        (lambda x: abs(x) - 2.0, 6.0),
        (lambda x: -x, 0.0),
    ],
)
def test_result_never_worse_than_start(loss, start: float) -> None:
    for iterations in (0, 1, 5, 50, 500):
        result = minimise(scalar_descendible(loss), start, -8.0, 8.0, 0.3, iterations)
        assert loss(result) <= loss(start)


def test_vector_result_never_worse_than_start() -> None:
    rng = np.random.default_rng(0)
    center = rng.uniform(-2, 2, size=3)

    def loss(v) -> float:
        return float(np.sum(np.cos(v) + (v - center) ** 2))

    d = vector_descendible(loss, 3)
    for _ in range(5):
        start = rng.uniform(-3, 3, size=3)
        result = minimise(d, start, (-3, -3, -3), (3, 3, 3), (0.2, 0.2, 0.2), 40)
        assert loss(result) <= loss(start)


def test_rerun_from_converged_point_is_a_fixed_point() -> None:
    d = scalar_descendible(_parabola)
    first = descend(d, 0.0, -10.0, 10.0, 0.1, 1000)
    assert first.stopped_early
    again = descend(d, first.best, -10.0, 10.0, 0.1, 1000)
    assert again.best == first.best
    assert again.steps == 0
    assert again.stopped_early


def test_rerun_from_converged_vector_is_a_fixed_point() -> None:
    d = vector_descendible(_mountain_loss, 2)
    bounds = ((-10, -10), (10, 10), (0.1, 0.1))
    first = descend(d, np.array([-4.0, -4.0]), *bounds, 1000)
    assert first.stopped_early
    again = descend(d, first.best, *bounds, 1000)
    assert again.best is first.best
    assert again.steps == 0
    assert again.stopped_early


def test_rejected_candidate_is_reported() -> None:
    result = descend(scalar_descendible(_parabola), 0.0, -10.0, 10.0, 0.1, 1000)
    assert result.rejected is not None
    assert result.rejected_loss > result.best_loss
    assert abs(result.rejected - result.best) == pytest.approx(0.1)
    assert result.improvement == pytest.approx(9.0, abs=0.1)


def test_scalar_result_respects_bounds() -> None:
    result = descend(scalar_descendible(lambda x: (x - 20.0) ** 2), 0.0, -10.0, 10.0, 0.5, 1000)
    assert result.best == 10.0
    # clamped steps keep the same loss, so the budget is used up
    assert not result.stopped_early
    assert result.steps == 1000


def test_vector_result_respects_bounds() -> None:
    d = vector_descendible(lambda v: float(np.sum((v - 20.0) ** 2)), 2)
    lower, upper = np.array([-1.0, -2.0]), np.array([1.0, 2.0])
    result = minimise(d, np.zeros(2), lower, upper, (0.3, 0.3), 200)
    assert np.all(result >= lower)
    assert np.all(result <= upper)
    assert np.allclose(result, [1.0, 2.0])


def test_two_peak_mountain_settles_on_short_peak() -> None:
    d = vector_descendible(_mountain_loss, 2)
    start = np.array([-4.0, -4.0])
    result = minimise(d, start, (-10, -10), (10, 10), (0.1, 0.1), 1000)
    assert np.allclose(result, [-5.0, -5.0], atol=0.15)
    # the tall peak at (5, 5) is far better but never found
    assert _mountain_loss(result) > _mountain_loss((5.0, 5.0)) + 1.0


def test_mountain_expression_matches_hand_written_loss() -> None:
    loss = loss_from_expression(f"-({MOUNTAIN_HEIGHT})", "x,y")
    for point in ((0.0, 0.0), (-5.0, -5.0), (5.0, 5.0), (1.5, -2.0)):
        assert loss(point) == pytest.approx(_mountain_loss(point))


def test_partial_clamp_leaves_unmasked_axis_free() -> None:
    def loss(v) -> float:
        return float(np.sum((v - 20.0) ** 2))

    lower, upper = np.full(3, -1.0), np.full(3, 1.0)
    masked = vector_descendible(loss, 3, clamp_mask=(1, 0, 1))
    result = minimise(masked, np.zeros(3), lower, upper, (0.5, 0.5, 0.5), 100)
    assert result[1] == pytest.approx(20.0)
    assert result[1] > upper[1]
    assert lower[0] <= result[0] <= upper[0]
    assert lower[2] <= result[2] <= upper[2]

    full = vector_descendible(loss, 3)
    clamped = minimise(full, np.zeros(3), lower, upper, (0.5, 0.5, 0.5), 100)
    assert np.allclose(clamped, [1.0, 1.0, 1.0])


def test_ties_go_to_first_enumerated_direction() -> None:
    seen: list[DescentStep] = []
    result = descend(
        scalar_descendible(lambda x: 1.0), 0.0, -10.0, 10.0, 1.0, 3, on_step=seen.append
    )
    assert result.best == -3.0
    assert [s.direction for s in seen] == [-1.0, -1.0, -1.0]
    assert all(s.accepted for s in seen)


def test_directions_are_computed_once() -> None:
    calls: list[float] = []

    def directions(eps: float) -> list[float]:
        calls.append(eps)
        return [-eps, eps]

    d = FunctionDescendible(
        loss_fn=_parabola,
        directions_fn=directions,
        add_fn=lambda a, b: a + b,
        clamp_fn=lambda v, lo, hi: min(max(v, lo), hi),
    )
    minimise(d, 0.0, -10.0, 10.0, 0.5, 100)
    assert calls == [0.5]


def test_on_step_reports_every_evaluated_candidate() -> None:
    seen: list[DescentStep] = []
    result = descend(
        scalar_descendible(_parabola), 2.0, -10.0, 10.0, 0.25, 100, on_step=seen.append
    )
    assert len(seen) == result.steps + 1
    assert all(s.accepted for s in seen[:-1])
    assert not seen[-1].accepted
    assert seen[-1].candidate == result.rejected
    assert [s.index for s in seen] == list(range(len(seen)))


def test_evaluation_count_matches_loss_calls() -> None:
    calls = 0

    def loss(x: float) -> float:
        nonlocal calls
        calls += 1
        return _parabola(x)

    result = descend(scalar_descendible(loss), 0.0, -10.0, 10.0, 0.5, 3)
    assert calls == result.evaluations == 1 + 3 * (2 + 1)


def test_loss_errors_propagate() -> None:
    calls = 0

    def loss(x: float) -> float:
        nonlocal calls
        calls += 1
        if calls > 2:
            raise RuntimeError("boom")
        return x

    with pytest.raises(RuntimeError, match="boom"):
        minimise(scalar_descendible(loss), 0.0, -1.0, 1.0, 0.1, 10)


def test_negative_iterations_rejected() -> None:
    with pytest.raises(ValueError, match="iterations"):
        minimise(scalar_descendible(_parabola), 0.0, -1.0, 1.0, 0.1, -1)


def test_inverted_bounds_rejected() -> None:
    with pytest.raises(ValueError, match="exceeds max_bound"):
        minimise(vector_descendible(lambda v: 0.0, 2), np.zeros(2), (0, 2), (1, 1), (0.1, 0.1), 5)


def test_empty_direction_set_rejected() -> None:
    d = FunctionDescendible(
        loss_fn=_parabola,
        directions_fn=lambda eps: [],
        add_fn=lambda a, b: a + b,
        clamp_fn=lambda v, lo, hi: v,
    )
    with pytest.raises(ValueError, match="no directions"):
        minimise(d, 0.0, -1.0, 1.0, 0.1, 5)


class _Lattice:
    """Hand-written descendible over integer pairs, no base class."""

    def loss(self, candidate: tuple[int, int]) -> float:
        x, y = candidate
        return float(abs(x - 4) + abs(y + 2))

    def directions(self, epsilon: int) -> list[tuple[int, int]]:
        return [(epsilon, 0), (-epsilon, 0), (0, epsilon), (0, -epsilon)]

    def add(self, a: tuple[int, int], b: tuple[int, int]) -> tuple[int, int]:
        return (a[0] + b[0], a[1] + b[1])

    def clamp(self, value, lower, upper) -> tuple[int, int]:
        return (
            min(max(value[0], lower[0]), upper[0]),
            min(max(value[1], lower[1]), upper[1]),
        )


def test_structural_descendible_is_accepted() -> None:
    result = minimise(_Lattice(), (0, 0), (-10, -10), (10, 10), 1, 50)
    assert result == (4, -2)


@dataclass(frozen=True)
class _Vec:
    x: float
    y: float


class _VecDescendible:
    """Descendible over a plain dataclass numpy cannot convert."""

    def loss(self, candidate: _Vec) -> float:
        return (candidate.x - 2) ** 2 + (candidate.y + 1) ** 2

    def directions(self, epsilon: _Vec) -> list[_Vec]:
        return [
            _Vec(sx * epsilon.x, sy * epsilon.y)
            for sx in (-1, 0, 1)
            for sy in (-1, 0, 1)
            if sx or sy
        ]

    def add(self, a: _Vec, b: _Vec) -> _Vec:
        return _Vec(a.x + b.x, a.y + b.y)

    def clamp(self, value: _Vec, lower: _Vec, upper: _Vec) -> _Vec:
        return _Vec(
            min(max(value.x, lower.x), upper.x),
            min(max(value.y, lower.y), upper.y),
        )


class _ComplexDescendible:
    def loss(self, candidate: complex) -> float:
        return abs(candidate - (1 + 1j)) ** 2

    def directions(self, epsilon: complex) -> list[complex]:
        return [epsilon, -epsilon, epsilon * 1j, -epsilon * 1j]

    def add(self, a: complex, b: complex) -> complex:
        return a + b

    def clamp(self, value: complex, lower: complex, upper: complex) -> complex:
        return complex(
            min(max(value.real, lower.real), upper.real),
            min(max(value.imag, lower.imag), upper.imag),
        )


def test_dataclass_candidates_are_accepted() -> None:
    result = minimise(_VecDescendible(), _Vec(0, 0), _Vec(-5, -5), _Vec(5, 5), _Vec(0.5, 0.5), 100)
    assert result == _Vec(2, -1)


def test_complex_candidates_are_accepted() -> None:
    result = minimise(_ComplexDescendible(), 0j, -5 - 5j, 5 + 5j, 0.5, 100)
    assert result == 1 + 1j


def test_opaque_candidates_still_check_iterations() -> None:
    with pytest.raises(ValueError, match="iterations"):
        minimise(_ComplexDescendible(), 0j, -5 - 5j, 5 + 5j, 0.5, -1)


def test_modules_keep_their_docstrings() -> None:
    assert engine.__doc__ and "local search" in engine.__doc__
    assert descendible_module.__doc__ and "Descendible" in descendible_module.__doc__
