"""Fixed-budget local search ("linear descent").

The loss functions this engine targets cannot be differentiated (they may run
a whole physical simulation), so the steepest descent direction is guessed by
trying every neighbour offset from the direction set and taking the one with
the lowest loss.  The step size never shrinks; results are accurate to about
one epsilon.

Only local minima are found.  Picture ``-height`` over a mountain with two
peaks: starting near the lower peak, every direction from its summit leads
downhill, so the search settles there and never sees the taller one.

Each iteration costs ``len(directions) + 1`` loss evaluations and direction
counts grow as ``3**n - 1``, so keep inputs small (at most 4 components) and
avoid calling this once per frame.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

import numpy as np

from .descendible import Descendible

logger = logging.getLogger(__name__)

__all__ = ["DescentStep", "DescentResult", "descend", "minimise"]


@dataclass(frozen=True)
class DescentStep:
    """One evaluated candidate, reported to ``on_step`` callbacks."""

    index: int
    direction: Any
    candidate: Any
    loss: float
    accepted: bool


@dataclass(frozen=True)
class DescentResult:
    """Outcome of a :func:`descend` run.

    ``best`` is the last accepted candidate (``start`` when nothing was
    accepted).  When the run stopped because a step made things worse,
    ``rejected`` holds that clamped candidate and ``rejected_loss`` its loss.
    """

    best: Any
    best_loss: float
    start_loss: float
    steps: int
    stopped_early: bool
    evaluations: int
    rejected: Any = None
    rejected_loss: Optional[float] = None

    @property
    def improvement(self) -> float:
        return self.start_loss - self.best_loss


def _check_preconditions(min_bound: Any, max_bound: Any, iterations: int) -> None:
    if int(iterations) != iterations or iterations < 0:
        raise ValueError(f"iterations must be a non-negative integer, got {iterations!r}")
    try:
        lower = np.asarray(min_bound, dtype=float)
        upper = np.asarray(max_bound, dtype=float)
    except (TypeError, ValueError):
        # opaque candidate types: ordering is the descendible's business
        return
    if lower.shape != upper.shape:
        raise ValueError(
            f"min_bound and max_bound differ in shape: {lower.shape} vs {upper.shape}"
        )
    if np.any(lower > upper):
        raise ValueError(
            f"min_bound {min_bound!r} exceeds max_bound {max_bound!r} in at least one component"
        )


def _steepest(
    descendible: Descendible[Any], current: Any, directions: Sequence[Any]
) -> tuple[Any, float]:
    """Return the direction with the lowest neighbour loss; first one wins ties."""
    best_dir = directions[0]
    best_loss = descendible.loss(descendible.add(current, best_dir))
    for direction in directions[1:]:
        loss = descendible.loss(descendible.add(current, direction))
        if loss < best_loss:
            best_dir, best_loss = direction, loss
    return best_dir, best_loss


def descend(
    descendible: Descendible[Any],
    start: Any,
    min_bound: Any,
    max_bound: Any,
    epsilon: Any,
    iterations: int,
    *,
    on_step: Optional[Callable[[DescentStep], None]] = None,
) -> DescentResult:
    """Search for a local minimum of ``descendible.loss`` near *start*.

    *start* is not clamped; every candidate produced afterwards is clamped
    into ``[min_bound, max_bound]``.  The loop runs at most *iterations* steps
    and stops as soon as a step yields a loss above the best seen so far.
    Exceptions raised by the loss function propagate unchanged.

    Raises ``ValueError`` for a negative iteration count, inverted bounds or
    an empty direction set.  Bounds are only checked when they convert to
    float arrays; other candidate types pass through untouched.
    """
    _check_preconditions(min_bound, max_bound, iterations)

    directions = list(descendible.directions(epsilon))
    if not directions:
        raise ValueError(f"descendible produced no directions for epsilon {epsilon!r}")

    best = current = start
    best_loss = start_loss = descendible.loss(start)
    evaluations = 1
    steps = 0
    logger.debug(
        "descent start: loss=%g directions=%d budget=%d", start_loss, len(directions), iterations
    )

    for i in range(int(iterations)):
        direction, _ = _steepest(descendible, current, directions)
        candidate = descendible.clamp(
            descendible.add(current, direction), min_bound, max_bound
        )
        candidate_loss = descendible.loss(candidate)
        evaluations += len(directions) + 1
        accepted = not candidate_loss > best_loss

        if on_step is not None:
            on_step(DescentStep(i, direction, candidate, candidate_loss, accepted))

        if not accepted:
            logger.info(
                "descent stopped after %d steps: loss %g rose above %g",
                steps,
                candidate_loss,
                best_loss,
            )
            return DescentResult(
                best=best,
                best_loss=best_loss,
                start_loss=start_loss,
                steps=steps,
                stopped_early=True,
                evaluations=evaluations,
                rejected=candidate,
                rejected_loss=candidate_loss,
            )

        logger.debug("step %d: loss %g -> %g", i, best_loss, candidate_loss)
        current = best = candidate
        best_loss = candidate_loss
        steps += 1

    logger.info(
        "descent used its budget of %d steps: loss %g -> %g", steps, start_loss, best_loss
    )
    return DescentResult(
        best=best,
        best_loss=best_loss,
        start_loss=start_loss,
        steps=steps,
        stopped_early=False,
        evaluations=evaluations,
    )


def minimise(
    descendible: Descendible[Any],
    start: Any,
    min_bound: Any,
    max_bound: Any,
    epsilon: Any,
    iterations: int,
) -> Any:
    """Return an input at a local minimum of ``descendible.loss``.

    Shorthand for ``descend(...).best``.  With ``iterations == 0`` *start* is
    returned unchanged.
    """
    return descend(descendible, start, min_bound, max_bound, epsilon, iterations).best
