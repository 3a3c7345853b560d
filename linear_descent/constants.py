"""Package‑wide constants and demo problems."""

from typing import Any

DEFAULT_ITERATIONS = 1000

# f(x) = (x - 3)^2 over [-10, 10]; converges to within one epsilon of 3.
_DEMO_PROBLEM: dict[str, Any] = {
    "expression": "(x - 3)**2",
    "variables": "x",
    "start": "0",
    "min": "-10",
    "max": "10",
    "epsilon": "0.1",
    "iterations": DEFAULT_ITERATIONS,
}

# Loss is -height of a mountain range: a tall peak at (5, 5) and a short one
# at (-5, -5).  Starting near the short peak never finds the tall one.
MOUNTAIN_HEIGHT = (
    "3*exp(-((x - 5)**2 + (y - 5)**2)/8) + exp(-((x + 5)**2 + (y + 5)**2)/8)"
)

_MOUNTAIN_PROBLEM: dict[str, Any] = {
    "expression": f"-({MOUNTAIN_HEIGHT})",
    "variables": "x,y",
    "start": "-4,-4",
    "min": "-10,-10",
    "max": "10,10",
    "epsilon": "0.1,0.1",
    "iterations": DEFAULT_ITERATIONS,
}

__all__ = [
    "DEFAULT_ITERATIONS",
    "_DEMO_PROBLEM",
    "MOUNTAIN_HEIGHT",
    "_MOUNTAIN_PROBLEM",
]
