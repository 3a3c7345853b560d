"""Direction providers for scalar and 2/3/4-component inputs.

A provider bundles the pieces the descent engine needs for one input arity:
the neighbour directions for a given epsilon, addition and clamping.  Vector
arities are plain 1-D :mod:`numpy` arrays; the scalar arity is a ``float``.

Vector providers also expose :func:`clamp_some_inputs`, which only clamps the
components selected by a mask so that some axes can stay unbounded.
"""
from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

import numpy as np

__all__ = [
    "DirectionProvider",
    "SCALAR",
    "VECTOR2",
    "VECTOR3",
    "VECTOR4",
    "PROVIDERS",
    "provider_for",
    "as_vector",
    "clamp_scalar",
    "clamp_some_inputs",
]


# ---------------------------------------------------------------------------
# Scalar helpers
# ---------------------------------------------------------------------------


def _scalar_directions(epsilon: float) -> list[float]:
    eps = float(epsilon)
    return [-eps, eps]


def _scalar_add(a: float, b: float) -> float:
    return float(a) + float(b)


def clamp_scalar(value: float, lower: float, upper: float) -> float:
    """Clamp *value* into ``[lower, upper]``."""
    return min(max(float(value), float(lower)), float(upper))


# ---------------------------------------------------------------------------
# Vector helpers
# ---------------------------------------------------------------------------


def as_vector(value: Any, arity: int, label: str = "value") -> np.ndarray:
    """Return *value* as a float array of length *arity* or raise ``ValueError``."""
    try:
        arr = np.asarray(value, dtype=float)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{label} is not numeric: {value!r}") from exc
    if arr.shape != (arity,):
        raise ValueError(
            f"{label} must have {arity} components, got shape {arr.shape}"
        )
    return arr


def _vector_directions(epsilon: Any, arity: int) -> list[np.ndarray]:
    eps = as_vector(epsilon, arity, "epsilon")
    directions: list[np.ndarray] = []
    # first component varies slowest: (-1, -1, ...), (-1, -1, 0), ...
    for signs in itertools.product((-1.0, 0.0, 1.0), repeat=arity):
        direction = np.array(signs) * eps
        # zero-length directions never move the candidate
        if not np.any(direction):
            continue
        directions.append(direction)
    return directions


def _vector_add(a: Any, b: Any, arity: int) -> np.ndarray:
    return as_vector(a, arity, "lhs") + as_vector(b, arity, "rhs")


def _vector_clamp(value: Any, lower: Any, upper: Any, arity: int) -> np.ndarray:
    return np.clip(
        as_vector(value, arity),
        as_vector(lower, arity, "min bound"),
        as_vector(upper, arity, "max bound"),
    )


def clamp_some_inputs(value: Any, lower: Any, upper: Any, mask: Any) -> np.ndarray:
    """Clamp only the components of *value* whose *mask* entry is nonzero.

    Unmasked components are returned untouched, even when they lie outside
    ``[lower, upper]``.
    """
    arr = np.asarray(value, dtype=float)
    arity = arr.shape[0] if arr.ndim == 1 else -1
    if arity not in (2, 3, 4):
        raise ValueError(f"partial clamp needs a 2-4 component vector, got {value!r}")
    selected = as_vector(mask, arity, "clamp mask") != 0.0
    clamped = _vector_clamp(arr, lower, upper, arity)
    return np.where(selected, clamped, arr)


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DirectionProvider:
    """Stateless operation set for one input arity."""

    arity: int
    directions: Callable[[Any], Sequence[Any]]
    add: Callable[[Any, Any], Any]
    clamp: Callable[[Any, Any, Any], Any]
    clamp_some: Optional[Callable[[Any, Any, Any, Any], Any]] = None

    @property
    def direction_count(self) -> int:
        """Number of directions generated for an epsilon with no zero components."""
        return 2 if self.arity == 1 else 3**self.arity - 1


def _vector_provider(arity: int) -> DirectionProvider:
    def _clamp_some(value: Any, lower: Any, upper: Any, mask: Any) -> np.ndarray:
        as_vector(value, arity)
        return clamp_some_inputs(value, lower, upper, mask)

    return DirectionProvider(
        arity=arity,
        directions=lambda eps: _vector_directions(eps, arity),
        add=lambda a, b: _vector_add(a, b, arity),
        clamp=lambda v, lo, hi: _vector_clamp(v, lo, hi, arity),
        clamp_some=_clamp_some,
    )


SCALAR = DirectionProvider(
    arity=1,
    directions=_scalar_directions,
    add=_scalar_add,
    clamp=clamp_scalar,
)
VECTOR2 = _vector_provider(2)
VECTOR3 = _vector_provider(3)
VECTOR4 = _vector_provider(4)

PROVIDERS: dict[int, DirectionProvider] = {
    1: SCALAR,
    2: VECTOR2,
    3: VECTOR3,
    4: VECTOR4,
}


def provider_for(arity: int) -> DirectionProvider:
    try:
        return PROVIDERS[int(arity)]
    except (KeyError, TypeError, ValueError):
        raise ValueError(
            f"Unsupported input arity {arity!r}; expected one of {sorted(PROVIDERS)}"
        ) from None
