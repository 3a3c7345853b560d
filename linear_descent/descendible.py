"""The operation set an input type provides to be optimised by the engine.

Any object with ``loss``, ``directions``, ``add`` and ``clamp`` satisfies
:class:`Descendible`.  Most callers never write one by hand: the factories
below compose a :class:`FunctionDescendible` from a loss function and the
matching direction provider.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Optional, Protocol, Sequence, TypeVar

from .directions import SCALAR, DirectionProvider, provider_for

T = TypeVar("T")

LossFn = Callable[[Any], float]


class Descendible(Protocol[T]):
    """Protocol for inputs the descent engine can minimise over."""

    def loss(self, candidate: T) -> float:  # pragma: no cover - interface
        """Objective to minimise; lower is better."""
        ...

    def directions(self, epsilon: T) -> Sequence[T]:  # pragma: no cover - interface
        """Neighbour offsets scaled by *epsilon*, never including zero."""
        ...

    def add(self, a: T, b: T) -> T:  # pragma: no cover - interface
        ...

    def clamp(self, value: T, lower: T, upper: T) -> T:  # pragma: no cover - interface
        ...


@dataclass(frozen=True)
class FunctionDescendible:
    """Descendible assembled from four plain callables."""

    loss_fn: LossFn
    directions_fn: Callable[[Any], Sequence[Any]]
    add_fn: Callable[[Any, Any], Any]
    clamp_fn: Callable[[Any, Any, Any], Any]

    def loss(self, candidate: Any) -> float:
        return float(self.loss_fn(candidate))

    def directions(self, epsilon: Any) -> Sequence[Any]:
        return self.directions_fn(epsilon)

    def add(self, a: Any, b: Any) -> Any:
        return self.add_fn(a, b)

    def clamp(self, value: Any, lower: Any, upper: Any) -> Any:
        return self.clamp_fn(value, lower, upper)


def _compose(
    loss: LossFn,
    provider: DirectionProvider,
    clamp_mask: Optional[Sequence[float]] = None,
) -> FunctionDescendible:
    clamp_fn: Callable[[Any, Any, Any], Any] = provider.clamp
    if clamp_mask is not None:
        if provider.clamp_some is None:
            raise ValueError("clamp_mask is only supported for vector inputs")
        clamp_fn = partial(_masked_clamp, provider.clamp_some, clamp_mask)
    return FunctionDescendible(
        loss_fn=loss,
        directions_fn=provider.directions,
        add_fn=provider.add,
        clamp_fn=clamp_fn,
    )


def _masked_clamp(
    clamp_some: Callable[[Any, Any, Any, Any], Any],
    mask: Sequence[float],
    value: Any,
    lower: Any,
    upper: Any,
) -> Any:
    return clamp_some(value, lower, upper, mask)


def scalar_descendible(loss: LossFn) -> FunctionDescendible:
    """Descendible over plain floats."""
    return _compose(loss, SCALAR)


def vector_descendible(
    loss: LossFn,
    arity: int,
    clamp_mask: Optional[Sequence[float]] = None,
) -> FunctionDescendible:
    """Descendible over 2, 3 or 4 component numpy vectors.

    When *clamp_mask* is given only the components with a nonzero mask entry
    are clamped into the bounds; the rest are left free.
    """
    if arity == 1:
        raise ValueError("vector_descendible needs arity 2, 3 or 4; use scalar_descendible")
    return _compose(loss, provider_for(arity), clamp_mask)


def descendible_for(
    loss: LossFn,
    arity: int,
    clamp_mask: Optional[Sequence[float]] = None,
) -> FunctionDescendible:
    """Pick the scalar or vector descendible matching *arity*."""
    return _compose(loss, provider_for(arity), clamp_mask)


__all__ = [
    "Descendible",
    "FunctionDescendible",
    "LossFn",
    "scalar_descendible",
    "vector_descendible",
    "descendible_for",
]
