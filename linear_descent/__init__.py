"""Public package interface for the linear descent optimizer.

Importing this package gives you easy access to the top‑level helpers without
having to know the internal module layout.

Typical usage
-------------
>>> from linear_descent import minimise, scalar_descendible
>>> minimise(scalar_descendible(lambda x: (x - 3) ** 2), 0.0, -10.0, 10.0, 0.1, 1000)
"""
from importlib.metadata import version as _version  # type: ignore

from .descendible import (
    Descendible,
    FunctionDescendible,
    descendible_for,
    scalar_descendible,
    vector_descendible,
)
from .directions import (
    SCALAR,
    VECTOR2,
    VECTOR3,
    VECTOR4,
    DirectionProvider,
    clamp_some_inputs,
    provider_for,
)
from .engine import DescentResult, DescentStep, descend, minimise
from .expressions import loss_from_expression

__all__ = [
    "minimise",
    "descend",
    "DescentResult",
    "DescentStep",
    "Descendible",
    "FunctionDescendible",
    "scalar_descendible",
    "vector_descendible",
    "descendible_for",
    "DirectionProvider",
    "SCALAR",
    "VECTOR2",
    "VECTOR3",
    "VECTOR4",
    "provider_for",
    "clamp_some_inputs",
    "loss_from_expression",
    "__version__",
]

try:
    __version__ = _version("linear_descent")
except Exception:  # pragma: no cover – package not installed yet
    __version__ = "0.0.0"
