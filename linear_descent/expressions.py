"""Build loss functions from symbolic expressions.

Lets the CLI (and quick experiments) describe a loss as text such as
``"(x - 3)**2"`` instead of writing Python.  Expressions are parsed with
sympy using implicit multiplication, so ``2x`` and ``2*x`` are equivalent.
"""
from __future__ import annotations

from typing import Any, Callable, Sequence

import numpy as np

__all__ = ["parse_variables", "loss_from_expression"]


def parse_variables(value: str | Sequence[str]) -> tuple[str, ...]:
    """Normalise ``"x, y"`` or ``["x", "y"]`` into a tuple of names."""
    if isinstance(value, str):
        names = [p.strip() for p in value.split(",")]
    else:
        names = [str(p).strip() for p in value]
    names = [n for n in names if n]
    if not names:
        raise ValueError("at least one variable name is required")
    if len(set(names)) != len(names):
        raise ValueError(f"duplicate variable names in {names!r}")
    return tuple(names)


def _parse(expression: str, names: Sequence[str]) -> Any:
    import sympy as sp  # type: ignore
    from sympy.parsing.sympy_parser import (  # type: ignore
        implicit_multiplication_application,
        parse_expr,
        standard_transformations,
    )

    trans = (*standard_transformations, implicit_multiplication_application)
    try:
        # declared names are never split into products of single letters
        local = {n: sp.Symbol(n) for n in names}
        expr = parse_expr(expression, local_dict=local, transformations=trans)
    except Exception as exc:
        raise ValueError(f"Invalid expression {expression!r}: {exc}") from exc
    if not isinstance(expr, sp.Expr):
        raise ValueError(f"Expression {expression!r} is not a scalar expression")
    return expr


def loss_from_expression(
    expression: str, variables: str | Sequence[str] = "x"
) -> Callable[[Any], float]:
    """Compile *expression* into a loss over *variables*.

    A single variable gives a loss over floats; several give a loss over a
    sequence (or numpy vector) with one component per variable, in order.
    Symbols not listed in *variables* raise ``ValueError``.
    """
    import sympy as sp  # type: ignore

    names = parse_variables(variables)
    expr = _parse(expression, names)
    symbols = [sp.Symbol(n) for n in names]
    unknown = sorted(str(s) for s in expr.free_symbols - set(symbols))
    if unknown:
        raise ValueError(
            f"Expression uses undeclared variables {unknown}; declared {list(names)}"
        )
    fn = sp.lambdify(symbols, expr, modules="numpy")
    arity = len(names)

    if arity == 1:

        def scalar_loss(value: Any) -> float:
            return float(fn(float(value)))

        return scalar_loss

    def vector_loss(value: Any) -> float:
        arr = np.asarray(value, dtype=float)
        if arr.shape != (arity,):
            raise ValueError(f"expected {arity} components, got shape {arr.shape}")
        return float(fn(*arr))

    return vector_loss
