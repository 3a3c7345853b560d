"""Command‑line interface wrapper around :pyfunc:`linear_descent.descend`."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

import numpy as np

from . import constants as C
from .descendible import descendible_for
from .engine import DescentResult, DescentStep, descend
from .expressions import loss_from_expression, parse_variables

__all__ = ["main"]

logger = logging.getLogger(__name__)


def _parse_value(text: str, arity: int, label: str) -> Any:
    """Parse ``"1.5"`` or ``"1,2,3"`` into a float or an *arity*-vector."""
    parts = [p.strip() for p in str(text).split(",") if p.strip()]
    try:
        values = [float(p) for p in parts]
    except ValueError:
        raise ValueError(f"{label} must be comma-separated numbers, got {text!r}") from None
    if len(values) == 1 and arity > 1:
        # a single number applies to every component
        values = values * arity
    if len(values) != arity:
        raise ValueError(f"{label} needs {arity} components, got {len(values)}")
    if arity == 1:
        return values[0]
    return np.array(values, dtype=float)


def _jsonable(value: Any) -> Any:
    if isinstance(value, np.ndarray):
        return [float(v) for v in value]
    if value is None:
        return None
    return float(value)


def _result_payload(result: DescentResult, variables: tuple[str, ...]) -> dict[str, Any]:
    return {
        "variables": list(variables),
        "best": _jsonable(result.best),
        "best_loss": result.best_loss,
        "start_loss": result.start_loss,
        "steps": result.steps,
        "stopped_early": result.stopped_early,
        "rejected": _jsonable(result.rejected),
        "evaluations": result.evaluations,
    }


def _parse_cli(argv: list[str] | None = None) -> argparse.Namespace:  # noqa: D401 – imperative mood
    parser = argparse.ArgumentParser(
        description="Find a local minimum of an expression by linear descent"
    )
    parser.add_argument(
        "expression",
        nargs="?",
        help="Loss expression, e.g. '(x - 3)**2' (sympy syntax)",
    )
    parser.add_argument(
        "--variables",
        default="x",
        help="Comma-separated variable names; their count sets the input arity (1-4)",
    )
    parser.add_argument(
        "--start",
        help="Starting point, comma-separated. Use --start=-1,2 for negative values",
    )
    parser.add_argument("--min", dest="min_bound", help="Lower bound per component")
    parser.add_argument("--max", dest="max_bound", help="Upper bound per component")
    parser.add_argument("--epsilon", default="0.1", help="Step size per component")
    parser.add_argument(
        "--iterations",
        type=int,
        default=C.DEFAULT_ITERATIONS,
        help="Maximum number of descent steps",
    )
    parser.add_argument(
        "--clamp-mask",
        help="Comma-separated 0/1 flags; only components flagged 1 are clamped",
    )
    parser.add_argument("--demo", action="store_true", help="Minimise (x - 3)^2")
    parser.add_argument(
        "--mountain-demo",
        action="store_true",
        help="Climb the short peak of a two-peak mountain (local minimum demo)",
    )
    parser.add_argument("--out", help="Write JSON output to file")
    parser.add_argument("--plot", help="Write a PNG of the loss trace to this path")
    parser.add_argument(
        "--log-level",
        choices=["WARNING", "INFO", "DEBUG"],
        default="WARNING",
        help="Logging level for linear_descent",
    )
    return parser.parse_args(argv)


def _resolve_problem(ns: argparse.Namespace) -> dict[str, Any]:
    if ns.expression is not None and (ns.demo or ns.mountain_demo):
        sys.exit("Error: an expression cannot be combined with --demo/--mountain-demo.")
    if ns.demo and ns.mountain_demo:
        sys.exit("Error: choose one of --demo and --mountain-demo.")

    if ns.demo or ns.mountain_demo:
        problem = dict(C._MOUNTAIN_PROBLEM if ns.mountain_demo else C._DEMO_PROBLEM)
        if ns.start is not None:
            problem["start"] = ns.start
        return problem

    if ns.expression is None or not ns.expression.strip():
        sys.exit("Error: an expression is required unless using --demo/--mountain-demo.")
    missing = [
        flag
        for flag, val in (("--start", ns.start), ("--min", ns.min_bound), ("--max", ns.max_bound))
        if val is None
    ]
    if missing:
        sys.exit(f"Error: {', '.join(missing)} required with an expression.")
    return {
        "expression": ns.expression,
        "variables": ns.variables,
        "start": ns.start,
        "min": ns.min_bound,
        "max": ns.max_bound,
        "epsilon": ns.epsilon,
        "iterations": ns.iterations,
    }


def main(argv: list[str] | None = None) -> int:  # noqa: D401 – imperative mood
    ns = _parse_cli(argv)

    level = getattr(logging, ns.log_level)
    pkg_logger = logging.getLogger("linear_descent")
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(logging.BASIC_FORMAT))
    handler.setLevel(level)
    pkg_logger.addHandler(handler)
    pkg_logger.propagate = False
    pkg_logger.setLevel(level)

    problem = _resolve_problem(ns)

    try:
        variables = parse_variables(problem["variables"])
        arity = len(variables)
        loss = loss_from_expression(problem["expression"], variables)
        mask = None
        if ns.clamp_mask is not None:
            if arity == 1:
                raise ValueError("--clamp-mask needs at least two variables")
            mask = _parse_value(ns.clamp_mask, arity, "--clamp-mask")
        descendible = descendible_for(loss, arity, clamp_mask=mask)
        start = _parse_value(problem["start"], arity, "--start")
        lower = _parse_value(problem["min"], arity, "--min")
        upper = _parse_value(problem["max"], arity, "--max")
        epsilon = _parse_value(problem["epsilon"], arity, "--epsilon")
    except ValueError as exc:
        sys.exit(f"Error: {exc}")

    trace: list[float] = []

    def _record(step: DescentStep) -> None:
        trace.append(step.loss)

    logger.info("minimising %s over %s", problem["expression"], ",".join(variables))
    try:
        result = descend(
            descendible,
            start,
            lower,
            upper,
            epsilon,
            int(problem["iterations"]),
            on_step=_record,
        )
    except ValueError as exc:
        sys.exit(f"Error: {exc}")

    if ns.plot:
        from .plotting import render_trace

        path = render_trace([result.start_loss, *trace], ns.plot, title=problem["expression"])
        logger.info("loss trace written to %s", path)

    json_out = json.dumps(
        _result_payload(result, variables), ensure_ascii=False, separators=(",", ":")
    )
    if ns.out:
        Path(ns.out).write_text(json_out, "utf-8")
        print(f"✔ Descent result JSON written to {ns.out}")
    else:
        print(json_out)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
