"""Render descent loss traces."""
from __future__ import annotations

import os
import tempfile
import warnings
from pathlib import Path
from typing import Iterable, Optional

__all__ = ["render_trace"]


def _select_backend() -> None:
    import matplotlib  # type: ignore

    try:
        backend = matplotlib.get_backend().lower()
    except Exception:
        backend = ""
    if backend in {"agg", "tkagg"}:
        return
    env_backend = os.environ.get("MPLBACKEND", "").lower()
    prefer_tk = bool(os.environ.get("DISPLAY")) or env_backend == "tkagg"
    if prefer_tk:
        try:
            matplotlib.use("TkAgg")
        except Exception as exc:  # pragma: no cover - depends on system backend
            warnings.warn(
                f"Preferred GUI backend 'TkAgg' unavailable; falling back to 'Agg': {exc}",
                RuntimeWarning,
            )
            matplotlib.use("Agg")
    else:
        matplotlib.use("Agg")


def render_trace(
    losses: Iterable[float],
    path: Optional[str | Path] = None,
    *,
    title: Optional[str] = None,
) -> str:
    """Plot loss per step to a **PNG file** and return its path.

    Step 0 is the start loss.  Without *path* a temporary file is created.
    """
    try:
        import matplotlib  # type: ignore  # noqa: F401
    except Exception as exc:  # pragma: no cover - environment-dependent
        raise RuntimeError(
            "matplotlib is required to render traces. Install it or drop --plot."
        ) from exc

    _select_backend()
    import matplotlib.pyplot as plt  # type: ignore

    ys = [float(v) for v in losses]

    fig, ax = plt.subplots(figsize=(6, 4))
    if ys:
        ax.plot(range(len(ys)), ys, marker="o", markersize=3)
    ax.set_xlabel("step")
    ax.set_ylabel("loss")
    if title:
        ax.set_title(str(title))
    ax.grid(True)

    if path is None:
        fd, tmp = tempfile.mkstemp(suffix=".png")
        os.close(fd)
        png_path = Path(tmp)
    else:
        png_path = Path(path)
    fig.savefig(png_path, format="png")
    plt.close(fig)
    return str(png_path)
