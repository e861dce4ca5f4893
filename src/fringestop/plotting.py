"""Three-panel display of observed, modelled and fringe-stopped phases.

The input is the read-only mapping produced by
``fringestop.core.corrector.phase_series``: title -> (hours, phase_rad).
Panels follow the ``sacrotate`` layout: phase on a fixed [-pi, pi] axis and
time running from the latest to the earliest sample.

Displays
--------
- ``"screen"``: interactive window (``plt.show``).
- ``"ps"``, ``"png"``, ``"pdf"``: written to ``savefile``.
- ``"none"``: nothing is drawn.
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple

import numpy as np
import matplotlib.pyplot as plt

DISPLAYS = ("screen", "ps", "png", "pdf", "none")

# marker size per panel: observed small, model and result larger
_MARKER_SIZES = (4, 10, 10)


def _check_display(display: str, savefile: Optional[str]) -> str:
    d = (display or "screen").lower()
    if d not in DISPLAYS:
        raise ValueError(f"Unknown display {display!r}; expected one of {DISPLAYS}")
    if d in ("ps", "png", "pdf") and not savefile:
        raise ValueError(f"Display {d!r} needs a savefile")
    return d


def _draw_panel(ax, title: str, hours: np.ndarray, phase: np.ndarray, size: float):
    ax.scatter(hours, phase, s=size, marker=".", linewidths=0)
    ax.set_title(title)
    ax.set_ylabel("Phase")
    ax.set_xlabel("Time (Hours)")
    ax.set_ylim(-np.pi, np.pi)
    if hours.size:
        # latest sample on the left
        lo, hi = float(hours[0]), float(hours[-1])
        if lo != hi:
            ax.set_xlim(hi, lo)
    ax.grid(True, alpha=0.25)


def render_phase_series(series: Dict[str, Tuple[np.ndarray, np.ndarray]]):
    """Build and return the figure without showing or saving it."""
    fig, axes = plt.subplots(len(series), 1, figsize=(8, 9), squeeze=False)
    for i, (title, (hours, phase)) in enumerate(series.items()):
        size = _MARKER_SIZES[min(i, len(_MARKER_SIZES) - 1)]
        _draw_panel(axes[i, 0], title, np.asarray(hours), np.asarray(phase), size)
    fig.tight_layout()
    return fig


def plot_phase_series(
    series: Dict[str, Tuple[np.ndarray, np.ndarray]],
    display: str = "screen",
    savefile: Optional[str] = None,
) -> Optional[str]:
    """
    Render the phase panels to ``display``.

    Returns the path written for file displays, else None.

    Raises
    ------
    ValueError
        Unknown display, or a file display without ``savefile``.
    """
    d = _check_display(display, savefile)
    if d == "none":
        return None

    fig = render_phase_series(series)
    try:
        if d == "screen":
            plt.show()
            return None
        fig.savefig(savefile, format=d)
        return savefile
    finally:
        plt.close(fig)


__all__ = ["DISPLAYS", "render_phase_series", "plot_phase_series"]
