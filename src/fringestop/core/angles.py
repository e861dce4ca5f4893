from __future__ import annotations

"""
angles.py
=========
Angle reduction helpers (radians), scalar or numpy array in, same shape out.

- ``wrap_phase``: canonical phase in (-pi, pi].
- ``wrap_0_2pi``: azimuth-like angle in [0, 2*pi).

NaN and infinities come out as NaN; nothing here raises on bad values.
"""

import numpy as np

TWO_PI = 2.0 * np.pi


def _as_output(x: np.ndarray, like):
    # Scalars in, Python floats out.
    if np.ndim(like) == 0:
        return float(x)
    return x


def wrap_phase(x):
    """Reduce ``x`` to (-pi, pi] by subtracting the nearest whole number of turns.

    Unlike a single conditional add/subtract of 2*pi this is exact for any
    magnitude, so model phases many turns away from the observed phase are
    handled. An exact -pi maps to +pi.
    """
    a = np.asarray(x, dtype=float)
    with np.errstate(invalid="ignore"):
        w = a - TWO_PI * np.round(a / TWO_PI)
        # round() lands on [-pi, pi]; fold the closed lower edge up
        w = np.where(w <= -np.pi, w + TWO_PI, w)
        w = np.where(w > np.pi, w - TWO_PI, w)
    return _as_output(w, x)


def wrap_0_2pi(x):
    """Reduce ``x`` to [0, 2*pi)."""
    a = np.asarray(x, dtype=float)
    with np.errstate(invalid="ignore"):
        w = np.mod(a, TWO_PI)
        # mod of a tiny negative value can round up to exactly 2*pi
        w = np.where(w >= TWO_PI, 0.0, w)
    return _as_output(w, x)


__all__ = ["TWO_PI", "wrap_phase", "wrap_0_2pi"]
