from __future__ import annotations

"""
phase_model.py
==============
Geometric phase response of a two-element interferometer.

The baseline (east, north, up) is projected onto the unit vector towards the
source::

    e = cos(el) * sin(az)
    n = cos(el) * cos(az)
    u = sin(el)
    delay_m = b_ew * e + b_ns * n + b_up * u

and converted to phase at the observing frequency::

    phase = 2 * pi * f * delay_m / c + phase_offset

The result is NOT wrapped; reducing it to (-pi, pi] is up to the caller.
"""

import numpy as np

from .model import ObserverSite, TopocentricDirection

SPEED_OF_LIGHT_M_S = 299_792_458.0


def geometric_delay_m(direction: TopocentricDirection, site: ObserverSite):
    """Path-length difference in metres between the two elements."""
    az = np.asarray(direction.azimuth_rad, dtype=float)
    el = np.asarray(direction.elevation_rad, dtype=float)
    cos_el = np.cos(el)
    delay = (
        site.baseline_ew_m * cos_el * np.sin(az)
        + site.baseline_ns_m * cos_el * np.cos(az)
        + site.baseline_up_m * np.sin(el)
    )
    if np.ndim(direction.azimuth_rad) == 0 and np.ndim(direction.elevation_rad) == 0:
        return float(delay)
    return delay


def compute_phase(direction: TopocentricDirection, site: ObserverSite):
    """Predicted (unwrapped) fringe phase in radians for ``direction``."""
    delay = geometric_delay_m(direction, site)
    return 2.0 * np.pi * site.frequency_hz * delay / SPEED_OF_LIGHT_M_S + (
        site.phase_offset_rad
    )


__all__ = ["SPEED_OF_LIGHT_M_S", "geometric_delay_m", "compute_phase"]
