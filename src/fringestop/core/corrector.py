from __future__ import annotations

"""
corrector.py
============
Per-sample fringe-stopping pass.

For every sample, in input order:

1) topocentric direction of the reference position at the sample time;
2) predicted phase for that direction and the site geometry;
3) ``residual = observed - predicted``;
4) residual reduced to (-pi, pi].

Samples are independent of each other. The pass is evaluated column-wise
with numpy, which keeps each result in the slot of its input sample. The
input ``SampleSet`` is left untouched; observed, predicted and residual
phases are all returned.
"""

from typing import Dict, Iterable, Tuple, Union

import numpy as np

from .angles import wrap_phase
from .ephemeris import compute_direction
from .model import CorrectionResult, ObserverSite, Sample, SampleSet, SkyPosition
from .phase_model import compute_phase

_US_PER_HOUR = 3_600_000_000.0

SERIES_TITLES = ("Observed Phases", "Modelled Phases", "Result")


def correct_samples(
    samples: Union[SampleSet, Iterable[Sample]],
    sky: SkyPosition,
    site: ObserverSite,
    backend: str = "astropy",
    kind: str = "mean",
) -> CorrectionResult:
    """Fringe-stop ``samples`` against the reference position ``sky``.

    Parameters
    ----------
    samples : SampleSet or iterable of Sample
        Observed data in acquisition order. Must not be empty.
    sky : SkyPosition
        Phase reference position.
    site : ObserverSite
        Station location and interferometer geometry.
    backend, kind : str
        Sidereal time settings, see ``ephemeris.local_sidereal_time``.

    Returns
    -------
    CorrectionResult
        Same length and order as the input. Non-finite timestamps or
        geometry give NaN residuals rather than an exception.

    Raises
    ------
    ValueError
        If there are no samples.
    """
    data = samples if isinstance(samples, SampleSet) else SampleSet.from_samples(samples)
    if len(data) == 0:
        raise ValueError("Cannot correct an empty sample sequence")

    direction = compute_direction(data.timestamp_us, sky, site, backend, kind)
    predicted = np.asarray(compute_phase(direction, site), dtype=float)
    residual = wrap_phase(data.phase - predicted)

    return CorrectionResult(
        timestamp_us=data.timestamp_us.copy(),
        amplitude=data.amplitude.copy(),
        observed_phase=data.phase.copy(),
        predicted_phase=predicted,
        residual_phase=np.asarray(residual, dtype=float),
    )


def phase_series(result: CorrectionResult) -> Dict[str, Tuple[np.ndarray, np.ndarray]]:
    """
    Three labelled (time in hours, phase in radians) series for display.

    The model series is reduced to (-pi, pi] so all three share one axis
    range; the result object itself keeps the unwrapped model phase.
    """
    hours = np.asarray(result.timestamp_us, dtype=float) / _US_PER_HOUR
    observed, modelled, residual = SERIES_TITLES
    return {
        observed: (hours, np.array(result.observed_phase, dtype=float)),
        modelled: (hours, np.asarray(wrap_phase(result.predicted_phase), dtype=float)),
        residual: (hours, np.array(result.residual_phase, dtype=float)),
    }


__all__ = ["SERIES_TITLES", "correct_samples", "phase_series"]
