from __future__ import annotations

"""
model.py
========
Data models shared across the fringe-stopping pipeline.

Everything here is an immutable dataclass. Site and source parameters are
passed explicitly to every function that needs them; nothing is cached in
module state.

Angles are in radians, baselines in metres, frequencies in hertz and
timestamps in integer microseconds since the Unix epoch (UTC).
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, Union

import numpy as np

ArrayLike = Union[float, np.ndarray]


# One acquisition record as produced by the loader.
@dataclass(frozen=True)
class Sample:
    # Microseconds since 1970-01-01T00:00:00Z.
    timestamp_us: int
    # Interferometer amplitude (arbitrary units).
    amplitude: float
    # Observed interferometer phase in radians.
    phase: float


@dataclass(frozen=True)
class SampleSet:
    """
    Ordered, column-oriented collection of samples.

    Order is acquisition order and is preserved by every operation in the
    package. The three arrays always have the same length.
    """

    timestamp_us: np.ndarray
    amplitude: np.ndarray
    phase: np.ndarray

    def __post_init__(self) -> None:
        ts = np.asarray(self.timestamp_us, dtype=np.int64)
        amp = np.asarray(self.amplitude, dtype=float)
        ph = np.asarray(self.phase, dtype=float)
        if not (ts.ndim == amp.ndim == ph.ndim == 1):
            raise ValueError("sample columns must be one-dimensional")
        if not (ts.size == amp.size == ph.size):
            raise ValueError(
                "sample columns differ in length: "
                f"{ts.size} timestamps, {amp.size} amplitudes, {ph.size} phases"
            )
        # frozen dataclass: normalise dtypes through object.__setattr__
        object.__setattr__(self, "timestamp_us", ts)
        object.__setattr__(self, "amplitude", amp)
        object.__setattr__(self, "phase", ph)

    @classmethod
    def from_samples(cls, samples: Iterable[Sample]) -> "SampleSet":
        rows = list(samples)
        return cls(
            timestamp_us=np.array([s.timestamp_us for s in rows], dtype=np.int64),
            amplitude=np.array([s.amplitude for s in rows], dtype=float),
            phase=np.array([s.phase for s in rows], dtype=float),
        )

    def __len__(self) -> int:
        return int(self.timestamp_us.size)

    def __iter__(self) -> Iterator[Sample]:
        for t, a, p in zip(self.timestamp_us, self.amplitude, self.phase):
            yield Sample(int(t), float(a), float(p))


# Fixed reference direction on the sky.
@dataclass(frozen=True)
class SkyPosition:
    # Right ascension in radians.
    ra_rad: float
    # Declination in radians.
    dec_rad: float
    # Placeholder brightness; only the direction is ever used.
    flux: float = 1.0


@dataclass(frozen=True)
class ObserverSite:
    """
    Receiving station and two-element interferometer geometry.

    Attributes
    ----------
    longitude_rad : float
        Geodetic longitude, east positive.
    latitude_rad : float
        Geodetic latitude, north positive.
    baseline_ew_m, baseline_ns_m : float
        Horizontal baseline components, east and north positive.
    frequency_hz : float
        Observing frequency.
    phase_offset_rad : float
        Constant instrumental phase added to every model phase.
    baseline_up_m : float, default 0.0
        Vertical baseline component, up positive.
    name : str
        Free-form label used in logs and plot titles.
    """

    longitude_rad: float
    latitude_rad: float
    baseline_ew_m: float
    baseline_ns_m: float
    frequency_hz: float
    phase_offset_rad: float
    baseline_up_m: float = 0.0
    name: str = "Unknown"


# Azimuth (North through East) and elevation, both in radians.
@dataclass(frozen=True)
class TopocentricDirection:
    azimuth_rad: ArrayLike
    elevation_rad: ArrayLike


@dataclass(frozen=True)
class CorrectedSample:
    """One fringe-stopped output row. Phases in radians."""

    timestamp_us: int
    amplitude: float
    observed_phase: float
    predicted_phase: float
    residual_phase: float


@dataclass(frozen=True)
class CorrectionResult:
    """
    Parallel arrays produced by a correction pass.

    ``predicted_phase`` is the unwrapped model phase; ``residual_phase`` is
    always in (-pi, pi] (or NaN for degenerate input).
    """

    timestamp_us: np.ndarray
    amplitude: np.ndarray
    observed_phase: np.ndarray
    predicted_phase: np.ndarray
    residual_phase: np.ndarray

    def __len__(self) -> int:
        return int(np.asarray(self.timestamp_us).size)

    def __iter__(self) -> Iterator[CorrectedSample]:
        for row in zip(
            self.timestamp_us,
            self.amplitude,
            self.observed_phase,
            self.predicted_phase,
            self.residual_phase,
        ):
            t, a, obs, pred, res = row
            yield CorrectedSample(int(t), float(a), float(obs), float(pred), float(res))

    def nonfinite_count(self) -> int:
        """Number of samples whose residual is NaN or infinite."""
        return int(np.count_nonzero(~np.isfinite(self.residual_phase)))


__all__ = [
    "Sample",
    "SampleSet",
    "SkyPosition",
    "ObserverSite",
    "TopocentricDirection",
    "CorrectedSample",
    "CorrectionResult",
]
