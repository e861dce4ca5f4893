"""
correct_example.py
==================

Purpose
-------
Minimal example showing how to use `fringestop.core` to fringe-stop a short
synthetic observation of a source transiting an east-west baseline.

What this example does
----------------------
1) Builds the site and the phase reference position from plain text, the
   same way the command-line driver does.
2) Simulates one hour of samples whose observed phase is the geometric phase
   of a source 0.05 deg away from the reference position, plus noise.
3) Fringe-stops the samples against the reference position and prints a short
   summary of observed, modelled and residual phases.

Usage
-----
Run the example:

    python examples/correct_example.py

The closed-form sidereal time backend is used, so no IERS tables are needed.
"""

import math

import numpy as np

from fringestop.core.angles import wrap_phase
from fringestop.core.corrector import correct_samples
from fringestop.core.ephemeris import compute_direction
from fringestop.core.model import SampleSet, SkyPosition
from fringestop.core.parsing import parse_site, parse_sky_position
from fringestop.core.phase_model import compute_phase

# 1) Site: <Long> <Lat> <BlnEW> <BlnNS> <Freq> <phi>, reference on Orion A.
site = parse_site("149.55 -30.31 100 0 1420 0", name="Narrabri")
reference = parse_sky_position("05:35:17.3", "-05:23:28")

# 2) One sample every 10 s for an hour around 2004-12-01T13:00:00Z.
t0_us = 1_101_906_000_000_000
timestamps = t0_us + np.arange(360, dtype=np.int64) * 10_000_000
true_source = SkyPosition(reference.ra_rad, reference.dec_rad + math.radians(0.05))
true_phase = compute_phase(
    compute_direction(timestamps, true_source, site, backend="gmst"), site
)
rng = np.random.default_rng(2004)
observed = wrap_phase(true_phase + rng.normal(0.0, 0.05, timestamps.size))
samples = SampleSet(
    timestamp_us=timestamps,
    amplitude=np.ones(timestamps.size),
    phase=observed,
)

# 3) Fringe-stop and summarise.
result = correct_samples(samples, reference, site, backend="gmst")

print(f"Samples:               {len(result)}")
print(f"Observed phase spread: {np.ptp(result.observed_phase):.3f} rad")
print(
    "Model phase range:     "
    f"{result.predicted_phase.min():.1f} .. {result.predicted_phase.max():.1f} rad"
)
print(f"Residual phase spread: {np.ptp(result.residual_phase):.3f} rad")
print(f"First residual:        {math.degrees(result.residual_phase[0]):.2f} deg")
