from __future__ import annotations

import math

import matplotlib

matplotlib.use("Agg")  # headless: no GUI assumptions in tests

import numpy as np
import pytest
from astropy.utils import iers

from fringestop.core.model import ObserverSite, SampleSet, SkyPosition

# Use the IERS-B table bundled with astropy; never reach for the network.
iers.conf.auto_download = False

# 2004-12-01T13:00:00Z, well inside the bundled IERS-B range.
T0_US = 1_101_906_000_000_000


# ---------- Shared fixtures ----------


@pytest.fixture
def t0_us() -> int:
    return T0_US


@pytest.fixture
def site() -> ObserverSite:
    """Horizontal 100 m east-west baseline at 1000 MHz, no phase offset."""
    return ObserverSite(
        longitude_rad=math.radians(149.0),
        latitude_rad=math.radians(-30.0),
        baseline_ew_m=100.0,
        baseline_ns_m=0.0,
        frequency_hz=1000e6,
        phase_offset_rad=0.0,
        name="Test site",
    )


@pytest.fixture
def sky() -> SkyPosition:
    """Orion A."""
    return SkyPosition(ra_rad=math.radians(83.822), dec_rad=math.radians(-5.391))


@pytest.fixture
def samples() -> SampleSet:
    """Half an hour of samples every 30 s with a slowly drifting phase."""
    n = 60
    ts = T0_US + np.arange(n, dtype=np.int64) * 30_000_000
    return SampleSet(
        timestamp_us=ts,
        amplitude=np.linspace(1.0, 2.0, n),
        phase=np.linspace(-3.0, 3.0, n),
    )

