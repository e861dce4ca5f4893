from __future__ import annotations

import math
from dataclasses import replace

import numpy as np
from hypothesis import given, strategies as st

from fringestop.core.model import ObserverSite, TopocentricDirection
from fringestop.core.phase_model import (
    SPEED_OF_LIGHT_M_S,
    compute_phase,
    geometric_delay_m,
)


def _turns_per_metre(site) -> float:
    return 2 * math.pi * site.frequency_hz / SPEED_OF_LIGHT_M_S


def test_source_on_the_east_horizon_sees_the_full_ew_baseline(site):
    d = TopocentricDirection(azimuth_rad=math.pi / 2, elevation_rad=0.0)
    assert math.isclose(geometric_delay_m(d, site), 100.0, rel_tol=1e-12)
    assert math.isclose(compute_phase(d, site), 100.0 * _turns_per_metre(site))


def test_north_south_baseline_projection(site):
    ns = replace(site, baseline_ew_m=0.0, baseline_ns_m=50.0)
    d = TopocentricDirection(azimuth_rad=0.0, elevation_rad=math.radians(60.0))
    # horizontal baselines are scaled by cos(el)
    assert math.isclose(geometric_delay_m(d, ns), 25.0, rel_tol=1e-12)


def test_phase_offset_is_added_unwrapped(site):
    shifted = replace(site, phase_offset_rad=math.radians(120.0))
    d = TopocentricDirection(azimuth_rad=1.0, elevation_rad=0.3)
    diff = compute_phase(d, shifted) - compute_phase(d, site)
    assert math.isclose(diff, math.radians(120.0), abs_tol=1e-9)


def test_model_phase_is_not_wrapped(site):
    d = TopocentricDirection(azimuth_rad=math.pi / 2, elevation_rad=0.0)
    assert compute_phase(d, site) > 2 * math.pi


def test_horizontal_baseline_sees_no_delay_at_zenith(site):
    for az in (0.0, 1.0, 2.5, 5.0):
        d = TopocentricDirection(azimuth_rad=az, elevation_rad=math.pi / 2)
        assert abs(compute_phase(d, site)) < 1e-6


@given(az=st.floats(min_value=0.0, max_value=2 * math.pi, exclude_max=True))
def test_zenith_phase_does_not_depend_on_azimuth(az):
    site = ObserverSite(
        longitude_rad=0.0,
        latitude_rad=0.0,
        baseline_ew_m=30.0,
        baseline_ns_m=-40.0,
        frequency_hz=1.4e9,
        phase_offset_rad=0.25,
        baseline_up_m=2.0,
    )
    d = TopocentricDirection(azimuth_rad=az, elevation_rad=math.pi / 2)
    expected = 2.0 * 2 * math.pi * 1.4e9 / SPEED_OF_LIGHT_M_S + 0.25
    assert math.isclose(compute_phase(d, site), expected, abs_tol=1e-6)


def test_array_directions(site):
    az = np.array([0.0, math.pi / 2, math.pi, 3 * math.pi / 2])
    d = TopocentricDirection(azimuth_rad=az, elevation_rad=np.zeros(4))
    phase = compute_phase(d, site)
    k = 100.0 * _turns_per_metre(site)
    np.testing.assert_allclose(phase, [0.0, k, 0.0, -k], atol=1e-9)
