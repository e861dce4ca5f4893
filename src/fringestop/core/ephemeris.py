from __future__ import annotations

"""
ephemeris.py
============
Topocentric direction of a fixed sky position.

The transform has two steps:

1) Local sidereal time from the absolute timestamp and the site longitude.
   Two backends are available:
   - ``"astropy"``: ``astropy.time.Time.sidereal_time`` (UT1 from the IERS
     tables astropy ships, mean or apparent sidereal time).
   - ``"gmst"``: closed-form Greenwich mean sidereal time polynomial
     (Meeus, Astronomical Algorithms, eq. 12.4) with UT1 approximated by UTC.
     Pure numpy, accurate to about a second of time.
2) Hour angle ``H = LST - RA`` reduced to (-pi, pi], then the spherical
   transform (H, dec, lat) -> (az, el) with azimuth measured from North
   through East.

Timestamps are integer (or float) microseconds since the Unix epoch, UTC.
Scalars give scalar results and arrays give arrays. NaN inputs propagate to
NaN outputs; callers are expected to validate upstream.
"""

from typing import Union

import numpy as np
import astropy.units as u
from astropy.time import Time

from .angles import wrap_0_2pi, wrap_phase
from .model import ObserverSite, SkyPosition, TopocentricDirection

BACKENDS = ("astropy", "gmst")
SIDEREAL_KINDS = ("mean", "apparent")

# 2000-01-01T12:00:00 UTC in microseconds since the Unix epoch.
_J2000_UNIX_US = 946_728_000_000_000
_US_PER_DAY = 86_400_000_000.0

# Length of the mean sidereal day in seconds.
SIDEREAL_DAY_S = 86164.0905

TimeLike = Union[int, float, np.ndarray]


def _lst_gmst(timestamp_us: TimeLike, longitude_rad: float) -> np.ndarray:
    ts = np.asarray(timestamp_us)
    if np.issubdtype(ts.dtype, np.integer):
        # integer difference first to keep microsecond precision
        d = (ts.astype(np.int64) - _J2000_UNIX_US) / _US_PER_DAY
    else:
        d = (ts.astype(float) - float(_J2000_UNIX_US)) / _US_PER_DAY
    t = d / 36525.0
    gmst_deg = (
        280.46061837
        + 360.98564736629 * d
        + 0.000387933 * t * t
        - (t * t * t) / 38710000.0
    )
    return np.deg2rad(np.mod(gmst_deg, 360.0)) + longitude_rad


def _lst_astropy(
    timestamp_us: TimeLike, longitude_rad: float, kind: str
) -> np.ndarray:
    ts = np.atleast_1d(np.asarray(timestamp_us))
    out = np.full(ts.shape, np.nan)
    if np.issubdtype(ts.dtype, np.integer):
        ok = np.ones(ts.shape, dtype=bool)
        good = ts.astype(np.int64)
        whole = (good // 1_000_000).astype(float)
        frac = (good % 1_000_000) / 1e6
    else:
        # Time rejects non-finite values; those samples stay NaN
        ok = np.isfinite(ts)
        good = ts[ok].astype(float)
        whole = np.floor(good / 1e6)
        frac = good / 1e6 - whole

    if ok.any():
        obstime = Time(whole, frac, format="unix", scale="utc")
        lst = obstime.sidereal_time(kind, longitude=longitude_rad * u.rad)
        out[ok] = np.ravel(lst.to_value(u.rad))
    return out.reshape(np.shape(timestamp_us))


def local_sidereal_time(
    timestamp_us: TimeLike,
    longitude_rad: float,
    backend: str = "astropy",
    kind: str = "mean",
):
    """Return the local sidereal time in radians, reduced to [0, 2*pi).

    Parameters
    ----------
    timestamp_us : int, float or ndarray
        Microseconds since the Unix epoch (UTC).
    longitude_rad : float
        Site longitude, east positive.
    backend : {"astropy", "gmst"}
        Sidereal time implementation.
    kind : {"mean", "apparent"}
        Sidereal time flavour. ``"apparent"`` needs the astropy backend.

    Raises
    ------
    ValueError
        Unknown backend or kind, or apparent time requested from ``"gmst"``.
    """
    be = (backend or "astropy").lower()
    if be not in BACKENDS:
        raise ValueError(f"Unsupported ephemeris backend: {backend}")
    if kind not in SIDEREAL_KINDS:
        raise ValueError(f"Unsupported sidereal time kind: {kind}")

    if be == "gmst":
        if kind != "mean":
            raise ValueError("The gmst backend only provides mean sidereal time")
        lst = _lst_gmst(timestamp_us, longitude_rad)
    else:
        lst = _lst_astropy(timestamp_us, longitude_rad, kind)

    out = wrap_0_2pi(lst)
    if np.ndim(timestamp_us) == 0:
        return float(out)
    return out


def hour_angle(lst_rad, ra_rad):
    """Hour angle ``lst - ra`` in (-pi, pi]."""
    return wrap_phase(np.asarray(lst_rad, dtype=float) - ra_rad)


def equatorial_to_horizontal(ha_rad, dec_rad, lat_rad):
    """
    Spherical transform from (hour angle, declination) to (azimuth, elevation).

    Azimuth is measured from North towards East and reduced to [0, 2*pi);
    elevation lies in [-pi/2, pi/2].
    """
    ha = np.asarray(ha_rad, dtype=float)
    sin_dec, cos_dec = np.sin(dec_rad), np.cos(dec_rad)
    sin_lat, cos_lat = np.sin(lat_rad), np.cos(lat_rad)
    cos_ha = np.cos(ha)

    # East, North and Up components of the unit vector towards the source
    east = -cos_dec * np.sin(ha)
    north = cos_lat * sin_dec - sin_lat * cos_dec * cos_ha
    up = sin_lat * sin_dec + cos_lat * cos_dec * cos_ha

    az = wrap_0_2pi(np.arctan2(east, north))
    el = np.arcsin(np.clip(up, -1.0, 1.0))
    if np.ndim(ha_rad) == 0 and np.ndim(dec_rad) == 0 and np.ndim(lat_rad) == 0:
        return float(az), float(el)
    return az, el


def compute_direction(
    timestamp_us: TimeLike,
    sky: SkyPosition,
    site: ObserverSite,
    backend: str = "astropy",
    kind: str = "mean",
) -> TopocentricDirection:
    """Return the azimuth/elevation of ``sky`` seen from ``site`` at ``timestamp_us``.

    Pure function; scalar timestamps give float fields, arrays give arrays of
    the same shape.
    """
    lst = local_sidereal_time(timestamp_us, site.longitude_rad, backend, kind)
    ha = hour_angle(lst, sky.ra_rad)
    az, el = equatorial_to_horizontal(ha, sky.dec_rad, site.latitude_rad)
    if np.ndim(timestamp_us) == 0:
        return TopocentricDirection(azimuth_rad=float(az), elevation_rad=float(el))
    return TopocentricDirection(azimuth_rad=az, elevation_rad=el)


__all__ = [
    "BACKENDS",
    "SIDEREAL_KINDS",
    "SIDEREAL_DAY_S",
    "local_sidereal_time",
    "hour_angle",
    "equatorial_to_horizontal",
    "compute_direction",
]
