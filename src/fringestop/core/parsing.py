from __future__ import annotations

"""
parsing.py
==========
Turn user input into ``SkyPosition`` and ``ObserverSite`` objects.

Site input
----------
Six tokens, in this order::

    <Long> <Lat> <BlnEW> <BlnNS> <Freq> <phi>

- Long: longitude in degrees, East positive, within [-180, 360].
- Lat: latitude in degrees, North positive, within [-90, 90].
- BlnEW / BlnNS: baseline components in metres.
- Freq: observing frequency in MHz, > 0.
- phi: instrumental phase offset in degrees, within [-180, 180].

Sky position input
------------------
- RA: sexagesimal (``12:30:00`` or ``12h30m00s``) is read as HOURS; a plain
  decimal number is read as DEGREES.
- Dec: degrees, sexagesimal (``-30:00:00``, ``-30d00m00s``) or decimal.

Parsing of sexagesimal strings is delegated to ``astropy.coordinates.Angle``.
All failures raise a ``ValueError`` subclass naming the offending field.
"""

import math
from typing import Any, Mapping, Sequence, Union

import astropy.units as u
from astropy.coordinates import Angle

from .model import ObserverSite, SkyPosition

SITE_FIELDS = ("Long", "Lat", "BlnEW", "BlnNS", "Freq", "phi")


class SiteParseError(ValueError):
    """Raised when site or baseline parameters cannot be parsed or validated."""


class SourceParseError(ValueError):
    """Raised when a sky position cannot be parsed or validated."""


def _to_float(field: str, value: Any, error_cls=SiteParseError) -> float:
    try:
        x = float(value)
    except (TypeError, ValueError):
        raise error_cls(f"{field}: expected a number, got {value!r}") from None
    if not math.isfinite(x):
        raise error_cls(f"{field}: must be finite, got {value!r}")
    return x


def _check_range(field: str, x: float, lo: float, hi: float, error_cls) -> None:
    if not (lo <= x <= hi):
        raise error_cls(f"{field}: {x} outside the valid range [{lo}, {hi}]")


def _build_site(
    longitude_deg: Any,
    latitude_deg: Any,
    baseline_ew_m: Any,
    baseline_ns_m: Any,
    frequency_mhz: Any,
    phase_offset_deg: Any,
    baseline_up_m: Any = 0.0,
    name: str = "Unknown",
) -> ObserverSite:
    lon = _to_float("Long", longitude_deg)
    lat = _to_float("Lat", latitude_deg)
    b_ew = _to_float("BlnEW", baseline_ew_m)
    b_ns = _to_float("BlnNS", baseline_ns_m)
    freq = _to_float("Freq", frequency_mhz)
    phi = _to_float("phi", phase_offset_deg)
    b_up = _to_float("BlnUp", baseline_up_m)

    _check_range("Long", lon, -180.0, 360.0, SiteParseError)
    _check_range("Lat", lat, -90.0, 90.0, SiteParseError)
    _check_range("phi", phi, -180.0, 180.0, SiteParseError)
    if freq <= 0:
        raise SiteParseError(f"Freq: must be > 0 MHz, got {freq}")

    return ObserverSite(
        longitude_rad=math.radians(lon),
        latitude_rad=math.radians(lat),
        baseline_ew_m=b_ew,
        baseline_ns_m=b_ns,
        frequency_hz=freq * 1e6,
        phase_offset_rad=math.radians(phi),
        baseline_up_m=b_up,
        name=str(name),
    )


def parse_site(tokens: Union[str, Sequence[str]], name: str = "Unknown") -> ObserverSite:
    """Parse ``<Long> <Lat> <BlnEW> <BlnNS> <Freq> <phi>`` into an ObserverSite."""
    parts = tokens.split() if isinstance(tokens, str) else [str(t) for t in tokens]
    if len(parts) != len(SITE_FIELDS):
        raise SiteParseError(
            f"Expected {len(SITE_FIELDS)} site values "
            f"({' '.join(SITE_FIELDS)}), got {len(parts)}"
        )
    return _build_site(*parts, name=name)


def site_from_mapping(cfg: Mapping[str, Any]) -> ObserverSite:
    """Build an ObserverSite from a ``[site]`` configuration table."""
    required = (
        "longitude_deg",
        "latitude_deg",
        "baseline_ew_m",
        "baseline_ns_m",
        "frequency_mhz",
    )
    missing = [k for k in required if k not in cfg]
    if missing:
        raise SiteParseError(f"Missing site parameters: {', '.join(missing)}")
    return _build_site(
        cfg["longitude_deg"],
        cfg["latitude_deg"],
        cfg["baseline_ew_m"],
        cfg["baseline_ns_m"],
        cfg["frequency_mhz"],
        cfg.get("phase_offset_deg", 0.0),
        baseline_up_m=cfg.get("baseline_up_m", 0.0),
        name=cfg.get("name", "Unknown"),
    )


def _is_sexagesimal(text: str) -> bool:
    t = text.strip().lower()
    return any(c in t for c in (":", "h", "d", "m", "s", " "))


def _parse_angle(text: Any, unit, field: str):
    try:
        return Angle(str(text).strip(), unit=unit)
    except Exception:
        raise SourceParseError(f"{field}: cannot parse angle {text!r}") from None


def parse_sky_position(ra_text: Any, dec_text: Any, flux: float = 1.0) -> SkyPosition:
    """Parse a right ascension / declination pair into a SkyPosition."""
    ra_str = str(ra_text).strip()
    dec_str = str(dec_text).strip()
    if not ra_str or not dec_str:
        raise SourceParseError("RA and Dec must both be given")

    if _is_sexagesimal(ra_str):
        ra = _parse_angle(ra_str, u.hourangle, "RA")
    else:
        ra = _parse_angle(_to_float("RA", ra_str, SourceParseError), u.deg, "RA")
    dec = _parse_angle(dec_str, u.deg, "Dec")

    ra_rad = float(ra.to_value(u.rad))
    dec_rad = float(dec.to_value(u.rad))
    if not (math.isfinite(ra_rad) and math.isfinite(dec_rad)):
        raise SourceParseError(f"Non-finite sky position: {ra_str} {dec_str}")
    if abs(dec_rad) > math.pi / 2 + 1e-12:
        raise SourceParseError(f"Dec: {dec_str} outside [-90, 90] degrees")

    return SkyPosition(
        ra_rad=ra_rad % (2.0 * math.pi),
        dec_rad=dec_rad,
        flux=_to_float("flux", flux, SourceParseError),
    )


def sky_from_mapping(cfg: Mapping[str, Any]) -> SkyPosition:
    """Build a SkyPosition from a ``[source]`` configuration table."""
    if "ra" not in cfg or "dec" not in cfg:
        raise SourceParseError("Source configuration needs both 'ra' and 'dec'")
    return parse_sky_position(cfg["ra"], cfg["dec"], cfg.get("flux", 1.0))


__all__ = [
    "SITE_FIELDS",
    "SiteParseError",
    "SourceParseError",
    "parse_site",
    "site_from_mapping",
    "parse_sky_position",
    "sky_from_mapping",
]
