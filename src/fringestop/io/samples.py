"""
io.samples
==========

Load an ordered sequence of interferometer samples from disk.

Two encodings are understood, chosen by file extension:

Text (``.txt``, ``.tsv``, ``.dat``, ``.csv``)
    One sample per line: ``<timestamp_seconds> <amplitude> <phase_degrees>``.
    Fields are separated by whitespace or commas; lines starting with ``#``
    are comments. This is exactly what ``write_ascii`` produces.

Binary (any other extension)
    Packed little-endian records of 24 bytes (``RECORD_DTYPE``)::

        int64   timestamp_us   microseconds since the Unix epoch (UTC)
        float64 amplitude
        float64 phase          radians

    This is exactly what ``write_binary`` produces.

Samples are returned in file order. Any problem (missing file, unparsable
text, truncated records, no samples at all) raises ``SampleLoadError``.
"""

from __future__ import annotations

import os
from typing import Union

import numpy as np
import pandas as pd

from fringestop.core.model import SampleSet

__all__ = [
    "RECORD_DTYPE",
    "TEXT_EXTENSIONS",
    "SampleLoadError",
    "load_samples",
]

RECORD_DTYPE = np.dtype(
    [("timestamp_us", "<i8"), ("amplitude", "<f8"), ("phase", "<f8")]
)

TEXT_EXTENSIONS = (".txt", ".tsv", ".dat", ".csv")


class SampleLoadError(RuntimeError):
    """Raised when a sample file is missing, unreadable or empty."""


def _is_text(path: str) -> bool:
    return os.path.splitext(path)[1].lower() in TEXT_EXTENSIONS


def _load_text(path: str) -> SampleSet:
    try:
        df = pd.read_csv(
            path,
            sep=r"[\s,]+",
            engine="python",
            comment="#",
            header=None,
            names=["t_s", "amplitude", "phase_deg"],
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError:
        raise SampleLoadError(f"No samples in {path}") from None
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise SampleLoadError(f"Cannot parse {path}: {e}") from e

    # coerce and reject rows with missing or non-numeric fields
    num = df.apply(pd.to_numeric, errors="coerce")
    bad = num.isna().any(axis=1)
    if bool(bad.any()):
        first = int(np.flatnonzero(bad.to_numpy())[0])
        raise SampleLoadError(
            f"Cannot parse {path}: row {first + 1} is not "
            "'<timestamp_seconds> <amplitude> <phase_degrees>'"
        )

    t_us = np.rint(num["t_s"].to_numpy(dtype=float) * 1e6).astype(np.int64)
    return SampleSet(
        timestamp_us=t_us,
        amplitude=num["amplitude"].to_numpy(dtype=float),
        phase=np.deg2rad(num["phase_deg"].to_numpy(dtype=float)),
    )


def _load_binary(path: str) -> SampleSet:
    size = os.path.getsize(path)
    if size % RECORD_DTYPE.itemsize:
        raise SampleLoadError(
            f"Cannot parse {path}: {size} bytes is not a whole number of "
            f"{RECORD_DTYPE.itemsize}-byte records"
        )
    rec = np.fromfile(path, dtype=RECORD_DTYPE)
    return SampleSet(
        timestamp_us=rec["timestamp_us"].astype(np.int64),
        amplitude=rec["amplitude"].astype(float),
        phase=rec["phase"].astype(float),
    )


def load_samples(path: Union[str, os.PathLike]) -> SampleSet:
    """
    Load samples from ``path``.

    Parameters
    ----------
    path : str or PathLike
        Text or binary sample file (see module docstring).

    Returns
    -------
    SampleSet
        At least one sample, in file order.

    Raises
    ------
    SampleLoadError
        The file does not exist, cannot be decoded, or holds no samples.
    """
    p = os.fspath(path)
    if not os.path.isfile(p):
        raise SampleLoadError(f"Sample file not found: {p}")

    try:
        samples = _load_text(p) if _is_text(p) else _load_binary(p)
    except OSError as e:
        raise SampleLoadError(f"Cannot read {p}: {e}") from e

    if len(samples) == 0:
        raise SampleLoadError(f"No samples in {p}")
    return samples
