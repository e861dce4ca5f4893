"""
io.writers
==========

Persist the residual series of a correction pass.

What this module provides
-------------------------
- `write_binary(path, result)`: dense binary records, one per sample, using
  the same 24-byte layout `load_samples` reads (`RECORD_DTYPE`). The phase
  field holds the *residual* phase in radians, so the output can be fed back
  into another run.
- `write_ascii(path, result)`: one human-readable line per sample::

      <timestamp_seconds> <amplitude> <residual_degrees>

  separated by single spaces, no header. Timestamps carry six decimals so
  microseconds survive a round trip; non-finite values are written as "nan".
- `write_results(outdir, result, binary_name, ascii_name)`: both of the
  above into one directory, returning the two paths.

Both writers replace the target atomically: data goes to `path + ".tmp"`
first and is then moved over `path` with `os.replace`.
"""

from __future__ import annotations

import math
import os
from typing import IO, Callable, TextIO, Tuple

import numpy as np

from fringestop.core.model import CorrectionResult
from fringestop.io.samples import RECORD_DTYPE

__all__ = [
    "DEFAULT_BINARY_NAME",
    "DEFAULT_ASCII_NAME",
    "write_binary",
    "write_ascii",
    "write_results",
]

DEFAULT_BINARY_NAME = "rotate.out"
DEFAULT_ASCII_NAME = "rotate.txt"


def _replace_atomically(path: str, mode: str, fill: Callable[[IO], None]) -> None:
    """Write through `path + ".tmp"`, then move it over `path`.

    The temporary file is removed if writing fails.
    """
    tmp_path = f"{path}.tmp"
    kwargs = {} if "b" in mode else {"newline": "", "encoding": "utf-8"}
    try:
        with open(tmp_path, mode, **kwargs) as f:
            fill(f)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise


def write_binary(path: str, result: CorrectionResult) -> None:
    """
    Write one `RECORD_DTYPE` record per sample (timestamp, amplitude,
    residual phase in radians).
    """
    rec = np.empty(len(result), dtype=RECORD_DTYPE)
    rec["timestamp_us"] = result.timestamp_us
    rec["amplitude"] = result.amplitude
    rec["phase"] = result.residual_phase

    _replace_atomically(path, "wb", rec.tofile)


def _fmt_float(x: float, spec: str) -> str:
    if not math.isfinite(x):
        return "nan"
    return format(x, spec)


def _write_ascii_rows(f: TextIO, result: CorrectionResult) -> None:
    for row in result:
        fields = [
            _fmt_float(row.timestamp_us / 1e6, ".6f"),
            _fmt_float(row.amplitude, ".9g"),
            _fmt_float(math.degrees(row.residual_phase), ".6f"),
        ]
        f.write(" ".join(fields) + "\n")


def write_ascii(path: str, result: CorrectionResult) -> None:
    """Write `<timestamp_seconds> <amplitude> <residual_degrees>` lines."""
    _replace_atomically(path, "w", lambda f: _write_ascii_rows(f, result))


def write_results(
    outdir: str,
    result: CorrectionResult,
    binary_name: str = DEFAULT_BINARY_NAME,
    ascii_name: str = DEFAULT_ASCII_NAME,
) -> Tuple[str, str]:
    """
    Write both result files under `outdir` (created if missing).

    Returns
    -------
    (binary_path, ascii_path) : (str, str)
    """
    os.makedirs(outdir or ".", exist_ok=True)
    bin_path = os.path.join(outdir, binary_name)
    txt_path = os.path.join(outdir, ascii_name)
    write_binary(bin_path, result)
    write_ascii(txt_path, result)
    return bin_path, txt_path
