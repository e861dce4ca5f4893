#!/usr/bin/env python3
"""
Fringe-stop two-element interferometer data against a phase reference position.

This CLI is a thin driver around `fringestop.core`. It takes complex data
(amplitude and phase per timestamp), computes the phase a static source at the
nominated reference position would produce on the given baseline, subtracts it
from the observed phase, and writes the residual ("stopped") phase.

-------------------------------------------------------------------------------
Key features
-------------------------------------------------------------------------------
- Positional arguments compatible with `sacrotate`.
- Optional TOML configuration file and `--set table.key=value` overrides.
- Residuals written as dense binary records (`rotate.out`) and as text lines
  `<timestamp_seconds> <amplitude> <residual_degrees>` (`rotate.txt`).
- Three-panel display of observed, modelled and residual phases on screen or
  to a PostScript/PNG/PDF file.
- A plain-text run log under --log-dir.

-------------------------------------------------------------------------------
Command-line usage examples
-------------------------------------------------------------------------------
1) Minimal run, plot on screen:
   python scripts/fringe_stop_cli.py 05:35:17.3 -05:23:28 data/orion.out \
       149.55 -30.31 100 0 1420 0

2) Write the plot to a PNG instead of opening a window:
   python scripts/fringe_stop_cli.py 05:35:17.3 -05:23:28 data/orion.out \
       149.55 -30.31 100 0 1420 0 --display png --savefile phases.png

3) Use the closed-form sidereal time (no IERS tables needed):
   python scripts/fringe_stop_cli.py 83.82 -5.39 data/orion.txt \
       149.55 -30.31 100 0 1420 12.5 --backend gmst

4) Take everything from a configuration file:
   python scripts/fringe_stop_cli.py --config config/narrabri.toml

5) Configuration file plus overrides:
   python scripts/fringe_stop_cli.py --config config/narrabri.toml \
       --set site.phase_offset_deg=-45 --set output.display=none

6) Write results under a custom output directory:
   python scripts/fringe_stop_cli.py --config config/narrabri.toml \
       --outdir run_42

7) Print the merged configuration and exit:
   python scripts/fringe_stop_cli.py --config config/narrabri.toml \
       --dump-effective-config

8) Show only this example block and exit:
   python scripts/fringe_stop_cli.py --examples

-------------------------------------------------------------------------------
Notes
-------------------------------------------------------------------------------
- Precedence: defaults < --config file < positional arguments < options
  < --set overrides.
- Bad sky position, bad site parameters, or an unreadable/empty data file
  abort the run before any computation (exit status 1).
- Samples whose residual comes out non-finite are kept and reported as a
  warning.
"""

from __future__ import annotations

import argparse
import os
import re
import sys
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Tuple

from fringestop.core.config_loader import (
    dump_effective_config,
    load_run_config,
)
from fringestop.core.corrector import correct_samples, phase_series
from fringestop.core.ephemeris import BACKENDS
from fringestop.core.parsing import (
    SiteParseError,
    SourceParseError,
    site_from_mapping,
    sky_from_mapping,
)
from fringestop.io.samples import SampleLoadError, load_samples
from fringestop.io.writers import write_results
from fringestop.plotting import DISPLAYS, plot_phase_series

POSITIONAL = ("RA", "Dec", "File", "Long", "Lat", "BlnEW", "BlnNS", "Freq", "phi")

# argparse reads "-05:23:28" as an unknown option; a trailing space makes it
# positional and is stripped again right after parsing.
_NEGATIVE_ARG = re.compile(r"^-\d")

USAGE = """
This program takes complex data generated by "saciq" and performs
fringe stopping by calculating the expected phases for a nominated
phase reference position, for the specific instrument, and subtracting
these phases from the actual observed data.

fringe_stop_cli.py <RA> <Dec> <File> <Long> <Lat> <BlnEW> <BlnNS> <Freq> <phi>
<RA>\tRight ascension of the phase reference position
<Dec>\tDeclination of the phase reference position
<File>\tData file name, containing complex data from saciq
<Long>\tlongitude, in degrees, East is +ve, West is -ve
<Lat>\tlatitude, in degrees, North is +ve, South is -ve
<BlnEW>\tbaseline, East-West component, in metres
<BlnNS>\tbaseline, North-South component, in metres
<Freq>\tFrequency, in MHz
<phi>\tphase offset, in degrees, -180 to 180, set to 0.0 if unsure
"""


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------
def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="fringe_stop_cli",
        description="Fringe-stop interferometer phases against a reference position.",
        add_help=True,
    )
    p.add_argument(
        "positional",
        nargs="*",
        metavar="ARG",
        help="<RA> <Dec> <File> <Long> <Lat> <BlnEW> <BlnNS> <Freq> <phi>",
    )
    p.add_argument(
        "--config",
        type=str,
        default=None,
        help="TOML configuration file providing any of the run parameters.",
    )
    p.add_argument(
        "--set",
        action="append",
        default=[],
        help="Override config key=value, e.g. site.frequency_mhz=1420 (repeatable).",
    )
    p.add_argument(
        "--backend",
        choices=BACKENDS,
        default=None,
        help="Sidereal time backend (default: astropy).",
    )
    p.add_argument(
        "--display",
        choices=DISPLAYS,
        default=None,
        help="Where to draw the phase panels (default: screen).",
    )
    p.add_argument(
        "--savefile",
        default=None,
        help="Output file for ps/png/pdf displays.",
    )
    p.add_argument(
        "--outdir",
        default=None,
        help="Directory for rotate.out / rotate.txt (default: current directory).",
    )
    p.add_argument(
        "--log-dir",
        default="logs",
        help="Directory where the run log is created; empty string disables it.",
    )
    p.add_argument(
        "--dump-effective-config",
        action="store_true",
        help="Print the merged configuration and exit.",
    )
    p.add_argument(
        "--examples", action="store_true", help="Show usage examples and exit."
    )
    return p


def usage() -> None:
    print(USAGE, file=sys.stderr)


def extract_examples_from_docstring() -> Tuple[str, str]:
    """
    Return (title, body) of the 'Command-line usage examples' section of the
    module docstring. The section ends at the next line of ten or more '-'.
    """
    doc = __doc__ or ""
    title = "Command-line usage examples"
    start_idx = doc.find(title)
    if start_idx == -1:
        return title, "No examples available."

    block = doc[start_idx:].splitlines()
    body = []
    # block[1] is the separator under the title
    for line in block[2:]:
        if "-" * 10 in line:
            break
        body.append(line.rstrip())
    return title, "\n".join(body).strip()


def _cli_values(args: argparse.Namespace) -> Dict[str, Any]:
    """Map positional arguments and explicit options onto config tables."""
    out: Dict[str, Any] = {}
    if args.positional:
        ra, dec, fname, lon, lat, b_ew, b_ns, freq, phi = args.positional
        out["source"] = {"ra": ra, "dec": dec}
        out["input"] = {"file": fname}
        out["site"] = {
            "longitude_deg": lon,
            "latitude_deg": lat,
            "baseline_ew_m": b_ew,
            "baseline_ns_m": b_ns,
            "frequency_mhz": freq,
            "phase_offset_deg": phi,
        }
    if args.backend is not None:
        out.setdefault("ephemeris", {})["backend"] = args.backend
    output: Dict[str, Any] = {}
    if args.display is not None:
        output["display"] = args.display
    if args.savefile is not None:
        output["savefile"] = args.savefile
    if args.outdir is not None:
        output["outdir"] = args.outdir
    if output:
        out["output"] = output
    return out


def _init_logger(log_dir: str) -> Tuple[Optional[str], Callable[[str], None]]:
    if not log_dir:
        return None, lambda msg: None
    os.makedirs(log_dir, exist_ok=True)
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%SZ")
    path = os.path.join(log_dir, f"run_{stamp}.log")

    def _log(msg: str) -> None:
        with open(path, "a", encoding="utf-8") as f:
            f.write(msg.rstrip() + "\n")

    return path, _log


def _log_header(log, cfg: Dict[str, Any]) -> None:
    now = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    log(f"[{now}] Run started")
    log("")
    log("----- Effective configuration -----")
    log(dump_effective_config(cfg).rstrip())
    log("-----------------------------------")
    log("")


def _configure_iers(auto_download: bool) -> None:
    from astropy.utils import iers

    iers.conf.auto_download = bool(auto_download)


def _fail(log, msg: str, show_usage: bool = False) -> int:
    if show_usage:
        usage()
    print(f"[ERROR] {msg}", file=sys.stderr)
    log(f"ERROR: {msg}")
    return 1


# ---------------------------------------------------------------------------
# Main entry
# ---------------------------------------------------------------------------
def main(argv: Optional[list[str]] = None) -> int:
    parser = build_arg_parser()
    raw = list(sys.argv[1:] if argv is None else argv)
    args = parser.parse_args([a + " " if _NEGATIVE_ARG.match(a) else a for a in raw])
    args.positional = [a.strip() for a in args.positional]

    if args.examples:
        title, body = extract_examples_from_docstring()
        line = "-" * len(title)
        print(f"\n{line}\n{title}\n{line}\n")
        print(f"{body}\n")
        return 0

    n_pos = len(args.positional)
    if n_pos not in (0, len(POSITIONAL)) or (n_pos == 0 and not args.config):
        usage()
        return 1

    try:
        cfg = load_run_config(args.config, _cli_values(args), args.set)
    except (FileNotFoundError, ValueError) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1

    if args.dump_effective_config:
        print(dump_effective_config(cfg).rstrip())
        return 0

    log_path, log = _init_logger(args.log_dir)
    _log_header(log, cfg)
    if log_path:
        print(f"Log file: {log_path}")

    out_cfg = cfg.get("output", {})
    display = str(out_cfg.get("display", "screen")).lower()
    savefile = out_cfg.get("savefile") or None
    if display not in DISPLAYS:
        return _fail(log, f"Unknown display {display!r}; expected one of {DISPLAYS}")
    if display not in ("screen", "none") and not savefile:
        return _fail(log, f"Display {display!r} needs --savefile")

    eph_cfg = cfg.get("ephemeris", {})
    backend = str(eph_cfg.get("backend", "astropy"))
    kind = str(eph_cfg.get("sidereal", "mean"))
    if backend not in BACKENDS:
        return _fail(log, f"Unsupported ephemeris backend: {backend}")
    if backend == "astropy":
        _configure_iers(eph_cfg.get("iers_auto_download", False))

    # Reference position; the flux is a placeholder, only the direction matters
    try:
        sky = sky_from_mapping(cfg.get("source", {}))
    except SourceParseError as e:
        return _fail(log, f"Bad reference position: {e}", show_usage=True)

    fname = str(cfg.get("input", {}).get("file", ""))
    try:
        samples = load_samples(fname)
    except SampleLoadError as e:
        usage()
        print(f'I just tried to load "{fname}" and had no luck.', file=sys.stderr)
        return _fail(log, str(e))
    msg = f"Loaded {len(samples)} from {fname}"
    print(msg)
    log(msg)

    try:
        site = site_from_mapping(cfg.get("site", {}))
    except SiteParseError as e:
        return _fail(log, f"Bad site parameters: {e}", show_usage=True)

    try:
        result = correct_samples(samples, sky, site, backend=backend, kind=kind)
    except ValueError as e:
        return _fail(log, str(e))

    n_bad = result.nonfinite_count()
    if n_bad:
        msg = f"[WARN] {n_bad}/{len(result)} samples have non-finite residual phase"
        print(msg)
        log(msg)

    outdir = str(out_cfg.get("outdir", ".") or ".")
    bin_path, txt_path = write_results(
        outdir,
        result,
        binary_name=str(out_cfg.get("binary", "rotate.out")),
        ascii_name=str(out_cfg.get("ascii", "rotate.txt")),
    )
    for path in (bin_path, txt_path):
        msg = f"Wrote {len(result)} samples to {path}"
        print(msg)
        log(msg)

    try:
        written = plot_phase_series(
            phase_series(result), display=display, savefile=savefile
        )
    except (OSError, ValueError) as e:
        return _fail(log, f"Cannot draw phases: {e}")
    if written:
        msg = f"Plot: {written}"
        print(msg)
        log(msg)

    log("Done.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
