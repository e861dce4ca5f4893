from __future__ import annotations

"""
config_loader.py
================
Run configuration for the fringe-stopping driver.

A configuration is a nested dict with the tables ``source``, ``input``,
``site``, ``ephemeris`` and ``output``. It is built by layering, lowest
precedence first:

1) ``DEFAULTS`` below;
2) an optional TOML file (``--config``);
3) values taken from positional command-line arguments;
4) ``--set table.key=value`` overrides.
"""

import copy
import os
from typing import Any, Dict, Iterable, Optional

try:
    import tomllib as toml  # py311+
except Exception:
    import tomli as toml  # fallback for older envs

import tomli_w

DEFAULTS: Dict[str, Any] = {
    "source": {},
    "input": {},
    "site": {
        "name": "Unknown",
        "baseline_up_m": 0.0,
        "phase_offset_deg": 0.0,
    },
    "ephemeris": {
        "backend": "astropy",
        "sidereal": "mean",
        "iers_auto_download": False,
    },
    "output": {
        "outdir": ".",
        "binary": "rotate.out",
        "ascii": "rotate.txt",
        "display": "screen",
        "savefile": "",
    },
}


def load_toml(path: str) -> Dict[str, Any]:
    with open(path, "rb") as f:
        return toml.load(f)


def merge_dicts(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(a)
    for k, v in b.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = merge_dicts(out[k], v)
        else:
            out[k] = v
    return out


def apply_sets(cfg: Dict[str, Any], sets: Iterable[str]) -> Dict[str, Any]:
    for item in sets:
        if "=" not in item:
            raise ValueError(f"--set requires key=value, got: {item}")
        key, val = item.split("=", 1)
        path = key.strip().split(".")
        cursor = cfg
        for p in path[:-1]:
            if p not in cursor or not isinstance(cursor[p], dict):
                cursor[p] = {}
            cursor = cursor[p]
        # parse bool, int, float, or keep string
        cursor[path[-1]] = parse_scalar(val.strip())
    return cfg


def parse_scalar(s: str):
    sl = s.lower()
    if sl in ("true", "false"):
        return sl == "true"
    try:
        if "." in s or "e" in sl:
            return float(s)
        return int(s)
    except Exception:
        return s


def load_run_config(
    config_path: Optional[str] = None,
    cli_values: Optional[Dict[str, Any]] = None,
    set_overrides: Iterable[str] = (),
) -> Dict[str, Any]:
    """Compose defaults, an optional TOML file, CLI values and ``--set`` items.

    Raises
    ------
    FileNotFoundError
        ``config_path`` is given but does not exist.
    ValueError
        The TOML file is invalid or a ``--set`` item is malformed.
    """
    cfg = copy.deepcopy(DEFAULTS)

    if config_path:
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Config file not found: {config_path}")
        try:
            file_cfg = load_toml(config_path)
        except toml.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML config: {config_path}\n{e}") from e
        cfg = merge_dicts(cfg, file_cfg)

    if cli_values:
        cfg = merge_dicts(cfg, cli_values)

    # Apply --set overrides last
    return apply_sets(cfg, set_overrides)


def dump_effective_config(cfg: Dict[str, Any]) -> str:
    return tomli_w.dumps(_drop_none(cfg))


def _drop_none(d: Dict[str, Any]) -> Dict[str, Any]:
    # TOML has no null
    out: Dict[str, Any] = {}
    for k, v in d.items():
        if isinstance(v, dict):
            out[k] = _drop_none(v)
        elif v is not None:
            out[k] = v
    return out


__all__ = [
    "DEFAULTS",
    "load_toml",
    "merge_dicts",
    "apply_sets",
    "parse_scalar",
    "load_run_config",
    "dump_effective_config",
]
