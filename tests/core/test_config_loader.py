from __future__ import annotations

import pytest

from fringestop.core.config_loader import (
    DEFAULTS,
    apply_sets,
    dump_effective_config,
    load_run_config,
    load_toml,
    merge_dicts,
    parse_scalar,
)


def test_defaults_only():
    cfg = load_run_config()
    assert cfg["ephemeris"]["backend"] == "astropy"
    assert cfg["output"]["binary"] == "rotate.out"
    assert cfg["output"]["ascii"] == "rotate.txt"
    # DEFAULTS must not be mutated by a run
    cfg["output"]["outdir"] = "elsewhere"
    assert DEFAULTS["output"]["outdir"] == "."


def test_precedence_file_cli_set(tmp_path):
    cfg_file = tmp_path / "run.toml"
    cfg_file.write_text(
        '[source]\nra = "01:00:00"\ndec = "10"\n'
        "[site]\nlongitude_deg = 10.0\nfrequency_mhz = 100.0\n"
        '[output]\ndisplay = "png"\n'
    )
    cfg = load_run_config(
        str(cfg_file),
        cli_values={"site": {"frequency_mhz": 200.0}},
        set_overrides=["site.frequency_mhz=300", "ephemeris.backend=gmst"],
    )
    assert cfg["source"]["ra"] == "01:00:00"
    assert cfg["site"]["longitude_deg"] == 10.0
    assert cfg["site"]["frequency_mhz"] == 300
    assert cfg["site"]["name"] == "Unknown"
    assert cfg["ephemeris"]["backend"] == "gmst"
    assert cfg["output"]["display"] == "png"
    assert cfg["output"]["ascii"] == "rotate.txt"


def test_missing_and_invalid_files(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_run_config(str(tmp_path / "nope.toml"))
    bad = tmp_path / "bad.toml"
    bad.write_text("[site\nlongitude_deg = ")
    with pytest.raises(ValueError, match="Invalid TOML"):
        load_run_config(str(bad))


def test_apply_sets_creates_tables_and_rejects_malformed():
    cfg = apply_sets({}, ["a.b.c=1.5", "flag=true", "name=Narrabri"])
    assert cfg == {"a": {"b": {"c": 1.5}}, "flag": True, "name": "Narrabri"}
    with pytest.raises(ValueError, match="key=value"):
        apply_sets({}, ["no_equals_sign"])


@pytest.mark.parametrize(
    "text, value",
    [("true", True), ("False", False), ("42", 42), ("-3", -3), ("1e3", 1000.0),
     ("2.5", 2.5), ("png", "png"), ("-05:23:28", "-05:23:28")],
)
def test_parse_scalar(text, value):
    out = parse_scalar(text)
    assert out == value
    assert type(out) is type(value)


def test_merge_dicts_is_deep_and_pure():
    a = {"x": {"y": 1, "z": 2}, "k": 1}
    b = {"x": {"y": 3}}
    out = merge_dicts(a, b)
    assert out == {"x": {"y": 3, "z": 2}, "k": 1}
    assert a["x"]["y"] == 1


def test_dump_round_trips_through_toml(tmp_path):
    cfg = load_run_config(cli_values={"source": {"ra": "05:00:00", "flux": None}})
    text = dump_effective_config(cfg)
    p = tmp_path / "dump.toml"
    p.write_text(text)
    back = load_toml(str(p))
    assert back["source"] == {"ra": "05:00:00"}
    assert back["output"]["binary"] == "rotate.out"
    assert back["ephemeris"]["iers_auto_download"] is False
