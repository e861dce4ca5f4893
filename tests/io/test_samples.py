from __future__ import annotations

import math

import numpy as np
import pytest

from fringestop.io.samples import RECORD_DTYPE, SampleLoadError, load_samples


def _write_records(path, ts, amp, ph):
    rec = np.empty(len(ts), dtype=RECORD_DTYPE)
    rec["timestamp_us"] = ts
    rec["amplitude"] = amp
    rec["phase"] = ph
    rec.tofile(str(path))


def test_binary_records_in_file_order(tmp_path, t0_us):
    p = tmp_path / "obs.out"
    ts = [t0_us + 2_000_000, t0_us, t0_us + 1_000_000]
    _write_records(p, ts, [1.0, 2.0, 3.0], [0.1, -0.2, math.pi])
    s = load_samples(p)
    assert RECORD_DTYPE.itemsize == 24
    assert s.timestamp_us.tolist() == ts
    assert s.timestamp_us.dtype == np.int64
    np.testing.assert_array_equal(s.amplitude, [1.0, 2.0, 3.0])
    np.testing.assert_array_equal(s.phase, [0.1, -0.2, math.pi])


def test_text_samples_with_comments_and_commas(tmp_path):
    p = tmp_path / "obs.txt"
    p.write_text(
        "# t_s amplitude phase_deg\n"
        "1101906000.000001 1.5 90\n"
        "\n"
        "1101906001.25,2.0,-180\n"
    )
    s = load_samples(str(p))
    assert s.timestamp_us.tolist() == [1_101_906_000_000_001, 1_101_906_001_250_000]
    np.testing.assert_allclose(s.amplitude, [1.5, 2.0])
    np.testing.assert_allclose(s.phase, [math.pi / 2, -math.pi])


@pytest.mark.parametrize(
    "name, content, match",
    [
        ("bad.txt", "1101906000 1.0 ten\n", "row 1"),
        ("short.txt", "1101906000 1.0 0\n1101906001 1.0\n", "row 2"),
        ("empty.txt", "", "No samples"),
        ("comments.txt", "# nothing here\n", "No samples"),
    ],
)
def test_bad_text_files(tmp_path, name, content, match):
    p = tmp_path / name
    p.write_text(content)
    with pytest.raises(SampleLoadError, match=match):
        load_samples(p)


def test_truncated_binary(tmp_path, t0_us):
    p = tmp_path / "obs.out"
    _write_records(p, [t0_us], [1.0], [0.0])
    with open(p, "ab") as f:
        f.write(b"\x00")
    with pytest.raises(SampleLoadError, match="24-byte records"):
        load_samples(p)


def test_empty_binary(tmp_path):
    p = tmp_path / "obs.out"
    p.write_bytes(b"")
    with pytest.raises(SampleLoadError, match="No samples"):
        load_samples(p)


def test_missing_file(tmp_path):
    with pytest.raises(SampleLoadError, match="not found"):
        load_samples(tmp_path / "missing.out")
