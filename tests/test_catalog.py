from datetime import datetime, timezone

import numpy as np
import pytest

from lftsynth.io.catalog import SFTConstraints, describe_input, find_sfts, load_sfts
from lftsynth.io.sftfile import write_sft_file
from lftsynth.sft.types import SFT
from lftsynth.util.errors import InvalidArgument

T0 = 1_000_000_000


def _sft(epoch: float, name: str = "H1") -> SFT:
    data = (np.arange(6) + 1j).astype(np.complex64)
    return SFT(name=name, epoch=epoch, f0=100.0, delta_f=0.125, data=data)


def _write(tmp_path, fname: str, epochs, name: str = "H1") -> None:
    write_sft_file(tmp_path / fname, [_sft(e, name) for e in epochs])


def test_find_sfts_sorts_frames_across_files(tmp_path) -> None:
    _write(tmp_path, "a.sft", [T0 + 16, T0 + 24])
    _write(tmp_path, "b.sft", [T0, T0 + 8])

    catalog = find_sfts(f"{tmp_path}/b*.sft;{tmp_path}/a*.sft")
    assert len(catalog) == 4
    assert [f.header.epoch for f in catalog.frames] == [T0, T0 + 8, T0 + 16, T0 + 24]
    assert catalog.detectors() == ["H1"]


def test_duplicate_patterns_do_not_duplicate_frames(tmp_path) -> None:
    _write(tmp_path, "a.sft", [T0])
    catalog = find_sfts(f"{tmp_path}/*.sft;{tmp_path}/a.sft")
    assert len(catalog) == 1


def test_constraints_select_on_time_and_detector(tmp_path) -> None:
    _write(tmp_path, "h1.sft", [T0, T0 + 8, T0 + 16])
    _write(tmp_path, "l1.sft", [T0], name="L1")

    catalog = find_sfts(f"{tmp_path}/*.sft", SFTConstraints(min_start_time=T0 + 8, max_end_time=T0 + 16))
    assert [f.header.epoch for f in catalog.frames] == [T0 + 8]

    only_l1 = find_sfts(f"{tmp_path}/*.sft", SFTConstraints(detector="L1"))
    assert only_l1.detectors() == ["L1"]


def test_empty_pattern_is_an_error_but_no_match_is_not(tmp_path) -> None:
    with pytest.raises(InvalidArgument):
        find_sfts("  ")
    assert len(find_sfts(f"{tmp_path}/nothing-*.sft")) == 0
    with pytest.raises(InvalidArgument):
        load_sfts(find_sfts(f"{tmp_path}/nothing-*.sft"))


def test_load_groups_by_detector(tmp_path) -> None:
    _write(tmp_path, "h1.sft", [T0, T0 + 8])
    _write(tmp_path, "l1.sft", [T0 + 4], name="L1")

    multi = load_sfts(find_sfts(f"{tmp_path}/*.sft"))
    assert sorted(multi) == ["H1", "L1"]
    assert [s.epoch for s in multi["H1"]] == [T0, T0 + 8]
    assert multi["H1"][0].num_bins == 6


def test_load_extracts_nearest_bin_band(tmp_path) -> None:
    _write(tmp_path, "h1.sft", [T0])
    catalog = find_sfts(f"{tmp_path}/*.sft")

    (sft,) = load_sfts(catalog, fmin=100.125, fmax=100.375)["H1"]
    assert sft.num_bins == 3
    assert sft.f0 == pytest.approx(100.125)
    assert sft.data.real.tolist() == [1, 2, 3]

    (sft,) = load_sfts(catalog, fmin=100.14, fmax=100.36)["H1"]
    assert sft.f0 == pytest.approx(100.125)
    assert sft.num_bins == 3


def test_load_rejects_band_outside_sfts(tmp_path) -> None:
    _write(tmp_path, "h1.sft", [T0])
    catalog = find_sfts(f"{tmp_path}/*.sft")
    with pytest.raises(InvalidArgument):
        load_sfts(catalog, fmin=99.0, fmax=100.25)
    with pytest.raises(InvalidArgument):
        load_sfts(catalog, fmin=100.25, fmax=101.0)
    with pytest.raises(InvalidArgument):
        load_sfts(catalog, fmin=100.5, fmax=100.25)


def test_describe_input_summarises_span() -> None:
    multi = {"H1": [_sft(T0), _sft(T0 + 8)]}
    text = describe_input(multi, cmdline="compute-lft -D x", now=datetime(2020, 1, 1, tzinfo=timezone.utc))

    assert "Commandline: compute-lft -D x" in text
    assert "%% Date: Wed Jan 01 00:00:00 2020" in text
    assert "%% Loaded SFTs: [ H1:2 ]" in text
    assert "(Wed Sep 14 01:46:25 2011 GMT)" in text
    assert "16.000 s" in text

    with pytest.raises(InvalidArgument):
        describe_input({})
