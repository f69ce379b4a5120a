import numpy as np

from lftsynth.assembly.engine import sft_vector_to_lft
from lftsynth.config import AssemblyConfig
from lftsynth.sft.demod import ssb_reindex_multi, ssb_reindex_sft, ssb_reindex_sfts
from lftsynth.sft.types import SFT


def _centered_sft(epoch: float, n: int = 5) -> SFT:
    return SFT(name="H1", epoch=epoch, f0=50.0, delta_f=0.5, data=np.arange(n, dtype=np.complex128))


def test_reindex_moves_centered_bins_to_native_order() -> None:
    sft = _centered_sft(0.0)
    out = ssb_reindex_sft(sft)
    assert out.data.real.tolist() == [2, 3, 4, 0, 1]
    assert np.array_equal(out.data, np.fft.ifftshift(sft.data))


def test_reindex_keeps_metadata_and_leaves_input_untouched() -> None:
    sft = _centered_sft(10.0, n=4)
    out = ssb_reindex_sft(sft)
    assert (out.name, out.epoch, out.f0, out.delta_f) == (sft.name, sft.epoch, sft.f0, sft.delta_f)
    assert sft.data.real.tolist() == [0, 1, 2, 3]
    assert out.data is not sft.data


def test_reindex_over_vectors_and_detectors() -> None:
    sfts = [_centered_sft(0.0), _centered_sft(2.0)]
    assert len(ssb_reindex_sfts(sfts)) == 2
    multi = ssb_reindex_multi({"H1": sfts, "L1": sfts[:1]})
    assert sorted(multi) == ["H1", "L1"]
    assert len(multi["L1"]) == 1


def test_reindexed_single_sft_round_trips_to_centered_bins() -> None:
    sft = _centered_sft(0.0, n=7)
    lft = sft_vector_to_lft(ssb_reindex_sfts([sft]), AssemblyConfig(fft_backend="numpy"))
    assert np.allclose(lft.data, sft.data)
