"""Per-detector SSB reindexing applied to SFTs before LFT assembly.

SFTs are stored in centered bin ordering; the assembly inverse-FFTs them and
therefore needs transform-native ordering. This step does exactly that
reindexing on copies of the data. It does not multiply bins by a
time-delay phase factor, so it performs no true Doppler demodulation into the
solar-system barycentre. It also does not rescale by ``1/num_bins``; that
factor is applied once by the inverse transform.
"""

from __future__ import annotations

from typing import Mapping, Sequence

import numpy as np

from lftsynth.dsp.reorder import reorder_centered_to_native
from lftsynth.sft.types import SFT, MultiSFTVector, SFTVector


def ssb_reindex_sft(sft: SFT) -> SFT:
    data = np.array(sft.data, copy=True)
    return sft.with_data(reorder_centered_to_native(data))


def ssb_reindex_sfts(sfts: Sequence[SFT]) -> SFTVector:
    return [ssb_reindex_sft(sft) for sft in sfts]


def ssb_reindex_multi(multi: Mapping[str, Sequence[SFT]]) -> MultiSFTVector:
    return {detector: ssb_reindex_sfts(sfts) for detector, sfts in multi.items()}
