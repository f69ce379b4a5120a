"""Forward transform of the assembled long time series into the output LFT."""

from __future__ import annotations

import numpy as np

from lftsynth.assembly.grid import LFTGrid
from lftsynth.dsp.fft import TransformPlan
from lftsynth.dsp.reorder import reorder_native_to_centered
from lftsynth.sft.types import SFT, LongTransform
from lftsynth.util.errors import InvalidArgument

LFT_NAME_SUFFIX = ":long Fourier transform"


def synthesize_lft(
    long_buffer: np.ndarray,
    grid: LFTGrid,
    first_sft: SFT,
    plan: TransformPlan,
    *,
    dtype=None,
) -> LongTransform:
    """FFT ``long_buffer`` (unnormalised), reorder to centered bins and attach metadata."""
    if plan.inverse:
        raise InvalidArgument("synthesize_lft needs a forward plan")
    if long_buffer.size != grid.num_time_samples:
        raise InvalidArgument(
            f"long buffer has {long_buffer.size} samples, grid expects {grid.num_time_samples}"
        )
    spectrum = plan.execute(long_buffer)
    if dtype is not None:
        spectrum = spectrum.astype(dtype, copy=False)
    reorder_native_to_centered(spectrum)
    return LongTransform(
        name=f"{first_sft.name}{LFT_NAME_SUFFIX}",
        epoch=grid.start_time,
        f0=first_sft.f0,
        delta_f=grid.delta_f_out,
        data=spectrum,
        sample_units=first_sft.sample_units,
    )
