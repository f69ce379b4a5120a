"""Long time-series buffer that short inverse-FFTs are spliced into."""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import numpy as np

from lftsynth.assembly.grid import LFTGrid
from lftsynth.sft.types import SFT
from lftsynth.util.errors import InvalidArgument, ResourceExhaustion


def allocate_long_buffer(num_time_samples: int, dtype=np.complex128) -> np.ndarray:
    """Zero-initialised complex buffer, with allocation failure reported as ResourceExhaustion."""
    try:
        return np.zeros(int(num_time_samples), dtype=dtype)
    except MemoryError as exc:
        raise ResourceExhaustion(
            f"cannot allocate long time series of {num_time_samples} samples"
        ) from exc


class LongBufferAssembler:
    """Owns the zero-filled long time series for one assembly call.

    Each short time series is copied in at the sample offset implied by its
    epoch. Later placements overwrite earlier ones where spans overlap;
    samples that no SFT covers stay zero. There is no windowing across splice
    points.
    """

    def __init__(self, grid: LFTGrid, *, dtype=np.complex128):
        self.grid = grid
        self._data: Optional[np.ndarray] = allocate_long_buffer(grid.num_time_samples, dtype=dtype)
        self._placed: List[Tuple[int, int]] = []

    @property
    def data(self) -> np.ndarray:
        if self._data is None:
            raise InvalidArgument("long buffer has already been released")
        return self._data

    @property
    def placements(self) -> List[Tuple[int, int]]:
        """``(start, stop)`` sample ranges written so far, in placement order."""
        return list(self._placed)

    def place(self, epoch: float, samples: np.ndarray) -> int:
        buf = self.data
        bin0 = self.grid.bin_offset(epoch)
        stop = bin0 + int(samples.shape[-1])
        if bin0 < 0 or stop > buf.size:
            raise InvalidArgument(
                f"SFT at epoch {epoch} maps to samples [{bin0}, {stop}) outside [0, {buf.size})"
            )
        buf[bin0:stop] = samples
        self._placed.append((bin0, stop))
        return bin0

    def splice(self, sfts: Sequence[SFT], short_series: np.ndarray) -> List[int]:
        """Place every SFT's short time series in iteration order."""
        if len(sfts) != len(short_series):
            raise InvalidArgument(
                f"{len(sfts)} SFTs but {len(short_series)} short time series"
            )
        return [self.place(sft.epoch, series) for sft, series in zip(sfts, short_series)]

    def gap_samples(self) -> int:
        """Number of long-buffer samples not covered by any placement."""
        covered = 0
        cur_start, cur_stop = None, None
        for start, stop in sorted(self._placed):
            if cur_stop is None or start > cur_stop:
                if cur_stop is not None:
                    covered += cur_stop - cur_start
                cur_start, cur_stop = start, stop
            else:
                cur_stop = max(cur_stop, stop)
        if cur_stop is not None:
            covered += cur_stop - cur_start
        return self.grid.num_time_samples - covered

    def release(self) -> np.ndarray:
        """Hand the assembled buffer over to the caller."""
        buf = self.data
        self._data = None
        return buf
