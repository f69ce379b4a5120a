"""Sampling-grid parameters derived from an SFT vector."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from lftsynth.sft.types import SFT
from lftsynth.util.errors import InvalidArgument


def round_half_up(x: float) -> int:
    """Round to the nearest integer, ties towards +inf."""
    return int(math.floor(x + 0.5))


@dataclass(frozen=True)
class LFTGrid:
    """Time/frequency grid of the long transform.

    ``t_span_raw`` is the observation span computed from the first and last
    SFT epochs. ``num_time_samples`` rounds ``t_span_raw / delta_t`` to the
    nearest sample, and ``t_span`` is recomputed from that count so that
    ``t_span / num_time_samples == delta_t``.

    The sample count and each SFT's ``bin_offset`` are rounded separately.
    When the last SFT starts within float rounding of a half-sample boundary,
    its offset can round up while the span rounds down, so
    ``bin_offset(last) + num_bins == num_time_samples + 1``. Such a vector is
    rejected when the last SFT is placed; the grid is never stretched to fit.
    """

    num_sfts: int
    num_bins: int
    delta_f: float
    f0: float
    delta_t: float
    start_time: float
    end_time: float
    t_span_raw: float
    num_time_samples: int
    t_span: float

    @classmethod
    def from_sfts(cls, sfts: Sequence[SFT]) -> "LFTGrid":
        if not sfts:
            raise InvalidArgument("empty SFT input")
        first = sfts[0]
        num_bins = first.num_bins
        delta_f = float(first.delta_f)
        if num_bins <= 0:
            raise InvalidArgument("SFTs have zero frequency bins")
        if not (math.isfinite(delta_f) and delta_f > 0.0):
            raise InvalidArgument(f"SFT delta_f must be finite and > 0, got {delta_f}")
        t_sft = 1.0 / delta_f
        delta_t = 1.0 / (num_bins * delta_f)
        if not (math.isfinite(delta_t) and delta_t > 0.0):
            raise InvalidArgument(f"{num_bins} bins at delta_f={delta_f} give no usable sampling interval")

        start_time = float(first.epoch)
        end_time = float(sfts[-1].epoch) + t_sft
        t_span_raw = end_time - start_time
        if not math.isfinite(t_span_raw):
            raise InvalidArgument(f"SFT epochs give a non-finite span: start={start_time} end={end_time}")
        samples = t_span_raw / delta_t
        if not math.isfinite(samples):
            raise InvalidArgument(f"span {t_span_raw} s at dt={delta_t} s overflows the sample count")
        num_time_samples = round_half_up(samples)
        if num_time_samples <= 0:
            raise InvalidArgument(
                f"SFT epochs give a non-positive span: start={start_time} end={end_time}"
            )
        t_span = num_time_samples * delta_t

        return cls(
            num_sfts=len(sfts),
            num_bins=num_bins,
            delta_f=delta_f,
            f0=float(first.f0),
            delta_t=delta_t,
            start_time=start_time,
            end_time=end_time,
            t_span_raw=t_span_raw,
            num_time_samples=num_time_samples,
            t_span=t_span,
        )

    @property
    def t_sft(self) -> float:
        return 1.0 / self.delta_f

    @property
    def t_data(self) -> float:
        """Time actually covered by data, ignoring gaps and overlaps."""
        return self.num_sfts * self.t_sft

    @property
    def delta_f_out(self) -> float:
        return 1.0 / self.t_span

    def bin_offset(self, epoch: float) -> int:
        """Index in the long time series at which an SFT starting at ``epoch`` goes."""
        return round_half_up((float(epoch) - self.start_time) / self.delta_t)
