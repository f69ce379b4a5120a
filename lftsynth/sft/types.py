"""Dataclasses shared across the loader, assembly and writer layers."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Dict, List

import numpy as np

from lftsynth.util.errors import InvalidArgument


@dataclass(frozen=True)
class SFT:
    """One Short Fourier Transform.

    Attributes
    ----------
    name:
        Detector prefix (e.g. ``"H1"``); carried through to the LFT name.
    epoch:
        GPS start time of the underlying time stretch, in seconds.
    f0:
        Frequency of the first bin [Hz].
    delta_f:
        Bin spacing [Hz], strictly positive. ``t_sft = 1/delta_f``.
    data:
        1-D complex array of ``num_bins`` frequency bins. Treated as read-only.
    sample_units:
        Physical unit tag, passed through unchanged.
    """

    name: str
    epoch: float
    f0: float
    delta_f: float
    data: np.ndarray = field(repr=False, compare=False)
    sample_units: str = ""

    def __post_init__(self) -> None:
        arr = np.asarray(self.data)
        if not np.iscomplexobj(arr):
            arr = arr.astype(np.complex128)
        if arr.ndim != 1:
            raise InvalidArgument(f"SFT data must be 1-D, got shape {arr.shape}")
        object.__setattr__(self, "data", arr)

    @property
    def num_bins(self) -> int:
        return int(self.data.size)

    @property
    def t_sft(self) -> float:
        return 1.0 / self.delta_f

    def with_data(self, data: np.ndarray) -> "SFT":
        """Copy of this SFT's metadata around a new data buffer."""
        return dataclasses.replace(self, data=data)


SFTVector = List[SFT]
MultiSFTVector = Dict[str, List[SFT]]


@dataclass(frozen=True)
class LongTransform:
    """Fourier transform over the full observation span, in centered bin ordering.

    ``delta_f`` is ``1/t_span`` where ``t_span`` is the rounded number of time
    samples times the SFT sampling interval, so the frequency grid and the
    time grid are consistent with each other.
    """

    name: str
    epoch: float
    f0: float
    delta_f: float
    data: np.ndarray = field(repr=False, compare=False)
    sample_units: str = ""

    @property
    def num_bins(self) -> int:
        return int(self.data.size)

    @property
    def t_span(self) -> float:
        return 1.0 / self.delta_f

    def as_sft(self) -> SFT:
        """View this LFT as a (very long) SFT, e.g. for writing to disk."""
        return SFT(
            name=self.name,
            epoch=self.epoch,
            f0=self.f0,
            delta_f=self.delta_f,
            data=self.data,
            sample_units=self.sample_units,
        )
