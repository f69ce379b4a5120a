"""SFT discovery and loading.

``find_sfts`` scans files matching a glob pattern and keeps the frames that
satisfy the time/detector constraints, without decoding any bin data.
``load_sfts`` then reads the catalogued frames, optionally restricted to a
frequency band, and groups them per detector in ascending epoch order.
"""

from __future__ import annotations

import glob
import os
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Mapping, Optional, Sequence, Tuple

import numpy as np

from lftsynth.assembly.grid import round_half_up
from lftsynth.io.sftfile import SFTFrame, iter_sft_headers, read_sft_frame
from lftsynth.sft.types import SFT, MultiSFTVector
from lftsynth.util.errors import InvalidArgument
from lftsynth.util.logging import get_logger
from lftsynth.util.time import gps_to_utc


@dataclass(frozen=True)
class SFTConstraints:
    """Frame selection: keep frames with ``min_start_time <= epoch < max_end_time``."""

    min_start_time: Optional[float] = None
    max_end_time: Optional[float] = None
    detector: Optional[str] = None

    def accepts(self, frame: SFTFrame) -> bool:
        epoch = frame.header.epoch
        if self.min_start_time is not None and epoch < self.min_start_time:
            return False
        if self.max_end_time is not None and epoch >= self.max_end_time:
            return False
        if self.detector is not None and frame.header.detector != self.detector:
            return False
        return True


@dataclass
class SFTCatalog:
    frames: List[SFTFrame] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.frames)

    def detectors(self) -> List[str]:
        return sorted({frame.header.detector for frame in self.frames})


def _expand_pattern(pattern: str) -> List[str]:
    paths: List[str] = []
    for part in pattern.split(";"):
        part = part.strip()
        if not part:
            continue
        paths.extend(sorted(glob.glob(os.path.expanduser(part))))
    # de-duplicate while keeping order
    return list(dict.fromkeys(paths))


def find_sfts(pattern: str, constraints: Optional[SFTConstraints] = None) -> SFTCatalog:
    """Catalog all SFT frames in files matching ``pattern`` (``;``-separated globs).

    Frames are sorted by epoch, then detector. An empty catalog is not an
    error here; callers decide what "no data" means for them.
    """
    if not pattern or not pattern.strip():
        raise InvalidArgument("empty SFT file pattern")
    constraints = constraints or SFTConstraints()
    logger = get_logger(__name__)
    logger.debug("Finding all SFTs matching '%s' ...", pattern)
    frames: List[SFTFrame] = []
    for path in _expand_pattern(pattern):
        if not os.path.isfile(path):
            continue
        frames.extend(frame for frame in iter_sft_headers(path) if constraints.accepts(frame))
    frames.sort(key=lambda f: (f.header.epoch, f.header.detector))
    logger.debug("found %d SFTs", len(frames), extra={"num_sfts": len(frames)})
    return SFTCatalog(frames)


def _band_slice(frame: SFTFrame, fmin: Optional[float], fmax: Optional[float]) -> Tuple[int, int]:
    """Bin range ``[lo, hi)`` of ``frame`` covering ``[fmin, fmax]`` by nearest-bin rounding."""
    header = frame.header
    first = header.first_frequency_index
    lo = 0 if fmin is None else round_half_up(fmin * header.tbase) - first
    hi = header.nsamples if fmax is None else round_half_up(fmax * header.tbase) - first + 1
    if lo < 0 or hi > header.nsamples or lo >= hi:
        have = (header.f0, header.f0 + (header.nsamples - 1) * header.delta_f)
        raise InvalidArgument(
            f"{frame.path.name}: requested band [{fmin}, {fmax}] Hz not inside SFT band "
            f"[{have[0]:.6f}, {have[1]:.6f}] Hz"
        )
    return lo, hi


def load_sfts(
    catalog: SFTCatalog,
    fmin: Optional[float] = None,
    fmax: Optional[float] = None,
    *,
    verify_crc: bool = True,
) -> MultiSFTVector:
    """Read every catalogued SFT, restricted to ``[fmin, fmax]`` when given."""
    if len(catalog) == 0:
        raise InvalidArgument("empty SFT catalog")
    if fmin is not None and fmax is not None and fmax < fmin:
        raise InvalidArgument(f"fmax={fmax} is below fmin={fmin}")
    logger = get_logger(__name__)
    logger.debug("Loading %d SFTs ...", len(catalog))
    multi: MultiSFTVector = defaultdict(list)
    for frame in catalog.frames:
        lo, hi = _band_slice(frame, fmin, fmax)
        sft = read_sft_frame(frame, verify_crc=verify_crc)
        if (lo, hi) != (0, sft.num_bins):
            sft = SFT(
                name=sft.name,
                epoch=sft.epoch,
                f0=(frame.header.first_frequency_index + lo) / frame.header.tbase,
                delta_f=sft.delta_f,
                data=np.array(sft.data[lo:hi], copy=True),
                sample_units=sft.sample_units,
            )
        multi[sft.name].append(sft)
    logger.debug("done.")
    return dict(multi)


def describe_input(
    multi: Mapping[str, Sequence[SFT]],
    *,
    cmdline: str = "",
    now: Optional[datetime] = None,
) -> str:
    """Human-readable summary of the loaded data, written as the output comment."""
    if not multi or not any(multi.values()):
        raise InvalidArgument("no SFTs to describe")
    now = now or datetime.now(timezone.utc)
    all_sfts = [sft for sfts in multi.values() for sft in sfts]
    start = min(sft.epoch for sft in all_sfts)
    end = max(sft.epoch + sft.t_sft for sft in all_sfts)
    t_span = end - start
    per_det = ", ".join(f"{det}:{len(sfts)}" for det, sfts in multi.items())
    start_utc = gps_to_utc(start).strftime("%a %b %d %H:%M:%S %Y")
    lines = [
        "",
        f"Commandline: {cmdline}",
        f"%% Date: {now.strftime('%a %b %d %H:%M:%S %Y')}",
        f"%% Loaded SFTs: [ {per_det} ]",
        f"%% Start GPS time tStart = {start:12.3f}    ({start_utc} GMT)",
        f"%% Total time spanned    = {t_span:12.3f} s  ({t_span / 3600:.1f} hours)",
        "",
    ]
    return "\n".join(lines)
