"""Assembly engine turning an SFT vector into one long Fourier transform.

The run is a strict sequence of states::

    INITIALIZED -> SEGMENTS_INVERSE_TRANSFORMED -> ASSEMBLED -> SYNTHESIZED -> DONE

Any exception moves the assembly to FAILED and is re-raised unchanged; no
partial LongTransform is ever returned.
"""

from __future__ import annotations

import enum
import logging
import math
import time
from typing import Dict, Mapping, Optional, Sequence

from lftsynth.assembly.buffer import LongBufferAssembler
from lftsynth.assembly.grid import LFTGrid
from lftsynth.assembly.synth import synthesize_lft
from lftsynth.config import AssemblyConfig
from lftsynth.dsp.fft import TransformPlan, inverse_transform_sfts
from lftsynth.sft.types import SFT, LongTransform
from lftsynth.util.errors import InvalidArgument, ResourceExhaustion
from lftsynth.util.logging import get_logger


class AssemblyState(str, enum.Enum):
    INITIALIZED = "initialized"
    SEGMENTS_INVERSE_TRANSFORMED = "segments_inverse_transformed"
    ASSEMBLED = "assembled"
    SYNTHESIZED = "synthesized"
    DONE = "done"
    FAILED = "failed"


_NEXT_STATE = {
    AssemblyState.INITIALIZED: AssemblyState.SEGMENTS_INVERSE_TRANSFORMED,
    AssemblyState.SEGMENTS_INVERSE_TRANSFORMED: AssemblyState.ASSEMBLED,
    AssemblyState.ASSEMBLED: AssemblyState.SYNTHESIZED,
    AssemblyState.SYNTHESIZED: AssemblyState.DONE,
}


def _same_float(a: float, b: float) -> bool:
    return math.isclose(a, b, rel_tol=1e-12, abs_tol=1e-12)


def validate_sft_vector(sfts: Optional[Sequence[SFT]]) -> None:
    """Reject SFT vectors the assembly cannot work with.

    Checks only what can be checked without allocating: non-empty input,
    non-empty bins, finite positive ``delta_f``, finite epochs, and that every SFT
    shares the first one's detector, ``delta_f``, ``num_bins``, ``f0`` and
    ``sample_units``. Ordering is not checked here; an SFT that lands
    outside the long buffer is rejected when it is placed.
    """
    if sfts is None or len(sfts) == 0:
        raise InvalidArgument("empty SFT input")
    first = sfts[0]
    if first.num_bins == 0:
        raise InvalidArgument(f"SFT 0 ({first.name} @ {first.epoch}) has zero frequency bins")
    if not (math.isfinite(first.delta_f) and first.delta_f > 0.0):
        raise InvalidArgument(f"SFT delta_f must be finite and > 0, got {first.delta_f}")
    if not math.isfinite(first.t_sft):
        raise InvalidArgument(f"SFT delta_f={first.delta_f} gives an infinite SFT duration")
    for idx, sft in enumerate(sfts):
        if sft.num_bins == 0:
            raise InvalidArgument(f"SFT {idx} ({sft.name} @ {sft.epoch}) has zero frequency bins")
        if not math.isfinite(sft.epoch):
            raise InvalidArgument(f"SFT {idx} has non-finite epoch {sft.epoch}")
        mismatched = []
        if sft.name != first.name:
            mismatched.append(f"name {sft.name!r} != {first.name!r}")
        if sft.num_bins != first.num_bins:
            mismatched.append(f"num_bins {sft.num_bins} != {first.num_bins}")
        if not _same_float(sft.delta_f, first.delta_f):
            mismatched.append(f"delta_f {sft.delta_f} != {first.delta_f}")
        if not _same_float(sft.f0, first.f0):
            mismatched.append(f"f0 {sft.f0} != {first.f0}")
        if sft.sample_units != first.sample_units:
            mismatched.append(f"sample_units {sft.sample_units!r} != {first.sample_units!r}")
        if mismatched:
            raise InvalidArgument(f"SFT {idx} does not match SFT 0: " + "; ".join(mismatched))


class LFTAssembly:
    """One SFT->LFT assembly for a single detector's SFT vector.

    The SFTs are borrowed read-only; the long time series is owned by the
    assembly for the duration of :meth:`run` and discarded afterwards.
    """

    def __init__(self, sfts: Sequence[SFT], config: Optional[AssemblyConfig] = None):
        self.config = config or AssemblyConfig()
        self.logger: logging.Logger = self.config.logger or get_logger(__name__)
        self.sfts = sfts
        self.state = AssemblyState.INITIALIZED
        self.grid: Optional[LFTGrid] = None
        self.gap_samples: Optional[int] = None
        self.result: Optional[LongTransform] = None

    def _advance(self, expected: AssemblyState) -> None:
        nxt = _NEXT_STATE.get(self.state)
        if nxt is not expected:
            raise InvalidArgument(f"illegal assembly transition {self.state.value} -> {expected.value}")
        self.state = nxt
        if self.config.debug:
            self.logger.debug("assembly state -> %s", nxt.value, extra={"state": nxt.value})

    def run(self) -> LongTransform:
        if self.state is not AssemblyState.INITIALIZED:
            raise InvalidArgument(f"assembly already ran (state={self.state.value})")
        t0 = time.perf_counter()
        try:
            result = self._run()
        except Exception:
            self.state = AssemblyState.FAILED
            raise
        duration_ms = (time.perf_counter() - t0) * 1000.0
        self.logger.info(
            "Built LFT %s: %d bins, deltaF=%.6g Hz from %d SFTs (%.1f ms)",
            result.name,
            result.num_bins,
            result.delta_f,
            len(self.sfts),
            duration_ms,
            extra={"num_sfts": len(self.sfts), "num_time_samples": result.num_bins, "duration_ms": duration_ms},
        )
        self.result = result
        return result

    def _run(self) -> LongTransform:
        cfg = self.config
        validate_sft_vector(self.sfts)
        grid = LFTGrid.from_sfts(self.sfts)
        if grid.num_time_samples > cfg.max_time_samples:
            raise ResourceExhaustion(
                f"LFT needs {grid.num_time_samples} time samples, limit is {cfg.max_time_samples}"
            )
        self.grid = grid
        detector = self.sfts[0].name
        self.logger.info(
            "Assembling %d SFTs from %s: Tsft=%.1f s, Tspan=%.1f s, %d time samples at dt=%.6g s",
            grid.num_sfts,
            detector,
            grid.t_sft,
            grid.t_span,
            grid.num_time_samples,
            grid.delta_t,
            extra={"detector": detector, "num_sfts": grid.num_sfts, "num_time_samples": grid.num_time_samples},
        )

        with TransformPlan(grid.num_bins, inverse=True, backend=cfg.fft_backend, workers=cfg.fft_workers) as plan:
            short_series = inverse_transform_sfts(self.sfts, plan)
        self._advance(AssemblyState.SEGMENTS_INVERSE_TRANSFORMED)

        assembler = LongBufferAssembler(grid, dtype=cfg.dtype)
        offsets = assembler.splice(self.sfts, short_series)
        del short_series
        self.gap_samples = assembler.gap_samples()
        if cfg.debug:
            for sft, bin0 in zip(self.sfts, offsets):
                self.logger.debug("SFT @ %.3f -> long bin %d", sft.epoch, bin0, extra={"detector": detector})
            self.logger.debug(
                "Long time series: %d of %d samples are gaps (Tdata=%.1f s)",
                self.gap_samples,
                grid.num_time_samples,
                grid.t_data,
                extra={"detector": detector, "num_time_samples": grid.num_time_samples},
            )
        long_buffer = assembler.release()
        self._advance(AssemblyState.ASSEMBLED)

        with TransformPlan(grid.num_time_samples, inverse=False, backend=cfg.fft_backend, workers=cfg.fft_workers) as plan:
            lft = synthesize_lft(long_buffer, grid, self.sfts[0], plan, dtype=cfg.dtype)
        del long_buffer
        self._advance(AssemblyState.SYNTHESIZED)

        self._advance(AssemblyState.DONE)
        return lft


def sft_vector_to_lft(sfts: Sequence[SFT], config: Optional[AssemblyConfig] = None) -> LongTransform:
    """Turn one detector's SFT vector into a long Fourier transform over its full span."""
    return LFTAssembly(sfts, config).run()


def multi_sft_vector_to_lft(
    multi: Mapping[str, Sequence[SFT]],
    config: Optional[AssemblyConfig] = None,
) -> Dict[str, LongTransform]:
    """Assemble one LFT per detector, one detector at a time.

    Detectors are processed independently; nothing is combined across them.
    The first failure aborts the whole call.
    """
    if not multi:
        raise InvalidArgument("empty multi-detector SFT input")
    return {detector: sft_vector_to_lft(sfts, config) for detector, sfts in multi.items()}
