"""
Configuration constants and environment parsing for lftsynth.

All LFTSYNTH_* environment variables are parsed here and exported as
module-level defaults. They only seed :class:`AssemblyConfig`; the assembly
itself reads nothing but the config object it is handed.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

import numpy as np


def _int_env(name: str, default: int) -> int:
    """Parse a positive integer from environment, returning default on missing/invalid."""
    val = os.getenv(name)
    if not val:
        return default
    try:
        return max(1, int(float(val)))
    except ValueError:
        return default


# ---------------------------------------------------------------------------
# FFT backend
# ---------------------------------------------------------------------------
FFT_BACKENDS = ("auto", "scipy", "numpy")

FFT_BACKEND: str = os.getenv("LFTSYNTH_FFT_BACKEND", "auto").strip().lower() or "auto"
"""Transform backend: scipy.fft when available ("auto"), or forced "scipy"/"numpy"."""

FFT_WORKERS: int = _int_env("LFTSYNTH_FFT_WORKERS", 1)
"""Threads scipy.fft may use for a single batched transform."""


# ---------------------------------------------------------------------------
# Size guard
# ---------------------------------------------------------------------------
MAX_TIME_SAMPLES: int = _int_env("LFTSYNTH_MAX_TIME_SAMPLES", 2_147_483_647)
"""Upper bound on the long time series length (INT4 max by default)."""


@dataclass(frozen=True)
class AssemblyConfig:
    """Per-call settings for one SFT->LFT assembly.

    debug:
        Emit per-SFT placement records and the gap summary at DEBUG level.
    fft_backend:
        One of ``FFT_BACKENDS``.
    fft_workers:
        Worker threads for scipy.fft; ignored by the numpy backend.
    max_time_samples:
        Refuse to allocate a long time series longer than this.
    dtype:
        Complex dtype of the long buffer and the output LFT.
    logger:
        Logger to report progress on; defaults to ``lftsynth.assembly.engine``.
    """

    debug: bool = False
    fft_backend: str = FFT_BACKEND
    fft_workers: Optional[int] = FFT_WORKERS
    max_time_samples: int = MAX_TIME_SAMPLES
    dtype: type = np.complex128
    logger: Optional[logging.Logger] = None
