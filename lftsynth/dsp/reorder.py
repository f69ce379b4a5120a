"""Frequency-bin reordering between FFT-native and centered conventions.

Native (FFT library) ordering::

    f[0], f[1], ..., f[N/2], f[-(N-1)/2], ..., f[-2], f[-1]

Centered (SFT) ordering::

    f[-(N-1)/2], ..., f[-1], f[0], f[1], ..., f[N/2]

DC plus the positive frequencies occupy ``n_pos = floor(N/2 + 0.5)`` bins
(ties round up), the negative frequencies the remaining ``n_neg = N - n_pos``.
For 1-D input native->centered is the same permutation as
``numpy.fft.fftshift`` and centered->native matches ``numpy.fft.ifftshift``.
"""

from __future__ import annotations

import math
from typing import Tuple

import numpy as np

from lftsynth.util.errors import InvalidArgument


def half_lengths(n: int) -> Tuple[int, int]:
    """Return ``(n_pos, n_neg)`` for a buffer of ``n`` bins."""
    n_pos = int(math.floor(n / 2.0 + 0.5))
    return n_pos, int(n) - n_pos


def _check_buffer(x: np.ndarray) -> int:
    if x is None:
        raise InvalidArgument("empty input vector: got None")
    if not isinstance(x, np.ndarray) or x.ndim != 1:
        raise InvalidArgument("frequency buffer must be a 1-D numpy array")
    if x.size == 0:
        raise InvalidArgument("empty input vector: length 0")
    return int(x.size)


def reorder_native_to_centered(x: np.ndarray) -> np.ndarray:
    """Reorder ``x`` in place from native to centered ordering and return it."""
    n = _check_buffer(x)
    n_pos, n_neg = half_lengths(n)
    tmp = x.copy()
    # negative frequencies first, then DC + positive
    x[:n_neg] = tmp[n_pos:]
    x[n_neg:] = tmp[:n_pos]
    return x


def reorder_centered_to_native(x: np.ndarray) -> np.ndarray:
    """Reorder ``x`` in place from centered to native ordering and return it."""
    n = _check_buffer(x)
    n_pos, n_neg = half_lengths(n)
    tmp = x.copy()
    x[:n_pos] = tmp[n_neg:]
    x[n_pos:] = tmp[:n_neg]
    return x
