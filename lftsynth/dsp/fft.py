"""FFT plan and inverse-transform helpers for SFT->LFT assembly."""

from __future__ import annotations

from typing import Callable, Optional, Sequence

import numpy as np  # type: ignore

from lftsynth.sft.types import SFT
from lftsynth.util.errors import ComputationError, InvalidArgument, ResourceExhaustion

try:  # pragma: no cover - optional dependency
    import scipy.fft as sp_fft  # type: ignore

    HAVE_SCIPY = True
except Exception:  # pragma: no cover - optional dependency
    HAVE_SCIPY = False
    sp_fft = None  # type: ignore


def resolve_backend(name: Optional[str]) -> str:
    """Turn a configured backend name into the one actually used."""
    key = (name or "auto").strip().lower()
    if key == "auto":
        return "scipy" if HAVE_SCIPY else "numpy"
    if key == "scipy" and not HAVE_SCIPY:
        raise ComputationError("FFT backend 'scipy' requested but scipy is not installed")
    if key not in ("scipy", "numpy"):
        raise ComputationError(f"Unknown FFT backend '{name}'")
    return key


class TransformPlan:
    """Complex FFT of one fixed length, forward (unnormalised) or inverse (scaled by 1/length).

    A plan is cheap to build and may be executed any number of times on
    buffers (or stacks of buffers) whose last axis has ``length`` samples.
    Use it as a context manager; a closed plan refuses to execute.
    """

    def __init__(self, length: int, *, inverse: bool, backend: Optional[str] = "auto", workers: Optional[int] = None):
        length = int(length)
        if length <= 0:
            raise InvalidArgument(f"transform length must be > 0, got {length}")
        self.length = length
        self.inverse = bool(inverse)
        self.backend = resolve_backend(backend)
        self.workers = workers if self.backend == "scipy" else None
        self._func: Optional[Callable[..., np.ndarray]] = self._select_func()

    def _select_func(self) -> Callable[..., np.ndarray]:
        if self.backend == "scipy":
            assert sp_fft is not None  # noqa: S101 - guarded by resolve_backend
            return sp_fft.ifft if self.inverse else sp_fft.fft
        return np.fft.ifft if self.inverse else np.fft.fft

    @property
    def closed(self) -> bool:
        return self._func is None

    def close(self) -> None:
        self._func = None

    def __enter__(self) -> "TransformPlan":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        direction = "inverse" if self.inverse else "forward"
        return f"TransformPlan(length={self.length}, {direction}, backend={self.backend})"

    def execute(self, data: np.ndarray) -> np.ndarray:
        """Transform ``data`` along its last axis and return a new array."""
        if self._func is None:
            raise ComputationError(f"{self!r} has been closed")
        x = np.asarray(data)
        if x.ndim == 0 or x.shape[-1] != self.length:
            raise InvalidArgument(f"{self!r} cannot transform input of shape {x.shape}")
        kwargs = {"axis": -1}
        if self.workers is not None:
            kwargs["workers"] = int(self.workers)
        try:
            out = self._func(x, **kwargs)
        except MemoryError as exc:
            raise ResourceExhaustion(f"{self!r} ran out of memory for input of shape {x.shape}") from exc
        except (ValueError, TypeError, RuntimeError) as exc:
            raise ComputationError(f"{self!r} failed: {exc}") from exc
        if not np.all(np.isfinite(out)) and np.all(np.isfinite(x)):
            raise ComputationError(f"{self!r} produced non-finite output from finite input")
        return out


def inverse_transform_sfts(sfts: Sequence[SFT], plan: TransformPlan) -> np.ndarray:
    """Inverse-FFT every SFT into a short time series.

    Returns an array of shape ``(len(sfts), num_bins)``. Input bins must be in
    native ordering; the ``1/num_bins`` normalisation comes from the plan so
    that forward(inverse(X)) reproduces ``X``.
    """
    if not plan.inverse:
        raise InvalidArgument("inverse_transform_sfts needs an inverse plan")
    try:
        stacked = np.stack([np.asarray(sft.data) for sft in sfts])
    except MemoryError as exc:
        raise ResourceExhaustion(f"cannot stack {len(sfts)} SFTs of {plan.length} bins") from exc
    except ValueError as exc:
        raise InvalidArgument(f"SFTs do not share one bin count: {exc}") from exc
    return plan.execute(stacked)
