"""Exception types raised by the LFT pipeline.

Every failure is raised at the point it is detected and propagates straight
to the caller; nothing is retried and no partial transform is returned.

The classes subclass the builtin exceptions the rest of the code already
raises, so ``except ValueError`` / ``except RuntimeError`` handlers keep
working:

- InvalidArgument: empty input, zero-length buffers, mismatched SFT metadata,
  out-of-range placement.
- ComputationError: transform plan construction or execution failed.
- ResourceExhaustion: allocation failed or the requested size exceeds the
  configured guard.
- SFTFormatError: an SFT file could not be decoded.
"""

from __future__ import annotations


class InvalidArgument(ValueError):
    """Caller supplied input the pipeline cannot work with."""


class ComputationError(RuntimeError):
    """The numerical backend failed to plan or execute a transform."""


class ResourceExhaustion(ComputationError):
    """Memory or size limit exhausted while planning or allocating."""


class SFTFormatError(InvalidArgument):
    """Malformed or corrupt SFT file content."""
