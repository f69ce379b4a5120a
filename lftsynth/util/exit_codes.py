"""Documented exit codes for the compute-lft CLI.

Exit codes follow UNIX conventions:
- 0: Success
- 1: General/unspecified error
- 2: Invalid command-line arguments or input data
- 3-6: Application-specific errors

These codes let batch schedulers distinguish "no SFTs matched" from a real
failure without parsing stderr output.

Usage:
    from lftsynth.util.exit_codes import ExitCode
    sys.exit(ExitCode.NO_INPUT)
"""

from __future__ import annotations

from lftsynth.util.errors import ComputationError, InvalidArgument, ResourceExhaustion


class ExitCode:
    """Exit code constants for compute-lft processes.

    Attributes:
        SUCCESS: Normal termination, no errors.
        GENERAL_ERROR: Unspecified runtime error.
        INVALID_ARGS: Argument validation failed or the SFTs are unusable.
        NO_INPUT: The input pattern matched no SFTs.
        RESOURCE_EXHAUSTED: Allocation failed or the LFT exceeds the size guard.
        COMPUTATION_FAILED: The FFT backend failed.
        IO_ERROR: Reading or writing an SFT file failed.
    """

    SUCCESS: int = 0
    GENERAL_ERROR: int = 1
    INVALID_ARGS: int = 2
    NO_INPUT: int = 3
    RESOURCE_EXHAUSTED: int = 4
    COMPUTATION_FAILED: int = 5
    IO_ERROR: int = 6

    @classmethod
    def message(cls, code: int) -> str:
        """Return a human-readable message for an exit code."""
        messages = {
            cls.SUCCESS: "Success",
            cls.GENERAL_ERROR: "General error",
            cls.INVALID_ARGS: "Invalid arguments or input",
            cls.NO_INPUT: "No matching SFTs",
            cls.RESOURCE_EXHAUSTED: "Out of memory",
            cls.COMPUTATION_FAILED: "FFT computation failed",
            cls.IO_ERROR: "File I/O error",
        }
        return messages.get(code, f"Unknown exit code {code}")

    @classmethod
    def for_exception(cls, exc: BaseException) -> int:
        """Map a pipeline exception onto the matching exit code."""
        # ResourceExhaustion must be tested before its ComputationError base.
        if isinstance(exc, (ResourceExhaustion, MemoryError)):
            return cls.RESOURCE_EXHAUSTED
        if isinstance(exc, ComputationError):
            return cls.COMPUTATION_FAILED
        if isinstance(exc, InvalidArgument):
            return cls.INVALID_ARGS
        if isinstance(exc, OSError):
            return cls.IO_ERROR
        return cls.GENERAL_ERROR
