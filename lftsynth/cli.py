#!/usr/bin/env python3
"""compute-lft CLI entrypoint (package module).

Reads SFTs matching a file pattern, reindexes them, assembles the long
Fourier transform over the full observation span and optionally writes it
out as a single-frame SFT file. Arguments can also be read from a file
given as ``@path`` (one argument per line).
"""

from __future__ import annotations

import argparse
import shlex
import sys
from typing import List, Optional

from lftsynth.assembly.engine import multi_sft_vector_to_lft
from lftsynth.config import FFT_BACKEND, FFT_BACKENDS, FFT_WORKERS, MAX_TIME_SAMPLES, AssemblyConfig
from lftsynth.io.catalog import SFTConstraints, describe_input, find_sfts, load_sfts
from lftsynth.io.sftfile import write_sft_file
from lftsynth.sft.demod import ssb_reindex_multi
from lftsynth.util.errors import ComputationError, InvalidArgument
from lftsynth.util.exit_codes import ExitCode
from lftsynth.util.logging import configure_logging, get_logger, log_exception

__version__ = "0.1.0"


def run(args: argparse.Namespace) -> int:
    """Execute one SFT->LFT batch run and return the process exit code."""
    level = "DEBUG" if args.verbose else args.log_level
    configure_logging(level=level, json_file=args.log_json)
    logger = get_logger(__name__)

    config = AssemblyConfig(
        debug=bool(args.verbose),
        fft_backend=args.fft_backend,
        fft_workers=args.fft_workers,
        max_time_samples=args.max_time_samples,
    )
    constraints = SFTConstraints(min_start_time=args.min_start_time, max_end_time=args.max_end_time)

    try:
        catalog = find_sfts(args.input_sfts, constraints)
        if len(catalog) == 0:
            logger.critical("No matching SFTs for pattern '%s'!", args.input_sfts)
            return ExitCode.NO_INPUT

        multi = load_sfts(catalog, args.fmin, args.fmax)
        summary = describe_input(multi, cmdline=args.cmdline)
        logger.debug(summary)

        if len(multi) != 1:
            logger.critical(
                "Sorry, can only deal with SFTs from a single detector at the moment, got %s",
                ", ".join(sorted(multi)),
            )
            return ExitCode.INVALID_ARGS

        lfts = multi_sft_vector_to_lft(ssb_reindex_multi(multi), config)
        detector, lft = next(iter(lfts.items()))

        if args.output_lft:
            write_sft_file(args.output_lft, [lft.as_sft()], comment=summary)
            logger.info("Wrote LFT for %s to %s", detector, args.output_lft, extra={"detector": detector})
    except (InvalidArgument, ComputationError, MemoryError, OSError) as exc:
        code = ExitCode.for_exception(exc)
        log_exception(logger, f"compute-lft failed: {exc}", error_type=type(exc).__name__)
        return code

    return ExitCode.SUCCESS


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    if argv is None:
        argv = sys.argv[1:]

    p = argparse.ArgumentParser(
        prog="compute-lft",
        description="Calculate the Fourier transform over the total timespan from a set of SFTs",
        fromfile_prefix_chars="@",
    )
    p.add_argument("-D", "--input-sfts", dest="input_sfts", type=str, help="File-pattern specifying input SFT-files (';'-separated globs)")
    p.add_argument("-o", "--output-lft", dest="output_lft", type=str, default=None, help="Output 'Long Fourier Transform' (LFT) file")
    p.add_argument("--min-start-time", dest="min_start_time", type=float, default=None, help="Earliest SFT-timestamp to include (GPS s)")
    p.add_argument("--max-end-time", dest="max_end_time", type=float, default=None, help="Latest SFT-timestamps to include (GPS s, exclusive)")
    p.add_argument("-f", "--fmin", type=float, default=None, help="Lowest frequency to extract from SFTs [Default: lowest in input SFTs]")
    p.add_argument("-F", "--fmax", type=float, default=None, help="Highest frequency to extract from SFTs [Default: highest in input SFTs]")

    p.add_argument("--fft-backend", dest="fft_backend", choices=FFT_BACKENDS, default=FFT_BACKEND, help=f"FFT implementation (default {FFT_BACKEND})")
    p.add_argument("--fft-workers", dest="fft_workers", type=int, default=FFT_WORKERS, help=f"Threads for scipy.fft (default {FFT_WORKERS})")
    p.add_argument(
        "--max-time-samples",
        dest="max_time_samples",
        type=int,
        default=MAX_TIME_SAMPLES,
        help="Refuse to build a long time series with more samples than this",
    )

    p.add_argument("-v", "--verbose", action="store_true", help="Debug output, including per-SFT placement")
    p.add_argument("--log-level", dest="log_level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], default=None, help="Console log level (default INFO, or $LFTSYNTH_LOG_LEVEL)")
    p.add_argument("--log-json", dest="log_json", type=str, default=None, help="Also append JSON-lines logs to this path")
    p.add_argument("-V", "--version", action="version", version=f"%(prog)s (lftsynth) {__version__}")

    args = p.parse_args(argv)

    if not args.input_sfts:
        p.error("--input-sfts is required")
    if args.fmin is not None and args.fmax is not None and args.fmax < args.fmin:
        p.error("--fmax must be >= --fmin")
    if args.min_start_time is not None and args.max_end_time is not None and args.max_end_time <= args.min_start_time:
        p.error("--max-end-time must be > --min-start-time")
    if args.fft_workers is not None and args.fft_workers <= 0:
        p.error("--fft-workers must be > 0")
    if args.max_time_samples <= 0:
        p.error("--max-time-samples must be > 0")

    args.cmdline = " ".join(shlex.quote(a) for a in ["compute-lft", *argv])
    return args


def main(argv: Optional[List[str]] = None) -> int:
    return run(parse_args(argv))


if __name__ == "__main__":
    sys.exit(main())
