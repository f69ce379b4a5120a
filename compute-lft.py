#!/usr/bin/env python3
"""
compute-lft: entry point.

Thin shim that runs the package CLI without installing the console script.

Run:
    python compute-lft.py -D 'sfts/H1-*.sft' -o H1-lft.sft --fmin 100 --fmax 101

Environment:
    LFTSYNTH_LOG_LEVEL         Console log level (default INFO)
    LFTSYNTH_DEBUG             Set to 1 for debug logging
    LFTSYNTH_FFT_BACKEND       auto | scipy | numpy
    LFTSYNTH_FFT_WORKERS       Threads for scipy.fft
    LFTSYNTH_MAX_TIME_SAMPLES  Size guard for the long time series
"""
from __future__ import annotations

import sys


def main():
    from lftsynth.cli import main as cli_main

    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
