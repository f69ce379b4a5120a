"""Logging setup for lftsynth.

All loggers live under the ``lftsynth`` namespace. The console handler writes
one line per record to stderr, tagged with the detector when the record
carries one; an optional JSON-lines file receives the same records together
with their structured fields.

Usage:
    from lftsynth.util.logging import get_logger, configure_logging

    configure_logging(level="DEBUG", json_file="compute-lft.jsonl")
    logger = get_logger(__name__)
    logger.info("Loaded SFTs", extra={"detector": "H1", "num_sfts": 48})
"""

from __future__ import annotations

import json
import logging
import os
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO

ROOT_LOGGER = "lftsynth"

# Structured fields copied from ``extra={}`` into JSON records.
RECORD_FIELDS = ("detector", "num_sfts", "state", "num_time_samples", "error_type", "duration_ms")

_configured = False


def _record_time(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with the structured fields it carries."""

    def format(self, record: logging.LogRecord) -> str:
        output: Dict[str, Any] = {
            "ts": _record_time(record).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        output.update({key: getattr(record, key) for key in RECORD_FIELDS if hasattr(record, key)})
        if record.exc_info:
            output["traceback"] = "".join(traceback.format_exception(*record.exc_info))
        return json.dumps(output, default=str)


class ConsoleFormatter(logging.Formatter):
    """``[time] LEVEL [module] [detector] message``; level colored on a terminal."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, stream: TextIO):
        super().__init__()
        isatty = getattr(stream, "isatty", None)
        self.colored = bool(isatty and isatty())

    def format(self, record: logging.LogRecord) -> str:
        level = f"{record.levelname:8}"
        if self.colored:
            level = f"{self.LEVEL_COLORS.get(record.levelname, '')}{level}{self.RESET}"
        module = record.name[len(ROOT_LOGGER) + 1 :] if record.name.startswith(ROOT_LOGGER + ".") else record.name
        parts = [f"[{_record_time(record):%Y-%m-%d %H:%M:%S}]", level, f"[{module}]"]
        detector = getattr(record, "detector", None)
        if detector:
            parts.append(f"[{detector}]")
        parts.append(record.getMessage())
        line = " ".join(parts)
        if record.exc_info:
            line += "\n" + "".join(traceback.format_exception(*record.exc_info))
        return line


def _resolve_level(level: Optional[str]) -> int:
    if level is None:
        if os.environ.get("LFTSYNTH_DEBUG", "").strip().lower() in ("1", "true", "yes"):
            return logging.DEBUG
        level = os.environ.get("LFTSYNTH_LOG_LEVEL", "INFO")
    return getattr(logging, level.strip().upper(), logging.INFO)


def configure_logging(*, level: Optional[str] = None, json_file: Optional[str] = None) -> None:
    """(Re)configure the ``lftsynth`` logger.

    Args:
        level: DEBUG, INFO, WARNING or ERROR. When omitted, LFTSYNTH_DEBUG=1
               selects DEBUG, otherwise LFTSYNTH_LOG_LEVEL (default INFO).
        json_file: Also append JSON lines to this path.

    Handlers from an earlier call are closed and replaced. Records do not
    propagate past the ``lftsynth`` logger.
    """
    global _configured

    numeric_level = _resolve_level(level)
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(numeric_level)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(ConsoleFormatter(sys.stderr))
    logger.addHandler(console)

    if json_file:
        try:
            file_handler = logging.FileHandler(json_file, mode="a", encoding="utf-8")
        except OSError as exc:
            logger.warning("Cannot open JSON log file %s: %s", json_file, exc)
        else:
            file_handler.setFormatter(JSONFormatter())
            logger.addHandler(file_handler)

    logger.propagate = False
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Logger for ``name`` under the ``lftsynth`` namespace, configuring defaults on first use."""
    if not _configured:
        configure_logging()
    if name == "__main__":
        name = "main"
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def log_exception(
    logger: logging.Logger,
    message: str,
    *,
    error_type: Optional[str] = None,
    **extra: Any,
) -> None:
    """Log the exception being handled, with its traceback and structured context.

    Must be called from inside an ``except`` block.
    """
    if error_type:
        extra["error_type"] = error_type
    logger.exception(message, extra=extra)
