import io
import json
import logging

from lftsynth.util.errors import ComputationError, InvalidArgument, ResourceExhaustion, SFTFormatError
from lftsynth.util.exit_codes import ExitCode
from lftsynth.util.logging import ConsoleFormatter, JSONFormatter, configure_logging, get_logger


def test_error_hierarchy() -> None:
    assert issubclass(InvalidArgument, ValueError)
    assert issubclass(SFTFormatError, InvalidArgument)
    assert issubclass(ResourceExhaustion, ComputationError)
    assert issubclass(ComputationError, RuntimeError)


def test_exit_code_for_exception() -> None:
    assert ExitCode.for_exception(ResourceExhaustion("x")) == ExitCode.RESOURCE_EXHAUSTED
    assert ExitCode.for_exception(MemoryError()) == ExitCode.RESOURCE_EXHAUSTED
    assert ExitCode.for_exception(ComputationError("x")) == ExitCode.COMPUTATION_FAILED
    assert ExitCode.for_exception(SFTFormatError("x")) == ExitCode.INVALID_ARGS
    assert ExitCode.for_exception(FileNotFoundError("x")) == ExitCode.IO_ERROR
    assert ExitCode.for_exception(KeyError("x")) == ExitCode.GENERAL_ERROR
    assert ExitCode.message(ExitCode.NO_INPUT) == "No matching SFTs"
    assert ExitCode.message(99) == "Unknown exit code 99"


def test_json_formatter_carries_extra_fields() -> None:
    record = logging.LogRecord("lftsynth.test", logging.INFO, __file__, 1, "built %s", ("H1",), None)
    record.detector = "H1"
    record.num_sfts = 4
    out = json.loads(JSONFormatter().format(record))
    assert out["message"] == "built H1"
    assert out["detector"] == "H1"
    assert out["num_sfts"] == 4
    assert out["level"] == "INFO"


def test_json_log_file_receives_records(tmp_path) -> None:
    path = tmp_path / "log.jsonl"
    configure_logging(level="DEBUG", json_file=str(path))
    try:
        get_logger("lftsynth.test").debug("hello", extra={"state": "done"})
    finally:
        configure_logging(level="INFO")
    lines = path.read_text().splitlines()
    assert json.loads(lines[-1])["state"] == "done"


def test_console_formatter_tags_detector_and_strips_namespace() -> None:
    record = logging.LogRecord("lftsynth.assembly.engine", logging.INFO, __file__, 1, "assembled", (), None)
    record.detector = "L1"
    line = ConsoleFormatter(io.StringIO()).format(record)
    assert line.endswith("INFO     [assembly.engine] [L1] assembled")


def test_get_logger_places_names_under_namespace() -> None:
    assert get_logger("lftsynth.cli").name == "lftsynth.cli"
    assert get_logger("tools").name == "lftsynth.tools"
    assert get_logger("__main__").name == "lftsynth.main"
