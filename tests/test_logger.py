"""Tests for the structured logger."""

from __future__ import annotations

import json
from pathlib import Path

from shared.logger import ToolLogger


def test_logger_name() -> None:
    assert ToolLogger("engine", console_output=False).underlying.name == "symver.engine"
    assert ToolLogger("symver.cli", console_output=False).underlying.name == "symver.cli"


def test_json_file_logging(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "symver.log"
    log = ToolLogger(
        "symver.test_json",
        log_level="DEBUG",
        log_file=log_file,
        json_logs=True,
        console_output=False,
    )
    with log.operation(".gnu.version_r"):
        log.info("decoded %d requirements", 2)
    for handler in log.underlying.handlers:
        handler.flush()

    record = json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])
    assert record["message"] == "decoded 2 requirements"
    assert record["level"] == "INFO"
    assert record["operation"] == ".gnu.version_r"
    assert record["logger"] == "symver.test_json"


def test_timed_measures() -> None:
    log = ToolLogger("symver.test_timed", console_output=False)
    with log.timed("walk") as timer:
        pass
    assert timer.elapsed >= 0.0
