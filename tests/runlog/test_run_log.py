"""Tests for the YAML engine run log."""

import yaml

from fl_lsp.runlog import structured_logger
from fl_lsp.runlog.structured_logger import StructuredLogger, get_run_logger


def test_record_appends_numbered_entries(tmp_path):
    run_logger = StructuredLogger(str(tmp_path))
    assert run_logger.record("run", {"state": "success", "issues": 2}) == "run_0"
    assert run_logger.record("run", {"state": "degraded", "issues": 0}) == "run_1"

    data = yaml.safe_load(run_logger.log_file.read_text())
    assert data == {
        "run_0": {"state": "success", "issues": 2},
        "run_1": {"state": "degraded", "issues": 0},
    }


def test_numbering_continues_in_existing_file(tmp_path):
    StructuredLogger(str(tmp_path)).record("run", {"n": 1})
    reopened = StructuredLogger(str(tmp_path))
    assert reopened.record("run", {"n": 2}) == "run_1"


def test_run_logger_disabled_by_default(monkeypatch):
    monkeypatch.delenv("FL_RECORD_RUNS", raising=False)
    assert get_run_logger() is None


def test_run_logger_enabled(monkeypatch, tmp_path):
    monkeypatch.setenv("FL_RECORD_RUNS", "1")
    monkeypatch.setattr(structured_logger, "_run_logger", None)
    monkeypatch.setattr("fl_lsp.FL_HOME", str(tmp_path))

    run_logger = get_run_logger()

    assert run_logger is not None
    assert run_logger is get_run_logger()
    assert run_logger.log_file == tmp_path / "logs" / "engine_runs.yaml"
