"""Unit tests for logging and performance timing."""

import json
import logging
import sys
from pathlib import Path

import pytest

from design_inspector.inspector_logging import (
    LOGGER_NAME,
    JSONFormatter,
    LogCategory,
    get_category_logger,
    get_logger,
    setup_logging,
)
from design_inspector.timing import PerformanceTimer, timed


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_file_logging(self, tmp_path: Path) -> None:
        """Test that messages reach the log file."""
        log_file = tmp_path / "inspector.log"
        logger = setup_logging(log_file=log_file)

        logger.info("Test message")

        assert log_file.exists()
        assert "Test message" in log_file.read_text()

    def test_nested_log_directory(self, tmp_path: Path) -> None:
        """Test that missing parent directories are created."""
        log_file = tmp_path / "logs" / "deep" / "inspector.log"
        setup_logging(log_file=log_file).warning("hello")
        assert log_file.exists()

    def test_json_format(self, tmp_path: Path) -> None:
        """Test JSON file output."""
        log_file = tmp_path / "json.log"
        logger = setup_logging(log_file=log_file, log_format="json")

        logger.info("JSON test message")

        entry = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert entry["message"] == "JSON test message"
        assert entry["level"] == "INFO"
        assert entry["logger"] == LOGGER_NAME

    def test_console_level(self) -> None:
        """Test the console handler level for each mode."""
        logger = setup_logging(level="warning")
        assert logger.handlers[0].level == logging.WARNING

        logger = setup_logging(verbose=True)
        assert logger.handlers[0].level == logging.DEBUG

    def test_quiet_has_no_console(self) -> None:
        """Test that quiet mode installs no console handler."""
        logger = setup_logging(quiet=True)
        assert logger.handlers == []

    def test_quiet_file_keeps_errors(self, tmp_path: Path) -> None:
        """Test that quiet mode still writes errors to the log file."""
        log_file = tmp_path / "quiet.log"
        logger = setup_logging(quiet=True, log_file=log_file)

        logger.info("dropped")
        logger.error("kept")

        assert [h.level for h in logger.handlers] == [logging.ERROR]
        content = log_file.read_text()
        assert "kept" in content
        assert "dropped" not in content

    def test_not_propagating(self) -> None:
        """Test that configured output is not duplicated by the root logger."""
        assert setup_logging().propagate is False


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def _record(self, **extra) -> logging.LogRecord:
        record = logging.LogRecord(
            name="design_inspector.detection",
            level=logging.DEBUG,
            pathname=__file__,
            lineno=10,
            msg="Built %d buckets",
            args=(3,),
            exc_info=None,
        )
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_base_fields(self) -> None:
        """Test the standard entry fields."""
        entry = json.loads(JSONFormatter().format(self._record()))

        assert entry["message"] == "Built 3 buckets"
        assert entry["level"] == "DEBUG"
        assert entry["logger"] == "design_inspector.detection"
        assert entry["line"] == 10
        assert "timestamp" in entry

    def test_extra_fields(self) -> None:
        """Test that known extras are copied into the entry."""
        record = self._record(duration_ms=1.5, node_count=10, unrelated="x")
        entry = json.loads(JSONFormatter().format(record))

        assert entry["duration_ms"] == 1.5
        assert entry["node_count"] == 10
        assert "unrelated" not in entry

    def test_exception(self) -> None:
        """Test that exception info is serialized."""
        try:
            raise ValueError("bad")
        except ValueError:
            record = self._record()
            record.exc_info = sys.exc_info()

        entry = json.loads(JSONFormatter().format(record))
        assert "ValueError: bad" in entry["exception"]


class TestLoggers:
    """Tests for logger accessors."""

    def test_global_logger(self) -> None:
        """Test the package logger name."""
        assert get_logger().name == "design_inspector"

    @pytest.mark.parametrize("category", list(LogCategory))
    def test_category_logger(self, category) -> None:
        """Test that category loggers are children of the package logger."""
        logger = get_category_logger(category)
        assert logger.name == f"design_inspector.{category.value}"
        assert logger.parent.name == "design_inspector"


class TestTiming:
    """Tests for timed and PerformanceTimer."""

    def test_timed_returns_result(self, caplog) -> None:
        """Test that the decorator passes results through and logs."""

        @timed("adding")
        def add(a, b):
            return a + b

        with caplog.at_level(logging.DEBUG, logger="design_inspector"):
            assert add(2, 3) == 5

        record = next(r for r in caplog.records if "[PERF] adding" in r.getMessage())
        assert record.name == "design_inspector.performance"
        assert record.operation == "adding"
        assert record.duration_ms >= 0

    def test_timed_default_name(self, caplog) -> None:
        """Test that the function name is used by default."""

        @timed()
        def compute():
            return 1

        with caplog.at_level(logging.DEBUG, logger="design_inspector"):
            compute()
        assert "[PERF] compute completed" in caplog.text

    def test_timed_reraises(self, caplog) -> None:
        """Test that failures are logged and re-raised."""

        @timed("failing")
        def fail():
            raise RuntimeError("nope")

        with caplog.at_level(logging.DEBUG, logger="design_inspector"):
            with pytest.raises(RuntimeError):
                fail()
        assert "[PERF] failing failed" in caplog.text

    def test_performance_timer(self, caplog) -> None:
        """Test block timing with logging."""
        with caplog.at_level(logging.DEBUG, logger="design_inspector"):
            with PerformanceTimer("block") as timer:
                sum(range(1000))

        assert timer.duration_ms >= 0
        assert "[PERF] block" in caplog.text

    def test_performance_timer_silent(self, caplog) -> None:
        """Test that auto_log=False only measures."""
        with caplog.at_level(logging.DEBUG, logger="design_inspector"):
            with PerformanceTimer("quiet", auto_log=False) as timer:
                pass

        assert timer.end_time >= timer.start_time
        assert "quiet" not in caplog.text
