"""Tests for structured logging."""

import json
import logging
import threading
from pathlib import Path

import structlog

from gcovview.config.models import LoggingConfig, LogOutputConfig
from gcovview.core.logging import (
    ConsoleSuppressingFilter,
    clear_cycle_id,
    configure_logging,
    get_cycle_id,
    get_logger,
    set_cycle_id,
)
from gcovview.core.progress import suppress_console_logs


class TestCycleIdCorrelation:
    """Reload cycle ID context variable tests."""

    def setup_method(self) -> None:
        clear_cycle_id()

    def test_given_cycle_id_when_set_then_can_retrieve(self) -> None:
        assert set_cycle_id("cycle-1") == "cycle-1"
        assert get_cycle_id() == "cycle-1"

    def test_given_no_id_when_set_then_generates_uuid(self) -> None:
        cid = set_cycle_id()
        assert len(cid) == 12  # uuid4().hex[:12]

    def test_given_set_id_when_clear_then_removes_id(self) -> None:
        set_cycle_id("to-clear")
        clear_cycle_id()
        assert get_cycle_id() is None


class TestLoggingConfiguration:
    """Logging configuration tests."""

    def setup_method(self) -> None:
        structlog.reset_defaults()
        logging.getLogger().handlers.clear()
        clear_cycle_id()

    def _file_config(self, path: Path, level: str = "DEBUG") -> LoggingConfig:
        return LoggingConfig(
            level=level,
            outputs=[LogOutputConfig(format="json", destination=str(path))],
        )

    def test_given_file_output_when_log_then_json_lines(self, tmp_path: Path) -> None:
        log_file = tmp_path / "gcovview.log"
        configure_logging(config=self._file_config(log_file))

        get_logger("ingest.test").info("chunk_merged", files=3)

        data = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert data["event"] == "chunk_merged"
        assert data["files"] == 3
        assert data["logger"] == "ingest.test"
        assert data["level"] == "info"
        assert "timestamp" in data

    def test_given_cycle_id_when_log_then_attached(self, tmp_path: Path) -> None:
        log_file = tmp_path / "gcovview.log"
        configure_logging(config=self._file_config(log_file))
        set_cycle_id("abc123")

        get_logger().info("reload_started")

        data = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert data["cycle_id"] == "abc123"

    def test_given_level_when_below_then_dropped(self, tmp_path: Path) -> None:
        log_file = tmp_path / "gcovview.log"
        configure_logging(config=self._file_config(log_file, level="WARNING"))

        logger = get_logger()
        logger.info("quiet")
        logger.warning("loud")

        content = log_file.read_text()
        assert "quiet" not in content
        assert "loud" in content

    def test_given_suppressed_console_when_log_then_file_still_written(
        self, tmp_path: Path
    ) -> None:
        log_file = tmp_path / "gcovview.log"
        config = LoggingConfig(
            level="INFO",
            outputs=[
                LogOutputConfig(format="console", destination="stderr"),
                LogOutputConfig(format="json", destination=str(log_file)),
            ],
        )
        configure_logging(config=config)

        with suppress_console_logs():
            get_logger().info("during_live_display")

        assert "during_live_display" in log_file.read_text()

    def test_given_asyncio_logger_when_configured_then_warning(self) -> None:
        configure_logging(level="DEBUG")
        assert logging.getLogger("asyncio").level == logging.WARNING

    def test_given_live_display_when_worker_thread_logs_then_console_drops_it(self) -> None:
        console_filter = ConsoleSuppressingFilter()
        seen: list[bool] = []

        def emit_from_worker() -> None:
            record = logging.LogRecord("scan", logging.DEBUG, __file__, 1, "entry", None, None)
            seen.append(console_filter.filter(record))

        with suppress_console_logs():
            worker = threading.Thread(target=emit_from_worker)
            worker.start()
            worker.join()
        emit_from_worker()

        assert seen == [False, True]
