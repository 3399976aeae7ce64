"""Tests for the per-account logging setup."""

import logging

from himalaya_cache.logging import (
    get_account_logger,
    get_error_logger,
    reset_logging,
    setup_logging,
)


def flush(logger: logging.Logger) -> None:
    for handler in logger.handlers:
        handler.flush()


class TestAccountLoggers:
    """Tests for get_account_logger()."""

    def test_writes_account_file(self, tmp_path):
        logger = get_account_logger("work")
        logger.info("Synced INBOX")
        flush(logger)

        content = (tmp_path / "logs" / "himalaya-cache-work.log").read_text()
        assert "[INFO] Synced INBOX" in content

    def test_same_logger_returned(self):
        assert get_account_logger("work") is get_account_logger("work")

    def test_unsafe_name_sanitized(self, tmp_path):
        logger = get_account_logger("me@example.com")
        logger.info("hello")
        flush(logger)

        assert (tmp_path / "logs" / "himalaya-cache-me-example-com.log").exists()

    def test_warnings_reach_error_log(self, tmp_path):
        logger = get_account_logger("work")
        logger.info("routine")
        logger.warning("failed to read message 7")
        flush(get_error_logger())

        content = (tmp_path / "logs" / "himalaya-cache-error.log").read_text()
        assert "[WARNING] [work] failed to read message 7" in content
        assert "routine" not in content

    def test_colliding_file_names_keep_account_prefix(self, tmp_path):
        dotted = get_account_logger("a.b")
        dashed = get_account_logger("a-b")
        dotted.warning("first")
        dashed.warning("second")
        flush(get_error_logger())
        flush(dashed)

        assert dotted is not dashed
        errors = (tmp_path / "logs" / "himalaya-cache-error.log").read_text()
        assert "[a.b] first" in errors
        assert "[a-b] second" in errors
        shared = (tmp_path / "logs" / "himalaya-cache-a-b.log").read_text()
        assert "first" in shared
        assert "second" in shared


class TestPackageLog:
    """Tests for the package-wide log file."""

    def test_module_loggers_write_main_log(self, tmp_path):
        logging.getLogger("himalaya_cache.sync.engine").info("Fetched 2 account(s)")
        for handler in logging.getLogger("himalaya_cache").handlers:
            handler.flush()

        content = (tmp_path / "logs" / "himalaya-cache.log").read_text()
        assert "Fetched 2 account(s)" in content

    def test_level_respected(self, tmp_path):
        setup_logging(log_dir=tmp_path / "logs", log_level="WARNING")

        logging.getLogger("himalaya_cache.cli").info("quiet")
        for handler in logging.getLogger("himalaya_cache").handlers:
            handler.flush()

        assert "quiet" not in (tmp_path / "logs" / "himalaya-cache.log").read_text()

    def test_setup_twice_keeps_one_handler(self, tmp_path):
        setup_logging(log_dir=tmp_path / "logs")
        setup_logging(log_dir=tmp_path / "logs")

        handlers = logging.getLogger("himalaya_cache").handlers
        assert len(handlers) == 1


class TestReset:
    """Tests for reset_logging()."""

    def test_reset_closes_handlers(self, tmp_path):
        logger = get_account_logger("work")
        get_error_logger()

        reset_logging()

        assert logger.handlers == []
        assert logging.getLogger("himalaya_cache").handlers == []

        setup_logging(log_dir=tmp_path / "logs")
        assert get_account_logger("work") is logger
        assert len(logger.handlers) == 2
