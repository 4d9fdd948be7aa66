# tests/common/test_logger.py
"""
Unit тесты для модуля логирования (soa_tours/common/logger.py).
"""

import logging
from unittest.mock import MagicMock, Mock, patch

import pytest

from soa_tours.common.constants import TypeMsg
from soa_tours.common.logger import (
    DEFAULT_LOGGER_NAME,
    ColoredFormatter,
    DateBasedRotatingFileHandler,
    JsonFormatter,
    _get_caller_info,
    _loggers,
    get_logger,
    log_debug,
    log_error,
    log_info,
    log_warning,
    setup_logging,
)


def make_record(level: int = logging.INFO, msg: str = "Test message") -> logging.LogRecord:
    record = logging.LogRecord(
        name="test_logger",
        level=level,
        pathname="test.py",
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
    )
    record.module = "test_module"
    record.funcName = "test_function"
    return record


class TestJsonFormatter:
    """Тесты для JsonFormatter."""

    def test_format_basic_record(self) -> None:
        result = JsonFormatter().format(make_record())

        assert '"level": "INFO"' in result
        assert '"message": "Test message"' in result
        assert '"function": "test_function"' in result
        assert '"line": 10' in result

    def test_format_with_extra_data(self) -> None:
        """Контекст прохождения попадает в поле extra."""
        record = make_record(logging.WARNING)
        record.extra_data = {"execution_id": "exec-1", "user_id": 42}

        result = JsonFormatter().format(record)

        assert '"extra"' in result
        assert '"execution_id": "exec-1"' in result

    def test_format_keeps_cyrillic(self) -> None:
        result = JsonFormatter().format(make_record(msg="Тур начат"))

        assert "Тур начат" in result

    def test_format_with_exception(self) -> None:
        try:
            raise ValueError("Test exception")
        except ValueError:
            import sys
            exc_info = sys.exc_info()

        record = make_record(logging.ERROR)
        record.exc_info = exc_info

        result = JsonFormatter().format(record)

        assert '"exception"' in result
        assert "ValueError" in result


class TestColoredFormatter:
    """Тесты для ColoredFormatter."""

    def test_format_basic_record(self) -> None:
        result = ColoredFormatter().format(make_record())

        assert "[INFO]" in result
        assert "Test message" in result
        assert "\033[" in result

    def test_format_with_caller_info(self) -> None:
        record = make_record(logging.DEBUG)
        record.extra_data = {
            "caller_function": "check_proximity",
            "caller_module": "tracker",
            "caller_file": "tracker.py",
            "caller_line": 42,
        }

        result = ColoredFormatter().format(record)

        assert "tracker.check_proximity()" in result
        assert "tracker.py:42" in result


class TestDateBasedRotatingFileHandler:
    """Тесты ротации файла логов."""

    def test_rollover_archives_file(self, tmp_path) -> None:
        handler = DateBasedRotatingFileHandler(str(tmp_path), max_bytes=10, logger_name="svc")
        handler.setFormatter(logging.Formatter("%(message)s"))
        try:
            handler.emit(make_record(msg="x" * 20))
            handler.emit(make_record(msg="second"))
        finally:
            handler.close()

        archives = [p.name for p in tmp_path.iterdir() if p.name.startswith("svc_")]
        assert len(archives) == 1
        assert (tmp_path / "svc.log").read_text(encoding="utf-8").strip() == "second"

    def test_no_rollover_without_limit(self, tmp_path) -> None:
        handler = DateBasedRotatingFileHandler(str(tmp_path), max_bytes=0, logger_name="svc")
        try:
            assert handler.shouldRollover(make_record()) is False
        finally:
            handler.close()


class TestGetLogger:
    """Тесты для get_logger."""

    def setup_method(self) -> None:
        _loggers.clear()
        for logger in logging.Logger.manager.loggerDict.values():
            if isinstance(logger, logging.Logger):
                logger.handlers.clear()

    def test_get_logger_creates_new_logger(self) -> None:
        logger = get_logger("test_logger")

        assert logger.name == "test_logger"
        assert len(logger.handlers) >= 1
        assert logger.propagate is False

    def test_get_logger_returns_cached_logger(self) -> None:
        assert get_logger("test_logger") is get_logger("test_logger")

    @patch("soa_tours.config.settings")
    def test_get_logger_uses_settings(self, mock_settings: Mock) -> None:
        mock_settings.logging.LOG_LEVEL = "WARNING"
        mock_settings.logging.LOG_FORMAT = "json"
        mock_settings.logging.LOG_TO_FILE = False
        mock_settings.logging.LOG_FILE_PATH = "logs/test.log"
        mock_settings.logging.LOG_MAX_BYTES = 10485760

        logger = get_logger("test_with_settings")

        assert logger.level == logging.WARNING
        assert isinstance(logger.handlers[0].formatter, JsonFormatter)

    def test_get_logger_handles_missing_settings(self) -> None:
        with patch.dict("sys.modules", {"soa_tours.config": None}):
            logger = get_logger("test_no_settings")

            assert logger.level == logging.DEBUG


class TestSetupLogging:
    """Тесты для setup_logging."""

    def setup_method(self) -> None:
        _loggers.clear()

    def test_setup_logging_sets_third_party_levels(self) -> None:
        with patch("soa_tours.common.logger._LOGGING_INITIALIZED", False):
            setup_logging()

        assert DEFAULT_LOGGER_NAME in _loggers
        assert logging.getLogger("asyncpg").level == logging.WARNING
        assert logging.getLogger("aio_pika").level == logging.WARNING


class TestGetCallerInfo:
    """Тесты для _get_caller_info."""

    def test_get_caller_info_returns_dict(self) -> None:
        assert isinstance(_get_caller_info(), dict)


class TestLogFunctions:
    """Тесты для асинхронных функций логирования."""

    def setup_method(self) -> None:
        _loggers.clear()

    @pytest.mark.asyncio
    async def test_log_info_basic(self) -> None:
        with patch.object(logging.Logger, "info") as mock_info:
            await log_info("Test message")

            mock_info.assert_called_once()
            assert "Test message" in mock_info.call_args[0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("type_msg, method", [
        (TypeMsg.DEBUG, "debug"),
        (TypeMsg.WARNING, "warning"),
        (TypeMsg.ERROR, "error"),
        (TypeMsg.CRITICAL, "critical"),
    ])
    async def test_log_info_with_type_msg(self, type_msg: TypeMsg, method: str) -> None:
        with patch.object(logging.Logger, method) as mock_method:
            await log_info("Message", type_msg=type_msg)

            mock_method.assert_called_once()

    @pytest.mark.asyncio
    async def test_log_info_with_extra(self) -> None:
        with patch.object(logging.Logger, "info") as mock_info:
            await log_info("Test message", extra={"execution_id": "exec-1"})

            extra_data = mock_info.call_args[1]["extra"]["extra_data"]
            assert extra_data["execution_id"] == "exec-1"

    @pytest.mark.asyncio
    async def test_log_debug(self) -> None:
        with patch.object(logging.Logger, "debug") as mock_debug:
            await log_debug("Debug message")

            mock_debug.assert_called_once()

    @pytest.mark.asyncio
    async def test_log_warning(self) -> None:
        with patch.object(logging.Logger, "warning") as mock_warning:
            await log_warning("Warning message")

            mock_warning.assert_called_once()

    @pytest.mark.asyncio
    async def test_log_error_with_exc_info(self) -> None:
        with patch.object(logging.Logger, "error") as mock_error:
            await log_error("Error message", exc_info=True)

            assert mock_error.call_args[1].get("exc_info") is True

    @pytest.mark.asyncio
    async def test_log_info_with_custom_logger_name(self) -> None:
        with patch("soa_tours.common.logger.get_logger") as mock_get_logger:
            mock_logger = MagicMock()
            mock_get_logger.return_value = mock_logger

            await log_info("Test message", logger_name="custom_logger")

            mock_get_logger.assert_called_once_with("custom_logger")
            mock_logger.info.assert_called_once()
