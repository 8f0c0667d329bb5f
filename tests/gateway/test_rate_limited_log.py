"""
Tests for the rate-limited logging helper.
"""
import threading
from unittest.mock import MagicMock, patch

from cachetools import TTLCache

from tetto_sdk.gateway import _rate_limited_log
from tetto_sdk.gateway._rate_limited_log import rate_limited_log


class TestRateLimitedLog:
    """Tests for the rate-limited logging implementation."""

    def test_repeated_message_is_suppressed(self):
        mock_logger = MagicMock()

        assert rate_limited_log("Test message", logger_instance=mock_logger) is True
        assert rate_limited_log("Test message", logger_instance=mock_logger) is False

        mock_logger.warning.assert_called_once_with("Test message")

    def test_level_is_part_of_the_key(self):
        mock_logger = MagicMock()

        rate_limited_log("Test message", level="warning", logger_instance=mock_logger)
        rate_limited_log("Test message", level="error", logger_instance=mock_logger)

        mock_logger.warning.assert_called_once_with("Test message")
        mock_logger.error.assert_called_once_with("Test message")

    def test_different_messages_are_logged(self):
        mock_logger = MagicMock()

        rate_limited_log("First", logger_instance=mock_logger)
        rate_limited_log("Second", logger_instance=mock_logger)

        assert mock_logger.warning.call_count == 2

    def test_message_is_logged_again_after_expiry(self):
        clock = [0.0]
        cache = TTLCache(maxsize=16, ttl=300, timer=lambda: clock[0])
        mock_logger = MagicMock()

        with patch.object(_rate_limited_log, "_seen", cache):
            rate_limited_log("Expiring", logger_instance=mock_logger)
            clock[0] = 299.0
            rate_limited_log("Expiring", logger_instance=mock_logger)
            clock[0] = 301.0
            rate_limited_log("Expiring", logger_instance=mock_logger)

        assert mock_logger.warning.call_count == 2

    def test_reset_forgets_messages(self):
        mock_logger = MagicMock()

        rate_limited_log("Reset me", logger_instance=mock_logger)
        _rate_limited_log.reset()
        rate_limited_log("Reset me", logger_instance=mock_logger)

        assert mock_logger.warning.call_count == 2

    def test_concurrent_callers_log_once(self):
        mock_logger = MagicMock()
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            rate_limited_log("Concurrent", logger_instance=mock_logger)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        mock_logger.warning.assert_called_once_with("Concurrent")

    def test_unknown_level_falls_back_to_warning(self):
        mock_logger = MagicMock(spec=["warning"])

        rate_limited_log("Odd level", level="verbose", logger_instance=mock_logger)

        mock_logger.warning.assert_called_once_with("Odd level")
