"""
Tests for CopyErrorHandler retry decisions.
"""

import pytest

from media_ingest.config import Settings
from media_ingest.core.exceptions import ChecksumMismatchError
from media_ingest.services.transfer import CopyErrorHandler, ErrorType


@pytest.fixture
def retry_settings(tmp_path):
    return Settings(
        destination_path=str(tmp_path),
        max_retry_attempts=2,
        retry_delay_seconds=0.5,
    )


@pytest.fixture
def error_handler(retry_settings):
    return CopyErrorHandler(retry_settings)


class TestErrorClassification:
    @pytest.mark.parametrize(
        "error",
        [
            FileNotFoundError("gone"),
            PermissionError("denied"),
            IsADirectoryError("dir"),
            NotADirectoryError("not dir"),
        ],
    )
    def test_permanent_errors(self, error_handler, error):
        assert error_handler.classify_error(error) == ErrorType.PERMANENT

    def test_checksum_mismatch_is_integrity(self, error_handler):
        error = ChecksumMismatchError("/a", "aa" * 32, "bb" * 32)
        assert error_handler.classify_error(error) == ErrorType.INTEGRITY

    def test_other_os_errors_are_transient(self, error_handler):
        assert error_handler.classify_error(OSError(5, "I/O error")) == ErrorType.TRANSIENT


class TestRetryDecisions:
    def test_permanent_error_never_retried(self, error_handler):
        decision = error_handler.decide(FileNotFoundError("gone"), attempt=1)

        assert decision.should_retry is False
        assert decision.error_type == ErrorType.PERMANENT
        assert "Permanent error" in decision.error_message

    def test_transient_error_retried_with_backoff(self, error_handler):
        first = error_handler.decide(OSError(5, "I/O error"), attempt=1)
        second = error_handler.decide(OSError(5, "I/O error"), attempt=2)

        assert first.should_retry is True
        assert first.delay_seconds == pytest.approx(0.5)
        assert second.should_retry is True
        assert second.delay_seconds == pytest.approx(1.0)

    def test_retries_stop_after_max_attempts(self, error_handler):
        decision = error_handler.decide(OSError(5, "I/O error"), attempt=3)

        assert decision.should_retry is False
        assert "Max retry attempts (2) reached" in decision.error_message

    def test_default_settings_never_retry(self, tmp_path):
        handler = CopyErrorHandler(Settings(destination_path=str(tmp_path)))
        decision = handler.decide(OSError(5, "I/O error"), attempt=1)

        assert decision.should_retry is False
        assert decision.error_message == "OSError: [Errno 5] I/O error"
