"""
Tests for progress and formatting helpers.
"""

import pytest

from media_ingest.utils.progress_utils import (
    calculate_progress_percent,
    calculate_transfer_rate,
    format_bytes_human_readable,
    format_duration,
    format_transfer_rate_human_readable,
)


class TestCalculations:
    def test_progress_zero_total(self):
        assert calculate_progress_percent(10, 0) == 0.0

    def test_progress_is_capped(self):
        assert calculate_progress_percent(150, 100) == 100.0

    def test_progress(self):
        assert calculate_progress_percent(25, 100) == pytest.approx(25.0)

    def test_rate_zero_elapsed(self):
        assert calculate_transfer_rate(100, 0) == 0.0

    def test_rate(self):
        assert calculate_transfer_rate(100, 4) == pytest.approx(25.0)


class TestFormatting:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (0, "0 B"),
            (1023, "1023 B"),
            (1024, "1.0 KB"),
            (1536, "1.5 KB"),
            (5 * 1024**2, "5.0 MB"),
            (int(1.5 * 1024**3), "1.5 GB"),
            (2 * 1024**4, "2.0 TB"),
        ],
    )
    def test_format_bytes(self, value, expected):
        assert format_bytes_human_readable(value) == expected

    def test_format_bytes_precision(self):
        assert format_bytes_human_readable(3 * 1024**3, precision=2) == "3.00 GB"

    def test_format_rate(self):
        assert format_transfer_rate_human_readable(10 * 1024**2) == "10.00 MB/s"

    @pytest.mark.parametrize(
        "seconds,expected",
        [(0, "0s"), (59.4, "59s"), (61, "1m01s"), (3725, "1h02m05s")],
    )
    def test_format_duration(self, seconds, expected):
        assert format_duration(seconds) == expected
