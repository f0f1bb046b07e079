"""
Unit tests for profile_analyzer.formatters.time_formatter module.
"""
import pytest
from profile_analyzer.formatters.time_formatter import format_bytes, format_percent, format_time, format_value


class TestFormatTime:
    """Tests for the format_time() function."""

    def test_format_milliseconds(self):
        """Test formatting times in milliseconds."""
        assert format_time(0.5) == "0.50 ms"
        assert format_time(10.25) == "10.25 ms"
        assert format_time(999.99) == "999.99 ms"

    def test_format_seconds(self):
        """Test formatting times in seconds."""
        assert format_time(1000) == "1.00 s"
        assert format_time(1500) == "1.50 s"

    def test_format_minutes(self):
        """Test formatting times in minutes and seconds."""
        assert format_time(60000) == "1m 0.00s"
        assert format_time(90000) == "1m 30.00s"
        assert format_time(125500) == "2m 5.50s"

    def test_zero_time(self):
        """Test formatting zero time."""
        assert format_time(0) == "0.00 ms"

    def test_precision(self):
        """Test decimal precision in formatting."""
        assert format_time(1.234) == "1.23 ms"
        assert format_time(1234.567) == "1.23 s"
        assert format_time(61234.567) == "1m 1.23s"


class TestFormatValue:
    """Tests for unit-aware metric formatting."""

    def test_sample_counts(self):
        """Test sample-counted profiles format as whole samples."""
        assert format_value(1234, 'samples') == "1,234 samples"
        assert format_value(2.6, 'samples') == "3 samples"

    def test_time_units(self):
        """Test timed profiles fall back to time formatting."""
        assert format_value(1500, 'ms') == "1.50 s"


class TestFormatBytes:
    """Tests for the format_bytes() function."""

    @pytest.mark.parametrize("size_bytes,expected", [
        (0, "0 B"),
        (512, "512 B"),
        (1536, "1.50 KB"),
        (3 * 1024 * 1024 + 256 * 1024, "3.25 MB"),
        (1024 ** 3, "1.00 GB"),
    ])
    def test_units(self, size_bytes, expected):
        """Test each size unit boundary."""
        assert format_bytes(size_bytes) == expected


class TestFormatPercent:
    """Tests for the format_percent() function."""

    def test_share(self):
        """Test a regular share."""
        assert format_percent(1, 3) == "33.3%"

    def test_empty_whole(self):
        """Test a zero total yields zero percent."""
        assert format_percent(5, 0) == "0.0%"
