"""Output formatting utilities."""

from .time_formatter import format_bytes, format_percent, format_time, format_value

__all__ = ["format_time", "format_value", "format_bytes", "format_percent"]
