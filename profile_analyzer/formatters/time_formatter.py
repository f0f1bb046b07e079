"""
Time and size formatting utilities for human-readable output.
"""


def format_time(ms: float) -> str:
    """
    Format time in milliseconds to a human-readable string.

    Args:
        ms: Time in milliseconds

    Returns:
        Formatted time string (e.g., "123.45 ms", "2.34 s", "1m 30.50s")
    """
    if ms < 1000:
        return f"{ms:.2f} ms"
    elif ms < 60000:
        return f"{ms/1000:.2f} s"
    else:
        minutes = int(ms / 60000)
        seconds = (ms % 60000) / 1000
        return f"{minutes}m {seconds:.2f}s"


def format_value(value: float, time_unit_label: str) -> str:
    """
    Format a call tree metric in the unit of its profile.

    Args:
        value: Metric value
        time_unit_label: 'ms' for timed profiles, 'samples' for sample counts

    Returns:
        Time string for timed profiles, "<n> samples" otherwise
    """
    if time_unit_label == 'samples':
        return f"{value:,.0f} samples"
    return format_time(value)


def format_bytes(size_bytes: int) -> str:
    """
    Format a byte count.

    Args:
        size_bytes: Number of bytes

    Returns:
        Formatted size (e.g., "512 B", "1.50 KB", "3.25 MB", "1.00 GB")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.2f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.2f} MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.2f} GB"


def format_percent(part: float, whole: float) -> str:
    """Share of `whole` as a one-decimal percentage, "0.0%" when `whole` is not positive."""
    if whole <= 0:
        return "0.0%"
    return f"{100.0 * part / whole:.1f}%"
