"""Formatting helper functions."""


def format_time(seconds: float) -> str:
    """
    Format seconds as M:SS.

    Args:
        seconds: Time in seconds

    Returns:
        Formatted time string
    """
    if seconds < 0:
        seconds = 0
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes}:{secs:02d}"


def progress_bar(fraction: float, width: int, filled: str = "█", empty: str = "░") -> tuple[str, str]:
    """Split a bar of `width` cells into its (filled, empty) parts."""
    fraction = max(0.0, min(1.0, fraction))
    count = int(fraction * width)
    return filled * count, empty * (width - count)


def truncate(text: str, width: int) -> str:
    if len(text) <= width:
        return text
    if width <= 3:
        return text[:width]
    return text[: width - 3] + "..."


def tab_label(key: str, width: int = 8) -> str:
    """Fit a playlist key into a fixed-width, centred tab label."""
    if len(key) > width:
        key = key[: width - 1] + "."
    return key.center(width)
