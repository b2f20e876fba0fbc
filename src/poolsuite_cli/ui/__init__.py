"""Terminal UI - blessed renderer and keyboard input."""

from .formatting import format_time, progress_bar, tab_label, truncate
from .keys import KeyReader, parse_key
from .renderer import BlessedRenderer

__all__ = [
    "BlessedRenderer",
    "KeyReader",
    "format_time",
    "parse_key",
    "progress_bar",
    "tab_label",
    "truncate",
]
