"""Blessed-based player screen.

Draws a boxed, tabbed player from a Snapshot: playlist tabs, the current
track, a progress bar and the key legend. While a playlist is resolving the
body shows the loading message instead.
"""

import sys
from typing import Optional

from blessed import Terminal

from poolsuite_cli.domain.playback.snapshot import Snapshot

from .formatting import format_time, progress_bar, tab_label, truncate

CONTENT_WIDTH = 72
BAR_WIDTH = 40
TAB_WIDTH = 8
CONTROLS = "[Space] Play  [</>] Seek  [n/p] Track  [Tab] Playlist  [q] Quit"


class BlessedRenderer:
    """Renders snapshots to the terminal; only redraws when the frame changes."""

    def __init__(self, term: Terminal, use_colors: bool = True, width: int = CONTENT_WIDTH):
        self.term = term
        self.use_colors = use_colors
        self.width = width
        self._last_frame: Optional[list[str]] = None

    def _style(self, name: str, text: str) -> str:
        if not self.use_colors:
            return text
        return getattr(self.term, name)(text)

    def _border(self, left: str, right: str) -> str:
        return self._style("cyan", left + "─" * self.width + right)

    def _line(self, content: str, visible_len: int) -> str:
        """Centre already-styled `content` of `visible_len` cells in a box row."""
        pad = max(0, (self.width - visible_len) // 2)
        right = max(0, self.width - pad - visible_len)
        edge = self._style("cyan", "│")
        return f"{edge}{' ' * pad}{content}{' ' * right}{edge}"

    def _text_line(self, text: str, style: str) -> str:
        text = truncate(text, self.width - 4)
        return self._line(self._style(style, text), len(text))

    def _tabs(self, snapshot: Snapshot) -> str:
        parts = []
        for key in snapshot.available_keys:
            label = tab_label(key, TAB_WIDTH)
            if key == snapshot.playlist_key:
                parts.append(self._style("bold_cyan", f"[{label}]"))
            else:
                parts.append(self._style("blue", f" {label} "))
        visible = len(snapshot.available_keys) * (TAB_WIDTH + 2)
        return self._line("".join(parts), min(visible, self.width))

    def build_frame(self, snapshot: Snapshot) -> list[str]:
        lines = [
            "",
            self._border("┌", "┐"),
            self._tabs(snapshot),
            self._border("├", "┤"),
        ]

        if snapshot.is_loading:
            message = snapshot.loading_message or "Loading..."
            lines += [
                self._line("", 0),
                self._text_line(message, "yellow"),
                self._line("", 0),
                self._border("└", "┘"),
            ]
            return lines

        track = snapshot.track
        assert track is not None
        filled, empty = progress_bar(snapshot.progress, BAR_WIDTH)
        times = f"  {format_time(snapshot.position)} / {format_time(snapshot.duration)} "
        marker = self._style("yellow", "││") if snapshot.paused else self._style("green", "▶")
        marker_len = 2 if snapshot.paused else 1
        progress = self._style("cyan", filled) + self._style("blue", empty) + times + marker

        lines += [
            self._text_line(track.display_name, "yellow"),
            self._text_line(f"[ {snapshot.index} / {snapshot.total} ]", "blue"),
            self._line("", 0),
            self._line(progress, BAR_WIDTH + len(times) + marker_len),
            self._line("", 0),
            self._text_line(CONTROLS, "blue"),
            self._border("└", "┘"),
        ]
        return lines

    def render(self, snapshot: Snapshot) -> None:
        frame = self.build_frame(snapshot)
        if frame == self._last_frame:
            return
        self._last_frame = frame

        out = [self.term.home + self.term.clear]
        for i, line in enumerate(frame):
            out.append(self.term.move_xy(0, i) + line)
        sys.stdout.write("".join(out))
        sys.stdout.flush()
