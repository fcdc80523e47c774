"""Writes resolved frames to a :class:`~lattice.tui.terminal.Terminal`.

The screen is split into the content area (top) and the status bar region
(bottom). Each row is padded to the terminal width and drawn on the palette
background using the persistent-background technique, so nested resets in
the content do not punch holes into the background.

Rows are diffed against the previous frame and only changed rows are
rewritten. A size change forces a full redraw.
"""

from __future__ import annotations

import logging

from lattice.tui.ansi import RESET, Color, apply_persistent_background, move_cursor
from lattice.tui.buffer import FrameBuffer
from lattice.tui.terminal import Terminal
from lattice.tui.utils import pad_to_width, truncate_to_width

logger = logging.getLogger(__name__)


class FrameWriter:
    def __init__(self, terminal: Terminal) -> None:
        self.terminal = terminal
        self._previous: list[str] = []
        self._previous_size: tuple[int, int] | None = None
        self.full_redraws = 0

    def invalidate(self) -> None:
        """Forget the previous frame; the next write redraws every row."""
        self._previous = []
        self._previous_size = None

    def compose(
        self,
        content: FrameBuffer,
        status_bar: FrameBuffer,
        columns: int,
        rows: int,
        background: Color | None = None,
    ) -> list[str]:
        """The full screen as *rows* rendered lines of *columns* width."""
        status_rows = min(status_bar.height, rows)
        content_rows = rows - status_rows

        screen: list[str] = []
        for row in range(content_rows):
            line = content.lines[row] if row < content.height else ""
            screen.append(_render_row(line, columns, background))
        for line in status_bar.lines[:status_rows]:
            screen.append(_render_row(line, columns, background))
        return screen

    def write_frame(
        self,
        content: FrameBuffer,
        status_bar: FrameBuffer,
        columns: int,
        rows: int,
        background: Color | None = None,
    ) -> int:
        """Draw one frame; returns the number of rows written."""
        screen = self.compose(content, status_bar, columns, rows, background)

        full = self._previous_size != (columns, rows)
        if full:
            self.full_redraws += 1
            self.terminal.clear_screen()

        written = 0
        for index, line in enumerate(screen):
            if not full and index < len(self._previous) and self._previous[index] == line:
                continue
            self.terminal.write(move_cursor(index + 1, 1) + line)
            written += 1

        self.terminal.flush()
        self._previous = screen
        self._previous_size = (columns, rows)
        logger.debug("Frame written: %d/%d rows (full=%s)", written, len(screen), full)
        return written


def _render_row(line: str, columns: int, background: Color | None) -> str:
    line = pad_to_width(truncate_to_width(line, columns), columns)
    if background is not None:
        line = apply_persistent_background(line, background)
    return line + RESET
