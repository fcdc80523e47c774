"""FrameBuffer: the 2D line buffer every component renders into.

Lines may embed escape sequences. All width arithmetic uses
:func:`~lattice.tui.utils.visible_width` so styling never shifts columns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from lattice.tui.utils import pad_to_width, split_columns, strip_ansi, visible_width


@dataclass
class FrameBuffer:
    """An ordered list of terminal lines.

    ``width`` is the widest visible line, ``height`` the number of lines.
    The ``append_*`` and :meth:`overlay` methods mutate in place;
    :meth:`composited` returns a new buffer.
    """

    lines: list[str] = field(default_factory=list)

    # -- constructors -------------------------------------------------------

    @classmethod
    def from_text(cls, text: str) -> FrameBuffer:
        return cls(text.split("\n"))

    @classmethod
    def blank(cls, height: int) -> FrameBuffer:
        """A buffer of *height* empty lines."""
        return cls([""] * max(0, height))

    @classmethod
    def stacked(cls, buffers: Iterable[FrameBuffer], spacing: int = 0) -> FrameBuffer:
        result = cls()
        for buf in buffers:
            result.append_vertically(buf, spacing)
        return result

    # -- measurements -------------------------------------------------------

    @property
    def width(self) -> int:
        return max((visible_width(line) for line in self.lines), default=0)

    @property
    def height(self) -> int:
        return len(self.lines)

    @property
    def is_empty(self) -> bool:
        """``True`` when there are no lines or every line is the empty string."""
        return all(line == "" for line in self.lines)

    def copy(self) -> FrameBuffer:
        return FrameBuffer(list(self.lines))

    # -- combining ----------------------------------------------------------

    def append_vertically(self, other: FrameBuffer, spacing: int = 0) -> None:
        """Append *other*'s lines below, with *spacing* blank lines between.

        The blank lines are only inserted when both sides have content.
        """
        if self.lines and not other.is_empty and spacing > 0:
            self.lines.extend([""] * spacing)
        self.lines.extend(other.lines)

    def append_horizontally(self, other: FrameBuffer, spacing: int = 0) -> None:
        """Place *other* to the right, row by row.

        Each left row is padded to this buffer's width so the right column
        starts at the same position on every row.
        """
        left_width = self.width
        gap = " " * spacing
        rows = max(self.height, other.height)
        result: list[str] = []
        for row in range(rows):
            left = self.lines[row] if row < self.height else ""
            right = other.lines[row] if row < other.height else ""
            result.append(pad_to_width(left, left_width) + gap + right)
        self.lines = result

    def overlay(self, other: FrameBuffer) -> None:
        """Row-wise replacement: non-empty rows of *other* replace ours."""
        rows = max(self.height, other.height)
        result: list[str] = []
        for row in range(rows):
            if row < other.height and other.lines[row]:
                result.append(other.lines[row])
            elif row < self.height:
                result.append(self.lines[row])
            else:
                result.append("")
        self.lines = result

    def composited(self, other: FrameBuffer, x: int = 0, y: int = 0) -> FrameBuffer:
        """Return a copy with *other* drawn on top at column *x*, row *y*.

        The result grows to fit both buffers. Base rows touched by the
        overlay lose their own styling (they are stripped to plain text so
        columns line up); the overlay keeps its escape sequences verbatim.
        Base characters left and right of the overlay span are kept.
        """
        if other.is_empty:
            return self.copy()

        x = max(0, x)
        y = max(0, y)
        result_width = max(self.width, x + other.width)
        result_height = max(self.height, y + other.height)

        result: list[str] = []
        for row in range(result_height):
            if row < self.height:
                base = pad_to_width(self.lines[row], result_width)
            else:
                base = " " * result_width

            overlay_row = row - y
            if 0 <= overlay_row < other.height and other.lines[overlay_row]:
                base = _insert_overlay(base, other.lines[overlay_row], x)
            result.append(base)
        return FrameBuffer(result)

    # -- sizing helpers -----------------------------------------------------

    def padded(self, width: int) -> FrameBuffer:
        """Copy with every line padded to *width* visible columns."""
        return FrameBuffer([pad_to_width(line, width) for line in self.lines])

    def stripped_lines(self) -> list[str]:
        return [strip_ansi(line) for line in self.lines]

    def __iter__(self):
        return iter(self.lines)


def _insert_overlay(base: str, overlay: str, column: int) -> str:
    plain = strip_ansi(base)
    span = visible_width(overlay)
    before, _, after = split_columns(plain, column, column + span)
    missing = column - visible_width(before)
    if missing > 0:
        before += " " * missing
    return before + overlay + after
