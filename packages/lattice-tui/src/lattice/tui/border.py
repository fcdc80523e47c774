"""Box-drawing border styles and border line rendering."""

from __future__ import annotations

from dataclasses import dataclass

from lattice.tui.ansi import (
    RESET,
    Color,
    TextStyle,
    apply_persistent_background,
    colorize,
    render_styled,
)
from lattice.tui.utils import pad_to_width, truncate_to_width, visible_width

# Left + right border columns.
BORDER_OVERHEAD = 2


@dataclass(frozen=True)
class BorderStyle:
    top_left: str
    top_right: str
    bottom_left: str
    bottom_right: str
    horizontal: str
    vertical: str
    left_t: str = ""
    right_t: str = ""

    def __post_init__(self) -> None:
        # T-junctions default to the vertical character
        if not self.left_t:
            object.__setattr__(self, "left_t", self.vertical)
        if not self.right_t:
            object.__setattr__(self, "right_t", self.vertical)


class BorderStyles:
    line = BorderStyle("┌", "┐", "└", "┘", "─", "│", "├", "┤")
    rounded = BorderStyle("╭", "╮", "╰", "╯", "─", "│", "├", "┤")
    double_line = BorderStyle("╔", "╗", "╚", "╝", "═", "║", "╠", "╣")
    heavy = BorderStyle("┏", "┓", "┗", "┛", "━", "┃", "┣", "┫")
    block = BorderStyle("█", "█", "█", "█", "█", "█", "█", "█")
    ascii = BorderStyle("+", "+", "+", "+", "-", "|", "+", "+")
    none = BorderStyle(" ", " ", " ", " ", " ", " ", " ", " ")


def top_border(
    style: BorderStyle,
    inner_width: int,
    color: Color | None = None,
    title: str | None = None,
    title_color: Color | None = None,
) -> str:
    """``┌────┐``, optionally with `` title `` embedded after the corner."""
    if not title:
        return colorize(style.top_left + style.horizontal * inner_width + style.top_right, color)

    title = truncate_to_width(title, max(0, inner_width - 3))
    left = colorize(style.top_left + style.horizontal, color)
    styled_title = render_styled(f" {title} ", TextStyle(foreground=title_color, bold=True))
    rest = max(0, inner_width - 1 - visible_width(title) - 2)
    right = colorize(style.horizontal * rest + style.top_right, color)
    return left + styled_title + right


def bottom_border(style: BorderStyle, inner_width: int, color: Color | None = None) -> str:
    return colorize(style.bottom_left + style.horizontal * inner_width + style.bottom_right, color)


def divider_line(style: BorderStyle, inner_width: int, color: Color | None = None) -> str:
    return colorize(style.left_t + style.horizontal * inner_width + style.right_t, color)


def content_line(
    content: str,
    style: BorderStyle,
    inner_width: int,
    color: Color | None = None,
    background: Color | None = None,
) -> str:
    """``│content│`` with the content padded to *inner_width*."""
    padded = pad_to_width(content, inner_width)
    if background is not None:
        padded = apply_persistent_background(padded, background) + RESET
    vertical = colorize(style.vertical, color)
    return vertical + padded + vertical
