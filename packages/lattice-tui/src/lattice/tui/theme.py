"""Colour palettes, appearances and the manager that cycles through them.

A :class:`Palette` names the colours widgets draw with; an
:class:`Appearance` picks the border style. Both are plain data. The
:class:`ThemeManager` holds an ordered list of either and a current index;
moving the index re-applies the current item and requests a new frame.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Generic, Protocol, Sequence, TypeVar

from lattice.tui.ansi import Color, Colors
from lattice.tui.border import BorderStyle, BorderStyles

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Palette
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Palette:
    id: str
    name: str
    background: Color
    foreground: Color
    foreground_secondary: Color
    foreground_tertiary: Color
    accent: Color
    success: Color
    warning: Color
    error: Color
    info: Color
    border: Color
    border_focused: Color
    selection_background: Color
    status_bar_background: Color
    status_bar_foreground: Color
    status_bar_highlight: Color
    container_background: Color

    @classmethod
    def generated(cls, name: str, hue: float, saturation: float = 100) -> Palette:
        """Derive a dark palette from a single hue (degrees)."""
        s = max(0.0, min(100.0, saturation))

        def shade(h: float, sat: float, light: float) -> Color:
            return Color.hsl(h % 360, s * sat, light)

        return cls(
            id=f"generated-{name.lower()}",
            name=name,
            background=shade(hue, 0.30, 3),
            foreground=shade(hue, 0.80, 70),
            foreground_secondary=shade(hue, 0.70, 55),
            foreground_tertiary=shade(hue, 0.60, 40),
            accent=shade(hue, 0.85, 78),
            success=shade(hue + 120, 0.70, 65),
            warning=shade(hue + 60, 0.80, 70),
            error=shade(hue + 180, 0.85, 65),
            info=shade(hue - 60, 0.70, 70),
            border=shade(hue, 0.40, 25),
            border_focused=shade(hue, 0.80, 70),
            selection_background=shade(hue, 0.50, 18),
            status_bar_background=shade(hue, 0.35, 8),
            status_bar_foreground=shade(hue, 0.75, 65),
            status_bar_highlight=shade(hue, 0.85, 78),
            container_background=shade(hue, 0.40, 10),
        )


def _phosphor(
    palette_id: str,
    name: str,
    background: int,
    foreground: tuple[int, int, int],
    accent: int,
    semantic: tuple[int, int, int, int],
    border: int,
    selection_background: int,
    status_bar: tuple[int, int],
    container: int,
) -> Palette:
    fg, fg2, fg3 = foreground
    success, warning, error, info = semantic
    return Palette(
        id=palette_id,
        name=name,
        background=Color.hex(background),
        foreground=Color.hex(fg),
        foreground_secondary=Color.hex(fg2),
        foreground_tertiary=Color.hex(fg3),
        accent=Color.hex(accent),
        success=Color.hex(success),
        warning=Color.hex(warning),
        error=Color.hex(error),
        info=Color.hex(info),
        border=Color.hex(border),
        border_focused=Color.hex(fg),
        selection_background=Color.hex(selection_background),
        status_bar_background=Color.hex(status_bar[0]),
        status_bar_foreground=Color.hex(status_bar[1]),
        status_bar_highlight=Color.hex(accent),
        container_background=Color.hex(container),
    )


GREEN_PALETTE = _phosphor(
    "green-phosphor", "Green", 0x060A07, (0x33FF33, 0x27C227, 0x1F8F1F), 0x66FF66,
    (0x33FF33, 0xCCFF33, 0xFF6633, 0x33FFCC), 0x2D5A2D, 0x1A4D1A, (0x0F2215, 0x2FDD2F), 0x0E271C,
)
AMBER_PALETTE = _phosphor(
    "amber-phosphor", "Amber", 0x0A0706, (0xFFAA00, 0xCC8800, 0x8F6600), 0xFFCC33,
    (0xFFCC00, 0xFFE066, 0xFF6633, 0xFFD966), 0x5A4A2D, 0x4D3A1F, (0x191613, 0xFFAA00), 0x251710,
)
WHITE_PALETTE = _phosphor(
    "white-phosphor", "White", 0x06070A, (0xE8E8E8, 0xB0B0B0, 0x787878), 0xFFFFFF,
    (0xC0FFC0, 0xFFE0A0, 0xFFA0A0, 0xA0D0FF), 0x484848, 0x3A3A3A, (0x131619, 0xDCDCDC), 0x111A2A,
)
RED_PALETTE = _phosphor(
    "red-phosphor", "Red", 0x0A0606, (0xFF4444, 0xCC3333, 0x8F2222), 0xFF6666,
    (0xFF8080, 0xFFAA66, 0xFFFFFF, 0xFF9999), 0x5A2D2D, 0x4D1F1F, (0x191313, 0xF23B3B), 0x281112,
)
NCURSES_PALETTE = Palette(
    id="ncurses",
    name="ncurses",
    background=Colors.black,
    foreground=Colors.white,
    foreground_secondary=Colors.bright_white,
    foreground_tertiary=Colors.bright_black,
    accent=Colors.cyan,
    success=Colors.green,
    warning=Colors.yellow,
    error=Colors.red,
    info=Colors.cyan,
    border=Colors.white,
    border_focused=Colors.bright_cyan,
    selection_background=Colors.blue,
    status_bar_background=Colors.blue,
    status_bar_foreground=Colors.white,
    status_bar_highlight=Colors.yellow,
    container_background=Colors.blue,
)
VIOLET_PALETTE = Palette.generated("Violet", 270)

PALETTES: list[Palette] = [
    GREEN_PALETTE,
    AMBER_PALETTE,
    WHITE_PALETTE,
    RED_PALETTE,
    NCURSES_PALETTE,
    VIOLET_PALETTE,
]


def palette_by_id(palette_id: str) -> Palette | None:
    for palette in PALETTES:
        if palette.id == palette_id:
            return palette
    return None


# ---------------------------------------------------------------------------
# Appearance
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Appearance:
    id: str
    border_style: BorderStyle

    @property
    def name(self) -> str:
        return self.id.replace("_", " ").title()


LINE_APPEARANCE = Appearance("line", BorderStyles.line)
ROUNDED_APPEARANCE = Appearance("rounded", BorderStyles.rounded)
DOUBLE_LINE_APPEARANCE = Appearance("double_line", BorderStyles.double_line)
HEAVY_APPEARANCE = Appearance("heavy", BorderStyles.heavy)
BLOCK_APPEARANCE = Appearance("block", BorderStyles.block)

DEFAULT_APPEARANCE = ROUNDED_APPEARANCE

APPEARANCES: list[Appearance] = [
    LINE_APPEARANCE,
    ROUNDED_APPEARANCE,
    DOUBLE_LINE_APPEARANCE,
    HEAVY_APPEARANCE,
    BLOCK_APPEARANCE,
]


# ---------------------------------------------------------------------------
# ThemeManager
# ---------------------------------------------------------------------------


class Cyclable(Protocol):
    @property
    def id(self) -> str: ...

    @property
    def name(self) -> str: ...


T = TypeVar("T", bound=Cyclable)


class ThemeManager(Generic[T]):
    """Cycles through an ordered list of palettes or appearances."""

    def __init__(
        self,
        items: Sequence[T],
        apply: Callable[[T], None] | None = None,
        on_change: Callable[[], None] | None = None,
        initial: T | None = None,
    ) -> None:
        if not items:
            raise ValueError("ThemeManager requires at least one item")
        self.items: list[T] = list(items)
        self._apply = apply
        self.on_change = on_change
        self._index = 0
        if initial is not None:
            self._index = self._index_of(initial, default=0)

    @property
    def current(self) -> T:
        return self.items[self._index]

    @property
    def current_name(self) -> str:
        return self.current.name

    def cycle_next(self) -> T:
        self._index = (self._index + 1) % len(self.items)
        return self._apply_current()

    def cycle_previous(self) -> T:
        self._index = (self._index - 1) % len(self.items)
        return self._apply_current()

    def set_current(self, item: T) -> T:
        """Select *item* by id. Unknown items leave the index unchanged."""
        self._index = self._index_of(item, default=self._index)
        return self._apply_current()

    def _index_of(self, item: T, default: int) -> int:
        for i, candidate in enumerate(self.items):
            if candidate.id == item.id:
                return i
        return default

    def _apply_current(self) -> T:
        current = self.current
        logger.debug("Theme manager switched to %s", current.name)
        if self._apply is not None:
            self._apply(current)
        if self.on_change is not None:
            self.on_change()
        return current
