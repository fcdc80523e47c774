"""Escape-sequence generation: SGR styling, colours, cursor and screen control.

Every byte the engine sends to the terminal is built here. Colours come in
four flavours (standard 8-colour, bright, 256-colour palette index and
24-bit truecolor); :class:`TextStyle` bundles colours with the boolean SGR
attributes and renders them as a single ``ESC[...m`` sequence.
"""

from __future__ import annotations

import colorsys
from dataclasses import dataclass
from enum import Enum

ESC = "\x1b"
CSI = ESC + "["
RESET = CSI + "0m"

# ---------------------------------------------------------------------------
# SGR attribute codes
# ---------------------------------------------------------------------------

BOLD = 1
DIM = 2
ITALIC = 3
UNDERLINE = 4
BLINK = 5
INVERSE = 7
STRIKETHROUGH = 9

DIM_CODE = f"{CSI}{DIM}m"

# ---------------------------------------------------------------------------
# Cursor / screen control
# ---------------------------------------------------------------------------

HIDE_CURSOR = CSI + "?25l"
SHOW_CURSOR = CSI + "?25h"
CLEAR_SCREEN = CSI + "2J"
CLEAR_LINE = CSI + "2K"
ENTER_ALTERNATE_SCREEN = CSI + "?1049h"
EXIT_ALTERNATE_SCREEN = CSI + "?1049l"
CURSOR_HOME = CSI + "H"


def move_cursor(row: int, column: int) -> str:
    """Absolute move; *row* and *column* are 1-based."""
    return f"{CSI}{row};{column}H"


def cursor_up(n: int = 1) -> str:
    return f"{CSI}{n}A"


def cursor_down(n: int = 1) -> str:
    return f"{CSI}{n}B"


def cursor_forward(n: int = 1) -> str:
    return f"{CSI}{n}C"


def cursor_back(n: int = 1) -> str:
    return f"{CSI}{n}D"


# ---------------------------------------------------------------------------
# Colours
# ---------------------------------------------------------------------------


class ColorKind(Enum):
    STANDARD = "standard"
    BRIGHT = "bright"
    PALETTE = "palette"
    RGB = "rgb"


# Standard ANSI colour indices; ``default`` maps to SGR 39 / 49.
ANSI_COLOR_INDEX: dict[str, int] = {
    "black": 0,
    "red": 1,
    "green": 2,
    "yellow": 3,
    "blue": 4,
    "magenta": 5,
    "cyan": 6,
    "white": 7,
    "default": 9,
}


@dataclass(frozen=True)
class Color:
    """A terminal colour.

    Build instances with the classmethods (:meth:`standard`, :meth:`bright`,
    :meth:`palette`, :meth:`rgb`, :meth:`hex`, :meth:`hsl`) rather than
    the constructor.
    """

    kind: ColorKind
    value: tuple[int, ...]

    # -- constructors -------------------------------------------------------

    @classmethod
    def standard(cls, name: str) -> Color:
        if name not in ANSI_COLOR_INDEX:
            raise ValueError(f"Unknown ANSI colour: {name!r}")
        return cls(ColorKind.STANDARD, (ANSI_COLOR_INDEX[name],))

    @classmethod
    def bright(cls, name: str) -> Color:
        if name not in ANSI_COLOR_INDEX or name == "default":
            raise ValueError(f"Unknown ANSI colour: {name!r}")
        return cls(ColorKind.BRIGHT, (ANSI_COLOR_INDEX[name],))

    @classmethod
    def palette(cls, index: int) -> Color:
        if not 0 <= index <= 255:
            raise ValueError(f"Palette index out of range: {index}")
        return cls(ColorKind.PALETTE, (index,))

    @classmethod
    def rgb(cls, red: int, green: int, blue: int) -> Color:
        for channel in (red, green, blue):
            if not 0 <= channel <= 255:
                raise ValueError(f"RGB channel out of range: {channel}")
        return cls(ColorKind.RGB, (red, green, blue))

    @classmethod
    def hex(cls, value: int | str) -> Color:
        """Build from ``0xRRGGBB`` or a ``"#RRGGBB"`` / ``"#RGB"`` string."""
        if isinstance(value, str):
            text = value.strip().lstrip("#")
            if len(text) == 3:
                text = "".join(ch * 2 for ch in text)
            if len(text) != 6:
                raise ValueError(f"Invalid hex colour: {value!r}")
            value = int(text, 16)
        return cls.rgb((value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF)

    @classmethod
    def hsl(cls, hue: float, saturation: float, lightness: float) -> Color:
        """Hue in degrees, saturation and lightness in percent."""
        r, g, b = colorsys.hls_to_rgb(
            (hue % 360) / 360.0,
            max(0.0, min(100.0, lightness)) / 100.0,
            max(0.0, min(100.0, saturation)) / 100.0,
        )
        return cls.rgb(int(r * 255), int(g * 255), int(b * 255))

    # -- codes --------------------------------------------------------------

    def foreground_code(self) -> str:
        """SGR parameter string selecting this colour as foreground."""
        return self._code(30, 90, 38)

    def background_code(self) -> str:
        """SGR parameter string selecting this colour as background."""
        return self._code(40, 100, 48)

    def _code(self, base: int, bright_base: int, extended: int) -> str:
        if self.kind is ColorKind.STANDARD:
            return str(base + self.value[0])
        if self.kind is ColorKind.BRIGHT:
            return str(bright_base + self.value[0])
        if self.kind is ColorKind.PALETTE:
            return f"{extended};5;{self.value[0]}"
        r, g, b = self.value
        return f"{extended};2;{r};{g};{b}"

    # -- adjustments --------------------------------------------------------

    def lighter(self, amount: float = 0.2) -> Color:
        return self._shifted(amount)

    def darker(self, amount: float = 0.2) -> Color:
        return self._shifted(-amount)

    def _shifted(self, amount: float) -> Color:
        if self.kind is not ColorKind.RGB:
            return self
        shift = 255 * amount
        return Color.rgb(*(int(min(255, max(0, c + shift))) for c in self.value))


class Colors:
    """Named colour constants."""

    black = Color.standard("black")
    red = Color.standard("red")
    green = Color.standard("green")
    yellow = Color.standard("yellow")
    blue = Color.standard("blue")
    magenta = Color.standard("magenta")
    cyan = Color.standard("cyan")
    white = Color.standard("white")
    default = Color.standard("default")

    bright_black = Color.bright("black")
    bright_red = Color.bright("red")
    bright_green = Color.bright("green")
    bright_yellow = Color.bright("yellow")
    bright_blue = Color.bright("blue")
    bright_magenta = Color.bright("magenta")
    bright_cyan = Color.bright("cyan")
    bright_white = Color.bright("white")


# ---------------------------------------------------------------------------
# TextStyle
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TextStyle:
    """Colours plus SGR attributes applied to a run of text."""

    foreground: Color | None = None
    background: Color | None = None
    bold: bool = False
    dim: bool = False
    italic: bool = False
    underline: bool = False
    blink: bool = False
    inverse: bool = False
    strikethrough: bool = False

    def sgr_params(self) -> list[str]:
        params: list[str] = []
        for flag, code in (
            (self.bold, BOLD),
            (self.dim, DIM),
            (self.italic, ITALIC),
            (self.underline, UNDERLINE),
            (self.blink, BLINK),
            (self.inverse, INVERSE),
            (self.strikethrough, STRIKETHROUGH),
        ):
            if flag:
                params.append(str(code))
        if self.foreground is not None:
            params.append(self.foreground.foreground_code())
        if self.background is not None:
            params.append(self.background.background_code())
        return params

    def is_plain(self) -> bool:
        return not self.sgr_params()


def style_sequence(style: TextStyle) -> str:
    """Return the ``ESC[...m`` sequence for *style* (empty for a plain style)."""
    params = style.sgr_params()
    if not params:
        return ""
    return f"{CSI}{';'.join(params)}m"


def render_styled(text: str, style: TextStyle | None) -> str:
    """Wrap *text* in the style's SGR sequence and a trailing reset."""
    if style is None or not text:
        return text
    seq = style_sequence(style)
    if not seq:
        return text
    return seq + text + RESET


def colorize(
    text: str,
    foreground: Color | None = None,
    background: Color | None = None,
    bold: bool = False,
) -> str:
    return render_styled(
        text, TextStyle(foreground=foreground, background=background, bold=bold)
    )


def background_sequence(color: Color) -> str:
    return f"{CSI}{color.background_code()}m"


def apply_persistent_background(text: str, color: Color) -> str:
    """Make *color* survive every embedded reset inside *text*.

    Each ``ESC[0m`` becomes ``ESC[0m`` followed by the background code, and
    the whole string is prefixed with the background code. Nested styled
    runs can then reset their foreground without dropping the background.
    """
    bg = background_sequence(color)
    return bg + text.replace(RESET, RESET + bg)
