"""Keyboard input decoding.

Turns one complete input sequence (as split by
:class:`~lattice.tui.stdin_buffer.StdinBuffer`) into a :class:`KeyEvent`.
Handles single bytes, Alt-prefixed bytes, SS3 function keys and CSI
sequences with the xterm modifier parameter (``ESC [ 1 ; <mod> <final>``
and ``ESC [ <n> ; <mod> ~``). Anything unrecognised decodes to ``None``
and is dropped by the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import grapheme

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Key helper object
# ---------------------------------------------------------------------------


class Key:
    """Named key constants and modifier combinators.

    Character keys are represented by the character itself; named keys use
    multi-letter identifiers so the two can never collide.
    """

    escape = "escape"
    enter = "enter"
    tab = "tab"
    space = "space"
    backspace = "backspace"
    delete = "delete"
    home = "home"
    end = "end"
    page_up = "pageUp"
    page_down = "pageDown"
    up = "up"
    down = "down"
    left = "left"
    right = "right"

    f1 = "f1"
    f2 = "f2"
    f3 = "f3"
    f4 = "f4"
    f5 = "f5"
    f6 = "f6"
    f7 = "f7"
    f8 = "f8"
    f9 = "f9"
    f10 = "f10"
    f11 = "f11"
    f12 = "f12"

    @staticmethod
    def ctrl(key: str) -> str:
        return f"ctrl+{key}"

    @staticmethod
    def shift(key: str) -> str:
        return f"shift+{key}"

    @staticmethod
    def alt(key: str) -> str:
        return f"alt+{key}"


NAMED_KEYS: frozenset[str] = frozenset(
    value
    for name, value in vars(Key).items()
    if not name.startswith("_") and isinstance(value, str)
)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# xterm modifier parameter is ``1 + bits``.
MODIFIERS: dict[str, int] = {
    "shift": 1,
    "alt": 2,
    "ctrl": 4,
}

_CSI_FINAL_KEYS: dict[str, str] = {
    "A": Key.up,
    "B": Key.down,
    "C": Key.right,
    "D": Key.left,
    "H": Key.home,
    "F": Key.end,
    # Some terminals report F1-F4 as CSI with a modifier: ESC[1;2P
    "P": Key.f1,
    "Q": Key.f2,
    "R": Key.f3,
    "S": Key.f4,
}

_SS3_KEYS: dict[str, str] = {
    "A": Key.up,
    "B": Key.down,
    "C": Key.right,
    "D": Key.left,
    "H": Key.home,
    "F": Key.end,
    "P": Key.f1,
    "Q": Key.f2,
    "R": Key.f3,
    "S": Key.f4,
}

# ``ESC [ <n> ~`` numbers. 2 (insert) is deliberately absent.
_TILDE_KEYS: dict[int, str] = {
    1: Key.home,
    3: Key.delete,
    4: Key.end,
    5: Key.page_up,
    6: Key.page_down,
    7: Key.home,
    8: Key.end,
    11: Key.f1,
    12: Key.f2,
    13: Key.f3,
    14: Key.f4,
    15: Key.f5,
    17: Key.f6,
    18: Key.f7,
    19: Key.f8,
    20: Key.f9,
    21: Key.f10,
    23: Key.f11,
    24: Key.f12,
}


# ---------------------------------------------------------------------------
# KeyEvent
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class KeyEvent:
    """A decoded key press."""

    key: str
    shift: bool = False
    alt: bool = False
    ctrl: bool = False

    @property
    def character(self) -> str | None:
        """The typed character, or ``None`` for named keys."""
        if self.key in NAMED_KEYS:
            return None
        return self.key

    @property
    def is_printable(self) -> bool:
        """``True`` for plain or shifted characters (and space) without ctrl/alt."""
        if self.ctrl or self.alt:
            return False
        return self.character is not None or self.key == Key.space

    @property
    def id(self) -> str:
        """Canonical identifier such as ``"ctrl+shift+up"`` or ``"q"``."""
        parts: list[str] = []
        if self.ctrl:
            parts.append("ctrl")
        if self.shift and self.character is None:
            parts.append("shift")
        if self.alt:
            parts.append("alt")
        parts.append(self.key)
        return "+".join(parts)

    def __str__(self) -> str:
        return self.id


def _modifier_flags(param: str) -> tuple[bool, bool, bool] | None:
    """Decode an xterm modifier parameter into ``(shift, alt, ctrl)``."""
    try:
        value = int(param)
    except ValueError:
        return None
    if value < 1:
        return None
    bits = value - 1
    return (
        bool(bits & MODIFIERS["shift"]),
        bool(bits & MODIFIERS["alt"]),
        bool(bits & MODIFIERS["ctrl"]),
    )


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def parse_key_event(data: str | bytes) -> KeyEvent | None:
    """Decode one complete input sequence into a :class:`KeyEvent`.

    Returns ``None`` for empty, incomplete or unrecognised input.
    """
    if isinstance(data, bytes):
        data = data.decode("utf-8", errors="ignore")
    if not data:
        return None

    if data[0] == "\x1b":
        event = _parse_escape(data)
    elif len(data) == 1:
        event = _parse_single(data)
    elif grapheme.length(data) == 1:
        # A multi-codepoint grapheme (emoji, combining sequence)
        event = KeyEvent(data)
    else:
        event = None

    if event is None:
        logger.debug("Dropping unrecognised input sequence %r", data)
    return event


def _parse_single(ch: str) -> KeyEvent | None:
    code = ord(ch)
    if code == 0x1B:
        return KeyEvent(Key.escape)
    if code in (0x0D, 0x0A):
        return KeyEvent(Key.enter)
    if code == 0x09:
        return KeyEvent(Key.tab)
    if code in (0x7F, 0x08):
        return KeyEvent(Key.backspace)
    if code == 0x20:
        return KeyEvent(Key.space)
    if 0x01 <= code <= 0x1A:
        return KeyEvent(chr(code + 0x60), ctrl=True)
    if code < 0x20 or code == 0x7F:
        return None
    if ch == "\ufffd":
        # Replacement character left behind by a lossy decode
        return None
    return KeyEvent(ch, shift=ch.isupper())


def _parse_escape(data: str) -> KeyEvent | None:
    if len(data) == 1:
        return KeyEvent(Key.escape)

    second = data[1]

    if second == "[":
        return _parse_csi(data[2:])

    if second == "O" and len(data) > 2:
        if len(data) != 3:
            return None
        key = _SS3_KEYS.get(data[2])
        return KeyEvent(key) if key is not None else None

    if len(data) == 2:
        # Alt + key: ESC followed by a single byte (a lone "ESC O" is Alt+Shift+O)
        inner = _parse_single(second)
        if inner is None:
            return None
        return KeyEvent(inner.key, shift=inner.shift, alt=True, ctrl=inner.ctrl)

    return None


def _parse_csi(body: str) -> KeyEvent | None:
    """Decode the part of a CSI sequence after ``ESC [``."""
    if not body:
        return None

    final = body[-1]
    params = body[:-1].split(";") if len(body) > 1 else []
    if any(not p.isdigit() for p in params):
        return None

    if final == "Z":
        return KeyEvent(Key.tab, shift=True)

    if final == "~":
        if not params:
            return None
        key = _TILDE_KEYS.get(int(params[0]))
        if key is None:
            return None
        return _with_modifier(key, params[1] if len(params) > 1 else None)

    key = _CSI_FINAL_KEYS.get(final)
    if key is None:
        return None
    return _with_modifier(key, params[1] if len(params) > 1 else None)


def _with_modifier(key: str, modifier: str | None) -> KeyEvent | None:
    if modifier is None:
        return KeyEvent(key)
    flags = _modifier_flags(modifier)
    if flags is None:
        return None
    shift, alt, ctrl = flags
    return KeyEvent(key, shift=shift, alt=alt, ctrl=ctrl)


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------


def parse_key_id(key_id: str) -> KeyEvent | None:
    """Parse an identifier such as ``"ctrl+c"`` or ``"shift+tab"``.

    Returns ``None`` if the identifier is malformed.
    """
    if not key_id:
        return None
    if key_id == "+":
        return KeyEvent("+")
    parts = key_id.split("+")
    key = parts[-1]
    if not key:
        # Trailing "+" means the plus key itself: "ctrl++"
        key = "+"
        parts = parts[:-2]
    else:
        parts = parts[:-1]
    flags = {"shift": False, "alt": False, "ctrl": False}
    for mod in parts:
        mod = mod.lower()
        if mod not in flags:
            return None
        flags[mod] = True
    if key == " ":
        key = Key.space
    if len(key) == 1 and key.isupper():
        flags["shift"] = True
    return KeyEvent(key, **flags)


def matches_key(event: KeyEvent, key_id: str) -> bool:
    """Check whether *event* corresponds to *key_id*.

    Character keys compare case-sensitively; ``"Q"`` only matches a
    shifted ``q``.
    """
    wanted = parse_key_id(key_id)
    if wanted is None:
        return False
    return (
        event.key == wanted.key
        and event.ctrl == wanted.ctrl
        and event.alt == wanted.alt
        and event.shift == wanted.shift
    )
