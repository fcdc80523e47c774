"""Terminal text utilities: ANSI stripping and width measurement.

Every piece of layout arithmetic in the engine goes through
:func:`visible_width`, which measures the *stripped* text in terminal
columns (grapheme clusters, East Asian wide characters, emoji), never the
raw string length.
"""

from __future__ import annotations

import re
import unicodedata

import grapheme
import wcwidth as _wcwidth


# ---------------------------------------------------------------------------
# Regex patterns for escape sequences
# ---------------------------------------------------------------------------

_STRIP_RE = re.compile(
    r"\x1b\[[0-9;?]*[A-Za-z~]"             # CSI
    r"|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)"   # OSC
    r"|\x1b_[^\x07\x1b]*(?:\x07|\x1b\\)"    # APC
)

_CSI_RE = re.compile(r"\x1b\[[0-9;?]*[A-Za-z~]")


# ---------------------------------------------------------------------------
# Width cache (capped at 512 entries)
# ---------------------------------------------------------------------------

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def _cache_width(key: str, value: int) -> int:
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[key] = value
    return value


# ---------------------------------------------------------------------------
# Grapheme width
# ---------------------------------------------------------------------------

def grapheme_width(g: str) -> int:
    """Return the terminal display width of a single grapheme cluster.

    Rules:
    1. Control characters and lone combining marks -> 0
    2. Emoji sequences (VS16, ZWJ, skin tones, flags) -> 2
    3. Otherwise delegate to wcwidth for the first codepoint.
    """
    if not g:
        return 0

    if len(g) == 1:
        cp = ord(g)
        if cp < 0x20 or (0x7F <= cp <= 0x9F):
            return 0
        return max(_wcwidth.wcwidth(g), 0)

    for ch in g:
        cp = ord(ch)
        if cp in (0xFE0F, 0x200D):
            return 2
        if 0x1F3FB <= cp <= 0x1F3FF or 0x1F1E6 <= cp <= 0x1F1FF:
            return 2

    first_cp = ord(g[0])
    if first_cp >= 0x1F000 or 0x2600 <= first_cp <= 0x27BF:
        return 2

    cat = unicodedata.category(g[0])
    if cat.startswith("M") or cat == "Cf":
        return 0

    return max(_wcwidth.wcwidth(g[0]), 0)


# ---------------------------------------------------------------------------
# Stripping / measuring
# ---------------------------------------------------------------------------

def strip_ansi(text: str) -> str:
    """Remove every escape sequence from *text*."""
    if "\x1b" not in text:
        return text
    return _STRIP_RE.sub("", text)


def visible_width(text: str) -> int:
    """Calculate the visible terminal width of *text*.

    * Strips escape sequences.
    * Uses a fast ASCII path when possible.
    * Caches results for non-ASCII strings.
    """
    if not text:
        return 0

    stripped = strip_ansi(text)
    if not stripped:
        return 0

    if stripped.isascii() and stripped.isprintable():
        return len(stripped)

    cached = _width_cache.get(stripped)
    if cached is not None:
        return cached

    total = 0
    for g in grapheme.graphemes(stripped):
        total += grapheme_width(g)

    return _cache_width(stripped, total)


def pad_to_width(text: str, width: int) -> str:
    """Right-pad *text* with spaces until its visible width reaches *width*.

    Text that is already wide enough is returned unchanged.
    """
    current = visible_width(text)
    if current >= width:
        return text
    return text + " " * (width - current)


def split_columns(plain: str, start: int, end: int | None = None) -> tuple[str, str, str]:
    """Split plain (escape-free) text at two column positions.

    Returns ``(before, middle, after)`` where *before* covers columns
    ``[0, start)``, *middle* covers ``[start, end)`` and *after* the rest.
    A wide grapheme straddling a boundary is kept on the left side.
    """
    before: list[str] = []
    middle: list[str] = []
    after: list[str] = []
    col = 0
    for g in grapheme.graphemes(plain):
        if col < start:
            before.append(g)
        elif end is None or col < end:
            middle.append(g)
        else:
            after.append(g)
        col += grapheme_width(g)
    return "".join(before), "".join(middle), "".join(after)


# ---------------------------------------------------------------------------
# truncate_to_width
# ---------------------------------------------------------------------------

def truncate_to_width(text: str, max_width: int, ellipsis: str = "") -> str:
    """Truncate *text* to fit within *max_width* visible columns.

    Escape sequences are preserved; the cut happens at grapheme boundaries.
    When truncation happens and *ellipsis* is given, it replaces the tail
    (and counts towards the width).
    """
    if max_width <= 0:
        return ""
    if visible_width(text) <= max_width:
        return text

    target = max_width - visible_width(ellipsis)
    if target <= 0:
        return _take_columns(ellipsis, max_width)
    return _take_columns(text, target) + ellipsis


def _take_columns(text: str, max_cols: int) -> str:
    """Return a prefix of *text* that fits within *max_cols* visible columns."""
    result: list[str] = []
    cols = 0
    pos = 0
    for match in _CSI_RE.finditer(text):
        cols, done = _take_plain(text[pos:match.start()], max_cols, cols, result)
        if done:
            return "".join(result)
        result.append(match.group(0))
        pos = match.end()
    _take_plain(text[pos:], max_cols, cols, result)
    return "".join(result)


def _take_plain(
    chunk: str, max_cols: int, cols: int, out: list[str]
) -> tuple[int, bool]:
    for g in grapheme.graphemes(chunk):
        w = grapheme_width(g)
        if cols + w > max_cols:
            return cols, True
        out.append(g)
        cols += w
    return cols, False
