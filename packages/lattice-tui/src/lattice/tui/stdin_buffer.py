"""StdinBuffer splits raw terminal input into complete key sequences.

A single ``read`` can return several key presses at once ("ab", or an arrow
key followed by a letter), or only the first half of an escape sequence.
The buffer hands back complete sequences and keeps incomplete escape
sequences pending until more bytes arrive or the caller flushes them (a
lone ``ESC`` followed by silence is the Escape key).
"""

from __future__ import annotations

from typing import Literal

import grapheme

ESC = "\x1b"

SequenceStatus = Literal["complete", "incomplete", "not-escape"]


def sequence_status(data: str) -> SequenceStatus:
    """Classify *data* as a complete escape sequence, a prefix of one, or neither."""
    if not data.startswith(ESC):
        return "not-escape"

    if len(data) == 1:
        return "incomplete"

    second = data[1]

    # CSI: ESC [ <params> <final byte 0x40-0x7E>
    if second == "[":
        if len(data) < 3:
            return "incomplete"
        return "complete" if 0x40 <= ord(data[-1]) <= 0x7E else "incomplete"

    # SS3: ESC O <final>
    if second == "O":
        return "complete" if len(data) >= 3 else "incomplete"

    # OSC / DCS / APC: terminated by BEL or ST
    if second in "]P_":
        if data.endswith("\x07") or data.endswith(ESC + "\\"):
            return "complete"
        return "incomplete"

    # Alt + key
    return "complete"


def extract_sequences(buffer: str) -> tuple[list[str], str]:
    """Split *buffer* into complete sequences.

    Returns ``(sequences, remainder)`` where *remainder* is a trailing
    incomplete escape sequence (possibly empty).
    """
    sequences: list[str] = []
    pos = 0

    while pos < len(buffer):
        if buffer[pos] == ESC:
            end = pos + 1
            while True:
                status = sequence_status(buffer[pos:end])
                if status == "complete":
                    break
                if end >= len(buffer):
                    return sequences, buffer[pos:]
                # A second ESC inside a sequence starts a new one
                if buffer[end] == ESC and end - pos >= 2:
                    break
                end += 1
            sequences.append(buffer[pos:end])
            pos = end
        else:
            end = buffer.find(ESC, pos)
            if end == -1:
                end = len(buffer)
            sequences.extend(grapheme.graphemes(buffer[pos:end]))
            pos = end

    return sequences, ""


class StdinBuffer:
    """Accumulates raw input and yields complete sequences."""

    def __init__(self) -> None:
        self._buffer: str = ""

    def process(self, data: str | bytes) -> list[str]:
        """Feed *data*; return every sequence that is now complete."""
        if isinstance(data, bytes):
            data = data.decode("utf-8", errors="ignore")
        self._buffer += data
        sequences, self._buffer = extract_sequences(self._buffer)
        return sequences

    @property
    def has_pending(self) -> bool:
        return bool(self._buffer)

    def flush(self) -> list[str]:
        """Give up waiting and return whatever is pending as one sequence."""
        if not self._buffer:
            return []
        pending = [self._buffer]
        self._buffer = ""
        return pending

    def clear(self) -> None:
        self._buffer = ""
