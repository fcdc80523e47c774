"""Terminal abstraction for raw-mode stdin/stdout interaction.

Provides a ``Terminal`` protocol and a concrete ``ProcessTerminal``
implementation that manages raw mode, the alternate screen and cursor
visibility, and feeds stdin data to a callback from the asyncio event loop.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
import sys
import termios
import tty
from typing import Callable, Protocol

from lattice.tui.ansi import (
    CLEAR_SCREEN,
    CURSOR_HOME,
    ENTER_ALTERNATE_SCREEN,
    EXIT_ALTERNATE_SCREEN,
    HIDE_CURSOR,
    RESET,
    SHOW_CURSOR,
    move_cursor,
)
from lattice.tui.errors import TerminalError

logger = logging.getLogger(__name__)

DEFAULT_COLUMNS = 80
DEFAULT_ROWS = 24


# ---------------------------------------------------------------------------
# Terminal protocol
# ---------------------------------------------------------------------------


class Terminal(Protocol):
    """Interface for terminal I/O operations."""

    def start(self, on_input: Callable[[str], None]) -> None: ...

    def stop(self) -> None: ...

    def write(self, data: str) -> None: ...

    def flush(self) -> None: ...

    @property
    def columns(self) -> int: ...

    @property
    def rows(self) -> int: ...

    def hide_cursor(self) -> None: ...

    def show_cursor(self) -> None: ...

    def clear_screen(self) -> None: ...

    def move_to(self, row: int, column: int) -> None: ...


def terminal_size(fd: int | None = None) -> tuple[int, int]:
    """``(columns, rows)`` of *fd*, else ``COLUMNS``/``LINES``, else 80x24."""
    if fd is not None:
        try:
            size = os.get_terminal_size(fd)
            if size.columns > 0 and size.lines > 0:
                return size.columns, size.lines
        except (ValueError, OSError):
            logger.debug("Terminal size query failed for fd %s", fd)
    return (
        _env_int("COLUMNS", DEFAULT_COLUMNS),
        _env_int("LINES", DEFAULT_ROWS),
    )


def _env_int(name: str, default: int) -> int:
    try:
        value = int(os.environ.get(name, ""))
    except ValueError:
        return default
    return value if value > 0 else default


# ---------------------------------------------------------------------------
# ProcessTerminal implementation
# ---------------------------------------------------------------------------


class ProcessTerminal:
    """Concrete terminal backed by ``sys.stdin``/``sys.stdout``.

    Output is buffered until :meth:`flush`. When ``LATTICE_TUI_WRITE_LOG``
    names a file (or *write_log* is given), every flushed chunk is appended
    to it as well.
    """

    def __init__(self, write_log: str | None = None, alternate_screen: bool = True) -> None:
        self._input_handler: Callable[[str], None] | None = None
        self._original_termios: list | None = None
        self._stdin_reader_active = False
        self._started = False
        self._pending: list[str] = []
        # Multi-byte characters may be split across reads; invalid bytes are dropped
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="ignore")
        self._alternate_screen = alternate_screen
        self._write_log_path: str = (
            write_log if write_log is not None else os.environ.get("LATTICE_TUI_WRITE_LOG", "")
        )

    # -- properties ---------------------------------------------------------

    @property
    def columns(self) -> int:
        return terminal_size(_fileno(sys.stdout))[0]

    @property
    def rows(self) -> int:
        return terminal_size(_fileno(sys.stdout))[1]

    # -- start / stop -------------------------------------------------------

    def start(self, on_input: Callable[[str], None]) -> None:
        """Enable raw mode, enter the alternate screen and begin reading stdin.

        Raises :class:`TerminalError` when stdin is not a terminal.
        """
        fd = _fileno(sys.stdin)
        if fd is None or not os.isatty(fd):
            raise TerminalError("stdin is not a terminal")

        self._input_handler = on_input
        try:
            self._original_termios = termios.tcgetattr(fd)
            tty.setraw(fd)
        except termios.error as exc:
            raise TerminalError(f"cannot enable raw mode: {exc}") from exc
        self._started = True

        if self._alternate_screen:
            self.write(ENTER_ALTERNATE_SCREEN)
        self.hide_cursor()
        self.clear_screen()
        self.flush()
        self._start_stdin_reader()

    def stop(self) -> None:
        """Restore the terminal. Safe to call more than once."""
        self._remove_stdin_reader()

        if self._started:
            self.write(RESET)
            self.show_cursor()
            if self._alternate_screen:
                self.write(EXIT_ALTERNATE_SCREEN)
            self.flush()

        fd = _fileno(sys.stdin)
        if self._original_termios is not None and fd is not None:
            try:
                termios.tcsetattr(fd, termios.TCSADRAIN, self._original_termios)
            except termios.error:
                logger.warning("Failed to restore terminal attributes", exc_info=True)
            self._original_termios = None

        self._started = False
        self._input_handler = None

    # -- write --------------------------------------------------------------

    def write(self, data: str) -> None:
        self._pending.append(data)

    def flush(self) -> None:
        """Write buffered output to stdout and optionally to the write log."""
        if not self._pending:
            return
        data = "".join(self._pending)
        self._pending.clear()
        self._raw_write(data)

        if self._write_log_path:
            try:
                with open(self._write_log_path, "a") as f:
                    f.write(data)
            except OSError:
                logger.debug("Cannot append to write log %s", self._write_log_path)

    # -- cursor / screen manipulation --------------------------------------

    def hide_cursor(self) -> None:
        self.write(HIDE_CURSOR)

    def show_cursor(self) -> None:
        self.write(SHOW_CURSOR)

    def clear_screen(self) -> None:
        self.write(CLEAR_SCREEN + CURSOR_HOME)

    def move_to(self, row: int, column: int) -> None:
        self.write(move_cursor(row, column))

    # -- private: stdin reading --------------------------------------------

    def _start_stdin_reader(self) -> None:
        """Register an asyncio reader on stdin."""
        if self._stdin_reader_active:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop; stdin is not being read")
            return
        loop.add_reader(sys.stdin.fileno(), self._on_stdin_readable)
        self._stdin_reader_active = True

    def _remove_stdin_reader(self) -> None:
        if not self._stdin_reader_active:
            return
        try:
            loop = asyncio.get_running_loop()
            loop.remove_reader(sys.stdin.fileno())
        except (RuntimeError, ValueError):
            logger.debug("stdin reader already gone")
        self._stdin_reader_active = False

    def _on_stdin_readable(self) -> None:
        """Callback invoked by the event loop when stdin has data."""
        try:
            raw = os.read(sys.stdin.fileno(), 4096)
        except OSError:
            return

        if not raw:
            return

        data = self._decoder.decode(raw)
        if data and self._input_handler is not None:
            self._input_handler(data)

    # -- private: raw write ------------------------------------------------

    def _raw_write(self, data: str) -> None:
        try:
            sys.stdout.write(data)
            sys.stdout.flush()
        except OSError:
            logger.warning("Write to stdout failed", exc_info=True)


def _fileno(stream: object) -> int | None:
    try:
        return stream.fileno()  # type: ignore[attr-defined]
    except (AttributeError, ValueError, OSError):
        return None
