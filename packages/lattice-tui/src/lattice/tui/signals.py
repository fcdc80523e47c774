"""SIGINT / SIGWINCH handling for the render loop.

The handlers only flip a flag. The main loop polls the flags on every
iteration and does the actual work (cleanup, re-render) itself.
"""

from __future__ import annotations

import logging
import signal
from typing import Any

logger = logging.getLogger(__name__)

_SIGWINCH = getattr(signal, "SIGWINCH", None)


class SignalManager:
    def __init__(self) -> None:
        self.shutdown_requested = False
        self.resize_requested = False
        self._previous: dict[int, Any] = {}

    def install(self) -> None:
        """Install the flag-setting handlers, remembering the previous ones."""
        handlers = [(signal.SIGINT, self._on_interrupt)]
        if _SIGWINCH is not None:
            handlers.append((_SIGWINCH, self._on_resize))
        for signum, handler in handlers:
            try:
                self._previous[signum] = signal.getsignal(signum)
                signal.signal(signum, handler)
            except ValueError:
                # Not the main thread
                logger.warning("Cannot install handler for signal %d", signum)
                self._previous.pop(signum, None)

    def restore(self) -> None:
        for signum, handler in self._previous.items():
            try:
                signal.signal(signum, handler)
            except (ValueError, TypeError):
                logger.warning("Cannot restore handler for signal %d", signum)
        self._previous.clear()

    def consume_resize(self) -> bool:
        """Return and clear the resize flag."""
        if not self.resize_requested:
            return False
        self.resize_requested = False
        return True

    def request_shutdown(self) -> None:
        self.shutdown_requested = True

    # Signal handlers: assignments only.

    def _on_interrupt(self, signum: int, frame: object) -> None:
        self.shutdown_requested = True

    def _on_resize(self, signum: int, frame: object) -> None:
        self.resize_requested = True
