"""Key event routing.

:class:`InputDispatcher` offers each decoded :class:`KeyEvent` to a fixed
chain of layers and stops at the first one that consumes it:

1. status bar items that carry an action,
2. key handlers registered by components during the current render pass
   (innermost first),
3. a focused text-input handler, for everything except Escape, Tab and
   ctrl/alt combinations it does not handle itself,
4. the focused element (followed by Tab / arrow focus navigation),
5. the built-in shortcuts: ``q`` quit, ``t`` next palette, ``a`` next
   appearance, each gated by the status bar configuration.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterable

from lattice.tui.focus import is_text_input
from lattice.tui.keys import Key, KeyEvent

if TYPE_CHECKING:
    from lattice.tui.context import TUIContext

logger = logging.getLogger(__name__)

KeyHandler = Callable[[KeyEvent], bool]


# ---------------------------------------------------------------------------
# Per-pass key handlers
# ---------------------------------------------------------------------------


@dataclass
class _HandlerEntry:
    handler: KeyHandler
    keys: frozenset[str] | None


class KeyHandlerRegistry:
    """Key handlers registered while the tree is resolved.

    Cleared at the start of every render pass. Handlers run in reverse
    registration order, so a handler registered deeper in the tree (later
    during traversal) sees the event before its ancestors'.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: list[_HandlerEntry] = []

    def add(self, handler: KeyHandler, keys: Iterable[str] | None = None) -> None:
        """Register *handler*, optionally only for events whose ``key`` is in *keys*."""
        entry = _HandlerEntry(handler, frozenset(keys) if keys is not None else None)
        with self._lock:
            self._entries.append(entry)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def dispatch(self, event: KeyEvent) -> bool:
        with self._lock:
            entries = list(reversed(self._entries))
        for entry in entries:
            if entry.keys is not None and event.key not in entry.keys:
                continue
            try:
                if entry.handler(event):
                    return True
            except Exception:
                logger.exception("Key handler %r failed for %s", entry.handler, event)
        return False

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------


class InputDispatcher:
    """Routes key events through the priority layers described above."""

    def __init__(self, tui: TUIContext, on_quit: Callable[[], None]) -> None:
        self.tui = tui
        self.on_quit = on_quit

    def handle(self, event: KeyEvent) -> bool:
        """Route *event*; return ``True`` if some layer consumed it."""
        tui = self.tui

        if tui.status_bar.handle_key_event(event):
            logger.debug("%s consumed by status bar", event)
            return True

        if tui.key_handlers.dispatch(event):
            logger.debug("%s consumed by key handler", event)
            return True

        focused = tui.focus.current_focused
        offered_to_focused = False
        if focused is not None and is_text_input(focused) and _text_input_may_claim(event):
            offered_to_focused = True
            try:
                consumed = focused.handle_key_event(event)
            except Exception:
                logger.exception("Text input %r failed", focused.focus_id)
                consumed = False
            if consumed or event.is_printable:
                return True

        if offered_to_focused:
            if tui.focus.navigate(event):
                return True
        elif tui.focus.dispatch_key_event(event):
            return True

        return self._handle_default(event)

    def _handle_default(self, event: KeyEvent) -> bool:
        tui = self.tui
        if event.ctrl and event.key == "c":
            self.on_quit()
            return True
        if event.ctrl or event.alt:
            return False

        key = event.key.lower() if event.character else event.key
        if key == "q":
            if tui.status_bar.is_quit_allowed:
                self.on_quit()
                return True
            return False
        if key == "t":
            if tui.status_bar.show_theme_item and tui.palette_manager is not None:
                tui.palette_manager.cycle_next()
                return True
            return False
        if key == "a":
            if tui.status_bar.show_appearance_item and tui.appearance_manager is not None:
                tui.appearance_manager.cycle_next()
                return True
            return False
        return False


def _text_input_may_claim(event: KeyEvent) -> bool:
    if event.key in (Key.escape, Key.tab):
        return False
    return True
