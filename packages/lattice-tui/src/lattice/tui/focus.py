"""Focus registry, focus sections and Tab navigation.

The registry is rebuilt every render pass: :meth:`FocusManager.begin_render_pass`
empties all sections, focus-capable components re-register while the tree is
resolved, and :meth:`FocusManager.end_render_pass` reconciles the focused ID
with whatever registered this time. The focused ID and the active section ID
survive the rebuild; element objects are owned by component state, so the same
handler instance comes back every frame.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Iterable, Protocol, runtime_checkable

from lattice.tui.keys import Key, KeyEvent

logger = logging.getLogger(__name__)

DEFAULT_SECTION_ID = "__default__"


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class Focusable(Protocol):
    """An element that can hold keyboard focus.

    ``can_be_focused``, ``on_focus_received`` and ``on_focus_lost`` are
    optional -- checked at call-sites via ``getattr``.
    """

    focus_id: str

    def handle_key_event(self, event: KeyEvent) -> bool:
        """Handle *event*; return ``True`` if it was consumed."""
        ...


@runtime_checkable
class TextInputHandler(Focusable, Protocol):
    """A focusable that edits text.

    While focused it sees key events before the global default shortcuts,
    so typing ``q`` into it never quits the application.
    """

    accepts_text_input: bool


def is_text_input(element: object) -> bool:
    return bool(getattr(element, "accepts_text_input", False))


def can_focus(element: object) -> bool:
    return bool(getattr(element, "can_be_focused", True))


def _notify(element: object, hook: str) -> None:
    callback = getattr(element, hook, None)
    if not callable(callback):
        return
    try:
        callback()
    except Exception:
        logger.exception("%s.%s failed", type(element).__name__, hook)


# ---------------------------------------------------------------------------
# Built-in handlers
# ---------------------------------------------------------------------------


class ActionHandler:
    """Focusable that runs *action* when one of *trigger_keys* is pressed."""

    def __init__(
        self,
        focus_id: str,
        action: Callable[[], None],
        can_be_focused: bool = True,
        trigger_keys: Iterable[str] = (Key.enter, Key.space),
    ) -> None:
        self.focus_id = focus_id
        self.action = action
        self.can_be_focused = can_be_focused
        self.trigger_keys = frozenset(trigger_keys)

    def handle_key_event(self, event: KeyEvent) -> bool:
        if event.key not in self.trigger_keys or event.ctrl or event.alt:
            return False
        self.action()
        return True


# ---------------------------------------------------------------------------
# FocusSection
# ---------------------------------------------------------------------------


class FocusSection:
    """A named, ordered group of focusables (e.g. one column of a layout)."""

    def __init__(self, section_id: str) -> None:
        self.id = section_id
        self.focusables: list[Focusable] = []

    def register(self, element: Focusable) -> None:
        if any(f.focus_id == element.focus_id for f in self.focusables):
            return
        self.focusables.append(element)

    def unregister(self, element: Focusable) -> None:
        self.focusables = [f for f in self.focusables if f.focus_id != element.focus_id]

    def available(self) -> list[Focusable]:
        return [f for f in self.focusables if can_focus(f)]

    def find(self, focus_id: str) -> Focusable | None:
        for f in self.focusables:
            if f.focus_id == focus_id:
                return f
        return None

    def __repr__(self) -> str:
        ids = [f.focus_id for f in self.focusables]
        return f"FocusSection({self.id!r}, {ids})"


# ---------------------------------------------------------------------------
# FocusManager
# ---------------------------------------------------------------------------


class FocusManager:
    """Tracks which focusable holds focus and drives Tab navigation."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._sections: list[FocusSection] = []
        self._active_section_id: str | None = None
        self._focused_id: str | None = None
        # Last focused element object; used to deliver on_focus_lost even if
        # the element did not re-register this pass.
        self._focused_element: Focusable | None = None
        self.on_focus_change: Callable[[], None] | None = None

    # -- queries ------------------------------------------------------------

    @property
    def focused_id(self) -> str | None:
        return self._focused_id

    @property
    def active_section_id(self) -> str | None:
        return self._active_section_id

    @property
    def section_ids(self) -> list[str]:
        with self._lock:
            return [s.id for s in self._sections]

    def section(self, section_id: str) -> FocusSection | None:
        with self._lock:
            for s in self._sections:
                if s.id == section_id:
                    return s
            return None

    @property
    def current_focused(self) -> Focusable | None:
        """The registered element holding focus, if it registered this pass."""
        with self._lock:
            if self._focused_id is None:
                return None
            active = self._active_section()
            if active is not None:
                found = active.find(self._focused_id)
                if found is not None:
                    return found
            for s in self._sections:
                found = s.find(self._focused_id)
                if found is not None:
                    return found
            return None

    def is_focused(self, focus_id: str) -> bool:
        return self._focused_id == focus_id

    def is_active_section(self, section_id: str) -> bool:
        return self._active_section_id == section_id

    # -- registration -------------------------------------------------------

    def register(self, element: Focusable, section_id: str | None = None) -> None:
        """Add *element* to *section_id* (default: the active section).

        Sections are created on first use; the first section ever created
        becomes active. Registration order is Tab order.
        """
        with self._lock:
            target = section_id or self._active_section_id or DEFAULT_SECTION_ID
            section = self.section(target)
            if section is None:
                section = self._add_section(target)
            section.register(element)

    def register_section(self, section_id: str) -> FocusSection:
        with self._lock:
            existing = self.section(section_id)
            if existing is not None:
                return existing
            return self._add_section(section_id)

    def unregister(self, element: Focusable) -> None:
        with self._lock:
            for s in self._sections:
                s.unregister(element)
            if self._focused_id == element.focus_id:
                self._focused_id = None
                self._focused_element = None
                self._move_in_section(forward=True)

    def clear(self) -> None:
        """Forget everything, including the focused and active IDs."""
        with self._lock:
            self._sections.clear()
            self._active_section_id = None
            self._focused_id = None
            self._focused_element = None

    # -- render pass --------------------------------------------------------

    def begin_render_pass(self) -> None:
        """Empty all sections; focused and active IDs are kept for validation."""
        with self._lock:
            self._sections.clear()

    def end_render_pass(self) -> None:
        """Reconcile the kept IDs with what registered during the pass.

        A vanished active section falls back to the first section. A vanished
        focus holder gets ``on_focus_lost`` and focus moves to the first
        available element of the active section.
        """
        with self._lock:
            if self._active_section_id is not None and self.section(self._active_section_id) is None:
                self._active_section_id = self._sections[0].id if self._sections else None

            active = self._active_section()
            if self._focused_id is not None:
                found = self._find_anywhere(self._focused_id)
                if found is not None:
                    self._focused_element = found
                    return
                logger.debug("Focused element %r vanished", self._focused_id)
                lost = self._focused_element
                self._focused_id = None
                self._focused_element = None
                if lost is not None:
                    _notify(lost, "on_focus_lost")

            if active is None:
                return
            available = active.available()
            if available:
                self._set_focus(available[0])

    # -- focus changes ------------------------------------------------------

    def focus(self, element: Focusable) -> bool:
        """Give focus to *element*. Returns ``False`` if it cannot be focused."""
        if not can_focus(element):
            return False
        with self._lock:
            if self._focused_id == element.focus_id:
                self._focused_element = element
                return True
            self._notify_focus_lost()
            self._set_focus(element)
        return True

    def focus_by_id(self, focus_id: str) -> bool:
        """Focus the registered element *focus_id*, activating its section."""
        with self._lock:
            for s in self._sections:
                element = s.find(focus_id)
                if element is not None and can_focus(element):
                    self._active_section_id = s.id
                    return self.focus(element)
            return False

    def focus_next(self) -> None:
        """Tab: the next available element in registration order.

        Order runs through every section in turn and wraps around at the
        end. The section of the new holder becomes active.
        """
        with self._lock:
            self._move_across_sections(forward=True)

    def focus_previous(self) -> None:
        """Shift+Tab: the reverse of :meth:`focus_next`."""
        with self._lock:
            self._move_across_sections(forward=False)

    def focus_next_in_section(self) -> None:
        with self._lock:
            self._move_in_section(forward=True)

    def focus_previous_in_section(self) -> None:
        with self._lock:
            self._move_in_section(forward=False)

    def activate_section(self, section_id: str) -> bool:
        """Make *section_id* active and focus its first available element."""
        with self._lock:
            section = self.section(section_id)
            if section is None:
                return False
            self._notify_focus_lost()
            self._active_section_id = section_id
            self._focused_id = None
            self._focused_element = None
            available = section.available()
            if available:
                self._set_focus(available[0])
            elif self.on_focus_change is not None:
                self.on_focus_change()
            return True

    # -- dispatch -----------------------------------------------------------

    def dispatch_key_event(self, event: KeyEvent) -> bool:
        """Route *event* to the focused element and the navigation keys.

        Tab / Shift+Tab always move focus and never reach the element.
        Other keys go to the focused element first; unhandled arrow keys
        then move within the active section.
        """
        if event.key == Key.tab and not (event.ctrl or event.alt):
            return self.navigate(event)

        focused = self.current_focused
        if focused is not None:
            try:
                if focused.handle_key_event(event):
                    return True
            except Exception:
                logger.exception("Key handler of %r failed", focused.focus_id)
        return self.navigate(event)

    def navigate(self, event: KeyEvent) -> bool:
        """Apply the focus navigation keys only."""
        if event.ctrl or event.alt:
            return False

        if event.key == Key.tab:
            if event.shift:
                self.focus_previous()
            else:
                self.focus_next()
            return True

        if not self._has_focusables():
            return False
        if event.key in (Key.up, Key.left):
            self.focus_previous_in_section()
            return True
        if event.key in (Key.down, Key.right):
            self.focus_next_in_section()
            return True
        return False

    # -- internals ----------------------------------------------------------

    def _add_section(self, section_id: str) -> FocusSection:
        section = FocusSection(section_id)
        self._sections.append(section)
        if self._active_section_id is None:
            self._active_section_id = section_id
        return section

    def _active_section(self) -> FocusSection | None:
        if self._active_section_id is None:
            return None
        return self.section(self._active_section_id)

    def _find_anywhere(self, focus_id: str) -> Focusable | None:
        for s in self._sections:
            found = s.find(focus_id)
            if found is not None:
                return found
        return None

    def _has_focusables(self) -> bool:
        active = self._active_section()
        return active is not None and bool(active.available())

    def _set_focus(self, element: Focusable) -> None:
        self._focused_id = element.focus_id
        self._focused_element = element
        _notify(element, "on_focus_received")
        if self.on_focus_change is not None:
            self.on_focus_change()

    def _notify_focus_lost(self) -> None:
        if self._focused_id is None:
            return
        current = self._find_anywhere(self._focused_id) or self._focused_element
        if current is not None:
            _notify(current, "on_focus_lost")

    def _move_in_section(self, forward: bool) -> None:
        section = self._active_section()
        if section is None:
            return
        available = section.available()
        if not available:
            return
        ids = [f.focus_id for f in available]
        if self._focused_id in ids:
            index = ids.index(self._focused_id)
            target = (index + 1) % len(available) if forward else (index - 1) % len(available)
        else:
            target = 0 if forward else len(available) - 1
        self.focus(available[target])

    def _move_across_sections(self, forward: bool) -> None:
        order = [(s, f) for s in self._sections for f in s.available()]
        if not order:
            return
        ids = [f.focus_id for _, f in order]
        if self._focused_id in ids:
            index = ids.index(self._focused_id)
            target = (index + 1) % len(order) if forward else (index - 1) % len(order)
        else:
            target = 0 if forward else len(order) - 1
        section, element = order[target]
        self._active_section_id = section.id
        self.focus(element)
