"""Status bar items, shortcut matching and the status bar state.

The status bar sits below the main content and is rendered separately so
dimming effects never reach it. It lists shortcuts: user items (global, per
render pass, or pushed as a named context by a modal) followed by the
system items ``q quit``, ``a appearance`` and ``t theme``.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, Sequence

from lattice.tui.ansi import Color, Colors, TextStyle, render_styled
from lattice.tui.border import BORDER_OVERHEAD, bottom_border, content_line, top_border
from lattice.tui.buffer import FrameBuffer
from lattice.tui.component import Primitive
from lattice.tui.keys import Key, KeyEvent
from lattice.tui.utils import pad_to_width, truncate_to_width, visible_width

if TYPE_CHECKING:
    from lattice.tui.context import RenderContext

logger = logging.getLogger(__name__)


class StatusBarStyle(Enum):
    COMPACT = "compact"
    BORDERED = "bordered"


class StatusBarAlignment(Enum):
    LEADING = "leading"
    TRAILING = "trailing"
    CENTER = "center"
    JUSTIFIED = "justified"


class QuitBehavior(Enum):
    ALWAYS = "always"
    ROOT_ONLY = "root_only"


class StatusBarItemOrder:
    """Sort keys for status bar items; system items always come last."""

    EARLY = 100
    DEFAULT = 500
    LATE = 800
    QUIT = 900
    APPEARANCE = 910
    THEME = 920


# ---------------------------------------------------------------------------
# Shortcut symbols
# ---------------------------------------------------------------------------

_SYMBOL_KEYS: dict[str, str] = {
    "⎋": Key.escape,
    "esc": Key.escape,
    "escape": Key.escape,
    "↵": Key.enter,
    "⏎": Key.enter,
    "enter": Key.enter,
    "return": Key.enter,
    "⇥": Key.tab,
    "tab": Key.tab,
    "⌫": Key.backspace,
    "backspace": Key.backspace,
    "␣": Key.space,
    "space": Key.space,
    "↑": Key.up,
    "↓": Key.down,
    "←": Key.left,
    "→": Key.right,
}

_ARROW_SYMBOLS: dict[str, str] = {
    "↑": Key.up,
    "↓": Key.down,
    "←": Key.left,
    "→": Key.right,
}


def _trigger_from_shortcut(shortcut: str) -> str | None:
    mapped = _SYMBOL_KEYS.get(shortcut.lower())
    if mapped is not None:
        return mapped
    if len(shortcut) == 1:
        return shortcut
    return None


# ---------------------------------------------------------------------------
# StatusBarItem
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StatusBarItem:
    """One ``<shortcut> <label>`` entry.

    The trigger key is derived from the shortcut unless *key* is given.
    Items without an *action* are informational: they show up but never
    consume key events.
    """

    shortcut: str
    label: str
    key: str | None = None
    order: int = StatusBarItemOrder.DEFAULT
    action: Callable[[], None] | None = field(default=None, compare=False)

    @property
    def id(self) -> str:
        return f"{self.shortcut}-{self.label}"

    @property
    def trigger_key(self) -> str | None:
        if self.key is not None:
            return self.key
        return _trigger_from_shortcut(self.shortcut)

    @property
    def has_action(self) -> bool:
        return self.action is not None

    def matches(self, event: KeyEvent) -> bool:
        if event.ctrl or event.alt:
            return False
        for symbol, arrow in _ARROW_SYMBOLS.items():
            if symbol in self.shortcut and event.key == arrow:
                return True
        trigger = self.trigger_key
        if trigger is None:
            return False
        # Characters compare case-sensitively: "n" is not "N"
        return event.key == trigger

    def execute(self) -> None:
        if self.action is not None:
            self.action()


QUIT_ITEM = StatusBarItem("q", "quit", order=StatusBarItemOrder.QUIT)
APPEARANCE_ITEM = StatusBarItem("a", "appearance", order=StatusBarItemOrder.APPEARANCE)
THEME_ITEM = StatusBarItem("t", "theme", order=StatusBarItemOrder.THEME)


# ---------------------------------------------------------------------------
# StatusBarState
# ---------------------------------------------------------------------------


class StatusBarState:
    """What the status bar shows and which shortcuts it handles."""

    def __init__(
        self,
        quit_behavior: QuitBehavior = QuitBehavior.ALWAYS,
        style: StatusBarStyle = StatusBarStyle.COMPACT,
        alignment: StatusBarAlignment = StatusBarAlignment.JUSTIFIED,
    ) -> None:
        self._lock = threading.RLock()
        self._global_items: list[StatusBarItem] = []
        self._pass_items: list[StatusBarItem] = []
        self._pass_registered = False
        self._context_stack: list[tuple[str, list[StatusBarItem]]] = []

        self.show_system_items = True
        self.show_appearance_item = True
        self.show_theme_item = True
        self.quit_behavior = quit_behavior

        self.style = style
        self.alignment = alignment
        self.highlight_color: Color = Colors.cyan
        self.label_color: Color | None = None

        self.on_change: Callable[[], None] | None = None

    # -- system items -------------------------------------------------------

    @property
    def is_at_root(self) -> bool:
        with self._lock:
            return not self._context_stack

    @property
    def is_quit_allowed(self) -> bool:
        if self.quit_behavior is QuitBehavior.ALWAYS:
            return True
        return self.is_at_root

    @property
    def system_items(self) -> list[StatusBarItem]:
        if not self.show_system_items:
            return []
        items: list[StatusBarItem] = []
        if self.is_quit_allowed:
            items.append(QUIT_ITEM)
        if self.show_appearance_item:
            items.append(APPEARANCE_ITEM)
        if self.show_theme_item:
            items.append(THEME_ITEM)
        return items

    # -- user items ---------------------------------------------------------

    def set_items(self, items: Sequence[StatusBarItem]) -> None:
        with self._lock:
            self._global_items = list(items)
        self._changed()

    def begin_render_pass(self) -> None:
        with self._lock:
            self._pass_registered = False

    def register_pass_items(self, items: Sequence[StatusBarItem]) -> None:
        """Items declared by a component this pass (no re-render requested)."""
        with self._lock:
            self._pass_items = list(items)
            self._pass_registered = True

    def end_render_pass(self) -> None:
        """Drop pass items nobody declared during the pass that just ended.

        Until then the previous pass's items stay visible, which keeps
        :attr:`height` stable while the tree is being resolved.
        """
        with self._lock:
            if not self._pass_registered:
                self._pass_items = []

    def push_context(self, context: str, items: Sequence[StatusBarItem], notify: bool = True) -> None:
        """Push *items* under *context*, replacing an earlier push with that name."""
        with self._lock:
            self._context_stack = [c for c in self._context_stack if c[0] != context]
            self._context_stack.append((context, list(items)))
        if notify:
            self._changed()

    def pop_context(self, context: str) -> None:
        with self._lock:
            before = len(self._context_stack)
            self._context_stack = [c for c in self._context_stack if c[0] != context]
            changed = len(self._context_stack) != before
        if changed:
            self._changed()

    def clear_contexts(self) -> None:
        with self._lock:
            self._context_stack.clear()
        self._changed()

    @property
    def contexts(self) -> list[str]:
        with self._lock:
            return [c[0] for c in self._context_stack]

    @property
    def user_items(self) -> list[StatusBarItem]:
        with self._lock:
            if self._context_stack:
                return list(self._context_stack[-1][1])
            if self._pass_items:
                return list(self._pass_items)
            return list(self._global_items)

    @property
    def items(self) -> list[StatusBarItem]:
        """User items by order, then system items not overridden by a user shortcut."""
        user = sorted(self.user_items, key=lambda item: item.order)
        taken = {item.shortcut for item in user}
        return user + [item for item in self.system_items if item.shortcut not in taken]

    @property
    def height(self) -> int:
        if not self.items:
            return 0
        return 3 if self.style is StatusBarStyle.BORDERED else 1

    # -- events -------------------------------------------------------------

    def handle_key_event(self, event: KeyEvent) -> bool:
        """Run the first matching item that has an action."""
        for item in self.items:
            if item.matches(event) and item.has_action:
                try:
                    item.execute()
                except Exception:
                    logger.exception("Status bar action %r failed", item.id)
                return True
        return False

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()


# ---------------------------------------------------------------------------
# StatusBar view
# ---------------------------------------------------------------------------


class StatusBar(Primitive):
    """Renders a :class:`StatusBarState`, by default the application's own."""

    def __init__(self, state: StatusBarState | None = None) -> None:
        self.state = state

    def render(self, context: RenderContext) -> FrameBuffer:
        state = self.state or context.tui.status_bar
        items = state.items
        width = context.available_width
        if not items or width <= 0:
            return FrameBuffer()

        rendered = [_render_item(item, state) for item in items]
        if state.style is not StatusBarStyle.BORDERED:
            return FrameBuffer([align_items(rendered, width, state.alignment)])

        style = context.appearance.border_style
        color = context.palette.border
        inner = max(0, width - BORDER_OVERHEAD)
        return FrameBuffer(
            [
                top_border(style, inner, color),
                content_line(align_items(rendered, inner, state.alignment), style, inner, color),
                bottom_border(style, inner, color),
            ]
        )


def _render_item(item: StatusBarItem, state: StatusBarState) -> str:
    shortcut = render_styled(item.shortcut, TextStyle(foreground=state.highlight_color, bold=True))
    label = render_styled(item.label, TextStyle(foreground=state.label_color))
    return f"{shortcut} {label}"


def align_items(rendered: Sequence[str], width: int, alignment: StatusBarAlignment) -> str:
    """Lay out pre-rendered items on one line of *width* columns."""
    if alignment is StatusBarAlignment.JUSTIFIED and len(rendered) == 1:
        alignment = StatusBarAlignment.CENTER

    if alignment is StatusBarAlignment.LEADING:
        line = " " + "  ".join(rendered)
    elif alignment is StatusBarAlignment.TRAILING:
        content = "  ".join(rendered) + " "
        line = " " * max(0, width - visible_width(content)) + content
    elif alignment is StatusBarAlignment.CENTER:
        content = "  ".join(rendered)
        line = " " * max(0, (width - visible_width(content)) // 2) + content
    else:
        # n items, n + 1 gaps; the earliest gaps take the leftover columns
        free = max(0, width - sum(visible_width(r) for r in rendered))
        gaps = len(rendered) + 1
        base, extra = divmod(free, gaps)
        parts = []
        for index, item in enumerate(rendered):
            parts.append(" " * (base + (1 if index < extra else 0)))
            parts.append(item)
        line = "".join(parts)
    return pad_to_width(truncate_to_width(line, width), width)
