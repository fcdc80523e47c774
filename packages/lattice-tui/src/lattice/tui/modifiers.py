"""Modifiers: components that wrap one child and change how it renders.

Decorating modifiers (border, background, dimmed, overlay) post-process the
child's buffer. Behavioural modifiers (key press, lifecycle, status bar
items, focus section, environment) register something with the
:class:`~lattice.tui.context.TUIContext` during the pass and render the
child unchanged.

The helpers on :class:`~lattice.tui.component.Component` are the usual way
to build these.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Hashable, Iterable, Sequence

from lattice.tui.ansi import DIM_CODE, RESET, Color, apply_persistent_background
from lattice.tui.border import BORDER_OVERHEAD, BorderStyle, bottom_border, content_line, top_border
from lattice.tui.buffer import FrameBuffer
from lattice.tui.component import Component, Primitive, render_to_buffer
from lattice.tui.context import RenderContext
from lattice.tui.input import KeyHandler
from lattice.tui.layout import Alignment, alignment_offset
from lattice.tui.lifecycle import TaskFactory
from lattice.tui.status_bar import StatusBarItem
from lattice.tui.utils import pad_to_width, strip_ansi

logger = logging.getLogger(__name__)

__all__ = [
    "BorderModifier",
    "BackgroundModifier",
    "DimmedModifier",
    "OverlayModifier",
    "EnvironmentModifier",
    "KeyPressModifier",
    "LifecycleModifier",
    "StatusBarItemsModifier",
    "FocusSectionModifier",
]


class _Modifier(Primitive):
    def __init__(self, content: Component) -> None:
        self.content = content

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.content!r})"


def _token(context: RenderContext, explicit: Hashable | None, hook: str) -> Hashable:
    if explicit is not None:
        return (explicit, hook)
    return f"{context.identity}#{hook}"


# ---------------------------------------------------------------------------
# Decoration
# ---------------------------------------------------------------------------


class BorderModifier(_Modifier):
    """Box-drawing frame around the child.

    Style and colour default to the current appearance and palette.
    """

    def __init__(
        self,
        content: Component,
        style: BorderStyle | None = None,
        color: Color | None = None,
        title: str | None = None,
    ) -> None:
        super().__init__(content)
        self.style = style
        self.color = color
        self.title = title

    def render(self, context: RenderContext) -> FrameBuffer:
        inner_context = context.with_size(
            context.available_width - BORDER_OVERHEAD,
            context.available_height - BORDER_OVERHEAD,
        )
        buffer = render_to_buffer(self.content, inner_context)
        if buffer.is_empty:
            return FrameBuffer()

        style = self.style or context.appearance.border_style
        color = self.color or context.palette.border
        inner = max(buffer.width, 1)

        lines = [top_border(style, inner, color, self.title, context.palette.foreground)]
        lines.extend(content_line(line, style, inner, color) for line in buffer.lines)
        lines.append(bottom_border(style, inner, color))
        return FrameBuffer(lines)


class BackgroundModifier(_Modifier):
    """Fill the child's bounding box with a background colour."""

    def __init__(self, content: Component, color: Color) -> None:
        super().__init__(content)
        self.color = color

    def render(self, context: RenderContext) -> FrameBuffer:
        buffer = render_to_buffer(self.content, context)
        width = buffer.width
        return FrameBuffer(
            [apply_persistent_background(pad_to_width(line, width), self.color) + RESET for line in buffer.lines]
        )


class DimmedModifier(_Modifier):
    """Render the child with the faint attribute, e.g. behind a modal."""

    def __init__(self, content: Component, enabled: bool = True) -> None:
        super().__init__(content)
        self.enabled = enabled

    def render(self, context: RenderContext) -> FrameBuffer:
        buffer = render_to_buffer(self.content, context)
        if not self.enabled:
            return buffer
        lines = []
        for line in buffer.lines:
            if strip_ansi(line).strip():
                line = DIM_CODE + line.replace(RESET, RESET + DIM_CODE) + RESET
            lines.append(line)
        return FrameBuffer(lines)


class OverlayModifier(_Modifier):
    """Draw *overlay* on top of the child, placed by *alignment*."""

    def __init__(self, content: Component, overlay: Component, alignment: Alignment | None = None) -> None:
        super().__init__(content)
        self.overlay_content = overlay
        self.alignment = alignment or Alignment.center

    def render(self, context: RenderContext) -> FrameBuffer:
        base = render_to_buffer(self.content, context)
        top = render_to_buffer(self.overlay_content, context.child(1, self.overlay_content))
        if base.is_empty:
            return top
        if top.is_empty:
            return base
        x = alignment_offset(top.width, base.width, self.alignment.horizontal)
        y = alignment_offset(top.height, base.height, self.alignment.vertical)
        return base.composited(top, x, y)


# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------


class EnvironmentModifier(_Modifier):
    """Render the child with one environment value replaced."""

    def __init__(self, content: Component, key: str, value: Any) -> None:
        super().__init__(content)
        self.key = key
        self.value = value

    def render(self, context: RenderContext) -> FrameBuffer:
        environment = context.environment.with_value(self.key, self.value)
        return render_to_buffer(self.content, context.with_environment(environment))


# ---------------------------------------------------------------------------
# Behaviour
# ---------------------------------------------------------------------------


class KeyPressModifier(_Modifier):
    """Register a key handler for as long as the child is rendered.

    The handler is registered before the child renders, so handlers
    declared further down the tree see events first.
    """

    def __init__(self, content: Component, handler: KeyHandler, keys: Iterable[str] | None = None) -> None:
        super().__init__(content)
        self.handler = handler
        self.keys = frozenset(keys) if keys is not None else None

    def render(self, context: RenderContext) -> FrameBuffer:
        context.tui.key_handlers.add(self.handler, self.keys)
        return render_to_buffer(self.content, context)


class LifecycleModifier(_Modifier):
    """Appear / disappear callbacks and a background task for the child.

    Tokens default to the modifier's structural identity, one per hook.
    The child renders one identity level deeper, so lifecycle hooks stacked
    on the same component never share a token.
    """

    def __init__(
        self,
        content: Component,
        on_appear: Callable[[], None] | None = None,
        on_disappear: Callable[[], None] | None = None,
        task: TaskFactory | None = None,
        token: Hashable | None = None,
    ) -> None:
        super().__init__(content)
        self.appear_action = on_appear
        self.disappear_action = on_disappear
        self.task_factory = task
        self.token = token

    def render(self, context: RenderContext) -> FrameBuffer:
        lifecycle = context.tui.lifecycle
        if self.appear_action is not None:
            lifecycle.record_appear(_token(context, self.token, "appear"), self.appear_action)
        if self.disappear_action is not None:
            lifecycle.register_disappear(_token(context, self.token, "disappear"), self.disappear_action)
        if self.task_factory is not None:
            lifecycle.start_task(_token(context, self.token, "task"), self.task_factory)
        # Hooks stacked further down the same child get tokens of their own
        return render_to_buffer(self.content, context.child(0, self.content))


class StatusBarItemsModifier(_Modifier):
    """Publish status bar items while the child is rendered.

    Without *context* the items replace the pass items. With a *context*
    name they are pushed on the status bar's context stack (typical for a
    modal) and popped again once the child stops being rendered.
    """

    def __init__(self, content: Component, items: Sequence[StatusBarItem], context: str | None = None) -> None:
        super().__init__(content)
        self.items = list(items)
        self.context = context

    def render(self, context: RenderContext) -> FrameBuffer:
        status_bar = context.tui.status_bar
        if self.context is None:
            status_bar.register_pass_items(self.items)
        else:
            name = self.context
            status_bar.push_context(name, self.items, notify=False)
            context.tui.lifecycle.register_disappear(
                _token(context, None, f"status-bar:{name}"),
                lambda: status_bar.pop_context(name),
            )
        return render_to_buffer(self.content, context)


class FocusSectionModifier(_Modifier):
    """Focusables rendered inside the child register into *section_id*."""

    def __init__(self, content: Component, section_id: str) -> None:
        super().__init__(content)
        self.section_id = section_id

    def render(self, context: RenderContext) -> FrameBuffer:
        context.tui.focus.register_section(self.section_id)
        return render_to_buffer(self.content, context.with_focus_section(self.section_id))
