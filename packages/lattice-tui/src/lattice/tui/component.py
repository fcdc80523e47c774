"""Component descriptions and the resolver that turns them into buffers.

A component is an immutable description of UI for one frame. It is one of
two kinds:

* a :class:`Primitive` renders itself straight into a :class:`FrameBuffer`;
* a :class:`Composite` returns another component from :meth:`Composite.body`
  which is resolved in turn.

:func:`render_to_buffer` dispatches on :attr:`Component.kind`. Anything
that is neither kind resolves to an empty buffer.

Modifier helpers (``padding``, ``border``, ``on_appear`` ...) are defined on
:class:`Component` and wrap the receiver in a new component, so trees are
built fluently::

    VStack(Text("title").bold(), Divider()).padding(1).border()
"""

from __future__ import annotations

import logging
from dataclasses import replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Hashable, Iterable, Sequence

from lattice.tui.ansi import Color, TextStyle, render_styled
from lattice.tui.buffer import FrameBuffer
from lattice.tui.focus import ActionHandler
from lattice.tui.utils import truncate_to_width

if TYPE_CHECKING:
    from lattice.tui.border import BorderStyle
    from lattice.tui.context import RenderContext
    from lattice.tui.input import KeyHandler
    from lattice.tui.layout import Alignment, EdgeInsets
    from lattice.tui.lifecycle import TaskFactory
    from lattice.tui.status_bar import StatusBarItem

logger = logging.getLogger(__name__)

__all__ = [
    "ComponentKind",
    "Component",
    "Primitive",
    "Composite",
    "render_to_buffer",
    "render_child",
    "Group",
    "EmptyView",
    "Text",
    "Divider",
    "ChildrenBuilder",
    "Button",
]


class ComponentKind(Enum):
    PRIMITIVE = "primitive"
    COMPOSITE = "composite"


# ---------------------------------------------------------------------------
# Base classes
# ---------------------------------------------------------------------------


class Component:
    """Base of every component description.

    Subclasses set :attr:`kind` by deriving from :class:`Primitive` or
    :class:`Composite`.
    """

    kind: ClassVar[ComponentKind | None] = None

    # -- layout ---------------------------------------------------------------

    def padding(
        self,
        insets: int | EdgeInsets = 1,
        *,
        top: int | None = None,
        leading: int | None = None,
        bottom: int | None = None,
        trailing: int | None = None,
    ) -> Component:
        from lattice.tui.layout import EdgeInsets, PaddingModifier

        if not isinstance(insets, EdgeInsets):
            insets = EdgeInsets.all(insets)
        insets = insets.replace(top=top, leading=leading, bottom=bottom, trailing=trailing)
        return PaddingModifier(self, insets)

    def frame(
        self,
        width: int | None = None,
        height: int | None = None,
        *,
        min_width: int | None = None,
        ideal_width: int | None = None,
        max_width: float | None = None,
        min_height: int | None = None,
        ideal_height: int | None = None,
        max_height: float | None = None,
        alignment: Alignment | None = None,
    ) -> Component:
        """Size constraints; ``width``/``height`` fix both bounds at once."""
        from lattice.tui.layout import Alignment, FrameModifier

        if width is not None:
            min_width = ideal_width = max_width = width
        if height is not None:
            min_height = ideal_height = max_height = height
        return FrameModifier(
            self,
            min_width=min_width,
            ideal_width=ideal_width,
            max_width=max_width,
            min_height=min_height,
            ideal_height=ideal_height,
            max_height=max_height,
            alignment=alignment or Alignment.top_leading,
        )

    # -- decoration -----------------------------------------------------------

    def border(
        self,
        style: BorderStyle | None = None,
        color: Color | None = None,
        title: str | None = None,
    ) -> Component:
        from lattice.tui.modifiers import BorderModifier

        return BorderModifier(self, style=style, color=color, title=title)

    def background(self, color: Color) -> Component:
        from lattice.tui.modifiers import BackgroundModifier

        return BackgroundModifier(self, color)

    def dimmed(self, enabled: bool = True) -> Component:
        from lattice.tui.modifiers import DimmedModifier

        return DimmedModifier(self, enabled)

    def overlay(self, content: Component, alignment: Alignment | None = None) -> Component:
        from lattice.tui.layout import Alignment
        from lattice.tui.modifiers import OverlayModifier

        return OverlayModifier(self, content, alignment or Alignment.center)

    def environment(self, key: str, value: Any) -> Component:
        from lattice.tui.modifiers import EnvironmentModifier

        return EnvironmentModifier(self, key, value)

    # -- events and lifecycle -------------------------------------------------

    def on_key_press(self, handler: KeyHandler, keys: Iterable[str] | None = None) -> Component:
        from lattice.tui.modifiers import KeyPressModifier

        return KeyPressModifier(self, handler, keys)

    def on_appear(self, action: Callable[[], None], token: Hashable | None = None) -> Component:
        from lattice.tui.modifiers import LifecycleModifier

        return LifecycleModifier(self, on_appear=action, token=token)

    def on_disappear(self, action: Callable[[], None], token: Hashable | None = None) -> Component:
        from lattice.tui.modifiers import LifecycleModifier

        return LifecycleModifier(self, on_disappear=action, token=token)

    def task(self, factory: TaskFactory, token: Hashable | None = None) -> Component:
        """Run ``factory()`` as a background task while this component is shown."""
        from lattice.tui.modifiers import LifecycleModifier

        return LifecycleModifier(self, task=factory, token=token)

    def status_bar_items(self, items: Sequence[StatusBarItem], context: str | None = None) -> Component:
        from lattice.tui.modifiers import StatusBarItemsModifier

        return StatusBarItemsModifier(self, items, context)

    def focus_section(self, section_id: str) -> Component:
        from lattice.tui.modifiers import FocusSectionModifier

        return FocusSectionModifier(self, section_id)


class Primitive(Component):
    """A component that renders itself directly."""

    kind = ComponentKind.PRIMITIVE

    def render(self, context: RenderContext) -> FrameBuffer:
        raise NotImplementedError


class Composite(Component):
    """A component built out of other components."""

    kind = ComponentKind.COMPOSITE

    def body(self, context: RenderContext) -> Component | None:
        raise NotImplementedError


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


def render_to_buffer(component: object, context: RenderContext) -> FrameBuffer:
    """Resolve *component* into a buffer.

    Primitives render directly (their ``body`` is never consulted),
    composites recurse into their body, anything else yields an empty
    buffer.
    """
    kind = getattr(component, "kind", None)
    if kind is ComponentKind.PRIMITIVE:
        return component.render(context)  # type: ignore[attr-defined]
    if kind is ComponentKind.COMPOSITE:
        body = component.body(context)  # type: ignore[attr-defined]
        if body is None:
            return FrameBuffer()
        return render_to_buffer(body, context.child(0, body))
    logger.debug("Cannot render %s: neither primitive nor composite", type(component).__name__)
    return FrameBuffer()


def render_child(child: Component, index: int, context: RenderContext) -> FrameBuffer:
    """Resolve the *index*-th child of a container."""
    return render_to_buffer(child, context.child(index, child))


# ---------------------------------------------------------------------------
# Built-in primitives
# ---------------------------------------------------------------------------


class EmptyView(Primitive):
    def render(self, context: RenderContext) -> FrameBuffer:
        return FrameBuffer()

    def __repr__(self) -> str:
        return "EmptyView()"


class Group(Primitive):
    """Transparent container: children stacked vertically, no spacing."""

    def __init__(self, *children: Component | None) -> None:
        self.children: tuple[Component, ...] = tuple(c for c in children if c is not None)

    def render(self, context: RenderContext) -> FrameBuffer:
        return FrameBuffer.stacked(
            render_child(child, index, context) for index, child in enumerate(self.children)
        )

    def __repr__(self) -> str:
        return f"Group{self.children!r}"


class Text(Primitive):
    """One or more lines of text in a single style.

    Lines wider than the available width are cut to fit.
    """

    def __init__(self, content: str, style: TextStyle | None = None) -> None:
        self.content = content
        self.style = style or TextStyle()

    def styled(self, **changes: Any) -> Text:
        return Text(self.content, replace(self.style, **changes))

    def bold(self) -> Text:
        return self.styled(bold=True)

    def italic(self) -> Text:
        return self.styled(italic=True)

    def underline(self) -> Text:
        return self.styled(underline=True)

    def foreground(self, color: Color) -> Text:
        return self.styled(foreground=color)

    def render(self, context: RenderContext) -> FrameBuffer:
        width = context.available_width
        return FrameBuffer(
            [render_styled(truncate_to_width(line, width), self.style) for line in self.content.split("\n")]
        )

    def __repr__(self) -> str:
        return f"Text({self.content!r})"


class Divider(Primitive):
    """A horizontal rule across the available width, in the palette's border colour."""

    def __init__(self, character: str = "─", color: Color | None = None) -> None:
        self.character = character
        self.color = color

    def render(self, context: RenderContext) -> FrameBuffer:
        if context.available_width <= 0:
            return FrameBuffer()
        color = self.color or context.palette.border
        line = truncate_to_width(self.character * context.available_width, context.available_width)
        return FrameBuffer([render_styled(line, TextStyle(foreground=color))])


# ---------------------------------------------------------------------------
# ChildrenBuilder
# ---------------------------------------------------------------------------


class ChildrenBuilder:
    """Collects an ordered child list for a container.

    ``None`` values are skipped, so optional children can be passed
    straight through::

        children = (
            ChildrenBuilder()
            .add(Text("header"))
            .add_if(show_help, lambda: Text("help"))
            .add_all(Text(name) for name in names)
            .build()
        )
        VStack(*children)
    """

    def __init__(self) -> None:
        self._children: list[Component] = []

    def add(self, child: Component | None) -> ChildrenBuilder:
        if child is not None:
            self._children.append(child)
        return self

    def add_if(
        self,
        condition: bool,
        child: Component | Callable[[], Component | None] | None,
        otherwise: Component | Callable[[], Component | None] | None = None,
    ) -> ChildrenBuilder:
        """Add *child* when *condition* holds, else *otherwise*.

        Either may be a zero-argument callable, evaluated only if chosen.
        """
        chosen = child if condition else otherwise
        if callable(chosen) and not isinstance(chosen, Component):
            chosen = chosen()
        return self.add(chosen)

    def add_all(self, children: Iterable[Component | None]) -> ChildrenBuilder:
        for child in children:
            self.add(child)
        return self

    def build(self) -> list[Component]:
        return list(self._children)

    def __len__(self) -> int:
        return len(self._children)


# ---------------------------------------------------------------------------
# Button
# ---------------------------------------------------------------------------


class Button(Primitive):
    """A focusable ``[ label ]`` that runs *action* on Enter or Space.

    The focus ID defaults to the button's structural identity, so it stays
    stable across frames as long as the tree shape does.
    """

    def __init__(
        self,
        label: str,
        action: Callable[[], None],
        focus_id: str | None = None,
        disabled: bool = False,
    ) -> None:
        self.label = label
        self.action = action
        self.focus_id = focus_id
        self.disabled = disabled

    def render(self, context: RenderContext) -> FrameBuffer:
        focus = context.tui.focus
        handler = ActionHandler(
            self.focus_id or str(context.identity),
            self.action,
            can_be_focused=not self.disabled,
        )
        focus.register(handler, context.focus_section_id)

        palette = context.palette
        label = f"[ {self.label} ]"
        if self.disabled:
            style = TextStyle(foreground=palette.foreground_tertiary)
        elif focus.is_focused(handler.focus_id):
            style = TextStyle(foreground=palette.accent, bold=True, inverse=True)
        else:
            style = TextStyle(foreground=palette.foreground)
        return FrameBuffer([render_styled(truncate_to_width(label, context.available_width), style)])

    def __repr__(self) -> str:
        return f"Button({self.label!r})"
