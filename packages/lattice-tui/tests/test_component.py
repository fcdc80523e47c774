"""Tests for lattice.tui.component -- component kinds and the resolver."""

from __future__ import annotations

from lattice.tui.ansi import Colors, TextStyle
from lattice.tui.buffer import FrameBuffer
from lattice.tui.component import (
    Button,
    ChildrenBuilder,
    Component,
    Composite,
    Divider,
    EmptyView,
    Group,
    Primitive,
    Text,
    render_to_buffer,
)
from lattice.tui.context import Environment, Identity, RenderContext, TUIContext
from lattice.tui.keys import Key, KeyEvent
from lattice.tui.layout import HorizontalAlignment, VStack
from lattice.tui.utils import strip_ansi, visible_width


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def make_context(width: int = 40, height: int = 10, tui: TUIContext | None = None) -> RenderContext:
    return RenderContext(available_width=width, available_height=height, tui=tui or TUIContext())


def render_pass(component: Component, context: RenderContext) -> FrameBuffer:
    """Resolve *component* inside a full render pass."""
    context.tui.begin_render_pass()
    buffer = render_to_buffer(component, context)
    context.tui.end_render_pass()
    return buffer


class Greeting(Composite):
    def __init__(self, name: str) -> None:
        self.name = name

    def body(self, context: RenderContext) -> Component:
        return VStack(Text(f"Hello, {self.name}"), Text("bye"), alignment=HorizontalAlignment.LEADING)


class IdentityEcho(Primitive):
    """Renders the structural identity it was given."""

    def render(self, context: RenderContext) -> FrameBuffer:
        return FrameBuffer([str(context.identity)])


class Counter(Composite):
    """Keeps its count in per-instance state."""

    def body(self, context: RenderContext) -> Component:
        cell = context.state_cell("count", 0)
        cell.update(lambda n: n + 1)
        return Text(f"rendered {cell.get()}")


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class TestRenderToBuffer:
    """Primitives render, composites recurse, anything else is empty."""

    def test_primitive(self) -> None:
        assert render_to_buffer(Text("hi"), make_context()).lines == ["hi"]

    def test_composite_body(self) -> None:
        buffer = render_to_buffer(Greeting("Ada"), make_context())
        assert buffer.stripped_lines() == ["Hello, Ada", "bye       "]

    def test_composite_returning_none(self) -> None:
        class Nothing(Composite):
            def body(self, context: RenderContext) -> None:
                return None

        assert render_to_buffer(Nothing(), make_context()).is_empty

    def test_unknown_object(self) -> None:
        assert render_to_buffer(object(), make_context()).lines == []

    def test_plain_component_without_kind(self) -> None:
        assert render_to_buffer(Component(), make_context()).lines == []

    def test_empty_view(self) -> None:
        assert render_to_buffer(EmptyView(), make_context()).is_empty

    def test_rendering_is_repeatable(self) -> None:
        tree = VStack(Text("a").bold(), Divider(), Greeting("x"))
        context = make_context()
        first = render_pass(tree, context)
        second = render_pass(tree, context)
        assert first == second

    def test_child_identity_paths(self) -> None:
        buffer = render_to_buffer(VStack(Text("x"), IdentityEcho()), make_context())
        assert strip_ansi(buffer.lines[1]).strip() == "IdentityEcho#1"

    def test_composite_identity_includes_body(self) -> None:
        class Wrapper(Composite):
            def body(self, context: RenderContext) -> Component:
                return IdentityEcho()

        buffer = render_to_buffer(Wrapper(), make_context())
        assert buffer.lines == ["IdentityEcho#0"]


class TestIdentity:
    def test_root(self) -> None:
        assert str(Identity()) == "<root>"

    def test_child(self) -> None:
        assert str(Identity().child("VStack#0").child("Text#2")) == "VStack#0/Text#2"

    def test_state_survives_frames(self) -> None:
        context = make_context()
        assert render_pass(Counter(), context).lines == ["rendered 1"]
        assert render_pass(Counter(), context).lines == ["rendered 2"]


class TestRenderContext:
    def test_with_size_clamps(self) -> None:
        context = make_context(10, 5).with_size(-3, -1)
        assert (context.available_width, context.available_height) == (0, 0)

    def test_derived_contexts_share_services(self) -> None:
        context = make_context()
        assert context.with_size(5, 5).tui is context.tui
        assert context.child(0, Text("x")).tui is context.tui

    def test_environment_is_immutable(self) -> None:
        env = Environment({"a": 1})
        derived = env.with_value("a", 2)
        assert env["a"] == 1
        assert derived["a"] == 2

    def test_environment_with_values(self) -> None:
        env = Environment().with_values(a=1, b=2)
        assert dict(env) == {"a": 1, "b": 2}
        assert len(env) == 2

    def test_palette_from_environment(self) -> None:
        tui = TUIContext()
        context = RenderContext(10, 10, tui=tui, environment=tui.environment())
        assert context.palette == tui.palette_manager.current
        assert context.appearance == tui.appearance_manager.current


# ---------------------------------------------------------------------------
# Built-in primitives
# ---------------------------------------------------------------------------


class TestText:
    def test_multiline(self) -> None:
        assert render_to_buffer(Text("a\nbc"), make_context()).lines == ["a", "bc"]

    def test_truncated_to_available_width(self) -> None:
        assert render_to_buffer(Text("abcdefgh"), make_context(width=3)).lines == ["abc"]

    def test_zero_width(self) -> None:
        assert render_to_buffer(Text("abc"), make_context(width=0)).lines == [""]

    def test_bold(self) -> None:
        assert render_to_buffer(Text("x").bold(), make_context()).lines == ["\x1b[1mx\x1b[0m"]

    def test_style_helpers_compose(self) -> None:
        text = Text("x").bold().italic().underline().foreground(Colors.red)
        assert text.style == TextStyle(foreground=Colors.red, bold=True, italic=True, underline=True)

    def test_style_helpers_return_new_text(self) -> None:
        plain = Text("x")
        plain.bold()
        assert plain.style.is_plain()


class TestGroup:
    def test_stacks_children(self) -> None:
        group = Group(Text("a"), None, Text("b"))
        assert render_to_buffer(group, make_context()).lines == ["a", "b"]


class TestDivider:
    def test_spans_available_width(self) -> None:
        buffer = render_to_buffer(Divider(), make_context(width=6))
        assert strip_ansi(buffer.lines[0]) == "──────"

    def test_custom_character_and_colour(self) -> None:
        buffer = render_to_buffer(Divider("=", Colors.red), make_context(width=3))
        assert buffer.lines == ["\x1b[31m===\x1b[0m"]

    def test_wide_character_fits(self) -> None:
        buffer = render_to_buffer(Divider("世"), make_context(width=5))
        assert visible_width(buffer.lines[0]) == 4

    def test_nothing_at_zero_width(self) -> None:
        assert render_to_buffer(Divider(), make_context(width=0)).is_empty


class TestButton:
    """Buttons register an action handler with the focus manager."""

    def test_first_button_focused_after_pass(self) -> None:
        context = make_context()
        render_pass(VStack(Button("One", lambda: None), Button("Two", lambda: None)), context)
        assert context.tui.focus.focused_id == "Button#0"

    def test_focused_style_is_inverse(self) -> None:
        context = make_context()
        tree = VStack(Button("One", lambda: None), Button("Two", lambda: None))
        render_pass(tree, context)
        buffer = render_pass(tree, context)
        assert buffer.lines[0].startswith("\x1b[1;7;")
        assert strip_ansi(buffer.lines[1]).strip() == "[ Two ]"

    def test_enter_runs_action(self) -> None:
        pressed: list[str] = []
        context = make_context()
        render_pass(Button("Go", lambda: pressed.append("go"), focus_id="go"), context)
        assert context.tui.focus.dispatch_key_event(KeyEvent(Key.enter))
        assert pressed == ["go"]

    def test_disabled_button_cannot_focus(self) -> None:
        context = make_context()
        render_pass(VStack(Button("Off", lambda: None, disabled=True), Button("On", lambda: None)), context)
        assert context.tui.focus.focused_id == "Button#1"


class TestChildrenBuilder:
    def test_skips_none(self) -> None:
        children = ChildrenBuilder().add(Text("a")).add(None).build()
        assert len(children) == 1

    def test_add_if(self) -> None:
        builder = ChildrenBuilder()
        builder.add_if(True, Text("yes"), Text("no"))
        builder.add_if(False, Text("yes"), Text("no"))
        assert [c.content for c in builder.build()] == ["yes", "no"]

    def test_add_if_evaluates_chosen_callable_only(self) -> None:
        calls: list[str] = []

        def make(label: str):
            def build() -> Text:
                calls.append(label)
                return Text(label)

            return build

        builder = ChildrenBuilder().add_if(False, make("a"), make("b"))
        assert calls == ["b"]
        assert len(builder) == 1

    def test_add_all(self) -> None:
        builder = ChildrenBuilder().add_all(Text(s) for s in "abc")
        assert len(builder) == 3

    def test_build_returns_copy(self) -> None:
        builder = ChildrenBuilder().add(Text("a"))
        built = builder.build()
        built.append(Text("b"))
        assert len(builder) == 1
