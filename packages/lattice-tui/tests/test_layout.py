"""Tests for lattice.tui.layout -- stacks, spacers, frame and padding."""

from __future__ import annotations

import pytest

from lattice.tui.buffer import FrameBuffer
from lattice.tui.component import Component, EmptyView, Text, render_to_buffer
from lattice.tui.context import RenderContext
from lattice.tui.layout import (
    INFINITY,
    Alignment,
    EdgeInsets,
    HorizontalAlignment,
    HStack,
    Spacer,
    VerticalAlignment,
    VStack,
    ZStack,
    align_buffer,
    alignment_offset,
)
from lattice.tui.utils import visible_width


def render(component: Component, width: int = 80, height: int = 24) -> FrameBuffer:
    return render_to_buffer(component, RenderContext(available_width=width, available_height=height))


# ---------------------------------------------------------------------------
# Alignment helpers
# ---------------------------------------------------------------------------


class TestAlignment:
    def test_offsets(self) -> None:
        assert alignment_offset(2, 10, HorizontalAlignment.LEADING) == 0
        assert alignment_offset(2, 10, HorizontalAlignment.CENTER) == 4
        assert alignment_offset(2, 10, HorizontalAlignment.TRAILING) == 8
        assert alignment_offset(3, 10, VerticalAlignment.CENTER) == 3

    def test_offset_never_negative(self) -> None:
        assert alignment_offset(12, 10, VerticalAlignment.BOTTOM) == 0

    def test_presets(self) -> None:
        assert Alignment.top_leading == Alignment(HorizontalAlignment.LEADING, VerticalAlignment.TOP)
        assert Alignment.bottom_trailing.vertical is VerticalAlignment.BOTTOM
        assert Alignment() == Alignment.center

    def test_align_buffer(self) -> None:
        aligned = align_buffer(FrameBuffer(["ab"]), 4, 3, Alignment.bottom_trailing)
        assert aligned.lines == ["    ", "    ", "  ab"]

    def test_align_buffer_crops_height(self) -> None:
        aligned = align_buffer(FrameBuffer(["a", "b", "c"]), 1, 2, Alignment.top_leading)
        assert aligned.lines == ["a", "b"]


# ---------------------------------------------------------------------------
# VStack
# ---------------------------------------------------------------------------


class TestVStack:
    """Vertical stacking with cross-axis alignment."""

    def test_leading_by_default(self) -> None:
        assert render(VStack(Text("ab"), Text("abcd"))).lines == ["ab  ", "abcd"]

    def test_centered(self) -> None:
        stack = VStack(Text("ab"), Text("abcd"), alignment=HorizontalAlignment.CENTER)
        assert render(stack).lines == [" ab ", "abcd"]

    def test_trailing(self) -> None:
        stack = VStack(Text("ab"), Text("abcd"), alignment=HorizontalAlignment.TRAILING)
        assert render(stack).lines == ["  ab", "abcd"]

    def test_spacing(self) -> None:
        assert render(VStack(Text("A"), Text("B"), spacing=1)).lines == ["A", "", "B"]

    def test_no_spacing_around_empty_children(self) -> None:
        stack = VStack(Text("A"), EmptyView(), Text("B"), EmptyView(), spacing=1)
        assert render(stack).lines == ["A", "", "B"]

    def test_none_children_skipped(self) -> None:
        assert render(VStack(Text("A"), None, Text("B"))).lines == ["A", "B"]

    def test_empty(self) -> None:
        assert render(VStack()).lines == []

    def test_spacer_fills_remaining_height(self) -> None:
        buffer = render(VStack(Text("top"), Spacer(), Text("bottom")), width=80, height=24)
        assert buffer.height == 24
        assert buffer.lines[0].strip() == "top"
        assert buffer.lines[-1].strip() == "bottom"
        assert buffer.lines[1:23] == [""] * 22

    def test_spacer_does_not_widen_stack(self) -> None:
        buffer = render(VStack(Text("ab"), Spacer(), Text("abcd")), width=40, height=3)
        assert buffer.width == 4
        assert buffer.lines == ["ab  ", "", "abcd"]

    def test_spacers_share_by_integer_division(self) -> None:
        buffer = render(VStack(Spacer(), Text("x"), Spacer()), width=5, height=10)
        # 9 rows for two spacers: 4 each, one row left over
        assert buffer.height == 9
        assert buffer.lines[4].strip() == "x"

    def test_spacer_minimum_wins(self) -> None:
        buffer = render(VStack(Text("a"), Spacer(min_length=3), Text("b")), width=5, height=3)
        assert buffer.height == 5

    def test_spacing_counts_against_spacers(self) -> None:
        buffer = render(VStack(Text("a"), Spacer(), Text("b"), spacing=1), width=1, height=10)
        assert buffer.height == 10

    def test_negative_spacing_rejected(self) -> None:
        with pytest.raises(ValueError):
            VStack(Text("a"), spacing=-1)


# ---------------------------------------------------------------------------
# HStack
# ---------------------------------------------------------------------------


class TestHStack:
    """Horizontal stacking; default spacing is one column."""

    def test_default_spacing(self) -> None:
        assert render(HStack(Text("Left"), Text("Right"))).lines == ["Left Right"]

    def test_zero_spacing(self) -> None:
        assert render(HStack(Text("a"), Text("b"), spacing=0)).lines == ["ab"]

    def test_vertical_centering(self) -> None:
        buffer = render(HStack(Text("a\nb\nc"), Text("x")))
        assert buffer.lines == ["a  ", "b x", "c  "]

    def test_top_alignment(self) -> None:
        buffer = render(HStack(Text("a\nb"), Text("x"), alignment=VerticalAlignment.TOP))
        assert buffer.lines == ["a x", "b  "]

    def test_spacer_pushes_apart(self) -> None:
        buffer = render(HStack(Text("L"), Spacer(), Text("R")), width=20)
        assert buffer.lines == ["L" + " " * 18 + "R"]
        assert visible_width(buffer.lines[0]) == 20

    def test_spacer_minimum_when_full(self) -> None:
        buffer = render(HStack(Text("abc"), Spacer(min_length=2), Text("d"), spacing=0), width=4)
        assert buffer.lines == ["abc  d"]


# ---------------------------------------------------------------------------
# ZStack
# ---------------------------------------------------------------------------


class TestZStack:
    def test_later_children_on_top(self) -> None:
        assert render(ZStack(Text("....."), Text("X"))).lines == ["..X.."]

    def test_alignment(self) -> None:
        stack = ZStack(Text("...\n...\n..."), Text("X"), alignment=Alignment.bottom_trailing)
        assert render(stack).lines == ["...", "...", "..X"]

    def test_empty(self) -> None:
        assert render(ZStack()).lines == []


# ---------------------------------------------------------------------------
# Spacer
# ---------------------------------------------------------------------------


class TestSpacer:
    def test_alone_renders_nothing(self) -> None:
        assert render(Spacer()).lines == []

    def test_negative_minimum_rejected(self) -> None:
        with pytest.raises(ValueError):
            Spacer(min_length=-1)


# ---------------------------------------------------------------------------
# Frame
# ---------------------------------------------------------------------------


class TestFrame:
    """Explicit size constraints."""

    def test_fixed_width(self) -> None:
        assert render(Text("ab").frame(width=5)).lines == ["ab   "]

    def test_fixed_width_truncates_child(self) -> None:
        assert render(Text("abcdef").frame(width=3)).lines == ["abc"]

    def test_ideal_width_clamped_to_available(self) -> None:
        buffer = render(Text("abcdef").frame(ideal_width=30), width=4)
        assert buffer.lines == ["abcd"]

    def test_infinite_width(self) -> None:
        buffer = render(Text("ab").frame(max_width=INFINITY), width=10)
        assert buffer.lines == ["ab        "]

    def test_infinite_height(self) -> None:
        buffer = render(Text("ab").frame(max_height=INFINITY), width=10, height=3)
        assert buffer.height == 3
        assert buffer.lines[0] == "ab"

    def test_centered_in_fixed_box(self) -> None:
        from lattice.tui.layout import FrameModifier

        buffer = render(FrameModifier(Text("ab"), min_width=4, max_width=4, min_height=3, max_height=3))
        assert buffer.lines == ["    ", " ab ", "    "]

    def test_alignment_argument(self) -> None:
        buffer = render(Text("ab").frame(width=4, height=2, alignment=Alignment.bottom_trailing))
        assert buffer.lines == ["    ", "  ab"]

    def test_minimum_only_grows(self) -> None:
        buffer = render(Text("abcdef").frame(min_width=2))
        assert buffer.lines == ["abcdef"]

    def test_unconstrained_is_identity(self) -> None:
        assert render(Text("ab").frame()).lines == ["ab"]


# ---------------------------------------------------------------------------
# Padding
# ---------------------------------------------------------------------------


class TestPadding:
    def test_uniform(self) -> None:
        assert render(Text("x").padding(1)).lines == ["   ", " x ", "   "]

    def test_single_edge_override(self) -> None:
        assert render(Text("x").padding(0, leading=2)).lines == ["  x"]

    def test_edge_insets_argument(self) -> None:
        buffer = render(Text("x").padding(EdgeInsets.symmetric(horizontal=2)))
        assert buffer.lines == ["  x  "]

    def test_child_gets_reduced_width(self) -> None:
        buffer = render(Text("abcdefgh").padding(1), width=6)
        assert buffer.lines[1] == " abcd "

    def test_edge_insets_helpers(self) -> None:
        insets = EdgeInsets.symmetric(horizontal=2, vertical=1)
        assert insets == EdgeInsets(top=1, leading=2, bottom=1, trailing=2)
        assert insets.horizontal == 4
        assert insets.vertical == 2
        assert EdgeInsets.all(3).replace(top=0, bottom=None) == EdgeInsets(0, 3, 3, 3)

    def test_negative_insets_rejected(self) -> None:
        with pytest.raises(ValueError):
            EdgeInsets(top=-1)
