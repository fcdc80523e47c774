"""Stacks, spacers and the frame / padding modifiers.

Stacks resolve their children in two steps. Fixed children are rendered
first to learn their extent along the stack axis; the space left over
(after inter-item spacing) is shared out between :class:`Spacer` children
by integer division. A spacer whose ``min_length`` exceeds its share gets
its minimum instead. Rounding leftovers are not redistributed.

Children narrower (or shorter) than their siblings are aligned on the cross
axis inside the widest (tallest) one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import ClassVar

from lattice.tui.buffer import FrameBuffer
from lattice.tui.component import Component, Primitive, render_child, render_to_buffer
from lattice.tui.context import RenderContext
from lattice.tui.utils import pad_to_width

logger = logging.getLogger(__name__)

__all__ = [
    "HorizontalAlignment",
    "VerticalAlignment",
    "Alignment",
    "Spacer",
    "VStack",
    "HStack",
    "ZStack",
    "INFINITY",
    "FrameModifier",
    "EdgeInsets",
    "PaddingModifier",
    "align_buffer",
    "alignment_offset",
]


# ---------------------------------------------------------------------------
# Alignment
# ---------------------------------------------------------------------------


class HorizontalAlignment(Enum):
    LEADING = "leading"
    CENTER = "center"
    TRAILING = "trailing"


class VerticalAlignment(Enum):
    TOP = "top"
    CENTER = "center"
    BOTTOM = "bottom"


@dataclass(frozen=True)
class Alignment:
    horizontal: HorizontalAlignment = HorizontalAlignment.CENTER
    vertical: VerticalAlignment = VerticalAlignment.CENTER

    top_leading: ClassVar[Alignment]
    top: ClassVar[Alignment]
    top_trailing: ClassVar[Alignment]
    leading: ClassVar[Alignment]
    center: ClassVar[Alignment]
    trailing: ClassVar[Alignment]
    bottom_leading: ClassVar[Alignment]
    bottom: ClassVar[Alignment]
    bottom_trailing: ClassVar[Alignment]


_H = HorizontalAlignment
_V = VerticalAlignment
Alignment.top_leading = Alignment(_H.LEADING, _V.TOP)
Alignment.top = Alignment(_H.CENTER, _V.TOP)
Alignment.top_trailing = Alignment(_H.TRAILING, _V.TOP)
Alignment.leading = Alignment(_H.LEADING, _V.CENTER)
Alignment.center = Alignment(_H.CENTER, _V.CENTER)
Alignment.trailing = Alignment(_H.TRAILING, _V.CENTER)
Alignment.bottom_leading = Alignment(_H.LEADING, _V.BOTTOM)
Alignment.bottom = Alignment(_H.CENTER, _V.BOTTOM)
Alignment.bottom_trailing = Alignment(_H.TRAILING, _V.BOTTOM)


def alignment_offset(extent: int, total: int, alignment: HorizontalAlignment | VerticalAlignment) -> int:
    """Leading offset of *extent* inside *total* for *alignment*."""
    if alignment in (_H.LEADING, _V.TOP):
        return 0
    if alignment in (_H.CENTER, _V.CENTER):
        return max(0, (total - extent) // 2)
    return max(0, total - extent)


def align_horizontally(buffer: FrameBuffer, width: int, alignment: HorizontalAlignment) -> FrameBuffer:
    """Pad every line so the block sits at *alignment* within *width* columns."""
    block = buffer.width
    if block >= width:
        return buffer
    left = " " * alignment_offset(block, width, alignment)
    right = " " * (width - block - len(left))
    return FrameBuffer([left + pad_to_width(line, block) + right for line in buffer.lines])


def align_vertically(buffer: FrameBuffer, height: int, alignment: VerticalAlignment) -> FrameBuffer:
    """Add blank rows so the block sits at *alignment* within *height* rows."""
    if buffer.height >= height:
        return buffer
    blank = " " * buffer.width
    top = alignment_offset(buffer.height, height, alignment)
    bottom = height - buffer.height - top
    return FrameBuffer([blank] * top + buffer.lines + [blank] * bottom)


def align_buffer(buffer: FrameBuffer, width: int, height: int, alignment: Alignment) -> FrameBuffer:
    """Place *buffer* inside a ``width`` x ``height`` frame."""
    aligned = align_horizontally(buffer, width, alignment.horizontal)
    aligned = align_vertically(aligned, height, alignment.vertical)
    if aligned.height > height:
        aligned = FrameBuffer(aligned.lines[:height])
    return aligned


# ---------------------------------------------------------------------------
# Spacer
# ---------------------------------------------------------------------------


class Spacer(Primitive):
    """Flexible space along the axis of the enclosing stack.

    Outside a stack a spacer renders nothing.
    """

    def __init__(self, min_length: int = 0) -> None:
        if min_length < 0:
            raise ValueError(f"min_length must be >= 0, got {min_length}")
        self.min_length = min_length

    def render(self, context: RenderContext) -> FrameBuffer:
        return FrameBuffer()

    def __repr__(self) -> str:
        return f"Spacer(min_length={self.min_length})"


def _spacer_lengths(spacers: list[Spacer], available: int, fixed: int, spacing_total: int) -> list[int]:
    if not spacers:
        return []
    remaining = max(0, available - fixed - spacing_total)
    share = remaining // len(spacers)
    return [max(share, spacer.min_length) for spacer in spacers]


# ---------------------------------------------------------------------------
# Stacks
# ---------------------------------------------------------------------------


class _Stack(Primitive):
    def __init__(self, *children: Component | None, spacing: int) -> None:
        if spacing < 0:
            raise ValueError(f"spacing must be >= 0, got {spacing}")
        self.children: tuple[Component, ...] = tuple(c for c in children if c is not None)
        self.spacing = spacing

    def _resolve(self, context: RenderContext) -> list[FrameBuffer | Spacer]:
        return [
            child if isinstance(child, Spacer) else render_child(child, index, context)
            for index, child in enumerate(self.children)
        ]

    def __repr__(self) -> str:
        return f"{type(self).__name__}{self.children!r}"


class VStack(_Stack):
    """Children top to bottom."""

    def __init__(
        self,
        *children: Component | None,
        alignment: HorizontalAlignment = HorizontalAlignment.LEADING,
        spacing: int = 0,
    ) -> None:
        super().__init__(*children, spacing=spacing)
        self.alignment = alignment

    def render(self, context: RenderContext) -> FrameBuffer:
        resolved = self._resolve(context)
        if not resolved:
            return FrameBuffer()

        buffers = [r for r in resolved if isinstance(r, FrameBuffer)]
        spacers = [r for r in resolved if isinstance(r, Spacer)]
        fixed = sum(b.height for b in buffers)
        spacing_total = (len(resolved) - 1) * self.spacing
        lengths = iter(_spacer_lengths(spacers, context.available_height, fixed, spacing_total))
        width = max((b.width for b in buffers), default=0)

        result = FrameBuffer()
        for item in resolved:
            if isinstance(item, Spacer):
                length = next(lengths)
                # Spacer rows count as content for the spacing rule
                if length and result.lines and self.spacing:
                    result.lines.extend([""] * self.spacing)
                result.lines.extend([""] * length)
            else:
                result.append_vertically(align_horizontally(item, width, self.alignment), self.spacing)
        return result


class HStack(_Stack):
    """Children left to right."""

    def __init__(
        self,
        *children: Component | None,
        alignment: VerticalAlignment = VerticalAlignment.CENTER,
        spacing: int = 1,
    ) -> None:
        super().__init__(*children, spacing=spacing)
        self.alignment = alignment

    def render(self, context: RenderContext) -> FrameBuffer:
        resolved = self._resolve(context)
        if not resolved:
            return FrameBuffer()

        buffers = [r for r in resolved if isinstance(r, FrameBuffer)]
        spacers = [r for r in resolved if isinstance(r, Spacer)]
        fixed = sum(b.width for b in buffers)
        spacing_total = (len(resolved) - 1) * self.spacing
        lengths = iter(_spacer_lengths(spacers, context.available_width, fixed, spacing_total))
        height = max((b.height for b in buffers), default=0)

        result = FrameBuffer()
        for index, item in enumerate(resolved):
            if isinstance(item, Spacer):
                column = FrameBuffer([" " * next(lengths)] * height)
            else:
                column = align_vertically(item.padded(item.width), height, self.alignment)
            result.append_horizontally(column, self.spacing if index > 0 else 0)
        return result


class ZStack(_Stack):
    """Children drawn on top of each other, later children in front."""

    def __init__(self, *children: Component | None, alignment: Alignment | None = None) -> None:
        super().__init__(*children, spacing=0)
        self.alignment = alignment or Alignment.center

    def render(self, context: RenderContext) -> FrameBuffer:
        buffers = [b for b in self._resolve(context) if isinstance(b, FrameBuffer)]
        if not buffers:
            return FrameBuffer()
        width = max(b.width for b in buffers)
        height = max(b.height for b in buffers)

        result = FrameBuffer.blank(height).padded(width)
        for layer in buffers:
            if layer.is_empty:
                continue
            x = alignment_offset(layer.width, width, self.alignment.horizontal)
            y = alignment_offset(layer.height, height, self.alignment.vertical)
            result = result.composited(layer, x, y)
        return result


# ---------------------------------------------------------------------------
# Frame
# ---------------------------------------------------------------------------

# Pass as ``max_width`` / ``max_height`` to take all available space.
INFINITY = float("inf")


class FrameModifier(Primitive):
    """Explicit size constraints around a single child.

    Target extent: an explicit maximum (``INFINITY`` means all available
    space), else the ideal size clamped to what is available, else the
    child's natural size. A minimum only ever grows the result.
    """

    def __init__(
        self,
        content: Component,
        min_width: int | None = None,
        ideal_width: int | None = None,
        max_width: float | None = None,
        min_height: int | None = None,
        ideal_height: int | None = None,
        max_height: float | None = None,
        alignment: Alignment | None = None,
    ) -> None:
        self.content = content
        self.min_width = min_width
        self.ideal_width = ideal_width
        self.max_width = max_width
        self.min_height = min_height
        self.ideal_height = ideal_height
        self.max_height = max_height
        self.alignment = alignment or Alignment.center

    @staticmethod
    def _target(available: int, maximum: float | None, ideal: int | None) -> int | None:
        if maximum is not None:
            return available if maximum == INFINITY else min(int(maximum), available)
        if ideal is not None:
            return min(ideal, available)
        return None

    def render(self, context: RenderContext) -> FrameBuffer:
        target_width = self._target(context.available_width, self.max_width, self.ideal_width)
        target_height = self._target(context.available_height, self.max_height, self.ideal_height)

        inner = context.with_size(
            target_width if target_width is not None else context.available_width,
            target_height if target_height is not None else context.available_height,
        )
        buffer = render_to_buffer(self.content, inner)

        width = buffer.width
        height = buffer.height
        if self.min_width is not None:
            width = max(width, self.min_width)
        if self.min_height is not None:
            height = max(height, self.min_height)
        if self.max_width == INFINITY:
            width = context.available_width
        if self.max_height == INFINITY:
            height = context.available_height

        if width == buffer.width and height == buffer.height:
            return buffer
        return align_buffer(buffer, width, height, self.alignment)


# ---------------------------------------------------------------------------
# Padding
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EdgeInsets:
    top: int = 0
    leading: int = 0
    bottom: int = 0
    trailing: int = 0

    def __post_init__(self) -> None:
        if min(self.top, self.leading, self.bottom, self.trailing) < 0:
            raise ValueError(f"insets must be >= 0: {self}")

    @classmethod
    def all(cls, amount: int) -> EdgeInsets:
        return cls(amount, amount, amount, amount)

    @classmethod
    def symmetric(cls, horizontal: int = 0, vertical: int = 0) -> EdgeInsets:
        return cls(vertical, horizontal, vertical, horizontal)

    def replace(self, **changes: int | None) -> EdgeInsets:
        """Copy with the given (non-``None``) edges changed."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    @property
    def horizontal(self) -> int:
        return self.leading + self.trailing

    @property
    def vertical(self) -> int:
        return self.top + self.bottom


class PaddingModifier(Primitive):
    """Blank rows and columns around a child; the child gets the space that remains."""

    def __init__(self, content: Component, insets: EdgeInsets) -> None:
        self.content = content
        self.insets = insets

    def render(self, context: RenderContext) -> FrameBuffer:
        insets = self.insets
        inner = context.with_size(
            context.available_width - insets.horizontal,
            context.available_height - insets.vertical,
        )
        buffer = render_to_buffer(self.content, inner)

        width = buffer.width + insets.horizontal
        left = " " * insets.leading
        right = " " * insets.trailing
        blank = " " * width
        lines = [blank] * insets.top
        lines.extend(left + pad_to_width(line, buffer.width) + right for line in buffer.lines)
        lines.extend([blank] * insets.bottom)
        return FrameBuffer(lines)
