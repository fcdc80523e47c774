"""Render context and the per-application service bundle.

:class:`TUIContext` is built once by the :class:`~lattice.tui.app.App` and
owns every registry the render pass touches (focus, lifecycle, key handlers,
status bar, state). :class:`RenderContext` is the immutable per-frame value
handed down the tree: available size, environment, structural identity and
a reference to the :class:`TUIContext`. Children receive derived copies,
never a mutated original.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Iterator, Mapping

from lattice.tui.focus import FocusManager
from lattice.tui.input import KeyHandlerRegistry
from lattice.tui.lifecycle import LifecycleTracker
from lattice.tui.state import RenderInvalidator, StateCell, StateStore
from lattice.tui.status_bar import StatusBarState
from lattice.tui.theme import (
    APPEARANCES,
    DEFAULT_APPEARANCE,
    GREEN_PALETTE,
    PALETTES,
    Appearance,
    Palette,
    ThemeManager,
)

# ---------------------------------------------------------------------------
# Environment keys
# ---------------------------------------------------------------------------

PALETTE = "palette"
APPEARANCE = "appearance"
FOREGROUND = "foreground"


class Environment(Mapping[str, Any]):
    """Immutable string-keyed map of values inherited down the tree.

    Use :meth:`with_value` to derive a modified copy.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, Any] | None = None) -> None:
        self._values = MappingProxyType(dict(values or {}))

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Environment):
            return dict(self._values) == dict(other._values)
        return NotImplemented

    def __hash__(self) -> int:
        return id(self)

    def with_value(self, key: str, value: Any) -> Environment:
        values = dict(self._values)
        values[key] = value
        return Environment(values)

    def with_values(self, **values: Any) -> Environment:
        merged = dict(self._values)
        merged.update(values)
        return Environment(merged)

    @property
    def palette(self) -> Palette:
        return self._values.get(PALETTE, GREEN_PALETTE)

    @property
    def appearance(self) -> Appearance:
        return self._values.get(APPEARANCE, DEFAULT_APPEARANCE)

    def __repr__(self) -> str:
        return f"Environment({dict(self._values)!r})"


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Identity:
    """Structural path of a component instance, e.g. ``VStack#0/Text#2``."""

    path: tuple[str, ...] = ()

    def child(self, segment: str) -> Identity:
        return Identity(self.path + (segment,))

    def __str__(self) -> str:
        return "/".join(self.path) or "<root>"


# ---------------------------------------------------------------------------
# TUIContext
# ---------------------------------------------------------------------------


class TUIContext:
    """Services shared by one running application.

    Constructed once and threaded by reference through every render call
    via :attr:`RenderContext.tui`.
    """

    def __init__(
        self,
        palettes: list[Palette] | None = None,
        appearances: list[Appearance] | None = None,
        status_bar: StatusBarState | None = None,
    ) -> None:
        self.invalidator = RenderInvalidator()
        self.focus = FocusManager()
        self.lifecycle = LifecycleTracker()
        self.key_handlers = KeyHandlerRegistry()
        self.state = StateStore(self.invalidator)
        self.status_bar = status_bar or StatusBarState()

        self.focus.on_focus_change = self.invalidator.request_render
        self.status_bar.on_change = self.invalidator.request_render

        self.palette_manager: ThemeManager[Palette] | None = ThemeManager(
            palettes or PALETTES, on_change=self.invalidator.request_render
        )
        self.appearance_manager: ThemeManager[Appearance] | None = ThemeManager(
            appearances or APPEARANCES,
            on_change=self.invalidator.request_render,
            initial=DEFAULT_APPEARANCE,
        )

    def environment(self, base: Environment | None = None) -> Environment:
        """The root environment for a new frame."""
        env = base or Environment()
        if self.palette_manager is not None:
            env = env.with_value(PALETTE, self.palette_manager.current)
        if self.appearance_manager is not None:
            env = env.with_value(APPEARANCE, self.appearance_manager.current)
        return env

    def begin_render_pass(self) -> None:
        """Reset the per-pass registries before the tree is resolved."""
        self.key_handlers.clear()
        self.focus.begin_render_pass()
        self.lifecycle.begin_render_pass()
        self.status_bar.begin_render_pass()
        self.state.begin_render_pass()

    def end_render_pass(self) -> None:
        self.focus.end_render_pass()
        self.lifecycle.end_render_pass()
        self.status_bar.end_render_pass()
        self.state.end_render_pass()

    def request_render(self) -> None:
        self.invalidator.request_render()


# ---------------------------------------------------------------------------
# RenderContext
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RenderContext:
    """Everything a component needs to render itself for one frame."""

    available_width: int
    available_height: int
    tui: TUIContext = field(default_factory=TUIContext, compare=False)
    environment: Environment = field(default_factory=Environment)
    identity: Identity = field(default_factory=Identity)
    focus_section_id: str | None = None

    def with_size(self, width: int | None = None, height: int | None = None) -> RenderContext:
        return replace(
            self,
            available_width=max(0, width if width is not None else self.available_width),
            available_height=max(0, height if height is not None else self.available_height),
        )

    def with_environment(self, environment: Environment) -> RenderContext:
        return replace(self, environment=environment)

    def with_focus_section(self, section_id: str) -> RenderContext:
        return replace(self, focus_section_id=section_id)

    def child(self, index: int, component: object) -> RenderContext:
        """Context for the *index*-th child of the current component."""
        return replace(self, identity=self.identity.child(f"{type(component).__name__}#{index}"))

    @property
    def palette(self) -> Palette:
        return self.environment.palette

    @property
    def appearance(self) -> Appearance:
        return self.environment.appearance

    def state_cell(self, key: str, default: Any) -> StateCell[Any]:
        """Per-instance state for the component at :attr:`identity`."""
        return self.tui.state.cell(str(self.identity), key, default)
