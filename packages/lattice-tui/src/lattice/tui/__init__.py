"""lattice-tui: declarative terminal UI engine."""

# ANSI output
from lattice.tui.ansi import Color, Colors, TextStyle, apply_persistent_background, render_styled

# Application
from lattice.tui.app import App
from lattice.tui.config import AppConfig

# Borders
from lattice.tui.border import BorderStyle, BorderStyles

# Buffers
from lattice.tui.buffer import FrameBuffer

# Components
from lattice.tui.component import (
    Button,
    ChildrenBuilder,
    Component,
    ComponentKind,
    Composite,
    Divider,
    EmptyView,
    Group,
    Primitive,
    Text,
    render_to_buffer,
)

# Render context
from lattice.tui.context import Environment, Identity, RenderContext, TUIContext

# Errors
from lattice.tui.errors import LatticeTUIError, TerminalError

# Focus and input
from lattice.tui.focus import (
    ActionHandler,
    FocusManager,
    FocusSection,
    Focusable,
    TextInputHandler,
)
from lattice.tui.input import InputDispatcher, KeyHandlerRegistry

# Keyboard input
from lattice.tui.keys import Key, KeyEvent, matches_key, parse_key_event

# Layout
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
)

# Lifecycle and state
from lattice.tui.lifecycle import LifecycleTracker
from lattice.tui.state import RenderInvalidator, StateCell, StateStore

# Status bar
from lattice.tui.status_bar import (
    QuitBehavior,
    StatusBar,
    StatusBarAlignment,
    StatusBarItem,
    StatusBarItemOrder,
    StatusBarState,
    StatusBarStyle,
)

# Input buffering
from lattice.tui.stdin_buffer import StdinBuffer

# Terminal interface and implementations
from lattice.tui.terminal import ProcessTerminal, Terminal

# Themes
from lattice.tui.theme import APPEARANCES, PALETTES, Appearance, Palette, ThemeManager

# Utilities
from lattice.tui.utils import strip_ansi, truncate_to_width, visible_width

__all__ = [
    # ANSI
    "Color",
    "Colors",
    "TextStyle",
    "apply_persistent_background",
    "render_styled",
    # Application
    "App",
    "AppConfig",
    # Borders
    "BorderStyle",
    "BorderStyles",
    # Buffers
    "FrameBuffer",
    # Components
    "Button",
    "ChildrenBuilder",
    "Component",
    "ComponentKind",
    "Composite",
    "Divider",
    "EmptyView",
    "Group",
    "Primitive",
    "Text",
    "render_to_buffer",
    # Context
    "Environment",
    "Identity",
    "RenderContext",
    "TUIContext",
    # Errors
    "LatticeTUIError",
    "TerminalError",
    # Focus and input
    "ActionHandler",
    "FocusManager",
    "FocusSection",
    "Focusable",
    "TextInputHandler",
    "InputDispatcher",
    "KeyHandlerRegistry",
    # Keys
    "Key",
    "KeyEvent",
    "matches_key",
    "parse_key_event",
    # Layout
    "INFINITY",
    "Alignment",
    "EdgeInsets",
    "HorizontalAlignment",
    "HStack",
    "Spacer",
    "VerticalAlignment",
    "VStack",
    "ZStack",
    # Lifecycle and state
    "LifecycleTracker",
    "RenderInvalidator",
    "StateCell",
    "StateStore",
    # Status bar
    "QuitBehavior",
    "StatusBar",
    "StatusBarAlignment",
    "StatusBarItem",
    "StatusBarItemOrder",
    "StatusBarState",
    "StatusBarStyle",
    # Stdin buffer
    "StdinBuffer",
    # Terminal
    "ProcessTerminal",
    "Terminal",
    # Themes
    "APPEARANCES",
    "PALETTES",
    "Appearance",
    "Palette",
    "ThemeManager",
    # Utilities
    "strip_ansi",
    "truncate_to_width",
    "visible_width",
]
