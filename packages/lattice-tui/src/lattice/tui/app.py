"""The application render loop.

``App`` owns the :class:`~lattice.tui.context.TUIContext` and drives the
terminal through three states: *initialising* (raw mode, alternate screen,
hidden cursor), *running* and *terminating*. Each iteration of the running
loop checks, in order:

1. the shutdown flag (quit requested or SIGINT received),
2. the resize and dirty flags, rendering a frame when either is set,
3. pending input, waiting up to one poll interval for more.

Terminal restoration always runs, whatever ends the loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Union

from lattice.tui.buffer import FrameBuffer
from lattice.tui.component import Component, render_to_buffer
from lattice.tui.config import AppConfig
from lattice.tui.context import Environment, RenderContext, TUIContext
from lattice.tui.input import InputDispatcher
from lattice.tui.keys import parse_key_event
from lattice.tui.renderer import FrameWriter
from lattice.tui.signals import SignalManager
from lattice.tui.status_bar import QuitBehavior, StatusBar, StatusBarState
from lattice.tui.stdin_buffer import StdinBuffer
from lattice.tui.terminal import ProcessTerminal, Terminal

logger = logging.getLogger(__name__)

__all__ = ["App", "QuitBehavior", "RootBuilder"]

# Either a fixed tree or a callable that builds a fresh tree every frame.
RootBuilder = Union[Component, Callable[[], Component]]


class App:
    """Runs a component tree in the terminal until the user quits.

    Parameters
    ----------
    root:
        The root component, or a zero-argument callable returning one.
        A callable is invoked once per frame so the tree reflects the
        current application state.
    terminal:
        Defaults to a :class:`ProcessTerminal` on stdin/stdout.
    config:
        Defaults to :meth:`AppConfig.from_env`.
    install_signal_handlers:
        Install the SIGINT / SIGWINCH flag handlers while running.
    """

    def __init__(
        self,
        root: RootBuilder,
        terminal: Terminal | None = None,
        config: AppConfig | None = None,
        environment: Environment | None = None,
        install_signal_handlers: bool = True,
    ) -> None:
        self.config = config or AppConfig.from_env()
        self.terminal: Terminal = terminal or ProcessTerminal(
            write_log=self.config.write_log or None,
            alternate_screen=self.config.alternate_screen,
        )
        self._root = root
        self._environment = environment or Environment()

        status_bar = StatusBarState(
            quit_behavior=self.config.quit_behavior,
            style=self.config.status_bar_style,
            alignment=self.config.status_bar_alignment,
        )
        status_bar.show_appearance_item = self.config.show_appearance_item
        status_bar.show_theme_item = self.config.show_theme_item
        self.tui = TUIContext(status_bar=status_bar)

        self.dispatcher = InputDispatcher(self.tui, on_quit=self.quit)
        self.signals = SignalManager()
        self._install_signal_handlers = install_signal_handlers
        self._writer = FrameWriter(self.terminal)
        self._stdin_buffer = StdinBuffer()
        self._pending_input: list[str] = []
        self._input_ready: asyncio.Event | None = None
        self._last_size: tuple[int, int] | None = None
        self._quit_requested = False
        self.frames_rendered = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(self) -> None:
        """Run until quit; blocks the calling thread."""
        asyncio.run(self.run_async())

    async def run_async(self) -> None:
        """Run the loop inside an already running event loop."""
        self._quit_requested = False
        self.signals.shutdown_requested = False
        self._input_ready = asyncio.Event()
        if self._install_signal_handlers:
            self.signals.install()
        try:
            self.terminal.start(self._on_input)
            logger.info("Application started (%dx%d)", self.terminal.columns, self.terminal.rows)
            self._writer.invalidate()
            self.tui.request_render()
            await self._loop()
        finally:
            self._cleanup()

    def quit(self) -> None:
        """Ask the loop to stop after the current iteration."""
        self._quit_requested = True
        if self._input_ready is not None:
            self._input_ready.set()

    def render(self) -> FrameBuffer:
        """Resolve and write one frame; returns the content buffer."""
        columns, rows = self._size()
        tui = self.tui

        tui.begin_render_pass()
        status_rows = min(tui.status_bar.height, rows)
        context = RenderContext(
            available_width=columns,
            available_height=rows - status_rows,
            tui=tui,
            environment=tui.environment(self._environment),
        )
        content = render_to_buffer(self._build_root(), context)
        tui.end_render_pass()

        # Separate from the content so content modifiers never reach it
        status = FrameBuffer()
        if status_rows:
            status = render_to_buffer(StatusBar(), context.with_size(columns, status_rows))

        self._writer.write_frame(content, status, columns, rows, context.palette.background)
        self.frames_rendered += 1
        return content

    def handle_input(self, data: str) -> None:
        """Decode *data* into key events and route each one."""
        for sequence in self._stdin_buffer.process(data):
            self._dispatch_sequence(sequence)

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    async def _loop(self) -> None:
        interval = self.config.poll_interval
        while True:
            if self._quit_requested or self.signals.shutdown_requested:
                logger.info("Shutting down")
                return

            size = self._size()
            if self.signals.consume_resize() or size != self._last_size:
                self._last_size = size
                self._writer.invalidate()
                self.tui.request_render()

            if self.tui.invalidator.consume():
                self.render()
                continue

            await self._wait_for_input(interval)
            self._drain_input()

    async def _wait_for_input(self, timeout: float) -> None:
        assert self._input_ready is not None
        if self._pending_input:
            return
        try:
            await asyncio.wait_for(self._input_ready.wait(), timeout)
        except asyncio.TimeoutError:
            # A lone ESC with nothing after it is the Escape key
            if self._stdin_buffer.has_pending:
                for sequence in self._stdin_buffer.flush():
                    self._dispatch_sequence(sequence)
        self._input_ready.clear()

    def _drain_input(self) -> None:
        while self._pending_input and not self._quit_requested:
            self.handle_input(self._pending_input.pop(0))

    def _on_input(self, data: str) -> None:
        self._pending_input.append(data)
        if self._input_ready is not None:
            self._input_ready.set()

    def _dispatch_sequence(self, sequence: str) -> None:
        event = parse_key_event(sequence)
        if event is None:
            return
        if self.dispatcher.handle(event):
            self.tui.request_render()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _build_root(self) -> Component:
        root = self._root
        if callable(root) and not isinstance(root, Component):
            return root()
        return root

    def _size(self) -> tuple[int, int]:
        return max(0, self.terminal.columns), max(0, self.terminal.rows)

    def _cleanup(self) -> None:
        try:
            self.tui.lifecycle.reset()
            self.terminal.stop()
        finally:
            if self._install_signal_handlers:
                self.signals.restore()
            logger.info("Application stopped after %d frame(s)", self.frames_rendered)
