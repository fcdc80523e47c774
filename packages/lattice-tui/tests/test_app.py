"""Tests for lattice.tui.app.App -- render loop, input and teardown."""

from __future__ import annotations

import asyncio
from typing import Callable

import pytest

from lattice.tui.__main__ import DemoState, build_demo
from lattice.tui.app import App
from lattice.tui.component import Button, Component, Composite, Text
from lattice.tui.config import AppConfig
from lattice.tui.keys import Key, KeyEvent
from lattice.tui.layout import VStack
from lattice.tui.state import StateCell
from lattice.tui.status_bar import StatusBarItem
from lattice.tui.utils import strip_ansi

from .virtual_terminal import VirtualTerminal


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def make_app(root, rows: int = 6, columns: int = 30) -> tuple[App, VirtualTerminal]:
    terminal = VirtualTerminal(rows=rows, columns=columns)
    app = App(root, terminal=terminal, config=AppConfig(fps=200), install_signal_handlers=False)
    return app, terminal


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Yield to the loop until *predicate* holds."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not reached")
        await asyncio.sleep(0.005)


# ---------------------------------------------------------------------------
# Synchronous rendering
# ---------------------------------------------------------------------------


class TestRender:
    """A single frame: content on top, status bar at the bottom."""

    def test_content_and_status_bar(self) -> None:
        app, terminal = make_app(Text("hello"))
        content = app.render()
        assert content.lines == ["hello"]
        assert "hello" in terminal.output
        assert "q quit" in strip_ansi(terminal.output)
        assert app.frames_rendered == 1

    def test_content_gets_rows_above_status_bar(self) -> None:
        heights: list[int] = []

        class SizeRecorder(Text):
            def render(self, context):
                heights.append(context.available_height)
                return super().render(context)

        app, _ = make_app(SizeRecorder("x"), rows=6)
        app.render()
        assert heights == [5]

    def test_root_builder_called_each_frame(self) -> None:
        counter = StateCell(0)
        app, _ = make_app(lambda: Text(f"n={counter.get()}"))
        assert app.render().lines == ["n=0"]
        counter.set(3)
        assert app.render().lines == ["n=3"]

    def test_state_of_removed_components_is_dropped(self) -> None:
        shown = StateCell(True)

        class Remembering(Composite):
            def body(self, context):
                cell = context.state_cell("count", 0)
                cell.update(lambda n: n + 1)
                return Text(f"count {cell.get()}")

        app, _ = make_app(lambda: Remembering() if shown.get() else Text("gone"))
        app.render()
        assert app.render().lines == ["count 2"]
        assert len(app.tui.state) == 1

        shown.set(False)
        app.render()
        assert len(app.tui.state) == 0

        shown.set(True)
        assert app.render().lines == ["count 1"]

    def test_dimming_does_not_reach_status_bar(self) -> None:
        app, terminal = make_app(Text("x").dimmed(), rows=3)
        app.render()
        status_row = terminal.output.split("\x1b[3;1H", 1)[1]
        assert "\x1b[2m" not in status_row

    def test_tab_moves_focus(self) -> None:
        app, _ = make_app(VStack(Button("One", lambda: None), Button("Two", lambda: None)))
        app.render()
        assert app.tui.focus.focused_id == "Button#0"
        app.handle_input("\t")
        app.render()
        assert app.tui.focus.focused_id == "Button#1"

    def test_ctrl_c_requests_quit(self) -> None:
        app, _ = make_app(Text("x"))
        quits: list[int] = []
        app.dispatcher.on_quit = lambda: quits.append(1)
        app.handle_input("\x03")
        assert quits == [1]

    def test_consumed_input_requests_render(self) -> None:
        app, _ = make_app(Text("x").on_key_press(lambda e: True, keys=["x"]))
        app.render()
        app.tui.invalidator.consume()
        app.handle_input("x")
        assert app.tui.invalidator.needs_render

    def test_unknown_input_ignored(self) -> None:
        app, _ = make_app(Text("x"))
        app.render()
        app.tui.invalidator.consume()
        app.handle_input("\x1b[99~")
        assert not app.tui.invalidator.needs_render


# ---------------------------------------------------------------------------
# Running loop
# ---------------------------------------------------------------------------


class TestRunLoop:
    """The asynchronous loop against a virtual terminal."""

    @pytest.mark.asyncio
    async def test_quit_with_q(self) -> None:
        app, terminal = make_app(Text("hello"))
        task = asyncio.create_task(app.run_async())
        await wait_until(lambda: app.frames_rendered >= 1)
        assert terminal.started
        assert not terminal.cursor_visible

        terminal.simulate_input("q")
        await asyncio.wait_for(task, 2)
        assert not terminal.started
        assert terminal.cursor_visible

    @pytest.mark.asyncio
    async def test_state_change_rerenders(self) -> None:
        count = StateCell(0)

        def root() -> Component:
            return Text(f"count {count.get()}").status_bar_items(
                [StatusBarItem("+", "inc", action=lambda: count.update(lambda n: n + 1))]
            )

        app, terminal = make_app(root)
        task = asyncio.create_task(app.run_async())
        await wait_until(lambda: "count 0" in terminal.output)

        terminal.simulate_input("+")
        await wait_until(lambda: "count 1" in terminal.output)

        app.quit()
        await asyncio.wait_for(task, 2)

    @pytest.mark.asyncio
    async def test_resize_redraws(self) -> None:
        app, terminal = make_app(Text("hello"))
        task = asyncio.create_task(app.run_async())
        await wait_until(lambda: app.frames_rendered >= 1)
        clears = terminal.clear_count

        terminal.resize(columns=40)
        await wait_until(lambda: terminal.clear_count > clears)
        assert app.frames_rendered >= 2

        app.quit()
        await asyncio.wait_for(task, 2)

    @pytest.mark.asyncio
    async def test_lone_escape_delivered_after_timeout(self) -> None:
        pressed: list[KeyEvent] = []

        def on_escape(event: KeyEvent) -> bool:
            pressed.append(event)
            return True

        app, terminal = make_app(Text("x").on_key_press(on_escape, keys=[Key.escape]))
        task = asyncio.create_task(app.run_async())
        await wait_until(lambda: app.frames_rendered >= 1)

        terminal.simulate_input("\x1b")
        await wait_until(lambda: bool(pressed))
        assert pressed == [KeyEvent(Key.escape)]

        app.quit()
        await asyncio.wait_for(task, 2)

    @pytest.mark.asyncio
    async def test_shutdown_flag_stops_loop(self) -> None:
        app, terminal = make_app(Text("x"))
        task = asyncio.create_task(app.run_async())
        await wait_until(lambda: app.frames_rendered >= 1)
        app.signals.request_shutdown()
        await asyncio.wait_for(task, 2)
        assert not terminal.started

    @pytest.mark.asyncio
    async def test_terminal_restored_after_error(self) -> None:
        def broken() -> Component:
            raise RuntimeError("render failed")

        app, terminal = make_app(broken)
        with pytest.raises(RuntimeError):
            await app.run_async()
        assert not terminal.started
        assert terminal.cursor_visible

    @pytest.mark.asyncio
    async def test_tasks_cancelled_on_exit(self) -> None:
        started = asyncio.Event()

        async def work() -> None:
            started.set()
            await asyncio.sleep(10)

        app, _ = make_app(Text("x").task(work))
        task = asyncio.create_task(app.run_async())
        await asyncio.wait_for(started.wait(), 2)
        assert app.tui.lifecycle.has_task("<root>#task")

        app.quit()
        await asyncio.wait_for(task, 2)
        assert not app.tui.lifecycle.has_task("<root>#task")


# ---------------------------------------------------------------------------
# Demo application
# ---------------------------------------------------------------------------


class TestDemo:
    """The bundled demo exercises focus sections, overlays and status items."""

    def make_demo(self) -> tuple[App, VirtualTerminal, DemoState]:
        state = DemoState()
        app, terminal = make_app(lambda: build_demo(state, app), rows=24, columns=80)
        return app, terminal, state

    def test_initial_frame(self) -> None:
        app, terminal, _ = self.make_demo()
        app.render()
        plain = strip_ansi(terminal.output)
        assert "lattice-tui demo" in plain
        assert "Counter: 0" in plain
        assert "d dialog" in plain

    def test_enter_presses_focused_button(self) -> None:
        app, terminal, state = self.make_demo()
        app.render()
        app.handle_input("\r")
        assert state.counter.get() == 1
        terminal.clear_buffer()
        app.render()
        assert "Counter: 1" in strip_ansi(terminal.output)

    def test_dialog_takes_focus_and_gives_it_back(self) -> None:
        app, terminal, state = self.make_demo()
        app.render()
        main_focus = app.tui.focus.focused_id

        app.handle_input("d")
        assert state.show_dialog.get()
        app.render()
        assert app.tui.focus.active_section_id == "dialog"
        assert app.tui.status_bar.contexts == ["dialog"]
        assert "close" in [item.label for item in app.tui.status_bar.items]

        app.handle_input("\r")
        assert not state.show_dialog.get()
        app.render()
        assert app.tui.focus.active_section_id == "main"
        assert app.tui.focus.focused_id == main_focus
        assert app.tui.status_bar.contexts == []
