"""Entry point for the lattice-tui demo."""

from __future__ import annotations

import argparse
import asyncio
import logging

from lattice.tui.app import App
from lattice.tui.component import Button, Component, Divider, Text
from lattice.tui.config import AppConfig
from lattice.tui.keys import Key, KeyEvent
from lattice.tui.layout import HStack, Spacer, VStack
from lattice.tui.state import StateCell
from lattice.tui.status_bar import StatusBarItem, StatusBarStyle

logger = logging.getLogger(__name__)


class DemoState:
    """Application state shared by the demo's components."""

    def __init__(self) -> None:
        self.counter: StateCell[int] = StateCell(0)
        self.ticks: StateCell[int] = StateCell(0)
        self.show_dialog: StateCell[bool] = StateCell(False)


def build_demo(state: DemoState, app: App) -> Component:
    palette = app.tui.palette_manager.current if app.tui.palette_manager else None
    appearance = app.tui.appearance_manager.current if app.tui.appearance_manager else None

    async def tick() -> None:
        while True:
            await asyncio.sleep(1)
            state.ticks.update(lambda n: n + 1)

    def toggle_dialog() -> None:
        state.show_dialog.update(lambda shown: not shown)

    buttons = HStack(
        Button("Increment", lambda: state.counter.update(lambda n: n + 1)),
        Button("Decrement", lambda: state.counter.update(lambda n: n - 1)),
        Button("Reset", lambda: state.counter.set(0)),
        spacing=2,
    )

    content = VStack(
        Text("lattice-tui demo").bold(),
        Divider(),
        Text(f"Counter: {state.counter.get()}"),
        Text(f"Seconds on screen: {state.ticks.get()}"),
        Text(f"Palette: {palette.name if palette else '-'}   Appearance: {appearance.name if appearance else '-'}"),
        Spacer(min_length=1),
        buttons,
        Spacer(),
        spacing=0,
    ).padding(1).border(title="Demo").focus_section("main")

    content = content.task(tick).status_bar_items(
        [
            StatusBarItem("⇥", "next"),
            StatusBarItem("↵", "press"),
            StatusBarItem("d", "dialog", action=toggle_dialog),
        ]
    )

    if not state.show_dialog.get():
        return content

    def close_dialog(event: KeyEvent) -> bool:
        if event.key == Key.escape:
            state.show_dialog.set(False)
            return True
        return False

    dialog = (
        VStack(
            Text("This is a modal dialog."),
            Text("The content behind it is dimmed."),
            Button("Close", lambda: state.show_dialog.set(False)),
            spacing=1,
        )
        .padding(1)
        .border(title="Dialog")
        .on_appear(lambda: app.tui.focus.activate_section("dialog"))
        .focus_section("dialog")
        .status_bar_items([StatusBarItem("⎋", "close")], context="dialog")
        .on_key_press(close_dialog, keys=[Key.escape])
    )
    return content.dimmed().overlay(dialog)


def main() -> None:
    parser = argparse.ArgumentParser(description="lattice-tui: terminal UI engine demo")
    parser.add_argument("--log-level", default="warning", choices=["debug", "info", "warning", "error"])
    parser.add_argument("--log-file", default="lattice-tui.log", help="Log file (stdout belongs to the UI)")
    parser.add_argument("--fps", type=int, default=None, help="Idle poll rate (default: 30)")
    parser.add_argument("--bordered-status-bar", action="store_true", help="Draw the status bar in a box")
    args = parser.parse_args()

    logging.basicConfig(
        filename=args.log_file,
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    config = AppConfig.from_env()
    if args.fps:
        config.fps = args.fps
    if args.bordered_status_bar:
        config.status_bar_style = StatusBarStyle.BORDERED

    state = DemoState()
    app = App(lambda: build_demo(state, app), config=config)
    for cell in (state.counter, state.ticks, state.show_dialog):
        cell.subscribe(lambda _value: app.tui.request_render())

    app.run()


if __name__ == "__main__":
    main()
