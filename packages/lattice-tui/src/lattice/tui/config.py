"""Application configuration."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping

from lattice.tui.status_bar import QuitBehavior, StatusBarAlignment, StatusBarStyle

logger = logging.getLogger(__name__)


@dataclass
class AppConfig:
    """Render loop and status bar settings.

    ``fps`` is how often the idle loop wakes up to check the shutdown and
    resize flags while no input arrives.
    """

    fps: int = 30
    write_log: str = ""
    quit_behavior: QuitBehavior = QuitBehavior.ALWAYS
    status_bar_style: StatusBarStyle = StatusBarStyle.COMPACT
    status_bar_alignment: StatusBarAlignment = StatusBarAlignment.JUSTIFIED
    show_appearance_item: bool = True
    show_theme_item: bool = True
    alternate_screen: bool = True

    def __post_init__(self) -> None:
        if self.fps <= 0:
            raise ValueError(f"fps must be positive, got {self.fps}")

    @property
    def poll_interval(self) -> float:
        return 1.0 / self.fps

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> AppConfig:
        """Defaults overridden by ``LATTICE_TUI_*`` environment variables.

        Unparseable values are logged and ignored.
        """
        env = os.environ if environ is None else environ
        config = cls(write_log=env.get("LATTICE_TUI_WRITE_LOG", ""))

        fps = env.get("LATTICE_TUI_FPS")
        if fps:
            try:
                value = int(fps)
                if value <= 0:
                    raise ValueError(fps)
                config.fps = value
            except ValueError:
                logger.warning("Ignoring invalid LATTICE_TUI_FPS=%r", fps)

        quit_behavior = env.get("LATTICE_TUI_QUIT_BEHAVIOR")
        if quit_behavior:
            try:
                config.quit_behavior = QuitBehavior(quit_behavior.lower())
            except ValueError:
                logger.warning("Ignoring invalid LATTICE_TUI_QUIT_BEHAVIOR=%r", quit_behavior)

        style = env.get("LATTICE_TUI_STATUS_BAR_STYLE")
        if style:
            try:
                config.status_bar_style = StatusBarStyle(style.lower())
            except ValueError:
                logger.warning("Ignoring invalid LATTICE_TUI_STATUS_BAR_STYLE=%r", style)

        return config
