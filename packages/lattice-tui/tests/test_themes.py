"""Tests for lattice.tui.theme -- palettes, appearances and cycling."""

from __future__ import annotations

import pytest

from lattice.tui.border import BorderStyles
from lattice.tui.theme import (
    APPEARANCES,
    DEFAULT_APPEARANCE,
    GREEN_PALETTE,
    PALETTES,
    Appearance,
    Palette,
    ThemeManager,
    palette_by_id,
)


class TestPalettes:
    def test_ids_unique(self) -> None:
        ids = [p.id for p in PALETTES]
        assert len(ids) == len(set(ids))

    def test_lookup_by_id(self) -> None:
        assert palette_by_id("green-phosphor") is GREEN_PALETTE
        assert palette_by_id("missing") is None

    def test_generated_palette(self) -> None:
        palette = Palette.generated("Teal", 180)
        assert palette.id == "generated-teal"
        assert palette.name == "Teal"
        assert palette.background != palette.foreground


class TestAppearances:
    def test_default_is_rounded(self) -> None:
        assert DEFAULT_APPEARANCE.border_style == BorderStyles.rounded

    def test_name_from_id(self) -> None:
        assert Appearance("double_line", BorderStyles.double_line).name == "Double Line"


class TestThemeManager:
    """Cycling wraps around and notifies listeners."""

    def test_starts_at_first(self) -> None:
        assert ThemeManager(PALETTES).current is PALETTES[0]

    def test_initial_item(self) -> None:
        manager = ThemeManager(APPEARANCES, initial=DEFAULT_APPEARANCE)
        assert manager.current == DEFAULT_APPEARANCE

    def test_cycle_wraps(self) -> None:
        manager = ThemeManager(PALETTES)
        for _ in range(len(PALETTES)):
            manager.cycle_next()
        assert manager.current is PALETTES[0]

    def test_cycle_previous_wraps(self) -> None:
        manager = ThemeManager(PALETTES)
        assert manager.cycle_previous() is PALETTES[-1]

    def test_callbacks(self) -> None:
        applied: list[str] = []
        changes: list[int] = []
        manager = ThemeManager(PALETTES, apply=lambda p: applied.append(p.id), on_change=lambda: changes.append(1))
        manager.cycle_next()
        assert applied == [PALETTES[1].id]
        assert changes == [1]

    def test_set_current(self) -> None:
        manager = ThemeManager(PALETTES)
        manager.set_current(PALETTES[3])
        assert manager.current_name == PALETTES[3].name

    def test_set_unknown_keeps_index(self) -> None:
        manager = ThemeManager(PALETTES)
        manager.cycle_next()
        manager.set_current(Palette.generated("Other", 10))
        assert manager.current is PALETTES[1]

    def test_requires_items(self) -> None:
        with pytest.raises(ValueError):
            ThemeManager([])
