"""Exceptions raised by lattice-tui."""

from __future__ import annotations


class LatticeTUIError(Exception):
    """Base class for lattice-tui errors."""


class TerminalError(LatticeTUIError):
    """The terminal cannot be put into the state the application needs."""
