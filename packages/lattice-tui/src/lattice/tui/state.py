"""Observable state cells and the render invalidation flag.

Components are rebuilt from scratch every frame, so anything that must
outlive a frame lives in a :class:`StateCell`. Cells are owned by the
:class:`StateStore`, keyed by the component's structural identity, and every
change flips the shared :class:`RenderInvalidator` so the main loop knows to
draw another frame.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Generic, Hashable, Iterable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RenderInvalidator:
    """Thread-safe "a new frame is needed" flag.

    Written from the main loop, from state observers and from background
    tasks; read (and reset) only by the main loop.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._dirty = True

    def request_render(self) -> None:
        with self._lock:
            self._dirty = True

    @property
    def needs_render(self) -> bool:
        with self._lock:
            return self._dirty

    def consume(self) -> bool:
        """Return the flag and clear it atomically."""
        with self._lock:
            dirty = self._dirty
            self._dirty = False
            return dirty


class StateCell(Generic[T]):
    """A mutable value with change observers."""

    def __init__(self, value: T) -> None:
        self._lock = threading.Lock()
        self._value = value
        self._observers: list[Callable[[T], None]] = []

    def get(self) -> T:
        with self._lock:
            return self._value

    @property
    def value(self) -> T:
        return self.get()

    @value.setter
    def value(self, new_value: T) -> None:
        self.set(new_value)

    def set(self, new_value: T) -> None:
        """Store *new_value*; observers run (outside the lock) only on change."""
        with self._lock:
            if self._value == new_value:
                return
            self._value = new_value
            observers = list(self._observers)
        for observer in observers:
            try:
                observer(new_value)
            except Exception:
                logger.exception("State observer %r failed", observer)

    def update(self, fn: Callable[[T], T]) -> None:
        """Replace the value with ``fn(current)``."""
        self.set(fn(self.get()))

    def subscribe(self, observer: Callable[[T], None]) -> Callable[[], None]:
        """Register *observer*; returns a function that removes it again."""
        with self._lock:
            self._observers.append(observer)

        def unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return unsubscribe

    def __repr__(self) -> str:
        return f"StateCell({self._value!r})"


class StateStore:
    """Per-component state that survives across render passes.

    ``cell(owner, key, default)`` returns the same :class:`StateCell` every
    frame for the same owner identity and key. Cells created here notify the
    invalidator on change. Owners that ask for no cell during a render pass
    lose their cells when the pass ends.
    """

    def __init__(self, invalidator: RenderInvalidator | None = None) -> None:
        self._lock = threading.Lock()
        self._cells: dict[tuple[Hashable, str], StateCell[Any]] = {}
        self._invalidator = invalidator
        self._seen: set[Hashable] = set()

    def begin_render_pass(self) -> None:
        with self._lock:
            self._seen.clear()

    def end_render_pass(self) -> int:
        """Prune owners not seen since :meth:`begin_render_pass`."""
        with self._lock:
            seen = set(self._seen)
        removed = self.prune(seen)
        if removed:
            logger.debug("Dropped %d state cell(s) of vanished components", removed)
        return removed

    def cell(self, owner: Hashable, key: str, default: T) -> StateCell[T]:
        with self._lock:
            self._seen.add(owner)
            existing = self._cells.get((owner, key))
            if existing is not None:
                return existing
            created: StateCell[T] = StateCell(default)
            if self._invalidator is not None:
                invalidator = self._invalidator
                created.subscribe(lambda _value: invalidator.request_render())
            self._cells[(owner, key)] = created
            return created

    def prune(self, alive: Iterable[Hashable]) -> int:
        """Drop cells whose owner is not in *alive*; returns the number removed."""
        keep = set(alive)
        with self._lock:
            stale = [k for k in self._cells if k[0] not in keep]
            for k in stale:
                del self._cells[k]
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._cells)
