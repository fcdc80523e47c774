"""Appear / disappear detection across render passes.

Every component instance that wants lifecycle callbacks is identified by a
token (its structural identity). During a pass each token that is rendered
is recorded; a token seen for the first time since it was last absent fires
its *appear* action, and at the end of the pass every token that was visible
last pass but not this one fires its *disappear* action and has its
background task cancelled.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Awaitable, Callable, Hashable

logger = logging.getLogger(__name__)

Token = Hashable
TaskFactory = Callable[[], Awaitable[object]]


class LifecycleTracker:
    """Token-based lifecycle bookkeeping shared by the whole render tree.

    Two sets drive everything: ``appeared`` (tokens visible as of the last
    completed pass, plus those appearing in the current one) and ``seen``
    (tokens rendered in the current pass). Access is serialised with a lock
    because background task callbacks may touch the task table.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._appeared: set[Token] = set()
        self._seen: set[Token] = set()
        self._disappear_actions: dict[Token, Callable[[], None]] = {}
        self._tasks: dict[Token, asyncio.Task[object]] = {}

    # -- render pass --------------------------------------------------------

    def begin_render_pass(self) -> None:
        with self._lock:
            self._seen.clear()

    def record_appear(self, token: Token, action: Callable[[], None] | None = None) -> bool:
        """Mark *token* as rendered this pass.

        Returns ``True`` (after running *action*) only the first time the
        token shows up in a run of consecutive passes.
        """
        with self._lock:
            self._seen.add(token)
            if token in self._appeared:
                return False
            self._appeared.add(token)
        if action is not None:
            _run_callback(action, "appear", token)
        return True

    def register_disappear(self, token: Token, action: Callable[[], None]) -> None:
        """Attach the action to run when *token* stops being rendered."""
        with self._lock:
            self._seen.add(token)
            self._appeared.add(token)
            self._disappear_actions[token] = action

    def end_render_pass(self) -> set[Token]:
        """Fire disappear actions and cancel tasks of vanished tokens.

        Returns the set of tokens that disappeared.
        """
        with self._lock:
            disappeared = self._appeared - self._seen
            self._appeared = set(self._seen)
            actions = [
                (token, self._disappear_actions.pop(token))
                for token in disappeared
                if token in self._disappear_actions
            ]
            tasks = [self._tasks.pop(token) for token in disappeared if token in self._tasks]

        for task in tasks:
            task.cancel()
        for token, action in actions:
            _run_callback(action, "disappear", token)
        if disappeared:
            logger.debug("Lifecycle: %d token(s) disappeared", len(disappeared))
        return disappeared

    # -- queries ------------------------------------------------------------

    def is_visible(self, token: Token) -> bool:
        with self._lock:
            return token in self._appeared

    @property
    def visible_tokens(self) -> frozenset[Token]:
        with self._lock:
            return frozenset(self._appeared)

    # -- tasks --------------------------------------------------------------

    def start_task(self, token: Token, factory: TaskFactory) -> asyncio.Task[object] | None:
        """Start ``factory()`` as a task bound to *token*, once per appearance.

        The task is cancelled when the token disappears. Needs a running
        event loop; without one the task is skipped.
        """
        with self._lock:
            self._seen.add(token)
            self._appeared.add(token)
            # Finished tasks stay in the table until the token disappears
            existing = self._tasks.get(token)
            if existing is not None:
                return existing

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop; task for %r not started", token)
            return None

        task = loop.create_task(factory())
        task.add_done_callback(lambda t, token=token: self._on_task_done(token, t))
        with self._lock:
            self._tasks[token] = task
        return task

    def cancel_task(self, token: Token) -> bool:
        with self._lock:
            task = self._tasks.pop(token, None)
        if task is None:
            return False
        task.cancel()
        return True

    def has_task(self, token: Token) -> bool:
        with self._lock:
            task = self._tasks.get(token)
            return task is not None and not task.done()

    def _on_task_done(self, token: Token, task: asyncio.Task[object]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Task for %r failed", token, exc_info=exc)

    # -- reset --------------------------------------------------------------

    def reset(self) -> None:
        """Forget all tokens and cancel every running task."""
        with self._lock:
            tasks = list(self._tasks.values())
            self._tasks.clear()
            self._appeared.clear()
            self._seen.clear()
            self._disappear_actions.clear()
        for task in tasks:
            task.cancel()


def _run_callback(action: Callable[[], None], kind: str, token: Token) -> None:
    try:
        action()
    except Exception:
        logger.exception("%s action for %r failed", kind, token)
