"""Tests for lattice.tui.lifecycle.LifecycleTracker."""

from __future__ import annotations

import asyncio

import pytest

from lattice.tui.lifecycle import LifecycleTracker


def run_pass(tracker: LifecycleTracker, *tokens: str, events: list[str]) -> set:
    """Render one pass in which *tokens* are visible."""
    tracker.begin_render_pass()
    for token in tokens:
        tracker.record_appear(token, lambda token=token: events.append(f"appear:{token}"))
        tracker.register_disappear(f"{token}#disappear", lambda token=token: events.append(f"disappear:{token}"))
    return tracker.end_render_pass()


# ---------------------------------------------------------------------------
# Appear / disappear
# ---------------------------------------------------------------------------


class TestAppearDisappear:
    """Appear fires once per run of visible passes; disappear once after it."""

    def test_four_pass_sequence(self) -> None:
        tracker = LifecycleTracker()
        events: list[str] = []

        run_pass(tracker, "A", events=events)
        assert events == ["appear:A"]

        run_pass(tracker, "A", events=events)
        assert events == ["appear:A"]

        run_pass(tracker, events=events)
        assert events == ["appear:A", "disappear:A"]

        run_pass(tracker, "A", events=events)
        assert events == ["appear:A", "disappear:A", "appear:A"]

    def test_record_appear_return_value(self) -> None:
        tracker = LifecycleTracker()
        tracker.begin_render_pass()
        assert tracker.record_appear("x") is True
        assert tracker.record_appear("x") is False
        tracker.end_render_pass()
        tracker.begin_render_pass()
        assert tracker.record_appear("x") is False

    def test_end_pass_reports_disappeared(self) -> None:
        tracker = LifecycleTracker()
        events: list[str] = []
        run_pass(tracker, "A", "B", events=events)
        disappeared = run_pass(tracker, "A", events=events)
        assert "B" in disappeared
        assert "B#disappear" in disappeared
        assert "A" not in disappeared

    def test_visibility_queries(self) -> None:
        tracker = LifecycleTracker()
        events: list[str] = []
        run_pass(tracker, "A", events=events)
        assert tracker.is_visible("A")
        assert "A" in tracker.visible_tokens
        run_pass(tracker, events=events)
        assert not tracker.is_visible("A")

    def test_failing_action_is_contained(self) -> None:
        tracker = LifecycleTracker()

        def broken() -> None:
            raise RuntimeError("boom")

        tracker.begin_render_pass()
        assert tracker.record_appear("x", broken) is True
        tracker.end_render_pass()
        assert tracker.is_visible("x")

    def test_reset_forgets_tokens(self) -> None:
        tracker = LifecycleTracker()
        events: list[str] = []
        run_pass(tracker, "A", events=events)
        tracker.reset()
        run_pass(tracker, "A", events=events)
        assert events == ["appear:A", "appear:A"]


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


class TestTasks:
    """Background tasks are bound to a token's visibility."""

    def test_no_event_loop(self) -> None:
        tracker = LifecycleTracker()

        async def work() -> None:
            pass

        assert tracker.start_task("t", work) is None

    @pytest.mark.asyncio
    async def test_task_runs_once_per_appearance(self) -> None:
        tracker = LifecycleTracker()
        started: list[int] = []

        async def work() -> None:
            started.append(1)
            await asyncio.sleep(10)

        tracker.begin_render_pass()
        first = tracker.start_task("t", work)
        tracker.end_render_pass()
        tracker.begin_render_pass()
        second = tracker.start_task("t", work)
        tracker.end_render_pass()

        assert first is second
        await asyncio.sleep(0)
        assert started == [1]
        assert tracker.has_task("t")
        tracker.reset()

    @pytest.mark.asyncio
    async def test_task_cancelled_on_disappear(self) -> None:
        tracker = LifecycleTracker()

        async def work() -> None:
            await asyncio.sleep(10)

        tracker.begin_render_pass()
        task = tracker.start_task("t", work)
        tracker.end_render_pass()
        await asyncio.sleep(0)

        tracker.begin_render_pass()
        tracker.end_render_pass()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert task.cancelled()
        assert not tracker.has_task("t")

    @pytest.mark.asyncio
    async def test_finished_task_not_restarted(self) -> None:
        tracker = LifecycleTracker()
        runs: list[int] = []

        async def work() -> None:
            runs.append(1)

        tracker.begin_render_pass()
        task = tracker.start_task("t", work)
        tracker.end_render_pass()
        await task

        tracker.begin_render_pass()
        tracker.start_task("t", work)
        tracker.end_render_pass()
        await asyncio.sleep(0)

        assert runs == [1]
        assert not tracker.has_task("t")

    @pytest.mark.asyncio
    async def test_task_restarts_after_reappearing(self) -> None:
        tracker = LifecycleTracker()
        runs: list[int] = []

        async def work() -> None:
            runs.append(1)

        for visible in (True, False, True):
            tracker.begin_render_pass()
            if visible:
                task = tracker.start_task("t", work)
            tracker.end_render_pass()
            await asyncio.sleep(0)
        await task
        assert runs == [1, 1]

    @pytest.mark.asyncio
    async def test_failed_task_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        tracker = LifecycleTracker()

        async def work() -> None:
            raise ValueError("bad")

        tracker.begin_render_pass()
        task = tracker.start_task("t", work)
        tracker.end_render_pass()
        with pytest.raises(ValueError):
            await task
        await asyncio.sleep(0)
        assert "Task for 't' failed" in caplog.text

    @pytest.mark.asyncio
    async def test_cancel_task(self) -> None:
        tracker = LifecycleTracker()

        async def work() -> None:
            await asyncio.sleep(10)

        tracker.begin_render_pass()
        task = tracker.start_task("t", work)
        assert tracker.cancel_task("t")
        assert not tracker.cancel_task("t")
        with pytest.raises(asyncio.CancelledError):
            await task
