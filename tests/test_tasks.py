"""Tests for the deferred task queue."""
from __future__ import annotations

import logging

from mockstripe.tasks import DeferredTasks


class TestDeferredTasks:
    def test_runs_in_order(self) -> None:
        tasks = DeferredTasks()
        calls: list[int] = []
        tasks.defer(calls.append, 1)
        tasks.defer(calls.append, 2)
        assert tasks.pending() == 2
        assert tasks.run_pending() == 2
        assert calls == [1, 2]
        assert tasks.pending() == 0

    def test_failure_is_logged_and_skipped(self, caplog) -> None:
        tasks = DeferredTasks()
        calls: list[str] = []

        def explode() -> None:
            raise RuntimeError("boom")

        tasks.defer(explode)
        tasks.defer(calls.append, "after")
        with caplog.at_level(logging.ERROR, logger="mockstripe.tasks"):
            assert tasks.run_pending() == 1
        assert calls == ["after"]
        assert any("failed" in r.getMessage() for r in caplog.records)

    def test_tasks_queued_while_draining_also_run(self) -> None:
        tasks = DeferredTasks()
        calls: list[str] = []

        def chain() -> None:
            calls.append("first")
            tasks.defer(calls.append, "second")

        tasks.defer(chain)
        assert tasks.run_pending() == 2
        assert calls == ["first", "second"]
