"""
Tests for the parallel execution layer used by per-source extraction.

Tests cover:
- SequentialStrategy and ThreadPoolStrategy behaviour
- ParallelTaskRunner ordering, per-source failures and callbacks
- Deadline expiry and cancellation
"""

import threading
import time
from concurrent.futures import TimeoutError as FuturesTimeoutError

import pytest

from healthscribe.config import PARALLEL_MAX_WORKERS
from healthscribe.parallel import (
    ParallelTaskRunner,
    SequentialStrategy,
    TaskResult,
    ThreadPoolStrategy,
)


class TestSequentialStrategy:
    """SequentialStrategy runs every task inline."""

    def test_submit_runs_in_submission_order(self):
        seen = []
        strategy = SequentialStrategy()
        strategy.submit(seen.append, "jira")
        strategy.submit(seen.append, "confluence")
        assert seen == ["jira", "confluence"]

    def test_submit_returns_finished_future(self):
        future = SequentialStrategy().submit(len, "Sprint 12")
        assert future.done()
        assert future.result() == 9

    def test_submit_stores_exception_in_future(self):
        def broken(_):
            raise RuntimeError("oracle down")

        future = SequentialStrategy().submit(broken, "Jira")
        assert future.done()
        with pytest.raises(RuntimeError, match="oracle down"):
            future.result()

    def test_single_worker_and_noop_shutdown(self):
        strategy = SequentialStrategy()
        assert strategy.max_workers == 1
        strategy.shutdown(wait=False, cancel_futures=True)

    def test_context_manager(self):
        with SequentialStrategy() as strategy:
            assert strategy.submit(lambda n: n + 1, 1).result() == 2


class TestThreadPoolStrategy:
    """ThreadPoolStrategy overlaps independent sources."""

    def test_default_workers_come_from_config(self):
        strategy = ThreadPoolStrategy()
        try:
            assert strategy.max_workers == PARALLEL_MAX_WORKERS
        finally:
            strategy.shutdown()

    def test_custom_workers(self):
        with ThreadPoolStrategy(max_workers=3) as strategy:
            assert strategy.max_workers == 3

    def test_sources_run_concurrently(self):
        """Two sources waiting on a slow oracle finish in about one wait."""
        barrier = threading.Barrier(2, timeout=2)

        def wait_for_peer(label):
            barrier.wait()
            return label

        with ThreadPoolStrategy(max_workers=2) as strategy:
            futures = [strategy.submit(wait_for_peer, label) for label in ["Jira", "Confluence"]]
            results = [future.result(timeout=3) for future in futures]

        assert results == ["Jira", "Confluence"]

    def test_submit_result(self):
        with ThreadPoolStrategy(max_workers=1) as strategy:
            assert strategy.submit(lambda n: n * 2, 21).result(timeout=1) == 42


class TestParallelTaskRunner:
    """ParallelTaskRunner collects per-source results."""

    def test_results_in_submission_order(self):
        """Results follow item order even when completion order differs."""
        delays = {"Jira": 0.15, "Confluence": 0.0, "GitHub": 0.05}

        def extract(label):
            time.sleep(delays[label])
            return f"{label} summary"

        with ThreadPoolStrategy(max_workers=3) as strategy:
            runner = ParallelTaskRunner(strategy=strategy)
            results = runner.run(extract, [(label, label) for label in delays])

        assert [r.task_id for r in results] == ["Jira", "Confluence", "GitHub"]
        assert [r.result for r in results] == ["Jira summary", "Confluence summary", "GitHub summary"]

    def test_empty_items(self):
        runner = ParallelTaskRunner(strategy=SequentialStrategy())
        assert runner.run(len, []) == []

    def test_failure_is_captured_per_source(self):
        def extract(label):
            if label == "Confluence":
                raise ValueError("bad export")
            return label.lower()

        runner = ParallelTaskRunner(strategy=SequentialStrategy())
        results = runner.run(extract, [("Jira", "Jira"), ("Confluence", "Confluence")])

        assert results[0].success and results[0].result == "jira"
        assert not results[1].success
        assert isinstance(results[1].error, ValueError)

    def test_callback_only_for_successes(self):
        completed = []

        def extract(label):
            if label == "bad":
                raise RuntimeError("boom")
            return len(label)

        runner = ParallelTaskRunner(
            strategy=SequentialStrategy(),
            on_task_complete=lambda task_id, result: completed.append((task_id, result)),
        )
        runner.run(extract, [("Jira", "Jira"), ("bad", "bad")])

        assert completed == [("Jira", 4)]

    def test_cancel_before_run_submits_nothing(self):
        calls = []
        runner = ParallelTaskRunner(strategy=SequentialStrategy())
        runner.cancel()

        results = runner.run(calls.append, [("Jira", 1)])

        assert runner.is_cancelled
        assert results == []
        assert calls == []

    def test_deadline_expiry_raises_and_cancels(self):
        release = threading.Event()
        strategy = ThreadPoolStrategy(max_workers=1)
        runner = ParallelTaskRunner(strategy=strategy)

        try:
            with pytest.raises(FuturesTimeoutError):
                runner.run(lambda _: release.wait(5), [("Jira", None), ("Confluence", None)], timeout=0.1)
            assert runner.is_cancelled
            # The pool itself is still open for the next request
            follow_up = strategy.submit(lambda n: n * 2, 21)
            release.set()
            assert follow_up.result(timeout=5) == 42
        finally:
            release.set()
            strategy.shutdown(wait=True)


class TestTaskResult:
    """TaskResult defaults."""

    def test_success_defaults(self):
        result = TaskResult(task_id="Jira", success=True, result="summary")
        assert result.error is None

    def test_failure_defaults(self):
        error = OSError("unreachable")
        result = TaskResult(task_id="Jira", success=False, error=error)
        assert result.result is None
        assert result.error is error
