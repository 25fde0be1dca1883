# tests/services/auth/test_hashing_pool.py
"""
Tests for the bounded hashing pool.

Tests:
- Results and exceptions pass through run()
- Admission control when all slots are taken
- Result timeouts
- Counters
- Behaviour after shutdown
"""

import threading

import pytest

from account_service.services.auth.hashing_pool import HashingExecutor
from account_service.services.exceptions import HashingCapacityError


def _blocking_job(started: threading.Event, release: threading.Event) -> str:
    started.set()
    release.wait(5)
    return "done"


# =============================================================================
# TEST: RUN
# =============================================================================


class TestRun:
    """Tests for running work on the pool."""

    def test_returns_result(self, executor):
        assert executor.run(pow, 2, 10) == 1024

    def test_runs_hasher(self, executor, hasher):
        hashed = executor.run(hasher.hash, "mypassword123")

        assert executor.run(hasher.verify, "mypassword123", hashed) is True

    def test_exception_propagates_unchanged(self, executor):
        def explode():
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            executor.run(explode)

    def test_runs_on_pool_thread(self, executor):
        name = executor.run(lambda: threading.current_thread().name)

        assert name.startswith("password-hashing")


# =============================================================================
# TEST: ADMISSION AND TIMEOUTS
# =============================================================================


class TestCapacity:
    """Tests for admission control and result timeouts."""

    def test_saturated_pool_rejects(self):
        pool = HashingExecutor(max_workers=1, max_pending=0, queue_timeout=0.05)
        started, release = threading.Event(), threading.Event()
        holder = threading.Thread(target=pool.run, args=(_blocking_job, started, release))
        holder.start()
        try:
            assert started.wait(5)

            with pytest.raises(HashingCapacityError):
                pool.run(pow, 2, 2)

            assert pool.stats.rejected == 1
        finally:
            release.set()
            holder.join(5)
            pool.shutdown()

    def test_slot_is_released_after_completion(self):
        pool = HashingExecutor(max_workers=1, max_pending=0, queue_timeout=1.0)
        try:
            for _ in range(3):
                assert pool.run(pow, 3, 2) == 9
        finally:
            pool.shutdown()

    def test_result_timeout(self):
        pool = HashingExecutor(max_workers=1, max_pending=0, result_timeout=0.05)
        started, release = threading.Event(), threading.Event()
        try:
            with pytest.raises(HashingCapacityError, match="timed out"):
                pool.run(_blocking_job, started, release)

            assert pool.stats.timed_out == 1
        finally:
            release.set()
            pool.shutdown()

        # The abandoned job still ran to completion and freed its slot
        assert pool.stats.completed == 1

    def test_capacity_error_is_retryable_hashing_error(self):
        from account_service.services.exceptions import HashingError

        assert issubclass(HashingCapacityError, HashingError)


# =============================================================================
# TEST: STATS AND SHUTDOWN
# =============================================================================


class TestStatsAndShutdown:
    """Tests for counters and shutdown."""

    def test_stats_count_jobs(self):
        pool = HashingExecutor(max_workers=2, max_pending=2)
        pool.run(pow, 2, 2)
        pool.run(pow, 2, 3)
        pool.shutdown()

        stats = pool.stats
        assert stats.submitted == 2
        assert stats.completed == 2
        assert stats.rejected == 0
        assert stats.timed_out == 0

    def test_stats_is_a_snapshot(self, executor):
        before = executor.stats
        executor.run(pow, 2, 2)

        assert before.submitted == 0

    def test_run_after_shutdown_raises_capacity_error(self):
        pool = HashingExecutor(max_workers=1, max_pending=0)
        pool.shutdown()

        with pytest.raises(HashingCapacityError, match="shut down"):
            pool.run(pow, 2, 2)
