"""
Bounded worker pool for CPU-bound password hashing.

Argon2 is deliberately expensive. Running it on the request threadpool would
let a burst of logins or registrations starve every other request, so all
hashing goes through a small dedicated pool with an admission limit.

Admission:
    At most ``max_workers + max_pending`` jobs are admitted at once. A caller
    that cannot get a slot within ``queue_timeout`` gets HashingCapacityError.

Timeouts:
    A caller that waits longer than ``result_timeout`` for its result gets
    HashingCapacityError. The job keeps running to completion, its result is
    discarded, and its slot is released when it finishes.

Usage:
    executor = HashingExecutor(max_workers=4, max_pending=32)
    hashed = executor.run(hasher.hash, "mypassword123")
    executor.shutdown()
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from account_service.services.exceptions import HashingCapacityError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class HashingStats:
    """
    Counters for monitoring the hashing pool.

    Attributes:
        submitted: Jobs admitted to the pool
        completed: Jobs that finished (successfully or not)
        rejected: Jobs refused because no slot freed up in time
        timed_out: Callers that gave up waiting for a result
    """
    submitted: int = 0
    completed: int = 0
    rejected: int = 0
    timed_out: int = 0


class HashingExecutor:
    """
    Thread pool with bounded admission for hashing work.

    Thread-safe. One instance is shared by the whole application.
    """

    def __init__(
        self,
        max_workers: int = 4,
        max_pending: int = 32,
        queue_timeout: float = 5.0,
        result_timeout: float = 10.0,
    ) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="password-hashing",
        )
        self._slots = threading.BoundedSemaphore(max_workers + max_pending)
        self._queue_timeout = queue_timeout
        self._result_timeout = result_timeout
        self._lock = threading.Lock()
        self._stats = HashingStats()
        self.max_workers = max_workers
        self.max_pending = max_pending

    @property
    def stats(self) -> HashingStats:
        """Snapshot of the pool counters."""
        with self._lock:
            return HashingStats(**vars(self._stats))

    def run(self, fn: Callable[..., T], *args: Any) -> T:
        """
        Run fn(*args) on the pool and wait for its result.

        Exceptions raised by fn propagate unchanged.

        Raises:
            HashingCapacityError: If no slot frees up within queue_timeout,
                or the result is not ready within result_timeout
        """
        if not self._slots.acquire(timeout=self._queue_timeout):
            self._count("rejected")
            logger.warning(
                f"Hashing pool saturated: no slot within {self._queue_timeout}s"
            )
            raise HashingCapacityError()

        try:
            future = self._executor.submit(fn, *args)
        except RuntimeError:
            self._slots.release()
            raise HashingCapacityError("Password hashing pool is shut down")

        self._count("submitted")
        future.add_done_callback(self._release)

        try:
            return future.result(timeout=self._result_timeout)
        except FutureTimeoutError:
            self._count("timed_out")
            logger.warning(
                f"Hashing result not ready within {self._result_timeout}s, discarding"
            )
            raise HashingCapacityError("Password hashing timed out")

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work and optionally wait for running jobs."""
        self._executor.shutdown(wait=wait)

    def _release(self, future: Future) -> None:
        self._slots.release()
        self._count("completed")

    def _count(self, name: str) -> None:
        with self._lock:
            setattr(self._stats, name, getattr(self._stats, name) + 1)
