"""Run-wide control state shared by the scheduler and range workers."""

import threading


class EngineState:
    """Abort switch and permit pool for one import run.

    The abort flag only ever goes from clear to set. Every dispatched worker
    holds one permit and must release it exactly once.
    """

    def __init__(self, thread_count: int):
        if thread_count < 1:
            raise ValueError("thread_count must be at least 1")
        self.thread_count = thread_count
        self._abort = threading.Event()
        self._permits = threading.BoundedSemaphore(thread_count)

    @property
    def aborted(self) -> bool:
        return self._abort.is_set()

    def abort(self) -> None:
        self._abort.set()

    def acquire_permit(self, timeout: float | None = None) -> bool:
        return self._permits.acquire(timeout=timeout)

    def release_permit(self) -> None:
        self._permits.release()

    def wait_for_all_permits(self) -> None:
        """Block until every worker has returned its permit."""
        for _ in range(self.thread_count):
            self._permits.acquire()
        for _ in range(self.thread_count):
            self._permits.release()
