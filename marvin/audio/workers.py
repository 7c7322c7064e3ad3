"""Fixed-size pool of daemon worker threads handing out futures."""

from __future__ import annotations

import threading
from collections.abc import Callable
from concurrent.futures import Future
from queue import Empty, Queue
from typing import Any


class DaemonWorkerPool:
    """Runs submitted callables on ``max_workers`` daemon threads.

    Unlike ``concurrent.futures.ThreadPoolExecutor`` the workers are never
    joined at interpreter exit, so a task blocked on a device cannot keep
    the process alive.
    """

    def __init__(self, max_workers: int = 2, thread_name_prefix: str = "worker"):
        if max_workers <= 0:
            raise ValueError(f"max_workers must be positive, got {max_workers}")
        self.max_workers = max_workers
        self._work: Queue[tuple[Future, Callable[..., Any], tuple] | None] = Queue()
        self._lock = threading.Lock()
        self._shutdown = False
        self._threads = [
            threading.Thread(
                target=self._worker, name=f"{thread_name_prefix}_{i}", daemon=True
            )
            for i in range(max_workers)
        ]
        for thread in self._threads:
            thread.start()

    def _worker(self) -> None:
        """Worker loop; a ``None`` item ends the thread."""
        while True:
            item = self._work.get()
            if item is None:
                return
            future, fn, args = item
            if not future.set_running_or_notify_cancel():
                continue
            try:
                result = fn(*args)
            except BaseException as exc:
                future.set_exception(exc)
            else:
                future.set_result(result)

    def submit(self, fn: Callable[..., Any], *args: Any) -> Future:
        """
        Schedule ``fn(*args)``.

        Raises:
            RuntimeError: The pool has been shut down.
        """
        future: Future = Future()
        with self._lock:
            if self._shutdown:
                raise RuntimeError("cannot schedule new futures after shutdown")
            self._work.put((future, fn, args))
        return future

    def shutdown(self, cancel_futures: bool = False) -> None:
        """
        Stop accepting work; workers exit once the queue is drained.

        Args:
            cancel_futures: Cancel work that has not started yet.
        """
        with self._lock:
            self._shutdown = True
            if cancel_futures:
                while True:
                    try:
                        item = self._work.get_nowait()
                    except Empty:
                        break
                    if item is not None:
                        item[0].cancel()
            for _ in self._threads:
                self._work.put(None)
