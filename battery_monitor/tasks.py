"""Tracking for fire-and-forget worker threads."""

import logging
import threading
import time
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class TaskTracker:
    """Starts detached worker threads and remembers them until they finish.

    Nobody waits on the workers during normal operation. The tracker exists
    so the application can let in-flight work finish at exit and so tests can
    observe it.
    """

    def __init__(self, name: str = "worker"):
        """Initialize the tracker.

        Args:
            name: Prefix used for worker thread names
        """
        self.name = name
        self._lock = threading.Lock()
        self._threads: set[threading.Thread] = set()
        self._counter = 0

    def spawn(self, target: Callable[..., Any], *args: Any, name: str | None = None) -> threading.Thread:
        """Run target(*args) on a new daemon thread.

        Args:
            target: Callable to run
            *args: Positional arguments for target
            name: Optional suffix for the thread name

        Returns:
            The started thread
        """
        with self._lock:
            self._counter += 1
            thread_name = f"{self.name}-{name or self._counter}"
            thread = threading.Thread(
                target=self._run, args=(target, args), name=thread_name, daemon=True
            )
            self._threads.add(thread)
            thread.start()

        logger.debug(f"Started {thread_name}")
        return thread

    def _run(self, target: Callable[..., Any], args: tuple[Any, ...]) -> None:
        try:
            target(*args)
        except Exception as e:
            logger.error(f"Worker {threading.current_thread().name} failed: {e}", exc_info=True)
        finally:
            with self._lock:
                self._threads.discard(threading.current_thread())

    @property
    def active_count(self) -> int:
        """Number of workers still running."""
        with self._lock:
            return len(self._threads)

    def wait(self, timeout: float = 60.0) -> bool:
        """Wait for all running workers to complete.

        Args:
            timeout: Maximum time to wait in seconds

        Returns:
            True if all workers completed, False if timeout occurred
        """
        deadline = time.monotonic() + timeout
        while True:
            with self._lock:
                pending = list(self._threads)

            if not pending:
                return True

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                logger.warning(
                    f"Timeout waiting for {len(pending)} {self.name} worker(s) after {timeout}s"
                )
                return False

            pending[0].join(timeout=remaining)
