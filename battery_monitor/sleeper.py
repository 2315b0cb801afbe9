"""Interruptible sleep used by the polling loop."""

import logging
import time

logger = logging.getLogger(__name__)

# Longest stretch slept before checking for an interrupt
CHECK_INTERVAL = 0.1


class CancellableSleeper:
    """Sleep that another thread or a signal handler can cut short.

    interrupt() only sets a flag and takes no lock, so it is safe to call
    from a signal handler running on the sleeping thread itself. An early
    return is not an error and callers never retry the rest of the interval.
    """

    def __init__(self, check_interval: float = CHECK_INTERVAL):
        """Initialize the sleeper.

        Args:
            check_interval: Seconds between interrupt checks
        """
        self.check_interval = check_interval
        self._interrupted = False

    def sleep(self, seconds: float) -> bool:
        """Wait for up to the given number of seconds.

        Args:
            seconds: Maximum time to wait, negative values count as zero

        Returns:
            True if the full duration elapsed, False if interrupted
        """
        deadline = time.monotonic() + max(0.0, seconds)
        while not self._interrupted:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return True
            time.sleep(min(self.check_interval, remaining))

        self._interrupted = False
        logger.debug("Sleep interrupted")
        return False

    def interrupt(self) -> None:
        """Wake up the current (or next) sleep."""
        self._interrupted = True
