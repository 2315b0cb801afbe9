"""On-screen signs, at most one visible at a time."""

import logging
import threading
from collections.abc import Callable

from battery_monitor.display.base import DisplayBase, DisplayError
from battery_monitor.display.render import render_sign

logger = logging.getLogger(__name__)

# Seconds between window event rounds while a sign is up
EVENT_INTERVAL = 0.05


class SignHandle:
    """A single visible sign and the worker thread that owns its window.

    The worker opens its own display connection, keeps the window redrawn
    and releases it once close() is requested.
    """

    def __init__(
        self,
        label: str,
        display_factory: Callable[[], DisplayBase],
        font: str = "default",
        padding: int = 10,
    ):
        self.label = label
        self._display_factory = display_factory
        self._font = font
        self._padding = padding
        self._closing = threading.Event()
        self._thread = threading.Thread(target=self._run, name=f"sign-{label}", daemon=True)

    @property
    def alive(self) -> bool:
        """Whether the worker still holds (or is acquiring) the window."""
        return self._thread.is_alive()

    def start(self) -> None:
        self._thread.start()

    def close(self, timeout: float | None = None) -> bool:
        """Ask the worker to remove the sign and wait for it to finish.

        Args:
            timeout: Maximum time to wait in seconds, None waits forever

        Returns:
            True if the worker released the window in time
        """
        self._closing.set()
        self._thread.join(timeout=timeout)
        if self._thread.is_alive():
            logger.warning(f"Sign '{self.label}' did not close within {timeout}s")
            return False
        return True

    def _run(self) -> None:
        try:
            image = render_sign(self.label, self._font, self._padding)
        except DisplayError as e:
            logger.warning(f"Unable to render sign '{self.label}': {e}")
            return

        if self._closing.is_set():
            return

        display = self._display_factory()
        try:
            display.open(image)
        except DisplayError as e:
            logger.warning(f"Unable to show sign '{self.label}': {e}")
            return

        try:
            while not self._closing.is_set():
                display.process_events()
                self._closing.wait(EVENT_INTERVAL)
        except DisplayError as e:
            logger.warning(f"Sign '{self.label}' failed: {e}")
        finally:
            try:
                display.close()
            except DisplayError as e:
                logger.warning(f"Error closing sign '{self.label}': {e}")


class SignManager:
    """Shows and hides signs, never more than one at a time.

    show() and hide() are called from the engine thread; transient signs are
    removed from timer threads. A re-entrant lock serializes all of them, and
    hide() waits for the previous worker to release its window before the
    next sign can be created.

    A worker that outlives teardown_timeout is kept as retiring and show()
    waits for it to finish before starting the next one.
    """

    def __init__(
        self,
        display_factory: Callable[[], DisplayBase],
        font: str = "default",
        padding: int = 10,
        teardown_timeout: float = 5.0,
    ):
        """Initialize the sign manager.

        Args:
            display_factory: Creates a fresh display for each sign
            font: Font specifier for rendering labels
            padding: Space around the label in pixels
            teardown_timeout: Seconds hide() waits for a sign worker to finish
        """
        self._display_factory = display_factory
        self._font = font
        self._padding = padding
        self._teardown_timeout = teardown_timeout
        self._lock = threading.RLock()
        self._handle: SignHandle | None = None
        self._retiring: SignHandle | None = None
        self._timer: threading.Timer | None = None

    @property
    def active(self) -> bool:
        with self._lock:
            return self._handle is not None

    @property
    def current_label(self) -> str | None:
        with self._lock:
            return self._handle.label if self._handle is not None else None

    def show(self, label: str) -> None:
        """Show a sign, replacing any sign with a different label."""
        with self._lock:
            if self._handle is not None and self._handle.label == label:
                return

            self._hide_locked()
            self._wait_retiring()

            logger.info(f"Showing sign: {label}")
            handle = SignHandle(label, self._display_factory, self._font, self._padding)
            handle.start()
            self._handle = handle

    def hide(self) -> None:
        """Remove the visible sign, if any, and wait for its window to go away."""
        with self._lock:
            self._hide_locked()

    def show_transient(self, label: str, duration: float) -> None:
        """Show a sign and remove it after duration seconds.

        The sign is only removed if it is still the one shown by this call;
        a sign that replaced it in the meantime stays up.
        """
        with self._lock:
            self.show(label)
            handle = self._handle

            self._cancel_timer()
            timer = threading.Timer(duration, self._expire, args=(handle,))
            timer.name = f"sign-timer-{label}"
            timer.daemon = True
            self._timer = timer
            timer.start()

    def close(self) -> None:
        """Cancel pending transient timers and remove the visible sign."""
        with self._lock:
            self._cancel_timer()
            self._hide_locked()

    def _expire(self, handle: SignHandle) -> None:
        with self._lock:
            if self._handle is handle:
                logger.debug(f"Transient sign '{handle.label}' expired")
                self._hide_locked()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _hide_locked(self) -> None:
        handle = self._handle
        if handle is None:
            return

        logger.info(f"Hiding sign: {handle.label}")
        self._handle = None
        if not handle.close(timeout=self._teardown_timeout):
            self._retiring = handle

    def _wait_retiring(self) -> None:
        retiring = self._retiring
        if retiring is None:
            return

        if retiring.alive:
            logger.warning(f"Waiting for sign '{retiring.label}' to release the display")
            retiring.close()
        self._retiring = None
