"""Scheduling and cancelling the system shutdown."""

import logging
import shlex
import subprocess
import threading

from battery_monitor.alerts import AlertPlayer
from battery_monitor.config import ShutdownConfig
from battery_monitor.state import AlertKind
from battery_monitor.tasks import TaskTracker

logger = logging.getLogger(__name__)


class ShutdownController:
    """Starts and cancels a delayed system shutdown.

    The active flag records what was requested, not what the shutdown
    command managed to do: a failed command is logged and the flag stays.
    Commands run one at a time in the order they were requested, so a
    cancel never overtakes the launch it cancels.
    """

    def __init__(
        self, config: ShutdownConfig, alerts: AlertPlayer, tasks: TaskTracker | None = None
    ):
        """Initialize the shutdown controller.

        Args:
            config: Shutdown command configuration
            alerts: Player for the start and stop alerts
            tasks: Tracker for command workers
        """
        self.config = config
        self.alerts = alerts
        self.tasks = tasks or TaskTracker("shutdown")
        self._command = shlex.split(config.command)
        self._active = False
        self._order = threading.Condition()
        self._issued = 0
        self._finished = 0

    @property
    def active(self) -> bool:
        return self._active

    def start(self) -> None:
        """Schedule the shutdown, unless it is already scheduled."""
        if self._active:
            return

        self._active = True
        logger.warning(
            f"Battery critically low, shutting down in {self.config.delay_minutes} minutes"
        )
        self.tasks.spawn(
            self._run_command,
            ["-h", f"+{self.config.delay_minutes}"],
            "launch",
            self._next_ticket(),
            name="start",
        )
        self.alerts.emit(AlertKind.SHUTDOWN_START)

    def stop(self) -> None:
        """Cancel the scheduled shutdown, if there is one."""
        if not self._active:
            return

        self._active = False
        logger.info("Cancelling scheduled shutdown")
        self.tasks.spawn(self._run_command, ["-c"], "cancel", self._next_ticket(), name="stop")
        self.alerts.emit(AlertKind.SHUTDOWN_STOP)

    def _next_ticket(self) -> int:
        with self._order:
            ticket = self._issued
            self._issued += 1
            return ticket

    def _run_command(self, args: list[str], action: str, ticket: int) -> None:
        with self._order:
            self._order.wait_for(lambda: self._finished == ticket)
        try:
            self._execute(args, action)
        finally:
            with self._order:
                self._finished += 1
                self._order.notify_all()

    def _execute(self, args: list[str], action: str) -> None:
        command = [*self._command, *args]

        if self.config.dry_run:
            logger.info(f"[DRY RUN] Would run: {shlex.join(command)}")
            return

        try:
            subprocess.run(command, check=True)
        except subprocess.CalledProcessError as e:
            logger.warning(f"Unable to {action} shutdown: {e}")
            logger.warning(
                "If the shutdown command needs root, pass it as e.g. "
                "'/usr/bin/sudo /sbin/shutdown' and allow it in /etc/sudoers.d"
            )
        except OSError as e:
            logger.warning(f"Unable to {action} shutdown, could not run {command[0]}: {e}")
