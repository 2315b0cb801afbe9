"""The polling loop that turns battery readings into signs, alerts and shutdowns."""

import logging

from battery_monitor.alerts import AlertPlayer
from battery_monitor.power.base import PowerReadError, PowerSourceBase
from battery_monitor.shutdown import ShutdownController
from battery_monitor.signs import SignManager
from battery_monitor.sleeper import CancellableSleeper
from battery_monitor.state import AlertKind, ChargingState, EscalationState

logger = logging.getLogger(__name__)

MESSAGE_CHARGED = "Battery charged"
MESSAGE_LOW = "LOW BATTERY!"
MESSAGE_READ_ERROR = "Battery read error"
MESSAGE_UNKNOWN = "Unknown battery state"


class EscalationEngine:
    """Polls the power source and escalates sustained low battery.

    Every tick re-evaluates the policy from the previous and the current
    charging state. Low battery readings while discharging show a sign and
    play an alert; once they have gone on for the safety threshold, a
    shutdown is scheduled. Any state other than discharging resets the
    warnings, and power coming back cancels the shutdown.

    The engine is the only writer of its EscalationState and calls the
    subsystems synchronously from its own thread.
    """

    def __init__(
        self,
        power: PowerSourceBase,
        signs: SignManager,
        alerts: AlertPlayer,
        shutdown: ShutdownController,
        poll_period: int = 20,
        safety_threshold: int = 60,
        transient_duration: float = 5.0,
        sleeper: CancellableSleeper | None = None,
    ):
        """Initialize the engine.

        Args:
            power: Power source to poll
            signs: Sign subsystem
            alerts: Alert subsystem
            shutdown: Shutdown controller
            poll_period: Seconds between ticks
            safety_threshold: Seconds of low battery warnings before shutting down
            transient_duration: Seconds a warning sign stays up
            sleeper: Sleeper used between ticks
        """
        self.power = power
        self.signs = signs
        self.alerts = alerts
        self.shutdown = shutdown
        self.poll_period = poll_period
        self.safety_threshold = safety_threshold
        self.transient_duration = transient_duration
        self.sleeper = sleeper or CancellableSleeper()
        self.state = EscalationState()
        self._stopped = False

    def run(self) -> None:
        """Tick until stop() is called."""
        logger.info(
            f"Monitoring battery every {self.poll_period}s "
            f"(shutdown after {self.safety_threshold}s of low battery)"
        )
        while not self._stopped:
            self.tick()
            self.sleeper.sleep(self.poll_period)
        logger.info("Battery monitoring stopped")

    def stop(self) -> None:
        """Make run() return, interrupting the current sleep.

        Safe to call from a signal handler.
        """
        self._stopped = True
        self.sleeper.interrupt()

    def tick(self) -> ChargingState:
        """Read the charging state once and act on it.

        Returns:
            The charging state read in this tick
        """
        current = self.power.charging_state()
        previous = self.state.previous_state
        if current is not previous:
            logger.info(f"Charging state: {previous.value} -> {current.value}")

        if current is ChargingState.DISCHARGING:
            self._on_discharging(previous)

        elif current is ChargingState.CHARGED:
            self.signs.show(MESSAGE_CHARGED)
            self._power_restored()

        elif current is ChargingState.CHARGING:
            self.signs.hide()
            self._power_restored()

        elif current is ChargingState.NO_BATTERY:
            self.signs.hide()
            self._power_restored()
            logger.warning("Battery not present")

        elif current is ChargingState.INVALID:
            self.signs.hide()
            self._power_restored()
            logger.warning("Unable to read charging state")
            self.signs.show_transient(MESSAGE_READ_ERROR, self.transient_duration)

        elif current is ChargingState.OTHER:
            self.state.reset_warnings()
            logger.warning("Unknown charging state")
            self.signs.show_transient(MESSAGE_UNKNOWN, self.transient_duration)

        else:
            raise AssertionError(f"Unhandled charging state: {current!r}")

        self.state.previous_state = current
        return current

    def _power_restored(self) -> None:
        self.state.reset_warnings()
        self.shutdown.stop()

    def _on_discharging(self, previous: ChargingState) -> None:
        # Signs from other states go away when the battery starts discharging
        if previous is not ChargingState.DISCHARGING:
            self.signs.hide()

        try:
            low_limit = self.power.design_capacity_low()
            remaining = self.power.remaining_capacity()
        except PowerReadError as e:
            logger.warning(f"Unable to read battery capacity: {e}")
            self.signs.show_transient(MESSAGE_READ_ERROR, self.transient_duration)
            return

        logger.debug(f"Remaining capacity {remaining}, low limit {low_limit}")

        if remaining >= low_limit:
            if self.signs.current_label == MESSAGE_LOW:
                self.signs.hide()
            return

        self.signs.show(MESSAGE_LOW)
        warned_for = self.state.consecutive_low_warnings * self.poll_period
        if warned_for >= self.safety_threshold and not self.shutdown.active:
            self.shutdown.start()
        else:
            self.state.consecutive_low_warnings += 1
            logger.warning(
                f"Low battery: {remaining} left, below {low_limit} "
                f"(warning {self.state.consecutive_low_warnings})"
            )
            self.alerts.emit(AlertKind.LOW_BATTERY)
