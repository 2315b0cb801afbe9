"""Charging states and the escalation state owned by the engine."""

from dataclasses import dataclass
from enum import Enum


class ChargingState(Enum):
    """Classification of the power source, read once per poll."""

    CHARGING = "charging"
    CHARGED = "charged"
    DISCHARGING = "discharging"
    NO_BATTERY = "no_battery"
    INVALID = "invalid"
    OTHER = "other"


class AlertKind(Enum):
    """Events that have an alert sound."""

    LOW_BATTERY = "low_battery"
    SHUTDOWN_START = "shutdown_start"
    SHUTDOWN_STOP = "shutdown_stop"


@dataclass(frozen=True)
class AlertRequest:
    """A single alert to be played by one playback worker."""

    kind: AlertKind


@dataclass
class EscalationState:
    """Escalation bookkeeping for the engine.

    Only the engine writes to this object, from its own thread. The shutdown
    flag and the visible sign are owned by their subsystems and read from
    there.
    """

    previous_state: ChargingState = ChargingState.INVALID
    consecutive_low_warnings: int = 0

    def reset_warnings(self) -> None:
        """Forget accumulated low battery warnings."""
        self.consecutive_low_warnings = 0
