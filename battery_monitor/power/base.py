"""Base class for power source readers."""

from abc import ABC, abstractmethod

from battery_monitor.state import ChargingState


class PowerReadError(Exception):
    """A power source value could not be read or parsed."""


class PowerSourceBase(ABC):
    """Abstract base class for power source readers."""

    @abstractmethod
    def charging_state(self) -> ChargingState:
        """Read and classify the current charging state.

        Returns:
            The charging state; read failures are reported as
            ChargingState.INVALID rather than raised
        """
        pass

    @abstractmethod
    def design_capacity_low(self) -> float:
        """Capacity below which the battery counts as low.

        Raises:
            PowerReadError: If the value cannot be read
        """
        pass

    @abstractmethod
    def remaining_capacity(self) -> float:
        """Capacity left in the battery, in the same unit as design_capacity_low().

        Raises:
            PowerReadError: If the value cannot be read
        """
        pass
