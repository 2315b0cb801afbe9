"""Battery reader for the ACPI procfs interface."""

import logging

from battery_monitor.state import ChargingState

from .base import PowerReadError, PowerSourceBase

logger = logging.getLogger(__name__)

_CHARGING_STATES = {
    "charging": ChargingState.CHARGING,
    "charged": ChargingState.CHARGED,
    "discharging": ChargingState.DISCHARGING,
}


def read_field(file_path: str, field_name: str) -> str:
    """Read the value of a "<field name>: <value>" line from a record file.

    Args:
        file_path: Record file to scan
        field_name: Field name, without the colon

    Returns:
        The value with surrounding whitespace removed

    Raises:
        PowerReadError: If the file cannot be read or has no such field
    """
    prefix = f"{field_name}:"
    try:
        with open(file_path, encoding="ascii", errors="replace") as f:
            for line in f:
                if line.startswith(prefix):
                    return line[len(prefix) :].strip()
    except OSError as e:
        raise PowerReadError(f"Unable to read {file_path}: {e}") from e

    raise PowerReadError(f"Field '{field_name}' not found in {file_path}")


def read_integer_field(file_path: str, field_name: str) -> int:
    """Read an integer field such as "remaining capacity: 4870 mWh".

    Raises:
        PowerReadError: If the field is missing or its first token is not an integer
    """
    value = read_field(file_path, field_name)
    try:
        return int(value.split()[0])
    except (IndexError, ValueError) as e:
        raise PowerReadError(f"Invalid value for '{field_name}' in {file_path}: {value!r}") from e


class AcpiPowerSource(PowerSourceBase):
    """Reads the battery info and state records under /proc/acpi/battery."""

    def __init__(
        self,
        info_path: str = "/proc/acpi/battery/BAT1/info",
        state_path: str = "/proc/acpi/battery/BAT1/state",
    ):
        """Initialize the reader.

        Args:
            info_path: Path of the static battery info record
            state_path: Path of the dynamic battery state record
        """
        self.info_path = info_path
        self.state_path = state_path

    def is_present(self) -> bool:
        """Check the "present" field; an unreadable record counts as absent."""
        try:
            return read_field(self.state_path, "present") == "yes"
        except PowerReadError as e:
            logger.debug(f"Battery presence unknown: {e}")
            return False

    def charging_state(self) -> ChargingState:
        if not self.is_present():
            return ChargingState.NO_BATTERY

        try:
            value = read_field(self.state_path, "charging state")
        except PowerReadError as e:
            logger.debug(f"Charging state unreadable: {e}")
            return ChargingState.INVALID

        if not value:
            return ChargingState.INVALID

        state = _CHARGING_STATES.get(value.split()[0], ChargingState.OTHER)
        if state is ChargingState.OTHER:
            logger.debug(f"Unrecognized charging state: {value!r}")
        return state

    def design_capacity_low(self) -> int:
        return read_integer_field(self.info_path, "design capacity low")

    def remaining_capacity(self) -> int:
        return read_integer_field(self.state_path, "remaining capacity")
