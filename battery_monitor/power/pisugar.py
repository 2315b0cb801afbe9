"""Battery reader for the Pisugar power manager."""

import logging
import socket

from battery_monitor.state import ChargingState

from .base import PowerReadError, PowerSourceBase

logger = logging.getLogger(__name__)


class PisugarPowerSource(PowerSourceBase):
    """Reads battery state from pisugar-server via Unix socket or TCP.

    Pisugar reports a percentage and has no design-low field, so the low
    threshold is a configured percentage.
    """

    def __init__(
        self,
        socket_path: str | None = None,
        host: str = "127.0.0.1",
        port: int = 8423,
        low_percentage: float = 10.0,
    ):
        """Initialize Pisugar reader.

        Args:
            socket_path: Path to Pisugar Unix domain socket (if None, uses TCP)
            host: TCP host (default: 127.0.0.1, only used if socket_path is None)
            port: TCP port (default: 8423, only used if socket_path is None)
            low_percentage: Battery level below which the battery counts as low
        """
        self.socket_path = socket_path
        self.host = host
        self.port = port
        self.use_tcp = socket_path is None
        self.low_percentage = low_percentage

    def _send_command(self, command: str) -> str:
        """Send command to Pisugar and return response.

        Args:
            command: Command to send

        Returns:
            Response string from Pisugar

        Raises:
            PowerReadError: If communication with Pisugar fails
        """
        try:
            if self.use_tcp:
                sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
                address: str | tuple[str, int] = (self.host, self.port)
            else:
                sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
                address = self.socket_path

            with sock:
                sock.settimeout(5.0)
                sock.connect(address)
                logger.debug(f"Sending command to Pisugar at {address}: {command}")

                # Command must end with newline
                sock.sendall(f"{command}\n".encode())

                # Read until the server closes or goes quiet
                sock.settimeout(1.0)
                response_parts = []
                while True:
                    try:
                        chunk = sock.recv(1024)
                    except TimeoutError:
                        break
                    if not chunk:
                        break
                    response_parts.append(chunk)

            # Decoded once so multi-byte characters split across chunks survive
            response = b"".join(response_parts).decode("utf-8", errors="replace").strip()
            logger.debug(f"Pisugar response: {response}")
            return response

        except FileNotFoundError as e:
            raise PowerReadError(
                f"Pisugar socket not found at {self.socket_path}. Is pisugar-server running?"
            ) from e
        except ConnectionRefusedError as e:
            raise PowerReadError(
                "Connection refused to Pisugar. Is pisugar-server running?"
            ) from e
        except OSError as e:
            raise PowerReadError(f"Failed to communicate with Pisugar: {e}") from e

    def _get_value(self, name: str) -> str:
        """Send "get <name>" and return the value of the "<name>: <value>" line.

        Raises:
            PowerReadError: If Pisugar is unreachable or the reply has no such line
        """
        response = self._send_command(f"get {name}")
        # Response may be multi-line, e.g. "single\nbattery: 98.37336"
        for line in response.splitlines():
            key, sep, value = line.partition(":")
            if sep and key.strip().lower() == name:
                return value.strip()
        raise PowerReadError(f"Unexpected Pisugar response to 'get {name}': {response!r}")

    def _get_flag(self, name: str) -> bool:
        value = self._get_value(name).lower()
        if value not in ("true", "false"):
            raise PowerReadError(f"Invalid value for {name}: {value!r}")
        return value == "true"

    def get_battery_level(self) -> float:
        """Get current battery level percentage.

        Raises:
            PowerReadError: If the level cannot be read
        """
        value = self._get_value("battery")
        try:
            return float(value.rstrip("%"))
        except ValueError as e:
            raise PowerReadError(f"Invalid battery level: {value!r}") from e

    def charging_state(self) -> ChargingState:
        try:
            plugged = self._get_flag("battery_power_plugged")
            if not plugged:
                return ChargingState.DISCHARGING
            charging = self._get_flag("battery_charging")
        except PowerReadError as e:
            logger.debug(f"Charging state unreadable: {e}")
            return ChargingState.INVALID

        return ChargingState.CHARGING if charging else ChargingState.CHARGED

    def design_capacity_low(self) -> float:
        return self.low_percentage

    def remaining_capacity(self) -> float:
        return self.get_battery_level()
