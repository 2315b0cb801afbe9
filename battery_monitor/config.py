"""Configuration management for the application."""

import logging
import tomllib
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

MIN_POLL_PERIOD = 1
MAX_POLL_PERIOD = 3600


@dataclass(frozen=True)
class SoundConfig:
    """Alert sound files and the player used to play them."""

    low_battery: str
    shutdown_start: str
    shutdown_stop: str
    player: str = "aplay -q"


@dataclass(frozen=True)
class SignConfig:
    """On-screen sign configuration."""

    font: str = "default"
    backend: str = "tk"  # tk, waveshare or mock
    x: int = 0
    y: int = 0
    padding: int = 10  # Pixels around the label
    transient_duration: float = 5.0  # Seconds a warning sign stays up
    teardown_timeout: float = 5.0  # Seconds hide() waits for the sign worker
    model: str = "7in3e"  # Waveshare panel model
    width: int = 800
    height: int = 480

    def __post_init__(self):
        if self.backend not in ("tk", "waveshare", "mock"):
            raise ValueError(f"Unsupported display backend: {self.backend}")
        if self.transient_duration <= 0:
            raise ValueError(f"Transient duration must be positive, got {self.transient_duration}")
        if self.padding < 0:
            raise ValueError(f"Padding must not be negative, got {self.padding}")
        if self.teardown_timeout <= 0:
            raise ValueError(f"Teardown timeout must be positive, got {self.teardown_timeout}")


@dataclass(frozen=True)
class ShutdownConfig:
    """Shutdown command configuration."""

    command: str = "/sbin/shutdown"
    delay_minutes: int = 2
    dry_run: bool = False

    def __post_init__(self):
        if not self.command.strip():
            raise ValueError("Shutdown command must not be empty")
        if self.delay_minutes < 0:
            raise ValueError(f"Shutdown delay must not be negative, got {self.delay_minutes}")


@dataclass(frozen=True)
class PowerConfig:
    """Power source and polling configuration."""

    source: str = "acpi"  # acpi or pisugar
    info_path: str = "/proc/acpi/battery/BAT1/info"
    state_path: str = "/proc/acpi/battery/BAT1/state"
    poll_period: int = 20  # Seconds between checks
    safety_threshold: int = 60  # Seconds of low battery warnings before shutdown
    low_percentage: float = 10.0  # Pisugar only, no design-low field there
    use_tcp: bool = True
    tcp_host: str = "127.0.0.1"
    tcp_port: int = 8423
    socket_path: str = "/tmp/pisugar-server.sock"  # Only used if use_tcp = false

    def __post_init__(self):
        if self.source not in ("acpi", "pisugar"):
            raise ValueError(f"Unsupported power source: {self.source}")
        if not MIN_POLL_PERIOD <= self.poll_period <= MAX_POLL_PERIOD:
            raise ValueError(
                f"Poll period must be between {MIN_POLL_PERIOD} and {MAX_POLL_PERIOD} "
                f"seconds, got {self.poll_period}"
            )
        if self.safety_threshold < 0:
            raise ValueError(f"Safety threshold must not be negative, got {self.safety_threshold}")


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    def __post_init__(self):
        if self.level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {self.level}")


@dataclass(frozen=True)
class Config:
    """Application configuration, built once at startup."""

    sounds: SoundConfig
    sign: SignConfig
    shutdown: ShutdownConfig
    power: PowerConfig
    logging: LoggingConfig

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Create config from dictionary.

        Args:
            data: Configuration dictionary

        Returns:
            Config instance

        Raises:
            KeyError: If a sound file is missing
            ValueError: If a value is out of range
        """
        sounds_data = data.get("sounds", {})
        sign_data = data.get("sign", {})
        shutdown_data = data.get("shutdown", {})
        power_data = data.get("power", {})
        logging_data = data.get("logging", {})

        sound_config = SoundConfig(
            low_battery=sounds_data["low_battery"],
            shutdown_start=sounds_data["shutdown_start"],
            shutdown_stop=sounds_data["shutdown_stop"],
            player=sounds_data.get("player", "aplay -q"),
        )

        sign_config = SignConfig(
            font=sign_data.get("font", "default"),
            backend=sign_data.get("backend", "tk"),
            x=sign_data.get("x", 0),
            y=sign_data.get("y", 0),
            padding=sign_data.get("padding", 10),
            transient_duration=sign_data.get("transient_duration", 5.0),
            teardown_timeout=sign_data.get("teardown_timeout", 5.0),
            model=sign_data.get("model", "7in3e"),
            width=sign_data.get("width", 800),
            height=sign_data.get("height", 480),
        )

        shutdown_config = ShutdownConfig(
            command=shutdown_data.get("command", "/sbin/shutdown"),
            delay_minutes=shutdown_data.get("delay_minutes", 2),
            dry_run=shutdown_data.get("dry_run", False),
        )

        power_config = PowerConfig(
            source=power_data.get("source", "acpi"),
            info_path=power_data.get("info_path", "/proc/acpi/battery/BAT1/info"),
            state_path=power_data.get("state_path", "/proc/acpi/battery/BAT1/state"),
            poll_period=power_data.get("poll_period", 20),
            safety_threshold=power_data.get("safety_threshold", 60),
            low_percentage=power_data.get("low_percentage", 10.0),
            use_tcp=power_data.get("use_tcp", True),
            tcp_host=power_data.get("tcp_host", "127.0.0.1"),
            tcp_port=power_data.get("tcp_port", 8423),
            socket_path=power_data.get("socket_path", "/tmp/pisugar-server.sock"),
        )

        logging_config = LoggingConfig(
            level=logging_data.get("level", "INFO"),
            format=logging_data.get(
                "format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            ),
        )

        return cls(
            sounds=sound_config,
            sign=sign_config,
            shutdown=shutdown_config,
            power=power_config,
            logging=logging_config,
        )

    @staticmethod
    def load_file(file_path: str) -> dict[str, Any]:
        """Load raw configuration values from a TOML file.

        Args:
            file_path: Path to configuration file

        Returns:
            Nested dictionary, to be completed and passed to from_dict()
        """
        logger.info(f"Loading configuration from {file_path}")

        try:
            with open(file_path, "rb") as f:
                return tomllib.load(f)
        except FileNotFoundError:
            logger.error(f"Configuration file not found: {file_path}")
            raise
        except tomllib.TOMLDecodeError as e:
            logger.error(f"Invalid TOML in configuration file: {e}")
            raise

    @classmethod
    def from_file(cls, file_path: str) -> "Config":
        """Load configuration from TOML file.

        Args:
            file_path: Path to configuration file

        Returns:
            Config instance
        """
        config = cls.from_dict(cls.load_file(file_path))
        logger.info("Configuration loaded successfully")
        return config
