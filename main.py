#!/usr/bin/env python3
"""Main entry point for the battery monitor."""

import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import Any

from battery_monitor.alerts import AlertPlayer, AudioInitError
from battery_monitor.config import MAX_POLL_PERIOD, MIN_POLL_PERIOD, Config
from battery_monitor.display.base import DisplayBase
from battery_monitor.display.mock import MockDisplay
from battery_monitor.engine import EscalationEngine
from battery_monitor.power.acpi import AcpiPowerSource
from battery_monitor.power.base import PowerSourceBase
from battery_monitor.power.pisugar import PisugarPowerSource
from battery_monitor.shutdown import ShutdownController
from battery_monitor.signs import SignManager
from battery_monitor.tasks import TaskTracker

logger = logging.getLogger(__name__)

USAGE_NOTES = """\
The window font is a TrueType/OpenType file or font name, optionally
followed by ":<size>", or "default" for the built-in font. The shutdown
command is usually '/sbin/shutdown', but it is there so you can indicate
something like '/usr/bin/sudo /sbin/shutdown'.
"""


class BatteryMonitor:
    """Main application class."""

    def __init__(self, config: Config):
        """Initialize the application.

        Args:
            config: Application configuration
        """
        self.config = config
        self.alert_tasks = TaskTracker("alert")
        self.shutdown_tasks = TaskTracker("shutdown")
        self.alerts: AlertPlayer | None = None
        self.signs: SignManager | None = None
        self.shutdown_controller: ShutdownController | None = None
        self.engine: EscalationEngine | None = None
        self._shutting_down = False

        # Setup logging first
        self.setup_logging()

        # Setup signal handlers for graceful shutdown
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

    def _signal_handler(self, signum, frame):
        """Handle stop signals."""
        if self._shutting_down:
            logger.warning("Forced shutdown!")
            sys.exit(1)

        logger.info(f"Received signal {signum}, stopping...")
        self._shutting_down = True
        if self.engine is not None:
            self.engine.stop()

    def setup_logging(self):
        """Configure logging based on config."""
        logging.basicConfig(
            level=getattr(logging, self.config.logging.level),
            format=self.config.logging.format,
        )
        logger.info("Logging configured")

    def create_power_source(self) -> PowerSourceBase:
        """Create the configured power source reader."""
        power = self.config.power
        if power.source == "acpi":
            return AcpiPowerSource(info_path=power.info_path, state_path=power.state_path)
        elif power.source == "pisugar":
            if power.use_tcp:
                return PisugarPowerSource(
                    host=power.tcp_host, port=power.tcp_port, low_percentage=power.low_percentage
                )
            return PisugarPowerSource(
                socket_path=power.socket_path, low_percentage=power.low_percentage
            )
        raise ValueError(f"Unsupported power source: {power.source}")

    def create_display(self) -> DisplayBase:
        """Create a display for one sign; called from the sign worker thread."""
        sign = self.config.sign
        if sign.backend == "tk":
            from battery_monitor.display.tk import TkDisplay

            return TkDisplay(x=sign.x, y=sign.y)
        elif sign.backend == "waveshare":
            from battery_monitor.display.waveshare import WaveshareDisplay

            return WaveshareDisplay(
                model=sign.model, width=sign.width, height=sign.height, x=sign.x, y=sign.y
            )
        elif sign.backend == "mock":
            return MockDisplay(x=sign.x, y=sign.y)
        raise ValueError(f"Unsupported display backend: {sign.backend}")

    def setup_signs(self):
        """Initialize the sign subsystem."""
        self.signs = SignManager(
            self.create_display,
            font=self.config.sign.font,
            padding=self.config.sign.padding,
            teardown_timeout=self.config.sign.teardown_timeout,
        )

    def setup(self):
        """Initialize all subsystems and the engine.

        Raises:
            AudioInitError: If alert sounds cannot be played at all
        """
        logger.info("Setting up battery monitor")

        self.alerts = AlertPlayer(self.config.sounds, self.alert_tasks)
        self.alerts.init()

        self.setup_signs()
        self.shutdown_controller = ShutdownController(
            self.config.shutdown, self.alerts, self.shutdown_tasks
        )
        self.engine = EscalationEngine(
            power=self.create_power_source(),
            signs=self.signs,
            alerts=self.alerts,
            shutdown=self.shutdown_controller,
            poll_period=self.config.power.poll_period,
            safety_threshold=self.config.power.safety_threshold,
            transient_duration=self.config.sign.transient_duration,
        )

        logger.info("Setup complete")

    def run(self) -> int:
        """Run the application until stopped.

        Returns:
            Process exit status
        """
        try:
            self.setup()
        except AudioInitError as e:
            logger.error(f"Unable to initialize sound system: {e}")
            return 1

        assert self.engine is not None, "Engine must be initialized"

        try:
            self.engine.run()
            return 0
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
            return 0
        except Exception as e:
            logger.error(f"Battery monitor error: {e}", exc_info=True)
            return 1
        finally:
            self.shutdown()

    def shutdown(self):
        """Remove signs and let in-flight workers finish."""
        logger.info("Shutting down battery monitor")

        if self.signs is not None:
            self.signs.close()

        if self.shutdown_controller is not None and self.shutdown_controller.active:
            logger.warning("A system shutdown is still scheduled")

        self.shutdown_tasks.wait(timeout=10.0)
        self.alert_tasks.wait(timeout=5.0)

        logger.info("Shutdown complete")

    def test_display(self) -> int:
        """Show a test sign until Enter is pressed."""
        self.setup_signs()
        assert self.signs is not None

        self.signs.show("Battery monitor test")
        logger.info("Test sign displayed. Press Enter to exit")
        try:
            input()
        except (EOFError, KeyboardInterrupt):
            pass
        finally:
            self.signs.close()

        logger.info("Display test complete")
        return 0


def poll_period_arg(value: str) -> int:
    """argparse type for the poll period."""
    try:
        seconds = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid poll period: {value!r}") from None
    if not MIN_POLL_PERIOD <= seconds <= MAX_POLL_PERIOD:
        raise argparse.ArgumentTypeError(
            f"poll period must be between {MIN_POLL_PERIOD} and {MAX_POLL_PERIOD} seconds"
        )
    return seconds


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Battery monitor with low battery signs, alerts and automatic shutdown",
        epilog=USAGE_NOTES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("low_battery_sound", help="Sound played on each low battery warning")
    parser.add_argument("start_shutdown_sound", help="Sound played when shutdown is scheduled")
    parser.add_argument("stop_shutdown_sound", help="Sound played when shutdown is cancelled")
    parser.add_argument("window_font", help="Font used for signs")
    parser.add_argument("shutdown_command", help="Shutdown command, e.g. /sbin/shutdown")
    parser.add_argument(
        "poll_period",
        nargs="?",
        type=poll_period_arg,
        default=None,
        help=f"Seconds between battery checks ({MIN_POLL_PERIOD}-{MAX_POLL_PERIOD}, default: 20)",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=str,
        default=None,
        help="Path to an optional TOML configuration file",
    )
    parser.add_argument(
        "--display",
        choices=["tk", "waveshare", "mock"],
        default=None,
        help="Where to show signs (default: tk)",
    )
    parser.add_argument(
        "--power-source",
        choices=["acpi", "pisugar"],
        default=None,
        help="Where to read the battery state from (default: acpi)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Use mock display and only log the shutdown command",
    )
    parser.add_argument(
        "--test-display",
        action="store_true",
        help="Show a test sign and exit",
    )
    return parser


def build_config(args: argparse.Namespace, file_data: dict[str, Any] | None = None) -> Config:
    """Merge command line arguments over configuration file values.

    Args:
        args: Parsed command line arguments
        file_data: Raw values from the configuration file, if any

    Returns:
        Config instance
    """
    data = {section: dict(values) for section, values in (file_data or {}).items()}
    sounds = data.setdefault("sounds", {})
    sign = data.setdefault("sign", {})
    shutdown = data.setdefault("shutdown", {})
    power = data.setdefault("power", {})
    logging_data = data.setdefault("logging", {})

    sounds["low_battery"] = args.low_battery_sound
    sounds["shutdown_start"] = args.start_shutdown_sound
    sounds["shutdown_stop"] = args.stop_shutdown_sound
    sign["font"] = args.window_font
    shutdown["command"] = args.shutdown_command

    if args.poll_period is not None:
        power["poll_period"] = args.poll_period
    if args.power_source is not None:
        power["source"] = args.power_source
    if args.display is not None:
        sign["backend"] = args.display
    if args.log_level is not None:
        logging_data["level"] = args.log_level
    if args.dry_run:
        sign["backend"] = "mock"
        shutdown["dry_run"] = True

    return Config.from_dict(data)


def main(argv: list[str] | None = None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    file_data = None
    if args.config is not None:
        config_path = Path(args.config)
        if not config_path.exists():
            print(f"Configuration file not found: {config_path}", file=sys.stderr)
            sys.exit(1)
        try:
            file_data = Config.load_file(str(config_path))
        except Exception as e:
            print(f"Failed to load configuration: {e}", file=sys.stderr)
            sys.exit(1)

    try:
        config = build_config(args, file_data)
    except (KeyError, TypeError, ValueError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        parser.print_usage(sys.stderr)
        sys.exit(1)

    app = BatteryMonitor(config)

    if args.test_display:
        sys.exit(app.test_display())

    sys.exit(app.run())


if __name__ == "__main__":
    main()
