"""Alert sounds, each played on its own worker thread."""

import logging
import shlex
import shutil
import subprocess

from battery_monitor.config import SoundConfig
from battery_monitor.state import AlertKind, AlertRequest
from battery_monitor.tasks import TaskTracker

logger = logging.getLogger(__name__)


class AudioInitError(Exception):
    """The audio player cannot be used at all."""


class AlertPlayer:
    """Plays alert sounds without blocking the caller.

    Alerts may overlap; a failed playback is logged and never reaches the
    caller.
    """

    def __init__(self, sounds: SoundConfig, tasks: TaskTracker | None = None):
        """Initialize the alert player.

        Args:
            sounds: Sound files per alert and the player command
            tasks: Tracker for playback workers
        """
        self.sounds = sounds
        self.tasks = tasks or TaskTracker("alert")
        self._player = shlex.split(sounds.player)

    def init(self) -> None:
        """Check that the player command can be run.

        Raises:
            AudioInitError: If no player command is configured or it cannot be found
        """
        if not self._player:
            raise AudioInitError("No audio player command configured")
        if shutil.which(self._player[0]) is None:
            raise AudioInitError(f"Audio player not found: {self._player[0]}")
        logger.info(f"Audio alerts will be played with: {self.sounds.player}")

    def sound_for(self, kind: AlertKind) -> str:
        """Sound file configured for an alert kind."""
        if kind is AlertKind.LOW_BATTERY:
            return self.sounds.low_battery
        elif kind is AlertKind.SHUTDOWN_START:
            return self.sounds.shutdown_start
        elif kind is AlertKind.SHUTDOWN_STOP:
            return self.sounds.shutdown_stop
        raise AssertionError(f"Unknown alert kind: {kind}")

    def emit(self, kind: AlertKind) -> None:
        """Start playing the alert and return immediately."""
        request = AlertRequest(kind)
        logger.debug(f"Emitting {kind.value} alert")
        self.tasks.spawn(self._play, request, name=kind.value)

    def _play(self, request: AlertRequest) -> None:
        sound_file = self.sound_for(request.kind)
        command = [*self._player, sound_file]
        try:
            # Blocks until playback has finished
            subprocess.run(command, check=True, capture_output=True)
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.decode(errors="replace").strip() if e.stderr else ""
            logger.warning(f"Unable to play {sound_file}: exit status {e.returncode} {stderr}")
        except OSError as e:
            logger.warning(f"Unable to play alert sound {sound_file}: {e}")
