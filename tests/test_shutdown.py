import logging
import subprocess
import time

import pytest

from battery_monitor import shutdown as shutdown_module
from battery_monitor.config import ShutdownConfig
from battery_monitor.shutdown import ShutdownController
from battery_monitor.state import AlertKind
from battery_monitor.tasks import TaskTracker

from .conftest import FakeAlerts


@pytest.fixture
def commands(monkeypatch):
    commands = []
    monkeypatch.setattr(
        shutdown_module.subprocess, "run", lambda cmd, **kwargs: commands.append(cmd)
    )
    return commands


@pytest.fixture
def tasks():
    tasks = TaskTracker("test-shutdown")
    yield tasks
    tasks.wait(timeout=5.0)


def make_controller(tasks, command="/sbin/shutdown", dry_run=False):
    alerts = FakeAlerts()
    config = ShutdownConfig(command=command, delay_minutes=2, dry_run=dry_run)
    return ShutdownController(config, alerts, tasks), alerts


def test_start_launches_delayed_shutdown(tasks, commands):
    controller, alerts = make_controller(tasks)

    controller.start()
    assert tasks.wait(timeout=2.0)

    assert controller.active
    assert commands == [["/sbin/shutdown", "-h", "+2"]]
    assert alerts.emitted == [AlertKind.SHUTDOWN_START]


def test_start_when_active_does_nothing(tasks, commands):
    controller, alerts = make_controller(tasks)

    controller.start()
    controller.start()
    assert tasks.wait(timeout=2.0)

    assert commands == [["/sbin/shutdown", "-h", "+2"]]
    assert alerts.emitted == [AlertKind.SHUTDOWN_START]


def test_stop_when_inactive_does_nothing(tasks, commands):
    controller, alerts = make_controller(tasks)

    controller.stop()
    assert tasks.wait(timeout=2.0)

    assert not controller.active
    assert commands == []
    assert alerts.emitted == []


def test_stop_cancels_shutdown(tasks, commands):
    controller, alerts = make_controller(tasks)

    controller.start()
    assert tasks.wait(timeout=2.0)
    controller.stop()
    controller.stop()
    assert tasks.wait(timeout=2.0)

    assert not controller.active
    assert commands == [["/sbin/shutdown", "-h", "+2"], ["/sbin/shutdown", "-c"]]
    assert alerts.emitted == [AlertKind.SHUTDOWN_START, AlertKind.SHUTDOWN_STOP]


def test_command_with_arguments_is_split(tasks, commands):
    controller, _ = make_controller(tasks, command="/usr/bin/sudo /sbin/shutdown")

    controller.start()
    assert tasks.wait(timeout=2.0)

    assert commands == [["/usr/bin/sudo", "/sbin/shutdown", "-h", "+2"]]


def test_failed_command_keeps_flag(monkeypatch, tasks, caplog):
    def failing_run(cmd, **kwargs):
        raise subprocess.CalledProcessError(1, cmd)

    monkeypatch.setattr(shutdown_module.subprocess, "run", failing_run)
    controller, alerts = make_controller(tasks)

    with caplog.at_level(logging.WARNING):
        controller.start()
        assert tasks.wait(timeout=2.0)

    assert controller.active
    assert alerts.emitted == [AlertKind.SHUTDOWN_START]
    assert "Unable to launch shutdown" in caplog.text


def test_missing_command_is_logged(monkeypatch, tasks, caplog):
    def missing_run(cmd, **kwargs):
        raise FileNotFoundError(2, "No such file or directory", cmd[0])

    monkeypatch.setattr(shutdown_module.subprocess, "run", missing_run)
    controller, _ = make_controller(tasks)
    controller.start()
    assert tasks.wait(timeout=2.0)

    with caplog.at_level(logging.WARNING):
        controller.stop()
        assert tasks.wait(timeout=2.0)

    assert not controller.active
    assert "Unable to cancel shutdown" in caplog.text


def test_dry_run_only_logs(tasks, commands, caplog):
    controller, alerts = make_controller(tasks, dry_run=True)

    with caplog.at_level(logging.INFO):
        controller.start()
        assert tasks.wait(timeout=2.0)

    assert commands == []
    assert controller.active
    assert alerts.emitted == [AlertKind.SHUTDOWN_START]
    assert "[DRY RUN] Would run: /sbin/shutdown -h +2" in caplog.text


def test_cancel_waits_for_slow_launch(monkeypatch, tasks):
    finished = []

    def slow_launch_run(cmd, **kwargs):
        if "-h" in cmd:
            time.sleep(0.2)
        finished.append(cmd[-1])

    monkeypatch.setattr(shutdown_module.subprocess, "run", slow_launch_run)
    controller, _ = make_controller(tasks)

    controller.start()
    time.sleep(0.05)
    controller.stop()
    assert tasks.wait(timeout=2.0)

    assert finished == ["+2", "-c"]
    assert not controller.active


def test_commands_keep_request_order(monkeypatch, tasks):
    finished = []

    def run(cmd, **kwargs):
        # Later requests finish faster
        time.sleep(0.05 if "-h" in cmd else 0.0)
        finished.append(cmd[-1])

    monkeypatch.setattr(shutdown_module.subprocess, "run", run)
    controller, _ = make_controller(tasks)

    for _ in range(3):
        controller.start()
        controller.stop()
    assert tasks.wait(timeout=5.0)

    assert finished == ["+2", "-c"] * 3
