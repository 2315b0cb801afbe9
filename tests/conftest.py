import threading
import time

import pytest

from battery_monitor.config import ShutdownConfig
from battery_monitor.display.base import DisplayBase, DisplayError
from battery_monitor.engine import EscalationEngine
from battery_monitor.power.base import PowerReadError, PowerSourceBase
from battery_monitor.shutdown import ShutdownController
from battery_monitor.state import ChargingState
from battery_monitor.tasks import TaskTracker


def wait_for(predicate, timeout=2.0):
    """Poll predicate until it is true or the timeout expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


class FakePowerSource(PowerSourceBase):
    def __init__(self):
        self.state = ChargingState.INVALID
        self.low_limit = 20
        self.remaining = 100
        self.fail_low_limit = False
        self.fail_remaining = False

    def set(self, state, remaining=None):
        self.state = state
        if remaining is not None:
            self.remaining = remaining

    def charging_state(self):
        return self.state

    def design_capacity_low(self):
        if self.fail_low_limit:
            raise PowerReadError("design capacity low unavailable")
        return self.low_limit

    def remaining_capacity(self):
        if self.fail_remaining:
            raise PowerReadError("remaining capacity unavailable")
        return self.remaining


class FakeAlerts:
    def __init__(self):
        self.emitted = []

    def emit(self, kind):
        self.emitted.append(kind)


class FakeSigns:
    """Records sign calls with the same show/hide semantics as SignManager."""

    def __init__(self):
        self.label = None
        self.calls = []

    @property
    def active(self):
        return self.label is not None

    @property
    def current_label(self):
        return self.label

    def show(self, label):
        if self.label == label:
            return
        self.hide()
        self.label = label
        self.calls.append(("show", label))

    def hide(self):
        if self.label is not None:
            self.calls.append(("hide", self.label))
            self.label = None

    def show_transient(self, label, duration):
        self.show(label)
        self.calls.append(("transient", label))


class DisplayTracker:
    """Counts windows that are open at the same time across sign workers."""

    def __init__(self, fail_open=False, open_delay=0.01, close_delay=0.0):
        self.fail_open = fail_open
        self.open_delay = open_delay
        self.close_delay = close_delay
        self._lock = threading.Lock()
        self.live = 0
        self.max_live = 0
        self.opened = 0
        self.closed = 0
        self.displays = []

    def factory(self):
        display = TrackingDisplay(self)
        self.displays.append(display)
        return display

    def on_open(self):
        with self._lock:
            self.live += 1
            self.opened += 1
            self.max_live = max(self.max_live, self.live)

    def on_close(self):
        with self._lock:
            self.live -= 1
            self.closed += 1


class TrackingDisplay(DisplayBase):
    def __init__(self, tracker):
        super().__init__()
        self.tracker = tracker
        self.image_size = None

    def open(self, image):
        if self.tracker.fail_open:
            raise DisplayError("cannot open display")
        self.image_size = image.size
        self.is_open = True
        self.tracker.on_open()
        # Give overlapping windows a chance to show up
        time.sleep(self.tracker.open_delay)

    def process_events(self):
        pass

    def close(self):
        if self.is_open:
            time.sleep(self.tracker.close_delay)
            self.is_open = False
            self.tracker.on_close()


@pytest.fixture
def power():
    return FakePowerSource()


@pytest.fixture
def alerts():
    return FakeAlerts()


@pytest.fixture
def signs():
    return FakeSigns()


@pytest.fixture
def shutdown_tasks():
    tasks = TaskTracker("test-shutdown")
    yield tasks
    tasks.wait(timeout=5.0)


@pytest.fixture
def shutdown(alerts, shutdown_tasks):
    config = ShutdownConfig(command="/sbin/shutdown", dry_run=True)
    return ShutdownController(config, alerts, shutdown_tasks)


@pytest.fixture
def engine(power, signs, alerts, shutdown):
    return EscalationEngine(
        power=power,
        signs=signs,
        alerts=alerts,
        shutdown=shutdown,
        poll_period=5,
        safety_threshold=60,
        transient_duration=1.0,
    )
