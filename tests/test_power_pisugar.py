import socket
import threading
import time

import pytest

from battery_monitor.power.base import PowerReadError
from battery_monitor.power.pisugar import PisugarPowerSource
from battery_monitor.state import ChargingState


def make_source(monkeypatch, responses, low_percentage=10.0):
    source = PisugarPowerSource(low_percentage=low_percentage)
    sent = []

    def send_command(command):
        sent.append(command)
        response = responses[command]
        if isinstance(response, Exception):
            raise response
        return response

    monkeypatch.setattr(source, "_send_command", send_command)
    return source, sent


def test_unplugged_is_discharging(monkeypatch):
    source, sent = make_source(
        monkeypatch, {"get battery_power_plugged": "battery_power_plugged: false"}
    )

    assert source.charging_state() is ChargingState.DISCHARGING
    assert sent == ["get battery_power_plugged"]


@pytest.mark.parametrize(
    "charging, expected",
    [("true", ChargingState.CHARGING), ("false", ChargingState.CHARGED)],
)
def test_plugged_states(monkeypatch, charging, expected):
    source, _ = make_source(
        monkeypatch,
        {
            "get battery_power_plugged": "battery_power_plugged: true",
            "get battery_charging": f"battery_charging: {charging}",
        },
    )

    assert source.charging_state() is expected


def test_unreachable_server_is_invalid(monkeypatch):
    source, _ = make_source(
        monkeypatch, {"get battery_power_plugged": PowerReadError("connection refused")}
    )

    assert source.charging_state() is ChargingState.INVALID


def test_garbled_flag_is_invalid(monkeypatch):
    source, _ = make_source(
        monkeypatch, {"get battery_power_plugged": "battery_power_plugged: maybe"}
    )

    assert source.charging_state() is ChargingState.INVALID


def test_capacities(monkeypatch):
    source, _ = make_source(monkeypatch, {"get battery": "single\nbattery: 8.5"}, low_percentage=15)

    assert source.design_capacity_low() == 15
    assert source.remaining_capacity() == pytest.approx(8.5)


def test_unexpected_battery_response(monkeypatch):
    source, _ = make_source(monkeypatch, {"get battery": "Invalid request."})

    with pytest.raises(PowerReadError):
        source.remaining_capacity()


def test_connection_refused_raises_read_error():
    # Port 1 on localhost is not a pisugar-server
    source = PisugarPowerSource(host="127.0.0.1", port=1)

    with pytest.raises(PowerReadError):
        source.remaining_capacity()


def test_missing_socket_raises_read_error(tmp_path):
    source = PisugarPowerSource(socket_path=str(tmp_path / "pisugar.sock"))

    with pytest.raises(PowerReadError, match="socket not found"):
        source.remaining_capacity()


@pytest.fixture
def pisugar_server():
    """Start a one-shot TCP server that answers a command with raw chunks."""
    servers = []

    def serve(*chunks):
        server = socket.create_server(("127.0.0.1", 0))
        servers.append(server)

        def handle():
            conn, _ = server.accept()
            with conn:
                conn.recv(1024)
                for chunk in chunks:
                    conn.sendall(chunk)
                    time.sleep(0.02)

        threading.Thread(target=handle, daemon=True).start()
        return server.getsockname()[1]

    yield serve
    for server in servers:
        server.close()


def test_reply_over_tcp(pisugar_server):
    port = pisugar_server(b"battery_power_plugged: false\n")
    source = PisugarPowerSource(host="127.0.0.1", port=port)

    assert source.charging_state() is ChargingState.DISCHARGING


def test_undecodable_reply_is_invalid(pisugar_server):
    port = pisugar_server(b"battery_power_plugged: \xff\xfe\n")
    source = PisugarPowerSource(host="127.0.0.1", port=port)

    assert source.charging_state() is ChargingState.INVALID


def test_character_split_across_chunks(pisugar_server):
    port = pisugar_server(b"model: PiSugar 3 \xc2", b"\xb5\nbattery: 42.5\n")
    source = PisugarPowerSource(host="127.0.0.1", port=port)

    assert source.remaining_capacity() == pytest.approx(42.5)
