from __future__ import annotations

from rigwatch.api import Client, RigConfig, TelemetrySnapshot


class FakeLineTransport:
    def __init__(self) -> None:
        self.last = ""

    def open(self) -> None:
        pass

    def write_line(self, line: str) -> None:
        self.last = line

    def read_line(self) -> str:
        return {"tilt": "1 2 3", "ambient": "20 100000 50", "get_tach": "10"}.get(self.last, "OK")

    def close(self) -> None:
        pass


class EmptyReportBus:
    def enumerate(self, vendor_id: int, product_id: int, usage_page: int, usage: int) -> list[bytes]:
        return []

    def open(self, path: bytes):
        raise AssertionError("no device should be opened")


def _client(monkeypatch) -> Client:
    client = Client(line_transport=FakeLineTransport(), report_bus=EmptyReportBus())
    monkeypatch.setattr(client._monitor.power, "status", lambda: None)
    monkeypatch.setattr(client._monitor.automation, "device_status", lambda device_class: None)
    return client


def test_public_client_uses_packaged_config(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    client = _client(monkeypatch)
    assert isinstance(client.config, RigConfig)
    assert client.load_warnings == ()


def test_public_client_snapshot(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    with _client(monkeypatch) as client:
        snapshot = client.snapshot()

    assert isinstance(snapshot, TelemetrySnapshot)
    assert snapshot.orientation.valid
    assert snapshot.ambient.value.humidity == 50.0
    assert not snapshot.power.valid
    assert not snapshot.battery_valid


def test_public_client_run(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    seen = []
    with _client(monkeypatch) as client:
        completed = client.run(seen.append, cycles=2, delay_s=0.0)

    assert completed == 2
    assert [s.cycle for s in seen] == [0, 1]
