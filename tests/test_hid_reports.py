from __future__ import annotations

import sys
import types

import pytest

from rigwatch.core.errors import DeviceIOError
from rigwatch.transports.hid_reports import HIDReportBus


class FakeHandle:
    def __init__(self) -> None:
        self.opened: bytes | None = None
        self.closed = False

    def open_path(self, path: bytes) -> None:
        if path == b"busy":
            raise OSError("open failed")
        self.opened = path

    def get_input_report(self, report_id: int, length: int) -> list[int]:
        if report_id == 0x0C:
            raise OSError("read error")
        if report_id == 0x0D:
            return []
        return [report_id, 42]

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_hid(monkeypatch: pytest.MonkeyPatch) -> types.SimpleNamespace:
    handles: list[FakeHandle] = []

    def device() -> FakeHandle:
        handles.append(FakeHandle())
        return handles[-1]

    def enumerate(vendor_id: int, product_id: int) -> list[dict]:
        return [
            {"path": b"keyboard", "usage_page": 0x0001, "usage": 0x0006},
            {"path": b"ups", "usage_page": 0x0084, "usage": 0x0004},
        ]

    module = types.SimpleNamespace(device=device, enumerate=enumerate, handles=handles)
    monkeypatch.setitem(sys.modules, "hid", module)
    return module


def test_enumerate_filters_on_usage(fake_hid: types.SimpleNamespace) -> None:
    assert HIDReportBus().enumerate(0x0764, 0x0501, 0x0084, 0x0004) == [b"ups"]


def test_report_read_and_close(fake_hid: types.SimpleNamespace) -> None:
    device = HIDReportBus().open(b"ups")
    assert device.get_input_report(0x08, 64) == bytes([0x08, 42])

    with pytest.raises(DeviceIOError):
        device.get_input_report(0x0C, 64)
    with pytest.raises(DeviceIOError):
        device.get_input_report(0x0D, 64)

    device.close()
    assert fake_hid.handles[0].closed
    with pytest.raises(DeviceIOError):
        device.get_input_report(0x08, 64)


def test_open_failure_is_device_io_error(fake_hid: types.SimpleNamespace) -> None:
    with pytest.raises(DeviceIOError):
        HIDReportBus().open(b"busy")
