"""HID input-report transport implementation using hidapi."""

from __future__ import annotations

from typing import Any

from rigwatch.core.errors import DeviceIOError


def _hid_module() -> Any:
    try:
        import hid  # type: ignore
    except ImportError as exc:  # pragma: no cover - import failure path
        raise DeviceIOError("HID access requires 'hidapi'. Install dependency and retry.") from exc
    return hid


class HIDReportDevice:
    def __init__(self, handle: Any, path: bytes) -> None:
        self._handle = handle
        self.path = path

    def get_input_report(self, report_id: int, length: int) -> bytes:
        if self._handle is None:
            raise DeviceIOError(f"HID device {self.path!r} is closed")
        try:
            data = self._handle.get_input_report(report_id, length)
        except (OSError, ValueError) as exc:
            raise DeviceIOError(f"Reading report 0x{report_id:02x} failed: {exc}") from exc
        if not data:
            raise DeviceIOError(f"Report 0x{report_id:02x} returned no data")
        return bytes(data)

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None


class HIDReportBus:
    def enumerate(self, vendor_id: int, product_id: int, usage_page: int, usage: int) -> list[bytes]:
        hid = _hid_module()
        try:
            infos = hid.enumerate(vendor_id, product_id)
        except OSError as exc:
            raise DeviceIOError(f"HID enumeration failed: {exc}") from exc
        return [
            info["path"]
            for info in infos
            if info.get("usage_page") == usage_page and info.get("usage") == usage
        ]

    def open(self, path: bytes) -> HIDReportDevice:
        hid = _hid_module()
        handle = hid.device()
        try:
            handle.open_path(path)
        except (OSError, ValueError) as exc:
            raise DeviceIOError(f"Could not open HID device {path!r}: {exc}") from exc
        return HIDReportDevice(handle, path)
