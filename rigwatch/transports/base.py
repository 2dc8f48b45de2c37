"""Transport interfaces."""

from __future__ import annotations

from typing import Protocol


class LineTransport(Protocol):
    def open(self) -> None:
        """Open the underlying connection."""

    def write_line(self, line: str) -> None:
        """Write one newline-terminated command."""

    def read_line(self) -> str:
        """Block until one line is received and return it undecorated."""

    def close(self) -> None:
        """Release the underlying connection."""


class ReportDevice(Protocol):
    def get_input_report(self, report_id: int, length: int) -> bytes:
        """Fetch one raw input report, report id header included."""

    def close(self) -> None:
        """Release the device handle."""


class ReportBus(Protocol):
    def enumerate(self, vendor_id: int, product_id: int, usage_page: int, usage: int) -> list[bytes]:
        """Return the paths of devices matching all four identifiers."""

    def open(self, path: bytes) -> ReportDevice:
        """Open the device at ``path``."""
