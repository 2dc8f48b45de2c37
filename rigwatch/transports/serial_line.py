"""Line-oriented serial transport implementation using pyserial."""

from __future__ import annotations

import serial

from rigwatch.core.errors import TransportConnectError, TransportError


class SerialLineTransport:
    """Newline-terminated ASCII exchange over a serial port.

    Reads block without a timeout; a device that stops answering stalls the caller.
    """

    def __init__(self, port: str, baudrate: int = 115200) -> None:
        self.port = port
        self.baudrate = baudrate
        self._serial: serial.Serial | None = None

    def open(self) -> None:
        try:
            conn = serial.Serial(
                port=self.port,
                baudrate=self.baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=None,
                xonxoff=False,
                rtscts=False,
            )
        except (serial.SerialException, OSError, ValueError) as exc:
            raise TransportConnectError(f"Could not open serial port {self.port}: {exc}") from exc
        conn.rts = True
        self._serial = conn

    def _require_open(self) -> serial.Serial:
        if self._serial is None or not self._serial.is_open:
            raise TransportError(f"Serial port {self.port} is not open")
        return self._serial

    def write_line(self, line: str) -> None:
        conn = self._require_open()
        try:
            conn.write(f"{line}\n".encode("ascii"))
        except (serial.SerialException, OSError) as exc:
            raise TransportError(f"Serial write to {self.port} failed: {exc}") from exc

    def read_line(self) -> str:
        conn = self._require_open()
        try:
            data = conn.readline()
        except (serial.SerialException, OSError) as exc:
            raise TransportError(f"Serial read from {self.port} failed: {exc}") from exc
        return data.decode("ascii", errors="replace")

    def close(self) -> None:
        if self._serial is not None:
            self._serial.close()
            self._serial = None
