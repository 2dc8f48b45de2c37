"""Command/response client for the serial environmental and orientation sensors."""

from __future__ import annotations

import logging
import re

from rigwatch.core.errors import SensorInitError, TransportError
from rigwatch.core.model import SENTINEL
from rigwatch.transports.base import LineTransport

LOGGER = logging.getLogger(__name__)

TILT_COMMAND = "tilt"
AMBIENT_COMMAND = "ambient"
FAN_COMMAND = "get_tach"
ACK = "OK"

_NUMBER_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


class SensorClient:
    """Issues queries over a persistent line transport.

    The client starts uninitialized and becomes ready once a sensor
    acknowledges its ``init_<sensor>`` command. Malformed responses are soft
    failures: the query reports ``False`` with sentinel outputs and the
    transport stays usable.
    """

    def __init__(self, transport: LineTransport) -> None:
        self._transport = transport
        self._ready = False
        self.initialized: list[str] = []

    @property
    def ready(self) -> bool:
        return self._ready

    def initialize(self, sensor: str) -> None:
        command = f"init_{sensor}"
        self._transport.write_line(command)
        response = self._transport.read_line().strip()
        if response != ACK:
            raise SensorInitError(f"Sensor '{sensor}' did not acknowledge {command!r} (got {response!r})")
        self._ready = True
        self.initialized.append(sensor)
        LOGGER.debug("Initialized sensor %s", sensor)

    def query(self, command: str, count: int) -> tuple[bool, tuple[float, ...]]:
        if not self._ready:
            raise SensorInitError(f"Cannot send {command!r}: no sensor has been initialized")

        sentinels = (SENTINEL,) * count
        try:
            self._transport.write_line(command)
            response = self._transport.read_line().strip()
        except TransportError as exc:
            LOGGER.warning("Serial query %r failed: %s", command, exc)
            return False, sentinels

        tokens = response.split(" ")
        if len(tokens) != count:
            LOGGER.warning("Serial query %r expected %d values, got %r", command, count, response)
            return False, sentinels
        if not all(_NUMBER_RE.fullmatch(token) for token in tokens):
            LOGGER.warning("Serial query %r returned non-numeric data %r", command, response)
            return False, sentinels
        return True, tuple(float(token) for token in tokens)

    def query_tilt(self) -> tuple[bool, float, float, float]:
        ok, (x, y, z) = self.query(TILT_COMMAND, 3)
        return ok, x, y, z

    def query_ambient(self) -> tuple[bool, float, float, float]:
        ok, (temperature, pressure, humidity) = self.query(AMBIENT_COMMAND, 3)
        return ok, temperature, pressure, humidity

    def query_fan_rate(self) -> tuple[bool, float]:
        ok, (rate,) = self.query(FAN_COMMAND, 1)
        return ok, rate
