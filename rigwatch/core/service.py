"""Polling service that assembles one telemetry snapshot per cycle."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from concurrent.futures import Future

from rigwatch.core.automation import (
    CAMERA,
    DEVICE_CLASSES,
    DISCONNECTED,
    FILTER_WHEEL,
    FOCUSER,
    TELESCOPE,
    AutomationClient,
)
from rigwatch.core.errors import DeviceIOError, DeviceNotFoundError, RigwatchError
from rigwatch.core.model import (
    Ambient,
    BatteryFieldReading,
    EquipmentReading,
    Orientation,
    PowerStatus,
    Reading,
    RigConfig,
    TelemetrySnapshot,
)
from rigwatch.core.power import PowerDistributionClient
from rigwatch.core.report_decoder import ReportDecoder
from rigwatch.core.report_fields import UPS_FIELDS
from rigwatch.core.sensors import SensorClient
from rigwatch.transports.base import LineTransport, ReportBus
from rigwatch.transports.hid_reports import HIDReportBus
from rigwatch.transports.serial_line import SerialLineTransport

LOGGER = logging.getLogger(__name__)

SnapshotSink = Callable[[TelemetrySnapshot], None]


class RigMonitor:
    """Drives fixed-cadence polling of every telemetry source on the rig.

    Cycles run strictly one after another. Within a cycle the battery-backup
    refresh runs in the background while the serial and HTTP queries are made,
    and is joined before the snapshot is built.
    """

    def __init__(
        self,
        config: RigConfig,
        *,
        line_transport: LineTransport | None = None,
        report_bus: ReportBus | None = None,
        power_client: PowerDistributionClient | None = None,
        automation_client: AutomationClient | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self._transport = line_transport or SerialLineTransport(config.serial.port, config.serial.baudrate)
        self.sensors = SensorClient(self._transport)
        self.decoder = ReportDecoder(UPS_FIELDS, report_bus or HIDReportBus(), config.ups)
        self.power = power_client or PowerDistributionClient(config.power)
        self.automation = automation_client or AutomationClient(config.automation)
        self._sleep = sleep
        self._started = False
        self.cycles_run = 0

    def start(self) -> None:
        """Open the serial transport and initialize every sensor; failures are fatal.

        On failure every connection the monitor owns is released before re-raising.
        """
        try:
            self._transport.open()
            for sensor in self.config.serial.sensors:
                self.sensors.initialize(sensor)
        except Exception:
            self.close()
            raise
        self._started = True

    def close(self) -> None:
        self._transport.close()
        self.decoder.close()
        self.power.close()
        self.automation.close()
        self._started = False

    def __enter__(self) -> RigMonitor:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _orientation(self) -> Reading[Orientation | None]:
        ok, x, y, z = self.sensors.query_tilt()
        return Reading.ok(Orientation(x, y, z)) if ok else Reading.absent()

    def _ambient(self) -> Reading[Ambient | None]:
        ok, temperature, pressure, humidity = self.sensors.query_ambient()
        return Reading.ok(Ambient(temperature, pressure, humidity)) if ok else Reading.absent()

    def _fan_rate(self) -> Reading[float | None]:
        ok, rate = self.sensors.query_fan_rate()
        return Reading.ok(rate) if ok else Reading.absent()

    def _power(self) -> Reading[PowerStatus | None]:
        status = self.power.status()
        return Reading.ok(status) if status is not None else Reading.absent()

    def _equipment_detail(self, device_class: str) -> object | None:
        if device_class == TELESCOPE:
            return self.automation.telescope_position()
        if device_class == CAMERA:
            return self.automation.camera_temperature()
        if device_class == FILTER_WHEEL:
            return self.automation.filter_position()
        if device_class == FOCUSER:
            return self.automation.focuser_position()
        return None

    def _equipment(self) -> tuple[EquipmentReading, ...]:
        readings = []
        for device_class in DEVICE_CLASSES:
            status = self.automation.device_status(device_class)
            if status is None or not status.success:
                readings.append(
                    EquipmentReading(device_class, status=Reading.absent(status), detail=Reading.absent())
                )
                continue

            detail_reading: Reading[object | None] = Reading.absent()
            # Sub-readings are only meaningful for a connected device.
            if status.state != DISCONNECTED:
                detail = self._equipment_detail(device_class)
                if detail is not None and getattr(detail, "success", False):
                    detail_reading = Reading.ok(detail)
                else:
                    detail_reading = Reading.absent(detail)
            readings.append(EquipmentReading(device_class, status=Reading.ok(status), detail=detail_reading))
        return tuple(readings)

    def _battery(self, pending: Future[frozenset[int]]) -> tuple[BatteryFieldReading, ...]:
        try:
            pending.result()
        except (DeviceNotFoundError, DeviceIOError) as exc:
            LOGGER.warning("Battery backup query failed: %s", exc)
        return self.decoder.readings()

    def run_cycle(self) -> TelemetrySnapshot:
        if not self._started:
            raise RigwatchError("RigMonitor.start() must succeed before polling")

        started = time.monotonic()
        pending = self.decoder.refresh_async()

        orientation = self._orientation()
        ambient = self._ambient()
        fan_rate = self._fan_rate()
        power = self._power()
        equipment = self._equipment()

        battery = self._battery(pending)

        snapshot = TelemetrySnapshot(
            cycle=self.cycles_run,
            battery=battery,
            orientation=orientation,
            ambient=ambient,
            fan_rate=fan_rate,
            power=power,
            equipment=equipment,
        )
        self.cycles_run += 1
        LOGGER.debug("Cycle %d completed in %.3fs", snapshot.cycle, time.monotonic() - started)
        return snapshot

    def run(
        self,
        sink: SnapshotSink,
        *,
        cycles: int | None = None,
        delay_s: float | None = None,
    ) -> int:
        """Poll repeatedly, handing each snapshot to ``sink``.

        ``cycles`` defaults to the configured count; zero means run until
        interrupted. Returns the number of cycles completed.
        """
        limit = self.config.cycle.count if cycles is None else cycles
        delay = self.config.cycle.delay_s if delay_s is None else delay_s
        completed = 0
        while limit == 0 or completed < limit:
            sink(self.run_cycle())
            completed += 1
            if limit == 0 or completed < limit:
                self._sleep(delay)
        return completed
