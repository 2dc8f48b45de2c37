"""Stable public API for building tooling on top of rigwatch.

This module is the supported integration surface for third-party callers such
as dashboards or loggers that want snapshots without the CLI renderer.
"""

from __future__ import annotations

from pathlib import Path

from rigwatch.core.config_loader import load_config
from rigwatch.core.errors import (
    ConfigLoadError,
    ConfigValidationError,
    DeviceIOError,
    DeviceNotFoundError,
    RigwatchError,
    SensorInitError,
    TransportConnectError,
    TransportError,
    ValidationError,
)
from rigwatch.core.model import (
    Ambient,
    BatteryFieldReading,
    EquipmentReading,
    Orientation,
    PowerStatus,
    RailStatus,
    Reading,
    RigConfig,
    TelemetrySnapshot,
)
from rigwatch.core.report_fields import UPS_FIELDS, FieldKind, ReportField
from rigwatch.core.service import RigMonitor, SnapshotSink
from rigwatch.transports.base import LineTransport, ReportBus

__all__ = [
    "RigwatchError",
    "ValidationError",
    "ConfigLoadError",
    "ConfigValidationError",
    "DeviceNotFoundError",
    "DeviceIOError",
    "TransportError",
    "TransportConnectError",
    "SensorInitError",
    "Ambient",
    "BatteryFieldReading",
    "EquipmentReading",
    "Orientation",
    "PowerStatus",
    "RailStatus",
    "Reading",
    "RigConfig",
    "TelemetrySnapshot",
    "FieldKind",
    "ReportField",
    "UPS_FIELDS",
    "Client",
]


class Client:
    """Public client wrapping configuration loading and the polling service.

    Use as a context manager: entering opens the serial transport and
    initializes the sensors, leaving releases every connection.
    """

    def __init__(
        self,
        *,
        config: RigConfig | None = None,
        config_path: Path | None = None,
        line_transport: LineTransport | None = None,
        report_bus: ReportBus | None = None,
    ) -> None:
        warnings: tuple[str, ...] = ()
        if config is None:
            loaded = load_config(config_path)
            config, warnings = loaded.config, loaded.warnings
        self.config = config
        self.load_warnings = warnings
        self._monitor = RigMonitor(config, line_transport=line_transport, report_bus=report_bus)

    def __enter__(self) -> Client:
        self._monitor.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._monitor.close()

    def snapshot(self) -> TelemetrySnapshot:
        return self._monitor.run_cycle()

    def run(self, sink: SnapshotSink, *, cycles: int | None = None, delay_s: float | None = None) -> int:
        return self._monitor.run(sink, cycles=cycles, delay_s=delay_s)
