"""Core data models used across config loading, clients, service, and CLI."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from rigwatch.core.report_fields import FieldValue, ReportField

T = TypeVar("T")

SENTINEL = -9999.0


@dataclass(frozen=True)
class SerialConfig:
    port: str
    baudrate: int = 115200
    sensors: tuple[str, ...] = ("bno055", "bme280")


@dataclass(frozen=True)
class UPSConfig:
    vendor_id: int
    product_id: int
    usage_page: int
    usage: int
    report_length: int = 64


@dataclass(frozen=True)
class PowerConfig:
    base_url: str
    root: str = "rr4005i"
    timeout_s: float = 2.0
    rail_names: tuple[str, ...] = ("Rail 0", "Rail 1", "Rail 2", "Rail 3", "Rail 4")


@dataclass(frozen=True)
class AutomationConfig:
    base_url: str
    timeout_s: float = 0.05
    filter_names: tuple[str, ...] = ()


@dataclass(frozen=True)
class CycleConfig:
    delay_s: float = 0.25
    count: int = 100


@dataclass(frozen=True)
class RigConfig:
    serial: SerialConfig
    ups: UPSConfig
    power: PowerConfig
    automation: AutomationConfig
    cycle: CycleConfig
    source: str = "<packaged>"


@dataclass(frozen=True)
class Reading(Generic[T]):
    """A value paired with whether it was actually obtained this cycle."""

    value: T
    valid: bool

    @classmethod
    def ok(cls, value: T) -> Reading[T]:
        return cls(value=value, valid=True)

    @classmethod
    def absent(cls, value: T = None) -> Reading[T]:  # type: ignore[assignment]
        return cls(value=value, valid=False)


@dataclass(frozen=True)
class Orientation:
    x: float
    y: float
    z: float


@dataclass(frozen=True)
class Ambient:
    temperature: float
    pressure: float
    humidity: float


@dataclass(frozen=True)
class RailStatus:
    index: int
    name: str
    enabled: bool
    load: float


@dataclass(frozen=True)
class PowerStatus:
    supply: float
    rails: tuple[RailStatus, ...]

    @property
    def total_load(self) -> float:
        return sum(rail.load for rail in self.rails)


@dataclass(frozen=True)
class DeviceStatus:
    success: bool
    message: str
    state: str


@dataclass(frozen=True)
class TelescopePosition:
    success: bool
    message: str
    ra: float
    dec: float


@dataclass(frozen=True)
class FilterPosition:
    success: bool
    message: str
    position: int


@dataclass(frozen=True)
class FocuserPosition:
    success: bool
    message: str
    position: int


@dataclass(frozen=True)
class CameraTemperature:
    success: bool
    message: str
    temperature: float


@dataclass(frozen=True)
class EquipmentReading:
    device_class: str
    status: Reading[DeviceStatus | None]
    detail: Reading[object | None]


@dataclass(frozen=True)
class BatteryFieldReading:
    field: ReportField
    value: FieldValue | None
    valid: bool

    def render(self) -> str:
        return self.field.render(self.value if self.valid else None)


@dataclass(frozen=True)
class TelemetrySnapshot:
    cycle: int
    battery: tuple[BatteryFieldReading, ...]
    orientation: Reading[Orientation | None]
    ambient: Reading[Ambient | None]
    fan_rate: Reading[float | None]
    power: Reading[PowerStatus | None]
    equipment: tuple[EquipmentReading, ...]

    @property
    def battery_valid(self) -> bool:
        return bool(self.battery) and all(reading.valid for reading in self.battery)
