"""Bit-packed field descriptors for binary device reports.

Every report returned by the device starts with a one-byte report id header,
so field offsets are counted from the byte after it.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from rigwatch.core.errors import DeviceIOError, ValidationError

_REPORT_HEADER_BYTES = 1
_MAX_UINT16 = 0xFFFF
_MAX_INT_BITS = 32


class FieldKind(str, Enum):
    BOOL = "bool"
    INT = "int"


FieldValue = bool | int


@dataclass(frozen=True)
class ReportField:
    """Location and meaning of one field inside a report.

    Bool fields are single bits. Int fields are byte-aligned, whole bytes wide,
    at most 32 bits, and stored little-endian.
    """

    report_id: int
    bit_offset: int
    bit_size: int
    label: str
    kind: FieldKind
    units: str = ""

    def __post_init__(self) -> None:
        for name in ("report_id", "bit_offset", "bit_size"):
            value = getattr(self, name)
            if not 0 <= value <= _MAX_UINT16:
                raise ValidationError(f"{self.label}: {name} must fit in 16 bits, got {value}")

        try:
            object.__setattr__(self, "kind", FieldKind(self.kind))
        except ValueError:
            raise ValidationError(f"{self.label}: unknown field kind {self.kind!r}") from None

        if self.kind is FieldKind.BOOL:
            if self.bit_size != 1:
                raise ValidationError(
                    f"{self.label}: bool field cannot be made with a size other than 1 (got {self.bit_size})"
                )
            if self.units:
                raise ValidationError(f"{self.label}: bool field does not carry units")
        elif self.kind is FieldKind.INT:
            if self.bit_offset % 8 != 0:
                raise ValidationError(f"{self.label}: int field must have a byte-aligned offset")
            if self.bit_size % 8 != 0:
                raise ValidationError(f"{self.label}: int field must have a byte-aligned size")
            if not 1 <= self.bit_size <= _MAX_INT_BITS:
                raise ValidationError(f"{self.label}: int field cannot be larger than 4 bytes")

    @property
    def sort_key(self) -> tuple[int, int]:
        return self.report_id, self.bit_offset

    @property
    def required_length(self) -> int:
        """Minimum report length, header included, that covers this field."""
        return _REPORT_HEADER_BYTES + (self.bit_offset + self.bit_size + 7) // 8

    def decode(self, report: bytes) -> FieldValue:
        if len(report) < self.required_length:
            raise DeviceIOError(
                f"Report 0x{self.report_id:02x} is {len(report)} bytes; "
                f"'{self.label}' needs {self.required_length}"
            )

        if self.kind is FieldKind.BOOL:
            byte_index = self.bit_offset // 8 + _REPORT_HEADER_BYTES
            mask = 1 << (self.bit_offset % 8)
            return (report[byte_index] & mask) != 0

        start = self.bit_offset // 8 + _REPORT_HEADER_BYTES
        end = start + self.bit_size // 8
        return int.from_bytes(report[start:end], "little")

    def render(self, value: FieldValue | None) -> str:
        if value is None:
            return "unavailable"
        if self.kind is FieldKind.BOOL:
            return "true" if value else "false"
        return f"{int(value)}{self.units}"


def bool_field(report_id: int, bit_offset: int, label: str) -> ReportField:
    return ReportField(report_id, bit_offset, 1, label, FieldKind.BOOL)


def int_field(report_id: int, bit_offset: int, bit_size: int, label: str, units: str = "") -> ReportField:
    return ReportField(report_id, bit_offset, bit_size, label, FieldKind.INT, units)


def sort_fields(fields: Iterable[ReportField]) -> tuple[ReportField, ...]:
    """Order descriptors by (report id, bit offset); duplicates are rejected."""
    ordered = tuple(sorted(fields, key=lambda f: f.sort_key))
    for previous, current in zip(ordered, ordered[1:]):
        if previous.sort_key == current.sort_key:
            raise ValidationError(
                f"Fields '{previous.label}' and '{current.label}' share report 0x{current.report_id:02x} "
                f"offset {current.bit_offset}"
            )
    return ordered


# Power summary (0x08, 0x0b, 0x0c) and input (0x10) groups of a line-interactive UPS.
UPS_FIELDS: tuple[ReportField, ...] = (
    int_field(0x08, 0, 8, "Remaining Capacity", "%"),
    int_field(0x08, 8, 16, "Run Time To Empty", "s"),
    int_field(0x08, 24, 16, "Remaining Time Limit", "s"),
    bool_field(0x0B, 0, "A/C Present"),
    bool_field(0x0B, 1, "Charging"),
    bool_field(0x0B, 2, "Discharging"),
    bool_field(0x0B, 3, "Below Remaining Capacity Limit"),
    bool_field(0x0B, 4, "Fully Charged"),
    bool_field(0x0B, 5, "Remaining Time Limit Expired"),
    int_field(0x0C, 0, 8, "Audible Alarm Control", ""),
    int_field(0x10, 0, 16, "Low Voltage Transfer", "VAC"),
    int_field(0x10, 16, 16, "High Voltage Transfer", "VAC"),
)
