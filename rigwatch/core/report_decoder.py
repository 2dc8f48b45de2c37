"""Fetches binary device reports and decodes the descriptors they carry."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from itertools import groupby

from rigwatch.core.errors import DeviceIOError, DeviceNotFoundError, RigwatchError
from rigwatch.core.model import BatteryFieldReading, UPSConfig
from rigwatch.core.report_fields import FieldValue, ReportField, sort_fields
from rigwatch.transports.base import ReportBus, ReportDevice

LOGGER = logging.getLogger(__name__)


class ReportDecoder:
    """Holds a device's descriptor set and the last value decoded for each one.

    A refresh fetches every distinct report id once and decodes all descriptors
    sharing it from the same buffer. Refreshes are not transactional: when a
    fetch fails part way, descriptors of report ids already fetched keep their
    new values and the rest keep whatever they held before.
    """

    def __init__(
        self,
        fields: Iterable[ReportField],
        bus: ReportBus,
        config: UPSConfig,
        *,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        self.fields = sort_fields(fields)
        self.config = config
        self._bus = bus
        self._values: dict[ReportField, FieldValue | None] = {field: None for field in self.fields}
        self._fresh_reports: set[int] = set()
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="report-refresh")
        self._owns_executor = executor is None
        self._pending: Future[frozenset[int]] | None = None

    @property
    def report_ids(self) -> tuple[int, ...]:
        return tuple(report_id for report_id, _ in self.groups())

    def groups(self) -> list[tuple[int, tuple[ReportField, ...]]]:
        return [(report_id, tuple(group)) for report_id, group in groupby(self.fields, key=lambda f: f.report_id)]

    def value(self, field: ReportField) -> FieldValue | None:
        return self._values[field]

    def values(self) -> dict[str, FieldValue | None]:
        return {field.label: self._values[field] for field in self.fields}

    def is_fresh(self, field: ReportField) -> bool:
        """True when the field's report was fetched by the most recent refresh."""
        return field.report_id in self._fresh_reports

    def readings(self) -> tuple[BatteryFieldReading, ...]:
        return tuple(
            BatteryFieldReading(field=field, value=self._values[field], valid=self.is_fresh(field))
            for field in self.fields
        )

    def _open_device(self) -> ReportDevice:
        cfg = self.config
        paths = self._bus.enumerate(cfg.vendor_id, cfg.product_id, cfg.usage_page, cfg.usage)
        if not paths:
            raise DeviceNotFoundError(
                f"No device found for vendor 0x{cfg.vendor_id:04x} product 0x{cfg.product_id:04x} "
                f"usage 0x{cfg.usage_page:04x}/0x{cfg.usage:04x}"
            )
        if len(paths) > 1:
            LOGGER.debug("%d matching report devices; using the first", len(paths))
        device = self._bus.open(paths[0])
        if device is None:
            raise DeviceIOError(f"Device {paths[0]!r} could not be opened")
        return device

    def refresh(self) -> frozenset[int]:
        """Fetch and decode every report once; return the report ids fetched."""
        self._fresh_reports = set()
        device = self._open_device()
        try:
            for report_id, group in self.groups():
                report = device.get_input_report(report_id, self.config.report_length)
                decoded = [(field, field.decode(report)) for field in group]
                for field, value in decoded:
                    self._values[field] = value
                self._fresh_reports.add(report_id)
        finally:
            device.close()
        return frozenset(self._fresh_reports)

    def refresh_async(self) -> Future[frozenset[int]]:
        """Start a refresh in the background.

        Each call returns a new future that completes exactly once; the caller
        must wait on it before reading values for the current cycle.
        """
        if self._pending is not None and not self._pending.done():
            raise RigwatchError("A report refresh is already in progress")
        self._pending = self._executor.submit(self.refresh)
        return self._pending

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=True)
