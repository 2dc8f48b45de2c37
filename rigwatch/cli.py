"""Typer CLI entrypoint."""

from __future__ import annotations

import logging
from pathlib import Path

import typer

from rigwatch.core.automation import DISCONNECTED, FILTER_WHEEL, filter_name
from rigwatch.core.config_loader import LoadedConfig, load_config
from rigwatch.core.errors import RigwatchError
from rigwatch.core.model import (
    CameraTemperature,
    EquipmentReading,
    FilterPosition,
    FocuserPosition,
    RigConfig,
    TelemetrySnapshot,
    TelescopePosition,
)
from rigwatch.core.report_fields import UPS_FIELDS, FieldKind
from rigwatch.core.service import RigMonitor, SnapshotSink

app = typer.Typer(help="Consolidated telemetry polling for an automated equipment rig")

UNAVAILABLE = "unavailable"

ConfigOption = typer.Option(None, "--config", help="Path to a rig configuration YAML file")
VerboseOption = typer.Option(False, "--verbose", "-v", help="Enable debug logging")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )


def _load(config_path: Path | None) -> LoadedConfig:
    loaded = load_config(config_path)
    for warning in loaded.warnings:
        typer.echo(f"Warning: {warning}", err=True)
    return loaded


def _equipment_lines(reading: EquipmentReading, filter_names: tuple[str, ...]) -> list[str]:
    status = reading.status
    if not status.valid or status.value is None:
        return [f"{reading.device_class}: {UNAVAILABLE}"]

    lines = [f"{reading.device_class}: {status.value.message or status.value.state}"]
    if status.value.state == DISCONNECTED:
        return lines
    detail = reading.detail
    if not detail.valid:
        lines.append(f"  position/temperature: {UNAVAILABLE}")
    elif isinstance(detail.value, TelescopePosition):
        lines.append(f"  position: {detail.value.ra:.2f} RA / {detail.value.dec:.2f} DEC")
    elif isinstance(detail.value, CameraTemperature):
        lines.append(f"  temperature: {detail.value.temperature:.1f}°C")
    elif isinstance(detail.value, FilterPosition) and reading.device_class == FILTER_WHEEL:
        lines.append(f"  position: {filter_name(detail.value.position, filter_names)}")
    elif isinstance(detail.value, FocuserPosition):
        lines.append(f"  position: {detail.value.position}")
    return lines


def render_snapshot(snapshot: TelemetrySnapshot, config: RigConfig) -> list[str]:
    lines = [f"== Cycle {snapshot.cycle} =="]

    lines.append("-- Battery Backup --")
    if not any(reading.valid for reading in snapshot.battery):
        lines.append(f"Battery backup: {UNAVAILABLE}")
    else:
        lines.extend(f"{reading.field.label}: {reading.render()}" for reading in snapshot.battery)

    lines.append("-- Ambient --")
    if snapshot.ambient.valid and snapshot.ambient.value is not None:
        ambient = snapshot.ambient.value
        lines.append(f"Temperature: {ambient.temperature:.2f}°C")
        lines.append(f"Pressure: {ambient.pressure:.2f} Pa")
        lines.append(f"Humidity: {ambient.humidity:.2f}%")
    else:
        lines.append(f"Ambient: {UNAVAILABLE}")

    lines.append("-- Tilt --")
    if snapshot.orientation.valid and snapshot.orientation.value is not None:
        tilt = snapshot.orientation.value
        lines.append(f"X: {tilt.x:.2f}° Y: {tilt.y:.2f}° Z: {tilt.z:.2f}°")
    else:
        lines.append(f"Tilt: {UNAVAILABLE}")

    lines.append("-- Fan --")
    if snapshot.fan_rate.valid and snapshot.fan_rate.value is not None:
        lines.append(f"Fan rate: {snapshot.fan_rate.value:.0f}%")
    else:
        lines.append(f"Fan rate: {UNAVAILABLE}")

    lines.append("-- Equipment --")
    for reading in snapshot.equipment:
        lines.extend(_equipment_lines(reading, config.automation.filter_names))

    lines.append("-- Power --")
    if snapshot.power.valid and snapshot.power.value is not None:
        power = snapshot.power.value
        lines.append(f"Main supply: {power.supply:.2f}V (total load {power.total_load:.2f}A)")
        for rail in power.rails:
            state = f"ON {rail.load:.2f}A" if rail.enabled else "OFF"
            lines.append(f"  {rail.name}: {state}")
    else:
        lines.append(f"Power distribution: {UNAVAILABLE}")
    return lines


def _echo_snapshot(config: RigConfig) -> SnapshotSink:
    def _sink(snapshot: TelemetrySnapshot) -> None:
        for line in render_snapshot(snapshot, config):
            typer.echo(line)
        typer.echo("")

    return _sink


@app.command("run")
def run_loop(
    cycles: int | None = typer.Option(None, "--cycles", min=0, help="Cycles to run; 0 runs until interrupted"),
    delay: float | None = typer.Option(None, "--delay", min=0.0, help="Seconds between cycles"),
    config: Path | None = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Poll every source at a fixed cadence and print each snapshot."""
    _configure_logging(verbose)
    try:
        loaded = _load(config)
        with RigMonitor(loaded.config) as monitor:
            monitor.run(_echo_snapshot(loaded.config), cycles=cycles, delay_s=delay)
    except KeyboardInterrupt:
        typer.echo("Interrupted", err=True)
    except RigwatchError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("snapshot")
def snapshot(
    config: Path | None = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Run a single polling cycle and print it."""
    _configure_logging(verbose)
    try:
        loaded = _load(config)
        with RigMonitor(loaded.config) as monitor:
            _echo_snapshot(loaded.config)(monitor.run_cycle())
    except RigwatchError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("config")
def show_config(config: Path | None = ConfigOption) -> None:
    """Show the resolved rig configuration."""
    try:
        rig = _load(config).config
    except RigwatchError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None

    typer.echo(f"Source: {rig.source}")
    typer.echo(f"Serial: {rig.serial.port} @ {rig.serial.baudrate} sensors={', '.join(rig.serial.sensors)}")
    typer.echo(
        f"UPS: vendor=0x{rig.ups.vendor_id:04x} product=0x{rig.ups.product_id:04x} "
        f"usage=0x{rig.ups.usage_page:04x}/0x{rig.ups.usage:04x}"
    )
    typer.echo(f"Power: {rig.power.base_url} timeout={rig.power.timeout_s}s")
    typer.echo(f"Automation: {rig.automation.base_url} timeout={rig.automation.timeout_s}s")
    count = "unbounded" if rig.cycle.count == 0 else str(rig.cycle.count)
    typer.echo(f"Cycle: every {rig.cycle.delay_s}s, {count} cycles")


@app.command("fields")
def list_fields() -> None:
    """List the battery-backup report field table."""
    for field in sorted(UPS_FIELDS, key=lambda f: f.sort_key):
        kind = field.kind.value if field.kind is FieldKind.BOOL else f"int{field.bit_size}"
        units = f" [{field.units}]" if field.units else ""
        typer.echo(f"0x{field.report_id:02x} @{field.bit_offset:<3} {kind:<6} {field.label}{units}")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
