"""Rig configuration loading and validation."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from rigwatch.core.errors import ConfigLoadError, ConfigValidationError
from rigwatch.core.model import (
    AutomationConfig,
    CycleConfig,
    PowerConfig,
    RigConfig,
    SerialConfig,
    UPSConfig,
)

LOGGER = logging.getLogger(__name__)
CONFIG_FILENAME = "config.yaml"


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys."""


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise ConfigValidationError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


@dataclass(frozen=True)
class LoadedConfig:
    config: RigConfig
    warnings: tuple[str, ...]


def _load_schema_validator() -> Any:
    schema_text = resources.files("rigwatch.schemas").joinpath("config.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def user_config_path() -> Path:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return xdg_config / "rigwatch" / CONFIG_FILENAME


def _packaged_config_path() -> Traversable:
    return resources.files("rigwatch.config").joinpath("default.yaml")


def _read_yaml(path: Path | Traversable) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigLoadError(f"Could not read config file {path}: {exc}") from exc

    try:
        loaded = yaml.load(content, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise ConfigValidationError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ConfigValidationError(f"Config file {path} must contain a mapping at root")
    return loaded


def build_config(doc: dict[str, Any], source: Path | Traversable | str) -> RigConfig:
    validator = _load_schema_validator()
    try:
        validator.validate(doc)
    except ValidationError as exc:
        path = ".".join(str(p) for p in exc.path)
        where = f" ({path})" if path else ""
        raise ConfigValidationError(f"Schema validation failed for {source}{where}: {exc.message}") from exc

    serial_doc = doc["serial"]
    ups_doc = doc["ups"]
    power_doc = doc["power"]
    automation_doc = doc["automation"]
    cycle_doc = doc.get("cycle", {})

    return RigConfig(
        serial=SerialConfig(
            port=serial_doc["port"],
            baudrate=int(serial_doc.get("baudrate", 115200)),
            sensors=tuple(serial_doc.get("sensors", ("bno055", "bme280"))),
        ),
        ups=UPSConfig(
            vendor_id=int(ups_doc["vendor_id"]),
            product_id=int(ups_doc["product_id"]),
            usage_page=int(ups_doc["usage_page"]),
            usage=int(ups_doc["usage"]),
            report_length=int(ups_doc.get("report_length", 64)),
        ),
        power=PowerConfig(
            base_url=power_doc["base_url"],
            root=power_doc.get("root", "rr4005i"),
            timeout_s=float(power_doc.get("timeout_s", 2.0)),
            rail_names=tuple(power_doc.get("rail_names", [f"Rail {i}" for i in range(5)])),
        ),
        automation=AutomationConfig(
            base_url=automation_doc["base_url"],
            timeout_s=float(automation_doc.get("timeout_s", 0.05)),
            filter_names=tuple(automation_doc.get("filter_names", ())),
        ),
        cycle=CycleConfig(
            delay_s=float(cycle_doc.get("delay_s", 0.25)),
            count=int(cycle_doc.get("count", 100)),
        ),
        source=str(source),
    )


def load_config(path: Path | None = None) -> LoadedConfig:
    """Resolve the rig configuration.

    An explicit ``path`` wins, then the user config file, then the packaged
    default. The chosen document is used whole; documents are not merged.
    """
    warnings: list[str] = []

    if path is not None:
        if not path.is_file():
            raise ConfigLoadError(f"Config file {path} does not exist")
        source: Path | Traversable = path
    elif user_config_path().is_file():
        source = user_config_path()
        warning = f"User config {source} overrides packaged defaults"
        LOGGER.info(warning)
        warnings.append(warning)
    else:
        source = _packaged_config_path()

    config = build_config(_read_yaml(source), source)
    return LoadedConfig(config=config, warnings=tuple(warnings))
