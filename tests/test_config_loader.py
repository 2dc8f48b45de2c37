from __future__ import annotations

from pathlib import Path

import pytest

from rigwatch.core.config_loader import load_config
from rigwatch.core.errors import ConfigLoadError, ConfigValidationError

MINIMAL = """
serial:
  port: /dev/ttyACM0
ups:
  vendor_id: 0x0764
  product_id: 0x0501
  usage_page: 0x0084
  usage: 0x0004
power:
  base_url: http://10.0.0.5/
automation:
  base_url: http://localhost:59590/
"""


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def isolated_xdg(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
    return tmp_path / "cfg"


def test_load_packaged_config() -> None:
    loaded = load_config()
    config = loaded.config
    assert loaded.warnings == ()
    assert config.serial.baudrate == 115200
    assert config.serial.sensors == ("bno055", "bme280")
    assert config.ups.vendor_id == 0x0764
    assert config.ups.usage_page == 0x0084
    assert config.power.rail_names[0] == "LattePanda"
    assert config.automation.timeout_s == 0.05
    assert config.automation.filter_names[4] == "Ha"
    assert config.cycle.count == 100


def test_user_config_overrides_packaged(isolated_xdg: Path) -> None:
    _write(isolated_xdg / "rigwatch" / "config.yaml", MINIMAL)

    loaded = load_config()
    assert loaded.config.serial.port == "/dev/ttyACM0"
    assert loaded.config.power.base_url == "http://10.0.0.5/"
    assert loaded.config.power.rail_names == ("Rail 0", "Rail 1", "Rail 2", "Rail 3", "Rail 4")
    assert loaded.config.cycle.delay_s == 0.25
    assert any("overrides" in warning for warning in loaded.warnings)


def test_explicit_path_wins(isolated_xdg: Path, tmp_path: Path) -> None:
    _write(isolated_xdg / "rigwatch" / "config.yaml", MINIMAL)
    explicit = _write(tmp_path / "rig.yaml", MINIMAL.replace("/dev/ttyACM0", "/dev/ttyUSB3") + "cycle:\n  count: 0\n")

    loaded = load_config(explicit)
    assert loaded.config.serial.port == "/dev/ttyUSB3"
    assert loaded.config.cycle.count == 0
    assert loaded.config.source == str(explicit)
    assert loaded.warnings == ()


def test_missing_explicit_path_rejected(tmp_path: Path) -> None:
    with pytest.raises(ConfigLoadError):
        load_config(tmp_path / "nope.yaml")


def test_duplicate_yaml_keys_rejected(tmp_path: Path) -> None:
    path = _write(tmp_path / "dup.yaml", MINIMAL + "serial:\n  port: COM3\n")
    with pytest.raises(ConfigValidationError):
        load_config(path)


def test_schema_violation_rejected(tmp_path: Path) -> None:
    path = _write(tmp_path / "bad.yaml", MINIMAL.replace("http://10.0.0.5/", "ftp://10.0.0.5/"))
    with pytest.raises(ConfigValidationError) as exc:
        load_config(path)
    assert "power.base_url" in str(exc.value)


def test_non_mapping_document_rejected(tmp_path: Path) -> None:
    path = _write(tmp_path / "list.yaml", "- a\n- b\n")
    with pytest.raises(ConfigValidationError):
        load_config(path)
