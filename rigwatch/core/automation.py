"""RPC client for the equipment automation software."""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from importlib import resources
from typing import Any

import httpx
from jsonschema import ValidationError, validators

from rigwatch.core.model import (
    AutomationConfig,
    CameraTemperature,
    DeviceStatus,
    FilterPosition,
    FocuserPosition,
    TelescopePosition,
)

LOGGER = logging.getLogger(__name__)

TELESCOPE = "Telescope"
CAMERA = "Camera"
FILTER_WHEEL = "FilterWheel"
FOCUSER = "Focuser"
DEVICE_CLASSES = (TELESCOPE, CAMERA, FILTER_WHEEL, FOCUSER)

# Other states: IDLE, CAPTURING, SOLVING, BUSY, MOVING, PARKED.
DISCONNECTED = "DISCONNECTED"

FILTER_MOVING = -1


@lru_cache(maxsize=None)
def _response_validator(endpoint: str) -> Any:
    schema_text = resources.files("rigwatch.schemas").joinpath("automation_responses.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)[endpoint]
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def filter_name(position: int, names: tuple[str, ...]) -> str:
    """Map a 1-based filter wheel slot to its configured filter name."""
    if position == FILTER_MOVING:
        return "[MOVING]"
    if 1 <= position <= len(names):
        return names[position - 1]
    return "ERROR"


class AutomationClient:
    """Small JSON request/response exchanges with a short timeout.

    Every call returns None on timeout, transport, or parse failure, so one slow
    or missing answer never affects the other calls in a cycle.
    """

    def __init__(self, config: AutomationConfig, *, transport: httpx.BaseTransport | None = None) -> None:
        self.config = config
        self._client = httpx.Client(
            base_url=config.base_url,
            timeout=config.timeout_s,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    def _call(self, endpoint: str, body: dict[str, Any]) -> dict[str, Any] | None:
        try:
            response = self._client.post(endpoint, json=body)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            LOGGER.debug("Automation call %s failed: %s", endpoint, exc)
            return None
        except ValueError as exc:
            LOGGER.debug("Automation call %s returned invalid JSON: %s", endpoint, exc)
            return None

        if not isinstance(payload, dict):
            LOGGER.debug("Automation call %s returned %s, expected an object", endpoint, type(payload).__name__)
            return None
        # Field names are matched case-insensitively.
        normalized = {str(key).lower(): value for key, value in payload.items()}
        try:
            _response_validator(endpoint).validate(normalized)
        except ValidationError as exc:
            LOGGER.debug("Automation call %s returned unexpected data: %s", endpoint, exc.message)
            return None
        return normalized

    def device_status(self, device_class: str) -> DeviceStatus | None:
        data = self._call("devicestatus", {"Device": device_class})
        if data is None:
            return None
        return DeviceStatus(
            success=data["success"],
            message=data.get("message") or "",
            state=data.get("state") or "",
        )

    def telescope_position(self) -> TelescopePosition | None:
        data = self._call("telescopepos", {})
        if data is None:
            return None
        return TelescopePosition(
            success=data["success"],
            message=data.get("message") or "",
            ra=float(data["ra"]),
            dec=float(data["dec"]),
        )

    def filter_position(self) -> FilterPosition | None:
        data = self._call("filterpos", {})
        if data is None:
            return None
        return FilterPosition(success=data["success"], message=data.get("message") or "", position=int(data["position"]))

    def focuser_position(self) -> FocuserPosition | None:
        data = self._call("focuserpos", {})
        if data is None:
            return None
        return FocuserPosition(success=data["success"], message=data.get("message") or "", position=int(data["position"]))

    def camera_temperature(self) -> CameraTemperature | None:
        data = self._call("cameratemp", {})
        if data is None:
            return None
        return CameraTemperature(
            success=data["success"],
            message=data.get("message") or "",
            temperature=float(data["temperature"]),
        )

    def close(self) -> None:
        self._client.close()
