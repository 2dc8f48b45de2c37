"""Status client for the switched power-distribution unit."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET

import httpx

from rigwatch.core.errors import ValidationError
from rigwatch.core.model import PowerConfig, PowerStatus, RailStatus

LOGGER = logging.getLogger(__name__)

RAIL_COUNT = 5
STATUS_PATH = "status.xml"


def _node_text(root: ET.Element, name: str) -> str:
    node = root.find(name)
    if node is None or node.text is None:
        raise ValueError(f"Status document is missing <{name}>")
    return node.text.strip()


def parse_status_document(text: str, *, root_name: str, rail_names: tuple[str, ...]) -> PowerStatus:
    """Parse a status document; raises ValueError on any missing or malformed node."""
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise ValueError(f"Malformed status document: {exc}") from exc
    if root.tag != root_name:
        raise ValueError(f"Expected <{root_name}> root, got <{root.tag}>")

    supply = float(_node_text(root, "SUPPLY"))
    rails = []
    for index in range(RAIL_COUNT):
        enabled = int(_node_text(root, f"RAILENA{index}")) != 0
        load = float(_node_text(root, f"RAILLOAD{index}"))
        name = rail_names[index] if index < len(rail_names) else f"Rail {index}"
        rails.append(RailStatus(index=index, name=name, enabled=enabled, load=load))
    return PowerStatus(supply=supply, rails=tuple(rails))


class PowerDistributionClient:
    def __init__(self, config: PowerConfig, *, transport: httpx.BaseTransport | None = None) -> None:
        self.config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout_s, transport=transport)

    def status(self) -> PowerStatus | None:
        """Return the full status, or None if any part of it is unavailable."""
        try:
            response = self._client.get(STATUS_PATH)
            response.raise_for_status()
            return parse_status_document(
                response.text,
                root_name=self.config.root,
                rail_names=self.config.rail_names,
            )
        except httpx.HTTPError as exc:
            LOGGER.warning("Power distribution unit unreachable: %s", exc)
        except ValueError as exc:
            LOGGER.warning("Power distribution status unreadable: %s", exc)
        return None

    def send_command(self, command: str) -> bool:
        """Send a raw control command as the query string of the base url.

        The request is ``GET <base_url>?<command>``; the response body is ignored and only
        the HTTP status is checked. Returns False when the unit is unreachable.
        """
        try:
            query = command.encode("ascii")
        except UnicodeEncodeError:
            raise ValidationError(f"Power command must be ASCII, got {command!r}") from None
        url = httpx.URL(self.config.base_url, query=query)
        try:
            response = self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            LOGGER.warning("Power command %r failed: %s", command, exc)
            return False
        LOGGER.debug("Power command %r accepted", command)
        return True

    def close(self) -> None:
        self._client.close()
