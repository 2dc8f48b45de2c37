from __future__ import annotations

import pytest

from rigwatch.core.errors import SensorInitError, TransportError
from rigwatch.core.sensors import SensorClient


class FakeLineTransport:
    def __init__(self, responses: list[str]) -> None:
        self.responses = list(responses)
        self.written: list[str] = []

    def open(self) -> None:
        pass

    def write_line(self, line: str) -> None:
        self.written.append(line)

    def read_line(self) -> str:
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def close(self) -> None:
        pass


def _ready_client(*responses: str) -> tuple[SensorClient, FakeLineTransport]:
    transport = FakeLineTransport(["OK\r\n", *responses])
    client = SensorClient(transport)
    client.initialize("bno055")
    return client, transport


def test_initialize_sends_init_command() -> None:
    client, transport = _ready_client()
    assert client.ready
    assert transport.written == ["init_bno055"]


@pytest.mark.parametrize("response", ["ok", "ERR", "", "OK OK"])
def test_initialize_requires_exact_ok(response: str) -> None:
    client = SensorClient(FakeLineTransport([response]))
    with pytest.raises(SensorInitError):
        client.initialize("bme280")
    assert not client.ready


def test_query_before_initialize_is_rejected() -> None:
    client = SensorClient(FakeLineTransport(["1 2 3"]))
    with pytest.raises(SensorInitError):
        client.query_tilt()


def test_tilt_query() -> None:
    client, transport = _ready_client(" 1.5 -2.25 359.0\n")
    assert client.query_tilt() == (True, 1.5, -2.25, 359.0)
    assert transport.written[-1] == "tilt"


def test_tilt_with_wrong_token_count_is_soft_failure() -> None:
    client, _ = _ready_client("1.0 2.0")
    assert client.query_tilt() == (False, -9999, -9999, -9999)


def test_ambient_with_unparseable_token_is_soft_failure() -> None:
    client, transport = _ready_client("21.5 abc 40.0", "21.5 101325 40.0")
    assert client.query_ambient() == (False, -9999, -9999, -9999)
    # transport stays usable for the next query
    assert client.query_ambient() == (True, 21.5, 101325.0, 40.0)
    assert transport.written[-2:] == ["ambient", "ambient"]


def test_tokens_are_separated_by_single_spaces() -> None:
    client, _ = _ready_client("1.0  2.0 3.0")
    ok, *_ = client.query_tilt()
    assert ok is False


def test_fan_rate_query() -> None:
    client, transport = _ready_client("87")
    assert client.query_fan_rate() == (True, 87.0)
    assert transport.written[-1] == "get_tach"


def test_fan_rate_with_extra_tokens_fails_softly() -> None:
    client, _ = _ready_client("87 12")
    assert client.query_fan_rate() == (False, -9999)


def test_transport_error_during_query_fails_softly() -> None:
    client, _ = _ready_client(TransportError("port vanished"))
    assert client.query_tilt() == (False, -9999, -9999, -9999)


@pytest.mark.parametrize("token", ["1_000", "nan", "inf", "-Infinity", "0x10", "1e", "\u0661\u0662"])
def test_non_decimal_tokens_are_soft_failures(token: str) -> None:
    client, _ = _ready_client(token)
    assert client.query_fan_rate() == (False, -9999)


@pytest.mark.parametrize(("token", "expected"), [("-12", -12.0), ("+.5", 0.5), ("3.", 3.0), ("1.5e3", 1500.0)])
def test_plain_decimal_tokens_parse(token: str, expected: float) -> None:
    client, _ = _ready_client(token)
    assert client.query_fan_rate() == (True, expected)
