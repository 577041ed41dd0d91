from dataclasses import dataclass

import pytest

import flagbind
from flagbind import CoercionError, ExplicitValueRequiredError, MissingArgumentError
from flagbind.types import Bytes, HostPort, Int8, Int64, UInt, UInt16


@pytest.mark.parametrize(
    "token, expected",
    [
        ("100g", 100 * 10**9),
        ("100GB", 100 * 10**9),
        ("1GiB", 2**30),
        ("1.5k", 1500),
        ("1.5 kB", 1500),
        ("42", 42),
        ("42B", 42),
        ("1,000", 1000),
        ("2mib", 2 * 1024**2),
        ("1e", 10**18),
        ("9007199254740993", 9007199254740993),
        ("18446744073709551615", 2**64 - 1),
        ("1.5EiB", 3 * 2**59),
    ],
)
def test_bytes_marshal(token, expected):
    value = Bytes.marshal_token(token)
    assert isinstance(value, Bytes)
    assert value == expected


@pytest.mark.parametrize("token", ["", "g", "12q", "1.2.3k", "20EiB", "18446744073709551616", "."])
def test_bytes_marshal_invalid(token):
    with pytest.raises(CoercionError):
        Bytes.marshal_token(token)


@pytest.mark.parametrize(
    "value, expected",
    [
        (0, "0 B"),
        (9, "9 B"),
        (42, "42 B"),
        (1500, "1.5 kB"),
        (100 * 10**9, "100 GB"),
        (10**6, "1.0 MB"),
        (82854982, "83 MB"),
    ],
)
def test_bytes_str(value, expected):
    assert str(Bytes(value)) == expected


def test_bytes_flag():
    @dataclass
    class Cmd:
        b: Bytes = Bytes(0)

    cmd = flagbind.parse(Cmd(), ["-b=100g"])
    assert cmd.b == 100e9

    cmd = flagbind.parse(Cmd(), ["-b", "100g"])
    assert cmd.b == 100e9


@pytest.mark.parametrize(
    "token, host, port",
    [
        ("1.2.3.4:80", "1.2.3.4", 80),
        (":443", "", 443),
        ("localhost:8080", "localhost", 8080),
        ("[::1]:22", "::1", 22),
    ],
)
def test_host_port_from_string(token, host, port):
    value = HostPort.from_string(token)
    assert value == HostPort(host, port)
    assert str(value) == token


@pytest.mark.parametrize("token", ["1.2.3.4", "host:http", "host:70000", "::1:22", "[nope]:22"])
def test_host_port_invalid(token):
    with pytest.raises(CoercionError):
        HostPort.marshal_token(token)


def test_host_port_requires_explicit_value():
    @dataclass
    class Cmd:
        addr: HostPort | None = None

    cmd = flagbind.parse(Cmd(), ["-addr=:443"])
    assert str(cmd.addr) == ":443"

    with pytest.raises(ExplicitValueRequiredError) as e:
        flagbind.parse(Cmd(), ["-addr", ":443"])
    assert str(e.value) == "explicit value required (-addr=VALUE)"


@pytest.mark.parametrize(
    "type_, token, expected",
    [
        (Int8, "-128", -128),
        (Int8, "127", 127),
        (UInt16, "0xffff", 65535),
        (Int64, "-9223372036854775808", -(2**63)),
        (UInt, "18446744073709551615", 2**64 - 1),
    ],
)
def test_bounded_int(type_, token, expected):
    value = type_.marshal_token(token)
    assert isinstance(value, type_)
    assert value == expected


@pytest.mark.parametrize(
    "type_, token",
    [
        (Int8, "128"),
        (Int8, "-129"),
        (UInt, "-1"),
        (UInt16, "65536"),
        (UInt16, "abc"),
    ],
)
def test_bounded_int_invalid(type_, token):
    with pytest.raises(CoercionError):
        type_.marshal_token(token)


def test_uint_flag():
    @dataclass
    class Cmd:
        a: UInt = UInt(0)

    with pytest.raises(MissingArgumentError):
        flagbind.parse(Cmd(), ["-a"])
    with pytest.raises(CoercionError):
        flagbind.parse(Cmd(), ["-a", "-1"])
    assert flagbind.parse(Cmd(), ["-a", "42"]).a == 42
