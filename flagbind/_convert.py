import functools
import ipaddress
import re
from collections.abc import Callable
from datetime import date, datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Any
from urllib.parse import ParseResult, urlparse

from flagbind.exceptions import CoercionError


def domain_errors(func: Callable[[str], Any]) -> Callable[[str], Any]:
    """Report a converter's :exc:`ValueError` text verbatim instead of a generic message."""

    @functools.wraps(func)
    def wrapper(s: str) -> Any:
        try:
            return func(s)
        except CoercionError:
            raise
        except ValueError as e:
            raise CoercionError(reason=str(e) or None) from None
        except OverflowError:
            raise CoercionError(reason=f'"{s}" out of range') from None

    return wrapper


def _bool(s: str) -> bool:
    s = s.lower()
    if s in {"no", "n", "0", "false", "f"}:
        return False
    elif s in {"yes", "y", "1", "true", "t"}:
        return True
    else:
        # Conservative when coercing strings into boolean.
        raise CoercionError(target_type=bool)


def _int(s: str) -> int:
    s = s.lower().strip()
    sign = 1
    if s[:1] in ("-", "+"):
        sign = -1 if s[0] == "-" else 1
        s = s[1:]
    if s.startswith("0x"):
        return sign * int(s[2:], 16)
    elif s.startswith("0o"):
        return sign * int(s[2:], 8)
    elif s.startswith("0b"):
        return sign * int(s[2:], 2)
    else:
        return sign * int(s, 10)


def _float(s: str) -> float:
    return float(s.strip())


def _bytes(s: str) -> bytes:
    return bytes(s, encoding="utf8")


def get_enum_member(type_: type[Enum], s: str) -> Enum:
    """Match a token to an enum member name; case, ``-`` and ``_`` insensitive."""

    def normalize(name: str) -> str:
        return name.lower().replace("-", "_")

    value = normalize(s)
    for name, member in type_.__members__.items():
        if normalize(name) == value:
            return member
    choices = ", ".join(type_.__members__)
    raise CoercionError(reason=f'invalid choice "{s}" (choose from {choices})')


# Primitive kinds; the last resort before giving up on a type.
PRIMITIVE_CONVERTERS: dict[Any, Callable[[str], Any]] = {
    bool: _bool,
    int: _int,
    float: _float,
    str: str,
    bytes: _bytes,
}


_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
    "w": 604800,
}
_DURATION_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h|d|w)")


@domain_errors
def _timedelta(s: str) -> timedelta:
    """Parse a duration such as ``1h30m``, ``250ms``, ``-1.5s`` or ``2d``."""
    original = s
    negative = False
    if s[:1] in ("-", "+"):
        negative = s[0] == "-"
        s = s[1:]

    if s == "0":
        return timedelta()

    seconds = 0.0
    position = 0
    for match in _DURATION_RE.finditer(s):
        if match.start() != position:
            break
        value, unit = match.groups()
        seconds += float(value) * _DURATION_UNITS[unit]
        position = match.end()

    if not s or position != len(s):
        raise ValueError(f'invalid duration "{original}"')

    if negative:
        seconds = -seconds
    try:
        return timedelta(seconds=seconds)
    except OverflowError:
        raise ValueError(f'duration "{original}" out of range') from None


@domain_errors
def _date(s: str) -> date:
    try:
        return date.fromisoformat(s)
    except ValueError:
        raise ValueError(f'invalid date "{s}" (expected YYYY-MM-DD)') from None


@domain_errors
def _datetime(s: str) -> datetime:
    formats = [
        # ISO 8601 formats (unambiguous internationally)
        "%Y-%m-%d",  # 1956-01-31
        "%Y-%m-%dT%H:%M:%S",  # 1956-01-31T10:00:00
        "%Y-%m-%d %H:%M:%S",  # 1956-01-31 10:00:00
        "%Y-%m-%dT%H:%M:%S%z",  # 1956-01-31T10:00:00+0000
        "%Y-%m-%dT%H:%M:%S.%f",  # 1956-01-31T10:00:00.123456
        "%Y-%m-%dT%H:%M:%S.%f%z",  # 1956-01-31T10:00:00.123456+0000
    ]

    for fmt in formats:
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            continue

    raise ValueError(f'invalid datetime "{s}" (expected ISO 8601)')


def _path(s: str) -> Path:
    return Path(s)


@domain_errors
def _url(s: str) -> ParseResult:
    result = urlparse(s)
    if not result.scheme or not result.netloc:
        raise ValueError(f'invalid URL "{s}" (expected SCHEME://HOST[/PATH])')
    return result


def _ip(type_):
    @domain_errors
    def convert(s: str):
        return type_(s)

    convert.__name__ = f"_{type_.__name__.lower()}"
    return convert


# Registered domain converters: ``type -> (converter, requires_explicit_value)``.
DEFAULT_CONVERTERS: dict[Any, tuple[Callable[[str], Any], bool]] = {
    timedelta: (_timedelta, False),
    date: (_date, False),
    datetime: (_datetime, False),
    Path: (_path, False),
    ParseResult: (_url, False),
    ipaddress.IPv4Address: (_ip(ipaddress.IPv4Address), False),
    ipaddress.IPv6Address: (_ip(ipaddress.IPv6Address), False),
    ipaddress.IPv4Network: (_ip(ipaddress.IPv4Network), False),
    ipaddress.IPv6Network: (_ip(ipaddress.IPv6Network), False),
}
