"""Ready-made field types that know how to marshal themselves from a token."""

import decimal
import ipaddress
import math
import re

from attrs import field

from flagbind._convert import _int
from flagbind.exceptions import CoercionError
from flagbind.utils import frozen

__all__ = [
    "Bytes",
    "HostPort",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "UInt",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
]


###########
# Integer #
###########
class _BoundedInt(int):
    min_value: int
    max_value: int

    @classmethod
    def marshal_token(cls, token: str):
        try:
            value = _int(token)
        except ValueError:
            raise CoercionError(target_type=cls) from None
        if not cls.min_value <= value <= cls.max_value:
            raise CoercionError(
                reason=f'value "{token}" out of range for {cls.__name__} ({cls.min_value}..{cls.max_value})'
            )
        return cls(value)


class Int8(_BoundedInt):
    """Signed 8-bit integer."""

    min_value = -(2**7)
    max_value = 2**7 - 1


class Int16(_BoundedInt):
    """Signed 16-bit integer."""

    min_value = -(2**15)
    max_value = 2**15 - 1


class Int32(_BoundedInt):
    """Signed 32-bit integer."""

    min_value = -(2**31)
    max_value = 2**31 - 1


class Int64(_BoundedInt):
    """Signed 64-bit integer."""

    min_value = -(2**63)
    max_value = 2**63 - 1


class UInt64(_BoundedInt):
    """Unsigned 64-bit integer."""

    min_value = 0
    max_value = 2**64 - 1


class UInt(UInt64):
    """Unsigned machine-width integer (64 bits)."""


class UInt8(_BoundedInt):
    """Unsigned 8-bit integer."""

    min_value = 0
    max_value = 2**8 - 1


class UInt16(_BoundedInt):
    """Unsigned 16-bit integer."""

    min_value = 0
    max_value = 2**16 - 1


class UInt32(_BoundedInt):
    """Unsigned 32-bit integer."""

    min_value = 0
    max_value = 2**32 - 1


#########
# Bytes #
#########
_BYTE_MULTIPLIERS = {
    "": 1,
    "b": 1,
    "k": 1000,
    "kb": 1000,
    "ki": 1024,
    "kib": 1024,
    "m": 1000**2,
    "mb": 1000**2,
    "mi": 1024**2,
    "mib": 1024**2,
    "g": 1000**3,
    "gb": 1000**3,
    "gi": 1024**3,
    "gib": 1024**3,
    "t": 1000**4,
    "tb": 1000**4,
    "ti": 1024**4,
    "tib": 1024**4,
    "p": 1000**5,
    "pb": 1000**5,
    "pi": 1024**5,
    "pib": 1024**5,
    "e": 1000**6,
    "eb": 1000**6,
    "ei": 1024**6,
    "eib": 1024**6,
}
_BYTES_RE = re.compile(r"^\s*([0-9.,]+)\s*([a-zA-Z]*)\s*$")
_SI_UNITS = ("B", "kB", "MB", "GB", "TB", "PB", "EB")


class Bytes(int):
    """A byte count given with an optional SI or IEC unit suffix.

    ``100g`` and ``100GB`` are 100·10⁹ bytes, ``1GiB`` is 2³⁰ bytes, ``1.5k`` is 1500 bytes.
    Units are case-insensitive; commas in the number are ignored.

    ``str()`` renders a human-readable SI size such as ``"100 GB"``.
    """

    @classmethod
    def marshal_token(cls, token: str) -> "Bytes":
        match = _BYTES_RE.match(token)
        if match is None:
            raise CoercionError(reason=f'invalid byte size "{token}"')
        number, unit = match.groups()
        try:
            value = decimal.Decimal(number.replace(",", ""))
            multiplier = _BYTE_MULTIPLIERS[unit.lower()]
        except (decimal.InvalidOperation, KeyError):
            raise CoercionError(reason=f'invalid byte size "{token}"') from None
        # Decimal keeps every digit of a uint64; float would round above 2**53.
        result = int(value * multiplier)
        if result >= 2**64:
            raise CoercionError(reason=f'byte size "{token}" too large')
        return cls(result)

    def __str__(self) -> str:
        size = int(self)
        if size < 10:
            return f"{size} B"
        exponent = 0
        while size >= 1000 ** (exponent + 1) and exponent < len(_SI_UNITS) - 1:
            exponent += 1
        value = math.floor(size / 1000**exponent * 10 + 0.5) / 10
        fmt = "{:.1f} {}" if value < 10 else "{:.0f} {}"
        return fmt.format(value, _SI_UNITS[exponent])

    def __repr__(self) -> str:
        return f"Bytes({int(self)})"


############
# HostPort #
############
def _validate_port(instance, attribute, value):
    if not 0 <= value <= 65535:
        raise ValueError(f"port {value} out of range (0..65535)")


@frozen
class HostPort:
    """A network address written as ``HOST:PORT``.

    IPv6 hosts are written in brackets, ``[::1]:8080``. The host may be empty
    (``:8080``) meaning "all interfaces". Always requires the ``-name=VALUE`` form.
    """

    host: str
    port: int = field(validator=_validate_port)

    @classmethod
    def from_string(cls, s: str) -> "HostPort":
        """Parse ``HOST:PORT``.

        Raises
        ------
        ValueError
            If the port is missing, non-numeric or out of range.
        """
        host, sep, port = s.rpartition(":")
        if not sep:
            raise ValueError(f'invalid address "{s}" (expected HOST:PORT)')
        if host.startswith("[") and host.endswith("]"):
            host = host[1:-1]
            try:
                ipaddress.IPv6Address(host)
            except ValueError:
                raise ValueError(f'invalid address "{s}" (bad IPv6 host)') from None
        elif ":" in host:
            raise ValueError(f'invalid address "{s}" (IPv6 hosts must be bracketed)')
        if not port.isdigit():
            raise ValueError(f'invalid address "{s}" (port must be a number)')
        return cls(host, int(port))

    @classmethod
    def marshal_token(cls, token: str) -> "HostPort":
        try:
            return cls.from_string(token)
        except ValueError as e:
            raise CoercionError(reason=str(e)) from None

    @classmethod
    def requires_explicit_value(cls) -> bool:
        return True

    def __str__(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"{host}:{self.port}"
