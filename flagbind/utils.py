"""To prevent circular dependencies, this module should never import anything else from flagbind."""

import functools
import inspect
import re
import shlex
import sys
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, Literal

# https://threeofwands.com/attra-iv-zero-overhead-frozen-attrs-classes/
if TYPE_CHECKING:
    from attrs import frozen
    from rich.console import Console
else:
    from attrs import define

    frozen = functools.partial(define, unsafe_hash=True)


class SentinelMeta(type):
    def __repr__(cls) -> str:
        return f"<{cls.__name__}>"

    def __bool__(cls) -> Literal[False]:
        return False


class Sentinel(metaclass=SentinelMeta):
    def __new__(cls):
        raise ValueError("Sentinel objects are not intended to be instantiated. Subclass instead.")


class UNSET(Sentinel):
    """Special sentinel value indicating that no data was provided. **Do not instantiate**."""


def is_iterable(obj) -> bool:
    if isinstance(obj, list | tuple | set | dict):  # Fast path for common types
        return True
    return not isinstance(obj, str) and isinstance(obj, Iterable)


def is_class_and_subclass(hint, target_class) -> bool:
    """Safely check if a type is both a class and a subclass of target_class.

    Parameters
    ----------
    hint : Any
        The type to check.
    target_class : type
        The target class to check subclass relationship against.

    Returns
    -------
    bool
        True if hint is a class and is a subclass of target_class, False otherwise.
    """
    try:
        return inspect.isclass(hint) and issubclass(hint, target_class)
    except TypeError:
        # issubclass() raises TypeError for non-class arguments like Union types
        return False


def to_tuple_converter(value: None | Any | Iterable[Any]) -> tuple[Any, ...]:
    """Convert a single element or an iterable of elements into a tuple.

    Intended to be used in an ``attrs.Field``. If :obj:`None` is provided, returns an empty tuple.
    If a single element is provided, returns a tuple containing just that element.
    If an iterable is provided, converts it into a tuple.
    """
    if value is None:
        return ()
    elif is_iterable(value):
        return tuple(value)
    else:
        return (value,)


_ALL_UPPER = re.compile(r"^[A-Z]{2,}$")
_LEADING_ACRONYM = re.compile(r"^([A-Z]+)([A-Z][^A-Z].*)$")
_LEADING_CAPITAL = re.compile(r"^([A-Z])(.*)$")


def _lower_leading(s: str) -> str:
    if _ALL_UPPER.match(s):
        return s.lower()
    if match := _LEADING_ACRONYM.match(s):
        return match.group(1).lower() + match.group(2)
    if match := _LEADING_CAPITAL.match(s):
        return match.group(1).lower() + match.group(2)
    return s


def default_name_transform(s: str) -> str:
    """Converts a python identifier into a flag name.

    The result is lower camel case:

    1. Leading/trailing underscores are stripped and the identifier is split on ``_``.
    2. The first part has its leading run of uppercase letters lowered as a unit.
       An all-uppercase part (2+ letters) is lowered entirely; an uppercase run followed
       by a capitalized word keeps the word's capital (``TCPAddr`` -> ``tcpAddr``).
    3. Every following part has its first letter capitalized, the rest is kept as-is.

    Examples: ``NoUpload`` -> ``noUpload``, ``DHT`` -> ``dht``, ``NoIPv6`` -> ``noIPv6``,
    ``listen_addr`` -> ``listenAddr``, ``no_IPv6`` -> ``noIPv6``.

    This is a one-way heuristic; use ``Param(name=...)`` when it guesses wrong.

    Parameters
    ----------
    s: str
        Input python identifier string.

    Returns
    -------
    str
        Transformed name.
    """
    parts = [part for part in s.split("_") if part]
    if not parts:
        return s
    head, *rest = parts
    return _lower_leading(head) + "".join(part[:1].upper() + part[1:] for part in rest)


def _pascal_to_snake(s: str) -> str:
    # (Borrowed from pydantic)
    # Handle the sequence of uppercase letters followed by a lowercase letter
    snake = re.sub(r"([A-Z]+)([A-Z][a-z])", lambda m: f"{m.group(1)}_{m.group(2)}", s)
    # Insert an underscore between a lowercase letter and an uppercase letter
    snake = re.sub(r"([a-z])([A-Z])", lambda m: f"{m.group(1)}_{m.group(2)}", snake)
    # Insert an underscore between a digit and an uppercase letter
    snake = re.sub(r"([0-9])([A-Z])", lambda m: f"{m.group(1)}_{m.group(2)}", snake)
    return snake.lower()


def positional_name_transform(s: str) -> str:
    """Converts a python identifier into a positional argument name (``UPPER_SNAKE``)."""
    return _pascal_to_snake(s).strip("_").upper()


def is_flag_like(token: str) -> bool:
    """A token shaped like ``-x`` or ``--x``; a lone ``-`` is a value (conventionally stdin)."""
    return len(token) > 1 and token.startswith("-")


def normalize_tokens(tokens: None | str | Iterable[str]) -> list[str]:
    if tokens is None:
        tokens = sys.argv[1:]  # Remove the executable
    elif isinstance(tokens, str):
        tokens = shlex.split(tokens)
    else:
        tokens = list(tokens)
    return tokens


def create_error_console_from_console(console: "Console") -> "Console":
    """Create an error console (stderr=True) that inherits settings from a source console.

    Parameters
    ----------
    console : Console
        Source Rich Console to copy settings from.

    Returns
    -------
    Console
        New Rich Console with stderr=True and inherited settings.
    """
    from rich.console import Console

    color_system = console.color_system or "auto"

    return Console(
        stderr=True,
        color_system=color_system,  # type: ignore[arg-type]
        force_terminal=getattr(console, "_force_terminal", None),
        soft_wrap=console.soft_wrap,
        width=console._width,
        height=getattr(console, "_height", None),
        tab_size=console.tab_size,
        highlight=getattr(console, "_highlight", True),
        no_color=console.no_color,
        legacy_windows=console.legacy_windows,
        safe_box=console.safe_box,
    )
