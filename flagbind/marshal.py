import functools
import typing
from collections.abc import Callable, Mapping, Sequence
from enum import Enum
from types import MappingProxyType
from typing import Any, get_args, get_origin

from attrs import evolve, field

from flagbind._convert import DEFAULT_CONVERTERS, PRIMITIVE_CONVERTERS, get_enum_member
from flagbind.annotations import is_optional, resolve_annotated, resolve_new_type, resolve_optional
from flagbind.exceptions import CoercionError
from flagbind.utils import UNSET, frozen, is_class_and_subclass

_implicit_sequence_type_mapping: dict[Any, Any] = {
    typing.Sequence: list[str],
    Sequence: list[str],
    list: list[str],
    tuple: tuple[str, ...],
}

_SEQUENCE_ORIGINS = {typing.Sequence, Sequence, list, tuple}


@frozen(kw_only=True)
class Strategy:
    """How tokens are turned into values for a single destination.

    Resolved once per slot by :meth:`MarshalerRegistry.resolve`.
    """

    type_: Any
    """Type a single token converts into (the element type for sequences)."""

    convert: Callable[[str], Any] = field(eq=False)

    explicit: bool = False
    """Only the ``-name=VALUE`` form may supply a value."""

    implicit_value: Any = UNSET
    """Value assigned when a flag appears with no value token (``True`` for booleans)."""

    accumulate: bool = False
    """Each value is appended to a list instead of replacing it."""

    optional: bool = False
    """Destination is ``Optional[...]``."""

    hint: Any = None
    """Annotation the strategy was resolved from; only used for display."""

    def marshal(self, token: str) -> Any:
        """Convert a single token.

        Raises
        ------
        CoercionError
            The token is not a valid representation of :attr:`type_`.
        """
        try:
            return self.convert(token)
        except CoercionError as e:
            if e.token is None:
                e.token = token
            if e.target_type is None and e.reason is None:
                e.target_type = self.type_
            raise
        except (ValueError, TypeError, OverflowError) as e:
            raise CoercionError(token=token, target_type=self.type_) from e

    def requires_explicit_value(self) -> bool:
        return self.explicit

    @property
    def has_implicit_value(self) -> bool:
        return self.implicit_value is not UNSET


def _hook_requires_explicit_value(type_) -> bool:
    func = getattr(type_, "requires_explicit_value", None)
    return bool(func()) if callable(func) else False


@frozen
class MarshalerRegistry:
    """Immutable lookup table from field types to :class:`Strategy`.

    Build the stock table with :meth:`default`; extend it with :meth:`with_converter`,
    which returns a new registry and leaves the original untouched.
    """

    converters: Mapping[Any, tuple[Callable[[str], Any], bool]] = field(
        factory=dict,
        converter=lambda x: MappingProxyType(dict(x)),
        hash=False,
        eq=False,
    )

    @classmethod
    def default(cls) -> "MarshalerRegistry":
        return _default_registry()

    def with_converter(
        self,
        type_: Any,
        func: Callable[[str], Any],
        *,
        requires_explicit_value: bool = False,
    ) -> "MarshalerRegistry":
        """Register (or replace) the converter for exactly ``type_``.

        Parameters
        ----------
        type_: Any
            Destination type.
        func: Callable[[str], Any]
            Converts a single token. May raise :exc:`ValueError` or
            :exc:`~flagbind.exceptions.CoercionError`.
        requires_explicit_value: bool
            Flags of this type only accept the ``-name=VALUE`` form.
        """
        converters = dict(self.converters)
        converters[type_] = (func, requires_explicit_value)
        return evolve(self, converters=converters)

    def resolve(self, type_: Any) -> Strategy | None:
        """Find the strategy for ``type_``, or :obj:`None` if it is not marshalable.

        First match wins:

        1. a ``marshal_token`` classmethod on the type itself;
        2. a registered converter for exactly this type;
        3. ``Optional[T]``;
        4. ``list[T]``, ``Sequence[T]`` and ``tuple[T, ...]``;
        5. ``bool``, ``int``, ``float``, ``str``, ``bytes`` and :class:`~enum.Enum` subclasses.
        """
        hint = type_
        type_ = resolve_annotated(type_)
        bare = resolve_new_type(type_)

        if isinstance(bare, type) and callable(getattr(bare, "marshal_token", None)):
            return Strategy(
                type_=bare,
                convert=bare.marshal_token,
                explicit=_hook_requires_explicit_value(bare),
                hint=hint,
            )

        # A NewType may carry its own converter; otherwise it behaves like its supertype.
        for candidate in (type_, bare):
            try:
                func, explicit = self.converters[candidate]
            except (KeyError, TypeError):
                continue
            return Strategy(type_=candidate, convert=func, explicit=explicit, hint=hint)
        type_ = bare

        if is_optional(type_):
            inner = self.resolve(resolve_optional(type_))
            if inner is None:
                return None
            return evolve(inner, optional=True, hint=hint)

        type_ = _implicit_sequence_type_mapping.get(type_, type_)
        origin = get_origin(type_)
        if origin in _SEQUENCE_ORIGINS:
            args = get_args(type_)
            if origin is tuple and (len(args) != 2 or args[1] is not Ellipsis):
                return None
            if not args:
                return None
            inner = self.resolve(args[0])
            if inner is None or inner.accumulate:
                return None
            return evolve(inner, accumulate=True, hint=hint)

        if type_ is bool:
            return Strategy(type_=bool, convert=PRIMITIVE_CONVERTERS[bool], implicit_value=True, hint=hint)
        try:
            return Strategy(type_=type_, convert=PRIMITIVE_CONVERTERS[type_], hint=hint)
        except (KeyError, TypeError):
            pass
        if is_class_and_subclass(type_, Enum):
            return Strategy(type_=type_, convert=functools.partial(get_enum_member, type_), hint=hint)

        return None


@functools.lru_cache(maxsize=1)
def _default_registry() -> MarshalerRegistry:
    return MarshalerRegistry(DEFAULT_CONVERTERS)
