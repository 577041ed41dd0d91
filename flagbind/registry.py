from collections.abc import Iterable, Iterator
from typing import Any, Literal

from attrs import define, field

from flagbind.arity import EXACTLY_ONE, NONE, ONE_OR_MORE, OPTIONAL, Arity
from flagbind.exceptions import (
    AmbiguousArityError,
    CoercionError,
    ExcessSinkPositionError,
    FlagCollisionError,
    InvalidArityError,
)
from flagbind.marshal import Strategy
from flagbind.markers import ExcessArgs
from flagbind.utils import to_tuple_converter


def default_arity(strategy: Strategy, *, positional: bool) -> Arity:
    """Arity used when a field doesn't specify one."""
    if positional:
        if strategy.accumulate:
            return ONE_OR_MORE
        if strategy.optional:
            return OPTIONAL
        return EXACTLY_ONE

    if strategy.has_implicit_value:
        return NONE
    if strategy.optional:
        return OPTIONAL
    return EXACTLY_ONE


def _is_zero(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str | bytes | list | tuple | bool | int | float):
        return not value
    return False


@define(kw_only=True)
class Slot:
    """A registered flag or positional argument bound to one record attribute."""

    name: str
    """Canonical name; the flag name without dashes, or the positional's display name."""

    kind: Literal["flag", "positional"]

    arity: Arity

    strategy: Strategy

    owner: Any = field(repr=False)
    """Record instance holding the destination attribute (not owned)."""

    attribute: str

    names: tuple[str, ...] = field(default=(), converter=to_tuple_converter)
    """All names including aliases; flags only."""

    help: str = ""

    group: str = ""
    """Dotted namespace of the nested record this slot came from; empty at the top level."""

    count: int = field(default=0, init=False)
    """Tokens assigned during the current parse."""

    default: Any = field(init=False, repr=False)

    def __attrs_post_init__(self):
        self.default = getattr(self.owner, self.attribute, None)

    @property
    def is_flag(self) -> bool:
        return self.kind == "flag"

    @property
    def has_room(self) -> bool:
        return self.count < self.arity.max

    @property
    def satisfied(self) -> bool:
        return self.count >= self.arity.min

    def has_default_value(self) -> bool:
        """Whether the destination held a non-zero value before parsing."""
        return not _is_zero(self.default)

    def assign(self, value: Any):
        """Write ``value`` into the destination.

        Accumulating slots build a new list from the current contents plus ``value``;
        the previous list object is never mutated.
        """
        if self.strategy.accumulate:
            current = getattr(self.owner, self.attribute, None)
            value = [*(current or ()), value]
        setattr(self.owner, self.attribute, value)

    def marshal(self, token: str, keyword: str | None = None):
        """Convert ``token`` with the slot's strategy and assign the result.

        Parameters
        ----------
        token: str
            Raw command-line token.
        keyword: str | None
            The flag as the user typed it; used for error messages.
        """
        try:
            value = self.strategy.marshal(token)
        except CoercionError as e:
            e.slot = self
            e.keyword = keyword
            raise
        self.assign(value)
        self.count += 1

    def assign_implicit(self):
        self.assign(self.strategy.implicit_value)

    def reset(self):
        self.count = 0


@define(kw_only=True)
class ExcessSink:
    """Destination for every token that no positional slot can accept."""

    owner: Any = field(repr=False)
    attribute: str
    name: str = "ARGS"
    help: str = ""

    def capture(self, tokens: Iterable[str]):
        setattr(self.owner, self.attribute, ExcessArgs(tokens))


@define
class ArgumentRegistry:
    """All flags and positionals derived from a record tree.

    Doubles as a builder: :meth:`add_flag`, :meth:`add_positional` and :meth:`set_excess`
    validate each registration and raise :class:`~flagbind.exceptions.ConfigurationError`
    subclasses on conflicts.
    """

    _flags: dict[str, Slot] = field(factory=dict, init=False)
    _flag_slots: list[Slot] = field(factory=list, init=False)
    positionals: list[Slot] = field(factory=list, init=False)
    excess: ExcessSink | None = field(default=None, init=False)

    def _check_not_after_excess(self, attribute: str):
        if self.excess is not None:
            raise ExcessSinkPositionError(attribute=attribute)

    @staticmethod
    def _check_arity(arity: Arity, strategy: Strategy, attribute: str, *, positional: bool):
        if arity.max > 0:
            return
        if positional:
            raise InvalidArityError(attribute=attribute, reason="positional arguments must accept at least one token")
        if not strategy.has_implicit_value:
            raise InvalidArityError(
                attribute=attribute,
                reason="a flag that consumes no tokens needs a type with an implicit value (e.g. bool)",
            )

    def add_flag(
        self,
        names: str | Iterable[str],
        *,
        strategy: Strategy,
        owner: Any,
        attribute: str,
        arity: Arity | None = None,
        help: str = "",
        group: str = "",
    ) -> Slot:
        """Register a flag; the first name is canonical, the rest are aliases."""
        names = to_tuple_converter(names)
        if not names:
            raise ValueError("A flag needs at least one name.")
        self._check_not_after_excess(attribute)
        if arity is None:
            arity = default_arity(strategy, positional=False)
        self._check_arity(arity, strategy, attribute, positional=False)

        for name in names:
            if name in self._flags or names.count(name) > 1:
                raise FlagCollisionError(name=name)

        slot = Slot(
            name=names[0],
            names=names,
            kind="flag",
            arity=arity,
            strategy=strategy,
            owner=owner,
            attribute=attribute,
            help=help,
            group=group,
        )
        for name in names:
            self._flags[name] = slot
        self._flag_slots.append(slot)
        return slot

    def add_positional(
        self,
        name: str,
        *,
        strategy: Strategy,
        owner: Any,
        attribute: str,
        arity: Arity | None = None,
        help: str = "",
    ) -> Slot:
        """Register the next positional argument."""
        self._check_not_after_excess(attribute)
        if arity is None:
            arity = default_arity(strategy, positional=True)
        self._check_arity(arity, strategy, attribute, positional=True)

        if self.positionals and self.positionals[-1].arity.is_unbounded:
            raise AmbiguousArityError(name=name, previous=self.positionals[-1].name)

        slot = Slot(
            name=name,
            kind="positional",
            arity=arity,
            strategy=strategy,
            owner=owner,
            attribute=attribute,
            help=help,
        )
        self.positionals.append(slot)
        return slot

    def set_excess(self, *, owner: Any, attribute: str, help: str = "") -> ExcessSink:
        """Register the excess sink; nothing may be registered after it."""
        self._check_not_after_excess(attribute)
        self.excess = ExcessSink(owner=owner, attribute=attribute, help=help)
        return self.excess

    @property
    def flags(self) -> list[Slot]:
        """Unique flag slots, in registration order."""
        return list(self._flag_slots)

    @property
    def flag_names(self) -> Iterator[str]:
        """Every registered flag name, aliases included."""
        return iter(self._flags)

    def lookup(self, key: str) -> Slot | None:
        return self._flags.get(key)

    def next_positional(self) -> Slot | None:
        """First positional slot, in registration order, with room for another token."""
        return next((slot for slot in self.positionals if slot.has_room), None)

    def first_unsatisfied(self) -> Slot | None:
        return next((slot for slot in self.positionals if not slot.satisfied), None)

    def groups(self) -> dict[str, list[Slot]]:
        """Flag slots keyed by namespace, top level (``""``) first."""
        out: dict[str, list[Slot]] = {"": []}
        for slot in self._flag_slots:
            out.setdefault(slot.group, []).append(slot)
        if not out[""]:
            del out[""]
        return out

    def reset(self):
        for slot in self._flag_slots:
            slot.reset()
        for slot in self.positionals:
            slot.reset()
