from collections import deque
from collections.abc import Iterable, Sequence

from flagbind.exceptions import (
    ExcessArgumentError,
    ExplicitValueRequiredError,
    FlagbindError,
    HelpRequested,
    MissingArgumentError,
    UnknownFlagError,
)
from flagbind.registry import ArgumentRegistry, Slot
from flagbind.utils import is_flag_like

POSITIONAL_ONLY_MARKER = "--"


class TokenParser:
    """Consumes a token stream and assigns values through an :class:`~flagbind.registry.ArgumentRegistry`.

    Parameters
    ----------
    registry: ArgumentRegistry
        Destination slots.
    help_flags: Sequence[str]
        Flag keys (without dashes) that raise :exc:`~flagbind.exceptions.HelpRequested`
        when no registered flag claims them. An empty sequence disables help.
    intermixed: bool
        Allow flags after the first positional token. When :obj:`False`, everything
        from the first positional token onward is positional.
    """

    def __init__(
        self,
        registry: ArgumentRegistry,
        *,
        help_flags: Sequence[str] = ("h", "help"),
        intermixed: bool = True,
    ):
        self.registry = registry
        self.help_flags = tuple(help_flags)
        self.intermixed = intermixed

    def parse(self, tokens: Iterable[str]):
        """Parse all of ``tokens``, populating the registry's destinations in place.

        Raises
        ------
        UserError
            The tokens don't fit the registry. Context (``root_input_tokens``,
            ``unused_tokens``) is attached before it propagates.
        HelpRequested
            A help flag was given.
        """
        remaining = deque(tokens)
        root_input_tokens = list(remaining)
        self.registry.reset()
        try:
            self._parse(remaining)
        except FlagbindError as e:
            e.root_input_tokens = root_input_tokens
            e.unused_tokens = list(remaining)
            raise

    def _parse(self, remaining: deque[str]):
        positional_only = False
        while remaining:
            token = remaining.popleft()

            if not positional_only and token == POSITIONAL_ONLY_MARKER:
                positional_only = True
                continue

            if not positional_only and is_flag_like(token):
                self._parse_flag(token, remaining)
                continue

            slot = self.registry.next_positional()
            if slot is None:
                if self.registry.excess is not None:
                    self.registry.excess.capture([token, *remaining])
                    remaining.clear()
                    return
                raise ExcessArgumentError(token=token)
            slot.marshal(token)
            if not self.intermixed:
                positional_only = True

        if (slot := self.registry.first_unsatisfied()) is not None:
            raise MissingArgumentError(slot=slot)

    def _parse_flag(self, token: str, remaining: deque[str]):
        keyword, sep, value = token.partition("=")
        key = keyword[2:] if keyword.startswith("--") else keyword[1:]

        slot = self.registry.lookup(key)
        if slot is None:
            if key in self.help_flags:
                raise HelpRequested(flag=keyword, registry=self.registry)
            raise UnknownFlagError(token=keyword, registry=self.registry)

        if sep:
            slot.marshal(value, keyword)
            return

        if slot.strategy.requires_explicit_value():
            raise ExplicitValueRequiredError(keyword=keyword, slot=slot)

        values = self._take_values(slot, keyword, remaining)
        if not values:
            if slot.strategy.has_implicit_value:
                slot.assign_implicit()
            return
        for value in values:
            slot.marshal(value, keyword)

    @staticmethod
    def _take_values(slot: Slot, keyword: str, remaining: deque[str]) -> list[str]:
        """Pop the tokens belonging to one occurrence of a flag.

        Tokens up to the minimum arity are taken verbatim; beyond it, a flag-shaped
        token ends the run.
        """
        values = []
        while remaining and len(values) < slot.arity.max:
            if len(values) >= slot.arity.min and is_flag_like(remaining[0]):
                break
            values.append(remaining.popleft())
        if len(values) < slot.arity.min:
            raise MissingArgumentError(slot=slot, keyword=keyword, tokens_so_far=values)
        return values
