from collections.abc import Iterable
from typing import Any, cast

from attrs import field

from flagbind.annotations import annotated_metadata
from flagbind.arity import Arity
from flagbind.utils import frozen, to_tuple_converter

FLATTEN = "*"
"""``Param(name="*")`` on a nested record embeds its fields without a namespace prefix."""


def _optional_arity_converter(value: Any) -> Arity | None:
    if value is None:
        return None
    return Arity.parse(value)


@frozen(kw_only=True)
class Param:
    """Per-field metadata, attached with :obj:`~typing.Annotated`.

    Example usage:

    .. code-block:: python

        from dataclasses import dataclass, field
        from typing import Annotated

        from flagbind import Param, StartPos


        @dataclass
        class Options:
            verbose: Annotated[bool, Param(name=("verbose", "v"), help="Chatty output.")] = False
            _: StartPos = StartPos()
            files: Annotated[list[str], Param(arity="*")] = field(default_factory=list)
    """

    # This can ONLY ever be a Tuple[str, ...]
    name: None | str | Iterable[str] = field(
        default=None,
        converter=lambda x: cast(tuple[str, ...], to_tuple_converter(x)),
    )
    """Explicit name(s). The first is canonical, the rest are aliases."""

    help: str | None = None

    # This can ONLY ever be ``None`` or an Arity
    arity: None | int | str | tuple[int, int] | Arity = field(default=None, converter=_optional_arity_converter)

    skip: bool = False
    """Ignore this field entirely."""

    @property
    def flatten(self) -> bool:
        return self.name == (FLATTEN,)

    @classmethod
    def from_annotation(cls, type_: Any) -> "Param | None":
        """The last :class:`Param` in an :obj:`~typing.Annotated` hint, if any."""
        params = [x for x in annotated_metadata(type_) if isinstance(x, cls)]
        return params[-1] if params else None
