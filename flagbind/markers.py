"""Field annotations with structural meaning to the field walker."""

from flagbind.utils import frozen


@frozen
class StartPos:
    """Fields declared after a field of this type are positional arguments.

    .. code-block:: python

        @dataclass
        class Cmd:
            verbose: bool = False
            _: StartPos = StartPos()
            path: str = ""
    """


class ExcessArgs(list[str]):
    """Catch-all for trailing tokens that no positional slot can accept.

    Must be the last field of the whole record tree. Tokens are captured verbatim,
    including ones that look like flags.
    """
