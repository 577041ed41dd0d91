from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class TokenMarshaler(Protocol):
    """A type that knows how to build itself from a single command-line token.

    Types implementing this take precedence over every registered converter.

    .. code-block:: python

        class Celsius(float):
            @classmethod
            def marshal_token(cls, token: str) -> "Celsius":
                return cls(token.removesuffix("C"))

    A type may additionally define ``requires_explicit_value`` (a classmethod returning
    ``bool``) to insist on the ``-name=VALUE`` form.
    """

    @classmethod
    def marshal_token(cls, token: str, /) -> Any: ...
