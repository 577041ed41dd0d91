from typing import TYPE_CHECKING, Any, Optional

from attrs import define, field

from flagbind.annotations import get_hint_name

if TYPE_CHECKING:
    from rich.console import Console

    from flagbind.registry import ArgumentRegistry, Slot


__all__ = [
    "AmbiguousArityError",
    "CoercionError",
    "ConfigurationError",
    "ExcessArgumentError",
    "ExcessSinkPositionError",
    "ExplicitValueRequiredError",
    "FlagbindError",
    "FlagCollisionError",
    "HelpRequested",
    "InvalidArityError",
    "InvalidRecordError",
    "MissingArgumentError",
    "UninstantiableRecordError",
    "UnknownFlagError",
    "UnmarshalableFieldError",
    "UnsettableFieldError",
    "UserError",
]


@define
class FlagbindError(Exception):
    """Root exception for flagbind.

    As errors bubble up through the parser, more context is attached to them.
    """

    msg: str | None = None
    """
    If set, override automatic message generation.
    """

    verbose: bool = False
    """
    More verbose error messages; aimed towards developers debugging their record definitions.
    """

    root_input_tokens: list[str] | None = None
    """
    The tokens that were initially fed into the parser.
    """

    unused_tokens: list[str] | None = None
    """
    Tokens that had not been consumed when the error occurred.
    """

    slot: Optional["Slot"] = None
    """
    :class:`~flagbind.registry.Slot` involved in the error, if any.
    """

    console: Optional["Console"] = field(default=None, kw_only=True)
    """:class:`~rich.console.Console` to display the error."""

    def __str__(self):
        if self.msg is not None:
            return self.msg

        strings = []
        if self.verbose:
            strings.append(type(self).__name__)
            if self.slot is not None:
                strings.append(f"Destination: {type(self.slot.owner).__name__}.{self.slot.attribute}")
            if self.root_input_tokens is not None:
                strings.append(f"Root Input Tokens: {self.root_input_tokens}")

        if strings:
            return "\n".join(strings) + "\n"
        else:
            return ""


class UserError(FlagbindError):
    """The supplied tokens are invalid for a correct record definition.

    Always recoverable; report to the end user.
    """


class ConfigurationError(FlagbindError):
    """The destination record itself is malformed.

    Indicates a programming defect in the record definition.
    """


@define(kw_only=True)
class UnknownFlagError(UserError):
    """A flag-shaped token did not match any registered flag."""

    token: str
    """The flag as it was typed, e.g. ``"-no"``."""

    registry: Optional["ArgumentRegistry"] = None

    def __str__(self):
        response = f'unknown flag: "{self.token}"'

        if self.registry is not None:
            import difflib

            key = self.token.lstrip("-").split("=", 1)[0]
            close_matches = difflib.get_close_matches(key, list(self.registry.flag_names), n=1, cutoff=0.6)
            if close_matches:
                response += f' (did you mean "-{close_matches[0]}"?)'

        return super().__str__() + response


@define(kw_only=True)
class ExcessArgumentError(UserError):
    """A positional token was supplied, but no positional slot has room left."""

    token: str

    def __str__(self):
        return super().__str__() + f'excess argument: "{self.token}"'


@define(kw_only=True)
class MissingArgumentError(UserError):
    """A slot received fewer tokens than its minimum arity."""

    slot: "Slot"

    keyword: str | None = None
    """Flag keyword as typed, when a flag ran out of values."""

    tokens_so_far: list[str] = field(factory=list)

    def __str__(self):
        if self.keyword is None:
            return super().__str__() + f'missing argument: "{self.slot.name}"'

        expected = self.slot.arity.min
        plural = "" if expected == 1 else "s"
        response = f"error setting {self.keyword}: expected {expected} argument{plural}"
        if self.tokens_so_far:
            response += f", got {len(self.tokens_so_far)}"
        return super().__str__() + response


@define(kw_only=True)
class ExplicitValueRequiredError(UserError):
    """The flag's type demands the ``-name=VALUE`` form."""

    keyword: str

    def __str__(self):
        return super().__str__() + f"explicit value required ({self.keyword}=VALUE)"


@define(kw_only=True)
class CoercionError(UserError):
    """A token could not be converted into the destination type."""

    token: str | None = None
    """
    Input token that couldn't be converted.
    """

    keyword: str | None = None
    """
    Flag keyword as typed; :obj:`None` for positional tokens.
    """

    target_type: Any = None
    """
    Intended type to convert into.
    """

    reason: str | None = None
    """
    Domain-specific explanation supplied by the converter.
    """

    def __str__(self):
        msg = super().__str__()

        if self.keyword is not None:
            where = f"error setting {self.keyword}: "
        elif self.slot is not None:
            where = f"{self.slot.name}: "
        else:
            where = ""

        if self.reason:
            detail = self.reason
        elif self.target_type is not None:
            detail = f'unable to convert "{self.token}" into {get_hint_name(self.target_type)}'
        else:
            detail = f'invalid value "{self.token}"'

        return msg + where + detail


@define(kw_only=True)
class UnmarshalableFieldError(ConfigurationError):
    """A field is neither marshalable nor a nested record."""

    record_type: type
    attribute: str
    hint: Any = None

    def __str__(self):
        return (
            super().__str__()
            + f"can't marshal to field {self.record_type.__name__}.{self.attribute} of type {get_hint_name(self.hint)}"
        )


@define(kw_only=True)
class UninstantiableRecordError(ConfigurationError):
    """A nested record field is ``None`` and its type can't be built without arguments."""

    record_type: type
    attribute: str
    nested_type: type

    def __str__(self):
        return (
            super().__str__()
            + f"can't create {self.nested_type.__name__} for field {self.record_type.__name__}.{self.attribute}"
            + "; give the field a default instance"
        )


@define(kw_only=True)
class FlagCollisionError(ConfigurationError):
    """Two flags share a name within the same scope."""

    name: str

    def __str__(self):
        return super().__str__() + f'flag "{self.name}" defined more than once'


@define(kw_only=True)
class UnsettableFieldError(ConfigurationError):
    """A field carries metadata but cannot be assigned to."""

    record_type: type
    attribute: str

    def __str__(self):
        return super().__str__() + f"can't set field {self.record_type.__name__}.{self.attribute}"


@define(kw_only=True)
class ExcessSinkPositionError(ConfigurationError):
    """Something was registered after the excess sink."""

    attribute: str

    def __str__(self):
        return super().__str__() + f'excess sink must be the last field; found "{self.attribute}" after it'


@define(kw_only=True)
class AmbiguousArityError(ConfigurationError):
    """An unbounded positional slot is followed by another positional slot."""

    name: str
    previous: str

    def __str__(self):
        return (
            super().__str__()
            + f'positional "{self.name}" follows unbounded positional "{self.previous}"; only the last positional may be unbounded'
        )


@define(kw_only=True)
class InvalidArityError(ConfigurationError):
    """An arity override is incompatible with its field."""

    attribute: str
    reason: str

    def __str__(self):
        return super().__str__() + f"bad arity for {self.attribute}: {self.reason}"


@define(kw_only=True)
class InvalidRecordError(ConfigurationError):
    """The parse target is not a record instance."""

    target: Any

    def __str__(self):
        return super().__str__() + f"expected a record instance, got {type(self.target).__name__}"


@define(kw_only=True)
class HelpRequested(Exception):
    """A reserved help flag was encountered.

    Not a :class:`FlagbindError`: the caller is expected to print usage and exit successfully.
    """

    flag: str
    """The help flag as typed, e.g. ``"--help"``."""

    registry: Optional["ArgumentRegistry"] = None

    def __str__(self):
        return f"help requested ({self.flag})"
