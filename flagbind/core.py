import sys
import warnings
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal, Optional, TypeVar

from attrs import define, field

from flagbind.docstring import record_description
from flagbind.exceptions import ConfigurationError, FlagbindError, HelpRequested, UserError
from flagbind.help import format_usage, format_usage_plain, help_print
from flagbind.marshal import MarshalerRegistry
from flagbind.panel import FlagbindPanel
from flagbind.parser import TokenParser
from flagbind.registry import ArgumentRegistry
from flagbind.utils import create_error_console_from_console, normalize_tokens, to_tuple_converter
from flagbind.walker import walk

if TYPE_CHECKING:
    from rich.console import Console, RenderableType

T = TypeVar("T")

EXIT_HELP = 0
EXIT_CONFIGURATION_ERROR = 1
EXIT_USER_ERROR = 2


@define(kw_only=True)
class Outcome:
    """Tagged result of :meth:`Binder.try_parse`."""

    kind: Literal["ok", "user_error", "config_error", "help"]

    record: Any = None

    error: BaseException | None = None
    """The :exc:`~flagbind.exceptions.FlagbindError` or :exc:`~flagbind.exceptions.HelpRequested` raised."""

    registry: ArgumentRegistry | None = None
    """Registry built for the parse; :obj:`None` when the record itself was malformed."""

    @property
    def ok(self) -> bool:
        return self.kind == "ok"


@define(kw_only=True)
class Binder:
    """Binds command-line tokens to the fields of a record.

    .. code-block:: python

        from dataclasses import dataclass

        import flagbind


        @dataclass
        class Args:
            verbose: bool = False
            _: flagbind.StartPos = flagbind.StartPos()
            path: str = ""


        args = flagbind.Binder(program="tool")(Args())
    """

    program: str | None = None
    """Name shown on the usage line. Defaults to the basename of ``sys.argv[0]``."""

    description: str | None = None
    """Text under the usage line. Defaults to the short description of the record's docstring."""

    help_flags: tuple[str, ...] = field(default=("h", "help"), converter=to_tuple_converter)
    """Flag keys (without dashes) that print help. An empty tuple disables help."""

    intermixed: bool = True
    """Allow flags after the first positional argument."""

    skip_unmarshalable: bool = False
    """Silently drop fields without :class:`~flagbind.Param` metadata that can't be marshaled."""

    marshalers: MarshalerRegistry = field(factory=MarshalerRegistry.default)

    _console: Optional["Console"] = None

    _error_console: Optional["Console"] = None

    print_error: bool = True
    """Print a rich-formatted error panel on error in :meth:`__call__`."""

    exit_on_error: bool = True
    """``sys.exit`` on error (and after help) in :meth:`__call__`. Otherwise, re-raise."""

    help_on_error: bool = False
    """Print the help page before a user error."""

    verbose: bool = False
    """Populate exception strings with information intended for developers."""

    _fallback_console: Optional["Console"] = field(default=None, init=False, repr=False)
    _fallback_error_console: Optional["Console"] = field(default=None, init=False, repr=False)

    @property
    def console(self) -> "Console":
        if self._console is not None:
            return self._console
        if self._fallback_console is None:
            from rich.console import Console

            self._fallback_console = Console()
        return self._fallback_console

    @console.setter
    def console(self, console: Optional["Console"]):
        self._console = console

    @property
    def error_console(self) -> "Console":
        if self._error_console is not None:
            return self._error_console
        if self._fallback_error_console is None:
            self._fallback_error_console = create_error_console_from_console(self.console)
        return self._fallback_error_console

    @error_console.setter
    def error_console(self, console: Optional["Console"]):
        self._error_console = console

    def resolve_program(self) -> str:
        if self.program is not None:
            return self.program
        return Path(sys.argv[0]).name

    def resolve_description(self, record: Any) -> str:
        if self.description is not None:
            return self.description
        return record_description(type(record))

    def build(self, record: Any) -> ArgumentRegistry:
        """Derive the argument registry of ``record``.

        Raises
        ------
        ConfigurationError
            The record tree is malformed.
        """
        registry = walk(record, marshalers=self.marshalers, skip_unmarshalable=self.skip_unmarshalable)
        for key in self.help_flags:
            if registry.lookup(key) is not None:
                warnings.warn(
                    f'Flag "-{key}" shadows the help flag of the same name; it will no longer print help.',
                    stacklevel=3,
                )
        return registry

    def _parse(self, record: Any, tokens: list[str]) -> ArgumentRegistry:
        registry = self.build(record)
        TokenParser(registry, help_flags=self.help_flags, intermixed=self.intermixed).parse(tokens)
        return registry

    def parse(self, record: T, tokens: None | str | Iterable[str] = None) -> T:
        """Populate ``record`` in place from ``tokens`` and return it.

        Parameters
        ----------
        record: T
            Record instance to populate.
        tokens: None | str | Iterable[str]
            Either a string, or a list of strings to parse.
            If :obj:`None`, ``sys.argv[1:]`` is used.

        Raises
        ------
        UserError
            The tokens are invalid.
        ConfigurationError
            The record is malformed.
        HelpRequested
            A help flag was given.
        """
        tokens = normalize_tokens(tokens)
        try:
            self._parse(record, tokens)
        except FlagbindError as e:
            e.verbose = self.verbose
            if e.root_input_tokens is None:
                e.root_input_tokens = tokens
            raise
        return record

    def try_parse(self, record: Any, tokens: None | str | Iterable[str] = None) -> Outcome:
        """Like :meth:`parse`, but reports every outcome as an :class:`Outcome` instead of raising."""
        tokens = normalize_tokens(tokens)
        registry = None
        try:
            registry = self.build(record)
            TokenParser(registry, help_flags=self.help_flags, intermixed=self.intermixed).parse(tokens)
        except HelpRequested as e:
            return Outcome(kind="help", record=record, error=e, registry=registry)
        except UserError as e:
            e.verbose = self.verbose
            return Outcome(kind="user_error", record=record, error=e, registry=registry)
        except ConfigurationError as e:
            e.verbose = self.verbose
            e.root_input_tokens = tokens
            return Outcome(kind="config_error", record=record, error=e, registry=registry)
        return Outcome(kind="ok", record=record, registry=registry)

    def __call__(
        self,
        record: T,
        tokens: None | str | Iterable[str] = None,
        *,
        console: Optional["Console"] = None,
        error_console: Optional["Console"] = None,
        print_error: bool | None = None,
        exit_on_error: bool | None = None,
        help_on_error: bool | None = None,
        verbose: bool | None = None,
    ) -> T:
        """Process entry point; parse ``tokens`` into ``record``, reporting problems on the console.

        Exit codes: ``0`` after printing help, ``2`` for a user error, ``1`` for a
        malformed record.

        Parameters
        ----------
        record: T
            Record instance to populate.
        tokens: None | str | Iterable[str]
            Either a string, or a list of strings to parse.
            If :obj:`None`, ``sys.argv[1:]`` is used.
        console: ~rich.console.Console
            Console to print help to. Overrides :attr:`console` for this call.
        error_console: ~rich.console.Console
            Console to print errors to. Overrides :attr:`error_console` for this call.
        print_error: bool | None
            Print a rich-formatted error on error.
            If :obj:`None`, inherits from :attr:`print_error`.
        exit_on_error: bool | None
            ``sys.exit`` instead of raising.
            If :obj:`None`, inherits from :attr:`exit_on_error`.
        help_on_error: bool | None
            Prints the help-page before printing a user error.
            If :obj:`None`, inherits from :attr:`help_on_error`.
        verbose: bool | None
            Populate exception strings with more information intended for developers.
            If :obj:`None`, inherits from :attr:`verbose`.
        """
        tokens = normalize_tokens(tokens)
        console = console if console is not None else self.console
        error_console = error_console if error_console is not None else self.error_console
        print_error = self.print_error if print_error is None else print_error
        exit_on_error = self.exit_on_error if exit_on_error is None else exit_on_error
        help_on_error = self.help_on_error if help_on_error is None else help_on_error
        verbose = self.verbose if verbose is None else verbose

        registry = None
        try:
            registry = self.build(record)
            TokenParser(registry, help_flags=self.help_flags, intermixed=self.intermixed).parse(tokens)
        except HelpRequested:
            assert registry is not None
            self.help_print(record, registry=registry, console=console)
            if exit_on_error:
                sys.exit(EXIT_HELP)
            raise
        except FlagbindError as e:
            e.verbose = verbose
            if e.root_input_tokens is None:
                e.root_input_tokens = tokens
            e.console = error_console
            if help_on_error and isinstance(e, UserError) and registry is not None:
                self.help_print(record, registry=registry, console=console)
            if print_error:
                error_console.print(FlagbindPanel(e))
            if exit_on_error:
                sys.exit(EXIT_USER_ERROR if isinstance(e, UserError) else EXIT_CONFIGURATION_ERROR)
            raise

        return record

    def format_usage(self, record: Any, *, registry: ArgumentRegistry | None = None) -> "RenderableType":
        if registry is None:
            registry = self.build(record)
        return format_usage(registry, program=self.resolve_program(), description=self.resolve_description(record))

    def format_usage_plain(self, record: Any, *, registry: ArgumentRegistry | None = None) -> str:
        if registry is None:
            registry = self.build(record)
        return format_usage_plain(
            registry, program=self.resolve_program(), description=self.resolve_description(record)
        )

    def help_print(
        self,
        record: Any,
        *,
        registry: ArgumentRegistry | None = None,
        console: Optional["Console"] = None,
    ):
        """Print the help page of ``record``.

        Parameters
        ----------
        record: Any
            Record whose flags and positionals are described.
        registry: ArgumentRegistry | None
            Previously built registry; built from ``record`` if not provided.
        console: ~rich.console.Console
            Console to print to. Defaults to :attr:`console`.
        """
        if registry is None:
            registry = self.build(record)
        help_print(
            registry,
            program=self.resolve_program(),
            description=self.resolve_description(record),
            console=self.console if console is None else console,
        )


def parse(record: T, tokens: None | str | Iterable[str] = None, **options) -> T:
    """Shorthand for ``Binder(**options).parse(record, tokens)``."""
    return Binder(**options).parse(record, tokens)


def try_parse(record: Any, tokens: None | str | Iterable[str] = None, **options) -> Outcome:
    """Shorthand for ``Binder(**options).try_parse(record, tokens)``."""
    return Binder(**options).try_parse(record, tokens)


def run(record: T, tokens: None | str | Iterable[str] = None, **options) -> T:
    """Shorthand for ``Binder(**options)(record, tokens)``; exits the process on error or help."""
    return Binder(**options)(record, tokens)
