__version__ = "0.1.0"

__all__ = [
    "AmbiguousArityError",
    "ArgumentRegistry",
    "Arity",
    "Binder",
    "CoercionError",
    "ConfigurationError",
    "ExcessArgs",
    "ExcessArgumentError",
    "ExcessSinkPositionError",
    "ExplicitValueRequiredError",
    "FlagbindError",
    "FlagbindPanel",
    "FlagCollisionError",
    "HelpRequested",
    "InvalidArityError",
    "InvalidRecordError",
    "MarshalerRegistry",
    "MissingArgumentError",
    "Outcome",
    "Param",
    "Slot",
    "StartPos",
    "Strategy",
    "TokenMarshaler",
    "TokenParser",
    "UNSET",
    "UninstantiableRecordError",
    "UnknownFlagError",
    "UnmarshalableFieldError",
    "UnsettableFieldError",
    "UserError",
    "default_name_transform",
    "parse",
    "run",
    "try_parse",
    "types",
    "walk",
]

from flagbind import types
from flagbind.arity import Arity
from flagbind.core import Binder, Outcome, parse, run, try_parse
from flagbind.exceptions import (
    AmbiguousArityError,
    CoercionError,
    ConfigurationError,
    ExcessArgumentError,
    ExcessSinkPositionError,
    ExplicitValueRequiredError,
    FlagbindError,
    FlagCollisionError,
    HelpRequested,
    InvalidArityError,
    InvalidRecordError,
    MissingArgumentError,
    UninstantiableRecordError,
    UnknownFlagError,
    UnmarshalableFieldError,
    UnsettableFieldError,
    UserError,
)
from flagbind.markers import ExcessArgs, StartPos
from flagbind.marshal import MarshalerRegistry, Strategy
from flagbind.panel import FlagbindPanel
from flagbind.param import Param
from flagbind.parser import TokenParser
from flagbind.protocols import TokenMarshaler
from flagbind.registry import ArgumentRegistry, Slot
from flagbind.utils import UNSET, default_name_transform
from flagbind.walker import walk
