"""Derive an :class:`~flagbind.registry.ArgumentRegistry` from a record instance."""

import dataclasses
import typing
import warnings
from collections.abc import Iterator
from typing import Any, ClassVar, get_origin

import attrs

from flagbind.annotations import is_attrs, is_dataclass, is_record_type, resolve_annotated, resolve_optional
from flagbind.docstring import field_help
from flagbind.exceptions import (
    InvalidRecordError,
    UninstantiableRecordError,
    UnmarshalableFieldError,
    UnsettableFieldError,
)
from flagbind.markers import ExcessArgs, StartPos
from flagbind.marshal import MarshalerRegistry
from flagbind.param import Param
from flagbind.registry import ArgumentRegistry
from flagbind.utils import default_name_transform, is_class_and_subclass, positional_name_transform

_MISSING = object()


def _type_hints(cls: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(cls, include_extras=True)
    except (NameError, TypeError):
        # Unresolvable forward references; fall back to the raw annotations.
        out = {}
        for klass in reversed(cls.__mro__):
            out.update(getattr(klass, "__annotations__", {}))
        return out


def iter_fields(cls: type) -> Iterator[tuple[str, Any]]:
    """``(attribute, annotation)`` pairs of a record class, in declaration order."""
    hints = _type_hints(cls)
    if is_dataclass(cls):
        names = [f.name for f in dataclasses.fields(cls)]
    elif is_attrs(cls):
        names = [a.name for a in attrs.fields(cls)]
    else:
        names = [name for name, hint in hints.items() if get_origin(hint) is not ClassVar and hint is not ClassVar]
    for name in names:
        yield name, hints.get(name, Any)


def is_record(obj: Any) -> bool:
    """Instances the walker accepts as a parse target."""
    if obj is None or isinstance(obj, type):
        return False
    cls = type(obj)
    if is_record_type(cls):
        return True
    return cls.__module__ != "builtins" and bool(_type_hints(cls))


def _settable(owner: Any, attribute: str) -> bool:
    if attribute.startswith("_"):
        return False
    current = getattr(owner, attribute, _MISSING)
    try:
        if current is _MISSING:
            setattr(owner, attribute, None)
            delattr(owner, attribute)
        else:
            setattr(owner, attribute, current)
    except AttributeError:
        # Includes frozen dataclass/attrs instances and read-only properties.
        return False
    return True


def _warn_skip_with_metadata(param: Param, owner: Any, attribute: str):
    if param.name or param.help or param.arity is not None:
        warnings.warn(
            f"{type(owner).__name__}.{attribute} is skipped; its other Param settings have no effect.",
            stacklevel=4,
        )


def walk(
    record: Any,
    *,
    marshalers: MarshalerRegistry | None = None,
    skip_unmarshalable: bool = False,
    registry: ArgumentRegistry | None = None,
) -> ArgumentRegistry:
    """Register every flag and positional of ``record`` (and its nested records).

    Parameters
    ----------
    record: Any
        Record instance; a dataclass, an attrs class or a plain annotated class.
        Nested records whose attribute is :obj:`None` are instantiated with no arguments.
    marshalers: MarshalerRegistry | None
        Conversion table. Defaults to :meth:`MarshalerRegistry.default`.
    skip_unmarshalable: bool
        Silently drop fields without :class:`Param` metadata that can't be marshaled
        instead of raising :exc:`~flagbind.exceptions.UnmarshalableFieldError`.
    registry: ArgumentRegistry | None
        Registry to add to; a new one is created by default.

    Raises
    ------
    ConfigurationError
        The record tree is malformed.
    """
    if not is_record(record):
        raise InvalidRecordError(target=record)
    if marshalers is None:
        marshalers = MarshalerRegistry.default()
    if registry is None:
        registry = ArgumentRegistry()

    _FieldWalker(registry, marshalers, skip_unmarshalable).walk(record, prefix="", positional=False, path=())
    return registry


class _FieldWalker:
    def __init__(self, registry: ArgumentRegistry, marshalers: MarshalerRegistry, skip_unmarshalable: bool):
        self.registry = registry
        self.marshalers = marshalers
        self.skip_unmarshalable = skip_unmarshalable

    def walk(self, owner: Any, *, prefix: str, positional: bool, path: tuple[type, ...]) -> bool:
        """Returns the positional mode in effect after the last field."""
        cls = type(owner)
        path = (*path, cls)
        for attribute, hint in iter_fields(cls):
            param = Param.from_annotation(hint)
            if param is not None and param.skip:
                _warn_skip_with_metadata(param, owner, attribute)
                continue

            bare = resolve_annotated(hint)
            if is_class_and_subclass(bare, StartPos):
                positional = True
                continue

            if not _settable(owner, attribute):
                if param is not None:
                    raise UnsettableFieldError(record_type=cls, attribute=attribute)
                continue

            help = param.help if param is not None and param.help is not None else field_help(cls).get(attribute, "")

            if is_class_and_subclass(bare, ExcessArgs):
                self.registry.set_excess(owner=owner, attribute=attribute, help=help)
                continue

            strategy = self.marshalers.resolve(hint)
            if strategy is not None:
                arity = param.arity if param is not None else None
                if positional:
                    name = param.name[0] if param is not None and param.name else positional_name_transform(attribute)
                    self.registry.add_positional(
                        name, strategy=strategy, owner=owner, attribute=attribute, arity=arity, help=help
                    )
                else:
                    names = param.name if param is not None and param.name else (default_name_transform(attribute),)
                    if prefix:
                        names = tuple(f"{prefix}.{n}" for n in names)
                    self.registry.add_flag(
                        names,
                        strategy=strategy,
                        owner=owner,
                        attribute=attribute,
                        arity=arity,
                        help=help,
                        group=prefix,
                    )
                continue

            nested_type = resolve_optional(bare)
            if is_record_type(nested_type) and nested_type not in path:
                child = getattr(owner, attribute, None)
                if child is None:
                    try:
                        child = nested_type()
                    except TypeError as e:
                        raise UninstantiableRecordError(
                            record_type=cls, attribute=attribute, nested_type=nested_type
                        ) from e
                    setattr(owner, attribute, child)
                if param is not None and param.flatten:
                    positional = self.walk(child, prefix=prefix, positional=positional, path=path)
                else:
                    name = param.name[0] if param is not None and param.name else default_name_transform(attribute)
                    child_prefix = f"{prefix}.{name}" if prefix else name
                    self.walk(child, prefix=child_prefix, positional=positional, path=path)
                continue

            if self.skip_unmarshalable and param is None:
                continue
            raise UnmarshalableFieldError(record_type=cls, attribute=attribute, hint=hint)

        return positional
