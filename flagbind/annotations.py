import dataclasses
from types import UnionType
from typing import Annotated, Any, Union, get_args, get_origin

import attrs

# from types import NoneType is available >=3.10
NoneType = type(None)
AnnotatedType = type(Annotated[int, 0])


def is_nonetype(hint):
    return hint is NoneType


def is_union(type_: type | None) -> bool:
    """Checks if a type is a union."""
    # Direct checks are faster than checking if the type is in a set that contains the union-types.
    if type_ is Union or type_ is UnionType:
        return True

    if type_ is str or type_ is int or type_ is float or type_ is bool or is_annotated(type_):
        return False
    origin = get_origin(type_)
    return origin is Union or origin is UnionType


def is_annotated(hint) -> bool:
    return type(hint) is AnnotatedType


def is_dataclass(hint) -> bool:
    return dataclasses.is_dataclass(hint)


def is_attrs(hint) -> bool:
    return attrs.has(hint)


def is_record_type(hint) -> bool:
    """Types the field walker recurses into."""
    return isinstance(hint, type) and (is_dataclass(hint) or is_attrs(hint))


def is_optional(type_: Any) -> bool:
    """``Optional[T]``, i.e. a union of exactly ``None`` and one other type."""
    if not is_union(type_):
        return False
    args = get_args(type_)
    return len(args) == 2 and any(is_nonetype(x) for x in args)


def resolve_annotated(type_: Any) -> Any:
    if type(type_) is AnnotatedType:
        type_ = get_args(type_)[0]
    return type_


def resolve_optional(type_: Any) -> Any:
    """Only resolves Union's of None + one other type (i.e. Optional)."""
    if not is_optional(type_):
        return type_
    return next(x for x in get_args(type_) if not is_nonetype(x))


def resolve_new_type(type_: Any) -> Any:
    try:
        return resolve_new_type(type_.__supertype__)
    except AttributeError:
        return type_


def annotated_metadata(type_: Any) -> tuple[Any, ...]:
    """Metadata of an ``Annotated`` hint; empty for anything else."""
    if is_annotated(type_):
        return type_.__metadata__
    return ()


def get_hint_name(hint) -> str:
    if isinstance(hint, str):
        return hint
    if is_nonetype(hint):
        return "None"
    if hint is Any:
        return "Any"
    if is_annotated(hint):
        return get_hint_name(resolve_annotated(hint))
    if is_union(hint):
        return "|".join(get_hint_name(arg) for arg in get_args(hint))
    if origin := get_origin(hint):
        out = get_hint_name(origin)
        if args := get_args(hint):
            out += "[" + ", ".join(get_hint_name(arg) for arg in args) + "]"
        return out
    if hasattr(hint, "__name__"):
        return hint.__name__
    if getattr(hint, "_name", None) is not None:
        return hint._name
    return str(hint)
