import inspect
from functools import lru_cache


def _own_doc(cls: type) -> str:
    doc = cls.__dict__.get("__doc__") or ""
    # dataclasses synthesize ``Name(field: type, ...)`` when no docstring is given.
    if doc.startswith(f"{cls.__name__}("):
        return ""
    return doc


@lru_cache(maxsize=16)
def docstring_parse(doc: str):
    """Addon to :func:`docstring_parser.parse` that supports multi-line `short_description`."""
    import docstring_parser

    cleaned_doc = inspect.cleandoc(doc)
    short_description_and_maybe_remainder = cleaned_doc.split("\n\n", 1)

    # Place multi-line summary into a single line.
    short = short_description_and_maybe_remainder[0].replace("\n", " ")
    if len(short_description_and_maybe_remainder) == 1:
        cleaned_doc = short
    else:
        cleaned_doc = short + "\n\n" + short_description_and_maybe_remainder[1]

    return docstring_parser.parse(cleaned_doc)


@lru_cache(maxsize=64)
def field_help(cls: type) -> dict[str, str]:
    """Help text per attribute, from the ``Attributes``/``Parameters`` section of the record's docstring."""
    doc = _own_doc(cls)
    if not doc:
        return {}
    return {dparam.arg_name: dparam.description or "" for dparam in docstring_parse(doc).params}


def record_description(cls: type) -> str:
    """Short description of a record, used under the usage line."""
    doc = _own_doc(cls)
    if not doc:
        return ""
    parsed = docstring_parse(doc)
    return parsed.short_description or ""
