import warnings
from dataclasses import dataclass, field
from typing import Annotated

import attrs
import pytest

import flagbind
from flagbind import (
    AmbiguousArityError,
    ExcessArgs,
    ExcessSinkPositionError,
    FlagCollisionError,
    InvalidArityError,
    InvalidRecordError,
    Param,
    StartPos,
    UninstantiableRecordError,
    UnmarshalableFieldError,
    UnsettableFieldError,
    walk,
)
from flagbind.arity import EXACTLY_ONE, NONE, ONE_OR_MORE, OPTIONAL, Arity


def test_walk_flags_and_positionals():
    @dataclass
    class Cmd:
        seed: bool = False
        no_upload: bool = False
        listen_addr: str = ""
        data_dir: Annotated[str, Param(name="d")] = ""
        _: StartPos = StartPos()
        torrent: Annotated[list[str], Param(arity="+")] = field(default_factory=list)

    registry = walk(Cmd())

    assert [slot.name for slot in registry.flags] == ["seed", "noUpload", "listenAddr", "d"]
    assert [slot.name for slot in registry.positionals] == ["TORRENT"]
    assert registry.lookup("seed").arity == NONE
    assert registry.lookup("listenAddr").arity == EXACTLY_ONE
    assert registry.positionals[0].arity == ONE_OR_MORE
    assert registry.excess is None


def test_walk_default_positional_arities():
    @dataclass
    class Cmd:
        _: StartPos = StartPos()
        a: str = ""
        b: int | None = None
        d: list[str] = field(default_factory=list)

    registry = walk(Cmd())
    assert [(slot.name, slot.arity) for slot in registry.positionals] == [
        ("A", EXACTLY_ONE),
        ("B", OPTIONAL),
        ("D", ONE_OR_MORE),
    ]


def test_walk_aliases():
    @dataclass
    class Cmd:
        verbose: Annotated[bool, Param(name=("verbose", "v"))] = False

    registry = walk(Cmd())
    assert registry.lookup("v") is registry.lookup("verbose")
    assert len(registry.flags) == 1
    assert sorted(registry.flag_names) == ["v", "verbose"]


def test_walk_flag_collision():
    @dataclass
    class Cmd:
        a: Annotated[int, Param(name="x")] = 0
        b: Annotated[int, Param(name="x")] = 0

    with pytest.raises(FlagCollisionError) as e:
        walk(Cmd())
    assert str(e.value) == 'flag "x" defined more than once'


def test_walk_nested_prefix():
    @dataclass
    class Network:
        listen_addr: str = ""
        port: int = 0

    @dataclass
    class Cmd:
        verbose: bool = False
        net: Network = field(default_factory=Network)

    cmd = Cmd()
    registry = walk(cmd)
    assert [slot.name for slot in registry.flags] == ["verbose", "net.listenAddr", "net.port"]
    assert registry.lookup("net.port").owner is cmd.net
    assert list(registry.groups()) == ["", "net"]


def test_walk_nested_none_is_instantiated():
    @dataclass
    class Network:
        port: int = 0

    @dataclass
    class Cmd:
        net: Network | None = None

    cmd = Cmd()
    walk(cmd)
    assert cmd.net == Network()


def test_walk_nested_none_without_default_constructor():
    @dataclass
    class Network:
        port: int

    @dataclass
    class Cmd:
        net: Network | None = None

    with pytest.raises(UninstantiableRecordError) as e:
        walk(Cmd())
    assert str(e.value) == "can't create Network for field Cmd.net; give the field a default instance"

    outcome = flagbind.try_parse(Cmd(), [])
    assert outcome.kind == "config_error"
    assert isinstance(outcome.error, UninstantiableRecordError)


def test_walk_flatten():
    @dataclass
    class Common:
        verbose: bool = False

    @dataclass
    class Cmd:
        common: Annotated[Common, Param(name="*")] = field(default_factory=Common)
        output: str = ""

    registry = walk(Cmd())
    assert [slot.name for slot in registry.flags] == ["verbose", "output"]


def test_walk_flatten_shares_positional_mode():
    @dataclass
    class Common:
        verbose: bool = False
        _: StartPos = StartPos()

    @dataclass
    class Cmd:
        common: Annotated[Common, Param(name="*")] = field(default_factory=Common)
        path: str = ""

    registry = walk(Cmd())
    assert [slot.name for slot in registry.positionals] == ["PATH"]


def test_walk_nested_positional_mode_does_not_leak():
    @dataclass
    class Inner:
        _: StartPos = StartPos()
        name: str = ""

    @dataclass
    class Cmd:
        inner: Inner = field(default_factory=Inner)
        output: str = ""

    registry = walk(Cmd())
    assert [slot.name for slot in registry.positionals] == ["NAME"]
    assert [slot.name for slot in registry.flags] == ["output"]


def test_walk_excess_sink():
    @dataclass
    class Cmd:
        verbose: bool = False
        args: ExcessArgs = field(default_factory=ExcessArgs)

    registry = walk(Cmd())
    assert registry.excess is not None
    assert registry.excess.attribute == "args"


def test_walk_excess_sink_must_be_last():
    @dataclass
    class Cmd:
        args: ExcessArgs = field(default_factory=ExcessArgs)
        verbose: bool = False

    with pytest.raises(ExcessSinkPositionError):
        walk(Cmd())


def test_walk_excess_sink_must_be_last_across_records():
    @dataclass
    class Inner:
        args: ExcessArgs = field(default_factory=ExcessArgs)

    @dataclass
    class Cmd:
        inner: Annotated[Inner, Param(name="*")] = field(default_factory=Inner)
        verbose: bool = False

    with pytest.raises(ExcessSinkPositionError):
        walk(Cmd())


def test_walk_ambiguous_arity():
    @dataclass
    class Cmd:
        _: StartPos = StartPos()
        files: list[str] = field(default_factory=list)
        dest: str = ""

    with pytest.raises(AmbiguousArityError):
        walk(Cmd())


def test_walk_unmarshalable():
    @dataclass
    class Cmd:
        handler: complex = 0j

    with pytest.raises(UnmarshalableFieldError) as e:
        walk(Cmd())
    assert str(e.value) == "can't marshal to field Cmd.handler of type complex"


def test_walk_skip_unmarshalable():
    @dataclass
    class Cmd:
        handler: complex = 0j
        name: str = ""

    registry = walk(Cmd(), skip_unmarshalable=True)
    assert [slot.name for slot in registry.flags] == ["name"]


def test_walk_skip_unmarshalable_with_param_still_raises():
    @dataclass
    class Cmd:
        handler: Annotated[complex, Param(help="Nope.")] = 0j

    with pytest.raises(UnmarshalableFieldError):
        walk(Cmd(), skip_unmarshalable=True)


def test_walk_param_skip():
    @dataclass
    class Cmd:
        handler: Annotated[complex, Param(skip=True)] = 0j
        name: str = ""

    registry = walk(Cmd())
    assert [slot.name for slot in registry.flags] == ["name"]


def test_walk_param_skip_with_metadata_warns():
    @dataclass
    class Cmd:
        name: Annotated[str, Param(name="n", skip=True)] = ""

    with pytest.warns(UserWarning, match="skipped"):
        walk(Cmd())


def test_walk_private_field_is_skipped():
    @dataclass
    class Cmd:
        _cache: dict = field(default_factory=dict)
        name: str = ""

    registry = walk(Cmd())
    assert [slot.name for slot in registry.flags] == ["name"]


def test_walk_private_field_with_param():
    @dataclass
    class Cmd:
        _name: Annotated[str, Param(name="name")] = ""

    with pytest.raises(UnsettableFieldError):
        walk(Cmd())


def test_walk_frozen_record():
    @dataclass(frozen=True)
    class Cmd:
        name: str = ""

    assert list(walk(Cmd()).flags) == []

    @dataclass(frozen=True)
    class Cmd2:
        name: Annotated[str, Param(help="Name.")] = ""

    with pytest.raises(UnsettableFieldError):
        walk(Cmd2())


def test_walk_attrs_record():
    @attrs.define
    class Cmd:
        verbose: bool = False
        count: int = 0

    registry = walk(Cmd())
    assert [slot.name for slot in registry.flags] == ["verbose", "count"]


def test_walk_plain_class():
    class Cmd:
        verbose: bool = False
        name: str = "x"

    registry = walk(Cmd())
    assert [slot.name for slot in registry.flags] == ["verbose", "name"]


def test_walk_help_from_docstring():
    @dataclass
    class Cmd:
        """Does things.

        Attributes
        ----------
        verbose: bool
            Chatty output.
        name: str
            Who to greet.
        """

        verbose: bool = False
        name: Annotated[str, Param(help="Overridden.")] = ""

    registry = walk(Cmd())
    assert registry.lookup("verbose").help == "Chatty output."
    assert registry.lookup("name").help == "Overridden."


def test_walk_bad_arity():
    @dataclass
    class Cmd:
        name: Annotated[str, Param(arity=0)] = ""

    with pytest.raises(InvalidArityError):
        walk(Cmd())


def test_walk_bad_positional_arity():
    @dataclass
    class Cmd:
        _: StartPos = StartPos()
        flag: Annotated[bool, Param(arity=0)] = False

    with pytest.raises(InvalidArityError):
        walk(Cmd())


def test_walk_arity_override():
    @dataclass
    class Cmd:
        pair: Annotated[list[int], Param(arity=2)] = field(default_factory=list)

    assert walk(Cmd()).lookup("pair").arity == Arity(2, 2)


@pytest.mark.parametrize("target", [None, 5, "str", int])
def test_walk_invalid_record(target):
    with pytest.raises(InvalidRecordError):
        walk(target)


def test_walk_empty_record():
    @dataclass
    class Cmd:
        pass

    registry = walk(Cmd())
    assert registry.flags == []
    assert registry.positionals == []


def test_walk_does_not_warn_normally():
    @dataclass
    class Cmd:
        name: str = ""

    with warnings.catch_warnings():
        warnings.simplefilter("error")
        walk(Cmd())
