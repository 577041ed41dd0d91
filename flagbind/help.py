import textwrap
from collections.abc import Iterable
from enum import Enum
from typing import TYPE_CHECKING

from attrs import define

from flagbind.annotations import get_hint_name, resolve_annotated
from flagbind.arity import INF
from flagbind.registry import ArgumentRegistry, Slot

if TYPE_CHECKING:
    from rich.console import Console, RenderableType


@define(kw_only=True)
class HelpEntry:
    """One row of a help panel."""

    names: tuple[str, ...]
    type_name: str = ""
    description: str = ""
    default: str | None = None
    required: bool = False

    @property
    def names_text(self) -> str:
        return ", ".join(self.names)

    @property
    def description_text(self) -> str:
        parts = [self.description] if self.description else []
        if self.default is not None:
            parts.append(f"[default: {self.default}]")
        if self.required:
            parts.append("[required]")
        return " ".join(parts)


def _positional_usage(slot: Slot) -> list[str]:
    name = slot.name
    arity = slot.arity
    if arity.max == INF:
        if arity.min == 0:
            return [f"[{name}...]"]
        return [f"<{name}>"] * (arity.min - 1) + [f"{name}..."]
    return [f"<{name}>"] * arity.min + [f"[{name}]"] * (arity.max - arity.min)


def usage_line(registry: ArgumentRegistry, program: str) -> str:
    """``Usage: PROG [OPTIONS...] <A> [B] C... [D...]``.

    ``<X>`` is exactly one token, ``[X]`` is optional, ``X...`` is one or more,
    ``[X...]`` is zero or more. A fixed arity of ``n > 1`` repeats ``<X>`` n times.
    """
    usage = ["Usage:", program]
    if registry.flags:
        usage.append("[OPTIONS...]")
    for slot in registry.positionals:
        usage.extend(_positional_usage(slot))
    if registry.excess is not None:
        usage.append(f"[{registry.excess.name}...]")
    return " ".join(usage)


def _type_name(slot: Slot) -> str:
    if slot.is_flag and slot.strategy.has_implicit_value:
        return ""
    return get_hint_name(resolve_annotated(slot.strategy.hint if slot.strategy.hint is not None else slot.strategy.type_))


def _default_text(slot: Slot) -> str | None:
    if not slot.is_flag or not slot.has_default_value():
        return None
    default = slot.default
    if isinstance(default, Enum):
        return default.name
    if isinstance(default, list | tuple):
        return " ".join(str(x) for x in default)
    return str(default)


def _slot_entry(slot: Slot) -> HelpEntry:
    if slot.is_flag:
        names = tuple(f"-{name}" for name in slot.names)
    else:
        names = (slot.name,)
    return HelpEntry(
        names=names,
        type_name=_type_name(slot),
        description=slot.help,
        default=_default_text(slot),
        required=not slot.is_flag and not slot.arity.is_optional,
    )


def help_sections(registry: ArgumentRegistry) -> list[tuple[str, list[HelpEntry]]]:
    """``(title, entries)`` for every non-empty help panel, in display order."""
    sections = []
    arguments = [_slot_entry(slot) for slot in registry.positionals]
    if registry.excess is not None:
        arguments.append(HelpEntry(names=(registry.excess.name,), description=registry.excess.help))
    if arguments:
        sections.append(("Arguments", arguments))
    for group, slots in registry.groups().items():
        title = f"{group} Options" if group else "Options"
        sections.append((title, [_slot_entry(slot) for slot in slots]))
    return sections


def _create_panel(title: str, entries: Iterable[HelpEntry]) -> "RenderableType":
    from rich import box
    from rich.panel import Panel
    from rich.table import Table
    from rich.text import Text

    table = Table.grid(padding=(0, 2))
    table.add_column("Names", style="cyan", no_wrap=True)
    table.add_column("Type", style="dim", no_wrap=True)
    table.add_column("Description", overflow="fold")
    for entry in entries:
        table.add_row(entry.names_text, entry.type_name, Text(entry.description_text))

    return Panel(
        table,
        title=title,
        box=box.ROUNDED,
        expand=True,
        title_align="left",
        border_style="none",
    )


def format_usage(registry: ArgumentRegistry, *, program: str, description: str = "") -> "RenderableType":
    """Build the full help screen as a rich renderable.

    Parameters
    ----------
    registry: ArgumentRegistry
        Read-only; not modified.
    program: str
        Program name shown on the usage line.
    description: str
        Optional text shown under the usage line.
    """
    from rich.console import Group
    from rich.text import Text

    renderables: list[RenderableType] = [Text(usage_line(registry, program) + "\n", style="bold")]
    if description:
        renderables.append(Text(description + "\n"))
    for title, entries in help_sections(registry):
        renderables.append(_create_panel(title, entries))
    return Group(*renderables)


def format_usage_plain(registry: ArgumentRegistry, *, program: str, description: str = "", width: int = 79) -> str:
    """Plain-text variant of :func:`format_usage`, without any styling."""
    indent = "  "
    lines = [usage_line(registry, program), ""]
    if description:
        lines.extend(textwrap.wrap(description, width) or [""])
        lines.append("")

    for title, entries in help_sections(registry):
        lines.append(f"{title}:")
        column = max(len(e.names_text) + (len(e.type_name) + 1 if e.type_name else 0) for e in entries) + 2
        for entry in entries:
            head = entry.names_text + (f" {entry.type_name}" if entry.type_name else "")
            desc = entry.description_text
            if not desc:
                lines.append(indent + head)
                continue
            wrapped = textwrap.wrap(desc, max(width - len(indent) - column, 20))
            lines.append(indent + head.ljust(column) + wrapped[0])
            lines.extend(indent + " " * column + line for line in wrapped[1:])
        lines.append("")

    return "\n".join(lines).rstrip() + "\n"


def help_print(
    registry: ArgumentRegistry,
    *,
    program: str,
    description: str = "",
    console: "Console | None" = None,
):
    """Print the help screen to ``console`` (a new stdout console by default)."""
    if console is None:
        from rich.console import Console

        console = Console()
    console.print(format_usage(registry, program=program, description=description))
