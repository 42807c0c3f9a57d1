"""Help texts for command trees."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .commands.models import CommandDeclaration, CommandGroup
from .commands.parsing import option_strings, parse_positionals

if TYPE_CHECKING:
    from .router import Route, Router

__all__ = ["format_command_help", "format_group_help", "get_help", "get_route_help"]


def _first_line(text: object) -> str:
    return str(text).strip().split("\n")[0] if text else ""


def format_command_help(segments: tuple[str, ...], declaration: CommandDeclaration) -> str:
    """Return the usage, description and flags of a command.

    Example::

        Usage: remote add <name> [url] [options]

        Add a remote

        Options:
          --force, -f          Overwrite an existing remote
    """
    usage = [" ".join(segments)]
    for arg in parse_positionals(declaration.positionals or ()):
        usage.append(f"<{arg.value}>" if arg.required else f"[{arg.value}]")
    if declaration.flags:
        usage.append("[options]")
    lines = [f"Usage: {' '.join(usage)}", "", str(declaration.description).strip()]

    if declaration.flags:
        lines += ["", "Options:"]
        for flag in declaration.flags:
            names = option_strings(flag.name)
            for alias in flag.aliases:
                names.extend(option_strings(alias))
            spelling = ", ".join(names)
            if flag.type == "string":
                spelling += f" <{flag.name}>"
            desc = _first_line(flag.description)
            if flag.default is not None:
                desc += f" (default: {flag.default})"
            lines.append(f"  {spelling:20s} {desc}")
    return "\n".join(lines) + "\n"


def format_group_help(segments: tuple[str, ...], group: CommandGroup) -> str:
    """Return the description and sub-commands of a group."""
    lines = [f"Usage: {' '.join(segments)} <command>", "", str(group.description).strip(), "", "Commands:"]
    for name, node in group.commands.items():
        marker = " ..." if isinstance(node, CommandGroup) else ""
        lines.append(f"  {name + marker:20s} {_first_line(node.description)}")
    return "\n".join(lines) + "\n"


def get_route_help(route: Route) -> str:
    """Return the help of the command or group registered at `route`."""
    if isinstance(route.node, CommandGroup):
        return format_group_help(route.segments, route.node)
    if isinstance(route.node, CommandDeclaration):
        return format_command_help(route.segments, route.node)
    return f"{' '.join(route.segments)}\n"


def get_help(router: Router, app_name: str, description: str = "") -> str:
    """Return the list of every command.

    Args:
        router: The composed command tree
        app_name: Program name shown in the syntax line
        description: Optional text shown under the syntax line
    """
    intro = f"Syntax: {app_name} <command> [arguments] [--help]\n"
    if description:
        intro += f"\n{description.strip()}\n"
    lines = ["", "Available commands:"]
    for route in router.commands():
        if route.node is None:
            continue
        name = " ".join(route.segments)
        if isinstance(route.node, CommandGroup):
            name += " ..."
        lines.append(f"  {name:24s} {_first_line(route.node.description)}")
    return intro + "\n".join(lines) + "\n"
