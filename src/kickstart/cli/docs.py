"""Markdown reference pages for a Click/Typer command tree.

One file per command, named after its full path with spaces replaced by
underscores (``kickstart.md``, ``kickstart_version.md``), each linking to its
parent and children.
"""

from __future__ import annotations

from pathlib import Path

import click
import typer

from kickstart.cli.utils import DocsDir
from kickstart.logging import get_logger

__all__ = ["docs_command", "generate_markdown_tree", "render_markdown"]

log = get_logger("docs")


def _basename(ctx: click.Context) -> str:
    return ctx.command_path.replace(" ", "_")


def _options_block(command: click.Command, ctx: click.Context) -> list[str]:
    rows: list[tuple[str, str]] = []
    for param in command.get_params(ctx):
        record = param.get_help_record(ctx)
        if record is not None:
            rows.append(record)

    if not rows:
        return []

    width = max(len(opts) for opts, _ in rows)
    return [f"  {opts.ljust(width)}   {help_text}".rstrip() for opts, help_text in rows]


def _children(command: click.Command, ctx: click.Context) -> list[click.Command]:
    if not isinstance(command, click.Group):
        return []

    children: list[click.Command] = []
    for name in command.list_commands(ctx):
        child = command.get_command(ctx, name)
        if child is not None and not child.hidden:
            children.append(child)

    return children


def render_markdown(command: click.Command, ctx: click.Context) -> str:
    short = command.get_short_help_str(limit=120)
    usage = " ".join([ctx.command_path, *command.collect_usage_pieces(ctx)])
    lines = [f"## {ctx.command_path}", "", short, ""]

    if command.help and command.help.strip() != short:
        lines += ["### Synopsis", "", command.help.strip(), ""]

    lines += ["```", usage, "```", ""]

    options = _options_block(command, ctx)
    if options:
        lines += ["### Options", "", "```", *options, "```", ""]

    inherited: list[str] = []
    parent = ctx.parent
    while parent is not None:
        inherited = _options_block(parent.command, parent) + inherited
        parent = parent.parent
    if inherited:
        lines += ["### Options inherited from parent commands", "", "```", *inherited, "```", ""]

    see_also: list[str] = []
    if ctx.parent is not None:
        parent_short = ctx.parent.command.get_short_help_str(limit=120)
        see_also.append(
            f"* [{ctx.parent.command_path}]({_basename(ctx.parent)}.md)\t - {parent_short}"
        )
    for child in _children(command, ctx):
        child_path = f"{ctx.command_path} {child.name}"
        see_also.append(
            f"* [{child_path}]({child_path.replace(' ', '_')}.md)\t - "
            f"{child.get_short_help_str(limit=120)}"
        )
    if see_also:
        lines += ["### SEE ALSO", "", *see_also, ""]

    return "\n".join(lines)


def generate_markdown_tree(
    command: click.Command,
    directory: str | Path,
    *,
    prog_name: str | None = None,
    parent: click.Context | None = None,
) -> list[Path]:
    """Write Markdown for ``command`` and every visible subcommand.

    Returns the written paths, parents before children.
    """
    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)

    ctx = click.Context(command, info_name=prog_name or command.name, parent=parent)
    path = out_dir / f"{_basename(ctx)}.md"
    path.write_text(render_markdown(command, ctx), encoding="utf-8")
    written = [path]

    for child in _children(command, ctx):
        written.extend(generate_markdown_tree(child, out_dir, prog_name=child.name, parent=ctx))

    return written


def docs_command(ctx: typer.Context, directory: Path = DocsDir) -> None:
    """Generate the Markdown command reference."""
    root = ctx.find_root()
    written = generate_markdown_tree(root.command, directory, prog_name=root.info_name)
    log.info("wrote command reference", extra={"directory": str(directory), "files": len(written)})
