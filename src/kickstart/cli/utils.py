from __future__ import annotations

import typer

from kickstart.logging import LogLevel

LEVEL_NAMES = ", ".join(level.value for level in LogLevel)

# Reusable Typer option factories for the persistent flags
Debug = typer.Option(
    False,
    "--debug",
    help="Log additional information about what the tool is doing. Overrides --loglevel.",
)
Level = typer.Option(
    LogLevel.INFO.value,
    "--loglevel",
    "-L",
    help=f"Set log level ({LEVEL_NAMES}).",
)
Color = typer.Option(
    True,
    "--color/--no-color",
    help="Enable colorized output. Use --no-color to turn it off; NO_COLOR in the environment also disables it.",
)
ProfileDir = typer.Option(
    "",
    "--profiledir",
    help="Directory to write CPU and heap profile data to. Profiling is off when empty.",
)
DocsDir = typer.Argument(
    "docs/cmd",
    help="Directory to write the Markdown command reference to.",
)
