"""Root command, persistent flags and the process error boundary.

The root callback builds :class:`RootOptions` from the persistent flags,
runs every hook's ``before`` step in order and schedules the ``after`` steps
with ``ctx.call_on_close`` so they run once the subcommand has returned or
raised. :func:`main` turns what escapes into an exit code.
"""

from __future__ import annotations

import sys
from collections.abc import Callable, Sequence

import click
import typer
from rich.console import Console
from rich.text import Text

from kickstart import exit_codes
from kickstart.cli.docs import docs_command
from kickstart.cli.utils import Color, Debug, Level, ProfileDir
from kickstart.exceptions import ConfigurationFatal, KickstartError
from kickstart.hooks import Hook, Lifecycle, default_hooks
from kickstart.logging import LogLevel, configure_logger, get_logger
from kickstart.options import RootOptions
from kickstart.version import __version__

PROG_NAME = "kickstart"

HooksFactory = Callable[[], Sequence[Hook]]


def version() -> None:
    """Print version and exit."""
    typer.echo(__version__)


def create_app(hooks_factory: HooksFactory = default_hooks) -> typer.Typer:
    """Build the root Typer app with a fresh hook list per invocation."""
    app = typer.Typer(
        no_args_is_help=True,
        add_completion=False,
        help="kickstart: command-line application bootstrap.",
    )

    @app.callback()
    def bootstrap(
        ctx: typer.Context,
        debug: bool = Debug,
        loglevel: str = Level,
        color: bool = Color,
        profiledir: str = ProfileDir,
    ) -> None:
        if ctx.resilient_parsing:
            return

        options = RootOptions(
            debug=debug,
            log_level=loglevel,
            color=color,
            profiling_dir=profiledir or None,
        )
        ctx.obj = options

        lifecycle = Lifecycle(hooks_factory())
        lifecycle.before(options)
        ctx.call_on_close(lambda: lifecycle.after(options))

    app.command()(version)
    app.command("docs")(docs_command)

    return app


app = create_app()

_console = Console(stderr=True)


def _log_fatal(exc: ConfigurationFatal) -> None:
    # An invalid --loglevel fails before the logger is configured.
    logger = get_logger()
    if not logger.handlers:
        configure_logger(False, LogLevel.INFO.value, color=sys.stderr.isatty())
    logger.critical(str(exc))


def _report(label: str, exc: BaseException, *, style: str = "bold red") -> None:
    _console.print(Text.assemble((label, style), str(exc)))
    hint = getattr(exc, "hint", None)
    if hint:
        _console.print(Text.assemble(("Hint: ", "yellow"), hint))


def main(argv: list[str] | None = None, *, application: typer.Typer | None = None) -> int:
    """Run the CLI and return the process exit code.

    Parameters
    ----------
    argv:
        Explicit argument list. When ``None``, ``sys.argv[1:]`` is used.
    application:
        App to run instead of the module-level one.
    """
    try:
        result = (application or app)(args=argv, prog_name=PROG_NAME, standalone_mode=False)
    except ConfigurationFatal as exc:
        _log_fatal(exc)
        return exit_codes.FATAL
    except KickstartError as exc:
        _report("Error: ", exc)
        return exit_codes.COMMAND_ERROR
    except click.exceptions.Abort:
        _console.print(Text("Aborted by user.", style="yellow"))
        return exit_codes.KEYBOARD_INTERRUPT
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except Exception as exc:  # noqa: BLE001
        typer.echo(str(exc), err=True)
        return exit_codes.COMMAND_ERROR

    if isinstance(result, int) and not isinstance(result, bool):
        return result
    return exit_codes.SUCCESS


def cli() -> None:
    """Console-script entry point."""
    sys.exit(main())
