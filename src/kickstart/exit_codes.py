"""Exit-code constants returned by :func:`kickstart.app.main`."""

from __future__ import annotations

SUCCESS: int = 0
"""Command completed without error."""

FATAL: int = 1
"""A ConfigurationFatal was raised during bootstrap or teardown."""

USAGE_ERROR: int = 2
"""Click rejected the command line."""

COMMAND_ERROR: int = -1
"""A subcommand raised. The shell sees 255."""

KEYBOARD_INTERRUPT: int = 130
"""User pressed Ctrl+C (128 + SIGINT)."""
