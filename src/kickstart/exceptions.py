"""Exception hierarchy for kickstart.

KickstartError
├── ConfigurationFatal
└── SettingsError
"""

from __future__ import annotations


class KickstartError(Exception):
    """Base exception for all kickstart errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint


class ConfigurationFatal(KickstartError):
    """Misconfiguration the process must not continue past.

    Raised for an unknown log level and for any failure to produce a
    requested profile. The CLI error boundary turns it into an immediate,
    non-zero exit.
    """


class SettingsError(KickstartError):
    """Raised when a discovered config file cannot be parsed."""
