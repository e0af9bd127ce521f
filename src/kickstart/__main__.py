"""Allow ``python -m kickstart`` invocation."""

from __future__ import annotations

from kickstart.app import cli

if __name__ == "__main__":
    cli()
