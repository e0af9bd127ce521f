from __future__ import annotations

import os
from typing import Any

__all__ = ["BOLD", "RED", "GREEN", "YELLOW", "MAGENTA", "CYAN", "DARK_GRAY", "colorize"]

BOLD = 1
RED = 31
GREEN = 32
YELLOW = 33
MAGENTA = 35
CYAN = 36
DARK_GRAY = 90

NO_COLOR_ENV = "NO_COLOR"


def colorize(value: Any, color: int, disabled: bool) -> str:
    """Wrap ``value`` in the ANSI sequence for ``color``.

    Returns the plain string when coloring is disabled, when ``NO_COLOR`` is
    set to a non-empty value, or when ``color`` is 0. ``None`` renders as an
    empty string.
    """
    text = "" if value is None else str(value)
    if disabled or os.environ.get(NO_COLOR_ENV) or color == 0:
        return text

    return f"\x1b[{color}m{text}\x1b[0m"
