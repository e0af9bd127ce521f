from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

if TYPE_CHECKING:
    from kickstart.settings import Settings


@dataclass(slots=True)
class RootOptions:
    """Holds the options shared by every command of one invocation.

    Built by the root callback and handed to subcommands as ``ctx.obj``.
    An empty ``profiling_dir`` string means profiling is off.
    ``profiling_cpu_file`` belongs to the profiler; everything else only
    checks whether it is set.
    """

    debug: bool = False
    log_level: str = "info"
    color: bool = True
    profiling_dir: str | Path | None = None
    profiling_cpu_file: BinaryIO | None = None
    settings: Settings | None = None

    @property
    def profiling_enabled(self) -> bool:
        return self.profiling_dir is not None and os.fspath(self.profiling_dir) != ""
