from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path

from kickstart.logging import configure_logger, get_logger
from kickstart.options import RootOptions
from kickstart.profiling import Profiler
from kickstart.settings import DEFAULT_ENV_PREFIX, DEFAULT_SEARCH_PATHS, discover_settings

__all__ = [
    "Hook",
    "Lifecycle",
    "LoggerHook",
    "ProfilingHook",
    "SettingsHook",
    "default_hooks",
]

log = get_logger("hooks")


class Hook:
    """One step of the bootstrap pipeline.

    ``before`` runs ahead of the subcommand body, ``after`` once it has
    returned or raised. Both default to doing nothing.
    """

    name = "hook"

    def before(self, options: RootOptions) -> None:
        pass

    def after(self, options: RootOptions) -> None:
        pass


class LoggerHook(Hook):
    name = "logger"

    def before(self, options: RootOptions) -> None:
        configure_logger(options.debug, options.log_level, color=options.color)


class SettingsHook(Hook):
    name = "settings"

    def __init__(
        self,
        *,
        search_paths: Iterable[str | Path] = DEFAULT_SEARCH_PATHS,
        env_prefix: str = DEFAULT_ENV_PREFIX,
    ) -> None:
        self.search_paths = tuple(search_paths)
        self.env_prefix = env_prefix

    def before(self, options: RootOptions) -> None:
        options.settings = discover_settings(
            search_paths=self.search_paths, env_prefix=self.env_prefix
        )


class ProfilingHook(Hook):
    name = "profiling"

    def __init__(self, profiler: Profiler | None = None) -> None:
        self.profiler = profiler or Profiler()

    def before(self, options: RootOptions) -> None:
        self.profiler.start(options)

    def after(self, options: RootOptions) -> None:
        self.profiler.stop(options)


class Lifecycle:
    """Runs an ordered list of hooks around a command.

    ``before`` and ``after`` both walk the hooks in registration order. An
    exception from a hook stops the walk and propagates to the caller.
    """

    def __init__(self, hooks: Iterable[Hook]) -> None:
        self.hooks: Sequence[Hook] = tuple(hooks)

    def before(self, options: RootOptions) -> None:
        for hook in self.hooks:
            hook.before(options)
            log.debug("before hook done", extra={"hook": hook.name})

    def after(self, options: RootOptions) -> None:
        for hook in self.hooks:
            hook.after(options)
            log.debug("after hook done", extra={"hook": hook.name})


def default_hooks() -> list[Hook]:
    """Logger, then config discovery, then profiling."""
    return [LoggerHook(), SettingsHook(), ProfilingHook()]
