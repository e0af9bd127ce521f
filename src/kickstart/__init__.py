from .colors import colorize
from .exceptions import ConfigurationFatal, KickstartError, SettingsError
from .hooks import Hook, Lifecycle, LoggerHook, ProfilingHook, SettingsHook, default_hooks
from .logging import LogLevel, configure_logger, format_error_value, get_logger
from .options import RootOptions
from .profiling import Profiler, ProfilerState, load_cpu_profile, load_heap_profile
from .settings import Settings, discover_settings
from .version import __version__

__all__ = [
    "colorize",
    "ConfigurationFatal",
    "KickstartError",
    "SettingsError",
    "Hook",
    "Lifecycle",
    "LoggerHook",
    "ProfilingHook",
    "SettingsHook",
    "default_hooks",
    "LogLevel",
    "configure_logger",
    "format_error_value",
    "get_logger",
    "RootOptions",
    "Profiler",
    "ProfilerState",
    "load_cpu_profile",
    "load_heap_profile",
    "Settings",
    "discover_settings",
    "__version__",
]
