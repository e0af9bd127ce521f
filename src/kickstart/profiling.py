"""CPU and heap profiling around a single command invocation.

``Profiler.start`` opens ``profile_cpu.pb.gz`` and enables :mod:`cProfile`
and :mod:`tracemalloc`. ``Profiler.stop`` flushes the CPU samples into that
file, then writes a :mod:`tracemalloc` snapshot to ``profile_heap.pb.gz``.
Both files are gzip streams: marshalled ``pstats`` data for the CPU profile,
a pickled snapshot for the heap profile. Use :func:`load_cpu_profile` and
:func:`load_heap_profile` to read them back.
"""

from __future__ import annotations

import cProfile
import gc
import gzip
import marshal
import pickle
import pstats
import tracemalloc
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO

from kickstart.exceptions import ConfigurationFatal
from kickstart.logging import get_logger
from kickstart.options import RootOptions

__all__ = [
    "CPU_PROFILE_NAME",
    "HEAP_PROFILE_NAME",
    "Profiler",
    "ProfilerState",
    "load_cpu_profile",
    "load_heap_profile",
]

CPU_PROFILE_NAME = "profile_cpu.pb.gz"
HEAP_PROFILE_NAME = "profile_heap.pb.gz"

log = get_logger("profiling")


class ProfilerState(Enum):
    IDLE = "idle"
    CPU_RUNNING = "cpu_running"
    STOPPED = "stopped"


def write_cpu_profile(handle: BinaryIO, stats: dict[Any, Any]) -> None:
    with gzip.GzipFile(fileobj=handle, mode="wb") as gz:
        gz.write(marshal.dumps(stats))


def write_heap_profile(handle: BinaryIO, snapshot: tracemalloc.Snapshot) -> None:
    with gzip.GzipFile(fileobj=handle, mode="wb") as gz:
        pickle.dump(snapshot, gz, pickle.HIGHEST_PROTOCOL)


class _LoadedProfile:
    # pstats.Stats accepts anything exposing create_stats() and .stats
    def __init__(self, stats: dict[Any, Any]) -> None:
        self.stats = stats

    def create_stats(self) -> None:
        pass


def load_cpu_profile(path: str | Path) -> pstats.Stats:
    with gzip.open(path, "rb") as f:
        stats = marshal.loads(f.read())

    return pstats.Stats(_LoadedProfile(stats))


def load_heap_profile(path: str | Path) -> tracemalloc.Snapshot:
    with gzip.open(path, "rb") as f:
        snapshot = pickle.load(f)

    if not isinstance(snapshot, tracemalloc.Snapshot):
        raise TypeError(f"{path} does not contain a heap snapshot")

    return snapshot


class Profiler:
    """Opt-in profiling state machine: IDLE -> CPU_RUNNING -> STOPPED.

    Nothing happens unless ``options.profiling_dir`` is set. Every failure to
    produce a requested profile raises :class:`ConfigurationFatal`, except a
    failed close of the CPU file, which is logged and ignored since the
    samples are already written.
    """

    def __init__(self, profile_factory: Callable[[], cProfile.Profile] = cProfile.Profile) -> None:
        self.state = ProfilerState.IDLE
        self._profile_factory = profile_factory
        self._cpu: cProfile.Profile | None = None
        self._directory: Path | None = None
        self._owns_tracing = False

    def start(self, options: RootOptions) -> None:
        if self.state is not ProfilerState.IDLE or not options.profiling_enabled:
            return

        assert options.profiling_dir is not None
        directory = Path(options.profiling_dir)
        cpu_path = directory / CPU_PROFILE_NAME
        try:
            handle = open(cpu_path, "wb")  # noqa: SIM115
        except OSError as exc:
            raise ConfigurationFatal(f"could not create CPU profile: {exc}") from exc

        profile = self._profile_factory()
        try:
            profile.enable()
        except (ValueError, RuntimeError) as exc:
            handle.close()
            raise ConfigurationFatal(f"could not start CPU profile: {exc}") from exc

        if not tracemalloc.is_tracing():
            tracemalloc.start()
            self._owns_tracing = True

        self._cpu = profile
        self._directory = directory
        options.profiling_cpu_file = handle
        self.state = ProfilerState.CPU_RUNNING
        log.debug("profiling started", extra={"path": str(cpu_path)})

    def stop(self, options: RootOptions) -> None:
        if self.state is not ProfilerState.CPU_RUNNING:
            return

        assert self._cpu is not None and self._directory is not None
        self.state = ProfilerState.STOPPED
        self._cpu.disable()
        try:
            try:
                self._flush_cpu(options)
            finally:
                self._close_cpu(options)

            gc.collect()
            snapshot = tracemalloc.take_snapshot()
        finally:
            self._stop_tracing()

        self._dump_heap(self._directory / HEAP_PROFILE_NAME, snapshot)

    def _stop_tracing(self) -> None:
        if self._owns_tracing:
            tracemalloc.stop()
            self._owns_tracing = False

    def _flush_cpu(self, options: RootOptions) -> None:
        assert self._cpu is not None
        handle = options.profiling_cpu_file
        if handle is None:
            return

        self._cpu.create_stats()
        try:
            write_cpu_profile(handle, self._cpu.stats)  # type: ignore[attr-defined]
        except OSError as exc:
            raise ConfigurationFatal(f"could not write CPU profile: {exc}") from exc

    def _close_cpu(self, options: RootOptions) -> None:
        handle, options.profiling_cpu_file = options.profiling_cpu_file, None
        if handle is None:
            return

        try:
            handle.close()
        except OSError as exc:
            log.warning("could not close CPU profile", extra={"error": exc})

    def _dump_heap(self, path: Path, snapshot: tracemalloc.Snapshot) -> None:
        try:
            heap_file = open(path, "wb")  # noqa: SIM115
        except OSError as exc:
            raise ConfigurationFatal(f"could not write memory profile: {exc}") from exc

        # The with block closes the file before the fatal error leaves it.
        with heap_file:
            try:
                write_heap_profile(heap_file, snapshot)
            except (OSError, pickle.PicklingError) as exc:
                raise ConfigurationFatal(f"could not write memory profile: {exc}") from exc

        log.debug("profiling stopped", extra={"path": str(path)})
