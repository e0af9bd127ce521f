from __future__ import annotations

import io
import logging
import pstats
import tracemalloc
from pathlib import Path
from typing import Any, BinaryIO

import pytest

from kickstart import profiling
from kickstart.exceptions import ConfigurationFatal
from kickstart.options import RootOptions
from kickstart.profiling import (
    CPU_PROFILE_NAME,
    HEAP_PROFILE_NAME,
    Profiler,
    ProfilerState,
    load_cpu_profile,
    load_heap_profile,
)


def _busy_work() -> int:
    return sum(i * i for i in range(10_000))


class _BusyProfile:
    def enable(self) -> None:
        raise ValueError("Another profiling tool is already active")


class _BadClose(io.BytesIO):
    failed = False

    def close(self) -> None:
        if not self.failed:
            self.failed = True
            raise OSError("close failed")
        super().close()


def test_idle_without_profile_dir(isolated_env: Path) -> None:
    options = RootOptions()
    profiler = Profiler()

    profiler.start(options)
    assert profiler.state is ProfilerState.IDLE
    assert options.profiling_cpu_file is None

    profiler.stop(options)
    assert profiler.state is ProfilerState.IDLE
    assert list(isolated_env.iterdir()) == []


def test_empty_profile_dir_is_disabled(isolated_env: Path) -> None:
    options = RootOptions(profiling_dir="")
    assert not options.profiling_enabled

    profiler = Profiler()
    profiler.start(options)
    profiler.stop(options)

    assert profiler.state is ProfilerState.IDLE
    assert list(isolated_env.iterdir()) == []


def test_start_and_stop_write_both_profiles(profile_dir: Path) -> None:
    options = RootOptions(profiling_dir=profile_dir)
    profiler = Profiler()

    profiler.start(options)
    assert profiler.state is ProfilerState.CPU_RUNNING
    assert options.profiling_cpu_file is not None
    handle = options.profiling_cpu_file

    _busy_work()
    profiler.stop(options)

    assert profiler.state is ProfilerState.STOPPED
    assert options.profiling_cpu_file is None
    assert handle.closed
    for name in (CPU_PROFILE_NAME, HEAP_PROFILE_NAME):
        assert (profile_dir / name).stat().st_size > 0


def test_profiles_load_back(profile_dir: Path) -> None:
    options = RootOptions(profiling_dir=profile_dir)
    profiler = Profiler()
    profiler.start(options)
    _busy_work()
    profiler.stop(options)

    stats = load_cpu_profile(profile_dir / CPU_PROFILE_NAME)
    assert isinstance(stats, pstats.Stats)
    assert any(func[2] == "_busy_work" for func in stats.stats)  # type: ignore[attr-defined]

    snapshot = load_heap_profile(profile_dir / HEAP_PROFILE_NAME)
    assert isinstance(snapshot, tracemalloc.Snapshot)


def test_existing_profiles_are_overwritten(profile_dir: Path) -> None:
    (profile_dir / CPU_PROFILE_NAME).write_bytes(b"stale")
    (profile_dir / HEAP_PROFILE_NAME).write_bytes(b"stale")

    options = RootOptions(profiling_dir=profile_dir)
    profiler = Profiler()
    profiler.start(options)
    profiler.stop(options)

    assert (profile_dir / CPU_PROFILE_NAME).read_bytes() != b"stale"
    load_heap_profile(profile_dir / HEAP_PROFILE_NAME)


def test_stop_twice_is_noop(profile_dir: Path) -> None:
    options = RootOptions(profiling_dir=profile_dir)
    profiler = Profiler()
    profiler.start(options)
    profiler.stop(options)
    (profile_dir / HEAP_PROFILE_NAME).unlink()

    profiler.stop(options)
    assert not (profile_dir / HEAP_PROFILE_NAME).exists()


def test_stops_tracing_it_started(profile_dir: Path) -> None:
    if tracemalloc.is_tracing():
        pytest.skip("tracemalloc already enabled for this interpreter")
    options = RootOptions(profiling_dir=profile_dir)
    profiler = Profiler()
    profiler.start(options)
    assert tracemalloc.is_tracing()
    profiler.stop(options)
    assert not tracemalloc.is_tracing()


def test_unwritable_dir_is_fatal(tmp_path: Path) -> None:
    options = RootOptions(profiling_dir=tmp_path / "missing")
    profiler = Profiler()

    with pytest.raises(ConfigurationFatal, match="could not create CPU profile"):
        profiler.start(options)

    assert profiler.state is ProfilerState.IDLE
    assert options.profiling_cpu_file is None


def test_enable_failure_is_fatal_and_closes_file(
    profile_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    opened: list[BinaryIO] = []
    real_open = open

    def tracking_open(*args: Any, **kwargs: Any) -> Any:
        handle = real_open(*args, **kwargs)
        opened.append(handle)
        return handle

    monkeypatch.setattr("builtins.open", tracking_open)
    options = RootOptions(profiling_dir=profile_dir)
    profiler = Profiler(profile_factory=_BusyProfile)  # type: ignore[arg-type]

    with pytest.raises(ConfigurationFatal, match="could not start CPU profile"):
        profiler.start(options)

    cpu_files = [h for h in opened if str(getattr(h, "name", "")).endswith(CPU_PROFILE_NAME)]
    assert cpu_files and all(handle.closed for handle in cpu_files)
    assert options.profiling_cpu_file is None
    assert profiler.state is ProfilerState.IDLE


def test_cpu_close_failure_is_logged(
    profile_dir: Path, caplog: pytest.LogCaptureFixture
) -> None:
    options = RootOptions(profiling_dir=profile_dir)
    profiler = Profiler()
    profiler.start(options)

    assert options.profiling_cpu_file is not None
    options.profiling_cpu_file.close()
    options.profiling_cpu_file = _BadClose()

    with caplog.at_level(logging.WARNING, logger="kickstart"):
        profiler.stop(options)

    assert "could not close CPU profile" in caplog.text
    assert options.profiling_cpu_file is None
    assert (profile_dir / HEAP_PROFILE_NAME).stat().st_size > 0


def test_heap_write_failure_closes_file_first(
    profile_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    seen: list[BinaryIO] = []

    def failing_write(handle: BinaryIO, snapshot: tracemalloc.Snapshot) -> None:
        seen.append(handle)
        raise OSError("disk full")

    monkeypatch.setattr(profiling, "write_heap_profile", failing_write)
    options = RootOptions(profiling_dir=profile_dir)
    profiler = Profiler()
    profiler.start(options)

    with pytest.raises(ConfigurationFatal, match="could not write memory profile") as excinfo:
        profiler.stop(options)

    assert seen[0].closed
    assert isinstance(excinfo.value.__cause__, OSError)
    assert (profile_dir / CPU_PROFILE_NAME).stat().st_size > 0


def test_heap_create_failure_is_fatal(profile_dir: Path) -> None:
    options = RootOptions(profiling_dir=profile_dir)
    profiler = Profiler()
    profiler.start(options)
    (profile_dir / HEAP_PROFILE_NAME).mkdir()

    with pytest.raises(ConfigurationFatal, match="could not write memory profile"):
        profiler.stop(options)

    assert profiler.state is ProfilerState.STOPPED
    assert options.profiling_cpu_file is None


def test_cpu_write_failure_stops_tracing(
    profile_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    if tracemalloc.is_tracing():
        pytest.skip("tracemalloc already enabled for this interpreter")

    def failing_write(handle: BinaryIO, stats: dict[Any, Any]) -> None:
        raise OSError("disk full")

    monkeypatch.setattr(profiling, "write_cpu_profile", failing_write)
    options = RootOptions(profiling_dir=profile_dir)
    profiler = Profiler()
    profiler.start(options)
    handle = options.profiling_cpu_file

    with pytest.raises(ConfigurationFatal, match="could not write CPU profile"):
        profiler.stop(options)

    assert not tracemalloc.is_tracing()
    assert handle is not None and handle.closed
    assert options.profiling_cpu_file is None
    assert not (profile_dir / HEAP_PROFILE_NAME).exists()
