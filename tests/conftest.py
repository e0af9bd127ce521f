from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[Path]:
    """Run each test from an empty directory with no color override.

    Config discovery searches the working directory and $HOME, so both point
    at the per-test tmp dir.
    """
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    monkeypatch.setenv("HOME", workdir.as_posix())
    monkeypatch.delenv("NO_COLOR", raising=False)
    yield workdir
    _reset_logger()


def _reset_logger() -> None:
    logger = logging.getLogger("kickstart")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture()
def profile_dir(tmp_path: Path) -> Path:
    path = tmp_path / "profiles"
    path.mkdir()
    return path
