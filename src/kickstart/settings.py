from __future__ import annotations

import os
import tomllib
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import orjson
import yaml
from dotenv import find_dotenv, load_dotenv

from kickstart.exceptions import SettingsError
from kickstart.logging import get_logger

__all__ = ["Settings", "discover_settings", "env_key"]

DEFAULT_CONFIG_NAME = "config"
DEFAULT_SEARCH_PATHS: tuple[str | Path, ...] = (".", "~")
DEFAULT_ENV_PREFIX = "KICKSTART"

_EXTENSIONS = (".toml", ".yaml", ".yml", ".json")

log = get_logger("settings")


def env_key(prefix: str, key: str) -> str:
    name = key.upper().replace(".", "_").replace("-", "_")
    return f"{prefix.upper()}_{name}" if prefix else name


class Settings:
    """Read-only key/value view over a config file and the environment.

    Environment variables named ``<PREFIX>_<KEY>`` take precedence over
    values read from the file. Dotted keys walk nested tables.
    """

    def __init__(
        self,
        values: Mapping[str, Any] | None = None,
        *,
        env_prefix: str = DEFAULT_ENV_PREFIX,
        config_file: Path | None = None,
    ) -> None:
        self._values: dict[str, Any] = dict(values or {})
        self.env_prefix = env_prefix
        self.config_file = config_file

    def get(self, key: str, default: Any = None) -> Any:
        env_value = os.environ.get(env_key(self.env_prefix, key))
        if env_value is not None:
            return env_value

        node: Any = self._values
        for part in key.split("."):
            if not isinstance(node, Mapping) or part not in node:
                return default
            node = node[part]

        return node

    def __contains__(self, key: str) -> bool:
        sentinel = object()
        return self.get(key, sentinel) is not sentinel

    def as_dict(self) -> dict[str, Any]:
        return dict(self._values)


def _parse(path: Path) -> dict[str, Any]:
    try:
        if path.suffix == ".toml":
            with path.open("rb") as f:
                data = tomllib.load(f)
        elif path.suffix in {".yaml", ".yml"}:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        else:
            data = orjson.loads(path.read_bytes())
    except (OSError, tomllib.TOMLDecodeError, yaml.YAMLError, orjson.JSONDecodeError) as exc:
        raise SettingsError(
            f"could not read config file {path}: {exc}",
            hint="Fix the file or remove it to run with defaults.",
        ) from exc

    if not isinstance(data, dict):
        raise SettingsError(f"config file {path} must contain a mapping at the top level")

    return data


def find_config_file(name: str, search_paths: Iterable[str | Path]) -> Path | None:
    for directory in search_paths:
        base = Path(os.path.expandvars(str(directory))).expanduser()
        for ext in _EXTENSIONS:
            candidate = base / f"{name}{ext}"
            if candidate.is_file():
                return candidate

    return None


def discover_settings(
    *,
    name: str = DEFAULT_CONFIG_NAME,
    search_paths: Iterable[str | Path] = DEFAULT_SEARCH_PATHS,
    env_prefix: str = DEFAULT_ENV_PREFIX,
    dotenv: bool = True,
) -> Settings:
    """Locate and load ``<name>.{toml,yaml,yml,json}``.

    The first directory in ``search_paths`` holding a matching file wins. A
    missing file yields empty settings that still see the environment.
    """
    if dotenv:
        load_dotenv(find_dotenv(usecwd=True))

    path = find_config_file(name, search_paths)
    if path is None:
        log.debug("no config file found", extra={"config_name": name})
        return Settings(env_prefix=env_prefix)

    log.debug("Using config file: %s", path)
    return Settings(_parse(path), env_prefix=env_prefix, config_file=path)
