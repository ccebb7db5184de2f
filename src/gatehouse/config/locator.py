"""
gatehouse - locate the root directory and the config documents.

File: src/gatehouse/config/locator.py

Purpose
- Decide which on-disk document the configuration is read from.

What should be included in this file
- Root directory: ``GATEHOUSE_ROOT`` or the executable's directory.
- Document precedence: ``GATEHOUSE_CONFIG`` > ``--config`` > root/config/config.yml.
- Lookup of the defaults document and the optional secret file.

Functional requirements
- Failure to locate the chosen document is fatal (``ConfigLoadError``).
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from gatehouse.config.errors import ConfigLoadError
from gatehouse.constants import (
    CONFIG_BASENAME,
    CONFIG_DIR_NAME,
    DEFAULTS_BASENAME,
    ENV_CONFIG,
    ENV_ROOT,
    SECRET_FILE_NAME,
    TEST_CONFIG_RELPATH,
    YAML_SUFFIXES,
)

logger = logging.getLogger(__name__)

SourceOrigin = Literal["env", "flag", "default", "test"]


@dataclass(frozen=True, slots=True)
class ConfigSource:
    """Where the primary document was found and how it was chosen."""

    path: Path
    root_dir: Path
    origin: SourceOrigin

    @property
    def config_dir(self) -> Path:
        return self.root_dir / CONFIG_DIR_NAME


def resolve_root_dir(
    environ: Mapping[str, str] | None = None,
    *,
    executable: str | Path | None = None,
) -> Path:
    """Root directory: ``GATEHOUSE_ROOT`` verbatim, else the executable's directory."""

    env_map = os.environ if environ is None else environ
    override = env_map.get(ENV_ROOT, "")
    if override:
        logger.warning("set root directory from %s env var: %s", ENV_ROOT, override)
        return Path(override)

    launched = Path(executable) if executable is not None else Path(sys.argv[0] or ".")
    root_dir = launched.resolve().parent
    logger.debug("root directory: %s", root_dir)
    return root_dir


def locate_config(
    root_dir: Path,
    *,
    config_flag: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> ConfigSource:
    """Pick the primary document by env var, then command-line flag, then default."""

    env_map = os.environ if environ is None else environ
    env_config = env_map.get(ENV_CONFIG, "")
    if env_config:
        path = Path(env_config).expanduser().absolute()
        logger.warning("config file loaded from environment variable %s: %s", ENV_CONFIG, path)
        if not path.is_file():
            raise ConfigLoadError(f"config file not found: {path} (from {ENV_CONFIG})")
        return ConfigSource(path=path, root_dir=root_dir, origin="env")

    if config_flag:
        logger.info("config file set on command line: %s", config_flag)
        path = _search_flag_path(config_flag, root_dir)
        return ConfigSource(path=path, root_dir=root_dir, origin="flag")

    config_dir = root_dir / CONFIG_DIR_NAME
    path = _find_yaml(config_dir, CONFIG_BASENAME)
    if path is None:
        searched = ", ".join(str(config_dir / f"{CONFIG_BASENAME}{s}") for s in YAML_SUFFIXES)
        raise ConfigLoadError(f"config file not found; searched: {searched}")
    return ConfigSource(path=path, root_dir=root_dir, origin="default")


def locate_test_config(
    root_dir: Path,
    *,
    environ: Mapping[str, str] | None = None,
) -> ConfigSource:
    """Config used by isolated test setups: ``GATEHOUSE_CONFIG`` or the bundled test config."""

    env_map = os.environ if environ is None else environ
    if env_map.get(ENV_CONFIG, ""):
        return locate_config(root_dir, environ=env_map)

    path = root_dir.joinpath(*TEST_CONFIG_RELPATH)
    if not path.is_file():
        raise ConfigLoadError(f"test config file not found: {path}")
    return ConfigSource(path=path, root_dir=root_dir, origin="test")


def locate_defaults(root_dir: Path) -> Path | None:
    """Defaults document under root/config, if one exists."""

    return _find_yaml(root_dir / CONFIG_DIR_NAME, DEFAULTS_BASENAME)


def secret_file_path(root_dir: Path) -> Path:
    return root_dir / CONFIG_DIR_NAME / SECRET_FILE_NAME


def candidate_dirs(root_dir: Path) -> tuple[Path, ...]:
    """Directories searched for a relative ``--config`` path, in order."""

    return (Path("/"), root_dir, root_dir / CONFIG_DIR_NAME)


def _search_flag_path(config_flag: str, root_dir: Path) -> Path:
    flag_path = Path(config_flag).expanduser()
    if flag_path.is_absolute():
        if flag_path.is_file():
            return flag_path
        raise ConfigLoadError(f"config file not found: {flag_path}")

    searched: list[str] = []
    for directory in candidate_dirs(root_dir):
        candidate = directory / flag_path
        searched.append(str(candidate))
        if candidate.is_file():
            return candidate.absolute()
    raise ConfigLoadError(f"config file {config_flag} not found; searched: {', '.join(searched)}")


def _find_yaml(directory: Path, basename: str) -> Path | None:
    for suffix in YAML_SUFFIXES:
        candidate = directory / f"{basename}{suffix}"
        if candidate.is_file():
            return candidate
    return None


__all__ = [
    "ConfigSource",
    "SourceOrigin",
    "candidate_dirs",
    "locate_config",
    "locate_defaults",
    "locate_test_config",
    "resolve_root_dir",
    "secret_file_path",
]
