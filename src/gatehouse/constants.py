"""Stable constants shared by the configuration core."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final


@dataclass(frozen=True, slots=True)
class Branding:
    """Names the product goes by in config keys, env vars, and messages."""

    lc_name: str
    uc_name: str
    full_name: str
    old_lc_name: str
    url: str


BRANDING: Final[Branding] = Branding(
    lc_name="gatehouse",
    uc_name="GATEHOUSE",
    full_name="Gatehouse Proxy",
    old_lc_name="porter",
    url="https://github.com/gatehouse-proxy/gatehouse",
)

# Environment variables.
ENV_ROOT: Final[str] = f"{BRANDING.uc_name}_ROOT"
ENV_CONFIG: Final[str] = f"{BRANDING.uc_name}_CONFIG"

# On-disk layout (relative to the root directory).
CONFIG_DIR_NAME: Final[str] = "config"
CONFIG_BASENAME: Final[str] = "config"
DEFAULTS_BASENAME: Final[str] = ".defaults"
YAML_SUFFIXES: Final[tuple[str, ...]] = (".yml", ".yaml")
SECRET_FILE_NAME: Final[str] = "secret"
TEST_CONFIG_RELPATH: Final[tuple[str, ...]] = ("config", "testing", "test_config.yml")

# Top-level sections of the primary document.
OAUTH_KEY: Final[str] = "oauth"

# Must be present for a minimum viable config.
REQUIRED_OPTIONS: Final[tuple[str, ...]] = ("oauth.provider", "oauth.client_id")

# A base64 string needs 44 characters to carry 32 random bytes.
MIN_BASE64_LENGTH: Final[int] = 44

# ``--port`` value meaning "not given on the command line".
PORT_UNSET: Final[int] = -1

LOG_LEVEL_CHOICES: Final[tuple[str, ...]] = ("panic", "error", "warn", "info", "debug")
DEFAULT_LOG_LEVEL: Final[str] = "info"

__all__ = [
    "BRANDING",
    "Branding",
    "CONFIG_BASENAME",
    "CONFIG_DIR_NAME",
    "DEFAULTS_BASENAME",
    "DEFAULT_LOG_LEVEL",
    "ENV_CONFIG",
    "ENV_ROOT",
    "LOG_LEVEL_CHOICES",
    "MIN_BASE64_LENGTH",
    "OAUTH_KEY",
    "PORT_UNSET",
    "REQUIRED_OPTIONS",
    "SECRET_FILE_NAME",
    "TEST_CONFIG_RELPATH",
    "YAML_SUFFIXES",
]
