"""Fatal configuration errors raised while reading documents."""

from __future__ import annotations


class ConfigLoadError(ValueError):
    """Raised when a config document cannot be located, read, or parsed."""


__all__ = ["ConfigLoadError"]
