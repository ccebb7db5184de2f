"""
gatehouse - configuration core of an authentication proxy.

Resolves the YAML config documents, environment variables, and command-line
flags into one validated, immutable ``Configuration``.

Importing the package has no side effects (no config loading, no logging
setup); call ``gatehouse.config.load_config`` at startup.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
