"""Command-line surface for gatehouse."""

from gatehouse.ui.cli import build_parser, run_cli

__all__ = ["build_parser", "run_cli"]
