"""Module entrypoint for ``python -m gatehouse``."""

from __future__ import annotations

from gatehouse.main import cli_entrypoint

if __name__ == "__main__":
    raise SystemExit(cli_entrypoint())
