"""Process entrypoint: run the CLI and turn its outcome into an exit code."""

from __future__ import annotations

import sys
import traceback
from enum import IntEnum
from typing import TYPE_CHECKING

from gatehouse.config.errors import ConfigLoadError
from gatehouse.config.validation import ConfigValidationError

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence


class ExitCode(IntEnum):
    """Exit codes of the ``gatehouse`` command.

    argparse usage errors also exit with 2.
    """

    SUCCESS = 0
    CONFIG_ERROR = 2
    INTERNAL_ERROR = 4


_KNOWN_CODES = frozenset(int(code) for code in ExitCode)


def cli_entrypoint(argv: Sequence[str] | None = None) -> int:
    """Entrypoint used by ``python -m gatehouse`` and the console script."""

    try:
        from gatehouse.ui.cli import run_cli

        return _as_exit_code(run_cli(argv))
    except SystemExit as exc:  # --help and flag errors from argparse
        return _as_exit_code(exc.code)
    except Exception as exc:  # noqa: BLE001 - CLI boundary
        if _is_config_failure(exc):
            _write_stderr(str(exc).strip() or type(exc).__name__)
            return int(ExitCode.CONFIG_ERROR)
        traceback.print_exception(type(exc), exc, exc.__traceback__, file=sys.stderr)
        return int(ExitCode.INTERNAL_ERROR)


def _as_exit_code(raw_code: object) -> int:
    if raw_code is None:
        return int(ExitCode.SUCCESS)
    if isinstance(raw_code, int) and raw_code in _KNOWN_CODES:
        return raw_code
    if isinstance(raw_code, str) and raw_code.strip():
        _write_stderr(raw_code.strip())
    return int(ExitCode.INTERNAL_ERROR)


def _is_config_failure(exc: BaseException) -> bool:
    return any(
        isinstance(item, (ConfigLoadError, ConfigValidationError)) for item in _causes(exc)
    )


def _causes(exc: BaseException) -> Iterator[BaseException]:
    """Yield ``exc`` and the exceptions it was raised from, without looping."""

    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        if current.__cause__ is not None:
            current = current.__cause__
        elif not current.__suppress_context__:
            current = current.__context__
        else:
            current = None


def _write_stderr(message: str) -> None:
    sys.stderr.write(message.rstrip("\n") + "\n")


__all__ = ["ExitCode", "cli_entrypoint"]
