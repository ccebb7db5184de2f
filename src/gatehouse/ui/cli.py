"""Command-line interface for gatehouse."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import IO, Final

from gatehouse.config import ResolvedConfig, effective_config, load_config, report_resolution
from gatehouse.constants import BRANDING, DEFAULT_LOG_LEVEL, LOG_LEVEL_CHOICES, PORT_UNSET
from gatehouse.observability.logging import (
    LoggingConfig,
    emit_log_test,
    parse_log_level,
    set_log_level,
    setup_logging,
    use_development_logger,
)

HEALTHCHECK_PATH: Final[str] = "/healthcheck"
_ANY_ADDRESS: Final[str] = "0.0.0.0"


def build_parser() -> argparse.ArgumentParser:
    """Build the flag parser."""

    parser = argparse.ArgumentParser(
        prog=BRANDING.lc_name,
        description=(
            f"{BRANDING.full_name}: resolve and validate configuration.\n\n"
            f"Environment:\n"
            f"  {BRANDING.uc_name}_ROOT     root directory (default: executable's directory)\n"
            f"  {BRANDING.uc_name}_CONFIG   config file path (overrides --config)\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--healthcheck",
        action="store_true",
        default=False,
        help="Invoke healthcheck mode (check process return value).",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=PORT_UNSET,
        help="Listen port; overrides the config file.",
    )
    parser.add_argument(
        "--config",
        dest="config_path",
        default="",
        help="Alternate config.yml file, searched in /, the root dir, and root/config.",
    )
    parser.add_argument(
        "--loglevel",
        choices=LOG_LEVEL_CHOICES,
        default=None,
        help=(
            "Set log level to one of: "
            + ", ".join(LOG_LEVEL_CHOICES)
            + "; overrides logLevel from the config file."
        ),
    )
    parser.add_argument(
        "--logtest",
        action="store_true",
        default=False,
        help="Print a series of log messages and exit (used for testing).",
    )
    return parser


def run_cli(
    argv: Sequence[str] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    executable: str | Path | None = None,
    stdout: IO[str] | None = None,
    log_stream: IO[str] | None = None,
) -> int:
    """Parse flags, resolve the configuration, and return process exit code.

    Config load and validation errors propagate to the caller.
    """

    args = build_parser().parse_args(list(argv) if argv is not None else None)
    out = stdout if stdout is not None else sys.stdout
    logger = setup_logging(
        LoggingConfig(level=args.loglevel or DEFAULT_LOG_LEVEL, stream=log_stream)
    )

    if args.logtest:
        emit_log_test(logger)
        return 0

    resolved = load_config(
        config_flag=args.config_path or None,
        port=args.port,
        environ=os.environ if environ is None else environ,
        executable=executable,
        validate=not args.healthcheck,
        report=False,
    )

    if resolved.config.testing:
        logger = use_development_logger(stream=log_stream)
        if args.loglevel:
            set_log_level(args.loglevel)
    else:
        set_log_level(_effective_log_level(args.loglevel, resolved, logger))
    report_resolution(resolved)

    if args.healthcheck:
        out.write(healthcheck_url(resolved) + "\n")
        return 0

    logger.info(
        "configuration resolved from %s (%s)",
        resolved.source.path,
        resolved.source.origin,
    )

    out.write(
        json.dumps(
            effective_config(resolved.config),
            sort_keys=True,
            indent=2,
            ensure_ascii=False,
        )
        + "\n"
    )
    return 0


def _effective_log_level(
    flag: str | None, resolved: ResolvedConfig, logger: logging.Logger
) -> str:
    """``--loglevel`` wins, then ``logLevel`` from the config, then the default."""

    if flag:
        return flag
    configured = resolved.config.log_level
    if not configured:
        return DEFAULT_LOG_LEVEL
    try:
        parse_log_level(configured)
    except ValueError:
        logger.warning(
            "unsupported %s.logLevel %r; using %s",
            BRANDING.lc_name,
            configured,
            DEFAULT_LOG_LEVEL,
        )
        return DEFAULT_LOG_LEVEL
    return configured


def healthcheck_url(resolved: ResolvedConfig) -> str:
    """URL a health probe should hit for the resolved listener."""

    host = resolved.config.listen or _ANY_ADDRESS
    return f"http://{host}:{resolved.config.port}{HEALTHCHECK_PATH}"


__all__ = ["HEALTHCHECK_PATH", "build_parser", "healthcheck_url", "run_cli"]
