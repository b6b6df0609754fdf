"""
tenant_scope v1.0 — Main runner and CLI.

Orchestrates the scan and handles CLI arguments.

Exit codes:
    0 - No findings
    1 - Findings
    2 - Scan could not run (unreadable tree, bad scope rules)
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

import yaml

from . import __version__
from .config import ENV_LOG_LEVEL, ConfigError, LintConfig, default_root, load_scope_table
from .reporting import Reporter
from .rules import check_tenant_scope
from .scanner import load_sources

logger = logging.getLogger(__name__)

EXIT_FATAL = 2


def run(cfg: LintConfig) -> Reporter:
    """Scan every source file under cfg.root and return a Reporter."""
    reporter = Reporter(inline_ignore_token=cfg.inline_ignore_token)

    sources = load_sources(cfg)
    reporter.files_scanned = len(sources)

    for src in sources:
        reporter.extend(check_tenant_scope(cfg, src))

    logger.info(
        "Scanned %d files, %d finding(s)", reporter.files_scanned, len(reporter.findings)
    )
    return reporter


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    env_level = os.environ.get(ENV_LOG_LEVEL)
    if env_level:
        level = logging.getLevelName(env_level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%H:%M:%S',
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="check-tenant-scope",
        description=f"tenant_scope v{__version__} — flag Prisma calls missing the tenant filter",
    )
    parser.add_argument(
        "root",
        nargs="?",
        default=None,
        help="Root directory to scan (default: $TENANT_SCOPE_ROOT or src/modules)",
    )
    parser.add_argument(
        "--rules",
        metavar="PATH",
        help="Scope rules YAML (default: $TENANT_SCOPE_RULES or the packaged table)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output findings as JSON",
    )
    parser.add_argument(
        "--strict-unknown-models",
        action="store_true",
        help="Also flag models missing from the scope rules",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=8,
        help="Concurrent file readers (default: 8)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Log progress (-v) or per-call decisions (-vv) to stderr",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    root = Path(args.root).resolve() if args.root else default_root()

    try:
        cfg = LintConfig(
            root=root,
            scope_table=load_scope_table(args.rules),
            report_unknown_models=args.strict_unknown_models,
            workers=args.workers,
            json_output=args.json,
        )
        reporter = run(cfg)
    except (OSError, ConfigError, yaml.YAMLError) as e:
        logger.error("Tenant scope check could not run: %s", e)
        return EXIT_FATAL

    if cfg.json_output:
        print(reporter.render_json())
    elif reporter.passed:
        print(reporter.render_human())
    else:
        print(reporter.render_human(), file=sys.stderr)

    return reporter.exit_code


if __name__ == "__main__":
    raise SystemExit(main())
