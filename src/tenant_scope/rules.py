"""
tenant_scope v1.0 — Rule implementations.

Applies the scope table to the call sites of one source file.
Each call site yields at most one finding.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterator

from .config import LintConfig
from .evidence import has_inline_ignore, has_scope_evidence
from .reporting import RULE_MISSING_SCOPE, RULE_UNCLASSIFIED_MODEL, Finding
from .scanner import CallSite, SourceFile, iter_call_sites

logger = logging.getLogger(__name__)


def relpath_str(p: Path, base: Path | None = None) -> str:
    """Path relative to base (default: cwd) as a posix string, `../` allowed."""
    base = base or Path.cwd()
    return Path(os.path.relpath(p, base)).as_posix()


def _finding(rule_id: str, call: CallSite, missing: str) -> Finding:
    return Finding(
        rule_id=rule_id,
        path=relpath_str(call.path),
        line=call.line,
        col=call.column,
        receiver=call.receiver,
        model=call.model,
        action=call.action,
        missing=missing,
    )


def check_tenant_scope(cfg: LintConfig, src: SourceFile) -> Iterator[Finding]:
    """Yield a finding for every scoped call with no tenant filter in sight."""
    table = cfg.scope_table

    for call in iter_call_sites(cfg, src):
        rule = table.classify(call.model)

        if rule is None:
            if cfg.report_unknown_models and not table.is_known(call.model):
                if not has_inline_ignore(src.text, call.offset, cfg.inline_ignore_token, cfg.ignore_lookback):
                    yield _finding(RULE_UNCLASSIFIED_MODEL, call, "classification")
            continue

        if has_inline_ignore(src.text, call.offset, cfg.inline_ignore_token, cfg.ignore_lookback):
            logger.debug("%s:%d %s suppressed inline", src.path, call.line, call.expression)
            continue

        if has_scope_evidence(cfg, src.text, call.offset, rule.field):
            continue

        yield _finding(RULE_MISSING_SCOPE, call, rule.field)
