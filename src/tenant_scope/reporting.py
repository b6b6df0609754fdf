"""
tenant_scope v1.0 — Reporting and output formatting.

Handles:
- Finding dataclass
- Pass/fail summary text
- JSON output
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Iterable

from .patterns import INLINE_IGNORE_TOKEN

RULE_MISSING_SCOPE = "TS001"
RULE_UNCLASSIFIED_MODEL = "TS002"

PASS_MESSAGE = "Tenant scope check passed: no unscoped Prisma calls detected."


@dataclass(frozen=True)
class Finding:
    """A single unscoped call site."""
    rule_id: str
    path: str  # relative, posix
    line: int
    col: int
    receiver: str
    model: str
    action: str
    missing: str  # scope field, or "classification" for TS002

    def __str__(self) -> str:
        loc = f"{self.path}:{self.line}:{self.col}"
        return f"{loc} {self.receiver}.{self.model}.{self.action} missing {self.missing}"


class Reporter:
    """Collects and formats findings."""

    def __init__(self, inline_ignore_token: str = INLINE_IGNORE_TOKEN) -> None:
        self.findings: list[Finding] = []
        self.inline_ignore_token = inline_ignore_token
        self.files_scanned = 0

    def extend(self, findings: Iterable[Finding]) -> None:
        """Add findings."""
        self.findings.extend(findings)

    @property
    def passed(self) -> bool:
        return not self.findings

    @property
    def exit_code(self) -> int:
        return 0 if self.passed else 1

    def sorted_findings(self) -> list[Finding]:
        return sorted(self.findings, key=lambda f: (f.path, f.line, f.col))

    def render_human(self) -> str:
        """Render the pass line, or the failure report."""
        if self.passed:
            return PASS_MESSAGE

        lines = [f"Tenant scope check failed with {len(self.findings)} finding(s):"]
        for f in self.sorted_findings():
            lines.append(f"- {f}")
        lines.append(f'Use "{self.inline_ignore_token}" only for explicit cross-tenant cases.')
        return "\n".join(lines)

    def render_json(self) -> str:
        """Render findings as JSON."""
        return json.dumps(
            [asdict(f) for f in self.sorted_findings()],
            indent=2,
        )
