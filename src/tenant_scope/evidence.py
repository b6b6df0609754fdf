"""
tenant_scope v1.0 — Scope evidence.

Decides whether a call site demonstrably filters on its tenant field:
- Direct: the field appears in a forward snippet of the call
- Indirect: the call passes a `where` variable whose nearest
  preceding declaration mentions the field
- Inline suppression marker in the lines above the call

All checks are textual and work on the whole file text.
"""

from __future__ import annotations

from typing import Optional

from .config import LintConfig
from .patterns import (
    WHERE_EXPLICIT_RX,
    WHERE_SHORTHAND_RX,
    build_declaration_regex,
    build_word_regex,
)


def contains_word(text: str, word: str) -> bool:
    """Check if `word` appears as a whole identifier in text."""
    return build_word_regex(word).search(text) is not None


def forward_snippet(text: str, offset: int, length: int) -> str:
    return text[offset:offset + length]


def has_inline_ignore(text: str, offset: int, token: str, lookback: int) -> bool:
    """Check if the suppression token appears just before the call."""
    window = text[max(0, offset - lookback):offset]
    return token in window


def where_variable(snippet: str) -> Optional[str]:
    """
    Name of the variable holding the call's where clause, if any.

    `{ where }` / `{ where, take }` -> "where"
    `{ where: filters }`            -> "filters"
    `{ where: { ... } }`            -> None
    """
    if WHERE_SHORTHAND_RX.search(snippet):
        return "where"
    m = WHERE_EXPLICIT_RX.search(snippet)
    return m.group(1) if m else None


def nearest_declaration(
    text: str,
    offset: int,
    name: str,
    lookback: int,
    span: int,
) -> Optional[str]:
    """
    Right-hand side of the last `const|let|var <name> =` before offset.

    Searches `lookback` characters back from the call. The returned body
    is at most `span` characters and never extends past the call.
    """
    start = max(0, offset - lookback)
    back_window = text[start:offset]

    last = None
    for last in build_declaration_regex(name).finditer(back_window):
        pass
    if last is None:
        return None
    return back_window[last.end():last.end() + span]


def has_scope_in_where_variable(
    cfg: LintConfig,
    text: str,
    offset: int,
    snippet: str,
    scope_field: str,
) -> bool:
    name = where_variable(snippet)
    if name is None:
        return False
    body = nearest_declaration(
        text,
        offset,
        name,
        lookback=cfg.declaration_lookback,
        span=cfg.declaration_span,
    )
    return body is not None and contains_word(body, scope_field)


def has_scope_evidence(cfg: LintConfig, text: str, offset: int, scope_field: str) -> bool:
    """Check direct evidence first, then the where-variable declaration."""
    snippet = forward_snippet(text, offset, cfg.snippet_length)
    if contains_word(snippet, scope_field):
        return True
    return has_scope_in_where_variable(cfg, text, offset, snippet, scope_field)
