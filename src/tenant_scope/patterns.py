"""
tenant_scope v1.0 — Pattern definitions.

This module contains PURE DATA: call-site shapes, action allow-list,
suppression marker and window sizes.
The scope tables themselves live in scope_rules.yaml.
No logic here beyond regex construction.

Organization:
1. ACCESSORS / ACTIONS - What counts as a tenant-relevant call
2. INLINE_IGNORE_TOKEN - Suppression marker
3. WINDOWS - Snippet and lookback sizes
4. REGEXES - Call, where-clause and declaration shapes
"""

from __future__ import annotations

import os
import re

# =============================================================================
# 1. ACCESSORS / ACTIONS
# =============================================================================

# Receivers that denote the Prisma client or the current transaction handle.
# Either may be reached through "this.".
ACCESSORS = ("prisma", "tx")

# Reads and bulk writes. Single-record create/update/delete address a row by
# primary key that was already looked up through a scoped query.
ACTIONS_TO_CHECK = frozenset({
    "findMany",
    "findFirst",
    "findUnique",
    "findFirstOrThrow",
    "findUniqueOrThrow",
    "count",
    "aggregate",
    "groupBy",
    "updateMany",
    "deleteMany",
})

SOURCE_EXTS = (".ts",)

# Modules that operate across tenants on purpose.
IGNORED_PATH_FRAGMENTS = (
    f"{os.sep}platform-admin{os.sep}",
    f"{os.sep}usage-metrics{os.sep}",
)

DEFAULT_ROOT = os.path.join("src", "modules")

# =============================================================================
# 2. INLINE SUPPRESSION
# =============================================================================

INLINE_IGNORE_TOKEN = "tenant-scope-ignore"

# =============================================================================
# 3. WINDOWS
# =============================================================================
# Sized against the call shapes in the backend services. Larger windows
# cost more per call and let unrelated later code count as evidence;
# smaller ones miss long select/include blocks.

# Forward snippet from the call start searched for the scope field.
MAX_SNIPPET_LENGTH = 1_400

# How far back from the call a where-variable declaration is searched for.
DECLARATION_LOOKBACK = 6_000

# How much of a declaration's right-hand side is searched.
DECLARATION_SPAN = 1_600

# Comment lines above a call (decorators, multi-line comments included).
INLINE_IGNORE_LOOKBACK = 220

# =============================================================================
# 4. REGEXES
# =============================================================================

# JS identifiers may contain "$".
IDENTIFIER = r"[a-zA-Z_$][\w$]*"

WHERE_SHORTHAND_RX = re.compile(r"\bwhere\s*[,}]", re.ASCII)
WHERE_EXPLICIT_RX = re.compile(rf"\bwhere\s*:\s*({IDENTIFIER})", re.ASCII)


def build_call_regex(accessors: tuple[str, ...] = ACCESSORS) -> re.Pattern[str]:
    """
    Build the call-site regex for the given receivers.

    Groups: receiver, model, action.
    """
    names = "|".join(re.escape(a) for a in accessors)
    return re.compile(rf"\b(?:this\.)?({names})\.(\w+)\.(\w+)\(", re.ASCII)


def build_declaration_regex(name: str) -> re.Pattern[str]:
    """
    Build a regex for `const|let|var <name>[: Type] =`.

    Only the declaration head is matched so that consecutive declarations
    are all found; the body is sliced by the caller.
    """
    return re.compile(
        rf"\b(?:const|let|var)\s+{re.escape(name)}(?:\s*:[^=\n]+)?\s*=",
        re.ASCII,
    )


def build_word_regex(word: str) -> re.Pattern[str]:
    """Whole-identifier match for `word`."""
    return re.compile(rf"(?<![\w$]){re.escape(word)}(?![\w$])", re.ASCII)
