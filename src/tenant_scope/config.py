"""
tenant_scope v1.0 — Configuration.

Runtime configuration, scope table loading and CLI-derived settings.
For call shapes and window sizes, see patterns.py.
For the scope tables, see scope_rules.yaml.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from .patterns import (
    ACCESSORS,
    ACTIONS_TO_CHECK,
    DECLARATION_LOOKBACK,
    DECLARATION_SPAN,
    DEFAULT_ROOT,
    IGNORED_PATH_FRAGMENTS,
    INLINE_IGNORE_LOOKBACK,
    INLINE_IGNORE_TOKEN,
    MAX_SNIPPET_LENGTH,
    SOURCE_EXTS,
)

logger = logging.getLogger(__name__)

# Packaged scope table
SCOPE_RULES_FILE = Path(__file__).parent / "scope_rules.yaml"

SCOPE_RULES_VERSION = 1

# Environment overrides
ENV_ROOT = "TENANT_SCOPE_ROOT"
ENV_RULES = "TENANT_SCOPE_RULES"
ENV_LOG_LEVEL = "TENANT_SCOPE_LOG_LEVEL"


class ConfigError(ValueError):
    """Raised when the scope table is malformed."""


@dataclass(frozen=True)
class ScopeRule:
    """Tenant field a model must be filtered on."""
    kind: str   # "local", "brand"
    field: str  # "localId", "brandId"


@dataclass(frozen=True)
class ScopeTable:
    """Model name -> ScopeRule lookup, loaded from scope_rules.yaml."""

    rules: dict[str, ScopeRule]
    unscoped: frozenset[str] = frozenset()
    version: int = SCOPE_RULES_VERSION
    source: Optional[Path] = None

    def classify(self, model: str) -> Optional[ScopeRule]:
        """Exact-name lookup. Models outside every scope set return None."""
        return self.rules.get(model)

    def is_known(self, model: str) -> bool:
        """True if the model is classified, scoped or explicitly unscoped."""
        return model in self.rules or model in self.unscoped

    def models_for(self, kind: str) -> frozenset[str]:
        return frozenset(m for m, r in self.rules.items() if r.kind == kind)


def _as_model_list(value: Any, where: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(m, str) and m for m in value):
        raise ConfigError(f"{where} must be a list of model names")
    return value


def parse_scope_table(data: Any, source: Optional[Path] = None) -> ScopeTable:
    """
    Build a ScopeTable from a parsed scope_rules document.

    Raises:
        ConfigError: On a wrong version, malformed section or a model
            listed more than once.
    """
    if not isinstance(data, dict):
        raise ConfigError(f"Scope rules must be a YAML mapping, got {type(data).__name__}")

    version = data.get("version")
    if version != SCOPE_RULES_VERSION:
        raise ConfigError(
            f"Unsupported scope rules version {version!r} (expected {SCOPE_RULES_VERSION})"
        )

    scopes = data.get("scopes")
    if not isinstance(scopes, dict) or not scopes:
        raise ConfigError("Scope rules need a non-empty 'scopes' mapping")

    rules: dict[str, ScopeRule] = {}
    for kind, section in scopes.items():
        if not isinstance(section, dict):
            raise ConfigError(f"scopes.{kind} must be a mapping")
        scope_field = section.get("field")
        if not isinstance(scope_field, str) or not scope_field:
            raise ConfigError(f"scopes.{kind}.field must be a non-empty string")
        for model in _as_model_list(section.get("models"), f"scopes.{kind}.models"):
            if model in rules and rules[model].kind == str(kind):
                raise ConfigError(f"Model {model!r} listed twice in scopes.{kind}.models")
            if model in rules:
                raise ConfigError(
                    f"Model {model!r} listed in both scopes.{rules[model].kind} and scopes.{kind}"
                )
            rules[model] = ScopeRule(kind=str(kind), field=scope_field)

    unscoped: set[str] = set()
    for model in _as_model_list(data.get("unscoped_models"), "unscoped_models"):
        if model in rules:
            raise ConfigError(
                f"Model {model!r} listed in both scopes.{rules[model].kind} and unscoped_models"
            )
        if model in unscoped:
            raise ConfigError(f"Model {model!r} listed twice in unscoped_models")
        unscoped.add(model)

    return ScopeTable(
        rules=rules,
        unscoped=frozenset(unscoped),
        version=version,
        source=source,
    )


def load_scope_table(path: Path | str | None = None) -> ScopeTable:
    """
    Load the scope table from YAML.

    Args:
        path: Optional path to a scope rules file. Defaults to the
            TENANT_SCOPE_RULES environment variable, then the packaged
            scope_rules.yaml.

    Raises:
        FileNotFoundError: If the rules file doesn't exist.
        yaml.YAMLError: If the rules file is invalid YAML.
        ConfigError: If the rules file is malformed.
    """
    if path is None:
        path = os.environ.get(ENV_RULES) or SCOPE_RULES_FILE
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Scope rules file not found: {path}")

    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    table = parse_scope_table(data, source=path)
    logger.debug("Loaded %d scoped models from %s", len(table.rules), path)
    return table


def default_root() -> Path:
    """Scan root: TENANT_SCOPE_ROOT, else src/modules under the cwd."""
    return Path(os.environ.get(ENV_ROOT) or DEFAULT_ROOT).resolve()


@dataclass
class LintConfig:
    """Runtime configuration for the tenant scope check."""

    root: Path

    # File selection
    source_exts: tuple[str, ...] = SOURCE_EXTS
    ignored_path_fragments: tuple[str, ...] = IGNORED_PATH_FRAGMENTS

    # Call-site shape
    accessors: tuple[str, ...] = ACCESSORS
    actions: frozenset[str] = ACTIONS_TO_CHECK

    # Suppression
    inline_ignore_token: str = INLINE_IGNORE_TOKEN
    ignore_lookback: int = INLINE_IGNORE_LOOKBACK

    # Evidence windows
    snippet_length: int = MAX_SNIPPET_LENGTH
    declaration_lookback: int = DECLARATION_LOOKBACK
    declaration_span: int = DECLARATION_SPAN

    # Classifier data
    scope_table: ScopeTable = field(default_factory=load_scope_table)
    report_unknown_models: bool = False

    # Execution
    workers: int = 8

    # Output settings
    json_output: bool = False


def should_exclude_path(cfg: LintConfig, path: Path) -> bool:
    """Check if path lies in a module exempt from tenant scoping."""
    path_str = str(path.absolute())
    return any(fragment in path_str for fragment in cfg.ignored_path_fragments)
