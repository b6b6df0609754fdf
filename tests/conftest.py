"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tenant_scope.config import LintConfig, load_scope_table


# =============================================================================
# SCOPE TABLE FIXTURES
# =============================================================================

@pytest.fixture(scope="session")
def scope_table():
    """The packaged scope table."""
    return load_scope_table()


@pytest.fixture
def make_config(scope_table):
    """Build a LintConfig rooted at a directory, sharing the packaged table."""
    def _make(root, **overrides):
        overrides.setdefault("scope_table", scope_table)
        return LintConfig(root=Path(root), **overrides)
    return _make


# =============================================================================
# MODULE TREE FIXTURES
# =============================================================================

@pytest.fixture
def modules_dir(tmp_path, monkeypatch):
    """An empty src/modules tree; cwd is the backend root."""
    root = tmp_path / "src" / "modules"
    root.mkdir(parents=True)
    monkeypatch.chdir(tmp_path)
    return root


@pytest.fixture
def write_module(modules_dir):
    """Write a source file under src/modules, return its path."""
    def _write(rel_path, text):
        path = modules_dir / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path
    return _write
