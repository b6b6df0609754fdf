"""
tenant_scope v1.0 — File scanning and source loading.

Handles:
- Directory walking with exclusions
- Concurrent source file loading
- Prisma call-site detection
"""

from __future__ import annotations

import concurrent.futures
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from .config import LintConfig, should_exclude_path
from .patterns import build_call_regex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceFile:
    """A loaded source file with content."""
    path: Path
    text: str


@dataclass(frozen=True)
class CallSite:
    """A `<receiver>.<model>.<action>(` occurrence in a source file."""
    path: Path
    offset: int
    line: int
    column: int
    receiver: str
    model: str
    action: str

    @property
    def expression(self) -> str:
        return f"{self.receiver}.{self.model}.{self.action}"


def _raise_walk_error(err: OSError) -> None:
    raise err


def iter_files(cfg: LintConfig) -> Iterator[Path]:
    """
    Iterate over source files under root, skipping exempt modules.

    Symlinked directories are not followed and symlinked files are
    skipped. Any directory read error is raised.
    """
    root = Path(cfg.root)
    if not root.is_dir():
        raise NotADirectoryError(f"Scan root is not a directory: {root}")

    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_walk_error):
        dirnames.sort()
        for name in sorted(filenames):
            if not name.endswith(cfg.source_exts):
                continue
            path = Path(dirpath) / name
            if path.is_symlink() or not path.is_file():
                continue
            if should_exclude_path(cfg, path):
                logger.debug("Skipping exempt file %s", path)
                continue
            yield path


def load_source(path: Path) -> SourceFile:
    """Load a single source file."""
    text = path.read_text(encoding="utf-8", errors="replace")
    return SourceFile(path=path, text=text)


def load_sources(cfg: LintConfig) -> list[SourceFile]:
    """
    Load all source files under root.

    Files are read concurrently; results keep walk order. The first
    read error is re-raised.
    """
    paths = list(iter_files(cfg))
    if not paths:
        return []

    with concurrent.futures.ThreadPoolExecutor(max_workers=max(1, cfg.workers)) as pool:
        sources = list(pool.map(load_source, paths))

    logger.info("Loaded %d source files under %s", len(sources), cfg.root)
    return sources


def to_line_column(text: str, offset: int) -> tuple[int, int]:
    """
    1-based (line, column) of a character offset.

    Columns count UTF-16 code units, like editors and tsc diagnostics.
    """
    line_start = text.rfind("\n", 0, offset) + 1
    column = len(text[line_start:offset].encode("utf-16-le")) // 2 + 1
    return text.count("\n", 0, offset) + 1, column


def iter_call_sites(cfg: LintConfig, src: SourceFile) -> Iterator[CallSite]:
    """
    Yield allow-listed Prisma calls in file order.

    Matching is textual, so calls inside comments and strings are found too.
    """
    call_rx = build_call_regex(cfg.accessors)
    for m in call_rx.finditer(src.text):
        receiver, model, action = m.group(1), m.group(2), m.group(3)
        if action not in cfg.actions:
            continue
        line, column = to_line_column(src.text, m.start())
        yield CallSite(
            path=src.path,
            offset=m.start(),
            line=line,
            column=column,
            receiver=receiver,
            model=model,
            action=action,
        )
