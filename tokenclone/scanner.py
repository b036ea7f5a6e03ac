"""
TokenClone — token-window structural clone detector
for multi-language source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path

from .languages import is_source_file

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDES = (
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "venv",
    "__pycache__",
    "site-packages",
    "node_modules",
    "vendor",
    "dist",
    "build",
    "target",
    ".tox",
    ".mypy_cache",
    ".pytest_cache",
)

SourcePredicate = Callable[[Path], bool]


def _walk_dir(
    rootp: Path, excludes: frozenset[str], is_source: SourcePredicate
) -> Iterator[Path]:
    def _on_error(err: OSError) -> None:
        logger.info("Cannot list %s: %s", err.filename, err.strerror)

    try:
        resolved_root = rootp.resolve()
    except OSError:
        return

    for dirpath, dirnames, filenames in os.walk(rootp, onerror=_on_error):
        dirnames[:] = sorted(d for d in dirnames if d not in excludes)
        current = Path(dirpath)
        for name in sorted(filenames):
            p = current / name
            # Verify path is actually under root (prevent symlink traversal)
            try:
                p.resolve().relative_to(resolved_root)
            except (OSError, ValueError):
                continue
            if not p.is_file() or not is_source(p):
                continue
            yield p


def iter_source_files(
    paths: Iterable[str],
    excludes: tuple[str, ...] = DEFAULT_EXCLUDES,
    *,
    is_source: SourcePredicate = is_source_file,
) -> list[str]:
    """
    Expand root paths into the sorted, de-duplicated list of source files.

    Directories are walked recursively, regular files are taken as-is. Both
    go through ``is_source``. Missing paths and directories without eligible
    files contribute nothing.
    """
    excluded = frozenset(excludes)
    found: dict[Path, str] = {}

    for root in paths:
        rootp = Path(root)
        try:
            is_dir = rootp.is_dir()
            is_file = not is_dir and rootp.is_file()
        except OSError as e:
            logger.info("Cannot access %s: %s", root, e)
            continue

        if is_file:
            candidates: Iterable[Path] = [rootp] if is_source(rootp) else []
        elif is_dir:
            candidates = _walk_dir(rootp, excluded, is_source)
        else:
            logger.info("Path does not exist: %s", root)
            continue

        for p in candidates:
            try:
                key = p.resolve()
            except OSError:
                key = p.absolute()
            found.setdefault(key, str(p))

    return sorted(found.values())
