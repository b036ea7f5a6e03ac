"""
TokenClone — token-window structural clone detector
for multi-language source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""

from __future__ import annotations

from pathlib import Path
from typing import Final

LANG_PYTHON: Final = "python"
LANG_GO: Final = "go"
LANG_JAVASCRIPT: Final = "javascript"
LANG_TYPESCRIPT: Final = "typescript"
LANG_TSX: Final = "tsx"
LANG_RUST: Final = "rust"
LANG_JAVA: Final = "java"

EXTENSION_MAP: Final[dict[str, str]] = {
    ".py": LANG_PYTHON,
    ".pyw": LANG_PYTHON,
    ".pyi": LANG_PYTHON,
    ".go": LANG_GO,
    ".js": LANG_JAVASCRIPT,
    ".jsx": LANG_JAVASCRIPT,
    ".mjs": LANG_JAVASCRIPT,
    ".cjs": LANG_JAVASCRIPT,
    ".ts": LANG_TYPESCRIPT,
    ".mts": LANG_TYPESCRIPT,
    ".cts": LANG_TYPESCRIPT,
    ".tsx": LANG_TSX,
    ".rs": LANG_RUST,
    ".java": LANG_JAVA,
}

SUPPORTED_LANGUAGES: Final = frozenset(EXTENSION_MAP.values())

# Clone groups never mix these families; TSX shares TypeScript's family so
# .ts and .tsx files can match each other.
_LANGUAGE_FAMILY: Final[dict[str, str]] = {LANG_TSX: LANG_TYPESCRIPT}


def language_for_path(path: str | Path) -> str | None:
    return EXTENSION_MAP.get(Path(path).suffix.lower())


def language_family(language: str) -> str:
    return _LANGUAGE_FAMILY.get(language, language)


def is_source_file(path: Path) -> bool:
    """Default loader predicate: the extension maps to a known language."""
    return language_for_path(path) is not None
