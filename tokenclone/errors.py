"""
TokenClone — token-window structural clone detector
for multi-language source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""


class TokenCloneError(Exception):
    """Base exception for TokenClone."""


class ConfigError(TokenCloneError):
    """Run configuration is invalid."""


class ScanCancelledError(TokenCloneError):
    """The caller cancelled the run; no result is returned."""


class FileProcessingError(TokenCloneError):
    """Error processing a source file."""


class GrammarError(FileProcessingError):
    """Tree-sitter grammar could not be loaded for a language."""
