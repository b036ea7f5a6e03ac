"""
TokenClone — token-window structural clone detector
for multi-language source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Final

from .lexer import Token, TokenKind, lex_source

IDENT_PLACEHOLDER: Final = "IDENT"
LITERAL_PLACEHOLDER: Final = "LIT"


@dataclass(frozen=True, slots=True)
class NormalizationConfig:
    normalize_identifiers: bool = True
    normalize_literals: bool = True


def normalize_token(token: Token, cfg: NormalizationConfig) -> Token:
    if token.kind is TokenKind.IDENTIFIER and cfg.normalize_identifiers:
        return Token(token.kind, IDENT_PLACEHOLDER, token.line)
    if token.kind is TokenKind.LITERAL and cfg.normalize_literals:
        return Token(token.kind, LITERAL_PLACEHOLDER, token.line)
    return token


def normalize_tokens(
    tokens: Iterable[Token], cfg: NormalizationConfig
) -> list[Token]:
    """
    Replace identifiers and literals with canonical placeholders.

    Every identifier kind (variables, types, fields, packages) collapses to
    ``IDENT`` and every literal kind (strings, numbers, characters, booleans,
    null values) collapses to ``LIT``. Keywords and operators are kept
    verbatim, so renaming or changing a constant never changes the
    structural signature while control flow does.
    """
    return [normalize_token(t, cfg) for t in tokens]


def tokenize_source(
    source: str, language: str, cfg: NormalizationConfig
) -> list[Token]:
    return normalize_tokens(lex_source(source, language), cfg)
