"""
TokenClone — token-window structural clone detector
for multi-language source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .fingerprint import RollingHash
from .lexer import Token


@dataclass(frozen=True, slots=True)
class Window:
    filepath: str
    token_index: int
    start_line: int
    end_line: int
    fingerprint: int


def extract_windows(
    tokens: Sequence[Token],
    *,
    filepath: str,
    window_size: int,
) -> list[Window]:
    """
    Fingerprint every ``window_size``-token slice, sliding one token at a time.

    ``windows[i].token_index == i``. A stream shorter than ``window_size``
    yields no windows.
    """
    hasher = RollingHash(window_size)
    texts = [t.text for t in tokens]

    return [
        Window(
            filepath=filepath,
            token_index=i,
            start_line=tokens[i].line,
            end_line=tokens[i + window_size - 1].line,
            fingerprint=fp,
        )
        for i, fp in enumerate(hasher.hashes(texts))
    ]
