"""
TokenClone — token-window structural clone detector
for multi-language source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterator, Sequence
from functools import lru_cache
from typing import Final

# Fingerprints are unsigned 64-bit integers. Accidental collisions are
# accepted: two unrelated windows sharing a fingerprint produce a false
# match, which is negligible at this width for realistic corpus sizes.
HASH_BITS: Final = 64
HASH_MASK: Final = (1 << HASH_BITS) - 1

# Odd multiplier for the polynomial hash (the 64-bit FNV prime).
HASH_BASE: Final = 0x100000001B3


@lru_cache(maxsize=4096)
def token_hash(text: str) -> int:
    digest = hashlib.blake2b(text.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big")


class RollingHash:
    """
    Rabin-Karp rolling hash over a sequence of token texts.

    h(t[i..i+k-1]) = sum(token_hash(t[i+j]) * BASE**(k-1-j)) mod 2**64
    """

    __slots__ = ("base_pow", "window")

    def __init__(self, window_size: int) -> None:
        if window_size <= 0:
            raise ValueError(f"window_size must be positive, got {window_size}")
        self.window = window_size
        self.base_pow = pow(HASH_BASE, window_size - 1, 1 << HASH_BITS)

    def hashes(self, texts: Sequence[str]) -> Iterator[int]:
        """Yield one fingerprint per window start, in order."""
        n = len(texts)
        if n < self.window:
            return

        values = [token_hash(t) for t in texts]
        h = 0
        for v in values[: self.window]:
            h = (h * HASH_BASE + v) & HASH_MASK
        yield h

        for i in range(1, n - self.window + 1):
            h = (h - values[i - 1] * self.base_pow) & HASH_MASK
            h = (h * HASH_BASE + values[i + self.window - 1]) & HASH_MASK
            yield h


def fingerprint_hex(fingerprint: int) -> str:
    return f"{fingerprint:016x}"
