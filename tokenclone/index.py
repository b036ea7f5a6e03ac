"""
TokenClone — token-window structural clone detector
for multi-language source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from .windows import Window


@dataclass(frozen=True, slots=True)
class Location:
    filepath: str
    language: str
    token_index: int
    start_line: int
    end_line: int


class FingerprintIndex:
    """
    Maps window fingerprints to the locations that produced them.

    Filled by a single thread after all files were fingerprinted. Bucket
    order follows insertion order, which is the sorted file order.
    """

    __slots__ = ("_entries", "_files")

    def __init__(self) -> None:
        self._entries: dict[int, list[Location]] = {}
        self._files: set[str] = set()

    def add_file(self, filepath: str, language: str, windows: Iterable[Window]) -> None:
        self._files.add(filepath)
        for w in windows:
            self._entries.setdefault(w.fingerprint, []).append(
                Location(
                    filepath=filepath,
                    language=language,
                    token_index=w.token_index,
                    start_line=w.start_line,
                    end_line=w.end_line,
                )
            )

    def buckets(self, min_size: int = 2) -> Iterator[tuple[int, list[Location]]]:
        for fingerprint, locs in self._entries.items():
            if len(locs) >= min_size:
                yield fingerprint, locs

    @property
    def file_count(self) -> int:
        return len(self._files)

    def __len__(self) -> int:
        return len(self._entries)
