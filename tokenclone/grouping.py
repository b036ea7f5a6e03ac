"""
TokenClone — token-window structural clone detector
for multi-language source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""

from __future__ import annotations

import logging
from bisect import bisect_right
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Final

from .index import FingerprintIndex, Location
from .languages import language_family
from .windows import Window

logger = logging.getLogger(__name__)

# Cross-file buckets up to this size pair every location with every other
# one; larger buckets are chained.
ALL_PAIRS_BUCKET_LIMIT: Final = 16

PairKey = tuple[str, str]
WindowPairs = dict[PairKey, set[tuple[int, int]]]


@dataclass(frozen=True, slots=True)
class MatchRegion:
    """Aligned run of matching windows between two token streams."""

    file_a: str
    start_a: int
    file_b: str
    start_b: int
    length: int
    match_count: int

    @property
    def end_a(self) -> int:
        return self.start_a + self.length - 1

    @property
    def end_b(self) -> int:
        return self.start_b + self.length - 1


@dataclass(frozen=True, slots=True)
class Occurrence:
    filepath: str
    start_token: int
    end_token: int
    start_line: int
    end_line: int

    @property
    def line_span(self) -> int:
        return self.end_line - self.start_line + 1

    @property
    def token_span(self) -> int:
        return self.end_token - self.start_token + 1


@dataclass(frozen=True, slots=True)
class CloneGroup:
    occurrences: tuple[Occurrence, ...]
    token_length: int
    match_count: int
    # Fingerprint of the first window of the first occurrence.
    fingerprint: int = 0

    @property
    def first(self) -> Occurrence:
        return self.occurrences[0]

    @property
    def line_span(self) -> int:
        return max(o.line_span for o in self.occurrences)


@dataclass(frozen=True, slots=True)
class GroupingResult:
    groups: list[CloneGroup]
    buckets_skipped: int
    regions: int


def collect_window_matches(
    index: FingerprintIndex,
    *,
    window_size: int,
    max_bucket_size: int = 0,
) -> tuple[WindowPairs, int]:
    """
    Turn shared fingerprints into aligned window pairs per file pair.

    Pairs are canonically ordered by (path, token index) and files of
    different language families never pair. The number of pairs stays
    linear in the bucket size:

    - within one file, a window is paired only with the nearest earlier
      window of the same file that starts at least ``window_size`` tokens
      before it, so a block repeated back-to-back links each copy to the
      previous one;
    - across files, every pair is kept while the bucket holds at most
      ``ALL_PAIRS_BUCKET_LIMIT`` locations. Larger buckets link each
      location to the nearest earlier location of another file, which
      still connects every file of the bucket.

    Buckets larger than ``max_bucket_size`` (when non-zero) are skipped.
    """
    pairs: WindowPairs = {}
    skipped = 0

    for _fingerprint, locs in index.buckets():
        if max_bucket_size and len(locs) > max_bucket_size:
            skipped += 1
            continue

        by_family: dict[str, list[Location]] = {}
        for loc in locs:
            by_family.setdefault(language_family(loc.language), []).append(loc)
        for family in sorted(by_family):
            ordered = sorted(by_family[family], key=_location_key)
            if len(ordered) < 2:
                continue
            for a, b in _bucket_edges(ordered, window_size=window_size):
                pairs.setdefault((a.filepath, b.filepath), set()).add(
                    (a.token_index, b.token_index)
                )

    if skipped:
        logger.debug("Skipped %d oversized fingerprint buckets", skipped)
    return pairs, skipped


def _location_key(loc: Location) -> tuple[str, int]:
    return loc.filepath, loc.token_index


def _bucket_edges(
    ordered: Sequence[Location], *, window_size: int
) -> Iterator[tuple[Location, Location]]:
    pairwise = len(ordered) <= ALL_PAIRS_BUCKET_LIMIT
    last_other: Location | None = None
    for i, b in enumerate(ordered):
        # Nearest same-file window far enough back; starts are strictly
        # increasing, so this walks back at most ``window_size`` steps.
        j = i - 1
        while j >= 0 and ordered[j].filepath == b.filepath:
            if b.token_index - ordered[j].token_index >= window_size:
                yield ordered[j], b
                break
            j -= 1

        if i and ordered[i - 1].filepath != b.filepath:
            last_other = ordered[i - 1]
        if pairwise:
            for a in ordered[:i]:
                if a.filepath != b.filepath:
                    yield a, b
        elif last_other is not None:
            yield last_other, b


def split_regions(
    key: PairKey,
    matches: Iterable[tuple[int, int]],
    *,
    window_size: int,
) -> list[MatchRegion]:
    """
    Coalesce overlapping or adjacent matching windows into regions.

    Windows belong to the same region when they share the token offset
    between the two sides and their starts are at most ``window_size``
    apart, so a long duplicate reported by many overlapping windows becomes
    one region.

    A same-file run longer than its offset overlaps its own copy: the span
    is periodic with period ``offset``. It is cut into back-to-back copies
    of ``offset`` tokens, and each copy is paired with the next one, so
    every copy becomes its own occurrence.
    """
    by_offset: dict[int, list[int]] = {}
    for idx_a, idx_b in matches:
        by_offset.setdefault(idx_b - idx_a, []).append(idx_a)

    regions: list[MatchRegion] = []
    for offset in sorted(by_offset):
        starts = sorted(by_offset[offset])
        run_start = prev = starts[0]
        count = 1
        for idx in starts[1:]:
            if idx - prev <= window_size:
                prev = idx
                count += 1
                continue
            regions.extend(
                _make_regions(
                    key, run_start, prev, offset, count, window_size=window_size
                )
            )
            run_start = prev = idx
            count = 1
        regions.extend(
            _make_regions(key, run_start, prev, offset, count, window_size=window_size)
        )

    regions.sort(key=lambda r: (r.start_a, r.start_b))
    return regions


def _make_regions(
    key: PairKey,
    run_start: int,
    run_last: int,
    offset: int,
    count: int,
    *,
    window_size: int,
) -> list[MatchRegion]:
    file_a, file_b = key
    length = run_last - run_start + window_size
    if file_a != file_b or offset >= length:
        return [
            MatchRegion(
                file_a=file_a,
                start_a=run_start,
                file_b=file_b,
                start_b=run_start + offset,
                length=length,
                match_count=count,
            )
        ]

    copies = (length + offset) // offset
    per_copy = min(count, offset - window_size + 1)
    return [
        MatchRegion(
            file_a=file_a,
            start_a=run_start + k * offset,
            file_b=file_b,
            start_b=run_start + (k + 1) * offset,
            length=offset,
            match_count=per_copy,
        )
        for k in range(copies - 1)
    ]


def region_similarity(region: MatchRegion, window_size: int) -> float:
    """Share of the region's window positions that matched, in ``(0, 1]``."""
    positions = max(1, region.length - window_size + 1)
    return min(1.0, region.match_count / positions)


class _DisjointSet:
    __slots__ = ("parent",)

    def __init__(self) -> None:
        self.parent: dict[int, int] = {}

    def add(self, x: int) -> None:
        self.parent.setdefault(x, x)

    def find(self, x: int) -> int:
        root = x
        while self.parent[root] != root:
            root = self.parent[root]
        while self.parent[x] != root:
            self.parent[x], x = root, self.parent[x]
        return root

    def union(self, a: int, b: int) -> int:
        ra, rb = self.find(a), self.find(b)
        if ra != rb:
            if rb < ra:
                ra, rb = rb, ra
            self.parent[rb] = ra
        return ra


def _coalesce_spans(
    spans: Mapping[str, Iterable[tuple[int, int]]],
) -> dict[str, list[tuple[int, int]]]:
    merged: dict[str, list[tuple[int, int]]] = {}
    for filepath in sorted(spans):
        out: list[tuple[int, int]] = []
        for start, end in sorted(spans[filepath]):
            if out and start <= out[-1][1]:
                out[-1] = (out[-1][0], max(out[-1][1], end))
            else:
                out.append((start, end))
        merged[filepath] = out
    return merged


def _token_lines(
    windows: Sequence[Window], start: int, end: int, window_size: int
) -> tuple[int, int]:
    # ``end`` is always covered by the window starting ``window_size - 1``
    # tokens earlier.
    return windows[start].start_line, windows[end - window_size + 1].end_line


def group_regions(
    regions: Sequence[MatchRegion],
    windows_by_file: Mapping[str, Sequence[Window]],
    *,
    window_size: int,
    min_lines: int = 1,
) -> list[CloneGroup]:
    """
    Close match regions into clone groups (connected components).

    Region sides that overlap within one file are coalesced into a single
    occurrence first, so no occurrence can belong to two groups. Components
    with fewer than two distinct occurrences, or whose widest occurrence
    spans fewer than ``min_lines`` lines, are dropped.
    """
    spans: dict[str, list[tuple[int, int]]] = {}
    for r in regions:
        spans.setdefault(r.file_a, []).append((r.start_a, r.end_a))
        spans.setdefault(r.file_b, []).append((r.start_b, r.end_b))
    merged = _coalesce_spans(spans)

    node_ids: dict[tuple[str, int], int] = {}
    nodes: list[tuple[str, int, int]] = []
    for filepath, items in merged.items():
        for i, (start, end) in enumerate(items):
            node_ids[(filepath, i)] = len(nodes)
            nodes.append((filepath, start, end))
    starts_by_file = {fp: [s for s, _ in items] for fp, items in merged.items()}

    def _node_for(filepath: str, start: int) -> int:
        i = bisect_right(starts_by_file[filepath], start) - 1
        return node_ids[(filepath, i)]

    dsu = _DisjointSet()
    edges: list[tuple[int, MatchRegion]] = []
    for r in regions:
        a = _node_for(r.file_a, r.start_a)
        b = _node_for(r.file_b, r.start_b)
        dsu.add(a)
        dsu.add(b)
        dsu.union(a, b)
        edges.append((a, r))

    members: dict[int, set[int]] = {}
    for node in dsu.parent:
        members.setdefault(dsu.find(node), set()).add(node)

    best: dict[int, tuple[int, int]] = {}
    for node, r in edges:
        root = dsu.find(node)
        length, count = best.get(root, (0, 0))
        best[root] = (max(length, r.length), max(count, r.match_count))

    groups: list[CloneGroup] = []
    for root, node_set in members.items():
        if len(node_set) < 2:
            continue
        occurrences: list[Occurrence] = []
        for node in node_set:
            filepath, start, end = nodes[node]
            start_line, end_line = _token_lines(
                windows_by_file[filepath], start, end, window_size
            )
            occurrences.append(
                Occurrence(
                    filepath=filepath,
                    start_token=start,
                    end_token=end,
                    start_line=start_line,
                    end_line=end_line,
                )
            )
        occurrences.sort(key=lambda o: (o.filepath, o.start_line, o.start_token))
        token_length, match_count = best[root]
        anchor = occurrences[0]
        anchor_windows = windows_by_file[anchor.filepath]
        group = CloneGroup(
            occurrences=tuple(occurrences),
            token_length=token_length,
            match_count=match_count,
            fingerprint=anchor_windows[anchor.start_token].fingerprint,
        )
        if group.line_span < min_lines:
            continue
        groups.append(group)

    groups.sort(
        key=lambda g: (g.first.filepath, g.first.start_line, g.first.start_token)
    )
    return groups


def build_clone_groups(
    index: FingerprintIndex,
    windows_by_file: Mapping[str, Sequence[Window]],
    *,
    window_size: int,
    min_tokens: int,
    min_lines: int = 1,
    min_match_count: int = 1,
    max_bucket_size: int = 0,
    min_similarity: float = 0.0,
) -> GroupingResult:
    """
    Build clone groups from a complete fingerprint index.

    Regions shorter than ``min_tokens`` tokens, backed by fewer than
    ``min_match_count`` windows, or whose share of matching window
    positions is below ``min_similarity`` are discarded before grouping, so
    every edge of a reported group spans at least ``min_tokens`` tokens.
    """
    pairs, skipped = collect_window_matches(
        index, window_size=window_size, max_bucket_size=max_bucket_size
    )

    regions: list[MatchRegion] = []
    for key in sorted(pairs):
        for region in split_regions(key, pairs[key], window_size=window_size):
            if region.length < min_tokens or region.match_count < min_match_count:
                continue
            if (
                min_similarity > 0
                and region_similarity(region, window_size) < min_similarity
            ):
                continue
            regions.append(region)

    groups = group_regions(
        regions, windows_by_file, window_size=window_size, min_lines=min_lines
    )
    return GroupingResult(groups=groups, buckets_skipped=skipped, regions=len(regions))
