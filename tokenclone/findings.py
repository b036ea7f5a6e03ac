"""
TokenClone — token-window structural clone detector
for multi-language source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from .contracts import (
    ANALYZER_CLONES,
    CATEGORY_DUPLICATION,
    DEFAULT_SEV_CRITICAL_LINES,
    DEFAULT_SEV_WARNING_LINES,
)
from .fingerprint import fingerprint_hex
from .grouping import CloneGroup, Occurrence


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {Severity.INFO: 0, Severity.WARNING: 1, Severity.CRITICAL: 2}


def coerce_severity(value: str | Severity) -> Severity:
    if isinstance(value, Severity):
        return value
    try:
        return Severity(value.strip().lower())
    except ValueError:
        raise ValueError(
            f"Unknown severity {value!r}; expected one of "
            + ", ".join(s.value for s in Severity)
        ) from None


@dataclass(frozen=True, slots=True)
class SeverityPolicy:
    """
    Severity from duplicated lines: the widest occurrence's line span times
    the number of extra copies. Larger and more numerous duplicates rank
    higher; a 30-line block copied four times ranks like a 90-line pair.
    """

    warning_lines: int = DEFAULT_SEV_WARNING_LINES
    critical_lines: int = DEFAULT_SEV_CRITICAL_LINES

    def duplicated_lines(self, group: CloneGroup) -> int:
        return group.line_span * (len(group.occurrences) - 1)

    def classify(self, group: CloneGroup) -> Severity:
        dup = self.duplicated_lines(group)
        if dup >= self.critical_lines:
            return Severity.CRITICAL
        if dup >= self.warning_lines:
            return Severity.WARNING
        return Severity.INFO


@dataclass(frozen=True, slots=True)
class Finding:
    analyzer: str
    severity: Severity
    category: str
    file_path: str
    line: int
    end_line: int
    title: str
    detail: str
    created_at: datetime
    metadata: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "analyzer": self.analyzer,
            "severity": self.severity.value,
            "category": self.category,
            "file": self.file_path,
            "line": self.line,
            "endLine": self.end_line,
            "title": self.title,
            "detail": self.detail,
            "metadata": dict(sorted(self.metadata.items())),
            "createdAt": self.created_at.isoformat().replace("+00:00", "Z"),
        }


def format_location(o: Occurrence) -> str:
    return f"{o.filepath}:{o.start_line}-{o.end_line}"


def _plural(n: int) -> str:
    return "" if n == 1 else "s"


def _detail(anchor: Occurrence, others: list[Occurrence], match_count: int) -> str:
    windows = f"{match_count} matching hash window{_plural(match_count)}."
    if len(others) == 1:
        return (
            f"Duplicated code block (lines {anchor.start_line}-{anchor.end_line}) "
            f"also found in {format_location(others[0])}. {windows}"
        )
    lines = [
        f"Duplicated code block (lines {anchor.start_line}-{anchor.end_line}) "
        f"found in {len(others)} other locations:"
    ]
    lines.extend(f"  - {format_location(o)}" for o in others)
    lines.append(windows)
    return "\n".join(lines)


def finding_for_group(
    group: CloneGroup,
    *,
    policy: SeverityPolicy,
    created_at: datetime,
) -> Finding:
    anchor = group.first
    others = list(group.occurrences[1:])
    copies = len(others)
    line_span = group.line_span

    return Finding(
        analyzer=ANALYZER_CLONES,
        severity=policy.classify(group),
        category=CATEGORY_DUPLICATION,
        file_path=anchor.filepath,
        line=anchor.start_line,
        end_line=anchor.end_line,
        title=(
            f"Code clone detected (~{line_span} lines, "
            f"{copies} other location{_plural(copies)})"
        ),
        detail=_detail(anchor, others, group.match_count),
        created_at=created_at,
        metadata={
            "clone_locations": ";".join(format_location(o) for o in others),
            "clone_count": str(copies),
            "line_span": str(line_span),
            "token_span": str(group.token_length),
            "match_count": str(group.match_count),
            "duplicated_lines": str(policy.duplicated_lines(group)),
            "fingerprint": fingerprint_hex(group.fingerprint),
        },
    )


def build_findings(
    groups: Iterable[CloneGroup],
    *,
    policy: SeverityPolicy | None = None,
    min_severity: Severity = Severity.INFO,
    created_at: datetime | None = None,
) -> list[Finding]:
    """
    One finding per clone group, anchored at its first occurrence.

    Groups are emitted sorted by (first path, first start line). Findings
    ranked below ``min_severity`` are dropped. All findings of one call
    share ``created_at``.
    """
    policy = policy or SeverityPolicy()
    now = created_at or datetime.now(timezone.utc)

    ordered = sorted(
        groups,
        key=lambda g: (g.first.filepath, g.first.start_line, g.first.start_token),
    )
    findings: list[Finding] = []
    for group in ordered:
        if len(group.occurrences) < 2:
            continue
        finding = finding_for_group(group, policy=policy, created_at=now)
        if finding.severity.rank < min_severity.rank:
            continue
        findings.append(finding)
    return findings
