"""
TokenClone — token-window structural clone detector
for multi-language source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any

from .contracts import REPORT_SCHEMA_VERSION
from .detector import RunResult
from .findings import Finding, Severity


def _severity_counts(findings: Sequence[Finding]) -> dict[str, int]:
    counts = {s.value: 0 for s in Severity}
    for f in findings:
        counts[f.severity.value] += 1
    return counts


def _summary_payload(findings: Sequence[Finding], result: RunResult) -> dict[str, Any]:
    return {
        "files_found": result.files_found,
        "files_analyzed": result.files_analyzed,
        "files_skipped": result.files_skipped,
        "clone_groups": result.clone_groups,
        "findings": result.findings_count,
        "buckets_skipped": result.buckets_skipped,
        "duration_s": round(result.duration_s, 3),
        "severity_counts": _severity_counts(findings),
    }


def to_json_report(
    findings: Sequence[Finding],
    result: RunResult,
    meta: Mapping[str, object] | None = None,
) -> str:
    """
    Serialize the run as JSON.

    Layout: ``{"meta": ..., "summary": ..., "findings": [...]}`` with sorted
    keys. Findings keep their emission order (first path, first line).
    """
    meta_payload = dict(meta or {})
    meta_payload["report_schema_version"] = REPORT_SCHEMA_VERSION

    payload: dict[str, object] = {
        "meta": meta_payload,
        "summary": {
            **_summary_payload(findings, result),
            "failures": list(result.failures),
        },
        "findings": [f.to_dict() for f in findings],
    }
    return json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True)


def _format_meta_text_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "(none)"
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value) or "(none)"
    text = str(value).strip()
    return text if text else "(none)"


def _finding_text(i: int, f: Finding) -> list[str]:
    lines = [
        f"=== Clone group #{i} [{f.severity.value}] ===",
        f"{f.title}",
        f"- {f.file_path}:{f.line}-{f.end_line}",
    ]
    others = f.metadata.get("clone_locations", "")
    lines.extend(f"- {loc}" for loc in others.split(";") if loc)
    lines.append(
        f"tokens={f.metadata.get('token_span', '?')} "
        f"windows={f.metadata.get('match_count', '?')} "
        f"duplicated_lines={f.metadata.get('duplicated_lines', '?')}"
    )
    return lines


def to_text_report(
    findings: Sequence[Finding],
    result: RunResult,
    meta: Mapping[str, object] | None = None,
) -> str:
    """Serialize a deterministic plain-text report."""
    lines = ["Clone Detection Report", "======================"]

    if meta:
        for key in sorted(meta):
            label = key.replace("_", " ").capitalize()
            lines.append(f"{label}: {_format_meta_text_value(meta[key])}")
        lines.append("")

    lines.extend(
        [
            f"Files analyzed: {result.files_analyzed}",
            f"Files skipped: {result.files_skipped}",
            f"Clone groups: {result.clone_groups}",
            f"Findings: {result.findings_count}",
            f"Duration: {result.duration_s:.2f}s",
        ]
    )

    if not findings:
        lines.append("")
        lines.append("No code clones detected.")
        return "\n".join(lines) + "\n"

    for i, f in enumerate(findings, start=1):
        lines.append("")
        lines.extend(_finding_text(i, f))
    return "\n".join(lines).rstrip() + "\n"
