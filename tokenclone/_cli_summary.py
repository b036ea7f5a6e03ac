"""
TokenClone — token-window structural clone detector
for multi-language source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console
from rich.table import Table
from rich.text import Text

from . import ui_messages as ui
from .detector import RunResult
from .findings import Finding, Severity

_CLONE_LABELS = frozenset({ui.SUMMARY_LABEL_CLONE_GROUPS, ui.SUMMARY_LABEL_FINDINGS})

_SEVERITY_STYLES = {
    Severity.INFO: "cyan",
    Severity.WARNING: "yellow",
    Severity.CRITICAL: "bold red",
}


def _summary_value_style(*, label: str, value: int) -> str:
    if value == 0:
        return "dim"
    if label == ui.SUMMARY_LABEL_FILES_SKIPPED:
        return "yellow"
    if label in _CLONE_LABELS:
        return "bold yellow"
    return "bold"


def _build_summary_rows(result: RunResult) -> list[tuple[str, int]]:
    return [
        (ui.SUMMARY_LABEL_FILES_FOUND, result.files_found),
        (ui.SUMMARY_LABEL_FILES_ANALYZED, result.files_analyzed),
        (ui.SUMMARY_LABEL_FILES_SKIPPED, result.files_skipped),
        (ui.SUMMARY_LABEL_CLONE_GROUPS, result.clone_groups),
        (ui.SUMMARY_LABEL_FINDINGS, result.findings_count),
        (ui.SUMMARY_LABEL_BUCKETS_SKIPPED, result.buckets_skipped),
    ]


def _build_summary_table(rows: list[tuple[str, int]]) -> Table:
    summary_table = Table(
        title=ui.SUMMARY_TITLE,
        show_header=True,
        width=ui.CLI_LAYOUT_WIDTH,
    )
    summary_table.add_column("Metric")
    summary_table.add_column("Value", justify="right")
    for label, value in rows:
        summary_table.add_row(
            label,
            Text(str(value), style=_summary_value_style(label=label, value=value)),
        )
    return summary_table


def _build_findings_table(findings: Sequence[Finding]) -> Table:
    table = Table(
        title=ui.FINDINGS_TITLE,
        show_header=True,
        width=ui.FINDINGS_TABLE_WIDTH,
    )
    table.add_column("Severity")
    table.add_column("Location", overflow="fold")
    table.add_column("Lines", justify="right")
    table.add_column("Copies", justify="right")
    for f in findings:
        table.add_row(
            Text(f.severity.value, style=_SEVERITY_STYLES[f.severity]),
            f"{f.file_path}:{f.line}-{f.end_line}",
            f.metadata.get("line_span", ""),
            f.metadata.get("clone_count", ""),
        )
    return table


def _print_findings(*, console: Console, findings: Sequence[Finding]) -> None:
    if not findings:
        console.print(ui.INFO_NO_CLONES)
        return
    shown = findings[: ui.FINDINGS_TABLE_LIMIT]
    console.print(_build_findings_table(shown))
    if len(findings) > len(shown):
        console.print(ui.fmt_findings_truncated(len(findings) - len(shown)))


def _print_summary(
    *,
    console: Console,
    quiet: bool,
    result: RunResult,
) -> None:
    invariant_ok = result.files_found == result.files_analyzed + result.files_skipped

    if quiet:
        console.print(ui.SUMMARY_TITLE)
        console.print(
            ui.fmt_summary_compact_input(
                found=result.files_found,
                analyzed=result.files_analyzed,
                skipped=result.files_skipped,
            )
        )
        console.print(
            ui.fmt_summary_compact_clones(
                groups=result.clone_groups,
                findings=result.findings_count,
                buckets=result.buckets_skipped,
            )
        )
    else:
        console.print(_build_summary_table(_build_summary_rows(result)))

    if not invariant_ok:
        console.print(f"[warning]{ui.WARN_SUMMARY_ACCOUNTING_MISMATCH}[/warning]")
