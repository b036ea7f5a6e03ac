from __future__ import annotations

import platform
import shlex
import sys
import traceback
from pathlib import Path

from . import __version__

BANNER_SUBTITLE = "[italic]Structural clone detector for source trees[/italic]"

MARKER_CONTRACT_ERROR = "[error]CONTRACT ERROR:[/error]"
MARKER_GATING_FAILURE = "[error]GATING FAILURE:[/error]"
MARKER_INTERNAL_ERROR = "[error]INTERNAL ERROR:[/error]"
MARKER_CANCELLED = "[warning]CANCELLED:[/warning]"

HELP_VERSION = "Print the TokenClone version and exit."
HELP_PATHS = "Files or directories to scan."
HELP_WINDOW_SIZE = (
    "Tokens per fingerprint window. Smaller windows find shorter duplicates "
    "(more recall, more noise)."
)
HELP_MIN_TOKENS = "Minimum merged duplicate length in tokens. Default: window size."
HELP_MIN_LINES = "Minimum source lines spanned by a reported clone."
HELP_MIN_MATCH_COUNT = "Minimum number of matching windows in a merged region."
HELP_MAX_BUCKET_SIZE = (
    "Skip fingerprints shared by more than N locations (0 disables the cap)."
)
HELP_MIN_SIMILARITY = (
    "Drop regions where less than RATIO (0.0-1.0) of the window positions "
    "matched. 0 disables the filter."
)
HELP_EXCLUDE = (
    "Directory name to skip in addition to the built-in excludes "
    "(repeatable)."
)
HELP_MIN_SEVERITY = "Do not report findings below this severity."
HELP_PROCESSES = "Number of parallel worker processes."
HELP_FAIL_THRESHOLD = "Exit with error if clone groups exceed this number."
HELP_JSON = "Generate a JSON report to FILE."
HELP_TEXT = "Generate a text report to FILE."
HELP_NO_PROGRESS = "Disable the progress bar (recommended for CI logs)."
HELP_NO_COLOR = "Disable ANSI colors in output."
HELP_QUIET = "Minimize output (still shows warnings and errors)."
HELP_VERBOSE = "Log per-file skips and pipeline details."
HELP_DEBUG = "Print debug details (traceback and environment) on internal errors."

SUMMARY_TITLE = "Analysis Summary"
FINDINGS_TITLE = "Clone Findings"
CLI_LAYOUT_WIDTH = 40
FINDINGS_TABLE_WIDTH = 100
FINDINGS_TABLE_LIMIT = 20
SUMMARY_LABEL_FILES_FOUND = "Files found"
SUMMARY_LABEL_FILES_ANALYZED = "Files analyzed"
SUMMARY_LABEL_FILES_SKIPPED = "Files skipped"
SUMMARY_LABEL_CLONE_GROUPS = "Clone groups"
SUMMARY_LABEL_FINDINGS = "Findings"
SUMMARY_LABEL_BUCKETS_SKIPPED = "Buckets skipped"
SUMMARY_COMPACT_INPUT = "Input: found={found} analyzed={analyzed} skipped={skipped}"
SUMMARY_COMPACT_CLONES = (
    "Clones: groups={groups} findings={findings} buckets_skipped={buckets}"
)
WARN_SUMMARY_ACCOUNTING_MISMATCH = (
    "Summary accounting mismatch: files_found != files_analyzed + files_skipped"
)

STATUS_SCANNING = "[bold green]Scanning and grouping clones..."

INFO_SCANNING_PATHS = "[info]Scanning:[/info] {paths}"
INFO_JSON_REPORT_SAVED = "[info]JSON report saved:[/info] {path}"
INFO_TEXT_REPORT_SAVED = "[info]Text report saved:[/info] {path}"
INFO_NO_CLONES = "[success]No code clones detected.[/success]"
INFO_FINDINGS_TRUNCATED = "[dim]... and {count} more (see --json/--text)[/dim]"

WARN_FAILED_FILES_HEADER = "\n[warning]{count} files skipped:[/warning]"

ERR_INVALID_OUTPUT_EXT = (
    "[error]Invalid {label} output extension: {path} "
    "(expected {expected_suffix}).[/error]"
)
ERR_INVALID_OUTPUT_PATH = (
    "[error]Invalid {label} output path: {path} ({error}).[/error]"
)
ERR_INVALID_CONFIG = "[error]Invalid configuration: {error}[/error]"
ERR_REPORT_WRITE_FAILED = (
    "[error]Failed to write {label} report: {path} ({error}).[/error]"
)
ERR_FAIL_THRESHOLD = "Clone groups ({total}) exceed threshold ({threshold})."
ERR_CANCELLED = "Run interrupted; no report was produced."


def version_output(version: str) -> str:
    return f"TokenClone {version}"


def banner_title(version: str) -> str:
    return (
        f"[bold white]TokenClone[/bold white] [dim]v{version}[/dim]\n{BANNER_SUBTITLE}"
    )


def fmt_invalid_output_extension(
    *, label: str, path: Path, expected_suffix: str
) -> str:
    return ERR_INVALID_OUTPUT_EXT.format(
        label=label, path=path, expected_suffix=expected_suffix
    )


def fmt_invalid_output_path(*, label: str, path: Path, error: object) -> str:
    return ERR_INVALID_OUTPUT_PATH.format(label=label, path=path, error=error)


def fmt_invalid_config(error: object) -> str:
    return ERR_INVALID_CONFIG.format(error=error)


def fmt_report_write_failed(*, label: str, path: Path, error: object) -> str:
    return ERR_REPORT_WRITE_FAILED.format(label=label, path=path, error=error)


def fmt_scanning_paths(paths: list[str]) -> str:
    return INFO_SCANNING_PATHS.format(paths=", ".join(paths))


def fmt_failed_files_header(count: int) -> str:
    return WARN_FAILED_FILES_HEADER.format(count=count)


def fmt_findings_truncated(count: int) -> str:
    return INFO_FINDINGS_TRUNCATED.format(count=count)


def fmt_path(template: str, path: Path) -> str:
    return template.format(path=path)


def fmt_summary_compact_input(*, found: int, analyzed: int, skipped: int) -> str:
    return SUMMARY_COMPACT_INPUT.format(
        found=found, analyzed=analyzed, skipped=skipped
    )


def fmt_summary_compact_clones(*, groups: int, findings: int, buckets: int) -> str:
    return SUMMARY_COMPACT_CLONES.format(
        groups=groups, findings=findings, buckets=buckets
    )


def fmt_fail_threshold(*, total: int, threshold: int) -> str:
    return ERR_FAIL_THRESHOLD.format(total=total, threshold=threshold)


def fmt_contract_error(message: str) -> str:
    return f"{MARKER_CONTRACT_ERROR}\n{message}"


def fmt_gating_failure(message: str) -> str:
    return f"{MARKER_GATING_FAILURE}\n{message}"


def fmt_cancelled() -> str:
    return f"{MARKER_CANCELLED}\n{ERR_CANCELLED}"


def _debug_details(error: BaseException) -> list[str]:
    trace = "".join(
        traceback.format_exception(type(error), error, error.__traceback__)
    )
    return [
        "",
        "DEBUG DETAILS",
        f"TokenClone {__version__} on Python {sys.version.split()[0]}",
        f"Platform: {platform.platform()}",
        f"Working directory: {Path.cwd()}",
        f"Invocation: {shlex.join(sys.argv)}",
        "Traceback:",
        trace.rstrip(),
    ]


def fmt_internal_error(error: BaseException, *, debug: bool = False) -> str:
    message = str(error).strip() or "<no message>"
    lines = [
        MARKER_INTERNAL_ERROR,
        "Clone detection stopped on an unhandled exception.",
        f"Cause: {type(error).__name__}: {message}",
        "Add --debug (or set TOKENCLONE_DEBUG=1) to print the traceback.",
    ]
    if debug:
        lines.extend(_debug_details(error))
    return "\n".join(lines)
