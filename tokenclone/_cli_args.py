"""
TokenClone — token-window structural clone detector
for multi-language source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""

from __future__ import annotations

import argparse
from typing import cast

from . import ui_messages as ui
from .contracts import (
    DEFAULT_MAX_BUCKET_SIZE,
    DEFAULT_MIN_LINES,
    DEFAULT_MIN_MATCH_COUNT,
    DEFAULT_MIN_SIMILARITY,
    DEFAULT_PROCESSES,
    DEFAULT_WINDOW_SIZE,
    cli_help_epilog,
)
from .findings import Severity


class _HelpFormatter(
    argparse.ArgumentDefaultsHelpFormatter, argparse.RawDescriptionHelpFormatter
):
    def _get_help_string(self, action: argparse.Action) -> str:
        if action.dest == "min_tokens":
            return action.help or ""
        return cast(str, super()._get_help_string(action))


def build_parser(version: str) -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="tokenclone",
        description=(
            "Token-window structural clone detector for Python, Go, "
            "JavaScript, TypeScript, Rust and Java."
        ),
        epilog=cli_help_epilog(),
        formatter_class=_HelpFormatter,
    )
    ap.add_argument(
        "--version",
        action="version",
        version=ui.version_output(version),
        help=ui.HELP_VERSION,
    )

    core_group = ap.add_argument_group("Target")
    core_group.add_argument(
        "paths",
        nargs="*",
        default=["."],
        metavar="PATH",
        help=ui.HELP_PATHS,
    )
    core_group.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="NAME",
        help=ui.HELP_EXCLUDE,
    )

    tune_group = ap.add_argument_group("Analysis Tuning")
    tune_group.add_argument(
        "--window-size",
        type=int,
        default=DEFAULT_WINDOW_SIZE,
        metavar="N",
        help=ui.HELP_WINDOW_SIZE,
    )
    tune_group.add_argument(
        "--min-tokens",
        type=int,
        default=None,
        metavar="N",
        help=ui.HELP_MIN_TOKENS,
    )
    tune_group.add_argument(
        "--min-lines",
        type=int,
        default=DEFAULT_MIN_LINES,
        metavar="N",
        help=ui.HELP_MIN_LINES,
    )
    tune_group.add_argument(
        "--min-match-count",
        type=int,
        default=DEFAULT_MIN_MATCH_COUNT,
        metavar="N",
        help=ui.HELP_MIN_MATCH_COUNT,
    )
    tune_group.add_argument(
        "--max-bucket-size",
        type=int,
        default=DEFAULT_MAX_BUCKET_SIZE,
        metavar="N",
        help=ui.HELP_MAX_BUCKET_SIZE,
    )
    tune_group.add_argument(
        "--min-similarity",
        type=float,
        default=DEFAULT_MIN_SIMILARITY,
        metavar="RATIO",
        help=ui.HELP_MIN_SIMILARITY,
    )
    tune_group.add_argument(
        "--min-severity",
        choices=[s.value for s in Severity],
        default=Severity.INFO.value,
        help=ui.HELP_MIN_SEVERITY,
    )
    tune_group.add_argument(
        "--processes",
        type=int,
        default=DEFAULT_PROCESSES,
        help=ui.HELP_PROCESSES,
    )

    ci_group = ap.add_argument_group("CI/CD")
    ci_group.add_argument(
        "--fail-threshold",
        type=int,
        default=-1,
        metavar="MAX_CLONES",
        help=ui.HELP_FAIL_THRESHOLD,
    )

    out_group = ap.add_argument_group("Reporting")
    out_group.add_argument(
        "--json",
        dest="json_out",
        metavar="FILE",
        help=ui.HELP_JSON,
    )
    out_group.add_argument(
        "--text",
        dest="text_out",
        metavar="FILE",
        help=ui.HELP_TEXT,
    )
    out_group.add_argument(
        "--no-progress",
        action="store_true",
        help=ui.HELP_NO_PROGRESS,
    )
    out_group.add_argument(
        "--no-color",
        action="store_true",
        help=ui.HELP_NO_COLOR,
    )
    out_group.add_argument(
        "--quiet",
        action="store_true",
        help=ui.HELP_QUIET,
    )
    out_group.add_argument(
        "--verbose",
        action="store_true",
        help=ui.HELP_VERBOSE,
    )
    out_group.add_argument(
        "--debug",
        action="store_true",
        help=ui.HELP_DEBUG,
    )
    return ap
