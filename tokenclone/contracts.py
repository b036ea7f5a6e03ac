"""
TokenClone — token-window structural clone detector
for multi-language source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Final

REPORT_SCHEMA_VERSION: Final = "1.0"

ANALYZER_CLONES: Final = "clones"
CATEGORY_DUPLICATION: Final = "duplication"

# Tokens per sliding window. Smaller windows surface shorter duplicates
# (more recall, more boilerplate noise); larger windows are more specific.
DEFAULT_WINDOW_SIZE: Final = 8

# Minimum source-line span of the widest member of a reported group.
DEFAULT_MIN_LINES: Final = 1

# Minimum number of matching windows in a merged region.
DEFAULT_MIN_MATCH_COUNT: Final = 1

# Buckets with more locations than this are treated as boilerplate.
# 0 disables the cap.
DEFAULT_MAX_BUCKET_SIZE: Final = 0

# Minimum share of a region's window positions that must match.
# 0.0 disables the filter.
DEFAULT_MIN_SIMILARITY: Final = 0.0

# Duplicated-line thresholds for severity promotion.
DEFAULT_SEV_WARNING_LINES: Final = 50
DEFAULT_SEV_CRITICAL_LINES: Final = 100

DEFAULT_PROCESSES: Final = 4

# Files larger than this are skipped.
MAX_FILE_SIZE: Final = 512 * 1024


class ExitCode(IntEnum):
    SUCCESS = 0
    CONTRACT_ERROR = 2
    GATING_FAILURE = 3
    INTERNAL_ERROR = 5
    CANCELLED = 130


EXIT_CODE_DESCRIPTIONS: Final[tuple[tuple[ExitCode, str], ...]] = (
    (ExitCode.SUCCESS, "success"),
    (
        ExitCode.CONTRACT_ERROR,
        (
            "contract error (invalid configuration, invalid output "
            "extensions or unwritable report files)"
        ),
    ),
    (
        ExitCode.GATING_FAILURE,
        "gating failure (clone group threshold exceeded)",
    ),
    (
        ExitCode.INTERNAL_ERROR,
        "internal error (unexpected exception; please report)",
    ),
    (ExitCode.CANCELLED, "cancelled (interrupted by the user)"),
)


def cli_help_epilog() -> str:
    lines = ["Exit codes"]
    for code, description in EXIT_CODE_DESCRIPTIONS:
        lines.append(f"  - {int(code)} - {description}")
    return "\n".join(lines)
