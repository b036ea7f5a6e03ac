"""
TokenClone — token-window structural clone detector
for multi-language source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""

from __future__ import annotations

import sys
from typing import TypedDict

from .contracts import REPORT_SCHEMA_VERSION
from .detector import Config
from .fingerprint import HASH_BITS


def _current_python_version() -> str:
    return f"{sys.version_info.major}.{sys.version_info.minor}"


class ReportMeta(TypedDict):
    """
    Report metadata shared by the JSON and TXT reports.

    Key semantics:
    - scan_paths: paths as given on the command line
    - window_size/min_tokens: effective thresholds of this run
    - hash_bits: fingerprint width; collisions are not re-verified
    """

    report_schema_version: str
    tokenclone_version: str
    python_version: str
    scan_paths: list[str]
    window_size: int
    min_tokens: int
    min_lines: int
    min_match_count: int
    max_bucket_size: int
    min_similarity: float
    min_severity: str
    hash_bits: int


def _build_report_meta(*, tokenclone_version: str, config: Config) -> ReportMeta:
    return {
        "report_schema_version": REPORT_SCHEMA_VERSION,
        "tokenclone_version": tokenclone_version,
        "python_version": _current_python_version(),
        "scan_paths": list(config.paths),
        "window_size": config.window_size,
        "min_tokens": config.effective_min_tokens,
        "min_lines": config.min_lines,
        "min_match_count": config.min_match_count,
        "max_bucket_size": config.max_bucket_size,
        "min_similarity": config.min_similarity,
        "min_severity": config.min_severity.value,
        "hash_bits": HASH_BITS,
    }
