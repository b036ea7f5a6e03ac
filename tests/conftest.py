from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from tokenclone.contracts import REPORT_SCHEMA_VERSION

FIXTURES_DIR = Path(__file__).parent / "fixtures"

ReportMetaFactory = Callable[..., dict[str, object]]


@pytest.fixture
def clones_dir() -> Path:
    return FIXTURES_DIR / "clones"


@pytest.fixture
def report_meta_factory() -> ReportMetaFactory:
    def _make(**overrides: object) -> dict[str, object]:
        meta: dict[str, object] = {
            "report_schema_version": REPORT_SCHEMA_VERSION,
            "tokenclone_version": "1.0.0",
            "python_version": "3.13",
            "scan_paths": ["/repo/src"],
            "window_size": 8,
            "min_tokens": 8,
            "min_lines": 1,
            "min_match_count": 1,
            "max_bucket_size": 0,
            "min_similarity": 0.0,
            "min_severity": "info",
            "hash_bits": 64,
        }
        meta.update(overrides)
        return meta

    return _make
