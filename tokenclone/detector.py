"""
TokenClone — token-window structural clone detector
for multi-language source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from .contracts import (
    DEFAULT_MAX_BUCKET_SIZE,
    DEFAULT_MIN_LINES,
    DEFAULT_MIN_MATCH_COUNT,
    DEFAULT_MIN_SIMILARITY,
    DEFAULT_PROCESSES,
    DEFAULT_SEV_CRITICAL_LINES,
    DEFAULT_SEV_WARNING_LINES,
    DEFAULT_WINDOW_SIZE,
    MAX_FILE_SIZE,
)
from .errors import (
    ConfigError,
    FileProcessingError,
    GrammarError,
    ScanCancelledError,
)
from .findings import (
    Finding,
    Severity,
    SeverityPolicy,
    build_findings,
    coerce_severity,
)
from .grouping import build_clone_groups
from .index import FingerprintIndex
from .languages import is_source_file, language_for_path
from .lexer import Token
from .normalize import NormalizationConfig, tokenize_source
from .scanner import DEFAULT_EXCLUDES, SourcePredicate, iter_source_files
from .windows import Window, extract_windows

logger = logging.getLogger(__name__)

BATCH_SIZE = 100

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True, slots=True)
class Config:
    """
    Run configuration. Validated on construction.

    ``min_tokens`` defaults to ``window_size`` when left as ``None``.
    """

    paths: tuple[str, ...]
    window_size: int = DEFAULT_WINDOW_SIZE
    min_tokens: int | None = None
    min_lines: int = DEFAULT_MIN_LINES
    min_match_count: int = DEFAULT_MIN_MATCH_COUNT
    max_bucket_size: int = DEFAULT_MAX_BUCKET_SIZE
    min_similarity: float = DEFAULT_MIN_SIMILARITY
    sev_warning_lines: int = DEFAULT_SEV_WARNING_LINES
    sev_critical_lines: int = DEFAULT_SEV_CRITICAL_LINES
    min_severity: Severity = Severity.INFO
    processes: int = DEFAULT_PROCESSES
    excludes: tuple[str, ...] = DEFAULT_EXCLUDES
    max_file_size: int = MAX_FILE_SIZE
    normalization: NormalizationConfig = field(default_factory=NormalizationConfig)
    is_source: SourcePredicate = is_source_file

    def __post_init__(self) -> None:
        if isinstance(self.paths, (str, os.PathLike)):
            raise ConfigError("paths must be a sequence of paths, not a single path")
        object.__setattr__(self, "paths", tuple(str(p) for p in self.paths))
        object.__setattr__(self, "excludes", tuple(self.excludes))
        if not self.paths:
            raise ConfigError("At least one path is required")
        if self.window_size <= 0:
            raise ConfigError(
                f"window_size must be a positive integer, got {self.window_size}"
            )
        if self.min_tokens is not None and self.min_tokens <= 0:
            raise ConfigError(
                f"min_tokens must be a positive integer, got {self.min_tokens}"
            )
        if self.min_lines < 1:
            raise ConfigError(f"min_lines must be at least 1, got {self.min_lines}")
        if self.min_match_count < 1:
            raise ConfigError(
                f"min_match_count must be at least 1, got {self.min_match_count}"
            )
        if self.max_bucket_size < 0:
            raise ConfigError(
                "max_bucket_size must be non-negative (0 disables the cap), "
                f"got {self.max_bucket_size}"
            )
        if self.max_bucket_size == 1:
            raise ConfigError("max_bucket_size of 1 would discard every match")
        if not 0.0 <= self.min_similarity <= 1.0:
            raise ConfigError(
                "min_similarity must be between 0.0 and 1.0, "
                f"got {self.min_similarity}"
            )
        if self.sev_warning_lines < 1 or self.sev_critical_lines < 1:
            raise ConfigError("Severity thresholds must be positive integers")
        if self.sev_warning_lines > self.sev_critical_lines:
            raise ConfigError(
                "sev_warning_lines must not exceed sev_critical_lines "
                f"({self.sev_warning_lines} > {self.sev_critical_lines})"
            )
        try:
            severity = coerce_severity(self.min_severity)
        except ValueError as e:
            raise ConfigError(str(e)) from None
        object.__setattr__(self, "min_severity", severity)
        if self.processes < 1:
            raise ConfigError(f"processes must be at least 1, got {self.processes}")
        if self.max_file_size <= 0:
            raise ConfigError(
                f"max_file_size must be positive, got {self.max_file_size}"
            )

    @property
    def effective_min_tokens(self) -> int:
        return self.window_size if self.min_tokens is None else self.min_tokens

    @property
    def severity_policy(self) -> SeverityPolicy:
        return SeverityPolicy(
            warning_lines=self.sev_warning_lines,
            critical_lines=self.sev_critical_lines,
        )


@dataclass(frozen=True, slots=True)
class SourceUnit:
    path: str
    content: bytes
    language: str
    tokens: tuple[Token, ...]


@dataclass(slots=True)
class ProcessingResult:
    """Result of processing a single file."""

    filepath: str
    success: bool
    language: str | None = None
    token_count: int = 0
    windows: list[Window] | None = None
    error: str | None = None
    error_kind: str | None = None


@dataclass(frozen=True, slots=True)
class RunResult:
    files_found: int
    files_analyzed: int
    files_skipped: int
    clone_groups: int
    findings_count: int
    buckets_skipped: int
    duration_s: float
    failures: tuple[str, ...] = ()


def load_source_unit(
    filepath: str,
    language: str,
    cfg: NormalizationConfig,
    max_file_size: int = MAX_FILE_SIZE,
) -> SourceUnit:
    """
    Read, decode and tokenize one file.

    Raises:
        FileProcessingError: the file cannot be stat'ed or read, is larger
            than ``max_file_size``, or is not valid UTF-8.
    """
    try:
        st_size = os.path.getsize(filepath)
    except OSError as e:
        raise FileProcessingError(f"Cannot stat file: {e}") from e
    if st_size > max_file_size:
        raise FileProcessingError(
            f"File too large: {st_size} bytes (max {max_file_size})"
        )

    try:
        content = Path(filepath).read_bytes()
    except OSError as e:
        raise FileProcessingError(f"Cannot read file: {e}") from e
    try:
        source = content.decode("utf-8")
    except UnicodeDecodeError as e:
        raise FileProcessingError(f"Encoding error: {e}") from e

    return SourceUnit(
        path=filepath,
        content=content,
        language=language,
        tokens=tuple(tokenize_source(source, language, cfg)),
    )


def process_file(
    filepath: str,
    language: str,
    window_size: int,
    cfg: NormalizationConfig,
    max_file_size: int = MAX_FILE_SIZE,
) -> ProcessingResult:
    """
    Load, tokenize and fingerprint a single file.

    Never raises: every problem is reported through
    ``ProcessingResult(success=False, error=..., error_kind=...)``.
    """
    try:
        try:
            unit = load_source_unit(filepath, language, cfg, max_file_size)
        except FileProcessingError as e:
            return ProcessingResult(
                filepath=filepath,
                success=False,
                language=language,
                error=str(e),
                error_kind=(
                    "grammar_error"
                    if isinstance(e, GrammarError)
                    else "source_read_error"
                ),
            )

        windows = extract_windows(
            unit.tokens, filepath=filepath, window_size=window_size
        )
        return ProcessingResult(
            filepath=filepath,
            success=True,
            language=language,
            token_count=len(unit.tokens),
            windows=windows,
        )

    except Exception as e:
        return ProcessingResult(
            filepath=filepath,
            success=False,
            language=language,
            error=f"Unexpected error: {type(e).__name__}: {e}",
            error_kind="unexpected_error",
        )


def _check_cancelled(cancel: threading.Event | None) -> None:
    if cancel is not None and cancel.is_set():
        logger.debug("Cancellation requested; aborting run")
        raise ScanCancelledError("Run cancelled")


def _safe_future_result(
    future: Future[ProcessingResult],
) -> tuple[ProcessingResult | None, str | None]:
    try:
        return future.result(), None
    except Exception as e:
        return None, str(e)


class _Runner:
    """Drives per-file processing for one ``detect_clones`` call."""

    def __init__(
        self,
        config: Config,
        jobs: Sequence[tuple[str, str]],
        *,
        cancel: threading.Event | None,
        progress: ProgressCallback | None,
    ) -> None:
        self.config = config
        self.jobs = jobs
        self.cancel = cancel
        self.progress = progress
        self.results: dict[str, ProcessingResult] = {}

    def _record(self, result: ProcessingResult) -> None:
        self.results[result.filepath] = result
        if self.progress is not None:
            self.progress(len(self.results), len(self.jobs))

    def _submit_args(self, filepath: str, language: str) -> tuple[object, ...]:
        cfg = self.config
        return (
            filepath,
            language,
            cfg.window_size,
            cfg.normalization,
            cfg.max_file_size,
        )

    def run_sequential(self) -> None:
        for filepath, language in self.jobs:
            if filepath in self.results:
                continue
            _check_cancelled(self.cancel)
            self._record(process_file(*self._submit_args(filepath, language)))

    def run_parallel(self) -> None:
        with ProcessPoolExecutor(max_workers=self.config.processes) as executor:
            for i in range(0, len(self.jobs), BATCH_SIZE):
                batch = self.jobs[i : i + BATCH_SIZE]
                futures = [
                    executor.submit(process_file, *self._submit_args(fp, lang))
                    for fp, lang in batch
                ]
                future_to_job = {
                    id(fut): job for fut, job in zip(futures, batch, strict=True)
                }
                for future in as_completed(futures):
                    if self.cancel is not None and self.cancel.is_set():
                        for pending in futures:
                            pending.cancel()
                        _check_cancelled(self.cancel)
                    filepath, language = future_to_job[id(future)]
                    result, err = _safe_future_result(future)
                    if result is None:
                        result = ProcessingResult(
                            filepath=filepath,
                            success=False,
                            language=language,
                            error=f"Worker failed: {err}",
                            error_kind="worker_error",
                        )
                    self._record(result)

    def run(self) -> list[ProcessingResult]:
        if self.config.processes <= 1 or len(self.jobs) <= 1:
            self.run_sequential()
        else:
            try:
                self.run_parallel()
            except (OSError, RuntimeError, PermissionError) as e:
                logger.warning(
                    "Parallel processing unavailable, falling back to "
                    "sequential: %s",
                    e,
                )
                self.run_sequential()
        return [self.results[fp] for fp, _ in self.jobs]


def detect_clones(
    config: Config,
    *,
    cancel: threading.Event | None = None,
    progress: ProgressCallback | None = None,
) -> tuple[list[Finding], RunResult]:
    """
    Run the full pipeline over ``config.paths``.

    Files are tokenized and fingerprinted in a process pool, then merged in
    sorted path order, so the findings are identical for any worker count.
    ``progress`` is called with ``(done, total)`` after every file.

    Raises:
        ConfigError: ``config`` is not a valid :class:`Config`.
        ScanCancelledError: ``cancel`` was set before the run finished.
    """
    if not isinstance(config, Config):
        raise ConfigError(f"Expected Config, got {type(config).__name__}")

    t0 = time.monotonic()
    created_at = datetime.now(timezone.utc)
    _check_cancelled(cancel)

    files = iter_source_files(
        config.paths, config.excludes, is_source=config.is_source
    )
    failures: list[str] = []
    jobs: list[tuple[str, str]] = []
    for fp in files:
        language = language_for_path(fp)
        if language is None:
            logger.info("Skipping %s: no lexer for this file type", fp)
            failures.append(f"{fp}: unsupported file type")
            continue
        jobs.append((fp, language))
    logger.debug("Discovered %d source files", len(files))

    results = _Runner(config, jobs, cancel=cancel, progress=progress).run()

    index = FingerprintIndex()
    windows_by_file: dict[str, list[Window]] = {}
    files_analyzed = 0
    for result in results:
        if not result.success or result.language is None:
            logger.info("Skipping %s: %s", result.filepath, result.error)
            failures.append(f"{result.filepath}: {result.error}")
            continue
        files_analyzed += 1
        windows = result.windows or []
        windows_by_file[result.filepath] = windows
        index.add_file(result.filepath, result.language, windows)
    logger.debug(
        "Indexed %d distinct fingerprints from %d files",
        len(index),
        index.file_count,
    )

    _check_cancelled(cancel)

    grouping = build_clone_groups(
        index,
        windows_by_file,
        window_size=config.window_size,
        min_tokens=config.effective_min_tokens,
        min_lines=config.min_lines,
        min_match_count=config.min_match_count,
        max_bucket_size=config.max_bucket_size,
        min_similarity=config.min_similarity,
    )
    findings = build_findings(
        grouping.groups,
        policy=config.severity_policy,
        min_severity=config.min_severity,
        created_at=created_at,
    )
    logger.debug(
        "Grouped %d regions into %d clone groups (%d findings)",
        grouping.regions,
        len(grouping.groups),
        len(findings),
    )

    run = RunResult(
        files_found=len(files),
        files_analyzed=files_analyzed,
        files_skipped=len(files) - files_analyzed,
        clone_groups=len(grouping.groups),
        findings_count=len(findings),
        buckets_skipped=grouping.buckets_skipped,
        duration_s=time.monotonic() - t0,
        failures=tuple(failures),
    )
    return findings, run
