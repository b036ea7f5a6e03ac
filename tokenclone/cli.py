from __future__ import annotations

import logging
import os
import signal
import sys
import threading
import time
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from pathlib import Path
from types import FrameType

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.rule import Rule
from rich.theme import Theme

from . import __version__
from . import ui_messages as ui
from ._cli_args import build_parser
from ._cli_meta import _build_report_meta
from ._cli_paths import _validate_output_path
from ._cli_summary import _print_findings, _print_summary
from .contracts import ExitCode
from .detector import Config, RunResult, detect_clones
from .errors import ConfigError, ScanCancelledError
from .findings import Finding, Severity
from .report import to_json_report, to_text_report
from .scanner import DEFAULT_EXCLUDES

# Custom theme for Rich
custom_theme = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "success": "bold green",
        "dim": "dim",
    }
)


def _make_console(*, no_color: bool) -> Console:
    return Console(theme=custom_theme, width=100, no_color=no_color)


console = _make_console(no_color=False)


def _configure_logging(*, verbose: bool) -> None:
    pkg_logger = logging.getLogger("tokenclone")
    for handler in list(pkg_logger.handlers):
        if isinstance(handler, RichHandler):
            pkg_logger.removeHandler(handler)
    handler = RichHandler(
        console=console,
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=False,
    )
    pkg_logger.addHandler(handler)
    pkg_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def print_banner() -> None:
    console.print(
        Panel(
            ui.banner_title(__version__),
            border_style="blue",
            padding=(0, 2),
            width=ui.CLI_LAYOUT_WIDTH,
            expand=False,
        )
    )


def _is_debug_enabled(
    *,
    argv: Sequence[str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> bool:
    args = list(sys.argv[1:] if argv is None else argv)
    debug_from_flag = any(arg == "--debug" for arg in args)
    env = os.environ if environ is None else environ
    debug_from_env = env.get("TOKENCLONE_DEBUG") == "1"
    return debug_from_flag or debug_from_env


@contextmanager
def _cancel_on_interrupt(cancel: threading.Event) -> Iterator[None]:
    """First Ctrl-C sets ``cancel``; a second one interrupts immediately."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _handler(signum: int, frame: FrameType | None) -> None:
        if cancel.is_set():
            raise KeyboardInterrupt
        cancel.set()

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def _run_detection(
    config: Config,
    *,
    cancel: threading.Event,
    no_progress: bool,
    quiet: bool,
) -> tuple[list[Finding], RunResult]:
    if no_progress:
        if quiet:
            return detect_clones(config, cancel=cancel)
        with console.status(ui.STATUS_SCANNING, spinner="dots"):
            return detect_clones(config, cancel=cancel)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        TimeElapsedColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Analyzing files...", total=None)

        def _advance(done: int, total: int) -> None:
            progress.update(
                task,
                completed=done,
                total=total,
                description=f"Analyzing {total} files...",
            )

        return detect_clones(config, cancel=cancel, progress=_advance)


def _main_impl() -> None:
    ap = build_parser(__version__)
    args = ap.parse_args()

    if args.quiet:
        args.no_progress = True

    global console
    console = _make_console(no_color=args.no_color)
    _configure_logging(verbose=args.verbose)

    t0 = time.monotonic()

    try:
        config = Config(
            paths=tuple(args.paths),
            window_size=args.window_size,
            min_tokens=args.min_tokens,
            min_lines=args.min_lines,
            min_match_count=args.min_match_count,
            max_bucket_size=args.max_bucket_size,
            min_similarity=args.min_similarity,
            excludes=DEFAULT_EXCLUDES + tuple(args.exclude),
            min_severity=Severity(args.min_severity),
            processes=args.processes,
        )
    except ConfigError as e:
        console.print(ui.fmt_contract_error(ui.fmt_invalid_config(e)))
        sys.exit(ExitCode.CONTRACT_ERROR)

    json_out_path: Path | None = None
    text_out_path: Path | None = None
    if args.json_out:
        json_out_path = _validate_output_path(
            args.json_out,
            expected_suffix=".json",
            label="JSON",
            console=console,
            invalid_message=ui.fmt_invalid_output_extension,
            invalid_path_message=ui.fmt_invalid_output_path,
        )
    if args.text_out:
        text_out_path = _validate_output_path(
            args.text_out,
            expected_suffix=".txt",
            label="text",
            console=console,
            invalid_message=ui.fmt_invalid_output_extension,
            invalid_path_message=ui.fmt_invalid_output_path,
        )

    if not args.quiet:
        print_banner()
        console.print(ui.fmt_scanning_paths(list(config.paths)))

    cancel = threading.Event()
    try:
        with _cancel_on_interrupt(cancel):
            findings, result = _run_detection(
                config,
                cancel=cancel,
                no_progress=args.no_progress,
                quiet=args.quiet,
            )
    except (ScanCancelledError, KeyboardInterrupt):
        console.print(ui.fmt_cancelled())
        sys.exit(ExitCode.CANCELLED)

    if result.failures and not args.quiet:
        console.print(ui.fmt_failed_files_header(len(result.failures)))
        for failure in result.failures[:10]:
            console.print(f"  • {failure}", markup=False)
        if len(result.failures) > 10:
            console.print(f"  ... and {len(result.failures) - 10} more")

    if not args.quiet:
        console.print(Rule(style="dim"))
        _print_findings(console=console, findings=findings)

    _print_summary(console=console, quiet=args.quiet, result=result)

    report_meta = _build_report_meta(tokenclone_version=__version__, config=config)
    output_notice_printed = False

    def _print_output_notice(message: str) -> None:
        nonlocal output_notice_printed
        if args.quiet:
            return
        if not output_notice_printed:
            console.print("")
            output_notice_printed = True
        console.print(message)

    def _write_report_output(*, out: Path, content: str, label: str) -> None:
        try:
            out.parent.mkdir(parents=True, exist_ok=True)
            out.write_text(content, "utf-8")
        except OSError as e:
            console.print(
                ui.fmt_contract_error(
                    ui.fmt_report_write_failed(label=label, path=out, error=e)
                )
            )
            sys.exit(ExitCode.CONTRACT_ERROR)

    if json_out_path:
        _write_report_output(
            out=json_out_path,
            content=to_json_report(findings, result, report_meta),
            label="JSON",
        )
        _print_output_notice(ui.fmt_path(ui.INFO_JSON_REPORT_SAVED, json_out_path))

    if text_out_path:
        _write_report_output(
            out=text_out_path,
            content=to_text_report(findings, result, report_meta),
            label="text",
        )
        _print_output_notice(ui.fmt_path(ui.INFO_TEXT_REPORT_SAVED, text_out_path))

    if 0 <= args.fail_threshold < result.clone_groups:
        console.print(
            ui.fmt_gating_failure(
                ui.fmt_fail_threshold(
                    total=result.clone_groups, threshold=args.fail_threshold
                )
            )
        )
        sys.exit(ExitCode.GATING_FAILURE)

    if not args.quiet:
        elapsed = time.monotonic() - t0
        console.print(f"\n[dim]Done in {elapsed:.1f}s[/dim]")


def main() -> None:
    try:
        _main_impl()
    except SystemExit:
        raise
    except Exception as e:
        console.print(ui.fmt_internal_error(e, debug=_is_debug_enabled()))
        sys.exit(ExitCode.INTERNAL_ERROR)


if __name__ == "__main__":
    main()
