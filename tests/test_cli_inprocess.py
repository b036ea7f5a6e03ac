from __future__ import annotations

import json
import signal
import sys
import threading
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Literal

import pytest

import tokenclone.detector as detector
from tokenclone import cli
from tokenclone.errors import ScanCancelledError

SOURCE_A = """\
def summarize(records, limit):
    seen = set()
    result = []
    for index, record in enumerate(records):
        if index >= limit:
            break
        key = record.strip().lower()
        if not key or key in seen:
            continue
        seen.add(key)
        result.append(f"{index}: {key}")
    return result
"""

SOURCE_B = """\
def collect_names(people, maximum):
    known = set()
    names = []
    for pos, person in enumerate(people):
        if pos >= maximum:
            break
        name = person.strip().lower()
        if not name or name in known:
            continue
        known.add(name)
        names.append(f"{pos}: {name}")
    return names
"""


class _DummyFuture:
    def __init__(self, result: object) -> None:
        self._result = result

    def result(self) -> object:
        return self._result

    def cancel(self) -> bool:
        return False


class _DummyExecutor:
    def __init__(self, max_workers: int | None = None) -> None:
        self.max_workers = max_workers

    def __enter__(self) -> _DummyExecutor:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: object | None,
    ) -> Literal[False]:
        return False

    def submit(
        self, fn: Callable[..., object], *args: object, **kwargs: object
    ) -> _DummyFuture:
        return _DummyFuture(fn(*args, **kwargs))


@pytest.fixture(autouse=True)
def _in_process_workers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(detector, "ProcessPoolExecutor", _DummyExecutor)
    monkeypatch.setattr(detector, "as_completed", lambda futures: futures)


def _run_main(monkeypatch: pytest.MonkeyPatch, args: Iterable[str]) -> None:
    monkeypatch.setattr(sys, "argv", ["tokenclone", *args])
    cli.main()


def _write_pair(root: Path) -> None:
    (root / "a.py").write_text(SOURCE_A, "utf-8")
    (root / "b.py").write_text(SOURCE_B, "utf-8")


def test_cli_default_run(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    clones_dir: Path,
) -> None:
    _run_main(monkeypatch, [str(clones_dir), "--no-progress"])

    out = capsys.readouterr().out
    assert "TokenClone" in out
    assert "Scanning:" in out
    assert "Clone Findings" in out
    assert "Analysis Summary" in out
    assert "Done in" in out


def test_cli_writes_reports(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _write_pair(tmp_path)
    json_out = tmp_path / "out" / "report.json"
    text_out = tmp_path / "out" / "report.txt"

    _run_main(
        monkeypatch,
        [
            str(tmp_path),
            "--no-progress",
            "--json",
            str(json_out),
            "--text",
            str(text_out),
        ],
    )

    payload = json.loads(json_out.read_text("utf-8"))
    assert payload["meta"]["scan_paths"] == [str(tmp_path)]
    assert payload["meta"]["window_size"] == 8
    assert payload["summary"]["clone_groups"] == 1
    assert payload["summary"]["files_analyzed"] == 2
    assert payload["findings"][0]["file"] == str(tmp_path / "a.py")
    assert payload["findings"][0]["line"] == 1
    assert payload["findings"][0]["endLine"] == 12

    text = text_out.read_text("utf-8")
    assert "Clone Detection Report" in text
    assert "=== Clone group #1 [info] ===" in text

    out = capsys.readouterr().out
    assert "JSON report saved:" in out
    assert "Text report saved:" in out


def test_cli_quiet_output(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    clones_dir: Path,
) -> None:
    _run_main(monkeypatch, [str(clones_dir), "--quiet"])

    out = capsys.readouterr().out
    assert "Scanning:" not in out
    assert "Clone Findings" not in out
    assert "Input: found=4 analyzed=4 skipped=0" in out
    assert "Done in" not in out


def test_cli_with_progress_bar(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _write_pair(tmp_path)

    _run_main(monkeypatch, [str(tmp_path)])

    assert "Analysis Summary" in capsys.readouterr().out


def test_cli_no_clones(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    (tmp_path / "a.py").write_text("x = 1\n", "utf-8")

    _run_main(monkeypatch, [str(tmp_path), "--no-progress"])

    assert "No code clones detected." in capsys.readouterr().out


def test_cli_min_severity_hides_findings(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _write_pair(tmp_path)

    _run_main(
        monkeypatch,
        [str(tmp_path), "--quiet", "--min-severity", "critical"],
    )

    assert "Clones: groups=1 findings=0" in capsys.readouterr().out


def test_cli_lists_skipped_files(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _write_pair(tmp_path)
    (tmp_path / "broken.py").write_bytes(b"\xff\xfe\x00def")

    _run_main(monkeypatch, [str(tmp_path), "--no-progress"])

    out = capsys.readouterr().out
    assert "1 files skipped:" in out
    assert "broken.py" in out


def test_cli_invalid_json_extension(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    with pytest.raises(SystemExit) as exc:
        _run_main(
            monkeypatch, [str(tmp_path), "--json", str(tmp_path / "report.txt")]
        )

    assert exc.value.code == 2
    out = capsys.readouterr().out
    assert "CONTRACT ERROR:" in out
    assert "Invalid JSON output extension" in out


def test_cli_invalid_text_extension(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    with pytest.raises(SystemExit) as exc:
        _run_main(
            monkeypatch, [str(tmp_path), "--text", str(tmp_path / "report.json")]
        )

    assert exc.value.code == 2


def test_cli_invalid_config(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    with pytest.raises(SystemExit) as exc:
        _run_main(monkeypatch, [str(tmp_path), "--window-size", "0"])

    assert exc.value.code == 2
    assert "Invalid configuration" in capsys.readouterr().out


def test_cli_exclude_skips_named_directories(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    (tmp_path / "a.py").write_text(SOURCE_A, "utf-8")
    generated = tmp_path / "generated"
    generated.mkdir()
    (generated / "b.py").write_text(SOURCE_B, "utf-8")

    _run_main(monkeypatch, [str(tmp_path), "--quiet"])
    assert "Clones: groups=1" in capsys.readouterr().out

    _run_main(monkeypatch, [str(tmp_path), "--quiet", "--exclude", "generated"])
    out = capsys.readouterr().out
    assert "Clones: groups=0" in out
    assert "found=1" in out


def test_cli_invalid_min_similarity(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    with pytest.raises(SystemExit) as exc:
        _run_main(monkeypatch, [str(tmp_path), "--min-similarity", "2"])

    assert exc.value.code == 2
    assert "min_similarity" in capsys.readouterr().out


def test_cli_report_write_failure(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _write_pair(tmp_path)
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", "utf-8")

    with pytest.raises(SystemExit) as exc:
        _run_main(
            monkeypatch,
            [
                str(tmp_path),
                "--no-progress",
                "--json",
                str(blocker / "report.json"),
            ],
        )

    assert exc.value.code == 2
    assert "Failed to write JSON report" in capsys.readouterr().out


def test_cli_fail_threshold(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _write_pair(tmp_path)

    with pytest.raises(SystemExit) as exc:
        _run_main(
            monkeypatch, [str(tmp_path), "--no-progress", "--fail-threshold", "0"]
        )

    assert exc.value.code == 3
    out = capsys.readouterr().out
    assert "GATING FAILURE:" in out
    assert "Clone groups (1) exceed threshold (0)." in out


def test_cli_fail_threshold_not_exceeded(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _write_pair(tmp_path)

    _run_main(monkeypatch, [str(tmp_path), "--quiet", "--fail-threshold", "1"])


def test_cli_cancelled(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    def _cancelled(*args: object, **kwargs: object) -> None:
        raise ScanCancelledError("Scan cancelled")

    monkeypatch.setattr(cli, "detect_clones", _cancelled)
    json_out = tmp_path / "report.json"

    with pytest.raises(SystemExit) as exc:
        _run_main(
            monkeypatch,
            [str(tmp_path), "--no-progress", "--json", str(json_out)],
        )

    assert exc.value.code == 130
    assert "CANCELLED:" in capsys.readouterr().out
    assert not json_out.exists()


def test_cli_internal_error(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    def _boom(*args: object, **kwargs: object) -> None:
        raise RuntimeError("boom")

    monkeypatch.setattr(cli, "detect_clones", _boom)
    monkeypatch.delenv("TOKENCLONE_DEBUG", raising=False)

    with pytest.raises(SystemExit) as exc:
        _run_main(monkeypatch, [str(tmp_path), "--no-progress"])

    assert exc.value.code == 5
    out = capsys.readouterr().out
    assert "INTERNAL ERROR:" in out
    assert "RuntimeError: boom" in out
    assert "DEBUG DETAILS" not in out


def test_cli_internal_error_debug_env(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    def _boom(*args: object, **kwargs: object) -> None:
        raise RuntimeError("boom")

    monkeypatch.setattr(cli, "detect_clones", _boom)
    monkeypatch.setenv("TOKENCLONE_DEBUG", "1")

    with pytest.raises(SystemExit) as exc:
        _run_main(monkeypatch, [str(tmp_path), "--no-progress"])

    assert exc.value.code == 5
    assert "DEBUG DETAILS" in capsys.readouterr().out


def test_cli_version(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    with pytest.raises(SystemExit) as exc:
        _run_main(monkeypatch, ["--version"])

    assert exc.value.code == 0
    assert capsys.readouterr().out.startswith("TokenClone ")


def test_cancel_on_interrupt_handler() -> None:
    cancel = threading.Event()
    previous = signal.getsignal(signal.SIGINT)

    with cli._cancel_on_interrupt(cancel):
        handler = signal.getsignal(signal.SIGINT)
        assert callable(handler)
        handler(signal.SIGINT, None)
        assert cancel.is_set()
        with pytest.raises(KeyboardInterrupt):
            handler(signal.SIGINT, None)

    assert signal.getsignal(signal.SIGINT) is previous
