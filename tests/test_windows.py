from tokenclone.lexer import Token, TokenKind
from tokenclone.windows import extract_windows


def _tokens(texts: list[str], lines: list[int] | None = None) -> list[Token]:
    lines = lines or list(range(1, len(texts) + 1))
    return [
        Token(TokenKind.KEYWORD, t, line) for t, line in zip(texts, lines, strict=True)
    ]


def test_extract_windows_positions_and_lines() -> None:
    tokens = _tokens(["a", "b", "c", "d", "e"], [1, 1, 2, 3, 3])

    windows = extract_windows(tokens, filepath="f.py", window_size=3)

    assert [w.token_index for w in windows] == [0, 1, 2]
    assert [(w.start_line, w.end_line) for w in windows] == [(1, 2), (1, 3), (2, 3)]
    assert all(w.filepath == "f.py" for w in windows)


def test_extract_windows_shorter_than_window() -> None:
    assert extract_windows(_tokens(["a", "b"]), filepath="f.py", window_size=3) == []


def test_extract_windows_exact_length() -> None:
    windows = extract_windows(_tokens(["a", "b", "c"]), filepath="f.py", window_size=3)

    assert len(windows) == 1


def test_identical_streams_share_fingerprints() -> None:
    a = extract_windows(_tokens(["x", "y", "z", "w"]), filepath="a", window_size=2)
    b = extract_windows(_tokens(["x", "y", "z", "w"]), filepath="b", window_size=2)

    assert [w.fingerprint for w in a] == [w.fingerprint for w in b]
