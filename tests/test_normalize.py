from tokenclone.lexer import Token, TokenKind
from tokenclone.normalize import (
    IDENT_PLACEHOLDER,
    LITERAL_PLACEHOLDER,
    NormalizationConfig,
    normalize_token,
    normalize_tokens,
    tokenize_source,
)


def _texts(tokens: list[Token]) -> list[str]:
    return [t.text for t in tokens]


def test_normalize_replaces_identifiers_and_literals() -> None:
    tokens = tokenize_source("total = price * 3\n", "python", NormalizationConfig())

    assert _texts(tokens) == ["IDENT", "=", "IDENT", "*", "LIT"]


def test_renamed_code_normalizes_identically() -> None:
    cfg = NormalizationConfig()
    a = tokenize_source("def f(x):\n    return x + 'a'\n", "python", cfg)
    b = tokenize_source("def g(value):\n    return value + 'zzz'\n", "python", cfg)

    assert _texts(a) == _texts(b)


def test_control_flow_change_is_visible() -> None:
    cfg = NormalizationConfig()
    a = tokenize_source("if x:\n    y()\n", "python", cfg)
    b = tokenize_source("while x:\n    y()\n", "python", cfg)

    assert _texts(a) != _texts(b)


def test_normalization_can_be_disabled() -> None:
    cfg = NormalizationConfig(normalize_identifiers=False, normalize_literals=False)
    tokens = tokenize_source("total = 3\n", "python", cfg)

    assert _texts(tokens) == ["total", "=", "3"]


def test_identifiers_only() -> None:
    cfg = NormalizationConfig(normalize_identifiers=True, normalize_literals=False)
    tokens = tokenize_source("total = 3\n", "python", cfg)

    assert _texts(tokens) == [IDENT_PLACEHOLDER, "=", "3"]


def test_normalize_token_keeps_line_and_kind() -> None:
    token = Token(TokenKind.LITERAL, '"x"', 7)
    out = normalize_token(token, NormalizationConfig())

    assert out == Token(TokenKind.LITERAL, LITERAL_PLACEHOLDER, 7)


def test_normalize_tokens_keeps_keywords_and_operators() -> None:
    tokens = [
        Token(TokenKind.KEYWORD, "return", 1),
        Token(TokenKind.OPERATOR, "+", 1),
    ]

    assert normalize_tokens(tokens, NormalizationConfig()) == tokens


def test_go_renamed_code_normalizes_identically() -> None:
    cfg = NormalizationConfig()
    a = tokenize_source(
        'package p\nfunc F(a int) string {\n\treturn fmt.Sprint(a, "x")\n}\n',
        "go",
        cfg,
    )
    b = tokenize_source(
        'package q\nfunc G(n int) string {\n\treturn fmt.Sprint(n, "yy")\n}\n',
        "go",
        cfg,
    )

    assert _texts(a) == _texts(b)
    assert "LIT" in _texts(a)
