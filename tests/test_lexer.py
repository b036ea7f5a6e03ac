import pytest

from tokenclone.errors import GrammarError
from tokenclone.lexer import (
    TokenKind,
    lex_python,
    lex_source,
    lex_tree_sitter,
    load_language,
)


def _texts(tokens: list) -> list[str]:
    return [t.text for t in tokens]


def test_lex_python_kinds() -> None:
    tokens = lex_python("def f(a):\n    return a + 1  # note\n")

    assert _texts(tokens) == ["def", "f", "(", "a", ")", ":", "return", "a", "+", "1"]
    assert tokens[0].kind is TokenKind.KEYWORD
    assert tokens[1].kind is TokenKind.IDENTIFIER
    assert tokens[2].kind is TokenKind.OPERATOR
    assert tokens[-1].kind is TokenKind.LITERAL
    assert [t.line for t in tokens] == [1] * 6 + [2] * 4


def test_lex_python_constants_are_literals() -> None:
    tokens = lex_python("x = None or True or False\n")

    kinds = {t.text: t.kind for t in tokens}
    assert kinds["None"] is TokenKind.LITERAL
    assert kinds["True"] is TokenKind.LITERAL
    assert kinds["False"] is TokenKind.LITERAL
    assert kinds["or"] is TokenKind.KEYWORD


def test_lex_python_fstring_is_one_literal() -> None:
    tokens = lex_python("x = f'{a}b' + y\n")

    assert _texts(tokens) == ["x", "=", "f'{a}b'", "+", "y"]
    assert tokens[2].kind is TokenKind.LITERAL


def test_lex_python_drops_layout_and_comments() -> None:
    source = "# header\n\nif x:\n    pass\n\n"
    tokens = lex_python(source)

    assert _texts(tokens) == ["if", "x", ":", "pass"]
    assert tokens[0].line == 3


def test_lex_python_keeps_tokens_before_error() -> None:
    tokens = lex_python("def f(:\n    x = (1,\n")

    assert tokens
    assert tokens[0].text == "def"


def test_lex_python_empty() -> None:
    assert lex_python("") == []


def test_lex_go() -> None:
    source = (
        "package main\n"
        "\n"
        "// add sums two ints\n"
        "func add(a int, b int) int {\n"
        '\tmsg := "hello world"\n'
        "\treturn a + b\n"
        "}\n"
    )
    tokens = lex_source(source, "go")
    texts = _texts(tokens)

    assert "func" in texts
    assert "return" in texts
    assert "+" in texts
    assert not any("sums" in t for t in texts)
    assert not any(not t.strip() for t in texts)

    literals = [t for t in tokens if t.kind is TokenKind.LITERAL]
    assert _texts(literals) == ['"hello world"']
    assert literals[0].line == 5

    idents = {t.text for t in tokens if t.kind is TokenKind.IDENTIFIER}
    assert {"add", "a", "b", "msg"} <= idents


def test_lex_javascript_template_string_is_atomic() -> None:
    tokens = lex_source("const s = `a ${b} c`;\n", "javascript")

    literals = [t for t in tokens if t.kind is TokenKind.LITERAL]
    assert len(literals) == 1
    assert literals[0].text == "`a ${b} c`"


def test_lex_tree_sitter_typescript_and_tsx() -> None:
    ts = lex_tree_sitter("let n: number = 1;\n", "typescript")
    tsx = lex_tree_sitter("const el = <div>{n}</div>;\n", "tsx")

    assert "let" in _texts(ts)
    assert tsx


def test_lex_rust_and_java() -> None:
    rust = lex_source("fn main() { let x = 42; }\n", "rust")
    java = lex_source("class A { int f() { return 0; } }\n", "java")

    assert "fn" in _texts(rust)
    assert "42" in _texts(rust)
    assert "class" in _texts(java)
    assert "return" in _texts(java)


def test_load_language_unknown() -> None:
    with pytest.raises(GrammarError):
        load_language("cobol")
