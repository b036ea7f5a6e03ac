"""
TokenClone — token-window structural clone detector
for multi-language source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""

from __future__ import annotations

import io
import keyword
import logging
import tokenize
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Final

import tree_sitter_go
import tree_sitter_java
import tree_sitter_javascript
import tree_sitter_rust
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from .errors import GrammarError
from .languages import (
    LANG_GO,
    LANG_JAVA,
    LANG_JAVASCRIPT,
    LANG_PYTHON,
    LANG_RUST,
    LANG_TSX,
    LANG_TYPESCRIPT,
)

logger = logging.getLogger(__name__)


class TokenKind(str, Enum):
    KEYWORD = "keyword"
    IDENTIFIER = "identifier"
    LITERAL = "literal"
    OPERATOR = "operator"


@dataclass(frozen=True, slots=True)
class Token:
    kind: TokenKind
    text: str
    line: int


# =========================
# Python (stdlib tokenizer)
# =========================

_PY_LITERAL_NAMES = frozenset({"True", "False", "None"})

_PY_SKIPPED = frozenset(
    {
        tokenize.COMMENT,
        tokenize.NL,
        tokenize.NEWLINE,
        tokenize.INDENT,
        tokenize.DEDENT,
        tokenize.ENCODING,
        tokenize.ENDMARKER,
    }
)

# Python 3.12+ splits f-strings into several tokens.
_FSTRING_START = getattr(tokenize, "FSTRING_START", -1)
_FSTRING_END = getattr(tokenize, "FSTRING_END", -1)


def _python_token(tok: tokenize.TokenInfo) -> Token | None:
    line = tok.start[0]
    if tok.type == tokenize.NAME:
        if tok.string in _PY_LITERAL_NAMES:
            return Token(TokenKind.LITERAL, tok.string, line)
        if keyword.iskeyword(tok.string):
            return Token(TokenKind.KEYWORD, tok.string, line)
        return Token(TokenKind.IDENTIFIER, tok.string, line)
    if tok.type in (tokenize.NUMBER, tokenize.STRING):
        return Token(TokenKind.LITERAL, tok.string, line)
    if not tok.string.strip():
        return None
    return Token(TokenKind.OPERATOR, tok.string, line)


def lex_python(source: str) -> list[Token]:
    """
    Tokenize Python source with the stdlib tokenizer.

    Comments and layout tokens are dropped. A whole f-string, including its
    replacement fields, becomes one literal. Tokenizer errors (unterminated
    brackets, bad dedents) end the stream; the tokens read so far are kept.
    """
    tokens: list[Token] = []
    fstring_parts: list[str] = []
    fstring_line = 0
    fstring_depth = 0

    try:
        for tok in tokenize.generate_tokens(io.StringIO(source).readline):
            if tok.type == _FSTRING_START:
                if fstring_depth == 0:
                    fstring_line = tok.start[0]
                fstring_depth += 1
            if fstring_depth:
                fstring_parts.append(tok.string)
                if tok.type == _FSTRING_END:
                    fstring_depth -= 1
                    if fstring_depth == 0:
                        tokens.append(
                            Token(
                                TokenKind.LITERAL,
                                "".join(fstring_parts),
                                fstring_line,
                            )
                        )
                        fstring_parts = []
                continue

            if tok.type in _PY_SKIPPED:
                continue
            token = _python_token(tok)
            if token is not None:
                tokens.append(token)
    except (tokenize.TokenError, SyntaxError) as e:
        logger.debug("Python tokenizer stopped early: %s", e)

    return tokens


# =========================
# Tree-sitter languages
# =========================

_GRAMMARS: Final[dict[str, Callable[[], object]]] = {
    LANG_GO: tree_sitter_go.language,
    LANG_JAVASCRIPT: tree_sitter_javascript.language,
    LANG_TYPESCRIPT: tree_sitter_typescript.language_typescript,
    LANG_TSX: tree_sitter_typescript.language_tsx,
    LANG_RUST: tree_sitter_rust.language,
    LANG_JAVA: tree_sitter_java.language,
}

IDENTIFIER_NODE_TYPES: Final = frozenset(
    {
        "identifier",
        "type_identifier",
        "field_identifier",
        "package_identifier",
        "property_identifier",
        "private_property_identifier",
        "shorthand_property_identifier",
        "shorthand_property_identifier_pattern",
        "shorthand_field_identifier",
        "statement_identifier",
        "label_name",
    }
)

# Literal nodes are atomic: their children (quotes, fragments, escapes) are
# not visited.
LITERAL_NODE_TYPES: Final = frozenset(
    {
        # Go
        "interpreted_string_literal",
        "raw_string_literal",
        "rune_literal",
        "int_literal",
        "float_literal",
        "imaginary_literal",
        "nil",
        "iota",
        # JavaScript / TypeScript
        "string",
        "template_string",
        "number",
        "regex",
        "null",
        "undefined",
        # Rust
        "string_literal",
        "char_literal",
        "integer_literal",
        "boolean_literal",
        # Java
        "text_block",
        "character_literal",
        "decimal_integer_literal",
        "hex_integer_literal",
        "octal_integer_literal",
        "binary_integer_literal",
        "decimal_floating_point_literal",
        "hex_floating_point_literal",
        "null_literal",
        # shared
        "true",
        "false",
    }
)


@lru_cache(maxsize=None)
def load_language(language: str) -> Language:
    factory = _GRAMMARS.get(language)
    if factory is None:
        raise GrammarError(f"No tree-sitter grammar for language: {language}")
    try:
        return Language(factory())
    except (TypeError, ValueError) as e:
        raise GrammarError(
            f"Cannot load tree-sitter grammar for {language}: {e}"
        ) from e


def _is_comment(node: Node) -> bool:
    return node.type.endswith("comment")


def _iter_significant_nodes(root: Node) -> Iterator[Node]:
    """Depth-first, source-ordered walk yielding literals and leaves."""
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_missing or _is_comment(node):
            continue
        if node.child_count == 0 or (
            node.is_named and node.type in LITERAL_NODE_TYPES
        ):
            yield node
            continue
        stack.extend(reversed(node.children))


def _leaf_token(node: Node, content: bytes) -> Token | None:
    line = node.start_point[0] + 1
    text = content[node.start_byte : node.end_byte].decode("utf-8", "replace")
    if node.is_named and node.type in LITERAL_NODE_TYPES:
        return Token(TokenKind.LITERAL, text, line)
    if node.is_named and node.type in IDENTIFIER_NODE_TYPES:
        return Token(TokenKind.IDENTIFIER, text, line)
    # Anonymous node types equal their source text; other named leaves
    # (escape sequences, primitive types, ``this``) keep their node type.
    kind_text = node.type
    if not kind_text.strip():
        return None
    if kind_text.replace("_", "").isalnum():
        return Token(TokenKind.KEYWORD, kind_text, line)
    return Token(TokenKind.OPERATOR, kind_text, line)


def lex_tree_sitter(source: str, language: str) -> list[Token]:
    content = source.encode("utf-8")
    parser = Parser(load_language(language))
    tree = parser.parse(content)

    tokens: list[Token] = []
    for node in _iter_significant_nodes(tree.root_node):
        token = _leaf_token(node, content)
        if token is not None:
            tokens.append(token)
    return tokens


def lex_source(source: str, language: str) -> list[Token]:
    """Tokenize ``source`` with the lexer registered for ``language``."""
    if language == LANG_PYTHON:
        return lex_python(source)
    return lex_tree_sitter(source, language)
