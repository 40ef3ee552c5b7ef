"""Line-oriented lexer for Qbit source text.

The lexer is deliberately forgiving: it never fails, it only classifies.
Every line of the source becomes a :class:`LexedLine` whose tokens carry
0-based columns. String literals do not span lines; an unclosed string is
reported as a ``STRING`` token with ``terminated=False`` running to the end
of its line. Block comments may span lines and are split into one
``COMMENT`` token per line.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional, Tuple

KEYWORDS = frozenset(
    {
        "let",
        "const",
        "fn",
        "if",
        "else",
        "while",
        "for",
        "return",
        "break",
        "continue",
        "import",
        "export",
        "true",
        "false",
        "null",
    }
)

IDENTIFIER_RE = re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*")
_NUMBER_RE = re.compile(r"[0-9]+(?:\.[0-9]+)?")
_WHITESPACE = frozenset(" \t\r\f\v")


class TokenKind(str, Enum):
    IDENT = "ident"
    KEYWORD = "keyword"
    NUMBER = "number"
    STRING = "string"
    COMMENT = "comment"
    LBRACE = "lbrace"
    RBRACE = "rbrace"
    LPAREN = "lparen"
    RPAREN = "rparen"
    COMMA = "comma"
    PUNCT = "punct"


_SINGLE_CHAR_KINDS = {
    "{": TokenKind.LBRACE,
    "}": TokenKind.RBRACE,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    ",": TokenKind.COMMA,
}


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    line: int
    start: int
    end: int
    terminated: bool = True


@dataclass(frozen=True)
class LexedLine:
    index: int
    text: str
    tokens: Tuple[Token, ...]

    def code_tokens(self) -> Iterator[Token]:
        """Tokens that are neither comments nor string literals."""
        for token in self.tokens:
            if token.kind not in (TokenKind.COMMENT, TokenKind.STRING):
                yield token


@dataclass(frozen=True)
class LexedSource:
    lines: Tuple[LexedLine, ...]
    # Opening ``/*`` of a block comment still open at end of source.
    open_comment: Optional[Token] = None


def split_lines(source: str) -> list[str]:
    """Split on ``\\n`` and drop one trailing ``\\r`` per line."""
    return [line[:-1] if line.endswith("\r") else line for line in source.split("\n")]


def _scan_string(text: str, start: int) -> tuple[int, bool]:
    pos = start + 1
    while pos < len(text):
        char = text[pos]
        if char == "\\":
            pos += 2
            continue
        if char == '"':
            return pos + 1, True
        pos += 1
    return len(text), False


def tokenize(source: str) -> LexedSource:
    lines: list[LexedLine] = []
    open_comment: Token | None = None
    for index, text in enumerate(split_lines(source)):
        tokens: list[Token] = []
        pos = 0
        if open_comment is not None:
            close = text.find("*/")
            if close < 0:
                if text:
                    tokens.append(Token(TokenKind.COMMENT, text, index, 0, len(text)))
                lines.append(LexedLine(index, text, tuple(tokens)))
                continue
            tokens.append(Token(TokenKind.COMMENT, text[: close + 2], index, 0, close + 2))
            open_comment = None
            pos = close + 2
        while pos < len(text):
            char = text[pos]
            if char in _WHITESPACE:
                pos += 1
                continue
            if text.startswith("//", pos):
                tokens.append(Token(TokenKind.COMMENT, text[pos:], index, pos, len(text)))
                break
            if text.startswith("/*", pos):
                close = text.find("*/", pos + 2)
                if close < 0:
                    open_comment = Token(TokenKind.COMMENT, "/*", index, pos, pos + 2, False)
                    tokens.append(
                        Token(TokenKind.COMMENT, text[pos:], index, pos, len(text), False)
                    )
                    break
                tokens.append(
                    Token(TokenKind.COMMENT, text[pos : close + 2], index, pos, close + 2)
                )
                pos = close + 2
                continue
            if char == '"':
                end, terminated = _scan_string(text, pos)
                tokens.append(
                    Token(TokenKind.STRING, text[pos:end], index, pos, end, terminated)
                )
                pos = end
                continue
            match = IDENTIFIER_RE.match(text, pos)
            if match is not None:
                word = match.group(0)
                kind = TokenKind.KEYWORD if word in KEYWORDS else TokenKind.IDENT
                tokens.append(Token(kind, word, index, pos, match.end()))
                pos = match.end()
                continue
            match = _NUMBER_RE.match(text, pos)
            if match is not None:
                tokens.append(Token(TokenKind.NUMBER, match.group(0), index, pos, match.end()))
                pos = match.end()
                continue
            kind = _SINGLE_CHAR_KINDS.get(char, TokenKind.PUNCT)
            tokens.append(Token(kind, char, index, pos, pos + 1))
            pos += 1
        lines.append(LexedLine(index, text, tuple(tokens)))
    return LexedSource(lines=tuple(lines), open_comment=open_comment)
