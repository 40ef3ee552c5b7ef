from __future__ import annotations

from qbit_lsp.analysis.lexer import TokenKind, split_lines, tokenize


def _kinds(source: str, line: int = 0) -> list[tuple[TokenKind, str]]:
    return [(token.kind, token.text) for token in tokenize(source).lines[line].tokens]


def test_tokenize_classifies_keywords_identifiers_and_punctuation() -> None:
    assert _kinds("fn add(a, b) { return a + b }") == [
        (TokenKind.KEYWORD, "fn"),
        (TokenKind.IDENT, "add"),
        (TokenKind.LPAREN, "("),
        (TokenKind.IDENT, "a"),
        (TokenKind.COMMA, ","),
        (TokenKind.IDENT, "b"),
        (TokenKind.RPAREN, ")"),
        (TokenKind.LBRACE, "{"),
        (TokenKind.KEYWORD, "return"),
        (TokenKind.IDENT, "a"),
        (TokenKind.PUNCT, "+"),
        (TokenKind.IDENT, "b"),
        (TokenKind.RBRACE, "}"),
    ]


def test_string_with_escaped_quote_is_one_terminated_token() -> None:
    tokens = tokenize('let s = "a\\"{b"').lines[0].tokens
    string = tokens[-1]
    assert string.kind is TokenKind.STRING
    assert string.text == '"a\\"{b"'
    assert string.terminated is True


def test_unclosed_string_runs_to_end_of_line() -> None:
    line = tokenize('say("hi\nnext').lines[0]
    string = line.tokens[-1]
    assert string.kind is TokenKind.STRING
    assert string.terminated is False
    assert (string.start, string.end) == (4, 7)


def test_line_comment_swallows_rest_of_line() -> None:
    assert _kinds('x // "{') == [(TokenKind.IDENT, "x"), (TokenKind.COMMENT, '// "{')]


def test_block_comment_spans_lines() -> None:
    lexed = tokenize("a /* one\ntwo { \n*/ b")
    assert [t.kind for t in lexed.lines[1].tokens] == [TokenKind.COMMENT]
    assert [(t.kind, t.text) for t in lexed.lines[2].tokens] == [
        (TokenKind.COMMENT, "*/"),
        (TokenKind.IDENT, "b"),
    ]
    assert lexed.open_comment is None


def test_unclosed_block_comment_is_reported_at_its_opening() -> None:
    lexed = tokenize("let x = 1\n  /* never closed\nstill")
    assert lexed.open_comment is not None
    assert (lexed.open_comment.line, lexed.open_comment.start) == (1, 2)


def test_code_tokens_skip_strings_and_comments() -> None:
    line = tokenize('a "b" c // d').lines[0]
    assert [t.text for t in line.code_tokens()] == ["a", "c"]


def test_split_lines_drops_carriage_returns() -> None:
    assert split_lines("a\r\nb\r\n") == ["a", "b", ""]


def test_numbers_are_single_tokens() -> None:
    assert _kinds("12.5 7") == [(TokenKind.NUMBER, "12.5"), (TokenKind.NUMBER, "7")]
