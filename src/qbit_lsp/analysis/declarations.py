from __future__ import annotations

from qbit_lsp.analysis.lexer import LexedLine, Token, TokenKind, tokenize
from qbit_lsp.analysis.model import Declaration, DeclarationKind

_BINDING_KINDS = {
    "let": DeclarationKind.VARIABLE,
    "const": DeclarationKind.CONSTANT,
}


def _separated_by_whitespace(line: LexedLine, left: Token, right: Token) -> bool:
    gap = line.text[left.end : right.start]
    return bool(gap) and not gap.strip()


def _split_parameters(raw: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def extract_variables(source: str) -> list[Declaration]:
    """Every ``let``/``const`` binding, in source order, duplicates kept."""
    declarations: list[Declaration] = []
    for line in tokenize(source).lines:
        tokens = list(line.code_tokens())
        for keyword, name in zip(tokens, tokens[1:]):
            kind = _BINDING_KINDS.get(keyword.text)
            if kind is None or keyword.kind is not TokenKind.KEYWORD:
                continue
            if name.kind is not TokenKind.IDENT:
                continue
            if not _separated_by_whitespace(line, keyword, name):
                continue
            declarations.append(Declaration(name=name.text, kind=kind, line=line.index))
    return declarations


def extract_functions(source: str) -> list[Declaration]:
    """Every ``fn name(params)`` whose parameter list closes on the same line."""
    declarations: list[Declaration] = []
    for line in tokenize(source).lines:
        tokens = list(line.code_tokens())
        for index, keyword in enumerate(tokens):
            if keyword.kind is not TokenKind.KEYWORD or keyword.text != "fn":
                continue
            if index + 2 >= len(tokens):
                continue
            name, opening = tokens[index + 1], tokens[index + 2]
            if name.kind is not TokenKind.IDENT or opening.kind is not TokenKind.LPAREN:
                continue
            if not _separated_by_whitespace(line, keyword, name):
                continue
            closing = next(
                (t for t in tokens[index + 3 :] if t.kind is TokenKind.RPAREN),
                None,
            )
            if closing is None:
                continue
            declarations.append(
                Declaration(
                    name=name.text,
                    kind=DeclarationKind.FUNCTION,
                    line=line.index,
                    parameters=_split_parameters(line.text[opening.end : closing.start]),
                )
            )
    return declarations


def extract_calls(source: str) -> list[str]:
    """Names of identifiers directly followed by ``(``, first-seen order.

    The name in a ``fn name(...)`` header is a definition, not a call.
    """
    seen: dict[str, None] = {}
    for line in tokenize(source).lines:
        tokens = list(line.code_tokens())
        for index, (name, opening) in enumerate(zip(tokens, tokens[1:])):
            if name.kind is not TokenKind.IDENT or opening.kind is not TokenKind.LPAREN:
                continue
            if index > 0 and tokens[index - 1].text == "fn":
                continue
            seen.setdefault(name.text, None)
    return list(seen)


def list_functions(source: str) -> list[Declaration]:
    return extract_functions(source)


def list_variables(source: str) -> list[Declaration]:
    return extract_variables(source)
