from __future__ import annotations

from qbit_lsp.analysis.lexer import IDENTIFIER_RE, split_lines


def resolve_symbol_at(source: str, line: int, character: int) -> str | None:
    """Return the identifier whose span contains ``character`` on ``line``.

    Both coordinates are 0-based. Out-of-range positions and positions on
    whitespace or punctuation resolve to ``None``.
    """
    lines = split_lines(source)
    if line < 0 or line >= len(lines):
        return None
    text = lines[line]
    if character < 0 or character >= len(text):
        return None
    for match in IDENTIFIER_RE.finditer(text):
        if match.start() <= character < match.end():
            return match.group(0)
        if match.start() > character:
            break
    return None
