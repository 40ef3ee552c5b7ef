"""Heuristic diagnostics used when the authoritative parser cannot run.

Rules are evaluated independently for every line and may co-occur:

* a string literal still open at end-of-line is an unterminated string,
  anchored at its opening quote and running to the end of the line;
* a line whose ``{`` and ``}`` counts differ gets one diagnostic at the first
  brace of the kind in excess.

Both rules work on lexer tokens, so quotes and braces inside comments or
string literals are ignored. The analysis is still line-local: a ``{`` on
one line closed by a ``}`` on a later line is reported on both lines.
"""

from __future__ import annotations

import logging

from qbit_lsp.analysis.lexer import LexedLine, TokenKind, tokenize
from qbit_lsp.analysis.model import AnalysisResult, Diagnostic, Severity

logger = logging.getLogger(__name__)

UNTERMINATED_STRING = "Unterminated string literal"
UNTERMINATED_COMMENT = "Unterminated block comment"


def _unmatched_brace_message(brace: str) -> str:
    return f"Unmatched '{brace}'"


def _string_diagnostics(line: LexedLine) -> list[Diagnostic]:
    for token in line.tokens:
        if token.kind is TokenKind.STRING and not token.terminated:
            return [
                Diagnostic(
                    severity=Severity.ERROR,
                    message=UNTERMINATED_STRING,
                    line=line.index + 1,
                    column=token.start + 1,
                    length=len(line.text) - token.start,
                )
            ]
    return []


def _brace_diagnostics(line: LexedLine) -> list[Diagnostic]:
    opening = [t for t in line.code_tokens() if t.kind is TokenKind.LBRACE]
    closing = [t for t in line.code_tokens() if t.kind is TokenKind.RBRACE]
    if len(opening) == len(closing):
        return []
    excess = opening if len(opening) > len(closing) else closing
    anchor = excess[0]
    return [
        Diagnostic(
            severity=Severity.ERROR,
            message=_unmatched_brace_message(anchor.text),
            line=line.index + 1,
            column=anchor.start + 1,
            length=1,
        )
    ]


def analyze_source(source: str) -> AnalysisResult:
    lexed = tokenize(source)
    diagnostics: list[Diagnostic] = []
    for line in lexed.lines:
        diagnostics.extend(_string_diagnostics(line))
        diagnostics.extend(_brace_diagnostics(line))
    if lexed.open_comment is not None:
        diagnostics.append(
            Diagnostic(
                severity=Severity.ERROR,
                message=UNTERMINATED_COMMENT,
                line=lexed.open_comment.line + 1,
                column=lexed.open_comment.start + 1,
                length=2,
            )
        )
    logger.debug("fallback analysis produced %d diagnostics", len(diagnostics))
    return AnalysisResult.from_diagnostics(diagnostics)
