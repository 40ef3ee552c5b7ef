"""Hover and completion content built from the declaration index."""

from __future__ import annotations

from lsprotocol import types as lsp

from qbit_lsp.analysis.declarations import extract_calls, extract_functions, extract_variables
from qbit_lsp.analysis.symbols import resolve_symbol_at
from qbit_lsp.catalog import KEYWORD_DESCRIPTIONS, KEYWORD_DETAILS, SNIPPETS

LANGUAGE_ID = "qbit"


def _code_block(code: str) -> str:
    return f"```{LANGUAGE_ID}\n{code}\n```"


def hover_markdown(source: str, line: int, character: int) -> str | None:
    symbol = resolve_symbol_at(source, line, character)
    if symbol is None:
        return None
    function = next((d for d in extract_functions(source) if d.name == symbol), None)
    if function is not None:
        return (
            f"{_code_block(function.signature)}\n\n"
            f"Function defined at line {function.line + 1}"
        )
    variable = next((d for d in extract_variables(source) if d.name == symbol), None)
    if variable is not None:
        return (
            f"{_code_block(variable.signature)}\n\n"
            f"Variable declared at line {variable.line + 1}"
        )
    description = KEYWORD_DESCRIPTIONS.get(symbol)
    if description is not None:
        return f"{_code_block(symbol)}\n\n{description}"
    return f"Symbol: {symbol}"


def hover(source: str, position: lsp.Position) -> lsp.Hover | None:
    content = hover_markdown(source, position.line, position.character)
    if content is None:
        return None
    return lsp.Hover(
        contents=lsp.MarkupContent(kind=lsp.MarkupKind.Markdown, value=content)
    )


def _call_snippet(name: str, parameters: tuple[str, ...]) -> str:
    placeholders = ", ".join(
        f"${{{index}:{param}}}" for index, param in enumerate(parameters, start=1)
    )
    return f"{name}({placeholders})"


def completion_items(source: str) -> list[lsp.CompletionItem]:
    items: list[lsp.CompletionItem] = [
        lsp.CompletionItem(
            label=keyword,
            kind=lsp.CompletionItemKind.Keyword,
            detail=detail,
        )
        for keyword, detail in KEYWORD_DETAILS.items()
    ]
    for variable in extract_variables(source):
        items.append(
            lsp.CompletionItem(
                label=variable.name,
                kind=lsp.CompletionItemKind.Variable,
                detail=variable.signature,
            )
        )
    functions = extract_functions(source)
    for function in functions:
        items.append(
            lsp.CompletionItem(
                label=function.name,
                kind=lsp.CompletionItemKind.Function,
                detail=function.signature,
                insert_text=_call_snippet(function.name, function.parameters),
                insert_text_format=lsp.InsertTextFormat.Snippet,
            )
        )
    declared = {function.name for function in functions}
    for name in extract_calls(source):
        if name in declared:
            continue
        items.append(
            lsp.CompletionItem(
                label=name,
                kind=lsp.CompletionItemKind.Function,
                detail=f"{name}(...)",
            )
        )
    for snippet in SNIPPETS:
        items.append(
            lsp.CompletionItem(
                label=snippet.label,
                kind=lsp.CompletionItemKind.Snippet,
                detail=snippet.detail,
                documentation=lsp.MarkupContent(
                    kind=lsp.MarkupKind.Markdown, value=snippet.documentation
                ),
                insert_text=snippet.body,
                insert_text_format=lsp.InsertTextFormat.Snippet,
            )
        )
    return items
