"""Static keyword and snippet data for Qbit editor features."""

from __future__ import annotations

from dataclasses import dataclass

KEYWORD_DESCRIPTIONS = {
    "let": "Declares a mutable variable",
    "const": "Declares an immutable constant",
    "fn": "Declares a function",
    "if": "Conditional statement",
    "else": "Alternative branch for if statement",
    "while": "Loop that continues while condition is true",
    "for": "C-style for loop",
    "return": "Returns a value from a function",
    "break": "Exits the current loop",
    "continue": "Skips to the next iteration of a loop",
    "import": "Imports a module",
    "export": "Exports a declaration",
    "true": "Boolean true value",
    "false": "Boolean false value",
    "null": "Null value",
}

KEYWORD_DETAILS = {
    "let": "Variable declaration",
    "const": "Constant declaration",
    "fn": "Function declaration",
    "if": "Conditional statement",
    "else": "Alternative branch",
    "while": "While loop",
    "for": "For loop",
    "return": "Return statement",
    "break": "Break statement",
    "continue": "Continue statement",
    "import": "Import statement",
    "export": "Export statement",
    "true": "Boolean true",
    "false": "Boolean false",
    "null": "Null value",
}


@dataclass(frozen=True)
class Snippet:
    label: str
    body: str
    detail: str
    documentation: str


SNIPPETS = (
    Snippet(
        "fn",
        "fn ${1:name}(${2:params}) {\n\t${3:// body}\n}",
        "Function declaration",
        "Create a new function",
    ),
    Snippet(
        "if",
        "if ${1:condition} {\n\t${2:// body}\n}",
        "If statement",
        "Create an if statement",
    ),
    Snippet(
        "ifelse",
        "if ${1:condition} {\n\t${2:// if body}\n} else {\n\t${3:// else body}\n}",
        "If-else statement",
        "Create an if-else statement",
    ),
    Snippet(
        "while",
        "while ${1:condition} {\n\t${2:// body}\n}",
        "While loop",
        "Create a while loop",
    ),
    Snippet(
        "for",
        "for (${1:let i = 0}; ${2:i < 10}; ${3:i++}) {\n\t${4:// body}\n}",
        "For loop",
        "Create a for loop",
    ),
)
