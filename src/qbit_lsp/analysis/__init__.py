"""Source-analysis engine for Qbit.

The parser bridge lives in :mod:`qbit_lsp.analysis.bridge` and is imported
from there directly.
"""

from .declarations import extract_calls, extract_functions, extract_variables, list_functions, list_variables
from .fallback import analyze_source
from .model import (
    AnalysisResult,
    Authoritative,
    Declaration,
    DeclarationKind,
    Diagnostic,
    FallbackReason,
    Heuristic,
    Outcome,
    Severity,
    Tier,
)
from .symbols import resolve_symbol_at

__all__ = [
    "AnalysisResult",
    "Authoritative",
    "Declaration",
    "DeclarationKind",
    "Diagnostic",
    "FallbackReason",
    "Heuristic",
    "Outcome",
    "Severity",
    "Tier",
    "analyze_source",
    "extract_calls",
    "extract_functions",
    "extract_variables",
    "list_functions",
    "list_variables",
    "resolve_symbol_at",
]
