from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple, Union


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class DeclarationKind(str, Enum):
    VARIABLE = "variable"
    CONSTANT = "constant"
    FUNCTION = "function"


class Tier(str, Enum):
    AUTHORITATIVE = "authoritative"
    HEURISTIC = "heuristic"


class FallbackReason(str, Enum):
    UNAVAILABLE = "unavailable"
    PARSE_ERROR = "parse_error"
    INVALID_PAYLOAD = "invalid_payload"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class Diagnostic:
    """A positioned problem report.

    ``line`` and ``column`` are 1-based as produced by analysis; conversion
    to 0-based editor ranges happens in the diagnostics aggregator.
    """

    severity: Severity
    message: str
    line: int
    column: int
    length: int = 0


@dataclass(frozen=True)
class AnalysisResult:
    success: bool
    diagnostics: Tuple[Diagnostic, ...] = ()

    @classmethod
    def from_diagnostics(cls, diagnostics: list[Diagnostic]) -> AnalysisResult:
        return cls(success=not diagnostics, diagnostics=tuple(diagnostics))


@dataclass(frozen=True)
class Declaration:
    name: str
    kind: DeclarationKind
    line: int
    parameters: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def keyword(self) -> str:
        if self.kind is DeclarationKind.FUNCTION:
            return "fn"
        if self.kind is DeclarationKind.CONSTANT:
            return "const"
        return "let"

    @property
    def signature(self) -> str:
        if self.kind is DeclarationKind.FUNCTION:
            return f"fn {self.name}({', '.join(self.parameters)})"
        return f"{self.keyword} {self.name}"


@dataclass(frozen=True)
class Authoritative:
    """Outcome served by the authoritative parser."""

    result: AnalysisResult
    tier: Tier = Tier.AUTHORITATIVE

    @property
    def degraded(self) -> bool:
        return False


@dataclass(frozen=True)
class Heuristic:
    """Outcome served by the fallback analyzer, tagged with why."""

    result: AnalysisResult
    reason: FallbackReason
    tier: Tier = Tier.HEURISTIC

    @property
    def degraded(self) -> bool:
        return True


Outcome = Union[Authoritative, Heuristic]
