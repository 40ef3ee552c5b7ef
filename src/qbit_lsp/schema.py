from __future__ import annotations

from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from qbit_lsp.analysis.model import (
    AnalysisResult,
    Declaration,
    Diagnostic,
    Severity,
)

# Numeric levels emitted by the parser: error, warn, info, hint.
_LEVEL_SEVERITIES = (Severity.ERROR, Severity.WARNING, Severity.INFO, Severity.INFO)
_NAMED_SEVERITIES = {
    "error": Severity.ERROR,
    "err": Severity.ERROR,
    "warn": Severity.WARNING,
    "warning": Severity.WARNING,
    "info": Severity.INFO,
    "information": Severity.INFO,
    "hint": Severity.INFO,
}


def normalize_severity(value: object) -> Severity:
    if isinstance(value, Severity):
        return value
    if isinstance(value, bool):
        raise ValueError(f"invalid severity: {value!r}")
    if isinstance(value, int):
        if 0 <= value < len(_LEVEL_SEVERITIES):
            return _LEVEL_SEVERITIES[value]
        raise ValueError(f"invalid severity level: {value}")
    if isinstance(value, str):
        severity = _NAMED_SEVERITIES.get(value.strip().lower())
        if severity is not None:
            return severity
    raise ValueError(f"invalid severity: {value!r}")


class ParserDiagnosticDTO(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    severity: Severity = Field(
        default=Severity.ERROR,
        validation_alias=AliasChoices("severity", "level"),
    )
    message: str
    line: int
    column: int
    length: int = Field(default=0, ge=0)

    @field_validator("severity", mode="before")
    @classmethod
    def _coerce_severity(cls, value: object) -> Severity:
        return normalize_severity(value)

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic(
            severity=self.severity,
            message=self.message,
            line=self.line,
            column=self.column,
            length=self.length,
        )


class ParserResultDTO(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    success: bool
    diagnostics: List[ParserDiagnosticDTO] = Field(
        default_factory=list,
        validation_alias=AliasChoices("diagnostics", "errors"),
    )

    def to_result(self) -> AnalysisResult:
        return AnalysisResult(
            success=self.success,
            diagnostics=tuple(item.to_diagnostic() for item in self.diagnostics),
        )


class DiagnosticDTO(BaseModel):
    path: str
    severity: Severity
    message: str
    line: int
    column: int
    length: int


class CheckFileDTO(BaseModel):
    path: str
    tier: str
    fallback_reason: Optional[str] = None
    success: bool
    diagnostics: List[DiagnosticDTO] = []


class CheckResponseDTO(BaseModel):
    exit_code: int
    files: List[CheckFileDTO]


class DeclarationDTO(BaseModel):
    name: str
    kind: str
    line: int
    parameters: List[str] = []

    @classmethod
    def from_declaration(cls, declaration: Declaration) -> DeclarationDTO:
        return cls(
            name=declaration.name,
            kind=declaration.kind.value,
            line=declaration.line,
            parameters=list(declaration.parameters),
        )


class SymbolsResponseDTO(BaseModel):
    path: str
    functions: List[DeclarationDTO]
    variables: List[DeclarationDTO]
