from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

import typer

from qbit_lsp.analysis.bridge import ParserBridge, ParserSession, load_parser
from qbit_lsp.analysis.declarations import extract_functions, extract_variables
from qbit_lsp.analysis.model import Heuristic, Severity
from qbit_lsp.config import AnalysisSettings, resolve_settings
from qbit_lsp.schema import (
    CheckFileDTO,
    CheckResponseDTO,
    DeclarationDTO,
    DiagnosticDTO,
    SymbolsResponseDTO,
)

app = typer.Typer(add_completion=False, help="Qbit source analysis and language server.")

_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def _configure_logging(level: str | None, settings: AnalysisSettings) -> None:
    # stdout belongs to the LSP stream and to command output.
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format=_LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )


def _read_source(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise typer.BadParameter(f"cannot read {path}: {exc}") from exc


def check_file(bridge: ParserBridge, path: Path, *, timeout: float | None) -> CheckFileDTO:
    outcome = asyncio.run(bridge.analyze_with_deadline(_read_source(path), timeout))
    return CheckFileDTO(
        path=str(path),
        tier=outcome.tier.value,
        fallback_reason=outcome.reason.value if isinstance(outcome, Heuristic) else None,
        success=outcome.result.success,
        diagnostics=[
            DiagnosticDTO(
                path=str(path),
                severity=item.severity,
                message=item.message,
                line=item.line,
                column=item.column,
                length=item.length,
            )
            for item in outcome.result.diagnostics
        ],
    )


@app.command()
def serve(
    root: Path = typer.Option(Path("."), "--root"),
    log_level: Optional[str] = typer.Option(None, "--log-level"),
) -> None:
    """Run the language server over stdio."""
    from qbit_lsp import server

    _configure_logging(log_level, resolve_settings(root))
    server.start()


@app.command()
def check(
    paths: List[Path] = typer.Argument(..., exists=True, dir_okay=False),
    root: Path = typer.Option(Path("."), "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
    json_output: bool = typer.Option(False, "--json", help="Emit a JSON report."),
    log_level: Optional[str] = typer.Option(None, "--log-level"),
) -> None:
    """Report diagnostics for Qbit source files."""
    settings = resolve_settings(root, config)
    _configure_logging(log_level, settings)
    bridge = ParserBridge(ParserSession(load_parser(settings.parser)))
    files = [check_file(bridge, path, timeout=settings.timeout_seconds) for path in paths]
    has_errors = any(
        item.severity is Severity.ERROR for entry in files for item in entry.diagnostics
    )
    response = CheckResponseDTO(exit_code=1 if has_errors else 0, files=files)
    if json_output:
        typer.echo(response.model_dump_json(indent=2))
    else:
        for entry in files:
            if entry.fallback_reason is not None:
                typer.echo(
                    f"{entry.path}: analyzed by fallback analyzer ({entry.fallback_reason})",
                    err=True,
                )
            for item in entry.diagnostics:
                typer.echo(
                    f"{item.path}:{item.line}:{item.column}: "
                    f"{item.severity.value}: {item.message}"
                )
    raise typer.Exit(code=response.exit_code)


@app.command()
def symbols(
    path: Path = typer.Argument(..., exists=True, dir_okay=False),
    json_output: bool = typer.Option(False, "--json", help="Emit a JSON report."),
) -> None:
    """List function and variable declarations in a Qbit source file."""
    source = _read_source(path)
    response = SymbolsResponseDTO(
        path=str(path),
        functions=[DeclarationDTO.from_declaration(d) for d in extract_functions(source)],
        variables=[DeclarationDTO.from_declaration(d) for d in extract_variables(source)],
    )
    if json_output:
        typer.echo(response.model_dump_json(indent=2))
        return
    for entry in response.functions + response.variables:
        params = f"({', '.join(entry.parameters)})" if entry.kind == "function" else ""
        typer.echo(f"{entry.line + 1}: {entry.kind} {entry.name}{params}")


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    main()  # pragma: no cover
