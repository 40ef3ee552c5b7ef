"""Per-document diagnostics store.

Every ``update`` call is numbered. A completed analysis is stored only if no
newer analysis for the same document has already been stored, so a slow
early edit cannot overwrite the result of a fast later one. Closing a
document (``clear``) drops its entry entirely; analyses still in flight for
it are discarded when they complete.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from lsprotocol import types as lsp

from qbit_lsp.analysis.bridge import ParserBridge
from qbit_lsp.analysis.model import Diagnostic, Outcome, Severity
from qbit_lsp.invariants import never

logger = logging.getLogger(__name__)

SOURCE_TAG = "qbit"

Publisher = Callable[[str, list[lsp.Diagnostic]], None]

_LSP_SEVERITIES = {
    Severity.ERROR: lsp.DiagnosticSeverity.Error,
    Severity.WARNING: lsp.DiagnosticSeverity.Warning,
    Severity.INFO: lsp.DiagnosticSeverity.Information,
}


class FailurePolicy(str, Enum):
    # Degraded outcomes publish the heuristic diagnostics.
    FALLBACK = "fallback"
    # Degraded outcomes publish an empty set.
    CLEAR = "clear"


def to_range(diagnostic: Diagnostic) -> lsp.Range:
    line = max(0, diagnostic.line - 1)
    start = max(0, diagnostic.column - 1)
    end = max(0, diagnostic.column - 1 + diagnostic.length)
    if end < start:
        never(
            "malformed diagnostic range",
            line=diagnostic.line,
            column=diagnostic.column,
            length=diagnostic.length,
        )
    return lsp.Range(
        start=lsp.Position(line=line, character=start),
        end=lsp.Position(line=line, character=end),
    )


def to_lsp_diagnostic(diagnostic: Diagnostic) -> lsp.Diagnostic:
    severity = _LSP_SEVERITIES.get(diagnostic.severity)
    if severity is None:
        never("unknown diagnostic severity", severity=diagnostic.severity)
    return lsp.Diagnostic(
        range=to_range(diagnostic),
        message=diagnostic.message,
        severity=severity,
        source=SOURCE_TAG,
    )


@dataclass
class _DocumentState:
    diagnostics: Optional[list[lsp.Diagnostic]] = None
    outcome: Optional[Outcome] = None
    stored_sequence: int = 0
    pending: set[int] = field(default_factory=set)


class DiagnosticsAggregator:
    def __init__(
        self,
        bridge: ParserBridge,
        publish: Publisher | None = None,
        *,
        timeout: float | None = None,
        failure_policy: FailurePolicy = FailurePolicy.FALLBACK,
    ) -> None:
        self._bridge = bridge
        self._publish = publish
        self.timeout = timeout
        self.failure_policy = failure_policy
        self._documents: dict[str, _DocumentState] = {}
        self._sequence = itertools.count(1)

    def _diagnostics_for(self, outcome: Outcome) -> list[lsp.Diagnostic]:
        if outcome.degraded and self.failure_policy is FailurePolicy.CLEAR:
            return []
        return [to_lsp_diagnostic(item) for item in outcome.result.diagnostics]

    def _emit(self, key: str, diagnostics: list[lsp.Diagnostic]) -> None:
        if self._publish is None:
            return
        try:
            self._publish(key, list(diagnostics))
        except Exception:
            logger.exception("publishing diagnostics failed for %s", key)

    async def update(self, key: str, source: str) -> None:
        state = self._documents.setdefault(key, _DocumentState())
        sequence = next(self._sequence)
        state.pending.add(sequence)
        outcome: Outcome | None = None
        try:
            outcome = await self._bridge.analyze_with_deadline(source, self.timeout)
            diagnostics = self._diagnostics_for(outcome)
        except Exception:
            logger.exception("diagnostics update #%d failed for %s; clearing", sequence, key)
            outcome = None
            diagnostics = []
        finally:
            state.pending.discard(sequence)
        if self._documents.get(key) is not state:
            logger.debug("dropping analysis #%d for closed document %s", sequence, key)
            return
        if sequence < state.stored_sequence:
            logger.debug(
                "dropping stale analysis #%d for %s (already stored #%d)",
                sequence,
                key,
                state.stored_sequence,
            )
            return
        state.stored_sequence = sequence
        state.diagnostics = diagnostics
        state.outcome = outcome
        if outcome is not None and outcome.degraded:
            logger.info(
                "%s analyzed by fallback analyzer (%s): %d diagnostics",
                key,
                outcome.reason.value,
                len(diagnostics),
            )
        self._emit(key, diagnostics)

    def clear(self, key: str) -> None:
        state = self._documents.pop(key, None)
        if state is None:
            return
        if state.pending:
            logger.debug("closing %s with %d analyses in flight", key, len(state.pending))
        self._emit(key, [])

    def dispose(self) -> None:
        for key in list(self._documents):
            self.clear(key)

    def get(self, key: str) -> list[lsp.Diagnostic] | None:
        """Stored diagnostics for ``key``.

        ``None`` means no diagnostics are stored yet. That covers both an
        untracked document and a tracked one whose first analysis is still
        running; ``key in keys()`` tells the two apart. An empty list means the
        document was analyzed and is clean, or was cleared by policy.
        """
        state = self._documents.get(key)
        if state is None or state.diagnostics is None:
            return None
        return list(state.diagnostics)

    def outcome(self, key: str) -> Outcome | None:
        state = self._documents.get(key)
        return None if state is None else state.outcome

    def keys(self) -> list[str]:
        return list(self._documents)

    analyze_document = update
    clear_document = clear
