from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable
from urllib.parse import unquote, urlparse

from lsprotocol import types as lsp
from pygls.lsp.server import LanguageServer

from qbit_lsp import __version__, features
from qbit_lsp.analysis.bridge import ParserBridge, ParserSession, load_parser
from qbit_lsp.config import AnalysisSettings, resolve_settings
from qbit_lsp.diagnostics import DiagnosticsAggregator, Publisher

logger = logging.getLogger(__name__)

server = LanguageServer(
    "qbit-lsp",
    __version__,
    text_document_sync_kind=lsp.TextDocumentSyncKind.Full,
)

# Latest full text per open document, for hover and completion.
_sources: dict[str, str] = {}
_aggregator: DiagnosticsAggregator | None = None


def _uri_to_path(uri: str) -> Path:
    parsed = urlparse(uri)
    if parsed.scheme == "file":
        return Path(unquote(parsed.path))
    return Path(uri)


def _workspace_root(params: lsp.InitializeParams) -> Path | None:
    if params.workspace_folders:
        return _uri_to_path(params.workspace_folders[0].uri)
    if params.root_uri:
        return _uri_to_path(params.root_uri)
    if params.root_path:
        return Path(params.root_path)
    return None


def _publish(uri: str, diagnostics: list[lsp.Diagnostic]) -> None:
    logger.debug("publishing %d diagnostics for %s", len(diagnostics), uri)
    server.text_document_publish_diagnostics(
        lsp.PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
    )


def build_aggregator(
    settings: AnalysisSettings, publish: Publisher | None = None
) -> DiagnosticsAggregator:
    session = ParserSession(load_parser(settings.parser))
    return DiagnosticsAggregator(
        ParserBridge(session),
        publish,
        timeout=settings.timeout_seconds,
        failure_policy=settings.failure_policy,
    )


def configure(
    settings: AnalysisSettings, publish: Publisher | None = _publish
) -> DiagnosticsAggregator:
    """Install a fresh aggregator; documents tracked by the old one are dropped."""
    global _aggregator
    if _aggregator is not None:
        _aggregator.dispose()
    _sources.clear()
    _aggregator = build_aggregator(settings, publish)
    return _aggregator


def _current_aggregator() -> DiagnosticsAggregator:
    if _aggregator is None:
        return configure(resolve_settings())
    return _aggregator


@server.feature(lsp.INITIALIZE)
def initialize(params: lsp.InitializeParams) -> None:
    root = _workspace_root(params)
    settings = resolve_settings(root)
    logger.info(
        "qbit-lsp %s: root=%s parser=%s timeout_ms=%d policy=%s",
        __version__,
        root,
        settings.parser or "<none>",
        settings.timeout_ms,
        settings.failure_policy.value,
    )
    configure(settings)


@server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
async def did_open(params: lsp.DidOpenTextDocumentParams) -> None:
    uri = params.text_document.uri
    _sources[uri] = params.text_document.text
    await _current_aggregator().update(uri, params.text_document.text)


@server.feature(lsp.TEXT_DOCUMENT_DID_CHANGE)
async def did_change(params: lsp.DidChangeTextDocumentParams) -> None:
    if not params.content_changes:
        return
    uri = params.text_document.uri
    # Full sync: the last change carries the whole document.
    source = params.content_changes[-1].text
    _sources[uri] = source
    await _current_aggregator().update(uri, source)


@server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
def did_close(params: lsp.DidCloseTextDocumentParams) -> None:
    uri = params.text_document.uri
    _sources.pop(uri, None)
    _current_aggregator().clear(uri)


@server.feature(lsp.TEXT_DOCUMENT_HOVER)
def hover(params: lsp.HoverParams) -> lsp.Hover | None:
    source = _sources.get(params.text_document.uri)
    if source is None:
        return None
    return features.hover(source, params.position)


@server.feature(
    lsp.TEXT_DOCUMENT_COMPLETION,
    lsp.CompletionOptions(trigger_characters=[".", "("]),
)
def completion(params: lsp.CompletionParams) -> lsp.CompletionList | None:
    source = _sources.get(params.text_document.uri)
    if source is None:
        return None
    return lsp.CompletionList(is_incomplete=False, items=features.completion_items(source))


def start(start_fn: Callable[[], None] | None = None) -> None:
    """Start the language server over stdio."""
    (start_fn or server.start_io)()


if __name__ == "__main__":  # pragma: no cover
    start()  # pragma: no cover
