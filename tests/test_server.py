from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from lsprotocol import types as lsp

from qbit_lsp import server
from qbit_lsp.analysis.model import Heuristic
from qbit_lsp.config import AnalysisSettings
from qbit_lsp.diagnostics import FailurePolicy

URI = "file:///work/main.qb"


@pytest.fixture
def aggregator(publisher):
    aggregator = server.configure(AnalysisSettings(timeout_ms=0), publish=publisher)
    yield aggregator
    server.configure(AnalysisSettings(), publish=None)


def _open(text: str) -> None:
    params = lsp.DidOpenTextDocumentParams(
        text_document=lsp.TextDocumentItem(uri=URI, language_id="qbit", version=1, text=text)
    )
    asyncio.run(server.did_open(params))


def _change(text: str, version: int = 2) -> None:
    params = lsp.DidChangeTextDocumentParams(
        text_document=lsp.VersionedTextDocumentIdentifier(uri=URI, version=version),
        content_changes=[lsp.TextDocumentContentChangeWholeDocument(text=text)],
    )
    asyncio.run(server.did_change(params))


def _close() -> None:
    server.did_close(
        lsp.DidCloseTextDocumentParams(text_document=lsp.TextDocumentIdentifier(uri=URI))
    )


def test_uri_to_path() -> None:
    path = Path("/tmp/demo.qb")
    assert server._uri_to_path(path.as_uri()) == path
    assert server._uri_to_path("relative/main.qb") == Path("relative/main.qb")


def test_open_change_close_lifecycle(aggregator, publisher) -> None:
    _open('let s = "open\n')
    assert len(aggregator.get(URI) or []) == 1
    assert isinstance(aggregator.outcome(URI), Heuristic)

    _change("let s = 1\n")
    assert aggregator.get(URI) == []

    _close()
    assert aggregator.get(URI) is None
    assert [len(d) for d in publisher.for_uri(URI)] == [1, 0, 0]


def test_hover_and_completion_use_latest_text(aggregator) -> None:
    position = lsp.Position(line=0, character=4)
    hover_params = lsp.HoverParams(
        text_document=lsp.TextDocumentIdentifier(uri=URI), position=position
    )
    completion_params = lsp.CompletionParams(
        text_document=lsp.TextDocumentIdentifier(uri=URI), position=position
    )
    assert server.hover(hover_params) is None
    assert server.completion(completion_params) is None

    _open("fn greet(name) {}\n")
    result = server.hover(hover_params)
    assert result is not None
    assert "fn greet(name)" in result.contents.value

    _change("const greeting = 1\n")
    completions = server.completion(completion_params)
    assert completions is not None
    assert completions.is_incomplete is False
    assert "greeting" in {item.label for item in completions.items}

    _close()
    assert server.hover(hover_params) is None


def test_initialize_reads_workspace_config(tmp_path: Path, publisher) -> None:
    (tmp_path / "qbit.toml").write_text(
        '[analysis]\ntimeout_ms = 0\nfailure_policy = "clear"\n', encoding="utf-8"
    )
    server.configure(AnalysisSettings(), publish=publisher)
    server.initialize(
        lsp.InitializeParams(process_id=None, capabilities=lsp.ClientCapabilities(), root_uri=tmp_path.as_uri())
    )
    current = server._current_aggregator()
    assert current.failure_policy is FailurePolicy.CLEAR
    assert current.timeout is None
    server.configure(AnalysisSettings(), publish=None)


def test_workspace_root_prefers_folders(tmp_path: Path) -> None:
    folder = tmp_path / "folder"
    params = lsp.InitializeParams(
        process_id=None,
        capabilities=lsp.ClientCapabilities(),
        root_uri=tmp_path.as_uri(),
        workspace_folders=[lsp.WorkspaceFolder(uri=folder.as_uri(), name="folder")],
    )
    assert server._workspace_root(params) == folder
    bare = lsp.InitializeParams(process_id=None, capabilities=lsp.ClientCapabilities())
    assert server._workspace_root(bare) is None


def test_reconfigure_drops_tracked_documents(aggregator, publisher) -> None:
    _open("let a = 1\n")
    fresh = server.configure(AnalysisSettings(), publish=publisher)
    assert fresh is not aggregator
    assert aggregator.keys() == []
    assert fresh.get(URI) is None


def test_start_uses_injected_callable() -> None:
    called = {"value": False}

    def _start() -> None:
        called["value"] = True

    server.start(_start)
    assert called["value"] is True
