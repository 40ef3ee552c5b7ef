"""Bridge between source text and the authoritative Qbit parser.

The bridge is the single entry point for turning source text into an
:data:`~qbit_lsp.analysis.model.Outcome`. When the parser is missing, raises,
returns a payload outside its contract, or misses its deadline, the request
is served by the fallback analyzer and the outcome is tagged
:class:`~qbit_lsp.analysis.model.Heuristic`. The bridge never raises to its
caller.
"""

from __future__ import annotations

import asyncio
import importlib
import logging
import threading
from typing import Callable, Mapping, Protocol, runtime_checkable

from pydantic import ValidationError

from qbit_lsp.analysis.fallback import analyze_source
from qbit_lsp.analysis.model import (
    AnalysisResult,
    Authoritative,
    FallbackReason,
    Heuristic,
    Outcome,
)
from qbit_lsp.exceptions import ParserLoadError
from qbit_lsp.schema import ParserResultDTO

logger = logging.getLogger(__name__)


@runtime_checkable
class AuthoritativeParser(Protocol):
    def init_failure_hook(self) -> None: ...

    def parse(self, source: str) -> Mapping[str, object]: ...


def _resolve_parser(target: str) -> AuthoritativeParser:
    module_name, _, attribute = target.partition(":")
    try:
        resolved: object = importlib.import_module(module_name)
    except Exception as exc:
        # Parser modules may fail at import for reasons other than ImportError.
        raise ParserLoadError(target, f"{type(exc).__name__}: {exc}") from exc
    for part in attribute.split(".") if attribute else ():
        try:
            resolved = getattr(resolved, part)
        except AttributeError as exc:
            raise ParserLoadError(target, f"missing attribute {part!r}") from exc
        except Exception as exc:
            raise ParserLoadError(target, f"{type(exc).__name__}: {exc}") from exc
    if not isinstance(resolved, AuthoritativeParser):
        raise ParserLoadError(target, "object lacks parse() or init_failure_hook()")
    return resolved


def load_parser(target: str | None) -> AuthoritativeParser | None:
    """Resolve a ``module[:attribute]`` target to a parser, or ``None``."""
    if not target:
        return None
    try:
        parser = _resolve_parser(target)
    except ParserLoadError as exc:
        logger.warning("%s; diagnostics will come from the fallback analyzer", exc)
        return None
    logger.info("loaded authoritative parser %s", target)
    return parser


class ParserSession:
    """Owns a parser handle and its one-time failure-hook setup.

    ``ensure_initialized`` is idempotent and safe to call from several worker
    threads at once. A failed setup is not remembered: the next call tries
    again.
    """

    def __init__(self, parser: AuthoritativeParser | None = None) -> None:
        self.parser = parser
        self._lock = threading.Lock()
        self._initialized = False

    @property
    def available(self) -> bool:
        return self.parser is not None

    @property
    def initialized(self) -> bool:
        return self._initialized

    def ensure_initialized(self) -> bool:
        if self._initialized:
            return True
        if self.parser is None:
            return False
        with self._lock:
            if self._initialized:
                return True
            try:
                self.parser.init_failure_hook()
            except Exception:
                logger.warning(
                    "parser failure hook setup failed; retrying on next analysis",
                    exc_info=True,
                )
                return False
            self._initialized = True
        return True


class ParserBridge:
    def __init__(
        self,
        session: ParserSession,
        *,
        fallback: Callable[[str], AnalysisResult] = analyze_source,
    ) -> None:
        self.session = session
        self._fallback_analyzer = fallback

    def _fallback(self, source: str, reason: FallbackReason) -> Heuristic:
        result = self._fallback_analyzer(source)
        return Heuristic(
            result=AnalysisResult.from_diagnostics(list(result.diagnostics)),
            reason=reason,
        )

    def analyze(self, source: str) -> Outcome:
        parser = self.session.parser
        if parser is None:
            return self._fallback(source, FallbackReason.UNAVAILABLE)
        # Setup failures are logged by the session; parsing is still attempted.
        self.session.ensure_initialized()
        try:
            payload = parser.parse(source)
        except Exception:
            logger.warning("authoritative parser raised; using fallback analyzer", exc_info=True)
            return self._fallback(source, FallbackReason.PARSE_ERROR)
        try:
            dto = ParserResultDTO.model_validate(payload, from_attributes=True)
        except ValidationError as exc:
            logger.warning(
                "authoritative parser returned an invalid payload; using fallback analyzer: %s",
                exc,
            )
            return self._fallback(source, FallbackReason.INVALID_PAYLOAD)
        return Authoritative(result=dto.to_result())

    def _analyze_detached(self, source: str) -> asyncio.Future[Outcome]:
        loop = asyncio.get_running_loop()
        future: asyncio.Future[Outcome] = loop.create_future()

        def _settle(outcome: Outcome | None, error: Exception | None) -> None:
            if future.done():
                return
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(outcome)

        def _worker() -> None:
            outcome: Outcome | None = None
            error: Exception | None = None
            try:
                outcome = self.analyze(source)
            except Exception as exc:
                error = exc
            try:
                loop.call_soon_threadsafe(_settle, outcome, error)
            except RuntimeError:
                logger.debug("event loop closed before the parser returned; result dropped")

        threading.Thread(target=_worker, name="qbit-parser", daemon=True).start()
        return future

    async def analyze_with_deadline(
        self, source: str, timeout: float | None = None
    ) -> Outcome:
        """Run :meth:`analyze` on a worker thread, bounded by ``timeout`` seconds.

        A timed-out parser call keeps running on its daemon thread; its result
        is dropped. Neither event loop shutdown nor interpreter exit waits for
        that thread.
        """
        call = self._analyze_detached(source)
        if timeout is None:
            return await call
        try:
            return await asyncio.wait_for(call, timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "authoritative parser exceeded %.3fs deadline; using fallback analyzer",
                timeout,
            )
            return self._fallback(source, FallbackReason.TIMEOUT)
