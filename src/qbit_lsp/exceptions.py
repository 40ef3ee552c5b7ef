"""Exception types raised by qbit-lsp."""

from __future__ import annotations


class NeverRaise(RuntimeError):
    """Sentinel exception for code paths that should be unreachable.

    Raising this signals a broken internal invariant (a malformed range, an
    unknown enum value slipping past normalization). It is never used for
    recoverable failures such as a misbehaving parser.
    """

    def __init__(self, message: str, *, env: dict[str, object] | None = None):
        super().__init__(message)
        self.reason = message
        self.env = dict(env or {})


class NeverThrown(NeverRaise):
    """Alias for NeverRaise used by the explicit never() marker."""


class ParserLoadError(RuntimeError):
    """The configured authoritative parser could not be imported or resolved."""

    def __init__(self, target: str, reason: str):
        super().__init__(f"cannot load parser {target!r}: {reason}")
        self.target = target
        self.reason = reason