"""qbit-lsp package root."""

from qbit_lsp.exceptions import NeverRaise, NeverThrown
from qbit_lsp.invariants import never

__all__ = ["__version__", "NeverRaise", "NeverThrown", "never"]

__version__ = "0.2.0"
