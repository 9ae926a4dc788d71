"""
Diagnostic Log - per-pass collector for non-fatal scoring problems

Responsibilities:
- Record diagnostics in emission order
- Mirror every diagnostic to the module logger at WARNING
- Track nodes that were degraded to not-relevant because of an error

A DiagnosticLog belongs to exactly one scoring pass. Never share one
between encounters.
"""

import logging
from typing import List, Tuple

from mentorship.contracts import Diagnostic

logger = logging.getLogger(__name__)


class DiagnosticLog:
    """Append-only diagnostic list for one scoring pass."""

    def __init__(self):
        self._diagnostics: List[Diagnostic] = []
        self._skipped: List[str] = []

    def report(self, code: str, node: str, message: str, skipped: bool = False) -> Diagnostic:
        """
        Record a diagnostic.

        Args:
            code: DIAG_* code from mentorship.contracts
            node: Node or answer key the problem was found on
            message: Human-readable explanation
            skipped: True if the node was degraded to not-relevant

        Returns:
            Diagnostic: The recorded entry
        """
        diagnostic = Diagnostic(code=code, node=node, message=message)
        self._diagnostics.append(diagnostic)
        if skipped and node not in self._skipped:
            self._skipped.append(node)
        logger.warning(f"[{code}] {node}: {message}")
        return diagnostic

    @property
    def diagnostics(self) -> Tuple[Diagnostic, ...]:
        return tuple(self._diagnostics)

    @property
    def skipped_nodes(self) -> Tuple[str, ...]:
        return tuple(self._skipped)

    def __len__(self) -> int:
        return len(self._diagnostics)
