"""
Relevance Evaluator - Decide whether a checklist node applies to an encounter

Responsibilities:
- Interpret the closed predicate model: Always | Equals | Computed
- Resolve Equals variables root -> assessment -> treatment
- Contain predicate failures: a broken node becomes "not relevant"
  and a diagnostic is recorded; the scoring pass carries on

Design principles:
- Single interpreter function for every predicate kind
- Never mutates answers, never raises for bad predicates
- Unanswered known variables evaluate to False silently; variables
  unknown to the checklist evaluate to False with a diagnostic

Provenance hooks:
- evaluate() returns a plain bool; skipped nodes are tracked on the
  DiagnosticLog
"""

import logging
from typing import FrozenSet, Optional

from mentorship.contracts import (
    DIAG_MALFORMED_PREDICATE,
    DIAG_PREDICATE_ERROR,
    DIAG_UNRESOLVED_VARIABLE,
    Always,
    Computed,
    Equals,
)
from mentorship.core.answer_store import AnswerStore
from mentorship.core.classification import ClassificationResolver
from mentorship.core.diagnostics import DiagnosticLog

logger = logging.getLogger(__name__)


class RelevanceEvaluator:
    """
    Per-pass relevance evaluator.

    Args:
        answers: Answer store for the encounter
        classifications: The pass's ClassificationResolver (shared with
            the KPI extractor)
        diagnostics: The pass's DiagnosticLog
        known_variables: Answer keys the checklist knows about. A missing
            known variable is simply unanswered. If None, every missing
            variable is reported as unresolved.
    """

    def __init__(
        self,
        answers: AnswerStore,
        classifications: Optional[ClassificationResolver] = None,
        diagnostics: Optional[DiagnosticLog] = None,
        known_variables: Optional[FrozenSet[str]] = None,
    ):
        self.answers = answers
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticLog()
        self.classifications = (
            classifications if classifications is not None
            else ClassificationResolver(answers, self.diagnostics)
        )
        self.known_variables = known_variables

    def is_relevant(self, node) -> bool:
        """
        Evaluate a node's relevance.

        Args:
            node: Any schema node with a 'relevance' attribute (None or
                missing attribute means always relevant)

        Returns:
            bool
        """
        relevance = getattr(node, "relevance", None)
        node_id = _node_id(node)
        return self.evaluate(relevance, node_id)

    def evaluate(self, relevance, node_id: str = "<predicate>") -> bool:
        if relevance is None or isinstance(relevance, Always):
            return True

        if isinstance(relevance, Equals):
            return self._evaluate_equals(relevance, node_id)

        if isinstance(relevance, Computed):
            return self._evaluate_computed(relevance, node_id)

        self.diagnostics.report(
            DIAG_MALFORMED_PREDICATE, node_id,
            f"Unsupported relevance type {type(relevance).__name__}",
            skipped=True,
        )
        return False

    # =========================================================================
    # Predicate kinds
    # =========================================================================

    def _evaluate_equals(self, relevance: Equals, node_id: str) -> bool:
        variable, expected = relevance.variable, relevance.value

        if not isinstance(variable, str) or not variable or not isinstance(expected, str):
            self.diagnostics.report(
                DIAG_MALFORMED_PREDICATE, node_id,
                f"Malformed equals predicate: {relevance!r}",
                skipped=True,
            )
            return False

        resolved = self.answers.resolve(variable)
        if resolved is None:
            if self.known_variables is None or variable not in self.known_variables:
                self.diagnostics.report(
                    DIAG_UNRESOLVED_VARIABLE, node_id,
                    f"Variable '{variable}' not found in any answer namespace",
                    skipped=True,
                )
            return False

        _, actual = resolved
        return actual == expected

    def _evaluate_computed(self, relevance: Computed, node_id: str) -> bool:
        try:
            result = relevance.fn(self.answers, self.classifications)
        except Exception as e:
            self.diagnostics.report(
                DIAG_PREDICATE_ERROR, node_id,
                f"Computed predicate '{relevance.name}' failed: {e}",
                skipped=True,
            )
            return False
        return bool(result)


def _node_id(node) -> str:
    for attr in ("score_key", "key"):
        value = getattr(node, attr, None)
        if value:
            return value
    return getattr(node, "title", repr(node))


def is_relevant(node, answers: AnswerStore, classifications: Optional[ClassificationResolver] = None) -> bool:
    """One-shot relevance check outside a scoring pass."""
    return RelevanceEvaluator(answers, classifications).is_relevant(node)
