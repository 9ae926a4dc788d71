"""
Classification Resolver - Effective classification per disease domain

Responsibilities:
- Decide, per domain, whether the worker's classification or the
  supervisor's correction is authoritative
- Standardize labels against the closed domain enumerations
- Cache each domain's result for the duration of one scoring pass

Rule:
    effective = worker_<domain>_classification
                if <correctness flag> == 'yes'
                else supervisor_correct_<domain>_classification

Design principles:
- One resolver per scoring pass, never shared across encounters
- Treatment relevance predicates and KPI extraction read the SAME
  cached value, so they can never disagree
- Unknown labels are dropped with a diagnostic, never scored as a
  new category
"""

import logging
from typing import Dict, FrozenSet, Optional, Union

from mentorship.contracts import DIAG_INVALID_ANSWER, DIAG_UNKNOWN_LABEL
from mentorship.core.answer_store import ASSESSMENT, AnswerStore
from mentorship.core.diagnostics import DiagnosticLog
from mentorship.utils.classifications import ClassificationDomain, get_domain
from mentorship.utils.field_mappings import YES, standardize_label, standardize_labels

logger = logging.getLogger(__name__)

EffectiveClassification = Union[str, FrozenSet[str], None]

# Marker the form stores when the worker did not classify at all
DID_NOT_CLASSIFY = "did_not_classify"


class ClassificationResolver:
    """
    Per-pass resolver for effective classifications.

    Args:
        answers: Answer store for the encounter being scored
        diagnostics: Pass-level diagnostic log (a private one is created
            if omitted)
    """

    def __init__(self, answers: AnswerStore, diagnostics: Optional[DiagnosticLog] = None):
        self.answers = answers
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticLog()
        self._cache: Dict[str, EffectiveClassification] = {}

    # =========================================================================
    # Public API
    # =========================================================================

    def worker_classified_correctly(self, domain_name: str) -> bool:
        """True if the worker's own classification was marked correct."""
        domain = get_domain(domain_name)
        return self.answers.lookup(ASSESSMENT, domain.correctness_key) == YES

    def resolve_effective(self, domain_name: str) -> EffectiveClassification:
        """
        Effective classification for a domain.

        Returns:
            frozenset of labels for multi-select domains (possibly empty),
            a single label or None for single-select domains

        Raises:
            KeyError: If domain_name is not a known domain
        """
        if domain_name not in self._cache:
            self._cache[domain_name] = self._compute(get_domain(domain_name))
        return self._cache[domain_name]

    def has_label(self, domain_name: str, label: str) -> bool:
        """True if label is (one of) the domain's effective classification."""
        effective = self.resolve_effective(domain_name)
        if isinstance(effective, frozenset):
            return label in effective
        return effective == label

    def has_any_label(self, domain_name: str, labels) -> bool:
        return any(self.has_label(domain_name, label) for label in labels)

    @property
    def resolved_domains(self):
        """Domains resolved so far in this pass, in resolution order."""
        return tuple(self._cache)

    # =========================================================================
    # Resolution
    # =========================================================================

    def _compute(self, domain: ClassificationDomain) -> EffectiveClassification:
        source_key = domain.worker_key if self.worker_classified_correctly(domain.name) else domain.supervisor_key
        raw = self.answers.lookup(ASSESSMENT, source_key)

        if domain.multi_select:
            effective = self._resolve_multi(domain, source_key, raw)
        else:
            effective = self._resolve_single(domain, source_key, raw)

        logger.debug(f"Effective {domain.name} classification from {source_key}: {effective!r}")
        return effective

    def _resolve_multi(self, domain: ClassificationDomain, source_key: str, raw) -> FrozenSet[str]:
        if raw is None:
            return frozenset()
        if isinstance(raw, frozenset):
            raw = [label for label in sorted(raw) if label != DID_NOT_CLASSIFY]
        elif not isinstance(raw, str):
            self.diagnostics.report(
                DIAG_INVALID_ANSWER, source_key,
                f"Expected classification labels, got {type(raw).__name__}"
            )
            return frozenset()

        accepted, rejected = standardize_labels(domain.name, raw)
        for value in rejected:
            self.diagnostics.report(
                DIAG_UNKNOWN_LABEL, source_key,
                f"'{value}' is not a {domain.name} classification"
            )
        return frozenset(accepted)

    def _resolve_single(self, domain: ClassificationDomain, source_key: str, raw) -> Optional[str]:
        if raw is None:
            return None
        if isinstance(raw, frozenset):
            if len(raw) != 1:
                self.diagnostics.report(
                    DIAG_INVALID_ANSWER, source_key,
                    f"{domain.name} is single-select, got {len(raw)} labels"
                )
                return None
            raw = next(iter(raw))
        if not isinstance(raw, str):
            self.diagnostics.report(
                DIAG_INVALID_ANSWER, source_key,
                f"Expected a classification label, got {type(raw).__name__}"
            )
            return None

        label = standardize_label(domain.name, raw)
        if label is None:
            self.diagnostics.report(
                DIAG_UNKNOWN_LABEL, source_key,
                f"'{raw}' is not a {domain.name} classification"
            )
        return label


def resolve_effective(domain_name: str, answers: AnswerStore) -> EffectiveClassification:
    """One-shot resolution outside a scoring pass (fresh cache)."""
    return ClassificationResolver(answers).resolve_effective(domain_name)
