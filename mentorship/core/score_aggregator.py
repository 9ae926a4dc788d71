"""
Score Aggregator - Bottom-up (score, maxScore) fold over the checklist tree

Responsibilities:
- Score every applicable skill item 0/1 from its yes/no answer
- Score symptom cascades (ask -> confirm -> check -> classify)
- Gate subgroups by relevance; an irrelevant subgroup exports 0/0
- Roll subgroup totals up to group totals and the overall total
- Refuse to export two nodes under one score key

Scoring rules:
- Irrelevant item: excluded from score AND maxScore
- Relevant item answered 'yes': 1/1, 'no': 0/1
- Relevant item answered 'na' or unanswered: excluded
- Any other value: excluded, diagnostic recorded
- Decision group: 1/1 if the decision matched, else 0/1
- Parents only add up children; relevance is never re-evaluated

Design principles:
- Structured fold: each node returns its own result, parents sum them
- Stateless between passes: all per-pass state comes in through the
  RelevanceEvaluator
"""

import logging
from collections import OrderedDict
from typing import Dict, Optional

from mentorship.contracts import (
    DIAG_INVALID_ANSWER,
    GROUP_DECISION,
    NOT_APPLICABLE,
    SUBGROUP_SYMPTOM_CASCADE,
    Checklist,
    Group,
    ScoreResult,
    Subgroup,
    SymptomCascadeItem,
)
from mentorship.core.answer_store import AnswerStore
from mentorship.core.relevance import RelevanceEvaluator
from mentorship.results import AggregateResult, DuplicateScoreKeyError
from mentorship.utils.field_mappings import NA, NO, YES

logger = logging.getLogger(__name__)


class _ExportLedger:
    """Ordered export map that fails loudly on duplicate keys."""

    def __init__(self):
        self._scores: "OrderedDict[str, ScoreResult]" = OrderedDict()

    def export(self, key: str, result: ScoreResult) -> ScoreResult:
        if key in self._scores:
            raise DuplicateScoreKeyError(f"Score key '{key}' exported twice in one pass")
        self._scores[key] = result
        return result

    def freeze(self) -> Dict[str, ScoreResult]:
        return dict(self._scores)


class ScoreAggregator:
    """
    Stateless aggregator for one checklist.

    The same instance can score any number of encounters, including
    concurrently; every call gets its own ledger and evaluator.
    """

    def __init__(self, checklist: Checklist):
        self.checklist = checklist

    def aggregate(self, evaluator: RelevanceEvaluator) -> AggregateResult:
        """
        Score one encounter.

        Args:
            evaluator: Per-pass evaluator (carries answers, the
                classification resolver and the diagnostic log)

        Returns:
            AggregateResult

        Raises:
            DuplicateScoreKeyError: If two nodes share an export key
        """
        ledger = _ExportLedger()
        items: Dict[str, ScoreResult] = {}

        group_results = [
            self._score_group(group, evaluator, ledger, items)
            for group in self.checklist.groups
        ]
        overall = ScoreResult.total(group_results)

        logger.debug(f"Aggregated {len(group_results)} groups: overall {overall.score}/{overall.max_score}")

        return AggregateResult(
            per_node_scores=ledger.freeze(),
            overall=overall,
            item_scores=items,
        )

    # =========================================================================
    # Groups
    # =========================================================================

    def _score_group(self, group: Group, evaluator, ledger, items) -> ScoreResult:
        if group.kind == GROUP_DECISION:
            return ledger.export(group.score_key, self._score_decision(group, evaluator))

        subgroup_results = [
            self._score_subgroup(subgroup, evaluator, ledger, items)
            for subgroup in group.subgroups
        ]
        return ledger.export(group.score_key, ScoreResult.total(subgroup_results))

    def _score_decision(self, group: Group, evaluator) -> ScoreResult:
        value = evaluator.answers.get(group.decision_key)
        if value is not None and value not in (YES, NO, NA):
            evaluator.diagnostics.report(
                DIAG_INVALID_ANSWER, group.decision_key,
                f"Expected yes/no/na, got {value!r}"
            )
        return ScoreResult.binary(value == YES)

    # =========================================================================
    # Subgroups
    # =========================================================================

    def _score_subgroup(self, subgroup: Subgroup, evaluator, ledger, items) -> ScoreResult:
        relevant = evaluator.is_relevant(subgroup)

        if subgroup.kind == SUBGROUP_SYMPTOM_CASCADE:
            symptom_results = []
            for symptom in subgroup.children:
                result = self._score_symptom(symptom, evaluator, items) if relevant else NOT_APPLICABLE
                symptom_results.append(ledger.export(symptom.score_key, result))
            total = ScoreResult.total(symptom_results)
        elif relevant:
            total = self._score_flat_skills(subgroup, evaluator, items)
        else:
            total = NOT_APPLICABLE

        return ledger.export(subgroup.score_key, total)

    def _score_flat_skills(self, subgroup: Subgroup, evaluator, items) -> ScoreResult:
        results = []
        for skill in subgroup.children:
            if not evaluator.is_relevant(skill):
                continue
            result = score_answer(skill.key, evaluator.answers, evaluator.diagnostics)
            if result is None:
                continue
            items[skill.key] = result
            results.append(result)
        return ScoreResult.total(results)

    def _score_symptom(self, symptom: SymptomCascadeItem, evaluator, items) -> ScoreResult:
        answers = evaluator.answers
        step_keys = [symptom.ask_key]

        # Check and classify only count once the symptom was asked about
        # and the supervisor confirms it is present.
        if answers.get(symptom.ask_key) == YES and answers.get(symptom.confirm_key) == YES:
            step_keys.extend([symptom.check_key, symptom.classify_key])

        results = []
        for key in step_keys:
            result = score_answer(key, answers, evaluator.diagnostics)
            if result is None:
                continue
            items[key] = result
            results.append(result)
        return ScoreResult.total(results)


def score_answer(key: str, answers: AnswerStore, diagnostics) -> Optional[ScoreResult]:
    """
    Score one binary skill answer.

    Returns:
        ScoreResult(1, 1) for 'yes', ScoreResult(0, 1) for 'no',
        None when the item is excluded ('na', unanswered, invalid)
    """
    value = answers.get(key)
    if value == YES:
        return ScoreResult(1, 1)
    if value == NO:
        return ScoreResult(0, 1)
    if value is None or value == NA:
        return None

    diagnostics.report(DIAG_INVALID_ANSWER, key, f"Expected yes/no/na, got {value!r}")
    return None
