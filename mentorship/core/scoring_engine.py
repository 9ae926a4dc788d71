"""
Scoring Engine - Pure (checklist, answers) -> scores + KPIs

Responsibilities:
- Run one complete scoring pass for one encounter
- Create the per-pass collaborators (diagnostic log, classification
  resolver, relevance evaluator) and hand the same instances to the
  aggregator and the KPI extractor
- Package everything into a ScoringResult

Design principles:
- Stateless: the engine holds only the immutable checklist
- Deterministic: the same answers always produce the same result
- Safe to share: live form submission and bulk import both call the
  same engine, concurrently if they like
- One pass, one resolver: effective classifications are never reused
  across encounters

Usage:
    engine = ScoringEngine(load_checklist())
    result = engine.score(AnswerStore.from_form_data(form_data))
    payload = result.to_payload()
"""

import logging
from typing import Any, Dict, Mapping, Optional, Union

from mentorship.contracts import Checklist, ScoreResult
from mentorship.core.answer_store import AnswerStore
from mentorship.core.checklist_loader import checklist_variables, load_checklist
from mentorship.core.classification import ClassificationResolver
from mentorship.core.diagnostics import DiagnosticLog
from mentorship.core.kpi_extractor import KpiExtractor
from mentorship.core.relevance import RelevanceEvaluator
from mentorship.core.score_aggregator import ScoreAggregator
from mentorship.results import AggregateResult, ScoringResult

logger = logging.getLogger(__name__)

Answers = Union[AnswerStore, Mapping[str, Any]]


class ScoringEngine:
    """
    Shared scoring engine for one checklist.

    Args:
        checklist: Validated checklist (default: bundled IMNCI checklist)
    """

    def __init__(self, checklist: Optional[Checklist] = None):
        self.checklist = checklist if checklist is not None else load_checklist()
        self.known_variables = checklist_variables(self.checklist)
        self.aggregator = ScoreAggregator(self.checklist)
        self.kpi_extractor = KpiExtractor()
        logger.info(f"Scoring engine initialized for checklist '{self.checklist.name}' v{self.checklist.version}")

    # =========================================================================
    # Public API
    # =========================================================================

    def score(self, answers: Answers) -> ScoringResult:
        """
        Score one encounter.

        Args:
            answers: AnswerStore, or live form data (converted with
                AnswerStore.from_form_data)

        Returns:
            ScoringResult: complete result, including diagnostics and any
                nodes skipped because of evaluation errors

        Raises:
            DuplicateScoreKeyError: If the checklist exports a key twice
        """
        return self.score_pass(self.new_evaluator(_as_store(answers)))

    def score_pass(self, evaluator: RelevanceEvaluator) -> ScoringResult:
        """
        Score with an evaluator from new_evaluator(), so callers can reuse
        the same pass (resolver and diagnostic log) after scoring.
        """
        aggregate = self.aggregator.aggregate(evaluator)
        kpis = self.kpi_extractor.extract(aggregate, evaluator.classifications)

        log = evaluator.diagnostics
        if len(log):
            logger.info(f"Scoring pass finished with {len(log)} diagnostic(s), skipped: {list(log.skipped_nodes)}")

        return ScoringResult(
            per_node_scores=aggregate.per_node_scores,
            overall=aggregate.overall,
            kpis=kpis,
            diagnostics=log.diagnostics,
            skipped_nodes=log.skipped_nodes,
        )

    def aggregate(self, answers: Answers) -> AggregateResult:
        """Section scores only (no KPIs)."""
        return self.aggregator.aggregate(self.new_evaluator(_as_store(answers)))

    def extract_kpis(self, answers: Answers) -> Dict[str, ScoreResult]:
        """KPIs only. Runs a full pass so the resolver cache is shared."""
        return dict(self.score(answers).kpis)

    def new_evaluator(self, answers: AnswerStore) -> RelevanceEvaluator:
        """Fresh per-pass evaluator with its own resolver and diagnostic log."""
        diagnostics = DiagnosticLog()
        resolver = ClassificationResolver(answers, diagnostics)
        return RelevanceEvaluator(
            answers,
            classifications=resolver,
            diagnostics=diagnostics,
            known_variables=self.known_variables,
        )


def _as_store(answers: Answers) -> AnswerStore:
    if isinstance(answers, AnswerStore):
        return answers
    if isinstance(answers, Mapping):
        return AnswerStore.from_form_data(answers)
    raise ValueError(f"answers must be an AnswerStore or form-data mapping, got {type(answers).__name__}")


def score_encounter(checklist: Checklist, answers: Answers) -> ScoringResult:
    """Convenience wrapper: one pass with a throwaway engine."""
    return ScoringEngine(checklist).score(answers)


def aggregate(checklist: Checklist, answers: Answers) -> AggregateResult:
    return ScoringEngine(checklist).aggregate(answers)


def extract_kpis(checklist: Checklist, answers: Answers) -> Dict[str, ScoreResult]:
    return ScoringEngine(checklist).extract_kpis(answers)
