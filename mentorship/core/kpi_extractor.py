"""
KPI Extractor - Cross-cutting indicators derived from one scoring pass

Responsibilities:
- Hands-on procedural sub-scores (weight, temperature, height,
  respiratory rate, rapid test, MUAC, weight-for-height)
- Case identification flags (referral case, malnutrition case)
- Malaria classification accuracy
- Management adherence (aliases of treatment subgroup results)
- Respiratory rate / dehydration checks on confirmed symptoms

Design principles:
- Every KPI is a ScoreResult so it shares display and averaging logic
- Effective classifications come from the pass's resolver, the same
  cached values the treatment relevance checks used
- Hands-on scores read the aggregator's per-item results, so an item
  only counts when its prerequisite step was relevant
- Table-driven: no hand-maintained running totals
"""

import logging
from collections import OrderedDict
from typing import Dict, Tuple

from mentorship.contracts import NOT_APPLICABLE, ScoreResult
from mentorship.core.answer_store import ASSESSMENT
from mentorship.core.classification import ClassificationResolver
from mentorship.results import AggregateResult
from mentorship.utils.classifications import DOMAINS, MALARIA, OUTPATIENT_MALNUTRITION_LABELS
from mentorship.utils.field_mappings import YES

logger = logging.getLogger(__name__)

# KPI name -> skill answer key
HANDS_ON_SKILLS: Dict[str, str] = OrderedDict([
    ("handsOnWeight", "skill_weight"),
    ("handsOnTemp", "skill_temp"),
    ("handsOnHeight", "skill_height"),
    ("handsOnRR", "skill_check_rr"),
    ("handsOnRDT", "skill_check_rdt"),
    ("handsOnMUAC", "skill_mal_muac"),
    ("handsOnWFH", "skill_mal_wfh"),
])

# KPI name -> treatment subgroup score key
MANAGEMENT_KPIS: Dict[str, str] = OrderedDict([
    ("referralManagement", "ref_treatment"),
    ("malariaManagement", "mal_treatment"),
    ("malnutritionManagement", "nut_treatment"),
    ("anemiaManagement", "anemia_treatment"),
    ("pneumoniaManagement", "pneu_treatment"),
    ("diarrheaManagement", "diar_treatment"),
])

# KPI name -> (supervisor confirmation key, check skill key)
CONFIRMED_CHECK_KPIS: Dict[str, Tuple[str, str]] = OrderedDict([
    ("respiratoryRateCalculation", ("supervisor_confirms_cough", "skill_check_rr")),
    ("dehydrationAssessment", ("supervisor_confirms_diarrhea", "skill_check_dehydration")),
])

REFERRAL_CASE_COUNT = "referralCaseCount"
MALARIA_CLASSIFICATION = "malariaClassification"
MALNUTRITION_CASE_COUNT = "malnutritionCaseCount"

# Persisted payload order
KPI_KEYS: Tuple[str, ...] = (
    *HANDS_ON_SKILLS,
    REFERRAL_CASE_COUNT,
    "referralManagement",
    MALARIA_CLASSIFICATION,
    "malariaManagement",
    MALNUTRITION_CASE_COUNT,
    "malnutritionManagement",
    "anemiaManagement",
    "respiratoryRateCalculation",
    "pneumoniaManagement",
    "dehydrationAssessment",
    "diarrheaManagement",
)


class KpiExtractor:
    """Stateless KPI extractor; all per-pass state comes in as arguments."""

    def extract(self, aggregate: AggregateResult, classifications: ClassificationResolver) -> Dict[str, ScoreResult]:
        """
        Derive every KPI for one encounter.

        Args:
            aggregate: The same pass's aggregator output
            classifications: The same pass's resolver

        Returns:
            dict: KPI name -> ScoreResult, in KPI_KEYS order
        """
        answers = classifications.answers

        derived = {}
        for name, skill_key in HANDS_ON_SKILLS.items():
            derived[name] = aggregate.item_scores.get(skill_key, NOT_APPLICABLE)

        for name, score_key in MANAGEMENT_KPIS.items():
            derived[name] = aggregate.per_node_scores.get(score_key, NOT_APPLICABLE)

        for name, (confirm_key, check_key) in CONFIRMED_CHECK_KPIS.items():
            confirmed = answers.lookup(ASSESSMENT, confirm_key) == YES
            checked = answers.lookup(ASSESSMENT, check_key) == YES
            derived[name] = ScoreResult.binary(checked) if confirmed else NOT_APPLICABLE

        derived[REFERRAL_CASE_COUNT] = self.referral_case(classifications)
        derived[MALARIA_CLASSIFICATION] = self.malaria_classification(classifications)
        derived[MALNUTRITION_CASE_COUNT] = self.malnutrition_case(classifications)

        kpis = OrderedDict((name, derived[name]) for name in KPI_KEYS)
        logger.debug(f"Extracted {len(kpis)} KPIs")
        return kpis

    # =========================================================================
    # Classification-derived indicators
    # =========================================================================

    @staticmethod
    def referral_case(classifications: ClassificationResolver) -> ScoreResult:
        """1/1 if any effective classification is severe, else 0/1."""
        severe = any(
            classifications.has_any_label(name, domain.severe_labels)
            for name, domain in DOMAINS.items()
        )
        return ScoreResult.binary(severe)

    @staticmethod
    def malaria_classification(classifications: ClassificationResolver) -> ScoreResult:
        """
        Applicable only when malaria was actually present; scored 1 when
        the worker's own classification was the correct one.
        """
        if not classifications.has_label("fever", MALARIA):
            return NOT_APPLICABLE
        return ScoreResult.binary(classifications.worker_classified_correctly("fever"))

    @staticmethod
    def malnutrition_case(classifications: ClassificationResolver) -> ScoreResult:
        """1/1 for uncomplicated SAM or MAM, else 0/1."""
        return ScoreResult.binary(
            classifications.has_any_label("malnutrition", OUTPATIENT_MALNUTRITION_LABELS)
        )
