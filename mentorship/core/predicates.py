"""
Computed Predicates - Named compound relevance rules

Checklist JSON refers to these by name ({"computed": "<name>"}). Every
predicate takes (answers, classifications) and returns a bool:
- answers: AnswerStore for the encounter
- classifications: the pass's ClassificationResolver

Predicates must be pure. Effective classifications are ALWAYS read
through the resolver, never recomputed from raw answers here.
"""

from typing import Callable, Dict

from mentorship.utils.classifications import (
    DIARRHEA_TREATMENT_LABELS,
    DYSENTERY,
    EAR_TREATMENT_LABELS,
    MALARIA,
    OUTPATIENT_MALNUTRITION_LABELS,
    PNEUMONIA,
    ANEMIA,
    VERY_SEVERE_FEBRILE_DISEASE,
)
from mentorship.utils.field_mappings import REFERRAL, TREATMENT, YES

PredicateFn = Callable[[object, object], bool]

PREDICATES: Dict[str, PredicateFn] = {}

FINAL_DECISION_KEY = "finalDecision"
DECISION_MATCHES_KEY = "decisionMatches"


def predicate(name: str):
    """Register fn under name. Names are unique."""
    def register(fn: PredicateFn) -> PredicateFn:
        if name in PREDICATES:
            raise ValueError(f"Predicate '{name}' registered twice")
        PREDICATES[name] = fn
        return fn
    return register


def get_predicate(name: str) -> PredicateFn:
    if name not in PREDICATES:
        raise KeyError(f"Unknown computed predicate: {name}")
    return PREDICATES[name]


def _decided_treatment(answers) -> bool:
    return answers.get(FINAL_DECISION_KEY) == TREATMENT


# =============================================================================
# Referral
# =============================================================================

@predicate("referral_decision_matched")
def referral_decision_matched(answers, classifications) -> bool:
    """Referral chosen and the decision matched the supervisor's."""
    return answers.get(FINAL_DECISION_KEY) == REFERRAL and answers.get(DECISION_MATCHES_KEY) == YES


@predicate("very_severe_febrile_disease")
def very_severe_febrile_disease(answers, classifications) -> bool:
    return classifications.has_label("fever", VERY_SEVERE_FEBRILE_DISEASE)


# =============================================================================
# Treatment branches
# =============================================================================

@predicate("treatment_decision")
def treatment_decision(answers, classifications) -> bool:
    return _decided_treatment(answers)


@predicate("treating_pneumonia")
def treating_pneumonia(answers, classifications) -> bool:
    return _decided_treatment(answers) and classifications.has_label("cough", PNEUMONIA)


@predicate("treating_diarrhea")
def treating_diarrhea(answers, classifications) -> bool:
    return _decided_treatment(answers) and classifications.has_any_label("diarrhea", DIARRHEA_TREATMENT_LABELS)


@predicate("treating_dysentery")
def treating_dysentery(answers, classifications) -> bool:
    return _decided_treatment(answers) and classifications.has_label("diarrhea", DYSENTERY)


@predicate("treating_malaria")
def treating_malaria(answers, classifications) -> bool:
    return _decided_treatment(answers) and classifications.has_label("fever", MALARIA)


@predicate("treating_ear_infection")
def treating_ear_infection(answers, classifications) -> bool:
    return _decided_treatment(answers) and classifications.has_any_label("ear", EAR_TREATMENT_LABELS)


@predicate("outpatient_malnutrition")
def outpatient_malnutrition(answers, classifications) -> bool:
    """Uncomplicated SAM or MAM: child should be sent to the OTP."""
    return classifications.has_any_label("malnutrition", OUTPATIENT_MALNUTRITION_LABELS)


@predicate("treating_malnutrition")
def treating_malnutrition(answers, classifications) -> bool:
    return _decided_treatment(answers) and outpatient_malnutrition(answers, classifications)


@predicate("treating_anemia")
def treating_anemia(answers, classifications) -> bool:
    return _decided_treatment(answers) and classifications.has_label("anemia", ANEMIA)
