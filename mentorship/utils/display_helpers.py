"""
Display Helpers - Convert score results and persisted payloads to display form

Used by the console harness, the HTTP surface and dashboard averaging.

A maxScore of 0 means "not applicable" and is rendered as N/A, never 0%.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional

from mentorship.contracts import ScoreResult
from mentorship.results import OVERALL_SCORE_KEY, ScoringResult


NOT_APPLICABLE_TEXT = "N/A"

# Marker key every current payload carries; older payloads lack it
RESCORE_MARKER_KEY = "treatment_total_score_maxScore"


# Score key -> Human Readable Label
SCORE_LABELS = {
    # Roll-ups
    'assessment_total_score': 'Assessment and classification',
    'finalDecision': 'Final decision',
    'treatment_total_score': 'Treatment and counselling',
    OVERALL_SCORE_KEY: 'Overall',

    # Assessment subgroups
    'vitalSigns': 'Vital signs',
    'dangerSigns': 'Danger signs',
    'mainSymptoms': 'Main symptoms',
    'symptom_cough': 'Cough',
    'symptom_diarrhea': 'Diarrhea',
    'symptom_fever': 'Fever',
    'symptom_ear': 'Ear problem',
    'malnutrition': 'Malnutrition',
    'anemia': 'Anemia',
    'immunization': 'Immunization',
    'otherProblems': 'Other problems',

    # Treatment subgroups
    'ref_treatment': 'Referral',
    'pneu_treatment': 'Pneumonia treatment',
    'diar_treatment': 'Diarrhea treatment',
    'dyst_treatment': 'Dysentery treatment',
    'mal_treatment': 'Malaria treatment',
    'ear_treatment': 'Ear infection treatment',
    'nut_treatment': 'Malnutrition treatment',
    'anemia_treatment': 'Anemia treatment',
    'fu_treatment': 'Follow-up counselling',

    # KPIs
    'handsOnWeight': 'Hands-on: weight',
    'handsOnTemp': 'Hands-on: temperature',
    'handsOnHeight': 'Hands-on: height',
    'handsOnRR': 'Hands-on: respiratory rate',
    'handsOnRDT': 'Hands-on: malaria RDT',
    'handsOnMUAC': 'Hands-on: MUAC',
    'handsOnWFH': 'Hands-on: weight-for-height',
    'referralCaseCount': 'Referral cases',
    'referralManagement': 'Referral management',
    'malariaClassification': 'Malaria classification',
    'malariaManagement': 'Malaria management',
    'malnutritionCaseCount': 'Malnutrition cases',
    'malnutritionManagement': 'Malnutrition management',
    'anemiaManagement': 'Anemia management',
    'respiratoryRateCalculation': 'Respiratory rate counted',
    'pneumoniaManagement': 'Pneumonia management',
    'dehydrationAssessment': 'Dehydration assessed',
    'diarrheaManagement': 'Diarrhea management',
}


def format_score_key(key: str) -> str:
    """
    Convert a score key to a human-readable label.

    Falls back to the key with underscores replaced and title-cased.
    """
    if key in SCORE_LABELS:
        return SCORE_LABELS[key]
    return key.replace('_', ' ').title()


def score_percentage(result: ScoreResult) -> Optional[int]:
    """
    Rounded percentage for a result.

    Returns:
        int 0-100, or None when the result is not applicable (maxScore 0)
    """
    if not result.is_applicable:
        return None
    # Half-up rounding, as the dashboards show it
    return int(100 * result.score / result.max_score + 0.5)


def format_score(result: ScoreResult) -> str:
    """
    Examples:
        >>> format_score(ScoreResult(7, 8))
        '88%'
        >>> format_score(ScoreResult(0, 0))
        'N/A'
    """
    percentage = score_percentage(result)
    if percentage is None:
        return NOT_APPLICABLE_TEXT
    return f"{percentage}%"


def payload_result(payload: Mapping[str, Any], key: str) -> Optional[ScoreResult]:
    """Read one (score, maxScore) pair back from a persisted payload."""
    score = payload.get(f"{key}_score")
    max_score = payload.get(f"{key}_maxScore")
    if score is None or max_score is None:
        return None
    return ScoreResult(int(score), int(max_score))


def average_ratio(payloads: Iterable[Mapping[str, Any]], key: str) -> Optional[float]:
    """
    Average score/maxScore for one key over many persisted payloads.

    Payloads where the key is missing or not applicable are skipped.

    Returns:
        float in [0, 1], or None if no payload had an applicable result
    """
    ratios: List[float] = []
    for payload in payloads:
        result = payload_result(payload, key)
        if result is None or not result.is_applicable:
            continue
        ratios.append(result.score / result.max_score)

    if not ratios:
        return None
    return sum(ratios) / len(ratios)


def payload_needs_rescore(payload: Mapping[str, Any]) -> bool:
    """True for legacy payloads saved before the current roll-up keys existed."""
    return RESCORE_MARKER_KEY not in payload


def format_result_for_display(result: ScoringResult) -> Dict[str, Any]:
    """
    Convert a ScoringResult to display rows.

    Returns:
        dict: {
            'overall': '75%',
            'sections': [{'key': 'vitalSigns', 'label': 'Vital signs',
                          'score': 1, 'maxScore': 2, 'display': '50%'}, ...],
            'kpis': [...same shape...],
            'diagnostics': ['invalid_answer at skill_temp: ...', ...]
        }
    """
    def row(key: str, value: ScoreResult) -> Dict[str, Any]:
        return {
            'key': key,
            'label': format_score_key(key),
            'score': value.score,
            'maxScore': value.max_score,
            'display': format_score(value),
        }

    return {
        'overall': format_score(result.overall),
        'sections': [row(k, v) for k, v in result.per_node_scores.items()],
        'kpis': [row(k, v) for k, v in result.kpis.items()],
        'diagnostics': [f"{d.code} at {d.node}: {d.message}" for d in result.diagnostics],
    }
