"""
Test Score Aggregator - (score, maxScore) fold over the checklist tree

Run with: pytest tests/test_score_aggregator.py
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from mentorship.contracts import (
    DIAG_INVALID_ANSWER,
    GROUP_CONTAINER,
    Checklist,
    Group,
    ScoreResult,
    SkillItem,
    Subgroup,
)
from mentorship.core.answer_store import AnswerStore
from mentorship.core.relevance import RelevanceEvaluator
from mentorship.core.score_aggregator import ScoreAggregator
from mentorship.results import DuplicateScoreKeyError


def _form(assessment=None, treatment=None, **root):
    return AnswerStore(root=root, assessment=assessment or {}, treatment=treatment or {})


# =============================================================================
# Flat skills
# =============================================================================

def test_vital_signs_na_excluded(engine):
    """weight yes, temp no, height na -> 1/2"""
    result = engine.aggregate(_form(assessment={
        'skill_weight': 'yes',
        'skill_temp': 'no',
        'skill_height': 'na',
    }))

    assert result.per_node_scores['vitalSigns'] == ScoreResult(1, 2)

    print("✓ Vital signs test passed")


def test_unanswered_items_excluded(engine):
    result = engine.aggregate(_form(assessment={'skill_ds_drink': 'yes'}))

    assert result.per_node_scores['dangerSigns'] == ScoreResult(1, 1)
    assert result.per_node_scores['immunization'] == ScoreResult(0, 0)


def test_invalid_answer_excluded_with_diagnostic(engine):
    answers = _form(assessment={'skill_weight': 'maybe', 'skill_temp': 'yes'})
    result = engine.score(answers)

    assert result.per_node_scores['vitalSigns'] == ScoreResult(1, 1)
    assert [(d.code, d.node) for d in result.diagnostics] == [(DIAG_INVALID_ANSWER, 'skill_weight')]


# =============================================================================
# Symptom cascade
# =============================================================================

def test_cascade_not_asked_counts_ask_only(engine):
    """Check and classify answers are ignored unless asked and confirmed"""
    result = engine.aggregate(_form(assessment={
        'skill_ask_cough': 'no',
        'supervisor_confirms_cough': 'yes',
        'skill_check_rr': 'yes',
        'skill_classify_cough': 'yes',
    }))

    assert result.per_node_scores['symptom_cough'] == ScoreResult(0, 1)
    assert 'skill_check_rr' not in result.item_scores


def test_cascade_not_confirmed(engine):
    result = engine.aggregate(_form(assessment={
        'skill_ask_fever': 'yes',
        'supervisor_confirms_fever': 'no',
        'skill_check_rdt': 'yes',
        'skill_classify_fever': 'no',
    }))

    assert result.per_node_scores['symptom_fever'] == ScoreResult(1, 1)


def test_cascade_asked_and_confirmed(engine):
    result = engine.aggregate(_form(assessment={
        'skill_ask_diarrhea': 'yes',
        'supervisor_confirms_diarrhea': 'yes',
        'skill_check_dehydration': 'yes',
        'skill_classify_diarrhea': 'no',
        'skill_ask_ear': 'no',
    }))

    assert result.per_node_scores['symptom_diarrhea'] == ScoreResult(2, 3)
    assert result.per_node_scores['symptom_ear'] == ScoreResult(0, 1)
    assert result.per_node_scores['symptom_cough'] == ScoreResult(0, 0)
    assert result.per_node_scores['mainSymptoms'] == ScoreResult(2, 4)


# =============================================================================
# Decision and treatment
# =============================================================================

def test_decision_always_applicable(engine):
    assert engine.aggregate(_form()).per_node_scores['finalDecision'] == ScoreResult(0, 1)
    assert engine.aggregate(_form(decisionMatches='yes')).per_node_scores['finalDecision'] == ScoreResult(1, 1)
    assert engine.aggregate(_form(decisionMatches='na')).per_node_scores['finalDecision'] == ScoreResult(0, 1)


def test_referral_not_matched_is_not_applicable(engine):
    """Referral chosen but not matched: pre-referral treatment never scored"""
    result = engine.aggregate(_form(
        finalDecision='referral',
        decisionMatches='no',
        treatment={'skill_ref_abx': 'yes'},
    ))

    assert result.per_node_scores['ref_treatment'] == ScoreResult(0, 0)
    assert result.per_node_scores['finalDecision'] == ScoreResult(0, 1)


def test_referral_matched_with_quinine(engine):
    base = dict(
        finalDecision='referral',
        decisionMatches='yes',
        treatment={'skill_ref_abx': 'yes', 'skill_ref_quinine': 'yes'},
    )

    result = engine.aggregate(_form(**base))
    assert result.per_node_scores['ref_treatment'] == ScoreResult(1, 1)

    severe = engine.aggregate(_form(
        assessment={
            'skill_classify_fever': 'no',
            'supervisor_correct_fever_classification': ['very severe febrile disease'],
        },
        **base
    ))
    assert severe.per_node_scores['ref_treatment'] == ScoreResult(2, 2)


def test_pneumonia_treatment_gated_by_classification(engine):
    pneumonia = {'skill_classify_cough': 'yes', 'worker_cough_classification': 'pneumonia'}

    result = engine.aggregate(_form(
        finalDecision='treatment',
        assessment=pneumonia,
        treatment={'skill_pneu_abx': 'yes', 'skill_pneu_dose': 'no'},
    ))
    assert result.per_node_scores['pneu_treatment'] == ScoreResult(1, 2)

    dose_irrelevant = engine.aggregate(_form(
        finalDecision='treatment',
        assessment=pneumonia,
        treatment={'skill_pneu_abx': 'no', 'skill_pneu_dose': 'yes'},
    ))
    assert dose_irrelevant.per_node_scores['pneu_treatment'] == ScoreResult(0, 1)

    no_pneumonia = engine.aggregate(_form(
        finalDecision='treatment',
        assessment={'skill_classify_cough': 'yes', 'worker_cough_classification': 'cough or cold'},
        treatment={'skill_pneu_abx': 'yes', 'skill_pneu_dose': 'yes'},
    ))
    assert no_pneumonia.per_node_scores['pneu_treatment'] == ScoreResult(0, 0)


def test_irrelevant_subgroups_do_not_reach_totals(engine):
    result = engine.aggregate(_form(
        finalDecision='treatment',
        decisionMatches='yes',
        assessment={'skill_weight': 'yes'},
        treatment={'skill_fu_when': 'yes', 'skill_fu_return': 'no', 'skill_mal_meds': 'no'},
    ))

    assert result.per_node_scores['mal_treatment'] == ScoreResult(0, 0)
    assert result.per_node_scores['treatment_total_score'] == ScoreResult(1, 2)
    assert result.per_node_scores['assessment_total_score'] == ScoreResult(1, 1)
    assert result.overall == ScoreResult(3, 4)


def test_malnutrition_otp_item(engine):
    result = engine.aggregate(_form(
        finalDecision='treatment',
        assessment={'skill_mal_classify': 'no', 'supervisor_correct_malnutrition_classification': 'moderate acute malnutrition'},
        treatment={'skill_nut_refer_otp': 'yes', 'skill_nut_assess': 'yes', 'skill_nut_counsel': 'no'},
    ))

    assert result.per_node_scores['nut_treatment'] == ScoreResult(2, 3)


# =============================================================================
# Export ledger
# =============================================================================

def test_duplicate_score_key_fails_loudly():
    """A hand-built tree that reuses a key is rejected during the pass"""
    skill = SkillItem('skill_a', 'A')
    checklist = Checklist(
        name='dup',
        version='1',
        groups=(
            Group(
                title='Section',
                score_key='section_total',
                kind=GROUP_CONTAINER,
                section_key='assessment',
                subgroups=(
                    Subgroup('One', 'same_key', children=(skill,)),
                    Subgroup('Two', 'same_key', children=(SkillItem('skill_b', 'B'),)),
                ),
            ),
        ),
    )

    with pytest.raises(DuplicateScoreKeyError, match="same_key"):
        ScoreAggregator(checklist).aggregate(RelevanceEvaluator(AnswerStore()))


def test_aggregate_is_idempotent(engine):
    answers = _form(
        finalDecision='treatment',
        decisionMatches='yes',
        assessment={'skill_weight': 'yes', 'skill_ask_cough': 'yes', 'supervisor_confirms_cough': 'yes'},
    )
    assert engine.aggregate(answers) == engine.aggregate(answers)


if __name__ == '__main__':
    sys.exit(pytest.main([__file__, '-v']))
