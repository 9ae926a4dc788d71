"""
Test Suite for the Relevance Evaluator

Covers the three predicate kinds, namespace resolution and
fault containment.
Run with: python tests/test_relevance.py
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import unittest

from mentorship.contracts import (
    ALWAYS,
    DIAG_MALFORMED_PREDICATE,
    DIAG_PREDICATE_ERROR,
    DIAG_UNRESOLVED_VARIABLE,
    Computed,
    Equals,
    SkillItem,
)
from mentorship.core.answer_store import AnswerStore
from mentorship.core.diagnostics import DiagnosticLog
from mentorship.core.relevance import RelevanceEvaluator, is_relevant


def _evaluator(answers, known=None):
    return RelevanceEvaluator(answers, diagnostics=DiagnosticLog(), known_variables=known)


class TestAlwaysAndEquals(unittest.TestCase):
    """Declarative predicates."""

    def test_no_relevance_is_relevant(self):
        node = SkillItem(key='skill_weight', label='Weight')
        self.assertTrue(is_relevant(node, AnswerStore()))

    def test_always(self):
        self.assertTrue(_evaluator(AnswerStore()).evaluate(ALWAYS))

    def test_equals_match(self):
        answers = AnswerStore(treatment={'skill_pneu_abx': 'yes'})
        node = SkillItem('skill_pneu_dose', 'Dose', Equals('skill_pneu_abx', 'yes'))
        self.assertTrue(_evaluator(answers).is_relevant(node))

    def test_equals_no_match(self):
        answers = AnswerStore(treatment={'skill_pneu_abx': 'no'})
        node = SkillItem('skill_pneu_dose', 'Dose', Equals('skill_pneu_abx', 'yes'))
        self.assertFalse(_evaluator(answers).is_relevant(node))

    def test_equals_uses_resolution_order(self):
        """Root value wins even when assessment holds a different one"""
        answers = AnswerStore(root={'flag': 'no'}, assessment={'flag': 'yes'})
        self.assertFalse(_evaluator(answers).evaluate(Equals('flag', 'yes')))
        self.assertTrue(_evaluator(answers).evaluate(Equals('flag', 'no')))

    def test_equals_is_strict(self):
        """No case folding and no set membership"""
        answers = AnswerStore(assessment={
            'skill_weight': 'Yes',
            'worker_fever_classification': ['malaria'],
        })
        evaluator = _evaluator(answers)
        self.assertFalse(evaluator.evaluate(Equals('skill_weight', 'yes')))
        self.assertFalse(evaluator.evaluate(Equals('worker_fever_classification', 'malaria')))


class TestUnresolvedVariables(unittest.TestCase):
    """Missing variables evaluate False; unknown ones are reported."""

    def test_unknown_variable_reports_diagnostic(self):
        evaluator = _evaluator(AnswerStore())
        result = evaluator.evaluate(Equals('no_such_key', 'yes'), 'node_x')

        self.assertFalse(result)
        self.assertEqual(len(evaluator.diagnostics), 1)
        diagnostic = evaluator.diagnostics.diagnostics[0]
        self.assertEqual(diagnostic.code, DIAG_UNRESOLVED_VARIABLE)
        self.assertEqual(diagnostic.node, 'node_x')
        self.assertIn('node_x', evaluator.diagnostics.skipped_nodes)

    def test_known_unanswered_variable_is_silent(self):
        evaluator = _evaluator(AnswerStore(), known=frozenset({'skill_pneu_abx'}))
        self.assertFalse(evaluator.evaluate(Equals('skill_pneu_abx', 'yes')))
        self.assertEqual(len(evaluator.diagnostics), 0)

    def test_malformed_equals(self):
        evaluator = _evaluator(AnswerStore())
        self.assertFalse(evaluator.evaluate(Equals('', 'yes'), 'bad'))
        self.assertEqual(evaluator.diagnostics.diagnostics[0].code, DIAG_MALFORMED_PREDICATE)

    def test_unsupported_relevance_type(self):
        evaluator = _evaluator(AnswerStore())
        self.assertFalse(evaluator.evaluate("${ts_skill_pneu_abx}='yes'", 'legacy'))
        self.assertEqual(evaluator.diagnostics.diagnostics[0].code, DIAG_MALFORMED_PREDICATE)


class TestComputed(unittest.TestCase):
    """Computed predicates and fault containment."""

    def test_computed_result_returned(self):
        answers = AnswerStore(root={'finalDecision': 'treatment'})
        predicate = Computed('decided_treatment', lambda a, c: a.get('finalDecision') == 'treatment')
        self.assertTrue(_evaluator(answers).evaluate(predicate))

    def test_computed_receives_resolver(self):
        answers = AnswerStore(assessment={
            'skill_classify_cough': 'yes',
            'worker_cough_classification': 'pneumonia',
        })
        predicate = Computed('pneumonia', lambda a, c: c.has_label('cough', 'pneumonia'))
        self.assertTrue(_evaluator(answers).evaluate(predicate))

    def test_computed_error_is_contained(self):
        def broken(answers, classifications):
            raise RuntimeError("boom")

        evaluator = _evaluator(AnswerStore())
        result = evaluator.evaluate(Computed('broken', broken), 'pneu_treatment')

        self.assertFalse(result)
        diagnostic = evaluator.diagnostics.diagnostics[0]
        self.assertEqual(diagnostic.code, DIAG_PREDICATE_ERROR)
        self.assertIn('boom', diagnostic.message)
        self.assertEqual(evaluator.diagnostics.skipped_nodes, ('pneu_treatment',))

    def test_evaluation_does_not_mutate_answers(self):
        answers = AnswerStore(root={'finalDecision': 'treatment'})
        before = answers.to_dict()
        _evaluator(answers).evaluate(Computed('x', lambda a, c: True))
        self.assertEqual(answers.to_dict(), before)


# =============================================================================
# Run Tests
# =============================================================================

if __name__ == '__main__':
    unittest.main(verbosity=2)
