"""
Completeness - Find applicable checklist items that still need an answer

Used before a session is submitted: any relevant item (inside a relevant
subgroup) with no usable answer blocks submission of that section.
"""

from typing import List, Optional

from mentorship.contracts import SUBGROUP_SYMPTOM_CASCADE, Checklist
from mentorship.core.answer_store import AnswerStore
from mentorship.core.checklist_loader import checklist_variables
from mentorship.core.relevance import RelevanceEvaluator
from mentorship.utils.field_mappings import SKILL_ANSWER_VALUES, YES


def find_incomplete_skills(
    checklist: Checklist,
    answers: AnswerStore,
    section: Optional[str] = None,
    evaluator: Optional[RelevanceEvaluator] = None,
) -> List[str]:
    """
    List applicable items without a yes/no/na answer.

    Args:
        checklist: Checklist to walk
        answers: Encounter answers
        section: Restrict to one section ('assessment' or 'treatment')
        evaluator: Reuse a pass's evaluator (a fresh one is made if omitted)

    Returns:
        list[str]: Item keys in checklist order
    """
    if evaluator is None:
        evaluator = RelevanceEvaluator(answers, known_variables=checklist_variables(checklist))

    incomplete = []
    for _, subgroup in checklist.iter_subgroups(section):
        if not evaluator.is_relevant(subgroup):
            continue

        if subgroup.kind == SUBGROUP_SYMPTOM_CASCADE:
            for symptom in subgroup.children:
                keys = [symptom.ask_key]
                if answers.get(symptom.ask_key) == YES and answers.get(symptom.confirm_key) == YES:
                    keys.extend([symptom.check_key, symptom.classify_key])
                incomplete.extend(k for k in keys if answers.get(k) not in SKILL_ANSWER_VALUES)
            continue

        for skill in subgroup.children:
            if evaluator.is_relevant(skill) and answers.get(skill.key) not in SKILL_ANSWER_VALUES:
                incomplete.append(skill.key)

    return incomplete
