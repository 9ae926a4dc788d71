"""
Semantic contracts for the mentorship scoring engine.

This module defines immutable data structures that serve as contracts
between modules. The checklist tree is authored once and never mutated
at runtime; score results and diagnostics are produced fresh on every
scoring pass.

Design principles:
- Frozen dataclasses (immutable after creation)
- No dependencies on other engine modules
- Tuples (not lists) for child collections so trees stay hashable

Contents:
- ScoreResult: (score, maxScore) pair produced for every scored node
- Always / Equals / Computed: closed relevance predicate model
- SkillItem / SymptomCascadeItem / Subgroup / Group / Checklist: schema tree
- Diagnostic: a non-fatal problem found during a scoring pass

Usage:
    from mentorship.contracts import ScoreResult, SkillItem, Subgroup
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Optional, Tuple, Union


# =============================================================================
# Scores
# =============================================================================

@dataclass(frozen=True)
class ScoreResult:
    """
    Integer (score, maxScore) pair.

    A result with max_score == 0 means nothing applicable was observed.
    Display layers must render it as not-applicable, never as 0%.

    Examples:
        >>> ScoreResult(1, 2) + ScoreResult(1, 1)
        ScoreResult(score=2, max_score=3)
        >>> ScoreResult().is_applicable
        False
    """
    score: int = 0
    max_score: int = 0

    def __post_init__(self):
        if self.score < 0 or self.max_score < 0 or self.score > self.max_score:
            raise ValueError(
                f"Invalid score {self.score}/{self.max_score}: "
                f"expected 0 <= score <= max_score"
            )

    def __add__(self, other: "ScoreResult") -> "ScoreResult":
        if not isinstance(other, ScoreResult):
            return NotImplemented
        return ScoreResult(self.score + other.score, self.max_score + other.max_score)

    @property
    def is_applicable(self) -> bool:
        return self.max_score > 0

    @staticmethod
    def binary(passed: bool) -> "ScoreResult":
        """One applicable observation, scored 1 if passed."""
        return ScoreResult(1 if passed else 0, 1)

    @staticmethod
    def total(results) -> "ScoreResult":
        """Additive roll-up of already computed child results."""
        rolled = ScoreResult()
        for result in results:
            rolled = rolled + result
        return rolled


NOT_APPLICABLE = ScoreResult(0, 0)


# =============================================================================
# Relevance predicates
# =============================================================================

@dataclass(frozen=True)
class Always:
    """Node always applies to the encounter."""


@dataclass(frozen=True)
class Equals:
    """
    Declarative predicate on a single answer.

    Attributes:
        variable: Answer key, resolved root -> assessment -> treatment
        value: Expected value ('yes', 'no', 'na' or a classification label)
    """
    variable: str
    value: str


@dataclass(frozen=True)
class Computed:
    """
    Named compound predicate.

    fn receives (answers, classifications) where classifications is the
    per-pass ClassificationResolver. fn must be pure.

    Only the name takes part in equality, so two checklists built from
    the same definition compare equal.
    """
    name: str
    fn: Callable[[Any, Any], bool] = field(compare=False, repr=False)


Relevance = Union[Always, Equals, Computed]

ALWAYS = Always()


# =============================================================================
# Checklist tree
# =============================================================================

SUBGROUP_FLAT_SKILLS = "flat-skills"
SUBGROUP_SYMPTOM_CASCADE = "symptom-cascade"

GROUP_CONTAINER = "container"
GROUP_DECISION = "decision"


@dataclass(frozen=True)
class SkillItem:
    """Leaf checklist item, scored 0/1 from a yes/no/na answer."""
    key: str
    label: str
    relevance: Relevance = ALWAYS


@dataclass(frozen=True)
class SymptomCascadeItem:
    """
    One presenting symptom inside a symptom-cascade subgroup.

    The ask step is always scored. The check and classify steps are only
    scored when ask == 'yes' and the supervisor confirms the symptom.
    """
    symptom: str
    label: str
    score_key: str
    ask_key: str
    confirm_key: str
    check_key: str
    classify_key: str

    @property
    def step_keys(self) -> Tuple[str, str, str]:
        return (self.ask_key, self.check_key, self.classify_key)


@dataclass(frozen=True)
class Subgroup:
    """
    Scoring unit whose own total is exported under score_key.

    children holds SkillItem objects for 'flat-skills' subgroups and
    SymptomCascadeItem objects for 'symptom-cascade' subgroups.
    """
    title: str
    score_key: str
    kind: str = SUBGROUP_FLAT_SKILLS
    children: Tuple[Union[SkillItem, SymptomCascadeItem], ...] = ()
    relevance: Relevance = ALWAYS


@dataclass(frozen=True)
class Group:
    """
    Top-level checklist section (assessment, final decision, treatment).

    Attributes:
        section_key: Answer namespace the section's items live in
            ('assessment', 'treatment'), None for the decision section
        score_key: Export key for the section roll-up
        kind: 'container' (sum of subgroups) or 'decision' (binary)
        decision_key: Answer key holding the decision-match flag
            (decision groups only)
    """
    title: str
    score_key: str
    kind: str = GROUP_CONTAINER
    section_key: Optional[str] = None
    subgroups: Tuple[Subgroup, ...] = ()
    decision_key: Optional[str] = None


@dataclass(frozen=True)
class Checklist:
    """
    Complete, validated checklist schema.

    Attributes:
        root_fields: Answer keys recorded outside the skill sections
            (e.g. finalDecision, decisionMatches)
    """
    name: str
    version: str
    groups: Tuple[Group, ...]
    root_fields: Tuple[str, ...] = ()

    def iter_subgroups(self, section_key: Optional[str] = None) -> Iterator[Tuple[Group, Subgroup]]:
        for group in self.groups:
            if section_key is not None and group.section_key != section_key:
                continue
            for subgroup in group.subgroups:
                yield group, subgroup

    def skill_keys(self) -> Tuple[str, ...]:
        """Every answer key scored by this checklist, in schema order."""
        keys = []
        for _, subgroup in self.iter_subgroups():
            for child in subgroup.children:
                if isinstance(child, SymptomCascadeItem):
                    keys.extend(child.step_keys)
                else:
                    keys.append(child.key)
        return tuple(keys)

    def export_keys(self) -> Tuple[str, ...]:
        """Every node-level export key in schema order (roll-ups included)."""
        keys = []
        for group in self.groups:
            for subgroup in group.subgroups:
                if subgroup.kind == SUBGROUP_SYMPTOM_CASCADE:
                    keys.extend(child.score_key for child in subgroup.children)
                keys.append(subgroup.score_key)
            keys.append(group.score_key)
        return tuple(keys)


# =============================================================================
# Diagnostics
# =============================================================================

DIAG_UNRESOLVED_VARIABLE = "unresolved_variable"
DIAG_MALFORMED_PREDICATE = "malformed_predicate"
DIAG_PREDICATE_ERROR = "predicate_error"
DIAG_INVALID_ANSWER = "invalid_answer"
DIAG_UNKNOWN_LABEL = "unknown_label"


@dataclass(frozen=True)
class Diagnostic:
    """
    Non-fatal problem found while scoring one encounter.

    Attributes:
        code: One of the DIAG_* codes above
        node: Key of the node or answer the problem was found on
        message: Human-readable explanation
    """
    code: str
    node: str
    message: str
