"""
Checklist Loader - Build and validate the checklist tree from JSON

Responsibilities:
- Load the authored checklist definition (JSON)
- Build the frozen Group -> Subgroup -> item tree
- Bind {"computed": name} relevance to the named predicate registry
- Validate eagerly and report every problem at once

Design principles:
- Fail fast: a broken checklist never reaches a scoring pass
- Collect all errors, raise once
- The built tree is immutable and safe to share between passes

Relevance forms accepted in JSON:
    null / absent                         -> Always
    {"variable": "x", "equals": "yes"}    -> Equals
    {"computed": "treating_malaria"}      -> Computed
"""

import json
import logging
from pathlib import Path
from typing import FrozenSet, List, Optional

from mentorship.contracts import (
    ALWAYS,
    GROUP_CONTAINER,
    GROUP_DECISION,
    SUBGROUP_FLAT_SKILLS,
    SUBGROUP_SYMPTOM_CASCADE,
    Checklist,
    Computed,
    Equals,
    Group,
    SkillItem,
    Subgroup,
    SymptomCascadeItem,
)
from mentorship.core.answer_store import ASSESSMENT, TREATMENT
from mentorship.core.kpi_extractor import KPI_KEYS
from mentorship.core.predicates import PREDICATES
from mentorship.results import OVERALL_SCORE_KEY
from mentorship.utils.classifications import DOMAINS, classification_keys

logger = logging.getLogger(__name__)

DEFAULT_CHECKLIST_PATH = Path(__file__).resolve().parent.parent / "data" / "imnci_checklist.json"

SECTION_KEYS = (ASSESSMENT, TREATMENT)


class ChecklistValidationError(ValueError):
    """Checklist definition is invalid. errors lists every problem found."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("Checklist validation failed:\n  - " + "\n  - ".join(self.errors))


def load_checklist(path: Optional[str] = None) -> Checklist:
    """
    Load and validate a checklist JSON file.

    Args:
        path: Path to checklist JSON (default: bundled IMNCI checklist)

    Returns:
        Checklist

    Raises:
        FileNotFoundError: If the file doesn't exist
        ChecklistValidationError: If the definition is invalid
    """
    checklist_path = Path(path) if path else DEFAULT_CHECKLIST_PATH

    if not checklist_path.exists():
        raise FileNotFoundError(f"Checklist not found: {checklist_path}")

    with open(checklist_path, 'r', encoding='utf-8') as f:
        definition = json.load(f)

    checklist = build_checklist(definition)
    logger.info(
        f"Checklist '{checklist.name}' v{checklist.version} loaded from {checklist_path.name}: "
        f"{len(checklist.groups)} groups, {len(checklist.skill_keys())} scored items"
    )
    return checklist


def build_checklist(definition: dict) -> Checklist:
    """
    Build a checklist from an in-memory definition.

    Raises:
        ChecklistValidationError: If the definition is invalid
    """
    if not isinstance(definition, dict):
        raise ChecklistValidationError([f"Checklist definition must be an object, got {type(definition).__name__}"])

    builder = _ChecklistBuilder()
    checklist = builder.build(definition)

    if builder.errors:
        raise ChecklistValidationError(builder.errors)

    return checklist


def checklist_variables(checklist: Checklist) -> FrozenSet[str]:
    """
    Every answer key the checklist can legitimately refer to.

    Includes scored item keys, supervisor confirmation keys, root fields
    and every domain's classification and correctness keys.
    """
    keys = set(checklist.skill_keys())
    keys.update(checklist.root_fields)
    keys.update(classification_keys())
    keys.update(domain.correctness_key for domain in DOMAINS.values())
    for group in checklist.groups:
        if group.decision_key:
            keys.add(group.decision_key)
        for subgroup in group.subgroups:
            for child in subgroup.children:
                if isinstance(child, SymptomCascadeItem):
                    keys.add(child.confirm_key)
    return frozenset(keys)


class _ChecklistBuilder:
    """Single-use builder that accumulates validation errors."""

    def __init__(self):
        self.errors: List[str] = []
        self._export_keys: List[str] = []
        self._item_keys: List[str] = []
        self._equals: List[tuple] = []

    def build(self, definition: dict) -> Optional[Checklist]:
        name = definition.get("name") or "checklist"
        version = str(definition.get("version", "0"))
        root_fields = tuple(definition.get("rootFields", ()))

        raw_groups = definition.get("groups")
        if not raw_groups:
            self.errors.append("Missing or empty 'groups' in checklist")
            raw_groups = []

        groups = []
        for i, raw_group in enumerate(raw_groups):
            group = self._build_group(raw_group, i)
            if group is not None:
                groups.append(group)

        checklist = Checklist(name=name, version=version, groups=tuple(groups), root_fields=root_fields)

        self._check_export_keys()
        self._check_item_keys()
        self._check_equals_variables(checklist)

        return checklist

    # =========================================================================
    # Node builders
    # =========================================================================

    def _build_group(self, raw: dict, index: int) -> Optional[Group]:
        where = f"group[{index}]"
        score_key = raw.get("scoreKey")
        if not score_key:
            self.errors.append(f"{where} missing 'scoreKey'")
            return None
        self._export_keys.append(score_key)

        title = raw.get("title", score_key)
        kind = raw.get("kind", GROUP_CONTAINER)

        if kind == GROUP_DECISION:
            decision_key = raw.get("decisionKey")
            if not decision_key:
                self.errors.append(f"Decision group '{score_key}' missing 'decisionKey'")
            if raw.get("subgroups"):
                self.errors.append(f"Decision group '{score_key}' cannot have subgroups")
            return Group(title=title, score_key=score_key, kind=kind, decision_key=decision_key)

        if kind != GROUP_CONTAINER:
            self.errors.append(f"Group '{score_key}' has unknown kind '{kind}'")
            return None

        section_key = raw.get("sectionKey")
        if section_key not in SECTION_KEYS:
            self.errors.append(
                f"Group '{score_key}' has sectionKey '{section_key}', expected one of {list(SECTION_KEYS)}"
            )

        subgroups = []
        for j, raw_subgroup in enumerate(raw.get("subgroups", [])):
            subgroup = self._build_subgroup(raw_subgroup, f"{score_key}.subgroups[{j}]")
            if subgroup is not None:
                subgroups.append(subgroup)

        return Group(
            title=title,
            score_key=score_key,
            kind=kind,
            section_key=section_key,
            subgroups=tuple(subgroups),
        )

    def _build_subgroup(self, raw: dict, where: str) -> Optional[Subgroup]:
        score_key = raw.get("scoreKey")
        if not score_key:
            self.errors.append(f"{where} missing 'scoreKey'")
            return None
        self._export_keys.append(score_key)

        kind = raw.get("kind", SUBGROUP_FLAT_SKILLS)
        relevance = self._build_relevance(raw.get("relevance"), score_key)

        if kind == SUBGROUP_FLAT_SKILLS:
            children = []
            for k, raw_skill in enumerate(raw.get("skills", [])):
                skill = self._build_skill(raw_skill, f"{score_key}.skills[{k}]")
                if skill is not None:
                    children.append(skill)
        elif kind == SUBGROUP_SYMPTOM_CASCADE:
            children = []
            for k, raw_symptom in enumerate(raw.get("symptoms", [])):
                symptom = self._build_symptom(raw_symptom, f"{score_key}.symptoms[{k}]")
                if symptom is not None:
                    children.append(symptom)
        else:
            self.errors.append(f"Subgroup '{score_key}' has unknown kind '{kind}'")
            return None

        if not children:
            self.errors.append(f"Subgroup '{score_key}' has no items")

        return Subgroup(
            title=raw.get("title", score_key),
            score_key=score_key,
            kind=kind,
            children=tuple(children),
            relevance=relevance,
        )

    def _build_skill(self, raw: dict, where: str) -> Optional[SkillItem]:
        key = raw.get("key")
        if not key:
            self.errors.append(f"{where} missing 'key'")
            return None
        self._item_keys.append(key)
        return SkillItem(
            key=key,
            label=raw.get("label", key),
            relevance=self._build_relevance(raw.get("relevance"), key),
        )

    def _build_symptom(self, raw: dict, where: str) -> Optional[SymptomCascadeItem]:
        required = ("symptom", "scoreKey", "askKey", "confirmKey", "checkKey", "classifyKey")
        missing = [field for field in required if not raw.get(field)]
        if missing:
            self.errors.append(f"{where} missing {missing}")
            return None

        self._export_keys.append(raw["scoreKey"])
        self._item_keys.extend([raw["askKey"], raw["checkKey"], raw["classifyKey"]])

        return SymptomCascadeItem(
            symptom=raw["symptom"],
            label=raw.get("label", raw["symptom"]),
            score_key=raw["scoreKey"],
            ask_key=raw["askKey"],
            confirm_key=raw["confirmKey"],
            check_key=raw["checkKey"],
            classify_key=raw["classifyKey"],
        )

    def _build_relevance(self, raw, node_id: str):
        if raw is None:
            return ALWAYS

        if not isinstance(raw, dict):
            self.errors.append(f"'{node_id}' relevance must be an object or null, got {raw!r}")
            return ALWAYS

        if "computed" in raw:
            name = raw["computed"]
            if name not in PREDICATES:
                self.errors.append(f"'{node_id}' references undefined computed predicate '{name}'")
                return ALWAYS
            return Computed(name=name, fn=PREDICATES[name])

        if "variable" in raw and "equals" in raw:
            variable, value = raw["variable"], raw["equals"]
            if not isinstance(variable, str) or not variable or not isinstance(value, str):
                self.errors.append(f"'{node_id}' has malformed equals relevance {raw!r}")
                return ALWAYS
            self._equals.append((node_id, variable))
            return Equals(variable=variable, value=value)

        self.errors.append(f"'{node_id}' has unsupported relevance {raw!r}")
        return ALWAYS

    # =========================================================================
    # Cross-node checks
    # =========================================================================

    def _check_export_keys(self):
        reserved = {OVERALL_SCORE_KEY, *KPI_KEYS}
        seen = set()
        for key in self._export_keys:
            if key in seen:
                self.errors.append(f"Duplicate scoreKey '{key}'")
            elif key in reserved:
                self.errors.append(f"scoreKey '{key}' collides with a reserved KPI/overall key")
            seen.add(key)

    def _check_item_keys(self):
        seen = set()
        for key in self._item_keys:
            if key in seen:
                self.errors.append(f"Duplicate item key '{key}'")
            seen.add(key)

    def _check_equals_variables(self, checklist: Checklist):
        known = checklist_variables(checklist)
        for node_id, variable in self._equals:
            if variable not in known:
                self.errors.append(f"'{node_id}' relevance references unknown variable '{variable}'")
