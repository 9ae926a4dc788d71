"""
Row Mapper - Turn one bulk-import spreadsheet row into an AnswerStore

Responsibilities:
- Route prefixed columns to their namespace:
  'as_<key>' -> assessment, 'ts_<key>' -> treatment, anything else -> root
- Standardize yes/no/na answers, the final decision and classification
  labels using the shared field mappings
- Reject values that cannot be standardized, with a diagnostic, instead
  of scoring them as something they are not

Design principles:
- Pure: no I/O, no scoring; the result goes through the same
  ScoringEngine as live form submissions
- Empty cells are unanswered and are dropped
- Metadata columns (facility, dates, notes) pass through untouched
"""

import logging
from typing import Any, Dict, List, Mapping, Tuple

from mentorship.contracts import DIAG_INVALID_ANSWER, DIAG_UNKNOWN_LABEL, Diagnostic
from mentorship.core.answer_store import ASSESSMENT, ROOT, TREATMENT, AnswerStore
from mentorship.core.predicates import DECISION_MATCHES_KEY, FINAL_DECISION_KEY
from mentorship.utils.classifications import domain_for_key
from mentorship.utils.field_mappings import (
    standardize_final_decision,
    standardize_label,
    standardize_labels,
    standardize_yes_no_na,
)

logger = logging.getLogger(__name__)

# Column prefix -> answer namespace
ROW_PREFIXES = {
    "as_": ASSESSMENT,
    "ts_": TREATMENT,
}

# Columns every import row must fill in
REQUIRED_ROW_FIELDS = (FINAL_DECISION_KEY, DECISION_MATCHES_KEY)


def split_row_key(column: str) -> Tuple[str, str]:
    """
    Route a column name to (namespace, answer key).

    Examples:
        >>> split_row_key('as_skill_weight')
        ('assessment', 'skill_weight')
        >>> split_row_key('finalDecision')
        ('root', 'finalDecision')
    """
    for prefix, namespace in ROW_PREFIXES.items():
        if column.startswith(prefix):
            return namespace, column[len(prefix):]
    return ROOT, column


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def answers_from_row(row: Mapping[str, Any]) -> Tuple[AnswerStore, List[Diagnostic]]:
    """
    Map one import row to an AnswerStore.

    Args:
        row: Flat column -> cell value mapping (one spreadsheet row)

    Returns:
        (AnswerStore, diagnostics). Cells that could not be standardized
        are left out of the store and listed in diagnostics.
    """
    if not isinstance(row, Mapping):
        raise ValueError(f"Import row must be a mapping, got {type(row).__name__}")

    sections: Dict[str, Dict[str, Any]] = {ROOT: {}, ASSESSMENT: {}, TREATMENT: {}}
    diagnostics: List[Diagnostic] = []

    for column, raw in row.items():
        if _is_blank(raw):
            continue

        namespace, key = split_row_key(str(column).strip())
        value, problem = _standardize_cell(namespace, key, raw)

        if problem is not None:
            diagnostics.append(Diagnostic(code=problem[0], node=str(column), message=problem[1]))
            continue
        if value is not None:
            sections[namespace][key] = value

    for field in REQUIRED_ROW_FIELDS:
        if field not in sections[ROOT]:
            diagnostics.append(Diagnostic(
                code=DIAG_INVALID_ANSWER, node=field,
                message=f"Required column '{field}' is missing or empty",
            ))

    if diagnostics:
        logger.warning(f"Import row mapped with {len(diagnostics)} rejected cell(s)")

    store = AnswerStore(root=sections[ROOT], assessment=sections[ASSESSMENT], treatment=sections[TREATMENT])
    return store, diagnostics


def _standardize_cell(namespace: str, key: str, raw: Any):
    """
    Standardize one cell.

    Returns:
        (value, None) on success, (None, (code, message)) on rejection
    """
    if namespace == ROOT:
        if key == FINAL_DECISION_KEY:
            value = standardize_final_decision(raw)
            if value is None:
                return None, (DIAG_INVALID_ANSWER, f"Expected referral/treatment, got {raw!r}")
            return value, None
        if key == DECISION_MATCHES_KEY:
            return _yes_no_na(raw)
        return (raw.strip() if isinstance(raw, str) else raw), None

    domain = domain_for_key(key)
    if domain is not None:
        return _classification(domain, raw)

    return _yes_no_na(raw)


def _yes_no_na(raw: Any):
    value = standardize_yes_no_na(raw)
    if value is None:
        return None, (DIAG_INVALID_ANSWER, f"Expected yes/no/na, got {raw!r}")
    return value, None


def _classification(domain, raw: Any):
    if domain.multi_select:
        accepted, rejected = standardize_labels(domain.name, raw)
        if rejected:
            return None, (
                DIAG_UNKNOWN_LABEL,
                f"Unknown {domain.name} classification(s): {', '.join(rejected)}",
            )
        return accepted, None

    label = standardize_label(domain.name, raw)
    if label is None:
        return None, (DIAG_UNKNOWN_LABEL, f"'{raw}' is not a {domain.name} classification")
    return label, None
