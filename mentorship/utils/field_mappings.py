"""
Field Mappings - Standardize imported answer values to canonical values

Responsibilities:
- Map spreadsheet variations of yes/no/na and final decision values
- Match classification labels case- and whitespace-insensitively
  against the closed domain enumerations
- Report values that cannot be standardized instead of guessing

Design principles:
- Case-insensitive, whitespace-insensitive matching
- Return None when no mapping exists (caller decides: reject or skip)
- Single source of truth for value standardization
"""

import re
from typing import Dict, Iterable, List, Optional, Tuple

from mentorship.utils.classifications import DOMAINS

YES = "yes"
NO = "no"
NA = "na"

SKILL_ANSWER_VALUES = (YES, NO, NA)

REFERRAL = "referral"
TREATMENT = "treatment"

FINAL_DECISION_VALUES = (REFERRAL, TREATMENT)

# Extra spellings seen in imported sheets
YES_NO_NA_MAP = {
    'yes': YES,
    'y': YES,
    '1': YES,
    'true': YES,
    'no': NO,
    'n': NO,
    '0': NO,
    'false': NO,
    'na': NA,
    'n/a': NA,
    'not applicable': NA,
}

FINAL_DECISION_MAP = {
    'referral': REFERRAL,
    'refer': REFERRAL,
    'referred': REFERRAL,
    'treatment': TREATMENT,
    'treat': TREATMENT,
    'treated': TREATMENT,
}

_WHITESPACE = re.compile(r"\s+")


def clean_key(value) -> str:
    """Lowercase, trim and collapse internal whitespace."""
    return _WHITESPACE.sub(" ", str(value)).strip().lower()


def create_standardization_map(valid_values: Iterable[str]) -> Dict[str, str]:
    """Map cleaned spelling -> canonical value."""
    return {clean_key(value): value for value in valid_values}


CLASSIFICATION_MAPS: Dict[str, Dict[str, str]] = {
    name: create_standardization_map(domain.labels)
    for name, domain in DOMAINS.items()
}


def standardize_yes_no_na(value) -> Optional[str]:
    """
    Standardize a binary skill answer.

    Returns:
        'yes' | 'no' | 'na', or None if the value is empty or unrecognized

    Examples:
        >>> standardize_yes_no_na(' Yes ')
        'yes'
        >>> standardize_yes_no_na(0)
        'no'
        >>> standardize_yes_no_na('maybe') is None
        True
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return YES if value else NO
    cleaned = clean_key(value)
    if not cleaned:
        return None
    return YES_NO_NA_MAP.get(cleaned)


def standardize_final_decision(value) -> Optional[str]:
    """Standardize a final decision value to 'referral' | 'treatment'."""
    if value is None:
        return None
    cleaned = clean_key(value)
    if not cleaned:
        return None
    return FINAL_DECISION_MAP.get(cleaned)


def standardize_label(domain_name: str, value) -> Optional[str]:
    """
    Match one classification label against a domain's closed set.

    Returns:
        Canonical label, or None if the value matches no label
    """
    if value is None:
        return None
    return CLASSIFICATION_MAPS[domain_name].get(clean_key(value))


def standardize_labels(domain_name: str, values) -> Tuple[List[str], List[str]]:
    """
    Standardize a multi-select classification value.

    Args:
        domain_name: Classification domain name
        values: Comma-separated string, or an iterable of labels

    Returns:
        (canonical labels in input order without duplicates, rejected raw values)
    """
    if values is None:
        return [], []
    if isinstance(values, str):
        raw_items = [part for part in values.split(",")]
    else:
        raw_items = list(values)

    accepted: List[str] = []
    rejected: List[str] = []
    for raw in raw_items:
        if raw is None or not str(raw).strip():
            continue
        label = standardize_label(domain_name, raw)
        if label is None:
            rejected.append(str(raw).strip())
        elif label not in accepted:
            accepted.append(label)
    return accepted, rejected
