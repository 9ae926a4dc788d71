"""
Answer Store - Immutable, namespaced view of one encounter's answers

Responsibilities:
- Hold everything recorded for one encounter in three namespaces:
  root, assessment, treatment
- Resolve a bare variable name in the fixed order
  root -> assessment -> treatment (first match wins)
- Normalise multi-select classification values to frozensets

Design principles:
- Immutable: built once per encounter, read-only for the whole pass
- Empty strings and None mean "unanswered" and are dropped on ingest,
  so they never shadow a value in a later namespace
- "na" is an answer, not a missing value, and is kept as-is
"""

from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping, Optional, Tuple

from mentorship.utils.classifications import DOMAINS

ROOT = "root"
ASSESSMENT = "assessment"
TREATMENT = "treatment"

# Resolution order for bare variable names
RESOLUTION_ORDER = (ROOT, ASSESSMENT, TREATMENT)

# Live form / draft keys holding each nested namespace
FORM_SECTION_KEYS = {
    ASSESSMENT: ("assessment_skills", "assessmentSkills"),
    TREATMENT: ("treatment_skills", "treatmentSkills"),
}

# Classification keys whose values are sets of labels
MULTI_SELECT_KEYS = frozenset(
    key
    for domain in DOMAINS.values() if domain.multi_select
    for key in (domain.worker_key, domain.supervisor_key)
)


def _normalise_value(value: Any, multi_select: bool = False) -> Any:
    """
    Normalise one raw answer value.

    - list / tuple / set -> frozenset of non-empty strings
    - {label: bool} mapping (draft rehydration shape) -> frozenset of
      labels whose flag is truthy
    - comma-separated str on a multi-select key -> frozenset
    - str -> stripped str
    - anything else (numbers, dates) passes through
    """
    if multi_select and isinstance(value, str) and value.strip():
        value = value.split(",")
    if isinstance(value, Mapping):
        return frozenset(str(k) for k, flag in value.items() if flag)
    if isinstance(value, (list, tuple, set, frozenset)):
        return frozenset(str(v).strip() for v in value if v is not None and str(v).strip())
    if isinstance(value, str):
        return value.strip()
    return value


def _is_unanswered(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


def _freeze(values: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    frozen = {}
    for key, raw in (values or {}).items():
        value = _normalise_value(raw, multi_select=str(key) in MULTI_SELECT_KEYS)
        if _is_unanswered(value):
            continue
        frozen[str(key)] = value
    return MappingProxyType(frozen)


class AnswerStore:
    """
    Read-only answers for one encounter.

    Examples:
        >>> store = AnswerStore(
        ...     root={'finalDecision': 'treatment'},
        ...     assessment={'skill_weight': 'yes'},
        ... )
        >>> store.get('skill_weight')
        'yes'
        >>> store.resolve('finalDecision')
        ('root', 'treatment')
        >>> store.get('skill_temp') is None
        True
    """

    __slots__ = ("_namespaces",)

    def __init__(
        self,
        root: Optional[Mapping[str, Any]] = None,
        assessment: Optional[Mapping[str, Any]] = None,
        treatment: Optional[Mapping[str, Any]] = None,
    ):
        object.__setattr__(self, "_namespaces", MappingProxyType({
            ROOT: _freeze(root),
            ASSESSMENT: _freeze(assessment),
            TREATMENT: _freeze(treatment),
        }))

    def __setattr__(self, name, value):
        raise AttributeError("AnswerStore is immutable")

    @classmethod
    def from_form_data(cls, form_data: Mapping[str, Any]) -> "AnswerStore":
        """
        Build from the live form / saved draft shape.

        Args:
            form_data: {<root fields>, 'assessment_skills': {...},
                'treatment_skills': {...}}. The camelCase draft keys
                'assessmentSkills' / 'treatmentSkills' are accepted too.

        Returns:
            AnswerStore
        """
        if not isinstance(form_data, Mapping):
            raise ValueError(f"form_data must be a mapping, got {type(form_data).__name__}")

        nested_keys = {k for keys in FORM_SECTION_KEYS.values() for k in keys}
        root = {k: v for k, v in form_data.items() if k not in nested_keys}

        sections = {}
        for namespace, keys in FORM_SECTION_KEYS.items():
            merged = {}
            for key in keys:
                section = form_data.get(key)
                if isinstance(section, Mapping):
                    merged.update(section)
            sections[namespace] = merged

        return cls(root=root, assessment=sections[ASSESSMENT], treatment=sections[TREATMENT])

    @classmethod
    def from_stored(cls, data: Mapping[str, Any]) -> "AnswerStore":
        """
        Build from persisted answers in either layout: to_dict() output
        (only 'root' / 'assessment' / 'treatment' keys) or the live form
        shape older sessions were saved in.
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"Stored answers must be a mapping, got {type(data).__name__}")
        if data and set(data) <= set(RESOLUTION_ORDER):
            return cls(**data)
        return cls.from_form_data(data)

    # =========================================================================
    # Lookup
    # =========================================================================

    def resolve(self, key: str) -> Optional[Tuple[str, Any]]:
        """
        Resolve a bare variable name.

        Returns:
            (namespace, value) for the first namespace holding key, in
            RESOLUTION_ORDER, or None if no namespace holds it
        """
        for namespace in RESOLUTION_ORDER:
            values = self._namespaces[namespace]
            if key in values:
                return namespace, values[key]
        return None

    def get(self, key: str, default: Any = None) -> Any:
        resolved = self.resolve(key)
        return default if resolved is None else resolved[1]

    def lookup(self, namespace: str, key: str, default: Any = None) -> Any:
        """Read one key from one namespace, without fallback."""
        return self.namespace(namespace).get(key, default)

    def namespace(self, name: str) -> Mapping[str, Any]:
        if name not in self._namespaces:
            raise KeyError(f"Unknown answer namespace: {name}")
        return self._namespaces[name]

    def __contains__(self, key: str) -> bool:
        return self.resolve(key) is not None

    def keys(self) -> Iterator[str]:
        seen = set()
        for namespace in RESOLUTION_ORDER:
            for key in self._namespaces[namespace]:
                if key not in seen:
                    seen.add(key)
                    yield key

    # =========================================================================
    # Derivation
    # =========================================================================

    def with_answers(self, namespace: str, updates: Mapping[str, Any]) -> "AnswerStore":
        """Return a new store with updates applied to one namespace."""
        data = {name: dict(values) for name, values in self._namespaces.items()}
        if namespace not in data:
            raise KeyError(f"Unknown answer namespace: {namespace}")
        data[namespace].update(updates)
        return AnswerStore(**data)

    def without(self, keys: Iterable[str]) -> "AnswerStore":
        """Return a new store with keys removed from every namespace."""
        drop = set(keys)
        data = {
            name: {k: v for k, v in values.items() if k not in drop}
            for name, values in self._namespaces.items()
        }
        return AnswerStore(**data)

    def to_dict(self) -> dict:
        """Plain nested dict; frozensets become sorted lists (JSON-safe)."""
        out = {}
        for name, values in self._namespaces.items():
            out[name] = {
                k: sorted(v) if isinstance(v, frozenset) else v
                for k, v in values.items()
            }
        return out

    def __eq__(self, other) -> bool:
        if not isinstance(other, AnswerStore):
            return NotImplemented
        return all(
            dict(self._namespaces[n]) == dict(other._namespaces[n])
            for n in RESOLUTION_ORDER
        )

    def __repr__(self) -> str:
        counts = ", ".join(f"{n}={len(self._namespaces[n])}" for n in RESOLUTION_ORDER)
        return f"AnswerStore({counts})"
