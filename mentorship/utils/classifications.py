"""
Classifications - Closed label enumerations for IMNCI disease domains

Responsibilities:
- Single source of truth for classification labels per domain
- Record which domains are multi-select (co-occurring classifications)
- Record where each domain's worker/supervisor answers live
- Flag the severe labels that should trigger a referral

Design principles:
- Pure lookup tables (no state)
- Labels are a closed set; anything else is standardised or rejected
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, Tuple


@dataclass(frozen=True)
class ClassificationDomain:
    """
    One disease-classification domain.

    Attributes:
        name: Domain name used in answer keys (e.g. 'fever')
        labels: Closed, ordered label set
        multi_select: True if several labels may co-occur
        correctness_key: Assessment answer recording whether the worker
            classified correctly ('yes' means trust the worker)
        severe_labels: Labels that mean the child needs urgent referral
    """
    name: str
    labels: Tuple[str, ...]
    multi_select: bool
    correctness_key: str
    severe_labels: FrozenSet[str] = frozenset()

    @property
    def worker_key(self) -> str:
        return f"worker_{self.name}_classification"

    @property
    def supervisor_key(self) -> str:
        return f"supervisor_correct_{self.name}_classification"


# Cough / difficult breathing
SEVERE_PNEUMONIA = "severe pneumonia or very severe disease"
PNEUMONIA = "pneumonia"
COUGH_OR_COLD = "cough or cold"

# Diarrhea
SEVERE_DEHYDRATION = "severe dehydration"
SOME_DEHYDRATION = "some dehydration"
NO_DEHYDRATION = "no dehydration"
SEVERE_PERSISTENT_DIARRHEA = "severe persistent diarrhea"
PERSISTENT_DIARRHEA = "persistent diarrhea"
DYSENTERY = "dysentery"

# Fever
VERY_SEVERE_FEBRILE_DISEASE = "very severe febrile disease"
MALARIA = "malaria"
FEVER_NO_MALARIA = "fever no malaria"
SEVERE_COMPLICATED_MEASLES = "severe complicated measles"
MEASLES_EYE_MOUTH_COMPLICATIONS = "measles with eye or mouth complications"
MEASLES = "measles"

# Ear problem
MASTOIDITIS = "mastoiditis"
ACUTE_EAR_INFECTION = "acute ear infection"
CHRONIC_EAR_INFECTION = "chronic ear infection"
NO_EAR_INFECTION = "no ear infection"

# Acute malnutrition
COMPLICATED_SAM = "complicated severe acute malnutrition"
UNCOMPLICATED_SAM = "uncomplicated severe acute malnutrition"
MODERATE_ACUTE_MALNUTRITION = "moderate acute malnutrition"
NO_ACUTE_MALNUTRITION = "no acute malnutrition"

# Anemia
SEVERE_ANEMIA = "severe anemia"
ANEMIA = "anemia"
NO_ANEMIA = "no anemia"


COUGH = ClassificationDomain(
    name="cough",
    labels=(SEVERE_PNEUMONIA, PNEUMONIA, COUGH_OR_COLD),
    multi_select=False,
    correctness_key="skill_classify_cough",
    severe_labels=frozenset({SEVERE_PNEUMONIA}),
)

DIARRHEA = ClassificationDomain(
    name="diarrhea",
    labels=(
        SEVERE_DEHYDRATION, SOME_DEHYDRATION, NO_DEHYDRATION,
        SEVERE_PERSISTENT_DIARRHEA, PERSISTENT_DIARRHEA, DYSENTERY,
    ),
    multi_select=True,
    correctness_key="skill_classify_diarrhea",
    severe_labels=frozenset({SEVERE_DEHYDRATION, SEVERE_PERSISTENT_DIARRHEA}),
)

FEVER = ClassificationDomain(
    name="fever",
    labels=(
        VERY_SEVERE_FEBRILE_DISEASE, MALARIA, FEVER_NO_MALARIA,
        SEVERE_COMPLICATED_MEASLES, MEASLES_EYE_MOUTH_COMPLICATIONS, MEASLES,
    ),
    multi_select=True,
    correctness_key="skill_classify_fever",
    severe_labels=frozenset({VERY_SEVERE_FEBRILE_DISEASE, SEVERE_COMPLICATED_MEASLES}),
)

EAR = ClassificationDomain(
    name="ear",
    labels=(MASTOIDITIS, ACUTE_EAR_INFECTION, CHRONIC_EAR_INFECTION, NO_EAR_INFECTION),
    multi_select=False,
    correctness_key="skill_classify_ear",
    severe_labels=frozenset({MASTOIDITIS}),
)

MALNUTRITION = ClassificationDomain(
    name="malnutrition",
    labels=(COMPLICATED_SAM, UNCOMPLICATED_SAM, MODERATE_ACUTE_MALNUTRITION, NO_ACUTE_MALNUTRITION),
    multi_select=False,
    correctness_key="skill_mal_classify",
    severe_labels=frozenset({COMPLICATED_SAM}),
)

ANEMIA_DOMAIN = ClassificationDomain(
    name="anemia",
    labels=(SEVERE_ANEMIA, ANEMIA, NO_ANEMIA),
    multi_select=False,
    correctness_key="skill_anemia_classify",
    severe_labels=frozenset({SEVERE_ANEMIA}),
)


DOMAINS: Dict[str, ClassificationDomain] = {
    domain.name: domain
    for domain in (COUGH, DIARRHEA, FEVER, EAR, MALNUTRITION, ANEMIA_DOMAIN)
}

# Labels that keep the diarrhea treatment subgroup relevant
DIARRHEA_TREATMENT_LABELS = frozenset({
    SEVERE_DEHYDRATION, SOME_DEHYDRATION, NO_DEHYDRATION,
    SEVERE_PERSISTENT_DIARRHEA, PERSISTENT_DIARRHEA, DYSENTERY,
})

EAR_TREATMENT_LABELS = frozenset({MASTOIDITIS, ACUTE_EAR_INFECTION, CHRONIC_EAR_INFECTION})

# Malnutrition managed at outpatient level (counted as a malnutrition case)
OUTPATIENT_MALNUTRITION_LABELS = frozenset({UNCOMPLICATED_SAM, MODERATE_ACUTE_MALNUTRITION})


def get_domain(name: str) -> ClassificationDomain:
    """
    Look up a domain by name.

    Raises:
        KeyError: If the domain is not one of DOMAINS
    """
    if name not in DOMAINS:
        raise KeyError(f"Unknown classification domain: {name}")
    return DOMAINS[name]


def classification_keys() -> FrozenSet[str]:
    """Every worker/supervisor classification answer key."""
    keys = set()
    for domain in DOMAINS.values():
        keys.add(domain.worker_key)
        keys.add(domain.supervisor_key)
    return frozenset(keys)


def domain_for_key(key: str):
    """Return the domain a classification answer key belongs to, or None."""
    for domain in DOMAINS.values():
        if key in (domain.worker_key, domain.supervisor_key):
            return domain
    return None
