"""
Shared fixtures for the mentorship scoring tests.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from mentorship.core.checklist_loader import load_checklist
from mentorship.core.scoring_engine import ScoringEngine


@pytest.fixture(scope="session")
def checklist():
    """Bundled IMNCI checklist (loaded and validated once)."""
    return load_checklist()


@pytest.fixture(scope="session")
def engine(checklist):
    return ScoringEngine(checklist)
