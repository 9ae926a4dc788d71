"""
Test Score Payload Store - append-only session files

Run with: pytest tests/test_persistence.py
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from mentorship.core.answer_store import AnswerStore
from mentorship.persistence import ScorePayloadStore


def test_save_and_load_unmodified(tmp_path, engine):
    store = ScorePayloadStore(str(tmp_path / "sessions"))
    answers = AnswerStore(root={'decisionMatches': 'yes'}, assessment={'skill_weight': 'yes'})
    payload = engine.score(answers).to_payload()

    path = store.save('abc123', payload, answers.to_dict())

    assert os.path.exists(path)
    assert store.session_exists('abc123')
    assert store.load_payload('abc123') == payload
    record = store.load('abc123')
    assert AnswerStore(**record['answers']) == answers

    print("✓ Save/load test passed")


def test_refuses_overwrite(tmp_path):
    store = ScorePayloadStore(str(tmp_path))
    store.save('s1', {'overallScore_score': 1, 'overallScore_maxScore': 1})

    with pytest.raises(FileExistsError):
        store.save('s1', {'overallScore_score': 0, 'overallScore_maxScore': 1})

    assert store.load_payload('s1') == {'overallScore_score': 1, 'overallScore_maxScore': 1}


def test_missing_session(tmp_path):
    store = ScorePayloadStore(str(tmp_path))
    assert store.load('nope') is None
    assert store.load_payload('nope') is None
    assert not store.session_exists('nope')


def test_rejects_path_like_ids(tmp_path):
    store = ScorePayloadStore(str(tmp_path))
    with pytest.raises(ValueError):
        store.save('../escape', {})


def test_iter_payloads(tmp_path):
    store = ScorePayloadStore(str(tmp_path))
    store.save('a', {'vitalSigns_score': 1, 'vitalSigns_maxScore': 2})
    store.save('b', {'vitalSigns_score': 2, 'vitalSigns_maxScore': 2})

    assert [p['vitalSigns_score'] for p in store.iter_payloads()] == [1, 2]


if __name__ == '__main__':
    sys.exit(pytest.main([__file__, '-v']))
