"""
Flask Web Application for IMNCI Mentorship Scoring

Thin HTTP surface over the scoring engine: live form submissions,
bulk-import rows and persisted session read-back all go through the
same ScoringEngine instance.

Configuration (override with MENTORSHIP_-prefixed environment variables,
e.g. MENTORSHIP_OUTPUT_DIR=/var/lib/mentorship):
    CHECKLIST_PATH: checklist JSON (default: bundled IMNCI checklist)
    OUTPUT_DIR: directory for persisted session payloads
"""

from flask import Flask, jsonify, request
import logging

from mentorship.core.answer_store import ASSESSMENT, TREATMENT, AnswerStore
from mentorship.core.checklist_loader import DEFAULT_CHECKLIST_PATH, load_checklist
from mentorship.core.completeness import find_incomplete_skills
from mentorship.core.row_mapper import answers_from_row
from mentorship.core.scoring_engine import ScoringEngine
from mentorship.persistence import ScorePayloadStore
from mentorship.results import ScoringDiagnosticsError
from mentorship.utils.display_helpers import payload_needs_rescore

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    'CHECKLIST_PATH': str(DEFAULT_CHECKLIST_PATH),
    'OUTPUT_DIR': 'outputs/sessions',
}


def create_app(config=None):
    """
    Build the Flask app.

    Args:
        config: Optional overrides applied after defaults and environment

    Returns:
        Flask
    """
    app = Flask(__name__)
    app.config.update(DEFAULT_CONFIG)
    app.config.from_prefixed_env("MENTORSHIP")
    if config:
        app.config.update(config)

    # Checklist is validated once at startup; a broken checklist stops the app
    checklist = load_checklist(app.config['CHECKLIST_PATH'])
    app.extensions['mentorship_engine'] = ScoringEngine(checklist)
    app.extensions['mentorship_store'] = ScorePayloadStore(app.config['OUTPUT_DIR'])

    _register_routes(app)
    logger.info(f"Mentorship scoring app ready (sessions in {app.config['OUTPUT_DIR']})")
    return app


def _error(message, status):
    return jsonify({
        'success': False,
        'error': message
    }), status


def _request_json(expected_type):
    data = request.get_json(silent=True)
    if not isinstance(data, expected_type):
        raise ValueError(f"Request body must be a JSON {expected_type.__name__}")
    return data


def _score_response(engine, answers):
    # One pass: completeness reuses the scoring pass's evaluator
    evaluator = engine.new_evaluator(answers)
    result = engine.score_pass(evaluator)
    return {
        'scores': result.to_payload(),
        'diagnostics': [
            {'code': d.code, 'node': d.node, 'message': d.message}
            for d in result.diagnostics
        ],
        'skipped_nodes': list(result.skipped_nodes),
        'incomplete': {
            section: find_incomplete_skills(engine.checklist, answers, section, evaluator=evaluator)
            for section in (ASSESSMENT, TREATMENT)
        },
    }


def _register_routes(app):
    engine = app.extensions['mentorship_engine']
    store = app.extensions['mentorship_store']

    @app.route('/api/checklist', methods=['GET'])
    def get_checklist():
        """Checklist summary: groups, subgroups and score keys"""
        checklist = engine.checklist
        return jsonify({
            'success': True,
            'name': checklist.name,
            'version': checklist.version,
            'groups': [
                {
                    'title': group.title,
                    'scoreKey': group.score_key,
                    'kind': group.kind,
                    'subgroups': [
                        {'title': sub.title, 'scoreKey': sub.score_key, 'kind': sub.kind}
                        for sub in group.subgroups
                    ],
                }
                for group in checklist.groups
            ],
        })

    @app.route('/api/score', methods=['POST'])
    def score_form():
        """Score one live form submission"""
        try:
            answers = AnswerStore.from_form_data(_request_json(dict))
            body = _score_response(engine, answers)
            return jsonify({'success': True, **body})

        except ValueError as e:
            return _error(str(e), 400)
        except Exception as e:
            logger.error(f"Error scoring form: {e}")
            return _error(str(e), 500)

    @app.route('/api/score/bulk', methods=['POST'])
    def score_bulk():
        """Score a list of import rows; rows with any problem are rejected"""
        try:
            rows = _request_json(list)
        except ValueError as e:
            return _error(str(e), 400)

        results = []
        for index, row in enumerate(rows):
            try:
                answers, row_problems = answers_from_row(row)
                if row_problems:
                    raise ScoringDiagnosticsError(tuple(row_problems))
                result = engine.score(answers)
                result.raise_for_diagnostics()
                results.append({'row': index, 'success': True, 'scores': result.to_payload()})

            except ScoringDiagnosticsError as e:
                results.append({
                    'row': index,
                    'success': False,
                    'errors': [f"{d.code} at {d.node}: {d.message}" for d in e.diagnostics],
                })
            except ValueError as e:
                results.append({'row': index, 'success': False, 'errors': [str(e)]})

        accepted = sum(1 for r in results if r['success'])
        logger.info(f"Bulk import: {accepted}/{len(results)} rows accepted")
        return jsonify({'success': True, 'accepted': accepted, 'results': results})

    @app.route('/api/sessions/<session_id>', methods=['POST'])
    def save_session(session_id):
        """Score a form submission and persist the payload"""
        try:
            answers = AnswerStore.from_form_data(_request_json(dict))
            body = _score_response(engine, answers)
            path = store.save(session_id, body['scores'], answers.to_dict())
            logger.info(f"Session {session_id} scored and saved to {path}")
            return jsonify({'success': True, 'session_id': session_id, **body})

        except (ValueError, FileExistsError) as e:
            return _error(str(e), 400)
        except Exception as e:
            logger.error(f"Error saving session {session_id}: {e}")
            return _error(str(e), 500)

    @app.route('/api/sessions/<session_id>', methods=['GET'])
    def get_session(session_id):
        """
        Read a persisted payload back.

        Legacy payloads are rescored from their stored answers. A legacy
        record saved without answers is returned as stored.
        """
        try:
            record = store.load(session_id)
            if record is None:
                return _error(f"Session not found: {session_id}", 404)

            scores = record['scores']
            stored_answers = record.get('answers')
            rescored = bool(stored_answers) and payload_needs_rescore(scores)
            if rescored:
                scores = engine.score(AnswerStore.from_stored(stored_answers)).to_payload()
            elif payload_needs_rescore(scores):
                logger.warning(f"Session {session_id} has a legacy payload but no answers, returning it as stored")

            return jsonify({
                'success': True,
                'session_id': session_id,
                'scores': scores,
                'rescored': rescored,
            })

        except ValueError as e:
            return _error(str(e), 400)
        except Exception as e:
            logger.error(f"Error loading session {session_id}: {e}")
            return _error(str(e), 500)


if __name__ == '__main__':
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    create_app().run(debug=False, host='0.0.0.0', port=5000)
