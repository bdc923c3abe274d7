# File: studyloop_app/modules/study/routes/api.py
"""JSON endpoints of the study module, mounted under ``/study``."""

from flask import jsonify, request
from flask_login import login_required

from studyloop_app.extensions import csrf_protect

from .. import blueprint
from ..config import StudyConfig
from ..exceptions import (
    EmptyDeckError,
    StudyNotFoundError,
    StudyStorageError,
    StudyValidationError,
    UnauthorizedError,
)
from ..interface import StudyInterface

_STATUS_BY_CODE = {
    error.code: error.status_code
    for error in (UnauthorizedError, StudyNotFoundError, EmptyDeckError, StudyValidationError, StudyStorageError)
}


def _respond(result, success_status=200):
    if result.get('success'):
        return jsonify(result), success_status
    return jsonify(result), _STATUS_BY_CODE.get(result.get('code'), 400)


def _json_body():
    return request.get_json(silent=True) or {}


@blueprint.route('/api/sessions', methods=['POST'])
@login_required
@csrf_protect.exempt
def api_start_session():
    """Start (or resume) a study session. Body: ``{deckId, mode}``."""
    data = _json_body()
    result = StudyInterface.start_session(data.get('deckId'), data.get('mode', StudyConfig.DEFAULT_MODE))
    status = 200 if result.get('resumed') else 201
    return _respond(result, status)


@blueprint.route('/api/sessions', methods=['GET'])
@login_required
def api_study_history():
    return _respond(StudyInterface.get_study_history(request.args.get('limit')))


@blueprint.route('/api/sessions/<int:session_id>/reviews', methods=['POST'])
@login_required
@csrf_protect.exempt
def api_review_card(session_id):
    """Persist one rating. Body: ``{cardId, deckId, isCorrect}``."""
    data = _json_body()
    result = StudyInterface.review_card(session_id, data.get('cardId'), data.get('deckId'), data.get('isCorrect'))
    return _respond(result)


@blueprint.route('/api/sessions/<int:session_id>/complete', methods=['POST'])
@login_required
@csrf_protect.exempt
def api_complete_session(session_id):
    data = _json_body()
    return _respond(StudyInterface.complete_session(session_id, data.get('deckId')))


@blueprint.route('/api/decks/<int:deck_id>/progress', methods=['GET'])
@login_required
def api_deck_progress(deck_id):
    return _respond(StudyInterface.get_deck_progress(deck_id))
