"""
Flask web application for the double elimination bracket engine.

Every request carries the whole state (entrants plus results or the
current match list); the server keeps nothing between requests.
"""
import os
import logging
from flask import Flask, request, jsonify
from werkzeug.exceptions import RequestEntityTooLarge
from brackets.models import Entrant, Slot
from brackets.blueprint import build_blueprint, slot_sort_key
from brackets.evaluator import evaluate, final_placements
from brackets.mutations import record_result, clear_result
from brackets.seeding import FIELD_SIZE

app = Flask(__name__)

LOG_LEVEL = os.environ.get('BRACKET_LOG_LEVEL', 'INFO').upper()
MAX_UPLOAD_SIZE = int(os.environ.get('BRACKET_MAX_UPLOAD_SIZE', 1024 * 1024))  # 1 MB

app.config['MAX_CONTENT_LENGTH'] = MAX_UPLOAD_SIZE
app.logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))


class PayloadError(ValueError):
    """Request body is missing a field or has the wrong shape."""


def _error(message, status=400):
    return jsonify({'success': False, 'error': message}), status


def _get_payload() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise PayloadError('Request body must be a JSON object.')
    return data


def _parse_entrants(data: dict) -> list:
    raw = data.get('entrants')
    if not isinstance(raw, list):
        raise PayloadError('"entrants" must be a list.')
    if len(raw) > FIELD_SIZE:
        raise PayloadError(f'At most {FIELD_SIZE} entrants are supported.')
    try:
        return [Entrant.from_dict(item) for item in raw]
    except ValueError as e:
        raise PayloadError(str(e))


def _parse_matches(data: dict) -> list:
    raw = data.get('matches')
    if not isinstance(raw, list):
        raise PayloadError('"matches" must be a list.')
    try:
        return [Slot.from_dict(item) for item in raw]
    except (ValueError, TypeError) as e:
        raise PayloadError(f'Invalid match: {e}')


def _parse_slot_id(data: dict) -> str:
    slot_id = data.get('slot_id')
    if not slot_id or not isinstance(slot_id, str):
        raise PayloadError('"slot_id" is required.')
    return slot_id


def _matches_response(slots):
    return jsonify({'success': True, 'matches': [slot.to_dict() for slot in slots]})


@app.errorhandler(PayloadError)
def handle_payload_error(e):
    app.logger.warning(f'Rejected request to {request.path}: {e}')
    return _error(str(e))


@app.errorhandler(RequestEntityTooLarge)
def handle_too_large(e):
    return _error(f'Request body exceeds {MAX_UPLOAD_SIZE} bytes.', 413)


@app.route('/health')
def health():
    return jsonify({'status': 'ok'})


@app.route('/api/blueprint', methods=['GET'])
def api_blueprint():
    """Topology only: every slot with its wiring, no entrants."""
    return _matches_response(build_blueprint())


@app.route('/api/bracket/evaluate', methods=['POST'])
def api_evaluate():
    data = _get_payload()
    entrants = _parse_entrants(data)
    overrides = data.get('overrides') or {}
    if not isinstance(overrides, dict):
        raise PayloadError('"overrides" must be an object keyed by slot id.')
    return _matches_response(evaluate(entrants, overrides))


@app.route('/api/bracket/record', methods=['POST'])
def api_record_result():
    data = _get_payload()
    entrants = _parse_entrants(data)
    matches = _parse_matches(data)
    slot_id = _parse_slot_id(data)
    if 'score1' not in data or 'score2' not in data:
        raise PayloadError('"score1" and "score2" are required.')
    sub_games = data.get('sub_games') or []
    if not isinstance(sub_games, list):
        raise PayloadError('"sub_games" must be a list.')
    if not any(m.id == slot_id for m in matches):
        return _error(f'Match {slot_id} not found.', 404)

    slots = record_result(
        matches, slot_id, data['score1'], data['score2'], sub_games, entrants,
        winner_id=data.get('winner_id'),
        status=data.get('status') or 'in_progress',
    )
    updated = next(s for s in slots if s.id == slot_id)
    app.logger.info(f'Recorded {slot_id}: {updated.score1}-{updated.score2} ({updated.status})')
    return _matches_response(slots)


@app.route('/api/bracket/clear', methods=['POST'])
def api_clear_result():
    data = _get_payload()
    entrants = _parse_entrants(data)
    matches = _parse_matches(data)
    slot_id = _parse_slot_id(data)
    if not any(m.id == slot_id for m in matches):
        return _error(f'Match {slot_id} not found.', 404)

    slots = clear_result(matches, slot_id, entrants)
    app.logger.info(f'Cleared result of {slot_id}')
    return _matches_response(slots)


@app.route('/api/bracket/placements', methods=['POST'])
def api_placements():
    data = _get_payload()
    matches = sorted(_parse_matches(data), key=lambda m: slot_sort_key(m.id))
    placements = final_placements(matches)
    return jsonify({'success': True, 'placements': {str(k): v for k, v in placements.items()}})


if __name__ == '__main__':
    app.run(debug=os.environ.get('FLASK_DEBUG') == '1')
