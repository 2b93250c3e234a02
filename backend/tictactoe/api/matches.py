from flask import Blueprint, jsonify, request, current_app
from sqlalchemy.exc import SQLAlchemyError
from tictactoe import db
from tictactoe.models import MatchCode, generate_short_code
from tictactoe.runtime import registry
from tictactoe.services.match import MODE_CLASSIC, MODE_TIMED

matches = Blueprint('matches', __name__)

DEFAULT_SKILL_LEVEL = 50


def _requested_mode(data):
    mode = data.get('mode')
    return mode if mode in (MODE_CLASSIC, MODE_TIMED) else MODE_CLASSIC


@matches.route('/find', methods=['POST'])
def find_match():
    """
    Creates a match and a shareable short code for it.
    """
    data = request.get_json(silent=True) or {}
    mode = _requested_mode(data)
    skill = data.get('skill_level')
    if isinstance(skill, bool) or not isinstance(skill, int) or skill < 0 or skill > 100:
        skill = DEFAULT_SKILL_LEVEL

    current_app.logger.info(f"[find-match] mode={mode} skill={skill}")
    handle = registry.create_match({'mode': mode, 'metadata': {'skill_level': skill}})

    code = generate_short_code()
    if not code:
        registry.terminate(handle.match_id)
        current_app.logger.error("[find-match] failed to generate unique short code")
        return jsonify({'error': 'failed to generate short code'}), 500

    db.session.add(MatchCode(code=code, match_id=handle.match_id, mode=mode))
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        registry.terminate(handle.match_id)
        current_app.logger.error(f"[find-match] failed to store short code: {exc}")
        return jsonify({'error': 'storage error'}), 500

    return jsonify({
        'matchId': handle.match_id,
        'shortCode': code,
        'mode': mode,
    }), 201


@matches.route('/quick', methods=['POST'])
def create_quick_match():
    """
    Creates a match without a short code.
    """
    data = request.get_json(silent=True) or {}
    mode = _requested_mode(data)
    handle = registry.create_match({'mode': mode})
    current_app.logger.info(f"[quick-match] match={handle.match_id} mode={mode}")
    return jsonify({'matchId': handle.match_id, 'mode': mode}), 201


@matches.route('/code/<string:code>', methods=['GET'])
def get_match_id_by_code(code):
    entry = db.session.get(MatchCode, code)
    if not entry:
        current_app.logger.warning(f"[code-lookup] code not found: {code}")
        return jsonify({'error': 'invalid match code'}), 404
    return jsonify({'matchId': entry.match_id})


@matches.route('/code/<string:code>/info', methods=['GET'])
def get_match_info(code):
    entry = db.session.get(MatchCode, code)
    if not entry:
        return jsonify({'error': 'invalid match code'}), 404
    if registry.get(entry.match_id) is None:
        return jsonify({'error': 'match not found'}), 404
    return jsonify({'exists': True, 'matchId': entry.match_id, 'mode': entry.mode})


@matches.route('/<string:match_id>/state', methods=['GET'])
def get_match_state(match_id):
    snapshot = registry.snapshot(match_id)
    if snapshot is None:
        return jsonify({'error': 'match not found'}), 404
    return jsonify(snapshot)


@matches.route('/<string:match_id>/signal', methods=['POST'])
def send_signal(match_id):
    data = request.get_json(silent=True) or {}
    if not data.get('userId') or not data.get('type'):
        return jsonify({'error': 'userId and type are required'}), 400
    if registry.get(match_id) is None:
        return jsonify({'error': 'match not found'}), 404
    result = registry.signal(match_id, data)
    status = 400 if result.startswith('error:') else 200
    return jsonify({'result': result}), status
