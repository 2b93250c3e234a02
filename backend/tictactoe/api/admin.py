from flask import Blueprint, jsonify, request, current_app
from sqlalchemy.exc import SQLAlchemyError
from tictactoe.services.match.outcome import LEADERBOARD_STREAKS, LEADERBOARD_WINS
from tictactoe.services.stores import SqlBanStore, SqlLeaderboard

admin = Blueprint('admin', __name__)


@admin.route('/admin/ban', methods=['POST'])
def ban_player():
    data = request.get_json(silent=True) or {}
    target = data.get('target_user_id')
    if not target:
        return jsonify({'error': 'target_user_id required'}), 400
    try:
        SqlBanStore().ban(target, data.get('reason'))
    except SQLAlchemyError as exc:
        current_app.logger.error(f"[ban] failed user={target}: {exc}")
        return jsonify({'error': 'ban failed'}), 500
    return jsonify({'success': True, 'message': f'Player {target} has been banned'})


@admin.route('/admin/unban', methods=['POST'])
def unban_player():
    data = request.get_json(silent=True) or {}
    target = data.get('target_user_id')
    if not target:
        return jsonify({'error': 'target_user_id required'}), 400
    try:
        SqlBanStore().unban(target)
    except SQLAlchemyError as exc:
        current_app.logger.error(f"[unban] failed user={target}: {exc}")
        return jsonify({'error': 'unban failed'}), 500
    return jsonify({'success': True, 'message': f'Player {target} has been unbanned'})


@admin.route('/leaderboard', methods=['GET'])
def get_leaderboard():
    """
    Returns the top entries of the total-wins and win-streak leaderboards.
    """
    default_limit = int(current_app.config.get('LEADERBOARD_LIMIT', 10))
    limit = request.args.get('limit', default_limit, type=int)
    limit = max(1, min(limit, 100))
    board = SqlLeaderboard()
    response = {'global_wins': [], 'win_streaks': []}
    try:
        response['global_wins'] = board.top(LEADERBOARD_WINS, limit)
        response['win_streaks'] = board.top(LEADERBOARD_STREAKS, limit)
    except SQLAlchemyError as exc:
        current_app.logger.error(f"[leaderboard] fetch failed: {exc}")
    return jsonify(response)
