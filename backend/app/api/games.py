from flask import Blueprint, jsonify, current_app

from app.services.games.errors import MatchError
from app.services.games.history import recent_history

games = Blueprint('games', __name__)


def _directory():
    return current_app.extensions['session_directory']


@games.route('/rooms', methods=['GET'])
def list_rooms():
    """Rooms still waiting for players."""
    return jsonify(_directory().list_rooms())


@games.route('/rooms/<string:room_id>', methods=['GET'])
def get_room(room_id):
    directory = _directory()
    try:
        room = directory.get_room(room_id)
    except MatchError as exc:
        return jsonify({'error': exc.message, 'reason': exc.reason}), 404
    return jsonify(directory.room_view(room))


@games.route('/rooms/<string:room_id>/state', methods=['GET'])
def get_room_state(room_id):
    """Current match snapshot, same shape as the socket broadcasts."""
    directory = _directory()
    try:
        state = directory.snapshot(room_id)
    except MatchError as exc:
        return jsonify({'error': exc.message, 'reason': exc.reason}), 404
    if state is None:
        return jsonify({'error': 'Game has not started', 'reason': 'match_not_active'}), 404
    return jsonify(state)


@games.route('/history', methods=['GET'])
def get_history():
    limit = int(current_app.config.get('HISTORY_LIMIT', 50))
    return jsonify(recent_history(limit))
