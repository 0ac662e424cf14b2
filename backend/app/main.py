from flask import Blueprint, jsonify, current_app

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Worm Tiles game server!'})


@main.route('/health')
def health():
    directory = current_app.extensions['session_directory']
    return jsonify({
        'status': 'ok',
        'rooms': len(directory.rooms),
        'players': len(directory.participants),
    })
