from flask_socketio import emit
from flask import current_app, request
from app import socketio
from app.services.games.broadcast import fan_out, messages_for_result
from app.services.games.errors import MalformedIntent, MatchError, PlayerNotFound
from app.services.games.history import recent_history
from typing import Any, Callable, Dict, List, Optional, Tuple


def _directory():
    return current_app.extensions['session_directory']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


# ---- payload parsing ----

def _require_str(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise MalformedIntent(f'{key} is required')
    return value.strip()


def _optional_int(data: Dict[str, Any], key: str) -> Optional[int]:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool):
        raise MalformedIntent(f'{key} must be an integer')
    try:
        return int(value)
    except (TypeError, ValueError):
        raise MalformedIntent(f'{key} must be an integer')


def _payload(data) -> Dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise MalformedIntent('payload must be an object')
    return data


def _acting_player(data: Dict[str, Any]) -> str:
    """The player id in the payload must belong to this connection."""
    player_id = _require_str(data, 'player_id')
    participant = _directory().participants.get(player_id)
    if participant is None or participant.sid != _get_sid():
        raise PlayerNotFound('Player not found')
    return player_id


# ---- delivery ----

def _deliver(messages: List[Tuple[str, str, Dict[str, Any]]]) -> None:
    directory = _directory()
    for player_id, event, payload in messages:
        sid = directory.sid_for(player_id)
        if sid:
            socketio.emit(event, payload, to=sid, namespace=request.namespace)


def _send_error(reason: str, message: str) -> None:
    emit('error', {'reason': reason, 'message': message})


def _broadcast_rooms_list() -> None:
    socketio.emit('rooms_list', {'rooms': _directory().list_rooms()}, namespace=request.namespace)


def _room_changed(change: Dict[str, Any]) -> None:
    room = change['room']
    if change['deleted']:
        return
    directory = _directory()
    if change['abandoned']:
        _deliver(fan_out(room.players, 'match_abandoned', {'room': directory.room_view(room)}))
    else:
        _deliver(fan_out(room.players, 'room_updated', {'room': directory.room_view(room)}))


# ---- connection lifecycle ----

def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(reason=None):
    changes = _directory().unregister_sid(_get_sid())
    for change in changes:
        _room_changed(change)
    if changes:
        _broadcast_rooms_list()


def handle_ping(data=None):
    emit('pong', data or {})


# ---- lobby ----

def handle_register(data):
    try:
        name = _require_str(_payload(data), 'name')
    except MalformedIntent as exc:
        _send_error(exc.reason, str(exc))
        return
    participant = _directory().register(name[:64], sid=_get_sid())
    emit('registered', {'player_id': participant.id, 'name': participant.name})
    emit('rooms_list', {'rooms': _directory().list_rooms()})


def handle_list_rooms(data=None):
    emit('rooms_list', {'rooms': _directory().list_rooms()})


def handle_create_room(data):
    directory = _directory()
    try:
        data = _payload(data)
        player_id = _acting_player(data)
        room = directory.create_room(player_id, _require_str(data, 'room_name')[:128])
    except (MalformedIntent, MatchError) as exc:
        _send_error(exc.reason, getattr(exc, 'message', str(exc)))
        return
    emit('room_created', {'room_id': room.id, 'room_name': room.name, 'room': directory.room_view(room)})
    _broadcast_rooms_list()


def handle_join_room(data):
    directory = _directory()
    try:
        data = _payload(data)
        player_id = _acting_player(data)
        room = directory.join_room(_require_str(data, 'room_id'), player_id)
    except (MalformedIntent, MatchError) as exc:
        _send_error(exc.reason, getattr(exc, 'message', str(exc)))
        return
    _deliver(fan_out(room.players, 'room_updated', {'room': directory.room_view(room)}))
    _broadcast_rooms_list()


def handle_leave_room(data):
    try:
        data = _payload(data)
        player_id = _acting_player(data)
        change = _directory().leave_room(_require_str(data, 'room_id'), player_id)
    except (MalformedIntent, MatchError) as exc:
        _send_error(exc.reason, getattr(exc, 'message', str(exc)))
        return
    emit('left', {'room_id': change['room'].id})
    _room_changed(change)
    _broadcast_rooms_list()


def handle_get_history(data=None):
    limit = int(current_app.config.get('HISTORY_LIMIT', 50))
    emit('game_history', {'history': recent_history(limit)})


# ---- game intents ----

def _game_intent(data, op: Callable[..., Any]) -> None:
    """Parse, run against the room's match, then fan the result out.

    Failures go back to the sender only.
    """
    directory = _directory()
    try:
        data = _payload(data)
        player_id = _acting_player(data)
        room_id = _require_str(data, 'room_id')
        result = op(directory, data, player_id, room_id)
    except (MalformedIntent, MatchError) as exc:
        _send_error(exc.reason, getattr(exc, 'message', str(exc)))
        return
    if not result.ok:
        try:
            current_app.logger.info(f"[rejected] room={room_id} player={player_id} reason={result.reason}")
        except Exception:
            pass
        emit('error', result.to_error())
        return
    room = directory.rooms.get(room_id)
    recipients = list(room.players) if room else [player_id]
    _deliver(messages_for_result(result, recipients, directory.display_name(player_id)))
    if result.event == 'game_started':
        _broadcast_rooms_list()


def handle_start_game(data):
    _game_intent(data, lambda d, payload, pid, room_id: d.start(room_id, pid))


def handle_roll_dice(data):
    _game_intent(data, lambda d, payload, pid, room_id: d.roll_dice(
        room_id, pid, _optional_int(payload, 'sequence')))


def handle_select_face(data):
    def _op(d, payload, pid, room_id):
        if payload.get('face') is None:
            raise MalformedIntent('face is required')
        return d.commit_face(room_id, pid, payload['face'], _optional_int(payload, 'sequence'))
    _game_intent(data, _op)


def handle_stop_turn(data):
    _game_intent(data, lambda d, payload, pid, room_id: d.stop_turn(
        room_id, pid, _optional_int(payload, 'sequence')))


def handle_claim_tile(data):
    def _op(d, payload, pid, room_id):
        tile_number = _optional_int(payload, 'tile_number')
        if tile_number is None:
            raise MalformedIntent('tile_number is required')
        return d.claim_tile(room_id, pid, tile_number, _optional_int(payload, 'sequence'))
    _game_intent(data, _op)


_HANDLERS = {
    'connect': handle_connect,
    'disconnect': handle_disconnect,
    'ping': handle_ping,
    'register': handle_register,
    'list_rooms': handle_list_rooms,
    'create_room': handle_create_room,
    'join_room': handle_join_room,
    'leave_room': handle_leave_room,
    'get_history': handle_get_history,
    'start_game': handle_start_game,
    'roll_dice': handle_roll_dice,
    'select_face': handle_select_face,
    'stop_turn': handle_stop_turn,
    'claim_tile': handle_claim_tile,
}


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    for event, handler in _HANDLERS.items():
        socketio.on_event(event, handler, namespace='/ws')

    if testing:
        # Test-only mirror on default namespace
        for event, handler in _HANDLERS.items():
            socketio.on_event(event, handler, namespace='/')
