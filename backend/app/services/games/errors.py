"""Failure taxonomy for the game core.

Rule violations are raised as ``MatchError`` subclasses inside the engine and
turned into failed ``MatchResult`` objects at the controller/directory
boundary. ``MalformedIntent`` is a ``ValueError`` and is left to propagate to
the transport layer, which owns input validation.
"""

NOT_YOUR_TURN = 'not_your_turn'
MATCH_NOT_ACTIVE = 'match_not_active'
INVALID_STATE = 'invalid_state'
FACE_ALREADY_COMMITTED = 'face_already_committed'
FACE_NOT_IN_CURRENT_ROLL = 'face_not_in_current_roll'
ILLEGAL_CLAIM = 'illegal_claim'
STALE_INTENT = 'stale_intent'
NOT_ENOUGH_PLAYERS = 'not_enough_players'
ROOM_NOT_FOUND = 'room_not_found'
ROOM_NOT_JOINABLE = 'room_not_joinable'
ROOM_FULL = 'room_full'
NOT_HOST = 'not_host'
PLAYER_NOT_FOUND = 'player_not_found'
MALFORMED_INTENT = 'malformed_intent'
INTERNAL_ERROR = 'internal_error'


class MatchError(Exception):
    reason = INVALID_STATE

    def __init__(self, message: str = ''):
        super().__init__(message or self.reason)
        self.message = message or self.reason


class NotYourTurn(MatchError):
    reason = NOT_YOUR_TURN


class MatchNotActive(MatchError):
    reason = MATCH_NOT_ACTIVE


class InvalidState(MatchError):
    reason = INVALID_STATE


class FaceAlreadyCommitted(MatchError):
    reason = FACE_ALREADY_COMMITTED


class FaceNotInCurrentRoll(MatchError):
    reason = FACE_NOT_IN_CURRENT_ROLL


class IllegalClaim(MatchError):
    reason = ILLEGAL_CLAIM


class StaleIntent(MatchError):
    reason = STALE_INTENT


class NotEnoughPlayers(MatchError):
    reason = NOT_ENOUGH_PLAYERS


class RoomNotFound(MatchError):
    reason = ROOM_NOT_FOUND


class RoomNotJoinable(MatchError):
    reason = ROOM_NOT_JOINABLE


class RoomFull(MatchError):
    reason = ROOM_FULL


class NotHost(MatchError):
    reason = NOT_HOST


class PlayerNotFound(MatchError):
    reason = PLAYER_NOT_FOUND


class MalformedIntent(ValueError):
    """Structurally invalid input from the transport layer."""

    reason = MALFORMED_INTENT


class InvariantError(RuntimeError):
    """Internal consistency check failed; the operation must be rolled back."""
