"""In-memory participants and rooms.

Each room owns its match controller and a lock; every match operation runs
under that room's lock, so one match only ever sees one intent at a time.
The directory lock only guards the dictionaries themselves.
"""
import logging
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, List, Optional

from .controller import FINISHED, MatchController, MatchResult
from .errors import (
    MatchError,
    MatchNotActive,
    NotEnoughPlayers,
    NotHost,
    PlayerNotFound,
    RoomFull,
    RoomNotFound,
    RoomNotJoinable,
)
from .turn import DICE_PER_TURN, DiceRoller

logger = logging.getLogger(__name__)

# Room statuses
WAITING = 'waiting'
PLAYING = 'playing'
ROOM_FINISHED = 'finished'
ABANDONED = 'abandoned'


@dataclass
class Participant:
    id: str
    name: str
    sid: Optional[str] = None

    def to_dict(self):
        return {'id': self.id, 'name': self.name}


@dataclass
class Room:
    id: str
    name: str
    host: str
    players: List[str] = field(default_factory=list)
    status: str = WAITING
    match: Optional[MatchController] = None
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def summary(self):
        return {
            'id': self.id,
            'name': self.name,
            'player_count': len(self.players),
            'status': self.status,
        }


class SessionDirectory:
    def __init__(self, history_sink: Optional[Callable[[Dict[str, Any]], None]] = None,
                 roller_factory: Optional[Callable[[], DiceRoller]] = None,
                 min_players: int = 2, max_players: int = 7,
                 dice_count: int = DICE_PER_TURN):
        self.history_sink = history_sink
        self.roller_factory = roller_factory or DiceRoller
        self.min_players = min_players
        self.max_players = max_players
        self.dice_count = dice_count
        self.participants: Dict[str, Participant] = {}
        self.rooms: Dict[str, Room] = {}
        self._lock = threading.Lock()

    # ---- participants ----

    def register(self, name: str, sid: Optional[str] = None) -> Participant:
        participant = Participant(id=uuid.uuid4().hex, name=name, sid=sid)
        with self._lock:
            self.participants[participant.id] = participant
        logger.info(f"[register] player={participant.id} name={name!r}")
        return participant

    def get_participant(self, player_id: str) -> Participant:
        participant = self.participants.get(player_id)
        if participant is None:
            raise PlayerNotFound('Player not found')
        return participant

    def display_name(self, player_id: str) -> str:
        participant = self.participants.get(player_id)
        return participant.name if participant else 'Unknown'

    def sid_for(self, player_id: str) -> Optional[str]:
        participant = self.participants.get(player_id)
        return participant.sid if participant else None

    def unregister_sid(self, sid: str) -> List[Dict[str, Any]]:
        """Drop every participant bound to ``sid``; returns the room changes made."""
        with self._lock:
            gone = [p for p in self.participants.values() if p.sid == sid]
        changes = []
        for participant in gone:
            for room in list(self.rooms.values()):
                if participant.id in room.players:
                    changes.append(self.leave_room(room.id, participant.id))
            with self._lock:
                self.participants.pop(participant.id, None)
        return changes

    # ---- rooms ----

    def get_room(self, room_id: str) -> Room:
        room = self.rooms.get(room_id)
        if room is None:
            raise RoomNotFound('Room not found')
        return room

    def list_rooms(self) -> List[Dict[str, Any]]:
        with self._lock:
            rooms = list(self.rooms.values())
        return [r.summary() for r in rooms if r.status == WAITING]

    def room_view(self, room: Room) -> Dict[str, Any]:
        return {
            'id': room.id,
            'name': room.name,
            'host': room.host,
            'players': [{'id': pid, 'name': self.display_name(pid)} for pid in room.players],
            'status': room.status,
        }

    def create_room(self, host_id: str, name: str) -> Room:
        self.get_participant(host_id)
        room = Room(id=uuid.uuid4().hex, name=name, host=host_id, players=[host_id])
        with self._lock:
            self.rooms[room.id] = room
        logger.info(f"[room-create] room={room.id} host={host_id} name={name!r}")
        return room

    def join_room(self, room_id: str, player_id: str) -> Room:
        self.get_participant(player_id)
        room = self.get_room(room_id)
        with room.lock:
            if room.status != WAITING:
                raise RoomNotJoinable('Game already started')
            if player_id in room.players:
                return room
            if len(room.players) >= self.max_players:
                raise RoomFull('Room is full')
            room.players.append(player_id)
        logger.info(f"[room-join] room={room.id} player={player_id} size={len(room.players)}")
        return room

    def leave_room(self, room_id: str, player_id: str) -> Dict[str, Any]:
        """Remove a member. Returns ``{'room': Room, 'deleted': bool, 'abandoned': bool}``."""
        room = self.get_room(room_id)
        abandoned = False
        with room.lock:
            if player_id not in room.players:
                return {'room': room, 'deleted': False, 'abandoned': False}
            room.players.remove(player_id)
            if room.status == PLAYING:
                # No resume protocol: a departure ends the match for everyone.
                room.status = ABANDONED
                abandoned = True
            if room.host == player_id and room.players:
                room.host = room.players[0]
            deleted = not room.players
        if deleted:
            with self._lock:
                self.rooms.pop(room.id, None)
        logger.info(
            f"[room-leave] room={room.id} player={player_id} deleted={deleted} abandoned={abandoned}"
        )
        return {'room': room, 'deleted': deleted, 'abandoned': abandoned}

    @contextmanager
    def with_room(self, room_id: str) -> Iterator[Room]:
        room = self.get_room(room_id)
        with room.lock:
            yield room

    # ---- match operations ----

    def start(self, room_id: str, player_id: str) -> MatchResult:
        try:
            with self.with_room(room_id) as room:
                if room.host != player_id:
                    raise NotHost('Only host can start game')
                if room.status != WAITING:
                    raise RoomNotJoinable('Game already started')
                if len(room.players) < self.min_players:
                    raise NotEnoughPlayers(f'Need at least {self.min_players} players')
                match = MatchController(
                    room.id,
                    roller=self.roller_factory(),
                    min_players=self.min_players,
                    dice_count=self.dice_count,
                    names=self.display_name,
                )
                result = match.start_match(room.players)
                if result.ok:
                    room.match = match
                    room.status = PLAYING
                return result
        except MatchError as exc:
            return MatchResult.failure(exc.reason, exc.message)

    def roll_dice(self, room_id: str, player_id: str, expected_sequence: Optional[int] = None) -> MatchResult:
        return self._dispatch(room_id, lambda m: m.roll_dice(player_id, expected_sequence))

    def commit_face(self, room_id: str, player_id: str, face, expected_sequence: Optional[int] = None) -> MatchResult:
        return self._dispatch(room_id, lambda m: m.commit_face(player_id, face, expected_sequence))

    def stop_turn(self, room_id: str, player_id: str, expected_sequence: Optional[int] = None) -> MatchResult:
        return self._dispatch(room_id, lambda m: m.stop_turn(player_id, expected_sequence))

    def claim_tile(self, room_id: str, player_id: str, face_value: int,
                   expected_sequence: Optional[int] = None) -> MatchResult:
        return self._dispatch(room_id, lambda m: m.claim_tile(player_id, face_value, expected_sequence))

    def snapshot(self, room_id: str) -> Optional[Dict[str, Any]]:
        with self.with_room(room_id) as room:
            return room.match.snapshot() if room.match else None

    def _dispatch(self, room_id: str, op: Callable[[MatchController], MatchResult]) -> MatchResult:
        try:
            with self.with_room(room_id) as room:
                if room.match is None or room.status != PLAYING:
                    raise MatchNotActive('Game not found')
                result = op(room.match)
                if result.ok and room.match.phase == FINISHED:
                    result.data['game_over'] = True
                    result.data['record'] = self._finish(room)
                return result
        except MatchError as exc:
            return MatchResult.failure(exc.reason, exc.message)

    def _finish(self, room: Room) -> Dict[str, Any]:
        match = room.match
        winner = match.compute_winner()
        record = {
            'room_name': room.name,
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'winner': winner,
            'participants': match.final_scores(),
        }
        room.status = ROOM_FINISHED
        logger.info(
            f"[finish] room={room.id} winner={winner['id']} worms={winner['worm_total']}"
        )
        if self.history_sink is not None:
            self.history_sink(record)
        return record
