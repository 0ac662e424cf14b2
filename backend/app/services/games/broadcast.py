"""Turn match results into outbound messages.

Pure functions: they take a result and the recipients and return
``(participant_id, event, payload)`` triples. The socket layer maps
participant ids to connections and does the emitting.
"""
from typing import Any, Dict, Iterable, List, Tuple

from .controller import MatchResult

Message = Tuple[str, str, Dict[str, Any]]


def fan_out(recipients: Iterable[str], event: str, payload: Dict[str, Any]) -> List[Message]:
    return [(pid, event, payload) for pid in recipients]


def result_payload(result: MatchResult, actor_name: str) -> Dict[str, Any]:
    """Payload for a successful intent: event-specific data plus the snapshot."""
    payload = dict(result.data)
    payload.pop('record', None)
    payload['player_name'] = actor_name
    payload['game_state'] = result.snapshot
    return payload


def game_over_payload(record: Dict[str, Any]) -> Dict[str, Any]:
    return {'winner': record['winner'], 'final_scores': record['participants']}


def messages_for_result(result: MatchResult, recipients: List[str], actor_name: str) -> List[Message]:
    """Everything a room should receive after one successful intent."""
    messages = fan_out(recipients, result.event, result_payload(result, actor_name))
    record = result.data.get('record')
    if record is not None:
        messages.extend(fan_out(recipients, 'game_over', game_over_payload(record)))
    return messages


def error_message(player_id: str, result: MatchResult) -> List[Message]:
    return [(player_id, 'error', result.to_error())]
