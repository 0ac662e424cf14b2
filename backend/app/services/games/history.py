from datetime import datetime, timezone
from typing import Any, Dict, List

from app import db
from app.models import GameRecord, GameRecordEntry


def make_history_sink(app):
    """Return a sink that appends finished-match records to the database.

    The sink may be called from socket handlers, so it pushes its own app
    context. A failed write is rolled back and logged; the match result
    still stands.
    """

    def _sink(record: Dict[str, Any]) -> None:
        with app.app_context():
            try:
                save_record(record)
                app.logger.info(f"[history] room={record['room_name']!r} winner={record['winner']['id']}")
            except Exception:
                db.session.rollback()
                app.logger.exception(f"[history-error] room={record.get('room_name')!r}")

    return _sink


def save_record(record: Dict[str, Any]) -> GameRecord:
    winner = record.get('winner') or {}
    finished_at = record.get('timestamp')
    row = GameRecord(
        room_name=record['room_name'],
        finished_at=datetime.fromisoformat(finished_at) if finished_at else datetime.now(timezone.utc),
        winner_id=winner.get('id'),
        winner_name=winner.get('name'),
        winner_worms=int(winner.get('worm_total') or 0),
    )
    for position, p in enumerate(record.get('participants') or []):
        row.entries.append(GameRecordEntry(
            position=position,
            participant_id=p['id'],
            name=p.get('name'),
            worm_total=int(p.get('worm_total') or 0),
        ))
    db.session.add(row)
    db.session.commit()
    return row


def recent_history(limit: int = 50) -> List[Dict[str, Any]]:
    rows = GameRecord.query.order_by(GameRecord.finished_at.desc(), GameRecord.id.desc()).limit(limit).all()
    return [r.to_dict() for r in rows]
