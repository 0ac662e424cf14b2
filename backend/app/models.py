from app import db
from datetime import datetime, timezone


class GameRecord(db.Model):
    __tablename__ = 'game_record'
    id = db.Column(db.Integer, primary_key=True)
    room_name = db.Column(db.String(128), nullable=False)
    finished_at = db.Column(db.DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), index=True)
    winner_id = db.Column(db.String(64), nullable=True)
    winner_name = db.Column(db.String(64), nullable=True)
    winner_worms = db.Column(db.Integer, default=0, nullable=False)
    entries = db.relationship(
        'GameRecordEntry',
        back_populates='record',
        order_by='GameRecordEntry.position',
        cascade='all, delete-orphan',
    )

    def to_dict(self):
        return {
            'id': self.id,
            'room_name': self.room_name,
            'date': self.finished_at.isoformat() if self.finished_at else None,
            'winner': {
                'id': self.winner_id,
                'name': self.winner_name,
                'worm_total': self.winner_worms,
            },
            'players': [e.to_dict() for e in self.entries],
        }


class GameRecordEntry(db.Model):
    __tablename__ = 'game_record_entry'
    id = db.Column(db.Integer, primary_key=True)
    record_id = db.Column(db.Integer, db.ForeignKey('game_record.id'), nullable=False)
    position = db.Column(db.Integer, nullable=False)
    participant_id = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(64), nullable=True)
    worm_total = db.Column(db.Integer, default=0, nullable=False)
    record = db.relationship('GameRecord', back_populates='entries')

    def to_dict(self):
        return {
            'id': self.participant_id,
            'name': self.name,
            'worm_total': self.worm_total,
        }
