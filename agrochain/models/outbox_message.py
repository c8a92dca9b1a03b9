"""
Outbox Message Model
"""

from agrochain.database import db
from datetime import datetime
import uuid
from .enums import OutboxStatus


class OutboxMessage(db.Model):
    """Event or callback whose delivery exhausted its retries"""
    __tablename__ = 'outbox_messages'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    channel = db.Column(db.String(50), nullable=False, index=True)  # events, callbacks
    topic = db.Column(db.String(100), nullable=False, index=True)
    payload = db.Column(db.JSON, nullable=False)
    dedupe_key = db.Column(db.String(255), nullable=True, index=True)
    status = db.Column(db.Enum(OutboxStatus), default=OutboxStatus.DEAD_LETTERED, nullable=False, index=True)
    attempts = db.Column(db.Integer, default=0, nullable=False)
    last_error = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f'<OutboxMessage {self.topic} {self.status.value}>'

    def to_dict(self):
        """Convert to dictionary"""
        return {
            'id': self.id,
            'channel': self.channel,
            'topic': self.topic,
            'payload': self.payload,
            'dedupe_key': self.dedupe_key,
            'status': self.status.value,
            'attempts': self.attempts,
            'last_error': self.last_error,
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat()
        }
