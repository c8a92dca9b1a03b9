"""
Outbox Repository Implementation - dead-letter storage
"""

from typing import Any, Dict, List, Optional
from agrochain.models import OutboxMessage, OutboxStatus
from .base import SQLAlchemyLedgerStore


class OutboxRepository(SQLAlchemyLedgerStore):
    """Stores deliveries that exhausted their retries"""
    model = OutboxMessage
    entity_name = 'Outbox message'

    def add_dead_letter(self, channel: str, topic: str, payload: Dict[str, Any],
                        dedupe_key: Optional[str], attempts: int,
                        error: Optional[str]) -> OutboxMessage:
        message = OutboxMessage(
            channel=channel,
            topic=topic,
            payload=payload,
            dedupe_key=dedupe_key,
            status=OutboxStatus.DEAD_LETTERED,
            attempts=attempts,
            last_error=error
        )
        return self.create(message)

    def get_dead_letters(self, channel: Optional[str] = None,
                         limit: Optional[int] = None) -> List[OutboxMessage]:
        query = OutboxMessage.query.filter_by(status=OutboxStatus.DEAD_LETTERED)
        if channel is not None:
            query = query.filter_by(channel=channel)
        query = query.order_by(OutboxMessage.created_at)
        if limit:
            query = query.limit(limit)
        return query.all()

    def record_replay(self, message: OutboxMessage, delivered: bool,
                      attempts: int, error: Optional[str] = None) -> OutboxMessage:
        message.attempts += attempts
        if delivered:
            message.status = OutboxStatus.REPLAYED
            message.last_error = None
        else:
            message.last_error = error
        return self.update(message)
