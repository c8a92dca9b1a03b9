"""
Event Emitter - at-least-once delivery of committed state changes

emit() is called after the local write has been committed. It retries
the sink with bounded exponential backoff and, once the attempts are
exhausted, parks the message in the outbox as a dead letter. Delivery
failures are never raised to the caller.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple
import logging
import time
import uuid

from sqlalchemy.exc import SQLAlchemyError

from agrochain.api.middlewares.trace_context import get_trace_id
from agrochain.errors import DeliveryFailure
from agrochain.repositories import OutboxRepository
from .sinks import EventSink

logger = logging.getLogger(__name__)


class BackoffPolicy:
    """Bounded exponential backoff between delivery attempts"""

    def __init__(self, max_attempts: int = 5, initial: float = 0.5,
                 multiplier: float = 2.0, maximum: float = 8.0):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.initial = initial
        self.multiplier = multiplier
        self.maximum = maximum

    @classmethod
    def from_config(cls, config) -> 'BackoffPolicy':
        return cls(
            max_attempts=int(config.get('EVENT_MAX_ATTEMPTS', 5)),
            initial=float(config.get('EVENT_BACKOFF_INITIAL', 0.5)),
            multiplier=float(config.get('EVENT_BACKOFF_MULTIPLIER', 2.0)),
            maximum=float(config.get('EVENT_BACKOFF_MAX', 8.0)),
        )

    def delay(self, attempt: int) -> float:
        """Seconds to wait after the given (1-based) failed attempt"""
        return min(self.initial * (self.multiplier ** (attempt - 1)), self.maximum)


@dataclass
class DeliveryResult:
    """Outcome of one emit or replay"""
    topic: str
    event_id: str
    delivered: bool
    attempts: int
    dead_lettered: bool = False
    dead_letter_id: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'topic': self.topic,
            'eventId': self.event_id,
            'delivered': self.delivered,
            'attempts': self.attempts,
            'deadLettered': self.dead_lettered,
            'deadLetterId': self.dead_letter_id,
            'error': self.error,
        }


class EventEmitter:
    """
    Delivers events through one sink with retry and dead-lettering.

    Args:
        sink: Transport used for delivery
        source: Name of the emitting service
        channel: Outbox channel for dead letters ('events' or 'callbacks')
        policy: Retry/backoff parameters
        outbox_repo: Dead-letter store
        sleep: Sleep function, replaced in tests
    """

    def __init__(self, sink: EventSink, source: str, channel: str = 'events',
                 policy: Optional[BackoffPolicy] = None,
                 outbox_repo: Optional[OutboxRepository] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.sink = sink
        self.source = source
        self.channel = channel
        self.policy = policy or BackoffPolicy()
        self.outbox_repo = outbox_repo or OutboxRepository()
        self.sleep = sleep

    def _build_metadata(self, dedupe_key: Optional[str]) -> Dict[str, str]:
        return {
            'eventId': str(uuid.uuid4()),
            'source': self.source,
            'time': datetime.utcnow().isoformat() + 'Z',
            'dedupeKey': dedupe_key,
            'correlationId': get_trace_id(),
        }

    def _deliver(self, topic: str, payload: Dict[str, Any],
                 metadata: Dict[str, str]) -> Tuple[bool, int, Optional[str]]:
        """Try the sink until it succeeds, fails permanently, or attempts run out"""
        last_error = None
        for attempt in range(1, self.policy.max_attempts + 1):
            try:
                self.sink.deliver(topic, payload, metadata)
                return True, attempt, None
            except DeliveryFailure as e:
                last_error = str(e)
                if not e.retryable:
                    logger.warning(
                        f"Permanent delivery failure for {topic}: {e}",
                        extra={'eventId': metadata['eventId'], 'attempt': attempt}
                    )
                    return False, attempt, last_error
                if attempt < self.policy.max_attempts:
                    delay = self.policy.delay(attempt)
                    logger.warning(
                        f"Delivery of {topic} failed (attempt {attempt}/{self.policy.max_attempts}), "
                        f"retrying in {delay:.2f}s: {e}",
                        extra={'eventId': metadata['eventId'], 'attempt': attempt}
                    )
                    if delay > 0:
                        self.sleep(delay)
        return False, self.policy.max_attempts, last_error

    def emit(self, topic: str, payload: Dict[str, Any],
             dedupe_key: Optional[str] = None) -> DeliveryResult:
        """
        Deliver an event for an already-committed change.

        Returns:
            DeliveryResult: delivered, or dead-lettered after the last attempt
        """
        metadata = self._build_metadata(dedupe_key)
        delivered, attempts, error = self._deliver(topic, payload, metadata)

        if delivered:
            logger.info(
                f"Delivered {topic} via {self.sink.name}",
                extra={'eventId': metadata['eventId'], 'attempts': attempts,
                       'correlationId': metadata['correlationId'], 'service': self.source}
            )
            return DeliveryResult(topic=topic, event_id=metadata['eventId'],
                                  delivered=True, attempts=attempts)

        result = DeliveryResult(topic=topic, event_id=metadata['eventId'],
                                delivered=False, attempts=attempts, error=error)
        try:
            message = self.outbox_repo.add_dead_letter(
                channel=self.channel,
                topic=topic,
                payload=payload,
                dedupe_key=dedupe_key,
                attempts=attempts,
                error=error
            )
            result.dead_lettered = True
            result.dead_letter_id = message.id
            logger.error(
                f"Dead-lettered {topic} after {attempts} attempts: {error}",
                extra={'eventId': metadata['eventId'], 'deadLetterId': message.id,
                       'service': self.source}
            )
        except SQLAlchemyError as e:
            # The local change is committed; the payload in this log line is
            # the only remaining copy of the event.
            logger.critical(
                f"Could not store dead letter for {topic}: {e}. Payload: {payload}",
                extra={'eventId': metadata['eventId'], 'service': self.source}
            )
        return result

    def replay_dead_letters(self, limit: Optional[int] = None) -> List[DeliveryResult]:
        """Re-attempt delivery of stored dead letters of this channel"""
        results = []
        for message in self.outbox_repo.get_dead_letters(channel=self.channel, limit=limit):
            metadata = self._build_metadata(message.dedupe_key)
            delivered, attempts, error = self._deliver(message.topic, message.payload, metadata)
            self.outbox_repo.record_replay(message, delivered, attempts, error)

            if delivered:
                logger.info(f"Replayed dead letter {message.id} ({message.topic})")
            else:
                logger.error(f"Replay of dead letter {message.id} ({message.topic}) failed: {error}")

            results.append(DeliveryResult(
                topic=message.topic,
                event_id=metadata['eventId'],
                delivered=delivered,
                attempts=attempts,
                dead_lettered=not delivered,
                dead_letter_id=message.id,
                error=error
            ))
        return results
