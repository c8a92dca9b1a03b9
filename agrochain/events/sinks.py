"""
Event sinks - transports behind the event emitter

A sink delivers one event and either returns or raises DeliveryFailure.
Retries, backoff and dead-lettering belong to the emitter, not the sink.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Tuple
import json
import logging
import threading

import requests
from dapr.clients import DaprClient

from agrochain.errors import DeliveryFailure

logger = logging.getLogger(__name__)

# Status codes worth retrying; every other 4xx is a permanent failure
RETRYABLE_STATUS_CODES = {408, 425, 429}


class EventSink(ABC):
    """Capability to deliver a flat JSON payload for a topic"""

    name = 'sink'

    @abstractmethod
    def deliver(self, topic: str, payload: Dict[str, Any], metadata: Dict[str, str]) -> None:
        """
        Deliver one event.

        Args:
            topic: Topic or callback name (e.g. 'nueva_cosecha')
            payload: Flat JSON object
            metadata: eventId, dedupeKey, correlationId, source

        Raises:
            DeliveryFailure: when the event could not be delivered
        """


class DaprPubSubSink(EventSink):
    """Publishes events to a Dapr pub/sub component"""

    name = 'dapr'

    def __init__(self, pubsub_name: str):
        self.pubsub_name = pubsub_name

    def deliver(self, topic, payload, metadata):
        try:
            with DaprClient() as client:
                client.publish_event(
                    pubsub_name=self.pubsub_name,
                    topic_name=topic,
                    data=json.dumps(payload),
                    data_content_type='application/json',
                    publish_metadata={
                        'cloudevent.id': metadata.get('eventId', ''),
                        'cloudevent.source': metadata.get('source', ''),
                    }
                )
        except Exception as e:
            raise DeliveryFailure(f"Dapr publish to {self.pubsub_name}/{topic} failed: {e}") from e


class HttpCallbackSink(EventSink):
    """
    Calls a single external endpoint per topic.

    routes maps a topic to (HTTP method, path template); the template is
    filled from the payload, e.g. '/api/harvests/{harvestId}/status'.
    """

    name = 'http'

    def __init__(self, base_url: str, routes: Dict[str, Tuple[str, str]],
                 timeout: float = 5.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.routes = routes
        self.timeout = timeout
        self.session = session or requests.Session()

    def build_url(self, topic: str, payload: Dict[str, Any]) -> Tuple[str, str]:
        if topic not in self.routes:
            raise DeliveryFailure(f"No callback route for topic {topic}", retryable=False)
        method, template = self.routes[topic]
        try:
            path = template.format(**payload)
        except KeyError as e:
            raise DeliveryFailure(f"Payload for {topic} is missing {e}", retryable=False) from e
        return method, f"{self.base_url}{path}"

    def deliver(self, topic, payload, metadata):
        method, url = self.build_url(topic, payload)
        headers = {
            'Content-Type': 'application/json',
            'X-Event-ID': metadata.get('eventId', ''),
            'X-Dedupe-Key': metadata.get('dedupeKey') or '',
            'X-Correlation-ID': metadata.get('correlationId') or '',
        }
        try:
            response = self.session.request(method, url, json=payload,
                                            headers=headers, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise DeliveryFailure(f"Timeout calling {method} {url}") from e
        except requests.exceptions.RequestException as e:
            raise DeliveryFailure(f"Error calling {method} {url}: {e}") from e

        if 200 <= response.status_code < 300:
            return
        retryable = response.status_code >= 500 or response.status_code in RETRYABLE_STATUS_CODES
        raise DeliveryFailure(
            f"{method} {url} returned {response.status_code}",
            retryable=retryable
        )


class InMemorySink(EventSink):
    """
    In-process sink: records every delivery and fans it out to subscribers.

    A subscriber that raises makes the delivery fail, which lets tests
    exercise retries and dead-lettering.
    """

    name = 'memory'

    def __init__(self):
        self.published: List[Dict[str, Any]] = []
        self._subscribers: Dict[str, List[Callable[[Dict[str, Any]], Any]]] = {}
        self._lock = threading.Lock()

    def subscribe(self, topic: str, handler: Callable[[Dict[str, Any]], Any]):
        self._subscribers.setdefault(topic, []).append(handler)

    def deliver(self, topic, payload, metadata):
        for handler in self._subscribers.get(topic, []):
            try:
                handler(payload)
            except DeliveryFailure:
                raise
            except Exception as e:
                raise DeliveryFailure(f"Subscriber for {topic} failed: {e}") from e
        with self._lock:
            self.published.append({'topic': topic, 'payload': dict(payload), 'metadata': dict(metadata)})

    def payloads(self, topic: str) -> List[Dict[str, Any]]:
        return [entry['payload'] for entry in self.published if entry['topic'] == topic]

    def clear(self):
        with self._lock:
            self.published.clear()


class LoggingSink(EventSink):
    """Only logs the event; used for local dry runs"""

    name = 'log'

    def deliver(self, topic, payload, metadata):
        logger.info(
            f"Event {topic} -> {json.dumps(payload, default=str)}",
            extra={'eventId': metadata.get('eventId'), 'correlationId': metadata.get('correlationId')}
        )


# Callback routes of the billing service into the harvest service
CALLBACK_ROUTES = {
    'harvest.status': ('PUT', '/api/harvests/{harvestId}/status'),
}


def build_event_sink(config) -> EventSink:
    """Create the message-bus sink selected by EVENT_SINK"""
    kind = config.get('EVENT_SINK', 'dapr')
    if kind == 'dapr':
        return DaprPubSubSink(config['DAPR_PUBSUB_NAME'])
    if kind == 'memory':
        return InMemorySink()
    if kind == 'log':
        return LoggingSink()
    raise ValueError(f"Unknown EVENT_SINK: {kind}")


def build_callback_sink(config) -> EventSink:
    """Create the callback sink selected by CALLBACK_SINK"""
    kind = config.get('CALLBACK_SINK', 'http')
    if kind == 'http':
        return HttpCallbackSink(
            config['HARVEST_SERVICE_URL'],
            CALLBACK_ROUTES,
            timeout=config.get('EVENT_DELIVERY_TIMEOUT', 5.0)
        )
    if kind == 'memory':
        return InMemorySink()
    if kind == 'log':
        return LoggingSink()
    raise ValueError(f"Unknown CALLBACK_SINK: {kind}")
