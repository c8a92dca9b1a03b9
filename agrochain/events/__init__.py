"""
Event propagation between the harvest, supply and billing services
"""

from flask import current_app

from config import BILLING_SERVICE
from .emitter import BackoffPolicy, DeliveryResult, EventEmitter
from .sinks import (
    EventSink, DaprPubSubSink, HttpCallbackSink, InMemorySink, LoggingSink,
    build_event_sink, build_callback_sink
)

# Topics
NEW_HARVEST = 'nueva_cosecha'
STOCK_ADJUSTED = 'inventario_ajustado'
HARVEST_STATUS_CALLBACK = 'harvest.status'

EVENTS_CHANNEL = 'events'
CALLBACKS_CHANNEL = 'callbacks'

EXTENSION_KEY = 'agrochain.emitters'


def init_events(app):
    """Attach the emitters of this service to the app"""
    policy = BackoffPolicy.from_config(app.config)
    service_name = app.config['SERVICE_NAME']

    emitters = {
        EVENTS_CHANNEL: EventEmitter(
            build_event_sink(app.config), source=service_name,
            channel=EVENTS_CHANNEL, policy=policy
        )
    }
    if service_name == BILLING_SERVICE:
        emitters[CALLBACKS_CHANNEL] = EventEmitter(
            build_callback_sink(app.config), source=service_name,
            channel=CALLBACKS_CHANNEL, policy=policy
        )

    app.extensions[EXTENSION_KEY] = emitters
    app.logger.info(
        "Event emitters ready: "
        + ', '.join(f"{channel}={emitter.sink.name}" for channel, emitter in emitters.items())
    )
    return emitters


def get_emitters():
    return current_app.extensions[EXTENSION_KEY]


def get_emitter(channel: str = EVENTS_CHANNEL) -> EventEmitter:
    """Emitter of the current app for one channel"""
    return get_emitters()[channel]


__all__ = [
    'BackoffPolicy',
    'DeliveryResult',
    'EventEmitter',
    'EventSink',
    'DaprPubSubSink',
    'HttpCallbackSink',
    'InMemorySink',
    'LoggingSink',
    'NEW_HARVEST',
    'STOCK_ADJUSTED',
    'HARVEST_STATUS_CALLBACK',
    'EVENTS_CHANNEL',
    'CALLBACKS_CHANNEL',
    'init_events',
    'get_emitter',
    'get_emitters',
]
