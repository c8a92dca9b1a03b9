"""
Outbox Controller - inspection and replay of dead-lettered deliveries
"""

from flask import Blueprint, jsonify, request
from agrochain.events import get_emitters
from agrochain.repositories import OutboxRepository
from agrochain.utils.schemas import OutboxMessageResponseSchema, ReplayRequestSchema
import logging

logger = logging.getLogger(__name__)

outbox_bp = Blueprint('outbox', __name__)

outbox_message_schema = OutboxMessageResponseSchema()
replay_request_schema = ReplayRequestSchema()


@outbox_bp.route('/api/outbox/dead-letters', methods=['GET'])
def list_dead_letters():
    """Dead letters of every channel of this service"""
    channel = request.args.get('channel')
    messages = OutboxRepository().get_dead_letters(channel=channel)
    return jsonify({'items': outbox_message_schema.dump(messages, many=True)}), 200


@outbox_bp.route('/api/outbox/dead-letters/replay', methods=['POST'])
def replay_dead_letters():
    """Re-attempt delivery of dead letters"""
    params = replay_request_schema.load(request.get_json(silent=True) or {})
    results = []
    for channel, emitter in get_emitters().items():
        results.extend(emitter.replay_dead_letters(limit=params.get('limit')))

    delivered = sum(1 for result in results if result.delivered)
    logger.info(f"Replayed {len(results)} dead letters, {delivered} delivered")
    return jsonify({
        'replayed': len(results),
        'delivered': delivered,
        'results': [result.to_dict() for result in results]
    }), 200
