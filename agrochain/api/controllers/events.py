"""
Dapr Event Subscription Endpoints for the Billing Service
"""

from flask import Blueprint, request, jsonify, current_app
from agrochain.errors import InvalidArgument
from agrochain.events import NEW_HARVEST
from agrochain.services import BillingService

events_bp = Blueprint('events', __name__, url_prefix='/dapr')


@events_bp.route('/subscribe', methods=['GET'])
def get_subscriptions():
    """
    Dapr calls this endpoint to discover subscription configurations.
    """
    subscriptions = [
        {
            "pubsubname": current_app.config['DAPR_PUBSUB_NAME'],
            "topic": NEW_HARVEST,
            "route": "/dapr/events/nueva-cosecha"
        }
    ]
    current_app.logger.info(
        f"Dapr subscription discovery: {len(subscriptions)} subscriptions configured"
    )
    return jsonify(subscriptions)


def _event_data(body):
    """Dapr wraps payloads in a CloudEvent; direct callers send the flat payload"""
    if isinstance(body, dict) and isinstance(body.get('data'), dict):
        return body['data'], body.get('id')
    return body, None


@events_bp.route('/events/nueva-cosecha', methods=['POST'])
def nueva_cosecha():
    """
    Handle nueva_cosecha.

    Answers with Dapr's pub/sub status: SUCCESS, RETRY (redeliver later)
    or DROP (malformed, redelivery cannot help).
    """
    body = request.get_json(silent=True)
    data, event_id = _event_data(body)
    if not isinstance(data, dict):
        current_app.logger.error("Dropping nueva_cosecha with non-object payload")
        return jsonify({"status": "DROP", "error": "Payload must be a JSON object"}), 200

    current_app.logger.info(
        f"Received {NEW_HARVEST} for harvest {data.get('harvestId')}",
        extra={"eventId": event_id}
    )

    try:
        invoice = BillingService().handle_new_harvest(data)
    except InvalidArgument as e:
        current_app.logger.error(f"Dropping invalid {NEW_HARVEST} event: {e}")
        return jsonify({"status": "DROP", "error": str(e)}), 200
    except Exception as e:
        current_app.logger.error(f"Error processing {NEW_HARVEST}, asking for redelivery: {e}")
        return jsonify({"status": "RETRY", "error": str(e)}), 200

    return jsonify({"status": "SUCCESS", "invoiceId": invoice.id}), 200
