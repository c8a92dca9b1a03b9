"""
Controllers package initialization
"""

from agrochain.api.controllers.harvests import create_harvests_blueprint
from agrochain.api.controllers.supplies import create_supplies_blueprint
from agrochain.api.controllers.invoices import create_invoices_blueprint
from agrochain.api.controllers.events import events_bp
from agrochain.api.controllers.outbox import outbox_bp
from agrochain.api.controllers.health import health_bp

__all__ = [
    'create_harvests_blueprint',
    'create_supplies_blueprint',
    'create_invoices_blueprint',
    'events_bp',
    'outbox_bp',
    'health_bp'
]
