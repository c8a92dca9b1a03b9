"""
Models package - Database models for the harvest, supply and billing services
"""

# Import database instance
from agrochain.database import db

# Import enums first
from .enums import HarvestStatus, OutboxStatus

# Import models
from .farmer import Farmer
from .harvest import Harvest
from .supply import Supply, normalize_item_name
from .invoice import Invoice
from .outbox_message import OutboxMessage

from config import HARVEST_SERVICE, SUPPLY_SERVICE, BILLING_SERVICE

# Tables owned by each service
SERVICE_MODELS = {
    HARVEST_SERVICE: [Farmer, Harvest, OutboxMessage],
    SUPPLY_SERVICE: [Supply, OutboxMessage],
    BILLING_SERVICE: [Invoice, OutboxMessage],
}

# Export all models and enums
__all__ = [
    'db',
    'HarvestStatus',
    'OutboxStatus',
    'Farmer',
    'Harvest',
    'Supply',
    'normalize_item_name',
    'Invoice',
    'OutboxMessage',
    'SERVICE_MODELS'
]
