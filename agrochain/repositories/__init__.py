"""
Repositories package - Data access layer for the three services
"""

# Import interfaces
from .base import LedgerStore, SQLAlchemyLedgerStore

# Import concrete implementations
from .farmer_repository import FarmerRepository
from .harvest_repository import HarvestRepository
from .supply_repository import SupplyRepository
from .invoice_repository import InvoiceRepository
from .outbox_repository import OutboxRepository

# Export all interfaces and implementations
__all__ = [
    'LedgerStore',
    'SQLAlchemyLedgerStore',
    'FarmerRepository',
    'HarvestRepository',
    'SupplyRepository',
    'InvoiceRepository',
    'OutboxRepository'
]
