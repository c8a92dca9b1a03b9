"""
Services - Business logic layer
"""

# Import service classes
from .harvest_service import HarvestService
from .supply_service import SupplyService
from .billing_service import BillingService
from .pricing import PriceTable

# Export services
__all__ = [
    'HarvestService',
    'SupplyService',
    'BillingService',
    'PriceTable',
]
