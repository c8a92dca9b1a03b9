"""
Farmer Repository Implementation
"""

from agrochain.models import Farmer
from .base import SQLAlchemyLedgerStore


class FarmerRepository(SQLAlchemyLedgerStore):
    """Read access to farmers; creation exists only for seeding"""
    model = Farmer
    entity_name = 'Farmer'

    def exists(self, farmer_id) -> bool:
        if farmer_id is None:
            return False
        return self.get(farmer_id) is not None
