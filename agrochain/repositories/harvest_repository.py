"""
Harvest Repository Implementation
"""

from typing import List, Optional
from datetime import datetime
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from agrochain.database import db
from agrochain.models import Harvest, HarvestStatus
from .base import SQLAlchemyLedgerStore


class HarvestRepository(SQLAlchemyLedgerStore):
    """Concrete implementation of harvest repository"""
    model = Harvest
    entity_name = 'Harvest'

    def search(self, farmer_id: Optional[int] = None,
               status: Optional[HarvestStatus] = None) -> List[Harvest]:
        """List harvests filtered by farmer and/or status"""
        query = Harvest.query
        if farmer_id is not None:
            query = query.filter_by(farmer_id=farmer_id)
        if status is not None:
            query = query.filter_by(status=status)
        return query.order_by(Harvest.created_at).all()

    def mark_invoiced(self, harvest_id: str, invoice_id: str) -> bool:
        """
        Move a harvest from REGISTERED to INVOICED in a single statement.

        Returns False when no row matched, i.e. the harvest is unknown or
        already invoiced. The stored invoice reference is never overwritten.
        """
        stmt = (
            update(Harvest)
            .where(Harvest.id == harvest_id, Harvest.status == HarvestStatus.REGISTERED)
            .values(status=HarvestStatus.INVOICED, invoice_id=invoice_id,
                    updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        try:
            result = db.session.execute(stmt)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise
        # Commit expired loaded instances; force a reload of this one too
        db.session.expire_all()
        return result.rowcount == 1
