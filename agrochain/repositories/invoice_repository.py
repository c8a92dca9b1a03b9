"""
Invoice Repository Implementation
"""

from typing import List, Optional
from datetime import datetime
from sqlalchemy.exc import IntegrityError
from agrochain.database import db
from agrochain.errors import Conflict
from agrochain.models import Invoice
from .base import SQLAlchemyLedgerStore


class InvoiceRepository(SQLAlchemyLedgerStore):
    """Concrete implementation of invoice repository"""
    model = Invoice
    entity_name = 'Invoice'

    def create(self, record: Invoice) -> Invoice:
        """Create invoice; a second invoice for the same harvest is a Conflict"""
        try:
            db.session.add(record)
            db.session.commit()
            return record
        except IntegrityError:
            db.session.rollback()
            # Only the unique harvest_id is a duplicate; other violations propagate
            if self.get_by_harvest_id(record.harvest_id) is None:
                raise
            raise Conflict(f"Invoice for harvest {record.harvest_id} already exists")

    def get_by_harvest_id(self, harvest_id: str) -> Optional[Invoice]:
        return Invoice.query.filter_by(harvest_id=harvest_id).first()

    def search(self, harvest_id: Optional[str] = None, paid: Optional[bool] = None) -> List[Invoice]:
        query = Invoice.query
        if harvest_id is not None:
            query = query.filter_by(harvest_id=harvest_id)
        if paid is not None:
            query = query.filter_by(paid=paid)
        return query.order_by(Invoice.created_at).all()

    def mark_paid(self, invoice: Invoice) -> Invoice:
        if invoice.paid:
            return invoice
        invoice.paid = True
        invoice.paid_at = datetime.utcnow()
        return self.update(invoice)
