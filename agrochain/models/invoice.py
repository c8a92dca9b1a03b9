"""
Invoice Model
"""

from agrochain.database import db
from datetime import datetime
from sqlalchemy import DECIMAL


class Invoice(db.Model):
    """Billing record computed from a harvest's product and quantity"""
    __tablename__ = 'invoices'

    id = db.Column(db.Integer, primary_key=True)
    # One invoice per harvest; the unique constraint backs the dedupe check
    harvest_id = db.Column(db.String(36), unique=True, nullable=False, index=True)
    product = db.Column(db.String(200), nullable=False)
    tonnes = db.Column(db.Float, nullable=False)
    unit_price = db.Column(DECIMAL(12, 2), nullable=False)
    amount = db.Column(DECIMAL(14, 2), nullable=False)
    paid = db.Column(db.Boolean, default=False, nullable=False)
    paid_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f'<Invoice {self.id} harvest={self.harvest_id}>'

    def to_dict(self):
        """Convert to dictionary"""
        return {
            'id': self.id,
            'harvest_id': self.harvest_id,
            'product': self.product,
            'tonnes': self.tonnes,
            'unit_price': float(self.unit_price),
            'amount': float(self.amount),
            'paid': self.paid,
            'paid_at': self.paid_at.isoformat() if self.paid_at else None,
            'created_at': self.created_at.isoformat()
        }
