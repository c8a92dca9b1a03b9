"""
Harvest Model
"""

from agrochain.database import db
from datetime import datetime
import uuid
from .enums import HarvestStatus


class Harvest(db.Model):
    """A farmer's reported production batch of one product"""
    __tablename__ = 'harvests'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    farmer_id = db.Column(db.Integer, db.ForeignKey('farmers.id'), nullable=False, index=True)
    product = db.Column(db.String(200), nullable=False)
    tonnes = db.Column(db.Float, nullable=False)
    status = db.Column(db.Enum(HarvestStatus), default=HarvestStatus.REGISTERED, nullable=False, index=True)
    invoice_id = db.Column(db.String(64), nullable=True)  # Reference into the billing service
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f'<Harvest {self.id} {self.status.value}>'

    @property
    def is_invoiced(self):
        return self.status == HarvestStatus.INVOICED

    def to_dict(self):
        """Convert to dictionary"""
        return {
            'id': self.id,
            'farmer_id': self.farmer_id,
            'product': self.product,
            'tonnes': self.tonnes,
            'status': self.status.value,
            'invoice_id': self.invoice_id,
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat()
        }
