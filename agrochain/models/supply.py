"""
Supply Model
"""

from agrochain.database import db
from datetime import datetime


def normalize_item_name(item_name: str) -> str:
    """Key used for case-insensitive item lookups"""
    return (item_name or '').strip().lower()


class Supply(db.Model):
    """Inventory item with a tracked stock quantity"""
    __tablename__ = 'supplies'

    id = db.Column(db.Integer, primary_key=True)
    item_name = db.Column(db.String(200), nullable=False)
    name_key = db.Column(db.String(200), unique=True, nullable=False, index=True)
    stock = db.Column(db.Float, default=0.0, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if self.item_name and not self.name_key:
            self.name_key = normalize_item_name(self.item_name)

    def __repr__(self):
        return f'<Supply {self.item_name} {self.stock}>'

    @property
    def is_out_of_stock(self):
        return self.stock <= 0

    def to_dict(self):
        """Convert to dictionary"""
        return {
            'id': self.id,
            'item_name': self.item_name,
            'stock': self.stock,
            'is_out_of_stock': self.is_out_of_stock,
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat()
        }
