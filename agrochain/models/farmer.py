"""
Farmer Model
"""

from agrochain.database import db
from datetime import datetime


class Farmer(db.Model):
    """Farmer reference record, owned outside the harvest registry"""
    __tablename__ = 'farmers'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    harvests = db.relationship('Harvest', backref='farmer', lazy=True)

    def __repr__(self):
        return f'<Farmer {self.id} {self.name}>'

    def to_dict(self):
        """Convert to dictionary"""
        return {
            'id': self.id,
            'name': self.name,
            'created_at': self.created_at.isoformat()
        }
