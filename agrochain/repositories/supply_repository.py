"""
Supply Repository Implementation
"""

from typing import Optional
from datetime import datetime
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from agrochain.database import db
from agrochain.errors import Conflict, NotFound
from agrochain.models import Supply, normalize_item_name
from .base import SQLAlchemyLedgerStore


class SupplyRepository(SQLAlchemyLedgerStore):
    """Concrete implementation of supply repository"""
    model = Supply
    entity_name = 'Supply'

    def create(self, record: Supply) -> Supply:
        """Create new supply item, names are unique ignoring case"""
        try:
            db.session.add(record)
            db.session.commit()
            return record
        except IntegrityError:
            db.session.rollback()
            raise Conflict(f"Supply item {record.item_name} already exists")

    def get_by_name(self, item_name: str) -> Optional[Supply]:
        """Get supply item by name, case-insensitive"""
        return Supply.query.filter_by(name_key=normalize_item_name(item_name)).first()

    def find_by_name(self, item_name: str) -> Supply:
        supply = self.get_by_name(item_name)
        if supply is None:
            raise NotFound(f"Supply item {item_name} not found")
        return supply

    def apply_delta(self, item_name: str, delta: float, allow_negative: bool = False) -> bool:
        """
        Subtract delta from the stock of one item in a single UPDATE.

        The read-modify-write happens inside the database, so concurrent
        adjustments of the same item never lose an update. Unless
        allow_negative is set the statement only matches while the
        resulting stock stays >= 0. Restocks (negative delta) always apply.

        Returns True when a row was updated.
        """
        stmt = update(Supply).where(Supply.name_key == normalize_item_name(item_name))
        if delta > 0 and not allow_negative:
            stmt = stmt.where(Supply.stock - delta >= 0)
        stmt = (
            stmt.values(stock=Supply.stock - delta, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        try:
            result = db.session.execute(stmt)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise
        db.session.expire_all()
        return result.rowcount == 1

    def find_all(self):
        return Supply.query.order_by(Supply.item_name).all()
