"""
Base Repository Interface - Ledger store contract shared by every service
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional, Type
from sqlalchemy.exc import SQLAlchemyError
from agrochain.database import db
from agrochain.errors import NotFound
import logging

logger = logging.getLogger(__name__)


class LedgerStore(ABC):
    """Abstract base class for per-service record storage"""

    @abstractmethod
    def create(self, record: Any) -> Any:
        pass

    @abstractmethod
    def find_by_id(self, record_id: Any) -> Any:
        pass

    @abstractmethod
    def update(self, record: Any) -> Any:
        pass

    @abstractmethod
    def find_all(self) -> List[Any]:
        pass


class SQLAlchemyLedgerStore(LedgerStore):
    """
    Ledger store backed by the Flask-SQLAlchemy session.

    Every write commits before returning, so callers can notify other
    services knowing the change is durable.
    """

    model: Type[db.Model] = None
    entity_name = 'Record'

    def create(self, record):
        """Persist a new record"""
        try:
            db.session.add(record)
            db.session.commit()
            return record
        except SQLAlchemyError:
            db.session.rollback()
            raise

    def get(self, record_id) -> Optional[Any]:
        """Get record by ID, None when absent"""
        return db.session.get(self.model, record_id)

    def find_by_id(self, record_id):
        """Get record by ID, raising NotFound when absent"""
        record = self.get(record_id)
        if record is None:
            raise NotFound(f"{self.entity_name} {record_id} not found")
        return record

    def update(self, record):
        """Commit pending changes on a record"""
        try:
            db.session.add(record)
            db.session.commit()
            return record
        except SQLAlchemyError:
            db.session.rollback()
            raise

    def find_all(self) -> List[Any]:
        return self.model.query.order_by(self.model.created_at).all()
