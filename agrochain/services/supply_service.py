"""
Supply Service - inventory stock tracking
"""

from typing import List
import logging

from flask import current_app

from agrochain.errors import InvalidArgument
from agrochain.events import STOCK_ADJUSTED, get_emitter
from agrochain.models import Supply
from agrochain.repositories import SupplyRepository

logger = logging.getLogger(__name__)


class SupplyService:
    """Business logic for supply stock levels"""

    def __init__(self, supply_repo: SupplyRepository = None, emitter=None,
                 allow_negative_stock: bool = None):
        self.supply_repo = supply_repo or SupplyRepository()
        self.emitter = emitter or get_emitter()
        if allow_negative_stock is None:
            allow_negative_stock = current_app.config.get('ALLOW_NEGATIVE_STOCK', False)
        self.allow_negative_stock = allow_negative_stock

    def adjust_stock(self, item_name: str, delta: float) -> Supply:
        """
        Subtract delta from an item's stock (negative delta restocks).

        Raises:
            NotFound: no item with that name (case-insensitive)
            InvalidArgument: zero delta, or the stock would drop below zero
                while negative stock is not allowed
        """
        if delta is None or delta == 0:
            raise InvalidArgument("Delta must be a non-zero number")

        updated = self.supply_repo.apply_delta(item_name, delta, allow_negative=self.allow_negative_stock)
        supply = self.supply_repo.find_by_name(item_name)
        if not updated:
            raise InvalidArgument(
                f"Insufficient stock for {supply.item_name}: {supply.stock} available, {delta} requested"
            )

        logger.info(f"Adjusted stock for {supply.item_name} by -{delta}, now {supply.stock}")
        self.emitter.emit(
            STOCK_ADJUSTED,
            {'item': supply.item_name, 'delta': float(delta)}
        )
        return supply

    def create_supply(self, item_name: str, stock: float = 0.0) -> Supply:
        item_name = (item_name or '').strip()
        if not item_name:
            raise InvalidArgument("Item name is required")
        if stock is None or (stock < 0 and not self.allow_negative_stock):
            raise InvalidArgument(f"Initial stock cannot be negative, got {stock}")

        supply = self.supply_repo.create(Supply(item_name=item_name, stock=float(stock)))
        logger.info(f"Created supply item {item_name} with stock {stock}")
        return supply

    def get_supply(self, item_name: str) -> Supply:
        return self.supply_repo.find_by_name(item_name)

    def list_supplies(self) -> List[Supply]:
        return self.supply_repo.find_all()
