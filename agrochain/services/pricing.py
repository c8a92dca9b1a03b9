"""
Price lookup for billing
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Mapping, Optional

CENTS = Decimal('0.01')


def _to_decimal(value) -> Decimal:
    return Decimal(str(value))


class PriceTable:
    """Product -> unit price per tonne, with a fallback price for unknown products"""

    def __init__(self, prices: Optional[Mapping[str, float]] = None, default_price: float = 100.0):
        self._prices: Dict[str, Decimal] = {
            product: _to_decimal(price) for product, price in (prices or {}).items()
        }
        self.default_price = _to_decimal(default_price)

    @classmethod
    def from_config(cls, config) -> 'PriceTable':
        return cls(config.get('PRICE_TABLE', {}), config.get('DEFAULT_PRICE', 100.0))

    def unit_price(self, product: str) -> Decimal:
        return self._prices.get(product, self.default_price)

    def amount_for(self, product: str, tonnes: float) -> Decimal:
        """tonnes x unit price, rounded to cents"""
        return (_to_decimal(tonnes) * self.unit_price(product)).quantize(CENTS, rounding=ROUND_HALF_UP)

    def __contains__(self, product):
        return product in self._prices
