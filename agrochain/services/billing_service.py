"""
Billing Service - invoices harvests announced on the event bus
"""

from typing import Any, Dict, List, Optional
import logging
import math

from flask import current_app

from agrochain.errors import Conflict, InvalidArgument
from agrochain.events import CALLBACKS_CHANNEL, HARVEST_STATUS_CALLBACK, get_emitter
from agrochain.models import Invoice
from agrochain.repositories import InvoiceRepository
from .pricing import PriceTable

logger = logging.getLogger(__name__)


class BillingService:
    """Business logic for invoices"""

    def __init__(self, price_table: PriceTable = None, invoice_repo: InvoiceRepository = None,
                 callback_emitter=None):
        self.price_table = price_table or PriceTable.from_config(current_app.config)
        self.invoice_repo = invoice_repo or InvoiceRepository()
        self.callback_emitter = callback_emitter or get_emitter(CALLBACKS_CHANNEL)

    @staticmethod
    def _parse_event(event: Dict[str, Any]):
        harvest_id = event.get('harvestId')
        product = event.get('product')
        tonnes = event.get('tonnes')

        if not harvest_id or not isinstance(harvest_id, str):
            raise InvalidArgument("Event is missing harvestId")
        if not product or not isinstance(product, str):
            raise InvalidArgument(f"Event for harvest {harvest_id} is missing product")
        if isinstance(tonnes, bool):
            raise InvalidArgument(f"Event for harvest {harvest_id} has invalid tonnes: {tonnes!r}")
        try:
            tonnes = float(tonnes)
        except (TypeError, ValueError):
            raise InvalidArgument(f"Event for harvest {harvest_id} has invalid tonnes: {tonnes!r}")
        if not math.isfinite(tonnes):
            raise InvalidArgument(f"Event for harvest {harvest_id} has non-finite tonnes: {tonnes}")
        if tonnes <= 0:
            raise InvalidArgument(f"Event for harvest {harvest_id} has non-positive tonnes: {tonnes}")
        return harvest_id, product, tonnes

    def handle_new_harvest(self, event: Dict[str, Any]) -> Invoice:
        """
        Invoice a harvest from a nueva_cosecha event.

        Delivery is at-least-once, so the same event may arrive again: the
        harvest id is checked before inserting, and the unique constraint on
        invoices.harvest_id catches a concurrent duplicate. A redelivered
        event re-sends the status callback instead of creating an invoice.
        """
        harvest_id, product, tonnes = self._parse_event(event)

        invoice = self.invoice_repo.get_by_harvest_id(harvest_id)
        if invoice is not None:
            logger.info(f"Harvest {harvest_id} already invoiced as {invoice.id}, skipping insert")
        else:
            unit_price = self.price_table.unit_price(product)
            if product not in self.price_table:
                logger.info(f"No price for {product}, using default {unit_price}")
            try:
                invoice = self.invoice_repo.create(Invoice(
                    harvest_id=harvest_id,
                    product=product,
                    tonnes=tonnes,
                    unit_price=unit_price,
                    amount=self.price_table.amount_for(product, tonnes),
                    paid=False
                ))
                logger.info(f"Created invoice {invoice.id} for harvest {harvest_id}: {invoice.amount}")
            except Conflict:
                invoice = self.invoice_repo.get_by_harvest_id(harvest_id)
                if invoice is None:
                    raise
                logger.info(f"Concurrent invoice for harvest {harvest_id} won, using {invoice.id}")

        self.notify_harvest_invoiced(invoice)
        return invoice

    def notify_harvest_invoiced(self, invoice: Invoice):
        """Callback into the harvest service: PUT /api/harvests/{id}/status"""
        return self.callback_emitter.emit(
            HARVEST_STATUS_CALLBACK,
            {'harvestId': invoice.harvest_id, 'invoiceId': str(invoice.id)},
            dedupe_key=f"{HARVEST_STATUS_CALLBACK}:{invoice.harvest_id}:INVOICED"
        )

    def get_invoice(self, invoice_id: int) -> Invoice:
        return self.invoice_repo.find_by_id(invoice_id)

    def list_invoices(self, harvest_id: Optional[str] = None, paid: Optional[bool] = None) -> List[Invoice]:
        return self.invoice_repo.search(harvest_id=harvest_id, paid=paid)

    def mark_paid(self, invoice_id: int) -> Invoice:
        invoice = self.invoice_repo.find_by_id(invoice_id)
        if invoice.paid:
            logger.info(f"Invoice {invoice_id} already paid")
            return invoice
        invoice = self.invoice_repo.mark_paid(invoice)
        logger.info(f"Invoice {invoice_id} marked as paid")
        return invoice
