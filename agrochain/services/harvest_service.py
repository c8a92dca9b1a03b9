"""
Harvest Service - central registry of harvests
"""

from typing import List, Optional
import logging
import uuid

from flask import current_app

from agrochain.errors import Conflict, InvalidArgument, NotFound
from agrochain.events import NEW_HARVEST, get_emitter
from agrochain.models import Harvest, HarvestStatus
from agrochain.repositories import FarmerRepository, HarvestRepository

logger = logging.getLogger(__name__)

DUPLICATE_POLICIES = ('ignore', 'conflict')


class HarvestService:
    """Registers harvests and records their invoicing"""

    def __init__(self, harvest_repo: HarvestRepository = None, farmer_repo: FarmerRepository = None,
                 emitter=None, duplicate_policy: str = None):
        self.harvest_repo = harvest_repo or HarvestRepository()
        self.farmer_repo = farmer_repo or FarmerRepository()
        self.emitter = emitter or get_emitter()
        self.duplicate_policy = duplicate_policy or current_app.config.get('DUPLICATE_INVOICE_POLICY', 'ignore')
        if self.duplicate_policy not in DUPLICATE_POLICIES:
            raise ValueError(f"Unknown DUPLICATE_INVOICE_POLICY: {self.duplicate_policy}")

    def register(self, farmer_id: int, product: str, tonnes: float) -> Harvest:
        """
        Register a harvest for a known farmer and announce it.

        Args:
            farmer_id: Existing farmer
            product: Product name, e.g. 'Arroz Oro'
            tonnes: Harvested quantity, must be > 0

        Returns:
            The persisted Harvest (status REGISTERED)

        Raises:
            NotFound: unknown farmer, nothing is persisted
            InvalidArgument: bad product or quantity
        """
        product = (product or '').strip()
        if not product:
            raise InvalidArgument("Product is required")
        if tonnes is None or tonnes <= 0:
            raise InvalidArgument(f"Tonnes must be greater than zero, got {tonnes}")
        if not self.farmer_repo.exists(farmer_id):
            raise NotFound(f"Farmer {farmer_id} not found")

        harvest_id = str(uuid.uuid4())
        harvest = self.harvest_repo.create(Harvest(
            id=harvest_id,
            farmer_id=farmer_id,
            product=product,
            tonnes=float(tonnes),
            status=HarvestStatus.REGISTERED
        ))
        logger.info(f"Registered harvest {harvest_id}: {tonnes} t of {product} from farmer {farmer_id}")

        # Committed above; notify only now
        self.emitter.emit(
            NEW_HARVEST,
            {'harvestId': harvest_id, 'product': product, 'tonnes': float(tonnes)},
            dedupe_key=f"{NEW_HARVEST}:{harvest_id}"
        )
        return harvest

    def mark_invoiced(self, harvest_id: str, invoice_id) -> Harvest:
        """
        Record the invoice of a harvest (billing callback).

        Idempotent upsert keyed by harvest id: the first invoice id wins and
        is never replaced. A repeated call is a no-op, or a Conflict when
        DUPLICATE_INVOICE_POLICY is 'conflict' and the invoice id differs.
        """
        if invoice_id is None or str(invoice_id).strip() == '':
            raise InvalidArgument("invoiceId is required")
        invoice_id = str(invoice_id)

        updated = self.harvest_repo.mark_invoiced(harvest_id, invoice_id)
        harvest = self.harvest_repo.find_by_id(harvest_id)

        if updated:
            logger.info(f"Harvest {harvest_id} invoiced with invoice {invoice_id}")
            return harvest

        if harvest.invoice_id == invoice_id:
            logger.info(f"Harvest {harvest_id} already invoiced with {invoice_id}, ignoring replay")
            return harvest

        if self.duplicate_policy == 'conflict':
            raise Conflict(
                f"Harvest {harvest_id} is already invoiced with invoice {harvest.invoice_id}"
            )
        logger.warning(
            f"Ignoring invoice {invoice_id} for harvest {harvest_id}, "
            f"already invoiced with {harvest.invoice_id}"
        )
        return harvest

    def get_harvest(self, harvest_id: str) -> Harvest:
        return self.harvest_repo.find_by_id(harvest_id)

    def list_harvests(self, farmer_id: Optional[int] = None,
                      status: Optional[HarvestStatus] = None) -> List[Harvest]:
        return self.harvest_repo.search(farmer_id=farmer_id, status=status)
