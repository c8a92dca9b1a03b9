import pytest
from sqlalchemy.exc import IntegrityError
from agrochain.database import db
from agrochain.errors import Conflict, NotFound
from agrochain.models import Harvest, HarvestStatus, Supply, Invoice, OutboxStatus
from agrochain.repositories import (
    FarmerRepository, HarvestRepository, SupplyRepository, InvoiceRepository, OutboxRepository
)
from tests.conftest import (
    create_test_farmer, create_test_harvest, create_test_supply, create_test_invoice
)


class TestFarmerRepository:
    """Test FarmerRepository implementations."""

    def test_exists(self, db_session, sample_farmer):
        repo = FarmerRepository()

        assert repo.exists(sample_farmer.id) is True
        assert repo.exists(9999) is False
        assert repo.exists(None) is False

    def test_find_by_id_not_found(self, db_session):
        with pytest.raises(NotFound):
            FarmerRepository().find_by_id(9999)


class TestHarvestRepository:
    """Test HarvestRepository implementations."""

    def test_create_harvest(self, db_session, sample_farmer):
        """Test creating harvest through repository."""
        repo = HarvestRepository()

        harvest = repo.create(Harvest(farmer_id=sample_farmer.id, product='Arroz Oro', tonnes=2.0))

        assert repo.get(harvest.id) is not None
        assert harvest.status == HarvestStatus.REGISTERED

    def test_search_filters(self, db_session, sample_farmer):
        other = create_test_farmer(db_session, name='Otro')
        create_test_harvest(db_session, sample_farmer)
        create_test_harvest(db_session, sample_farmer, status=HarvestStatus.INVOICED, invoice_id='1')
        create_test_harvest(db_session, other)
        repo = HarvestRepository()

        assert len(repo.search()) == 3
        assert len(repo.search(farmer_id=sample_farmer.id)) == 2
        assert len(repo.search(status=HarvestStatus.INVOICED)) == 1
        assert len(repo.search(farmer_id=other.id, status=HarvestStatus.INVOICED)) == 0

    def test_mark_invoiced_transitions_once(self, db_session, sample_farmer):
        """Test REGISTERED -> INVOICED happens exactly once."""
        harvest = create_test_harvest(db_session, sample_farmer)
        repo = HarvestRepository()

        assert repo.mark_invoiced(harvest.id, '10') is True
        assert repo.mark_invoiced(harvest.id, '11') is False

        stored = repo.find_by_id(harvest.id)
        assert stored.status == HarvestStatus.INVOICED
        assert stored.invoice_id == '10'

    def test_mark_invoiced_unknown_harvest(self, db_session):
        assert HarvestRepository().mark_invoiced('missing', '10') is False


class TestSupplyRepository:
    """Test SupplyRepository implementations."""

    def test_create_duplicate_name_conflict(self, supply_app):
        repo = SupplyRepository()
        repo.create(Supply(item_name='Arroz Oro', stock=10))

        with pytest.raises(Conflict):
            repo.create(Supply(item_name='arroz oro', stock=5))

    def test_find_by_name_case_insensitive(self, supply_app):
        create_test_supply(db.session, item_name='Arroz Oro')
        repo = SupplyRepository()

        assert repo.find_by_name('ARROZ ORO').item_name == 'Arroz Oro'
        assert repo.get_by_name('Maiz') is None
        with pytest.raises(NotFound):
            repo.find_by_name('Maiz')

    def test_apply_delta(self, supply_app):
        create_test_supply(db.session, stock=100)
        repo = SupplyRepository()

        assert repo.apply_delta('Arroz Oro', 5) is True
        assert repo.find_by_name('Arroz Oro').stock == 95

    def test_apply_delta_negative_restocks(self, supply_app):
        create_test_supply(db.session, stock=10)
        repo = SupplyRepository()

        assert repo.apply_delta('Arroz Oro', -15) is True
        assert repo.find_by_name('Arroz Oro').stock == 25

    def test_apply_delta_guards_negative_stock(self, supply_app):
        """Test the update does not match when stock would go below zero."""
        create_test_supply(db.session, stock=3)
        repo = SupplyRepository()

        assert repo.apply_delta('Arroz Oro', 5) is False
        assert repo.find_by_name('Arroz Oro').stock == 3

        assert repo.apply_delta('Arroz Oro', 5, allow_negative=True) is True
        assert repo.find_by_name('Arroz Oro').stock == -2

    def test_apply_delta_restock_below_zero(self, supply_app):
        create_test_supply(db.session, item_name='Urea', stock=-10)
        repo = SupplyRepository()

        assert repo.apply_delta('Urea', -5) is True
        assert repo.find_by_name('Urea').stock == -5

    def test_apply_delta_unknown_item(self, supply_app):
        assert SupplyRepository().apply_delta('Nothing', 1) is False

    def test_find_all_ordered_by_name(self, supply_app):
        create_test_supply(db.session, item_name='Semillas')
        create_test_supply(db.session, item_name='Abono')

        names = [supply.item_name for supply in SupplyRepository().find_all()]
        assert names == ['Abono', 'Semillas']


class TestInvoiceRepository:
    """Test InvoiceRepository implementations."""

    def test_create_duplicate_harvest_conflict(self, billing_app):
        repo = InvoiceRepository()
        repo.create(Invoice(harvest_id='h-1', product='Arroz Oro', tonnes=2,
                            unit_price=120, amount=240))

        with pytest.raises(Conflict):
            repo.create(Invoice(harvest_id='h-1', product='Arroz Oro', tonnes=2,
                                unit_price=120, amount=240))
        assert len(repo.search(harvest_id='h-1')) == 1

    def test_create_other_integrity_error_propagates(self, billing_app):
        """Test a NOT NULL violation is not reported as a duplicate invoice."""
        repo = InvoiceRepository()

        with pytest.raises(IntegrityError):
            repo.create(Invoice(harvest_id='h-2', product='Maiz', tonnes=3,
                                unit_price=100, amount=None))
        assert repo.get_by_harvest_id('h-2') is None

    def test_search_and_mark_paid(self, billing_app):
        first = create_test_invoice(db.session, harvest_id='h-1')
        create_test_invoice(db.session, harvest_id='h-2')
        repo = InvoiceRepository()

        repo.mark_paid(first)

        assert repo.get_by_harvest_id('h-1').paid is True
        assert repo.get_by_harvest_id('h-1').paid_at is not None
        assert [i.harvest_id for i in repo.search(paid=False)] == ['h-2']
        assert repo.get_by_harvest_id('unknown') is None


class TestOutboxRepository:
    """Test OutboxRepository implementations."""

    def test_add_and_list_dead_letters(self, db_session):
        repo = OutboxRepository()
        repo.add_dead_letter('events', 'nueva_cosecha', {'harvestId': 'h-1'},
                             'nueva_cosecha:h-1', 3, 'broker down')
        repo.add_dead_letter('callbacks', 'harvest.status', {'harvestId': 'h-1'},
                             None, 3, 'timeout')

        assert len(repo.get_dead_letters()) == 2
        assert len(repo.get_dead_letters(channel='events')) == 1
        assert len(repo.get_dead_letters(limit=1)) == 1

    def test_record_replay(self, db_session):
        repo = OutboxRepository()
        message = repo.add_dead_letter('events', 'nueva_cosecha', {'harvestId': 'h-1'},
                                       None, 3, 'broker down')

        repo.record_replay(message, delivered=False, attempts=2, error='still down')
        assert message.attempts == 5
        assert message.last_error == 'still down'
        assert message.status == OutboxStatus.DEAD_LETTERED

        repo.record_replay(message, delivered=True, attempts=1)
        assert message.status == OutboxStatus.REPLAYED
        assert message.last_error is None
        assert repo.get_dead_letters() == []
